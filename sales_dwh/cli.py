"""
Command Line Interface

Usage:
    sales-dwh generate --output ./datasets
    sales-dwh run --source-dir ./datasets
    sales-dwh validate
    sales-dwh serve --port 8000
"""

import argparse
import json
import sys
from datetime import date
from typing import List, Optional

import structlog

from sales_dwh.config import get_settings
from sales_dwh.config.logging import configure_logging

logger = structlog.get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_run(args: argparse.Namespace) -> int:
    from sales_dwh.pipeline import WarehousePipeline

    pipeline = WarehousePipeline(
        lake_path=args.lake_path,
        reference_date=args.reference_date,
        run_quality_checks=False if args.skip_quality else None,
        publish=True if args.publish else None,
        database_url=args.database_url,
    )
    try:
        result = pipeline.run(args.source_dir)
    except (RuntimeError, ValueError, OSError) as e:
        logger.error("Pipeline run aborted", error=str(e))
        return 1

    _print_json(result.summary())
    if args.fail_on_quality and not result.quality_passed:
        return 2
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    from sales_dwh.quality.validators import validate_gold, validate_silver
    from sales_dwh.storage.layer_store import LayerStore
    from sales_dwh.transformation.transformers import Layer

    store = LayerStore(args.lake_path)
    try:
        silver = store.read_layer(Layer.SILVER)
        gold = store.read_layer(Layer.GOLD)
    except FileNotFoundError as e:
        logger.error("Cannot validate", error=str(e))
        return 1

    reports = {
        "silver": validate_silver(silver, args.reference_date),
        "gold": validate_gold(gold),
    }
    _print_json({
        stage: {table: r.to_dict(args.sample_size) for table, r in results.items()}
        for stage, results in reports.items()
    })
    failed = any(r.failed_checks for results in reports.values() for r in results.values())
    return 1 if failed else 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "sales_dwh.main:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload,
        access_log=True,
    )
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    from sales_dwh.data.generators import GeneratorConfig, generate_sources

    config = GeneratorConfig(
        customers=args.customers,
        products=args.products,
        orders=args.orders,
        dangling_rate=args.dangling_rate,
        seed=args.seed,
    )
    paths = generate_sources(args.output or get_settings().data_lake.source_path, config)
    for path in paths:
        print(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sales-dwh", description="Sales data warehouse pipeline")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-format", choices=["json", "text"], default=None, help="Override LOG_FORMAT")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the full bronze/silver/gold batch")
    run.add_argument("--source-dir", default=None, help="Directory with the CRM/ERP extracts")
    run.add_argument("--lake-path", default=None, help="Data lake root")
    run.add_argument("--reference-date", type=_parse_date, default=None, help="Date used for future-birthdate checks")
    run.add_argument("--publish", action="store_true", help="Publish gold tables to the warehouse database")
    run.add_argument("--database-url", default=None, help="Override WAREHOUSE_DB_URL")
    run.add_argument("--skip-quality", action="store_true", help="Skip quality checks")
    run.add_argument("--fail-on-quality", action="store_true", help="Exit 2 when a quality suite fails")
    run.set_defaults(func=cmd_run)

    validate = subparsers.add_parser("validate", help="Run quality checks against the stored layers")
    validate.add_argument("--lake-path", default=None, help="Data lake root")
    validate.add_argument("--reference-date", type=_parse_date, default=None)
    validate.add_argument("--sample-size", type=int, default=5, help="Violations shown per check")
    validate.set_defaults(func=cmd_validate)

    serve = subparsers.add_parser("serve", help="Serve the gold layer over HTTP")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true", help="Auto-reload for development")
    serve.set_defaults(func=cmd_serve)

    generate = subparsers.add_parser("generate", help="Write synthetic CRM/ERP extracts")
    generate.add_argument("--output", default=None, help="Target directory (defaults to DATA_SOURCE_PATH)")
    generate.add_argument("--customers", type=int, default=200)
    generate.add_argument("--products", type=int, default=40)
    generate.add_argument("--orders", type=int, default=600)
    generate.add_argument("--dangling-rate", type=float, default=0.0)
    generate.add_argument("--seed", type=int, default=42)
    generate.set_defaults(func=cmd_generate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_format)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
