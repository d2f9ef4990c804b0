"""
Prefect Workflow Orchestration - Warehouse ETL

Scheduled full-refresh run of the medallion pipeline:
- Bronze load with retries for transient file system errors
- Silver reconciliation and gold derivation
- Quality checks with alerting on failed suites
- Optional publish of the gold tables
"""

from datetime import date
from typing import Dict, Optional

import polars as pl
from prefect import flow, task, get_run_logger
from prefect.cache_policies import NONE

from sales_dwh.config import get_settings
from sales_dwh.pipeline import WarehousePipeline
from sales_dwh.quality.validators import ValidationStatus


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="load_bronze",
    description="Load the CRM/ERP extracts into the bronze layer",
    retries=3,
    retry_delay_seconds=60,
    cache_policy=NONE,
)
def load_bronze(pipeline: WarehousePipeline, source_dir: str) -> Dict[str, pl.DataFrame]:
    logger = get_run_logger()
    bronze = pipeline.load_bronze(source_dir)
    logger.info(f"Bronze load complete: {sum(len(df) for df in bronze.values())} rows in {len(bronze)} tables")
    return bronze


@task(name="build_silver", description="Reconcile bronze tables into silver", cache_policy=NONE)
def build_silver(pipeline: WarehousePipeline, bronze: Dict[str, pl.DataFrame]) -> Dict[str, pl.DataFrame]:
    silver = pipeline.build_silver(bronze)
    get_run_logger().info(f"Silver build complete: {len(silver)} tables")
    return silver


@task(name="build_gold", description="Derive the gold star schema", cache_policy=NONE)
def build_gold(pipeline: WarehousePipeline, silver: Dict[str, pl.DataFrame]) -> Dict[str, pl.DataFrame]:
    gold = pipeline.build_gold(silver)
    get_run_logger().info(
        "Gold build complete: "
        + ", ".join(f"{name}={len(df)}" for name, df in gold.items())
    )
    return gold


@task(name="run_quality_checks", description="Run silver and gold quality suites", cache_policy=NONE)
def run_quality_checks(
    pipeline: WarehousePipeline,
    silver: Dict[str, pl.DataFrame],
    gold: Dict[str, pl.DataFrame],
) -> dict:
    logger = get_run_logger()
    reports = pipeline.check_quality(silver, gold)

    summary = {
        stage: {table: r.to_dict(sample_size=5) for table, r in results.items()}
        for stage, results in reports.items()
    }
    failed = [
        f"{stage}.{table}"
        for stage, results in reports.items()
        for table, r in results.items()
        if r.status == ValidationStatus.FAILED
    ]
    if failed:
        send_alert("Data Quality", f"Failed suites: {', '.join(failed)}", severity="critical")
    else:
        logger.info("All quality suites passed")

    return {"passed": not failed, "failed_suites": failed, "reports": summary}


@task(
    name="publish_gold",
    description="Replace the gold tables in the warehouse database",
    retries=2,
    retry_delay_seconds=30,
    cache_policy=NONE,
)
def publish_gold(gold: Dict[str, pl.DataFrame], database_url: Optional[str] = None) -> Dict[str, int]:
    from sales_dwh.database.publisher import publish_gold as publish

    rows = publish(gold, database_url)
    get_run_logger().info(f"Published gold tables: {rows}")
    return rows


def send_alert(alert_type: str, message: str, severity: str = "info") -> None:
    """Alert hook; currently routed to the flow log"""
    get_run_logger().warning(f"[{severity.upper()}] {alert_type}: {message}")


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="warehouse_etl",
    description="Full-refresh bronze/silver/gold batch for the sales warehouse",
)
def warehouse_etl(
    source_dir: Optional[str] = None,
    lake_path: Optional[str] = None,
    reference_date: Optional[date] = None,
    publish: bool = False,
    database_url: Optional[str] = None,
) -> dict:
    """
    Warehouse ETL pipeline.

    Steps:
    1. Load extracts into bronze
    2. Reconcile into silver
    3. Derive the gold star schema
    4. Run quality checks
    5. Optionally publish gold to the warehouse database
    """
    logger = get_run_logger()
    settings = get_settings()
    source_dir = source_dir or settings.data_lake.source_path

    pipeline = WarehousePipeline(lake_path=lake_path, reference_date=reference_date)
    logger.info(f"Starting warehouse ETL from {source_dir}")

    try:
        bronze = load_bronze(pipeline, source_dir)
        silver = build_silver(pipeline, bronze)
        gold = build_gold(pipeline, silver)
        quality = run_quality_checks(pipeline, silver, gold)

        published = publish_gold(gold, database_url) if publish else None
    except Exception as e:
        send_alert("Warehouse ETL Failed", str(e), severity="critical")
        raise

    return {
        "status": "success",
        "gold_rows": {name: len(df) for name, df in gold.items()},
        "quality_passed": quality["passed"],
        "published_rows": published,
    }


if __name__ == "__main__":
    warehouse_etl()
