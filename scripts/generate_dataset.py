"""
Source Extract Generator

Writes a synthetic set of CRM and ERP extracts into ./datasets so the
warehouse pipeline can be run end to end without the real source files.
"""

import argparse
from pathlib import Path

from sales_dwh.data.generators import GeneratorConfig, generate_sources

OUTPUT_DIR = Path(__file__).parent.parent / "datasets"


def main():
    parser = argparse.ArgumentParser(description="Generate synthetic CRM/ERP extracts")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR)
    parser.add_argument("--customers", type=int, default=2000)
    parser.add_argument("--products", type=int, default=150)
    parser.add_argument("--orders", type=int, default=20000)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    print("=" * 60)
    print("Sales Warehouse Source Generator")
    print("=" * 60 + "\n")

    config = GeneratorConfig(
        customers=args.customers,
        products=args.products,
        orders=args.orders,
        seed=args.seed,
    )
    paths = generate_sources(args.output, config)

    total = 0
    for path in paths:
        size = path.stat().st_size / 1024
        with open(path, "r") as fh:
            rows = sum(1 for _ in fh) - 1
        total += rows
        print(f"   {path.relative_to(args.output)}: {rows:,} rows ({size:.1f} KB)")

    print(f"\nTotal: {total:,} rows written to {args.output}")


if __name__ == "__main__":
    main()
