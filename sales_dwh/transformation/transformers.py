"""
Warehouse Transformer

Runs the reconciliation (silver) and dimensional derivation (gold) stages
over whole table sets. Each stage is a pure function from its input
snapshot to a brand new output snapshot: nothing is updated in place.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

import polars as pl
import structlog

from .cleaners import SilverCleaner
from .dimensions import StarSchemaBuilder

logger = structlog.get_logger(__name__)


class Layer(str, Enum):
    """Medallion layers"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


@dataclass
class TableResult:
    """Row accounting for one output table"""
    table: str
    input_rows: int
    output_rows: int

    @property
    def rows_dropped(self) -> int:
        return self.input_rows - self.output_rows


@dataclass
class StageResult:
    """Result of one stage over a full table set"""
    layer: Layer
    started_at: datetime
    completed_at: datetime
    tables: List[TableResult] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def output_rows(self) -> int:
        return sum(t.output_rows for t in self.tables)


class WarehouseTransformer:
    """
    Silver and gold stage orchestrator.

    Example:
        transformer = WarehouseTransformer(reference_date=date(2025, 1, 1))
        silver, _ = transformer.transform_silver(bronze)
        gold, _ = transformer.transform_gold(silver)
    """

    def __init__(self, reference_date: Optional[date] = None):
        self.cleaner = SilverCleaner(reference_date=reference_date)
        self.builder = StarSchemaBuilder()

    @property
    def reference_date(self) -> date:
        return self.cleaner.reference_date

    def transform_silver(
        self,
        bronze: Dict[str, pl.DataFrame],
    ) -> Tuple[Dict[str, pl.DataFrame], StageResult]:
        """
        Reconcile every bronze table.

        Raises:
            ValueError: If a bronze table is missing
        """
        missing = [t for t in self.cleaner.tables if t not in bronze]
        if missing:
            raise ValueError(f"Bronze snapshot is missing tables: {missing}")

        started_at = datetime.utcnow()
        logger.info("Starting silver stage", tables=len(self.cleaner.tables))

        silver: Dict[str, pl.DataFrame] = {}
        results: List[TableResult] = []
        for table in self.cleaner.tables:
            silver[table] = self.cleaner.clean(table, bronze[table])
            results.append(TableResult(table, len(bronze[table]), len(silver[table])))
            logger.info(
                "Reconciled table",
                table=table,
                input_rows=len(bronze[table]),
                output_rows=len(silver[table]),
            )

        stage = StageResult(Layer.SILVER, started_at, datetime.utcnow(), results)
        logger.info(f"Silver stage complete in {stage.duration_seconds:.2f}s", rows=stage.output_rows)
        return silver, stage

    def transform_gold(
        self,
        silver: Dict[str, pl.DataFrame],
    ) -> Tuple[Dict[str, pl.DataFrame], StageResult]:
        """Derive the star schema from a silver snapshot"""
        started_at = datetime.utcnow()
        logger.info("Starting gold stage")

        gold = self.builder.build(silver)
        sources = {
            "dim_customers": "crm_cust_info",
            "dim_products": "crm_prd_info",
            "fact_sales": "crm_sales_details",
        }
        results = [
            TableResult(name, len(silver[sources[name]]), len(df))
            for name, df in gold.items()
        ]

        stage = StageResult(Layer.GOLD, started_at, datetime.utcnow(), results)
        logger.info(f"Gold stage complete in {stage.duration_seconds:.2f}s", rows=stage.output_rows)
        return gold, stage

    def run(
        self,
        bronze: Dict[str, pl.DataFrame],
    ) -> Tuple[Dict[str, pl.DataFrame], Dict[str, pl.DataFrame]]:
        """
        Run reconciliation and derivation back to back.

        Returns:
            Silver and gold snapshots
        """
        silver, _ = self.transform_silver(bronze)
        gold, _ = self.transform_gold(silver)
        return silver, gold
