"""
Warehouse Pipeline

Batch orchestration of the medallion stages:

    bronze (load extracts) -> silver (reconcile) -> gold (star schema)
        -> quality checks -> optional publish to the warehouse database

Stages run one after another. Each stage rewrites its whole layer and the
layer only becomes visible once complete. Any stage error aborts the batch
and propagates; the recovery procedure is simply to rerun from scratch.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import polars as pl
import structlog

from sales_dwh.config import get_settings
from sales_dwh.config.logging import pipeline_run_context
from sales_dwh.ingestion.batch_loader import BatchLoader, LoadResult, LoadStatus
from sales_dwh.quality.validators import ValidationResult, ValidationStatus, validate_gold, validate_silver
from sales_dwh.storage.layer_store import LayerStore
from sales_dwh.transformation.transformers import Layer, StageResult, TableResult, WarehouseTransformer

logger = structlog.get_logger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one full pipeline run"""
    started_at: datetime
    run_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    load_results: List[LoadResult] = field(default_factory=list)
    stages: Dict[Layer, StageResult] = field(default_factory=dict)
    silver_quality: Dict[str, ValidationResult] = field(default_factory=dict)
    gold_quality: Dict[str, ValidationResult] = field(default_factory=dict)
    published_rows: Optional[Dict[str, int]] = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def quality_passed(self) -> bool:
        results = list(self.silver_quality.values()) + list(self.gold_quality.values())
        return all(r.status != ValidationStatus.FAILED for r in results)

    def summary(self) -> Dict[str, object]:
        return {
            "run_id": self.run_id,
            "duration_seconds": round(self.duration_seconds, 3),
            "stages": {
                layer.value: {t.table: t.output_rows for t in stage.tables}
                for layer, stage in self.stages.items()
            },
            "quality": {
                "silver": {t: r.status.value for t, r in self.silver_quality.items()},
                "gold": {t: r.status.value for t, r in self.gold_quality.items()},
            },
            "published_rows": self.published_rows,
        }


class WarehousePipeline:
    """
    Full-refresh batch pipeline.

    Example:
        pipeline = WarehousePipeline(lake_path="./data")
        result = pipeline.run("./datasets")
    """

    def __init__(
        self,
        lake_path: Optional[Union[str, Path]] = None,
        reference_date: Optional[date] = None,
        run_quality_checks: Optional[bool] = None,
        publish: Optional[bool] = None,
        database_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.store = LayerStore(lake_path or settings.data_lake.lake_path)
        self.loader = BatchLoader()
        self.transformer = WarehouseTransformer(reference_date=reference_date)
        self.run_quality_checks = (
            settings.data_quality.enable_data_quality_checks
            if run_quality_checks is None else run_quality_checks
        )
        self.publish = settings.database.publish_enabled if publish is None else publish
        self.database_url = database_url
        self._stages: Dict[Layer, StageResult] = {}
        self._load_results: List[LoadResult] = []

    def load_bronze(self, source_dir: Optional[Union[str, Path]] = None) -> Dict[str, pl.DataFrame]:
        """
        Load every extract and write the bronze layer.

        Raises:
            RuntimeError: If any extract failed to load
        """
        tables, results = self.loader.load_sources(source_dir)
        self._load_results = results

        failed = [r for r in results if r.status == LoadStatus.FAILED]
        if failed:
            details = "; ".join(f"{r.target_table}: {r.error_message}" for r in failed)
            raise RuntimeError(f"Bronze load failed for {len(failed)} table(s): {details}")

        self.store.write_layer(Layer.BRONZE, tables)
        return tables

    def build_silver(self, bronze: Optional[Dict[str, pl.DataFrame]] = None) -> Dict[str, pl.DataFrame]:
        """Reconcile bronze into silver and write the silver layer"""
        bronze = bronze if bronze is not None else self.store.read_layer(Layer.BRONZE)
        silver, stage = self.transformer.transform_silver(bronze)
        self._stages[Layer.SILVER] = stage
        self.store.write_layer(Layer.SILVER, silver)
        return silver

    def build_gold(self, silver: Optional[Dict[str, pl.DataFrame]] = None) -> Dict[str, pl.DataFrame]:
        """Derive the star schema from silver and write the gold layer"""
        silver = silver if silver is not None else self.store.read_layer(Layer.SILVER)
        gold, stage = self.transformer.transform_gold(silver)
        self._stages[Layer.GOLD] = stage
        self.store.write_layer(Layer.GOLD, gold)
        return gold

    def check_quality(
        self,
        silver: Dict[str, pl.DataFrame],
        gold: Dict[str, pl.DataFrame],
    ) -> Dict[str, Dict[str, ValidationResult]]:
        """Run silver and gold quality suites; violations are reported only"""
        return {
            "silver": validate_silver(silver, self.transformer.reference_date),
            "gold": validate_gold(gold),
        }

    def run(self, source_dir: Optional[Union[str, Path]] = None) -> PipelineResult:
        """
        Run the whole batch.

        Args:
            source_dir: Directory with the CRM/ERP extracts

        Returns:
            PipelineResult with stage accounting and quality reports
        """
        with pipeline_run_context() as run_id:
            return self._execute(source_dir, PipelineResult(started_at=datetime.utcnow(), run_id=run_id))

    def _execute(self, source_dir: Optional[Union[str, Path]], result: PipelineResult) -> PipelineResult:
        self._stages = {}
        self._load_results = []

        logger.info("Starting warehouse pipeline", source_dir=str(source_dir) if source_dir else None)

        try:
            bronze = self.load_bronze(source_dir)
            result.stages[Layer.BRONZE] = StageResult(
                Layer.BRONZE,
                result.started_at,
                datetime.utcnow(),
                [TableResult(r.target_table, r.rows_loaded, r.rows_loaded) for r in self._load_results],
            )

            silver = self.build_silver(bronze)
            gold = self.build_gold(silver)
            result.stages.update(self._stages)

            if self.run_quality_checks:
                reports = self.check_quality(silver, gold)
                result.silver_quality = reports["silver"]
                result.gold_quality = reports["gold"]

            if self.publish:
                from sales_dwh.database.publisher import publish_gold
                result.published_rows = publish_gold(gold, self.database_url)

        except Exception as e:
            logger.error("Warehouse pipeline failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            result.load_results = self._load_results

        result.completed_at = datetime.utcnow()
        logger.info(
            f"Warehouse pipeline complete in {result.duration_seconds:.2f}s",
            quality_passed=result.quality_passed if self.run_quality_checks else None,
        )
        return result
