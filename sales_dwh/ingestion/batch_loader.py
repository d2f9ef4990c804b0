"""
Bronze Batch Loader

Loads the CRM and ERP CSV extracts verbatim into bronze tables.
Supports:
- Declared column sets per source table
- Lenient typing (unparseable cells become null, nothing is rejected)
- Full truncate-and-reload on every run
- File hashing and per-table timing for the audit log
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import hashlib

import polars as pl
import structlog
from pydantic import BaseModel

from sales_dwh.config import get_settings
from sales_dwh.ingestion.sources import SOURCE_TABLES, SourceTable

logger = structlog.get_logger(__name__)


class LoadStatus(str, Enum):
    """Batch load status"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BatchFileConfig:
    """Configuration for loading one source extract"""
    table: SourceTable
    file_path: Union[str, Path]
    delimiter: str = ","
    encoding: str = "utf8"
    null_values: List[str] = field(default_factory=lambda: ["NULL", "null"])


class LoadResult(BaseModel):
    """Result of a batch load operation"""
    file_path: str
    target_table: str
    status: LoadStatus
    rows_loaded: int = 0
    error_message: Optional[str] = None
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    file_hash: Optional[str] = None


class BatchLoader:
    """
    Bronze layer loader for the six CRM/ERP extracts.

    Every column is read as text first and then cast to its declared type
    with non-strict casting, so a malformed cell never fails the load; the
    silver layer decides what the value means.

    Example:
        loader = BatchLoader()
        tables, results = loader.load_sources("datasets")
    """

    def __init__(self, tables: Optional[List[SourceTable]] = None):
        self.tables = tables or SOURCE_TABLES

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute MD5 hash of file for the load audit"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def _read_csv(self, config: BatchFileConfig) -> pl.DataFrame:
        """Read CSV with every column as text"""
        df = pl.read_csv(
            config.file_path,
            separator=config.delimiter,
            encoding=config.encoding,
            null_values=config.null_values,
            infer_schema_length=0,
        )
        return df.rename({c: c.strip().lower() for c in df.columns})

    def _validate_columns(self, df: pl.DataFrame, table: SourceTable) -> List[str]:
        """Report declared columns absent from the extract"""
        return [f"Missing column: {c}" for c in table.columns if c not in df.columns]

    def _apply_types(self, df: pl.DataFrame, table: SourceTable) -> pl.DataFrame:
        """Cast text columns to the declared bronze types"""
        casts = []
        for column, dtype in table.schema.items():
            if dtype == pl.Date:
                casts.append(
                    pl.col(column)
                    .str.strip_chars()
                    .str.slice(0, 10)
                    .str.strptime(pl.Date, "%Y-%m-%d", strict=False)
                    .alias(column)
                )
            elif dtype == pl.Utf8:
                casts.append(pl.col(column))
            else:
                casts.append(pl.col(column).str.strip_chars().cast(dtype, strict=False).alias(column))
        return df.select(casts)

    def load(self, config: BatchFileConfig) -> Tuple[Optional[pl.DataFrame], LoadResult]:
        """
        Load one extract into its bronze table.

        Args:
            config: Batch file configuration

        Returns:
            The typed bronze frame (None on failure) and the load result
        """
        file_path = Path(config.file_path)
        started_at = datetime.utcnow()

        result = LoadResult(
            file_path=str(file_path),
            target_table=config.table.name,
            status=LoadStatus.RUNNING,
            started_at=started_at,
        )

        logger.info(
            "Starting batch load",
            file=str(file_path),
            target_table=config.table.name,
        )

        df = None
        try:
            if not file_path.exists():
                raise FileNotFoundError(f"File not found: {file_path}")

            result.file_hash = self._compute_file_hash(file_path)

            raw = self._read_csv(config)
            schema_errors = self._validate_columns(raw, config.table)
            if schema_errors:
                raise ValueError(f"Schema validation failed: {schema_errors}")

            df = self._apply_types(raw, config.table)

            result.status = LoadStatus.COMPLETED
            result.rows_loaded = len(df)
            result.completed_at = datetime.utcnow()
            result.load_duration_seconds = (result.completed_at - started_at).total_seconds()

            logger.info(
                "Batch load completed",
                target_table=config.table.name,
                rows_loaded=result.rows_loaded,
                duration_seconds=result.load_duration_seconds,
            )

        except (OSError, ValueError, pl.exceptions.PolarsError) as e:
            df = None
            result.status = LoadStatus.FAILED
            result.error_message = str(e)
            result.completed_at = datetime.utcnow()
            result.load_duration_seconds = (result.completed_at - started_at).total_seconds()

            logger.error(
                "Batch load failed",
                error=str(e),
                file=str(file_path),
                target_table=config.table.name,
            )

        return df, result

    def load_sources(
        self,
        source_dir: Optional[Union[str, Path]] = None,
    ) -> Tuple[Dict[str, pl.DataFrame], List[LoadResult]]:
        """
        Load every registered extract from a source directory.

        Bronze tables are replaced wholesale: the returned frames are the
        complete new contents, nothing is appended to a previous run.

        Args:
            source_dir: Directory with source_crm/ and source_erp/ subfolders

        Returns:
            Loaded bronze tables keyed by name, and one LoadResult per table
        """
        source_dir = Path(source_dir or get_settings().data_lake.source_path)
        batch_start = datetime.utcnow()

        logger.info("Loading bronze layer", source_dir=str(source_dir), tables=len(self.tables))

        tables: Dict[str, pl.DataFrame] = {}
        results: List[LoadResult] = []
        for table in self.tables:
            config = BatchFileConfig(table=table, file_path=table.path_in(source_dir))
            df, result = self.load(config)
            results.append(result)
            if df is not None:
                tables[table.name] = df

        successful = sum(1 for r in results if r.status == LoadStatus.COMPLETED)
        failed = sum(1 for r in results if r.status == LoadStatus.FAILED)

        logger.info(
            f"Bronze load completed: {successful} successful, {failed} failed",
            duration_seconds=(datetime.utcnow() - batch_start).total_seconds(),
        )

        return tables, results
