"""
Data Ingestion Module
"""
from .batch_loader import BatchLoader, BatchFileConfig, LoadResult, LoadStatus
from .sources import SOURCE_TABLES, SourceSystem, SourceTable, get_source_table

__all__ = [
    "BatchLoader",
    "BatchFileConfig",
    "LoadResult",
    "LoadStatus",
    "SOURCE_TABLES",
    "SourceSystem",
    "SourceTable",
    "get_source_table",
]
