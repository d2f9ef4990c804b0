"""
Data Transformation Module
"""
from .cleaners import SilverCleaner, clean_table
from .dimensions import StarSchemaBuilder
from .transformers import Layer, StageResult, TableResult, WarehouseTransformer

__all__ = [
    "SilverCleaner",
    "clean_table",
    "StarSchemaBuilder",
    "Layer",
    "StageResult",
    "TableResult",
    "WarehouseTransformer",
]
