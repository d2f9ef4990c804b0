"""
Shared route dependencies
"""

from typing import Any, Dict, List

from fastapi import HTTPException, Request
import polars as pl

from sales_dwh.storage.layer_store import LayerStore
from sales_dwh.transformation.transformers import Layer


def get_store(request: Request) -> LayerStore:
    return request.app.state.store


def read_gold_table(store: LayerStore, name: str) -> pl.DataFrame:
    """
    Read a gold table for serving.

    Raises:
        HTTPException: 503 if the gold layer has not been built yet
    """
    try:
        return store.read_table(Layer.GOLD, name)
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Gold layer has not been built yet")


def paginate(df: pl.DataFrame, page: int, page_size: int) -> List[Dict[str, Any]]:
    return df.slice((page - 1) * page_size, page_size).to_dicts()
