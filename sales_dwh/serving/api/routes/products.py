"""
Products API Endpoints
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import polars as pl

from sales_dwh.serving.api.dependencies import get_store, paginate, read_gold_table
from sales_dwh.storage.layer_store import LayerStore

router = APIRouter()


class ProductResponse(BaseModel):
    """Product dimension row (current products only)"""
    product_key: int
    product_id: Optional[int]
    product_number: Optional[str]
    product_name: Optional[str]
    category_id: Optional[str]
    category: Optional[str]
    subcategory: Optional[str]
    maintenance: Optional[str]
    cost: Optional[int]
    product_line: str
    start_date: Optional[date]


class ProductListResponse(BaseModel):
    """Paginated product list"""
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int


@router.get("", response_model=ProductListResponse)
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    category: Optional[str] = None,
    product_line: Optional[str] = None,
    store: LayerStore = Depends(get_store),
) -> ProductListResponse:
    """List current products ordered by surrogate key."""
    df = read_gold_table(store, "dim_products")

    if category:
        df = df.filter(pl.col("category") == category)
    if product_line:
        df = df.filter(pl.col("product_line") == product_line)

    df = df.sort("product_key")
    return ProductListResponse(
        items=paginate(df, page, page_size),
        total=len(df),
        page=page,
        page_size=page_size,
    )


@router.get("/{product_key}", response_model=ProductResponse)
def get_product(product_key: int, store: LayerStore = Depends(get_store)) -> ProductResponse:
    """Get a single product by surrogate key."""
    df = read_gold_table(store, "dim_products").filter(pl.col("product_key") == product_key)
    if df.is_empty():
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductResponse(**df.row(0, named=True))
