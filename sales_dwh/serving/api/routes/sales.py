"""
Sales API Endpoints
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
import polars as pl

from sales_dwh.serving.api.dependencies import get_store, paginate, read_gold_table
from sales_dwh.storage.layer_store import LayerStore

router = APIRouter()


class SaleResponse(BaseModel):
    """Sales fact row; unresolved dimension keys are null"""
    order_number: Optional[str]
    product_key: Optional[int]
    customer_key: Optional[int]
    order_date: Optional[date]
    shipping_date: Optional[date]
    due_date: Optional[date]
    sales_amount: Optional[int]
    quantity: Optional[int]
    price: Optional[int]


class SalesListResponse(BaseModel):
    """Paginated sales list"""
    items: List[SaleResponse]
    total: int
    total_sales_amount: int
    page: int
    page_size: int


@router.get("", response_model=SalesListResponse)
def list_sales(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    customer_key: Optional[int] = None,
    product_key: Optional[int] = None,
    order_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: LayerStore = Depends(get_store),
) -> SalesListResponse:
    """List sales lines with optional key and order date filters."""
    df = read_gold_table(store, "fact_sales")

    if customer_key is not None:
        df = df.filter(pl.col("customer_key") == customer_key)
    if product_key is not None:
        df = df.filter(pl.col("product_key") == product_key)
    if order_number:
        df = df.filter(pl.col("order_number") == order_number)
    if start_date:
        df = df.filter(pl.col("order_date") >= start_date)
    if end_date:
        df = df.filter(pl.col("order_date") <= end_date)

    total_amount = df["sales_amount"].sum() if len(df) else 0
    return SalesListResponse(
        items=paginate(df, page, page_size),
        total=len(df),
        total_sales_amount=total_amount or 0,
        page=page,
        page_size=page_size,
    )
