"""
Customers API Endpoints
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import polars as pl
import structlog

from sales_dwh.serving.api.dependencies import get_store, paginate, read_gold_table
from sales_dwh.storage.layer_store import LayerStore

router = APIRouter()
logger = structlog.get_logger(__name__)


class CustomerResponse(BaseModel):
    """Customer dimension row"""
    customer_key: int
    customer_id: int
    customer_number: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    country: Optional[str]
    marital_status: str
    gender: str
    birthdate: Optional[date]
    create_date: Optional[date]


class CustomerListResponse(BaseModel):
    """Paginated customer list"""
    items: List[CustomerResponse]
    total: int
    page: int
    page_size: int


@router.get("", response_model=CustomerListResponse)
def list_customers(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    country: Optional[str] = None,
    gender: Optional[str] = None,
    marital_status: Optional[str] = None,
    store: LayerStore = Depends(get_store),
) -> CustomerListResponse:
    """List customers ordered by surrogate key."""
    df = read_gold_table(store, "dim_customers")

    if country:
        df = df.filter(pl.col("country") == country)
    if gender:
        df = df.filter(pl.col("gender") == gender)
    if marital_status:
        df = df.filter(pl.col("marital_status") == marital_status)

    df = df.sort("customer_key")
    logger.debug("Customers listed", total=len(df), page=page)

    return CustomerListResponse(
        items=paginate(df, page, page_size),
        total=len(df),
        page=page,
        page_size=page_size,
    )


@router.get("/{customer_key}", response_model=CustomerResponse)
def get_customer(customer_key: int, store: LayerStore = Depends(get_store)) -> CustomerResponse:
    """Get a single customer by surrogate key."""
    df = read_gold_table(store, "dim_customers").filter(pl.col("customer_key") == customer_key)
    if df.is_empty():
        raise HTTPException(status_code=404, detail="Customer not found")
    return CustomerResponse(**df.row(0, named=True))
