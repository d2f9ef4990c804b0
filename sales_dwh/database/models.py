"""
Database Models - Star Schema Design

Gold-layer relations published for BI consumers:

Fact Tables:
- FactSales: Sales order lines keyed by dimension surrogate keys

Dimension Tables:
- DimCustomer: CRM customers enriched with ERP demographics and location
- DimProduct: Current CRM products enriched with the ERP category lookup

Column names are the compatibility surface for downstream reporting and
must stay in line with the gold frames built in
``sales_dwh.transformation.dimensions``.
"""

from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Date, Integer, String, BigInteger
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

NOT_AVAILABLE = "n/a"


class Gender(str, Enum):
    """Reconciled gender values"""
    MALE = "Male"
    FEMALE = "Female"
    NOT_AVAILABLE = "n/a"


class MaritalStatus(str, Enum):
    """Reconciled marital status values"""
    SINGLE = "Single"
    MARRIED = "Married"
    NOT_AVAILABLE = "n/a"


class ProductLine(str, Enum):
    """Reconciled product line values"""
    MOUNTAIN = "Mountain"
    ROAD = "Road"
    OTHER_SALES = "Other Sales"
    TOURING = "Touring"
    NOT_AVAILABLE = "n/a"


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class DimCustomer(Base):
    """
    Customer Dimension Table

    One row per CRM customer. Type 1: rebuilt in full on every run.
    """
    __tablename__ = "dim_customers"

    customer_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    customer_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    customer_number: Mapped[Optional[str]] = mapped_column(String(50))
    first_name: Mapped[Optional[str]] = mapped_column(String(50))
    last_name: Mapped[Optional[str]] = mapped_column(String(50))
    country: Mapped[Optional[str]] = mapped_column(String(50))
    marital_status: Mapped[str] = mapped_column(String(50), nullable=False)
    gender: Mapped[str] = mapped_column(String(50), nullable=False)
    birthdate: Mapped[Optional[date]] = mapped_column(Date)
    create_date: Mapped[Optional[date]] = mapped_column(Date)


class DimProduct(Base):
    """
    Product Dimension Table

    Current product records only; historical versions are filtered out.
    """
    __tablename__ = "dim_products"

    product_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    product_number: Mapped[Optional[str]] = mapped_column(String(50))
    product_name: Mapped[Optional[str]] = mapped_column(String(50))
    category_id: Mapped[Optional[str]] = mapped_column(String(50))
    category: Mapped[Optional[str]] = mapped_column(String(50))
    subcategory: Mapped[Optional[str]] = mapped_column(String(50))
    maintenance: Mapped[Optional[str]] = mapped_column(String(50))
    cost: Mapped[Optional[int]] = mapped_column(BigInteger)
    product_line: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(Date)


# =============================================================================
# FACT TABLES
# =============================================================================

class FactSales(Base):
    """
    Sales Fact Table

    Dimension keys are plain nullable columns: referential completeness is
    reported by the quality checks, never enforced on insert.
    """
    __tablename__ = "fact_sales"

    fact_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[Optional[str]] = mapped_column(String(50))
    product_key: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    customer_key: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    order_date: Mapped[Optional[date]] = mapped_column(Date)
    shipping_date: Mapped[Optional[date]] = mapped_column(Date)
    due_date: Mapped[Optional[date]] = mapped_column(Date)
    sales_amount: Mapped[Optional[int]] = mapped_column(BigInteger)
    quantity: Mapped[Optional[int]] = mapped_column(BigInteger)
    price: Mapped[Optional[int]] = mapped_column(BigInteger)


GOLD_MODELS = {
    "dim_customers": DimCustomer,
    "dim_products": DimProduct,
    "fact_sales": FactSales,
}
