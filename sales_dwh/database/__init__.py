"""
Database Module
"""
from .connection import init_database, close_database, get_db, get_engine
from .models import Base, DimCustomer, DimProduct, FactSales
from .publisher import publish_gold

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "Base",
    "DimCustomer",
    "DimProduct",
    "FactSales",
    "publish_gold",
]
