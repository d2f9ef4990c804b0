"""
Gold Layer Publisher

Truncates and reloads the star-schema tables in the publishing database so
BI tooling can query the gold layer by name. All three tables are replaced
inside a single transaction: readers see either the previous run or the new
one, never a mix.
"""

from typing import Dict, Optional

import polars as pl
import structlog
from sqlalchemy import delete, func, insert, select

from sales_dwh.database.connection import get_db, init_database
from sales_dwh.database.models import GOLD_MODELS

logger = structlog.get_logger(__name__)


def publish_gold(tables: Dict[str, pl.DataFrame], url: Optional[str] = None) -> Dict[str, int]:
    """
    Replace the published gold tables with freshly built frames.

    Args:
        tables: Gold frames keyed by table name
        url: Target database URL; rebinds the engine when it differs

    Returns:
        Rows written per table

    Raises:
        ValueError: If a gold table is missing from ``tables``
    """
    missing = [name for name in GOLD_MODELS if name not in tables]
    if missing:
        raise ValueError(f"Cannot publish gold layer, missing tables: {missing}")

    init_database(url)
    written: Dict[str, int] = {}

    with get_db() as db:
        for name, model in GOLD_MODELS.items():
            columns = [c for c in model.__table__.columns.keys() if c in tables[name].columns]
            rows = tables[name].select(columns).to_dicts()

            db.execute(delete(model))
            if rows:
                db.execute(insert(model), rows)
            written[name] = len(rows)

            logger.info("Published gold table", table=name, rows=len(rows))

    return written


def count_published_rows() -> Dict[str, int]:
    """Row counts of the published gold tables."""
    counts = {}
    with get_db() as db:
        for name, model in GOLD_MODELS.items():
            counts[name] = db.execute(select(func.count()).select_from(model)).scalar() or 0
    return counts
