"""
Key and Lookup Utilities

Small relational building blocks shared by the silver and gold stages:
deduplication by natural key, code-to-label mapping, order-preserving
lookup joins and surrogate key assignment.
"""

from typing import List, Mapping, Union

import polars as pl

from sales_dwh.database.models import NOT_AVAILABLE

_INPUT_ORDER = "__input_order"


def latest_per_key(
    df: pl.DataFrame,
    key: Union[str, List[str]],
    order_by: str,
) -> pl.DataFrame:
    """
    Keep the most recent row per natural key.

    Rows are ranked by ``order_by`` descending with nulls last. Exact ties
    are broken by input order: the earliest input row wins. The result is
    sorted by key.
    """
    keys = [key] if isinstance(key, str) else key
    return (
        df.with_row_index(_INPUT_ORDER)
        .sort([order_by, _INPUT_ORDER], descending=[True, False], nulls_last=True)
        .unique(subset=keys, keep="first", maintain_order=True)
        .sort(keys)
        .drop(_INPUT_ORDER)
    )


def first_per_key(df: pl.DataFrame, key: str) -> pl.DataFrame:
    """Keep the first row in input order for each key."""
    return df.unique(subset=[key], keep="first", maintain_order=True)


def map_codes(
    expr: pl.Expr,
    mapping: Mapping[str, str],
    default: str = NOT_AVAILABLE,
) -> pl.Expr:
    """
    Translate coded values to labels.

    Codes are compared after trimming and upper-casing. Unknown codes and
    nulls fall to ``default``; mapping never fails.
    """
    code = expr.str.strip_chars().str.to_uppercase()
    items = list(mapping.items())
    if not items:
        return pl.lit(default)

    first_code, first_label = items[0]
    chain = pl.when(code == first_code.upper()).then(pl.lit(first_label))
    for source, label in items[1:]:
        chain = chain.when(code == source.upper()).then(pl.lit(label))
    return chain.otherwise(pl.lit(default))


def yyyymmdd_to_date(column: str) -> pl.Expr:
    """
    Parse an integer yyyymmdd date.

    Zero, null and values that are not exactly eight digits become null.
    """
    as_text = pl.col(column).cast(pl.Utf8)
    return (
        pl.when(
            pl.col(column).is_null()
            | (pl.col(column) == 0)
            | (as_text.str.len_chars() != 8)
        )
        .then(pl.lit(None, dtype=pl.Date))
        .otherwise(as_text.str.strptime(pl.Date, "%Y%m%d", strict=False))
        .alias(column)
    )


def left_lookup(
    df: pl.DataFrame,
    lookup: pl.DataFrame,
    left_on: str,
    right_on: str,
) -> pl.DataFrame:
    """
    Left-outer join that keeps every left row in its original order.

    Unmatched rows get nulls for the lookup columns. The lookup's key column
    is not carried into the result.
    """
    return (
        df.with_row_index(_INPUT_ORDER)
        .join(lookup, left_on=left_on, right_on=right_on, how="left", coalesce=True)
        .sort(_INPUT_ORDER)
        .drop(_INPUT_ORDER)
    )


def assign_surrogate_key(
    df: pl.DataFrame,
    natural_key: Union[str, List[str]],
    name: str,
) -> pl.DataFrame:
    """
    Number rows 1..n by ascending natural key.

    Keys are dense and regenerated on every call; they are not stable across
    runs when the set of natural keys changes.
    """
    return (
        df.sort(natural_key, nulls_last=True, maintain_order=True)
        .with_row_index(name, offset=1)
        .with_columns(pl.col(name).cast(pl.Int64))
    )
