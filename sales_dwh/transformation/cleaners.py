"""
Silver Layer Cleaning Module

Reconciliation rules turning each bronze table into its silver counterpart.
Handles:
- Whitespace trimming
- Code normalization (gender, marital status, product line, country)
- Deduplication by natural key (most recent record wins)
- Date and numeric repair
- Key reshaping so CRM and ERP tables can be joined

None of these rules raise on bad data: unknown codes fall to "n/a",
unparseable values become null.
"""

from datetime import date
from typing import Callable, Dict, List, Optional

import polars as pl
import structlog

from sales_dwh.database.models import NOT_AVAILABLE, Gender, MaritalStatus, ProductLine
from .keys import first_per_key, latest_per_key, map_codes, yyyymmdd_to_date

logger = structlog.get_logger(__name__)


GENDER_CODES = {
    "F": Gender.FEMALE.value,
    "M": Gender.MALE.value,
}

# ERP spells the codes out as well as abbreviating them
ERP_GENDER_CODES = {
    "F": Gender.FEMALE.value,
    "FEMALE": Gender.FEMALE.value,
    "M": Gender.MALE.value,
    "MALE": Gender.MALE.value,
}

MARITAL_STATUS_CODES = {
    "S": MaritalStatus.SINGLE.value,
    "M": MaritalStatus.MARRIED.value,
}

PRODUCT_LINE_CODES = {
    "M": ProductLine.MOUNTAIN.value,
    "R": ProductLine.ROAD.value,
    "S": ProductLine.OTHER_SALES.value,
    "T": ProductLine.TOURING.value,
}

COUNTRY_CODES = {
    "DE": "Germany",
    "US": "United States",
    "USA": "United States",
}


class SilverCleaner:
    """
    Silver layer cleaner with one rule set per source table.

    Every rule set is a pure function of its input frame (plus the
    reference date for birthdate checks), so rerunning on the same bronze
    snapshot gives identical output.

    Example:
        cleaner = SilverCleaner(reference_date=date(2025, 1, 1))
        silver_customers = cleaner.clean_crm_customers(bronze_customers)
    """

    def __init__(self, reference_date: Optional[date] = None):
        self.reference_date = reference_date or date.today()
        self._rules: Dict[str, Callable[[pl.DataFrame], pl.DataFrame]] = {
            "crm_cust_info": self.clean_crm_customers,
            "crm_prd_info": self.clean_crm_products,
            "crm_sales_details": self.clean_crm_sales,
            "erp_cust_az12": self.clean_erp_customers,
            "erp_loc_a101": self.clean_erp_locations,
            "erp_px_cat_g1v2": self.clean_erp_categories,
        }

    @property
    def tables(self) -> List[str]:
        """Tables this cleaner has rules for"""
        return list(self._rules)

    def clean(self, table: str, df: pl.DataFrame) -> pl.DataFrame:
        """Apply the rule set registered for ``table``"""
        rule = self._rules.get(table)
        if rule is None:
            raise ValueError(f"No cleaning rules for table: {table}")
        return rule(df)

    def _trim_strings(self, df: pl.DataFrame, columns: Optional[List[str]] = None) -> pl.DataFrame:
        """Trim whitespace from string columns"""
        string_cols = columns or [
            col for col, dtype in zip(df.columns, df.dtypes)
            if dtype == pl.Utf8
        ]

        return df.with_columns([
            pl.col(col).str.strip_chars().alias(col)
            for col in string_cols
            if col in df.columns
        ])

    def clean_crm_customers(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Reconcile CRM customer records.

        One row per cst_id: the record with the latest creation date.
        Rows without a customer id cannot be keyed and are discarded.
        """
        df = df.filter(pl.col("cst_id").is_not_null())
        df = self._trim_strings(df, ["cst_key", "cst_firstname", "cst_lastname"])

        df = df.with_columns([
            map_codes(pl.col("cst_marital_status"), MARITAL_STATUS_CODES).alias("cst_marital_status"),
            map_codes(pl.col("cst_gndr"), GENDER_CODES).alias("cst_gndr"),
        ])

        before = len(df)
        df = latest_per_key(df, "cst_id", "cst_create_date")
        logger.debug("Deduplicated CRM customers", duplicates_removed=before - len(df))

        return df

    def clean_crm_products(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Reconcile CRM product records.

        Splits the category id out of the product key and rebuilds each
        product's validity window: a record ends the day before the next
        record of the same product starts; the latest record stays open.
        """
        df = self._trim_strings(df, ["prd_key", "prd_nm", "prd_line"])

        df = df.with_columns([
            pl.col("prd_key").str.slice(0, 5).str.replace_all("-", "_", literal=True).alias("cat_id"),
            pl.col("prd_key").str.slice(6).alias("prd_key"),
            pl.col("prd_cost").fill_null(0).alias("prd_cost"),
            map_codes(pl.col("prd_line"), PRODUCT_LINE_CODES).alias("prd_line"),
        ])

        df = latest_per_key(df, "prd_id", "prd_start_dt")

        df = (
            df.sort(["prd_key", "prd_start_dt", "prd_id"], maintain_order=True)
            .with_columns(
                pl.col("prd_start_dt")
                .shift(-1)
                .over("prd_key")
                .dt.offset_by("-1d")
                .alias("prd_end_dt")
            )
            .sort("prd_id")
        )

        return df.select([
            "prd_id",
            "cat_id",
            "prd_key",
            "prd_nm",
            "prd_cost",
            "prd_line",
            "prd_start_dt",
            "prd_end_dt",
        ])

    def clean_crm_sales(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Reconcile CRM sales lines.

        Invalid integer dates become null. Totals that disagree with
        quantity x price are recomputed; missing or non-positive prices are
        derived from the total.
        """
        df = self._trim_strings(df, ["sls_ord_num", "sls_prd_key"])

        expected_sales = pl.col("sls_quantity") * pl.col("sls_price").abs()
        quantity_or_null = pl.when(pl.col("sls_quantity") != 0).then(pl.col("sls_quantity"))

        return df.with_columns([
            yyyymmdd_to_date("sls_order_dt"),
            yyyymmdd_to_date("sls_ship_dt"),
            yyyymmdd_to_date("sls_due_dt"),
            pl.when(
                pl.col("sls_sales").is_null()
                | (pl.col("sls_sales") <= 0)
                | (pl.col("sls_sales") != expected_sales)
            )
            .then(expected_sales)
            .otherwise(pl.col("sls_sales"))
            .alias("sls_sales"),
            pl.when(pl.col("sls_price").is_null() | (pl.col("sls_price") <= 0))
            .then((pl.col("sls_sales") / quantity_or_null).cast(pl.Int64))
            .otherwise(pl.col("sls_price"))
            .alias("sls_price"),
        ])

    def clean_erp_customers(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Reconcile ERP demographic records.

        ERP ids carry a "NAS" prefix the CRM keys do not have. Birthdates in
        the future are impossible and nulled.
        """
        df = self._trim_strings(df, ["cid"])

        df = df.with_columns([
            pl.when(pl.col("cid").str.starts_with("NAS"))
            .then(pl.col("cid").str.slice(3))
            .otherwise(pl.col("cid"))
            .alias("cid"),
            pl.when(pl.col("bdate") > pl.lit(self.reference_date))
            .then(pl.lit(None, dtype=pl.Date))
            .otherwise(pl.col("bdate"))
            .alias("bdate"),
            map_codes(pl.col("gen"), ERP_GENDER_CODES).alias("gen"),
        ])

        return first_per_key(df, "cid")

    def clean_erp_locations(self, df: pl.DataFrame) -> pl.DataFrame:
        """Reconcile ERP location records: dash-free ids, full country names."""
        country = pl.col("cntry").str.strip_chars()

        # Unlisted countries keep their trimmed source spelling
        resolved = pl.when(country.is_null() | (country == "")).then(pl.lit(NOT_AVAILABLE))
        for code, name in COUNTRY_CODES.items():
            resolved = resolved.when(country.str.to_uppercase() == code).then(pl.lit(name))

        df = df.with_columns([
            pl.col("cid").str.strip_chars().str.replace_all("-", "", literal=True).alias("cid"),
            resolved.otherwise(country).alias("cntry"),
        ])

        return first_per_key(df, "cid")

    def clean_erp_categories(self, df: pl.DataFrame) -> pl.DataFrame:
        """Reconcile the ERP category lookup"""
        df = self._trim_strings(df, ["id", "cat", "subcat", "maintenance"])
        return first_per_key(df, "id")


def clean_table(
    table: str,
    df: pl.DataFrame,
    reference_date: Optional[date] = None,
) -> pl.DataFrame:
    """
    Convenience function to reconcile one bronze table.

    Args:
        table: Bronze table name
        df: Bronze frame
        reference_date: Date used to reject future birthdates

    Returns:
        Silver frame
    """
    return SilverCleaner(reference_date=reference_date).clean(table, df)
