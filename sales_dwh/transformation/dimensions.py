"""
Star Schema Derivation Module

Builds the gold layer from reconciled silver tables:
- dim_customers: CRM customers enriched with ERP demographics and location
- dim_products: current CRM products enriched with ERP categories
- fact_sales: sales lines keyed by dimension surrogate keys

All joins from CRM to ERP are left-outer; a missing ERP match leaves
nulls, it never drops the CRM row. Fact lookups are left-outer as well, so
dangling references survive as null keys for the quality checks to find.
"""

from typing import Dict

import polars as pl
import structlog

from sales_dwh.database.models import NOT_AVAILABLE
from .keys import assign_surrogate_key, first_per_key, left_lookup

logger = structlog.get_logger(__name__)


DIM_CUSTOMERS_COLUMNS = [
    "customer_key",
    "customer_id",
    "customer_number",
    "first_name",
    "last_name",
    "country",
    "marital_status",
    "gender",
    "birthdate",
    "create_date",
]

DIM_PRODUCTS_COLUMNS = [
    "product_key",
    "product_id",
    "product_number",
    "product_name",
    "category_id",
    "category",
    "subcategory",
    "maintenance",
    "cost",
    "product_line",
    "start_date",
]

FACT_SALES_COLUMNS = [
    "order_number",
    "product_key",
    "customer_key",
    "order_date",
    "shipping_date",
    "due_date",
    "sales_amount",
    "quantity",
    "price",
]


class StarSchemaBuilder:
    """
    Derives the gold star schema from silver tables.

    Surrogate keys are dense 1-based integers ordered by natural key and
    are regenerated on every build.
    """

    def build_dim_customers(
        self,
        crm_customers: pl.DataFrame,
        erp_customers: pl.DataFrame,
        erp_locations: pl.DataFrame,
    ) -> pl.DataFrame:
        """
        Build the customer dimension.

        Gender follows CRM precedence: the CRM value is used unless it is
        "n/a", in which case the ERP value fills in (still "n/a" when ERP
        has nothing either).
        """
        demographics = erp_customers.select([
            pl.col("cid"),
            pl.col("bdate"),
            pl.col("gen").alias("erp_gender"),
        ])
        locations = erp_locations.select(["cid", "cntry"])

        df = left_lookup(crm_customers, demographics, left_on="cst_key", right_on="cid")
        df = left_lookup(df, locations, left_on="cst_key", right_on="cid")

        df = df.select([
            pl.col("cst_id").alias("customer_id"),
            pl.col("cst_key").alias("customer_number"),
            pl.col("cst_firstname").alias("first_name"),
            pl.col("cst_lastname").alias("last_name"),
            pl.col("cntry").alias("country"),
            pl.col("cst_marital_status").alias("marital_status"),
            pl.when(pl.col("cst_gndr").is_not_null() & (pl.col("cst_gndr") != NOT_AVAILABLE))
            .then(pl.col("cst_gndr"))
            .otherwise(pl.col("erp_gender").fill_null(NOT_AVAILABLE))
            .alias("gender"),
            pl.col("bdate").alias("birthdate"),
            pl.col("cst_create_date").alias("create_date"),
        ])

        df = assign_surrogate_key(df, "customer_id", "customer_key")
        logger.info("Built customer dimension", rows=len(df))
        return df.select(DIM_CUSTOMERS_COLUMNS)

    def build_dim_products(
        self,
        products: pl.DataFrame,
        categories: pl.DataFrame,
    ) -> pl.DataFrame:
        """
        Build the product dimension from current product records.

        Historical records (those with an end date) are excluded.
        """
        current = products.filter(pl.col("prd_end_dt").is_null())
        lookup = categories.select(["id", "cat", "subcat", "maintenance"])

        df = left_lookup(current, lookup, left_on="cat_id", right_on="id")

        df = df.select([
            pl.col("prd_id").alias("product_id"),
            pl.col("prd_key").alias("product_number"),
            pl.col("prd_nm").alias("product_name"),
            pl.col("cat_id").alias("category_id"),
            pl.col("cat").alias("category"),
            pl.col("subcat").alias("subcategory"),
            pl.col("maintenance"),
            pl.col("prd_cost").alias("cost"),
            pl.col("prd_line").alias("product_line"),
            pl.col("prd_start_dt").alias("start_date"),
        ])

        df = assign_surrogate_key(df, "product_number", "product_key")
        logger.info(
            "Built product dimension",
            rows=len(df),
            historical_excluded=len(products) - len(current),
        )
        return df.select(DIM_PRODUCTS_COLUMNS)

    def build_fact_sales(
        self,
        sales: pl.DataFrame,
        dim_customers: pl.DataFrame,
        dim_products: pl.DataFrame,
    ) -> pl.DataFrame:
        """
        Build the sales fact table.

        Natural keys are swapped for surrogate keys by exact match. The
        sales amount is always quantity x price; any stored total is ignored.
        A product number that appears twice in the dimension resolves to its
        lowest key, so each sales line yields exactly one fact row.
        """
        customer_keys = dim_customers.select(["customer_id", "customer_key"])
        product_keys = first_per_key(
            dim_products.select(["product_number", "product_key"]).sort("product_key"),
            "product_number",
        )

        df = left_lookup(sales, product_keys, left_on="sls_prd_key", right_on="product_number")
        df = left_lookup(df, customer_keys, left_on="sls_cust_id", right_on="customer_id")

        df = df.select([
            pl.col("sls_ord_num").alias("order_number"),
            pl.col("product_key"),
            pl.col("customer_key"),
            pl.col("sls_order_dt").alias("order_date"),
            pl.col("sls_ship_dt").alias("shipping_date"),
            pl.col("sls_due_dt").alias("due_date"),
            (pl.col("sls_quantity") * pl.col("sls_price")).alias("sales_amount"),
            pl.col("sls_quantity").alias("quantity"),
            pl.col("sls_price").alias("price"),
        ])

        unresolved = df.filter(pl.col("customer_key").is_null() | pl.col("product_key").is_null()).height
        logger.info("Built sales fact", rows=len(df), unresolved_keys=unresolved)
        return df.select(FACT_SALES_COLUMNS)

    def build(self, silver: Dict[str, pl.DataFrame]) -> Dict[str, pl.DataFrame]:
        """
        Derive every gold table from a silver snapshot.

        Args:
            silver: Silver tables keyed by name

        Returns:
            Gold tables keyed by name
        """
        dim_customers = self.build_dim_customers(
            silver["crm_cust_info"],
            silver["erp_cust_az12"],
            silver["erp_loc_a101"],
        )
        dim_products = self.build_dim_products(
            silver["crm_prd_info"],
            silver["erp_px_cat_g1v2"],
        )
        fact_sales = self.build_fact_sales(
            silver["crm_sales_details"],
            dim_customers,
            dim_products,
        )
        return {
            "dim_customers": dim_customers,
            "dim_products": dim_products,
            "fact_sales": fact_sales,
        }
