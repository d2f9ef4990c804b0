"""
Synthetic Source Data Generator

Generates CRM and ERP extracts shaped like the real source files, with the
defects the silver layer is built to repair:
- Duplicate customer records with older creation dates
- Padded names and lower-case or unknown codes
- ERP customer ids with "NAS" prefixes, location ids with dashes
- Future birthdates and blank countries
- Product price history and invalid end dates
- Zero or truncated integer dates, inconsistent sales totals
"""

from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import random

import numpy as np
import polars as pl
from faker import Faker
import structlog

from sales_dwh.ingestion.sources import SOURCE_TABLES

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = [
    ("AC_BR", "Accessories", "Bike Racks", "Yes"),
    ("AC_HE", "Accessories", "Helmets", "Yes"),
    ("AC_BS", "Accessories", "Bottles and Cages", "No"),
    ("BI_MB", "Bikes", "Mountain Bikes", "Yes"),
    ("BI_RB", "Bikes", "Road Bikes", "Yes"),
    ("BI_TB", "Bikes", "Touring Bikes", "Yes"),
    ("CL_JE", "Clothing", "Jerseys", "No"),
    ("CL_GL", "Clothing", "Gloves", "No"),
    ("CO_HB", "Components", "Handlebars", "Yes"),
]

# Present in CRM product keys but missing from the ERP lookup
UNLISTED_CATEGORIES = ["CO_PE"]

PRODUCT_LINES = ["M", "R", "S", "T", "m ", None]
MARITAL_CODES = ["S", "M", " s", None, "X"]
GENDER_CODES = ["F", "M", "f ", None, "U"]
ERP_GENDERS = ["F", "Female", "M", "Male", " ", None]
COUNTRIES = ["DE", "US", "USA", "United Kingdom", "Australia", " Canada ", "", None]


@dataclass
class GeneratorConfig:
    """Volume and defect rates for a generated extract set"""
    customers: int = 200
    products: int = 40
    orders: int = 600
    duplicate_rate: float = 0.05
    history_rate: float = 0.3
    dangling_rate: float = 0.0
    seed: int = 42


class SourceDataGenerator:
    """
    Generate the six source extracts.

    Example:
        generator = SourceDataGenerator(GeneratorConfig(customers=100))
        tables = generator.generate()
        generator.write(tables, "datasets")
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        self.random = random.Random(self.config.seed)
        self.rng = np.random.default_rng(self.config.seed)
        self.fake = Faker()
        self.fake.seed_instance(self.config.seed)

    def _random_date(self, start: date, end: date) -> date:
        return start + timedelta(days=self.random.randint(0, (end - start).days))

    def _maybe_pad(self, value: str) -> str:
        if self.random.random() < 0.1:
            return f"  {value} "
        return value

    def generate_categories(self) -> pl.DataFrame:
        """ERP category lookup"""
        return pl.DataFrame(
            {
                "ID": [c[0] for c in CATEGORIES],
                "CAT": [c[1] for c in CATEGORIES],
                "SUBCAT": [self._maybe_pad(c[2]) for c in CATEGORIES],
                "MAINTENANCE": [c[3] for c in CATEGORIES],
            }
        )

    def generate_products(self) -> Tuple[pl.DataFrame, List[str]]:
        """CRM product records with price history; also returns sellable product keys"""
        category_ids = [c[0] for c in CATEGORIES] + UNLISTED_CATEGORIES
        rows = []
        product_keys = []
        prd_id = 200

        for i in range(self.config.products):
            cat_id = self.random.choice(category_ids)
            code = f"{self.fake.bothify('??-????').upper()}-{i:02d}"
            raw_key = f"{cat_id.replace('_', '-')}-{code}"
            product_keys.append(code)

            versions = 1
            if self.rng.random() < self.config.history_rate:
                versions += self.random.randint(1, 2)
            start = self._random_date(date(2003, 1, 1), date(2008, 12, 31))
            name = f"{self.fake.word().title()} {self.fake.word().title()}"
            line = self.random.choice(PRODUCT_LINES)
            cost = int(self.rng.integers(5, 1500))

            for _ in range(versions):
                prd_id += 1
                # Source end dates are unreliable and sometimes precede the start
                bogus_end = start - timedelta(days=self.random.randint(1, 300))
                rows.append({
                    "prd_id": prd_id,
                    "prd_key": raw_key,
                    "prd_nm": name,
                    "prd_cost": None if self.random.random() < 0.05 else cost,
                    "prd_line": line,
                    "prd_start_dt": start.isoformat(),
                    "prd_end_dt": bogus_end.isoformat() if self.random.random() < 0.5 else None,
                })
                start = start + timedelta(days=self.random.randint(200, 700))
                cost = int(cost * 1.1)

        return pl.DataFrame(rows, infer_schema_length=None), product_keys

    def generate_customers(self) -> Tuple[pl.DataFrame, List[int]]:
        """CRM customers including stale duplicates; also returns valid ids"""
        rows = []
        ids = []
        for i in range(self.config.customers):
            cst_id = 11000 + i
            ids.append(cst_id)
            created = self._random_date(date(2025, 1, 1), date(2025, 12, 31))
            record = {
                "cst_id": cst_id,
                "cst_key": f"AW{cst_id:08d}",
                "cst_firstname": self._maybe_pad(self.fake.first_name()),
                "cst_lastname": self._maybe_pad(self.fake.last_name()),
                "cst_marital_status": self.random.choice(MARITAL_CODES),
                "cst_gndr": self.random.choice(GENDER_CODES),
                "cst_create_date": created.isoformat(),
            }
            if self.random.random() < self.config.duplicate_rate:
                stale = dict(record)
                stale["cst_create_date"] = (created - timedelta(days=30)).isoformat()
                stale["cst_gndr"] = None
                rows.append(stale)
            rows.append(record)

        # Unkeyed junk row present in real extracts
        rows.append({
            "cst_id": None,
            "cst_key": "SF566",
            "cst_firstname": None,
            "cst_lastname": None,
            "cst_marital_status": None,
            "cst_gndr": None,
            "cst_create_date": None,
        })
        return pl.DataFrame(rows, schema_overrides={"cst_id": pl.Int64}, infer_schema_length=None), ids

    def generate_erp_customers(self, customer_ids: List[int]) -> pl.DataFrame:
        """ERP demographics keyed by (sometimes NAS-prefixed) customer number"""
        cids, bdates, genders = [], [], []
        for cst_id in customer_ids:
            key = f"AW{cst_id:08d}"
            cids.append(f"NAS{key}" if self.random.random() < 0.5 else key)
            if self.random.random() < 0.02:
                bdates.append(self._random_date(date(2030, 1, 1), date(2040, 1, 1)).isoformat())
            else:
                bdates.append(self._random_date(date(1940, 1, 1), date(2000, 12, 31)).isoformat())
            genders.append(self.random.choice(ERP_GENDERS))
        return pl.DataFrame({"CID": cids, "BDATE": bdates, "GEN": genders})

    def generate_locations(self, customer_ids: List[int]) -> pl.DataFrame:
        """ERP locations keyed by dashed customer number"""
        return pl.DataFrame({
            "CID": [f"AW-{cst_id:08d}" for cst_id in customer_ids],
            "CNTRY": [self.random.choice(COUNTRIES) for _ in customer_ids],
        })

    def _date_int(self, value: date) -> int:
        roll = self.random.random()
        if roll < 0.02:
            return 0
        if roll < 0.03:
            return int(value.strftime("%Y%m"))
        return int(value.strftime("%Y%m%d"))

    def generate_sales(self, customer_ids: List[int], product_keys: List[str]) -> pl.DataFrame:
        """CRM sales lines with integer dates and unreliable totals"""
        rows = []
        for i in range(self.config.orders):
            order_date = self._random_date(date(2010, 12, 29), date(2014, 1, 28))
            ship_date = order_date + timedelta(days=7)
            due_date = order_date + timedelta(days=12)

            product_key = self.random.choice(product_keys)
            customer_id = self.random.choice(customer_ids)
            if self.random.random() < self.config.dangling_rate:
                product_key = "XX-UNKNOWN"
            if self.random.random() < self.config.dangling_rate:
                customer_id = 99999

            quantity = self.random.randint(1, 3)
            price = self.random.randint(2, 3500)
            sales = quantity * price

            roll = self.random.random()
            if roll < 0.03:
                sales = None
            elif roll < 0.06:
                sales = -sales
            elif roll < 0.09:
                sales = sales + 10
            elif roll < 0.11:
                price = None
            elif roll < 0.13:
                price = -price

            rows.append({
                "sls_ord_num": f"SO{43697 + i}",
                "sls_prd_key": product_key,
                "sls_cust_id": customer_id,
                "sls_order_dt": self._date_int(order_date),
                "sls_ship_dt": int(ship_date.strftime("%Y%m%d")),
                "sls_due_dt": int(due_date.strftime("%Y%m%d")),
                "sls_sales": sales,
                "sls_quantity": quantity,
                "sls_price": price,
            })
        return pl.DataFrame(
            rows,
            schema_overrides={"sls_sales": pl.Int64, "sls_price": pl.Int64},
            infer_schema_length=None,
        )

    def generate(self) -> Dict[str, pl.DataFrame]:
        """Generate all six extracts keyed by bronze table name"""
        customers, customer_ids = self.generate_customers()
        products, product_keys = self.generate_products()

        tables = {
            "crm_cust_info": customers,
            "crm_prd_info": products,
            "crm_sales_details": self.generate_sales(customer_ids, product_keys),
            "erp_cust_az12": self.generate_erp_customers(customer_ids),
            "erp_loc_a101": self.generate_locations(customer_ids),
            "erp_px_cat_g1v2": self.generate_categories(),
        }
        logger.info("Generated source extracts", **{name: len(df) for name, df in tables.items()})
        return tables

    def write(self, tables: Dict[str, pl.DataFrame], source_dir: Union[str, Path]) -> List[Path]:
        """Write extracts to the source directory layout the loader expects"""
        paths = []
        for source in SOURCE_TABLES:
            path = source.path_in(source_dir)
            path.parent.mkdir(parents=True, exist_ok=True)
            tables[source.name].write_csv(path)
            paths.append(path)
        return paths


def generate_sources(
    source_dir: Union[str, Path],
    config: Optional[GeneratorConfig] = None,
) -> List[Path]:
    """Generate and write a full extract set"""
    generator = SourceDataGenerator(config)
    return generator.write(generator.generate(), source_dir)
