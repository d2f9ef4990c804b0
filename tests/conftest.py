"""
Test Suite Configuration
"""
from datetime import date
from pathlib import Path
from typing import Dict, Generator

import pytest
import polars as pl

from sales_dwh.config import Settings
from sales_dwh.database.connection import close_database
from sales_dwh.ingestion.sources import (
    CRM_CUST_INFO,
    CRM_PRD_INFO,
    CRM_SALES_DETAILS,
    ERP_CUST_AZ12,
    ERP_LOC_A101,
    ERP_PX_CAT_G1V2,
)
from sales_dwh.storage.layer_store import LayerStore
from sales_dwh.transformation.cleaners import SilverCleaner
from sales_dwh.transformation.dimensions import StarSchemaBuilder


REFERENCE_DATE = date(2025, 6, 1)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    """Dispose of any engine a test initialized"""
    yield
    close_database()


@pytest.fixture
def bronze_tables() -> Dict[str, pl.DataFrame]:
    """
    Small bronze snapshot covering the main repair rules:
    customer 1 is duplicated, ERP ids are prefixed or dashed, product
    BK-R93R-62 has a price history and order SO4 references an unknown
    product.
    """
    return {
        "crm_cust_info": pl.DataFrame(
            {
                "cst_id": [1, 1, 2, 3, None],
                "cst_key": ["AW001", "AW001", " AW002", "AW003", "SF566"],
                "cst_firstname": [" Jon", "Jon ", "Ana", "Li", None],
                "cst_lastname": ["Yang", "Yang", " Diaz ", "Wu", None],
                "cst_marital_status": ["S", "M", "m", None, None],
                "cst_gndr": [None, "M", "f", "X", None],
                "cst_create_date": [
                    date(2025, 1, 1),
                    date(2025, 2, 1),
                    date(2025, 1, 10),
                    date(2025, 1, 5),
                    None,
                ],
            },
            schema=CRM_CUST_INFO.schema,
        ),
        "crm_prd_info": pl.DataFrame(
            {
                "prd_id": [10, 11, 12, 13],
                "prd_key": ["CO-RF-FR-R92B-58", "BI-RB-BK-R93R-62", "BI-RB-BK-R93R-62", " AC-HE-HL-U509 "],
                "prd_nm": ["HL Road Frame", "Road-150 Red", "Road-150 Red", "Sport-100 Helmet"],
                "prd_cost": [100, None, 20, 35],
                "prd_line": ["R", "r ", "R", None],
                "prd_start_dt": [date(2011, 7, 1), date(2011, 7, 1), date(2012, 1, 1), date(2013, 7, 1)],
                "prd_end_dt": [None, date(2007, 12, 28), None, None],
            },
            schema=CRM_PRD_INFO.schema,
        ),
        "crm_sales_details": pl.DataFrame(
            {
                "sls_ord_num": ["SO1", "SO2", "SO3", "SO4"],
                "sls_prd_key": ["BK-R93R-62", "FR-R92B-58", "HL-U509", "ZZ-MISSING"],
                "sls_cust_id": [1, 2, 3, 1],
                "sls_order_dt": [20130101, 0, 2013010, 20130105],
                "sls_ship_dt": [20130108, 20130110, 20130110, 20130112],
                "sls_due_dt": [20130113, 20130115, 20130115, 20130117],
                "sls_sales": [75, None, -40, 50],
                "sls_quantity": [3, 2, 1, 2],
                "sls_price": [25, 10, 40, None],
            },
            schema=CRM_SALES_DETAILS.schema,
        ),
        "erp_cust_az12": pl.DataFrame(
            {
                "cid": ["NASAW001", "AW002", "AW009"],
                "bdate": [date(1980, 5, 1), date(2030, 1, 1), date(1990, 1, 1)],
                "gen": ["Female", " m", None],
            },
            schema=ERP_CUST_AZ12.schema,
        ),
        "erp_loc_a101": pl.DataFrame(
            {
                "cid": ["AW-001", "AW-002", "AW-003"],
                "cntry": ["DE", " USA", None],
            },
            schema=ERP_LOC_A101.schema,
        ),
        "erp_px_cat_g1v2": pl.DataFrame(
            {
                "id": ["BI_RB", "AC_HE"],
                "cat": ["Bikes", "Accessories"],
                "subcat": [" Road Bikes", "Helmets"],
                "maintenance": ["Yes", "No"],
            },
            schema=ERP_PX_CAT_G1V2.schema,
        ),
    }


@pytest.fixture
def silver_tables(bronze_tables, reference_date) -> Dict[str, pl.DataFrame]:
    cleaner = SilverCleaner(reference_date=reference_date)
    return {name: cleaner.clean(name, df) for name, df in bronze_tables.items()}


@pytest.fixture
def gold_tables(silver_tables) -> Dict[str, pl.DataFrame]:
    return StarSchemaBuilder().build(silver_tables)


SOURCE_FILES = {
    "source_crm/cust_info.csv": (
        "cst_id,cst_key,cst_firstname,cst_lastname,cst_marital_status,cst_gndr,cst_create_date\n"
        "1,AW001, Jon,Yang,S,,2025-01-01\n"
        "1,AW001,Jon ,Yang,M,M,2025-02-01\n"
        "2, AW002,Ana, Diaz ,m,f,2025-01-10\n"
        "3,AW003,Li,Wu,,X,2025-01-05\n"
        ",SF566,,,,,\n"
    ),
    "source_crm/prd_info.csv": (
        "prd_id,prd_key,prd_nm,prd_cost,prd_line,prd_start_dt,prd_end_dt\n"
        "10,CO-RF-FR-R92B-58,HL Road Frame,100,R,2011-07-01,\n"
        "11,BI-RB-BK-R93R-62,Road-150 Red,,r ,2011-07-01,2007-12-28\n"
        "12,BI-RB-BK-R93R-62,Road-150 Red,20,R,2012-01-01,\n"
        "13, AC-HE-HL-U509 ,Sport-100 Helmet,35,,2013-07-01,\n"
    ),
    "source_crm/sales_details.csv": (
        "sls_ord_num,sls_prd_key,sls_cust_id,sls_order_dt,sls_ship_dt,sls_due_dt,sls_sales,sls_quantity,sls_price\n"
        "SO1,BK-R93R-62,1,20130101,20130108,20130113,75,3,25\n"
        "SO2,FR-R92B-58,2,0,20130110,20130115,,2,10\n"
        "SO3,HL-U509,3,2013010,20130110,20130115,-40,1,40\n"
        "SO4,ZZ-MISSING,1,20130105,20130112,20130117,50,2,\n"
    ),
    "source_erp/CUST_AZ12.csv": (
        "CID,BDATE,GEN\n"
        "NASAW001,1980-05-01,Female\n"
        "AW002,2030-01-01, m\n"
        "AW009,1990-01-01,\n"
    ),
    "source_erp/LOC_A101.csv": (
        "CID,CNTRY\n"
        "AW-001,DE\n"
        "AW-002, USA\n"
        "AW-003,\n"
    ),
    "source_erp/PX_CAT_G1V2.csv": (
        "ID,CAT,SUBCAT,MAINTENANCE\n"
        "BI_RB,Bikes, Road Bikes,Yes\n"
        "AC_HE,Accessories,Helmets,No\n"
    ),
}


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """Source directory with the same records as ``bronze_tables`` as CSV extracts"""
    root = tmp_path / "datasets"
    for relative_path, content in SOURCE_FILES.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def layer_store(tmp_path) -> LayerStore:
    return LayerStore(tmp_path / "lake")
