"""
Source Table Registry

Declares the six CRM/ERP extracts feeding the bronze layer: where each file
lives under the source directory and the typed column set it must provide.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Union

import polars as pl


class SourceSystem(str, Enum):
    """Operational systems providing extracts"""
    CRM = "crm"
    ERP = "erp"


@dataclass(frozen=True)
class SourceTable:
    """A source extract and the bronze table it lands in"""
    name: str
    system: SourceSystem
    relative_path: str
    schema: Dict[str, pl.DataType] = field(default_factory=dict)

    @property
    def columns(self) -> List[str]:
        return list(self.schema.keys())

    def path_in(self, source_dir: Union[str, Path]) -> Path:
        return Path(source_dir) / self.relative_path


CRM_CUST_INFO = SourceTable(
    name="crm_cust_info",
    system=SourceSystem.CRM,
    relative_path="source_crm/cust_info.csv",
    schema={
        "cst_id": pl.Int64,
        "cst_key": pl.Utf8,
        "cst_firstname": pl.Utf8,
        "cst_lastname": pl.Utf8,
        "cst_marital_status": pl.Utf8,
        "cst_gndr": pl.Utf8,
        "cst_create_date": pl.Date,
    },
)

CRM_PRD_INFO = SourceTable(
    name="crm_prd_info",
    system=SourceSystem.CRM,
    relative_path="source_crm/prd_info.csv",
    schema={
        "prd_id": pl.Int64,
        "prd_key": pl.Utf8,
        "prd_nm": pl.Utf8,
        "prd_cost": pl.Int64,
        "prd_line": pl.Utf8,
        "prd_start_dt": pl.Date,
        "prd_end_dt": pl.Date,
    },
)

CRM_SALES_DETAILS = SourceTable(
    name="crm_sales_details",
    system=SourceSystem.CRM,
    relative_path="source_crm/sales_details.csv",
    schema={
        "sls_ord_num": pl.Utf8,
        "sls_prd_key": pl.Utf8,
        "sls_cust_id": pl.Int64,
        # yyyymmdd integers in the CRM extract
        "sls_order_dt": pl.Int64,
        "sls_ship_dt": pl.Int64,
        "sls_due_dt": pl.Int64,
        "sls_sales": pl.Int64,
        "sls_quantity": pl.Int64,
        "sls_price": pl.Int64,
    },
)

ERP_CUST_AZ12 = SourceTable(
    name="erp_cust_az12",
    system=SourceSystem.ERP,
    relative_path="source_erp/CUST_AZ12.csv",
    schema={
        "cid": pl.Utf8,
        "bdate": pl.Date,
        "gen": pl.Utf8,
    },
)

ERP_LOC_A101 = SourceTable(
    name="erp_loc_a101",
    system=SourceSystem.ERP,
    relative_path="source_erp/LOC_A101.csv",
    schema={
        "cid": pl.Utf8,
        "cntry": pl.Utf8,
    },
)

ERP_PX_CAT_G1V2 = SourceTable(
    name="erp_px_cat_g1v2",
    system=SourceSystem.ERP,
    relative_path="source_erp/PX_CAT_G1V2.csv",
    schema={
        "id": pl.Utf8,
        "cat": pl.Utf8,
        "subcat": pl.Utf8,
        "maintenance": pl.Utf8,
    },
)

SOURCE_TABLES: List[SourceTable] = [
    CRM_CUST_INFO,
    CRM_PRD_INFO,
    CRM_SALES_DETAILS,
    ERP_CUST_AZ12,
    ERP_LOC_A101,
    ERP_PX_CAT_G1V2,
]


def get_source_table(name: str) -> SourceTable:
    """Look up a source table by its bronze name."""
    for table in SOURCE_TABLES:
        if table.name == name:
            return table
    raise ValueError(f"Unknown source table: {name}")
