# bi_portal/sales_2025/sales_mkt.py
"""
sales_mkt wide -> long conversion

sales_mkt stores one row per project with twelve copies of every metric
(`book_jan_thb`, ..., `book_dec_thb`). The roll-up engine works on long
rows, one per (project, month):

    project_code | project_name | bud | ... | month | quarter | presale_target | booking | ...

Values are text that may hold '-', '' or thousands separators.
presale_actual = booking + contract + livnex.
"""

import logging
from typing import Dict, List

import pandas as pd

from ..helpers import MONTH_ORDER, month_to_quarter, safe_numeric
from .constants import SALES_MKT_MONTHLY, SALES_MKT_PROJECT_COLUMNS

logger = logging.getLogger(__name__)

LONG_COLUMNS = (
    list(SALES_MKT_PROJECT_COLUMNS.values())
    + ['month', 'quarter']
    + list(SALES_MKT_MONTHLY.keys())
    + ['presale_actual']
)

UNIT_COLUMNS = {
    'avgsellingprice_baht_unit': 'avgSellingPrice',
    'totalunits': 'totalUnits',
    'soldunits_apr25': 'soldUnits',
    'remainingunits': 'remainingUnits',
}


def monthly_column(metric: str, month: str) -> str:
    """Wide column name for a metric/month pair: ('booking', 'Feb') -> 'book_feb_thb'."""
    prefix, suffix = SALES_MKT_MONTHLY[metric]
    return f"{prefix}{month.lower()}{suffix}"


def melt_sales_mkt(wide_df: pd.DataFrame) -> pd.DataFrame:
    """Convert wide sales_mkt rows into one row per (project, month)."""
    if wide_df is None or wide_df.empty:
        return pd.DataFrame(columns=LONG_COLUMNS)

    missing = [
        monthly_column(metric, 'Jan') for metric in SALES_MKT_MONTHLY
        if monthly_column(metric, 'Jan') not in wide_df.columns
    ]
    if missing:
        logger.warning(f"⚠️ sales_mkt is missing monthly columns (treated as 0): {missing}")

    records: List[Dict] = []
    for row in wide_df.to_dict('records'):
        base = {dst: row.get(src) for src, dst in SALES_MKT_PROJECT_COLUMNS.items()}
        for month in MONTH_ORDER:
            rec = dict(base)
            rec['month'] = month
            rec['quarter'] = month_to_quarter(month)
            for metric in SALES_MKT_MONTHLY:
                rec[metric] = safe_numeric(row.get(monthly_column(metric, month)))
            rec['presale_actual'] = rec['booking'] + rec['contract'] + rec['livnex']
            records.append(rec)

    return pd.DataFrame(records, columns=LONG_COLUMNS)


def project_unit_info(wide_row: Dict) -> Dict:
    """Unit stock fields of one sales_mkt row, parsed to numbers."""
    return {key: safe_numeric(wide_row.get(col)) for col, key in UNIT_COLUMNS.items()}
