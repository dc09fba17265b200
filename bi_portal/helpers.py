# bi_portal/helpers.py
"""
Shared helpers for all report modules

Month/quarter ordering, safe numeric parsing of text KPI columns,
ratio guards and small formatting helpers.
"""

import math
from decimal import Decimal
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from .config import config

# =====================================================================
# MONTH / QUARTER ORDER
# =====================================================================

MONTH_ORDER = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

QUARTER_ORDER = ['Q1', 'Q2', 'Q3', 'Q4']

QUARTER_MONTHS = {
    'Q1': ['Jan', 'Feb', 'Mar'],
    'Q2': ['Apr', 'May', 'Jun'],
    'Q3': ['Jul', 'Aug', 'Sep'],
    'Q4': ['Oct', 'Nov', 'Dec'],
}

THAI_MONTHS = ['ม.ค.', 'ก.พ.', 'มี.ค.', 'เม.ย.', 'พ.ค.', 'มิ.ย.',
               'ก.ค.', 'ส.ค.', 'ก.ย.', 'ต.ค.', 'พ.ย.', 'ธ.ค.']


def month_to_quarter(month: Optional[str]) -> Optional[str]:
    """'Feb' -> 'Q1'. Unknown labels map to None."""
    if month not in MONTH_ORDER:
        return None
    return QUARTER_ORDER[MONTH_ORDER.index(month) // 3]


def _order_key(order: List[str]):
    return lambda value: order.index(value) if value in order else len(order)


def sort_months(months: Iterable[str]) -> List[str]:
    """Deduplicate and sort month labels in calendar order."""
    return sorted(set(months), key=_order_key(MONTH_ORDER))


def sort_quarters(quarters: Iterable[str]) -> List[str]:
    return sorted(set(quarters), key=_order_key(QUARTER_ORDER))


def thai_month_label(month_key: str, short_year: bool = False) -> str:
    """'2025-03' -> 'มี.ค. 2025' (or 'มี.ค. 25')."""
    year, month = month_key.split('-')
    return f"{THAI_MONTHS[int(month) - 1]} {year[2:] if short_year else year}"


def month_keys(year: int) -> List[str]:
    return [f"{year}-{m:02d}" for m in range(1, 13)]


def local_today() -> date:
    """Today in the portal TIMEZONE setting, not the server clock's zone."""
    return datetime.now(ZoneInfo(config.get_app_setting('TIMEZONE', 'Asia/Bangkok'))).date()


def recent_periods(count: int = 24, today: date = None) -> List[dict]:
    """Most recent `count` YYYY-MM periods, newest first."""
    today = today or local_today()
    periods = []
    year, month = today.year, today.month
    for _ in range(count):
        periods.append({
            'period': f"{year}-{month:02d}",
            'display': f"{MONTH_ORDER[month - 1]} {year}",
            'invoice_count': 0,
        })
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return periods


# =====================================================================
# NUMERIC PARSING
# =====================================================================

def safe_numeric(value: Any, default: float = 0.0) -> float:
    """
    Parse a KPI cell that may be stored as text.

    '-', '' and None are treated as missing; thousands separators are
    stripped. Anything unparseable returns `default`.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return default if isinstance(value, float) and math.isnan(value) else float(value)
    text = str(value).strip().replace(',', '')
    if text in ('', '-'):
        return default
    try:
        return float(text)
    except ValueError:
        return default


def coalesce_numeric(field: str, alias: str = None) -> str:
    """SQL expression turning a text KPI column into numeric ('-', '' and NULL -> 0)."""
    cleaned = f"NULLIF(NULLIF(REPLACE({field}, ',', ''), '-'), '')"
    return f"COALESCE({cleaned}, '0')::numeric AS {alias or field.split('.')[-1]}"


# =====================================================================
# RATIOS
# =====================================================================

def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0."""
    return numerator / denominator if denominator else 0


def calc_percentage(actual: float, target: float, decimals: int = None) -> float:
    """actual / target * 100, or 0 when target is 0."""
    pct = (actual / target * 100) if target else 0
    return round(pct, decimals) if decimals is not None else pct


# =====================================================================
# FORMATTING
# =====================================================================

def format_currency(amount: Any) -> str:
    """Whole Thai Baht with thousands separators: ฿1,234"""
    return f"฿{round(safe_numeric(amount)):,}"


def format_compact(value: float) -> str:
    """Compact number for KPI cards: 1.2M, 35.0K, 980"""
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:,.0f}"


# =====================================================================
# SQL
# =====================================================================

class SqlFilter:
    """Accumulates AND-ed WHERE conditions and their bind parameters."""

    def __init__(self, *conditions: str):
        self.conditions: List[str] = list(conditions)
        self.params: Dict[str, Any] = {}

    def add(self, condition: str, **params) -> 'SqlFilter':
        self.conditions.append(condition)
        self.params.update(params)
        return self

    def where(self) -> str:
        return f"WHERE {' AND '.join(self.conditions)}" if self.conditions else ""


# =====================================================================
# RECORDS
# =====================================================================

def _iso(value: Any) -> Optional[str]:
    """Dates and timestamps as ISO strings; missing values as None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def to_records(df: pd.DataFrame) -> List[Dict]:
    """DataFrame rows as JSON-safe dicts (NaN -> None, dates -> ISO, numpy -> python)."""
    if df is None or df.empty:
        return []
    out = []
    for row in df.to_dict('records'):
        clean = {}
        for key, value in row.items():
            if value is None or hasattr(value, 'isoformat'):
                clean[key] = _iso(value)
            elif isinstance(value, Decimal):
                clean[key] = float(value)
            elif isinstance(value, float) and math.isnan(value):
                clean[key] = None
            elif hasattr(value, 'item'):
                clean[key] = value.item()
            else:
                clean[key] = value
        out.append(clean)
    return out
