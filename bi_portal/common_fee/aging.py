# bi_portal/common_fee/aging.py
"""
Invoice Aging Bucketizer

Classifies unpaid invoices into fixed day-range buckets by how long they
are past due, as of a given date:

    0-30 | 31-60 | 61-90 | 91-180 | 181-360 | 360+

Rules:
- days overdue = as_of - due_date (a due date equal to as_of is day 0 -> '0-30')
- only statuses in AGED_STATUSES age; paid/void/draft/waiting_fix never do
- invoices without a due date, or not yet due, are excluded
- the summary total is derived from the buckets, so
  sum(bucket counts) == total count and sum(bucket amounts) == total amount

The same boundaries generate the SQL CASE used by the paginated invoice
list, so list rows and summary cards always agree on bucket membership.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from ..helpers import local_today
from .constants import AGING_BUCKET_BOUNDS, AGING_BUCKET_LABELS, AGED_STATUSES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgingBucket:
    label: str
    min_days: int
    max_days: Optional[int] = None

    def contains(self, days: int) -> bool:
        if days < self.min_days:
            return False
        return self.max_days is None or days <= self.max_days

    def sql_condition(self, days_expr: str) -> str:
        if self.max_days is None:
            return f"{days_expr} >= {self.min_days}"
        return f"{days_expr} BETWEEN {self.min_days} AND {self.max_days}"


AGING_BUCKETS = tuple(AgingBucket(label, lo, hi) for label, lo, hi in AGING_BUCKET_BOUNDS)
_BUCKETS_BY_LABEL = {b.label: b for b in AGING_BUCKETS}


@dataclass
class BucketTotal:
    count: int = 0
    amount: float = 0.0

    def add(self, amount: float):
        self.count += 1
        self.amount += amount

    def to_dict(self) -> Dict[str, Any]:
        return {'count': self.count, 'amount': self.amount}


@dataclass
class AgingSummary:
    """Per-bucket totals; the overall total is always the bucket sum."""
    buckets: Dict[str, BucketTotal] = field(
        default_factory=lambda: {label: BucketTotal() for label in AGING_BUCKET_LABELS}
    )
    unique_units: int = 0

    @property
    def total_count(self) -> int:
        return sum(b.count for b in self.buckets.values())

    @property
    def total_amount(self) -> float:
        return sum(b.amount for b in self.buckets.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': {'count': self.total_count, 'amount': self.total_amount},
            'buckets': {label: b.to_dict() for label, b in self.buckets.items()},
            'uniqueUnits': self.unique_units,
        }


# =========================================================================
# CLASSIFICATION
# =========================================================================

def _to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, str):
        return date.fromisoformat(value[:10]) if value else None
    if pd.isna(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def days_overdue(due_date: Any, as_of: date) -> Optional[int]:
    """Whole days past due; None when there is no due date."""
    due = _to_date(due_date)
    if due is None:
        return None
    return (as_of - due).days


def bucket_for_days(days: Optional[int]) -> Optional[str]:
    """Bucket label for a day count; None for missing or not-yet-due."""
    if days is None or days < 0:
        return None
    for bucket in AGING_BUCKETS:
        if bucket.contains(days):
            return bucket.label
    return None


def classify_invoice(status: str, due_date: Any, as_of: date) -> Optional[str]:
    """Bucket label for one invoice, or None if it does not age."""
    if status not in AGED_STATUSES:
        return None
    return bucket_for_days(days_overdue(due_date, as_of))


def bucketize(invoices: pd.DataFrame, as_of: date = None) -> AgingSummary:
    """
    Build an AgingSummary from invoice rows.

    Args:
        invoices: DataFrame with columns status, due_date, amount
                  (falls back to total) and optionally name (unit)
        as_of: reference date, defaults to today

    Returns:
        AgingSummary
    """
    as_of = as_of or local_today()
    summary = AgingSummary()

    if invoices is None or invoices.empty:
        return summary

    amount_col = 'amount' if 'amount' in invoices.columns else 'total'
    units = set()

    for row in invoices.itertuples(index=False):
        label = classify_invoice(getattr(row, 'status'), getattr(row, 'due_date'), as_of)
        if label is None:
            continue
        amount = getattr(row, amount_col)
        summary.buckets[label].add(float(amount) if amount is not None and not pd.isna(amount) else 0.0)
        unit = getattr(row, 'name', None)
        if unit is not None:
            units.add(unit)

    summary.unique_units = len(units)
    return summary


def summary_from_rows(rows: Iterable[Dict[str, Any]], unique_units: int = 0) -> AgingSummary:
    """Build an AgingSummary from SQL rows of (bucket, cnt, amount)."""
    summary = AgingSummary(unique_units=unique_units)
    for row in rows:
        label = row['bucket']
        if label not in summary.buckets:
            logger.warning(f"⚠️ Unknown aging bucket from query: {label}")
            continue
        summary.buckets[label] = BucketTotal(
            count=int(row['cnt'] or 0),
            amount=float(row['amount'] or 0),
        )
    return summary


# =========================================================================
# SQL GENERATION
# =========================================================================

def bucket_case_sql(days_expr: str) -> str:
    """CASE expression mapping a day-count expression to its bucket label."""
    whens = " ".join(
        f"WHEN {bucket.sql_condition(days_expr)} THEN '{bucket.label}'"
        for bucket in AGING_BUCKETS
    )
    return f"CASE {whens} END"


def bucket_filter_sql(label: str, days_expr: str) -> str:
    """WHERE fragment restricting rows to one bucket."""
    bucket = _BUCKETS_BY_LABEL.get(label)
    if bucket is None:
        raise ValueError(f"Unknown aging bucket: {label}")
    return bucket.sql_condition(days_expr)


def is_valid_bucket(label: Optional[str]) -> bool:
    return label in _BUCKETS_BY_LABEL
