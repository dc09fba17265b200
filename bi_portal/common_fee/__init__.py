# bi_portal/common_fee/__init__.py
"""
Common Fee (Invoice Collection) Reports

Overview KPIs, collection list, invoice aging and per-project
collection for the silverman property-management schema.
"""

from .queries import CommonFeeQueries, InvoiceFilters, SqlFilter, build_invoice_filter
from .metrics import CommonFeeMetrics
from ..helpers import to_records
from .report import CommonFeeReport
from .charts import CommonFeeCharts
from .export import AgingExport
from .aging import (
    AgingBucket,
    AgingSummary,
    AGING_BUCKETS,
    bucketize,
    bucket_for_days,
    classify_invoice,
    days_overdue,
)
from .constants import (
    AGED_STATUSES,
    AGING_BUCKET_LABELS,
    EXPENSE_TYPES,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)

__all__ = [
    'CommonFeeQueries',
    'InvoiceFilters',
    'SqlFilter',
    'build_invoice_filter',
    'CommonFeeMetrics',
    'to_records',
    'CommonFeeReport',
    'CommonFeeCharts',
    'AgingExport',
    'AgingBucket',
    'AgingSummary',
    'AGING_BUCKETS',
    'bucketize',
    'bucket_for_days',
    'classify_invoice',
    'days_overdue',
    'AGED_STATUSES',
    'AGING_BUCKET_LABELS',
    'EXPENSE_TYPES',
    'DEFAULT_PAGE_SIZE',
    'MAX_PAGE_SIZE',
]

__version__ = '1.0.0'
