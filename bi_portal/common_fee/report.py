# bi_portal/common_fee/report.py
"""
Common Fee report assembly

Combines CommonFeeQueries (SQL) with CommonFeeMetrics (pandas) into the
response dicts of each common fee endpoint. Streamlit pages call the
same methods so both surfaces show identical numbers.
"""

import logging
from datetime import date
from typing import Dict, Optional

from ..helpers import local_today, recent_periods, to_records
from .aging import is_valid_bucket
from .constants import (
    INVOICE_STATUSES, EXCLUDED_STATUSES, STATUS_LABELS,
    DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, COLLECTION_YEARS_BACK,
)
from .metrics import CommonFeeMetrics
from .queries import CommonFeeQueries, InvoiceFilters

logger = logging.getLogger(__name__)


def clamp_limit(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return DEFAULT_PAGE_SIZE
    return min(int(limit), MAX_PAGE_SIZE)


class CommonFeeReport:
    """
    Usage:
        report = CommonFeeReport()
        overview = report.overview(InvoiceFilters(year=2025))
    """

    def __init__(self, queries: CommonFeeQueries = None):
        self.queries = queries or CommonFeeQueries()
        self.metrics = CommonFeeMetrics()

    def filters(self) -> Dict:
        sites = to_records(self.queries.get_sites())
        projects = to_records(self.queries.get_projects())
        statuses = [
            {'value': s, 'label': STATUS_LABELS[s]}
            for s in INVOICE_STATUSES if s not in EXCLUDED_STATUSES
        ]
        return {
            'sites': sites,
            'projects': projects,
            'statuses': statuses,
            'periods': recent_periods(24),
        }

    def overview(self, f: InvoiceFilters, as_of: date = None) -> Dict:
        as_of = as_of or local_today()
        year = f.target_year
        q = self.queries

        return {
            'kpis': self.metrics.build_kpi_cards(q.get_overview_kpis(f)),
            'statusDistribution': self.metrics.build_status_distribution(q.get_status_distribution(f)),
            'trend': self.metrics.build_trend(
                year,
                q.get_monthly_billed(f),
                q.get_monthly_paid(f),
                q.get_monthly_overdue(f),
                q.get_monthly_overdue(f, cumulative=True),
            ),
            'highRiskUnits': self.metrics.build_high_risk_units(q.get_high_risk_units(f, as_of), as_of),
            'availableYears': q.get_available_years(f.site_id),
            'selectedYear': year,
            'syncInfo': self.metrics.build_sync_info(q.get_sync_info()),
        }

    def collection(self, f: InvoiceFilters, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0,
                   sort_by: str = None, sort_order: str = None) -> Dict:
        limit = clamp_limit(limit)
        offset = max(int(offset or 0), 0)
        q = self.queries

        summary = self.metrics.build_status_summary(q.get_status_summary(f))
        summary['overdueBreakdown'] = self.metrics.build_overdue_breakdown(
            q.get_overdue_invoices(f), f.target_year
        )
        rows = q.get_collection_page(f, limit, offset, sort_by, sort_order)

        return {
            'summary': summary,
            'data': self.metrics.build_collection_rows(rows),
            'pagination': self.metrics.build_pagination(summary['total']['count'], limit, offset),
        }

    def invoice_items(self, invoice_id: int) -> Dict:
        return self.metrics.build_invoice_items(invoice_id, self.queries.get_invoice_items(invoice_id))

    def expense_summary(self, f: InvoiceFilters) -> Dict:
        return {
            'data': self.metrics.build_expense_summary(self.queries.get_expense_summary(f)),
            'totalInvoices': self.queries.count_invoices(f),
            'filters': {'site_id': f.site_id, 'year': f.year, 'status': f.status},
        }

    def aging(self, f: InvoiceFilters, bucket: str = None, limit: int = DEFAULT_PAGE_SIZE,
              offset: int = 0, sort_by: str = None, sort_order: str = None,
              as_of: date = None) -> Dict:
        """
        Bucket summary plus one page of aged invoices.

        Raises:
            ValueError: unknown bucket label
        """
        as_of = as_of or local_today()
        if bucket and not is_valid_bucket(bucket):
            raise ValueError(f"Unknown aging bucket: {bucket}")
        limit = clamp_limit(limit)
        offset = max(int(offset or 0), 0)

        bucket_df, unique_units = self.queries.get_aging_bucket_summary(f, as_of)
        rows, total = self.queries.get_aging_page(f, as_of, bucket, limit, offset, sort_by, sort_order)

        return {
            'asOf': as_of.isoformat(),
            'summary': self.metrics.build_aging_summary(bucket_df, unique_units).to_dict(),
            'invoices': self.metrics.build_aging_invoices(rows),
            'pagination': {'total': total, 'limit': limit, 'offset': offset},
        }

    def aging_export_rows(self, f: InvoiceFilters, bucket: str = None, as_of: date = None):
        """Every aged invoice for the filters, unpaginated (Excel export)."""
        as_of = as_of or local_today()
        if bucket and not is_valid_bucket(bucket):
            raise ValueError(f"Unknown aging bucket: {bucket}")
        rows, _ = self.queries.get_aging_page(f, as_of, bucket, limit=None)
        bucket_df, unique_units = self.queries.get_aging_bucket_summary(f, as_of)
        return rows, self.metrics.build_aging_summary(bucket_df, unique_units)

    def invoice_summary(self, f: InvoiceFilters) -> Dict:
        q = self.queries
        summary = self.metrics.build_status_summary(
            q.get_status_summary(f, search=False, force_year=True, exclude_statuses=False),
            include_draft=True,
        )
        cumulative = to_records(q.get_cumulative_overdue(f))
        row = cumulative[0] if cumulative else {}
        summary['overdueCumulative'] = {
            'count': int(row.get('cnt') or 0),
            'unitCount': int(row.get('unit_cnt') or 0),
            'amount': float(row.get('amount') or 0),
        }
        summary['selectedYear'] = f.target_year
        return summary

    def collection_by_project(self, f: InvoiceFilters, as_of: date = None) -> Dict:
        as_of = as_of or local_today()
        year = f.target_year
        years = [year - i for i in range(COLLECTION_YEARS_BACK - 1, -1, -1)]
        q = self.queries

        projects_df = q.get_project_collection(f)
        site_ids = projects_df['site_id'].dropna().astype(int).tolist() if not projects_df.empty else []
        if site_ids:
            yearly_df = q.get_project_yearly(f, site_ids, years)
            cumulative_df = q.get_project_cumulative(f, site_ids)
        else:
            yearly_df = cumulative_df = None

        projects = self.metrics.build_project_collection(
            year, years, projects_df, q.get_first_invoice_dates(), yearly_df, cumulative_df, as_of,
        )
        return {'year': year, 'years': years, 'projects': projects}
