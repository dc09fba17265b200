# bi_portal/common_fee/queries.py
"""
SQL Queries for Common Fee Reports

Database alias: silverman (schema silverman)
Tables: silverman.invoice (i), silverman.transaction (tr),
        silverman.site (s), silverman.project (p)

Base condition everywhere: i.status NOT IN ('void', 'draft', 'waiting_fix')

Every query is parameterized (:name binds); only whitelisted identifiers
(sort columns, bucket bounds, expense keywords) are interpolated.
Errors are logged and re-raised so the caller can abort the request.

CHANGELOG:
- v1.2.0: Aging queries take an explicit as-of date instead of CURRENT_DATE
          Aging summary honors the same filters as the invoice list
- v1.1.0: Expense type filter via EXISTS over classified transactions
- v1.0.0: Initial overview / collection / aging / project queries
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy import text

from ..db import get_db_engine
from ..helpers import SqlFilter, local_today
from .aging import bucket_case_sql, bucket_filter_sql
from .constants import (
    EXCLUDED_STATUSES, AGED_STATUSES, EXPENSE_TYPES, EXPENSE_TYPE_IDS,
    OTHER_EXPENSE_TYPE, PROJECT_NAME_SQL, OWNER_SQL,
    COLLECTION_SORT_FIELDS, COLLECTION_DEFAULT_SORT,
    AGING_SORT_FIELDS, AGING_DEFAULT_SORT, HIGH_RISK_LIMIT, MIN_REPORT_YEAR,
)

logger = logging.getLogger(__name__)

DB_ALIAS = "silverman"

STATUS_EXCLUSION_SQL = "{a}.status NOT IN (" + ", ".join(f"'{s}'" for s in EXCLUDED_STATUSES) + ")"
AGED_STATUS_SQL = "{a}.status IN (" + ", ".join(f"'{s}'" for s in AGED_STATUSES) + ")"


# =============================================================================
# FILTERS
# =============================================================================

@dataclass
class InvoiceFilters:
    """Query-string filters shared by the common fee endpoints."""
    site_id: Optional[int] = None
    year: Optional[int] = None
    period: Optional[str] = None          # YYYY-MM of issued_date
    status: Optional[str] = None          # 'all' means no filter
    pay_group: Optional[str] = None
    project_type: Optional[str] = None    # 'condo' | 'lowrise'
    expense_type: Optional[str] = None
    search: Optional[str] = None

    @property
    def target_year(self) -> int:
        return int(self.year) if self.year else local_today().year

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def expense_type_case_sql(alias: str = 'tr') -> str:
    """CASE expression classifying a transaction description into an expense type id."""
    desc = f"SPLIT_PART({alias}.description, '(', 1)"
    whens = []
    for expense in EXPENSE_TYPES:
        if expense['id'] == OTHER_EXPENSE_TYPE:
            continue
        conds = []
        if expense['keywords']:
            conds.append("(" + " OR ".join(f"{desc} LIKE '%{kw}%'" for kw in expense['keywords']) + ")")
        conds.extend(f"{desc} NOT LIKE '%{ex}%'" for ex in expense['exclude'])
        whens.append(f"WHEN {' AND '.join(conds)} THEN '{expense['id']}'")
    return f"CASE {' '.join(whens)} ELSE '{OTHER_EXPENSE_TYPE}' END"


def project_type_sql(project_type: Optional[str], alias: str = 'i') -> Optional[str]:
    if project_type == 'condo':
        return (f"{alias}.site_id IN (SELECT site_id FROM silverman.project "
                f"WHERE type_of_project = 'condominium')")
    if project_type == 'lowrise':
        return (f"{alias}.site_id IN (SELECT site_id FROM silverman.project "
                f"WHERE type_of_project IS NULL OR type_of_project != 'condominium')")
    return None


def build_invoice_filter(
    f: InvoiceFilters,
    alias: str = 'i',
    *,
    exclude_statuses: bool = True,
    issued_year: bool = True,
    period: bool = True,
    status: bool = True,
    search: bool = False,
) -> SqlFilter:
    """
    Translate InvoiceFilters into a SqlFilter for silverman.invoice.

    Keyword flags switch individual filters off for queries that span
    other date ranges (trend, cumulative overdue).
    """
    sf = SqlFilter()
    if exclude_statuses:
        sf.add(STATUS_EXCLUSION_SQL.format(a=alias))
    if issued_year and f.year is not None:
        sf.add(f"{alias}.issued_date >= :issued_from AND {alias}.issued_date < :issued_to",
               issued_from=date(f.target_year, 1, 1), issued_to=date(f.target_year + 1, 1, 1))
    if f.site_id is not None:
        sf.add(f"{alias}.site_id = :site_id", site_id=int(f.site_id))
    if period and f.period:
        sf.add(f"TO_CHAR({alias}.issued_date, 'YYYY-MM') = :period", period=f.period)
    if status and f.status and f.status != 'all':
        sf.add(f"{alias}.status = :status", status=f.status)
    if f.pay_group:
        sf.add(f"{alias}.pay_group = :pay_group", pay_group=f.pay_group)
    pt = project_type_sql(f.project_type, alias)
    if pt:
        sf.add(pt)
    if f.expense_type in EXPENSE_TYPE_IDS:
        sf.add(
            f"EXISTS (SELECT 1 FROM silverman.transaction tr WHERE tr.invoice_id = {alias}.id "
            f"AND {expense_type_case_sql('tr')} = :expense_type)",
            expense_type=f.expense_type,
        )
    if search and f.search:
        sf.add(
            f"({alias}.name ILIKE :search OR {alias}.doc_number ILIKE :search "
            f"OR {alias}.first_name ILIKE :search OR {alias}.last_name ILIKE :search)",
            search=f"%{f.search}%",
        )
    return sf


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str],
                 fields: Dict[str, str], default: str) -> Tuple[str, str]:
    """Map a client sort key through a whitelist; unknown keys use the default."""
    column = fields.get(sort_by or default, fields[default])
    direction = 'ASC' if (sort_order or '').lower() == 'asc' else 'DESC'
    return column, direction


def days_overdue_sql(alias: str = 'i') -> str:
    return f"(CAST(:as_of AS date) - {alias}.due_date::date)"


# One project row per site, so joining it never multiplies invoices
SITE_PROJECT_JOIN = """
            LEFT JOIN silverman.site s ON s.id = i.site_id
            LEFT JOIN LATERAL (
                SELECT pr.name_en, pr.type_of_project
                FROM silverman.project pr
                WHERE pr.site_id = s.id
                ORDER BY pr.id
                LIMIT 1
            ) p ON TRUE
"""


# =============================================================================
# QUERY CLASS
# =============================================================================

class CommonFeeQueries:
    """
    Data loading for the common fee (invoice collection) reports.

    Usage:
        queries = CommonFeeQueries()
        f = InvoiceFilters(site_id=12, year=2025)

        kpis = queries.get_overview_kpis(f)
        buckets, units = queries.get_aging_bucket_summary(f, as_of=local_today())
    """

    def __init__(self, engine=None):
        self._engine = engine

    @property
    def engine(self):
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine(DB_ALIAS)
        return self._engine

    def _execute_query(self, query: str, params: Dict = None, query_name: str = "query") -> pd.DataFrame:
        """Run a query into a DataFrame; log and re-raise on failure."""
        try:
            df = pd.read_sql(text(query), self.engine, params=params or {})
            logger.debug(f"{query_name}: {len(df)} rows")
            return df
        except Exception as e:
            logger.error(f"❌ Error executing {query_name}: {e}")
            raise

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_sites(self) -> pd.DataFrame:
        query = f"""
            SELECT
                s.id,
                s.name AS domain,
                {PROJECT_NAME_SQL} AS display_name
            FROM silverman.site s
            LEFT JOIN LATERAL (
                SELECT pr.name_en FROM silverman.project pr
                WHERE pr.site_id = s.id ORDER BY pr.id LIMIT 1
            ) p ON TRUE
            ORDER BY s.name
        """
        return self._execute_query(query, query_name="get_sites")

    def get_projects(self) -> pd.DataFrame:
        query = """
            SELECT id, name FROM silverman.project
            WHERE name IS NOT NULL
            ORDER BY name
        """
        return self._execute_query(query, query_name="get_projects")

    def get_available_years(self, site_id: Optional[int] = None) -> List[int]:
        sf = SqlFilter("issued_date >= :min_date")
        sf.params['min_date'] = date(MIN_REPORT_YEAR, 1, 1)
        if site_id is not None:
            sf.add("site_id = :site_id", site_id=int(site_id))
        query = f"""
            SELECT DISTINCT EXTRACT(YEAR FROM issued_date)::int AS year
            FROM silverman.invoice
            {sf.where()}
            ORDER BY year DESC
        """
        df = self._execute_query(query, sf.params, "get_available_years")
        return [int(y) for y in df['year'].tolist()] if not df.empty else []

    def get_sync_info(self) -> pd.DataFrame:
        """Latest invoice change, used as the data freshness marker."""
        query = """
            SELECT MAX(updated) AS last_updated, COUNT(*) AS invoice_count
            FROM silverman.invoice
        """
        return self._execute_query(query, query_name="get_sync_info")

    def count_invoices(self, f: InvoiceFilters) -> int:
        sf = build_invoice_filter(f, period=False)
        query = f"SELECT COUNT(*) AS count FROM silverman.invoice i {sf.where()}"
        df = self._execute_query(query, sf.params, "count_invoices")
        return int(df['count'].iloc[0]) if not df.empty else 0

    # =========================================================================
    # OVERVIEW
    # =========================================================================

    def get_overview_kpis(self, f: InvoiceFilters) -> pd.DataFrame:
        sf = build_invoice_filter(f)
        query = f"""
            SELECT
                COALESCE(SUM(i.total), 0) AS total_billed,
                COALESCE(SUM(CASE WHEN i.status = 'paid' THEN i.total ELSE 0 END), 0) AS total_paid,
                COALESCE(SUM(CASE WHEN i.status IN ('active', 'overdue', 'partial_payment')
                             THEN i.total ELSE 0 END), 0) AS total_outstanding,
                COUNT(DISTINCT CASE WHEN i.status IN ('active', 'overdue') THEN i.name END) AS outstanding_units,
                COUNT(DISTINCT i.site_id) AS project_count,
                COUNT(DISTINCT i.name) AS unit_count
            FROM silverman.invoice i
            {sf.where()}
        """
        return self._execute_query(query, sf.params, "get_overview_kpis")

    def get_status_distribution(self, f: InvoiceFilters) -> pd.DataFrame:
        sf = build_invoice_filter(f)
        query = f"""
            SELECT
                ROUND(100.0 * COUNT(*) FILTER (WHERE i.status = 'paid') / NULLIF(COUNT(*), 0), 1) AS paid_pct,
                ROUND(100.0 * COUNT(*) FILTER (WHERE i.status = 'partial_payment') / NULLIF(COUNT(*), 0), 1) AS partial_pct,
                ROUND(100.0 * COUNT(*) FILTER (WHERE i.status = 'active') / NULLIF(COUNT(*), 0), 1) AS unpaid_pct,
                ROUND(100.0 * COUNT(*) FILTER (WHERE i.status = 'overdue') / NULLIF(COUNT(*), 0), 1) AS overdue_pct
            FROM silverman.invoice i
            {sf.where()}
        """
        return self._execute_query(query, sf.params, "get_status_distribution")

    def get_monthly_billed(self, f: InvoiceFilters) -> pd.DataFrame:
        """Billed amount by issued month within the target year."""
        yearly = InvoiceFilters(**{**f.to_dict(), 'year': f.target_year})
        sf = build_invoice_filter(yearly)
        query = f"""
            SELECT TO_CHAR(DATE_TRUNC('month', i.issued_date), 'YYYY-MM') AS month_key,
                   COALESCE(SUM(i.total), 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY month_key
        """
        return self._execute_query(query, sf.params, "get_monthly_billed")

    def get_monthly_paid(self, f: InvoiceFilters) -> pd.DataFrame:
        """Paid amount by paid month within the target year."""
        sf = build_invoice_filter(f, issued_year=False, period=False, status=False)
        sf.add("i.status = 'paid'")
        sf.add("i.paid_date >= :paid_from AND i.paid_date < :paid_to",
               paid_from=date(f.target_year, 1, 1), paid_to=date(f.target_year + 1, 1, 1))
        query = f"""
            SELECT TO_CHAR(DATE_TRUNC('month', i.paid_date), 'YYYY-MM') AS month_key,
                   COALESCE(SUM(i.total), 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY month_key
        """
        return self._execute_query(query, sf.params, "get_monthly_paid")

    def get_monthly_overdue(self, f: InvoiceFilters, cumulative: bool = False) -> pd.DataFrame:
        """
        Overdue amount by due month.

        cumulative=False: due dates inside the target year.
        cumulative=True: every due date up to the end of the target year.
        """
        sf = build_invoice_filter(f, exclude_statuses=False, issued_year=False, period=False, status=False)
        sf.add("i.status = 'overdue'")
        sf.add("i.due_date IS NOT NULL")
        if cumulative:
            sf.add("i.due_date < :due_to", due_to=date(f.target_year + 1, 1, 1))
        else:
            sf.add("i.due_date >= :due_from AND i.due_date < :due_to",
                   due_from=date(f.target_year, 1, 1), due_to=date(f.target_year + 1, 1, 1))
        query = f"""
            SELECT TO_CHAR(DATE_TRUNC('month', i.due_date), 'YYYY-MM') AS month_key,
                   COALESCE(SUM(i.total), 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY month_key
            ORDER BY month_key
        """
        return self._execute_query(query, sf.params, "get_monthly_overdue")

    def get_high_risk_units(self, f: InvoiceFilters, as_of: date) -> pd.DataFrame:
        """Top units by unpaid past-due amount for invoices issued in the target year."""
        yearly = InvoiceFilters(**{**f.to_dict(), 'year': f.target_year})
        sf = build_invoice_filter(yearly, period=False, status=False)
        sf.add("i.status IN ('overdue', 'active')")
        sf.add("i.due_date < :as_of", as_of=as_of)
        query = f"""
            SELECT i.name AS unit,
                   {OWNER_SQL} AS owner,
                   SUM(i.total) AS amount,
                   MIN(i.due_date) AS due_date
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY i.name, i.first_name, i.last_name
            ORDER BY amount DESC
            LIMIT {HIGH_RISK_LIMIT}
        """
        return self._execute_query(query, sf.params, "get_high_risk_units")

    # =========================================================================
    # COLLECTION / STATUS SUMMARY
    # =========================================================================

    def get_status_summary(self, f: InvoiceFilters, search: bool = True,
                           force_year: bool = False, exclude_statuses: bool = True) -> pd.DataFrame:
        """Invoice count, unit count and amount per status."""
        if force_year:
            f = InvoiceFilters(**{**f.to_dict(), 'year': f.target_year})
        sf = build_invoice_filter(f, search=search, exclude_statuses=exclude_statuses)
        query = f"""
            SELECT i.status,
                   COUNT(*) AS cnt,
                   COUNT(DISTINCT i.name) AS unit_cnt,
                   COALESCE(SUM(i.total), 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY i.status
        """
        return self._execute_query(query, sf.params, "get_status_summary")

    def get_overdue_invoices(self, f: InvoiceFilters) -> pd.DataFrame:
        """All overdue invoices regardless of issue year (for yearly/cumulative split)."""
        sf = build_invoice_filter(f, exclude_statuses=False, issued_year=False, period=False, status=False)
        sf.add("i.status = 'overdue'")
        query = f"""
            SELECT i.id, i.name, i.due_date, COALESCE(i.total, 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
        """
        return self._execute_query(query, sf.params, "get_overdue_invoices")

    def get_cumulative_overdue(self, f: InvoiceFilters) -> pd.DataFrame:
        """Overdue invoices due before the end of the target year."""
        sf = build_invoice_filter(f, exclude_statuses=False, issued_year=False, period=False, status=False)
        sf.add("i.status = 'overdue'")
        sf.add("i.due_date < :due_to", due_to=date(f.target_year + 1, 1, 1))
        query = f"""
            SELECT COUNT(*) AS cnt,
                   COUNT(DISTINCT i.name) AS unit_cnt,
                   COALESCE(SUM(i.total), 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
        """
        return self._execute_query(query, sf.params, "get_cumulative_overdue")

    def get_collection_page(self, f: InvoiceFilters, limit: int, offset: int,
                            sort_by: str = None, sort_order: str = None) -> pd.DataFrame:
        sort_column, direction = resolve_sort(sort_by, sort_order, COLLECTION_SORT_FIELDS, COLLECTION_DEFAULT_SORT)
        sf = build_invoice_filter(f, search=True)
        query = f"""
            SELECT
                i.id, i.doc_number, i.name AS unit,
                {OWNER_SQL} AS owner,
                COALESCE(i.total, 0) AS billed_amount,
                i.status, i.due_date, i.issued_date, i.paid_date,
                i.site_id, s.name AS site_name,
                i.pay_group, i.remark, i.void_remark, i.added, i.updated
            FROM silverman.invoice i
            LEFT JOIN silverman.site s ON s.id = i.site_id
            {sf.where()}
            ORDER BY {sort_column} {direction} NULLS LAST, i.added DESC NULLS LAST
            LIMIT :limit OFFSET :offset
        """
        params = {**sf.params, 'limit': int(limit), 'offset': int(offset)}
        return self._execute_query(query, params, "get_collection_page")

    def get_invoice_items(self, invoice_id: int) -> pd.DataFrame:
        query = """
            SELECT id, description, unit_items, price, discount, vat, total, paid, status, added
            FROM silverman.transaction
            WHERE invoice_id = :invoice_id
            ORDER BY added DESC NULLS LAST
        """
        return self._execute_query(query, {'invoice_id': int(invoice_id)}, "get_invoice_items")

    def get_expense_summary(self, f: InvoiceFilters) -> pd.DataFrame:
        """Transaction count and amount per expense type."""
        sf = build_invoice_filter(
            InvoiceFilters(site_id=f.site_id, year=f.year, status=f.status, project_type=f.project_type),
            period=False,
        )
        outer = ""
        params = dict(sf.params)
        if f.expense_type in EXPENSE_TYPE_IDS:
            outer = "WHERE x.expense_type = :expense_type"
            params['expense_type'] = f.expense_type
        query = f"""
            SELECT x.expense_type,
                   COUNT(*)::int AS count,
                   COALESCE(SUM(x.total), 0) AS amount
            FROM (
                SELECT tr.total, {expense_type_case_sql('tr')} AS expense_type
                FROM silverman.transaction tr
                JOIN silverman.invoice i ON i.id = tr.invoice_id
                {sf.where()}
            ) x
            {outer}
            GROUP BY x.expense_type
            ORDER BY amount DESC
        """
        return self._execute_query(query, params, "get_expense_summary")

    # =========================================================================
    # AGING
    # =========================================================================

    def _aging_filter(self, f: InvoiceFilters, as_of: date) -> SqlFilter:
        sf = build_invoice_filter(f, exclude_statuses=False, issued_year=False,
                                  period=False, status=False, search=True)
        sf.add(AGED_STATUS_SQL.format(a='i'))
        sf.add("i.due_date IS NOT NULL")
        sf.add("i.due_date <= :as_of", as_of=as_of)
        if f.year is not None:
            sf.add("i.due_date < :due_to", due_to=date(f.target_year + 1, 1, 1))
        return sf

    def get_aging_bucket_summary(self, f: InvoiceFilters, as_of: date) -> Tuple[pd.DataFrame, int]:
        """Bucket rows (bucket, cnt, amount) plus the distinct unit count."""
        sf = self._aging_filter(f, as_of)
        days = days_overdue_sql('i')
        query = f"""
            SELECT {bucket_case_sql(days)} AS bucket,
                   COUNT(*) AS cnt,
                   COALESCE(SUM(i.total), 0) AS amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY 1
        """
        buckets = self._execute_query(query, sf.params, "get_aging_bucket_summary")

        units_query = f"""
            SELECT COUNT(DISTINCT i.name) AS unique_units
            FROM silverman.invoice i
            {sf.where()}
        """
        units = self._execute_query(units_query, sf.params, "get_aging_unique_units")
        unique_units = int(units['unique_units'].iloc[0]) if not units.empty else 0
        return buckets, unique_units

    def get_aging_page(self, f: InvoiceFilters, as_of: date, bucket: Optional[str] = None,
                       limit: int = 50, offset: Optional[int] = 0,
                       sort_by: str = None, sort_order: str = None) -> Tuple[pd.DataFrame, int]:
        """
        Paginated aged invoices and the total row count for the same filters.

        limit=None returns every matching row (used by the Excel export).
        """
        sort_column, direction = resolve_sort(sort_by, sort_order, AGING_SORT_FIELDS, AGING_DEFAULT_SORT)
        sf = self._aging_filter(f, as_of)
        days = days_overdue_sql('i')
        if bucket:
            sf.add(bucket_filter_sql(bucket, days))

        params = dict(sf.params)
        paging = ""
        if limit is not None:
            paging = "LIMIT :limit OFFSET :offset"
            params.update(limit=int(limit), offset=int(offset or 0))

        query = f"""
            SELECT
                i.id, i.doc_number, i.name AS unit,
                {OWNER_SQL} AS owner,
                s.name AS site_domain,
                {PROJECT_NAME_SQL} AS project,
                i.site_id,
                COALESCE(i.total, 0) AS amount,
                i.due_date,
                {days} AS days_overdue,
                {bucket_case_sql(days)} AS bucket
            FROM silverman.invoice i
            {SITE_PROJECT_JOIN}
            {sf.where()}
            ORDER BY {sort_column} {direction} NULLS LAST, i.total DESC
            {paging}
        """
        rows = self._execute_query(query, params, "get_aging_page")

        count_query = f"""
            SELECT COUNT(*) AS count
            FROM silverman.invoice i
            {sf.where()}
        """
        count = self._execute_query(count_query, sf.params, "get_aging_count")
        total = int(count['count'].iloc[0]) if not count.empty else 0
        return rows, total

    # =========================================================================
    # COLLECTION BY PROJECT
    # =========================================================================

    def get_project_collection(self, f: InvoiceFilters) -> pd.DataFrame:
        """Per-site totals for invoices issued in the target year."""
        yearly = InvoiceFilters(site_id=f.site_id, year=f.target_year, pay_group=f.pay_group,
                                project_type=f.project_type, expense_type=f.expense_type)
        sf = build_invoice_filter(yearly, period=False, status=False)
        query = f"""
            SELECT
                i.site_id,
                MAX({PROJECT_NAME_SQL}) AS project_name,
                MAX(p.type_of_project) AS type_of_project,
                COUNT(*) AS total_count,
                COUNT(DISTINCT i.name) AS total_units,
                COALESCE(SUM(i.total), 0) AS total_amount,
                COALESCE(SUM(CASE WHEN i.status IN ('paid', 'partial_payment') THEN i.total ELSE 0 END), 0) AS paid_amount,
                COALESCE(SUM(CASE WHEN i.status = 'overdue' THEN i.total ELSE 0 END), 0) AS overdue_amount
            FROM silverman.invoice i
            {SITE_PROJECT_JOIN}
            {sf.where()}
            GROUP BY i.site_id
        """
        return self._execute_query(query, sf.params, "get_project_collection")

    def get_first_invoice_dates(self) -> pd.DataFrame:
        query = f"""
            SELECT i.site_id, MIN(i.issued_date) AS first_invoice_date
            FROM silverman.invoice i
            WHERE {STATUS_EXCLUSION_SQL.format(a='i')}
            GROUP BY i.site_id
        """
        return self._execute_query(query, query_name="get_first_invoice_dates")

    def get_project_yearly(self, f: InvoiceFilters, site_ids: List[int], years: List[int]) -> pd.DataFrame:
        sf = build_invoice_filter(
            InvoiceFilters(pay_group=f.pay_group, project_type=f.project_type, expense_type=f.expense_type),
            period=False, status=False,
        )
        sf.add("i.site_id = ANY(:site_ids)", site_ids=[int(s) for s in site_ids])
        sf.add("i.issued_date >= :yearly_from AND i.issued_date < :yearly_to",
               yearly_from=date(min(years), 1, 1), yearly_to=date(max(years) + 1, 1, 1))
        query = f"""
            SELECT i.site_id,
                   EXTRACT(YEAR FROM i.issued_date)::int AS year,
                   COALESCE(SUM(i.total), 0) AS total_amount,
                   COALESCE(SUM(CASE WHEN i.status IN ('paid', 'partial_payment') THEN i.total ELSE 0 END), 0) AS paid_amount,
                   COALESCE(SUM(CASE WHEN i.status = 'overdue' THEN i.total ELSE 0 END), 0) AS overdue_amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY i.site_id, year
        """
        return self._execute_query(query, sf.params, "get_project_yearly")

    def get_project_cumulative(self, f: InvoiceFilters, site_ids: List[int]) -> pd.DataFrame:
        sf = build_invoice_filter(
            InvoiceFilters(pay_group=f.pay_group, project_type=f.project_type, expense_type=f.expense_type),
            period=False, status=False,
        )
        sf.add("i.site_id = ANY(:site_ids)", site_ids=[int(s) for s in site_ids])
        sf.params['due_to'] = date(f.target_year + 1, 1, 1)
        query = f"""
            SELECT i.site_id,
                   COALESCE(SUM(i.total), 0) AS total_amount,
                   COALESCE(SUM(CASE WHEN i.status IN ('paid', 'partial_payment') THEN i.total ELSE 0 END), 0) AS paid_amount,
                   COALESCE(SUM(CASE WHEN i.status = 'overdue' AND i.due_date < :due_to
                                THEN i.total ELSE 0 END), 0) AS overdue_amount
            FROM silverman.invoice i
            {sf.where()}
            GROUP BY i.site_id
        """
        return self._execute_query(query, sf.params, "get_project_cumulative")
