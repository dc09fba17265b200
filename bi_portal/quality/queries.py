# bi_portal/quality/queries.py
"""
SQL Queries for Quality (Repair Job) Reports

Database alias: quality (trn_repair)

A job is open while job_sub_status is not 'completed' / 'cancel'.
Open-job ages are measured from open_date to :as_of.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy import text

from ..db import get_db_engine
from ..helpers import SqlFilter
from .constants import REPAIR_TABLE, CLOSED_SUB_STATUSES, OPEN_JOB_AGING, STALE_JOB_DAYS

logger = logging.getLogger(__name__)

DB_ALIAS = "quality"

_CLOSED = ", ".join(f"'{s}'" for s in CLOSED_SUB_STATUSES)
OPEN_SQL = f"job_sub_status NOT IN ({_CLOSED})"
CLOSED_SQL = f"job_sub_status IN ({_CLOSED})"
AS_OF_SQL = "CAST(:as_of AS timestamp)"
AVG_RESOLUTION_SQL = (
    "ROUND(AVG(EXTRACT(EPOCH FROM (close_date - open_date)) / 86400) "
    "FILTER (WHERE close_date IS NOT NULL)::numeric, 1)"
)
COMPLETION_RATE_SQL = f"ROUND(COUNT(*) FILTER (WHERE {CLOSED_SQL})::numeric / NULLIF(COUNT(*), 0) * 100, 1)"


def open_age_condition(older_than: Optional[int], not_older_than: Optional[int]) -> str:
    """Open-job condition for an age window in days, relative to :as_of."""
    parts = [OPEN_SQL]
    if older_than is not None:
        parts.append(f"open_date < {AS_OF_SQL} - INTERVAL '{int(older_than)} days'")
    if not_older_than is not None:
        parts.append(f"open_date >= {AS_OF_SQL} - INTERVAL '{int(not_older_than)} days'")
    return " AND ".join(parts)


@dataclass
class QualityFilters:
    project_id: Optional[str] = None
    project_type: Optional[str] = None
    date_from: Optional[str] = None     # YYYY-MM
    date_to: Optional[str] = None       # YYYY-MM, inclusive

    def to_filter(self, dates: bool = True) -> SqlFilter:
        sf = SqlFilter()
        if self.project_id:
            sf.add("project_id = :project_id", project_id=self.project_id)
        if self.project_type:
            sf.add("project_type = :project_type", project_type=self.project_type)
        if dates and self.date_from:
            sf.add("open_date >= CAST(:date_from AS date)", date_from=f"{self.date_from}-01")
        if dates and self.date_to:
            sf.add("open_date < CAST(:date_to AS date) + INTERVAL '1 month'", date_to=f"{self.date_to}-01")
        return sf


class QualityQueries:
    """
    Usage:
        queries = QualityQueries()
        kpi_df = queries.get_kpis(QualityFilters(project_type='condo'))
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
        try:
            df = pd.read_sql(text(query), self.engine, params=params or {})
            logger.debug(f"{query_name}: {len(df)} rows")
            return df
        except Exception as e:
            logger.error(f"❌ Error executing {query_name}: {e}")
            raise

    # =========================================================================
    # OVERVIEW
    # =========================================================================

    def get_kpis(self, f: QualityFilters, as_of: datetime = None) -> pd.DataFrame:
        sf = f.to_filter()
        aging = ",\n                ".join(
            f"COUNT(*) FILTER (WHERE {open_age_condition(lo, hi)}) AS {key}"
            for key, lo, hi in OPEN_JOB_AGING
        )
        query = f"""
            SELECT
                COUNT(*) AS total_jobs,
                COUNT(*) FILTER (WHERE {OPEN_SQL}) AS open_jobs,
                COUNT(*) FILTER (WHERE {open_age_condition(STALE_JOB_DAYS, None)}) AS jobs_over_14_days,
                {aging},
                {AVG_RESOLUTION_SQL} AS avg_resolution_days,
                {COMPLETION_RATE_SQL} AS completion_rate
            FROM {REPAIR_TABLE}
            {sf.where()}
        """
        params = {**sf.params, 'as_of': as_of or datetime.now()}
        return self._execute_query(query, params, "get_kpis")

    def get_monthly_trend(self, f: QualityFilters) -> pd.DataFrame:
        """Jobs opened per month; date filters ignored so the backlog covers all months."""
        sf = f.to_filter(dates=False).add("open_date IS NOT NULL")
        query = f"""
            SELECT
                TO_CHAR(open_date, 'YYYY-MM') AS month,
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE {CLOSED_SQL}) AS completed
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY TO_CHAR(open_date, 'YYYY-MM')
            ORDER BY month
        """
        return self._execute_query(query, sf.params, "get_monthly_trend")

    def get_category_counts(self, f: QualityFilters) -> pd.DataFrame:
        sf = f.to_filter()
        query = f"""
            SELECT
                repair_category AS category,
                COUNT(*) AS total_jobs,
                COUNT(*) FILTER (WHERE {OPEN_SQL}) AS open_jobs
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY repair_category
            ORDER BY total_jobs DESC
        """
        return self._execute_query(query, sf.params, "get_category_counts")

    def get_project_defects(self, f: QualityFilters, as_of: datetime = None) -> pd.DataFrame:
        sf = f.to_filter()
        query = f"""
            SELECT
                project_id,
                project_name,
                COUNT(*) AS total_defects,
                COUNT(*) FILTER (WHERE {OPEN_SQL}) AS open_defects,
                COUNT(*) FILTER (WHERE {open_age_condition(STALE_JOB_DAYS, None)}) AS defects_over_14_days,
                {AVG_RESOLUTION_SQL} AS avg_resolution_days,
                {COMPLETION_RATE_SQL} AS completion_rate
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY project_id, project_name
            ORDER BY open_defects DESC
        """
        params = {**sf.params, 'as_of': as_of or datetime.now()}
        return self._execute_query(query, params, "get_project_defects")

    def get_project_categories(self, f: QualityFilters) -> pd.DataFrame:
        """Open jobs per project per raw repair category."""
        sf = f.to_filter().add(OPEN_SQL)
        query = f"""
            SELECT project_id, project_name, repair_category, COUNT(*) AS cnt
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY project_id, project_name, repair_category
            ORDER BY project_name, cnt DESC
        """
        return self._execute_query(query, sf.params, "get_project_categories")

    def get_status_distribution(self, f: QualityFilters) -> pd.DataFrame:
        sf = f.to_filter()
        query = f"""
            SELECT job_status, job_sub_status, COUNT(*) AS cnt
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY job_status, job_sub_status
            ORDER BY cnt DESC
        """
        return self._execute_query(query, sf.params, "get_status_distribution")

    def get_distribution(self, f: QualityFilters, column: str) -> pd.DataFrame:
        """Total / open job counts grouped by warranty_status or request_channel."""
        if column not in ('warranty_status', 'request_channel'):
            raise ValueError(f"Unsupported distribution column: {column}")
        sf = f.to_filter()
        query = f"""
            SELECT
                {column},
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE {OPEN_SQL}) AS open_jobs
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY {column}
            ORDER BY total DESC
        """
        return self._execute_query(query, sf.params, f"get_distribution[{column}]")

    def get_sync_info(self, f: QualityFilters) -> pd.DataFrame:
        sf = f.to_filter()
        query = f"""
            SELECT
                COUNT(DISTINCT project_id) AS total_projects,
                COUNT(DISTINCT house_number) AS total_units,
                MAX(open_date) AS last_data_date
            FROM {REPAIR_TABLE}
            {sf.where()}
        """
        return self._execute_query(query, sf.params, "get_sync_info")

    def count_null_date_open_jobs(self, f: QualityFilters) -> int:
        """Open jobs without an open_date (not visible in the monthly trend)."""
        sf = f.to_filter(dates=False).add("open_date IS NULL").add(OPEN_SQL)
        query = f"SELECT COUNT(*) AS null_date_open_jobs FROM {REPAIR_TABLE} {sf.where()}"
        df = self._execute_query(query, sf.params, "count_null_date_open_jobs")
        return int(df['null_date_open_jobs'].iloc[0]) if not df.empty else 0

    # =========================================================================
    # LOOKUPS / TRENDS
    # =========================================================================

    def get_projects(self) -> pd.DataFrame:
        query = f"""
            SELECT project_id, project_name, COUNT(*) AS total_jobs
            FROM {REPAIR_TABLE}
            WHERE project_id IS NOT NULL AND project_name IS NOT NULL AND project_name != ''
            GROUP BY project_id, project_name
            HAVING COUNT(*) > 0
            ORDER BY project_name
        """
        return self._execute_query(query, query_name="get_projects")

    def get_category_trend(self, raw_categories: Optional[List[str]], f: QualityFilters) -> pd.DataFrame:
        """Monthly total / completed / open counts for a set of raw categories."""
        sf = f.to_filter(dates=False)
        if raw_categories:
            sf.add("repair_category = ANY(:categories)", categories=list(raw_categories))
        sf.add("open_date IS NOT NULL")
        query = f"""
            SELECT
                TO_CHAR(open_date, 'YYYY-MM') AS month,
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE {CLOSED_SQL}) AS completed,
                COUNT(*) FILTER (WHERE {OPEN_SQL}) AS open_jobs
            FROM {REPAIR_TABLE}
            {sf.where()}
            GROUP BY TO_CHAR(open_date, 'YYYY-MM')
            ORDER BY month
        """
        return self._execute_query(query, sf.params, "get_category_trend")
