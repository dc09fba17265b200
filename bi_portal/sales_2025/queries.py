# bi_portal/sales_2025/queries.py
"""
SQL Queries for Sales 2025 Reports

Database alias: sales
- "Project_User_Mapping" (mapping rows, one per person/project/month)
- "Performance2025" (quarterly, text KPI columns coalesced to numeric)
- sales_mkt (wide monthly rows, parsed in pandas by sales_mkt.melt_sales_mkt)

CHANGELOG:
- v1.1.0: project_codes filter for person-scoped loads
- v1.0.0: Mapping / performance / sales_mkt loaders
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
from sqlalchemy import text

from ..db import get_db_engine
from ..helpers import SqlFilter, coalesce_numeric
from .constants import (
    MAPPING_TABLE, PERFORMANCE_TABLE, SALES_MKT_TABLE, PERFORMANCE_COLUMNS,
    ROLLUP_ROLES_SQL, DEPT_SALE, ROLE_VP, ROLE_MGR,
)

logger = logging.getLogger(__name__)

DB_ALIAS = "sales"


@dataclass
class SalesFilters:
    """Query-string filters shared by the sales endpoints."""
    bud: Optional[str] = None
    quarter: Optional[str] = None
    project: Optional[str] = None
    vp: Optional[str] = None
    mgr: Optional[str] = None

    @property
    def person(self) -> Optional[Tuple[str, str]]:
        """(name, role_type) of the VP/MGR filter; VP wins when both are set."""
        if self.vp:
            return self.vp, ROLE_VP
        if self.mgr:
            return self.mgr, ROLE_MGR
        return None


PERFORMANCE_SELECT = ",\n                ".join(
    ["p.bud", "p.opm", "p.project_code", "p.project_name", "p.quarter"]
    + [coalesce_numeric(f"p.{src}", alias) for src, alias in PERFORMANCE_COLUMNS.items()]
)


class SalesQueries:
    """
    Data loading for the sales / marketing 2025 reports.

    Usage:
        queries = SalesQueries()
        mapping_df = queries.get_mapping(name='Somchai', role_type='VP')
        perf_df = queries.get_performance(project_codes=mapping_df['project_code'].unique())
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
    # PROJECT / USER MAPPING
    # =========================================================================

    def get_people(self, department: str = DEPT_SALE, role_type: str = ROLE_VP) -> pd.DataFrame:
        """Distinct (name, position) for one department/role."""
        query = f"""
            SELECT DISTINCT name, position
            FROM {MAPPING_TABLE}
            WHERE department = :department AND role_type = :role_type
            ORDER BY name
        """
        return self._execute_query(query, {'department': department, 'role_type': role_type}, "get_people")

    def get_employees(self, all_roles: bool = False, department: str = DEPT_SALE,
                      role_type: str = ROLE_VP) -> pd.DataFrame:
        """Distinct employees (name, position, role_type, department)."""
        if all_roles:
            query = f"""
                SELECT DISTINCT name, position, role_type, department
                FROM {MAPPING_TABLE}
                WHERE {ROLLUP_ROLES_SQL}
                ORDER BY role_type, department, name
            """
            return self._execute_query(query, query_name="get_employees")

        query = f"""
            SELECT DISTINCT name, position, role_type, department
            FROM {MAPPING_TABLE}
            WHERE department = :department AND role_type = :role_type
            ORDER BY name
        """
        return self._execute_query(query, {'department': department, 'role_type': role_type}, "get_employees")

    def get_mapping(
        self,
        name: Optional[str] = None,
        department: Optional[str] = None,
        role_type: Optional[str] = None,
        project_codes: Optional[Sequence[str]] = None,
        departments: Optional[Sequence[str]] = None,
        rollup_roles_only: bool = False,
    ) -> pd.DataFrame:
        """Mapping rows (one per person/project/month) matching the filters."""
        sf = SqlFilter()
        if name is not None:
            sf.add("name = :name", name=name)
        if department is not None:
            sf.add("department = :department", department=department)
        if departments:
            sf.add("department = ANY(:departments)", departments=list(departments))
        if role_type is not None:
            sf.add("role_type = :role_type", role_type=role_type)
        if project_codes is not None:
            sf.add("project_code = ANY(:project_codes)", project_codes=[str(c) for c in project_codes])
        if rollup_roles_only:
            sf.add(ROLLUP_ROLES_SQL)

        query = f"""
            SELECT project_code, project_name, department, role_type, position, name, month
            FROM {MAPPING_TABLE}
            {sf.where()}
            ORDER BY department, role_type DESC, name, project_code
        """
        return self._execute_query(query, sf.params, "get_mapping")

    # =========================================================================
    # PERFORMANCE2025 (QUARTERLY)
    # =========================================================================

    def get_performance(
        self,
        bud: Optional[str] = None,
        quarter: Optional[str] = None,
        project: Optional[str] = None,
        project_codes: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        sf = SqlFilter()
        if bud:
            sf.add("p.bud = :bud", bud=bud)
        if quarter:
            sf.add("p.quarter = :quarter", quarter=quarter)
        if project:
            sf.add("p.project_code = :project", project=project)
        if project_codes is not None:
            sf.add("p.project_code = ANY(:project_codes)", project_codes=[str(c) for c in project_codes])

        query = f"""
            SELECT
                {PERFORMANCE_SELECT}
            FROM {PERFORMANCE_TABLE} p
            {sf.where()}
            ORDER BY p.bud, p.project_code, p.quarter
        """
        return self._execute_query(query, sf.params, "get_performance")

    def get_performance_projects(self) -> pd.DataFrame:
        query = f"""
            SELECT DISTINCT project_code, project_name, bud
            FROM {PERFORMANCE_TABLE}
            ORDER BY bud, project_code
        """
        return self._execute_query(query, query_name="get_performance_projects")

    def get_performance_buds(self) -> List[str]:
        query = f"SELECT DISTINCT bud FROM {PERFORMANCE_TABLE} WHERE bud IS NOT NULL ORDER BY bud"
        df = self._execute_query(query, query_name="get_performance_buds")
        return df['bud'].tolist() if not df.empty else []

    # =========================================================================
    # SALES_MKT (MONTHLY, WIDE)
    # =========================================================================

    def get_sales_mkt(
        self,
        bud: Optional[str] = None,
        project: Optional[str] = None,
        project_codes: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """Raw wide sales_mkt rows; callers melt them with melt_sales_mkt."""
        sf = SqlFilter()
        if bud:
            sf.add("s.bud = :bud", bud=bud)
        if project:
            sf.add("s.projectcode = :project", project=project)
        if project_codes is not None:
            sf.add("s.projectcode = ANY(:project_codes)", project_codes=[str(c) for c in project_codes])

        query = f"""
            SELECT s.*
            FROM {SALES_MKT_TABLE} s
            {sf.where()}
            ORDER BY s.bud, s.projectcode
        """
        return self._execute_query(query, sf.params, "get_sales_mkt")

    def get_sales_mkt_projects(self) -> pd.DataFrame:
        query = f"""
            SELECT DISTINCT projectcode AS project_code, projectname AS project_name, bud
            FROM {SALES_MKT_TABLE}
            ORDER BY bud, projectcode
        """
        return self._execute_query(query, query_name="get_sales_mkt_projects")

    def get_sales_mkt_buds(self) -> List[str]:
        query = f"SELECT DISTINCT bud FROM {SALES_MKT_TABLE} WHERE bud IS NOT NULL ORDER BY bud"
        df = self._execute_query(query, query_name="get_sales_mkt_buds")
        return df['bud'].tolist() if not df.empty else []
