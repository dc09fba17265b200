# bi_portal/sales_2025/report.py
"""
Sales 2025 report assembly

Two data sources share one roll-up engine (rollup.py):
- Sales2025Report:   "Performance2025", one row per project per quarter
- Sales2025V2Report: sales_mkt, melted to one row per project per month

A VP/MGR filter always restricts metric rows to the (project, period)
pairs that person is responsible for; a quarter filter is applied after
that restriction.

CHANGELOG:
- v1.1.0: v2 VP/MGR/employee roll-ups honor responsible months
- v1.0.0: Quarterly (v1) and monthly (v2) sales / marketing reports
"""

import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from ..helpers import MONTH_ORDER, QUARTER_ORDER, safe_ratio, calc_percentage, to_records
from .constants import (
    TOTAL_METRICS, FUNNEL_STAGES,
    DEPT_SALE, DEPT_MKT, ROLE_VP, ROLE_MGR,
)
from .queries import SalesQueries, SalesFilters
from .rollup import (
    GRAIN_QUARTER, GRAIN_MONTH,
    prepare_performance, ensure_metrics, scope_to_person,
    sum_metrics, period_totals, group_team, managers_by_project,
    rollup_person, summarize_employees,
)
from .sales_mkt import melt_sales_mkt, project_unit_info

logger = logging.getLogger(__name__)

V2_METRICS = TOTAL_METRICS + ['livnex_target', 'contract', 'cancel']


class _SalesReportBase:
    """Shared filter, VP, employee and team logic; subclasses supply the metric rows."""

    grain = GRAIN_QUARTER

    def __init__(self, queries: SalesQueries = None):
        self.queries = queries or SalesQueries()

    # ---- data source hooks ----

    def _load(self, bud: str = None, project: str = None,
              project_codes: Sequence[str] = None) -> pd.DataFrame:
        raise NotImplementedError

    def _project_list(self) -> pd.DataFrame:
        raise NotImplementedError

    def _bud_list(self) -> List[str]:
        raise NotImplementedError

    # ---- shared ----

    def filters(self) -> Dict:
        q = self.queries
        return {
            'vpList': to_records(q.get_people(DEPT_SALE, ROLE_VP)),
            'mgrList': to_records(q.get_people(DEPT_SALE, ROLE_MGR)),
            'projectList': to_records(self._project_list()),
            'budList': self._bud_list(),
            'quarterList': list(QUARTER_ORDER),
        }

    def _scoped(self, f: SalesFilters) -> pd.DataFrame:
        """Metric rows after bud/project, VP/MGR responsibility and quarter filters."""
        person = f.person
        if person:
            name, role_type = person
            mapping = self.queries.get_mapping(name=name, department=DEPT_SALE, role_type=role_type)
            if mapping.empty:
                logger.info(f"📋 No mapping rows for {role_type} {name}")
                return self._load(project_codes=[]).iloc[0:0]
            df = self._load(bud=f.bud, project=f.project,
                            project_codes=mapping['project_code'].unique().tolist())
            df = scope_to_person(df, mapping, self.grain)
        else:
            df = self._load(bud=f.bud, project=f.project)

        if f.quarter and not df.empty:
            df = df[df['quarter'] == f.quarter]
        return df

    def employees(self, all_roles: bool = False, department: str = DEPT_SALE,
                  role_type: str = ROLE_VP) -> Dict:
        q = self.queries
        employees_df = q.get_employees(all_roles=all_roles, department=department, role_type=role_type)
        mapping = q.get_mapping(rollup_roles_only=True)
        employees, bud_list = summarize_employees(
            employees_df, mapping, self._load(), self.grain,
            marketing_fields=self.grain == GRAIN_MONTH,
        )
        return {'employees': employees, 'budList': bud_list}

    def vp_detail(self, name: str) -> Optional[Dict]:
        """VP roll-up plus the sales / marketing managers of the VP's projects; None if unknown."""
        mapping = self.queries.get_mapping(name=name, department=DEPT_SALE, role_type=ROLE_VP)
        if mapping.empty:
            return None

        codes = mapping['project_code'].unique().tolist()
        first = mapping.iloc[0]
        rollup = rollup_person(
            {'name': name, 'position': first['position'], 'role_type': ROLE_VP, 'department': DEPT_SALE},
            mapping, self._load(project_codes=codes), self.grain,
        )

        team_mapping = self.queries.get_mapping(
            role_type=ROLE_MGR, project_codes=codes, departments=[DEPT_SALE, DEPT_MKT],
        )
        result = rollup.to_dict()
        result['team'] = {
            'salesManagers': managers_by_project(team_mapping, DEPT_SALE),
            'marketingManagers': managers_by_project(team_mapping, DEPT_MKT),
        }
        return result

    def employee_detail(self, name: str) -> Optional[Dict]:
        """MGR (sale or marketing) roll-up across every project they manage; None if unknown."""
        mapping = self.queries.get_mapping(name=name, role_type=ROLE_MGR)
        if mapping.empty:
            return None

        first = mapping.iloc[0]
        rollup = rollup_person(
            {'name': name, 'position': first['position'], 'role_type': ROLE_MGR,
             'department': first['department']},
            mapping, self._load(project_codes=mapping['project_code'].unique().tolist()), self.grain,
        )
        return rollup.to_dict()


# =============================================================================
# V1: Performance2025 (QUARTERLY)
# =============================================================================

class Sales2025Report(_SalesReportBase):
    """
    Quarterly sales / marketing reports from "Performance2025".

    Usage:
        report = Sales2025Report()
        rows = report.performance(SalesFilters(vp='Somchai', quarter='Q2'))
    """

    grain = GRAIN_QUARTER

    def _load(self, bud=None, project=None, project_codes=None) -> pd.DataFrame:
        return prepare_performance(self.queries.get_performance(
            bud=bud, project=project, project_codes=project_codes,
        ))

    def _project_list(self) -> pd.DataFrame:
        return self.queries.get_performance_projects()

    def _bud_list(self) -> List[str]:
        return self.queries.get_performance_buds()

    def performance(self, f: SalesFilters) -> List[Dict]:
        df = self._scoped(f)
        if df.empty:
            return []
        return to_records(df.sort_values(['bud', 'project_code', 'quarter']))

    def summary(self, f: SalesFilters) -> List[Dict]:
        """Per-quarter sales totals."""
        df = self._scoped(f)
        if df.empty:
            return []

        out = []
        for quarter, rows in df.groupby('quarter', sort=False):
            out.append({
                'quarter': quarter,
                'project_count': int(rows['project_code'].nunique()),
                'total_booking': float(rows['booking'].sum()),
                'total_livnex': float(rows['livnex'].sum()),
                'total_presale_target': float(rows['presale_target'].sum()),
                'total_presale_actual': float(rows['presale_actual'].sum()),
                'total_revenue_target': float(rows['revenue_target'].sum()),
                'total_revenue_actual': float(rows['revenue_actual'].sum()),
                'total_lead': float(rows['total_lead'].sum()),
                'total_quality_lead': float(rows['quality_lead'].sum()),
                'total_walk': float(rows['walk'].sum()),
                'total_book': float(rows['book'].sum()),
            })
        return sorted(out, key=lambda r: QUARTER_ORDER.index(r['quarter']) if r['quarter'] in QUARTER_ORDER else 99)

    def marketing_summary(self, f: SalesFilters) -> List[Dict]:
        """Per-quarter marketing totals; cost ratios are row averages."""
        df = ensure_metrics(self._scoped(f), ['cpl', 'cpql', 'mkt_pct_booking',
                                              'mkt_pct_presale_livnex', 'mkt_pct_revenue'])
        if df.empty:
            return []

        out = []
        for quarter, rows in df.groupby('quarter', sort=False):
            out.append({
                'quarter': quarter,
                'project_count': int(rows['project_code'].nunique()),
                'total_mkt_expense': float(rows['mkt_expense'].sum()),
                'total_lead': float(rows['total_lead'].sum()),
                'total_quality_lead': float(rows['quality_lead'].sum()),
                'total_walk': float(rows['walk'].sum()),
                'total_book': float(rows['book'].sum()),
                'total_booking': float(rows['booking'].sum()),
                'total_presale_target': float(rows['presale_target'].sum()),
                'total_presale_livnex': float(rows['presale_actual'].sum() + rows['livnex'].sum()),
                'total_revenue_target': float(rows['revenue_target'].sum()),
                'total_revenue': float(rows['revenue_actual'].sum()),
                'avg_cpl': float(rows['cpl'].mean()),
                'avg_cpql': float(rows['cpql'].mean()),
                'avg_mkt_pct_booking': float(rows['mkt_pct_booking'].mean()),
                'avg_mkt_pct_presale_livnex': float(rows['mkt_pct_presale_livnex'].mean()),
                'avg_mkt_pct_revenue': float(rows['mkt_pct_revenue'].mean()),
            })
        return sorted(out, key=lambda r: QUARTER_ORDER.index(r['quarter']) if r['quarter'] in QUARTER_ORDER else 99)

    def marketing_projects(self, f: SalesFilters) -> List[Dict]:
        df = self._scoped(f)
        if df.empty:
            return []

        df = df.copy()
        df['presale_livnex'] = df['presale_actual'] + df['livnex']
        df['revenue'] = df['revenue_actual']
        columns = [
            'project_code', 'project_name', 'bud', 'quarter',
            'mkt_expense', 'total_lead', 'quality_lead', 'booking', 'presale_livnex', 'revenue',
            'cpl', 'cpql', 'mkt_pct_booking', 'mkt_pct_presale_livnex', 'mkt_pct_revenue',
        ]
        df = ensure_metrics(df, ['cpl', 'cpql', 'mkt_pct_booking', 'mkt_pct_presale_livnex', 'mkt_pct_revenue'])
        return to_records(df[columns].sort_values(['quarter', 'project_code']))

    def team(self, project_code: str) -> List[Dict]:
        mapping = self.queries.get_mapping(project_codes=[project_code], departments=[DEPT_SALE, DEPT_MKT])
        return group_team(mapping, marketing_role=True)


# =============================================================================
# V2: sales_mkt (MONTHLY)
# =============================================================================

def _project_fields(rows: pd.DataFrame) -> Dict:
    first = rows.iloc[0]
    return {k: first.get(k) for k in ('project_code', 'project_name', 'bud', 'opm', 'segment', 'status')}


class Sales2025V2Report(_SalesReportBase):
    """
    Monthly sales / marketing reports from the wide sales_mkt table.

    presale actual is booking + contract + livnex in every response.
    """

    grain = GRAIN_MONTH

    def _load(self, bud=None, project=None, project_codes=None) -> pd.DataFrame:
        return ensure_metrics(melt_sales_mkt(self.queries.get_sales_mkt(
            bud=bud, project=project, project_codes=project_codes,
        )), V2_METRICS)

    def _project_list(self) -> pd.DataFrame:
        return self.queries.get_sales_mkt_projects()

    def _bud_list(self) -> List[str]:
        return self.queries.get_sales_mkt_buds()

    def _by_project(self, df: pd.DataFrame):
        for _, rows in df.groupby('project_code', sort=False):
            yield _project_fields(rows), sum_metrics(rows, V2_METRICS)

    def summary(self, f: SalesFilters) -> List[Dict]:
        """Twelve monthly total rows; months outside the filters are zero."""
        df = self._scoped(f)
        project_count = int(df['project_code'].nunique()) if not df.empty else 0

        out = []
        for month in MONTH_ORDER:
            t = sum_metrics(df[df['month'] == month] if not df.empty else df, V2_METRICS)
            out.append({
                'month': month,
                'projectCount': project_count,
                'presaleTarget': t['presaleTarget'],
                'livnexTarget': t['livnexTarget'],
                'booking': t['booking'],
                'livnex': t['livnex'],
                'contract': t['contract'],
                'cancel': t['cancel'],
                'revenueTarget': t['revenueTarget'],
                'revenue': t['revenueActual'],
                'mktExpense': t['mktExpense'],
                'totalLead': t['totalLead'],
                'qualityLead': t['qualityLead'],
                'leadWalk': t['walk'],
                'leadBook': t['book'],
            })
        return out

    def performance(self, f: SalesFilters) -> Dict:
        df = self._scoped(f)
        totals = sum_metrics(df, V2_METRICS)
        summary = {
            'presaleTarget': totals['presaleTarget'],
            'presaleActual': totals['presaleActual'],
            'revenueTarget': totals['revenueTarget'],
            'revenueActual': totals['revenueActual'],
            'mktExpense': totals['mktExpense'],
            'totalLead': totals['totalLead'],
            'qualityLead': totals['qualityLead'],
            'walk': totals['walk'],
            'book': totals['book'],
            'booking': totals['booking'],
            'contract': totals['contract'],
            'livnex': totals['livnex'],
        }

        projects = []
        for info, t in self._by_project(df) if not df.empty else []:
            projects.append({
                'project_code': info['project_code'],
                'project_name': info['project_name'],
                'bud': info['bud'],
                'segment': info['segment'],
                'presale_target': t['presaleTarget'],
                'presale_actual': t['presaleActual'],
                'booking': t['booking'],
                'contract': t['contract'],
                'livnex': t['livnex'],
                'revenue_target': t['revenueTarget'],
                'revenue_actual': t['revenueActual'],
                'mkt_expense': t['mktExpense'],
                'total_lead': t['totalLead'],
                'quality_lead': t['qualityLead'],
                'walk': t['walk'],
                'book': t['book'],
                'presale_achieve_pct': safe_ratio(t['presaleActual'], t['presaleTarget']),
                'revenue_achieve_pct': safe_ratio(t['revenueActual'], t['revenueTarget']),
            })

        by_quarter = {row['quarter']: row for row in period_totals(df, GRAIN_QUARTER, V2_METRICS)}
        chart_data = []
        for quarter in QUARTER_ORDER:
            t = by_quarter.get(quarter) or sum_metrics(df.iloc[0:0], V2_METRICS)
            chart_data.append({
                'quarter': quarter,
                'presale_target': t['presaleTarget'],
                'presale_actual': t['presaleActual'],
                'booking': t['booking'],
                'contract': t['contract'],
                'livnex': t['livnex'],
                'revenue_target': t['revenueTarget'],
                'revenue_actual': t['revenueActual'],
            })

        return {'summary': summary, 'projects': projects, 'chartData': chart_data}

    def marketing(self, f: SalesFilters) -> Dict:
        """Lead funnel, CPL / CPQL and marketing cost ratios."""
        df = self._scoped(f)
        totals = sum_metrics(df, V2_METRICS)

        summary = {
            'totalLead': totals['totalLead'],
            'qualityLead': totals['qualityLead'],
            'walk': totals['walk'],
            'book': totals['book'],
            'mktExpense': totals['mktExpense'],
            'booking': totals['booking'],
            'presaleActual': totals['presaleActual'],
            'revenue': totals['revenueActual'],
        }
        summary.update({
            'cpl': safe_ratio(summary['mktExpense'], summary['totalLead']),
            'cpql': safe_ratio(summary['mktExpense'], summary['qualityLead']),
            'leadToWalk': calc_percentage(summary['walk'], summary['qualityLead']),
            'walkToBook': calc_percentage(summary['book'], summary['walk']),
            'mktPctBooking': calc_percentage(summary['mktExpense'], summary['booking']),
            'mktPctPresale': calc_percentage(summary['mktExpense'], summary['presaleActual']),
            'mktPctRevenue': calc_percentage(summary['mktExpense'], summary['revenue']),
        })

        projects = []
        for info, t in self._by_project(df) if not df.empty else []:
            projects.append({
                'project_code': info['project_code'],
                'project_name': info['project_name'],
                'bud': info['bud'],
                'segment': info['segment'],
                'mkt_expense': t['mktExpense'],
                'total_lead': t['totalLead'],
                'quality_lead': t['qualityLead'],
                'walk': t['walk'],
                'book': t['book'],
                'cpl': safe_ratio(t['mktExpense'], t['totalLead']),
                'cpql': safe_ratio(t['mktExpense'], t['qualityLead']),
                'mkt_pct_booking': calc_percentage(t['mktExpense'], t['booking']),
                'mkt_pct_presale': calc_percentage(t['mktExpense'], t['presaleActual']),
                'mkt_pct_revenue': calc_percentage(t['mktExpense'], t['revenueActual']),
                'lead_to_walk': calc_percentage(t['walk'], t['qualityLead']),
                'walk_to_book': calc_percentage(t['book'], t['walk']),
            })

        funnel = [{'stage': stage, 'value': summary[key]} for stage, key in FUNNEL_STAGES]
        return {'summary': summary, 'projects': projects, 'funnelData': funnel}

    def projects(self, f: SalesFilters) -> List[Dict]:
        df = self._scoped(f)
        if df.empty:
            return []

        out = []
        for info, t in self._by_project(df.sort_values(['bud', 'project_code'])):
            out.append({
                'projectCode': info['project_code'],
                'projectName': info['project_name'],
                'bud': info['bud'],
                'opm': info['opm'],
                'segment': info['segment'],
                'status': info['status'],
                'presaleTarget': t['presaleTarget'],
                'livnexTarget': t['livnexTarget'],
                'presaleActual': t['presaleActual'],
                'booking': t['booking'],
                'contract': t['contract'],
                'livnex': t['livnex'],
                'revenueTarget': t['revenueTarget'],
                'revenue': t['revenueActual'],
                'mktExpense': t['mktExpense'],
                'totalLead': t['totalLead'],
                'qualityLead': t['qualityLead'],
                'leadWalk': t['walk'],
                'leadBook': t['book'],
                'presaleAchievePct': calc_percentage(t['presaleActual'], t['presaleTarget']),
                'livnexAchievePct': calc_percentage(t['livnex'], t['livnexTarget']),
                'revenueAchievePct': calc_percentage(t['revenueActual'], t['revenueTarget']),
            })
        return out

    def project_detail(self, project_code: str) -> Optional[Dict]:
        """Single project with monthly / quarterly breakdown and full team; None if unknown."""
        wide = self.queries.get_sales_mkt(project=project_code)
        if wide.empty:
            return None

        row = wide.iloc[0].to_dict()
        df = ensure_metrics(melt_sales_mkt(wide.iloc[[0]]), V2_METRICS)

        def _breakdown(t: Dict) -> Dict:
            return {
                'presaleTarget': t['presaleTarget'],
                'presaleActual': t['presaleActual'],
                'booking': t['booking'],
                'contract': t['contract'],
                'livnex': t['livnex'],
                'revenueTarget': t['revenueTarget'],
                'revenue': t['revenueActual'],
                'mktExpense': t['mktExpense'],
                'totalLead': t['totalLead'],
                'qualityLead': t['qualityLead'],
                'walk': t['walk'],
                'book': t['book'],
            }

        monthly = [
            {'month': month, **_breakdown(sum_metrics(df[df['month'] == month], V2_METRICS))}
            for month in MONTH_ORDER
        ]
        quarterly = [
            {'quarter': quarter, **_breakdown(sum_metrics(df[df['quarter'] == quarter], V2_METRICS))}
            for quarter in QUARTER_ORDER
        ]

        team_mapping = self.queries.get_mapping(project_codes=[project_code])
        return {
            'projectCode': row.get('projectcode'),
            'projectName': row.get('projectname'),
            'bud': row.get('bud'),
            'opm': row.get('opm'),
            'segment': row.get('segment'),
            'status': row.get('status'),
            'type': row.get('type'),
            **project_unit_info(row),
            'totals': _breakdown(sum_metrics(df, V2_METRICS)),
            'monthlyData': monthly,
            'quarterlyData': quarterly,
            'team': group_team(team_mapping, marketing_role=False),
        }
