# bi_portal/sales_2025/rollup.py
"""
Person / Role Roll-up Engine (VP / MGR performance)

Works on "long" metric frames with one row per (project, period):
- Performance2025 rows are already per (project_code, quarter)
- sales_mkt rows are melted to per (project_code, month) by melt_sales_mkt

Steps for one person:
1. Mapping rows (one per project per month) give the responsible months
2. Months -> responsible periods: month -> quarter for the quarterly grain,
   the month itself for the monthly grain
3. Metric rows are inner-joined on (project_code, period), so nothing
   outside the responsibility window is counted
4. Scoped rows are summed per quarter; the YTD grand total is the sum of
   the quarterly totals, so sum(quarterly actual) == YTD actual always

Ratios use 0 when the denominator is 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from ..helpers import (
    MONTH_ORDER, QUARTER_ORDER, month_to_quarter, sort_months, sort_quarters,
    safe_ratio, calc_percentage, to_records,
)
from .constants import (
    TOTAL_METRICS, METRIC_KEYS, PERFORMANCE_METRIC_ALIASES,
    DEPT_SALE, DEPT_MKT, ROLE_VP, ROLE_MGR, ROLE_MKT,
)

logger = logging.getLogger(__name__)

GRAIN_QUARTER = 'quarter'
GRAIN_MONTH = 'month'


# =============================================================================
# FRAME PREPARATION
# =============================================================================

def prepare_performance(perf_df: pd.DataFrame) -> pd.DataFrame:
    """Performance2025 rows with unified metric column names and numeric values."""
    df = perf_df.rename(columns=PERFORMANCE_METRIC_ALIASES)
    return ensure_metrics(df)


def ensure_metrics(df: pd.DataFrame, metrics: Iterable[str] = TOTAL_METRICS) -> pd.DataFrame:
    df = df.copy()
    for metric in metrics:
        if metric not in df.columns:
            df[metric] = 0.0
        df[metric] = pd.to_numeric(df[metric], errors='coerce').fillna(0.0)
    return df


# =============================================================================
# RESPONSIBILITY
# =============================================================================

def responsibility_pairs(mapping_df: pd.DataFrame, grain: str = GRAIN_QUARTER) -> pd.DataFrame:
    """Distinct (project_code, period) pairs a set of mapping rows covers."""
    if mapping_df is None or mapping_df.empty:
        return pd.DataFrame(columns=['project_code', grain])

    df = mapping_df[['project_code', 'month']].dropna().copy()
    if grain == GRAIN_QUARTER:
        df[grain] = df['month'].map(month_to_quarter)
    else:
        df[grain] = df['month'].where(df['month'].isin(MONTH_ORDER))
    return df.dropna(subset=[grain])[['project_code', grain]].drop_duplicates().reset_index(drop=True)


def restrict_to_responsibility(metrics_df: pd.DataFrame, pairs: pd.DataFrame,
                               grain: str = GRAIN_QUARTER) -> pd.DataFrame:
    """Metric rows whose (project_code, period) is in `pairs`."""
    if metrics_df is None or metrics_df.empty or pairs.empty:
        return metrics_df.iloc[0:0] if metrics_df is not None else pd.DataFrame()
    return metrics_df.merge(pairs, on=['project_code', grain], how='inner')


def scope_to_person(metrics_df: pd.DataFrame, mapping_df: pd.DataFrame,
                    grain: str = GRAIN_QUARTER) -> pd.DataFrame:
    return restrict_to_responsibility(metrics_df, responsibility_pairs(mapping_df, grain), grain)


# =============================================================================
# TOTALS / KPIS
# =============================================================================

def sum_metrics(df: pd.DataFrame, metrics: Iterable[str] = TOTAL_METRICS) -> Dict[str, float]:
    """Camel-cased sums of metric columns; missing columns sum to 0."""
    totals = {}
    for metric in metrics:
        key = METRIC_KEYS.get(metric, metric)
        if df is None or df.empty or metric not in df.columns:
            totals[key] = 0.0
        else:
            totals[key] = float(pd.to_numeric(df[metric], errors='coerce').fillna(0).sum())
    return totals


def add_totals(parts: Iterable[Dict[str, float]], metrics: Iterable[str] = TOTAL_METRICS) -> Dict[str, float]:
    keys = [METRIC_KEYS.get(m, m) for m in metrics]
    totals = {k: 0.0 for k in keys}
    for part in parts:
        for k in keys:
            totals[k] += part.get(k, 0.0)
    return totals


def period_totals(df: pd.DataFrame, by: str = GRAIN_QUARTER,
                  metrics: Iterable[str] = TOTAL_METRICS) -> List[Dict]:
    """Per-period metric sums in calendar order (only periods present in df)."""
    if df is None or df.empty:
        return []
    order = QUARTER_ORDER if by == GRAIN_QUARTER else MONTH_ORDER
    out = []
    for period in [p for p in order if p in set(df[by])]:
        out.append({by: period, **sum_metrics(df[df[by] == period], metrics)})
    return out


def compute_kpis(totals: Dict[str, float]) -> Dict[str, float]:
    """Derived ratios from camel-cased grand totals."""
    return {
        'presaleAchievePct': calc_percentage(totals.get('presaleActual', 0), totals.get('presaleTarget', 0)),
        'revenueAchievePct': calc_percentage(totals.get('revenueActual', 0), totals.get('revenueTarget', 0)),
        'avgCPL': safe_ratio(totals.get('mktExpense', 0), totals.get('totalLead', 0)),
        'avgCPQL': safe_ratio(totals.get('mktExpense', 0), totals.get('qualityLead', 0)),
        'leadToQLRatio': safe_ratio(totals.get('totalLead', 0), totals.get('qualityLead', 0)),
        'qlToWalkRatio': safe_ratio(totals.get('qualityLead', 0), totals.get('walk', 0)),
        'walkToBookRatio': safe_ratio(totals.get('walk', 0), totals.get('book', 0)),
        'mktPctBooking': calc_percentage(totals.get('mktExpense', 0), totals.get('booking', 0)),
    }


# =============================================================================
# MAPPING GROUPING
# =============================================================================

def group_projects(mapping_df: pd.DataFrame) -> List[Dict]:
    """Projects of one person with deduplicated, calendar-ordered months."""
    if mapping_df is None or mapping_df.empty:
        return []
    projects = []
    for code, rows in mapping_df.groupby('project_code', sort=True):
        months = sort_months(rows['month'].dropna())
        names = rows['project_name'].dropna()
        projects.append({
            'projectCode': code,
            'projectName': names.iloc[0] if not names.empty else None,
            'months': months,
            'responsibleQuarters': sort_quarters(q for q in map(month_to_quarter, months) if q),
        })
    return projects


def group_team(mapping_df: pd.DataFrame, marketing_role: bool = True) -> List[Dict]:
    """
    Team members of a project.

    marketing_role=True: Mkt VPs are skipped and Mkt managers get role 'MKT',
    keyed by role|name|position. Otherwise keyed by department|role|name.
    """
    if mapping_df is None or mapping_df.empty:
        return []

    team: Dict[Tuple, Dict] = {}
    for row in mapping_df.to_dict('records'):
        if marketing_role:
            if row['department'] == DEPT_MKT and row['role_type'] == ROLE_VP:
                continue
            role = ROLE_MKT if row['department'] == DEPT_MKT else row['role_type']
            key = (role, row['name'], row['position'])
            member = {'roleType': role, 'name': row['name'], 'position': row['position'], 'months': []}
        else:
            key = (row['department'], row['role_type'], row['name'])
            member = {'department': row['department'], 'roleType': row['role_type'],
                      'position': row['position'], 'name': row['name'], 'months': []}
        team.setdefault(key, member)['months'].append(row['month'])

    for member in team.values():
        member['months'] = sort_months(m for m in member['months'] if m)
    return list(team.values())


def managers_by_project(mapping_df: pd.DataFrame, department: str) -> List[Dict]:
    """MGRs of one department with the projects they cover."""
    if mapping_df is None or mapping_df.empty:
        return []
    df = mapping_df[(mapping_df['department'] == department) & (mapping_df['role_type'] == ROLE_MGR)]
    managers: Dict[str, Dict] = {}
    for row in df.drop_duplicates(['name', 'position', 'project_code']).sort_values('name').to_dict('records'):
        entry = managers.setdefault(row['name'], {'name': row['name'], 'position': row['position'], 'projects': []})
        entry['projects'].append({'projectCode': row['project_code'], 'projectName': row['project_name']})
    return list(managers.values())


# =============================================================================
# PERSON ROLL-UP
# =============================================================================

@dataclass
class PersonRollup:
    name: str
    position: Optional[str]
    role_type: str
    department: str
    projects: List[Dict] = field(default_factory=list)
    quarterly: List[Dict] = field(default_factory=list)
    grand_totals: Dict[str, float] = field(default_factory=dict)
    kpis: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'position': self.position,
            'roleType': self.role_type,
            'department': self.department,
            'projectCount': len(self.projects),
            'projects': self.projects,
            'grandTotals': self.grand_totals,
            'kpis': self.kpis,
            'quarterlyPerformance': self.quarterly,
        }


def rollup_person(person: Dict, person_mapping: pd.DataFrame, metrics_df: pd.DataFrame,
                  grain: str = GRAIN_QUARTER) -> PersonRollup:
    """
    Roll one person's responsible metric rows up to project, quarter and YTD.

    Args:
        person: {'name', 'position', 'role_type', 'department'}
        person_mapping: the person's mapping rows
        metrics_df: long metric rows covering at least the person's projects
        grain: GRAIN_QUARTER (Performance2025) or GRAIN_MONTH (sales_mkt)
    """
    scoped = scope_to_person(metrics_df, person_mapping, grain)

    projects = []
    for project in group_projects(person_mapping):
        rows = scoped[scoped['project_code'] == project['projectCode']] if not scoped.empty else scoped
        all_rows = metrics_df[metrics_df['project_code'] == project['projectCode']] if not metrics_df.empty else metrics_df
        totals = sum_metrics(rows)

        if grain == GRAIN_QUARTER:
            perf_cols = [c for c in ['quarter', 'bud'] + TOTAL_METRICS + ['cpl', 'cpql', 'mkt_pct_booking']
                         if c in rows.columns]
            performance = to_records(rows[perf_cols]) if not rows.empty else []
        else:
            performance = period_totals(rows, GRAIN_QUARTER)

        buds = all_rows['bud'].dropna() if 'bud' in all_rows.columns else pd.Series(dtype=object)
        projects.append({
            **project,
            'bud': buds.iloc[0] if not buds.empty else '',
            'performance': performance,
            'totals': totals,
            'presaleAchievePct': calc_percentage(totals['presaleActual'], totals['presaleTarget']),
            'revenueAchievePct': calc_percentage(totals['revenueActual'], totals['revenueTarget']),
        })

    quarterly = period_totals(scoped, GRAIN_QUARTER)
    grand_totals = add_totals(quarterly)

    return PersonRollup(
        name=person['name'],
        position=person.get('position'),
        role_type=person.get('role_type', ''),
        department=person.get('department', DEPT_SALE),
        projects=projects,
        quarterly=quarterly,
        grand_totals=grand_totals,
        kpis=compute_kpis(grand_totals),
    )


def summarize_employees(employees_df: pd.DataFrame, mapping_df: pd.DataFrame,
                        metrics_df: pd.DataFrame, grain: str = GRAIN_QUARTER,
                        marketing_fields: bool = False) -> Tuple[List[Dict], List[str]]:
    """
    Per-employee target/actual totals over their responsible periods.

    Employees are keyed by name + department across all of their mapping
    rows. Achievement values are ratios (actual / target), not percents.

    Returns:
        (employees, sorted distinct BUD list)
    """
    employees = []
    for emp in employees_df.to_dict('records') if employees_df is not None else []:
        department = emp.get('department') or DEPT_SALE
        rows = mapping_df[(mapping_df['name'] == emp['name']) & (mapping_df['department'] == department)] \
            if mapping_df is not None and not mapping_df.empty else pd.DataFrame(columns=['project_code', 'month'])

        pairs = responsibility_pairs(rows, grain)
        scoped = restrict_to_responsibility(metrics_df, pairs, grain)
        totals = sum_metrics(scoped)
        buds = sorted({b for b in scoped['bud'].dropna()}) if 'bud' in scoped.columns else []

        entry = {
            'name': emp['name'],
            'position': emp.get('position'),
            'roleType': emp.get('role_type'),
            'department': department,
            'buds': buds,
            'projectCount': int(pairs['project_code'].nunique()) if not pairs.empty else 0,
            'totalPresaleTarget': totals['presaleTarget'],
            'totalPresaleActual': totals['presaleActual'],
            'totalRevenueTarget': totals['revenueTarget'],
            'totalRevenueActual': totals['revenueActual'],
            'presaleAchievePct': safe_ratio(totals['presaleActual'], totals['presaleTarget']),
            'revenueAchievePct': safe_ratio(totals['revenueActual'], totals['revenueTarget']),
        }
        if marketing_fields:
            entry.update({
                'mktExpense': totals['mktExpense'],
                'totalBook': totals['book'],
                'cpb': safe_ratio(totals['mktExpense'], totals['book']),
            })
        employees.append(entry)

    bud_list = sorted({b for e in employees for b in e['buds']})
    return employees, bud_list
