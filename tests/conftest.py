"""
Shared fixtures: in-memory stand-ins for the query classes.

The fakes filter pandas frames the way the SQL in the real query classes
filters rows, so report assembly can be tested without PostgreSQL.
"""

import pandas as pd
import pytest

from bi_portal.helpers import MONTH_ORDER
from bi_portal.sales_2025.constants import SALES_MKT_MONTHLY, DEPT_SALE, DEPT_MKT, ROLE_VP, ROLE_MGR
from bi_portal.sales_2025.sales_mkt import monthly_column


MAPPING_COLUMNS = ['project_code', 'project_name', 'department', 'role_type', 'position', 'name', 'month']


def wide_sales_mkt_row(code, name, bud, booking='0', presale_target='0', revenue='0',
                       mkt_expense='0', total_lead='0', quality_lead='0', walk='0', book='0'):
    """One sales_mkt row with the same text value for every month."""
    row = {
        'projectcode': code, 'projectname': name, 'bud': bud,
        'opm': 'OPM', 'segment': 'SDH', 'status': 'Active', 'type': 'Lowrise',
        'totalunits': '100', 'soldunits_apr25': '40', 'remainingunits': '60',
        'avgsellingprice_baht_unit': '5,000,000',
    }
    values = {
        'booking': booking, 'presale_target': presale_target, 'revenue_actual': revenue,
        'mkt_expense': mkt_expense, 'total_lead': total_lead, 'quality_lead': quality_lead,
        'walk': walk, 'book': book,
    }
    for metric in SALES_MKT_MONTHLY:
        for month in MONTH_ORDER:
            row[monthly_column(metric, month)] = values.get(metric, '-')
    return row


def mapping_rows(code, name, department, role_type, person, months, position=None):
    return [
        {'project_code': code, 'project_name': name, 'department': department, 'role_type': role_type,
         'position': position or f"{role_type} {department}", 'name': person, 'month': m}
        for m in months
    ]


class FakeSalesQueries:
    """SalesQueries over in-memory frames."""

    def __init__(self, mapping: pd.DataFrame, sales_mkt: pd.DataFrame, performance: pd.DataFrame = None):
        self.mapping = mapping
        self.sales_mkt = sales_mkt
        self.performance = performance if performance is not None else pd.DataFrame()

    def get_people(self, department=DEPT_SALE, role_type=ROLE_VP):
        df = self.mapping[(self.mapping['department'] == department) & (self.mapping['role_type'] == role_type)]
        return df[['name', 'position']].drop_duplicates().sort_values('name').reset_index(drop=True)

    def get_employees(self, all_roles=False, department=DEPT_SALE, role_type=ROLE_VP):
        df = self.mapping
        if all_roles:
            df = df[self._rollup_roles(df)]
        else:
            df = df[(df['department'] == department) & (df['role_type'] == role_type)]
        return df[['name', 'position', 'role_type', 'department']].drop_duplicates().reset_index(drop=True)

    @staticmethod
    def _rollup_roles(df):
        return (((df['department'] == DEPT_SALE) & df['role_type'].isin([ROLE_VP, ROLE_MGR]))
                | ((df['department'] == DEPT_MKT) & (df['role_type'] == ROLE_MGR)))

    def get_mapping(self, name=None, department=None, role_type=None, project_codes=None,
                    departments=None, rollup_roles_only=False):
        df = self.mapping
        if name is not None:
            df = df[df['name'] == name]
        if department is not None:
            df = df[df['department'] == department]
        if departments:
            df = df[df['department'].isin(departments)]
        if role_type is not None:
            df = df[df['role_type'] == role_type]
        if project_codes is not None:
            df = df[df['project_code'].isin(list(project_codes))]
        if rollup_roles_only:
            df = df[self._rollup_roles(df)]
        return df.reset_index(drop=True)

    def get_sales_mkt(self, bud=None, project=None, project_codes=None):
        df = self.sales_mkt
        if bud:
            df = df[df['bud'] == bud]
        if project:
            df = df[df['projectcode'] == project]
        if project_codes is not None:
            df = df[df['projectcode'].isin(list(project_codes))]
        return df.reset_index(drop=True)

    def get_sales_mkt_projects(self):
        df = self.sales_mkt[['projectcode', 'projectname', 'bud']]
        return df.rename(columns={'projectcode': 'project_code', 'projectname': 'project_name'})

    def get_sales_mkt_buds(self):
        return sorted(self.sales_mkt['bud'].dropna().unique().tolist())

    def get_performance(self, bud=None, quarter=None, project=None, project_codes=None):
        df = self.performance
        if bud:
            df = df[df['bud'] == bud]
        if quarter:
            df = df[df['quarter'] == quarter]
        if project:
            df = df[df['project_code'] == project]
        if project_codes is not None:
            df = df[df['project_code'].isin(list(project_codes))]
        return df.reset_index(drop=True)

    def get_performance_projects(self):
        return self.performance[['project_code', 'project_name', 'bud']].drop_duplicates()

    def get_performance_buds(self):
        return sorted(self.performance['bud'].dropna().unique().tolist())


@pytest.fixture
def sales_mapping():
    """
    Alice (Sale VP):  P1 Jan-Jun, P2 all year
    Bob (Sale MGR):   P1 Jan-Mar
    Carol (Mkt MGR):  P1 all year
    Dan (Mkt VP):     P1 Jan
    """
    rows = (
        mapping_rows('P1', 'Project One', DEPT_SALE, ROLE_VP, 'Alice', MONTH_ORDER[:6])
        + mapping_rows('P2', 'Project Two', DEPT_SALE, ROLE_VP, 'Alice', MONTH_ORDER)
        + mapping_rows('P1', 'Project One', DEPT_SALE, ROLE_MGR, 'Bob', MONTH_ORDER[:3])
        + mapping_rows('P1', 'Project One', DEPT_MKT, ROLE_MGR, 'Carol', MONTH_ORDER)
        + mapping_rows('P1', 'Project One', DEPT_MKT, ROLE_VP, 'Dan', ['Jan'])
    )
    return pd.DataFrame(rows, columns=MAPPING_COLUMNS)


@pytest.fixture
def sales_mkt_wide():
    """P1: booking 100 / target 200 per month. P2: booking 10 / target 20 per month."""
    return pd.DataFrame([
        wide_sales_mkt_row('P1', 'Project One', 'BUD1', booking='100', presale_target='200',
                           revenue='50', mkt_expense='1,000', total_lead='40', quality_lead='20',
                           walk='10', book='5'),
        wide_sales_mkt_row('P2', 'Project Two', 'BUD2', booking='10', presale_target='20',
                           revenue='5', mkt_expense='-', total_lead='', quality_lead='0'),
    ])


@pytest.fixture
def performance_rows():
    """Performance2025 rows after the SQL coalesce: P1 and P2, Q1-Q4."""
    rows = []
    for code, name, bud, base in (('P1', 'Project One', 'BUD1', 300.0), ('P2', 'Project Two', 'BUD2', 30.0)):
        for quarter in ['Q1', 'Q2', 'Q3', 'Q4']:
            rows.append({
                'bud': bud, 'opm': 'OPM', 'project_code': code, 'project_name': name, 'quarter': quarter,
                'booking_actual': base, 'livnex_actual': 0.0,
                'presale_target': base * 2, 'presale_actual': base,
                'revenue_target': base, 'revenue_actual': base / 2,
                'mkt_expense_actual': 100.0, 'total_lead': 10.0, 'quality_lead': 5.0,
                'walk': 2.0, 'book': 1.0, 'cpl': 10.0, 'cpql': 20.0,
                'mkt_pct_booking': 1.0, 'mkt_pct_presale_livnex': 1.0, 'mkt_pct_revenue': 2.0,
            })
    return pd.DataFrame(rows)


@pytest.fixture
def fake_sales_queries(sales_mapping, sales_mkt_wide, performance_rows):
    return FakeSalesQueries(sales_mapping, sales_mkt_wide, performance_rows)
