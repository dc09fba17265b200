import pandas as pd
import pytest

from bi_portal.helpers import MONTH_ORDER
from bi_portal.sales_2025.rollup import (
    GRAIN_MONTH,
    GRAIN_QUARTER,
    compute_kpis,
    ensure_metrics,
    group_projects,
    group_team,
    managers_by_project,
    responsibility_pairs,
    rollup_person,
    scope_to_person,
    summarize_employees,
)
from bi_portal.sales_2025.sales_mkt import melt_sales_mkt, monthly_column, project_unit_info


@pytest.fixture
def long_rows(sales_mkt_wide):
    return ensure_metrics(melt_sales_mkt(sales_mkt_wide))


def test_monthly_column_names():
    assert monthly_column('booking', 'Feb') == 'book_feb_thb'
    assert monthly_column('mkt_expense', 'Dec') == 'mktexpense_dec'
    assert monthly_column('walk', 'Jan') == 'lead_walk_jan'


def test_melt_gives_one_row_per_project_month(long_rows):
    assert len(long_rows) == 24
    p1_jan = long_rows[(long_rows['project_code'] == 'P1') & (long_rows['month'] == 'Jan')].iloc[0]
    assert p1_jan['quarter'] == 'Q1'
    assert p1_jan['booking'] == 100.0
    assert p1_jan['presale_actual'] == 100.0
    assert p1_jan['mkt_expense'] == 1000.0

    p2 = long_rows[long_rows['project_code'] == 'P2']
    assert p2['mkt_expense'].sum() == 0.0
    assert p2['total_lead'].sum() == 0.0


def test_melt_empty_frame():
    df = melt_sales_mkt(pd.DataFrame())
    assert df.empty
    assert 'presale_actual' in df.columns


def test_project_unit_info_parses_text(sales_mkt_wide):
    info = project_unit_info(sales_mkt_wide.iloc[0].to_dict())
    assert info == {'avgSellingPrice': 5_000_000.0, 'totalUnits': 100.0, 'soldUnits': 40.0, 'remainingUnits': 60.0}


def test_responsibility_pairs_quarter_and_month(sales_mapping):
    bob = sales_mapping[sales_mapping['name'] == 'Bob']
    assert responsibility_pairs(bob, GRAIN_QUARTER).to_dict('records') == [{'project_code': 'P1', 'quarter': 'Q1'}]
    assert responsibility_pairs(bob, GRAIN_MONTH)['month'].tolist() == ['Jan', 'Feb', 'Mar']
    assert responsibility_pairs(pd.DataFrame(), GRAIN_MONTH).empty


def test_scope_only_counts_responsible_months(sales_mapping, long_rows):
    alice = sales_mapping[sales_mapping['name'] == 'Alice']
    scoped = scope_to_person(long_rows, alice, GRAIN_MONTH)
    p1 = scoped[scoped['project_code'] == 'P1']
    assert sorted(p1['month'], key=MONTH_ORDER.index) == MONTH_ORDER[:6]
    assert scoped['presale_actual'].sum() == 6 * 100 + 12 * 10


def test_rollup_quarterly_sums_equal_ytd(sales_mapping, long_rows):
    alice = sales_mapping[sales_mapping['name'] == 'Alice']
    rollup = rollup_person(
        {'name': 'Alice', 'position': 'VP Sale', 'role_type': 'VP', 'department': 'Sale'},
        alice, long_rows, GRAIN_MONTH,
    )

    quarterly = {q['quarter']: q['presaleActual'] for q in rollup.quarterly}
    assert quarterly == {'Q1': 330.0, 'Q2': 330.0, 'Q3': 30.0, 'Q4': 30.0}
    assert sum(quarterly.values()) == rollup.grand_totals['presaleActual'] == 720.0
    assert rollup.grand_totals['presaleTarget'] == 1440.0
    assert rollup.kpis['presaleAchievePct'] == 50.0

    data = rollup.to_dict()
    assert data['projectCount'] == 2
    p1 = next(p for p in data['projects'] if p['projectCode'] == 'P1')
    assert p1['months'] == MONTH_ORDER[:6]
    assert p1['responsibleQuarters'] == ['Q1', 'Q2']
    assert p1['totals']['presaleActual'] == 600.0
    assert p1['bud'] == 'BUD1'


def test_rollup_quarter_grain_on_performance_rows(sales_mapping, performance_rows):
    from bi_portal.sales_2025.rollup import prepare_performance

    bob = sales_mapping[sales_mapping['name'] == 'Bob']
    rollup = rollup_person({'name': 'Bob', 'role_type': 'MGR'}, bob, prepare_performance(performance_rows))
    assert [q['quarter'] for q in rollup.quarterly] == ['Q1']
    assert rollup.grand_totals['presaleActual'] == 300.0
    assert rollup.grand_totals['booking'] == 300.0
    assert rollup.projects[0]['performance'][0]['quarter'] == 'Q1'


def test_compute_kpis_zero_denominators():
    kpis = compute_kpis({})
    assert all(v == 0 for v in kpis.values())
    kpis = compute_kpis({'mktExpense': 1000.0, 'totalLead': 40.0, 'qualityLead': 20.0, 'booking': 10000.0})
    assert kpis['avgCPL'] == 25.0
    assert kpis['avgCPQL'] == 50.0
    assert kpis['mktPctBooking'] == 10.0


def test_group_projects_orders_months(sales_mapping):
    shuffled = sales_mapping[sales_mapping['name'] == 'Alice'].sample(frac=1, random_state=1)
    projects = group_projects(shuffled)
    assert [p['projectCode'] for p in projects] == ['P1', 'P2']
    assert projects[1]['months'] == MONTH_ORDER


def test_group_team_marketing_roles(sales_mapping):
    p1 = sales_mapping[sales_mapping['project_code'] == 'P1']

    team = group_team(p1, marketing_role=True)
    assert sorted(m['roleType'] for m in team) == ['MGR', 'MKT', 'VP']
    assert all(m['name'] != 'Dan' for m in team)

    full = group_team(p1, marketing_role=False)
    assert len(full) == 4
    dan = next(m for m in full if m['name'] == 'Dan')
    assert dan['department'] == 'Mkt'
    assert dan['months'] == ['Jan']


def test_managers_by_project(sales_mapping):
    sales = managers_by_project(sales_mapping, 'Sale')
    assert sales == [{'name': 'Bob', 'position': 'MGR Sale',
                      'projects': [{'projectCode': 'P1', 'projectName': 'Project One'}]}]
    assert [m['name'] for m in managers_by_project(sales_mapping, 'Mkt')] == ['Carol']


def test_summarize_employees_ratios_not_percent(sales_mapping, long_rows):
    employees_df = pd.DataFrame([
        {'name': 'Alice', 'position': 'VP Sale', 'role_type': 'VP', 'department': 'Sale'},
        {'name': 'Nobody', 'position': None, 'role_type': 'VP', 'department': 'Sale'},
    ])
    employees, buds = summarize_employees(employees_df, sales_mapping, long_rows, GRAIN_MONTH,
                                          marketing_fields=True)
    alice, nobody = employees
    assert alice['totalPresaleActual'] == 720.0
    assert alice['presaleAchievePct'] == 0.5
    assert alice['projectCount'] == 2
    assert alice['buds'] == ['BUD1', 'BUD2']
    assert alice['mktExpense'] == 6000.0
    assert alice['totalBook'] == 30.0
    assert alice['cpb'] == 200.0
    assert nobody['totalPresaleActual'] == 0.0
    assert nobody['presaleAchievePct'] == 0
    assert buds == ['BUD1', 'BUD2']
