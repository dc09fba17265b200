from datetime import date

import pandas as pd
import pytest
from openpyxl import load_workbook

from bi_portal.common_fee import AgingExport, CommonFeeMetrics, CommonFeeReport, InvoiceFilters, build_invoice_filter
from bi_portal.common_fee.aging import bucketize
from bi_portal.common_fee.constants import AGING_SORT_FIELDS, AGING_DEFAULT_SORT, MAX_PAGE_SIZE
from bi_portal.common_fee.queries import CommonFeeQueries, resolve_sort
from bi_portal.common_fee.report import clamp_limit
from bi_portal.helpers import local_today

AS_OF = date(2025, 6, 30)


# ==================== FILTERS / SQL ====================

def test_invoice_filter_defaults_exclude_void_draft():
    sf = build_invoice_filter(InvoiceFilters())
    assert sf.where() == "WHERE i.status NOT IN ('void', 'draft', 'waiting_fix')"
    assert sf.params == {}


def test_invoice_filter_binds_parameters():
    f = InvoiceFilters(site_id=7, year=2024, status='overdue', project_type='condo',
                       expense_type='water', search="O'Brien")
    sf = build_invoice_filter(f, search=True)
    sql = sf.where()

    assert sf.params['site_id'] == 7
    assert sf.params['issued_from'] == date(2024, 1, 1)
    assert sf.params['issued_to'] == date(2025, 1, 1)
    assert sf.params['status'] == 'overdue'
    assert sf.params['expense_type'] == 'water'
    assert sf.params['search'] == "%O'Brien%"
    assert "O'Brien" not in sql
    assert "type_of_project = 'condominium'" in sql


def test_invoice_filter_status_all_and_unknown_expense_type_ignored():
    sf = build_invoice_filter(InvoiceFilters(status='all', expense_type='bogus'))
    assert 'status' not in sf.params
    assert 'expense_type' not in sf.params


def test_resolve_sort_whitelist():
    assert resolve_sort('amount', 'asc', AGING_SORT_FIELDS, AGING_DEFAULT_SORT) == ('amount', 'ASC')
    assert resolve_sort('1; DROP TABLE invoice', None, AGING_SORT_FIELDS, AGING_DEFAULT_SORT) == \
        ('days_overdue', 'DESC')


def test_clamp_limit():
    assert clamp_limit(None) == 50
    assert clamp_limit(0) == 50
    assert clamp_limit(10_000) == MAX_PAGE_SIZE
    assert clamp_limit(25) == 25


def test_target_year_defaults_to_current_year():
    assert InvoiceFilters().target_year == local_today().year
    assert InvoiceFilters(year=2023).target_year == 2023


# ==================== METRICS ====================

def test_kpi_cards_format_money_and_counts():
    cards = CommonFeeMetrics.build_kpi_cards(pd.DataFrame([{
        'total_billed': 1500.4, 'total_paid': 1000, 'total_outstanding': 500.4,
        'outstanding_units': 3, 'project_count': 2, 'unit_count': 40,
    }]))
    assert cards['totalBilled']['value'] == '฿1,500'
    assert cards['totalBilled']['rawValue'] == 1500.4
    assert cards['outstandingUnits']['value'] == '3'
    assert CommonFeeMetrics.build_kpi_cards(pd.DataFrame())['totalPaid']['rawValue'] == 0.0


def test_trend_has_twelve_months_with_running_totals():
    billed = pd.DataFrame([{'month_key': '2025-01', 'amount': 100}, {'month_key': '2025-03', 'amount': 50}])
    paid = pd.DataFrame([{'month_key': '2025-01', 'amount': 80}])
    overdue = pd.DataFrame([{'month_key': '2025-01', 'amount': 20}])
    cumulative = pd.DataFrame([{'month_key': '2024-11', 'amount': 5}, {'month_key': '2025-01', 'amount': 20}])

    trend = CommonFeeMetrics.build_trend(2025, billed, paid, overdue, cumulative)
    assert len(trend) == 12
    assert trend[0]['month'] == 'ม.ค. 2025'
    assert trend[0]['cumOutstanding'] == 25
    assert trend[2]['cumBilled'] == 150
    assert trend[11]['cumPaid'] == 80
    assert trend[11]['cumOutstandingYear'] == 20


def test_status_summary_total_excludes_draft():
    df = pd.DataFrame([
        {'status': 'paid', 'cnt': 5, 'unit_cnt': 5, 'amount': 500},
        {'status': 'partial_payment', 'cnt': 1, 'unit_cnt': 1, 'amount': 40},
        {'status': 'overdue', 'cnt': 2, 'unit_cnt': 1, 'amount': 200},
        {'status': 'draft', 'cnt': 9, 'unit_cnt': 9, 'amount': 900},
    ])
    summary = CommonFeeMetrics.build_status_summary(df, include_draft=True)
    assert summary['partial']['count'] == 1
    assert summary['draft']['count'] == 9
    assert summary['total'] == {'count': 8, 'unitCount': 7, 'amount': 740.0}


def test_overdue_breakdown_splits_years():
    df = pd.DataFrame([
        {'name': 'A', 'due_date': '2025-02-01', 'amount': 100},
        {'name': 'A', 'due_date': '2024-12-01', 'amount': 50},
        {'name': 'B', 'due_date': '2023-01-01', 'amount': 25},
    ])
    result = CommonFeeMetrics.build_overdue_breakdown(df, 2025)
    assert result['yearly'] == {'count': 1, 'unitCount': 1, 'amount': 100.0}
    assert result['cumulative'] == {'count': 2, 'unitCount': 2, 'amount': 75.0}
    assert result['totalUnitCount'] == 2


def test_pagination():
    assert CommonFeeMetrics.build_pagination(101, 50, 50) == \
        {'page': 2, 'pageSize': 50, 'totalPages': 3, 'totalItems': 101}
    assert CommonFeeMetrics.build_pagination(0, 50, 0)['totalPages'] == 0


def test_invoice_items_paid_flags():
    items = CommonFeeMetrics.build_invoice_items(9, pd.DataFrame([
        {'id': 1, 'description': 'ค่าส่วนกลาง', 'total': 100, 'paid': 100},
        {'id': 2, 'description': 'ค่าน้ำประปา', 'total': 50, 'paid': 20},
        {'id': 3, 'description': 'เงินเพิ่ม', 'total': 10, 'paid': 0},
    ]))
    assert [i['isPaid'] for i in items['items']] == [True, False, False]
    assert [i['isPartial'] for i in items['items']] == [False, True, False]
    assert items['invoiceRemaining'] == 40.0


def test_expense_summary_drops_empty_and_sorts_by_amount():
    data = CommonFeeMetrics.build_expense_summary(pd.DataFrame([
        {'expense_type': 'water', 'count': 3, 'amount': 90},
        {'expense_type': 'common_fee', 'count': 10, 'amount': 1000},
        {'expense_type': 'fine', 'count': 0, 'amount': 0},
    ]))
    assert [d['id'] for d in data] == ['common_fee', 'water']
    assert data[0]['name'] == 'ค่าส่วนกลาง'


def test_project_collection_age_and_rate():
    projects = CommonFeeMetrics.build_project_collection(
        2025, [2023, 2024, 2025],
        pd.DataFrame([
            {'site_id': 1, 'project_name': 'Condo A', 'type_of_project': 'condominium',
             'total_amount': 1000, 'paid_amount': 760, 'overdue_amount': 100, 'total_units': 10},
            {'site_id': 2, 'project_name': 'Village B', 'type_of_project': None,
             'total_amount': 5000, 'paid_amount': 0, 'overdue_amount': 0, 'total_units': 50},
        ]),
        pd.DataFrame([{'site_id': 1, 'first_invoice_date': '2022-03-15'}]),
        pd.DataFrame([{'site_id': 1, 'year': 2024, 'total_amount': 400, 'paid_amount': 300, 'overdue_amount': 0}]),
        None,
        AS_OF,
    )
    assert [p['siteId'] for p in projects] == [2, 1]
    condo = projects[1]
    assert condo['isCondo'] is True
    assert condo['collectionRate'] == 76
    assert (condo['ageYears'], condo['ageMonths']) == (3, 3)
    assert condo['yearlyBreakdown']['2024']['paidAmount'] == 300
    assert condo['yearlyBreakdown']['2023'] == {'totalAmount': 0.0, 'paidAmount': 0.0, 'overdueAmount': 0.0}
    assert projects[0]['ageYears'] is None


# ==================== REPORT ====================

class StubAgingQueries:
    def __init__(self):
        self.page_calls = []

    def get_aging_bucket_summary(self, f, as_of):
        return pd.DataFrame([
            {'bucket': '0-30', 'cnt': 2, 'amount': 300},
            {'bucket': '360+', 'cnt': 1, 'amount': 50},
        ]), 2

    def get_aging_page(self, f, as_of, bucket=None, limit=50, offset=0, sort_by=None, sort_order=None):
        self.page_calls.append({'bucket': bucket, 'limit': limit, 'offset': offset})
        rows = pd.DataFrame([{
            'id': 1, 'doc_number': 'INV-1', 'unit': 'A-1', 'owner': ' Somchai ', 'project': 'Condo A',
            'site_id': 1, 'amount': 150, 'due_date': '2025-06-20', 'days_overdue': 10, 'bucket': '0-30',
        }])
        return rows, 3


def test_aging_report_summary_and_page():
    queries = StubAgingQueries()
    result = CommonFeeReport(queries).aging(InvoiceFilters(), limit=5000, offset=-3, as_of=AS_OF)

    assert result['asOf'] == '2025-06-30'
    assert result['summary']['total'] == {'count': 3, 'amount': 350.0}
    assert result['summary']['uniqueUnits'] == 2
    assert result['invoices'][0]['owner'] == 'Somchai'
    assert result['invoices'][0]['daysOverdue'] == 10
    assert result['pagination'] == {'total': 3, 'limit': MAX_PAGE_SIZE, 'offset': 0}


def test_aging_report_rejects_unknown_bucket():
    with pytest.raises(ValueError):
        CommonFeeReport(StubAgingQueries()).aging(InvoiceFilters(), bucket='7-14')


def test_aging_export_rows_are_unpaginated():
    queries = StubAgingQueries()
    rows, summary = CommonFeeReport(queries).aging_export_rows(InvoiceFilters(), bucket='0-30', as_of=AS_OF)
    assert queries.page_calls[-1] == {'bucket': '0-30', 'limit': None, 'offset': 0}
    assert summary.total_count == 3


def test_aging_export_workbook():
    invoices = pd.DataFrame([
        {'doc_number': 'INV-1', 'unit': 'A-1', 'owner': 'Somchai', 'project': 'Condo A',
         'amount': 150.0, 'due_date': pd.Timestamp('2025-05-26'), 'days_overdue': 35, 'bucket': '31-60'},
    ])
    summary = bucketize(pd.DataFrame([
        {'status': 'overdue', 'due_date': '2025-05-26', 'amount': 150.0, 'name': 'A-1'},
    ]), AS_OF)

    output = AgingExport().create_report(invoices, summary, AS_OF, {'site_id': 3, 'search': None})
    wb = load_workbook(output)

    assert wb.sheetnames == ['Summary', 'Invoices']
    ws = wb['Invoices']
    assert ws['A1'].value == 'Doc Number'
    assert ws['A2'].value == 'INV-1'
    assert ws['G2'].value == 35
    assert wb['Summary']['A2'].value == 'As of 2025-06-30'


# ==================== AGING SQL ====================

class RecordingQueries(CommonFeeQueries):
    def __init__(self):
        super().__init__(engine=object())
        self.sql = {}

    def _execute_query(self, query, params=None, query_name="query"):
        self.sql[query_name] = ' '.join(query.split())
        if query_name == 'get_aging_unique_units':
            return pd.DataFrame([{'unique_units': 0}])
        if query_name == 'get_aging_count':
            return pd.DataFrame([{'count': 0}])
        return pd.DataFrame()


def _from_clause(sql):
    return sql[sql.index(' FROM '):sql.index(' WHERE ')]


def test_aging_count_and_bucket_summary_share_from_clause():
    queries = RecordingQueries()
    queries.get_aging_bucket_summary(InvoiceFilters(), AS_OF)
    queries.get_aging_page(InvoiceFilters(), AS_OF)

    count_from = _from_clause(queries.sql['get_aging_count'])
    assert count_from == _from_clause(queries.sql['get_aging_bucket_summary'])
    assert 'silverman.project' not in count_from


def test_aging_page_joins_at_most_one_project_per_site():
    queries = RecordingQueries()
    queries.get_aging_page(InvoiceFilters(), AS_OF, sort_by='project')
    sql = queries.sql['get_aging_page']
    assert 'LEFT JOIN LATERAL' in sql
    assert 'LIMIT 1 ) p ON TRUE' in sql
    assert 'JOIN silverman.project p ON' not in sql
