from datetime import date

import pandas as pd
import pytest

from bi_portal.common_fee import aging
from bi_portal.common_fee.aging import (
    AGING_BUCKETS,
    bucket_case_sql,
    bucket_filter_sql,
    bucket_for_days,
    bucketize,
    classify_invoice,
    days_overdue,
    is_valid_bucket,
    summary_from_rows,
)
from bi_portal.common_fee.constants import AGING_BUCKET_LABELS

AS_OF = date(2025, 6, 30)


@pytest.mark.parametrize('days, label', [
    (0, '0-30'),
    (30, '0-30'),
    (31, '31-60'),
    (35, '31-60'),
    (60, '31-60'),
    (61, '61-90'),
    (91, '91-180'),
    (180, '91-180'),
    (181, '181-360'),
    (360, '181-360'),
    (361, '360+'),
    (5000, '360+'),
])
def test_bucket_boundaries(days, label):
    assert bucket_for_days(days) == label


def test_every_day_count_falls_in_exactly_one_bucket():
    for days in range(0, 800):
        assert sum(b.contains(days) for b in AGING_BUCKETS) == 1


def test_not_yet_due_or_missing_due_date_does_not_age():
    assert bucket_for_days(-1) is None
    assert bucket_for_days(None) is None
    assert days_overdue(None, AS_OF) is None


def test_due_today_is_day_zero():
    assert days_overdue(AS_OF, AS_OF) == 0
    assert classify_invoice('active', AS_OF, AS_OF) == '0-30'


def test_days_overdue_accepts_strings_and_timestamps():
    assert days_overdue('2025-05-26', AS_OF) == 35
    assert days_overdue(pd.Timestamp('2025-05-26 13:00'), AS_OF) == 35
    assert classify_invoice('overdue', '2025-05-26', AS_OF) == '31-60'


@pytest.mark.parametrize('status', ['paid', 'void', 'draft', 'waiting_fix'])
def test_only_unpaid_statuses_age(status):
    assert classify_invoice(status, '2024-01-01', AS_OF) is None


def test_bucketize_totals_are_bucket_sums():
    invoices = pd.DataFrame([
        {'status': 'active', 'due_date': '2025-06-30', 'amount': 100.0, 'name': 'A-1'},
        {'status': 'overdue', 'due_date': '2025-05-26', 'amount': 200.0, 'name': 'A-1'},
        {'status': 'partial_payment', 'due_date': '2024-01-01', 'amount': 300.0, 'name': 'B-2'},
        {'status': 'paid', 'due_date': '2024-01-01', 'amount': 999.0, 'name': 'C-3'},
        {'status': 'active', 'due_date': '2025-07-15', 'amount': 50.0, 'name': 'D-4'},
        {'status': 'active', 'due_date': None, 'amount': 70.0, 'name': 'E-5'},
    ])
    summary = bucketize(invoices, AS_OF)

    assert summary.buckets['0-30'].count == 1
    assert summary.buckets['31-60'].amount == 200.0
    assert summary.buckets['360+'].count == 1
    assert summary.total_count == 3
    assert summary.total_amount == 600.0
    assert summary.total_count == sum(b.count for b in summary.buckets.values())
    assert summary.unique_units == 2

    data = summary.to_dict()
    assert list(data['buckets']) == AGING_BUCKET_LABELS
    assert data['total'] == {'count': 3, 'amount': 600.0}


def test_bucketize_empty_frame():
    summary = bucketize(pd.DataFrame(), AS_OF)
    assert summary.total_count == 0
    assert summary.total_amount == 0


def test_summary_from_rows_ignores_unknown_buckets():
    summary = summary_from_rows([
        {'bucket': '0-30', 'cnt': 2, 'amount': 150},
        {'bucket': '360+', 'cnt': 1, 'amount': None},
        {'bucket': 'bogus', 'cnt': 9, 'amount': 9},
    ], unique_units=2)
    assert summary.total_count == 3
    assert summary.total_amount == 150.0
    assert summary.unique_units == 2


def test_bucket_sql():
    case_sql = bucket_case_sql('d')
    assert case_sql.startswith('CASE WHEN d BETWEEN 0 AND 30')
    assert "WHEN d >= 361 THEN '360+'" in case_sql
    assert bucket_filter_sql('31-60', 'd') == 'd BETWEEN 31 AND 60'
    with pytest.raises(ValueError):
        bucket_filter_sql('1-2', 'd')
    assert is_valid_bucket('91-180')
    assert not is_valid_bucket(None)


def test_bucketize_defaults_to_local_today(monkeypatch):
    monkeypatch.setattr(aging, 'local_today', lambda: date(2025, 7, 1))
    invoices = pd.DataFrame([{'status': 'active', 'due_date': '2025-06-30', 'amount': 10.0}])
    summary = bucketize(invoices)
    assert summary.buckets['0-30'].count == 1
