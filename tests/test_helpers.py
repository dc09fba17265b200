from datetime import date, datetime, timezone

import numpy as np
import pandas as pd

from bi_portal import helpers
from bi_portal.config import config
from bi_portal.helpers import (
    SqlFilter,
    calc_percentage,
    coalesce_numeric,
    format_compact,
    format_currency,
    local_today,
    month_to_quarter,
    recent_periods,
    safe_numeric,
    safe_ratio,
    sort_months,
    thai_month_label,
    to_records,
)


def test_month_to_quarter():
    assert month_to_quarter('Jan') == 'Q1'
    assert month_to_quarter('Jun') == 'Q2'
    assert month_to_quarter('Sep') == 'Q3'
    assert month_to_quarter('Dec') == 'Q4'
    assert month_to_quarter('Foo') is None
    assert month_to_quarter(None) is None


def test_sort_months_dedupes_in_calendar_order():
    assert sort_months(['Mar', 'Jan', 'Dec', 'Jan', 'Feb']) == ['Jan', 'Feb', 'Mar', 'Dec']


def test_safe_numeric_text_kpis():
    assert safe_numeric('1,234.5') == 1234.5
    assert safe_numeric('-') == 0.0
    assert safe_numeric('') == 0.0
    assert safe_numeric(None) == 0.0
    assert safe_numeric('n/a', default=-1) == -1
    assert safe_numeric(float('nan')) == 0.0
    assert safe_numeric(7) == 7.0


def test_ratios_guard_zero_denominator():
    assert safe_ratio(10, 0) == 0
    assert safe_ratio(10, 4) == 2.5
    assert calc_percentage(1, 3, decimals=1) == 33.3
    assert calc_percentage(5, 0) == 0


def test_coalesce_numeric_sql():
    sql = coalesce_numeric('p.presale_target')
    assert sql.endswith('AS presale_target')
    assert "REPLACE(p.presale_target, ',', '')" in sql
    assert coalesce_numeric('p.lead_new_rem_walk', 'walk').endswith('AS walk')


def test_formatting():
    assert format_currency(1234.56) == '฿1,235'
    assert format_currency('-') == '฿0'
    assert format_compact(1_500_000) == '1.5M'
    assert format_compact(35_000) == '35.0K'
    assert format_compact(980) == '980'


def test_thai_month_label():
    assert thai_month_label('2025-03') == 'มี.ค. 2025'
    assert thai_month_label('2025-12', short_year=True) == 'ธ.ค. 25'


def test_recent_periods_crosses_year_boundary():
    periods = recent_periods(3, today=date(2025, 2, 10))
    assert [p['period'] for p in periods] == ['2025-02', '2025-01', '2024-12']
    assert periods[0]['display'] == 'Feb 2025'


class FixedClock(datetime):
    """20:00 UTC on 30 Jun 2025, already 1 Jul in Bangkok."""

    @classmethod
    def now(cls, tz=None):
        return datetime(2025, 6, 30, 20, 0, tzinfo=timezone.utc).astimezone(tz)


def test_local_today_follows_timezone_setting(monkeypatch):
    monkeypatch.setattr(helpers, 'datetime', FixedClock)

    monkeypatch.setitem(config._app_config, 'TIMEZONE', 'Asia/Bangkok')
    assert local_today() == date(2025, 7, 1)
    assert recent_periods(1)[0]['period'] == '2025-07'

    monkeypatch.setitem(config._app_config, 'TIMEZONE', 'UTC')
    assert local_today() == date(2025, 6, 30)


def test_sql_filter_accumulates_conditions_and_params():
    sf = SqlFilter().add("site_id = :site_id", site_id=3).add("status <> 'void'")
    assert sf.where() == "WHERE site_id = :site_id AND status <> 'void'"
    assert sf.params == {'site_id': 3}
    assert SqlFilter().where() == ""


def test_to_records_json_safe():
    df = pd.DataFrame({
        'n': [np.int64(3), np.int64(4)],
        'x': [1.5, float('nan')],
        'd': [pd.Timestamp('2025-01-31'), pd.NaT],
    })
    records = to_records(df)
    assert records[0] == {'n': 3, 'x': 1.5, 'd': '2025-01-31T00:00:00'}
    assert records[1]['x'] is None
    assert records[1]['d'] is None
    assert type(records[0]['n']) is int
    assert to_records(pd.DataFrame()) == []
