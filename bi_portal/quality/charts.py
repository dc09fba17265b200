# bi_portal/quality/charts.py
"""
Altair Chart Builders for Quality Reports

- Monthly opened / completed job trend
- Open-job aging bars
- Jobs per category group (group colors)
"""

import logging
from typing import Dict, List

import altair as alt
import pandas as pd

from .constants import OPEN_JOB_AGING

logger = logging.getLogger(__name__)

CHART_HEIGHT = 320

AGING_LABELS = {
    'days0to7': '0-7 วัน',
    'days8to14': '8-14 วัน',
    'days15to30': '15-30 วัน',
    'daysOver30': '>30 วัน',
}
AGING_COLORS = ['#22c55e', '#eab308', '#f97316', '#ef4444']


class QualityCharts:
    """Chart builders for the quality dashboard."""

    @staticmethod
    def _empty_chart(message: str = "No data") -> alt.Chart:
        return alt.Chart(pd.DataFrame({'text': [message]})).mark_text(
            fontSize=14,
            color='gray'
        ).encode(
            text='text:N'
        ).properties(
            width=400,
            height=200
        )

    @staticmethod
    def build_trend_chart(trend: List[Dict]) -> alt.Chart:
        if not trend:
            return QualityCharts._empty_chart()

        df = pd.DataFrame(trend)
        month_sort = df['month'].tolist()
        series = [c for c in ('total', 'completed', 'openJobs') if c in df.columns]
        long_df = df.melt(id_vars=['month'], value_vars=series, var_name='series', value_name='jobs')

        return alt.Chart(long_df).mark_line(point=True).encode(
            x=alt.X('month:N', sort=month_sort, title=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y('jobs:Q', title='Jobs'),
            color=alt.Color('series:N', legend=alt.Legend(title=None, orient='bottom')),
            tooltip=[
                alt.Tooltip('month:N', title='Month'),
                alt.Tooltip('series:N', title='Series'),
                alt.Tooltip('jobs:Q', title='Jobs', format=','),
            ]
        ).properties(width='container', height=CHART_HEIGHT)

    @staticmethod
    def build_aging_chart(aging: Dict[str, int]) -> alt.Chart:
        """Open jobs per age window, from QualityMetrics.build_kpis()['aging']."""
        if not aging or not any(aging.values()):
            return QualityCharts._empty_chart("No open jobs")

        keys = [key for key, _, _ in OPEN_JOB_AGING]
        labels = [AGING_LABELS[k] for k in keys]
        df = pd.DataFrame({'window': labels, 'jobs': [aging.get(k, 0) for k in keys]})

        return alt.Chart(df).mark_bar().encode(
            x=alt.X('window:N', sort=labels, title=None, axis=alt.Axis(labelAngle=0)),
            y=alt.Y('jobs:Q', title='Open jobs'),
            color=alt.Color('window:N', scale=alt.Scale(domain=labels, range=AGING_COLORS), legend=None),
            tooltip=[alt.Tooltip('window:N', title='Age'), alt.Tooltip('jobs:Q', title='Jobs', format=',')]
        ).properties(width='container', height=CHART_HEIGHT)

    @staticmethod
    def build_category_chart(groups: List[Dict], value_col: str = 'totalJobs') -> alt.Chart:
        if not groups:
            return QualityCharts._empty_chart()

        df = pd.DataFrame(groups)
        order = df['category'].tolist()

        return alt.Chart(df).mark_bar().encode(
            y=alt.Y('category:N', sort=order, title=None),
            x=alt.X(f'{value_col}:Q', title='Jobs'),
            color=alt.Color('category:N', scale=alt.Scale(domain=order, range=df['color'].tolist()),
                            legend=None),
            tooltip=[
                alt.Tooltip('category:N', title='Category'),
                alt.Tooltip('totalJobs:Q', title='Total', format=','),
                alt.Tooltip('openJobs:Q', title='Open', format=','),
            ]
        ).properties(width='container', height=max(len(df) * 24, 120))
