# bi_portal/common_fee/charts.py
"""
Altair Chart Builders for Common Fee Reports

- Monthly billed / paid / outstanding bars with cumulative outstanding line
- Aging bucket bars
- Collection rate by project
"""

import logging
from typing import Dict, List

import altair as alt
import pandas as pd

from .constants import COLORS, BUCKET_COLORS, AGING_BUCKET_LABELS

logger = logging.getLogger(__name__)

CHART_HEIGHT = 350


class CommonFeeCharts:
    """Chart builders for the common fee dashboard."""

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
        """Grouped monthly bars plus the cumulative outstanding line."""
        if not trend:
            return CommonFeeCharts._empty_chart()

        df = pd.DataFrame(trend)
        month_sort = df['month'].tolist()

        bar_df = df.melt(
            id_vars=['month'],
            value_vars=['billed', 'paid', 'outstanding'],
            var_name='metric',
            value_name='amount',
        )

        color_scale = alt.Scale(
            domain=['billed', 'paid', 'outstanding'],
            range=[COLORS['billed'], COLORS['paid'], COLORS['outstanding']]
        )

        bars = alt.Chart(bar_df).mark_bar(
            cornerRadiusTopLeft=2,
            cornerRadiusTopRight=2
        ).encode(
            x=alt.X('month:N', sort=month_sort, title='Month', axis=alt.Axis(labelAngle=0)),
            y=alt.Y('amount:Q', title='Amount (THB)', axis=alt.Axis(format='~s')),
            color=alt.Color('metric:N', scale=color_scale, legend=alt.Legend(title='Metric', orient='bottom')),
            xOffset='metric:N',
            tooltip=[
                alt.Tooltip('month:N', title='Month'),
                alt.Tooltip('metric:N', title='Metric'),
                alt.Tooltip('amount:Q', title='Amount', format=',.0f'),
            ]
        )

        line = alt.Chart(df).mark_line(
            color=COLORS['cumulative'],
            strokeWidth=2,
            point=alt.OverlayMarkDef(color=COLORS['cumulative'], size=40)
        ).encode(
            x=alt.X('month:N', sort=month_sort),
            y=alt.Y('cumOutstanding:Q', title='Cumulative Outstanding', axis=alt.Axis(format='~s')),
            tooltip=[
                alt.Tooltip('month:N', title='Month'),
                alt.Tooltip('cumOutstanding:Q', title='Cumulative', format=',.0f'),
            ]
        )

        return alt.layer(bars, line).resolve_scale(y='independent').properties(
            width='container',
            height=CHART_HEIGHT
        )

    @staticmethod
    def build_aging_bucket_chart(summary: Dict) -> alt.Chart:
        """Bar per aging bucket from AgingSummary.to_dict()."""
        buckets = summary.get('buckets', {})
        if not buckets or not summary.get('total', {}).get('count'):
            return CommonFeeCharts._empty_chart("No aged invoices")

        df = pd.DataFrame([
            {'bucket': label, 'count': buckets[label]['count'], 'amount': buckets[label]['amount']}
            for label in AGING_BUCKET_LABELS
        ])

        color_scale = alt.Scale(
            domain=AGING_BUCKET_LABELS,
            range=[BUCKET_COLORS[label] for label in AGING_BUCKET_LABELS]
        )

        bars = alt.Chart(df).mark_bar().encode(
            x=alt.X('bucket:N', sort=AGING_BUCKET_LABELS, title='Days Overdue', axis=alt.Axis(labelAngle=0)),
            y=alt.Y('amount:Q', title='Amount (THB)', axis=alt.Axis(format='~s')),
            color=alt.Color('bucket:N', scale=color_scale, legend=None),
            tooltip=[
                alt.Tooltip('bucket:N', title='Bucket'),
                alt.Tooltip('count:Q', title='Invoices', format=','),
                alt.Tooltip('amount:Q', title='Amount', format=',.0f'),
            ]
        )

        labels = alt.Chart(df).mark_text(
            align='center',
            baseline='bottom',
            dy=-5,
            fontSize=10
        ).encode(
            x=alt.X('bucket:N', sort=AGING_BUCKET_LABELS),
            y=alt.Y('amount:Q'),
            text=alt.Text('count:Q', format=','),
            color=alt.value('#333333')
        )

        return (bars + labels).properties(width='container', height=300)

    @staticmethod
    def build_collection_rate_chart(projects: List[Dict], top_n: int = 15) -> alt.Chart:
        if not projects:
            return CommonFeeCharts._empty_chart()

        df = pd.DataFrame(projects[:top_n])[['name', 'collectionRate', 'totalAmount']]

        return alt.Chart(df).mark_bar(color=COLORS['paid']).encode(
            y=alt.Y('name:N', sort='-x', title=None),
            x=alt.X('collectionRate:Q', title='Collection Rate (%)', scale=alt.Scale(domain=[0, 100])),
            tooltip=[
                alt.Tooltip('name:N', title='Project'),
                alt.Tooltip('collectionRate:Q', title='Collection %'),
                alt.Tooltip('totalAmount:Q', title='Billed', format=',.0f'),
            ]
        ).properties(width='container', height=max(len(df) * 24, 120))
