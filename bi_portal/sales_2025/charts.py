# bi_portal/sales_2025/charts.py
"""
Chart Builders for Sales 2025 Reports

- Target vs actual bars per quarter (Altair)
- Top projects by achievement (Altair)
- Lead funnel (Plotly)
"""

import logging
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import plotly.graph_objects as go

from .constants import COLORS, FUNNEL_COLORS

logger = logging.getLogger(__name__)

CHART_HEIGHT = 320


def _plotly_layout_defaults(fig, height: int = 380) -> go.Figure:
    fig.update_layout(
        height=height,
        margin=dict(l=20, r=20, t=40, b=20),
        font=dict(size=11),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        hoverlabel=dict(bgcolor="white"),
    )
    return fig


class SalesCharts:
    """
    Usage:
        chart = SalesCharts.build_target_actual_chart(quarterly, 'presale')
        st.altair_chart(chart, use_container_width=True)
    """

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
    def build_target_actual_chart(quarterly: List[Dict], metric: str = 'presale') -> alt.Chart:
        """
        Grouped target / actual bars per quarter.

        Args:
            quarterly: rows with 'quarter', '<metric>Target', '<metric>Actual'
            metric: 'presale' or 'revenue'
        """
        if not quarterly:
            return SalesCharts._empty_chart()

        df = pd.DataFrame(quarterly)
        target_col, actual_col = f'{metric}Target', f'{metric}Actual'
        if target_col not in df.columns or actual_col not in df.columns:
            logger.warning(f"⚠️ Missing {metric} columns for target/actual chart")
            return SalesCharts._empty_chart()

        long_df = df[['quarter', target_col, actual_col]].rename(
            columns={target_col: 'Target', actual_col: 'Actual'}
        ).melt(id_vars=['quarter'], var_name='type', value_name='amount')

        color_scale = alt.Scale(
            domain=['Target', 'Actual'],
            range=[COLORS['target'], COLORS.get(metric, COLORS['presale'])]
        )

        return alt.Chart(long_df).mark_bar(
            cornerRadiusTopLeft=2,
            cornerRadiusTopRight=2
        ).encode(
            x=alt.X('quarter:N', title='Quarter', axis=alt.Axis(labelAngle=0)),
            y=alt.Y('amount:Q', title='Amount (THB)', axis=alt.Axis(format='~s')),
            color=alt.Color('type:N', scale=color_scale, legend=alt.Legend(title=None, orient='bottom')),
            xOffset='type:N',
            tooltip=[
                alt.Tooltip('quarter:N', title='Quarter'),
                alt.Tooltip('type:N', title='Type'),
                alt.Tooltip('amount:Q', title='Amount', format=',.0f'),
            ]
        ).properties(width='container', height=CHART_HEIGHT)

    @staticmethod
    def build_top_projects_chart(projects: List[Dict], value_col: str = 'presaleAchievePct',
                                 label_col: str = 'projectName', top_n: int = 10) -> alt.Chart:
        if not projects:
            return SalesCharts._empty_chart()

        df = pd.DataFrame(projects)
        if value_col not in df.columns or label_col not in df.columns:
            return SalesCharts._empty_chart()
        df = df.nlargest(top_n, value_col)

        return alt.Chart(df).mark_bar(color=COLORS['presale']).encode(
            y=alt.Y(f'{label_col}:N', sort='-x', title=None),
            x=alt.X(f'{value_col}:Q', title='Achievement (%)'),
            tooltip=[
                alt.Tooltip(f'{label_col}:N', title='Project'),
                alt.Tooltip(f'{value_col}:Q', title='Achievement', format='.1f'),
            ]
        ).properties(width='container', height=max(len(df) * 26, 120))

    @staticmethod
    def build_funnel_chart(funnel: List[Dict]) -> Optional[go.Figure]:
        """Lead funnel from [{'stage', 'value'}]; None when every stage is zero."""
        if not funnel or not any(stage['value'] for stage in funnel):
            return None

        fig = go.Figure(go.Funnel(
            y=[stage['stage'] for stage in funnel],
            x=[stage['value'] for stage in funnel],
            textinfo="value+percent initial",
            marker=dict(color=FUNNEL_COLORS[:len(funnel)]),
            hovertemplate="%{y}: %{x:,.0f}<extra></extra>",
        ))
        return _plotly_layout_defaults(fig)
