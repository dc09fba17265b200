# bi_portal/common_fee/export.py
"""
Formatted Excel Export for the Aging Report

Sheets:
1. Summary - as-of date, filters, bucket totals
2. Invoices - every aged invoice matching the filters
"""

import logging
from datetime import datetime, date
from io import BytesIO
from typing import Dict, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from .aging import AgingSummary
from .constants import EXCEL_STYLES, AGING_BUCKET_LABELS, BUCKET_COLORS

logger = logging.getLogger(__name__)

INVOICE_COLUMNS = [
    ('doc_number', 'Doc Number', None),
    ('unit', 'Unit', None),
    ('owner', 'Owner', None),
    ('project', 'Project', None),
    ('amount', 'Amount (THB)', 'currency'),
    ('due_date', 'Due Date', 'date'),
    ('days_overdue', 'Days Overdue', 'integer'),
    ('bucket', 'Bucket', None),
]


class AgingExport:
    """
    Excel report generator for invoice aging.

    Usage:
        exporter = AgingExport()
        excel_bytes = exporter.create_report(invoices_df, summary, as_of, filters)

        st.download_button(
            label="Download Aging Report",
            data=excel_bytes,
            file_name="aging_report.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)
        self.center_align = Alignment(horizontal='center', vertical='center')

        self.number_formats = {
            'currency': EXCEL_STYLES['currency_format'],
            'integer': EXCEL_STYLES['integer_format'],
            'date': EXCEL_STYLES['date_format'],
        }

    # =========================================================================
    # REPORT
    # =========================================================================

    def create_report(self, invoices_df: pd.DataFrame, summary: AgingSummary,
                      as_of: date, filters: Optional[Dict] = None) -> BytesIO:
        self.wb = Workbook()
        self._create_summary_sheet(summary, as_of, filters or {})
        self._create_invoice_sheet(invoices_df)

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)
        logger.info(f"📥 Aging report built: {summary.total_count} invoices as of {as_of}")
        return output

    def _write_header_row(self, ws, row: int, headers):
        for col_idx, name in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col_idx, value=name)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border

    def _create_summary_sheet(self, summary: AgingSummary, as_of: date, filters: Dict):
        ws = self.wb.active
        ws.title = 'Summary'

        ws['A1'] = 'Invoice Aging Report'
        ws['A1'].font = self.title_font
        ws['A2'] = f"As of {as_of.isoformat()}"
        ws['A3'] = f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}"

        row = 5
        active_filters = {k: v for k, v in filters.items() if v not in (None, '')}
        if active_filters:
            ws.cell(row=row, column=1, value='Filters').font = self.subtitle_font
            row += 1
            for key, value in active_filters.items():
                ws.cell(row=row, column=1, value=key)
                ws.cell(row=row, column=2, value=str(value))
                row += 1
            row += 1

        self._write_header_row(ws, row, ['Bucket', 'Invoices', 'Amount (THB)'])
        row += 1
        for label in AGING_BUCKET_LABELS:
            bucket = summary.buckets[label]
            label_cell = ws.cell(row=row, column=1, value=label)
            label_cell.fill = PatternFill(
                start_color=BUCKET_COLORS[label].lstrip('#'),
                end_color=BUCKET_COLORS[label].lstrip('#'),
                fill_type='solid'
            )
            ws.cell(row=row, column=2, value=bucket.count).number_format = self.number_formats['integer']
            ws.cell(row=row, column=3, value=bucket.amount).number_format = self.number_formats['currency']
            for col in range(1, 4):
                ws.cell(row=row, column=col).border = self.cell_border
            row += 1

        ws.cell(row=row, column=1, value='Total').font = Font(bold=True)
        ws.cell(row=row, column=2, value=summary.total_count).number_format = self.number_formats['integer']
        ws.cell(row=row, column=3, value=summary.total_amount).number_format = self.number_formats['currency']
        ws.cell(row=row + 1, column=1, value='Unique units')
        ws.cell(row=row + 1, column=2, value=summary.unique_units)

        ws.column_dimensions['A'].width = 18
        ws.column_dimensions['B'].width = 14
        ws.column_dimensions['C'].width = 20

    def _create_invoice_sheet(self, df: pd.DataFrame):
        ws = self.wb.create_sheet('Invoices')
        self._write_header_row(ws, 1, [label for _, label, _ in INVOICE_COLUMNS])

        if df is not None and not df.empty:
            for row_idx, record in enumerate(df.to_dict('records'), 2):
                for col_idx, (key, _, fmt) in enumerate(INVOICE_COLUMNS, 1):
                    value = record.get(key)
                    if value is not None and pd.isna(value):
                        value = None
                    elif isinstance(value, pd.Timestamp):
                        value = value.date()
                    cell = ws.cell(row=row_idx, column=col_idx, value=value)
                    cell.border = self.cell_border
                    if fmt:
                        cell.number_format = self.number_formats[fmt]

        for col_idx, (_, label, _) in enumerate(INVOICE_COLUMNS, 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = max(len(label) + 4, 14)
        ws.freeze_panes = 'A2'
