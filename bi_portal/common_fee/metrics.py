# bi_portal/common_fee/metrics.py
"""
Metrics Calculator for Common Fee Reports

Turns query DataFrames into the view models served by the API and the
Streamlit pages. Pure pandas, no SQL, so every builder is testable
with hand-made frames.

VERSION: 1.1.0
- Collection rate and project age on the by-project view
- Trend carries billed / paid / outstanding plus running totals
"""

import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from ..helpers import (
    safe_numeric, calc_percentage, format_currency, month_keys, thai_month_label, to_records,
)
from .aging import AgingSummary, summary_from_rows, days_overdue
from .constants import EXPENSE_TYPE_NAMES

logger = logging.getLogger(__name__)


def _amounts_by_month(df: pd.DataFrame) -> Dict[str, float]:
    if df is None or df.empty:
        return {}
    return {row['month_key']: safe_numeric(row['amount']) for row in df.to_dict('records')}


class CommonFeeMetrics:
    """View-model builders for the common fee dashboard."""

    # =========================================================================
    # OVERVIEW
    # =========================================================================

    @staticmethod
    def build_kpi_cards(kpis_df: pd.DataFrame) -> Dict[str, Dict]:
        """KPI cards: formatted value plus raw value."""
        row = kpis_df.iloc[0].to_dict() if kpis_df is not None and not kpis_df.empty else {}

        def card(raw: float, money: bool = True) -> Dict:
            return {
                'value': format_currency(raw) if money else f"{int(raw):,}",
                'rawValue': raw,
                'change': '+0%',
                'changeType': 'neutral',
            }

        return {
            'totalBilled': card(safe_numeric(row.get('total_billed'))),
            'totalPaid': card(safe_numeric(row.get('total_paid'))),
            'totalOutstanding': card(safe_numeric(row.get('total_outstanding'))),
            'outstandingUnits': card(safe_numeric(row.get('outstanding_units')), money=False),
            'projectCount': card(safe_numeric(row.get('project_count')), money=False),
            'unitCount': card(safe_numeric(row.get('unit_count')), money=False),
        }

    @staticmethod
    def build_status_distribution(dist_df: pd.DataFrame) -> Dict[str, float]:
        row = dist_df.iloc[0].to_dict() if dist_df is not None and not dist_df.empty else {}
        return {
            'paid': safe_numeric(row.get('paid_pct')),
            'partial': safe_numeric(row.get('partial_pct')),
            'unpaid': safe_numeric(row.get('unpaid_pct')),
            'overdue': safe_numeric(row.get('overdue_pct')),
        }

    @staticmethod
    def build_trend(year: int, billed_df: pd.DataFrame, paid_df: pd.DataFrame,
                    overdue_df: pd.DataFrame, cumulative_df: pd.DataFrame) -> List[Dict]:
        """
        Twelve monthly points for `year`.

        cumOutstanding includes overdue balances carried from earlier
        years; cumOutstandingYear only counts this year's due dates.
        """
        billed = _amounts_by_month(billed_df)
        paid = _amounts_by_month(paid_df)
        overdue = _amounts_by_month(overdue_df)
        cumulative = _amounts_by_month(cumulative_df)

        trend = []
        cum_billed = cum_paid = cum_year = 0.0
        for key in month_keys(year):
            cum_billed += billed.get(key, 0.0)
            cum_paid += paid.get(key, 0.0)
            cum_year += overdue.get(key, 0.0)
            trend.append({
                'month': thai_month_label(key),
                'monthKey': key,
                'billed': billed.get(key, 0.0),
                'paid': paid.get(key, 0.0),
                'outstanding': overdue.get(key, 0.0),
                'cumBilled': cum_billed,
                'cumPaid': cum_paid,
                'cumOutstanding': sum(v for k, v in cumulative.items() if k <= key),
                'cumOutstandingYear': cum_year,
            })
        return trend

    @staticmethod
    def build_high_risk_units(df: pd.DataFrame, as_of: date) -> List[Dict]:
        units = []
        for row in to_records(df):
            units.append({
                'unit': row['unit'],
                'owner': (row.get('owner') or '').strip(),
                'amount': safe_numeric(row['amount']),
                'dueDate': row.get('due_date'),
                'daysOverdue': days_overdue(row.get('due_date'), as_of),
            })
        return units

    @staticmethod
    def build_sync_info(df: pd.DataFrame) -> Dict:
        row = to_records(df)[0] if df is not None and not df.empty else {}
        return {
            'lastUpdated': row.get('last_updated'),
            'invoiceCount': int(row.get('invoice_count') or 0),
        }

    # =========================================================================
    # STATUS SUMMARY / COLLECTION
    # =========================================================================

    @staticmethod
    def build_status_summary(status_df: pd.DataFrame, include_draft: bool = False) -> Dict[str, Dict]:
        """
        Per-status {count, unitCount, amount} with partial_payment shown as
        'partial'. 'total' covers paid/partial/active/overdue only.
        """
        keys = {'paid': 'paid', 'partial_payment': 'partial', 'active': 'active', 'overdue': 'overdue'}
        if include_draft:
            keys['draft'] = 'draft'

        summary = {name: {'count': 0, 'unitCount': 0, 'amount': 0.0} for name in keys.values()}
        for row in to_records(status_df):
            name = keys.get(row['status'])
            if name is None:
                continue
            summary[name] = {
                'count': int(row['cnt'] or 0),
                'unitCount': int(row['unit_cnt'] or 0),
                'amount': safe_numeric(row['amount']),
            }

        totals = [summary[k] for k in ('paid', 'partial', 'active', 'overdue')]
        summary['total'] = {
            'count': sum(s['count'] for s in totals),
            'unitCount': sum(s['unitCount'] for s in totals),
            'amount': sum(s['amount'] for s in totals),
        }
        return summary

    @staticmethod
    def build_overdue_breakdown(overdue_df: pd.DataFrame, year: int) -> Dict:
        """Split overdue invoices into due-this-year and carried-forward."""
        empty = {'count': 0, 'unitCount': 0, 'amount': 0.0}
        if overdue_df is None or overdue_df.empty:
            return {'yearly': dict(empty), 'cumulative': dict(empty), 'totalUnitCount': 0}

        df = overdue_df.copy()
        df['due_year'] = pd.to_datetime(df['due_date'], errors='coerce').dt.year

        def part(mask) -> Dict:
            sub = df[mask]
            return {
                'count': int(len(sub)),
                'unitCount': int(sub['name'].nunique()),
                'amount': float(pd.to_numeric(sub['amount'], errors='coerce').fillna(0).sum()),
            }

        return {
            'yearly': part(df['due_year'] == year),
            'cumulative': part(df['due_year'] < year),
            'totalUnitCount': int(df['name'].nunique()),
        }

    @staticmethod
    def build_pagination(total: int, limit: int, offset: int) -> Dict:
        limit = max(int(limit), 1)
        return {
            'page': offset // limit + 1,
            'pageSize': limit,
            'totalPages': math.ceil(total / limit) if total else 0,
            'totalItems': total,
        }

    @staticmethod
    def build_collection_rows(df: pd.DataFrame) -> List[Dict]:
        rows = to_records(df)
        for row in rows:
            row['owner'] = (row.get('owner') or '').strip()
            row['billed_amount'] = safe_numeric(row.get('billed_amount'))
        return rows

    # =========================================================================
    # INVOICE ITEMS / EXPENSES
    # =========================================================================

    @staticmethod
    def build_invoice_items(invoice_id: int, items_df: pd.DataFrame) -> Dict:
        items = []
        for row in to_records(items_df):
            total = safe_numeric(row.get('total'))
            paid = safe_numeric(row.get('paid'))
            items.append({
                'id': row['id'],
                'description': row.get('description'),
                'unitItems': safe_numeric(row.get('unit_items')),
                'price': safe_numeric(row.get('price')),
                'discount': safe_numeric(row.get('discount')),
                'vat': safe_numeric(row.get('vat')),
                'total': total,
                'paid': paid,
                'isPaid': total > 0 and paid >= total,
                'isPartial': 0 < paid < total,
                'remaining': max(total - paid, 0.0),
                'status': row.get('status'),
                'added': row.get('added'),
            })

        invoice_total = sum(i['total'] for i in items)
        invoice_paid = sum(i['paid'] for i in items)
        return {
            'invoiceId': invoice_id,
            'items': items,
            'invoiceTotal': invoice_total,
            'invoicePaid': invoice_paid,
            'invoiceRemaining': max(invoice_total - invoice_paid, 0.0),
        }

    @staticmethod
    def build_expense_summary(df: pd.DataFrame) -> List[Dict]:
        data = []
        for row in to_records(df):
            count = int(row.get('count') or 0)
            if count <= 0:
                continue
            data.append({
                'id': row['expense_type'],
                'name': EXPENSE_TYPE_NAMES.get(row['expense_type'], row['expense_type']),
                'count': count,
                'amount': safe_numeric(row.get('amount')),
            })
        return sorted(data, key=lambda d: d['amount'], reverse=True)

    # =========================================================================
    # AGING
    # =========================================================================

    @staticmethod
    def build_aging_summary(bucket_df: pd.DataFrame, unique_units: int) -> AgingSummary:
        return summary_from_rows(to_records(bucket_df), unique_units)

    @staticmethod
    def build_aging_invoices(df: pd.DataFrame) -> List[Dict]:
        invoices = []
        for row in to_records(df):
            invoices.append({
                'id': row['id'],
                'docNumber': row.get('doc_number'),
                'unit': row.get('unit'),
                'owner': (row.get('owner') or '').strip(),
                'project': row.get('project'),
                'siteId': row.get('site_id'),
                'amount': safe_numeric(row.get('amount')),
                'dueDate': row.get('due_date'),
                'daysOverdue': int(row['days_overdue']) if row.get('days_overdue') is not None else None,
                'bucket': row.get('bucket'),
            })
        return invoices

    # =========================================================================
    # COLLECTION BY PROJECT
    # =========================================================================

    @staticmethod
    def build_project_collection(
        year: int,
        years: List[int],
        projects_df: pd.DataFrame,
        first_dates_df: pd.DataFrame,
        yearly_df: pd.DataFrame,
        cumulative_df: pd.DataFrame,
        as_of: date,
    ) -> List[Dict]:
        """Per-project collection view sorted by billed amount, largest first."""
        first_dates = {r['site_id']: r['first_invoice_date'] for r in to_records(first_dates_df)}

        yearly: Dict[Any, Dict[int, Dict]] = {}
        for r in to_records(yearly_df):
            yearly.setdefault(r['site_id'], {})[int(r['year'])] = {
                'totalAmount': safe_numeric(r['total_amount']),
                'paidAmount': safe_numeric(r['paid_amount']),
                'overdueAmount': safe_numeric(r['overdue_amount']),
            }

        cumulative = {
            r['site_id']: {
                'totalAmount': safe_numeric(r['total_amount']),
                'paidAmount': safe_numeric(r['paid_amount']),
                'overdueAmount': safe_numeric(r['overdue_amount']),
            }
            for r in to_records(cumulative_df)
        }

        projects = []
        for r in to_records(projects_df):
            site_id = r['site_id']
            total = safe_numeric(r['total_amount'])
            paid = safe_numeric(r['paid_amount'])
            first = first_dates.get(site_id)
            age_months = None
            if first:
                first_date = date.fromisoformat(first[:10])
                age_months = max((as_of.year - first_date.year) * 12 + as_of.month - first_date.month, 0)

            empty_year = {'totalAmount': 0.0, 'paidAmount': 0.0, 'overdueAmount': 0.0}
            projects.append({
                'siteId': site_id,
                'name': r.get('project_name'),
                'projectType': r.get('type_of_project'),
                'isCondo': r.get('type_of_project') == 'condominium',
                'totalAmount': total,
                'paidAmount': paid,
                'overdueAmount': safe_numeric(r['overdue_amount']),
                'totalUnits': int(r.get('total_units') or 0),
                'collectionRate': round(calc_percentage(paid, total)),
                'ageYears': age_months // 12 if age_months is not None else None,
                'ageMonths': age_months % 12 if age_months is not None else None,
                'firstInvoiceDate': first,
                'yearlyBreakdown': {
                    str(y): yearly.get(site_id, {}).get(y, dict(empty_year)) for y in years
                },
                'cumulative': cumulative.get(site_id, dict(empty_year)),
            })

        return sorted(projects, key=lambda p: p['totalAmount'], reverse=True)
