# bi_portal/sales_2025/constants.py
"""
Constants for Sales 2025 Reports

Tables (database alias: sales):
- "Project_User_Mapping": who is responsible for which project in which month
- "Performance2025": one row per project per quarter (v1 reports)
- sales_mkt: one wide row per project with monthly columns (v2 reports)
"""

# =====================================================================
# TABLES / DEPARTMENTS / ROLES
# =====================================================================

MAPPING_TABLE = '"Project_User_Mapping"'
PERFORMANCE_TABLE = '"Performance2025"'
SALES_MKT_TABLE = 'sales_mkt'

DEPT_SALE = 'Sale'
DEPT_MKT = 'Mkt'

ROLE_VP = 'VP'
ROLE_MGR = 'MGR'
ROLE_MKT = 'MKT'     # display role for marketing managers on team lists

# Roles that take part in roll-ups: Sale VP/MGR and Mkt MGR
ROLLUP_ROLES_SQL = (
    "((department = 'Sale' AND role_type IN ('VP', 'MGR')) "
    "OR (department = 'Mkt' AND role_type = 'MGR'))"
)

# =====================================================================
# METRICS
# =====================================================================

# Unified long-format metric columns used by the roll-up engine
TOTAL_METRICS = [
    'presale_target', 'presale_actual',
    'revenue_target', 'revenue_actual',
    'mkt_expense', 'total_lead', 'quality_lead',
    'walk', 'book', 'booking', 'livnex',
]

METRIC_KEYS = {
    'presale_target': 'presaleTarget',
    'presale_actual': 'presaleActual',
    'revenue_target': 'revenueTarget',
    'revenue_actual': 'revenueActual',
    'mkt_expense': 'mktExpense',
    'total_lead': 'totalLead',
    'quality_lead': 'qualityLead',
    'walk': 'walk',
    'book': 'book',
    'booking': 'booking',
    'livnex': 'livnex',
    'livnex_target': 'livnexTarget',
    'contract': 'contract',
    'cancel': 'cancel',
}

# "Performance2025" text columns -> output name (coalesced '-' -> 0)
PERFORMANCE_COLUMNS = {
    'booking_actual': 'booking_actual',
    'livnex_actual': 'livnex_actual',
    'presale_target': 'presale_target',
    'presale_actual': 'presale_actual',
    'presale_achieve_pct': 'presale_achieve_pct',
    'revenue_target': 'revenue_target',
    'revenue_actual': 'revenue_actual',
    'revenue_achieve_pct': 'revenue_achieve_pct',
    'mkt_expense_actual': 'mkt_expense_actual',
    'total_lead': 'total_lead',
    'quality_lead': 'quality_lead',
    'lead_new_rem_walk': 'walk',
    'lead_new_rem_book': 'book',
    'lead_to_walk': 'lead_to_walk',
    'walk_to_book': 'walk_to_book',
    'cpl': 'cpl',
    'cpql': 'cpql',
    'mkt_pct_booking': 'mkt_pct_booking',
    'mkt_pct_presale_livnex': 'mkt_pct_presale_livnex',
    'mkt_pct_revenue': 'mkt_pct_revenue',
}

# Performance2025 output columns -> unified roll-up metric
PERFORMANCE_METRIC_ALIASES = {
    'mkt_expense_actual': 'mkt_expense',
    'booking_actual': 'booking',
    'livnex_actual': 'livnex',
}

# sales_mkt monthly column pattern: f"{prefix}{month}{suffix}", month in jan..dec
SALES_MKT_MONTHLY = {
    'presale_target': ('target_presale_', '_thb'),
    'livnex_target': ('target_livnex_', '_thb'),
    'booking': ('book_', '_thb'),
    'contract': ('contract_', '_thb'),
    'livnex': ('livnex_', '_thb'),
    'cancel': ('cancel_', '_thb'),
    'revenue_target': ('target_revenue_', '_thb'),
    'revenue_actual': ('revenue_', '_thb'),
    'mkt_expense': ('mktexpense_', ''),
    'total_lead': ('totallead_', ''),
    'quality_lead': ('qualitylead_', ''),
    'walk': ('lead_walk_', ''),
    'book': ('lead_book_', ''),
}

SALES_MKT_PROJECT_COLUMNS = {
    'projectcode': 'project_code',
    'projectname': 'project_name',
    'bud': 'bud',
    'opm': 'opm',
    'segment': 'segment',
    'status': 'status',
    'type': 'type',
}

# LivNex / RentNex program columns added by the column migration
PROGRAM_PREFIXES = ['livnex', 'rentnex']

FUNNEL_STAGES = [
    ('Total Lead', 'totalLead'),
    ('Quality Lead', 'qualityLead'),
    ('Walk', 'walk'),
    ('Book', 'book'),
]

# =====================================================================
# COLORS
# =====================================================================

COLORS = {
    'target': '#94a3b8',
    'presale': '#2563eb',
    'revenue': '#16a34a',
    'booking': '#f59e0b',
    'livnex': '#8b5cf6',
    'mkt_expense': '#ef4444',
}

FUNNEL_COLORS = ['#1e3a8a', '#2563eb', '#60a5fa', '#bfdbfe']
