# bi_portal/common_fee/constants.py
"""
Constants for Common Fee Reports

Centralized configuration for:
- Invoice status groups
- Aging bucket boundaries
- Expense type keywords (transaction description classification)
- Sort whitelists for paginated lists
- Colors and Excel styles
"""

# =====================================================================
# INVOICE STATUSES
# =====================================================================

INVOICE_STATUSES = ['paid', 'active', 'overdue', 'partial_payment', 'void', 'draft', 'waiting_fix']

# Never reported on
EXCLUDED_STATUSES = ['void', 'draft', 'waiting_fix']

# Unpaid balances still owed by the unit
OUTSTANDING_STATUSES = ['active', 'overdue', 'partial_payment']

# Statuses that age in the aging report
AGED_STATUSES = ['active', 'overdue', 'partial_payment']

STATUS_LABELS = {
    'paid': 'Paid',
    'active': 'Unpaid',
    'overdue': 'Overdue',
    'partial_payment': 'Partial',
    'void': 'Void',
    'draft': 'Draft',
    'waiting_fix': 'Waiting Fix',
}

PROJECT_TYPES = ['condo', 'lowrise']

MIN_REPORT_YEAR = 2020

# =====================================================================
# AGING BUCKETS  (label, min days, max days; None = open ended)
# =====================================================================

AGING_BUCKET_BOUNDS = [
    ('0-30', 0, 30),
    ('31-60', 31, 60),
    ('61-90', 61, 90),
    ('91-180', 91, 180),
    ('181-360', 181, 360),
    ('360+', 361, None),
]

AGING_BUCKET_LABELS = [label for label, _, _ in AGING_BUCKET_BOUNDS]

# =====================================================================
# EXPENSE TYPES
# =====================================================================

# Matched against the description text before the first '('
EXPENSE_TYPES = [
    {'id': 'common_fee', 'name': 'ค่าส่วนกลาง', 'keywords': ['ส่วนกลาง', 'บริการสาธารณะ'], 'exclude': ['ปรับปรุง']},
    {'id': 'water', 'name': 'ค่าน้ำประปา', 'keywords': ['ค่าน้ำประปา'], 'exclude': []},
    {'id': 'water_meter', 'name': 'ค่ามิเตอร์น้ำ', 'keywords': ['มิเตอร์น้ำ'], 'exclude': []},
    {'id': 'insurance', 'name': 'ค่าเบี้ยประกัน', 'keywords': ['ประกันภัย'], 'exclude': []},
    {'id': 'parking', 'name': 'ค่าจอดรถ', 'keywords': ['จอดรถ', 'จอดจักรยานยนต์'], 'exclude': []},
    {'id': 'surcharge', 'name': 'เงินเพิ่ม', 'keywords': ['เงินเพิ่ม'], 'exclude': []},
    {'id': 'interest', 'name': 'ค่าดอกเบี้ย', 'keywords': ['ค่าดอกเบี้ย'], 'exclude': []},
    {'id': 'fine', 'name': 'ค่าปรับ/เบี้ยปรับ', 'keywords': ['ค่าปรับ', 'ค่าเบี้ยปรับ'], 'exclude': ['ปรับปรุง']},
    {'id': 'fund', 'name': 'เงินกองทุน', 'keywords': ['กองทุน'], 'exclude': []},
    {'id': 'electricity', 'name': 'ค่าไฟฟ้า', 'keywords': ['ไฟฟ้า', 'กระแสไฟ'], 'exclude': []},
    {'id': 'other', 'name': 'อื่นๆ', 'keywords': [], 'exclude': []},
]

EXPENSE_TYPE_IDS = [t['id'] for t in EXPENSE_TYPES]
EXPENSE_TYPE_NAMES = {t['id']: t['name'] for t in EXPENSE_TYPES}
OTHER_EXPENSE_TYPE = 'other'

# =====================================================================
# PAGINATION / SORTING
# =====================================================================

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 1000

PROJECT_NAME_SQL = "COALESCE(p.name_en, INITCAP(REPLACE(SPLIT_PART(s.name, '.', 1), '-', ' ')))"
OWNER_SQL = "CONCAT(i.first_name, ' ', i.last_name)"

COLLECTION_SORT_FIELDS = {
    'doc_number': 'i.doc_number',
    'unit': 'i.name',
    'owner': OWNER_SQL,
    'billed_amount': 'billed_amount',
    'status': 'i.status',
    'due_date': 'i.due_date',
    'issued_date': 'i.issued_date',
    'paid_date': 'i.paid_date',
}
COLLECTION_DEFAULT_SORT = 'issued_date'

AGING_SORT_FIELDS = {
    'docNumber': 'i.doc_number',
    'unit': 'i.name',
    'owner': OWNER_SQL,
    'project': PROJECT_NAME_SQL,
    'amount': 'amount',
    'dueDate': 'i.due_date',
    'daysOverdue': 'days_overdue',
}
AGING_DEFAULT_SORT = 'daysOverdue'

HIGH_RISK_LIMIT = 5
COLLECTION_YEARS_BACK = 3

# =====================================================================
# COLORS
# =====================================================================

COLORS = {
    'billed': '#1f77b4',
    'paid': '#2ca02c',
    'outstanding': '#d62728',
    'cumulative': '#ff7f0e',
    'partial': '#17becf',
    'unpaid': '#bcbd22',
    'overdue': '#d62728',
}

BUCKET_COLORS = {
    '0-30': '#22c55e',
    '31-60': '#84cc16',
    '61-90': '#eab308',
    '91-180': '#f97316',
    '181-360': '#ef4444',
    '360+': '#991b1b',
}

# =====================================================================
# EXCEL EXPORT
# =====================================================================

EXCEL_STYLES = {
    'header_fill_color': '1F4E79',
    'header_font_color': 'FFFFFF',
    'currency_format': '#,##0.00',
    'integer_format': '#,##0',
    'date_format': 'yyyy-mm-dd',
}
