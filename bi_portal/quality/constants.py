# bi_portal/quality/constants.py
"""
Constants for Quality (Repair Job) Reports

Source table: trn_repair (database alias: quality)
"""

REPAIR_TABLE = 'trn_repair'

# job_sub_status values that end a job
CLOSED_SUB_STATUSES = ['completed', 'cancel']

OTHER_GROUP = 'อื่นๆ'
UNSPECIFIED = 'ไม่ระบุ'

# Open-job age thresholds in days: (key, older_than, not_older_than)
OPEN_JOB_AGING = [
    ('days0to7', None, 7),
    ('days8to14', 7, 14),
    ('days15to30', 14, 30),
    ('daysOver30', 30, None),
]

STALE_JOB_DAYS = 14

# =====================================================================
# REPAIR CATEGORY GROUPS
# =====================================================================

# group name -> raw repair_category values
CATEGORY_GROUP_MAP = {
    'ฝ้าและผนัง': ['ฝ้าและผนัง', 'ผนัง', 'ฝ้า'],
    'ประตู/หน้าต่าง': ['ประตู', 'ประตู/หน้าต่าง', 'หน้าต่าง', 'ประตูอัตโนมัติ', 'ลูกบิด'],
    'ระบบประปา': ['ระบบประปา', 'ระบบน้ำ/ห้องน้ำ', 'ท่อระบายน้ำ', 'ก๊อกน้ำ', 'วาล์วน้ำ เปิด-ปิด'],
    'สุขภัณฑ์': ['ชักโครก', 'ฝาชักโครก', 'อ่างล้างหน้า', 'สุขภัณฑ์อื่น ๆ', 'สายชำระ', 'ฝักบัว'],
    'พื้น': ['วัสดุปูพื้น', 'งานพื้น', 'พื้น'],
    'งานถนน': ['พื้นถนน', 'ทางเดินเท้า', 'ไฟทางเดิน', 'ไฟริมถนน'],
    'ระบบไฟฟ้า': ['ระบบไฟฟ้า', 'ดวงโคม', 'สวิตซ์', 'เครื่องใช้ไฟฟ้า'],
    'โครงสร้าง': ['โครงสร้าง', 'บันได', 'บันไดหนีไฟ', 'ฐานราก', 'คาน', 'เสา', 'ผนังรับน้ำหนัก'],
    'หลังคา': ['โครงหลังคา', 'หลังคาทางเดิน', 'แผ่นหลังคา', 'รางน้ำฝน'],
    'งานตกแต่ง/สี': ['งานตกแต่ง/งานสี', 'วัสดุตกแต่ง/สี'],
    'เฟอร์นิเจอร์': ['เฟอร์นิเจอร์', 'โซฟา'],
    'รั้ว/กำแพง': ['รั้ว/กำแพง'],
    'เครื่องปรับอากาศ': ['เครื่องปรับอากาศ'],
    'โซล่าเซลล์': ['Inverter', 'แผงโซล่าเซล'],
    'งานติดตั้ง': ['งานติดตั้ง', 'อุปกรณ์เครื่องใช้ภายในบ้าน'],
    'สระว่ายน้ำ': ['สระว่ายน้ำ'],
    'ลิฟต์': ['ลิฟต์'],
    'ฟิตเนส': ['อุปกรณ์ฟิตเนส'],
    OTHER_GROUP: ['อื่น ๆ', 'อื่นๆ', 'ถังขยะ'],
}

CATEGORY_TO_GROUP = {
    raw: group
    for group, raws in CATEGORY_GROUP_MAP.items()
    for raw in raws
}

# =====================================================================
# LABELS / COLORS
# =====================================================================

GROUP_COLORS = {
    'ฝ้าและผนัง': '#64748b',
    'ประตู/หน้าต่าง': '#8b5cf6',
    'ระบบประปา': '#3b82f6',
    'สุขภัณฑ์': '#14b8a6',
    'พื้น': '#78716c',
    'งานถนน': '#a3a3a3',
    'ระบบไฟฟ้า': '#f59e0b',
    'โครงสร้าง': '#6366f1',
    'หลังคา': '#ef4444',
    'งานตกแต่ง/สี': '#eab308',
    'เฟอร์นิเจอร์': '#d946ef',
    'รั้ว/กำแพง': '#737373',
    'เครื่องปรับอากาศ': '#06b6d4',
    'โซล่าเซลล์': '#f97316',
    'งานติดตั้ง': '#84cc16',
    'สระว่ายน้ำ': '#0ea5e9',
    'ลิฟต์': '#a855f7',
    'ฟิตเนส': '#ec4899',
    OTHER_GROUP: '#9ca3af',
}

DEFAULT_COLORS = ['#10b981', '#f97316', '#a855f7', '#84cc16', '#22c55e', '#9ca3af', '#ec4899', '#0ea5e9']
FALLBACK_COLOR = '#9ca3af'

WARRANTY_LABELS = {
    'inWarranty': 'อยู่ในประกัน',
    'noWarranty': 'ไม่อยู่ในประกัน',
    'notCovered': 'ไม่ครอบคลุม',
    'specialConditions': 'เงื่อนไขพิเศษ',
}

WARRANTY_COLORS = {
    'inWarranty': '#3b82f6',
    'noWarranty': '#f59e0b',
    'notCovered': '#ef4444',
    'specialConditions': '#8b5cf6',
}

CHANNEL_LABELS = {
    'smartify': 'Smartify',
    'callCenter': 'Call Center',
    'ios': 'iOS App',
    'android': 'Android App',
    'webapp': 'Web App',
    'line': 'LINE',
    'walkIn': 'Walk-in',
    'legalEntity': 'นิติบุคคล',
}

CHANNEL_COLORS = {
    'smartify': '#3b82f6',
    'callCenter': '#f59e0b',
    'ios': '#64748b',
    'android': '#10b981',
    'webapp': '#8b5cf6',
    'line': '#22c55e',
    'walkIn': '#06b6d4',
    'legalEntity': '#ef4444',
}
