# bi_portal/registry.py
"""
Report registry and navigation menu

REPORT_MODULES feeds the catalog on the home page; MENU_STRUCTURE is the
sidebar navigation, filtered by MenuVisibility (menu_settings.py).
Menu items point at Streamlit page scripts under pages/.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ReportModule:
    id: str
    name: str
    description: str
    icon: str
    page: Optional[str]
    tags: List[str] = field(default_factory=list)
    highlights: List[str] = field(default_factory=list)
    reports: int = 0
    disabled: bool = False


@dataclass(frozen=True)
class MenuItem:
    name: str
    page: str
    icon: Optional[str] = None


@dataclass(frozen=True)
class MenuCategory:
    category: str
    items: List[MenuItem]
    icon: Optional[str] = None


REPORT_MODULES: List[ReportModule] = [
    ReportModule(
        id='sales-2025',
        name='2025 Performance',
        description='Sales and marketing performance by project, VP and manager against 2025 targets.',
        icon='📈',
        page='pages/3_📈_Sales_2025.py',
        tags=['Sales', 'Marketing'],
        highlights=[
            'Presale / revenue target vs actual by quarter',
            'VP and manager roll-ups over responsible months',
            'Lead funnel, CPL and CPQL',
        ],
        reports=3,
    ),
    ReportModule(
        id='common-fee',
        name='Common Fee Reports',
        description='ระบบติดตามและจัดเก็บค่าส่วนกลาง ครอบคลุมการเรียกเก็บ การชำระ และการติดตามหนี้',
        icon='🏢',
        page='pages/1_🏢_Common_Fee_Overview.py',
        tags=['Common Fee'],
        highlights=[
            'ภาพรวมค่าส่วนกลางรายโครงการ',
            'รายละเอียดการเรียกเก็บและการชำระ',
            'รายงาน Aging หนี้ค้างชำระ',
        ],
        reports=2,
    ),
    ReportModule(
        id='quality',
        name='Quality Reports',
        description='งานแจ้งซ่อม: งานค้าง, อายุงาน, หมวดงานซ่อม และช่องทางการแจ้ง',
        icon='🛠️',
        page='pages/4_🛠️_Quality.py',
        tags=['Quality'],
        highlights=[
            'Open-job aging 0-7 / 8-14 / 15-30 / >30 days',
            'Defects by project and category group',
        ],
        reports=1,
    ),
    ReportModule(
        id='finance',
        name='Finance Reports',
        description='Financial analytics including revenue, collections, and budget tracking.',
        icon='💰',
        page=None,
        tags=['Finance', 'Phase 2'],
        disabled=True,
    ),
]

MENU_STRUCTURE: List[MenuCategory] = [
    MenuCategory('2025 Performance', icon='📈', items=[
        MenuItem('Sales & Marketing Performance', 'pages/3_📈_Sales_2025.py'),
    ]),
    MenuCategory('Common Fee Reports', icon='🏢', items=[
        MenuItem('Overview', 'pages/1_🏢_Common_Fee_Overview.py'),
        MenuItem('Aging Report', 'pages/2_⏳_Common_Fee_Aging.py'),
    ]),
    MenuCategory('Quality Reports', icon='🛠️', items=[
        MenuItem('ภาพรวม', 'pages/4_🛠️_Quality.py'),
    ]),
    MenuCategory('Data Tools', icon='⚙️', items=[
        MenuItem('Excel Import', 'pages/5_📥_Excel_Import.py'),
        MenuItem('Menu Settings', 'pages/6_⚙️_Menu_Settings.py'),
    ]),
]


def get_module_by_id(module_id: str) -> Optional[ReportModule]:
    return next((m for m in REPORT_MODULES if m.id == module_id), None)


def get_active_modules() -> List[ReportModule]:
    return [m for m in REPORT_MODULES if not m.disabled]
