# bi_portal/menu_settings.py
"""
Menu visibility settings

Which sidebar categories / items are hidden, persisted as JSON at
MENU_SETTINGS_PATH:

    {"hiddenCategories": ["Quality Reports"], "hiddenItems": ["pages/5_📥_Excel_Import.py"]}

Nothing is written until save() is called.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .config import config
from .registry import MENU_STRUCTURE, MenuCategory

logger = logging.getLogger(__name__)


def _names(value) -> List[str]:
    """String entries of a JSON list; anything else is treated as empty."""
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


@dataclass
class MenuVisibility:
    hidden_categories: List[str] = field(default_factory=list)
    hidden_items: List[str] = field(default_factory=list)
    path: Optional[Path] = None

    # ---- persistence ----

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> 'MenuVisibility':
        """Load settings; a missing or unreadable file gives everything visible."""
        path = Path(path or config.get_app_setting('MENU_SETTINGS_PATH'))
        if not path.exists():
            return cls(path=path)

        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Failed to parse menu visibility settings {path}: {e}")
            return cls(path=path)

        if not isinstance(data, dict):
            logger.warning(f"⚠️ Menu visibility settings {path} is not a JSON object, ignoring it")
            return cls(path=path)

        return cls(
            hidden_categories=_names(data.get('hiddenCategories')),
            hidden_items=_names(data.get('hiddenItems')),
            path=path,
        )

    def save(self, path: Union[str, Path, None] = None) -> Path:
        target = Path(path or self.path or config.get_app_setting('MENU_SETTINGS_PATH'))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding='utf-8')
        self.path = target
        logger.info(f"✅ Menu visibility saved to {target}")
        return target

    def to_dict(self) -> dict:
        return {
            'hiddenCategories': sorted(set(self.hidden_categories)),
            'hiddenItems': sorted(set(self.hidden_items)),
        }

    # ---- queries / edits ----

    def is_category_visible(self, category: str) -> bool:
        return category not in self.hidden_categories

    def is_item_visible(self, page: str) -> bool:
        return page not in self.hidden_items

    def set_category_visible(self, category: str, visible: bool) -> None:
        if visible:
            self.hidden_categories = [c for c in self.hidden_categories if c != category]
        elif category not in self.hidden_categories:
            self.hidden_categories.append(category)

    def set_item_visible(self, page: str, visible: bool) -> None:
        if visible:
            self.hidden_items = [i for i in self.hidden_items if i != page]
        elif page not in self.hidden_items:
            self.hidden_items.append(page)

    def reset(self) -> None:
        self.hidden_categories = []
        self.hidden_items = []

    def visible_menu(self, structure: List[MenuCategory] = None) -> List[MenuCategory]:
        """Menu with hidden categories / items removed; empty categories are dropped."""
        menu = []
        for category in structure or MENU_STRUCTURE:
            if not self.is_category_visible(category.category):
                continue
            items = [item for item in category.items if self.is_item_visible(item.page)]
            if items:
                menu.append(MenuCategory(category.category, items, category.icon))
        return menu
