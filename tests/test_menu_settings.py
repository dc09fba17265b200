from pathlib import Path

import pytest

from bi_portal.menu_settings import MenuVisibility
from bi_portal.registry import MENU_STRUCTURE, REPORT_MODULES, get_active_modules, get_module_by_id

ROOT = Path(__file__).resolve().parent.parent


def test_menu_pages_exist():
    for category in MENU_STRUCTURE:
        for item in category.items:
            assert (ROOT / item.page).exists(), item.page


def test_active_modules_link_to_pages():
    active = get_active_modules()
    assert all(m.page for m in active)
    assert get_module_by_id('finance').disabled
    assert get_module_by_id('nope') is None
    assert len(active) == len(REPORT_MODULES) - 1


def test_missing_file_means_everything_visible(tmp_path):
    settings = MenuVisibility.load(tmp_path / 'menu.json')
    assert settings.visible_menu() == MENU_STRUCTURE


def test_corrupt_file_means_everything_visible(tmp_path):
    path = tmp_path / 'menu.json'
    path.write_text('{not json', encoding='utf-8')
    settings = MenuVisibility.load(path)
    assert settings.hidden_categories == []
    assert settings.hidden_items == []


@pytest.mark.parametrize('content', ['[]', '"x"', '1', 'null'])
def test_json_that_is_not_an_object_means_everything_visible(tmp_path, content):
    path = tmp_path / 'menu.json'
    path.write_text(content, encoding='utf-8')
    settings = MenuVisibility.load(path)
    assert settings.visible_menu() == MENU_STRUCTURE
    assert settings.path == path


def test_malformed_lists_are_ignored(tmp_path):
    path = tmp_path / 'menu.json'
    path.write_text('{"hiddenCategories": "Quality Reports", "hiddenItems": [3, "pages/4_🛠️_Quality.py"]}',
                    encoding='utf-8')
    settings = MenuVisibility.load(path)
    assert settings.hidden_categories == []
    assert settings.hidden_items == ['pages/4_🛠️_Quality.py']


def test_save_and_reload(tmp_path):
    path = tmp_path / 'nested' / 'menu.json'
    settings = MenuVisibility(path=path)
    settings.set_category_visible('Quality Reports', False)
    settings.set_item_visible('pages/5_📥_Excel_Import.py', False)
    settings.set_item_visible('pages/5_📥_Excel_Import.py', False)
    settings.save()

    loaded = MenuVisibility.load(path)
    assert loaded.hidden_categories == ['Quality Reports']
    assert loaded.hidden_items == ['pages/5_📥_Excel_Import.py']

    menu = loaded.visible_menu()
    assert 'Quality Reports' not in [c.category for c in menu]
    data_tools = next(c for c in menu if c.category == 'Data Tools')
    assert [i.page for i in data_tools.items] == ['pages/6_⚙️_Menu_Settings.py']


def test_category_with_every_item_hidden_is_dropped():
    settings = MenuVisibility()
    settings.set_item_visible('pages/4_🛠️_Quality.py', False)
    assert 'Quality Reports' not in [c.category for c in settings.visible_menu()]

    settings.set_item_visible('pages/4_🛠️_Quality.py', True)
    assert 'Quality Reports' in [c.category for c in settings.visible_menu()]


def test_reset_shows_everything():
    settings = MenuVisibility(hidden_categories=['Common Fee Reports'], hidden_items=['x'])
    settings.reset()
    assert settings.to_dict() == {'hiddenCategories': [], 'hiddenItems': []}
