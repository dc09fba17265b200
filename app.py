# app.py
"""
BI Portal - Main Entry Point

Home page: report catalog from the registry, database status per alias.
Navigation is the sidebar menu filtered by the menu visibility settings.

Version: 1.0.0
"""

import logging

import streamlit as st

from bi_portal import __version__
from bi_portal.config import config
from bi_portal.db import check_db_connection, get_connection_pool_status
from bi_portal.menu_settings import MenuVisibility
from bi_portal.registry import REPORT_MODULES, ReportModule
from bi_portal.ui import render_sidebar_menu

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "BI Portal"
APP_ICON = "📊"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .module-card {
        background: #f8f9fa;
        padding: 1.25rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1f77b4;
        margin-bottom: 0.75rem;
        min-height: 11rem;
    }

    .module-card.disabled {
        border-left-color: #bbb;
        opacity: 0.6;
    }

    .module-tag {
        display: inline-block;
        background: #e3f2fd;
        color: #1565c0;
        border-radius: 0.75rem;
        padding: 0.1rem 0.6rem;
        margin-right: 0.3rem;
        font-size: 0.75rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)


# ==================== HELPER FUNCTIONS ====================

def render_module_card(module: ReportModule):
    tags = ''.join(f'<span class="module-tag">{t}</span>' for t in module.tags)
    highlights = ''.join(f'<li>{h}</li>' for h in module.highlights)
    css_class = "module-card disabled" if module.disabled else "module-card"

    st.markdown(f"""
    <div class="{css_class}">
        <strong>{module.icon} {module.name}</strong><br>
        <span style="color: #666;">{module.description}</span>
        <ul style="margin: 0.5rem 0 0.5rem 1rem; font-size: 0.9rem;">{highlights}</ul>
        {tags}
    </div>
    """, unsafe_allow_html=True)

    if module.disabled or not module.page:
        st.caption("🔜 Coming soon")
    else:
        st.page_link(module.page, label=f"Open {module.name}", icon="➡️")


def render_catalog():
    visibility = MenuVisibility.load()
    visible_pages = {item.page for category in visibility.visible_menu() for item in category.items}
    modules = [m for m in REPORT_MODULES if m.disabled or m.page in visible_pages]

    st.markdown("### 📊 Reports")
    cols = st.columns(2)
    for i, module in enumerate(modules):
        with cols[i % 2]:
            render_module_card(module)


def render_system_status():
    with st.expander("🔧 System Status"):
        aliases = config.get_db_aliases()
        cols = st.columns(len(aliases))
        for col, alias in zip(cols, aliases):
            ok, error = check_db_connection(alias)
            with col:
                st.metric(f"DB [{alias}]", "OK" if ok else "DOWN")
                if ok:
                    pool = get_connection_pool_status(alias)
                    st.caption(f"Connections used: {pool.get('checked_out', 0)}")
                else:
                    st.caption(error)


# ==================== MAIN ====================

def main():
    render_sidebar_menu()

    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Sales, common fee and quality reports for every project</p>',
        unsafe_allow_html=True,
    )

    render_catalog()

    st.markdown("---")
    render_system_status()

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{__version__}
    </div>
    """, unsafe_allow_html=True)


if __name__ == "__main__":
    main()
