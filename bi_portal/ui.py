# bi_portal/ui.py
"""
Shared Streamlit helpers for the portal pages.

- require_db():          connection check, stops the page on failure
- render_sidebar_menu(): navigation filtered by MenuVisibility
- handle_error():        user-facing error message plus details
"""

import logging

import streamlit as st

from .db import check_db_connection
from .menu_settings import MenuVisibility
from .registry import MenuCategory

logger = logging.getLogger(__name__)

HOME_PAGE = "app.py"


def require_db(alias: str) -> None:
    db_connected, db_error = check_db_connection(alias)
    if not db_connected:
        st.error(f"❌ Database connection failed: {db_error}")
        st.info("Please check your network connection or the DB_* settings in .env.")
        st.stop()


def render_sidebar_menu() -> None:
    """Home link plus every visible menu category / item."""
    visibility = MenuVisibility.load()
    with st.sidebar:
        st.page_link(HOME_PAGE, label="Home", icon="🏠")
        for category in visibility.visible_menu():
            _render_category(category)


def _render_category(category: MenuCategory) -> None:
    st.markdown(f"**{category.icon or ''} {category.category}**")
    for item in category.items:
        st.page_link(item.page, label=item.name, icon=item.icon)


def handle_error(e: Exception, context: str) -> None:
    logger.error(f"❌ Error in {context}: {e}", exc_info=True)

    msg = str(e).lower()
    if "connection" in msg or "connect" in msg:
        st.error("🔌 Database connection issue. Please refresh the page.")
    elif "timeout" in msg:
        st.error("⏱️ Request timed out. Try using more specific filters.")
    else:
        st.error(f"❌ An error occurred: {type(e).__name__}")

    with st.expander("Error Details", expanded=False):
        st.code(str(e))
