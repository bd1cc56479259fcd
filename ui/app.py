"""Notekeeper — Streamlit front end for notes and bookmarks.

Run with:
    streamlit run ui/app.py
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the project root is on sys.path so `ui.*` and `client.*` imports
# resolve regardless of the working directory Streamlit uses.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

st.set_page_config(
    page_title="Notekeeper",
    page_icon="🗒️",
    layout="wide",
    initial_sidebar_state="expanded",
)

from ui.components import bookmarks, notes, sidebar  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)

# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

page = st.navigation(
    [
        st.Page(notes.render, title="Notes", icon="📝", default=True, url_path="notes"),
        st.Page(bookmarks.render, title="Bookmarks", icon="🔖", url_path="bookmarks"),
    ]
)

# Sidebar is shared across all pages
sidebar.render()

# Render the selected page
page.run()

st.divider()
st.caption("Notekeeper | notes and bookmarks with full-text search")
