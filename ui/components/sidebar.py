"""Sidebar: connection status and recent items."""

from __future__ import annotations

import streamlit as st

from client.errors import ApiError
from ui import api

_RECENT_LIMIT = 3


def _render_connection() -> None:
    status = api.check_connection()
    if not status.is_online:
        st.error("Offline: check your network connection.")
    elif not status.is_server_reachable:
        st.warning("Server unreachable. Changes can't be saved right now.")
    else:
        st.success(f"Connected ({status.latency_ms:.0f} ms)")
    st.caption(f"Checked {status.checked_at:%H:%M:%S} UTC")
    if st.button("Check again", use_container_width=True):
        st.rerun()


def _render_recent() -> None:
    st.subheader("Recent")
    try:
        recent_notes = api.list_notes(limit=_RECENT_LIMIT)
        recent_bookmarks = api.list_bookmarks(limit=_RECENT_LIMIT)
    except ApiError as e:
        st.caption(e.user_message)
        return

    for note in recent_notes:
        st.markdown(f"📝 {note.title}")
    for bookmark in recent_bookmarks:
        st.markdown(f"🔖 [{bookmark.title}]({bookmark.url})")
    if not recent_notes and not recent_bookmarks:
        st.caption("Nothing saved yet.")


def render() -> None:
    """Render the shared sidebar."""
    with st.sidebar:
        st.header("🗒️ Notekeeper")
        _render_connection()
        st.divider()
        _render_recent()
