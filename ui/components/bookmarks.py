"""Bookmarks page: search, tag filter, create with title lookup, edit and delete."""

from __future__ import annotations

import streamlit as st

from client.errors import ApiError
from client.records import Bookmark, all_tags
from client.runtime import TitleLookup
from ui import api
from ui.components.notes import split_tags

TITLE_POLL_INTERVAL = 0.5  # seconds


def _title_lookup() -> TitleLookup:
    if "title_lookup" not in st.session_state:
        st.session_state.title_lookup = api.new_title_lookup()
    return st.session_state.title_lookup


def _on_url_change() -> None:
    """Schedule a debounced title lookup while the title is blank."""
    _title_lookup().url_changed(
        st.session_state.get("new_bookmark_url", ""),
        st.session_state.get("new_bookmark_title", ""),
    )


def _on_title_change() -> None:
    # a typed title wins over any lookup still on its way
    if st.session_state.get("new_bookmark_title", "").strip():
        _title_lookup().cancel()


def _on_fetch_click() -> None:
    _title_lookup().fetch_now(st.session_state.get("new_bookmark_url", ""))


@st.fragment(run_every=TITLE_POLL_INTERVAL)
def _render_create() -> None:
    lookup = _title_lookup()
    title, error = lookup.take()
    if title is not None:
        st.session_state.new_bookmark_title = title
    if error is not None:
        st.session_state.title_lookup_error = error

    with st.expander("➕ New bookmark", expanded=False):
        st.text_input("URL", key="new_bookmark_url", on_change=_on_url_change)
        st.text_input(
            "Title", key="new_bookmark_title", max_chars=255, on_change=_on_title_change,
            help="Left blank, the page title is fetched for you.",
        )
        st.button("Fetch title", on_click=_on_fetch_click)
        if lookup.waiting:
            st.caption("Fetching title…")
        st.text_input("Tags", key="new_bookmark_tags", placeholder="comma, separated")
        if error := st.session_state.pop("title_lookup_error", None):
            st.caption(f"Couldn't fetch title: {error}")

        if st.button("Save", type="primary", key="create_bookmark"):
            url = st.session_state.new_bookmark_url.strip()
            if not url:
                st.error("URL is required.")
                return
            try:
                api.create_bookmark(
                    url,
                    st.session_state.new_bookmark_title.strip() or None,
                    split_tags(st.session_state.new_bookmark_tags),
                )
            except ApiError as e:
                st.error(e.user_message)
                return
            lookup.close()
            for key in ("new_bookmark_url", "new_bookmark_title", "new_bookmark_tags"):
                st.session_state.pop(key, None)
            st.toast("Bookmark saved")
            st.rerun()


def _render_edit(bookmark: Bookmark) -> None:
    with st.form(f"edit_bookmark_{bookmark.id}"):
        url = st.text_input("URL", value=bookmark.url)
        title = st.text_input("Title", value=bookmark.title, max_chars=255)
        tags = st.text_input("Tags", value=", ".join(bookmark.tags))
        save, cancel = st.columns(2)
        if save.form_submit_button("Update", type="primary", use_container_width=True):
            try:
                api.update_bookmark(str(bookmark.id), url, title or None, split_tags(tags))
            except ApiError as e:
                st.error(e.user_message)
                return
            st.session_state.pop("editing_bookmark", None)
            st.rerun()
        if cancel.form_submit_button("Cancel", use_container_width=True):
            st.session_state.pop("editing_bookmark", None)
            st.rerun()


def _render_bookmark(bookmark: Bookmark) -> None:
    with st.container(border=True):
        if st.session_state.get("editing_bookmark") == str(bookmark.id):
            _render_edit(bookmark)
            return

        st.markdown(f"**[{bookmark.title}]({bookmark.url})**")
        st.caption(bookmark.url)
        if bookmark.tags:
            st.caption(" ".join(f"`{t}`" for t in bookmark.tags))

        edit, delete = st.columns(2)
        if edit.button("Edit", key=f"edit_{bookmark.id}", use_container_width=True):
            st.session_state.editing_bookmark = str(bookmark.id)
            st.rerun()
        if delete.button("Delete", key=f"delete_{bookmark.id}", use_container_width=True):
            try:
                api.delete_bookmark(str(bookmark.id))
            except ApiError as e:
                st.error(e.user_message)
                return
            st.rerun()


def render() -> None:
    """Render the bookmarks page."""
    st.title("🔖 Bookmarks")
    _render_create()

    search_col, tag_col = st.columns([2, 1])
    q = search_col.text_input("Search", placeholder="Search bookmarks...")
    tag_pool = st.session_state.get("bookmark_tags", [])
    selected = tag_col.multiselect("Tags", options=tag_pool)

    try:
        found = api.list_bookmarks(q=q, tags=selected)
    except ApiError as e:
        st.error(e.user_message)
        if st.button("Retry", key="retry_bookmarks"):
            st.rerun()
        return

    st.session_state.bookmark_tags = all_tags(found) if not selected and not q else sorted(
        set(tag_pool) | set(all_tags(found))
    )

    st.caption(f"{len(found)} bookmark(s)")
    for bookmark in found:
        _render_bookmark(bookmark)
