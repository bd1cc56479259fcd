"""Notes page: search, tag filter, create, edit and delete."""

from __future__ import annotations

import streamlit as st

from client.errors import ApiError
from client.records import Note, all_tags
from ui import api


def split_tags(raw: str) -> list[str]:
    """Split a comma separated tag field, dropping blanks."""
    return [t.strip() for t in raw.split(",") if t.strip()]


def _render_create() -> None:
    with st.expander("➕ New note", expanded=False):
        with st.form("create_note", clear_on_submit=True):
            title = st.text_input("Title", max_chars=255)
            content = st.text_area("Content", height=150)
            tags = st.text_input("Tags", placeholder="comma, separated")
            if st.form_submit_button("Save", type="primary"):
                if not title.strip() or not content.strip():
                    st.error("Title and content are required.")
                    return
                try:
                    api.create_note(title, content, split_tags(tags))
                except ApiError as e:
                    st.error(e.user_message)
                    return
                st.toast("Note saved")
                st.rerun()


def _render_edit(note: Note) -> None:
    with st.form(f"edit_note_{note.id}"):
        title = st.text_input("Title", value=note.title, max_chars=255)
        content = st.text_area("Content", value=note.content, height=150)
        tags = st.text_input("Tags", value=", ".join(note.tags))
        save, cancel = st.columns(2)
        if save.form_submit_button("Update", type="primary", use_container_width=True):
            try:
                api.update_note(str(note.id), title, content, split_tags(tags))
            except ApiError as e:
                st.error(e.user_message)
                return
            st.session_state.pop("editing_note", None)
            st.rerun()
        if cancel.form_submit_button("Cancel", use_container_width=True):
            st.session_state.pop("editing_note", None)
            st.rerun()


def _render_note(note: Note) -> None:
    with st.container(border=True):
        if st.session_state.get("editing_note") == str(note.id):
            _render_edit(note)
            return

        st.markdown(f"**{note.title}**")
        st.write(note.content)
        if note.tags:
            st.caption(" ".join(f"`{t}`" for t in note.tags))
        st.caption(f"Updated {note.updated_at:%Y-%m-%d %H:%M}")

        edit, delete = st.columns(2)
        if edit.button("Edit", key=f"edit_{note.id}", use_container_width=True):
            st.session_state.editing_note = str(note.id)
            st.rerun()
        if delete.button("Delete", key=f"delete_{note.id}", use_container_width=True):
            try:
                api.delete_note(str(note.id))
            except ApiError as e:
                st.error(e.user_message)
                return
            st.rerun()


def render() -> None:
    """Render the notes page."""
    st.title("📝 Notes")
    _render_create()

    search_col, tag_col = st.columns([2, 1])
    q = search_col.text_input("Search", placeholder="Search notes...")
    tag_pool = st.session_state.get("note_tags", [])
    selected = tag_col.multiselect("Tags", options=tag_pool)

    try:
        found = api.list_notes(q=q, tags=selected)
    except ApiError as e:
        st.error(e.user_message)
        if st.button("Retry", key="retry_notes"):
            st.rerun()
        return

    # Remember every tag we've seen so the filter doesn't shrink as it narrows.
    st.session_state.note_tags = all_tags(found) if not selected and not q else sorted(
        set(tag_pool) | set(all_tags(found))
    )

    st.caption(f"{len(found)} note(s)")
    for note in found:
        _render_note(note)
