"""
Streamlit Status File Exchange

Download the grading status of an assignment as a status file, edit it in a
spreadsheet program and upload it again to apply the flagged rows.
"""

import streamlit as st
import pandas as pd
import json
import tempfile
from pathlib import Path

from statusfile import (
    InMemoryGradingStore,
    StatusFileEngine,
    StatusFileError,
    get_default_config,
    validate_config,
)
from statusfile.table_io import MIME_TYPES


# Page configuration
st.set_page_config(
    page_title="Status File Exchange",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="collapsed"
)


def init_session_state():
    """Initialize session state with default values."""
    if "config" not in st.session_state:
        st.session_state.config = get_default_config()

    if "store" not in st.session_state:
        st.session_state.store = None

    if "engine" not in st.session_state:
        st.session_state.engine = None


def make_engine(assignment_id: int) -> StatusFileEngine:
    """Create an engine initialized for the selected assignment."""
    store = st.session_state.store
    engine = StatusFileEngine(store, st.session_state.config)
    engine.init(store.get_assignment(assignment_id))
    return engine


def updates_to_df(engine: StatusFileEngine) -> pd.DataFrame:
    """Tabulate extracted updates for preview."""
    id_column = "team_id" if engine.uses_teams else "usr_id"
    return pd.DataFrame([
        {
            id_column: u.target_key,
            "login": u.login,
            "status": u.status,
            "mark": u.mark,
            "notice": u.notice,
            "comment": u.comment,
            "plagiarism": u.plag_flag,
        }
        for u in engine.get_updates()
    ])


def render_step1_store():
    """Render Step 1: Load grading store."""
    st.header("Step 1: Grading Store")

    uploaded = st.file_uploader("Upload grading store (JSON)", type=["json"])
    if uploaded is not None:
        try:
            st.session_state.store = InMemoryGradingStore.from_dict(json.load(uploaded))
            st.success("✓ Grading store loaded")
        except (ValueError, KeyError) as e:
            st.error(f"❌ Invalid grading store: {e}")

    issues = validate_config(st.session_state.config)
    for issue in issues:
        if issue["type"] == "error":
            st.error(f"❌ {issue['message']}")
        else:
            st.warning(f"⚠️ {issue['message']}")


def render_step2_download(assignment_id: int):
    """Render Step 2: Download status file."""
    st.header("Step 2: Download Status File")

    engine = make_engine(assignment_id)
    fmt = st.selectbox("Format", engine.get_valid_formats())
    engine.set_format(fmt)

    kind = "teams" if engine.uses_teams else "members"
    count = len(engine.teams) if engine.uses_teams else len(engine.members)
    st.caption(f"{count} {kind} will be exported.")

    if st.button("🚀 Generate Status File", type="primary"):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / engine.get_filename()
            try:
                engine.write_to_file(path)
            except StatusFileError as e:
                st.error(f"❌ {e}")
                return
            data = path.read_bytes()

        st.download_button(
            "📥 Download",
            data=data,
            file_name=engine.get_filename(),
            mime=MIME_TYPES[fmt],
        )


def render_step3_upload(assignment_id: int):
    """Render Step 3: Upload edited status file."""
    st.header("Step 3: Upload Edited Status File")

    uploaded = st.file_uploader("Upload status file", type=["xlsx", "xls", "csv"], key="status_upload")
    if uploaded is None:
        return

    engine = make_engine(assignment_id)
    suffix = Path(uploaded.name).suffix.lower().lstrip(".")
    if suffix in engine.get_valid_formats():
        engine.set_format(suffix)

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / uploaded.name
        path.write_bytes(uploaded.getvalue())
        try:
            engine.load_from_file(path)
        except StatusFileError as e:
            st.error(f"❌ {e}")
            return

    if engine.has_error():
        st.error(f"❌ {engine.get_info()}")
        return

    st.info(engine.get_info())
    if not engine.has_updates():
        return

    st.dataframe(updates_to_df(engine), use_container_width=True, hide_index=True)

    if st.button("✅ Apply Updates", type="primary"):
        engine.apply_status_updates()
        st.success(engine.get_info())
        st.download_button(
            "📥 Download Updated Store",
            data=json.dumps(st.session_state.store.to_dict(), indent=2),
            file_name="store.json",
            mime="application/json",
        )


def main():
    """Main application entry point."""
    init_session_state()

    st.title("📊 Status File Exchange")

    render_step1_store()

    store = st.session_state.store
    if store is None or not store.assignments:
        st.info("Load a grading store with at least one assignment to continue")
        return

    assignment_id = st.selectbox(
        "Assignment",
        list(store.assignments),
        format_func=lambda a: f"{a} - {store.assignments[a].title}",
    )

    st.divider()
    render_step2_download(assignment_id)

    st.divider()
    render_step3_upload(assignment_id)


if __name__ == "__main__":
    main()
