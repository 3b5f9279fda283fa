"""Admin panel UI component for reviewing and exporting registrations."""
import logging
import traceback
from datetime import datetime

import streamlit as st

from src.models.event import CATEGORIES, EVENTS
from src.services.admin_service import (
    ALL_EVENTS,
    filter_registrations,
    is_admin_authenticated,
    login_admin,
    logout_admin,
)
from src.services.export_service import (
    PDF_MIME,
    XLSX_MIME,
    build_export_rows,
    export_filename,
    export_to_excel,
    export_to_pdf,
)
from src.services.file_storage_service import get_file_storage
from src.services.registration_service import get_ledger
from src.ui.html_utils import html_block, stat_card_html


logger = logging.getLogger(__name__)

EVENT_FILTER_KEY = "admin_event_filter"
SEARCH_KEY = "admin_search"


def _show_admin_exception(error: Exception, context: str) -> None:
    """Display error details in UI and log full traceback."""
    logger.exception("Admin panel error during %s", context)

    st.error(f"❌ Failed to {context}: {error}")
    with st.expander("🔍 Error details", expanded=False):
        st.code("".join(traceback.format_exception(type(error), error, error.__traceback__)))


def _inject_admin_styles():
    """Inject admin panel styles."""
    st.markdown(
        html_block(
            """
            <style>
            .admin-header {
                background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
                padding: 24px 32px;
                border-radius: 16px;
                margin-bottom: 24px;
            }
            .admin-title { color: #ffffff; font-size: 26px; font-weight: 700; margin: 0; }
            .admin-subtitle { color: #e0e7ff; font-size: 14px; margin-top: 4px; }
            form[data-testid="stForm"][aria-label="admin_login_form"] {
                max-width: 440px;
                margin: 64px auto;
                padding: 32px;
                border-radius: 20px;
                background: #111827;
            }
            .login-title { color: #f8fafc; font-size: 28px; font-weight: 700; text-align: center; }
            .login-description { color: #cbd5e1; font-size: 14px; text-align: center; }
            .stat-card {
                border-radius: 16px;
                padding: 18px;
                text-align: center;
                color: #ffffff;
                margin-bottom: 12px;
            }
            .stat-card__value { font-size: 30px; font-weight: 800; }
            .stat-card__label { font-size: 13px; font-weight: 600; opacity: 0.9; }
            </style>
            """
        ),
        unsafe_allow_html=True,
    )


def render_login_page():
    """Render admin login page."""
    _inject_admin_styles()

    with st.form("admin_login_form", clear_on_submit=False):
        st.markdown("<h1 class='login-title'>🔐 Admin Login</h1>", unsafe_allow_html=True)
        st.markdown(
            "<div class='login-description'>Enter the admin credentials to continue</div>",
            unsafe_allow_html=True,
        )

        username = st.text_input("Username", placeholder="admin", key="admin_username_input")
        password = st.text_input("Password", type="password", key="admin_password_input")

        submit_col, cancel_col = st.columns(2, gap="small")
        with submit_col:
            submit = st.form_submit_button("Login", width='stretch', type="primary")
        with cancel_col:
            cancel = st.form_submit_button("Back", width='stretch')

        if submit:
            if not username or not password:
                st.error("❌ Please enter username and password")
            else:
                success, message = login_admin(username, password)
                if success:
                    st.rerun()
                else:
                    st.error(f"❌ {message}")

        if cancel:
            st.session_state.current_page = "register"
            st.rerun()


def _render_stats(ledger) -> None:
    """Totals overall, per category and per event."""
    counts = ledger.counts

    columns = st.columns(len(CATEGORIES) + 1, gap="small")
    with columns[0]:
        st.markdown(stat_card_html("Total Registrations", counts.total), unsafe_allow_html=True)
    for column, category in zip(columns[1:], CATEGORIES):
        with column:
            st.markdown(
                stat_card_html(f"{category} Events", counts.per_category.get(category, 0), category),
                unsafe_allow_html=True,
            )

    event_columns = st.columns(len(EVENTS), gap="small")
    for column, event_name in zip(event_columns, EVENTS):
        with column:
            st.metric(event_name, counts.per_event.get(event_name, 0))


def _render_exports(registrations, event_filter: str) -> None:
    """Excel and PDF downloads of the filtered view."""
    excel_col, pdf_col = st.columns(2, gap="small")
    with excel_col:
        try:
            st.download_button(
                "📊 Export to Excel",
                data=export_to_excel(registrations),
                file_name=export_filename(event_filter, "xlsx"),
                mime=XLSX_MIME,
                width='stretch',
                disabled=not registrations,
            )
        except Exception as error:
            _show_admin_exception(error, "build the Excel export")
    with pdf_col:
        try:
            title = "Event Registration Dashboard"
            if event_filter != ALL_EVENTS:
                title = f"{title} - {event_filter}"
            st.download_button(
                "📄 Export to PDF",
                data=export_to_pdf(registrations, title=title, generated_at=datetime.now()),
                file_name=export_filename(event_filter, "pdf"),
                mime=PDF_MIME,
                width='stretch',
                disabled=not registrations,
            )
        except Exception as error:
            _show_admin_exception(error, "build the PDF export")


def _render_uploads(registrations) -> None:
    """Download buttons for uploaded presentations in the filtered view."""
    with_files = [reg for reg in registrations if reg.uploaded_file_path]
    if not with_files:
        return

    storage = get_file_storage()
    with st.expander(f"📎 Uploaded presentations ({len(with_files)})"):
        for reg in with_files:
            name_col, button_col = st.columns([3, 1], gap="small")
            with name_col:
                st.markdown(f"**{reg.student_name}** · {reg.event_name}")
                st.caption(reg.uploaded_file_path)
            with button_col:
                try:
                    data = storage.read(reg.uploaded_file_path)
                except FileNotFoundError:
                    st.caption("File missing")
                    continue
                st.download_button(
                    "⬇️ Download",
                    data=data,
                    file_name=reg.uploaded_file_path,
                    key=f"download_{reg.id}",
                    width='stretch',
                )


def render_admin_panel():
    """Render admin registrations panel."""
    try:
        if not is_admin_authenticated():
            render_login_page()
            return

        _inject_admin_styles()

        st.markdown(
            html_block(
                """
                <div class="admin-header">
                    <h1 class="admin-title">📊 Event Registration Dashboard</h1>
                    <div class="admin-subtitle">Registrations, capacity and exports</div>
                </div>
                """
            ),
            unsafe_allow_html=True,
        )

        title_col, refresh_col, home_col, logout_col = st.columns([2, 1, 1, 1], gap="small")
        with title_col:
            st.markdown("### Registrations")
        with refresh_col:
            if st.button("🔄 Refresh", width='stretch'):
                st.rerun()
        with home_col:
            if st.button("🏠 Registration page", width='stretch'):
                st.session_state.current_page = "register"
                st.rerun()
        with logout_col:
            if st.button("🚪 Logout", width='stretch'):
                logout_admin()
                st.session_state.current_page = "register"
                st.rerun()

        ledger = get_ledger()
        ledger.load_all()
        if ledger.load_failed:
            st.error("❌ Could not load registrations. Please refresh.")
            return

        _render_stats(ledger)

        filter_col, search_col = st.columns([1, 2], gap="small")
        with filter_col:
            event_filter = st.selectbox(
                "Event",
                options=[ALL_EVENTS] + EVENTS,
                format_func=lambda value: "All events" if value == ALL_EVENTS else value,
                key=EVENT_FILTER_KEY,
            )
        with search_col:
            search = st.text_input(
                "Search", placeholder="Name, email or college", key=SEARCH_KEY
            )

        registrations = filter_registrations(ledger.registrations, event_filter, search)
        st.caption(f"Showing {len(registrations)} of {len(ledger.registrations)} registrations")

        _render_exports(registrations, event_filter)

        if not registrations:
            st.info("📝 No registrations match the current filter")
            return

        st.dataframe(build_export_rows(registrations), width='stretch', hide_index=True)
        _render_uploads(registrations)
    except Exception as error:
        _show_admin_exception(error, "load the admin panel")
