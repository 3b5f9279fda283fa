"""Registration page: capacity overview, event picker and registration form."""
import logging
from typing import Any, Dict, Optional

import streamlit as st

from src.models.event import CATEGORIES, EVENTS, EventConfig, get_event_config
from src.models.registration import Registration
from src.services.file_storage_service import LocalFileStorage, get_file_storage
from src.services.registration_service import RegistrationLedger, SubmitResult, get_ledger
from src.ui.html_utils import capacity_card_html, html_block
from src.utils.exceptions import RegistrationError

logger = logging.getLogger(__name__)

SELECTED_EVENT_KEY = "registration_selected_event"
FEEDBACK_KEY = "registration_feedback"
FORM_ID_KEY = "registration_form_id"

YEAR_OPTIONS = {1: "1st Year", 2: "2nd Year", 3: "3rd Year", 4: "4th Year"}


def build_registration(
    event: EventConfig,
    form: Dict[str, Any],
    uploaded_file_path: Optional[str] = None,
) -> Registration:
    """
    Turn raw form values into a Registration.

    Text is trimmed and team member slots beyond the event's size are
    dropped. Field-level checks are left to the ledger.
    """
    def _text(name: str) -> str:
        return (form.get(name) or "").strip()

    team_member3 = _text("team_member3") if event.max_team_members >= 3 else ""

    return Registration(
        email=_text("email"),
        student_name=_text("student_name"),
        college_name=_text("college_name"),
        department=_text("department"),
        year=form.get("year"),
        phone=_text("phone") or None,
        team_member1=_text("team_member1"),
        team_member2=_text("team_member2") or None,
        team_member3=team_member3 or None,
        event_name=event.name,
        uploaded_file_path=uploaded_file_path,
    )


def _save_upload(storage: LocalFileStorage, uploaded_file: object, email: str) -> str:
    """Persist the uploaded presentation and return its stored path."""
    key = storage.build_key(email or "anonymous", uploaded_file.name)
    return storage.store(key, bytes(uploaded_file.getbuffer()))


def _inject_registration_styles() -> None:
    st.markdown(
        html_block(
            """
            <style>
            .capacity-card {
                border-radius: 16px;
                padding: 20px;
                text-align: center;
                color: #ffffff;
                margin-bottom: 12px;
            }
            .capacity-card__label { font-size: 15px; font-weight: 600; }
            .capacity-card__count { font-size: 30px; font-weight: 800; margin: 6px 0; }
            .capacity-card__track {
                background: rgba(255, 255, 255, 0.25);
                border-radius: 999px;
                height: 8px;
                overflow: hidden;
            }
            .capacity-card__fill { background: #ffffff; height: 100%; }
            .capacity-card__status { font-size: 12px; font-weight: 700; margin-top: 8px; }
            </style>
            """
        ),
        unsafe_allow_html=True,
    )


def _render_capacity_overview(ledger: RegistrationLedger) -> None:
    """Per-category cards plus the portal total."""
    policy = ledger.policy
    counts = ledger.counts
    columns = st.columns(len(CATEGORIES) + 1, gap="small")

    for column, category in zip(columns, CATEGORIES):
        with column:
            ceiling = policy.category_capacity(category)
            st.markdown(
                capacity_card_html(
                    f"{category} Events",
                    counts.per_category.get(category, 0),
                    ceiling,
                    policy.is_category_open(category, counts),
                    category=category,
                ),
                unsafe_allow_html=True,
            )

    with columns[-1]:
        total_ceiling = policy.total_capacity()
        st.markdown(
            capacity_card_html(
                "Total Registrations",
                counts.total,
                total_ceiling,
                any(ledger.is_event_open(name) for name in EVENTS),
            ),
            unsafe_allow_html=True,
        )


def _render_event_summary(ledger: RegistrationLedger, event: EventConfig) -> bool:
    """Show the chosen event's details; returns whether it is open."""
    is_open = ledger.is_event_open(event.name)
    remaining = ledger.policy.remaining(event.name, ledger.counts)

    st.markdown(f"### Register for {event.name}")
    details = [
        f"**Category:** {event.category}",
        f"**Max Team Size:** {event.max_team_members}",
    ]
    if event.requires_file:
        details.append("**Presentation upload required** (PPT, PPTX, PDF)")
    st.markdown(" · ".join(details))

    if is_open:
        st.caption(f"{remaining} seats left")
    else:
        st.error(ledger.closed_message(event.name))
    return is_open


def _render_registration_form(ledger: RegistrationLedger, event: EventConfig, is_open: bool) -> None:
    """Registration form for one event."""
    form_id = st.session_state.setdefault(FORM_ID_KEY, 0)

    with st.form(f"registration_form_{event.name}_{form_id}", clear_on_submit=False):
        st.markdown("#### Personal Information")
        col1, col2 = st.columns(2, gap="small")
        with col1:
            email = st.text_input("Email Address *", placeholder="your.email@college.edu")
            college_name = st.text_input("College/University *", placeholder="Your college name")
            year = st.selectbox(
                "Academic Year *",
                options=list(YEAR_OPTIONS),
                format_func=lambda value: YEAR_OPTIONS[value],
                index=None,
                placeholder="Select your year",
            )
        with col2:
            student_name = st.text_input("Full Name *", placeholder="Your full name")
            department = st.text_input(
                "Department *", placeholder="e.g., Artificial Intelligence & Data Science"
            )
            phone = st.text_input(
                "Phone Number", placeholder="9876543210", max_chars=14,
                help="Enter 10-digit phone number",
            )

        st.markdown("#### Team Information")
        team_member1 = st.text_input("Team Member 1 *")
        team_member2 = st.text_input("Team Member 2")
        team_member3 = st.text_input("Team Member 3") if event.max_team_members >= 3 else ""

        uploaded_file = None
        if event.requires_file:
            st.markdown("#### Presentation Upload")
            st.info("Upload your presentation file (PPT, PPTX, or PDF). It will be available to the organizers.")
            uploaded_file = st.file_uploader(
                "Upload Presentation (PPT, PPTX, PDF) *",
                type=["ppt", "pptx", "pdf"],
            )

        submitted = st.form_submit_button(
            f"Register for {event.name}", type="primary", disabled=not is_open
        )

    if not submitted:
        return

    if event.requires_file and uploaded_file is None:
        st.error("❌ Please upload your presentation file.")
        return

    form_values = {
        "email": email,
        "student_name": student_name,
        "college_name": college_name,
        "department": department,
        "year": year,
        "phone": phone,
        "team_member1": team_member1,
        "team_member2": team_member2,
        "team_member3": team_member3,
    }

    # Cheap checks before the upload is written
    if year is None:
        st.error("❌ Please select your academic year.")
        return
    if ledger.email_registered(email):
        st.error("❌ This email is already registered for an event.")
        return

    uploaded_path = None
    if uploaded_file is not None:
        try:
            uploaded_path = _save_upload(get_file_storage(), uploaded_file, email.strip())
        except RegistrationError as error:
            st.error(f"❌ {error.message}")
            return

    with st.spinner("Registering..."):
        result: SubmitResult = ledger.submit(build_registration(event, form_values, uploaded_path))

    if result.success:
        st.session_state[FEEDBACK_KEY] = (
            "success",
            f"🎉 Registration successful! You have been registered for {event.name}. "
            "Check your email for the \"On-Duty\" request letter.",
        )
        st.session_state[FORM_ID_KEY] = form_id + 1
        st.rerun()
    else:
        st.error(f"❌ Registration failed: {result.message}")


def render_registration_page() -> None:
    """Render capacity overview, event picker and the registration form."""
    _inject_registration_styles()
    ledger = get_ledger()
    ledger.load_all()

    st.markdown("## 🎟️ Symposium Event Registration")

    if ledger.load_failed:
        st.warning("⚠️ Live registration counts are unavailable right now. Please try again shortly.")

    feedback = st.session_state.pop(FEEDBACK_KEY, None)
    if feedback:
        level, message = feedback
        getattr(st, level, st.info)(message)

    _render_capacity_overview(ledger)

    default_event = st.session_state.get(SELECTED_EVENT_KEY, EVENTS[0])
    selected = st.radio(
        "Choose an event",
        options=EVENTS,
        index=EVENTS.index(default_event) if default_event in EVENTS else 0,
        format_func=lambda name: name if ledger.is_event_open(name) else f"{name} (Closed)",
        horizontal=True,
        key=SELECTED_EVENT_KEY,
    )

    event = get_event_config(selected)
    is_open = _render_event_summary(ledger, event)
    _render_registration_form(ledger, event, is_open)
