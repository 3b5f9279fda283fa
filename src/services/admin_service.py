"""Admin service for authentication, session state and the registrations view."""
import logging
from typing import Iterable, List, Optional, Tuple

import streamlit as st

from src.models.admin import Admin
from src.models.registration import Registration
from src.utils.config import get_settings

logger = logging.getLogger(__name__)

ADMIN_SESSION_KEY = "admin_authenticated"
ALL_EVENTS = "all"


def _configured_admin() -> Optional[Admin]:
    """Admin credentials from settings, or None if they are unusable."""
    settings = get_settings()
    try:
        return Admin(username=settings.admin_username, password=settings.admin_password)
    except ValueError as e:
        logger.warning("Admin login disabled: %s", e)
        return None


def authenticate_admin(username: str, password: str) -> bool:
    """
    Authenticate admin credentials.

    Args:
        username: Admin username
        password: Admin password

    Returns:
        True if credentials valid, False otherwise

    Behavior:
        - Credentials come from ADMIN_USERNAME / ADMIN_PASSWORD (env or .env)
        - Comparison happens server-side in constant time
        - An unset or too-short ADMIN_PASSWORD disables login entirely
    """
    admin = _configured_admin()
    if admin is None:
        return False
    return admin.matches(username, password)


def is_admin_authenticated() -> bool:
    """
    Check if admin is authenticated in current session.

    Returns:
        True if st.session_state['admin_authenticated'] is True
    """
    return st.session_state.get(ADMIN_SESSION_KEY, False)


def login_admin(username: str, password: str) -> Tuple[bool, str]:
    """
    Log in admin user.

    Returns:
        Tuple of (success: bool, message: str)
        - (True, "Logged in") on success
        - (False, "Invalid username or password") on failure
    """
    if authenticate_admin(username, password):
        st.session_state[ADMIN_SESSION_KEY] = True
        logger.info("Admin %s logged in", username)
        return True, "Logged in"
    logger.warning("Failed admin login for %r", username)
    return False, "Invalid username or password"


def logout_admin() -> None:
    """Clear the admin flag from the Streamlit session."""
    if ADMIN_SESSION_KEY in st.session_state:
        del st.session_state[ADMIN_SESSION_KEY]


def filter_registrations(
    registrations: Iterable[Registration],
    event: str = ALL_EVENTS,
    search: str = "",
) -> List[Registration]:
    """
    Filter the loaded registrations for the admin table.

    Args:
        registrations: Registrations, in display order
        event: Event name, or "all"
        search: Case-insensitive substring matched against student name,
            email and college name

    Returns:
        Matching registrations, order preserved
    """
    term = (search or "").strip().lower()
    result = []
    for registration in registrations:
        if event and event != ALL_EVENTS and registration.event_name != event:
            continue
        if term and not any(
            term in (value or "").lower()
            for value in (
                registration.student_name,
                registration.email,
                registration.college_name,
            )
        ):
            continue
        result.append(registration)
    return result
