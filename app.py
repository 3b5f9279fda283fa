"""
Symposium Event Registration Portal
"""
import logging
import streamlit as st

from src.ui.registration_page import render_registration_page
from src.ui.admin_panel import render_admin_panel
from src.utils.config import configure_logging, get_settings

logger = logging.getLogger(__name__)

PAGES = ("register", "admin")


# Streamlit page config
st.set_page_config(
    page_title="Symposium Registration",
    page_icon="🎟️",
    layout="wide",
    initial_sidebar_state="collapsed"
)


def initialize_session_state():
    """Initialize session state defaults."""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "register"

    if "admin_authenticated" not in st.session_state:
        st.session_state.admin_authenticated = False

    # Allow ?page=admin as a direct link
    if "url_params_processed" not in st.session_state:
        page = st.query_params.get("page")
        if page in PAGES:
            st.session_state.current_page = page
        st.session_state.url_params_processed = True


def apply_custom_css():
    """Apply global styles."""
    st.markdown("""
        <style>
        .stApp {
            background: linear-gradient(135deg, #0f0c29 0%, #1a1a2e 50%, #16213e 100%);
        }

        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}
        header, [data-testid="stHeader"] {
            visibility: hidden;
            height: 0;
        }

        [data-testid="stAppViewContainer"] > .main .block-container {
            padding-top: 1.5rem;
        }

        .stButton > button {
            border-radius: 12px;
            font-weight: 600;
            border: none;
        }

        .stButton > button[kind="primary"],
        .stFormSubmitButton > button[kind="primary"] {
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            color: white;
        }

        .stTextInput > div > div > input {
            background: #16213e;
            border: 1px solid #2d3748;
            border-radius: 8px;
            color: #f1f5f9;
        }
        </style>
    """, unsafe_allow_html=True)


def render_navigation():
    """Render the top navigation."""
    st.markdown("<div style='margin-bottom: 24px;'></div>", unsafe_allow_html=True)

    nav_col1, _, nav_col3 = st.columns([1, 3, 1], gap="small")

    with nav_col1:
        if st.button("🎟️ Register", width='stretch', key="nav_register"):
            st.session_state.current_page = "register"

    with nav_col3:
        if st.button("👤 Admin", width='stretch', key="nav_admin"):
            st.session_state.current_page = "admin"


def render_current_page():
    """Render the page selected in session state."""
    try:
        if st.session_state.current_page == "register":
            render_registration_page()

        elif st.session_state.current_page == "admin":
            render_admin_panel()

        else:
            st.error(f"Unknown page: {st.session_state.current_page}")
            if st.button("Back to registration"):
                st.session_state.current_page = "register"
                st.rerun()

    except Exception as e:
        # Error boundary
        logger.exception("Unhandled exception while rendering page")
        st.error("Something went wrong. Please try again later.")

        with st.expander("🔍 Error details"):
            st.code(str(e))

        if st.button("Back to registration"):
            st.session_state.current_page = "register"
            st.rerun()


def main():
    """Application entry point."""
    try:
        configure_logging(get_settings().log_level)
        initialize_session_state()
        apply_custom_css()
        render_navigation()
        render_current_page()
    except Exception as e:
        logger.exception("Unhandled exception during app execution")
        st.error("The application hit an error. Please reload the page.")
        st.code(str(e))

        if st.button("🔄 Reload"):
            st.session_state.clear()
            st.rerun()


if __name__ == "__main__":
    main()
