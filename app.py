"""
app.py
Streamlit Church Management System (members, cells, finances, events).
Run: streamlit run app.py
"""

from __future__ import annotations

import logging

import streamlit as st

import auth
import config
import db
import views

st.set_page_config(page_title="Church Management", layout="wide")

logging.basicConfig(
    level=config.settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

PAGES = {
    "Dashboard": "System overview",
    "Members": "Church member management",
    "Finances": "Tithes, offerings and campaigns",
    "Events": "Church event planning",
    "Cells": "Cells and small groups",
    "Settings": "Password and sample data",
}


@st.cache_resource
def init_once() -> bool:
    # Initialize DB + default admin if needed (hashing is slow, so once per process)
    default_hash = auth.hash_password(config.settings.admin_password)
    db.init_db(default_hash)
    return True


def sign_out():
    st.session_state.user_email = None


def build_session(ready: bool) -> auth.AuthSession:
    return auth.AuthSession(
        current_user=st.session_state.get("user_email"),
        is_loading=not ready,
        sign_out=sign_out,
    )


def login_screen():
    st.title("🔐 Church Management Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        email = st.text_input("E-mail", value=config.settings.admin_email)
        password = st.text_input("Password", type="password")
        if st.button("Sign in", type="primary"):
            if auth.login(email.strip(), password):
                st.session_state.user_email = email.strip().lower()
                st.rerun()
            else:
                st.error("Invalid e-mail or password.")

    with col2:
        st.info(
            "First run creates a default admin from CHURCH_ADMIN_EMAIL / "
            "CHURCH_ADMIN_PASSWORD (admin@church.local / admin123 unless set). "
            "Change the password under Settings."
        )


def main_app(session: auth.AuthSession):
    st.sidebar.title("⛪ Church Management")
    st.sidebar.caption(f"Signed in as: {session.current_user}")

    pages = list(PAGES)
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Sign out"):
        session.sign_out()
        st.rerun()

    page = st.session_state.page
    views.render_header(session, page, PAGES[page])

    if page == "Dashboard":
        views.dashboard_page()
    elif page == "Members":
        views.members_page()
    elif page == "Finances":
        views.finances_page()
    elif page == "Events":
        views.events_page()
    elif page == "Cells":
        views.cells_page()
    elif page == "Settings":
        views.settings_page(session)


# --------- App entry ---------

def run():
    session = build_session(init_once())

    if session.is_loading:
        st.info("Loading...")
        return

    if not session.signed_in:
        login_screen()
        return

    main_app(session)


if __name__ == "__main__":
    run()
