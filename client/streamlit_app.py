"""Simple client-side Streamlit UI for the summarybot backend.

Features
--------
* One text box; blank input is rejected right here with a warning, the
  backend is never called.
* Shows the AI reply, the summary and (in email mode) the drafted email.
* Sidebar "History" drawer backed by ``GET /api/messages1`` with paging and an
  expander per stored exchange.

Run with:
    $ streamlit run client/streamlit_app.py

Make sure your backend is up (default assumes http://localhost:5000) or
change the "API Base URL" in the sidebar.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict

import requests
import streamlit as st

st.set_page_config(page_title="Summarybot", page_icon="🤖", layout="wide")

###############################################################################
# Session-state helpers
###############################################################################

if "last_response" not in st.session_state:
    st.session_state.last_response: Dict[str, Any] | None = None
if "history_page" not in st.session_state:
    st.session_state.history_page = 1

###############################################################################
# Sidebar - configuration
###############################################################################

st.sidebar.header("Server configuration")
API_BASE_URL: str = st.sidebar.text_input(
    "API Base URL", value="http://localhost:5000", help="Where the summarybot backend lives"
).rstrip("/")
EMAIL_MODE: bool = st.sidebar.checkbox("Also draft a formal email reply", value=False)
NO_CACHE: bool = st.sidebar.checkbox("Bypass the reply cache", value=False)
PAGE_SIZE: int = int(st.sidebar.number_input("History page size", value=10, min_value=1, step=1))

st.sidebar.markdown("---")

###############################################################################
# Sidebar - history drawer
###############################################################################


def _format_ts(raw: str) -> str:
    try:
        return _dt.datetime.fromisoformat(raw.replace("Z", "+00:00")).astimezone().strftime("%Y-%m-%d %H:%M")
    except (AttributeError, ValueError):
        return raw or ""


def render_history() -> None:
    st.sidebar.header("History")
    try:
        r = requests.get(
            f"{API_BASE_URL}/api/messages1",
            params={"page": st.session_state.history_page, "limit": PAGE_SIZE},
            timeout=10,
        )
        r.raise_for_status()
        data = r.json()
    except requests.RequestException as exc:
        st.sidebar.error(f"Could not load history: {exc}")
        return

    for message in data.get("messages", []):
        with st.sidebar.expander(message["userMessage"][:60]):
            st.markdown(message["botReply"])
            if message.get("emailReply"):
                st.markdown("**Email reply**")
                st.markdown(message["emailReply"])
            st.caption(_format_ts(message.get("createdAt", "")))

    total_pages = max(data.get("totalPages", 0), 1)
    prev_col, info_col, next_col = st.sidebar.columns([1, 2, 1])
    if prev_col.button("◀", disabled=st.session_state.history_page <= 1):
        st.session_state.history_page -= 1
        st.rerun()
    info_col.caption(f"Page {data.get('currentPage', 1)} / {total_pages}")
    if next_col.button("▶", disabled=st.session_state.history_page >= total_pages):
        st.session_state.history_page += 1
        st.rerun()


###############################################################################
# Main panel
###############################################################################

st.title("Summarybot")

with st.form("chat", clear_on_submit=False):
    user_message = st.text_input("Search with the Chatbot...", key="user_message")
    submitted = st.form_submit_button("Search")

if submitted:
    if not user_message.strip():
        st.warning("Please enter a search query.")
    else:
        payload: Dict[str, Any] = {"userMessage": user_message}
        if EMAIL_MODE:
            payload["type"] = "email"
        params = {"nocache": "true"} if NO_CACHE else None

        with st.spinner("Searching..."):
            try:
                r = requests.post(f"{API_BASE_URL}/api/chat", json=payload, params=params, timeout=120)
                r.raise_for_status()
                st.session_state.last_response = r.json()
                st.session_state.history_page = 1
            except requests.RequestException as exc:
                st.session_state.last_response = None
                st.error(f"❌ Something went wrong. Please try again. ({exc})")

data = st.session_state.last_response
if data:
    st.subheader("Response")
    st.markdown(data.get("botReply", ""))
    st.subheader("Summary")
    st.info(data.get("summary", ""))
    if data.get("emailReply"):
        st.subheader("Email reply")
        st.markdown(data["emailReply"])

# after the form so a fresh exchange is already on page 1
render_history()
