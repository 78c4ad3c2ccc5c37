from __future__ import annotations

import os
from typing import Callable

import streamlit as st

from helpdesk.api.codes import CATEGORY_CODES, PRIORITY_CODES, STATUS_CODES
from helpdesk.ui.api import APIError, HelpdeskAPIClient
from helpdesk.ui.utils import code_label, code_options, format_timestamp

DEFAULT_BASE_URL = os.getenv("HELPDESK_API_BASE_URL", "http://localhost:8000")
ANY = "Any"
FLASH_KEY = "details_flash"


def _build_client() -> HelpdeskAPIClient:
    base_url = st.sidebar.text_input("API Base URL", value=st.session_state.get("base_url", DEFAULT_BASE_URL))
    st.session_state["base_url"] = base_url
    return HelpdeskAPIClient(base_url=base_url)


def _handle_api_call(
    callback: Callable[[], object], success_message: str | None = None
) -> tuple[bool, object | None]:
    try:
        result = callback()
    except APIError as exc:
        st.error(str(exc))
        return False, None
    else:
        if success_message:
            st.success(success_message)
        return True, result


def _submit_and_refresh(callback: Callable[[], object], success_message: str | None = None) -> bool:
    """Run a write and rerun the page so the details view shows the new state."""

    success, result = _handle_api_call(callback)
    if not success:
        return False
    message = success_message
    if message is None and isinstance(result, dict):
        message = result.get("message")
    if message:
        st.session_state[FLASH_KEY] = str(message)
    st.rerun()
    return True


def _select_code(container, title: str, codes, *, allow_any: bool) -> int | None:
    options = code_options(codes)
    labels = ([ANY] if allow_any else []) + list(options)
    choice = container.selectbox(title, options=labels)
    return None if choice == ANY else options[choice]


def _render_list(client: HelpdeskAPIClient) -> None:
    st.subheader("Tickets")
    cols = st.columns(5)
    status = _select_code(cols[0], "Status", STATUS_CODES, allow_any=True)
    priority = _select_code(cols[1], "Priority", PRIORITY_CODES, allow_any=True)
    category = _select_code(cols[2], "Category", CATEGORY_CODES, allow_any=True)
    search = cols[3].text_input("Search")
    sort = cols[4].selectbox("Sort", options=["newest", "oldest"])

    success, tickets = _handle_api_call(
        lambda: client.list_tickets(status=status, priority=priority, category=category, search=search, sort=sort)
    )
    if not success or not tickets:
        st.caption("No tickets match the current filters")
        return

    st.table(
        [
            {
                "ID": item["id"],
                "Title": item["title"],
                "Created by": item["createdBy"],
                "Category": code_label(CATEGORY_CODES, item["category"]),
                "Priority": code_label(PRIORITY_CODES, item["priority"]),
                "Status": code_label(STATUS_CODES, item["status"]),
                "Comments": item["commentCount"],
                "Created": format_timestamp(item["createdAt"]),
            }
            for item in tickets
        ]
    )


def _render_create(client: HelpdeskAPIClient) -> None:
    st.subheader("New ticket")
    with st.form("create_ticket_form"):
        title = st.text_input("Title", max_chars=200)
        description = st.text_area("Description", max_chars=2000)
        created_by = st.text_input("Created by", max_chars=100)
        category = _select_code(st, "Category", CATEGORY_CODES, allow_any=False)
        priority = _select_code(st, "Priority", PRIORITY_CODES, allow_any=False)
        submitted = st.form_submit_button("Create")

    if submitted and category is not None and priority is not None:
        success, ticket = _handle_api_call(
            lambda: client.create_ticket(
                title=title,
                description=description,
                created_by=created_by,
                category=category,
                priority=priority,
            ),
            "Ticket created",
        )
        if success and isinstance(ticket, dict):
            st.session_state["ticket_lookup"] = str(ticket["id"])


def _render_details(client: HelpdeskAPIClient) -> None:
    st.subheader("Ticket details")
    ticket_id_raw = st.text_input("Ticket ID", key="ticket_lookup")
    if not ticket_id_raw.strip().isdigit():
        st.caption("Enter a ticket ID to triage it")
        return
    ticket_id = int(ticket_id_raw)

    flash = st.session_state.pop(FLASH_KEY, None)
    if flash:
        st.success(flash)

    success, detail = _handle_api_call(lambda: client.get_ticket(ticket_id))
    if not success or not isinstance(detail, dict):
        return

    st.markdown(f"#### #{detail['id']} {detail['title']}")
    meta = st.columns(4)
    meta[0].metric("Status", code_label(STATUS_CODES, detail["status"]))
    meta[1].metric("Priority", code_label(PRIORITY_CODES, detail["priority"]))
    meta[2].metric("Category", code_label(CATEGORY_CODES, detail["category"]))
    meta[3].metric("Created by", detail["createdBy"])
    st.write(detail["description"])
    st.caption(f"Created {format_timestamp(detail['createdAt'])}, updated {format_timestamp(detail['updatedAt'])}")

    st.markdown("#### Comments")
    for comment in detail.get("comments", []):
        st.markdown(f"**{comment['author']}** ({format_timestamp(comment['createdAt'])}): {comment['message']}")
    if not detail.get("comments"):
        st.caption("No comments yet")

    with st.form("add_comment_form"):
        author = st.text_input("Author", max_chars=100)
        message = st.text_area("Message", max_chars=2000)
        comment_submitted = st.form_submit_button("Add comment")
    if comment_submitted:
        _submit_and_refresh(lambda: client.add_comment(ticket_id, author=author, message=message), "Comment added")

    with st.form("status_form"):
        new_status = _select_code(st, "New status", STATUS_CODES, allow_any=False)
        status_submitted = st.form_submit_button("Update status")
    if status_submitted and new_status is not None:
        _submit_and_refresh(lambda: client.update_status(ticket_id, status=new_status))


def main() -> None:
    st.set_page_config(page_title="Helpdesk", layout="wide")
    client = _build_client()
    list_tab, create_tab, details_tab = st.tabs(["Tickets", "New ticket", "Details"])
    with list_tab:
        _render_list(client)
    with create_tab:
        _render_create(client)
    with details_tab:
        _render_details(client)


if __name__ == "__main__":
    main()
