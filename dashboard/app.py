"""Streamlit operator dashboard for the HotelOS front desk."""

from __future__ import annotations

import datetime
import os
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = os.getenv("FRONTDESK_API_URL", "http://127.0.0.1:8000")

STATUS_OPTIONS = ["AVAILABLE", "OCCUPIED", "DIRTY", "MAINTENANCE", "RESERVED"]
PAYMENT_OPTIONS = ["CASH", "CARD", "QR_TRANSFER", "PREPAID"]
SOURCE_OPTIONS = ["Walk-In", "Booking.com", "Agoda", "G2J", "Other"]
ACTION_LABELS = {
    "mark_clean": "Mark clean",
    "start_maintenance": "Start maintenance",
    "check_out": "Check out",
    "check_in": "Check in",
    "cancel_reservation": "Cancel reservation",
}

st.set_page_config(
    page_title="HotelOS Front Desk",
    page_icon="🏨",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def _headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_detail(response: requests.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text
    if isinstance(detail, dict):
        return str(detail.get("message", detail))
    return str(detail)


def fetch_rooms(status: Optional[str], search: str) -> List[Dict[str, Any]]:
    params: Dict[str, str] = {}
    if status:
        params["status"] = status
    if search:
        params["search"] = search
    try:
        response = requests.get(f"{API_BASE_URL}/rooms", params=params, timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return []


def fetch_summary() -> Optional[Dict[str, Any]]:
    try:
        response = requests.get(f"{API_BASE_URL}/summary", timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Summary unavailable: {e}")
        return None


def login(admin_token: str) -> bool:
    try:
        response = requests.post(
            f"{API_BASE_URL}/login",
            json={"admin_token": admin_token},
            timeout=5,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Login failed: {e}")
        return False
    if response.status_code != 200:
        st.error(f"Login failed: {_error_detail(response)}")
        return False
    st.session_state["access_token"] = response.json()["access_token"]
    return True


def save_room(room_id: str, changes: Dict[str, Any], force: bool) -> Optional[Dict[str, Any]]:
    """Submit an edit; a 409 conflict is stored for the operator to acknowledge."""
    try:
        response = requests.put(
            f"{API_BASE_URL}/rooms/{room_id}",
            json={**changes, "force": force},
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Save failed: {e}")
        return None
    if response.status_code == 409:
        st.session_state["pending_conflict"] = {
            "room_id": room_id,
            "changes": changes,
            "detail": response.json().get("detail", {}),
        }
        return None
    if response.status_code != 200:
        st.error(f"Save failed: {_error_detail(response)}")
        return None
    st.session_state.pop("pending_conflict", None)
    return response.json()


def run_action(room_id: str, action: str, maintenance_issue: Optional[str] = None) -> bool:
    try:
        response = requests.post(
            f"{API_BASE_URL}/rooms/{room_id}/actions/{action}",
            json={"maintenance_issue": maintenance_issue},
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Action failed: {e}")
        return False
    if response.status_code != 200:
        st.error(f"Action failed: {_error_detail(response)}")
        return False
    return True


def fetch_bookings(room_id: str) -> List[Dict[str, Any]]:
    try:
        response = requests.get(f"{API_BASE_URL}/rooms/{room_id}/bookings", timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Bookings unavailable: {e}")
        return []


def remove_reservation(room_id: str) -> bool:
    try:
        response = requests.delete(
            f"{API_BASE_URL}/rooms/{room_id}/reservation",
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Removing reservation failed: {e}")
        return False
    if response.status_code != 200:
        st.error(f"Removing reservation failed: {_error_detail(response)}")
        return False
    return True


def move_reservation(room_id: str, target_room_id: str, force: bool) -> bool:
    try:
        response = requests.post(
            f"{API_BASE_URL}/rooms/{room_id}/reservation/move",
            json={"target_room_id": target_room_id, "force": force},
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Moving reservation failed: {e}")
        return False
    if response.status_code != 200:
        st.error(f"Moving reservation failed: {_error_detail(response)}")
        return False
    return True


def reset_rooms() -> Optional[Dict[str, Any]]:
    try:
        response = requests.post(f"{API_BASE_URL}/admin/reset", headers=_headers(), timeout=10)
    except requests.exceptions.RequestException as e:
        st.error(f"Reset failed: {e}")
        return None
    if response.status_code != 200:
        st.error(f"Reset failed: {_error_detail(response)}")
        return None
    return response.json()


# ==========================================
# UI Page Functions
# ==========================================
def render_floor_page() -> None:
    st.header("🛏️ Room Floor")

    summary = fetch_summary()
    if summary:
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Occupancy", f"{summary['occupancy_percentage']:.0f}%")
        col2.metric("Checkouts overdue", summary["checkout_overdue"])
        col3.metric("Checkouts due soon", summary["checkout_soon"])
        col4.metric("Missing ID scan", summary["missing_id_scan"])

    col_a, col_b = st.columns(2)
    with col_a:
        status_filter = st.selectbox("Status", ["All"] + STATUS_OPTIONS)
    with col_b:
        search = st.text_input("Search room or guest")

    rooms = fetch_rooms(None if status_filter == "All" else status_filter, search)
    if not rooms:
        st.info("No rooms match the current filters.")
        return

    df = pd.DataFrame(rooms)[
        ["number", "display_name", "room_type", "status", "guest_name", "check_out_date", "price"]
    ]
    st.dataframe(df, use_container_width=True, hide_index=True)

    st.write("### Quick actions")
    for room in rooms:
        actions = room.get("available_actions", [])
        if not actions:
            continue
        columns = st.columns(len(actions) + 1)
        columns[0].write(f"**{room['display_name']}** · {room['status']}")
        for column, action in zip(columns[1:], actions):
            if column.button(ACTION_LABELS.get(action, action), key=f"{room['id']}-{action}"):
                if run_action(room["id"], action):
                    st.rerun()


def render_edit_page() -> None:
    st.header("✏️ Edit Room")

    rooms = fetch_rooms(None, "")
    if not rooms:
        return
    by_label = {f"{room['display_name']} ({room['status']})": room for room in rooms}
    room = by_label[st.selectbox("Room", list(by_label))]

    with st.form("edit-room"):
        status = st.selectbox("Status", STATUS_OPTIONS, index=STATUS_OPTIONS.index(room["status"]))
        guest_name = st.text_input("Guest name", value=room.get("guest_name") or "")
        guest_id = st.text_input("Guest ID", value=room.get("guest_id") or "")
        col1, col2 = st.columns(2)
        today = datetime.date.today()
        with col1:
            check_in_date = st.date_input(
                "Check-in date",
                datetime.date.fromisoformat(room["check_in_date"]) if room.get("check_in_date") else today,
            )
            check_in_time = st.text_input("Check-in time", value=room.get("check_in_time") or "14:00")
        with col2:
            check_out_date = st.date_input(
                "Check-out date",
                datetime.date.fromisoformat(room["check_out_date"])
                if room.get("check_out_date")
                else today + datetime.timedelta(days=1),
            )
            check_out_time = st.text_input("Check-out time", value=room.get("check_out_time") or "12:00")
        is_hourly = st.checkbox("Hourly stay", value=room.get("is_hourly", False))
        payment_method = st.selectbox("Payment", PAYMENT_OPTIONS)
        booking_source = st.selectbox("Source", SOURCE_OPTIONS)
        notes = st.text_area("Notes", value=room.get("notes") or "")
        submitted = st.form_submit_button("Save", type="primary")

    changes: Dict[str, Any] = {
        "status": status,
        "notes": notes,
    }
    if status == "OCCUPIED" or guest_name:
        changes.update(
            {
                "guest_name": guest_name or None,
                "guest_id": guest_id or None,
                "check_in_date": str(check_in_date),
                "check_out_date": str(check_out_date),
                "check_in_time": check_in_time,
                "check_out_time": check_out_time,
                "is_hourly": is_hourly,
                "payment_method": payment_method,
                "booking_source": booking_source,
            }
        )

    if submitted and save_room(room["id"], changes, force=False):
        st.success("Room saved.")

    pending = st.session_state.get("pending_conflict")
    if pending and pending["room_id"] == room["id"]:
        detail = pending["detail"]
        st.warning(detail.get("message", "These dates overlap an existing booking."))
        conflicting = detail.get("conflict", {}).get("conflicting_bookings", [])
        if conflicting:
            st.dataframe(pd.DataFrame(conflicting), use_container_width=True, hide_index=True)
        if st.button("Save anyway"):
            if save_room(room["id"], pending["changes"], force=True):
                st.success("Room saved despite the conflict.")

    upcoming = room.get("upcoming_reservation")
    if upcoming:
        st.write("### Upcoming Reservation")
        st.caption(
            f"{upcoming['guest_name']}: {upcoming['check_in_date']} -> {upcoming['check_out_date']}"
        )
        if st.button("Remove reservation"):
            if remove_reservation(room["id"]):
                st.success("Reservation removed.")
        targets = {
            other["display_name"]: other["id"]
            for other in rooms
            if other["id"] != room["id"] and not other.get("upcoming_reservation")
        }
        if targets:
            target_label = st.selectbox("Move to", list(targets))
            force_move = st.checkbox("Move even if the dates overlap")
            if st.button("Move reservation"):
                if move_reservation(room["id"], targets[target_label], force_move):
                    st.success(f"Reservation moved to {target_label}.")

    st.write("### History")
    history = room.get("history", [])
    if history:
        st.dataframe(pd.DataFrame(history), use_container_width=True, hide_index=True)
    else:
        st.caption("No history yet.")

    st.write("### Bookings")
    bookings = fetch_bookings(room["id"])
    if bookings:
        st.dataframe(pd.DataFrame(bookings), use_container_width=True, hide_index=True)
    else:
        st.caption("No bookings recorded for this room.")


def render_admin_page() -> None:
    st.header("🔐 Administration")

    admin_token = st.text_input("Admin token", type="password")
    if st.button("Login"):
        if login(admin_token):
            st.success("Logged in.")

    st.write("### Factory reset")
    st.caption("Deletes every room and booking, then reseeds the default floor.")
    if st.button("Reset rooms", type="primary"):
        result = reset_rooms()
        if result:
            st.success(f"Reset complete: {result['rooms_seeded']} rooms seeded.")


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("HotelOS Front Desk")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        ["Room Floor", "Edit Room", "Administration"],
    )

    st.sidebar.markdown("---")
    st.sidebar.caption(f"API: {API_BASE_URL}")
    st.sidebar.caption(
        "Session: authenticated" if st.session_state.get("access_token") else "Session: anonymous"
    )

    if page == "Room Floor":
        render_floor_page()
    elif page == "Edit Room":
        render_edit_page()
    elif page == "Administration":
        render_admin_page()


if __name__ == "__main__":
    main()
