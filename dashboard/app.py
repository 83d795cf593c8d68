"""Streamlit dashboard for the OPD Token Allocation Engine."""

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
API_BASE_URL = os.getenv("OPD_API_BASE_URL", "http://127.0.0.1:8000")
TOKEN_SOURCES = ["WALK_IN", "ONLINE", "FOLLOW_UP", "PAID", "EMERGENCY"]

st.set_page_config(
    page_title="OPD Dashboard",
    page_icon="🏥",
    layout="wide",
)

# ==========================================
# API Helper Functions
# ==========================================
def _error_detail(response: requests.Response) -> str:
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text


def fetch_doctors() -> List[Dict[str, Any]]:
    try:
        response = requests.get(f"{API_BASE_URL}/api/doctors", timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return []


def allocate_token(
    doctor_id: str,
    target_date: str,
    patient_name: str,
    source: str,
    emergency: bool,
) -> Optional[Dict[str, Any]]:
    """Calls the backend Allocator."""
    try:
        response = requests.post(
            f"{API_BASE_URL}/api/tokens/allocate",
            json={
                "doctor_id": doctor_id,
                "date": target_date,
                "patient_name": patient_name,
                "source": source,
                "emergency": emergency,
            },
            timeout=5,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None
    if response.status_code == 409:
        st.warning(f"Booking full: {_error_detail(response)}")
        return None
    if not response.ok:
        st.error(f"Allocation failed: {_error_detail(response)}")
        return None
    return response.json()


def fetch_schedule(doctor_id: str, target_date: str) -> Optional[Dict[str, Any]]:
    try:
        response = requests.get(
            f"{API_BASE_URL}/api/doctors/{doctor_id}/schedule",
            params={"date": target_date},
            timeout=5,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Schedule lookup failed: {e}")
        return None


def release_token(token_id: str, action: str) -> Optional[Dict[str, Any]]:
    """``action`` is ``cancel`` or ``no-show``."""
    try:
        response = requests.post(f"{API_BASE_URL}/api/tokens/{token_id}/{action}", timeout=5)
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None
    if not response.ok:
        st.error(_error_detail(response))
        return None
    return response.json()


def run_day_simulation(target_date: str) -> Optional[Dict[str, Any]]:
    try:
        response = requests.post(
            f"{API_BASE_URL}/api/simulate/day",
            json={"date": target_date},
            timeout=10,
        )
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Simulation failed: {e}")
        return None


def schedule_frame(schedule: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for slot in schedule:
        patients = ", ".join(
            f"{token['patient_name']} ({token['source']})" for token in slot["tokens"]
        )
        rows.append(
            {
                "slot": f"{slot['start_time']}-{slot['end_time']}",
                "booked": slot["booked"],
                "capacity": slot["capacity"],
                "patients": patients or "—",
            }
        )
    return pd.DataFrame(rows)


def token_frame(schedule: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "id": token["id"],
            "slot": f"{slot['start_time']}-{slot['end_time']}",
            "patient": token["patient_name"],
            "source": token["source"],
            "priority": token["priority_score"],
        }
        for slot in schedule
        for token in slot["tokens"]
    ]
    return pd.DataFrame(rows, columns=["id", "slot", "patient", "source", "priority"])


# ==========================================
# UI Page Functions
# ==========================================
def render_booking_page() -> None:
    st.header("🎟️ Book a Token")

    doctors = fetch_doctors()
    if not doctors:
        st.info("No doctors registered yet. Run the day simulation or create one via the API.")
        return

    names = {doctor["name"]: doctor["id"] for doctor in doctors}
    col1, col2 = st.columns(2)
    with col1:
        doctor_name = st.selectbox("Doctor", list(names))
        target_date = st.date_input("Date", datetime.date.today())
    with col2:
        patient_name = st.text_input("Patient Name")
        source = st.selectbox("Source", TOKEN_SOURCES)
        emergency = st.checkbox("Emergency")

    if st.button("Allocate", type="primary"):
        if not patient_name.strip():
            st.error("Patient name is required.")
            return
        token = allocate_token(names[doctor_name], str(target_date), patient_name, source, emergency)
        if token:
            st.success(f"Token {token['id']} booked for {token['patient_name']} ({token['source']})")


def render_schedule_page() -> None:
    st.header("📋 Doctor Schedule")

    doctors = fetch_doctors()
    if not doctors:
        st.info("No doctors registered yet.")
        return

    names = {doctor["name"]: doctor["id"] for doctor in doctors}
    col1, col2 = st.columns(2)
    with col1:
        doctor_name = st.selectbox("Doctor", list(names))
    with col2:
        target_date = st.date_input("Date", datetime.date.today())

    result = fetch_schedule(names[doctor_name], str(target_date))
    if result is None:
        return
    if not result["schedule"]:
        st.info("No activity for this doctor on this date.")
    else:
        st.dataframe(schedule_frame(result["schedule"]), use_container_width=True)
        st.write("### Booked Tokens")
        st.dataframe(token_frame(result["schedule"]), use_container_width=True, hide_index=True)

    st.write("### Release a Token")
    token_id = st.text_input("Token ID")
    col_a, col_b = st.columns(2)
    if col_a.button("Cancel") and token_id:
        if release_token(token_id, "cancel"):
            st.success("Token cancelled; a later patient may have moved up.")
    if col_b.button("Mark No-Show") and token_id:
        if release_token(token_id, "no-show"):
            st.success("Token marked as no-show.")


def render_simulation_page() -> None:
    st.header("🧪 Day Simulation")
    st.markdown("Reset the store and replay a full OPD day across three doctors.")

    target_date = st.date_input("Simulation Date", datetime.date.today())
    if st.button("Run Simulation", type="primary"):
        with st.spinner("Simulating the OPD day..."):
            result = run_day_simulation(str(target_date))

        if result:
            events = pd.DataFrame(
                [
                    {
                        "type": event["type"],
                        "doctor": event["doctor"] or "",
                        "patient": (event["token"] or {}).get("patient_name", ""),
                        "outcome": event["outcome"],
                    }
                    for event in result["events"]
                ]
            )
            st.write("### Event Log")
            st.dataframe(events, use_container_width=True)

            for item in result["schedules"]:
                st.write(f"### {item['doctor']['name']}")
                st.dataframe(schedule_frame(item["schedule"]), use_container_width=True)


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("OPD Token Engine")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation Module",
        ["Book Token", "Schedule", "Day Simulation"]
    )

    st.sidebar.markdown("---")
    st.sidebar.caption(f"API: {API_BASE_URL}")

    if page == "Book Token":
        render_booking_page()
    elif page == "Schedule":
        render_schedule_page()
    elif page == "Day Simulation":
        render_simulation_page()

if __name__ == "__main__":
    main()
