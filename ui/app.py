"""
SilentMap Map UI
================

Streamlit front end for the SilentMap service.

Architecture:
    - STATE comes from the SilentMap service via HTTP (/state, /notices)
    - ACTIONS are posted back as HTTP requests; the service owns all state
    - The map is drawn with folium from the service's render model

Usage:
    streamlit run ui/app.py

Environment:
    SILENTMAP_API_URL  - service HTTP root (default: http://localhost:8001)
"""

import os
import time
from typing import Optional

import requests
import streamlit as st
from streamlit_folium import st_folium

from silentmap.views.map import MapRender, build_folium_map, new_area_click


API_URL = os.getenv("SILENTMAP_API_URL", "http://localhost:8001")

st.set_page_config(
    page_title="SilentMap",
    page_icon="🎵",
    layout="wide",
)


# =============================================================================
# Networking helpers
# =============================================================================

def fetch_state() -> Optional[dict]:
    try:
        r = requests.get(f"{API_URL}/state", timeout=2)
        if r.status_code == 200:
            return r.json()
    except requests.RequestException as e:
        st.session_state["last_error"] = str(e)
    return None


def fetch_notices() -> list:
    try:
        r = requests.get(f"{API_URL}/notices", timeout=2)
        if r.status_code == 200:
            return r.json()
    except requests.RequestException as e:
        st.session_state["last_error"] = str(e)
    return []


def post(path: str, payload: Optional[dict] = None) -> Optional[dict]:
    """POST an action; returns the new rendered state."""
    try:
        # listening/toggle may wait for the microphone
        r = requests.post(f"{API_URL}{path}", json=payload, timeout=15)
        if r.status_code == 200:
            return r.json()
        st.session_state["last_error"] = f"{path}: HTTP {r.status_code}"
    except requests.RequestException as e:
        st.session_state["last_error"] = str(e)
    return None


# =============================================================================
# Notices
# =============================================================================

if "notices" not in st.session_state:
    st.session_state["notices"] = []

st.session_state["notices"].extend(fetch_notices())

for notice in st.session_state["notices"]:
    if notice.get("blocking"):
        st.error(notice["message"])
    else:
        st.toast(notice["message"])
st.session_state["notices"] = []


# =============================================================================
# Sidebar: manual position and refresh
# =============================================================================

with st.sidebar:
    st.header("Position")
    st.caption("For devices that cannot push GPS fixes.")

    lat = st.number_input("Latitude", value=43.7696, format="%.6f", min_value=-90.0, max_value=90.0)
    lon = st.number_input("Longitude", value=11.2558, format="%.6f", min_value=-180.0, max_value=180.0)

    if st.button("Send position", use_container_width=True):
        post("/position", {"latitude": lat, "longitude": lon})
    if st.button("Report GPS unavailable", use_container_width=True):
        post("/position/unavailable")

    st.divider()
    auto_refresh = st.toggle("Auto-refresh", value=True)
    refresh_seconds = st.slider("Refresh every (s)", 1, 10, 2)

    if err := st.session_state.get("last_error"):
        st.caption(f"Last error: {err}")


# =============================================================================
# Main view
# =============================================================================

screen = fetch_state()

if screen is None:
    st.warning(f"SilentMap service not reachable at {API_URL}")
    st.stop()

st.caption(screen["gps_status"])

render = MapRender.model_validate(screen["map"])
result = st_folium(
    build_folium_map(render),
    width=None,
    height=560,
    key="silentmap",
    returned_objects=["center", "zoom", "last_object_clicked", "last_object_clicked_tooltip"],
)

if result:
    clicked, st.session_state["last_click"] = new_area_click(
        result, st.session_state.get("last_click")
    )
    if clicked is not None:
        post(f"/areas/{clicked}/select")
        st.rerun()

    center, zoom = result.get("center"), result.get("zoom")
    if center and zoom:
        moved = (round(center["lat"], 6), round(center["lng"], 6), int(zoom))
        if moved != st.session_state.get("map_view"):
            st.session_state["map_view"] = moved
            post("/map/view", {"latitude": moved[0], "longitude": moved[1], "zoom": moved[2]})


# ─── bottom action bar ────────────────────────────────────────────────────────

songs_col, listen_col, commit_col, stats_col = st.columns(4)

if songs_col.button("Songs", use_container_width=True):
    post("/panels/songs")
    st.rerun()
if listen_col.button(screen["listen_label"], use_container_width=True, type="primary"):
    post("/listening/toggle")
    st.rerun()
if commit_col.button(
    "Recording…" if screen["commit_in_progress"] else "Commit",
    use_container_width=True,
    disabled=screen["commit_in_progress"],
):
    post("/areas/commit")
    st.rerun()
if stats_col.button("Stats", use_container_width=True):
    post("/panels/stats")
    st.rerun()


# ─── panels ───────────────────────────────────────────────────────────────────

panels = screen["panels"]

if panels["songs"]["open"]:
    with st.container(border=True):
        st.subheader(panels["songs"]["title"])
        st.metric("Songs obtained", panels["songs"]["songs_obtained"])
        for song in panels["songs"]["songs"]:
            st.write(f"🎵 {song}")
        if st.button("Close", key="close_songs"):
            post("/panels/close")
            st.rerun()

if panels["stats"]["open"]:
    stats = panels["stats"]
    with st.container(border=True):
        st.subheader(stats["title"])
        st.write(stats["loudness_text"])
        c1, c2, c3 = st.columns(3)
        c1.metric("Distance", f"{stats['distance_traveled_km']:.2f} km")
        c2.metric("Area visited", f"{stats['area_visited_m2']:.0f} m²")
        c3.metric("Route points", stats["route_points"])
        st.caption(f"Session: {stats['session_state']}")
        if st.button("Close", key="close_stats"):
            post("/panels/close")
            st.rerun()

detail = panels["detail"]
if detail["open"]:
    with st.container(border=True):
        st.subheader(detail["song"])
        st.write(detail["loudness_text"])
        play_col, take_col, water_col = st.columns(3)
        if play_col.button("Play", use_container_width=True):
            post("/detail/play")
        if take_col.button("Take Song", use_container_width=True):
            post("/detail/take")
            st.rerun()
        if water_col.button("Water", use_container_width=True) or st.button("Dismiss", key="dismiss_detail"):
            post("/detail/dismiss")
            st.rerun()


# =============================================================================
# Auto-refresh
# =============================================================================

if auto_refresh:
    time.sleep(refresh_seconds)
    st.rerun()
