"""FlightGlobe — Streamlit host for the in-flight globe."""

import datetime

from dotenv import load_dotenv

load_dotenv()

import streamlit as st  # noqa: E402

from flightglobe.config import ConfigError, Settings, configure_logging  # noqa: E402
from flightglobe.renderers.plotly_3d import render_globe  # noqa: E402
from flightglobe.session import GlobeSession  # noqa: E402

st.set_page_config(
    page_title="FlightGlobe",
    page_icon="✈",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
    <style>
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #050a1a !important;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] {
        display: none !important;
    }
    .overlay-box {
        background: rgba(0, 0, 0, 0.7);
        border-radius: 15px;
        padding: 1rem 1.4rem;
        color: #ffffff;
    }
    .overlay-box .value { font-size: 1.25rem; white-space: pre-line; }
    .overlay-box .caption { font-size: 0.75rem; color: #aaaaaa; margin-bottom: 0.6rem; }
    </style>
    """,
    unsafe_allow_html=True,
)

# --- Session state initialization ---
if "session" not in st.session_state:
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        st.error(f"Configuration error: {e}")
        st.stop()
    configure_logging(settings.log_level)
    session = GlobeSession.from_settings(settings)
    session.on_sun_tick()
    st.session_state.settings = settings
    st.session_state.session = session
    st.session_state.last_sun = datetime.datetime.now(datetime.timezone.utc)

session: GlobeSession = st.session_state.session
settings: Settings = st.session_state.settings


def _overlay_column(items: list[tuple[str, str]]) -> str:
    return "".join(
        f"<div class='value'>{value}</div><div class='caption'>{caption}</div>"
        for value, caption in items
    )


@st.fragment(run_every=settings.poll_interval_s)
def globe_panel() -> None:
    now = datetime.datetime.now(datetime.timezone.utc)
    if (now - st.session_state.last_sun).total_seconds() >= settings.sun_interval_s:
        session.on_sun_tick(now)
        st.session_state.last_sun = now
    session.on_poll_tick()

    snap = session.snapshot()
    st.plotly_chart(
        render_globe(snap),
        use_container_width=True,
        config={"scrollZoom": True, "displayModeBar": False},
    )

    s = snap.summary
    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown(
            "<div class='overlay-box'>"
            + _overlay_column(
                [(s.time_at_origin, f"Time at {s.origin_city}"), (s.time_to_go, "Time till Landing")]
            )
            + "</div>",
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown(
            "<div class='overlay-box'>"
            + _overlay_column([(s.flight_number, "Flight Number"), (s.ground_speed, "Ground Speed")])
            + "</div>",
            unsafe_allow_html=True,
        )
    with col3:
        st.markdown(
            "<div class='overlay-box'>"
            + _overlay_column(
                [(s.time_at_destination, f"Time at {s.destination_city}"), (s.altitude, "Altitude")]
            )
            + "</div>",
            unsafe_allow_html=True,
        )
    if snap.message:
        st.markdown(
            f"<div class='overlay-box' style='border:1px solid #ff6b6b; color:#ff9999;'>"
            f"{snap.message}</div>",
            unsafe_allow_html=True,
        )


globe_panel()

# --- Zoom (non-gesture input path) ---
fov = st.slider("Zoom (field of view)", 4.0, 60.0, float(session.engine.zoom), step=1.0)
if fov != session.engine.zoom:
    session.zoom(fov)
    st.rerun()
