from __future__ import annotations

import logging
from typing import Any

import numpy as np
import streamlit as st

from ui.styles import inject_global_styles
from viz.figures import canvas_figure
from workbench import (
    PANELS,
    ComputationError,
    ConfigurationError,
    Session,
    WorkbenchConfig,
    actions_for,
    setup_logging,
)

st.set_page_config(
    page_title="Terrain Workbench",
    page_icon="~",
    layout="wide",
)

inject_global_styles()

if "logging_ready" not in st.session_state:
    setup_logging(logging.INFO)
    st.session_state["logging_ready"] = True


def _qp_get(name: str, default: str) -> str:
    try:
        raw = st.query_params.get(name)
    except Exception:
        raw = None

    if raw is None:
        return default
    if isinstance(raw, list):
        return str(raw[0]) if raw else default
    return str(raw)


def _qp_int(name: str, default: int, *, min_value: int, max_value: int) -> int:
    try:
        v = int(float(_qp_get(name, str(default))))
    except ValueError:
        v = default
    return max(min_value, min(max_value, v))


def _qp_float(
    name: str, default: float, *, min_value: float, max_value: float
) -> float:
    try:
        v = float(_qp_get(name, str(default)))
    except ValueError:
        v = default
    return max(min_value, min(max_value, v))


def _config_from_query() -> WorkbenchConfig:
    defaults = WorkbenchConfig()
    raw: dict[str, Any] = {
        "mesh_points": _qp_int("mesh_points", defaults.mesh_points, min_value=16, max_value=4096),
        "map_points": _qp_int("map_points", defaults.map_points, min_value=256, max_value=16384),
        "final_points": _qp_int(
            "final_points", defaults.final_points, min_value=1024, max_value=32768
        ),
        "erosion_amount": _qp_float(
            "erosion_amount", defaults.erosion_amount, min_value=0.0, max_value=1.0
        ),
        "river_threshold": _qp_float(
            "river_threshold", defaults.river_threshold, min_value=0.0, max_value=0.5
        ),
        "ncities": _qp_int("ncities", defaults.ncities, min_value=0, max_value=50),
        "nterrs": _qp_int("nterrs", defaults.nterrs, min_value=0, max_value=20),
    }
    seed = _qp_get("seed", "")
    if seed:
        raw["seed"] = seed
    return WorkbenchConfig.from_mapping(raw)


def _session(config: WorkbenchConfig) -> Session:
    current = st.session_state.get("workbench")
    if current is None or st.session_state.get("workbench_config") != config:
        with st.spinner("Building meshes..."):
            current = Session(config)
        st.session_state["workbench"] = current
        st.session_state["workbench_config"] = config
    return current


PANEL_TEXT = {
    "mesh": (
        "Points and meshes",
        "Random points, relaxed towards their Voronoi centroids; the mesh "
        "corners are where heights live.",
    ),
    "prim": (
        "Heightmap primitives",
        "Build a heightmap by hand from slopes, cones and blobs.",
    ),
    "erode": (
        "Erosion",
        "Water flows downhill and carves valleys; run several passes.",
    ),
    "phys": (
        "Physical map",
        "Coastlines, rivers and slope shading over the terrain.",
    ),
    "city": (
        "Cities and territories",
        "Cities go where water is plentiful and neighbours are far away.",
    ),
    "final": (
        "Complete map",
        "Everything together, at higher resolution.",
    ),
}


def _run(session: Session, action_id: str) -> None:
    try:
        result = session.dispatch(action_id)
    except ConfigurationError as exc:
        st.session_state["flash"] = ("warning", str(exc))
    except ComputationError as exc:
        st.session_state["flash"] = ("error", str(exc))
    else:
        if not result.applied:
            st.session_state["flash"] = ("warning", result.message)
    st.rerun()


try:
    config = _config_from_query()
except ConfigurationError as exc:
    st.error(f"Invalid settings in the URL: {exc}")
    config = WorkbenchConfig()

header = st.container()
with header:
    left, right = st.columns([5, 2], vertical_alignment="center")
    with left:
        st.markdown(
            """
            <div class="tw-header">
              <div class="tw-title">Terrain Workbench</div>
              <div class="tw-subtitle">
                From random points to a finished fantasy map, one step at a time.
              </div>
            </div>
            """,
            unsafe_allow_html=True,
        )
    with right:
        if st.button("New seed", use_container_width=True):
            st.query_params["seed"] = str(np.random.default_rng().integers(0, 2**31 - 1))
            st.rerun()

session = _session(config)

flash = st.session_state.pop("flash", None)
if flash is not None:
    kind, message = flash
    (st.warning if kind == "warning" else st.error)(message)

for row in (PANELS[:2], PANELS[2:4], PANELS[4:]):
    for col, name in zip(st.columns(2), row):
        with col:
            title, note = PANEL_TEXT[name]
            st.subheader(title)
            st.markdown(f'<div class="tw-panel-note">{note}</div>', unsafe_allow_html=True)
            st.plotly_chart(
                canvas_figure(session.canvases[name], height=420, extent=config.extent),
                width="stretch",
                key=f"canvas_{name}",
            )
            acts = actions_for(name)
            for start in range(0, len(acts), 3):
                for bcol, act in zip(st.columns(3), acts[start : start + 3]):
                    with bcol:
                        if st.button(
                            session.label(act.action_id),
                            key=f"btn_{act.action_id}",
                            use_container_width=True,
                        ):
                            _run(session, act.action_id)
