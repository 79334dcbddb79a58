"""
Per-panel drawing.

Each drawer turns (panel, toggles, config) into a complete frame: a mapping
of layer name to Layer. Layers a view does not currently show are returned
empty rather than left out, so switching a flag off clears what it drew.
Drawing reads the panel's own artifact only; nothing computed here is
written back into the artifact.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

from terrain.cities import CityRenderContext, city_score, get_borders, get_territories
from terrain.contours import contour, get_rivers
from terrain.erosion import erosion_rate
from terrain.heightmap import HeightField
from terrain.mesh import PointSet, make_mesh
from viz.layers import (
    Layer,
    cities_layer,
    field_layer,
    map_frame,
    paths_layer,
    points_layer,
    slopes_layer,
)
from workbench.config import WorkbenchConfig
from workbench.panel import CacheScope, DerivedKind, PanelState, produce
from workbench.toggles import ToggleSet

if TYPE_CHECKING:
    from workbench.session import Session

logger = logging.getLogger(__name__)

Frame = dict[str, Layer]


def _dual_vertices(points: PointSet) -> np.ndarray:
    return make_mesh(points.points, points.extent).vxs


DUAL_VERTICES = DerivedKind("dual_vertices", _dual_vertices, CacheScope.MESH)


def _height_of(artifact: Any) -> HeightField:
    return artifact.h if isinstance(artifact, CityRenderContext) else artifact


def rivers_kind(threshold: float) -> DerivedKind:
    """River polylines above `threshold`, cached per artifact."""

    def compute(artifact: Any) -> list[np.ndarray]:
        return get_rivers(_height_of(artifact), threshold)

    return DerivedKind(f"rivers@{threshold:g}", compute)


def _hachure_rng(config: WorkbenchConfig) -> np.random.Generator:
    # Same seed on every draw: redrawing an unchanged panel gives the same strokes.
    return np.random.default_rng(config.hachure_seed)


def _coast(h: HeightField, show: bool = True) -> Layer:
    return paths_layer("coast", contour(h, 0.0) if show else [])


def draw_mesh(panel: PanelState, toggles: ToggleSet, config: WorkbenchConfig) -> Frame:
    if panel.is_empty:
        return {}
    if toggles["dual"]:
        pts = panel.get_derived(DUAL_VERTICES)
    else:
        pts = panel.primary.points
    return {"points": points_layer(pts)}


def draw_prim(panel: PanelState, toggles: ToggleSet, config: WorkbenchConfig) -> Frame:
    if panel.is_empty:
        return {}
    h = panel.primary
    return {"field": field_layer(h, -1.0, 1.0), "coast": _coast(h)}


def draw_erode(panel: PanelState, toggles: ToggleSet, config: WorkbenchConfig) -> Frame:
    if panel.is_empty:
        return {}
    h = panel.primary
    if toggles["erosion_rate"]:
        field = field_layer(erosion_rate(h))
    else:
        field = field_layer(h, 0.0, 1.0)
    return {"field": field, "coast": _coast(h)}


def draw_phys(panel: PanelState, toggles: ToggleSet, config: WorkbenchConfig) -> Frame:
    if panel.is_empty:
        return {}
    h = panel.primary
    if toggles["rivers"]:
        rivers = panel.get_derived(rivers_kind(config.river_threshold))
    else:
        rivers = []
    return {
        "field": field_layer(h, 0.0) if toggles["height"] else Layer.empty("field", "field"),
        "coast": _coast(h, toggles["coast"]),
        "river": paths_layer("river", rivers),
        "slope": (
            slopes_layer(h, rng=_hachure_rng(config))
            if toggles["slope"]
            else Layer.empty("slope", "segments")
        ),
    }


def draw_city(panel: PanelState, toggles: ToggleSet, config: WorkbenchConfig) -> Frame:
    if panel.is_empty:
        return {}
    ctx: CityRenderContext = panel.primary
    h = ctx.h
    terr = get_territories(ctx)
    if toggles["score"]:
        score = city_score(h, ctx.cities)
        field = field_layer(score, float(np.max(score.values)) - 0.5)
    else:
        field = field_layer(HeightField(h.mesh, terr.astype(np.float64)))
    return {
        "field": field,
        "coast": _coast(h),
        "river": paths_layer("river", panel.get_derived(rivers_kind(config.river_threshold))),
        "border": paths_layer("border", get_borders(ctx, terr)),
        "slope": slopes_layer(h, rng=_hachure_rng(config)),
        "city": cities_layer(ctx),
    }


def draw_final(panel: PanelState, toggles: ToggleSet, config: WorkbenchConfig) -> Frame:
    if panel.is_empty:
        return {}
    return map_frame(
        panel.primary,
        river_threshold=config.river_threshold,
        rng=_hachure_rng(config),
    )


DRAWERS: dict[str, Callable[[PanelState, ToggleSet, WorkbenchConfig], Frame]] = {
    "mesh": draw_mesh,
    "prim": draw_prim,
    "erode": draw_erode,
    "phys": draw_phys,
    "city": draw_city,
    "final": draw_final,
}


def build_frame(session: Session, name: str) -> Frame:
    drawer = DRAWERS[name]
    return produce(
        f"drawing {name}",
        drawer,
        session.panels[name],
        session.toggles[name],
        session.config,
    )


def draw_panel(session: Session, name: str) -> None:
    """Rebuild a panel's canvas from its current artifact and flags.

    The frame is built in full before the canvas is touched, so a failing
    collaborator leaves the previous picture in place.
    """

    frame = build_frame(session, name)
    session.canvases[name].apply(frame)
    logger.debug("%s: drew %s", name, session.canvases[name].drawn())
