from __future__ import annotations

import inspect
import itertools
import logging
from functools import partial
from typing import Any

import numpy as np

from terrain.cities import new_city_render
from terrain.heightmap import zero
from terrain.mesh import generate_good_mesh
from viz.layers import LayerCanvas
from workbench.actions import ACTIONS, ActionResult
from workbench.config import WorkbenchConfig
from workbench.draw import draw_panel
from workbench.errors import ComputationError, ConfigurationError, LineageError
from workbench.lineage import LineageLink
from workbench.panel import PanelState
from workbench.toggles import Toggle, ToggleSet

logger = logging.getLogger(__name__)

PANELS = ("mesh", "prim", "erode", "phys", "city", "final")


def default_toggles() -> dict[str, ToggleSet]:
    return {
        "mesh": ToggleSet([Toggle("dual", False, ("Show Voronoi corners", "Show original points"))]),
        "prim": ToggleSet(),
        "erode": ToggleSet([Toggle("erosion_rate", False, ("Show erosion rate", "Show heightmap"))]),
        "phys": ToggleSet(
            [
                Toggle("coast", False, ("Show coastline", "Hide coastline")),
                Toggle("rivers", False, ("Show rivers", "Hide rivers")),
                Toggle("slope", False, ("Show slope shading", "Hide slope shading")),
                Toggle("height", True, ("Show heightmap", "Hide heightmap")),
            ]
        ),
        "city": ToggleSet([Toggle("score", True, ("Show city location scores", "Show territories"))]),
        "final": ToggleSet(),
    }


def default_links(config: WorkbenchConfig) -> dict[str, LineageLink]:
    links = [
        LineageLink("prim", "erode"),
        LineageLink("erode", "phys"),
        LineageLink("phys", "city", adapt=partial(new_city_render, params=config.map_params())),
        LineageLink("city", "final"),
    ]
    return {link.target: link for link in links}


class Session:
    """One workbench: six panels, their view flags and their canvases.

    All mutation goes through `dispatch`, which runs one action to completion
    and then redraws the action's panel exactly once.
    """

    def __init__(
        self,
        config: WorkbenchConfig | None = None,
        *,
        rng: np.random.Generator | None = None,
        bootstrap: bool = True,
    ) -> None:
        self.config = config if config is not None else WorkbenchConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self._clock = itertools.count(1)
        self.panels = {name: PanelState(name, clock=self.next_generation) for name in PANELS}
        self.toggles = default_toggles()
        self.canvases = {name: LayerCanvas() for name in PANELS}
        self.links = default_links(self.config)
        self._busy = False
        if bootstrap:
            self._bootstrap()

    def next_generation(self) -> int:
        return next(self._clock)

    def _bootstrap(self) -> None:
        # Flat primitive map, carried down through the erosion, physical and
        # city panels; the mesh and final panels start empty.
        n = self.config.map_points
        extent = self.config.extent
        self.panels["prim"].generate(lambda: zero(generate_good_mesh(n, extent, rng=self.rng)))
        for name in ("erode", "phys", "city"):
            self.copy_into(name)
        for name in PANELS:
            self.redraw(name)

    def copy_into(self, name: str) -> Any:
        try:
            link = self.links[name]
        except KeyError:
            raise ConfigurationError(f"panel {name!r} has no upstream panel") from None
        return link.copy_from(self.panels[link.source], self.panels[name])

    def redraw(self, name: str) -> None:
        if name not in self.panels:
            raise ConfigurationError(f"unknown panel {name!r}")
        draw_panel(self, name)

    def dispatch(self, action_id: str, **params: Any) -> ActionResult:
        try:
            act = ACTIONS[action_id]
        except KeyError:
            raise ConfigurationError(f"unknown action {action_id!r}") from None
        try:
            inspect.signature(act.handler).bind(self, **params)
        except TypeError as exc:
            raise ConfigurationError(f"{action_id}: {exc}") from None

        if self._busy:
            raise RuntimeError(f"{action_id} dispatched while another action is running")
        panel = self.panels[act.panel]
        toggles = self.toggles[act.panel]
        saved = panel.snapshot(), toggles.snapshot()
        self._busy = True
        try:
            logger.debug("dispatch %s %s", action_id, params)
            try:
                act.handler(self, **params)
            except LineageError as exc:
                logger.warning("%s skipped: %s", action_id, exc)
                return ActionResult(action_id, act.panel, "skipped", str(exc))
            except ComputationError:
                logger.exception("%s failed", action_id)
                raise
            try:
                self.redraw(act.panel)
            except ComputationError:
                # The canvas was never touched; roll the panel back to match it.
                panel.restore(saved[0])
                toggles.restore(saved[1])
                logger.exception("%s: redraw of %s failed", action_id, act.panel)
                raise
            return ActionResult(action_id, act.panel, "applied")
        finally:
            self._busy = False

    def label(self, action_id: str) -> str:
        """Current button caption; toggle buttons follow their flag."""
        act = ACTIONS[action_id]
        if act.toggle is None:
            return act.label
        return self.toggles[act.panel].label(act.toggle)
