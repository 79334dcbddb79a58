"""
Action handlers, one per workbench button.

Handlers validate their parameters, then mutate exactly one panel (or one
toggle set). Drawing is left to `Session.dispatch`, which redraws the
action's panel once after the handler returns.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from terrain.cities import new_city_render, place_city
from terrain.coast import generate_coast, generate_map, generate_uneroded
from terrain.erosion import do_erosion
from terrain.heightmap import (
    add,
    clean_coast,
    cone,
    mountains,
    normalize,
    peaky,
    relax,
    set_sea_level,
    slope,
    zero,
)
from terrain.hydrology import fill_sinks
from terrain.mesh import PointSet, generate_good_mesh, improve_points
from terrain.sampling import generate_points, random_vector
from workbench.errors import ConfigurationError

if TYPE_CHECKING:
    from workbench.session import Session


@dataclass(frozen=True)
class Action:
    action_id: str
    panel: str
    label: str
    handler: Callable[..., None]
    toggle: str | None = None


@dataclass(frozen=True)
class ActionResult:
    action_id: str
    panel: str
    status: str  # "applied" | "skipped"
    message: str = ""

    @property
    def applied(self) -> bool:
        return self.status == "applied"


ACTIONS: dict[str, Action] = {}


def action(action_id: str, label: str, *, toggle: str | None = None) -> Callable:
    panel = action_id.split(".", 1)[0]

    def register(fn: Callable[..., None]) -> Callable[..., None]:
        if action_id in ACTIONS:
            raise ValueError(f"duplicate action id {action_id!r}")
        ACTIONS[action_id] = Action(action_id, panel, label, fn, toggle)
        return fn

    return register


def actions_for(panel: str) -> list[Action]:
    return [a for a in ACTIONS.values() if a.panel == panel]


def _positive_int(value: Any, default: int, name: str) -> int:
    raw = default if value is None else value
    try:
        n = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if n <= 0:
        raise ConfigurationError(f"{name} must be >= 1")
    return n


def _non_negative(value: Any, default: float, name: str) -> float:
    raw = default if value is None else value
    try:
        x = float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if not x >= 0.0:
        raise ConfigurationError(f"{name} must be >= 0")
    return x


def _quantile(value: Any, default: float) -> float:
    q = _non_negative(value, default, "q")
    if q > 1.0:
        raise ConfigurationError("q must be in [0, 1]")
    return q


def _toggle(session: Session, panel: str, name: str) -> None:
    session.toggles[panel].toggle(name)


# --- mesh -------------------------------------------------------------------


@action("mesh.generate", "Generate random points")
def mesh_generate(session: Session, n: int | None = None) -> None:
    count = _positive_int(n, session.config.mesh_points, "n")
    extent = session.config.extent
    rng = session.rng
    session.panels["mesh"].generate(
        lambda: PointSet(generate_points(count, extent, rng=rng), extent)
    )
    session.toggles["mesh"].set("dual", False)


@action("mesh.improve", "Improve points")
def mesh_improve(session: Session) -> None:
    session.panels["mesh"].transform(
        lambda ps: PointSet(improve_points(ps.points, 1, ps.extent), ps.extent)
    )


@action("mesh.toggle_dual", "Show Voronoi corners", toggle="dual")
def mesh_toggle_dual(session: Session) -> None:
    _toggle(session, "mesh", "dual")


# --- primitives -------------------------------------------------------------


@action("prim.generate", "Generate flat mesh")
def prim_generate(session: Session, n: int | None = None) -> None:
    count = _positive_int(n, session.config.map_points, "n")
    extent = session.config.extent
    rng = session.rng
    session.panels["prim"].generate(lambda: zero(generate_good_mesh(count, extent, rng=rng)))


@action("prim.reset", "Reset to flat")
def prim_reset(session: Session) -> None:
    session.panels["prim"].transform(lambda h: zero(h.mesh))


@action("prim.slope", "Add random slope")
def prim_slope(session: Session) -> None:
    panel = session.panels["prim"]
    panel.require_primary()
    direction = random_vector(4.0, rng=session.rng)
    panel.transform(lambda h: add(h, slope(h.mesh, direction)))


@action("prim.cone", "Add cone")
def prim_cone(session: Session) -> None:
    session.panels["prim"].transform(lambda h: add(h, cone(h.mesh, -0.5)))


@action("prim.inverted_cone", "Add inverted cone")
def prim_inverted_cone(session: Session) -> None:
    session.panels["prim"].transform(lambda h: add(h, cone(h.mesh, 0.5)))


@action("prim.blobs", "Add five blobs")
def prim_blobs(session: Session, count: int | None = None) -> None:
    n = _positive_int(count, session.config.mountain_count, "count")
    rng = session.rng
    session.panels["prim"].transform(lambda h: add(h, mountains(h.mesh, n, rng=rng)))


@action("prim.normalize", "Normalize heightmap")
def prim_normalize(session: Session) -> None:
    session.panels["prim"].transform(normalize)


@action("prim.round_hills", "Round hills")
def prim_round_hills(session: Session) -> None:
    session.panels["prim"].transform(peaky)


@action("prim.relax", "Relax")
def prim_relax(session: Session) -> None:
    session.panels["prim"].transform(relax)


@action("prim.sea_level", "Set sea level to median")
def prim_sea_level(session: Session, q: float | None = None) -> None:
    session.panels["prim"].transform(set_sea_level, _quantile(q, session.config.sea_level_quantile))


# --- erosion ----------------------------------------------------------------


@action("erode.generate", "Generate random heightmap")
def erode_generate(session: Session, n: int | None = None) -> None:
    count = _positive_int(n, session.config.map_points, "n")
    session.panels["erode"].generate(
        generate_uneroded, count, session.config.extent, rng=session.rng
    )


@action("erode.copy", "Copy heightmap from above")
def erode_copy(session: Session) -> None:
    session.copy_into("erode")


@action("erode.erode", "Erode")
def erode_erode(session: Session, amount: float | None = None) -> None:
    session.panels["erode"].transform(
        do_erosion, _non_negative(amount, session.config.erosion_amount, "amount")
    )


@action("erode.sea_level", "Set sea level to median")
def erode_sea_level(session: Session, q: float | None = None) -> None:
    session.panels["erode"].transform(set_sea_level, _quantile(q, session.config.sea_level_quantile))


@action("erode.clean_coast", "Clean coastlines")
def erode_clean_coast(session: Session) -> None:
    session.panels["erode"].transform(lambda h: fill_sinks(clean_coast(h, 1)))


@action("erode.toggle_rate", "Show erosion rate", toggle="erosion_rate")
def erode_toggle_rate(session: Session) -> None:
    _toggle(session, "erode", "erosion_rate")


# --- physical map -----------------------------------------------------------


@action("phys.generate", "Generate random heightmap")
def phys_generate(session: Session) -> None:
    session.panels["phys"].generate(generate_coast, session.config.map_params(), rng=session.rng)


@action("phys.copy", "Copy heightmap from above")
def phys_copy(session: Session) -> None:
    session.copy_into("phys")


@action("phys.toggle_coast", "Show coastline", toggle="coast")
def phys_toggle_coast(session: Session) -> None:
    _toggle(session, "phys", "coast")


@action("phys.toggle_rivers", "Show rivers", toggle="rivers")
def phys_toggle_rivers(session: Session) -> None:
    _toggle(session, "phys", "rivers")


@action("phys.toggle_slope", "Show slope shading", toggle="slope")
def phys_toggle_slope(session: Session) -> None:
    _toggle(session, "phys", "slope")


@action("phys.toggle_height", "Hide heightmap", toggle="height")
def phys_toggle_height(session: Session) -> None:
    _toggle(session, "phys", "height")


# --- cities -----------------------------------------------------------------


@action("city.generate", "Generate random heightmap")
def city_generate(session: Session) -> None:
    params = session.config.map_params()
    rng = session.rng
    session.panels["city"].generate(
        lambda: new_city_render(generate_coast(params, rng=rng), params)
    )


@action("city.copy", "Copy heightmap from above")
def city_copy(session: Session) -> None:
    session.copy_into("city")


@action("city.add_city", "Add new city")
def city_add_city(session: Session) -> None:
    session.panels["city"].transform(place_city)


@action("city.toggle_view", "Show territories", toggle="score")
def city_toggle_view(session: Session) -> None:
    _toggle(session, "city", "score")


# --- final map --------------------------------------------------------------


@action("final.copy", "Copy map from above")
def final_copy(session: Session) -> None:
    session.copy_into("final")


@action("final.generate", "Generate high resolution map")
def final_generate(session: Session, n: int | None = None) -> None:
    count = _positive_int(n, session.config.final_points, "n")
    session.panels["final"].generate(
        generate_map, session.config.map_params(count), rng=session.rng
    )
