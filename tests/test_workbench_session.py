from __future__ import annotations

import logging

import numpy as np
import pytest

from terrain.erosion import do_erosion
from terrain.mesh import PointSet, make_mesh
from workbench import draw
from workbench.actions import ACTIONS, Action, actions_for
from workbench.config import WorkbenchConfig
from workbench.errors import ComputationError, ConfigurationError
from workbench.panel import PanelStatus
from workbench.session import PANELS, Session


def _config(**overrides) -> WorkbenchConfig:
    base = dict(map_points=256, final_points=256, ncities=3, nterrs=2, seed=1)
    base.update(overrides)
    return WorkbenchConfig(**base)


def test_boot_links_the_height_panels() -> None:
    s = Session(_config())
    prim = s.panels["prim"]
    assert prim.status is PanelStatus.GENERATED
    assert s.panels["erode"].primary is prim.primary
    assert s.panels["phys"].primary is prim.primary
    assert s.panels["city"].primary.h is prim.primary
    assert s.panels["city"].primary.cities == ()
    for name in ("erode", "phys", "city"):
        assert s.panels[name].status is PanelStatus.LINKED

    assert s.panels["mesh"].is_empty
    assert s.panels["final"].is_empty
    assert s.canvases["mesh"].drawn() == []
    assert s.canvases["prim"].drawn() == ["field"]


def test_every_panel_has_actions_and_toggles_resolve() -> None:
    s = Session(_config(), bootstrap=False)
    for name in PANELS:
        assert actions_for(name)
    for act in ACTIONS.values():
        if act.toggle is not None:
            assert act.toggle in s.toggles[act.panel]
            assert s.label(act.action_id) == act.label


def test_dual_view_shows_corners_of_the_improved_mesh() -> None:
    s = Session(_config(), bootstrap=False)
    s.dispatch("mesh.generate")
    s.dispatch("mesh.improve")
    s.dispatch("mesh.toggle_dual")

    improved = s.panels["mesh"].primary
    assert len(improved) == 256
    expected = make_mesh(improved.points, improved.extent).vxs

    shown = s.canvases["mesh"].layer("points")
    assert shown.count == expected.shape[0]
    assert shown.count != 256
    assert np.allclose(shown.items[0], expected)
    assert s.label("mesh.toggle_dual") == "Show original points"

    # Improving again while the dual view is on recomputes the corners.
    s.dispatch("mesh.improve")
    again = s.panels["mesh"].primary
    assert np.allclose(
        s.canvases["mesh"].layer("points").items[0],
        make_mesh(again.points, again.extent).vxs,
    )

    # A fresh point set switches back to the original points.
    s.dispatch("mesh.generate")
    assert s.toggles["mesh"]["dual"] is False
    assert s.canvases["mesh"].layer("points").count == 256


def test_second_erosion_reads_the_first() -> None:
    s = Session(_config())
    s.dispatch("erode.generate")
    h0 = s.panels["erode"].primary
    s.dispatch("erode.erode")
    h1 = s.panels["erode"].primary
    s.dispatch("erode.erode")
    h2 = s.panels["erode"].primary

    assert h1 is not h0 and h2 is not h1
    assert np.allclose(h1.values, do_erosion(h0, 0.1).values)
    assert np.allclose(h2.values, do_erosion(h1, 0.1).values)


def test_territory_view_with_no_cities() -> None:
    s = Session(_config())
    s.dispatch("phys.generate")
    s.dispatch("city.copy")
    assert s.panels["city"].primary.cities == ()

    result = s.dispatch("city.toggle_view")
    assert result.applied
    canvas = s.canvases["city"]
    field = canvas.layer("field")
    assert field.count == len(s.panels["city"].primary.h)
    assert np.allclose(field.values, 0.5)
    assert canvas.layer("border").is_empty
    assert canvas.layer("city").is_empty
    assert not canvas.layer("coast").is_empty


def test_redraw_is_idempotent() -> None:
    s = Session(_config())
    s.dispatch("phys.generate")
    s.dispatch("phys.toggle_slope")
    s.dispatch("phys.toggle_rivers")
    s.dispatch("city.copy")
    s.dispatch("city.add_city")

    for name in PANELS:
        before = s.canvases[name].fingerprint()
        s.redraw(name)
        assert s.canvases[name].fingerprint() == before


def test_toggling_twice_restores_the_picture() -> None:
    s = Session(_config())
    s.dispatch("phys.generate")
    base = s.canvases["phys"].fingerprint()

    for action_id in (
        "phys.toggle_coast",
        "phys.toggle_rivers",
        "phys.toggle_slope",
        "phys.toggle_height",
    ):
        s.dispatch(action_id)
        if action_id in ("phys.toggle_coast", "phys.toggle_height"):
            assert s.canvases["phys"].fingerprint() != base
        s.dispatch(action_id)
        assert s.canvases["phys"].fingerprint() == base

    assert s.canvases["phys"].drawn() == ["field"]


def test_rivers_are_cached_per_artifact() -> None:
    s = Session(_config())
    s.dispatch("phys.generate")
    s.dispatch("phys.toggle_rivers")
    phys = s.panels["phys"]
    slot = phys.slot("rivers@0.01")
    assert slot is not None
    assert slot.generation == phys.generation

    s.dispatch("phys.toggle_coast")
    assert phys.slot("rivers@0.01") is slot


def test_copy_captures_and_does_not_follow_upstream() -> None:
    s = Session(_config())
    s.dispatch("prim.cone")
    s.dispatch("erode.copy")
    captured = s.panels["erode"].primary
    assert captured is s.panels["prim"].primary
    assert s.panels["erode"].lineage.generation == s.panels["prim"].generation

    s.dispatch("prim.slope")
    assert s.panels["erode"].primary is captured
    assert s.panels["prim"].primary is not captured


def test_final_copy_draws_the_city_context() -> None:
    s = Session(_config())
    s.dispatch("phys.generate")
    s.dispatch("city.copy")
    s.dispatch("city.add_city")
    s.dispatch("final.copy")

    assert s.panels["final"].primary is s.panels["city"].primary
    canvas = s.canvases["final"]
    assert canvas.layer("city").count == 1
    assert canvas.layer("field").is_empty
    assert not canvas.layer("coast").is_empty


def test_final_generate_places_all_cities() -> None:
    s = Session(_config(), bootstrap=False)
    s.dispatch("final.generate")
    ctx = s.panels["final"].primary
    assert len(ctx.cities) == 3
    assert ctx.params.npts == 256
    assert len(ctx.mesh.pts) == 256
    assert s.canvases["final"].layer("city").count == 3


def test_bad_parameters_are_refused_without_changes() -> None:
    s = Session(_config(), bootstrap=False)
    with pytest.raises(ConfigurationError):
        s.dispatch("mesh.generate", n=0)
    assert s.panels["mesh"].is_empty
    assert s.panels["mesh"].generation == 0

    with pytest.raises(ConfigurationError):
        s.dispatch("mesh.fly")
    with pytest.raises(ConfigurationError):
        s.dispatch("mesh.improve", n=3)
    with pytest.raises(ConfigurationError):
        s.dispatch("mesh.improve")

    s.dispatch("mesh.generate", n=32)
    assert len(s.panels["mesh"].primary) == 32
    with pytest.raises(ConfigurationError):
        s.dispatch("erode.erode", amount=-1)
    assert s.panels["erode"].generation == 0


def test_copy_from_empty_panel_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    s = Session(_config(), bootstrap=False)
    before = s.canvases["erode"].fingerprint()
    with caplog.at_level(logging.WARNING, logger="workbench"):
        result = s.dispatch("erode.copy")
    assert result.status == "skipped"
    assert not result.applied
    assert s.panels["erode"].is_empty
    assert s.canvases["erode"].fingerprint() == before
    assert any("skipped" in r.getMessage() for r in caplog.records)


def test_failed_computation_propagates_and_keeps_the_picture() -> None:
    s = Session(_config(), bootstrap=False)
    s.dispatch("mesh.generate", n=16)
    picture = s.canvases["mesh"].fingerprint()

    # Points outside the extent make the Voronoi step fail.
    bad = PointSet(np.full((4, 2), 0.9))
    s.panels["mesh"].generate(lambda: bad)
    gen = s.panels["mesh"].generation

    with pytest.raises(ComputationError):
        s.dispatch("mesh.improve")
    assert s.panels["mesh"].primary is bad
    assert s.panels["mesh"].generation == gen
    assert s.canvases["mesh"].fingerprint() == picture


def test_dispatch_is_not_reentrant(monkeypatch: pytest.MonkeyPatch) -> None:
    s = Session(_config(), bootstrap=False)

    def nested(session: Session) -> None:
        session.dispatch("mesh.toggle_dual")

    monkeypatch.setitem(ACTIONS, "mesh.nested", Action("mesh.nested", "mesh", "Nested", nested))
    with pytest.raises(RuntimeError):
        s.dispatch("mesh.nested")
    assert s.toggles["mesh"]["dual"] is False

    # The session is usable again afterwards.
    assert s.dispatch("mesh.toggle_dual").applied


def test_submerged_cone_copies_down_to_the_physical_map() -> None:
    s = Session(_config())
    s.dispatch("prim.cone")
    s.dispatch("erode.copy")
    result = s.dispatch("phys.copy")
    assert result.applied

    h = s.panels["phys"].primary
    assert h is s.panels["prim"].primary
    field = s.canvases["phys"].layer("field")
    assert field.count == len(h)
    assert np.all(field.values[h.values < 0.0] == 0.0)


def test_second_erosion_of_a_copied_heightmap_reads_the_first() -> None:
    s = Session(_config())
    s.dispatch("prim.cone")
    s.dispatch("erode.copy")
    source = s.panels["prim"].primary
    erode = s.panels["erode"]

    s.dispatch("erode.erode")
    h1 = erode.primary
    s.dispatch("erode.erode")
    h2 = erode.primary

    assert np.allclose(h1.values, do_erosion(source, 0.1).values)
    assert np.allclose(h2.values, do_erosion(h1, 0.1).values)
    assert not np.allclose(h2.values, h1.values)
    assert erode.status is PanelStatus.TRANSFORMED
    assert erode.lineage.source == "prim"
    assert s.panels["prim"].primary is source


@pytest.mark.parametrize(
    ("setup", "action_id"),
    [
        (("mesh.generate",), "mesh.toggle_dual"),
        (("erode.generate",), "erode.toggle_rate"),
        (("phys.generate", "city.copy", "city.add_city"), "city.toggle_view"),
    ],
)
def test_view_toggles_round_trip(setup: tuple[str, ...], action_id: str) -> None:
    s = Session(_config())
    for step in setup:
        s.dispatch(step)
    panel = ACTIONS[action_id].panel
    base = s.canvases[panel].fingerprint()
    caption = s.label(action_id)

    s.dispatch(action_id)
    assert s.canvases[panel].fingerprint() != base
    assert s.label(action_id) != caption

    s.dispatch(action_id)
    assert s.canvases[panel].fingerprint() == base
    assert s.label(action_id) == caption


def test_failed_redraw_rolls_the_panel_back(monkeypatch: pytest.MonkeyPatch) -> None:
    s = Session(_config())
    s.dispatch("phys.generate")
    s.dispatch("phys.toggle_rivers")
    phys = s.panels["phys"]
    before = (phys.primary, phys.generation, phys.mesh_generation, phys.status, phys.lineage)
    rivers = phys.slot("rivers@0.01")
    flags = s.toggles["phys"].values()
    picture = s.canvases["phys"].fingerprint()

    def broken(panel, toggles, config):
        raise ValueError("no ink")

    monkeypatch.setitem(draw.DRAWERS, "phys", broken)
    for action_id in ("phys.copy", "phys.toggle_coast"):
        with pytest.raises(ComputationError):
            s.dispatch(action_id)
        assert (phys.primary, phys.generation, phys.mesh_generation, phys.status, phys.lineage) == before
        assert phys.slot("rivers@0.01") is rivers
        assert s.toggles["phys"].values() == flags
        assert s.canvases["phys"].fingerprint() == picture

    monkeypatch.undo()
    assert s.dispatch("phys.copy").applied
    assert phys.primary is s.panels["erode"].primary
