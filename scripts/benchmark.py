from __future__ import annotations

import time

from workbench import Session, WorkbenchConfig


def _timeit(label: str, fn) -> float:
    t0 = time.perf_counter()
    fn()
    t1 = time.perf_counter()
    ms = (t1 - t0) * 1000.0
    print(f"{label}: {ms:.2f} ms")
    return ms


def main() -> None:
    """Quick CPU benchmark of the workbench actions.

    Intended targets (laptop-class CPU, 4096-point maps):
    - Session start (flat mesh, three linked panels): < ~2s
    - One erosion pass with redraw: < ~500ms
    - Physical map generation with redraw: < ~3s
    """

    config = WorkbenchConfig(seed=0, final_points=4096)
    holder: dict[str, Session] = {}

    def start() -> None:
        holder["s"] = Session(config)

    _timeit("Session start", start)
    session = holder["s"]

    for action_id in (
        "mesh.generate",
        "mesh.improve",
        "mesh.toggle_dual",
        "prim.slope",
        "prim.blobs",
        "erode.generate",
        "erode.erode",
        "erode.toggle_rate",
        "phys.generate",
        "phys.toggle_rivers",
        "phys.toggle_slope",
        "city.copy",
        "city.add_city",
        "city.toggle_view",
        "final.copy",
        "final.generate",
    ):
        _timeit(action_id, lambda a=action_id: session.dispatch(a))


if __name__ == "__main__":
    main()
