from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from workbench.errors import LineageError
from workbench.panel import Lineage, PanelState


@dataclass(frozen=True)
class LineageLink:
    """'Copy from above': `target` adopts `source`'s current artifact.

    The artifact is shared by reference. Artifacts are immutable, so a later
    transform on either panel swaps that panel's own reference and never
    reaches the other one. `adapt` turns the upstream artifact into the
    target's artifact type (e.g. a height field into a city context with no
    cities) and runs once, at copy time.
    """

    source: str
    target: str
    adapt: Callable[[Any], Any] | None = None

    def copy_from(self, upstream: PanelState, downstream: PanelState) -> Any:
        if upstream.name != self.source or downstream.name != self.target:
            raise ValueError(
                f"link {self.source}->{self.target} used with "
                f"{upstream.name}->{downstream.name}"
            )
        if upstream.is_empty:
            raise LineageError(f"{self.source!r} has no artifact to copy into {self.target!r}")
        return downstream.adopt(
            upstream.primary,
            Lineage(source=upstream.name, generation=upstream.generation),
            adapt=self.adapt,
        )
