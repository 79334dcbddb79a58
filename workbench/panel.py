"""
Panel state and its derived-artifact cache.

A panel holds one immutable primary artifact (a PointSet, HeightField or
CityRenderContext). Every replacement of the primary takes a fresh id from
the session clock. Derived values live in slots tagged with the id they were
computed against:

* ARTIFACT-scoped slots are valid only for the exact primary they came from.
* MESH-scoped slots stay valid while the primary keeps the same mesh, so a
  height transform does not throw away e.g. the dual-vertex positions.

Slots that no longer match are dropped when the primary changes.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from workbench.errors import ComputationError, ConfigurationError, WorkbenchError

logger = logging.getLogger(__name__)


class PanelStatus(Enum):
    EMPTY = "empty"
    GENERATED = "generated"
    TRANSFORMED = "transformed"
    LINKED = "linked"


class CacheScope(Enum):
    ARTIFACT = "artifact"
    MESH = "mesh"


@dataclass(frozen=True)
class DerivedKind:
    name: str
    compute: Callable[[Any], Any]
    scope: CacheScope = CacheScope.ARTIFACT


@dataclass(frozen=True)
class CacheSlot:
    scope: CacheScope
    generation: int
    value: Any


@dataclass(frozen=True)
class Lineage:
    """Where a linked panel's artifact came from, and which upstream id."""

    source: str
    generation: int


def mesh_identity(artifact: Any) -> Any:
    """The object whose identity decides MESH-scoped cache validity."""
    mesh = getattr(artifact, "mesh", None)
    return artifact if mesh is None else mesh


def produce(label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a collaborator; numeric failures become ComputationError."""
    try:
        return fn(*args, **kwargs)
    except WorkbenchError:
        raise
    except (ValueError, ArithmeticError) as exc:
        raise ComputationError(f"{label}: {exc}") from exc


class PanelState:
    def __init__(self, name: str, *, clock: Callable[[], int]) -> None:
        self.name = name
        self._clock = clock
        self.primary: Any = None
        self.generation = 0
        self.mesh_generation = 0
        self.status = PanelStatus.EMPTY
        self.lineage: Lineage | None = None
        self._slots: dict[str, CacheSlot] = {}

    def __repr__(self) -> str:
        return (
            f"PanelState({self.name!r}, status={self.status.value}, "
            f"generation={self.generation}, slots={sorted(self._slots)})"
        )

    @property
    def is_empty(self) -> bool:
        return self.primary is None

    def require_primary(self) -> Any:
        if self.primary is None:
            raise ConfigurationError(f"panel {self.name!r} has nothing to work on yet")
        return self.primary

    def snapshot(self) -> tuple:
        """Everything `restore` needs to put the panel back as it is now."""
        return (
            self.primary,
            self.generation,
            self.mesh_generation,
            self.status,
            self.lineage,
            dict(self._slots),
        )

    def restore(self, snap: tuple) -> None:
        (
            self.primary,
            self.generation,
            self.mesh_generation,
            self.status,
            self.lineage,
            slots,
        ) = snap
        self._slots = dict(slots)

    def _tag(self, scope: CacheScope) -> int:
        return self.mesh_generation if scope is CacheScope.MESH else self.generation

    def _replace(self, value: Any, status: PanelStatus, lineage: Lineage | None) -> None:
        # Only called with a fully computed value, so a failure upstream of
        # this point leaves the panel untouched.
        gen = self._clock()
        if self.primary is None or mesh_identity(value) is not mesh_identity(self.primary):
            self.mesh_generation = gen
        self.primary = value
        self.generation = gen
        self.status = status
        self.lineage = lineage
        self._slots = {
            name: slot
            for name, slot in self._slots.items()
            if slot.generation == self._tag(slot.scope)
        }

    def generate(self, factory: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Replace the primary with a freshly generated artifact.

        Clears every cache slot and the lineage.
        """
        value = produce(f"{self.name} generate", factory, *args, **kwargs)
        self._slots = {}
        self._replace(value, PanelStatus.GENERATED, None)
        logger.info("%s: generated artifact #%d", self.name, self.generation)
        return value

    def transform(self, op: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """primary := op(primary, *args, **kwargs)."""
        current = self.require_primary()
        value = produce(f"{self.name} transform", op, current, *args, **kwargs)
        self._replace(value, PanelStatus.TRANSFORMED, self.lineage)
        logger.debug("%s: transformed to artifact #%d", self.name, self.generation)
        return value

    def adopt(
        self,
        artifact: Any,
        lineage: Lineage,
        adapt: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Take over an upstream artifact by reference (optionally adapted).

        All local slots are cleared, even MESH-scoped ones for the same mesh.
        """
        value = artifact if adapt is None else produce(f"{self.name} copy", adapt, artifact)
        self._slots = {}
        self._replace(value, PanelStatus.LINKED, lineage)
        logger.info(
            "%s: linked artifact #%d from %s #%d",
            self.name,
            self.generation,
            lineage.source,
            lineage.generation,
        )
        return value

    def get_derived(self, kind: DerivedKind) -> Any:
        """Cached derived value for the current primary, computed on a miss."""
        current = self.require_primary()
        tag = self._tag(kind.scope)
        slot = self._slots.get(kind.name)
        if slot is not None and slot.generation == tag:
            return slot.value
        value = produce(f"{self.name} {kind.name}", kind.compute, current)
        self._slots[kind.name] = CacheSlot(kind.scope, tag, value)
        return value

    def slot(self, name: str) -> CacheSlot | None:
        return self._slots.get(name)
