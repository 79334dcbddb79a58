from __future__ import annotations

from workbench.actions import ACTIONS, Action, ActionResult, actions_for
from workbench.config import WorkbenchConfig
from workbench.draw import DRAWERS, draw_panel
from workbench.errors import (
    ComputationError,
    ConfigurationError,
    LineageError,
    WorkbenchError,
)
from workbench.lineage import LineageLink
from workbench.logging_config import setup_logging
from workbench.panel import (
    CacheScope,
    CacheSlot,
    DerivedKind,
    Lineage,
    PanelState,
    PanelStatus,
)
from workbench.session import PANELS, Session
from workbench.toggles import Toggle, ToggleSet

__all__ = [
    "ACTIONS",
    "Action",
    "ActionResult",
    "CacheScope",
    "CacheSlot",
    "ComputationError",
    "ConfigurationError",
    "DRAWERS",
    "DerivedKind",
    "Lineage",
    "LineageError",
    "LineageLink",
    "PANELS",
    "PanelState",
    "PanelStatus",
    "Session",
    "Toggle",
    "ToggleSet",
    "WorkbenchConfig",
    "WorkbenchError",
    "actions_for",
    "draw_panel",
    "setup_logging",
]
