from __future__ import annotations


class WorkbenchError(Exception):
    """Base class for errors raised by workbench actions."""


class ConfigurationError(WorkbenchError, ValueError):
    """An action or config value was refused; no state was changed."""


class LineageError(WorkbenchError):
    """Copy-from-above was requested but the upstream panel is empty."""


class ComputationError(WorkbenchError):
    """A terrain or rendering computation failed.

    The panel keeps its last valid artifact and the redraw is skipped.
    """
