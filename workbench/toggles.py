from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

from workbench.errors import ConfigurationError


@dataclass(frozen=True)
class Toggle:
    """A named view flag and its button captions.

    `labels` holds the caption shown while the flag is (False, True); the
    caption names what pressing the button will do next.
    """

    name: str
    value: bool
    labels: tuple[str, str]

    @property
    def label(self) -> str:
        return self.labels[int(self.value)]


class ToggleSet:
    """Per-panel view flags."""

    def __init__(self, toggles: Iterable[Toggle] = ()) -> None:
        self._toggles: dict[str, Toggle] = {}
        for t in toggles:
            if t.name in self._toggles:
                raise ConfigurationError(f"duplicate toggle {t.name!r}")
            self._toggles[t.name] = t

    def _get(self, name: str) -> Toggle:
        try:
            return self._toggles[name]
        except KeyError:
            raise ConfigurationError(f"unknown toggle {name!r}") from None

    def __getitem__(self, name: str) -> bool:
        return self._get(name).value

    def __contains__(self, name: object) -> bool:
        return name in self._toggles

    def __iter__(self) -> Iterator[Toggle]:
        return iter(self._toggles.values())

    def label(self, name: str) -> str:
        return self._get(name).label

    def toggle(self, name: str) -> str:
        """Flip a flag and return its new caption."""
        t = self._get(name)
        self._toggles[name] = replace(t, value=not t.value)
        return self._toggles[name].label

    def set(self, name: str, value: bool) -> None:
        self._toggles[name] = replace(self._get(name), value=bool(value))

    def snapshot(self) -> dict[str, Toggle]:
        return dict(self._toggles)

    def restore(self, snap: dict[str, Toggle]) -> None:
        self._toggles = dict(snap)

    def values(self) -> dict[str, bool]:
        return {name: t.value for name, t in self._toggles.items()}
