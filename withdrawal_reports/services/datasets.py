"""In-memory store holding the latest ingested dataset per panel."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from threading import Lock
from typing import Any

MERCHANT_FIELD = "Merchant Name"


class DatasetError(RuntimeError):
    """Base class for dataset store errors."""


class UnknownPanelError(DatasetError):
    """Raised when a panel outside the configured key space is requested."""


def merchant_name(row: Mapping[str, Any]) -> str | None:
    """Return the row's merchant as a string, or ``None`` when it is blank."""
    value = row.get(MERCHANT_FIELD)
    if value is None:
        return None
    if isinstance(value, float):
        if value != value:
            return None
        if value.is_integer():
            value = int(value)
    name = str(value)
    return name or None


class DatasetStore:
    """Process-wide holder of the most recent rows uploaded to each panel.

    The panel key space is fixed when the store is built. Uploads replace a
    panel's rows wholesale; concurrent writers resolve as last-writer-wins.
    """

    def __init__(self, panels: Iterable[str]) -> None:
        self._datasets: dict[str, list[dict[str, Any]]] = {str(panel): [] for panel in panels}
        if not self._datasets:
            raise ValueError("DatasetStore requires at least one panel")
        self._lock = Lock()

    @property
    def panels(self) -> tuple[str, ...]:
        return tuple(self._datasets)

    def ensure_panel(self, panel: str) -> str:
        key = str(panel)
        if key not in self._datasets:
            known = ", ".join(self._datasets)
            raise UnknownPanelError(f"Unknown panel '{panel}'. Expected one of: {known}")
        return key

    def put(self, panel: str, rows: Iterable[Mapping[str, Any]]) -> int:
        key = self.ensure_panel(panel)
        snapshot = [dict(row) for row in rows]
        with self._lock:
            self._datasets[key] = snapshot
        return len(snapshot)

    def get(self, panel: str) -> list[dict[str, Any]]:
        key = self.ensure_panel(panel)
        with self._lock:
            return list(self._datasets[key])

    def merchants(self, panel: str) -> list[str]:
        """Distinct merchant names in first-seen order."""
        names = (merchant_name(row) for row in self.get(panel))
        return list(dict.fromkeys(name for name in names if name))

    def clear(self, panel: str | None = None) -> None:
        with self._lock:
            if panel is None:
                for key in self._datasets:
                    self._datasets[key] = []
            else:
                self._datasets[self.ensure_panel(panel)] = []


__all__ = [
    "DatasetError",
    "DatasetStore",
    "MERCHANT_FIELD",
    "UnknownPanelError",
    "merchant_name",
]
