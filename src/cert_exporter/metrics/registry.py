"""In-process gauge registry.

Holds labelled gauge series without external dependencies and renders
them in the Prometheus text exposition format (version 0.0.4).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

LabelKey = tuple[tuple[str, str], ...]


@dataclass
class _Family:
    name: str
    help_text: str
    series: dict[LabelKey, float] = field(default_factory=dict)


class GaugeRegistry:
    """Thread-safe collection of named gauge families.

    Writers group related changes inside :meth:`batch`; :meth:`export`
    takes the same lock, so a scrape never renders a half-applied batch.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._families: dict[str, _Family] = {}

    def register(self, name: str, help_text: str) -> None:
        """Declare a gauge family.  Re-registering an existing name is a no-op."""
        with self._lock:
            self._families.setdefault(name, _Family(name, help_text))

    def set(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """Set the series of *name* identified by *labels* to *value*."""
        with self._lock:
            self._family(name).series[self._make_key(labels)] = value

    def get(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Return the current value of one series, or ``None`` if absent."""
        with self._lock:
            return self._family(name).series.get(self._make_key(labels))

    def series(self, name: str) -> dict[LabelKey, float]:
        """Return a copy of every series in family *name*."""
        with self._lock:
            return dict(self._family(name).series)

    def reset(self, name: str) -> None:
        """Drop every series of family *name*; the family stays registered."""
        with self._lock:
            self._family(name).series.clear()

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Hold the registry lock for a group of updates."""
        with self._lock:
            yield

    def export(self) -> str:
        """Export all gauges in Prometheus text format."""
        lines: list[str] = []
        with self._lock:
            for name, family in sorted(self._families.items()):
                lines.append(f"# HELP {name} {family.help_text}")
                lines.append(f"# TYPE {name} gauge")
                for key, value in sorted(family.series.items()):
                    lines.append(f"{name}{self._render_labels(key)} {self._format_value(value)}")
                lines.append("")

        return "\n".join(lines) + "\n"

    def _family(self, name: str) -> _Family:
        try:
            return self._families[name]
        except KeyError:
            msg = f"gauge {name!r} is not registered"
            raise KeyError(msg) from None

    @staticmethod
    def _make_key(labels: dict[str, str] | None) -> LabelKey:
        if not labels:
            return ()
        return tuple(sorted(labels.items()))

    @staticmethod
    def _render_labels(key: LabelKey) -> str:
        if not key:
            return ""
        label_str = ",".join(f'{k}="{_escape(v)}"' for k, v in key)
        return f"{{{label_str}}}"

    @staticmethod
    def _format_value(value: float) -> str:
        if isinstance(value, int) or float(value).is_integer():
            return str(int(value))
        return repr(float(value))


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')
