from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from dashplot.errors import ChartConfigError


DEFAULT_SCHEME = "bnbColors"

COLOR_SCHEMES: dict[str, tuple[str, ...]] = {
    "bnbColors": (
        "#ff5a5f",
        "#7b0051",
        "#007A87",
        "#00d1c1",
        "#8ce071",
        "#ffb400",
        "#b4a76c",
        "#ff8083",
        "#cc0086",
        "#00a1b3",
        "#00ffeb",
        "#bbedab",
        "#ffd266",
        "#cbc29a",
        "#ff3339",
        "#ff1ab1",
        "#005c66",
        "#00b3a5",
        "#55d12e",
        "#b37e00",
        "#988b4e",
    ),
    "d3Category10": (
        "#1f77b4",
        "#ff7f0e",
        "#2ca02c",
        "#d62728",
        "#9467bd",
        "#8c564b",
        "#e377c2",
        "#7f7f7f",
        "#bcbd22",
        "#17becf",
    ),
    "googleCategory10c": (
        "#3366cc",
        "#dc3912",
        "#ff9900",
        "#109618",
        "#990099",
        "#0099c6",
        "#dd4477",
        "#66aa00",
        "#b82e2e",
        "#316395",
    ),
}


class ColorResolver(Protocol):
    """Resolves a category value to a display color for a named scheme."""

    def resolve(self, value: str, scheme_id: str) -> str:
        ...


class SchemeColorResolver:
    """Assigns scheme colors to values in first-request order, cycling the palette.

    Assignments live on the instance, so a fresh resolver per render keeps
    renders independent.
    """

    def __init__(self, schemes: dict[str, tuple[str, ...]] | None = None) -> None:
        self._schemes = COLOR_SCHEMES if schemes is None else schemes
        self._assigned: dict[str, dict[str, str]] = {}

    def palette(self, scheme_id: str | None) -> tuple[str, ...]:
        key = scheme_id or DEFAULT_SCHEME
        try:
            palette = self._schemes[key]
        except KeyError:
            raise ChartConfigError(f"unknown color scheme `{key}`") from None
        if not palette:
            raise ChartConfigError(f"color scheme `{key}` is empty")
        return palette

    def resolve(self, value: str, scheme_id: str) -> str:
        palette = self.palette(scheme_id)
        assigned = self._assigned.setdefault(scheme_id or DEFAULT_SCHEME, {})
        color = assigned.get(value)
        if color is None:
            color = palette[len(assigned) % len(palette)]
            assigned[value] = color
        return color


def resolve_colors(values: Sequence[str], scheme_id: str | None, resolver: ColorResolver | None = None) -> tuple[str, ...]:
    active = resolver or SchemeColorResolver()
    return tuple(active.resolve(value, scheme_id or DEFAULT_SCHEME) for value in values)
