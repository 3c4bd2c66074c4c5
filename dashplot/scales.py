from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math
from typing import Generic, TypeVar

import numpy as np


T = TypeVar("T")

SYMBOL_TYPES: tuple[str, ...] = ("circle", "cross", "diamond", "square", "triangle-down", "triangle-up")
DEFAULT_SYMBOL_SIZE = 64.0

_SQRT3 = math.sqrt(3.0)
_TAN30 = math.tan(math.radians(30.0))


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]

    @property
    def degenerate(self) -> bool:
        return self.domain[0] == self.domain[1]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d0 == d1:
            # Flat domain: everything sits on the middle of the range.
            return (r0 + r1) / 2.0
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = 10) -> np.ndarray:
        lo, hi = sorted(self.domain)
        return linear_ticks(lo, hi, count)


@dataclass(frozen=True)
class PointScale:
    """Evenly spaced positions for ``count`` ranked categories across ``range``."""

    count: int
    range: tuple[float, float]

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("PointScale.count must be >= 0")

    @property
    def step(self) -> float:
        r0, r1 = self.range
        if self.count < 2:
            return 0.0
        return (r1 - r0) / (self.count - 1)

    def __call__(self, index: int) -> float:
        if index < 0 or index >= self.count:
            raise IndexError(f"category index {index} outside [0, {self.count})")
        r0, r1 = self.range
        if self.count == 1:
            return (r0 + r1) / 2.0
        return r0 + index * self.step

    def positions(self) -> list[float]:
        return [self(i) for i in range(self.count)]


@dataclass(frozen=True)
class OrdinalScale(Generic[T]):
    """Maps each domain value to the range entry at the same position, cycling the range."""

    domain: tuple[str, ...]
    range: tuple[T, ...]

    def __post_init__(self) -> None:
        if self.domain and not self.range:
            raise ValueError("OrdinalScale.range must not be empty")
        if len(set(self.domain)) != len(self.domain):
            raise ValueError("OrdinalScale.domain must not contain duplicates")

    def __call__(self, value: str) -> T:
        try:
            index = self.domain.index(value)
        except ValueError:
            raise KeyError(value) from None
        return self.range[index % len(self.range)]

    def items(self) -> list[tuple[str, T]]:
        return [(value, self(value)) for value in self.domain]


def build_y_scale(extent: tuple[float, float] | None, plot_height: float) -> LinearScale:
    if extent is None:
        return LinearScale(domain=(0.0, 0.0), range=(plot_height, 0.0))
    ymin, ymax = extent
    return LinearScale(domain=(float(ymin), float(ymax)), range=(plot_height, 0.0))


def build_x_scale(count: int, plot_width: float) -> PointScale:
    return PointScale(count=count, range=(0.0, plot_width))


def build_shape_scale(values: Sequence[str]) -> OrdinalScale[str]:
    return OrdinalScale(domain=tuple(values), range=SYMBOL_TYPES)


def symbol_path(kind: str, size: float = DEFAULT_SYMBOL_SIZE) -> str:
    """SVG path data for a symbol of area ``size`` centred on the origin."""
    if size <= 0:
        raise ValueError("symbol size must be > 0")
    if kind == "circle":
        r = math.sqrt(size / math.pi)
        return f"M0,{_n(r)}A{_n(r)},{_n(r)} 0 1,1 0,{_n(-r)}A{_n(r)},{_n(r)} 0 1,1 0,{_n(r)}Z"
    if kind == "cross":
        r = math.sqrt(size / 5.0) / 2.0
        return (
            f"M{_n(-3 * r)},{_n(-r)}H{_n(-r)}V{_n(-3 * r)}H{_n(r)}V{_n(-r)}H{_n(3 * r)}"
            f"V{_n(r)}H{_n(r)}V{_n(3 * r)}H{_n(-r)}V{_n(r)}H{_n(-3 * r)}Z"
        )
    if kind == "diamond":
        ry = math.sqrt(size / (2.0 * _TAN30))
        rx = ry * _TAN30
        return f"M0,{_n(-ry)}L{_n(rx)},0 0,{_n(ry)} {_n(-rx)},0Z"
    if kind == "square":
        r = math.sqrt(size) / 2.0
        return f"M{_n(-r)},{_n(-r)}L{_n(r)},{_n(-r)} {_n(r)},{_n(r)} {_n(-r)},{_n(r)}Z"
    if kind in {"triangle-down", "triangle-up"}:
        rx = math.sqrt(size / _SQRT3)
        ry = rx * _SQRT3 / 2.0
        if kind == "triangle-down":
            return f"M0,{_n(ry)}L{_n(rx)},{_n(-ry)} {_n(-rx)},{_n(-ry)}Z"
        return f"M0,{_n(-ry)}L{_n(rx)},{_n(ry)} {_n(-rx)},{_n(ry)}Z"
    raise ValueError(f"unknown symbol type: {kind}")


def symbol_extent(kind: str, size: float = DEFAULT_SYMBOL_SIZE) -> float:
    """Width of the symbol's bounding box."""
    if kind == "circle":
        return 2.0 * math.sqrt(size / math.pi)
    if kind == "cross":
        return 3.0 * math.sqrt(size / 5.0)
    if kind == "diamond":
        return 2.0 * math.sqrt(size / (2.0 * _TAN30)) * _TAN30
    if kind == "square":
        return math.sqrt(size)
    if kind in {"triangle-down", "triangle-up"}:
        return 2.0 * math.sqrt(size / _SQRT3)
    raise ValueError(f"unknown symbol type: {kind}")


def linear_ticks(vmin: float, vmax: float, count: int = 10) -> np.ndarray:
    """Round-number ticks inside ``[vmin, vmax]`` with roughly ``count`` entries."""
    if count <= 0:
        raise ValueError("count must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)
    step = tick_step(vmin, vmax, count)
    start = np.ceil(vmin / step) * step
    stop = np.floor(vmax / step) * step
    ticks = np.arange(start, stop + 0.5 * step, step, dtype=np.float64)
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def tick_step(vmin: float, vmax: float, count: int) -> float:
    span = abs(vmax - vmin)
    raw = span / count
    step = 10 ** np.floor(np.log10(raw))
    err = raw / step
    if err >= 7.07:
        step *= 10.0
    elif err >= 3.16:
        step *= 5.0
    elif err >= 1.41:
        step *= 2.0
    return float(step)


def _n(value: float) -> str:
    out = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if out in {"-0", ""} else out
