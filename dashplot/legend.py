from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
from typing import Literal

from dashplot.errors import ChartConfigError
from dashplot.scales import DEFAULT_SYMBOL_SIZE, OrdinalScale, symbol_extent
from dashplot.text_metrics import DEFAULT_FONT_SIZE_PX, TextMeasurer


LOGGER = logging.getLogger(__name__)

KeyKind = Literal["color", "shape"]


@dataclass(frozen=True)
class LegendConfig:
    key_gap: float = 10.0
    row_gap: float = 4.0
    label_gap: float = 4.0
    symbol_size: float = DEFAULT_SYMBOL_SIZE
    font_size_px: float = DEFAULT_FONT_SIZE_PX
    color_symbol: str = "circle"
    shape_fill: str = "#666666"

    def __post_init__(self) -> None:
        if self.key_gap < 0 or self.row_gap < 0 or self.label_gap < 0:
            raise ChartConfigError("legend gaps must be >= 0")
        if self.symbol_size <= 0:
            raise ChartConfigError("legend symbol_size must be > 0")
        if self.font_size_px <= 0:
            raise ChartConfigError("legend font_size_px must be > 0")


@dataclass(frozen=True)
class LegendKey:
    kind: KeyKind
    value: str
    symbol: str
    fill: str


@dataclass(frozen=True)
class PlacedKey:
    key: LegendKey
    x: float
    y: float
    width: float
    height: float
    row: int


@dataclass(frozen=True)
class LegendLayout:
    keys: tuple[PlacedKey, ...]
    row_widths: tuple[float, ...]
    max_width: float
    height: float

    def count(self, kind: KeyKind) -> int:
        return sum(1 for placed in self.keys if placed.key.kind == kind)


def bind_legend_keys(
    color_scale: OrdinalScale[str],
    shape_scale: OrdinalScale[str],
    config: LegendConfig | None = None,
) -> tuple[LegendKey, ...]:
    """One key per distinct color value, then one per distinct shape value."""
    cfg = config or LegendConfig()
    color_keys = [
        LegendKey(kind="color", value=value, symbol=cfg.color_symbol, fill=fill)
        for value, fill in color_scale.items()
    ]
    shape_keys = [
        LegendKey(kind="shape", value=value, symbol=symbol, fill=cfg.shape_fill)
        for value, symbol in shape_scale.items()
    ]
    return tuple(color_keys + shape_keys)


def measure_keys(
    keys: Sequence[LegendKey],
    measurer: TextMeasurer,
    config: LegendConfig | None = None,
) -> list[tuple[float, float]]:
    cfg = config or LegendConfig()
    sizes: list[tuple[float, float]] = []
    for key in keys:
        text_w, text_h = measurer.measure(key.value)
        mark = symbol_extent(key.symbol, cfg.symbol_size)
        sizes.append((mark + cfg.label_gap + text_w, max(mark, text_h)))
    return sizes


def pack_rows(widths: Sequence[float], max_width: float, gap: float) -> list[list[int]]:
    """Greedy left-to-right packing of item widths into rows no wider than ``max_width``.

    An item wider than ``max_width`` gets a row of its own.
    """
    if gap < 0:
        raise ChartConfigError("gap must be >= 0")
    rows: list[list[int]] = []
    current: list[int] = []
    used = 0.0
    for index, width in enumerate(widths):
        if width < 0:
            raise ChartConfigError(f"item {index} has negative width")
        needed = width if not current else used + gap + width
        if current and needed > max_width:
            rows.append(current)
            current = [index]
            used = width
        else:
            current.append(index)
            used = needed
    if current:
        rows.append(current)
    return rows


def row_width(widths: Sequence[float], row: Sequence[int], gap: float) -> float:
    if not row:
        return 0.0
    return sum(widths[i] for i in row) + gap * (len(row) - 1)


def layout_legend(
    keys: Sequence[LegendKey],
    measurer: TextMeasurer,
    max_width: float,
    config: LegendConfig | None = None,
) -> LegendLayout:
    """Measure every key, then pack color keys and shape keys into rows.

    Shape keys always start on a fresh row below the color keys.
    """
    cfg = config or LegendConfig()
    sizes = measure_keys(keys, measurer, cfg)
    placed: list[PlacedKey] = []
    row_widths: list[float] = []
    y = 0.0
    row_index = 0
    for kind in ("color", "shape"):
        group = [i for i, key in enumerate(keys) if key.kind == kind]
        widths = [sizes[i][0] for i in group]
        for row in pack_rows(widths, max_width, cfg.key_gap):
            if row_index > 0:
                y += cfg.row_gap
            x = 0.0
            height = max(sizes[group[i]][1] for i in row)
            for i in row:
                w, h = sizes[group[i]]
                placed.append(PlacedKey(key=keys[group[i]], x=x, y=y, width=w, height=h, row=row_index))
                x += w + cfg.key_gap
            row_widths.append(row_width(widths, row, cfg.key_gap))
            y += height
            row_index += 1
    oversized = [w for w in row_widths if w > max_width]
    if oversized:
        LOGGER.debug("%d legend row(s) hold a single key wider than %.1fpx", len(oversized), max_width)
    return LegendLayout(keys=tuple(placed), row_widths=tuple(row_widths), max_width=max_width, height=y)
