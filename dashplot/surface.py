from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from dashplot.errors import ChartConfigError


class DisplaySurface(Protocol):
    """Container a chart renders into: fixed size, cleared before each render."""

    width: int
    height: int

    def clear(self) -> None:
        ...

    def mount(self, svg_markup: str) -> None:
        ...


@dataclass
class SvgSurface:
    width: int
    height: int
    render_count: int = field(default=0, init=False)
    _markup: str | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ChartConfigError("SvgSurface width/height must be > 0")

    @property
    def markup(self) -> str | None:
        return self._markup

    def clear(self) -> None:
        self._markup = None

    def mount(self, svg_markup: str) -> None:
        if self._markup is not None:
            raise RuntimeError("surface already holds a chart; clear() it first")
        self._markup = svg_markup
        self.render_count += 1

    def write(self, path: str | Path) -> Path:
        if self._markup is None:
            raise RuntimeError("nothing rendered on this surface")
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self._markup + "\n", encoding="utf-8")
        return target
