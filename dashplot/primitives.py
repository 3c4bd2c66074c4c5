from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Tooltip:
    text: str
    html: str


@dataclass(frozen=True)
class PathMark:
    d: str
    translate: tuple[float, float] = (0.0, 0.0)
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    classes: tuple[str, ...] = ()
    tooltip: Tooltip | None = None


@dataclass(frozen=True)
class LineMark:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = "#000000"
    stroke_width: float = 1.0
    classes: tuple[str, ...] = ()


@dataclass(frozen=True)
class TextMark:
    x: float
    y: float
    text: str
    anchor: str = "start"
    baseline: str | None = None
    rotate: float | None = None
    font_size: float | None = None
    fill: str | None = None
    classes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Group:
    children: tuple["Primitive", ...] = ()
    translate: tuple[float, float] = (0.0, 0.0)
    classes: tuple[str, ...] = ()


Primitive = Union[Group, PathMark, LineMark, TextMark]


@dataclass(frozen=True)
class ChartScene:
    width: int
    height: int
    root: Group

    def walk(self) -> Iterator[Primitive]:
        stack: list[Primitive] = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Group):
                stack.extend(reversed(node.children))

    def find(self, class_name: str) -> list[Primitive]:
        return [node for node in self.walk() if class_name in node.classes]

    def absolute_origin(self, target: Primitive) -> tuple[float, float] | None:
        """Scene coordinates of ``target``'s local origin, its own translation included."""

        def visit(node: Primitive, ox: float, oy: float) -> tuple[float, float] | None:
            if node is target:
                tx, ty = getattr(node, "translate", (0.0, 0.0))
                return (ox + tx, oy + ty)
            if isinstance(node, Group):
                tx, ty = node.translate
                for child in node.children:
                    found = visit(child, ox + tx, oy + ty)
                    if found is not None:
                        return found
            return None

        return visit(self.root, 0.0, 0.0)
