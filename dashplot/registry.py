from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any

from dashplot import catscat
from dashplot.errors import UnknownChartType
from dashplot.surface import DisplaySurface


LOGGER = logging.getLogger(__name__)

Renderer = Callable[[DisplaySurface, Mapping[str, Any]], Any]


class RendererRegistry:
    """Chart type identifier -> render function."""

    def __init__(self, renderers: Mapping[str, Renderer] | None = None) -> None:
        self._renderers: dict[str, Renderer] = dict(renderers or {})

    def register(self, viz_type: str, renderer: Renderer, *, replace: bool = False) -> None:
        if not viz_type.strip():
            raise ValueError("viz_type must be non-empty")
        if viz_type in self._renderers and not replace:
            raise ValueError(f"chart type `{viz_type}` is already registered")
        self._renderers[viz_type] = renderer

    def get(self, viz_type: str) -> Renderer:
        try:
            return self._renderers[viz_type]
        except KeyError:
            raise UnknownChartType(viz_type) from None

    def types(self) -> tuple[str, ...]:
        return tuple(sorted(self._renderers))

    def render(self, viz_type: str, container: DisplaySurface, payload: Mapping[str, Any]) -> Any:
        renderer = self.get(viz_type)
        LOGGER.debug("rendering %s into %dx%d surface", viz_type, container.width, container.height)
        return renderer(container, payload)


def default_registry() -> RendererRegistry:
    return RendererRegistry({"catscat": catscat.render})
