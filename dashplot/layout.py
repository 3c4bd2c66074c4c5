from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging

from dashplot.errors import ChartConfigError


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartPadding:
    top: int = 20
    left: int = 50
    right: int = 20
    bottom: int = 50

    def __post_init__(self) -> None:
        for name in ("top", "left", "right", "bottom"):
            if getattr(self, name) < 0:
                raise ChartConfigError(f"ChartPadding.{name} must be >= 0")


@dataclass(frozen=True)
class LayoutConfig:
    padding: ChartPadding = field(default_factory=ChartPadding)
    # fractions of container height
    legend_band_ratio: float = 0.15
    label_band_ratio: float = 0.05

    def __post_init__(self) -> None:
        if not 0.0 <= self.legend_band_ratio < 1.0:
            raise ChartConfigError("legend_band_ratio must be in [0, 1)")
        if not 0.0 <= self.label_band_ratio < 1.0:
            raise ChartConfigError("label_band_ratio must be in [0, 1)")


@dataclass(frozen=True)
class PlotLayout:
    width: int
    height: int
    padding: ChartPadding
    plot_width: float
    plot_height: float
    legend_band: float
    label_band: float

    @property
    def is_degenerate(self) -> bool:
        return self.plot_width <= 0 or self.plot_height <= 0

    @property
    def legend_width(self) -> float:
        return self.plot_width

    @property
    def legend_top(self) -> float:
        """Legend band origin, relative to the plot group."""
        return self.plot_height + self.padding.bottom + self.label_band

    @property
    def label_baseline(self) -> float:
        return self.plot_height + self.padding.bottom + self.label_band * 0.75

    @property
    def x_axis_top(self) -> float:
        return self.plot_height + self.padding.top / 2

    def reserve_legend(self, legend_height: float) -> PlotLayout:
        """Grow the legend band to fit ``legend_height``, shrinking the plot by the difference."""
        extra = legend_height - self.legend_band
        if extra <= 0:
            return self
        layout = replace(self, legend_band=legend_height, plot_height=self.plot_height - extra)
        LOGGER.debug("legend needs %.1fpx, plot height reduced to %.1f", legend_height, layout.plot_height)
        if layout.is_degenerate and not self.is_degenerate:
            LOGGER.warning(
                "legend of %.1fpx leaves no room for the plot in a %dx%d container",
                legend_height,
                self.width,
                self.height,
            )
        return layout


def compute_layout(width: int, height: int, config: LayoutConfig | None = None) -> PlotLayout:
    """Split the container into padding, plot area, label band and legend band.

    No clamping is applied: a container smaller than the reserved space gives
    a zero or negative plot area.
    """
    if width <= 0 or height <= 0:
        raise ChartConfigError("container width/height must be > 0")
    cfg = config or LayoutConfig()
    pad = cfg.padding
    legend_band = height * cfg.legend_band_ratio
    label_band = height * cfg.label_band_ratio
    plot_width = float(width - (pad.left + pad.right))
    plot_height = float(height - (pad.top + pad.bottom)) - legend_band - label_band
    layout = PlotLayout(
        width=width,
        height=height,
        padding=pad,
        plot_width=plot_width,
        plot_height=plot_height,
        legend_band=legend_band,
        label_band=label_band,
    )
    if layout.is_degenerate:
        LOGGER.warning(
            "container %dx%d leaves a degenerate plot area (%.1fx%.1f)",
            width,
            height,
            plot_width,
            plot_height,
        )
    return layout
