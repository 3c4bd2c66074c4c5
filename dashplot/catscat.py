"""Categorical scatter plot.

Each series is one category band on the horizontal axis, ordered by the
color of its first point; points inside a band are placed vertically by
value, colored by their ``color`` key and drawn with the symbol of their
``shape`` key. A legend lists every color and shape key below the plot.

Scene building is pure (``build_scene``); ``render`` clears the surface,
builds the scene and mounts its SVG markup.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import html
import logging
from typing import Any

from dashplot.colors import DEFAULT_SCHEME, ColorResolver, resolve_colors
from dashplot.dataset import Dataset, Point, Series, dataset_from_payload, sort_series
from dashplot.errors import ChartConfigError, InvalidDataset
from dashplot.formatting import NumberFormat, axis_tick_labels, make_number_format
from dashplot.layout import LayoutConfig, PlotLayout, compute_layout
from dashplot.legend import LegendConfig, LegendLayout, bind_legend_keys, layout_legend
from dashplot.primitives import ChartScene, Group, LineMark, PathMark, Primitive, TextMark, Tooltip
from dashplot.scales import (
    LinearScale,
    OrdinalScale,
    PointScale,
    build_shape_scale,
    build_x_scale,
    build_y_scale,
    symbol_extent,
    symbol_path,
)
from dashplot.surface import DisplaySurface
from dashplot.svg import scene_to_svg
from dashplot.text_metrics import PillowTextMeasurer, TextMeasurer
from dashplot.ticks import filter_ticks


LOGGER = logging.getLogger(__name__)

REFERENCE_LINE_COLOR = "red"
REFERENCE_LINE_WIDTH = 1.5
AXIS_COLOR = "#000000"
TICK_SIZE = 6.0
TICK_PADDING = 3.0
Y_TICK_COUNT = 10

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})


@dataclass(frozen=True)
class FormData:
    color_scheme: str = DEFAULT_SCHEME
    x_axis_label: str = ""
    y_axis_label: str = ""
    y_axis_format: str | None = None
    show_legend: bool = True
    show_x_axis: bool = False


@dataclass(frozen=True)
class ComputedProps:
    layout: PlotLayout
    sorted_series: tuple[Series, ...]
    y_scale: LinearScale
    x_scale: PointScale
    color_scale: OrdinalScale[str]
    shape_scale: OrdinalScale[str]
    y_format: NumberFormat | None
    legend: LegendLayout | None = None


def form_data_from_dict(raw: Mapping[str, Any] | None) -> FormData:
    if raw is None:
        return FormData()
    if not isinstance(raw, Mapping):
        raise ChartConfigError("form_data must be an object")
    scheme = raw.get("color_scheme", raw.get("scheme")) or DEFAULT_SCHEME
    y_format = raw.get("y_axis_format")
    return FormData(
        color_scheme=str(scheme),
        x_axis_label=str(raw.get("x_axis_label") or ""),
        y_axis_label=str(raw.get("y_axis_label") or ""),
        y_axis_format=None if y_format is None else str(y_format),
        show_legend=_flag(raw, "show_legend", True),
        show_x_axis=_flag(raw, "show_x_axis", False),
    )


def _flag(raw: Mapping[str, Any], name: str, default: bool) -> bool:
    value = raw.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ChartConfigError(f"form_data.{name} must be a boolean, got {value!r}")


def computed_props(
    form_data: FormData,
    dataset: Dataset,
    width: int,
    height: int,
    *,
    measurer: TextMeasurer | None = None,
    legend_config: LegendConfig | None = None,
    layout_config: LayoutConfig | None = None,
    color_resolver: ColorResolver | None = None,
) -> ComputedProps:
    """Layout, scales and legend for one render; nothing here touches the surface.

    The legend is packed before the vertical scale is built so that a legend
    taller than its band takes its extra rows out of the plot height.
    """
    sorted_series = sort_series(dataset.series)
    ordered = Dataset(series=sorted_series, y_lines=dataset.y_lines)

    color_values = ordered.distinct("color")
    color_scale = OrdinalScale(
        domain=color_values,
        range=resolve_colors(color_values, form_data.color_scheme, color_resolver),
    )
    shape_scale = build_shape_scale(ordered.distinct("shape"))

    layout = compute_layout(width, height, layout_config)
    legend = None
    if form_data.show_legend:
        legend_cfg = legend_config or LegendConfig()
        text_measurer = measurer or PillowTextMeasurer(font_size_px=legend_cfg.font_size_px)
        keys = bind_legend_keys(color_scale, shape_scale, legend_cfg)
        legend = layout_legend(keys, text_measurer, layout.legend_width, legend_cfg)
        layout = layout.reserve_legend(legend.height)

    return ComputedProps(
        layout=layout,
        sorted_series=sorted_series,
        y_scale=build_y_scale(ordered.y_extent(), layout.plot_height),
        x_scale=build_x_scale(len(sorted_series), layout.plot_width),
        color_scale=color_scale,
        shape_scale=shape_scale,
        y_format=make_number_format(form_data.y_axis_format),
        legend=legend,
    )


def build_scene(
    form_data: FormData,
    dataset: Dataset,
    width: int,
    height: int,
    *,
    measurer: TextMeasurer | None = None,
    legend_config: LegendConfig | None = None,
    layout_config: LayoutConfig | None = None,
    color_resolver: ColorResolver | None = None,
) -> ChartScene:
    props = computed_props(
        form_data,
        dataset,
        width,
        height,
        measurer=measurer,
        legend_config=legend_config,
        layout_config=layout_config,
        color_resolver=color_resolver,
    )
    layout = props.layout
    legend_cfg = legend_config or LegendConfig()

    children: list[Primitive] = [
        _y_axis(props, form_data),
        _x_axis(props, form_data),
    ]
    if props.legend is not None:
        children.append(_legend_group(props.legend, layout, legend_cfg))
    children.extend(_bands(props))
    children.extend(_reference_lines(dataset.y_lines, props))

    root = Group(
        children=tuple(children),
        translate=(float(layout.padding.left), float(layout.padding.top)),
    )
    LOGGER.debug(
        "catscat scene: %d series, %d points, %d reference lines",
        len(props.sorted_series),
        dataset.point_count(),
        len(dataset.y_lines),
    )
    return ChartScene(width=width, height=height, root=root)


def render(
    container: DisplaySurface,
    payload: Mapping[str, Any],
    *,
    measurer: TextMeasurer | None = None,
    legend_config: LegendConfig | None = None,
    layout_config: LayoutConfig | None = None,
    color_resolver: ColorResolver | None = None,
) -> ChartScene:
    """Clear ``container`` and draw the chart described by ``payload`` into it.

    ``payload`` is ``{"form_data": {...}, "data": {"data": [series...], "yLines": [...]}}``;
    ``formData`` is accepted for ``form_data``.
    """
    container.clear()
    if not isinstance(payload, Mapping):
        raise InvalidDataset("payload must be an object")
    form_data = form_data_from_dict(payload.get("form_data", payload.get("formData")))
    block = payload.get("data")
    if not isinstance(block, Mapping):
        raise InvalidDataset("payload is missing the `data` object")
    dataset = dataset_from_payload(block.get("data", []), block.get("yLines", block.get("y_lines")))

    scene = build_scene(
        form_data,
        dataset,
        container.width,
        container.height,
        measurer=measurer,
        legend_config=legend_config,
        layout_config=layout_config,
        color_resolver=color_resolver,
    )
    container.mount(scene_to_svg(scene))
    return scene


def render_tooltip(point: Point) -> Tooltip:
    fields = point.tooltip_fields()
    markup = (
        "<div>"
        f"<span>{html.escape(fields['entity'])}: </span>"
        f"<span>{html.escape(fields['color'])}: </span>"
        f"<span>{html.escape(fields['shape'])}: </span>"
        f"<strong>{html.escape(fields['y'])}</strong>"
        "</div>"
    )
    text = f"{fields['entity']}: {fields['color']}: {fields['shape']}: {fields['y']}"
    return Tooltip(text=text, html=markup)


def _bands(props: ComputedProps) -> list[Group]:
    bands: list[Group] = []
    for index, series in enumerate(props.sorted_series):
        points = tuple(
            PathMark(
                d=symbol_path(props.shape_scale(point.shape)),
                translate=(0.0, props.y_scale(point.y)),
                fill=props.color_scale(point.color),
                classes=("point",),
                tooltip=render_tooltip(point),
            )
            for point in series.values
        )
        bands.append(Group(children=points, translate=(props.x_scale(index), 0.0), classes=("band",)))
    return bands


def _reference_lines(values: tuple[float, ...] | None, props: ComputedProps) -> list[LineMark]:
    if not values:
        return []
    width = props.layout.plot_width
    return [
        LineMark(
            x1=0.0,
            y1=props.y_scale(value),
            x2=width,
            y2=props.y_scale(value),
            stroke=REFERENCE_LINE_COLOR,
            stroke_width=REFERENCE_LINE_WIDTH,
            classes=("line",),
        )
        for value in values
    ]


def _y_axis(props: ComputedProps, form_data: FormData) -> Group:
    scale = props.y_scale
    r0, r1 = scale.range
    ticks = scale.ticks(Y_TICK_COUNT)
    if props.y_format is not None:
        labels = [props.y_format(float(v)) for v in ticks]
    else:
        labels = axis_tick_labels(ticks)

    children: list[Primitive] = []
    for value, label in zip(ticks.tolist(), labels, strict=True):
        children.append(
            Group(
                children=(
                    LineMark(x1=0.0, y1=0.0, x2=-TICK_SIZE, y2=0.0, stroke=AXIS_COLOR),
                    TextMark(
                        x=-(TICK_SIZE + TICK_PADDING),
                        y=0.0,
                        text=label,
                        anchor="end",
                        baseline="central",
                    ),
                ),
                translate=(0.0, scale(value)),
                classes=("tick",),
            )
        )
    children.append(
        PathMark(
            d=f"M{-TICK_SIZE:g},{r0:g}H0V{r1:g}H{-TICK_SIZE:g}",
            fill="none",
            stroke=AXIS_COLOR,
            classes=("domain",),
        )
    )
    if form_data.y_axis_label:
        children.append(
            TextMark(
                x=-(props.layout.padding.left - 12.0),
                y=props.layout.plot_height / 2.0,
                text=form_data.y_axis_label,
                anchor="middle",
                rotate=-90.0,
                classes=("y-label",),
            )
        )
    return Group(children=tuple(children), classes=("y", "axis"))


def _x_axis(props: ComputedProps, form_data: FormData) -> Group:
    layout = props.layout
    children: list[Primitive] = []
    if form_data.show_x_axis and props.x_scale.count > 0:
        for index in filter_ticks(range(props.x_scale.count)):
            children.append(
                Group(
                    children=(
                        LineMark(x1=0.0, y1=0.0, x2=0.0, y2=TICK_SIZE, stroke=AXIS_COLOR),
                        TextMark(
                            x=0.0,
                            y=TICK_SIZE + TICK_PADDING,
                            text=props.sorted_series[int(index)].key,
                            anchor="middle",
                            baseline="hanging",
                        ),
                    ),
                    translate=(props.x_scale(int(index)), 0.0),
                    classes=("tick",),
                )
            )
        children.append(
            PathMark(
                d=f"M0,{TICK_SIZE:g}V0H{layout.plot_width:g}V{TICK_SIZE:g}",
                fill="none",
                stroke=AXIS_COLOR,
                classes=("domain",),
            )
        )
    if form_data.x_axis_label:
        children.append(
            TextMark(
                x=layout.plot_width / 2.0,
                y=layout.label_baseline - layout.x_axis_top,
                text=form_data.x_axis_label,
                anchor="middle",
                classes=("x-label",),
            )
        )
    return Group(children=tuple(children), translate=(0.0, layout.x_axis_top), classes=("x", "axis"))


def _legend_group(legend: LegendLayout, layout: PlotLayout, config: LegendConfig) -> Group:
    keys: list[Group] = []
    for placed in legend.keys:
        mark = symbol_extent(placed.key.symbol, config.symbol_size)
        mid_y = placed.height / 2.0
        keys.append(
            Group(
                children=(
                    PathMark(
                        d=symbol_path(placed.key.symbol, config.symbol_size),
                        translate=(mark / 2.0, mid_y),
                        fill=placed.key.fill,
                        classes=("legend-mark",),
                    ),
                    TextMark(
                        x=mark + config.label_gap,
                        y=mid_y,
                        text=placed.key.value,
                        baseline="central",
                        font_size=config.font_size_px,
                        classes=("legend-label",),
                    ),
                ),
                translate=(placed.x, placed.y),
                classes=("legend-key", f"legend-{placed.key.kind}"),
            )
        )
    return Group(children=tuple(keys), translate=(0.0, layout.legend_top), classes=("legend",))
