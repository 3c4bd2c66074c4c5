from dashplot.catscat import FormData, build_scene, computed_props, form_data_from_dict, render
from dashplot.dataset import (
    MISSING,
    Dataset,
    Point,
    Series,
    dataset_from_frame,
    dataset_from_payload,
    dataset_from_records,
    sort_series,
)
from dashplot.errors import ChartConfigError, ChartDataError, InvalidDataset, UnknownChartType
from dashplot.registry import RendererRegistry, default_registry
from dashplot.surface import DisplaySurface, SvgSurface

__all__ = [
    "ChartConfigError",
    "ChartDataError",
    "Dataset",
    "DisplaySurface",
    "FormData",
    "InvalidDataset",
    "MISSING",
    "Point",
    "RendererRegistry",
    "Series",
    "SvgSurface",
    "UnknownChartType",
    "build_scene",
    "computed_props",
    "dataset_from_frame",
    "dataset_from_payload",
    "dataset_from_records",
    "default_registry",
    "form_data_from_dict",
    "render",
    "sort_series",
]
