from __future__ import annotations


class ChartDataError(ValueError):
    """Raised when chart input data cannot be rendered."""


class InvalidDataset(ChartDataError):
    """Raised when a payload does not have the series/points shape a renderer expects."""


class ChartConfigError(ValueError):
    """Raised for invalid display configuration (sizes, formats, schemes)."""


class UnknownChartType(KeyError):
    def __init__(self, viz_type: str) -> None:
        super().__init__(viz_type)
        self.viz_type = viz_type

    def __str__(self) -> str:
        return f"no renderer registered for chart type `{self.viz_type}`"
