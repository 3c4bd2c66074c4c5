from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
import math
from typing import Any

from dashplot.errors import InvalidDataset


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


class _Missing:
    """Marker for an attribute read from a series that has no points."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


@dataclass(frozen=True)
class Point:
    y: float
    color: str
    shape: str
    entity: str = ""

    def tooltip_fields(self) -> dict[str, str]:
        return {
            "entity": self.entity,
            "color": self.color,
            "shape": self.shape,
            "y": _format_plain(self.y),
        }


@dataclass(frozen=True)
class Series:
    key: str
    values: tuple[Point, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.key, str):
            raise InvalidDataset("Series.key must be a string")


@dataclass(frozen=True)
class Dataset:
    series: tuple[Series, ...] = ()
    y_lines: tuple[float, ...] = ()

    def points(self) -> Iterable[Point]:
        for series in self.series:
            yield from series.values

    def point_count(self) -> int:
        return sum(len(series.values) for series in self.series)

    def y_extent(self) -> tuple[float, float] | None:
        ys = [point.y for point in self.points()]
        if not ys:
            return None
        return (min(ys), max(ys))

    def distinct(self, attr: str) -> tuple[str, ...]:
        """Distinct values of ``attr`` in first-seen order over every point."""
        seen: dict[str, None] = {}
        for point in self.points():
            seen.setdefault(getattr(point, attr), None)
        return tuple(seen)


def pick_first(values: Sequence[Point], attr: str) -> Any:
    """Return ``attr`` of the first point, or ``MISSING`` for an empty sequence."""
    if not values:
        return MISSING
    return getattr(values[0], attr)


def first_value_key(series: Series, attr: str = "color") -> tuple[int, float, str]:
    first = pick_first(series.values, attr)
    if first is MISSING:
        return (2, 0.0, "")
    number = _as_number(first)
    if number is not None:
        return (0, number, "")
    return (1, 0.0, str(first))


def sort_series(series: Iterable[Series], attr: str = "color") -> tuple[Series, ...]:
    """Stable ascending sort by the first point's ``attr``.

    Numeric keys come first (by value), then other keys (as strings), then
    series without points. Equal keys keep their input order.
    """
    return tuple(sorted(series, key=lambda item: first_value_key(item, attr)))


def dataset_from_payload(data: Any, y_lines: Any = None) -> Dataset:
    if not isinstance(data, Sequence) or isinstance(data, (str, bytes, bytearray)):
        raise InvalidDataset("data must be a list of series objects")
    series = tuple(_series_from_dict(raw, index=i) for i, raw in enumerate(data))
    return Dataset(series=series, y_lines=_coerce_y_lines(y_lines))


def dataset_from_records(
    records: Iterable[Mapping[str, Any]],
    *,
    key: str,
    y: str = "y",
    color: str = "color",
    shape: str = "shape",
    entity: str | None = "entity",
    y_lines: Any = None,
) -> Dataset:
    """Group flat row records into series by the ``key`` column, in first-seen order."""
    grouped: dict[str, list[Point]] = {}
    for i, row in enumerate(records):
        if key not in row:
            raise InvalidDataset(f"record {i} is missing key column `{key}`")
        mapped = {
            "y": row.get(y),
            "color": row.get(color),
            "shape": row.get(shape),
            "entity": row.get(entity) if entity is not None else None,
        }
        point = _point_from_dict(mapped, where=f"record {i}")
        grouped.setdefault(str(row[key]), []).append(point)
    series = tuple(Series(key=k, values=tuple(points)) for k, points in grouped.items())
    return Dataset(series=series, y_lines=_coerce_y_lines(y_lines))


def dataset_from_frame(
    frame: Any,
    *,
    key: str,
    y: str = "y",
    color: str = "color",
    shape: str = "shape",
    entity: str | None = None,
    y_lines: Any = None,
) -> Dataset:
    if pd is None:
        raise InvalidDataset("pandas is required for dataset_from_frame")
    if not isinstance(frame, pd.DataFrame):
        raise InvalidDataset("frame must be a pandas DataFrame")
    wanted = [c for c in (key, y, color, shape, entity) if c is not None]
    missing = [c for c in wanted if c not in frame.columns]
    if missing:
        raise InvalidDataset(f"column not found: {', '.join(missing)}")
    return dataset_from_records(
        frame[wanted].to_dict("records"),
        key=key,
        y=y,
        color=color,
        shape=shape,
        entity=entity,
        y_lines=y_lines,
    )


def _series_from_dict(raw: Any, *, index: int) -> Series:
    if not isinstance(raw, Mapping):
        raise InvalidDataset(f"series {index} must be an object")
    values = raw.get("values")
    if values is None:
        raise InvalidDataset(f"series {index} is missing `values`")
    if not isinstance(values, Sequence) or isinstance(values, (str, bytes, bytearray)):
        raise InvalidDataset(f"series {index} `values` must be a list")
    key = raw.get("key", str(index))
    points = tuple(
        _point_from_dict(point, where=f"series {index} point {j}") for j, point in enumerate(values)
    )
    return Series(key=str(key), values=points)


def _point_from_dict(raw: Any, *, where: str) -> Point:
    if not isinstance(raw, Mapping):
        raise InvalidDataset(f"{where} must be an object")
    y = raw.get("y")
    if isinstance(y, bool) or y is None:
        raise InvalidDataset(f"{where} has no numeric `y`")
    try:
        y_value = float(y)
    except (TypeError, ValueError) as exc:
        raise InvalidDataset(f"{where} has non-numeric `y`: {y!r}") from exc
    if not math.isfinite(y_value):
        raise InvalidDataset(f"{where} has non-finite `y`: {y!r}")
    color = raw.get("color")
    shape = raw.get("shape")
    if color is None:
        raise InvalidDataset(f"{where} is missing `color`")
    if shape is None:
        raise InvalidDataset(f"{where} is missing `shape`")
    entity = raw.get("entity")
    return Point(
        y=y_value,
        color=_category(color),
        shape=_category(shape),
        entity="" if entity is None else str(entity),
    )


def _coerce_y_lines(raw: Any) -> tuple[float, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes, bytearray)):
        raise InvalidDataset("yLines must be a list of numbers")
    out: list[float] = []
    for i, value in enumerate(raw):
        if isinstance(value, bool):
            raise InvalidDataset(f"yLines[{i}] must be numeric")
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidDataset(f"yLines[{i}] must be numeric: {value!r}") from exc
        if not math.isfinite(number):
            raise InvalidDataset(f"yLines[{i}] must be finite")
        out.append(number)
    return tuple(out)


def _category(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _format_plain(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)
