"""Number formatting for axis labels, driven by d3-format style specifiers.

Supported: ``[[fill]align][sign][$][0][width][,][.precision][~][type]`` with
types ``f d e g r s % p x o b n`` and the empty type. Without a specifier the
vertical axis falls back to ``axis_tick_labels``, which picks the decimals from
the tick step.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import math
import re

from dashplot.errors import ChartConfigError


NumberFormat = Callable[[float], str]

_SPEC_RE = re.compile(
    r"^(?:(?P<fill>.)?(?P<align>[<>=^]))?"
    r"(?P<sign>[+\-( ])?"
    r"(?P<symbol>[$#])?"
    r"(?P<zero>0)?"
    r"(?P<width>\d+)?"
    r"(?P<comma>,)?"
    r"(?:\.(?P<precision>\d+))?"
    r"(?P<trim>~)?"
    r"(?P<type>[a-z%])?$"
)

_TYPES = frozenset({"", "f", "d", "e", "g", "r", "s", "%", "p", "x", "o", "b", "n"})

SI_PREFIXES: dict[int, str] = {
    -24: "y",
    -21: "z",
    -18: "a",
    -15: "f",
    -12: "p",
    -9: "n",
    -6: "µ",
    -3: "m",
    0: "",
    3: "k",
    6: "M",
    9: "G",
    12: "T",
    15: "P",
    18: "E",
    21: "Z",
    24: "Y",
}


@dataclass(frozen=True)
class FormatSpec:
    fill: str = " "
    align: str = ">"
    sign: str = "-"
    symbol: str = ""
    zero: bool = False
    width: int | None = None
    comma: bool = False
    precision: int | None = None
    trim: bool = False
    type: str = ""


def parse_format_spec(spec: str) -> FormatSpec:
    match = _SPEC_RE.match(spec)
    if match is None:
        raise ChartConfigError(f"invalid number format: {spec!r}")
    groups = match.groupdict()
    kind = groups["type"] or ""
    if kind not in _TYPES:
        raise ChartConfigError(f"unsupported number format type `{kind}` in {spec!r}")
    fill = groups["fill"] or " "
    align = groups["align"] or ">"
    zero = bool(groups["zero"])
    if zero:
        fill, align = "0", "="
    return FormatSpec(
        fill=fill,
        align=align,
        sign=groups["sign"] or "-",
        symbol=groups["symbol"] or "",
        zero=zero,
        width=int(groups["width"]) if groups["width"] else None,
        comma=bool(groups["comma"]),
        precision=int(groups["precision"]) if groups["precision"] is not None else None,
        trim=bool(groups["trim"]),
        type=kind,
    )


def make_number_format(spec: str | None) -> NumberFormat | None:
    """Build a formatter, or return None when no spec is configured."""
    if spec is None or not spec.strip():
        return None
    parsed = parse_format_spec(spec.strip())

    def _format(value: float) -> str:
        return format_number(value, parsed)

    return _format


def format_number(value: float, spec: FormatSpec) -> str:
    value = float(value)
    if not math.isfinite(value):
        return str(value)
    negative = value < 0 or (value == 0 and math.copysign(1.0, value) < 0)
    body = _format_body(abs(value), spec)
    if spec.trim:
        body = _trim(body)
    if negative and not any(ch in "123456789" for ch in body):
        negative = False

    prefix = "$" if spec.symbol == "$" else ""
    if spec.sign == "(" and negative:
        sign, suffix = "(", ")"
    else:
        suffix = ""
        if negative:
            sign = "-"
        elif spec.sign == "+":
            sign = "+"
        elif spec.sign == " ":
            sign = " "
        else:
            sign = ""

    if spec.width is None:
        return f"{sign}{prefix}{body}{suffix}"
    if spec.align == "=":
        padded = body.rjust(spec.width - len(sign) - len(prefix) - len(suffix), spec.fill)
        return f"{sign}{prefix}{padded}{suffix}"
    return format(f"{sign}{prefix}{body}{suffix}", f"{spec.fill}{spec.align}{spec.width}")


def _format_body(x: float, spec: FormatSpec) -> str:
    grouping = "," if spec.comma else ""
    p = spec.precision
    kind = spec.type
    if kind == "f":
        return format(x, f"{grouping}.{6 if p is None else p}f")
    if kind == "%":
        return format(x, f"{grouping}.{6 if p is None else p}%")
    if kind == "d":
        return format(int(math.floor(x + 0.5)), f"{grouping}d")
    if kind in {"x", "o", "b"}:
        return format(int(math.floor(x + 0.5)), kind)
    if kind == "e":
        return _js_exponent(format(x, f".{6 if p is None else p}e"))
    if kind == "g":
        out = format(x, f"#{grouping}.{max(1, 6 if p is None else p)}g")
        return _js_exponent(out.rstrip(".") if "e" not in out else out)
    if kind == "r":
        return _fixed_significant(x, 6 if p is None else max(1, p), grouping=grouping)
    if kind == "p":
        return _fixed_significant(x * 100.0, 6 if p is None else max(1, p), grouping=grouping) + "%"
    if kind == "s":
        return _si(x, 6 if p is None else max(1, p))
    if kind == "n":
        return format(x, f",.{12 if p is None else max(1, p)}g")
    return format(x, f"{grouping}.{12 if p is None else max(1, p)}g")


def _fixed_significant(x: float, digits: int, *, grouping: str = "") -> str:
    mantissa = format(x, f".{digits - 1}e")
    exponent = int(mantissa.split("e")[1])
    decimals = max(0, digits - 1 - exponent)
    return format(float(mantissa), f"{grouping}.{decimals}f")


def _si(x: float, digits: int) -> str:
    if x == 0:
        exp3 = 0
    else:
        rounded = float(format(x, f".{digits - 1}e"))
        exp3 = int(math.floor(math.log10(rounded) / 3.0)) * 3
        exp3 = max(-24, min(24, exp3))
    return _fixed_significant(x / (10.0**exp3), digits) + SI_PREFIXES[exp3]


def _js_exponent(text: str) -> str:
    return re.sub(r"e([+-])0*(\d)", r"e\1\2", text)


def _trim(body: str) -> str:
    match = re.match(r"^([\d,]*)(\.\d*)?(.*)$", body)
    if match is None:
        return body
    whole, frac, rest = match.group(1), match.group(2) or "", match.group(3)
    frac = frac.rstrip("0")
    if frac == ".":
        frac = ""
    return f"{whole}{frac}{rest}"


def axis_tick_labels(ticks: Sequence[float]) -> list[str]:
    """Labels for evenly spaced ticks, with as many decimals as the step needs."""
    values = [float(v) for v in ticks]
    step = abs(values[1] - values[0]) if len(values) > 1 else None
    return [_tick_label(value, step) for value in values]


def _tick_label(value: float, step: float | None) -> str:
    if not math.isfinite(value):
        return str(value)
    # snap float noise around zero
    if step and math.isfinite(step) and abs(value) <= step * 1e-9:
        value = 0.0
    magnitude = abs(value)
    if magnitude and (magnitude >= 1e6 or magnitude < 1e-6 or (step is not None and step < 1e-4)):
        return f"{value:.4e}"
    exact = Decimal(repr(value))
    try:
        text = format(exact.quantize(Decimal(1).scaleb(-_step_places(step))), "f")
    except InvalidOperation:
        text = format(exact, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _step_places(step: float | None) -> int:
    if step is None or step <= 0 or not math.isfinite(step):
        return 6
    exponent = Decimal(repr(step)).normalize().as_tuple().exponent
    return min(12, max(0, -int(exponent)))
