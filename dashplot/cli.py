from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dashplot.catscat import render as render_catscat
from dashplot.errors import ChartConfigError, ChartDataError, UnknownChartType
from dashplot.registry import default_registry
from dashplot.surface import SvgSurface
from dashplot.text_metrics import FixedWidthTextMeasurer


LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dashplot")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a chart payload (JSON) to SVG.")
    render.add_argument("payload", help="Path to the payload JSON file, or - for stdin.")
    render.add_argument("--type", dest="viz_type", default="catscat", help="Chart type identifier.")
    render.add_argument("--width", type=int, default=640)
    render.add_argument("--height", type=int, default=480)
    render.add_argument("--out", type=Path, default=None, help="Output SVG path. Default: stdout.")
    render.add_argument(
        "--measure",
        choices=["font", "fixed"],
        default="font",
        help="Legend text measurement: installed font metrics, or a fixed per-character width.",
    )

    sub.add_parser("types", help="List registered chart types.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    registry = default_registry()

    if args.command == "types":
        for viz_type in registry.types():
            print(viz_type)
        return 0

    if args.measure == "fixed":
        registry.register(
            "catscat",
            lambda container, payload: render_catscat(container, payload, measurer=FixedWidthTextMeasurer()),
            replace=True,
        )

    try:
        payload = _load_payload(args.payload)
        surface = SvgSurface(width=args.width, height=args.height)
        registry.render(args.viz_type, surface, payload)
    except (ChartDataError, ChartConfigError, UnknownChartType, json.JSONDecodeError, OSError) as exc:
        print(f"dashplot: error: {exc}", file=sys.stderr)
        return 2

    if args.out is None:
        sys.stdout.write((surface.markup or "") + "\n")
    else:
        target = surface.write(args.out)
        LOGGER.info("wrote %s", target)
    return 0


def _load_payload(source: str) -> object:
    if source == "-":
        return json.load(sys.stdin)
    return json.loads(Path(source).read_text(encoding="utf-8"))
