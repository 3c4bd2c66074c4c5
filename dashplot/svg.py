from __future__ import annotations

import xml.etree.ElementTree as ET

from dashplot.primitives import ChartScene, Group, LineMark, PathMark, Primitive, TextMark


SVG_NAMESPACE = "http://www.w3.org/2000/svg"
DEFAULT_FONT_STACK = "Helvetica Neue,Helvetica,Arial,sans-serif"


def scene_to_element(scene: ChartScene) -> ET.Element:
    root = ET.Element(
        "svg",
        {
            "xmlns": SVG_NAMESPACE,
            "width": _num(scene.width),
            "height": _num(scene.height),
            "viewBox": f"0 0 {_num(scene.width)} {_num(scene.height)}",
            "font-family": DEFAULT_FONT_STACK,
        },
    )
    _emit(root, scene.root)
    return root


def scene_to_svg(scene: ChartScene) -> str:
    return ET.tostring(scene_to_element(scene), encoding="unicode")


def _emit(parent: ET.Element, node: Primitive) -> None:
    if isinstance(node, Group):
        elem = ET.SubElement(parent, "g", _common(node.classes, node.translate))
        for child in node.children:
            _emit(elem, child)
        return
    if isinstance(node, PathMark):
        attrs = _common(node.classes, node.translate)
        attrs["d"] = node.d
        style = _style(fill=node.fill, stroke=node.stroke, stroke_width=node.stroke_width)
        if style:
            attrs["style"] = style
        if node.tooltip is not None:
            attrs["data-tooltip"] = node.tooltip.html
        elem = ET.SubElement(parent, "path", attrs)
        if node.tooltip is not None:
            title = ET.SubElement(elem, "title")
            title.text = node.tooltip.text
        return
    if isinstance(node, LineMark):
        attrs = _common(node.classes, None)
        attrs.update(
            {
                "x1": _num(node.x1),
                "y1": _num(node.y1),
                "x2": _num(node.x2),
                "y2": _num(node.y2),
                "stroke": node.stroke,
                "stroke-width": _num(node.stroke_width),
            }
        )
        ET.SubElement(parent, "line", attrs)
        return
    if isinstance(node, TextMark):
        attrs = _common(node.classes, None)
        attrs["x"] = _num(node.x)
        attrs["y"] = _num(node.y)
        if node.anchor != "start":
            attrs["text-anchor"] = node.anchor
        if node.baseline is not None:
            attrs["dominant-baseline"] = node.baseline
        if node.rotate is not None:
            attrs["transform"] = f"rotate({_num(node.rotate)}, {_num(node.x)}, {_num(node.y)})"
        if node.font_size is not None:
            attrs["font-size"] = _num(node.font_size)
        if node.fill is not None:
            attrs["fill"] = node.fill
        elem = ET.SubElement(parent, "text", attrs)
        elem.text = node.text
        return
    raise TypeError(f"unsupported primitive: {type(node)!r}")


def _common(classes: tuple[str, ...], translate: tuple[float, float] | None) -> dict[str, str]:
    attrs: dict[str, str] = {}
    if classes:
        attrs["class"] = " ".join(classes)
    if translate is not None and translate != (0.0, 0.0):
        attrs["transform"] = f"translate({_num(translate[0])}, {_num(translate[1])})"
    return attrs


def _style(*, fill: str | None, stroke: str | None, stroke_width: float | None) -> str:
    parts: list[str] = []
    if fill is not None:
        parts.append(f"fill: {fill}")
    if stroke is not None:
        parts.append(f"stroke: {stroke}")
    if stroke_width is not None:
        parts.append(f"stroke-width: {_num(stroke_width)}")
    return "; ".join(parts)


def _num(value: float) -> str:
    out = f"{float(value):.3f}".rstrip("0").rstrip(".")
    return "0" if out in {"-0", ""} else out
