from __future__ import annotations

import unittest
import xml.etree.ElementTree as ET

from dashplot.catscat import FormData, build_scene, computed_props, form_data_from_dict, render, render_tooltip
from dashplot.colors import COLOR_SCHEMES, SchemeColorResolver
from dashplot.dataset import Point, dataset_from_payload
from dashplot.errors import ChartConfigError, InvalidDataset
from dashplot.primitives import Group, LineMark, PathMark, TextMark
from dashplot.surface import SvgSurface
from dashplot.text_metrics import FixedWidthTextMeasurer


EXAMPLE_DATA = [
    {"key": "g1", "values": [{"y": 1, "color": "a", "shape": "x", "entity": "alpha"}]},
    {"key": "g2", "values": [{"y": 5, "color": "b", "shape": "y", "entity": "beta"}]},
]


def _scene(data: list, y_lines: list | None = None, form_data: FormData | None = None, width: int = 400, height: int = 300):
    dataset = dataset_from_payload(data, y_lines)
    return build_scene(
        form_data or FormData(),
        dataset,
        width,
        height,
        measurer=FixedWidthTextMeasurer(),
    )


def _strip_namespace(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


class ComputedPropsTests(unittest.TestCase):
    def test_example_scales(self) -> None:
        dataset = dataset_from_payload(EXAMPLE_DATA)
        props = computed_props(FormData(), dataset, 400, 300, measurer=FixedWidthTextMeasurer())
        self.assertEqual(props.y_scale.domain, (1.0, 5.0))
        self.assertEqual(props.y_scale.range, (170.0, 0.0))
        self.assertEqual(props.x_scale.positions(), [0.0, 330.0])
        self.assertEqual(props.color_scale.domain, ("a", "b"))
        self.assertEqual(props.shape_scale.domain, ("x", "y"))
        self.assertIsNone(props.y_format)

    def test_color_domain_follows_sorted_order(self) -> None:
        dataset = dataset_from_payload(
            [
                {"key": "late", "values": [{"y": 1, "color": "z", "shape": "x"}]},
                {"key": "early", "values": [{"y": 2, "color": "m", "shape": "x"}, {"y": 3, "color": "q", "shape": "x"}]},
            ]
        )
        props = computed_props(FormData(), dataset, 400, 300, measurer=FixedWidthTextMeasurer())
        self.assertEqual([s.key for s in props.sorted_series], ["early", "late"])
        self.assertEqual(props.color_scale.domain, ("m", "q", "z"))
        palette = COLOR_SCHEMES["bnbColors"]
        self.assertEqual(props.color_scale("m"), palette[0])
        self.assertEqual(props.color_scale("z"), palette[2])

    def test_scheme_alias_and_unknown_scheme(self) -> None:
        form_data = form_data_from_dict({"scheme": "d3Category10", "y_axis_format": ".1f"})
        self.assertEqual(form_data.color_scheme, "d3Category10")
        props = computed_props(form_data, dataset_from_payload(EXAMPLE_DATA), 400, 300)
        self.assertEqual(props.color_scale("a"), "#1f77b4")
        with self.assertRaises(ChartConfigError):
            computed_props(FormData(color_scheme="nope"), dataset_from_payload(EXAMPLE_DATA), 400, 300)

    def test_boolean_flags_accept_strings_and_reject_junk(self) -> None:
        self.assertFalse(form_data_from_dict({"show_legend": "false"}).show_legend)
        self.assertFalse(form_data_from_dict({"show_legend": "0"}).show_legend)
        self.assertFalse(form_data_from_dict({"show_legend": False}).show_legend)
        self.assertTrue(form_data_from_dict({"show_x_axis": "True"}).show_x_axis)
        self.assertTrue(form_data_from_dict({"show_x_axis": 1}).show_x_axis)
        self.assertTrue(form_data_from_dict({"show_legend": None}).show_legend)
        with self.assertRaises(ChartConfigError):
            form_data_from_dict({"show_legend": "sometimes"})
        with self.assertRaises(ChartConfigError):
            form_data_from_dict({"show_x_axis": 2})

    def test_injected_color_resolver_is_used(self) -> None:
        resolver = SchemeColorResolver({"mono": ("#010101",)})
        props = computed_props(FormData(color_scheme="mono"), dataset_from_payload(EXAMPLE_DATA), 400, 300, color_resolver=resolver)
        self.assertEqual(props.color_scale.items(), [("a", "#010101"), ("b", "#010101")])


class SceneTests(unittest.TestCase):
    def test_example_renders_two_marks_and_four_legend_keys(self) -> None:
        scene = _scene(EXAMPLE_DATA)
        points = scene.find("point")
        self.assertEqual(len(points), 2)
        bands = scene.find("band")
        self.assertEqual([band.translate[0] for band in bands], [0.0, 330.0])
        self.assertEqual(len(scene.find("legend-color")), 2)
        self.assertEqual(len(scene.find("legend-shape")), 2)
        self.assertEqual(scene.root.translate, (50.0, 20.0))

    def test_mark_count_equals_point_count(self) -> None:
        data = [
            {"key": f"s{i}", "values": [{"y": i * j, "color": str(i % 3), "shape": str(j % 2)} for j in range(i)]}
            for i in range(6)
        ]
        scene = _scene(data)
        self.assertEqual(len(scene.find("point")), sum(range(6)))

    def test_points_use_scales(self) -> None:
        scene = _scene(EXAMPLE_DATA)
        low, high = scene.find("point")
        assert isinstance(low, PathMark) and isinstance(high, PathMark)
        self.assertEqual(low.translate, (0.0, 170.0))
        self.assertEqual(high.translate, (0.0, 0.0))
        self.assertEqual(low.fill, COLOR_SCHEMES["bnbColors"][0])
        self.assertTrue(low.d.startswith("M0,"))
        self.assertNotEqual(low.d, high.d)

    def test_bands_are_ordered_by_first_color_with_stable_ties(self) -> None:
        data = [
            {"key": "c1", "values": [{"y": 1, "color": "c", "shape": "x"}]},
            {"key": "a1", "values": [{"y": 2, "color": "a", "shape": "x"}]},
            {"key": "c2", "values": [{"y": 3, "color": "c", "shape": "x"}]},
            {"key": "b1", "values": [{"y": 4, "color": "b", "shape": "x"}]},
        ]
        scene = _scene(data)
        bands = scene.find("band")
        xs = [band.translate[0] for band in bands]
        self.assertEqual(xs, sorted(xs))
        self.assertEqual(len(set(xs)), 4)
        entities = []
        for band in bands:
            assert isinstance(band, Group)
            mark = band.children[0]
            assert isinstance(mark, PathMark) and mark.tooltip is not None
            entities.append(mark.tooltip.text.split(": ")[-1])
        self.assertEqual(entities, ["2", "4", "1", "3"])

    def test_empty_series_is_placed_last(self) -> None:
        scene = _scene([{"key": "empty", "values": []}, {"key": "full", "values": [{"y": 1, "color": "a", "shape": "x"}]}])
        bands = scene.find("band")
        assert isinstance(bands[0], Group) and isinstance(bands[1], Group)
        self.assertEqual(len(bands[0].children), 1)
        self.assertEqual(len(bands[1].children), 0)

    def test_flat_domain_places_points_mid_plot(self) -> None:
        data = [{"key": "g", "values": [{"y": 2, "color": "a", "shape": "x"}, {"y": 2, "color": "b", "shape": "x"}]}]
        for mark in _scene(data).find("point"):
            assert isinstance(mark, PathMark)
            self.assertEqual(mark.translate, (0.0, 85.0))

    def test_single_reference_line_spans_plot_width(self) -> None:
        scene = _scene(EXAMPLE_DATA, [3])
        lines = scene.find("line")
        self.assertEqual(len(lines), 1)
        line = lines[0]
        assert isinstance(line, LineMark)
        self.assertEqual((line.x1, line.x2), (0.0, 330.0))
        self.assertAlmostEqual(line.y1, 85.0)
        self.assertAlmostEqual(line.y2, 85.0)
        self.assertEqual((line.stroke, line.stroke_width), ("red", 1.5))

    def test_no_reference_lines_when_empty_or_omitted(self) -> None:
        self.assertEqual(_scene(EXAMPLE_DATA, []).find("line"), [])
        self.assertEqual(_scene(EXAMPLE_DATA, None).find("line"), [])

    def test_y_axis_uses_configured_format(self) -> None:
        scene = _scene(EXAMPLE_DATA, form_data=FormData(y_axis_format=".2f"))
        axis = next(node for node in scene.find("axis") if "y" in node.classes)
        labels = [node.text for node in _texts(axis)]
        self.assertEqual(labels[0], "1.00")
        self.assertEqual(labels[-1], "5.00")

    def test_y_axis_default_labels(self) -> None:
        scene = _scene(EXAMPLE_DATA)
        axis = next(node for node in scene.find("axis") if "y" in node.classes)
        self.assertEqual([node.text for node in _texts(axis)][:3], ["1", "1.5", "2"])

    def test_axis_labels(self) -> None:
        scene = _scene(EXAMPLE_DATA, form_data=FormData(x_axis_label="Teams", y_axis_label="Score"))
        (x_label,) = scene.find("x-label")
        (y_label,) = scene.find("y-label")
        assert isinstance(x_label, TextMark) and isinstance(y_label, TextMark)
        self.assertEqual(x_label.text, "Teams")
        self.assertEqual(y_label.text, "Score")
        self.assertEqual(y_label.rotate, -90.0)

    def test_x_axis_ticks_follow_tick_policy(self) -> None:
        data = [{"key": f"k{i:02d}", "values": [{"y": i, "color": str(i), "shape": "x"}]} for i in range(12)]
        scene = _scene(data, form_data=FormData(show_x_axis=True, show_legend=False))
        axis = next(node for node in scene.find("axis") if "x" in node.classes)
        assert isinstance(axis, Group)
        ticks = [child for child in axis.children if isinstance(child, Group)]
        self.assertEqual([t.translate[0] for t in ticks], [0.0, 150.0, 300.0])
        self.assertEqual([node.text for node in _texts(axis)], ["k00", "k05", "k10"])

    def test_x_axis_hidden_by_default(self) -> None:
        scene = _scene(EXAMPLE_DATA)
        axis = next(node for node in scene.find("axis") if "x" in node.classes)
        assert isinstance(axis, Group)
        self.assertEqual(axis.children, ())

    def test_legend_can_be_disabled(self) -> None:
        scene = _scene(EXAMPLE_DATA, form_data=FormData(show_legend=False))
        self.assertEqual(scene.find("legend"), [])

    def test_legend_sits_inside_the_container(self) -> None:
        scene = _scene(EXAMPLE_DATA)
        for key in scene.find("legend-key"):
            origin = scene.absolute_origin(key)
            assert origin is not None and isinstance(key, Group)
            self.assertGreaterEqual(origin[1], 20.0 + 170.0)
            self.assertLessEqual(origin[1], 300.0)

    def test_tall_legend_takes_rows_from_the_plot(self) -> None:
        data = [
            {"key": f"g{i:02d}", "values": [{"y": i, "color": f"category-{i:02d}", "shape": "xyz"[i % 3]}]}
            for i in range(12)
        ]
        props = computed_props(FormData(), dataset_from_payload(data), 400, 300, measurer=FixedWidthTextMeasurer())
        assert props.legend is not None
        self.assertEqual(props.legend.count("color"), 12)
        self.assertEqual(max(placed.row for placed in props.legend.keys), 4)
        self.assertAlmostEqual(props.legend.height, 76.0)
        self.assertAlmostEqual(props.layout.plot_height, 139.0)
        self.assertEqual(props.y_scale.range, (props.layout.plot_height, 0.0))
        top = props.layout.padding.top + props.layout.legend_top
        for placed in props.legend.keys:
            self.assertLessEqual(top + placed.y + placed.height, 300.0 + 1e-9)

        scene = _scene(data)
        keys = scene.find("legend-key")
        self.assertEqual(len(keys), 15)
        for key in keys:
            origin = scene.absolute_origin(key)
            assert origin is not None
            self.assertLessEqual(origin[1] + 12.0, 300.0 + 1e-9)

    def test_short_legend_keeps_the_default_band(self) -> None:
        props = computed_props(FormData(), dataset_from_payload(EXAMPLE_DATA), 400, 300, measurer=FixedWidthTextMeasurer())
        assert props.legend is not None
        self.assertAlmostEqual(props.legend.height, 28.0)
        self.assertAlmostEqual(props.layout.legend_band, 45.0)
        self.assertAlmostEqual(props.layout.plot_height, 170.0)

    def test_empty_dataset_renders_axes_only(self) -> None:
        scene = _scene([])
        self.assertEqual(scene.find("point"), [])
        self.assertEqual(scene.find("legend-key"), [])
        self.assertEqual(len(scene.find("axis")), 2)

    def test_tooltip_escapes_markup(self) -> None:
        tooltip = render_tooltip(Point(y=2.5, color="a", shape="x", entity="<b>"))
        self.assertEqual(tooltip.text, "<b>: a: x: 2.5")
        self.assertIn("&lt;b&gt;", tooltip.html)
        self.assertIn("<strong>2.5</strong>", tooltip.html)


class RenderTests(unittest.TestCase):
    def _payload(self, y_lines: list | None = None) -> dict:
        return {"form_data": {"color_scheme": "bnbColors"}, "data": {"data": EXAMPLE_DATA, "yLines": y_lines}}

    def test_render_mounts_svg_on_surface(self) -> None:
        surface = SvgSurface(width=400, height=300)
        render(surface, self._payload([3]), measurer=FixedWidthTextMeasurer())
        assert surface.markup is not None
        root = ET.fromstring(surface.markup)
        self.assertEqual(_strip_namespace(root.tag), "svg")
        self.assertEqual(root.attrib["width"], "400")
        tags = [(_strip_namespace(elem.tag), elem.attrib.get("class", "")) for elem in root.iter()]
        self.assertEqual(sum(1 for tag, cls in tags if tag == "path" and cls == "point"), 2)
        self.assertEqual(sum(1 for tag, cls in tags if tag == "line" and cls == "line"), 1)
        titles = [elem.text for elem in root.iter() if _strip_namespace(elem.tag) == "title"]
        self.assertEqual(titles, ["alpha: a: x: 1", "beta: b: y: 5"])

    def test_rerender_replaces_previous_chart(self) -> None:
        surface = SvgSurface(width=400, height=300)
        render(surface, self._payload([3]), measurer=FixedWidthTextMeasurer())
        render(surface, self._payload(), measurer=FixedWidthTextMeasurer())
        self.assertEqual(surface.render_count, 2)
        assert surface.markup is not None
        self.assertNotIn('class="line"', surface.markup)

    def test_form_data_camel_case_alias(self) -> None:
        surface = SvgSurface(width=400, height=300)
        payload = {"formData": {"scheme": "d3Category10"}, "data": {"data": EXAMPLE_DATA}}
        render(surface, payload, measurer=FixedWidthTextMeasurer())
        assert surface.markup is not None
        self.assertIn("#1f77b4", surface.markup)

    def test_invalid_payload_leaves_surface_cleared(self) -> None:
        surface = SvgSurface(width=400, height=300)
        render(surface, self._payload(), measurer=FixedWidthTextMeasurer())
        with self.assertRaises(InvalidDataset):
            render(surface, {"data": {"data": [{"key": "g"}]}}, measurer=FixedWidthTextMeasurer())
        self.assertIsNone(surface.markup)
        with self.assertRaises(InvalidDataset):
            render(surface, {"form_data": {}}, measurer=FixedWidthTextMeasurer())


def _texts(group) -> list[TextMark]:
    out: list[TextMark] = []
    stack = [group]
    while stack:
        node = stack.pop(0)
        if isinstance(node, TextMark):
            out.append(node)
        elif isinstance(node, Group):
            stack = list(node.children) + stack
    return out


if __name__ == "__main__":
    unittest.main()
