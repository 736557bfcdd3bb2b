import unittest

from models.chart_models import ChartKind
from services.chart_xml_service import definition_data_range, parse_chart_xml
from tests.workbook_fixtures import CHART_NS, bar_chart_xml


def _chart(plot: str, title: str = "") -> str:
    return f"<c:chartSpace {CHART_NS}><c:chart>{title}<c:plotArea>{plot}</c:plotArea></c:chart></c:chartSpace>"


class TestParseChartXml(unittest.TestCase):
    def test_bar_direction(self):
        self.assertTrue(parse_chart_xml(bar_chart_xml(bar_dir="bar")).horizontal)
        self.assertFalse(parse_chart_xml(bar_chart_xml(bar_dir="col")).horizontal)

    def test_titles_series_and_categories(self):
        definition = parse_chart_xml(bar_chart_xml())

        self.assertEqual(definition.chart_type, ChartKind.BAR)
        self.assertEqual(definition.title, "Revenue")
        self.assertEqual(definition.x_axis_title, "Month")
        self.assertEqual(definition.y_axis_title, "Amount")
        self.assertEqual(definition.category_ref, "Sheet1!$A$2:$A$4")
        self.assertFalse(definition.stacked)

        self.assertEqual(len(definition.series), 1)
        series = definition.series[0]
        self.assertEqual(series.name, "Sales")
        self.assertEqual(series.name_ref, "Sheet1!$B$1")
        self.assertEqual(series.value_ref, "Sheet1!$B$2:$B$4")
        self.assertEqual(series.color, "#FF0000")

    def test_stacked_groupings(self):
        self.assertTrue(parse_chart_xml(bar_chart_xml(grouping="stacked")).stacked)
        self.assertTrue(parse_chart_xml(bar_chart_xml(grouping="percentStacked")).stacked)
        self.assertFalse(parse_chart_xml(bar_chart_xml(grouping="standard")).stacked)

    def test_title_falls_back_to_first_series_name(self):
        definition = parse_chart_xml(bar_chart_xml(title=None))
        self.assertEqual(definition.title, "Sales")

    def test_chart_type_detection(self):
        cases = {
            "<c:lineChart/>": ChartKind.LINE,
            "<c:pie3DChart/>": ChartKind.PIE,
            "<c:doughnutChart/>": ChartKind.DOUGHNUT,
            "<c:scatterChart/>": ChartKind.SCATTER,
            "<c:areaChart/>": ChartKind.AREA,
            "<c:radarChart/>": ChartKind.RADAR,
            "<c:stockChart/>": ChartKind.BAR,
            # first match in detection order wins for combo charts
            "<c:lineChart/><c:barChart/>": ChartKind.BAR,
        }
        for plot, kind in cases.items():
            self.assertEqual(parse_chart_xml(_chart(plot)).chart_type, kind, plot)

    def test_bar_direction_ignored_for_other_types(self):
        definition = parse_chart_xml(_chart('<c:lineChart><c:barDir val="bar"/></c:lineChart>'))
        self.assertFalse(definition.horizontal)

    def test_scatter_series_use_x_and_y_values(self):
        ser = (
            "<c:ser><c:xVal><c:numRef><c:f>Data!$A$2:$A$6</c:f></c:numRef></c:xVal>"
            "<c:yVal><c:numRef><c:f>Data!$B$2:$B$6</c:f></c:numRef></c:yVal></c:ser>"
        )
        definition = parse_chart_xml(_chart(f"<c:scatterChart>{ser}</c:scatterChart>"))
        self.assertEqual(definition.category_ref, "Data!$A$2:$A$6")
        self.assertEqual(definition.series[0].value_ref, "Data!$B$2:$B$6")
        self.assertIsNone(definition.series[0].name)

    def test_series_without_values_is_skipped(self):
        ser = "<c:ser><c:tx><c:v>Orphan</c:v></c:tx></c:ser>"
        definition = parse_chart_xml(_chart(f"<c:barChart>{ser}</c:barChart>"))
        self.assertEqual(definition.series, [])

    def test_invalid_color_is_ignored(self):
        ser = (
            "<c:ser><c:spPr><a:solidFill><a:srgbClr val=\"red\"/></a:solidFill></c:spPr>"
            "<c:val><c:numRef><c:f>B2:B4</c:f></c:numRef></c:val></c:ser>"
        )
        definition = parse_chart_xml(_chart(f"<c:barChart>{ser}</c:barChart>"))
        self.assertIsNone(definition.series[0].color)

    def test_malformed_input_degrades_to_defaults(self):
        for text in ("", "   ", "<not-xml", "plain text"):
            definition = parse_chart_xml(text)
            self.assertEqual(definition.chart_type, ChartKind.BAR)
            self.assertEqual(definition.series, [])
            self.assertIsNone(definition.title)

    def test_data_range(self):
        definition = parse_chart_xml(bar_chart_xml())
        self.assertEqual(definition_data_range(definition), "Sheet1!$A$2:$A$4, Sheet1!$B$2:$B$4")
        self.assertIsNone(definition_data_range(parse_chart_xml("")))


if __name__ == "__main__":
    unittest.main()
