"""
Parsing of DrawingML chart parts (``xl/charts/chartN.xml``).

Chart XML in the wild is loosely shaped, so every field is optional and a
broken document degrades to a default bar chart with no series.
"""
import logging
import re
from typing import List, Optional

from lxml import etree

from models.chart_models import ChartDefinition, ChartKind, SeriesReference

logger = logging.getLogger(__name__)

NS = {
    "c": "http://schemas.openxmlformats.org/drawingml/2006/chart",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
}

# detection order matters: first hit wins
CHART_TYPE_TAGS = [
    (ChartKind.BAR, ("barChart", "bar3DChart")),
    (ChartKind.LINE, ("lineChart", "line3DChart")),
    (ChartKind.PIE, ("pieChart", "pie3DChart")),
    (ChartKind.DOUGHNUT, ("doughnutChart",)),
    (ChartKind.SCATTER, ("scatterChart",)),
    (ChartKind.AREA, ("areaChart", "area3DChart")),
    (ChartKind.RADAR, ("radarChart",)),
]

STACKED_GROUPINGS = ("stacked", "percentStacked")

MAX_DATA_RANGE_REFS = 5

_HEX_COLOR = re.compile(r"^[0-9A-Fa-f]{6}$")

_PARSER = etree.XMLParser(recover=True, resolve_entities=False, no_network=True, huge_tree=False)


def _parse_root(xml_text: str) -> Optional[etree._Element]:
    if not xml_text or not xml_text.strip():
        return None
    try:
        return etree.fromstring(xml_text.encode("utf-8"), parser=_PARSER)
    except etree.XMLSyntaxError:
        return None


def _first(node: etree._Element, path: str) -> Optional[etree._Element]:
    found = node.xpath(path, namespaces=NS)
    return found[0] if found else None


def _first_text(node: Optional[etree._Element], *paths: str) -> Optional[str]:
    if node is None:
        return None
    for path in paths:
        for el in node.xpath(path, namespaces=NS):
            if el.text and el.text.strip():
                return el.text.strip()
    return None


def _title_text(title: Optional[etree._Element]) -> Optional[str]:
    # rich text runs first, then a cached string from a cell-backed title
    return _first_text(title, ".//a:t", ".//c:v")


def _attr(node: Optional[etree._Element], attr: str = "val") -> Optional[str]:
    return node.get(attr) if node is not None else None


def _detect_chart_type(root: etree._Element) -> ChartKind:
    for kind, tags in CHART_TYPE_TAGS:
        for tag in tags:
            if _first(root, f".//c:{tag}") is not None:
                return kind
    return ChartKind.BAR


def _parse_series(ser: etree._Element) -> Optional[SeriesReference]:
    tx = _first(ser, "c:tx")
    name = _first_text(tx, ".//c:v", ".//a:t")
    name_ref = _first_text(tx, ".//c:f")

    value_ref = _first_text(_first(ser, "c:val"), ".//c:f")
    if value_ref is None:
        # scatter series keep their y values elsewhere
        value_ref = _first_text(_first(ser, "c:yVal"), ".//c:f")
    if value_ref is None:
        return None

    color = None
    # the series' own shape fill wins over per-point or label colors
    candidates = ser.xpath("c:spPr//a:srgbClr", namespaces=NS) + ser.xpath(".//a:srgbClr", namespaces=NS)
    for clr in candidates:
        val = clr.get("val") or ""
        if _HEX_COLOR.match(val):
            color = "#" + val.upper()
            break

    return SeriesReference(name=name, name_ref=name_ref, value_ref=value_ref, color=color)


def parse_chart_xml(xml_text: str) -> ChartDefinition:
    """Extract type, orientation, stacking, titles and series references from a chart part."""
    root = _parse_root(xml_text)
    if root is None:
        logger.debug("Chart XML could not be parsed, using defaults")
        return ChartDefinition()

    chart_type = _detect_chart_type(root)

    horizontal = False
    if chart_type == ChartKind.BAR:
        horizontal = _attr(_first(root, ".//c:barDir")) == "bar"

    stacked = _attr(_first(root, ".//c:grouping")) in STACKED_GROUPINGS

    title = _title_text(_first(root, "//c:chart/c:title"))
    x_axis_title = _title_text(_first(root, ".//c:catAx/c:title")) or _title_text(_first(root, ".//c:dateAx/c:title"))
    y_axis_title = _title_text(_first(root, ".//c:valAx/c:title"))

    category_ref = _first_text(_first(root, ".//c:cat"), ".//c:f")
    if category_ref is None:
        category_ref = _first_text(_first(root, ".//c:xVal"), ".//c:f")

    series: List[SeriesReference] = []
    for ser in root.xpath(".//c:ser", namespaces=NS):
        parsed = _parse_series(ser)
        if parsed is not None:
            series.append(parsed)

    if not title and series and series[0].name:
        title = series[0].name

    logger.debug(
        "Parsed chart: %s, horizontal=%s, stacked=%s, %d series",
        chart_type.value, horizontal, stacked, len(series),
    )
    return ChartDefinition(
        chart_type=chart_type,
        horizontal=horizontal,
        stacked=stacked,
        title=title,
        x_axis_title=x_axis_title,
        y_axis_title=y_axis_title,
        category_ref=category_ref,
        series=series,
    )


def definition_data_range(definition: ChartDefinition) -> Optional[str]:
    refs: List[str] = []
    candidates = [definition.category_ref] + [s.value_ref for s in definition.series]
    for ref in candidates:
        if ref and ref not in refs:
            refs.append(ref)
    return ", ".join(refs[:MAX_DATA_RANGE_REFS]) or None

