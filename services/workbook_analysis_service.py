"""
Workbook analysis: structure, codebook and embedded charts of one upload.

Only workbook-level problems (unreadable file, no usable sheet) raise.
Sheets that are too small are skipped and a chart that cannot be parsed,
resolved or rendered keeps whatever fields were already filled.
"""
import logging
import posixpath
import re
from typing import Any, Dict, List, Optional, Tuple

from models.chart_models import ChartData, ChartDefinition, RenderedChart
from models.workbook_models import ChartInfo, TokenUsage, WorkbookAnalysis, WorkbookSummary
from services.cell_reference_service import parse_cell_reference
from services.chart_builder_service import DEFAULT_SERIES_LABEL, build_chart_data
from services.chart_render_service import CHART_HEIGHT, CHART_WIDTH, render_charts
from services.chart_storage_service import ChartSink
from services.chart_xml_service import definition_data_range, parse_chart_xml
from services.container_service import ChartPart, ContainerContents, EmbeddedImage, extract_container
from services.excel_reader_service import Grid, is_csv_file, load_workbook_grids
from services.exceptions import NoValidSheetsError
from services.sheet_summary_service import find_codebook, summarize_sheet
from services.vision_service import ChartDescriber, describe_or_placeholder, parse_chart_description

logger = logging.getLogger(__name__)

DEFAULT_WORKBOOK_NAME = "Workbook"
EMBEDDED_IMAGE_SHEET_NAME = "Chart"

_WORKBOOK_EXTENSIONS = re.compile(r"\.(xlsx|xlsm|xls|csv)$", re.IGNORECASE)


def workbook_name_from_filename(filename: str) -> str:
    return _WORKBOOK_EXTENSIONS.sub("", filename or "") or DEFAULT_WORKBOOK_NAME


def _chart_name(path: str) -> str:
    return posixpath.splitext(posixpath.basename(path))[0]


def _default_chart_grid(grids: Dict[str, Grid]) -> Optional[Grid]:
    # first sheet holding more than a header and a single row
    for grid in grids.values():
        if len(grid) > 2:
            return grid
    return None


def _grid_for_chart(definition: ChartDefinition, grids: Dict[str, Grid]) -> Optional[Grid]:
    """The sheet named by the chart's first reference, falling back to the first data sheet."""
    refs = [s.value_ref for s in definition.series] + [definition.category_ref]
    for ref in refs:
        if not ref:
            continue
        sheet = parse_cell_reference(ref).sheet
        if sheet and sheet in grids:
            return grids[sheet]
    return _default_chart_grid(grids)


def _chart_info_from_definition(path: str, definition: ChartDefinition) -> ChartInfo:
    names = [s.name for s in definition.series if s.name]
    return ChartInfo(
        sheet_name=_chart_name(path),
        chart_type=definition.chart_type.value,
        title=definition.title,
        x_axis=definition.x_axis_title,
        y_axis=definition.y_axis_title,
        series=names or None,
        data_range=definition_data_range(definition),
        image_file=path,
    )


def _prepare_chart(part: ChartPart, grids: Dict[str, Grid]) -> Tuple[ChartInfo, Optional[ChartData]]:
    info = ChartInfo(sheet_name=_chart_name(part.path), image_file=part.path)
    try:
        definition = parse_chart_xml(part.xml)
        info = _chart_info_from_definition(part.path, definition)
        logger.info("Found chart: %s - %s", info.chart_type, info.title or "untitled")

        grid = _grid_for_chart(definition, grids)
        if grid is None:
            logger.info("No data sheet to resolve chart %s against", part.path)
            return info, None
        chart_data = build_chart_data(definition, grid)
        if chart_data is not None:
            # series named through a cell reference only get their names from the grid
            info.title = info.title or chart_data.title
            if not info.series:
                info.series = [ds.label for ds in chart_data.datasets if ds.label != DEFAULT_SERIES_LABEL] or None
        return info, chart_data
    except Exception as e:
        logger.warning("Failed to process chart %s: %s", part.path, e)
        return info, None


def _analysis_text(raw: str) -> str:
    parsed = parse_chart_description(raw)
    if parsed and parsed.get("insights"):
        return str(parsed["insights"])
    return raw


def _analyze_chart_parts(
    parts: List[ChartPart],
    grids: Dict[str, Grid],
    describer: Optional[ChartDescriber],
    sink: Optional[ChartSink],
    workbook_name: str,
    render_workers: int,
    width: int,
    height: int,
) -> Tuple[List[ChartInfo], List[RenderedChart], TokenUsage]:
    prepared = [(part, *_prepare_chart(part, grids)) for part in parts]
    infos = [info for _, info, _ in prepared]

    renderable = [(part, info, data) for part, info, data in prepared if data is not None]
    images = render_charts([data for _, _, data in renderable], width=width, height=height, workers=render_workers)

    rendered: List[RenderedChart] = []
    usage = TokenUsage()
    for (part, info, chart_data), image in zip(renderable, images):
        if image is None:
            continue
        logger.info("Rendered chart image %s (%.1fKB)", part.path, len(image) / 1024)

        stored_path = None
        if sink is not None:
            try:
                stored_path = sink.save(f"{workbook_name}_{chart_data.type.value}", image)
            except Exception as e:
                logger.warning("Failed to save chart %s: %s", part.path, e)

        rendered.append(RenderedChart(chart_file=part.path, chart_data=chart_data, image=image, stored_path=stored_path))

        if describer is not None:
            text, chart_usage = describe_or_placeholder(describer, image, part.path)
            info.analysis = _analysis_text(text)
            usage = usage + chart_usage

    return infos, rendered, usage


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


def _analyze_embedded_images(
    images: List[EmbeddedImage],
    describer: Optional[ChartDescriber],
) -> Tuple[List[ChartInfo], TokenUsage]:
    charts: List[ChartInfo] = []
    usage = TokenUsage()

    for image in images:
        info = ChartInfo(sheet_name=EMBEDDED_IMAGE_SHEET_NAME, image_file=image.path)
        if describer is not None and not image.is_vector:
            logger.info("Analyzing embedded image: %s", image.path)
            text, image_usage = describe_or_placeholder(describer, image.data, image.path)
            usage = usage + image_usage
            info.analysis = text

            parsed = parse_chart_description(text)
            if parsed:
                info.chart_type = _str_or_none(parsed.get("chartType"))
                info.title = _str_or_none(parsed.get("title"))
                info.x_axis = _str_or_none(parsed.get("xAxis"))
                info.y_axis = _str_or_none(parsed.get("yAxis"))
                series = parsed.get("series")
                if isinstance(series, list) and series:
                    info.series = [str(s) for s in series]
                info.analysis = _str_or_none(parsed.get("insights")) or text
        charts.append(info)

    return charts, usage


def analyze_workbook(
    buffer: bytes,
    filename: str,
    describer: Optional[ChartDescriber] = None,
    sink: Optional[ChartSink] = None,
    render_workers: int = 1,
    chart_width: int = CHART_WIDTH,
    chart_height: int = CHART_HEIGHT,
) -> WorkbookAnalysis:
    """
    Analyze an xlsx/xlsm workbook or a CSV file.

    Returns the workbook summary plus the PNG of every chart that could be
    reconstructed. Raises UnreadableContainerError or NoValidSheetsError.
    """
    logger.info("Analyzing: %s (%.1fKB)", filename, len(buffer) / 1024)
    workbook_name = workbook_name_from_filename(filename)

    if is_csv_file(filename):
        contents = ContainerContents(chart_parts=[], images=[])
    else:
        contents = extract_container(buffer)
    grids = load_workbook_grids(buffer, filename)

    codebook = find_codebook(grids)

    sheets = []
    for sheet_name, grid in grids.items():
        summary = summarize_sheet(sheet_name, grid)
        if summary is not None:
            sheets.append(summary)
    if not sheets:
        raise NoValidSheetsError()

    charts, rendered, usage = _analyze_chart_parts(
        contents.chart_parts, grids, describer, sink, workbook_name,
        render_workers, chart_width, chart_height,
    )
    if contents.images:
        logger.info("Found %d embedded image(s)", len(contents.images))
    image_charts, image_usage = _analyze_embedded_images(contents.images, describer)
    charts.extend(image_charts)
    usage = usage + image_usage

    logger.info("Analysis complete for %r: %d sheet(s), %d chart(s)", filename, len(sheets), len(charts))
    return WorkbookAnalysis(
        summary=WorkbookSummary(
            workbook=workbook_name,
            sheets=sheets,
            codebook=codebook,
            charts=charts,
            chart_analysis_usage=usage if usage.total_tokens > 0 else None,
        ),
        rendered_charts=rendered,
    )
