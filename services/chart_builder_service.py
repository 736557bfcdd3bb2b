import logging
from typing import Any, List, Optional

from models.chart_models import ChartData, ChartDataset, ChartDefinition
from services.cell_reference_service import extract_data_from_sheet
from services.cell_value_service import to_label, to_number

logger = logging.getLogger(__name__)

DEFAULT_SERIES_LABEL = "Series"


def build_chart_data(definition: ChartDefinition, grid: List[List[Any]]) -> Optional[ChartData]:
    """
    Join a parsed chart definition with the sheet grid.

    Every dataset and the label list end up with the same length: the length
    of the shortest resolved series. Returns None when no series resolves to
    at least one number.
    """
    labels: List[str] = []
    if definition.category_ref:
        labels = [to_label(v) for v in extract_data_from_sheet(grid, definition.category_ref)]

    datasets: List[ChartDataset] = []
    resolved_first_name: Optional[str] = None
    for i, series in enumerate(definition.series):
        name = series.name
        if not name and series.name_ref:
            cells = extract_data_from_sheet(grid, series.name_ref)
            name = to_label(cells[0]) if cells else None
            if i == 0:
                resolved_first_name = name

        raw = extract_data_from_sheet(grid, series.value_ref)
        data = [n for n in (to_number(v) for v in raw) if n is not None]
        if not data:
            logger.debug("Series %r (%s) resolved to no numbers, dropping", name, series.value_ref)
            continue
        datasets.append(ChartDataset(label=name or DEFAULT_SERIES_LABEL, data=data, color=series.color))

    if not datasets:
        logger.info("No valid datasets found for chart %r", definition.title)
        return None

    length = min(len(ds.data) for ds in datasets)
    for ds in datasets:
        ds.data = ds.data[:length]

    # too few categories: the missing positions get their ordinal, like a chart without categories
    labels = labels[:length] + [str(i + 1) for i in range(len(labels), length)]

    logger.debug(
        "Built %s chart: %d series, %d points, horizontal=%s",
        definition.chart_type.value, len(datasets), length, definition.horizontal,
    )
    return ChartData(
        type=definition.chart_type,
        horizontal=definition.horizontal,
        stacked=definition.stacked,
        title=definition.title or resolved_first_name,
        x_axis_title=definition.x_axis_title,
        y_axis_title=definition.y_axis_title,
        labels=labels,
        datasets=datasets,
    )
