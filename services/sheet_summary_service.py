import logging
from typing import Any, Dict, List, Optional

from models.workbook_models import ColumnInfo, ColumnStats, ColumnType, SheetSummary
from services.cell_reference_service import index_to_letter
from services.cell_value_service import is_blank, parse_value, to_label
from services.codebook_service import extract_codebook, is_description_sheet
from services.stats_service import calculate_column_stats
from services.type_detection_service import detect_column_type

logger = logging.getLogger(__name__)

TYPE_SAMPLE_SIZE = 100
SAMPLE_ROW_COUNT = 3


def _cell(row: List[Any], idx: int) -> Any:
    return row[idx] if idx < len(row) else None


def build_headers(header_row: List[Any], width: int) -> List[str]:
    headers: List[str] = []
    for idx in range(width):
        cell = _cell(header_row, idx)
        if is_blank(cell):
            headers.append(f"Column {idx + 1}")
        else:
            headers.append(to_label(cell).strip())
    return headers


def summarize_sheet(sheet_name: str, grid: List[List[Any]]) -> Optional[SheetSummary]:
    """
    Build the structural summary of one sheet.
    Returns None for sheets that have fewer than 2 rows or no data columns.
    """
    if len(grid) < 2:
        logger.info("Skipping sheet %r - too few rows", sheet_name)
        return None

    width = max(len(row) for row in grid)
    headers = build_headers(grid[0], width)
    data_rows = grid[1:]

    non_empty_cols = [
        idx for idx in range(width)
        if any(not is_blank(_cell(row, idx)) for row in data_rows)
    ]
    if not non_empty_cols:
        logger.info("Skipping sheet %r - no data columns", sheet_name)
        return None

    row_count = sum(1 for row in data_rows if any(not is_blank(cell) for cell in row))

    columns: Dict[str, ColumnInfo] = {}
    stats: Dict[str, ColumnStats] = {}

    for idx in non_empty_cols:
        col_name = headers[idx]
        all_values = [_cell(row, idx) for row in data_rows]
        sample_values = all_values[:TYPE_SAMPLE_SIZE]

        col_type, unique_count = detect_column_type(sample_values, all_values)
        columns[index_to_letter(idx)] = ColumnInfo(header=col_name, type=col_type, unique_values=unique_count)

        # categorical columns are codes, their min/max/avg mean nothing
        if col_type == ColumnType.NUMERIC:
            col_stats = calculate_column_stats(all_values)
            if col_stats:
                stats[col_name] = col_stats

    sample = [
        {headers[idx]: parse_value(_cell(row, idx)) for idx in non_empty_cols}
        for row in data_rows[:SAMPLE_ROW_COUNT]
    ]

    logger.info("Sheet %r: %d rows, %d columns", sheet_name, row_count, len(columns))
    return SheetSummary(
        name=sheet_name,
        row_count=row_count,
        columns=columns,
        stats=stats or None,
        sample=sample,
    )


def find_codebook(grids: Dict[str, List[List[Any]]]) -> Optional[Dict[str, str]]:
    """Look for a description/codebook sheet and extract its column descriptions."""
    codebook: Optional[Dict[str, str]] = None
    for sheet_name, grid in grids.items():
        if not is_description_sheet(sheet_name):
            continue
        found = extract_codebook(grid)
        if found:
            logger.info("Found codebook in sheet %r (%d entries)", sheet_name, len(found))
            codebook = found
    return codebook
