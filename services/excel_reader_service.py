import csv
import io
import logging
import math
import os
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from services.exceptions import UnreadableContainerError

logger = logging.getLogger(__name__)

CSV_SHEET_NAME = "Sheet1"

Grid = List[List[Any]]


def _normalize_cell(value: Any) -> Any:
    """Turn pandas/numpy cell values into plain Python values, blanks into None."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and value == "":
        return None
    return value


def dataframe_to_grid(df: pd.DataFrame) -> Grid:
    """Row-major grid of a header-less DataFrame, row 0 being spreadsheet row 1."""
    return [[_normalize_cell(v) for v in row] for row in df.astype(object).itertuples(index=False, name=None)]


def is_csv_file(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() == ".csv"


def _csv_width(text: str) -> int:
    # pandas takes the column count from the first line, ragged rows need the widest one
    return max((len(row) for row in csv.reader(io.StringIO(text))), default=0)


def load_workbook_grids(buffer: bytes, filename: str) -> Dict[str, Grid]:
    """
    Read every sheet of an xlsx/xlsm workbook (or the single table of a CSV)
    into raw, untyped grids keyed by sheet name, in workbook order.
    """
    try:
        if is_csv_file(filename):
            text = buffer.decode("utf-8-sig", errors="replace")
            width = _csv_width(text)
            if width == 0:
                logger.info("File %s has no data", filename)
                return {CSV_SHEET_NAME: []}
            df = pd.read_csv(
                io.StringIO(text),
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                na_values=[""],
                skip_blank_lines=False,
            )
            sheets = {CSV_SHEET_NAME: df}
        else:
            sheets = pd.read_excel(io.BytesIO(buffer), sheet_name=None, header=None, engine="openpyxl")
    except pd.errors.EmptyDataError:
        logger.info("File %s has no data", filename)
        return {CSV_SHEET_NAME: []} if is_csv_file(filename) else {}
    except Exception as e:
        raise UnreadableContainerError(f"Failed to read workbook '{filename}': {e}") from e

    grids: Dict[str, Grid] = {}
    for sheet_name, df in sheets.items():
        grids[str(sheet_name)] = dataframe_to_grid(df)
        logger.debug("Loaded sheet %r: %d rows x %d cols", sheet_name, df.shape[0], df.shape[1])
    return grids
