from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class ChartKind(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    DOUGHNUT = "doughnut"
    SCATTER = "scatter"
    AREA = "area"
    RADAR = "radar"


class CellReference(BaseModel):
    sheet: Optional[str] = None
    range: str


class CellRange(BaseModel):
    # zero-based, inclusive on both ends
    start_col: int
    start_row: int
    end_col: int
    end_row: int
    is_single_cell: bool


class SeriesReference(BaseModel):
    name: Optional[str] = None
    name_ref: Optional[str] = None  # cell holding the name when the part carries no cached text
    value_ref: str
    color: Optional[str] = None


class ChartDefinition(BaseModel):
    chart_type: ChartKind = ChartKind.BAR
    horizontal: bool = False
    stacked: bool = False
    title: Optional[str] = None
    x_axis_title: Optional[str] = None
    y_axis_title: Optional[str] = None
    category_ref: Optional[str] = None
    series: List[SeriesReference] = []


class ChartDataset(BaseModel):
    label: str
    data: List[float]
    color: Optional[str] = None


class ChartData(BaseModel):
    type: ChartKind
    horizontal: bool = False
    stacked: bool = False
    title: Optional[str] = None
    x_axis_title: Optional[str] = None
    y_axis_title: Optional[str] = None
    labels: List[str]
    datasets: List[ChartDataset]


class RenderedChart(BaseModel):
    chart_file: str
    chart_data: ChartData
    image: bytes
    stored_path: Optional[str] = None
