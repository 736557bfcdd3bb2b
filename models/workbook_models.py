from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from models.chart_models import RenderedChart


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    TEXT = "text"
    DATE = "date"
    BOOLEAN = "boolean"


class ColumnInfo(BaseModel):
    header: str
    type: ColumnType
    unique_values: Optional[int] = None


class ColumnStats(BaseModel):
    min: float
    max: float
    avg: float
    unique_count: int


class SheetSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    row_count: int
    columns: Dict[str, ColumnInfo]      # column letter -> info, in column order
    stats: Optional[Dict[str, ColumnStats]] = None  # column name -> stats (numeric only)
    sample: List[Dict[str, Any]] = []


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class ChartInfo(BaseModel):
    sheet_name: str
    chart_type: Optional[str] = None
    title: Optional[str] = None
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    series: Optional[List[str]] = None
    data_range: Optional[str] = None
    image_file: Optional[str] = None
    analysis: Optional[str] = None


class WorkbookSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    workbook: str
    sheets: List[SheetSummary]
    codebook: Optional[Dict[str, str]] = None
    charts: List[ChartInfo] = []
    chart_analysis_usage: Optional[TokenUsage] = None


class WorkbookAnalysis(BaseModel):
    summary: WorkbookSummary
    rendered_charts: List[RenderedChart] = []
