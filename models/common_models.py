from pydantic import BaseModel

from models.workbook_models import TokenUsage, WorkbookSummary


class AnalyzeResponse(BaseModel):
    workbook: WorkbookSummary
    usage: TokenUsage


class SummaryResponse(BaseModel):
    workbook: WorkbookSummary
    summary: str
    usage: TokenUsage
