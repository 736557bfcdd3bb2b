from typing import Optional

from fastapi import APIRouter, UploadFile, File, HTTPException
from groq import Groq

from config import (
    CHART_HEIGHT,
    CHART_OUTPUT_DIR,
    CHART_RENDER_WORKERS,
    CHART_WIDTH,
    GROQ_API_KEY,
    GROQ_MODEL,
    GROQ_VISION_MODEL,
    MAX_UPLOAD_BYTES,
    SAVE_RENDERED_CHARTS,
)
from models.common_models import AnalyzeResponse, SummaryResponse
from models.workbook_models import TokenUsage, WorkbookAnalysis
from services.chart_storage_service import DirectoryChartSink
from services.exceptions import LLMUnavailableError, WorkbookSummaryLLMError
from services.file_upload_service import validate_upload
from services.summary_llm_service import summarize_workbook_with_llm
from services.vision_service import build_describer
from services.workbook_analysis_service import analyze_workbook

router = APIRouter(prefix="/excel", tags=["excel"])


def get_text_client() -> Optional[Groq]:
    if not GROQ_API_KEY:
        return None
    return Groq(api_key=GROQ_API_KEY)


def _analyze_upload(file: UploadFile) -> WorkbookAnalysis:
    buffer = file.file.read()
    try:
        validate_upload(file.filename, len(buffer), MAX_UPLOAD_BYTES)
        return analyze_workbook(
            buffer,
            file.filename,
            describer=build_describer(GROQ_API_KEY, GROQ_VISION_MODEL),
            sink=DirectoryChartSink(CHART_OUTPUT_DIR) if SAVE_RENDERED_CHARTS else None,
            render_workers=CHART_RENDER_WORKERS,
            chart_width=CHART_WIDTH,
            chart_height=CHART_HEIGHT,
        )
    except ValueError as e:
        # WorkbookAnalysisError included
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze_excel(file: UploadFile = File(...)):
    # plain def so it runs in the threadpool
    analysis = _analyze_upload(file)
    summary = analysis.summary
    return AnalyzeResponse(
        workbook=summary,
        usage=summary.chart_analysis_usage or TokenUsage(),
    )


@router.post("/summary", response_model=SummaryResponse)
def summarize_excel(file: UploadFile = File(...)):
    analysis = _analyze_upload(file)
    summary = analysis.summary

    try:
        narrative = summarize_workbook_with_llm(summary, client=get_text_client(), model=GROQ_MODEL)
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except WorkbookSummaryLLMError as e:
        raise HTTPException(status_code=502, detail=str(e))

    usage = narrative.usage
    if summary.chart_analysis_usage is not None:
        usage = usage + summary.chart_analysis_usage
    return SummaryResponse(workbook=summary, summary=narrative.text, usage=usage)
