import json
import logging
from typing import NamedTuple, Optional

from groq import Groq

from models.workbook_models import TokenUsage, WorkbookSummary
from services.exceptions import LLMUnavailableError, WorkbookSummaryLLMError
from services.vision_service import usage_from_response

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_MODEL = "llama-3.1-8b-instant"


class WorkbookNarrative(NamedTuple):
    text: str
    usage: TokenUsage


def build_summary_prompt(summary: WorkbookSummary) -> str:
    payload = summary.model_dump(mode="json", exclude_none=True)

    return f"""
You are a data analyst.

Below is the structure of an Excel workbook in JSON: its sheets with column types,
per-column statistics, a few sample rows, an optional codebook describing the
columns, and the charts found in the file.

Write a short plain-text summary for a business reader:
- what the workbook seems to be about
- the main sheets and what each one holds
- notable statistics (ranges, averages) worth pointing out
- what the charts show, if any

Do not invent columns or values that are not in the JSON.

Workbook:
{json.dumps(payload, indent=2, ensure_ascii=False)}
"""


def summarize_workbook_with_llm(
    summary: WorkbookSummary,
    client: Optional[Groq] = None,
    model: str = DEFAULT_SUMMARY_MODEL,
) -> WorkbookNarrative:
    """
    Ask the Groq text model for a narrative summary of an analyzed workbook.

    Raises LLMUnavailableError when no client is configured and
    WorkbookSummaryLLMError when the API call fails.
    """
    if client is None:
        raise LLMUnavailableError("No LLM client configured (GROQ_API_KEY missing)")

    prompt = build_summary_prompt(summary)
    logger.info("Requesting workbook summary for %r from %s", summary.workbook, model)

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=1500,
        )
    except Exception as e:
        logger.warning("Groq API error while summarizing %r: %s", summary.workbook, e)
        raise WorkbookSummaryLLMError(f"LLM summary failed: {e}") from e

    text = (response.choices[0].message.content or "").strip()
    usage = usage_from_response(response)
    logger.info("Workbook summary received. Tokens: %d", usage.total_tokens)
    return WorkbookNarrative(text=text, usage=usage)
