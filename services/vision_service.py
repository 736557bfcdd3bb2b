import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from groq import Groq

from models.workbook_models import TokenUsage
from services.image_service import prepare_image_for_vision

logger = logging.getLogger(__name__)

# (image bytes) -> (description text, token usage); raises on failure
ChartDescriber = Callable[[bytes], Tuple[str, TokenUsage]]

ANALYSIS_FAILED_PLACEHOLDER = "Failed to analyze chart image"

CHART_ANALYSIS_SYSTEM_PROMPT = """You are looking at a chart taken from an Excel spreadsheet.
Describe:
1. The chart type (bar, line, pie, scatter, ...)
2. What data it shows (axes, labels, legend)
3. Key trends or insights
4. Notable values or outliers

Be concise. Answer with JSON only:
{
  "chartType": "bar|line|pie|scatter|area|other",
  "title": "chart title if visible",
  "xAxis": "x-axis label or meaning",
  "yAxis": "y-axis label or meaning",
  "series": ["series names if several"],
  "insights": "key observations about the data shown"
}"""

CHART_ANALYSIS_USER_PROMPT = "Analyze this chart from an Excel file. Describe what it shows and any insights."


def parse_chart_description(raw: str) -> Optional[Dict[str, Any]]:
    """
    Pull the JSON object out of a vision reply.
    Returns None if the reply holds no parsable object.
    """
    if not raw:
        return None

    try:
        parsed = json.loads(raw)
        return parsed if isinstance(parsed, dict) else None
    except ValueError:
        pass

    # Try to extract only the JSON part: find { ... }
    start = raw.find("{")
    end = raw.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(raw[start : end + 1])
            return parsed if isinstance(parsed, dict) else None
        except ValueError:
            pass

    logger.debug("Could not parse chart description as JSON, using raw text")
    return None


def usage_from_response(response: Any) -> TokenUsage:
    usage = getattr(response, "usage", None)
    if usage is None:
        return TokenUsage()
    return TokenUsage(
        input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        total_tokens=getattr(usage, "total_tokens", 0) or 0,
    )


class GroqChartDescriber:
    """Describes chart images with a Groq-hosted vision model."""

    def __init__(self, client: Groq, model: str, max_tokens: int = 1024):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def __call__(self, image_bytes: bytes) -> Tuple[str, TokenUsage]:
        prepared = prepare_image_for_vision(image_bytes)
        logger.info("Sending %dx%d chart image to %s", prepared.width, prepared.height, self.model)

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": CHART_ANALYSIS_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": CHART_ANALYSIS_USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": prepared.data_url}},
                    ],
                },
            ],
            temperature=0.2,
            max_tokens=self.max_tokens,
        )

        text = response.choices[0].message.content or ""
        usage = usage_from_response(response)
        logger.info("Chart description received. Tokens: %d", usage.total_tokens)
        return text, usage


def build_describer(api_key: Optional[str], model: str) -> Optional[ChartDescriber]:
    """Groq describer when an API key is configured, otherwise None (charts keep their structural fields only)."""
    if not api_key:
        return None
    return GroqChartDescriber(Groq(api_key=api_key), model)


def describe_or_placeholder(describer: ChartDescriber, image_bytes: bytes, name: str) -> Tuple[str, TokenUsage]:
    """Run the describer; any failure turns into the placeholder text and zero usage."""
    try:
        return describer(image_bytes)
    except Exception as e:
        logger.warning("Failed to analyze chart image %s: %s", name, e)
        return ANALYSIS_FAILED_PLACEHOLDER, TokenUsage()
