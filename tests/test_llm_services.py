import json
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from models.workbook_models import TokenUsage, WorkbookSummary
from services.exceptions import LLMUnavailableError, WorkbookSummaryLLMError
from services.summary_llm_service import build_summary_prompt, summarize_workbook_with_llm
from services.vision_service import (
    ANALYSIS_FAILED_PLACEHOLDER,
    GroqChartDescriber,
    build_describer,
    describe_or_placeholder,
    parse_chart_description,
)
from tests.workbook_fixtures import png_bytes


def _response(content: str, prompt_tokens=10, completion_tokens=5):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


class TestParseChartDescription(unittest.TestCase):
    def test_plain_json(self):
        self.assertEqual(parse_chart_description('{"chartType": "bar"}'), {"chartType": "bar"})

    def test_json_wrapped_in_prose(self):
        raw = 'Here you go:\n```json\n{"title": "Sales", "insights": "Q3 peaks"}\n```'
        self.assertEqual(parse_chart_description(raw), {"title": "Sales", "insights": "Q3 peaks"})

    def test_no_json(self):
        self.assertIsNone(parse_chart_description("A bar chart of sales."))
        self.assertIsNone(parse_chart_description(""))
        self.assertIsNone(parse_chart_description("[1, 2]"))


class TestGroqChartDescriber(unittest.TestCase):
    def test_sends_image_and_reports_usage(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _response('{"chartType": "line"}', 100, 20)

        describer = GroqChartDescriber(client, "vision-model")
        text, usage = describer(png_bytes())

        self.assertEqual(text, '{"chartType": "line"}')
        self.assertEqual(usage, TokenUsage(input_tokens=100, output_tokens=20, total_tokens=120))

        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "vision-model")
        user_content = kwargs["messages"][1]["content"]
        self.assertEqual(user_content[0]["type"], "text")
        self.assertTrue(user_content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,"))

    def test_build_describer_needs_key(self):
        self.assertIsNone(build_describer(None, "vision-model"))
        self.assertIsNone(build_describer("", "vision-model"))

    @patch("services.vision_service.Groq")
    def test_build_describer_with_key(self, mock_groq):
        describer = build_describer("secret", "vision-model")
        mock_groq.assert_called_once_with(api_key="secret")
        self.assertIsInstance(describer, GroqChartDescriber)

    def test_failure_becomes_placeholder(self):
        def failing(_image):
            raise RuntimeError("rate limited")

        text, usage = describe_or_placeholder(failing, b"img", "chart1")
        self.assertEqual(text, ANALYSIS_FAILED_PLACEHOLDER)
        self.assertEqual(usage.total_tokens, 0)


class TestWorkbookSummaryLLM(unittest.TestCase):
    def setUp(self):
        self.summary = WorkbookSummary(workbook="sales", sheets=[], codebook={"Age": "Age in years"})

    def test_prompt_contains_workbook_json(self):
        prompt = build_summary_prompt(self.summary)
        start = prompt.index("Workbook:\n") + len("Workbook:\n")
        payload = json.loads(prompt[start:])
        self.assertEqual(payload["workbook"], "sales")
        self.assertEqual(payload["codebook"], {"Age": "Age in years"})

    def test_no_client(self):
        with self.assertRaises(LLMUnavailableError):
            summarize_workbook_with_llm(self.summary, client=None)

    def test_api_error(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("503 from upstream")
        with self.assertRaises(WorkbookSummaryLLMError):
            summarize_workbook_with_llm(self.summary, client=client)

    def test_summary_text_and_usage(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _response("  The workbook tracks sales.  ", 50, 25)

        narrative = summarize_workbook_with_llm(self.summary, client=client, model="text-model")

        self.assertEqual(narrative.text, "The workbook tracks sales.")
        self.assertEqual(narrative.usage.total_tokens, 75)
        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "text-model")
        self.assertEqual(kwargs["temperature"], 0.3)
        self.assertEqual(kwargs["max_tokens"], 1500)


if __name__ == "__main__":
    unittest.main()
