import os
from dotenv import load_dotenv

load_dotenv()

GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
GROQ_VISION_MODEL = os.getenv("GROQ_VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct")

# Rendered chart PNGs are only written to disk when asked for
CHART_OUTPUT_DIR = os.getenv("CHART_OUTPUT_DIR", "./rendered_charts")
SAVE_RENDERED_CHARTS = os.getenv("SAVE_RENDERED_CHARTS", "false").lower() in ("1", "true", "yes")

CHART_WIDTH = int(os.getenv("CHART_WIDTH", "800"))
CHART_HEIGHT = int(os.getenv("CHART_HEIGHT", "600"))
CHART_RENDER_WORKERS = int(os.getenv("CHART_RENDER_WORKERS", "1"))

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
