import logging
import os
import re
import uuid
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ChartSink(Protocol):
    def save(self, name: str, image: bytes) -> Optional[str]:
        """Persist a rendered chart; return where it went, if anywhere."""
        ...


def _safe_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", name).strip("_") or "chart"


class DirectoryChartSink:
    """Writes rendered charts as PNG files into a local directory."""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def save(self, name: str, image: bytes) -> Optional[str]:
        os.makedirs(self.output_dir, exist_ok=True)
        file_name = f"{_safe_name(name)}_{uuid.uuid4().hex[:8]}.png"
        file_path = os.path.join(self.output_dir, file_name)

        with open(file_path, "wb") as f:
            f.write(image)

        logger.info("Chart saved to: %s", file_path)
        return file_path


class MemoryChartSink:
    """Keeps rendered charts in a dict, keyed by name. Handy for callers that ship the bytes elsewhere."""

    def __init__(self):
        self.images = {}

    def save(self, name: str, image: bytes) -> Optional[str]:
        self.images[name] = image
        return None
