import base64
import io
import logging
from typing import NamedTuple

from PIL import Image

logger = logging.getLogger(__name__)

# longest side sent to the vision model
MAX_DIMENSION = 1500
JPEG_QUALITY = 80


class PreparedImage(NamedTuple):
    data_url: str
    width: int
    height: int


def prepare_image_for_vision(image_bytes: bytes) -> PreparedImage:
    """
    Downscale an image so its longest side is at most MAX_DIMENSION
    (aspect ratio kept, never upscaled) and encode it as a JPEG data URL.
    """
    with Image.open(io.BytesIO(image_bytes)) as img:
        logger.debug("Original size: %dx%d", img.width, img.height)
        img = img.convert("RGB")
        img.thumbnail((MAX_DIMENSION, MAX_DIMENSION))

        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", quality=JPEG_QUALITY)
        width, height = img.size

    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    logger.debug("Final: %dx%d, %dKB", width, height, len(buffer.getvalue()) // 1024)
    return PreparedImage(data_url=f"data:image/jpeg;base64,{encoded}", width=width, height=height)
