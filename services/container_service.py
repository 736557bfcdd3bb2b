import io
import logging
import posixpath
import zipfile
import zlib
from typing import List, NamedTuple

from services.exceptions import UnreadableContainerError

logger = logging.getLogger(__name__)

RASTER_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
}
# vector images are passed through as-is
VECTOR_MIME_TYPES = {
    "emf": "image/emf",
    "wmf": "image/wmf",
}

IMAGE_DIRS = ("/media/", "/charts/", "/drawings/")


class ChartPart(NamedTuple):
    path: str
    xml: str


class EmbeddedImage(NamedTuple):
    path: str
    data: bytes
    mime_type: str
    is_vector: bool = False


class ContainerContents(NamedTuple):
    chart_parts: List[ChartPart]
    images: List[EmbeddedImage]


def extract_container(buffer: bytes) -> ContainerContents:
    """
    List the chart XML parts and embedded images of an OOXML zip container,
    in archive order.
    """
    chart_parts: List[ChartPart] = []
    images: List[EmbeddedImage] = []

    try:
        with zipfile.ZipFile(io.BytesIO(buffer)) as archive:
            for entry in archive.infolist():
                if entry.is_dir():
                    continue
                name = entry.filename.lower()

                if "/charts/chart" in name and name.endswith(".xml"):
                    xml = archive.read(entry).decode("utf-8", errors="replace")
                    chart_parts.append(ChartPart(path=entry.filename, xml=xml))
                    logger.debug("Found chart XML: %s", entry.filename)
                    continue

                if any(d in name for d in IMAGE_DIRS):
                    ext = posixpath.splitext(name)[1].lstrip(".")
                    if ext in RASTER_MIME_TYPES or ext in VECTOR_MIME_TYPES:
                        data = archive.read(entry)
                        images.append(
                            EmbeddedImage(
                                path=entry.filename,
                                data=data,
                                mime_type=RASTER_MIME_TYPES.get(ext) or VECTOR_MIME_TYPES[ext],
                                is_vector=ext in VECTOR_MIME_TYPES,
                            )
                        )
                        logger.debug("Found image: %s (%.1fKB)", entry.filename, len(data) / 1024)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, EOFError) as e:
        raise UnreadableContainerError(f"Unreadable workbook container: {e}") from e

    if not chart_parts and not images:
        logger.debug("No charts or images found in container")
    return ContainerContents(chart_parts=chart_parts, images=images)
