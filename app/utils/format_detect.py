"""
Format normalization for OCR requests.

Decides whether a file is sent to the extraction service as a document or
as an image, converting image formats the service does not accept to PNG.
"""

import mimetypes
import tempfile
from pathlib import Path
from typing import Optional

from loguru import logger
from PIL import Image, UnidentifiedImageError

from app.models.schemas import ContentKind, NormalizedInput
from domains.file_ingest.errors import UnsupportedFormatError

DOCUMENT_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

# Images the service accepts without conversion
DIRECT_IMAGE_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".avif": "image/avif",
}


class FormatNormalizer:
    """Maps deposited files onto a request-ready representation."""

    def __init__(self, temp_dir: Optional[Path] = None):
        """
        Initialize normalizer.

        Args:
            temp_dir: Where converted copies are written (default: system temp)
        """
        self.temp_dir = temp_dir

    def normalize(self, path: Path) -> NormalizedInput:
        """
        Classify ``path`` and convert it when needed.

        Args:
            path: File to normalize

        Returns:
            Normalized input; ``is_temporary`` is set for converted copies

        Raises:
            UnsupportedFormatError: If no viable representation exists
        """
        suffix = path.suffix.lower()

        if suffix in DOCUMENT_TYPES:
            return NormalizedInput(kind=ContentKind.DOCUMENT, mime_type=DOCUMENT_TYPES[suffix], path=path)

        if suffix in DIRECT_IMAGE_TYPES:
            return NormalizedInput(kind=ContentKind.IMAGE, mime_type=DIRECT_IMAGE_TYPES[suffix], path=path)

        mime, _ = mimetypes.guess_type(path.name)
        if mime and not mime.startswith("image/"):
            raise UnsupportedFormatError(f"Unsupported format {mime} for {path.name}")

        # Unknown or non-native image type: let Pillow decide
        return NormalizedInput(
            kind=ContentKind.IMAGE,
            mime_type="image/png",
            path=self.convert_image_to_png(path),
            is_temporary=True,
        )

    def convert_image_to_png(self, src: Path) -> Path:
        """
        Convert an image to a temporary PNG file.

        Raises:
            UnsupportedFormatError: If Pillow cannot decode the file
        """
        handle = tempfile.NamedTemporaryFile(suffix=".png", dir=self.temp_dir, delete=False)
        dst = Path(handle.name)
        try:
            with handle, Image.open(src) as img:
                if img.mode not in ("RGB", "RGBA", "L", "LA"):
                    img = img.convert("RGBA")
                img.save(handle, "PNG")
        except (UnidentifiedImageError, OSError, ValueError) as e:
            dst.unlink(missing_ok=True)
            raise UnsupportedFormatError(f"Cannot convert {src.name} to PNG: {e}") from e

        logger.debug(f"Converted {src.name} to {dst}")
        return dst
