"""
Document text extraction using the Mistral OCR API.

Provides:
- OCR of documents (PDF/DOCX/PPTX) and images sent as base64 data URLs
- Model catalog lookup with a safe default
"""

import base64
from typing import List, Optional

import httpx
from loguru import logger

from app.models.schemas import ContentKind, ExtractionResult
from app.utils.config import get_settings
from domains.file_ingest.errors import ExtractionError

DEFAULT_MODEL = "mistral-ocr-latest"


class ExtractionClient:
    """Client for converting one file into Markdown text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize extraction client.

        Args:
            api_key: Mistral API key (default: from settings)
            base_url: API base URL (default: from settings)
            timeout: Request timeout in seconds (default: from settings)
            transport: Optional httpx transport, used by tests
        """
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.mistral_api_key
        self.base_url = (base_url or settings.mistral_api_url).rstrip("/")
        self.timeout = timeout or settings.extraction_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    @staticmethod
    def build_document(content: bytes, content_kind: ContentKind, mime_type: str) -> dict:
        """Wrap file bytes as the ``document`` field of an OCR request."""
        data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        if content_kind == ContentKind.IMAGE:
            return {"type": "image_url", "image_url": data_url}
        return {"type": "document_url", "document_url": data_url}

    async def extract(
        self,
        content: bytes,
        content_kind: ContentKind,
        mime_type: str,
        model: str = DEFAULT_MODEL,
        include_embedded_images: bool = False,
    ) -> ExtractionResult:
        """
        Run OCR on one file.

        Args:
            content: Raw file bytes
            content_kind: Whether the service receives a document or an image
            mime_type: MIME type of ``content``
            model: OCR model identifier
            include_embedded_images: Ask the service to embed images as base64

        Returns:
            Extracted Markdown and page count

        Raises:
            ExtractionError: On missing key, transport failure, non-200
                status or malformed response
        """
        if not self.api_key:
            raise ExtractionError("Mistral API key is not configured")

        payload = {
            "model": model,
            "document": self.build_document(content, content_kind, mime_type),
            "include_image_base64": include_embedded_images,
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}/ocr",
                    json=payload,
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            raise ExtractionError(f"OCR request failed: {e}") from e

        if response.status_code != 200:
            raise ExtractionError(_error_message(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise ExtractionError(f"Malformed OCR response: {e}") from e

        pages = data.get("pages") if isinstance(data, dict) else None
        if not isinstance(pages, list):
            raise ExtractionError("Malformed OCR response: missing 'pages'")

        markdown = [
            page["markdown"]
            for page in pages
            if isinstance(page, dict) and isinstance(page.get("markdown"), str)
        ]

        logger.debug(f"OCR returned {len(pages)} page(s) using {model}")
        return ExtractionResult(text="\n\n".join(markdown), page_count=len(pages))

    async def list_models(self) -> List[str]:
        """
        List OCR-capable models.

        A successful call also proves the API key is accepted. Without a key
        only the default model is returned.

        Raises:
            ExtractionError: On transport failure, non-200 status (e.g. a
                rejected key) or malformed response
        """
        if not self.api_key:
            return [DEFAULT_MODEL]

        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_url}/models", headers=self._headers())
        except httpx.HTTPError as e:
            raise ExtractionError(f"Model catalog request failed: {e}") from e

        if response.status_code != 200:
            raise ExtractionError(_error_message(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise ExtractionError(f"Malformed model catalog: {e}") from e

        if not isinstance(data, dict):
            raise ExtractionError("Malformed model catalog: expected an object")

        ids = {
            item.get("id")
            for item in data.get("data", [])
            if isinstance(item, dict) and str(item.get("id", "")).startswith("mistral-ocr")
        }
        models = sorted(ids)
        if DEFAULT_MODEL not in models:
            models.insert(0, DEFAULT_MODEL)
        return models


def _error_message(response: httpx.Response) -> str:
    """Best-effort server message from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or "HTTP error"

    if isinstance(data, dict):
        for key in ("message", "detail", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return response.text or "HTTP error"


# Global client instance
_extraction_client: Optional[ExtractionClient] = None


def get_extraction_client() -> ExtractionClient:
    """Get global extraction client instance."""
    global _extraction_client
    if _extraction_client is None:
        _extraction_client = ExtractionClient()
    return _extraction_client


def reset_extraction_client() -> None:
    """Drop the global client so the next call picks up new settings."""
    global _extraction_client
    _extraction_client = None
