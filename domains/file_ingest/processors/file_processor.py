"""
Per-file deposit pipeline.

Turns one discovered file into one history entry: normalize, extract text,
write the Markdown into the mirrored export tree, relocate the original,
leave a recovery alias and record the result.
"""

import asyncio
from pathlib import Path
from typing import Optional

from loguru import logger

from app.models.schemas import (
    ExtractionResult,
    HistoryEntry,
    NormalizedInput,
    SourceReference,
    WatchConfiguration,
)
from app.utils.config import get_settings
from app.utils.extraction import ExtractionClient
from app.utils.format_detect import FormatNormalizer
from app.utils.helpers import generate_uuid, now_utc, relative_directory
from app.utils.history_store import HistoryStore
from domains.file_ingest.errors import (
    AliasError,
    ExtractionError,
    FileIngestError,
    NormalizationError,
    RelocationError,
)
from domains.file_ingest.processors.relocation import (
    SystemTrash,
    create_recovery_alias,
    move_to_trash_root,
)

OUTPUT_EXTENSION = ".md"


class FileProcessor:
    """
    Orchestrates the pipeline for a single deposited file.

    Pipelines for different files share nothing but the history store, whose
    mutations are serialized. Normalization, extraction and history failures
    abort the file; failures after extraction (write, move, alias) are
    logged and the remaining steps still run.
    """

    def __init__(
        self,
        client: ExtractionClient,
        history: HistoryStore,
        normalizer: Optional[FormatNormalizer] = None,
        system_trash: Optional[SystemTrash] = None,
        model: Optional[str] = None,
        include_images: Optional[bool] = None,
        extraction_timeout: Optional[float] = None,
    ):
        """
        Initialize file processor.

        Args:
            client: Extraction service client
            history: Store receiving one entry per processed file
            normalizer: Format normalizer (default: FormatNormalizer())
            system_trash: Platform trash (default: from settings)
            model: OCR model (default: from settings)
            include_images: Embed images in output (default: from settings)
            extraction_timeout: Upper bound for one extraction call in seconds
        """
        settings = get_settings()
        self.client = client
        self.history = history
        self.normalizer = normalizer or FormatNormalizer()
        self.system_trash = system_trash or SystemTrash(settings.get_system_trash_dir())
        self.model = model or settings.ocr_model
        self.include_images = settings.include_images if include_images is None else include_images
        self.extraction_timeout = extraction_timeout or settings.extraction_timeout

    async def process(self, path: Path, config: WatchConfiguration) -> Optional[HistoryEntry]:
        """
        Run the full pipeline for ``path``.

        Never raises: every failure is logged and only ends this file's
        pipeline.

        Returns:
            The recorded history entry, or None if the pipeline aborted
        """
        logger.info(f"Processing deposit file: {path}")

        try:
            entry = await self._run(path, config)
        except FileIngestError as e:
            logger.error(f"Deposit processing failed for {path}: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error processing {path}: {e}")
            return None

        logger.success(f"Processed {path.name} ({entry.page_count} page(s))")
        return entry

    async def _run(self, path: Path, config: WatchConfiguration) -> HistoryEntry:
        normalized = await asyncio.to_thread(self.normalizer.normalize, path)
        try:
            result = await self._extract(normalized)
        finally:
            if normalized.is_temporary:
                normalized.path.unlink(missing_ok=True)

        relative_dir = self._relative_dir(path, config)
        export_dir = config.export_root / relative_dir

        output_file = await asyncio.to_thread(self._write_output, path, export_dir, result.text)
        if output_file is not None:
            result = result.model_copy(update={"output_file": output_file})

        relocated = await asyncio.to_thread(self._relocate, path, relative_dir, config)

        if relocated is not None and not config.use_system_trash:
            await asyncio.to_thread(self._create_alias, export_dir / path.name, relocated)

        return await asyncio.to_thread(self._record, path, result, relocated)

    # Steps -----------------------------------------------------------------------

    async def _extract(self, normalized: NormalizedInput) -> ExtractionResult:
        try:
            content = await asyncio.to_thread(normalized.path.read_bytes)
        except OSError as e:
            raise NormalizationError(f"Cannot read {normalized.path}: {e}") from e

        try:
            return await asyncio.wait_for(
                self.client.extract(
                    content,
                    normalized.kind,
                    normalized.mime_type,
                    model=self.model,
                    include_embedded_images=self.include_images,
                ),
                timeout=self.extraction_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExtractionError(
                f"OCR request timed out after {self.extraction_timeout:.0f}s"
            ) from e

    @staticmethod
    def _relative_dir(path: Path, config: WatchConfiguration) -> Path:
        try:
            return relative_directory(path, config.deposit_root)
        except ValueError:
            logger.warning(f"{path} is outside {config.deposit_root}; using export root")
            return Path(".")

    @staticmethod
    def _write_output(path: Path, export_dir: Path, text: str) -> Optional[Path]:
        """Write ``<export_dir>/<stem>.md``; failures are logged, not raised."""
        destination = export_dir / f"{path.stem}{OUTPUT_EXTENSION}"
        try:
            export_dir.mkdir(parents=True, exist_ok=True)
            destination.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write OCR result to {destination}: {e}")
            return None

        logger.debug(f"Wrote {destination}")
        return destination

    def _relocate(self, path: Path, relative_dir: Path, config: WatchConfiguration) -> Optional[Path]:
        """Move the original out of the deposit tree; None if it stayed in place."""
        try:
            if config.use_system_trash:
                return self.system_trash.trash(path)
            return move_to_trash_root(path, relative_dir, config.trash_root)
        except RelocationError as e:
            logger.error(str(e))
            return None

    @staticmethod
    def _create_alias(alias_path: Path, target: Path) -> None:
        try:
            create_recovery_alias(alias_path, target)
        except AliasError as e:
            logger.warning(str(e))

    def _record(
        self,
        path: Path,
        result: ExtractionResult,
        relocated: Optional[Path],
    ) -> HistoryEntry:
        """Link the source, build the history entry and insert it."""
        entry_id = generate_uuid()
        link = self.history.create_source_link(entry_id, relocated or path)

        entry = HistoryEntry(
            id=entry_id,
            created_at=now_utc(),
            display_title=path.name,
            source_reference=SourceReference(
                original_path=str(path),
                relocated_path=str(relocated) if relocated else None,
                link_path=str(link) if link else None,
            ),
            output_kind="markdown",
            output_text=result.text,
            output_path=str(result.output_file) if result.output_file else None,
            page_count=result.page_count,
        )
        self.history.insert(entry)
        return entry
