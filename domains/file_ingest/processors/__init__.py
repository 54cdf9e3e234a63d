"""
File Ingestion Processors

Per-file processing for deposited documents:
- file_processor.py - OCR, Markdown export, relocation and history recording
- relocation.py - System trash, mirrored custom trash and recovery aliases
"""

from domains.file_ingest.processors.file_processor import FileProcessor
from domains.file_ingest.processors.relocation import SystemTrash

__all__ = ["FileProcessor", "SystemTrash"]
