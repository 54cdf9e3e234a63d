"""
File Ingestion Domain

Watches a deposit folder and turns every file dropped into it into text:
- Deposit watcher → polls the folder and dispatches new files exactly once
- File processor → OCR via the extraction service, mirrored Markdown export,
  relocation of the original and a history entry

Output and trash folders nested inside the deposit folder are never scanned.
"""

__all__ = ["collectors", "processors", "errors", "paths"]
