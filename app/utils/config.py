"""
Configuration management for Deposit OCR.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.schemas import WatchConfiguration
from domains.file_ingest.errors import ConfigurationError
from domains.file_ingest.paths import resolve_configuration


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Deposit Configuration
    deposit_folder: Optional[Path] = None
    deposit_export_folder: Optional[Path] = None
    deposit_trash_folder: Optional[Path] = None
    use_system_trash: bool = False
    system_trash_dir: Optional[Path] = None  # override for the platform trash home

    # Mistral OCR Configuration
    mistral_api_key: Optional[str] = None
    mistral_api_url: str = "https://api.mistral.ai/v1"
    ocr_model: str = "mistral-ocr-latest"
    include_images: bool = False
    extraction_timeout: float = 120.0  # seconds

    # Watcher Configuration
    scan_interval: float = 5.0  # seconds
    max_concurrent_files: int = 4

    # Storage Paths
    history_dir: Path = Path("~/.local/share/deposit-ocr")
    log_dir: Path = Path("~/.local/state/deposit-ocr/logs")

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "Deposit OCR API"
    api_version: str = "1.0.0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_history_dir(self) -> Path:
        """History directory with user home expanded."""
        return self.history_dir.expanduser()

    def get_log_dir(self) -> Path:
        """Log directory with user home expanded."""
        return self.log_dir.expanduser()

    def get_system_trash_dir(self) -> Optional[Path]:
        """Platform trash override, if any."""
        if self.system_trash_dir is None:
            return None
        return self.system_trash_dir.expanduser()

    def watch_configuration(self) -> Optional[WatchConfiguration]:
        """
        Build the watcher snapshot from the deposit settings.

        Returns:
            Resolved configuration, or None when no deposit folder is set or
            the folder combination is invalid
        """
        if self.deposit_folder is None:
            return None

        try:
            return resolve_configuration(
                self.deposit_folder,
                export_override=self.deposit_export_folder,
                trash_override=self.deposit_trash_folder,
                use_system_trash=self.use_system_trash,
            )
        except ConfigurationError as e:
            logger.error(f"Invalid deposit configuration: {e}")
            return None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
