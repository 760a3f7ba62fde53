"""WBSCalc configuration management.

Loads configuration from environment variables with sensible defaults.
Nothing is required; every setting falls back to the values the P6 import
workflow has always used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class ImportConfig:
    """Limits and switches for the structured-text and equipment importers."""

    paste_min_chars: int = 50
    paste_min_lines: int = 5
    project_scan_lines: int = 10
    strict_parents: bool = False  # quarantine XER records with unknown parent ids
    max_file_size_mb: int = 50
    max_equipment_rows: int = 50000


@dataclass
class BuildConfig:
    """Defaults for freshly generated hierarchies."""

    root_code: str = "1"
    default_project_name: str = "Unknown Project"
    default_subsystem_code: str = "+Z01"
    default_subsystem_name: str = "Main Subsystem"


@dataclass
class ExportConfig:
    """P6 export file naming."""

    filename_prefix: str = "WBS_Export_"
    new_items_prefix: str = "WBS_New_Items_"
    date_format: str = "%Y-%m-%d"


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    json_logs: bool = False
    rules_path: Path | None = None

    imports: ImportConfig = field(default_factory=ImportConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - JSON_LOGS: Render logs as JSON (default: "false")
        - CLASSIFICATION_RULES_PATH: Override the packaged rule file
        - PASTE_MIN_CHARS, PASTE_MIN_LINES, PROJECT_SCAN_LINES: Paste import limits
        - IMPORT_STRICT_PARENTS: Skip XER records whose parent cannot be resolved
        - MAX_FILE_SIZE_MB, MAX_EQUIPMENT_ROWS: Equipment file limits
        - WBS_ROOT_CODE, DEFAULT_PROJECT_NAME: Fresh project defaults
        - DEFAULT_SUBSYSTEM_CODE, DEFAULT_SUBSYSTEM_NAME: Fallback subsystem
        - EXPORT_PREFIX, EXPORT_NEW_PREFIX: Export filename prefixes

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        rules_path = os.getenv("CLASSIFICATION_RULES_PATH")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
            rules_path=Path(rules_path) if rules_path else None,
            imports=ImportConfig(
                paste_min_chars=int(os.getenv("PASTE_MIN_CHARS", "50")),
                paste_min_lines=int(os.getenv("PASTE_MIN_LINES", "5")),
                project_scan_lines=int(os.getenv("PROJECT_SCAN_LINES", "10")),
                strict_parents=os.getenv("IMPORT_STRICT_PARENTS", "false").lower()
                == "true",
                max_file_size_mb=int(os.getenv("MAX_FILE_SIZE_MB", "50")),
                max_equipment_rows=int(os.getenv("MAX_EQUIPMENT_ROWS", "50000")),
            ),
            build=BuildConfig(
                root_code=os.getenv("WBS_ROOT_CODE", "1"),
                default_project_name=os.getenv(
                    "DEFAULT_PROJECT_NAME", "Unknown Project"
                ),
                default_subsystem_code=os.getenv("DEFAULT_SUBSYSTEM_CODE", "+Z01"),
                default_subsystem_name=os.getenv(
                    "DEFAULT_SUBSYSTEM_NAME", "Main Subsystem"
                ),
            ),
            export=ExportConfig(
                filename_prefix=os.getenv("EXPORT_PREFIX", "WBS_Export_"),
                new_items_prefix=os.getenv("EXPORT_NEW_PREFIX", "WBS_New_Items_"),
            ),
        )

    @property
    def classification_config_path(self) -> Path:
        """Path to the equipment classification rule file."""
        if self.rules_path is not None:
            return self.rules_path
        return Path(__file__).parent / "classification" / "equipment_rules.yaml"


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
