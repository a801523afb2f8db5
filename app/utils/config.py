"""
Configuration management for WhoReapedWhat.

Uses pydantic-settings to load configuration from environment variables,
.env files and an optional JSON config file (config.json by default,
overridable with WHOREAPEDWHAT_CONFIG).
"""

import json
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Tuple, Type

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from app.models.schemas import WatchPolicy

CONFIG_FILE_ENV = "WHOREAPEDWHAT_CONFIG"
DEFAULT_CONFIG_FILE = Path("config.json")

DEFAULT_FILE_TYPES = [
    # Video
    "mp4", "avi", "mkv", "mov", "wmv", "flv", "webm", "m4v",
    # Audio
    "mp3", "flac", "wav", "aac", "ogg", "wma", "m4a",
    # Images
    "jpg", "jpeg", "png", "gif", "bmp", "tiff", "webp", "svg",
    # Documents
    "pdf", "docx", "doc", "xlsx", "xls", "pptx", "ppt", "txt", "rtf",
    # Archives
    "zip", "rar", "7z", "tar", "gz",
    # Code/Config
    "cs", "js", "html", "css", "json", "xml", "yml", "yaml",
    # Other
    "iso", "exe", "msi", "dmg",
]


def default_process_names() -> List[str]:
    """Process names worth reporting next to the current user."""
    if sys.platform.startswith("win"):
        return ["explorer", "plex", "cmd", "powershell"]
    return ["plex", "rm", "docker"]


def config_file_path() -> Path:
    """Location of the JSON config file."""
    return Path(os.environ.get(CONFIG_FILE_ENV, str(DEFAULT_CONFIG_FILE)))


class Settings(BaseSettings):
    """Application settings loaded from environment and config file."""

    # Watch Configuration
    watch_paths: Annotated[List[str], NoDecode] = ["/srv/media"]
    file_types_to_watch: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_FILE_TYPES)
    )
    watch_all_file_types: bool = False

    # Notification Configuration
    notification_mode: Literal["immediate", "digest", "both"] = "digest"
    digest_hour: int = Field(default=18, ge=0, le=23)
    send_cooldown_seconds: float = Field(default=5.0, ge=0)

    # SMTP Configuration
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    email_from: str = "votre-email@gmail.com"
    email_password: str = "votre-mot-de-passe-app"
    email_to: str = "admin@votre-domaine.com"
    enable_ssl: bool = True
    smtp_timeout: float = 30.0

    # Deletion log (empty string disables it)
    deletion_log_file: str = "suppressions.log"

    # Actor resolution
    actor_timeout_seconds: float = Field(default=0.2, gt=0)
    actor_process_names: Annotated[List[str], NoDecode] = Field(
        default_factory=default_process_names
    )

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "WhoReapedWhat API"
    api_version: str = "1.0.0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        json_settings = JsonConfigSettingsSource(
            settings_cls, json_file=config_file_path(), json_file_encoding="utf-8"
        )
        return init_settings, env_settings, dotenv_settings, json_settings, file_secret_settings

    @field_validator("watch_paths", "file_types_to_watch", "actor_process_names", mode="before")
    @classmethod
    def split_comma_list(cls, value):
        """Accept JSON lists as well as comma-separated strings."""
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    def get_watch_roots(self) -> list[Path]:
        """Parse watch paths into list of Paths."""
        return [Path(p).expanduser() for p in self.watch_paths]

    def get_watch_policy(self) -> WatchPolicy:
        """Build the immutable watch policy snapshot."""
        return WatchPolicy(
            extensions=self.file_types_to_watch,
            watch_all=self.watch_all_file_types,
            digest_hour=self.digest_hour,
        )

    def get_deletion_log_path(self) -> Optional[Path]:
        """Deletion log location, or None when disabled."""
        if not self.deletion_log_file.strip():
            return None
        return Path(self.deletion_log_file).expanduser()

    def validate_runtime(self) -> list[str]:
        """
        Check settings that can only be verified against the running host.

        Returns:
            List of human-readable problems (empty when usable)
        """
        problems = []

        roots = self.get_watch_roots()
        if not roots:
            problems.append("No directory to watch configured")
        for root in roots:
            if not root.is_dir():
                problems.append(f"Watched directory does not exist: {root}")

        if not self.email_from.strip() or not self.email_to.strip():
            problems.append("Missing email addresses in configuration")

        return problems


def load_settings(config_file: Optional[Path] = None) -> Settings:
    """
    Load settings, optionally forcing a specific JSON config file.

    Values from an explicit config file take precedence over the environment.
    """
    if config_file is None:
        return Settings()

    data = json.loads(Path(config_file).read_text(encoding="utf-8"))
    return Settings(**data)


def write_default_config(path: Path) -> Path:
    """Write the default settings as an indented JSON file."""
    defaults = {
        name: field.get_default(call_default_factory=True)
        for name, field in Settings.model_fields.items()
    }
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(defaults, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
