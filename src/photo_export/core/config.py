"""Configuration management for photo export.

Settings are loaded from a JSON file with environment variable overrides
and validated with pydantic.

Example:
    >>> from photo_export.core.config import Config
    >>> config = Config.load()
    >>> print(config.export.destination)
    /Users/username/Pictures/Photo Export

    >>> # Environment variable override
    >>> # PHOTO_EXPORT_EXPORT__ALLOW_NETWORK_ACCESS=false
    >>> config = Config.load(force_reload=True)
    >>> print(config.export.allow_network_access)
    False
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from pydantic_settings.sources import JsonConfigSettingsSource

from photo_export import __version__
from photo_export.utils.constants import DEFAULT_EXPORT_DESTINATION

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "photo_export"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

# Singleton state (module-level to avoid Pydantic serialization issues)
_config_lock: threading.Lock = threading.Lock()
_config_instance: Config | None = None


def _expand(v: str | Path | None) -> Path | None:
    if v is None:
        return None
    return Path(v).expanduser()


class PhotosConfig(BaseModel):
    """Photos library settings.

    Attributes:
        library_path: Custom .photoslibrary bundle. None uses the system library.
        include_smart_albums: List system-generated albums alongside user albums.
        include_hidden: Include hidden assets in album and library listings.
    """

    library_path: Path | None = None
    include_smart_albums: bool = True
    include_hidden: bool = False

    @field_validator("library_path", mode="before")
    @classmethod
    def expand_library_path(cls, v: str | Path | None) -> Path | None:
        return _expand(v)


class ExportConfig(BaseModel):
    """Export destination settings.

    Attributes:
        destination: Default destination root for the CLI.
        allow_network_access: Allow downloading originals that are only in iCloud.
    """

    destination: Path = Field(default=DEFAULT_EXPORT_DESTINATION, validate_default=True)
    allow_network_access: bool = True

    @field_validator("destination", mode="before")
    @classmethod
    def expand_destination(cls, v: str | Path) -> Path:
        return Path(v).expanduser()


class LoggingConfig(BaseModel):
    """Logging settings.

    Attributes:
        level: Default log level for the CLI.
        file_output: Also write logs to the rotating log file.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file_output: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class Config(BaseSettings):
    """Main configuration for photo export.

    Priority (highest to lowest): direct arguments, environment variables
    (``PHOTO_EXPORT_`` prefix, ``__`` as nested delimiter), the JSON
    config file, defaults.

    Attributes:
        version: Configuration schema version.
        photos: Photos library settings.
        export: Export destination settings.
        logging: Logging settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="PHOTO_EXPORT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    version: str = Field(default_factory=lambda: __version__)
    photos: PhotosConfig = Field(default_factory=PhotosConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        _ = dotenv_settings
        _ = file_secret_settings

        json_file = cls.get_default_config_path()
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        if json_file.exists():
            sources.append(JsonConfigSettingsSource(settings_cls, json_file=json_file))
        return tuple(sources)

    @classmethod
    def load(cls, *, force_reload: bool = False) -> Config:
        """Load configuration, reusing the cached instance unless ``force_reload``.

        Raises:
            ValueError: If the configuration file contains invalid values.
        """
        global _config_instance

        with _config_lock:
            if _config_instance is not None and not force_reload:
                return _config_instance

            _config_instance = cls()
            return _config_instance

    def save(self, config_path: Path | None = None) -> Path:
        """Write the configuration as JSON.

        Args:
            config_path: Destination file. Defaults to the user config file.

        Returns:
            The path that was written.
        """
        save_path = config_path or self.get_default_config_path()
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with save_path.open("w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
            f.write("\n")
        return save_path

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance (used by tests)."""
        global _config_instance

        with _config_lock:
            _config_instance = None

    @classmethod
    def get_default_config_path(cls) -> Path:
        return DEFAULT_CONFIG_FILE

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = self.model_dump(mode="json")
        return result


__all__ = [
    "Config",
    "ExportConfig",
    "LoggingConfig",
    "PhotosConfig",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
]
