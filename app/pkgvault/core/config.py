"""pkgvault settings and their TOML persistence.

Settings are stored in ~/.config/pkgvault/config.toml. A missing file is
not an error for callers using :func:`get_settings`; defaults apply.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pkgvault.core.paths import get_config_path, get_default_registry_dir, get_default_store_dir
from pkgvault.models.filter import normalize_path
from pkgvault.models.package import PackageType
from pkgvault.scope.filters import DEFAULT_APPLICATION_ROOTS

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """User settings for registry location, target store and scoping.

    Attributes:
        registry_dir: Registry home directory (None = XDG data default).
        store_dir: Filesystem target store root (None = XDG data default).
        application_roots: Store paths that make up the application region.
        default_scope: Scope used by install commands without --scope.
        validate_on_register: Run archive validators when registering.
    """

    model_config = ConfigDict(extra="forbid")

    registry_dir: Annotated[Path | None, Field(description="Registry home directory")] = None
    store_dir: Annotated[Path | None, Field(description="Target store directory")] = None
    application_roots: Annotated[
        list[str],
        Field(
            default_factory=lambda: list(DEFAULT_APPLICATION_ROOTS),
            description="Application region roots",
        ),
    ]
    default_scope: Annotated[
        PackageType,
        Field(description="Default installation scope"),
    ] = PackageType.MIXED
    validate_on_register: Annotated[
        bool,
        Field(description="Validate archives before registering"),
    ] = True

    @field_validator("application_roots")
    @classmethod
    def validate_roots(cls, roots: list[str]) -> list[str]:
        """Normalize application roots and reject relative paths."""
        if not roots:
            msg = "application_roots cannot be empty"
            raise ValueError(msg)
        return [normalize_path(root) for root in roots]

    @property
    def effective_registry_dir(self) -> Path:
        """Registry directory to use."""
        return self.registry_dir or get_default_registry_dir()

    @property
    def effective_store_dir(self) -> Path:
        """Target store directory to use."""
        return self.store_dir or get_default_store_dir()


class ConfigError(Exception):
    """Base exception for settings errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the settings file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the settings file cannot be parsed."""


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings object.

    Raises:
        ConfigNotFoundError: If the file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def get_settings(path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when no file exists.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    try:
        return load_settings(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using default settings")
        return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Returns:
        Path where the settings were saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _settings_to_dict(settings)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _settings_to_dict(settings: Settings) -> dict[str, object]:
    """Convert Settings to a TOML-ready dictionary, omitting unset paths."""
    result: dict[str, object] = {
        "application_roots": list(settings.application_roots),
        "default_scope": settings.default_scope.value,
        "validate_on_register": settings.validate_on_register,
    }
    if settings.registry_dir is not None:
        result["registry_dir"] = str(settings.registry_dir)
    if settings.store_dir is not None:
        result["store_dir"] = str(settings.store_dir)
    return result
