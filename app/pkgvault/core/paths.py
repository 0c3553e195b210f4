"""XDG-compliant path management for pkgvault.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, registry data and state storage.

XDG defaults:
- Config: ~/.config/pkgvault/
- Data: ~/.local/share/pkgvault/ (registry archives, target store)
- State: ~/.local/state/pkgvault/ (history)
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "pkgvault"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/pkgvault/ (or XDG_CONFIG_HOME/pkgvault/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """Get the data directory path.

    Returns:
        Path to ~/.local/share/pkgvault/ (or XDG_DATA_HOME/pkgvault/).
    """
    return _get_xdg_dir("XDG_DATA_HOME", ".local/share")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the history file that should persist between
    runs but is not configuration.

    Returns:
        Path to ~/.local/state/pkgvault/ (or XDG_STATE_HOME/pkgvault/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/pkgvault/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_default_registry_dir() -> Path:
    """Get the default registry home directory.

    Returns:
        Path to ~/.local/share/pkgvault/registry.
    """
    return get_data_dir() / "registry"


def get_default_store_dir() -> Path:
    """Get the default filesystem target store directory.

    Returns:
        Path to ~/.local/share/pkgvault/store.
    """
    return get_data_dir() / "store"


def ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return ensure_dir(get_state_dir(), "state")
