"""Shared types and utilities for CLI commands.

This module provides the helpers used across command modules to load
settings, open the registry and record history.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import typer

from pkgvault.core.config import ConfigError, Settings, get_settings
from pkgvault.core.state import StateManager
from pkgvault.models.history import HistoryActionType, HistoryItem, create_history_entry
from pkgvault.models.package import PackageId
from pkgvault.registry.registry import PackageRegistry
from pkgvault.utils.formatting import print_error, print_warning
from pkgvault.validation.executor import ValidationExecutor
from pkgvault.validation.validators import default_validators

if TYPE_CHECKING:
    from pkgvault.models.task import TaskResult

logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """Load user settings, exiting with an error if the file is invalid."""
    try:
        return get_settings()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def open_registry(settings: Settings, validate: bool | None = None) -> PackageRegistry:
    """Open the registry configured in settings.

    Args:
        settings: User settings.
        validate: Override ``settings.validate_on_register``.

    Returns:
        Registry backed by the configured directory.
    """
    use_validation = settings.validate_on_register if validate is None else validate
    validator = ValidationExecutor(default_validators()) if use_validation else None
    registry_dir = settings.effective_registry_dir
    logger.debug("Opening registry at %s", registry_dir)
    return PackageRegistry.open_directory(registry_dir, validator=validator)


def parse_package_id(text: str) -> PackageId:
    """Parse a package id argument, exiting on malformed input."""
    try:
        return PackageId.parse(text)
    except ValueError as e:
        print_error(f"Invalid package id '{text}': {e}")
        raise typer.Exit(code=1) from e


def record_history(
    action_type: HistoryActionType,
    items: list[HistoryItem],
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append an entry to the history file.

    Failures are reported as a warning; the action itself already happened.
    """
    if not items:
        return
    entry = create_history_entry(action_type, items, metadata)
    try:
        StateManager().record_action(entry)
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not record history: {e}")


def items_from_results(results: list[TaskResult]) -> list[HistoryItem]:
    """Convert plan task results to history items."""
    return [
        HistoryItem(package_id=str(result.task.id), error=str(result.error) if result.error else None)
        for result in results
    ]
