"""Commit type discovery from the components directory.

Each regular file in the directory is one commit type; the file name is the
label and the file content is ignored. Entries are returned in the order the
filesystem lists them.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from preform.exceptions import FileAccessError, ValidationError

logger = logging.getLogger(__name__)


def load_type_options(path: str | Path) -> list[str]:
    """Load commit type labels from ``path``.

    Raises:
        FileAccessError: The directory itself cannot be listed.
    """
    directory = Path(path)
    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        raise FileAccessError(
            f"Cannot read type directory {directory}: {e.strerror or e}",
            path=directory,
            operation="read",
        ) from e

    options: list[str] = []
    for entry in entries:
        name = entry.name.strip()
        if not name or name.startswith("."):
            logger.debug("Skipping hidden or blank type entry", extra={"entry": entry.name})
            continue
        try:
            is_file = entry.is_file()
        except OSError as e:
            logger.debug(
                "Skipping unreadable type entry",
                extra={"entry": entry.name, "error": str(e)},
            )
            continue
        if not is_file:
            logger.debug("Skipping non-file type entry", extra={"entry": entry.name})
            continue
        options.append(name)

    logger.debug("Loaded type options", extra={"count": len(options), "path": str(directory)})
    return options


def validate_type_name(name: str) -> str:
    """Return the trimmed type name, or raise ValidationError."""
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("Type name must not be empty", field_name="type")
    if cleaned.startswith("."):
        raise ValidationError("Type name must not start with '.'", field_name="type", value=cleaned)
    if "/" in cleaned or (os.sep != "/" and os.sep in cleaned):
        raise ValidationError(
            "Type name must not contain a path separator", field_name="type", value=cleaned
        )
    return cleaned


def add_type_option(path: str | Path, name: str) -> str:
    """Persist a new commit type as an empty file in ``path``.

    Creates the directory when needed and leaves an existing file untouched.
    Returns the validated name.
    """
    cleaned = validate_type_name(name)
    directory = Path(path)
    target = directory / cleaned
    try:
        directory.mkdir(parents=True, exist_ok=True)
        target.touch(exist_ok=True)
    except OSError as e:
        raise FileAccessError(
            f"Cannot create type file {target}: {e.strerror or e}",
            path=target,
            operation="write",
        ) from e
    logger.info("Added type option", extra={"type": cleaned, "path": str(target)})
    return cleaned


def seed_type_options(path: str | Path, names: list[str]) -> list[str]:
    """Create one file per name, returning the names that were new."""
    directory = Path(path)
    created = []
    for name in names:
        if not (directory / name.strip()).exists():
            created.append(add_type_option(directory, name))
    return created
