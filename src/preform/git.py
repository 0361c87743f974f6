"""Git integration: repository discovery, hook install and message output."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from preform.exceptions import FileAccessError

logger = logging.getLogger(__name__)

HOOK_NAME = "prepare-commit-msg"
HOOK_MARKER = "# pre-form Git hook"

HOOK_SCRIPT = f"""#!/bin/sh
{HOOK_MARKER}: generates commit message via TUI
# Only when git has no message source ($2 empty) and a terminal is attached
if [ -z "$2" ] && (: < /dev/tty) 2>/dev/null; then
  exec < /dev/tty
  preform "$1"
fi
"""


def _run_git(*args: str, cwd: str | Path | None = None) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        check=False,
        cwd=cwd,
    )


def find_repo_root(start: str | Path | None = None) -> Path:
    """Top-level directory of the enclosing work tree.

    Falls back to ``start`` (or the current directory) outside a repository
    or when git is not installed.
    """
    base = Path(start) if start is not None else Path.cwd()
    try:
        result = _run_git("rev-parse", "--show-toplevel", cwd=base)
    except FileNotFoundError:
        logger.debug("git executable not found; using %s as repo root", base)
        return base
    if result.returncode != 0 or not result.stdout.strip():
        return base
    return Path(result.stdout.strip())


def find_git_dir(repo_root: Path) -> Path:
    """The repository's git directory (handles worktrees and gitdir files)."""
    try:
        result = _run_git("rev-parse", "--git-common-dir", cwd=repo_root)
    except FileNotFoundError:
        result = None
    if result is not None and result.returncode == 0 and result.stdout.strip():
        git_dir = Path(result.stdout.strip())
        return git_dir if git_dir.is_absolute() else repo_root / git_dir
    return repo_root / ".git"


@dataclass
class HookInstallResult:
    """Result of a hook install."""

    path: Path
    replaced: bool = False


def install_hook(repo_root: Path, force: bool = False) -> HookInstallResult:
    """Write the prepare-commit-msg hook into the repository.

    An existing hook that preform did not write is only replaced with
    ``force``.

    Raises:
        FileAccessError: The hook exists and is foreign, or cannot be written.
    """
    hook_dir = find_git_dir(repo_root) / "hooks"
    hook_path = hook_dir / HOOK_NAME

    replaced = False
    if hook_path.exists():
        try:
            existing = hook_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise FileAccessError(
                f"Cannot read existing hook {hook_path}: {e.strerror or e}",
                path=hook_path,
                operation="install",
            ) from e
        if HOOK_MARKER not in existing and not force:
            raise FileAccessError(
                f"A {HOOK_NAME} hook already exists at {hook_path}; use --force to replace it",
                path=hook_path,
                operation="install",
            )
        replaced = True

    try:
        hook_dir.mkdir(parents=True, exist_ok=True)
        hook_path.write_text(HOOK_SCRIPT, encoding="utf-8")
        hook_path.chmod(0o755)
    except OSError as e:
        raise FileAccessError(
            f"Cannot write hook {hook_path}: {e.strerror or e}",
            path=hook_path,
            operation="install",
        ) from e

    logger.info("Installed git hook", extra={"hook": str(hook_path), "replaced": replaced})
    return HookInstallResult(path=hook_path, replaced=replaced)


def write_commit_message(path: str | Path, message: str) -> None:
    """Overwrite the commit message file with ``message`` (UTF-8)."""
    target = Path(path)
    try:
        with open(target, "w", encoding="utf-8", newline="\n") as f:
            f.write(message)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        raise FileAccessError(
            f"Cannot write commit message to {target}: {e.strerror or e}",
            path=target,
            operation="write",
        ) from e
    logger.debug("Wrote commit message", extra={"target": str(target), "chars": len(message)})
