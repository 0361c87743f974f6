"""CLI interface for Preform."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from typer.core import TyperGroup

from preform import __version__
from preform.composer import compose_message
from preform.config import CONVENTIONAL_TYPES, PreformConfig, configure_logging
from preform.exceptions import ConfigError, FileAccessError, ValidationError
from preform.git import find_repo_root, install_hook, write_commit_message
from preform.options import add_type_option, load_type_options, seed_type_options
from preform.tui import FormStatus, RenderConfig, run_form

if TYPE_CHECKING:
    import click

logger = logging.getLogger(__name__)


class DefaultCommandGroup(TyperGroup):
    """Command group that treats an unknown first argument as ``edit <arg>``.

    Git hooks call ``preform <COMMIT_MSG_FILE>`` directly.
    """

    default_command = "edit"

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] not in self.commands and not args[0].startswith("-"):
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)


app = typer.Typer(
    name="preform",
    help="Compose structured commit messages in an interactive terminal form.",
    cls=DefaultCommandGroup,
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"preform version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Compose structured commit messages in an interactive terminal form."""


def _fail(message: str, hint: str | None = None) -> typer.Exit:
    err_console.print(f"[red]Error: {message}[/red]")
    if hint:
        err_console.print(f"[dim]{hint}[/dim]")
    return typer.Exit(1)


def _load_config(config_path: Path | None, repo_root: Path) -> PreformConfig:
    if config_path is not None and not config_path.is_file():
        raise _fail(f"Config file not found: {config_path}")
    path = config_path or PreformConfig.default_path(repo_root)
    try:
        config = PreformConfig.from_file(path)
    except ConfigError as e:
        raise _fail(e.message) from None
    configure_logging(config)
    return config


def _types_dir(config: PreformConfig, repo_root: Path, override: Path | None) -> Path:
    if override is not None:
        return override
    return config.resolve_components_dir(repo_root)


ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Config file path")
]
TypesDirOption = Annotated[
    Path | None,
    typer.Option("--types-dir", "-t", help="Directory with one file per commit type"),
]


@app.command()
def edit(
    commit_msg_path: Annotated[
        Path, typer.Argument(help="Commit message file passed by the git hook")
    ],
    config_path: ConfigOption = None,
    types_dir: TypesDirOption = None,
) -> None:
    """Open the form and write the commit message file on submit."""
    repo_root = find_repo_root()
    config = _load_config(config_path, repo_root)
    directory = _types_dir(config, repo_root, types_dir)

    try:
        options = load_type_options(directory)
    except FileAccessError as e:
        raise _fail(e.message, "Run `preform init` to create the types directory.") from None
    if not options:
        options = list(config.fallback_types)

    def persist_type(name: str) -> str:
        return add_type_option(directory, name)

    try:
        state = asyncio.run(
            run_form(
                options,
                on_add_type=persist_type if config.allow_add_types else None,
                allow_add_types=config.allow_add_types,
                render_config=RenderConfig(highlight_symbol=config.highlight_symbol),
            )
        )
    except FileAccessError as e:
        raise _fail(e.message) from None

    if state.status is not FormStatus.SUBMITTED:
        logger.info("Form cancelled; commit message file left untouched")
        return

    try:
        write_commit_message(commit_msg_path, compose_message(state))
    except FileAccessError as e:
        raise _fail(e.message) from None


@app.command()
def install(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Replace an existing prepare-commit-msg hook")
    ] = False,
) -> None:
    """Install the prepare-commit-msg hook into the current repository."""
    repo_root = find_repo_root()
    try:
        result = install_hook(repo_root, force=force)
    except FileAccessError as e:
        raise _fail(e.message) from None
    verb = "updated" if result.replaced else "installed"
    console.print(f"[green]Git hook {verb} successfully at[/green] {result.path}")


@app.command()
def init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing config file")
    ] = False,
) -> None:
    """Create the types directory with conventional types and a default config."""
    import tomli_w

    repo_root = find_repo_root()
    config = PreformConfig()
    directory = config.resolve_components_dir(repo_root)

    try:
        created = seed_type_options(directory, CONVENTIONAL_TYPES)
    except (FileAccessError, ValidationError) as e:
        raise _fail(e.message) from None
    console.print(f"[green]Types directory:[/green] {directory} ({len(created)} new)")

    path = PreformConfig.default_path(repo_root)
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {path}")
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            tomli_w.dump(config.to_toml_dict(), f)
    except OSError as e:
        raise _fail(f"Cannot write config {path}: {e.strerror or e}") from None

    console.print(f"[green]Created config at:[/green] {path}")


@app.command("types")
def types_command(
    config_path: ConfigOption = None,
    types_dir: TypesDirOption = None,
) -> None:
    """List the commit types the form offers."""
    repo_root = find_repo_root()
    config = _load_config(config_path, repo_root)
    directory = _types_dir(config, repo_root, types_dir)

    try:
        options = load_type_options(directory)
    except FileAccessError as e:
        raise _fail(e.message, "Run `preform init` to create the types directory.") from None

    if not options and config.fallback_types:
        options = list(config.fallback_types)
        console.print("[dim](from fallback_types)[/dim]")
    if not options:
        console.print("[dim](no types; the form will omit the type prefix)[/dim]")
        return
    for name in options:
        console.print(name, markup=False, highlight=False)


if __name__ == "__main__":
    app()
