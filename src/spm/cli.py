# Copyright (c) 2025 sqlite-package-manager contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""CLI interface for sqlite-package-manager."""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from spm import __version__
from spm.errors import SpmError
from spm.host import Platform, detect_platform
from spm.installer import InstalledExtension
from spm.library_path import activate_statement, deactivate_statement
from spm.project import Project

app = typer.Typer(
    name="spm",
    help="The missing package manager for SQLite extensions and sqlite3.",
    rich_markup_mode="markdown",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True, soft_wrap=True)

logger = logging.getLogger(__name__)

PREFIX_HELP = "Run spm commands in a different directory"


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"spm version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Debug mode"),
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True
    )
) -> None:
    """sqlite-package-manager - install SQLite extensions into your project."""
    logging.basicConfig(
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)]
    )
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose:
        logging.getLogger().setLevel(logging.INFO)
    else:
        logging.getLogger().setLevel(logging.WARNING)

    ctx.obj = prefix


@app.command()
def init(
    ctx: typer.Context,
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Initialize a spm project."""
    with _open_project(ctx, prefix) as project:
        try:
            project.init()
        except (SpmError, OSError) as e:
            _fail(e)
        console.print(f"[green]Initialized spm project in {escape(str(project.base_dir))}[/green]")


@app.command()
def add(
    ctx: typer.Context,
    reference: str = typer.Argument(..., help="Extension reference, e.g. gh:owner/repo or gh:owner/repo@v1.2.3"),
    artifacts: Optional[List[str]] = typer.Argument(None, help="Only install these artifacts from the release"),
    prerelease: bool = typer.Option(False, "--prerelease", help="Resolve to the newest pre-release"),
    target_os: Optional[str] = typer.Option(None, "--os", help="Install for another operating system", hidden=True),
    target_cpu: Optional[str] = typer.Option(None, "--cpu", help="Install for another CPU architecture", hidden=True),
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Add a SQLite extension to your spm project."""
    with _open_project(ctx, prefix) as project:
        try:
            installed = project.add(
                reference,
                artifacts=artifacts or None,
                prerelease=prerelease,
                platform=_target_platform(target_os, target_cpu),
                progress_callback=_print_download,
            )
        except (SpmError, OSError) as e:
            _fail(e)
        _display_installed(installed)


@app.command()
def install(
    ctx: typer.Context,
    target_os: Optional[str] = typer.Option(None, "--os", help="Install for another operating system", hidden=True),
    target_cpu: Optional[str] = typer.Option(None, "--cpu", help="Install for another CPU architecture", hidden=True),
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Regenerate spm.lock and install every extension in it."""
    with _open_project(ctx, prefix) as project:
        try:
            installed = project.install(
                platform=_target_platform(target_os, target_cpu),
                progress_callback=_print_download,
            )
        except (SpmError, OSError) as e:
            _fail(e)
        _display_installed(installed)


@app.command()
def ci(
    ctx: typer.Context,
    target_os: Optional[str] = typer.Option(None, "--os", help="Install for another operating system", hidden=True),
    target_cpu: Optional[str] = typer.Option(None, "--cpu", help="Install for another CPU architecture", hidden=True),
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Clean install: install exactly what spm.lock records."""
    with _open_project(ctx, prefix) as project:
        try:
            installed = project.clean_install(
                platform=_target_platform(target_os, target_cpu),
                progress_callback=_print_download,
            )
        except (SpmError, OSError) as e:
            _fail(e)
        _display_installed(installed)


@app.command()
def generate(
    ctx: typer.Context,
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Regenerate spm.lock without installing anything."""
    with _open_project(ctx, prefix) as project:
        try:
            lock = project.generate_lockfile()
        except (SpmError, OSError) as e:
            _fail(e)
        console.print(f"[green]Wrote {project.lockfile_path.name}[/green] ({len(lock.extensions)} extensions)")


@app.command(context_settings={
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "help_option_names": [],
})
def run(
    ctx: typer.Context,
    command: List[str] = typer.Argument(..., help="Program and arguments to run"),
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """
    Run a command with the SQLite extension path configured.

    Arguments after the program name, --help included, go to the program.
    spm still reads its own --prefix anywhere unless the program follows --.

    Example:
        spm run sqlite3 :memory:
        spm run -- python -c "import sqlite3"
    """
    with _open_project(ctx, prefix) as project:
        try:
            code = project.run(command[0], command[1:])
        except (SpmError, OSError) as e:
            _fail(e)
    raise typer.Exit(code)


@app.command()
def activate(
    ctx: typer.Context,
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Activate a spm project in your shell. Use with command substitution."""
    with _open_project(ctx, prefix) as project:
        try:
            value = project.library_path()
        except (SpmError, OSError) as e:
            _fail(e)
        typer.echo(activate_statement(project.path_config, value))


@app.command()
def deactivate(
    ctx: typer.Context,
    prefix: Optional[Path] = typer.Option(None, "--prefix", help=PREFIX_HELP)
) -> None:
    """Deactivate a spm project in your shell. Use with command substitution."""
    with _open_project(ctx, prefix) as project:
        typer.echo(deactivate_statement(project.path_config))


def _open_project(ctx: typer.Context, prefix: Optional[Path]) -> Project:
    # a subcommand --prefix wins over the global one
    base_dir = prefix or ctx.obj or Path.cwd()
    logger.debug("Project directory: %s", base_dir)
    return Project(base_dir)


def _target_platform(target_os: Optional[str], target_cpu: Optional[str]) -> Optional[Platform]:
    if target_os is None and target_cpu is None:
        return None
    detected = detect_platform()
    return Platform(os=target_os or detected.os, cpu=target_cpu or detected.cpu)


def _print_download(url: str) -> None:
    console.print(f"downloading {escape(url)} ...", soft_wrap=True)


def _fail(error: Exception) -> None:
    err_console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


def _display_installed(installed: List[InstalledExtension]) -> None:
    """Display installed extensions in a table."""
    if not installed:
        console.print("[yellow]No extensions to install[/yellow]")
        return

    table = Table(title="Installed Extensions")
    table.add_column("Extension", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Files", style="yellow")

    for extension in installed:
        table.add_row(
            escape(extension.reference),
            escape(extension.version),
            escape(", ".join(path.name for path in extension.files)) or "-",
        )

    console.print(table)


if __name__ == "__main__":
    app()
