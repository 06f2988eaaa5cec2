"""Command-line entry point: ``shipwright build|wheel|sources|db``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from shipwright.core.logging import configure_logging
from shipwright.core.settings import Settings
from shipwright.errors import BuildError, ShipwrightError
from shipwright.migrations.workflow import MigrationWorkflow
from shipwright.packaging.config import load_build_config
from shipwright.packaging.pipeline import PackagingPipeline
from shipwright.packaging.selection import select_sources
from shipwright.packaging.wheel import WheelName, filter_wheel, verify_wheel

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, help="Cython wheel packaging and Alembic autogeneration.")
build_app = typer.Typer(no_args_is_help=True, help="Build distributions from shipwright.yaml.")
wheel_app = typer.Typer(no_args_is_help=True, help="Inspect and post-process built wheels.")
db_app = typer.Typer(no_args_is_help=True, help="Alembic migrations.")
app.add_typer(build_app, name="build")
app.add_typer(wheel_app, name="wheel")
app.add_typer(db_app, name="db")

_console = Console()


def _fail(exc: ShipwrightError) -> None:
    logger.error("%s", exc)
    if isinstance(exc, BuildError) and exc.output:
        _console.print(exc.tail(), markup=False, highlight=False)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL."),
) -> None:
    settings = Settings()
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


def _pipeline(ctx: typer.Context, project: Path, config: Optional[str]) -> PackagingPipeline:
    settings: Settings = ctx.obj
    return PackagingPipeline(project, config or settings.build_config_file, dist_dir=settings.dist_dir)


ProjectOpt = typer.Option(Path("."), "--project", "-p", help="Project root.")
ConfigOpt = typer.Option(None, "--config", "-c", help="Manifest path relative to the project root.")


@build_app.command("sdist")
def build_sdist(ctx: typer.Context, project: Path = ProjectOpt, config: Optional[str] = ConfigOpt) -> None:
    """Build a source distribution."""
    try:
        _pipeline(ctx, project, config).build_sdist()
    except ShipwrightError as e:
        _fail(e)
    _console.print("[green]sdist built[/green]")


@build_app.command("inplace")
def build_inplace(ctx: typer.Context, project: Path = ProjectOpt, config: Optional[str] = ConfigOpt) -> None:
    """Compile extensions next to their sources (build_ext --inplace)."""
    try:
        _pipeline(ctx, project, config).build_inplace()
    except ShipwrightError as e:
        _fail(e)
    _console.print("[green]extensions built in place[/green]")


@build_app.command("wheel")
def build_wheel(ctx: typer.Context, project: Path = ProjectOpt, config: Optional[str] = ConfigOpt) -> None:
    """Build a binary wheel (expects a prior in-place build)."""
    try:
        wheel = _pipeline(ctx, project, config).build_wheel()
    except ShipwrightError as e:
        _fail(e)
    _console.print(f"[green]built[/green] {wheel.name}")


@build_app.command("all")
def build_all(ctx: typer.Context, project: Path = ProjectOpt, config: Optional[str] = ConfigOpt) -> None:
    """In-place build, wheel, post-filter and verification."""
    try:
        result = _pipeline(ctx, project, config).run()
    except ShipwrightError as e:
        _fail(e)
    _console.print(f"[green]built[/green] {result.wheel.name}")
    for n in result.report.dropped:
        _console.print(f"  removed {n}")
    if result.problems:
        for p in result.problems:
            _console.print(f"[red]{p}[/red]")
        raise typer.Exit(code=2)


@build_app.command("clean")
def build_clean(ctx: typer.Context, project: Path = ProjectOpt, config: Optional[str] = ConfigOpt) -> None:
    """Remove in-place binaries and generated C files."""
    try:
        removed = _pipeline(ctx, project, config).clean()
    except ShipwrightError as e:
        _fail(e)
    _console.print(f"removed {len(removed)} file(s)")


@app.command("sources")
def sources(ctx: typer.Context, project: Path = ProjectOpt, config: Optional[str] = ConfigOpt) -> None:
    """List the modules that would be compiled and the ones kept as source."""
    settings: Settings = ctx.obj
    try:
        cfg = load_build_config(project / (config or settings.build_config_file))
    except ShipwrightError as e:
        _fail(e)
    table = Table(title=f"{cfg.name} {cfg.version}")
    table.add_column("File")
    table.add_column("Treatment")
    for rel in select_sources(project, cfg.exclude, cfg.top_level_dirs()):
        table.add_row(rel, "compile")
    for rel in cfg.exclude:
        table.add_row(rel, "source")
    _console.print(table)


@wheel_app.command("inspect")
def wheel_inspect(wheel: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Show the compatibility tags encoded in a wheel file name."""
    try:
        name = WheelName.parse(wheel)
    except ShipwrightError as e:
        _fail(e)
    table = Table(show_header=False)
    table.add_row("distribution", name.distribution)
    table.add_row("version", name.version)
    if name.build_tag:
        table.add_row("build", name.build_tag)
    table.add_row("python", name.python_tag)
    table.add_row("abi", name.abi_tag)
    table.add_row("platform", name.platform_tag)
    table.add_row("pure", "yes" if name.is_pure else "no")
    _console.print(table)


@wheel_app.command("filter")
def wheel_filter(
    wheel: Path = typer.Argument(..., exists=True, dir_okay=False),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Keep this source file (repeatable)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write here instead of in place."),
) -> None:
    """Remove sources that ship next to their compiled module."""
    try:
        report = filter_wheel(wheel, exclude, output)
    except ShipwrightError as e:
        _fail(e)
    for n in report.dropped:
        _console.print(f"removed {n}")
    _console.print(f"{len(report.dropped)} source file(s) removed from {report.wheel.name}")


@wheel_app.command("verify")
def wheel_verify(
    wheel: Path = typer.Argument(..., exists=True, dir_okay=False),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="File expected as plain source (repeatable)."),
) -> None:
    """Fail when a source ships beside its binary or an excluded file is missing."""
    try:
        problems = verify_wheel(wheel, exclude)
    except ShipwrightError as e:
        _fail(e)
    if problems:
        for p in problems:
            _console.print(f"[red]{p}[/red]")
        raise typer.Exit(code=2)
    _console.print(f"[green]OK[/green] {wheel.name}")


@db_app.command("init")
def db_init(ctx: typer.Context, directory: Optional[str] = typer.Argument(None)) -> None:
    """Create a migration repository."""
    try:
        target = MigrationWorkflow(ctx.obj).init(directory)
    except ShipwrightError as e:
        _fail(e)
    _console.print(f"[green]initialized[/green] {target}")


@db_app.command("upgrade")
def db_upgrade(ctx: typer.Context, revision: str = typer.Argument("head")) -> None:
    """Upgrade DATABASE_URL to a revision."""
    try:
        MigrationWorkflow(ctx.obj).upgrade(revision)
    except ShipwrightError as e:
        _fail(e)
    _console.print(f"[green]upgraded[/green] to {revision}")


@db_app.command("autogenerate")
def db_autogenerate(
    ctx: typer.Context,
    message: str = typer.Option(..., "--message", "-m", help="Revision message."),
) -> None:
    """Diff the models against the migration history on a scratch database."""
    try:
        path = MigrationWorkflow(ctx.obj).autogenerate(message)
    except ShipwrightError as e:
        _fail(e)
    if path is None:
        _console.print("No changes detected")
        return
    _console.print(f"[green]generated[/green] {path}")


def run() -> None:
    app()
