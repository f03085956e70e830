"""CLI entry point for dep-inspector."""

import asyncio
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import httpx
import typer

from dep_inspector.advisories import load_advisories
from dep_inspector.analysis.tree import render_tree
from dep_inspector.config import Settings
from dep_inspector.errors import InspectorError
from dep_inspector.inspector import Inspector
from dep_inspector.logging import setup_logging
from dep_inspector.metadata import load_metadata
from dep_inspector.models import TreeOptions
from dep_inspector.output import (
    print_error,
    render_audit,
    render_duplicates,
    render_outdated,
    render_summary,
    to_json,
)

cli = typer.Typer(
    name="dep-inspector",
    help="Inspect a resolved dependency graph: trees, duplicate versions, vulnerability paths and outdated dependencies.",
    no_args_is_help=True,
    add_completion=False,
)

MetadataArg = Annotated[
    str, typer.Argument(help="Path to `cargo metadata --format-version 1` JSON, or - for stdin.")
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Emit JSON instead of text.")]


@cli.callback()
def configure(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress at INFO level.")] = False,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Explicit log level.")] = None,
    json_output: JsonOpt = False,
) -> None:
    settings = Settings()
    setup_logging(log_level or ("INFO" if verbose else settings.log_level))
    ctx.obj = {"settings": settings, "json": json_output}


def _fail(error: BaseException, as_json: bool) -> NoReturn:
    print_error(error, as_json)
    raise typer.Exit(code=1)


def _inspector(ctx: typer.Context, metadata: str) -> Inspector:
    return Inspector(load_metadata(metadata), settings=ctx.obj["settings"])


@cli.command()
def tree(
    ctx: typer.Context,
    metadata: MetadataArg,
    depth: Annotated[Optional[int], typer.Option(min=0, help="Maximum depth to expand.")] = None,
    duplicates: Annotated[bool, typer.Option("--duplicates", help="Only keep branches leading to duplicated packages.")] = False,
    invert: Annotated[Optional[str], typer.Option(help="Show what depends on this package.")] = None,
    features: Annotated[bool, typer.Option("--features", help="Show activated features.")] = False,
    no_dev: Annotated[bool, typer.Option("--no-dev", help="Exclude dev-only dependencies.")] = False,
    json_output: JsonOpt = False,
) -> None:
    """Print the dependency tree."""
    as_json = json_output or ctx.obj["json"]
    options = TreeOptions(
        max_depth=depth,
        duplicates_only=duplicates,
        show_features=features,
        exclude_dev=no_dev,
        invert_target=invert,
    )
    try:
        output = _inspector(ctx, metadata).tree(options)
    except InspectorError as e:
        _fail(e, as_json)

    if as_json:
        typer.echo(to_json(output))
        return
    typer.echo(render_tree(output.root, show_features=features))
    typer.echo("\n" + render_summary(output.stats))


@cli.command("duplicates")
def duplicates_cmd(ctx: typer.Context, metadata: MetadataArg, json_output: JsonOpt = False) -> None:
    """List packages resolved at more than one version."""
    as_json = json_output or ctx.obj["json"]
    try:
        report = _inspector(ctx, metadata).duplicates()
    except InspectorError as e:
        _fail(e, as_json)
    typer.echo(to_json(report) if as_json else render_duplicates(report))


@cli.command()
def audit(
    ctx: typer.Context,
    metadata: MetadataArg,
    advisories: Annotated[
        Optional[Path],
        typer.Option(help="JSON file of advisories; queries OSV.dev when omitted."),
    ] = None,
    json_output: JsonOpt = False,
) -> None:
    """Show the dependency path to every vulnerable package."""
    as_json = json_output or ctx.obj["json"]
    try:
        inspector = _inspector(ctx, metadata)
        if advisories is not None:
            report = inspector.audit(load_advisories(advisories))
        else:
            report = asyncio.run(inspector.audit_online())
    except (InspectorError, httpx.HTTPError) as e:
        _fail(e, as_json)
    typer.echo(to_json(report) if as_json else render_audit(report))


@cli.command()
def deps(
    ctx: typer.Context,
    metadata: MetadataArg,
    prerelease: Annotated[
        bool, typer.Option("--prerelease", help="Compare against pre-releases too.")
    ] = False,
    json_output: JsonOpt = False,
) -> None:
    """Check the root package's direct dependencies for newer registry releases."""
    as_json = json_output or ctx.obj["json"]
    try:
        report = asyncio.run(_inspector(ctx, metadata).outdated(allow_prerelease=prerelease))
    except (InspectorError, httpx.HTTPError) as e:
        _fail(e, as_json)
    typer.echo(to_json(report) if as_json else render_outdated(report))


@cli.command()
def tui(
    metadata: Annotated[Optional[str], typer.Argument(help="Metadata JSON to open on start.")] = None,
) -> None:
    """Launch the interactive terminal UI."""
    from dep_inspector.app import DepInspectorApp

    app = DepInspectorApp(metadata_path=metadata)
    app.run()


def main() -> None:
    """Run the dep-inspector CLI."""
    from dotenv import load_dotenv

    load_dotenv()  # Load .env file (e.g. DEP_INSPECTOR_LOG_LEVEL)

    cli()


if __name__ == "__main__":
    main()
