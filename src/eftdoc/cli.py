"""eftdoc CLI interface.

Commands:
- generate: Merge catalog descriptions into an EDMX model and patch its templates
- patch: Patch the companion T4 templates only
- check: Validate prerequisites (driver, connection, model)
- init: Initialize eftdoc configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit
"""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from eftdoc import __version__
from eftdoc.catalog import create_metadata_source
from eftdoc.config import CONFIG_CANDIDATES, EftdocConfig, create_default_config, load_config
from eftdoc.errors import EftdocError
from eftdoc.utils.logging import configure_from_cli, get_logger

if TYPE_CHECKING:
    from eftdoc.utils.preflight import PreflightResult

app = typer.Typer(
    name="eftdoc",
    help="Document Entity Framework EDMX models from SQL Server extended properties",
    add_completion=False,
    no_args_is_help=True,
)

CONNECTION_ENVVAR = "EFTDOC_CONNECTION_STRING"

# Global state
_config: EftdocConfig | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"eftdoc {__version__}")
        raise typer.Exit()


def _fail(error: EftdocError) -> typer.Exit:
    """Report a fatal error and build the matching exit."""
    _logger.error(f"{error.kind.capitalize()} error: {error.message}")
    if error.__cause__ is not None:
        _logger.debug("Caused by:", exc_info=error.__cause__)
    return typer.Exit(error.exit_code)


def _current_config() -> EftdocConfig:
    return _config if _config is not None else EftdocConfig()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """eftdoc - EDMX documentation generator.

    Copies table and column descriptions (MS_Description) from SQL Server
    into an Entity Framework model and its T4 code-generation templates.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except EftdocError as e:
        raise _fail(e)


# =============================================================================
# generate command
# =============================================================================


@app.command()
def generate(
    input: Annotated[
        Path,
        typer.Option(
            "--input",
            "-i",
            help="Original EDMX file",
            exists=True,
            dir_okay=False,
        ),
    ],
    connection_string: Annotated[
        str | None,
        typer.Option(
            "--connection-string",
            "-c",
            envvar=CONNECTION_ENVVAR,
            help="Connection string of the documented database (overrides config)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output EDMX file (default: the input file)",
            dir_okay=False,
        ),
    ] = None,
    skip_templates: Annotated[
        bool,
        typer.Option(
            "--skip-templates",
            help="Do not patch the .Context.tt / .tt companion templates",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Merge in memory and report, without writing any file",
        ),
    ] = False,
) -> None:
    """Merge catalog descriptions into an EDMX model.

    Every EntityType receives its table's MS_Description and every Property
    its column's MS_Description as a Documentation/Summary element. The
    companion templates are then patched to emit the summaries as comments.

    Exit codes:
        0: Model documented successfully
        1: Configuration, structural or connectivity error (nothing written)
    """
    from eftdoc.pipeline import DocumentationPipeline, PipelineOptions

    config = _current_config()
    input_path = input.resolve()
    output_path = output.resolve() if output else input_path

    pipeline = DocumentationPipeline(
        source_factory=lambda: create_metadata_source(config.catalog, connection_string),
        config=config,
    )
    options = PipelineOptions(
        output_path=output_path,
        skip_templates=skip_templates,
        dry_run=dry_run,
    )

    try:
        result = pipeline.run(input_path, options)
    except EftdocError as e:
        raise _fail(e)

    summary = result.merge.to_dict()
    if result.patch is not None:
        summary.update(result.patch.to_dict())
    _logger.structured(logging.INFO, "Operation is completed", **summary)

    if result.output_path is not None:
        typer.echo(f"\n📄 Documented model written to: {result.output_path}")
    raise typer.Exit(0)


# =============================================================================
# patch command
# =============================================================================


@app.command()
def patch(
    input: Annotated[
        Path,
        typer.Option(
            "--input",
            "-i",
            help="EDMX file whose companion templates should be patched",
            dir_okay=False,
        ),
    ],
) -> None:
    """Patch the companion T4 templates of an EDMX model.

    Wraps the DbSet, class-opening and property expressions so generated
    code carries each member's Documentation summary. Missing templates are
    skipped. Already patched templates are left unchanged.
    """
    from eftdoc.templates import TemplatePatcher, get_marker_set

    patcher = TemplatePatcher(get_marker_set(_current_config().templates.marker_set))
    result = patcher.patch(input.resolve())

    if not result.outcomes:
        _logger.warning(f"Not an .edmx file, no companion templates: {input}")

    for outcome in result.outcomes:
        if not outcome.existed:
            typer.echo(f"  ⏭️  {outcome.path.name} (not found)")
        elif outcome.error is not None:
            typer.echo(f"  ⚠️  {outcome.path.name} (not patched: {outcome.error})")
        elif outcome.written:
            typer.echo(f"  ✅ {outcome.path.name} ({outcome.replacements} marker(s) wrapped)")
        else:
            typer.echo(f"  ➖ {outcome.path.name} (already patched)")

    raise typer.Exit(0)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    connection_string: Annotated[
        str | None,
        typer.Option(
            "--connection-string",
            "-c",
            envvar=CONNECTION_ENVVAR,
            help="Connection string of the documented database (overrides config)",
        ),
    ] = None,
    input: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            help="EDMX file to validate",
            dir_okay=False,
        ),
    ] = None,
    skip_catalog: Annotated[
        bool,
        typer.Option(
            "--skip-catalog",
            help="Do not connect to the catalog",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Validate prerequisites before a generate run.

    Exit codes:
        0: All checks passed
        1: A required check failed
        2: Only optional checks failed (warnings)
    """
    from eftdoc.utils.preflight import PreflightChecker

    checker = PreflightChecker()
    result = checker.check_all(
        catalog=_current_config().catalog,
        connection_string=connection_string,
        input_path=input.resolve() if input else None,
        skip_catalog=skip_catalog,
    )

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _echo_preflight(result)

    raise typer.Exit(1 if result.errors else 2 if result.warnings else 0)


def _echo_preflight(result: "PreflightResult") -> None:
    """Print one line per check, then the verdict with its reasons."""
    typer.echo("\n🔍 Preflight Check Results\n")

    for item in result.checks:
        mark = "✅" if item.available else ("❌" if item.required else "⚠️ ")
        version = f" {item.version}" if item.version else ""
        typer.echo(f"  {mark} {item.name}{version}")
        detail = item.path if item.available else item.message
        if detail:
            typer.echo(f"     └─ {detail}")

    typer.echo()
    if result.errors:
        verdict, reasons = "❌ Preflight check FAILED", result.errors
    elif result.warnings:
        verdict, reasons = "⚠️  Preflight check passed with WARNINGS", result.warnings
    else:
        verdict, reasons = "✅ All preflight checks passed", []

    typer.echo(verdict)
    for reason in reasons:
        typer.echo(f"   • {reason}")


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize eftdoc configuration.

    Creates .eftdoc/config.yaml with the default catalog and template
    settings. Put the connection string in EFTDOC_CONNECTION_STRING or
    reference it from the config with ${VAR}.
    """
    config_file = CONFIG_CANDIDATES[0]
    config_file.parent.mkdir(exist_ok=True)

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ eftdoc configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
