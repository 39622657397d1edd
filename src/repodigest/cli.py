"""CLI interface for repodigest."""

from __future__ import annotations

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import structlog
import typer

from repodigest import __version__
from repodigest.cache.store import FileSystemCacheStore
from repodigest.config import ExtractionConfig
from repodigest.diagram import validate_with_suggestions
from repodigest.exceptions import CacheError, ConfigError
from repodigest.extractor import RepoContextExtractor
from repodigest.fetch.git import GitFetcher
from repodigest.fetch.locator import to_clone_url
from repodigest.models import ExtractionResult
from repodigest.prompts import PromptRenderer
from repodigest.settings import RepoDigestSettings

logger = structlog.get_logger()

app = typer.Typer(
    name="repodigest",
    help="Bounded repository context extraction with caching",
    no_args_is_help=True,
)

cache_app = typer.Typer(
    name="cache",
    help="Inspect and clear the digest cache",
    no_args_is_help=True,
)
app.add_typer(cache_app)

RULE = "=" * 60


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for console output on stderr."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_cache(settings: RepoDigestSettings) -> FileSystemCacheStore:
    return FileSystemCacheStore(settings.cache_dir, expiry=timedelta(hours=settings.cache_ttl_hours))


def build_extractor(settings: RepoDigestSettings) -> RepoContextExtractor:
    """Create the extractor used by CLI commands."""
    return RepoContextExtractor(
        GitFetcher(git_bin=settings.git_bin),
        build_cache(settings),
        workspace_dir=settings.workspace_dir,
    )


def format_result(result: ExtractionResult) -> str:
    """Render a result for terminal output."""
    seconds = result.duration_ms / 1000
    lines = [RULE]
    if result.data is not None:
        data = result.data
        lines += [
            "SUCCESS" + (" (cached)" if data.from_cache else ""),
            RULE,
            f"Repository: {result.locator}",
            f"Duration: {seconds:.2f} seconds",
            f"Files included: {data.included_count}",
            f"Files skipped: {data.skipped_count}",
            f"Total size: {data.total_bytes / 1024:.2f} KB",
        ]
        if result.output_path:
            lines.append(f"Output file: {result.output_path} ({(result.output_size or 0) / 1024:.2f} KB)")
        if result.save_error:
            lines.append(f"Save error: {result.save_error}")
        if data.applied_patterns:
            lines.append(f"Exclusion patterns applied: {len(data.applied_patterns)}")
    elif result.error is not None:
        error = result.error
        kind = error.fetch_kind.value if error.fetch_kind else error.kind.value
        lines += [
            "FAILED",
            RULE,
            f"Repository: {result.locator}",
            f"Duration: {seconds:.2f} seconds",
            f"Error type: {kind}",
            f"Message: {error.message}",
            f"Suggestion: {error.suggestion}",
        ]
        if error.diagnostics and error.diagnostics.strip():
            lines += ["", "Technical details:", error.diagnostics.strip()]
    lines.append(RULE)
    return "\n".join(lines)


def _resolve_target(url: str) -> str:
    clone_url = to_clone_url(url)
    if clone_url is None:
        typer.echo(f"Error: Invalid GitHub repository URL: {url}", err=True)
        typer.echo("Provide a URL like https://github.com/user/repo or user/repo", err=True)
        raise typer.Exit(1)
    return clone_url


def _load_config(settings: RepoDigestSettings, config_path: Path | None, **overrides: object) -> ExtractionConfig:
    try:
        base = ExtractionConfig.load(config_path) if config_path else settings.load_extraction_config()
        return base.with_overrides(**overrides)
    except (ValueError, FileNotFoundError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"repodigest version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """repodigest - bounded repository context extraction."""
    configure_logging(verbose)


@app.command()
def extract(
    url: Annotated[str, typer.Argument(help="Repository URL or user/repo shorthand")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the digest to this file"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML extraction config", exists=True, dir_okay=False),
    ] = None,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Bypass the digest cache")] = False,
    keep_workspace: Annotated[
        bool,
        typer.Option("--keep-workspace", help="Keep the temporary clone after extraction"),
    ] = False,
    max_files: Annotated[int | None, typer.Option("--max-files", min=1)] = None,
    max_chars: Annotated[int | None, typer.Option("--max-chars", min=1)] = None,
    timeout: Annotated[float | None, typer.Option("--timeout", help="Clone timeout in seconds")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON")] = False,
) -> None:
    """Extract a bounded digest of a remote repository."""
    settings = RepoDigestSettings()
    target = _resolve_target(url)
    overrides: dict[str, object] = {
        "max_files": max_files,
        "max_total_chars": max_chars,
        "fetch_timeout": timeout,
        "use_cache": False if no_cache else None,
    }
    if keep_workspace:
        overrides["cleanup_on_success"] = False
        overrides["cleanup_on_error"] = False
    extraction_config = _load_config(settings, config, **overrides)

    extractor = build_extractor(settings)
    if output is not None:
        result = extractor.extract_and_save(target, output, extraction_config)
    else:
        result = extractor.extract(target, extraction_config)

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    elif output is None and result.data is not None:
        typer.echo(result.data.content)
        typer.echo(format_result(result), err=True)
    else:
        typer.echo(format_result(result))

    if not result.success:
        raise typer.Exit(1)


@app.command()
def prompt(
    url: Annotated[str, typer.Argument(help="Repository URL or user/repo shorthand")],
    template: Annotated[str, typer.Option("--template", "-t", help="Prompt template name")] = "diagram",
    output: Annotated[Path | None, typer.Option("--output", "-o")] = None,
) -> None:
    """Render a model prompt with the repository digest attached."""
    settings = RepoDigestSettings()
    target = _resolve_target(url)
    renderer = PromptRenderer()
    if template not in renderer.list_templates():
        typer.echo(f"Error: Unknown template '{template}'. Available: {', '.join(renderer.list_templates())}", err=True)
        raise typer.Exit(1)

    result = build_extractor(settings).extract(target, settings.load_extraction_config())
    if result.data is None:
        typer.echo(format_result(result), err=True)
        raise typer.Exit(1)

    text = renderer.build_prompt(template, digest=result.data.content)
    if output is not None:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Prompt written to {output} ({len(text)} chars)")
    else:
        typer.echo(text)


@app.command("validate-diagram")
def validate_diagram_command(
    path: Annotated[Path, typer.Argument(help="File containing Mermaid code", exists=True, dir_okay=False)],
) -> None:
    """Check a Mermaid diagram for common syntax problems."""
    result = validate_with_suggestions(path.read_text(encoding="utf-8"))
    status = typer.style("valid", fg=typer.colors.GREEN) if result.is_valid else typer.style(
        "invalid", fg=typer.colors.RED
    )
    typer.echo(f"Diagram is {status}")
    for error in result.errors:
        typer.echo(f"  error: {error}")
    for warning in result.warnings:
        typer.echo(f"  warning: {warning}")
    for suggestion in result.suggestions:
        typer.echo(f"  suggestion: {suggestion}")
    if not result.is_valid:
        raise typer.Exit(1)


@cache_app.command("list")
def cache_list() -> None:
    """List cached repositories."""
    entries = build_cache(RepoDigestSettings()).list_entries()
    if not entries:
        typer.echo("Cache is empty.")
        return
    for entry in entries:
        flag = " (expired)" if entry.expired else ""
        typer.echo(
            f"{entry.key}  {entry.size}  files={entry.included_count}  "
            f"cached={entry.cached_at.isoformat()}{flag}"
        )


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cached digest."""
    try:
        build_cache(RepoDigestSettings()).clear()
    except CacheError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo("All cache cleared")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host")] = None,
    port: Annotated[int | None, typer.Option("--port")] = None,
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from repodigest.api import create_app

    settings = RepoDigestSettings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    app()
