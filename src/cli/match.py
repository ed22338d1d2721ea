"""CLI commands for the matching engine."""

import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

import click
import structlog

from src.config import ConfigLoader, ConfigValidationError, MatchingConfig
from src.matching import MatchingEngine, RankOptions, ValidationError
from src.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    resolve_level,
)
from src.settings import get_settings


logger = structlog.get_logger()

COMPONENT_CLI = "cli"

# Exit code for an invalid matching request
EXIT_INVALID_REQUEST = 2


def _read_json(path: Path, what: str) -> Any:
    """Read a JSON document, exit on failure.

    Args:
        path: File to read.
        what: Description used in the error message.

    Returns:
        Parsed JSON value.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error: could not read {what} from {path}: {e}", err=True)
        sys.exit(1)


def _log_level(verbose: bool) -> int:
    """Resolve the log level from --verbose or LOG_LEVEL, exit on failure."""
    if verbose:
        return logging.DEBUG
    try:
        return resolve_level(get_settings().log_level)
    except ValueError as e:
        click.echo(f"Error: invalid LOG_LEVEL: {e}", err=True)
        sys.exit(1)


def _echo_config_errors(loader: ConfigLoader) -> None:
    click.echo("Configuration validation failed:", err=True)
    for error in loader.validation_errors:
        click.echo(f"  - {error['loc']}: {error['msg']} ({error['type']})", err=True)


def _load_config(config_path: Path | None, request_id: str) -> MatchingConfig:
    """Load the matching configuration, exit on failure.

    Falls back to ``MATCHING_CONFIG_PATH`` and then to the built-in defaults.

    Args:
        config_path: Path given on the command line.
        request_id: Request identifier.

    Returns:
        Validated configuration.
    """
    path = config_path or get_settings().matching_config_path
    if path is None:
        return MatchingConfig()

    loader = ConfigLoader(request_id=request_id)
    try:
        return loader.load(path)
    except ConfigValidationError:
        _echo_config_errors(loader)
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Commodity matching engine CLI."""


@cli.command()
@click.option(
    "--request",
    "request_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to a JSON matching request.",
)
@click.option(
    "--pool",
    "pool_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to a JSON array of candidate records.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to matching.yaml (default: MATCHING_CONFIG_PATH or built-in).",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of results (default: limits.default_limit).",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
def rank(  # noqa: PLR0913
    request_path: Path,
    pool_path: Path,
    config_path: Path | None,
    limit: int | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Rank a candidate pool against a matching request.

    Prints the {results, meta} response as JSON on stdout. Logs go to
    stderr. Exits with code 2 when the request is invalid.
    """
    request_id = str(uuid.uuid4())
    configure_logging(level=_log_level(verbose), json_format=json_logs)
    bind_request_context(request_id, command="rank")

    try:
        log = logger.bind(component=COMPONENT_CLI)
        log.info(
            "cli_rank_started",
            request_path=str(request_path),
            pool_path=str(pool_path),
        )

        config = _load_config(config_path, request_id)
        request = _read_json(request_path, "request")
        pool = _read_json(pool_path, "candidate pool")
        if not isinstance(pool, list):
            click.echo("Error: candidate pool must be a JSON array", err=True)
            sys.exit(1)

        engine = MatchingEngine(config=config)
        try:
            result = engine.rank(
                request, pool, RankOptions(limit=limit), request_id=request_id
            )
        except ValidationError as e:
            log.warning("cli_invalid_request", error=e.message, field=e.field)
            suffix = f" (field: {e.field})" if e.field else ""
            click.echo(f"Invalid request: {e.message}{suffix}", err=True)
            sys.exit(EXIT_INVALID_REQUEST)

        click.echo(json.dumps(result.to_response(), indent=2))
        log.info("cli_rank_complete", results=len(result.results))
    finally:
        clear_request_context()


@cli.command("validate-config")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to matching.yaml configuration file.",
)
def validate_config(config_path: Path) -> None:
    """Validate a matching configuration file."""
    request_id = str(uuid.uuid4())
    configure_logging(json_format=False)
    bind_request_context(request_id, command="validate-config")

    loader = ConfigLoader(request_id=request_id)
    try:
        config = loader.load(config_path)
    except ConfigValidationError:
        _echo_config_errors(loader)
        sys.exit(1)
    finally:
        clear_request_context()

    weights = config.scoring.weights
    click.echo("Configuration is valid!")
    click.echo(f"  Version: {config.version}")
    click.echo(
        "  Weights: "
        f"price={weights.price} distance={weights.distance} "
        f"quality={weights.quality} socialImpact={weights.social_impact}"
    )
    click.echo(f"  Default limit: {config.limits.default_limit}")
    click.echo(f"  Max candidates: {config.limits.max_candidates}")
    click.echo(f"  Checksum: {loader.checksum}")
