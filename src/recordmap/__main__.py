"""Command line interface for recordmap.

Subcommands:
    convert        JSON document -> instance of TYPE -> JSON (normalization check)
    describe       Print the debug rendering of a JSON document loaded as TYPE
    normalize-key  Show the output key produced for field names

TYPE is a dotted path (``myapp.models.Person``) or a short name qualified
with the default namespace (``RECORDMAP_DEFAULT_NAMESPACE``).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from dotenv import find_dotenv, load_dotenv

# Load .env file if present (before any config access)
_env_file = find_dotenv(usecwd=True)
if _env_file:
    load_dotenv(_env_file)

from .codec import load_json, render_text  # noqa: E402
from .config import get_settings  # noqa: E402
from .engine import RecordMapper, get_default_mapper  # noqa: E402
from .errors import JsonParseError  # noqa: E402
from .mapping.keys import normalize_key  # noqa: E402
from .models.report import ConversionReport  # noqa: E402

app = typer.Typer(help="recordmap object <-> key-value mapping CLI")

logger = logging.getLogger(__name__)


def _load_document(path: Path) -> Any:
    try:
        return load_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        typer.echo(f"Cannot read {path}: {e}", err=True)
        raise typer.Exit(code=2)
    except JsonParseError as e:
        typer.echo(f"{path}: {e}", err=True)
        raise typer.Exit(code=2)


def _require_type(mapper: RecordMapper, type_name: str) -> type:
    cls = mapper.registry.resolve_class(type_name, mapper.config.default_namespace)
    if cls is None:
        typer.echo(f"Unknown type {type_name!r}", err=True)
        raise typer.Exit(code=2)
    return cls


def _build(mapper: RecordMapper, document: Any, cls: type, report: ConversionReport) -> List[Any]:
    if isinstance(document, dict):
        instance = mapper.from_dict(document, cls, report=report)
        return [] if instance is None else [instance]
    if isinstance(document, list):
        built = []
        for item in document:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object array element of type %s", type(item).__name__)
                continue
            instance = mapper.from_dict(item, cls, report=report)
            if instance is not None:
                built.append(instance)
        return built
    typer.echo(f"Expected a JSON object or array, got {type(document).__name__}", err=True)
    raise typer.Exit(code=2)


@app.callback()
def main() -> None:  # pragma: no cover - simple callback
    """recordmap CLI.

    Use a subcommand like 'convert' to run a conversion.
    """
    pass


@app.command(help="Load a JSON document as TYPE and write it back as JSON.")
def convert(
    path: Path = typer.Argument(..., help="JSON file holding an object or an array of objects"),
    type_name: str = typer.Option(..., "--type", "-t", help="Target type (dotted path or short name)"),
    cleanup: Optional[bool] = typer.Option(
        None,
        "--cleanup/--no-cleanup",
        help="Normalize output keys to snake_case. If not specified, uses CLEANUP_OUTPUT_KEYS from config/env.",
    ),
    pretty: bool = typer.Option(False, "--pretty/--compact", help="Indent the output JSON"),
    strict: bool = typer.Option(
        False, "--strict/--no-strict", help="Exit with status 1 when any conversion issue occurred"
    ),
) -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    mapper = get_default_mapper()
    cls = _require_type(mapper, type_name)
    document = _load_document(path)

    report = ConversionReport()
    instances = _build(mapper, document, cls, report)
    do_cleanup = settings.CLEANUP_OUTPUT_KEYS if cleanup is None else cleanup
    outputs = [mapper.to_dict(i, cleanup=do_cleanup, report=report) for i in instances]
    payload: Any = outputs if isinstance(document, list) else (outputs[0] if outputs else {})
    typer.echo(render_text(payload, pretty=pretty, config=mapper.config))

    for issue in report.issues:
        typer.echo(f"{issue.kind.value} at {issue.path or '<root>'}: {issue.message}", err=True)
    if strict and not report.ok:
        raise typer.Exit(code=1)


@app.command(help="Print the debug description of a JSON document loaded as TYPE.")
def describe(
    path: Path = typer.Argument(..., help="JSON file holding an object"),
    type_name: str = typer.Option(..., "--type", "-t", help="Target type (dotted path or short name)"),
) -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    mapper = get_default_mapper()
    cls = _require_type(mapper, type_name)
    for instance in _build(mapper, _load_document(path), cls, ConversionReport()):
        typer.echo(mapper.describe(instance), nl=False)


@app.command(name="normalize-key", help="Print the output key for each field name.")
def normalize_key_command(
    keys: List[str] = typer.Argument(..., help="Field names to normalize"),
    reserved: Optional[List[str]] = typer.Option(
        None, "--reserved", "-r", help="Additional reserved word (repeatable)"
    ),
) -> None:
    reserved_words = get_default_mapper().config.reserved_words | frozenset(reserved or [])
    for key in keys:
        typer.echo(f"{key}\t{normalize_key(key, reserved_words)}")


if __name__ == "__main__":  # pragma: no cover
    app()
