# src/toucan/cli.py
"""Toucan Command Line Interface.

Entry point for the toucan CLI tool. Commands read a workflow document and a
backend ``object_info`` catalog from disk and run the core against them; the
core itself performs no I/O.
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from toucan import __version__
from toucan.contracts import (
    CatalogError,
    ControlKey,
    ControlPhase,
    GraphEdge,
    NodeID,
    SlotName,
    WorkflowFormatError,
    encode_input_handle,
    encode_output_handle,
    request_graph_payload,
)
from toucan.core.catalog import SchemaCatalog
from toucan.core.compiler import compile_request
from toucan.core.config import ToucanSettings, load_settings
from toucan.core.connections import creates_cycle, is_type_compatible, resolve_connection_slots
from toucan.core.control import apply_control_after_generate
from toucan.core.workflow import Workflow, apply_widget_values, load_workflow

__all__ = [
    "app",
]

app = typer.Typer(
    name="toucan",
    help="Toucan: compile node graphs into backend execution requests.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"toucan version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Raises:
        typer.Exit: If an explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _format_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  - {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    console.print(Panel(content, title=f"[red bold]{title}[/]", border_style="red"))


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.expanduser().read_text(encoding="utf-8"))
    except FileNotFoundError:
        _format_error(
            title="File Not Found",
            message=f"{what} file does not exist: {path}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except json.JSONDecodeError as e:
        _format_error(
            title="JSON Syntax Error",
            message=f"Failed to parse {path.name}",
            details=[f"line {e.lineno}, column {e.colno}: {e.msg}"],
        )
        raise typer.Exit(1) from None


def _write_json(payload: Any, output: Path | None) -> None:
    text = json.dumps(payload, indent=2)
    if output is None:
        typer.echo(text)
    else:
        output.expanduser().write_text(text + "\n", encoding="utf-8")


def _load_inputs(workflow_path: Path, catalog_path: Path) -> tuple[Any, Workflow, SchemaCatalog]:
    raw_workflow = _read_json(workflow_path, "Workflow")
    raw_catalog = _read_json(catalog_path, "Catalog")
    try:
        catalog = SchemaCatalog.from_object_info(raw_catalog)
    except CatalogError as e:
        _format_error(title="Catalog Error", message=str(e), hint="Pass the backend's /object_info response.")
        raise typer.Exit(1) from None
    try:
        workflow = load_workflow(raw_workflow)
    except WorkflowFormatError as e:
        _format_error(title="Workflow Error", message=str(e))
        raise typer.Exit(1) from None
    return raw_workflow, workflow, catalog


def _read_record(path: Path) -> set[ControlKey]:
    """Load a BEFORE-phase idempotency record; a missing file is an empty record."""
    if not path.expanduser().exists():
        return set()
    entries = _read_json(path, "Record")
    if not isinstance(entries, list) or not all(
        isinstance(entry, list) and len(entry) == 2 and all(isinstance(part, str) for part in entry) for entry in entries
    ):
        _format_error(
            title="Record Error",
            message=f"Malformed idempotency record: {path}",
            hint="Expected a JSON list of [node_id, slot_name] pairs. Delete the file to start over.",
        )
        raise typer.Exit(1)
    return {(NodeID(node_id), SlotName(slot_name)) for node_id, slot_name in entries}


def _settings(ctx: typer.Context) -> ToucanSettings:
    settings = ctx.obj
    return settings if isinstance(settings, ToucanSettings) else ToucanSettings()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings_file: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Toucan: compile node graphs into backend execution requests."""
    from toucan.core.logging import configure_logging

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho("Warning: --env-file ignored because --no-dotenv is set.", fg=typer.colors.YELLOW, err=True)

    try:
        settings = load_settings(settings_file.expanduser() if settings_file is not None else None)
    except FileNotFoundError:
        _format_error(title="File Not Found", message=f"Settings file does not exist: {settings_file}")
        raise typer.Exit(1) from None
    except ValidationError as e:
        details = [f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()]
        _format_error(
            title="Configuration Validation Failed",
            message="Invalid settings",
            details=details,
            hint="Check field names, types, and required values.",
        )
        raise typer.Exit(1) from None

    level = "DEBUG" if verbose else settings.logging.level
    configure_logging(json_output=json_logs or settings.logging.json_output, level=level)
    ctx.obj = settings


@app.command("compile")
def compile_command(
    ctx: typer.Context,
    workflow_path: Path = typer.Option(..., "--workflow", "-w", help="Path to workflow JSON."),
    catalog_path: Path = typer.Option(..., "--catalog", "-c", help="Path to object_info JSON."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the request here instead of stdout."),
) -> None:
    """Compile a workflow into an execution request."""
    settings = _settings(ctx)
    _, workflow, catalog = _load_inputs(workflow_path, catalog_path)

    result = compile_request(workflow.nodes, workflow.edges, catalog)

    for warning in result.warnings:
        typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW, err=True)
    if result.errors:
        _format_error(
            title="Graph Not Submittable",
            message=f"{len(result.errors)} blocking error(s)",
            details=result.errors,
            hint="Connect or fill in the listed inputs.",
        )
        raise typer.Exit(1)
    if result.warnings and settings.submission.fail_on_warnings:
        typer.secho("Warnings are blocking (submission.fail_on_warnings).", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    _write_json({"prompt": request_graph_payload(result.request_graph)}, output)


@app.command("check-connection")
def check_connection(
    workflow_path: Path = typer.Option(..., "--workflow", "-w", help="Path to workflow JSON."),
    catalog_path: Path = typer.Option(..., "--catalog", "-c", help="Path to object_info JSON."),
    source: str = typer.Option(..., "--source", help="Source node id."),
    source_slot: str = typer.Option(..., "--source-slot", help="Source output slot name."),
    target: str = typer.Option(..., "--target", help="Target node id."),
    target_slot: str = typer.Option(..., "--target-slot", help="Target input slot name."),
) -> None:
    """Check whether an edge may be added to a workflow."""
    _, workflow, catalog = _load_inputs(workflow_path, catalog_path)
    candidate = GraphEdge(
        source=NodeID(source),
        source_handle=encode_output_handle(source_slot),
        target=NodeID(target),
        target_handle=encode_input_handle(target_slot),
    )

    resolved = resolve_connection_slots(candidate, workflow.nodes, catalog)
    if resolved is None:
        reason = "an endpoint node, schema or slot could not be resolved"
    elif not is_type_compatible(resolved):
        reason = f"type mismatch: {resolved.source_slot.type} -> {resolved.target_slot.value_type or '(untyped)'}"
    elif creates_cycle(candidate, workflow.edges):
        reason = "the edge would create a cycle"
    else:
        typer.secho("valid", fg=typer.colors.GREEN)
        return

    typer.secho(f"invalid: {reason}", fg=typer.colors.RED)
    raise typer.Exit(1)


@app.command("advance-controls")
def advance_controls(
    ctx: typer.Context,
    workflow_path: Path = typer.Option(..., "--workflow", "-w", help="Path to workflow JSON."),
    catalog_path: Path = typer.Option(..., "--catalog", "-c", help="Path to object_info JSON."),
    phase: ControlPhase | None = typer.Option(None, "--phase", help="Control phase (default: from settings)."),
    record: Path | None = typer.Option(
        None,
        "--record",
        help="JSON file holding the BEFORE-phase idempotency record (created if missing).",
    ),
    seed: int | None = typer.Option(None, "--seed", help="Seed for randomized fields."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the workflow here instead of stdout."),
) -> None:
    """Advance control fields (seeds, cycling selects) in a workflow."""
    settings = _settings(ctx)
    raw_workflow, workflow, catalog = _load_inputs(workflow_path, catalog_path)
    effective_phase = phase if phase is not None else settings.control.phase

    # Without --record every BEFORE-phase run is a first sighting
    executed = _read_record(record) if record is not None else set()

    result = apply_control_after_generate(
        workflow.nodes,
        catalog,
        effective_phase,
        executed_controls=executed,
        rng=random.Random(seed) if seed is not None else None,
    )

    if record is not None:
        _write_json(sorted([node_id, slot] for node_id, slot in executed), record)
    if not result.did_mutate:
        typer.secho("No control fields changed.", fg=typer.colors.YELLOW, err=True)
    _write_json(apply_widget_values(raw_workflow, result.nodes), output)
