"""Inspect configuration documents: validation, schema, tree, times, layers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from mapctx_core.models import Group, WmsLayer, layer_statistics
from mapctx_core.schema import document_json_schema, validate_document
from mapctx_core.tree import NodeArena

from ..util import load_app_config, open_store, resolve_document_path

console = Console()


def validate(
    document: Optional[Path] = typer.Argument(None, help="Document to check (defaults to configured one)"),
    output_format: str = typer.Option("plain", "--format", "-f", help="Output format: plain|json"),
):
    """Validate a configuration document against the schema."""
    config = load_app_config()
    path = resolve_document_path(document, config)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        typer.echo(f"❌ Document not found: {path}", err=True)
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        typer.echo(f"❌ Invalid JSON in {path}: {e}", err=True)
        raise typer.Exit(1)

    violations = validate_document(raw)
    if output_format == "json":
        payload = [{"path": v.path, "reason": v.reason} for v in violations]
        typer.echo(json.dumps(payload, indent=2))
    elif violations:
        typer.echo(f"❌ {path}: {len(violations)} violation(s)")
        for violation in violations:
            typer.echo(f"  - {violation}")
    else:
        typer.echo(f"✓ {path} is valid")

    if violations:
        raise typer.Exit(1)


def schema(
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the JSON Schema to a file"),
):
    """Print the JSON Schema of configuration documents."""
    text = json.dumps(document_json_schema(), indent=2)
    if out:
        out.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"✓ Wrote {out}")
    else:
        typer.echo(text)


def _add_branch(parent: Tree, arena: NodeArena, group: Group, active: List[int]) -> None:
    for child in arena.children(group.id):
        if isinstance(child, Group):
            flag = " [dim](exclusive)[/dim]" if child.exclusive else ""
            branch = parent.add(f"[bold]{child.label or '?'}[/bold] #{child.id}{flag}")
            _add_branch(branch, arena, child, active)
        else:
            mark = "[green]●[/green]" if child.id in active else "○"
            parent.add(f"{mark} {child.label or '?'} #{child.id} ({len(child.layers)} layers)")


def tree(
    document: Optional[Path] = typer.Argument(None, help="Document to show (defaults to configured one)"),
):
    """Show the group/context hierarchy."""
    state = open_store(document).state
    root = Tree(f"[bold]{state.root.label or 'root'}[/bold] #{state.root.id}")
    _add_branch(root, state.arena, state.root, state.active_context_ids)
    console.print(root)


def times(
    document: Optional[Path] = typer.Argument(None, help="Document to inspect (defaults to configured one)"),
):
    """Show aggregated times per context."""
    state = open_store(document).state
    table = Table(title="Context times")
    table.add_column("ID", justify="right")
    table.add_column("Context")
    table.add_column("Times", justify="right")
    table.add_column("First")
    table.add_column("Current")
    for context in state.iter_contexts():
        if not context.times:
            continue
        table.add_row(
            str(context.id),
            context.label,
            str(len(context.times)),
            context.times[0],
            state.contexts_times.get(context.id, ""),
        )
    console.print(table)


def layers(
    document: Optional[Path] = typer.Argument(None, help="Document to inspect (defaults to configured one)"),
    context_ids: Optional[List[int]] = typer.Option(None, "--context", "-c", help="Context to activate (repeatable); defaults to the document's active contexts"),
    queryable: bool = typer.Option(False, "--queryable", "-q", help="Only layers with statistics"),
):
    """List the layers of the active contexts."""
    store = open_store(document)
    state = store.state
    if context_ids:
        unknown = [c for c in context_ids if state.context_by_id(c) is None]
        if unknown:
            typer.echo(f"❌ Unknown context id(s): {', '.join(map(str, unknown))}", err=True)
            raise typer.Exit(1)
        for context_id in list(state.active_context_ids):
            store.commit("toggle_context", context_id=context_id)
        for context_id in dict.fromkeys(context_ids):
            store.commit("toggle_context", context_id=context_id)

    selected = store.queryable_layers if queryable else store.active_layers
    table = Table(title="Queryable layers" if queryable else "Active layers")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Times", justify="right")
    table.add_column("Statistics", justify="right")
    for layer in selected:
        name = layer.name if isinstance(layer, WmsLayer) else ""
        count = len(layer.times) if isinstance(layer, WmsLayer) else 0
        table.add_row(str(layer.id), layer.type, name, str(count), str(len(layer_statistics(layer))))
    console.print(table)
