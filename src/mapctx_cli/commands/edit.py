"""Edit the hierarchy of the configured document (groups, contexts, items)."""

from __future__ import annotations

from typing import List, Optional

import typer

from mapctx_ops import ConfigStore

from ..util import open_store

group_app = typer.Typer(help="Group operations")
context_app = typer.Typer(help="Context operations")
item_app = typer.Typer(help="Operations on groups and contexts alike")


def _labels(store: ConfigStore, label: Optional[str]) -> Optional[dict]:
    return {store.locale: label} if label else None


def _save_or_exit(store: ConfigStore) -> None:
    if not store.save():
        raise typer.Exit(1)


@group_app.command("add")
def add_group(
    parent: Optional[int] = typer.Option(None, "--parent", "-p", help="Parent group id (root by default)"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Label in the default locale"),
):
    """Add an empty group."""
    store = open_store()
    group_id = store.commit("add_group", parent_id=parent, labels=_labels(store, label))
    if group_id is None:
        typer.echo(f"❌ Parent group not found: {parent}", err=True)
        raise typer.Exit(1)
    _save_or_exit(store)
    typer.echo(f"✓ Added group #{group_id}")


@context_app.command("add")
def add_context(
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Label in the default locale"),
    layer_ids: Optional[List[int]] = typer.Option(None, "--layer", help="Layer id (repeatable)"),
    active: bool = typer.Option(False, "--active", help="Active by default"),
):
    """Add a context to the root group."""
    layer_ids = layer_ids or []
    store = open_store()
    context_id = store.commit("add_context", labels=_labels(store, label))
    context = store.state.arena.get_context(context_id)
    if layer_ids or active:
        store.commit(
            "save_context",
            id=context_id,
            label=context.label,
            labels=context.labels,
            info_file=context.info_file,
            active=active,
            inline_legend_url=context.inline_legend_url,
            layer_ids=layer_ids,
        )
    dropped = [layer_id for layer_id in layer_ids if layer_id not in context.layers]
    _save_or_exit(store)
    typer.echo(f"✓ Added context #{context_id} with {len(context.layers)} layer(s)")
    if dropped:
        typer.echo(f"⚠️  Unknown layer id(s) ignored: {', '.join(map(str, dropped))}")


@item_app.command("delete")
def delete_item(item_id: int = typer.Argument(..., help="Group or context id")):
    """Remove a group or context from its parent (descendants go with it on save)."""
    store = open_store()
    if not store.commit("delete_item", id=item_id):
        typer.echo(f"❌ Item not found or cannot be deleted: {item_id}", err=True)
        raise typer.Exit(1)
    _save_or_exit(store)
    typer.echo(f"✓ Deleted #{item_id}")


@item_app.command("move")
def move_item(
    item_id: int = typer.Argument(..., help="Group or context id"),
    group_id: int = typer.Argument(..., help="Target group id"),
    position: Optional[int] = typer.Option(None, "--position", help="Index in the target group (end by default)"),
):
    """Move a group or context into another group."""
    store = open_store()
    if not store.commit("move_item", id=item_id, group_id=group_id, position=position):
        typer.echo(f"❌ Cannot move #{item_id} into #{group_id}", err=True)
        raise typer.Exit(1)
    _save_or_exit(store)
    typer.echo(f"✓ Moved #{item_id} into #{group_id}")
