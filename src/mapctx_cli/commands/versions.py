"""Backup versions of the configured document."""

from __future__ import annotations

import typer

from ..util import open_store

app = typer.Typer(help="Backup versions")


@app.command("list")
def list_versions():
    """List backup versions, newest first."""
    store = open_store()
    versions = store.list_versions()
    if not versions:
        typer.echo("No versions found")
        return
    for version in versions:
        typer.echo(version)


@app.command("restore")
def restore(version: str = typer.Argument(..., help="Version name from 'versions list'")):
    """Restore a backup version and reload it."""
    store = open_store()
    if not store.restore_backup(version):
        raise typer.Exit(1)
    typer.echo(f"✓ Restored {version}")
