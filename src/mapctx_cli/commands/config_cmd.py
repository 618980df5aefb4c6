from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import tomli_w
import typer

from mapctx_core.config import ConfigLoader, SYSTEM_DEFAULTS

from ..util import load_app_config

app = typer.Typer(help="Configuration inspection and setup")


def _strip_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_strip_nulls(v) for v in value if v is not None]
    return value


@app.command("init")
def init(
    locales: Optional[List[str]] = typer.Option(None, "--locale", help="Available locale (repeatable, first is the fallback)"),
    document: str = typer.Option("layers.json", "--document", help="Configuration document path"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
):
    """Write .mapctx/config.toml for the current project."""
    locales = locales or ["en"]
    path = ConfigLoader.get_project_config_path(Path.cwd())
    if path.exists() and not force:
        typer.echo(f"❌ {path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)

    payload = json.loads(json.dumps(SYSTEM_DEFAULTS))
    payload["i18n"] = {"locales": locales, "default_locale": locales[0]}
    payload["source"]["document"] = document
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomli_w.dumps(_strip_nulls(payload)), encoding="utf-8")
    typer.echo(f"✓ Wrote {path}")


@app.command("show")
def show():
    """Print the effective configuration as JSON."""
    config = load_app_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))
