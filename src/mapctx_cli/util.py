from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer

from mapctx_core.config import AppConfig, ConfigLoader
from mapctx_core.errors import ConfigError
from mapctx_ops import ConfigStore, FileConfigSource

# Global state set by the root callback
_global_config_file: Optional[Path] = None
_global_verbose: bool = False


def set_global_config_file(config_file: Optional[Path]) -> None:
    """Set (or clear) the global config file path for use by utility functions."""
    global _global_config_file
    _global_config_file = config_file.resolve() if config_file else None


def get_global_config_file() -> Optional[Path]:
    """Get the global config file path if set."""
    return _global_config_file


def set_global_verbose(verbose: bool) -> None:
    global _global_verbose
    _global_verbose = verbose


def configure_stdio() -> None:
    """Make CLI output robust across Windows console encodings.

    Tree and status glyphs are not encodable in cp1252; replace them instead
    of aborting the command with UnicodeEncodeError.
    """

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        try:
            stream.reconfigure(errors="replace")
        except Exception:
            continue


def configure_logging(config: AppConfig) -> None:
    level = logging.DEBUG if _global_verbose else config.log.level
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(level)


def load_app_config() -> AppConfig:
    """Load the effective config for the current directory or exit with an error."""
    try:
        config = ConfigLoader.load(Path.cwd(), config_file=get_global_config_file())
    except ConfigError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(2)
    configure_logging(config)
    return config


def resolve_document_path(document: Optional[Path], config: AppConfig) -> Path:
    return document.resolve() if document else config.source.document


def open_store(document: Optional[Path] = None) -> ConfigStore:
    """Build a store on the configured (or given) document and load it."""
    config = load_app_config()
    source = FileConfigSource(
        resolve_document_path(document, config),
        versions_dir=config.source.versions_dir,
        keep_versions=config.source.keep_versions,
    )
    store = ConfigStore(
        source,
        locale=config.i18n.default_locale,
        locales=config.i18n.locales,
        notifier=lambda message: typer.echo(f"❌ {message}", err=True),
        schema_url=config.source.schema_url,
    )
    if not store.fetch_config():
        raise typer.Exit(1)
    return store
