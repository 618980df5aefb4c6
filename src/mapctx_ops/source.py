"""Configuration sources: where documents are loaded from, saved to and restored."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Protocol

from mapctx_core.errors import SourceError, VersionNotFoundError

logger = logging.getLogger(__name__)

VERSION_SUFFIX = ".json"


class ConfigSource(Protocol):
    """Persistence collaborator protocol."""

    def load(self, locale: str) -> Dict[str, Any]:
        """Return the raw (not yet validated) configuration document."""
        ...

    def save(self, document: Dict[str, Any]) -> None:
        """Persist a serialized document."""
        ...

    def list_versions(self) -> List[str]:
        """Backup versions, newest first."""
        ...

    def restore(self, version: str) -> None:
        """Make ``version`` the current document."""
        ...


class FileConfigSource:
    """JSON document on disk with timestamped backups.

    Every save and restore first snapshots the current document into the
    versions directory, keeping at most ``keep_versions`` snapshots. The
    document carries labels for every locale, so ``load`` ignores the locale.
    """

    def __init__(self, document_path: Path, versions_dir: Path | None = None, keep_versions: int = 20):
        self.document_path = document_path
        self.versions_dir = versions_dir or (document_path.parent / ".versions")
        self.keep_versions = keep_versions

    def load(self, locale: str) -> Dict[str, Any]:
        if not self.document_path.exists():
            raise SourceError("load", f"Document not found: {self.document_path}")
        try:
            with open(self.document_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SourceError("load", f"Invalid JSON in {self.document_path}: {e}")
        except OSError as e:
            raise SourceError("load", f"Failed to read {self.document_path}: {e}")
        logger.debug("Loaded %s (locale=%s)", self.document_path, locale)
        return data

    def save(self, document: Dict[str, Any]) -> None:
        self._snapshot("save")
        self._write("save", json.dumps(document, indent=2, ensure_ascii=False) + "\n")
        logger.info("Saved configuration to %s", self.document_path)

    def list_versions(self) -> List[str]:
        if not self.versions_dir.exists():
            return []
        names = [p.stem for p in self.versions_dir.glob(f"*{VERSION_SUFFIX}") if p.is_file()]
        return sorted(names, reverse=True)

    def restore(self, version: str) -> None:
        available = self.list_versions()
        if version not in available:
            raise VersionNotFoundError(version, available)
        try:
            content = (self.versions_dir / f"{version}{VERSION_SUFFIX}").read_text(encoding="utf-8")
        except OSError as e:
            raise SourceError("restore", f"Failed to read version {version}: {e}")
        self._snapshot("restore")
        self._write("restore", content)
        logger.info("Restored %s from version %s", self.document_path, version)

    def _snapshot(self, operation: str) -> None:
        """Copy the current document into the versions directory and prune old ones."""
        if not self.document_path.exists():
            return
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        try:
            self.versions_dir.mkdir(parents=True, exist_ok=True)
            target = self.versions_dir / f"{stamp}{VERSION_SUFFIX}"
            target.write_text(self.document_path.read_text(encoding="utf-8"), encoding="utf-8")
        except OSError as e:
            raise SourceError(operation, f"Failed to back up {self.document_path}: {e}")

        for stale in self.list_versions()[self.keep_versions:]:
            (self.versions_dir / f"{stale}{VERSION_SUFFIX}").unlink(missing_ok=True)

    def _write(self, operation: str, content: str) -> None:
        tmp_path = self.document_path.with_name(f".{self.document_path.name}.tmp")
        try:
            self.document_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.document_path)
        except OSError as e:
            raise SourceError(operation, f"Failed to write {self.document_path}: {e}")
