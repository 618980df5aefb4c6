"""ConfigStore: one configuration state plus the actions that feed it.

Mutations are synchronous and go through :meth:`ConfigStore.commit`.
Actions talk to the configuration source; when the source fails (or the
document is rejected) the state is left exactly as it was and the failure
is passed to the notifier.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from mapctx_core import derived
from mapctx_core.errors import MapConfigError, SchemaError, SourceError
from mapctx_core.models import LayerBase
from mapctx_core.mutations import commit as commit_mutation
from mapctx_core.schema import parse_document
from mapctx_core.state import DEFAULT_LOCALES, MapConfigState, build_state, to_document

from .source import ConfigSource

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def _log_notifier(message: str) -> None:
    logger.warning(message)


class ConfigStore:
    """Single-writer owner of the in-memory configuration."""

    def __init__(
        self,
        source: ConfigSource,
        *,
        locale: str = DEFAULT_LOCALES[0],
        locales: Sequence[str] = DEFAULT_LOCALES,
        notifier: Optional[Notifier] = None,
        schema_url: Optional[str] = None,
    ):
        self.source = source
        self.locale = locale
        self.locales = list(locales)
        self.notifier = notifier or _log_notifier
        self.schema_url = schema_url
        self.state: Optional[MapConfigState] = None

    def _require_state(self) -> MapConfigState:
        if self.state is None:
            raise RuntimeError("No configuration loaded; call fetch_config() first")
        return self.state

    def _notify(self, error: MapConfigError) -> None:
        logger.debug("Action failed: %s", error)
        self.notifier(str(error))

    # Mutations

    def commit(self, name: str, **payload: Any) -> Any:
        """Apply a named mutation to the loaded state."""
        return commit_mutation(self._require_state(), name, **payload)

    # Getters

    @property
    def active_layers(self) -> List[LayerBase]:
        return derived.active_layers(self._require_state())

    @property
    def queryable_layers(self) -> List[LayerBase]:
        return derived.queryable_layers(self._require_state())

    # Actions

    def fetch_config(self) -> bool:
        """Load, validate and install the configuration from the source."""
        try:
            raw = self.source.load(self.locale)
            document = parse_document(raw)
        except (SourceError, SchemaError) as e:
            self._notify(e)
            return False

        if self.state is None:
            self.state = build_state(document, self.locale, self.locales)
        else:
            self.commit("receive_config", document=document)
        return True

    def save(self) -> bool:
        """Serialize the tree and persist it; detached nodes are dropped once saved."""
        state = self._require_state()
        document = to_document(state, schema_url=self.schema_url)
        try:
            self.source.save(document)
        except SourceError as e:
            self._notify(e)
            return False
        self.commit("prune_orphans")
        return True

    def list_versions(self) -> List[str]:
        try:
            return self.source.list_versions()
        except SourceError as e:
            self._notify(e)
            return []

    def restore_backup(self, version: str) -> bool:
        """Restore ``version`` in the source, then rebuild from a fresh load."""
        try:
            self.source.restore(version)
        except SourceError as e:
            self._notify(e)
            return False
        return self.fetch_config()
