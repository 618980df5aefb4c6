"""mapctx core - in-memory map context configuration model."""

from .__version__ import __version__, __version_info__

from .config import AppConfig, ConfigLoader
from .derived import active_layers, context_layers, queryable_layers, set_contexts_times
from .models import (
    BingAerialLayer,
    Context,
    Group,
    Layer,
    LayerBase,
    OsmLayer,
    WmsLayer,
    layer_statistics,
    layer_times,
)
from .mutations import MUTATIONS, commit
from .schema import (
    ConfigDocument,
    document_json_schema,
    parse_document,
    parse_layers,
    validate_document,
)
from .state import MapConfigState, build_state, to_document
from .tree import NodeArena
from .errors import (
    ConfigError,
    MapConfigError,
    SchemaError,
    SourceError,
    VersionNotFoundError,
    Violation,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Config
    "AppConfig",
    "ConfigLoader",
    # Models
    "BingAerialLayer",
    "Context",
    "Group",
    "Layer",
    "LayerBase",
    "OsmLayer",
    "WmsLayer",
    "layer_statistics",
    "layer_times",
    # Schema
    "ConfigDocument",
    "document_json_schema",
    "parse_document",
    "parse_layers",
    "validate_document",
    # State and tree
    "MapConfigState",
    "NodeArena",
    "build_state",
    "to_document",
    # Mutations
    "MUTATIONS",
    "commit",
    # Derived
    "active_layers",
    "context_layers",
    "queryable_layers",
    "set_contexts_times",
    # Errors
    "ConfigError",
    "MapConfigError",
    "SchemaError",
    "SourceError",
    "VersionNotFoundError",
    "Violation",
]
