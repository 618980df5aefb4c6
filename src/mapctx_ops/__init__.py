"""mapctx ops - configuration sources and the store wiring actions to the core."""

from .source import ConfigSource, FileConfigSource
from .store import ConfigStore

__all__ = ["ConfigSource", "ConfigStore", "FileConfigSource"]
