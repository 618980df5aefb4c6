"""Application configuration for mapctx.

The effective config is built by layering sources (later wins):

1) System defaults (hardcoded)
2) <project>/.mapctx/config.toml (project-level settings)
3) Explicit config file (``--config-file``)
4) Environment overrides: MAPCTX_LOCALE, MAPCTX_DOCUMENT

Relative paths in ``[source]`` are resolved against the project root.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

logger = logging.getLogger(__name__)

PROJECT_CONFIG_DIR = ".mapctx"
PROJECT_CONFIG_FILE = "config.toml"
LOG_LEVELS = ("debug", "info", "warning", "error")

SYSTEM_DEFAULTS: Dict[str, Any] = {
    "i18n": {"locales": ["en"], "default_locale": "en"},
    "source": {
        "document": "layers.json",
        "versions_dir": None,
        "keep_versions": 20,
        "schema_url": None,
    },
    "log": {"verbosity": "warning", "debug": False},
}


class I18nConfig(BaseModel):
    """Locales available for labels; the first one is the fallback."""

    locales: List[str] = Field(..., min_length=1)
    default_locale: str

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_default_locale(self) -> "I18nConfig":
        if self.default_locale not in self.locales:
            raise ValueError(f"default_locale {self.default_locale!r} is not in locales")
        return self


class SourceConfig(BaseModel):
    """Where the configuration document and its backups live."""

    document: Path
    versions_dir: Optional[Path] = Field(None, description="Defaults to <document dir>/.versions")
    keep_versions: int = Field(20, ge=1)
    schema_url: Optional[str] = Field(None, description="Written as $schema on save")

    model_config = ConfigDict(extra="forbid")


class LogConfig(BaseModel):
    verbosity: str = "warning"
    debug: bool = False

    model_config = ConfigDict(extra="forbid")

    @field_validator("verbosity")
    @classmethod
    def validate_verbosity(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"verbosity must be one of {', '.join(LOG_LEVELS)}")
        return value

    @property
    def level(self) -> int:
        if self.debug:
            return logging.DEBUG
        return getattr(logging, self.verbosity.upper())


class AppConfig(BaseModel):
    """Effective application configuration."""

    project_root: Path
    i18n: I18nConfig
    source: SourceConfig
    log: LogConfig

    model_config = ConfigDict(extra="forbid")


class ConfigLoader:
    """Load and resolve application configuration."""

    @staticmethod
    def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = dict(base)
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _read_toml_optional(path: Path) -> Dict[str, Any]:
        """Read TOML config file; return {} if not found."""
        if not path.exists():
            return {}
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except Exception as e:
            raise ConfigError(f"Failed to load TOML from {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Config TOML must be a table: {path}")
        return data

    @staticmethod
    def get_project_config_path(project_root: Path) -> Path:
        return project_root / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE

    @staticmethod
    def _env_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        locale = (env.get("MAPCTX_LOCALE") or "").strip()
        if locale:
            overrides.setdefault("i18n", {})["default_locale"] = locale
        document = (env.get("MAPCTX_DOCUMENT") or "").strip()
        if document:
            overrides.setdefault("source", {})["document"] = document
        return overrides

    @staticmethod
    def _resolve_paths(data: Dict[str, Any], project_root: Path) -> Dict[str, Any]:
        source = dict(data.get("source") or {})
        for key in ("document", "versions_dir"):
            value = source.get(key)
            if isinstance(value, str) and value.strip():
                candidate = Path(value.strip()).expanduser()
                source[key] = candidate if candidate.is_absolute() else (project_root / candidate)
        return {**data, "source": source}

    @staticmethod
    def load_effective_config(
        project_root: Optional[Path] = None,
        *,
        config_file: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Merge all layers into a plain dict (paths resolved, not yet validated)."""
        root = (project_root or Path.cwd()).resolve()
        effective = ConfigLoader._deep_merge({}, SYSTEM_DEFAULTS)

        project_path = ConfigLoader.get_project_config_path(root)
        effective = ConfigLoader._deep_merge(effective, ConfigLoader._read_toml_optional(project_path))

        if config_file is not None:
            if not config_file.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            effective = ConfigLoader._deep_merge(effective, ConfigLoader._read_toml_optional(config_file))

        effective = ConfigLoader._deep_merge(effective, ConfigLoader._env_overrides(environ))
        return ConfigLoader._resolve_paths(effective, root)

    @staticmethod
    def load(
        project_root: Optional[Path] = None,
        *,
        config_file: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> AppConfig:
        """
        Load the effective application config.

        Raises:
            ConfigError: If a config file cannot be read or the merged config is invalid
        """
        root = (project_root or Path.cwd()).resolve()
        effective = ConfigLoader.load_effective_config(root, config_file=config_file, environ=environ)
        try:
            config = AppConfig(project_root=root, **effective)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        logger.debug("Effective config: %s", config.model_dump(mode="json"))
        return config
