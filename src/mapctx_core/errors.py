"""Exception taxonomy for mapctx-core."""

from dataclasses import dataclass
from typing import List, Optional


class MapConfigError(Exception):
    """Base exception for all map configuration errors."""

    pass


# Config errors


class ConfigError(MapConfigError):
    """Failed to load the application configuration."""

    pass


# Schema errors


@dataclass(frozen=True)
class Violation:
    """A single schema violation: dotted path to the offending value and why."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.reason}"


class SchemaError(MapConfigError):
    """Configuration document failed schema validation."""

    def __init__(self, violations: List[Violation]) -> None:
        self.violations = violations
        violation_list = "\n".join(f"  - {v}" for v in violations)
        super().__init__(f"Schema validation failed:\n{violation_list}")


# Source (transport / backend) errors


class SourceError(MapConfigError):
    """A configuration source failed to load, save or restore."""

    def __init__(self, operation: str, details: str) -> None:
        self.operation = operation
        self.details = details
        super().__init__(f"{operation} failed: {details}")


class VersionNotFoundError(SourceError):
    """Requested backup version does not exist."""

    def __init__(self, version: str, available: Optional[List[str]] = None) -> None:
        self.version = version
        self.available = available or []
        super().__init__("restore", f"Version not found: {version}")
