"""Registries — map type strings to pull adapter classes and source types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from newsfeed.ingestion.adapter import PullAdapter
    from newsfeed.ingestion.normalize import SourceType

_REGISTRY: dict[str, type[PullAdapter]] = {}
_SOURCE_TYPES: dict[str, SourceType] = {}


def register_adapter(type_name: str, cls: type[PullAdapter]) -> None:
    """Register a pull adapter class for a given type name."""
    _REGISTRY[type_name] = cls


def get_adapter_class(type_name: str) -> type[PullAdapter] | None:
    """Look up an adapter class by type name. Returns None if not found."""
    return _REGISTRY.get(type_name)


def registered_types() -> list[str]:
    """Return a sorted list of all registered adapter type names."""
    return sorted(_REGISTRY)


def register_source_type(source_type: SourceType) -> None:
    """Register a source type under its own name."""
    _SOURCE_TYPES[source_type.name] = source_type


def get_source_type(name: str) -> SourceType | None:
    """Look up a source type by name. Returns None if not found."""
    return _SOURCE_TYPES.get(name)


def registered_source_types() -> list[str]:
    """Return a sorted list of all registered source type names."""
    return sorted(_SOURCE_TYPES)
