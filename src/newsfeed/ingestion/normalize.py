"""Normalization — map source-specific raw items onto the canonical Activity."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from newsfeed.errors import MalformedInput
from newsfeed.ingestion.registry import get_source_type

logger = logging.getLogger(__name__)

Primitive = Union[str, int, float, bool]

_PRIMITIVE_TYPES = (str, int, float, bool)


@dataclass(frozen=True)
class Activity:
    """Canonical record of one piece of external content."""

    actor: str
    verb: str
    object: str
    title: str = ""
    foreign_id: str | None = None
    extra: dict[str, Primitive] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the payload shape stored by the feed engine."""
        data: dict[str, Any] = dict(self.extra)
        data.update(
            actor=self.actor,
            verb=self.verb,
            object=self.object,
            title=self.title,
        )
        if self.foreign_id is not None:
            data["foreign_id"] = self.foreign_id
        return data


@dataclass(frozen=True)
class SourceType:
    """Field-mapping table for one external item shape.

    ``extra_fields`` maps raw field names to the canonical extension field
    they are carried through as. ``object_field`` is always required;
    ``required_fields`` lists any further raw fields that must be present.
    """

    name: str
    actor: str
    verb: str
    object_field: str
    title_field: str = "title"
    foreign_id_field: str | None = None
    extra_fields: dict[str, str] = field(default_factory=dict)
    required_fields: tuple[str, ...] = ()


def _present(raw: Mapping[str, Any], key: str) -> Any:
    """Return raw[key], or None when it is missing, null, or blank."""
    value = raw.get(key)
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _validate_raw_item(source_type: SourceType, raw: Mapping[str, Any]) -> list[str]:
    """Check the raw item against the source type's required fields."""
    errors: list[str] = []
    required = (source_type.object_field, *source_type.required_fields)
    for key in dict.fromkeys(required):
        if _present(raw, key) is None:
            errors.append(f"'{key}' is required for source type '{source_type.name}'")
    return errors


def resolve_source_type(source_type: str | SourceType) -> SourceType:
    """Accept a source type or its registered name."""
    if isinstance(source_type, SourceType):
        return source_type
    resolved = get_source_type(source_type)
    if resolved is None:
        raise MalformedInput(f"Unknown source type '{source_type}'")
    return resolved


def normalize(source_type: str | SourceType, raw: Mapping[str, Any]) -> Activity:
    """Transform a raw external item into an Activity.

    Pure: no I/O, no clock, no random ids, so identical input always yields
    an identical Activity. Extension fields whose values are not primitives
    are dropped.

    Raises MalformedInput if the item is not a mapping or lacks a required
    field.
    """
    st = resolve_source_type(source_type)
    if not isinstance(raw, Mapping):
        raise MalformedInput(
            f"Raw item for '{st.name}' must be an object, got {type(raw).__name__}"
        )

    errors = _validate_raw_item(st, raw)
    if errors:
        raise MalformedInput(f"Invalid raw item: {'; '.join(errors)}")

    title = _present(raw, st.title_field)
    foreign_id = _present(raw, st.foreign_id_field) if st.foreign_id_field else None

    extra: dict[str, Primitive] = {}
    for raw_key, canonical in st.extra_fields.items():
        value = raw.get(raw_key)
        if value is None:
            continue
        if isinstance(value, _PRIMITIVE_TYPES):
            extra[canonical] = value
        else:
            logger.debug("Dropping non-primitive field '%s' from %s item", raw_key, st.name)

    return Activity(
        actor=st.actor,
        verb=st.verb,
        object=str(_present(raw, st.object_field)).strip(),
        title=str(title).strip() if title is not None else "",
        foreign_id=str(foreign_id) if foreign_id is not None else None,
        extra=extra,
    )
