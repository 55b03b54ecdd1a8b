"""Generator usage records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Union

from .time import ensure_utc, format_utc_iso8601, parse_utc_iso8601

__all__ = ["FieldValue", "Record"]

FieldValue = Union[str, bool, int, float]

_SCALAR_TYPES = (str, bool, int, float)


def _freeze_languages(languages: Iterable[str] | None) -> tuple[str, ...]:
    if isinstance(languages, str):
        raise ValueError("Languages must be a sequence of strings, not a single string")
    frozen: list[str] = []
    for language in languages or ():
        if not isinstance(language, str):
            raise ValueError(f"Language must be a string, got {type(language).__name__}")
        if language not in frozen:
            frozen.append(language)
    return tuple(frozen)


def _freeze_fields(fields: Mapping[str, Any] | None) -> Mapping[str, FieldValue]:
    frozen: dict[str, FieldValue] = {}
    for name, value in (fields or {}).items():
        if value is None:
            continue
        if not isinstance(value, _SCALAR_TYPES):
            raise ValueError(f"Field {name!r} must be a scalar, got {type(value).__name__}")
        frozen[str(name)] = value
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class Record:
    """One generator invocation.

    Attributes
    ----------
    created_at : datetime
        Creation instant (aware UTC)
    fields : Mapping[str, FieldValue]
        Read-only configuration fields keyed by camelCase name
    id : int | None
        Store-assigned identifier, None until saved
    languages : tuple[str, ...]
        Languages selected for the generated application, without duplicates
    """

    created_at: datetime
    fields: Mapping[str, FieldValue] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    id: int | None = None
    languages: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        object.__setattr__(self, "fields", _freeze_fields(self.fields))
        object.__setattr__(self, "languages", _freeze_languages(self.languages))

    @classmethod
    def create(
        cls,
        created_at: datetime,
        fields: Mapping[str, Any] | None = None,
        record_id: int | None = None,
        languages: Iterable[str] | None = None,
    ) -> Record:
        """Build a record, dropping None-valued fields."""
        return cls(created_at=created_at, fields=fields or {}, id=record_id, languages=languages or ())

    def with_id(self, record_id: int) -> Record:
        """Return a copy carrying the given identifier."""
        return replace(self, id=record_id)

    def get(self, name: str) -> FieldValue | None:
        """Return a field value or None when missing."""
        return self.fields.get(name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "created_at": format_utc_iso8601(self.created_at),
            "fields": dict(self.fields),
            "languages": list(self.languages),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Record:
        """Create from dictionary."""
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = parse_utc_iso8601(created_at)
        return cls.create(created_at, data.get("fields"), data.get("id"), data.get("languages"))
