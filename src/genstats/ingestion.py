"""Generator configuration ingestion.

Turns a generator configuration payload (the content of a ``.yo-rc.json``
file) into a :class:`Record`. Only the keys known to :class:`FieldSelector`
are kept, together with the list of selected languages.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .core.fields import FieldSelector
from .core.records import Record
from .core.time import get_current_utc, parse_utc_iso8601
from .observability import get_logger

__all__ = ["GENERATOR_NODE", "IngestionError", "parse_configuration"]

GENERATOR_NODE = "generator-jhipster"
CREATION_DATE_KEY = "creationDate"

log = get_logger("ingest")

LANGUAGES_KEY = FieldSelector.LANGUAGES.value

_KNOWN_KEYS = {selector.value for selector in FieldSelector} - {LANGUAGES_KEY}


class IngestionError(ValueError):
    """Raised when a configuration payload cannot be turned into a record."""


def _load_payload(payload: str | bytes | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    try:
        document = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise IngestionError(f"Configuration is not valid JSON: {exc}") from exc
    if not isinstance(document, Mapping):
        raise IngestionError("Configuration must be a JSON object")
    return document


def _creation_date(node: Mapping[str, Any]) -> datetime | None:
    raw = node.get(CREATION_DATE_KEY)
    if raw is None:
        return None
    try:
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            # generator writes epoch milliseconds
            return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
        return parse_utc_iso8601(str(raw))
    except (ValueError, OverflowError, OSError) as exc:
        raise IngestionError(f"Invalid {CREATION_DATE_KEY}: {raw!r}") from exc


def _selected_languages(node: Mapping[str, Any]) -> list[str]:
    raw = node.get(LANGUAGES_KEY)
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(language, str) for language in raw):
        raise IngestionError(f"'{LANGUAGES_KEY}' must be a list of language keys, got {raw!r}")
    return raw


def parse_configuration(
    payload: str | bytes | Mapping[str, Any],
    created_at: datetime | None = None,
) -> Record:
    """Build a record from a generator configuration payload.

    Parameters
    ----------
    payload
        JSON text or already decoded mapping with a "generator-jhipster" node
    created_at
        Creation instant; defaults to the node's "creationDate" or now (UTC)

    Returns
    -------
    Record
        Unsaved record

    Raises
    ------
    IngestionError
        If the payload is not JSON, lacks the generator node, the node is not
        an object, or "languages" is not a list of strings

    Example
    -------
    >>> record = parse_configuration('{"generator-jhipster": {"buildTool": "maven"}}')
    >>> record.get("buildTool")
    'maven'
    """
    document = _load_payload(payload)
    node = document.get(GENERATOR_NODE)
    if node is None:
        raise IngestionError(f"Configuration has no '{GENERATOR_NODE}' node")
    if not isinstance(node, Mapping):
        raise IngestionError(f"'{GENERATOR_NODE}' must be a JSON object")

    fields = {}
    skipped = []
    for key, value in node.items():
        if key not in _KNOWN_KEYS:
            continue
        if value is None or isinstance(value, (str, bool, int, float)):
            fields[key] = value
        else:
            skipped.append(key)

    if skipped:
        log.debug(f"Skipped non-scalar configuration keys: {', '.join(sorted(skipped))}")

    if created_at is None:
        created_at = _creation_date(node) or get_current_utc()

    record = Record.create(created_at, fields, languages=_selected_languages(node))
    log.debug(f"Parsed configuration with {len(record.fields)} known fields and {len(record.languages)} languages")
    return record
