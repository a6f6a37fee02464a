"""First-write-wins merging of provider fields into the metadata accumulator."""

from __future__ import annotations

import logging
import re
from typing import Any

from metadata.types import Metadata

_LOG = logging.getLogger(__name__)
_WS_RE = re.compile(r"\s+")
_YEAR_RE = re.compile(r"(\d{4})")
_RUNTIME_HOURS_RE = re.compile(r"(\d+)\s*h", re.IGNORECASE)
_RUNTIME_MINUTES_RE = re.compile(r"(\d+)\s*m", re.IGNORECASE)
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")

_MERGEABLE_FIELDS = {"imdb_id", "tmdb_id", "title", "year", "runtime", "episode_title"}


def merge_field(metadata: Metadata, field: str, value: Any, source: str, *, overwrite: bool = False) -> bool:
    """Set ``field`` from ``source`` unless it already holds a value.

    Empty values never overwrite anything. ``overwrite`` lets a more specific
    source (an episode runtime over a series runtime) replace a set value.
    Returns ``True`` when the field changed.
    """
    if field not in _MERGEABLE_FIELDS:
        raise ValueError(f"unknown metadata field: {field}")
    if not _has_value(value):
        return False
    if _has_value(getattr(metadata, field)) and not overwrite:
        return False
    setattr(metadata, field, value)
    metadata.sources[field] = source
    _LOG.info("metadata_field_source field=%s source=%s", field, source)
    return True


def merge_fields(metadata: Metadata, source: str, values: dict[str, Any] | None) -> list[str]:
    """Merge every known field in ``values``; returns the names that changed."""
    changed = []
    for field, value in (values or {}).items():
        if field in _MERGEABLE_FIELDS and merge_field(metadata, field, value, source):
            changed.append(field)
    return changed


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def normalize_string(value: Any) -> str | None:
    if value is None:
        return None
    text = _WS_RE.sub(" ", str(value)).strip()
    if not text or text.upper() == "N/A":
        return None
    return text


def parse_year(value: Any) -> int | None:
    """Return the leading calendar year of a provider date such as ``2010-07-15``."""
    if value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    match = _YEAR_RE.search(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_runtime_minutes(value: Any) -> int | None:
    """Coerce a provider runtime into whole minutes.

    Handles plain integers, ``[45, 50]`` lists (first entry), ``"148 min"``
    and ``"2h 28m"``. ``"N/A"``, zero and unparseable values give ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (list, tuple)):
        for entry in value:
            parsed = parse_runtime_minutes(entry)
            if parsed:
                return parsed
        return None
    if isinstance(value, (int, float)):
        minutes = int(value)
        return minutes if minutes > 0 else None
    text = str(value).strip()
    if not text or text.upper() == "N/A":
        return None
    hours = _RUNTIME_HOURS_RE.search(text)
    if hours:
        minutes_match = _RUNTIME_MINUTES_RE.search(text[hours.end():])
        total = int(hours.group(1)) * 60 + (int(minutes_match.group(1)) if minutes_match else 0)
        return total or None
    match = _LEADING_INT_RE.match(text)
    if not match:
        return None
    minutes = int(match.group(1))
    return minutes if minutes > 0 else None
