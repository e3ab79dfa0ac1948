from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from ..models.aliases import DEFAULT_ROOM_KEYWORDS, ColumnAliasSet

"""Header alias resolution.

Maps the uploader's free-text headers onto the logical fields the normalizer
understands. Matching is case-insensitive exact equality: "EMPL ID" and
"empl id" both match the alias "Empl ID", "Employee ID" does not.
"""

__all__ = [
    "headers_for_alias",
    "lookup_value",
    "resolve_columns",
    "room_candidate_headers",
    "scan_room_fallback",
]


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def headers_for_alias(headers: Iterable[str], alias: str) -> list[str]:
    """Headers equal to ``alias`` ignoring case, an exact-cased header first."""
    target = alias.lower()
    matches = [h for h in headers if h.lower() == target]
    matches.sort(key=lambda h: h != alias)  # stable: keeps header order otherwise
    return matches


def lookup_value(row: Mapping[str, str | None], spellings: Sequence[str]) -> str | None:
    """First non-blank trimmed value among the alias candidates, in alias order."""
    for alias in spellings:
        for header in headers_for_alias(row.keys(), alias):
            value = _clean(row.get(header))
            if value is not None:
                return value
    return None


def room_candidate_headers(
    headers: Iterable[str], keywords: Sequence[str] = DEFAULT_ROOM_KEYWORDS
) -> list[str]:
    """Headers whose lower-case text contains any room keyword, in header order."""
    return [h for h in headers if any(k in h.lower() for k in keywords)]


def scan_room_fallback(
    row: Mapping[str, str | None], keywords: Sequence[str] = DEFAULT_ROOM_KEYWORDS
) -> str | None:
    """Room value for one row when no room alias produced one.

    The scan runs per row: two rows may take their room from different
    columns when one of them leaves the first candidate blank.
    """
    for header in room_candidate_headers(row.keys(), keywords):
        value = _clean(row.get(header))
        if value is not None:
            return value
    return None


def resolve_columns(
    headers: Sequence[str],
    aliases: ColumnAliasSet,
    room_keywords: Sequence[str] = DEFAULT_ROOM_KEYWORDS,
) -> dict[str, str | None]:
    """Report which header each logical field was detected under.

    The first alias (in priority order) that matches any header wins. When no
    room alias matches, the first keyword candidate header is reported. The
    mapping is informational; row extraction re-resolves per row.
    """
    mapping: dict[str, str | None] = {}
    for field, spellings in aliases.items():
        detected = None
        for alias in spellings:
            found = headers_for_alias(headers, alias)
            if found:
                detected = found[0]
                break
        mapping[field] = detected

    if mapping.get("room") is None:
        candidates = room_candidate_headers(headers, room_keywords)
        mapping["room"] = candidates[0] if candidates else None
    return mapping
