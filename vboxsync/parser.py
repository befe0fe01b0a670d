"""Parsing of VBoxManage ``Key: Value`` text reports into raw records.

The generic parser only splits lines; it keeps every key verbatim and
never interprets values. Field-specific converters such as
:func:`leading_number` are applied by the entity that owns the report.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

UUID_PATTERN = re.compile(r'UUID:\s*(\S+)', re.IGNORECASE)


def _split_line(line: str) -> tuple[str, str] | None:
    key, sep, value = line.partition(':')
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip()


def parse_block(text: str) -> dict[str, str]:
    """Parse a single-entity report.

    The first occurrence of a key wins; a key with nothing after the colon
    maps to an empty string.

    Example:
        >>> parse_block('UUID:   abc\\nDescription:\\n')
        {'UUID': 'abc', 'Description': ''}
    """
    record: dict[str, str] = {}
    for line in (text or '').splitlines():
        pair = _split_line(line)
        if pair is None:
            continue
        record.setdefault(*pair)
    return record


def parse_blocks(text: str, *, marker: str | None = None) -> list[dict[str, str]]:
    """Parse a multi-entity listing into one record per entity.

    A record ends at a blank line, or when a key that is already present
    in the current record (``marker`` when given) appears again.
    """
    records: list[dict[str, str]] = []
    current: dict[str, str] = {}
    for line in (text or '').splitlines():
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            continue
        pair = _split_line(line)
        if pair is None:
            continue
        key, value = pair
        boundary = key == marker if marker is not None else key in current
        if boundary and current:
            records.append(current)
            current = {}
        current.setdefault(key, value)
    if current:
        records.append(current)
    return records


def map_fields(
    record: Mapping[str, str],
    fields: Mapping[str, Iterable[str]],
) -> dict[str, str]:
    """Select attribute values from a raw record.

    ``fields`` maps attribute name to the report keys that may carry it,
    in order of preference. Attributes with no matching key are omitted.
    """
    out: dict[str, str] = {}
    for name, keys in fields.items():
        for key in keys:
            if key in record:
                out[name] = record[key]
                break
    return out


def leading_number(value: str | None) -> str | None:
    """Return the leading numeric token, dropping a unit like ``MBytes``."""
    if value is None:
        return None
    match = re.match(r'\s*(\d+(?:\.\d+)?)', value)
    return match.group(1) if match else None


def strip_parenthetical(value: str | None) -> str | None:
    """Drop trailing ``(...)`` descriptions, e.g. ``FooVM (UUID: ...)``."""
    if value is None:
        return None
    return re.sub(r'\s*\([^)]*\)', '', value).strip()


def first_word(value: str | None) -> str | None:
    if value is None:
        return None
    parts = value.split()
    return parts[0] if parts else ''


def uuid_from_output(text: str) -> str | None:
    """Find the UUID a create/clone command reports for the new medium."""
    match = UUID_PATTERN.search(text or '')
    return match.group(1).strip('{}.') if match else None
