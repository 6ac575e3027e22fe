"""Row identifier resolution shared by document retrieval and id search."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

# Checked in priority order
ID_FIELD_CANDIDATES = (":id", "_id", "id", "ID", "uid", "UID")
DEFAULT_ID_FIELD = ":id"

_POSITIONAL_ID = re.compile(r"^row_(\d+)$")


def find_id_field(row: Mapping[str, Any]) -> Optional[str]:
    """First candidate identifier field present in ``row``."""
    for field in ID_FIELD_CANDIDATES:
        if field in row:
            return field
    return None


def extract_id(row: Mapping[str, Any]) -> Optional[str]:
    """Value of the first candidate identifier field that is set."""
    for field in ID_FIELD_CANDIDATES:
        value = row.get(field)
        if value:
            return str(value)
    return None


def positional_id(offset: int) -> str:
    """Synthesized identifier for a row without an identifier field."""
    return f"row_{offset}"


def parse_positional_id(doc_id: str) -> Optional[int]:
    """Offset encoded in a ``row_<N>`` identifier, or None if malformed."""
    match = _POSITIONAL_ID.match(doc_id)
    return int(match.group(1)) if match else None
