from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterable, Optional

from radarmap.ingestion.schemas import FieldCandidateList, Row

_WHITESPACE = re.compile(r"\s+")


def normalize_header(name: Any) -> str:
    """Fold a header for comparison: lower-case, no diacritics, single-spaced, trimmed."""

    text = unicodedata.normalize("NFD", str(name).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", text).strip()


def resolve(row: Row, candidates: Iterable[str]) -> Optional[str]:
    """Return the row's column name matching the first acceptable candidate, if any.

    When two columns fold to the same header the later one in iteration order wins.
    """

    by_normalized = {normalize_header(key): key for key in row.keys()}
    for candidate in candidates:
        key = by_normalized.get(normalize_header(candidate))
        if key is not None:
            return key
    return None


def resolve_first(row: Row, candidate_lists: Iterable[FieldCandidateList]) -> Optional[str]:
    for candidates in candidate_lists:
        key = resolve(row, candidates)
        if key is not None:
            return key
    return None
