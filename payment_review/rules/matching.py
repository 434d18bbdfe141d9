"""Keyword matching over free-text clinical notes.

Rules test notes through ``NoteMatcher`` rather than raw substring checks so
that the matching strategy can be replaced (for example by structured
clinical coding input) without touching rule logic. Matching is
case-insensitive substring search; synonyms and rephrasings that do not
contain a listed keyword will not match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable


class NoteMatcher:
    """Case-insensitive keyword matcher over one block of note text."""

    def __init__(self, text: str | None) -> None:
        self.text = (text or "").lower()

    def has(self, phrase: str) -> bool:
        return phrase.lower() in self.text

    def any(self, phrases: Iterable[str]) -> bool:
        return any(self.has(p) for p in phrases)

    def all(self, phrases: Iterable[str]) -> bool:
        return all(self.has(p) for p in phrases)

    def search(self, pattern: str) -> re.Match[str] | None:
        """Regex search over the lowercased text."""
        return re.search(pattern, self.text)

    def __len__(self) -> int:
        return len(self.text)
