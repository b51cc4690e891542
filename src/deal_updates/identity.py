"""Deal identity and canonical note history."""

import hashlib
import re

NOTES_SEPARATOR = "\n---\n"

_WHITESPACE = re.compile(r"\s+")


def normalize(value: str | None) -> str:
    """Trim, lowercase, collapse internal whitespace runs to one space."""
    return _WHITESPACE.sub(" ", (value or "").strip().lower())


def make_deal_key(name: str | None, owner: str | None) -> str:
    """
    Identity used for deduplication and diff matching.
    Two rows with the same key are the same deal, whatever else differs.
    """
    return normalize(name) + "||" + normalize(owner)


def canonicalize_notes(notes: list[str]) -> tuple[str, int]:
    """
    Trim, drop empties, dedupe exactly, sort, join with NOTES_SEPARATOR.
    Returns (canonical, distinct_count).
    """
    unique = sorted({n.strip() for n in notes if n and n.strip()})
    return NOTES_SEPARATOR.join(unique), len(unique)


def notes_hash(canonical: str) -> str:
    """SHA-256 hex digest of the canonical notes; change fingerprint and summary cache key."""
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
