"""
species_lookup.py — Species Matching Utility
---------------------------------------------

Provides species matching against the in-memory species directory with:

* Accent- and case-insensitive normalization of species labels
* Exact match on the normalized key
* Fuzzy fallback using bidirectional substring containment

Used by the detection pipeline to map labels returned by the classifier
to the canonical names stored in the `species` table.

The fuzzy fallback returns the FIRST directory entry (insertion order)
whose key contains, or is contained in, the label. It is not a
best-match search: "Bar" can win over "Bar (loup de mer)" if it was
loaded first.
"""

import unicodedata
from typing import Dict, Iterable, Mapping, Optional

# normalized key -> canonical display label, in load order
SpeciesDirectory = Dict[str, str]


def normalize_name(value: Optional[str]) -> str:
    """
    Builds the comparison key for a species label.

    Trims, lowercases, decomposes (NFD) and drops the combining diacritical
    marks U+0300–U+036F, so "  THON ROUGÉ " and "thon rouge" share a key.
    """
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value.strip().lower())
    return "".join(ch for ch in decomposed if not "\u0300" <= ch <= "\u036f")


def first_text(record: Mapping, keys: Iterable[str]) -> str:
    """
    Returns the first non-empty trimmed string found under `keys`, in order.
    Non-string values are ignored.
    """
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def match_against_directory(label: Optional[str], directory: Optional[SpeciesDirectory]) -> Optional[str]:
    """
    Resolves a species label to its canonical directory label.

    Matching Logic:
    1. Normalize the label
    2. Exact key lookup
    3. Fallback: first key (insertion order) that contains the label or is
       contained in it

    Args:
        label (str): Species name returned by the classifier or typed by a user
        directory (dict | None): Species directory built by the loader

    Returns:
        str | None: canonical label if found, otherwise None
    """
    if not label or not directory:
        return None

    normalized = normalize_name(label)
    if not normalized:
        return None

    direct = directory.get(normalized)
    if direct:
        return direct

    for key, canonical in directory.items():
        if key in normalized or normalized in key:
            return canonical

    return None


def is_exact_match(label: Optional[str], directory: Optional[SpeciesDirectory]) -> bool:
    """True when the label hits a directory key without the fuzzy fallback."""
    return bool(directory) and normalize_name(label) in directory
