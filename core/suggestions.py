"""
suggestions.py — Classifier Suggestion Parsing
-----------------------------------------------

Turns the classifier's JSON answer into at most three `Suggestion` objects.

The answer shape is requested as
    {"primary": {...}, "alternatives": [{...}, {...}]}
but field names drift between model versions (species/name/label/espece,
confidence/percentage/score/...), so every field is read from an ordered
list of candidate keys.

Confidence encodings seen in the wild: 0.87, 87, "87", "87%". Anything
<= 1 is read as a fraction, which means a true 1% and 0.01 both give 1.
"""

import math
import re
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field

from tools.species_lookup import first_text, normalize_name

MAX_SUGGESTIONS = 3

SPECIES_FIELDS = ("species", "name", "label", "espece", "option", "title")
CONFIDENCE_FIELDS = ("confidence", "percentage", "percent", "score", "certitude")

UNKNOWN_LABELS = {"unknown", "inconnu", "unk"}

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


class Suggestion(BaseModel):
    species: str = Field(min_length=1)
    confidence: int = Field(ge=0, le=100)
    matched: Optional[bool] = None
    source: Optional[Literal["database", "ai"]] = None
    unmatched: Optional[bool] = None

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


def _parse_number(text: str) -> float:
    m = _LEADING_NUMBER.match(text.replace("%", "").strip())
    return float(m.group(0)) if m else math.nan


def normalize_confidence(raw) -> int:
    """
    Converts a raw confidence (fraction, percentage or "NN%" string) into an
    integer percentage in [0, 100]. Missing or unreadable values give 0.
    """
    if isinstance(raw, bool):
        value = math.nan
    elif isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            value = math.nan
    elif isinstance(raw, str):
        value = _parse_number(raw)
    else:
        value = math.nan

    if not math.isfinite(value):
        value = 0.0
    if value <= 1:
        value *= 100
    # half-up, not banker's rounding
    return max(0, min(100, math.floor(value + 0.5)))


def _raw_confidence(entry: Mapping):
    for key in CONFIDENCE_FIELDS:
        value = entry.get(key)
        if isinstance(value, (int, float, str)) and not isinstance(value, bool):
            return value
    return None


def suggestion_from_entry(entry) -> Optional[Suggestion]:
    if not isinstance(entry, Mapping):
        return None
    species = first_text(entry, SPECIES_FIELDS)
    if not species:
        return None
    return Suggestion(species=species, confidence=normalize_confidence(_raw_confidence(entry)))


def extract_suggestions(parsed: Mapping) -> List[Suggestion]:
    """
    Reads the primary candidate, then the alternatives in order, keeping at
    most MAX_SUGGESTIONS. Never re-sorted by confidence.
    """
    suggestions: List[Suggestion] = []

    primary = suggestion_from_entry(parsed.get("primary"))
    if primary:
        suggestions.append(primary)

    alternatives = parsed.get("alternatives")
    if isinstance(alternatives, list):
        for entry in alternatives:
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
            suggestion = suggestion_from_entry(entry)
            if suggestion:
                suggestions.append(suggestion)

    return suggestions[:MAX_SUGGESTIONS]


def is_unknown(suggestion: Suggestion) -> bool:
    return normalize_name(suggestion.species) in UNKNOWN_LABELS or suggestion.confidence == 0


def is_unmatched_outcome(suggestions: List[Suggestion]) -> bool:
    """True when every suggestion is an "unknown" sentinel or has zero confidence."""
    return bool(suggestions) and all(is_unknown(s) for s in suggestions)
