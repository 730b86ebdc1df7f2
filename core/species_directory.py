"""
species_directory.py — Species Directory Loader
------------------------------------------------

Builds the lookup used to constrain and verify classifier answers:
normalized key -> canonical display label.

* Label per row: first non-empty string among LABEL_FIELDS
* First occurrence wins on duplicate keys
* Canonical labels keep the row's casing, accents and punctuation

A missing or failing catalog is not an error here: `load_species_directory`
returns None and the pipeline falls back to open-vocabulary classification.
"""

from typing import Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from config.logging_config import get_logger
from tools.species_lookup import SpeciesDirectory, first_text, normalize_name

logger = get_logger(__name__)

LABEL_FIELDS = (
    "name",
    "french_name",
    "english_name",
    "Nom commun",
    "nom commun",
    "nom",
    "label",
    "title",
)


def extract_species_label(row: Mapping) -> str:
    return first_text(row, LABEL_FIELDS)


def build_species_directory(rows) -> SpeciesDirectory:
    directory: SpeciesDirectory = {}
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        label = extract_species_label(row)
        key = normalize_name(label)
        if not label or not key:
            continue
        directory.setdefault(key, label)
    return directory


def load_species_directory(source) -> Optional[SpeciesDirectory]:
    """
    Reads every row of the species table and builds the directory.

    Args:
        source: object exposing `fetch_rows()` (and optionally `configured`)

    Returns:
        dict | None: the directory, or None when the catalog is unavailable
    """
    if source is None or not getattr(source, "configured", True):
        logger.warning("Species table not configured, skipping DB match")
        return None

    try:
        rows = source.fetch_rows()
    except SQLAlchemyError as e:
        logger.error(f"Unable to load species table: {e}")
        return None
    except Exception:
        logger.exception("Unexpected failure while loading species table")
        return None

    if not isinstance(rows, list):
        logger.error(f"Unable to load species table: unexpected payload {type(rows).__name__}")
        return None

    directory = build_species_directory(rows)
    logger.debug(f"Species directory built: {len(directory)} entries from {len(rows)} rows")
    return directory
