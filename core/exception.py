"""
exception.py — Detection Error Taxonomy
----------------------------------------

Typed exceptions raised by the species detection pipeline. Each one maps to
exactly one outward JSON signal (HTTP status + French message shown in the
mobile app).

* ClientFault:        bad request from the caller (400)
* ConfigurationFault: missing server credentials (500)
* UpstreamFault:      classifier unreachable, non-2xx or unreadable output (502)
* NoSuggestionFault:  classifier answered but nothing usable (422)

A degraded species directory is not an exception: the loader returns None.
"""

import logging
import traceback
from typing import Optional

DEBUG_DETAIL_LIMIT = 500


def truncate_detail(text, limit: int = DEBUG_DETAIL_LIMIT) -> str:
    return str(text if text is not None else "")[:limit]


class DetectionError(Exception):
    status_code = 500
    default_message = "Erreur interne"

    def __init__(self, message: Optional[str] = None, *, debug: Optional[dict] = None):
        self.message = message or self.default_message
        self.debug = debug
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.debug:
            payload["debug"] = self.debug
        return payload


class ClientFault(DetectionError):
    status_code = 400
    default_message = "Requete invalide"


class ConfigurationFault(DetectionError):
    status_code = 500
    default_message = "Configuration serveur incomplete"


class UpstreamFault(DetectionError):
    status_code = 502
    default_message = "Analyse indisponible"

    def __init__(self, message: Optional[str] = None, *, detail=None, status: Optional[int] = None):
        debug = {"detail": truncate_detail(detail)}
        if status is not None:
            debug["status"] = status
        super().__init__(message, debug=debug)


class NoSuggestionFault(DetectionError):
    status_code = 422
    default_message = "Aucune proposition"


def log_exception(exc: BaseException) -> str:
    full_traceback = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    first_line = f"{type(exc).__name__}: {exc}"
    short_message = f"{type(exc).__name__}"

    # Log full traceback silently
    logging.error(full_traceback)

    # Also log just the first line for quick visibility
    logging.error(f"First line: {first_line}")

    return short_message
