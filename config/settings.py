"""
settings.py — Central config for the Catch Log Species Detection service

Precedence for config values:
1) Streamlit secrets (if available)
2) Environment variables
3) Sensible defaults

Secrets (API keys, database URL) should live in .env for the API server
or in .streamlit/secrets.toml for the debug console.
"""

from __future__ import annotations
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

# --- Streamlit secrets (optional) ---
_ST_SECRETS = None
try:
    import streamlit as st  # noqa: F401
    _ST_SECRETS = getattr(st, "secrets", None)
except Exception:
    _ST_SECRETS = None


# --- Helpers ---------------------------------------------------------------

def from_secrets_or_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return value from st.secrets[key] if available, else os.getenv(key), else default."""
    if _ST_SECRETS is not None:
        try:
            val = _ST_SECRETS.get(key, None)
            if val is not None:
                return str(val)
        except Exception:
            pass
    return os.getenv(key, default)

def as_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse common truthy strings to bool."""
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "t", "yes", "y", "on"}

def as_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default

def as_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


# --- Environment / Services -----------------------------------------------

DEBUG        = as_bool(from_secrets_or_env("DEBUG", "false"), default=False)

# Species catalog (Postgres)
DATABASE_URL   = from_secrets_or_env("DATABASE_URL")
SPECIES_TABLE  = from_secrets_or_env("SPECIES_TABLE", "species")
SPECIES_SCHEMA = from_secrets_or_env("SPECIES_SCHEMA") or None

# OpenAI classifier
OPENAI_API_KEY = from_secrets_or_env("OPENAI_API_KEY")
OPENAI_MODEL   = from_secrets_or_env("OPENAI_MODEL", "gpt-5.1")
OPENAI_REASONING_EFFORT = from_secrets_or_env("OPENAI_REASONING_EFFORT", "low") or None
CLASSIFIER_MAX_OUTPUT_TOKENS = as_int(from_secrets_or_env("CLASSIFIER_MAX_OUTPUT_TOKENS"), 300)
CLASSIFIER_TIMEOUT           = as_float(from_secrets_or_env("CLASSIFIER_TIMEOUT"), 30.0)

# API server
HOST = from_secrets_or_env("HOST", "0.0.0.0")
PORT = as_int(from_secrets_or_env("PORT"), 8000)

# Debug console
DETECT_API_URL = from_secrets_or_env("DETECT_API_URL", "http://localhost:8000/detect-species")
APP_MODE = from_secrets_or_env("APP_MODE", "full")
