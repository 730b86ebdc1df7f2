"""
db.py — Database Engine & Session Setup
----------------------------------------

This module initializes the SQLAlchemy database connection and provides
session management for the species catalog.

Features:
- Creates database engine using DATABASE_URL from project settings
- Defines `SessionLocal` for transaction management
- Leaves `engine` as None when DATABASE_URL is not configured, so the
  detection service can still run in degraded (open-vocabulary) mode

Dependencies:
- SQLAlchemy for engine and session management
- Project settings for environment-based configuration

"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from config.settings import DATABASE_URL


# --- Database Engine ---

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
) if DATABASE_URL else None


# --- Session Factory ---
SessionLocal = sessionmaker(bind=engine)
