"""
SpeciesTableSource against an in-memory SQLite catalog.
"""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from core.species_directory import load_species_directory
from db.species_directory import SpeciesTableSource


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text('CREATE TABLE species (id INTEGER PRIMARY KEY, "Nom commun" TEXT, english_name TEXT)'))
        conn.execute(text(
            'INSERT INTO species (id, "Nom commun", english_name) VALUES '
            "(1, 'Brème', NULL), (2, NULL, 'Pike'), (3, 'Brême', NULL)"
        ))
    return sessionmaker(bind=engine)


def test_fetch_rows_returns_plain_dicts(session_factory):
    rows = SpeciesTableSource(session_factory, table_name="species", schema=None).fetch_rows()
    assert rows == [
        {"id": 1, "Nom commun": "Brème", "english_name": None},
        {"id": 2, "Nom commun": None, "english_name": "Pike"},
        {"id": 3, "Nom commun": "Brême", "english_name": None},
    ]


def test_directory_from_table(session_factory):
    source = SpeciesTableSource(session_factory, table_name="species", schema=None)
    assert load_species_directory(source) == {"breme": "Brème", "pike": "Pike"}


def test_missing_table_degrades(session_factory):
    source = SpeciesTableSource(session_factory, table_name="fish_species", schema=None)
    with pytest.raises(OperationalError):
        source.fetch_rows()
    assert load_species_directory(source) is None


def test_configured_follows_bind(session_factory):
    assert SpeciesTableSource(session_factory).configured
    assert not SpeciesTableSource(sessionmaker()).configured
