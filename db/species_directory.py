"""
species_directory.py — Species Table Row Source
------------------------------------------------

Read-only access to the species catalog table. The table is edited by hand
from the back office, so its columns are not stable (`name`, `french_name`,
`Nom commun`, ...). Rows are therefore returned as plain dicts and no ORM
model is mapped onto them.

The whole table is read on every call (no pagination, no cache); catalogs
stay in the low thousands of rows.
"""

from typing import Dict, List, Optional

from sqlalchemy import literal_column, select, table
from sqlalchemy.orm import sessionmaker

from config.settings import SPECIES_SCHEMA, SPECIES_TABLE


class SpeciesTableSource:
    """
    Full-scan reader for the species table.

    Args:
        session_factory: SQLAlchemy sessionmaker (defaults to db.db.SessionLocal)
        table_name (str): catalog table name
        schema (str | None): optional schema
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        table_name: str = SPECIES_TABLE,
        schema: Optional[str] = SPECIES_SCHEMA,
    ):
        if session_factory is None:
            from db.db import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory
        self.table_name = table_name
        self.schema = schema

    @property
    def configured(self) -> bool:
        return self.session_factory.kw.get("bind") is not None

    def fetch_rows(self) -> List[Dict]:
        stmt = select(literal_column("*")).select_from(table(self.table_name, schema=self.schema))
        with self.session_factory() as session:
            return [dict(row) for row in session.execute(stmt).mappings().all()]
