"""
__init__.py — Package Initialization File
-----------------------------------------

Marks `db` as a package. Engine/session setup lives in `db.db`; the species
catalog reader lives in `db.species_directory`.

No initialization logic is required at this level.
"""
