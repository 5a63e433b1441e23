"""
Module ORM Registry (``material_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.  ``material_kernel.db.engine.create_tables()`` calls this.

Architecture position
---------------------
**Modules layer** -- utility.  MUST NOT be imported at module level by
``material_kernel``.
"""


def import_all_orm_models() -> None:
    """Import every ``material_modules.*.orm`` module.  Idempotent."""
    # fmt: off
    import material_modules.dispo.orm  # noqa: F401
    import material_modules.handling_units.orm  # noqa: F401
    # fmt: on
