"""
Module ORM Registry (``trade_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.  ``trade_kernel.db.engine.create_tables()`` calls this first.

Architecture position
---------------------
**Modules layer** -- utility.  MUST NOT be imported by ``trade_kernel``
at module import time (only lazily, from ``create_tables``).
"""


def import_all_orm_models() -> None:
    """Import every ``trade_modules.*.orm`` module to register ORM models.

    This function is idempotent -- repeated calls are harmless.
    """
    import trade_modules.contracts.orm  # noqa: F401
