"""
Module ORM Registry (``stock_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
contains its table definition before tables are created.

Architecture position
---------------------
**Modules layer** -- utility.  ``stock_kernel.db.engine.create_tables`` calls
it lazily; nothing else in the kernel imports it.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``stock_modules.*.orm`` module.

    This function is idempotent -- repeated calls are harmless.
    """
    # Kernel tables first (sequence counters)
    import stock_kernel.services.sequence_service  # noqa: F401
    import stock_modules.transfers.orm  # noqa: F401
