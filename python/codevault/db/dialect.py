"""Dialect-aware INSERT construction for upserts.

PostgreSQL (production) and SQLite (local/tests) both support
INSERT ... ON CONFLICT ... DO UPDATE ... RETURNING, but SQLAlchemy exposes
it through dialect-specific insert() constructs.
"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def upsert_insert(db: Session, model):
    """Return an INSERT construct for model that supports on_conflict_do_update().

    Raises:
        NotImplementedError: If the bound dialect has no ON CONFLICT support.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert not supported for dialect {dialect}")
