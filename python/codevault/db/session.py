"""Sessions and transactions.

The session factory is owned by the application (app.state.session_factory,
built in the lifespan or injected by tests). get_db hands each request its
own session; services wrap their writes in transaction(db).
"""

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to engine.

    expire_on_commit is off so rows returned by a service stay readable
    after its transaction commits.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_session_factory(request: Request) -> sessionmaker[Session]:
    return request.app.state.session_factory


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    with get_session_factory(request)() as db:
        yield db


@contextmanager
def transaction(db: Session) -> Iterator[None]:
    """Commit the block's work, or roll it back and re-raise.

    Usage:
        with transaction(db):
            db.add(row)
    """
    try:
        yield
        db.commit()
    except BaseException:
        db.rollback()
        raise
