"""Pytest configuration and fixtures for CodeVault tests.

Test isolation strategy:
- Every test gets its own SQLite database file under tmp_path, created from
  the ORM metadata, so tests never share rows
- Tests needing several independent connections open extra sessions from
  session_factory (the engine allows cross-thread use)
- API tests use an app with MockJwtVerifier and injected fakes for the blob
  store and the completion service; use auth_headers() to authenticate
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

# Settings must validate before any app module reads them
os.environ.setdefault("CODEVAULT_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./codevault-unused.db")
os.environ.setdefault("JWKS_URL", "http://localhost:54321/auth/v1/.well-known/jwks.json")
os.environ.setdefault("JWT_ISSUER", "test-issuer")
os.environ.setdefault("JWT_AUDIENCES", "test-audience")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-not-real")

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from codevault.app import create_app
from codevault.config import clear_settings_cache
from codevault.db.engine import create_db_engine
from codevault.db.models import Base
from codevault.db.session import create_session_factory
from codevault.middleware import add_request_id_middleware
from codevault.services.bootstrap import ensure_user
from codevault.storage import FakeStorageClient
from tests.helpers import create_test_open_id
from tests.support.fakes import FakeCompletionService
from tests.support.mock_verifier import MockJwtVerifier


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Re-read settings for every test so monkeypatched env vars apply."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """A per-test SQLite database with the full schema."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'codevault.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session on the per-test database."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_id(db_session: Session) -> int:
    """A bootstrapped user."""
    return ensure_user(db_session, create_test_open_id(), name="Ada").user_id


@pytest.fixture
def other_user_id(db_session: Session) -> int:
    """A second bootstrapped user, for ownership isolation checks."""
    return ensure_user(db_session, create_test_open_id(), name="Grace").user_id


@pytest.fixture
def storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def completion() -> FakeCompletionService:
    return FakeCompletionService()


@pytest.fixture
def app(
    session_factory: sessionmaker[Session],
    storage: FakeStorageClient,
    completion: FakeCompletionService,
) -> FastAPI:
    """App with auth (MockJwtVerifier), request ids and injected fakes."""
    app = create_app(
        token_verifier=MockJwtVerifier(),
        session_factory=session_factory,
        storage_client=storage,
        completion_service=completion,
    )
    # Add request-id middleware LAST (so it runs FIRST, outermost)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client.

    Use auth_headers() to generate valid tokens for requests.
    """
    with TestClient(app) as client:
        yield client
