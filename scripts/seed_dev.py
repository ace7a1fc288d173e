#!/usr/bin/env python
"""Seed development database with a demo account.

Creates a demo user with one project, one snippet and a line note, going
through the service layer so the same ownership rules apply.

Constraints:
- Refuses to run in staging or prod (CODEVAULT_ENV check)
- Idempotent: reruns reuse the demo user and skip an existing demo project
- Never runs automatically (manual invocation only)

Usage:
    DATABASE_URL=... python scripts/seed_dev.py
"""

import os
import sys

DEMO_OPEN_ID = "dev-demo-user"
DEMO_PROJECT = "Algorithms"
DEMO_CODE = """function fib(n) {
  if (n < 2) return n;
  return fib(n - 1) + fib(n - 2);
}"""


def main():
    codevault_env = os.getenv("CODEVAULT_ENV", "local")
    if codevault_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in CODEVAULT_ENV={codevault_env}")
        sys.exit(1)

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from codevault.db.engine import create_db_engine
    from codevault.db.session import create_session_factory
    from codevault.schemas import CreateProjectRequest, CreateSnippetRequest
    from codevault.services import notes, projects, snippets
    from codevault.services.bootstrap import ensure_user

    engine = create_db_engine(database_url)
    db = create_session_factory(engine)()
    try:
        user = ensure_user(db, DEMO_OPEN_ID, name="Demo User", email="demo@example.com")

        if any(p.name == DEMO_PROJECT for p in projects.list_projects(db, user.user_id)):
            print(f"Demo project already exists for user {user.user_id}; nothing to do")
            return

        project = projects.create_project(
            db, user.user_id, CreateProjectRequest(name=DEMO_PROJECT, color="#10b981")
        )
        snippet = snippets.create_snippet(
            db,
            user.user_id,
            CreateSnippetRequest(
                title="Fibonacci",
                code=DEMO_CODE,
                language="javascript",
                description="Naive recursive Fibonacci",
                project_id=project.id,
            ),
        )
        notes.upsert_note(db, user.user_id, snippet.id, 2, "Base case: fib(0)=0, fib(1)=1")

        print(f"Seeded user {user.user_id}: project {project.id}, snippet {snippet.id}")
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
