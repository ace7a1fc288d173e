"""Project service layer.

All operations are scoped to the calling user:
- Reads return None / empty for rows that don't exist or aren't owned
- Updates and deletes of such rows are silent no-ops
- Not-found and not-owned are indistinguishable to the caller

Service functions correspond 1:1 with route handlers.
Routes are transport-only and call exactly one service function.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from codevault.config import DEFAULT_PROJECT_COLOR
from codevault.db.models import Project, utcnow
from codevault.db.session import transaction
from codevault.errors import ApiErrorCode, NotFoundError
from codevault.logging import get_logger
from codevault.schemas.common import CreatedOut
from codevault.schemas.project import CreateProjectRequest, ProjectOut, UpdateProjectRequest
from codevault.services.cascade import delete_project_cascade

logger = get_logger(__name__)


# =============================================================================
# Shared Helpers
# =============================================================================


def get_owned_project(db: Session, viewer_id: int, project_id: int) -> Project | None:
    """Load a project owned by viewer_id, or None."""
    return db.scalar(select(Project).where(Project.id == project_id, Project.user_id == viewer_id))


def require_owned_project(db: Session, viewer_id: int, project_id: int) -> Project:
    """Load a project that another row is about to reference.

    Raises:
        NotFoundError(E_PROJECT_NOT_FOUND): Project doesn't exist or isn't owned.
    """
    project = get_owned_project(db, viewer_id, project_id)
    if project is None:
        raise NotFoundError(ApiErrorCode.E_PROJECT_NOT_FOUND, "Project not found")
    return project


# =============================================================================
# Service Functions (One per Route)
# =============================================================================


def list_projects(db: Session, viewer_id: int) -> list[ProjectOut]:
    """List the viewer's projects, most recently updated first."""
    rows = db.scalars(
        select(Project)
        .where(Project.user_id == viewer_id)
        .order_by(Project.updated_at.desc(), Project.id.desc())
    ).all()
    return [ProjectOut.model_validate(p) for p in rows]


def get_project(db: Session, viewer_id: int, project_id: int) -> ProjectOut | None:
    """Get one project, or None if it doesn't exist or isn't owned."""
    project = get_owned_project(db, viewer_id, project_id)
    if project is None:
        return None
    return ProjectOut.model_validate(project)


def create_project(db: Session, viewer_id: int, req: CreateProjectRequest) -> CreatedOut:
    """Create a project. color defaults to #6366f1."""
    project = Project(
        user_id=viewer_id,
        name=req.name,
        description=req.description,
        color=req.color or DEFAULT_PROJECT_COLOR,
    )
    with transaction(db):
        db.add(project)
        db.flush()

    logger.info("project_created", project_id=project.id)
    return CreatedOut(id=project.id)


def update_project(
    db: Session, viewer_id: int, project_id: int, req: UpdateProjectRequest
) -> None:
    """Apply the fields set in req to an owned project.

    Unset fields are untouched; an update that sets nothing writes nothing.
    """
    values = req.model_dump(exclude_unset=True)
    if not values:
        return

    values["updated_at"] = utcnow()
    with transaction(db):
        result = db.execute(
            update(Project)
            .where(Project.id == project_id, Project.user_id == viewer_id)
            .values(**values)
        )

    if result.rowcount:
        logger.info("project_updated", project_id=project_id, fields=sorted(values))


def delete_project(db: Session, viewer_id: int, project_id: int) -> None:
    """Delete an owned project and everything filed under it."""
    delete_project_cascade(db, viewer_id, project_id)
