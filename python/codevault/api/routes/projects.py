"""Project routes.

Routes are transport-only:
- Extract viewer from request.state
- Call exactly one service function
- Return success(...) or raise ApiError

No domain logic or raw DB access in routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from codevault.api.deps import get_db
from codevault.auth.middleware import Viewer, get_viewer
from codevault.responses import success_response
from codevault.schemas.project import CreateProjectRequest, UpdateProjectRequest
from codevault.services import projects as projects_service

router = APIRouter()


@router.get("/projects")
def list_projects(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List the viewer's projects, most recently updated first."""
    result = projects_service.list_projects(db, viewer.user_id)
    return success_response([p.model_dump(mode="json") for p in result])


@router.get("/projects/{project_id}")
def get_project(
    project_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get one project. data is null when it doesn't exist or isn't owned."""
    result = projects_service.get_project(db, viewer.user_id, project_id)
    return success_response(result.model_dump(mode="json") if result else None)


@router.post("/projects", status_code=201)
def create_project(
    body: CreateProjectRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a project owned by the viewer."""
    result = projects_service.create_project(db, viewer.user_id, body)
    return success_response(result.model_dump(mode="json"))


@router.patch("/projects/{project_id}", status_code=204)
def update_project(
    project_id: int,
    body: UpdateProjectRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Partially update a project. Foreign or missing ids are a no-op."""
    projects_service.update_project(db, viewer.user_id, project_id, body)
    return Response(status_code=204)


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a project with its snippets, their notes and chat, and its files."""
    projects_service.delete_project(db, viewer.user_id, project_id)
    return Response(status_code=204)
