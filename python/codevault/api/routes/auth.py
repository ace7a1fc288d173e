"""Session routes.

Both routes are reachable without a token: /auth/me reports null for
anonymous callers and /auth/logout always succeeds.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from codevault.api.deps import get_db
from codevault.auth.middleware import Viewer, get_optional_viewer
from codevault.config import get_settings
from codevault.responses import success_response
from codevault.schemas.user import UserOut
from codevault.services.bootstrap import get_user

router = APIRouter()


@router.get("/auth/me")
def get_me(
    viewer: Annotated[Viewer | None, Depends(get_optional_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Return the current user, or null when the caller is anonymous."""
    if viewer is None:
        return success_response(None)

    user = get_user(db, viewer.user_id)
    if user is None:
        return success_response(None)
    return success_response(UserOut.model_validate(user).model_dump(mode="json"))


@router.post("/auth/logout")
def logout(response: Response) -> dict:
    """Clear the session cookie."""
    response.delete_cookie(
        get_settings().session_cookie_name,
        path="/",
        secure=True,
        httponly=True,
        samesite="none",
    )
    return success_response({"success": True})
