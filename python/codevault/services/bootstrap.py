"""User bootstrap service.

Provides race-safe user creation on first sign-in.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from codevault.config import get_settings
from codevault.db.dialect import upsert_insert
from codevault.db.models import User, UserRole, utcnow
from codevault.db.session import transaction
from codevault.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BootstrappedUser:
    """The local account behind an authenticated identity."""

    user_id: int
    role: str
    name: str | None
    email: str | None


def ensure_user(
    db: Session,
    open_id: str,
    *,
    name: str | None = None,
    email: str | None = None,
    login_method: str | None = None,
) -> BootstrappedUser:
    """Create the user for open_id if missing, otherwise refresh their profile.

    Race-safe and idempotent: a single INSERT ... ON CONFLICT (open_id)
    DO UPDATE, so concurrent first requests converge to one row.
    Profile fields only overwrite stored values when the token carries them.
    The identity configured as OWNER_OPEN_ID is always admin.

    Args:
        db: Database session.
        open_id: The identity provider's subject (JWT sub claim).
        name: Display name from the token, if any.
        email: Email from the token, if any.
        login_method: Login method from the token, if any.

    Returns:
        The local user id and profile.
    """
    settings = get_settings()
    now = utcnow()
    is_owner = bool(settings.owner_open_id) and open_id == settings.owner_open_id

    values = {
        "open_id": open_id,
        "name": name,
        "email": email,
        "login_method": login_method,
        "role": UserRole.admin.value if is_owner else UserRole.user.value,
        "created_at": now,
        "updated_at": now,
        "last_signed_in": now,
    }
    stmt = upsert_insert(db, User).values(**values)

    on_conflict = {"last_signed_in": now, "updated_at": now}
    for field, value in (("name", name), ("email", email), ("login_method", login_method)):
        if value is not None:
            on_conflict[field] = value
    if is_owner:
        on_conflict["role"] = UserRole.admin.value

    stmt = stmt.on_conflict_do_update(
        index_elements=[User.open_id], set_=on_conflict
    ).returning(User.id, User.role, User.name, User.email, User.created_at, User.updated_at)

    with transaction(db):
        row = db.execute(stmt).one()

    if row.created_at == row.updated_at:
        logger.info("user_created", user_id=row.id, role=row.role)

    return BootstrappedUser(user_id=row.id, role=row.role, name=row.name, email=row.email)


def get_user(db: Session, user_id: int) -> User | None:
    """Load a user by local id."""
    return db.get(User, user_id)
