import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app, g, session
from sqlalchemy.exc import IntegrityError

from .errors import Forbidden, Unauthorized, ValidationError
from .models import AdminBootstrap, User, db, utcnow
from .schemas import ROLES, Claims

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    subject_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# -------------------- USERS --------------------
def _bootstrap_claimed() -> bool:
    return db.session.get(AdminBootstrap, 1) is not None


def _claim_first_admin(user_id: str) -> bool:
    """Flush the bootstrap row; the primary key lets exactly one caller win.

    The row is only flushed, so it commits or rolls back together with the
    user it was claimed for.
    """
    if _bootstrap_claimed():
        return False
    db.session.add(AdminBootstrap(id=1, user_id=user_id))
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        return False
    return True


def upsert_user(claims: Claims, role: Optional[str] = None) -> User:
    """Insert or refresh the user named by ``claims.sub``.

    A brand-new user is made admin when it wins the bootstrap claim, otherwise
    it gets ``role`` or "user". An existing user keeps its stored role unless
    ``role`` is given explicitly.
    """
    if role is not None and role not in ROLES:
        raise ValidationError(f"Invalid role '{role}'", field="role")

    is_first = False
    user = db.session.get(User, claims.sub)
    if user is None:
        is_first = _claim_first_admin(claims.sub)
        user = User(id=claims.sub, role="admin" if is_first else (role or "user"))
        db.session.add(user)
    elif role is not None:
        user.role = role

    user.email = claims.email
    user.first_name = claims.first_name
    user.last_name = claims.last_name
    user.profile_image_url = claims.profile_image_url
    user.updated_at = utcnow()
    db.session.commit()
    if is_first:
        logger.info("User %s bootstrapped as the first admin", user.id)
    return user


def get_user(user_id: str) -> Optional[User]:
    return db.session.get(User, user_id)


# -------------------- IDENTITY --------------------
def resolve_identity() -> Optional[Identity]:
    """Work out who is calling from the session (or the configured dev user)."""
    user_id = session.get("user_id")
    user = get_user(user_id) if user_id else None

    if user is None and current_app.config.get("DEV_USER_ID"):
        dev_id = current_app.config["DEV_USER_ID"]
        user = get_user(dev_id) or upsert_user(
            Claims(sub=dev_id, email="dev@example.com", first_name="Dev", last_name="User")
        )

    if user is None:
        return None
    return Identity(subject_id=user.id, role=user.role)


def current_identity() -> Optional[Identity]:
    return g.get("identity")


def require_login(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise Unauthorized("Unauthorized")
    return identity


def require_role(identity: Optional[Identity], role: str) -> Identity:
    identity = require_login(identity)
    if identity.role != role:
        raise Forbidden(f"Forbidden: {role.capitalize()} access required")
    return identity
