import logging
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash
from db.models.user import User, UserRole
from utils.db_errors import translate_db_error
from utils.errors import ValidationError
from utils.validators import EMAIL_RE

logger = logging.getLogger(__name__)


def list_users(session) -> List[User]:
    return session.scalars(select(User).order_by(User.email.asc())).all()


def get_user(session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def find_by_email(session, email: str) -> Optional[User]:
    email = (email or "").strip().lower()
    return session.scalars(select(User).filter(func.lower(User.email) == email)).first()


def ensure_user(session, email: str, name: str | None = None, role: UserRole | None = None) -> User:
    """
    Identity sync: make sure a local user exists for an authenticated email.

    Idempotent. Creates an OPERATOR on first sight, reactivates otherwise.
    Called when a session starts, never from inside a business write.
    """
    email = (email or "").strip().lower()
    if not email or not EMAIL_RE.match(email):
        raise ValidationError("email requerido", code="INVALID_EMAIL", field="email")

    u = find_by_email(session, email)
    if u is None:
        u = User(
            email=email,
            name=(name or "").strip() or email.split("@")[0],
            role=role or UserRole.OPERATOR,
            is_active=True,
        )
        session.add(u)
        logger.info("provisioned local user %s", email)
    else:
        u.is_active = True
        if name and not u.name:
            u.name = name.strip()
    _commit(session)
    return u


def set_password(session, user: User, password: str) -> User:
    if not password:
        raise ValidationError("La contraseña es obligatoria", field="password")
    user.password_hash = generate_password_hash(password)
    _commit(session)
    return user


def authenticate(session, email: str, password: str) -> Optional[User]:
    u = find_by_email(session, email)
    if not u or not u.password_hash or not check_password_hash(u.password_hash, password):
        return None
    return u


def _commit(session):
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise translate_db_error(e) from e
