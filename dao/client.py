from typing import Optional, List
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from db.models.client import Client
from utils import errors
from utils.db_errors import translate_db_error
from utils.validators import validate_client_form


def list_clients(session, search: str | None = None, active_only: bool = False) -> List[Client]:
    stmt = select(Client)
    if active_only:
        stmt = stmt.filter(Client.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.filter(
            or_(
                Client.name.ilike(like),
                Client.document.ilike(like),
                Client.phone.ilike(like),
                Client.email.ilike(like),
            )
        )
        return session.scalars(stmt.order_by(Client.name.asc())).all()
    return session.scalars(stmt.order_by(Client.created_at.desc(), Client.id.desc())).all()


def get_client(session, client_id: int) -> Optional[Client]:
    return session.get(Client, client_id)


def create_client(
    session,
    name: str,
    document_type: str | None = None,
    document: str | None = None,
    address: str | None = None,
    phone: str | None = None,
    email: str | None = None,
) -> Client:
    data = validate_client_form(name, document_type, document, address, phone, email)
    c = Client(**data, is_active=True)
    session.add(c)
    _commit(session)
    return c


def update_client(session, client_id: int, is_active=True, **fields) -> Client:
    c = session.get(Client, client_id)
    if c is None:
        raise errors.client_not_found()
    data = validate_client_form(
        fields.get("name"),
        fields.get("document_type"),
        fields.get("document"),
        fields.get("address"),
        fields.get("phone"),
        fields.get("email"),
    )
    for k, v in data.items():
        setattr(c, k, v)
    c.is_active = bool(is_active)
    _commit(session)
    return c


def _commit(session):
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise translate_db_error(e) from e
