import pytest

from dao import user as user_dao
from db.models.user import User, UserRole
from utils.errors import ValidationError


def test_ensure_user_is_idempotent(db_session):
    first = user_dao.ensure_user(db_session, " Rosa@Example.com ", name="Rosa")
    second = user_dao.ensure_user(db_session, "rosa@example.com")

    assert first.id == second.id
    assert second.email == "rosa@example.com"
    assert second.name == "Rosa"
    assert second.role is UserRole.OPERATOR
    assert db_session.query(User).count() == 1


def test_ensure_user_reactivates(db_session):
    u = user_dao.ensure_user(db_session, "rosa@example.com")
    u.is_active = False
    db_session.commit()

    assert user_dao.ensure_user(db_session, "rosa@example.com").is_active


def test_ensure_user_defaults_name_from_email(db_session):
    assert user_dao.ensure_user(db_session, "pedro.gomez@example.com").name == "pedro.gomez"


@pytest.mark.parametrize("email", [None, "", "no-es-correo"])
def test_ensure_user_requires_email(db_session, email):
    with pytest.raises(ValidationError) as exc:
        user_dao.ensure_user(db_session, email)
    assert exc.value.code == "INVALID_EMAIL"


def test_authenticate(db_session):
    u = user_dao.ensure_user(db_session, "rosa@example.com", role=UserRole.ADMIN)
    assert user_dao.authenticate(db_session, "rosa@example.com", "x") is None

    user_dao.set_password(db_session, u, "s3creto")

    assert user_dao.authenticate(db_session, "ROSA@example.com", "s3creto").id == u.id
    assert user_dao.authenticate(db_session, "rosa@example.com", "otra") is None
    assert user_dao.authenticate(db_session, "nadie@example.com", "s3creto") is None
    assert u.has_role(UserRole.ADMIN, UserRole.OPERATOR)
    assert not u.has_role(UserRole.OPERATOR)
