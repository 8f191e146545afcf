from decimal import Decimal

import pytest
from flask import g

from app import create_app
from configs import db
from db.models.client import Client
from db.models.material import Material
from db.models.user import User, UserRole
from werkzeug.security import generate_password_hash

PASSWORD = "secreto123"


@pytest.fixture()
def app():
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "LOG_LEVEL": "WARNING",
        }
    )

    # test requests reuse the context pushed below, and with it ``g``,
    # where Flask-Login caches the user of the previous request
    @app.before_request
    def _forget_cached_user():
        g.pop("_login_user", None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def db_session(app):
    return db.session


def make_material(session, code="COPR-001", name="Cobre", price="125.00", stock="0", category="Metales", **kw):
    m = Material(
        code=code,
        name=name,
        category=category,
        price=Decimal(price),
        stock=Decimal(stock),
        **kw,
    )
    session.add(m)
    session.commit()
    return m


def make_client(session, name="Juan Pérez", **kw):
    c = Client(name=name, **kw)
    session.add(c)
    session.commit()
    return c


def make_user(session, email="operador@example.com", role=UserRole.OPERATOR, password=PASSWORD):
    u = User(
        email=email,
        name=email.split("@")[0],
        role=role,
        password_hash=generate_password_hash(password),
        is_active=True,
    )
    session.add(u)
    session.commit()
    return u


@pytest.fixture()
def operator(db_session):
    return make_user(db_session)


@pytest.fixture()
def admin_user(db_session):
    return make_user(db_session, email="admin@example.com", role=UserRole.ADMIN)


def login(client, email, password=PASSWORD):
    return client.post(
        "/auth/login", data={"email": email, "password": password}, follow_redirects=False
    )
