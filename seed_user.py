import os
from configs import db
from dao import user as user_dao
from db.models.user import UserRole
from app import create_app

USERS = [
    ("admin@chatarrera.local", "Administrador", UserRole.ADMIN),
    ("bascula@chatarrera.local", "Operador Báscula", UserRole.OPERATOR),
]

if __name__ == "__main__":
    app = create_app()
    password = os.getenv("SEED_PASSWORD", "cambiar123")
    with app.app_context():
        db.create_all()
        for email, name, role in USERS:
            u = user_dao.ensure_user(db.session, email, name=name, role=role)
            user_dao.set_password(db.session, u, password)
        print("✅ Seeded users:", ", ".join(e for e, _, _ in USERS))
