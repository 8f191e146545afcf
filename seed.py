# seed.py
from configs import db
from dao import material as material_dao
from app import create_app


def seed_materials():
    results = material_dao.seed_materials(db.session)
    for action, m in results:
        print(f"  {action:8} {m.code:10} {m.name}")
    print(f"✓ Materials seeded ({sum(1 for a, _ in results if a == 'created')} new)")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
        seed_materials()
