from typing import Optional, List
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from db.models.material import Material
from utils import errors
from utils.db_errors import translate_db_error
from utils.validators import validate_material_form

# standard recycling catalog, $/kg
DEFAULT_MATERIALS = [
    ("ALUM-001", "Aluminio", "Metales", "20.50"),
    ("BRCE-001", "Bronce", "Metales", "45.00"),
    ("CBL-001", "Cable de Cobre", "Metales", "120.00"),
    ("CART-001", "Cartón", "Papel", "1.50"),
    ("COPR-001", "Cobre", "Metales", "125.00"),
    ("HIER-001", "Hierro", "Metales", "3.50"),
    ("LAT-001", "Lata", "Metales", "2.00"),
    ("LAT-002", "Lata de Aluminio", "Metales", "15.00"),
    ("PLAS-001", "Plástico PET", "Plásticos", "2.50"),
    ("VIDR-001", "Vidrio", "Vidrio", "0.80"),
    ("ZINC-001", "Zinc", "Metales", "8.00"),
]


def list_materials(session, search: str | None = None, active_only: bool = True) -> List[Material]:
    stmt = select(Material)
    if active_only:
        stmt = stmt.filter(Material.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.filter(
            or_(
                Material.name.ilike(like),
                Material.code.ilike(like),
                Material.category.ilike(like),
            )
        )
    return session.scalars(stmt.order_by(Material.name.asc())).all()


def get_material(session, material_id: int) -> Optional[Material]:
    return session.get(Material, material_id)


def create_material(session, code, name, category, price, description=None) -> Material:
    data = validate_material_form(code, name, category, price, description)
    m = Material(**data, stock=0, is_active=True)
    session.add(m)
    _commit(session)
    return m


def update_material(session, material_id: int, is_active=True, **fields) -> Material:
    """Edit catalog data. Stock is not editable here, see dao.inventory."""
    m = session.get(Material, material_id)
    if m is None:
        raise errors.material_not_found(material_id)
    data = validate_material_form(
        fields.get("code"),
        fields.get("name"),
        fields.get("category"),
        fields.get("price"),
        fields.get("description"),
    )
    for k, v in data.items():
        setattr(m, k, v)
    m.is_active = bool(is_active)
    _commit(session)
    return m


def seed_materials(session) -> List[tuple]:
    """Insert the default catalog entries that are missing (by code or name)."""
    results = []
    for code, name, category, price in DEFAULT_MATERIALS:
        existing = session.scalars(
            select(Material).filter(or_(Material.code == code, Material.name == name))
        ).first()
        if existing:
            results.append(("exists", existing))
            continue
        m = Material(**validate_material_form(code, name, category, price), stock=0)
        session.add(m)
        results.append(("created", m))
    _commit(session)
    return results


def _commit(session):
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise translate_db_error(e) from e
