# dao/inventory.py
"""
Stock ledger.

``Material.stock`` is only ever written here, and every write appends one
``InventoryMovement`` whose ``balance`` is the stock value just written, so
replaying a material's movements in id order reproduces its stock.

Each posting is one database transaction: the material row is read with
``FOR UPDATE`` (PostgreSQL serializes concurrent postings on it) and the
mapper's version counter turns any write that slipped past the lock (e.g.
SQLite) into ``StaleDataError``, on which the whole unit is retried.
"""
import logging
from datetime import datetime, time
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, TypeVar

from flask import current_app, has_app_context
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from sqlalchemy.orm.exc import StaleDataError

from db.models.inventory import InventoryMovement, MovementType
from db.models.material import Material
from utils import errors
from utils.db_errors import translate_db_error
from utils.errors import AppError, ConflictError, ValidationError
from utils.validators import GRAMS, MAX_QUANTITY, to_decimal

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
ZERO = Decimal("0")


def _dec(x) -> Decimal:
    return Decimal(str(x or 0))


def _max_retries() -> int:
    if has_app_context():
        return int(current_app.config.get("POSTING_MAX_RETRIES", DEFAULT_MAX_RETRIES))
    return DEFAULT_MAX_RETRIES


# ---------- unit of work ----------
def run_atomic(
    session,
    work: Callable[[], T],
    retries: Optional[int] = None,
    retry_codes: Iterable[str] = (),
) -> T:
    """
    Run ``work`` and commit it as a single database transaction.

    Typed errors roll back and propagate. A lost optimistic race, or a
    database error translating to one of ``retry_codes``, rolls back and
    reruns ``work`` from scratch (it must re-read what it needs).
    """
    retries = retries or _max_retries()
    retry_codes = frozenset(retry_codes)
    last: Optional[AppError] = None
    for n in range(1, retries + 1):
        try:
            result = work()
            session.commit()
            return result
        except StaleDataError:
            session.rollback()
            logger.warning("stock write conflict, retrying (%d/%d)", n, retries)
        except AppError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            err = translate_db_error(e)
            if err.code in retry_codes:
                logger.warning("%s, retrying (%d/%d)", err.code, n, retries)
                last = err
                continue
            logger.error("posting failed: %s", e, exc_info=True)
            raise err from e
        except Exception:
            session.rollback()
            raise
    if last is not None:
        raise last
    raise ConflictError(
        "El inventario fue modificado por otra operación. Intenta de nuevo.",
        code="WRITE_CONFLICT",
    )


def parse_kind(kind) -> MovementType:
    if isinstance(kind, MovementType):
        return kind
    try:
        return MovementType[str(kind or "").strip().upper()]
    except KeyError:
        raise ValidationError(
            "Tipo de movimiento inválido", code="INVALID_KIND", field="type"
        )


def parse_quantity(quantity) -> Decimal:
    q = to_decimal(quantity, GRAMS)
    if q is None or q <= 0 or q > MAX_QUANTITY:
        raise errors.invalid_quantity()
    return q


def lock_material(session, material_id) -> Material:
    """Load a material for writing; raises MaterialNotFound."""
    try:
        mid = int(material_id)
    except (TypeError, ValueError):
        raise errors.material_not_found(material_id)
    m = session.get(Material, mid, with_for_update=True, populate_existing=True)
    if m is None:
        raise errors.material_not_found(mid)
    return m


def _require_active(m: Material) -> None:
    if not m.is_active:
        raise ValidationError(
            f"El material {m.code} está inactivo", code="MATERIAL_INACTIVE"
        )


# ---------- posting ----------
def apply_movement(
    session,
    material: Material,
    kind: MovementType,
    quantity: Decimal,
    reference: Optional[str] = None,
) -> InventoryMovement:
    """
    Compute the new balance, write it to the material and append the ledger
    row carrying that same balance. Runs inside the caller's transaction.
    """
    current = _dec(material.stock)

    if kind is MovementType.IN:
        new_balance = current + quantity
        if new_balance > MAX_QUANTITY:
            raise errors.stock_limit_exceeded(material.code)
        signed = quantity
    elif kind is MovementType.OUT:
        if quantity > current:
            raise errors.insufficient_stock(material.code, current, quantity)
        new_balance = current - quantity
        signed = -quantity
    else:
        # ADJUST: the quantity is the counted stock
        new_balance = quantity
        signed = new_balance - current

    material.stock = new_balance
    mv = InventoryMovement(
        material=material,
        type=kind,
        quantity=signed,
        balance=new_balance,
        reference=reference,
    )
    session.add(mv)
    logger.info(
        "ledger %s %s qty=%s balance=%s ref=%s",
        material.code,
        kind.value,
        signed,
        new_balance,
        reference,
    )
    return mv


def post_line_movement(
    session, material: Material, quantity: Decimal, reference: str
) -> InventoryMovement:
    """Inbound posting for one purchase line; purchases always add stock."""
    return apply_movement(session, material, MovementType.IN, quantity, reference)


def post_adjustment(
    session, material_id, kind, quantity, reference=None, user=None
) -> InventoryMovement:
    """
    Manual stock movement from the inventory screen.

    IN/OUT move ``quantity`` kg; ADJUST sets the stock to ``quantity``.
    """
    kind = parse_kind(kind)
    qty = parse_quantity(quantity)
    reference = (reference or "").strip() or None
    if reference is None and user is not None:
        reference = f"Ajuste por {user.display_name}"

    def _post():
        m = lock_material(session, material_id)
        _require_active(m)
        return apply_movement(session, m, kind, qty, reference)

    mv = run_atomic(session, _post)
    return mv


# ---------- queries ----------
def list_inventory(session, search: str | None = None, limit: int = 50, recent: int = 3):
    """Active materials by name, each paired with its ``recent`` latest movements."""
    stmt = select(Material).filter(Material.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.filter(
            or_(
                Material.name.ilike(like),
                Material.code.ilike(like),
                Material.category.ilike(like),
            )
        )
    materials = session.scalars(stmt.order_by(Material.name.asc()).limit(limit)).all()

    rows = []
    for m in materials:
        latest = session.scalars(
            select(InventoryMovement)
            .filter_by(material_id=m.id)
            .order_by(InventoryMovement.id.desc())
            .limit(recent)
        ).all()
        rows.append((m, latest))
    return rows


def list_movements(session, material_id: int) -> List[InventoryMovement]:
    return session.scalars(
        select(InventoryMovement)
        .filter_by(material_id=material_id)
        .order_by(InventoryMovement.id.desc())
    ).all()


def last_movement(session, material_id: int) -> Optional[InventoryMovement]:
    return session.scalars(
        select(InventoryMovement)
        .filter_by(material_id=material_id)
        .order_by(InventoryMovement.id.desc())
        .limit(1)
    ).first()


def replay_balance(session, material_id: int) -> Decimal:
    """Stock reconstructed from the ledger alone."""
    total = session.scalar(
        select(func.coalesce(func.sum(InventoryMovement.quantity), 0)).filter(
            InventoryMovement.material_id == material_id
        )
    )
    return _dec(total)


def search_movements(
    session,
    search: str | None = None,
    date_from=None,
    date_to=None,
    limit: int = 100,
) -> List[InventoryMovement]:
    stmt = select(InventoryMovement).options(joinedload(InventoryMovement.material))
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.join(Material).filter(
            or_(
                InventoryMovement.reference.ilike(like),
                Material.name.ilike(like),
                Material.code.ilike(like),
            )
        )
    if date_from:
        stmt = stmt.filter(InventoryMovement.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        stmt = stmt.filter(InventoryMovement.created_at <= datetime.combine(date_to, time.max))
    return session.scalars(
        stmt.order_by(InventoryMovement.id.desc()).limit(limit)
    ).all()
