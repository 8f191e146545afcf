# dao/transaction.py
import logging
import time as _time
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from flask import current_app, has_app_context
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from db.models.client import Client
from db.models.transaction import (
    Transaction,
    TransactionDetail,
    TransactionStatus,
    TransactionType,
)
from dao import inventory as inv_dao
from utils import errors
from utils.errors import ValidationError
from utils.validators import (
    CENTS,
    GRAMS,
    MAX_AMOUNT,
    MAX_PRICE,
    MAX_QUANTITY,
    to_decimal,
)

logger = logging.getLogger(__name__)

FOLIO_PREFIX = "F"
FOLIO_DIGITS = 6
DEFAULT_MAX_LINES = 50


@dataclass(frozen=True)
class LineItem:
    material_id: int
    quantity: Decimal
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return (self.quantity * self.unit_price).quantize(CENTS, rounding=ROUND_HALF_UP)


def _max_lines() -> int:
    if has_app_context():
        return int(current_app.config.get("MAX_TRANSACTION_LINES", DEFAULT_MAX_LINES))
    return DEFAULT_MAX_LINES


# ---------- validation ----------
def validate_lines(lines: Sequence, max_lines: Optional[int] = None) -> List[LineItem]:
    """
    Validate the whole line set before anything is written.

    ``lines`` holds LineItem objects or mappings with material_id, quantity
    and unit_price; numbers may still be strings from the form.
    """
    max_lines = max_lines or _max_lines()
    if not lines:
        raise errors.empty_line_set()
    if len(lines) > max_lines:
        raise ValidationError(
            f"Una transacción admite como máximo {max_lines} materiales",
            code="TOO_MANY_LINES",
            field="lines",
        )

    items: List[LineItem] = []
    for idx, ln in enumerate(lines, 1):
        if isinstance(ln, LineItem):
            raw_mid, raw_qty, raw_price = ln.material_id, ln.quantity, ln.unit_price
        else:
            raw_mid = ln.get("material_id")
            raw_qty = ln.get("quantity")
            raw_price = ln.get("unit_price")

        try:
            material_id = int(raw_mid)
        except (TypeError, ValueError):
            raise ValidationError(
                f"Línea {idx}: debe seleccionar un material",
                code="MATERIAL_NOT_SELECTED",
                field="material_id",
            )

        qty = to_decimal(raw_qty, GRAMS)
        if qty is None or qty <= 0 or qty > MAX_QUANTITY:
            raise errors.invalid_line_quantity(idx)
        price = to_decimal(raw_price, CENTS)
        if price is None or price <= 0 or price > MAX_PRICE:
            raise errors.invalid_line_price(idx)

        items.append(LineItem(material_id=material_id, quantity=qty, unit_price=price))
    return items


def compute_totals(items: Iterable[LineItem]) -> tuple[Decimal, Decimal]:
    """(total_weight, total_amount)"""
    weight = Decimal("0")
    amount = Decimal("0")
    for it in items:
        weight += it.quantity
        amount += it.subtotal
    return weight, amount


# ---------- folio ----------
def _folio_prefix(year: int) -> str:
    return f"{FOLIO_PREFIX}-{year}-"


def _fallback_folio(prefix: str) -> str:
    stamp = int(_time.time() * 1000) % (10**FOLIO_DIGITS)
    return f"{prefix}{stamp:0{FOLIO_DIGITS}d}"


def generate_folio(session, now: Optional[datetime] = None) -> str:
    """
    Next folio for the calendar year: F-<year>-<6-digit sequence>.

    If the lookup fails, a timestamp-derived folio is returned instead; it is
    not guaranteed unique, the unique constraint on ``folio`` still applies.

    The sequence continues from the most recently inserted folio of the
    year, so a degraded folio moves it forward and numbers past 999999
    simply grow a seventh digit.
    """
    year = (now or datetime.now()).year
    prefix = _folio_prefix(year)
    try:
        with session.begin_nested():
            last = session.scalar(
                select(Transaction.folio)
                .filter(Transaction.folio.like(f"{prefix}%"))
                .order_by(Transaction.id.desc())
                .limit(1)
            )
    except SQLAlchemyError as e:
        folio = _fallback_folio(prefix)
        logger.warning("folio lookup failed (%s); degraded folio %s", e, folio)
        return folio

    seq = 1
    if last:
        try:
            seq = int(last.rsplit("-", 1)[1]) + 1
        except (IndexError, ValueError):
            logger.warning("unparseable folio %r, restarting sequence", last)
    return f"{prefix}{seq:0{FOLIO_DIGITS}d}"


# ---------- posting ----------
def _require_client(session, client_id) -> Client:
    if client_id in (None, ""):
        raise errors.no_client_selected()
    try:
        cid = int(client_id)
    except (TypeError, ValueError):
        raise errors.no_client_selected()
    client = session.get(Client, cid)
    if client is None:
        raise errors.client_not_found()
    if not client.is_active:
        raise ValidationError("El cliente está inactivo", code="CLIENT_INACTIVE")
    return client


def create_transaction(
    session,
    client_id,
    lines: Sequence,
    user_id: int,
    notes: Optional[str] = None,
    tx_type: TransactionType = TransactionType.PURCHASE,
    now: Optional[datetime] = None,
) -> Transaction:
    """
    Record a purchase and post one inbound ledger movement per line.

    Header, details, stock updates and ledger rows commit together or not
    at all; a lost race on any material reruns the whole posting.
    """
    client = _require_client(session, client_id)
    items = validate_lines(lines)
    total_weight, total_amount = compute_totals(items)
    if total_weight > MAX_QUANTITY or total_amount > MAX_AMOUNT:
        raise errors.amount_too_large()
    notes = (notes or "").strip() or None

    def _post() -> int:
        # lock in id order so two postings never wait on each other crosswise
        locked = {}
        for mid in sorted({it.material_id for it in items}):
            m = inv_dao.lock_material(session, mid)
            if not m.is_active:
                raise ValidationError(
                    f"El material {m.code} está inactivo", code="MATERIAL_INACTIVE"
                )
            locked[mid] = m

        folio = generate_folio(session, now)
        tx = Transaction(
            folio=folio,
            type=tx_type,
            status=TransactionStatus.COMPLETED,
            client_id=client.id,
            user_id=int(user_id),
            total_weight=total_weight,
            total_amount=total_amount,
            notes=notes,
        )
        for it in items:
            tx.details.append(
                TransactionDetail(
                    material_id=it.material_id,
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    subtotal=it.subtotal,
                )
            )
        session.add(tx)
        session.flush()

        for it in items:
            inv_dao.post_line_movement(session, locked[it.material_id], it.quantity, folio)
        return tx.id

    # two postings on disjoint materials can draw the same folio
    tx_id = inv_dao.run_atomic(session, _post, retry_codes=("DUPLICATE_FOLIO",))
    logger.info(
        "transaction #%s posted: %d lines, %s kg, $%s",
        tx_id,
        len(items),
        total_weight,
        total_amount,
    )
    return get_transaction(session, tx_id)


# ---------- queries ----------
def _hydrated():
    return select(Transaction).options(
        joinedload(Transaction.client),
        joinedload(Transaction.user),
        selectinload(Transaction.details).joinedload(TransactionDetail.material),
    )


def get_transaction(session, tx_id: int) -> Optional[Transaction]:
    return session.scalars(_hydrated().filter(Transaction.id == tx_id)).first()


def latest_transaction(session) -> Optional[Transaction]:
    return session.scalars(
        _hydrated().order_by(Transaction.created_at.desc(), Transaction.id.desc()).limit(1)
    ).first()


def list_transactions(
    session,
    search: str | None = None,
    date_from=None,
    date_to=None,
    limit: int = 15,
) -> List[Transaction]:
    stmt = _hydrated()
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.join(Client, Transaction.client_id == Client.id).filter(
            or_(
                Transaction.folio.ilike(like),
                Client.name.ilike(like),
                Client.document.ilike(like),
            )
        )
    if date_from:
        stmt = stmt.filter(Transaction.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        stmt = stmt.filter(Transaction.created_at <= datetime.combine(date_to, time.max))
    stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return session.scalars(stmt.limit(limit)).unique().all()


def transaction_receipt(tx: Transaction) -> dict:
    """Plain dict of a posted transaction, the shape receipts are printed from."""
    return {
        "id": tx.id,
        "folio": tx.folio,
        "type": tx.type.value,
        "source": tx.source.value,
        "status": tx.status.value,
        "created_at": tx.created_at.isoformat() if tx.created_at else None,
        "notes": tx.notes,
        "total_weight": str(tx.total_weight),
        "total_amount": str(tx.total_amount),
        "client": {
            "id": tx.client.id,
            "name": tx.client.name,
            "document": tx.client.document,
            "document_type": tx.client.document_type,
        },
        "user": {"id": tx.user.id, "email": tx.user.email, "name": tx.user.name},
        "details": [
            {
                "id": d.id,
                "material": {
                    "id": d.material.id,
                    "code": d.material.code,
                    "name": d.material.name,
                },
                "quantity": str(d.quantity),
                "unit_price": str(d.unit_price),
                "subtotal": str(d.subtotal),
            }
            for d in tx.details
        ],
    }
