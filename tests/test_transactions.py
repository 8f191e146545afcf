import re
from contextlib import nullcontext
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from dao import inventory as inv_dao
from dao import transaction as tx_dao
from dao.transaction import LineItem
from db.models.inventory import InventoryMovement, MovementType
from db.models.material import Material
from db.models.transaction import Transaction, TransactionDetail, TransactionStatus
from utils import errors
from utils.errors import ConflictError, InsufficientStockError, NotFoundError, ValidationError

from conftest import make_client, make_material


@pytest.fixture()
def catalog(db_session):
    a = make_material(db_session, code="ALUM-001", name="Aluminio", price="10.00")
    b = make_material(db_session, code="COPR-001", name="Cobre", price="50.00")
    return a, b


@pytest.fixture()
def seller(db_session):
    return make_client(db_session, name="Juan Pérez", document="ABC12345")


def _counts(session):
    return (
        session.query(Transaction).count(),
        session.query(TransactionDetail).count(),
        session.query(InventoryMovement).count(),
    )


def test_purchase_posts_header_details_and_ledger(db_session, catalog, seller, operator):
    a, b = catalog
    lines = [
        {"material_id": a.id, "quantity": "5", "unit_price": "10"},
        {"material_id": b.id, "quantity": "2", "unit_price": "50"},
    ]

    tx = tx_dao.create_transaction(db_session, seller.id, lines, operator.id)

    assert tx.status is TransactionStatus.COMPLETED
    assert tx.total_weight == Decimal("7")
    assert tx.total_amount == Decimal("150")
    assert [d.subtotal for d in tx.details] == [Decimal("50"), Decimal("100")]
    assert tx.client.id == seller.id
    assert tx.user.id == operator.id

    assert db_session.get(Material, a.id).stock == Decimal("5")
    assert db_session.get(Material, b.id).stock == Decimal("2")

    for m, qty in ((a, Decimal("5")), (b, Decimal("2"))):
        mv = inv_dao.last_movement(db_session, m.id)
        assert mv.type is MovementType.IN
        assert mv.quantity == qty
        assert mv.balance == qty
        assert mv.reference == tx.folio


def test_totals_equal_sum_of_lines(db_session, catalog, seller, operator):
    a, b = catalog
    lines = [
        LineItem(a.id, Decimal("1.333"), Decimal("3.33")),
        LineItem(b.id, Decimal("0.1"), Decimal("0.2")),
        LineItem(a.id, Decimal("2.5"), Decimal("10.00")),
    ]
    tx = tx_dao.create_transaction(db_session, seller.id, lines, operator.id)

    assert tx.total_weight == sum(d.quantity for d in tx.details)
    assert tx.total_amount == sum(d.subtotal for d in tx.details)
    assert tx.details[0].subtotal == Decimal("4.44")
    assert tx.details[1].subtotal == Decimal("0.02")
    # repeated material gets one movement per line
    assert db_session.get(Material, a.id).stock == Decimal("3.833")
    assert len(inv_dao.list_movements(db_session, a.id)) == 2


def test_decimal_amounts_do_not_drift(db_session, catalog, seller, operator):
    a, _ = catalog
    lines = [{"material_id": a.id, "quantity": "0.1", "unit_price": "0.10"}] * 10
    tx = tx_dao.create_transaction(db_session, seller.id, lines, operator.id)
    assert tx.total_weight == Decimal("1")
    assert tx.total_amount == Decimal("0.10")


def test_folios_are_sequential_within_year(db_session, catalog, seller, operator):
    a, _ = catalog
    line = [{"material_id": a.id, "quantity": "1", "unit_price": "1"}]
    now = datetime(2025, 3, 1, 12, 0)

    first = tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=now)
    second = tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=now)

    assert first.folio == "F-2025-000001"
    assert second.folio == "F-2025-000002"


def test_folio_sequence_restarts_each_year(db_session, catalog, seller, operator):
    a, _ = catalog
    line = [{"material_id": a.id, "quantity": "1", "unit_price": "1"}]
    tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=datetime(2024, 12, 31))
    tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=datetime(2024, 12, 31))

    tx = tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=datetime(2025, 1, 1))
    assert tx.folio == "F-2025-000001"
    assert tx_dao.generate_folio(db_session, datetime(2024, 6, 1)) == "F-2024-000003"


def test_folio_falls_back_when_lookup_fails(caplog):
    class BrokenSession:
        def begin_nested(self):
            return nullcontext()

        def scalar(self, stmt):
            raise OperationalError("SELECT folio", {}, Exception("database is down"))

    folio = tx_dao.generate_folio(BrokenSession(), datetime(2025, 5, 5))

    assert re.fullmatch(r"F-2025-\d{6}", folio)
    assert "degraded folio" in caplog.text


@pytest.mark.parametrize("lines", [[], None])
def test_empty_line_set_persists_nothing(db_session, seller, operator, lines):
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(db_session, seller.id, lines, operator.id)
    assert exc.value.code == "EMPTY_LINE_SET"
    assert _counts(db_session) == (0, 0, 0)


@pytest.mark.parametrize(
    "qty, price, code",
    [
        ("0", "10", "INVALID_LINE_QUANTITY"),
        ("-2", "10", "INVALID_LINE_QUANTITY"),
        ("abc", "10", "INVALID_LINE_QUANTITY"),
        ("2", "0", "INVALID_LINE_PRICE"),
        ("2", "", "INVALID_LINE_PRICE"),
        ("1e30", "10", "INVALID_LINE_QUANTITY"),
        ("100000000000", "10", "INVALID_LINE_QUANTITY"),
        ("2", "1e30", "INVALID_LINE_PRICE"),
        ("2", "1000000", "INVALID_LINE_PRICE"),
    ],
)
def test_invalid_line_rejects_whole_transaction(db_session, catalog, seller, operator, qty, price, code):
    a, b = catalog
    lines = [
        {"material_id": a.id, "quantity": "5", "unit_price": "10"},
        {"material_id": b.id, "quantity": qty, "unit_price": price},
    ]
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(db_session, seller.id, lines, operator.id)

    assert exc.value.code == code
    assert "Línea 2" in exc.value.message
    assert _counts(db_session) == (0, 0, 0)
    assert db_session.get(Material, a.id).stock == Decimal("0")


def test_line_without_material(db_session, seller, operator):
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(
            db_session, seller.id, [{"material_id": "", "quantity": "1", "unit_price": "1"}], operator.id
        )
    assert exc.value.code == "MATERIAL_NOT_SELECTED"


def test_missing_material_rolls_back_everything(db_session, catalog, seller, operator):
    a, _ = catalog
    lines = [
        {"material_id": a.id, "quantity": "5", "unit_price": "10"},
        {"material_id": 9999, "quantity": "1", "unit_price": "10"},
    ]
    with pytest.raises(NotFoundError) as exc:
        tx_dao.create_transaction(db_session, seller.id, lines, operator.id)

    assert exc.value.code == "MATERIAL_NOT_FOUND"
    assert _counts(db_session) == (0, 0, 0)
    assert db_session.get(Material, a.id).stock == Decimal("0")


def test_inactive_material_rejected(db_session, seller, operator):
    m = make_material(db_session, code="ZINC-001", name="Zinc", is_active=False)
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(
            db_session, seller.id, [{"material_id": m.id, "quantity": "1", "unit_price": "8"}], operator.id
        )
    assert exc.value.code == "MATERIAL_INACTIVE"
    assert _counts(db_session) == (0, 0, 0)


@pytest.mark.parametrize("client_id", [None, "", "abc"])
def test_client_is_required(db_session, catalog, operator, client_id):
    a, _ = catalog
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(
            db_session, client_id, [{"material_id": a.id, "quantity": "1", "unit_price": "1"}], operator.id
        )
    assert exc.value.code == "NO_CLIENT_SELECTED"


def test_unknown_and_inactive_client(db_session, catalog, operator):
    a, _ = catalog
    line = [{"material_id": a.id, "quantity": "1", "unit_price": "1"}]
    with pytest.raises(NotFoundError) as exc:
        tx_dao.create_transaction(db_session, 424242, line, operator.id)
    assert exc.value.code == "CLIENT_NOT_FOUND"

    gone = make_client(db_session, name="Cliente Baja", is_active=False)
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(db_session, gone.id, line, operator.id)
    assert exc.value.code == "CLIENT_INACTIVE"


def test_too_many_lines(app, db_session, catalog, seller, operator):
    a, _ = catalog
    app.config["MAX_TRANSACTION_LINES"] = 2
    line = {"material_id": a.id, "quantity": "1", "unit_price": "1"}
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(db_session, seller.id, [line] * 3, operator.id)
    assert exc.value.code == "TOO_MANY_LINES"


def test_queries_and_receipt(db_session, catalog, seller, operator):
    a, b = catalog
    other = make_client(db_session, name="María López")
    tx_dao.create_transaction(
        db_session, seller.id, [{"material_id": a.id, "quantity": "1", "unit_price": "10"}], operator.id
    )
    last = tx_dao.create_transaction(
        db_session, other.id, [{"material_id": b.id, "quantity": "2.5", "unit_price": "50"}], operator.id
    )

    assert tx_dao.latest_transaction(db_session).id == last.id
    assert [t.id for t in tx_dao.list_transactions(db_session, search="maría")] == [last.id]
    assert len(tx_dao.list_transactions(db_session)) == 2

    receipt = tx_dao.transaction_receipt(tx_dao.get_transaction(db_session, last.id))
    assert receipt["folio"] == last.folio
    assert receipt["client"]["name"] == "María López"
    assert receipt["total_amount"] == "125.00"
    assert receipt["details"][0]["material"]["code"] == "COPR-001"


def test_amount_beyond_column_capacity_rejected(db_session, catalog, seller, operator):
    a, _ = catalog
    lines = [{"material_id": a.id, "quantity": "99999999999", "unit_price": "999999.99"}]
    with pytest.raises(ValidationError) as exc:
        tx_dao.create_transaction(db_session, seller.id, lines, operator.id)
    assert exc.value.code == "AMOUNT_TOO_LARGE"
    assert _counts(db_session) == (0, 0, 0)


def test_failure_after_header_is_written_rolls_back_everything(
    db_session, catalog, seller, operator, monkeypatch
):
    a, b = catalog
    real_post = inv_dao.post_line_movement
    posted = []

    def fail_on_second_line(session, material, quantity, reference):
        if posted:
            raise errors.insufficient_stock(material.code, 0, quantity)
        posted.append(reference)
        return real_post(session, material, quantity, reference)

    monkeypatch.setattr(inv_dao, "post_line_movement", fail_on_second_line)
    lines = [
        {"material_id": a.id, "quantity": "5", "unit_price": "10"},
        {"material_id": b.id, "quantity": "2", "unit_price": "50"},
    ]
    with pytest.raises(InsufficientStockError):
        tx_dao.create_transaction(db_session, seller.id, lines, operator.id)

    # the header was flushed and the first line posted before the failure
    assert posted and posted[0].startswith("F-")
    assert _counts(db_session) == (0, 0, 0)
    assert db_session.get(Material, a.id).stock == Decimal("0")
    assert db_session.get(Material, b.id).stock == Decimal("0")


def test_bad_user_id_rolls_back(db_session, catalog, seller):
    a, _ = catalog
    with pytest.raises(TypeError):
        tx_dao.create_transaction(
            db_session, seller.id, [{"material_id": a.id, "quantity": "1", "unit_price": "1"}], None
        )
    assert _counts(db_session) == (0, 0, 0)
    assert db_session.get(Material, a.id).stock == Decimal("0")


def test_duplicate_folio_is_retried(db_session, catalog, seller, operator, monkeypatch, caplog):
    a, _ = catalog
    line = [{"material_id": a.id, "quantity": "1", "unit_price": "1"}]
    now = datetime(2025, 3, 1)
    tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=now)

    real_folio = tx_dao.generate_folio
    calls = []

    def stale_then_real(session, now=None):
        calls.append(now)
        if len(calls) == 1:
            return "F-2025-000001"
        return real_folio(session, now)

    monkeypatch.setattr(tx_dao, "generate_folio", stale_then_real)
    tx = tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=now)

    assert tx.folio == "F-2025-000002"
    assert len(calls) == 2
    assert "DUPLICATE_FOLIO, retrying" in caplog.text
    assert _counts(db_session) == (2, 2, 2)
    assert db_session.get(Material, a.id).stock == Decimal("2")


def test_duplicate_folio_gives_up_after_retries(db_session, catalog, seller, operator, monkeypatch):
    a, _ = catalog
    line = [{"material_id": a.id, "quantity": "1", "unit_price": "1"}]
    tx_dao.create_transaction(db_session, seller.id, line, operator.id, now=datetime(2025, 3, 1))

    monkeypatch.setattr(tx_dao, "generate_folio", lambda session, now=None: "F-2025-000001")
    with pytest.raises(ConflictError) as exc:
        tx_dao.create_transaction(db_session, seller.id, line, operator.id)

    assert exc.value.code == "DUPLICATE_FOLIO"
    assert _counts(db_session) == (1, 1, 1)
    assert db_session.get(Material, a.id).stock == Decimal("1")


def _insert_folio(session, folio, client, user):
    session.add(
        Transaction(
            folio=folio,
            client_id=client.id,
            user_id=user.id,
            total_weight=Decimal("1"),
            total_amount=Decimal("1"),
        )
    )
    session.commit()


def test_folio_sequence_follows_latest_insert(db_session, seller, operator):
    now = datetime(2025, 7, 1)
    _insert_folio(db_session, "F-2025-999999", seller, operator)
    assert tx_dao.generate_folio(db_session, now) == "F-2025-1000000"

    _insert_folio(db_session, "F-2025-1000000", seller, operator)
    assert tx_dao.generate_folio(db_session, now) == "F-2025-1000001"

    # a degraded timestamp folio moves the sequence forward
    _insert_folio(db_session, "F-2026-734512", seller, operator)
    assert tx_dao.generate_folio(db_session, datetime(2026, 1, 2)) == "F-2026-734513"
