from configs import db
from datetime import datetime
import enum


class TransactionType(enum.Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"


class TransactionStatus(enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TransactionSource(enum.Enum):
    KEYBOARD = "KEYBOARD"
    SCALE = "SCALE"


class Transaction(db.Model):
    __tablename__ = "transaction"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    folio = db.Column(db.String(20), unique=True, nullable=False)  # F-2025-000001

    type = db.Column(
        db.Enum(TransactionType, name="transactiontype"),
        default=TransactionType.PURCHASE,
        nullable=False,
    )
    source = db.Column(
        db.Enum(TransactionSource, name="transactionsource"),
        default=TransactionSource.KEYBOARD,
        nullable=False,
    )
    status = db.Column(
        db.Enum(TransactionStatus, name="transactionstatus"),
        default=TransactionStatus.COMPLETED,
        nullable=False,
    )

    total_weight = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    client_id = db.Column(db.Integer, db.ForeignKey("client.id"), nullable=False)
    client = db.relationship("Client", backref="transactions")

    user_id = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=False)
    user = db.relationship("User")


class TransactionDetail(db.Model):
    __tablename__ = "transaction_detail"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    transaction_id = db.Column(
        db.Integer,
        db.ForeignKey("transaction.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    transaction = db.relationship(
        "Transaction",
        backref=db.backref(
            "details", order_by="TransactionDetail.id", cascade="all, delete-orphan"
        ),
    )
    material = db.relationship("Material")
