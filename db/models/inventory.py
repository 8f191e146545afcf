from configs import db
from datetime import datetime
import enum


class MovementType(enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"


class InventoryMovement(db.Model):
    """Append-only stock ledger row. Never updated or deleted."""

    __tablename__ = "inventory_movement"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    material_id = db.Column(
        db.Integer, db.ForeignKey("material.id"), nullable=False, index=True
    )
    type = db.Column(db.Enum(MovementType, name="movementtype"), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)  # signed
    balance = db.Column(db.Numeric(14, 3), nullable=False)  # stock right after
    reference = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    material = db.relationship("Material", back_populates="movements")
