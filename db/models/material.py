from datetime import datetime
from configs import db


class Material(db.Model):
    __tablename__ = "material"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)

    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)  # per kg
    # kg on hand; written only through dao.inventory
    stock = db.Column(db.Numeric(14, 3), nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    movements = db.relationship(
        "InventoryMovement",
        back_populates="material",
        order_by="InventoryMovement.id",
        lazy="dynamic",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Material {self.code}>"
