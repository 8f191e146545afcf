from datetime import datetime
from configs import db


class Client(db.Model):
    __tablename__ = "client"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)

    document_type = db.Column(db.String(20))  # INE / RFC / CURP ...
    document = db.Column(db.String(50), unique=True)

    address = db.Column(db.Text)
    phone = db.Column(db.String(30))
    email = db.Column(db.String(255), unique=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Client {self.name}>"
