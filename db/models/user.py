# db/models/user.py
import enum
from datetime import datetime
from configs import db
from flask_login import UserMixin


class UserRole(enum.Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"  # weighs and buys material at the counter


class User(db.Model, UserMixin):
    __tablename__ = "user_account"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120))
    # identity-synced users may not have a local password yet
    password_hash = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    role = db.Column(
        db.Enum(UserRole, name="userrole"), default=UserRole.OPERATOR, nullable=False
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def get_id(self):
        return str(self.id)

    def has_role(self, *roles: UserRole):
        """True if the user holds any of the given roles."""
        return self.role in roles

    @property
    def display_name(self) -> str:
        return self.name or self.email
