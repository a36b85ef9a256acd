# tamales/models/__init__.py
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    name = db.Column(db.String(120), nullable=False)
    birthday = db.Column(db.String(32))
    phone = db.Column(db.String(40))
    verification_code = db.Column(db.String(32))
    code_created_at = db.Column(db.String(40))
    verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.String(40), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "birthday": self.birthday,
            "phone": self.phone,
            "verification_code": self.verification_code,
            "code_created_at": self.code_created_at,
            "verified": bool(self.verified),
            "created_at": self.created_at,
        }

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r}>"


class InventoryItem(db.Model):
    __tablename__ = "inventory"

    tamale_id = db.Column(db.String(64), primary_key=True)
    remaining = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<InventoryItem {self.tamale_id!r} remaining={self.remaining}>"


from .order import Order  # noqa: E402

__all__ = ["db", "User", "Order", "InventoryItem"]
