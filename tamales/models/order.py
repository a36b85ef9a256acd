# tamales/models/order.py
import json

from . import db


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_email = db.Column(db.String(255), nullable=False, index=True)
    user_name = db.Column(db.String(120))
    user_phone = db.Column(db.String(40))
    items = db.Column(db.Text, nullable=False)  # JSON list of {id, name, qty, total}
    grand_total = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.String(40), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_email": self.user_email,
            "user_name": self.user_name,
            "user_phone": self.user_phone,
            "items": json.loads(self.items) if self.items else [],
            "grand_total": float(self.grand_total or 0),
            "created_at": self.created_at,
        }
