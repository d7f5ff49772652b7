from __future__ import annotations

from ..extensions import db
from posdocs.time_utils import to_utc_z


class Customer(db.Model):
    """Customer record referenced by every sales document."""
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(32), nullable=True)
    billing_address = db.Column(db.String(255), nullable=True)
    shipping_address = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "billingAddress": self.billing_address,
            "shippingAddress": self.shipping_address,
            "createdAt": to_utc_z(self.created_at),
        }
