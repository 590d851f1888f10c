from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import new_uuid


class Customer(db.Model):
    """
    Customer contact details and their measurement set.

    The measurement map is schemaless: keys are whatever the fitting form
    records (chest, waist, sleeve...), values are opaque.

    A customer who signs up gets an account whose id equals the customer id,
    which is the identity the owner-scoped access rules compare against.
    """
    __tablename__ = "customers"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.Text, nullable=False)
    phone = db.Column(db.Text, nullable=False)
    email = db.Column(db.Text, nullable=False)
    measurements_json = db.Column(db.JSON, nullable=True, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    orders = db.relationship(
        "Order",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "measurements_json": self.measurements_json or {},
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
