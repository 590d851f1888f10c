from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import new_uuid, to_number


class Fabric(db.Model):
    """
    Fabric inventory row.

    `stock` is a plain counter edited by staff. Orders never decrement it.
    """
    __tablename__ = "fabrics"
    __table_args__ = (
        db.CheckConstraint("price_per_meter >= 0", name="fabrics_price_per_meter_check"),
        db.CheckConstraint("stock >= 0", name="fabrics_stock_check"),
        db.Index("idx_fabrics_featured", "featured"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.Text, nullable=False)
    material = db.Column(db.Text, nullable=False)
    price_per_meter = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    color = db.Column(db.Text, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    images_json = db.Column(db.JSON, nullable=True, default=list)
    featured = db.Column(db.Boolean, nullable=True, default=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "material": self.material,
            "price_per_meter": to_number(self.price_per_meter),
            "color": self.color,
            "stock": self.stock,
            "images_json": self.images_json or [],
            "featured": bool(self.featured),
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Garment(db.Model):
    """
    Garment type with its customization catalog.

    customization_options maps an option name to its ordered choices, e.g.
    {"collar": ["Regular", "Button Down"]}. It is advisory: order
    customizations are not validated against it.
    """
    __tablename__ = "garments"
    __table_args__ = (
        db.CheckConstraint("base_price >= 0", name="garments_base_price_check"),
        db.Index("idx_garments_category", "category"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.Text, nullable=False)
    category = db.Column(db.Text, nullable=False)
    base_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.Text, nullable=True)
    customization_options = db.Column(db.JSON, nullable=True, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "base_price": to_number(self.base_price),
            "description": self.description,
            "image_url": self.image_url,
            "customization_options": self.customization_options or {},
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
