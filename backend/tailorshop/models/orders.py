from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import new_uuid, to_number


# Forward order of the workshop pipeline. The CHECK constraint only tests
# membership; see services/lifecycle_service.py for sequencing.
ORDER_STATUSES = (
    "confirmed",
    "fabric_ready",
    "cutting",
    "stitching",
    "embroidery",
    "quality_check",
    "ready",
    "completed",
)

_STATUS_CHECK_SQL = "status IN ({})".format(", ".join(f"'{s}'" for s in ORDER_STATUSES))


class Order(db.Model):
    """
    Customization order.

    CUSTOMER LINK: customer_id is a real foreign key with ON DELETE CASCADE.

    CATALOG LINKS: fabric_id and garment_id are checked on write but are not
    database foreign keys. Fabrics and garments stay deletable while orders
    reference them; the order keeps its own price, customization and
    measurement snapshot.

    TRACKING: tracking_id is issued on insert (see tracking_service) and is
    never rewritten afterwards.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(_STATUS_CHECK_SQL, name="orders_status_check"),
        db.CheckConstraint("price >= 0", name="orders_price_check"),
        db.UniqueConstraint("tracking_id", name="orders_tracking_id_key"),
        db.Index("idx_orders_tracking_id", "tracking_id"),
        db.Index("idx_orders_customer_id", "customer_id"),
        db.Index("idx_orders_status", "status"),
        db.Index("idx_orders_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    customer_id = db.Column(
        db.String(36),
        db.ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=True,
    )
    fabric_id = db.Column(db.String(36), nullable=True)
    garment_id = db.Column(db.String(36), nullable=True)
    tracking_id = db.Column(db.Text, nullable=False)
    customizations_json = db.Column(db.JSON, nullable=True, default=dict)
    measurements_json = db.Column(db.JSON, nullable=True, default=dict)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(32), nullable=True, default="confirmed")
    urgent = db.Column(db.Boolean, nullable=True, default=False)
    special_instructions = db.Column(db.Text, nullable=True)
    estimated_completion = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", back_populates="orders")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "fabric_id": self.fabric_id,
            "garment_id": self.garment_id,
            "tracking_id": self.tracking_id,
            "customizations_json": self.customizations_json or {},
            "measurements_json": self.measurements_json or {},
            "price": to_number(self.price),
            "status": self.status,
            "urgent": bool(self.urgent),
            "special_instructions": self.special_instructions,
            "estimated_completion": self.estimated_completion.isoformat() if self.estimated_completion else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
