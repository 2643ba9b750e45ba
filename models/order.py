from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from models import db, BIGINT

# Internal sub-state of a checkout that has not yet been confirmed by the gateway.
PENDING_CREATION = "pending_creation"

ORDER_STATUSES = ("pending", "paid", "shipped", "delivered", "cancelled")
PAYMENT_METHODS = ("razorpay", "cod")


class Order(db.Model):
    __tablename__ = "order"
    __table_args__ = (
        db.Index("ix_order_user_created", "user_id", "created_at"),
        db.Index("ix_order_status_created", "status", "created_at"),
    )
    id = Column(BIGINT, primary_key=True)
    # identities belong to the access gate; no local user row is required
    user_id = Column(BIGINT, nullable=False)
    status = Column(String(30), nullable=False, default=PENDING_CREATION)
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    shipping_address = Column(JSON, nullable=True)  # street, city, state, country, pincode
    payment_method = Column(String(20), nullable=False)  # razorpay or cod
    receipt = Column(String(64), nullable=False, unique=True)
    gateway_order_id = Column(String(100), nullable=True, index=True)
    payment_id = Column(String(100), nullable=True)
    payment_signature = Column(String(256), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    items = db.relationship(
        "OrderItem", backref="order", cascade="all, delete-orphan", order_by="OrderItem.id", lazy=True
    )
    status_log = db.relationship(
        "OrderStatusLog", backref="order", cascade="all, delete-orphan", order_by="OrderStatusLog.id", lazy=True
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "total_amount": float(self.total_amount),
            "currency": self.currency,
            "shipping_address": self.shipping_address,
            "payment_method": self.payment_method,
            "receipt": self.receipt,
            "gateway_order_id": self.gateway_order_id,
            "payment": {
                "payment_id": self.payment_id,
                "signature": self.payment_signature,
            } if self.payment_id else None,
            "items": [oi.to_dict() for oi in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderItem(db.Model):
    __tablename__ = "order_item"
    id = db.Column(BIGINT, primary_key=True)
    order_id = db.Column(BIGINT, db.ForeignKey("order.id"), nullable=False)
    # plain reference: the snapshot below must survive catalog edits and deletes
    product_id = db.Column(BIGINT, nullable=False)

    name = db.Column(db.String(200))
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": float(self.unit_price),
            "quantity": self.quantity,
            "subtotal": float(self.subtotal),
        }


class OrderStatusLog(db.Model):
    __tablename__ = "order_status_log"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("order.id"), nullable=False)
    from_status = Column(String(30), nullable=True)
    status = Column(String(30), nullable=False)
    updated_by = Column(BIGINT, nullable=True)
    timestamp = Column(DateTime, default=func.now())

    def to_dict(self):
        return {
            "order_id": self.order_id,
            "from_status": self.from_status,
            "status": self.status,
            "updated_by": self.updated_by,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
