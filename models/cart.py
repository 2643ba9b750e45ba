from models import db, BIGINT
from datetime import datetime


class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(BIGINT, primary_key=True)
    # one cart per user; the unique key settles concurrent first access
    user_id = db.Column(BIGINT, nullable=False, unique=True)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = db.relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
        lazy=True,
    )

    __mapper_args__ = {"version_id_col": version}

    def find_item(self, product_id):
        for ci in self.items:
            if ci.product_id == product_id:
                return ci
        return None


class CartItem(db.Model):
    __tablename__ = "cart_item"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", name="uq_cart_item_product"),
        db.CheckConstraint("quantity >= 1", name="ck_cart_item_quantity_positive"),
    )

    id = db.Column(BIGINT, primary_key=True)
    cart_id = db.Column(BIGINT, db.ForeignKey("cart.id"), nullable=False)
    product_id = db.Column(BIGINT, db.ForeignKey("product.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    added_at = db.Column(db.DateTime, default=datetime.utcnow)

    cart = db.relationship("Cart", back_populates="items")
    product = db.relationship("Product")
