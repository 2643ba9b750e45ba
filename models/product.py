# --- models/product.py ---
from models import db, BIGINT
from datetime import datetime


class Product(db.Model):
    __tablename__ = "product"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
        db.CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        db.Index("ix_product_category", "category"),
    )

    id = db.Column(BIGINT, primary_key=True)
    seller_id = db.Column(BIGINT, nullable=True)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(100), nullable=True)

    # Media
    image_url = db.Column(db.String(500), nullable=True)
    images = db.Column(db.JSON, nullable=True)                    # list of extra image urls

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "stock": self.stock,
            "category": self.category,
            "image_url": self.image_url,
            "images": self.images or [],
            "seller_id": self.seller_id,
        }
