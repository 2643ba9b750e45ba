# --- models/user.py ---
from models import db, BIGINT
from datetime import datetime


class User(db.Model):
    """Identity record for an authenticated caller.

    Credentials live with the external access gate; the core only needs a
    stable id and a role.
    """
    __tablename__ = "user"

    id = db.Column(BIGINT, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    name = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(20), nullable=False, default="customer")  # customer, seller, admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<User id={self.id} role={self.role}>"
