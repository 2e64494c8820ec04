from models import db
from datetime import datetime


class StoredCart(db.Model):
    """Durable key -> JSON slot holding one serialized cart."""

    __tablename__ = "stored_cart"

    key = db.Column(db.String(120), primary_key=True)
    payload = db.Column(db.Text, nullable=False, default="[]")
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
