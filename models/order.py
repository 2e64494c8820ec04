from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric
from sqlalchemy.sql import func
from models import db, BIGINT


class QuoteEntry(db.Model):
    """A submitted cart order or quote request, frozen at submission time."""

    __tablename__ = "quote_entry"
    __table_args__ = (
        db.Index("ix_quote_entry_attended_created", "attended", "created_at"),
    )

    id = Column(BIGINT, primary_key=True)
    kind = Column(String(10), nullable=False, default="product")  # product, service
    order_code = Column(String(10), nullable=True, index=True)

    customer_name = Column(String(120), nullable=False)
    email = Column(String(120), nullable=True)
    phone = Column(String(30), nullable=False)

    product_id = Column(String(36), nullable=True)
    product_name = Column(String(255), nullable=True)
    service_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    specifications = Column(Text, nullable=True)

    delivery_method = Column(String(10), nullable=True)  # pickup, shipping
    shipping = Column(db.JSON, nullable=True)
    items = Column(db.JSON, nullable=True)  # CartItem snapshots

    subtotal = Column(Numeric(10, 2), nullable=True)
    delivery_fee = Column(Numeric(10, 2), nullable=True)
    delivery_tier = Column(String(30), nullable=True)
    total = Column(Numeric(10, 2), nullable=True)

    attended = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "order_code": self.order_code,
            "customer_name": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "service_name": self.service_name,
            "quantity": self.quantity,
            "specifications": self.specifications,
            "delivery_method": self.delivery_method,
            "shipping": self.shipping,
            "items": self.items or [],
            "subtotal": float(self.subtotal) if self.subtotal is not None else None,
            "delivery_fee": float(self.delivery_fee) if self.delivery_fee is not None else None,
            "delivery_tier": self.delivery_tier,
            "total": float(self.total) if self.total is not None else None,
            "attended": bool(self.attended),
            "version": self.version,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ContactEntry(db.Model):
    __tablename__ = "contact_entry"

    id = Column(BIGINT, primary_key=True)
    name = Column(String(120), nullable=False)
    email = Column(String(120), nullable=False)
    phone = Column(String(30), nullable=False)
    company = Column(String(120), nullable=True)
    message = Column(Text, nullable=False)
    attended = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "message": self.message,
            "attended": bool(self.attended),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
