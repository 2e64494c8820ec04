# --- models/catalog.py ---
from models import db
from datetime import datetime


class Category(db.Model):
    __tablename__ = "category"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(100), nullable=False, unique=True)
    parent_id = db.Column(db.String(36), db.ForeignKey("category.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "parent_id": self.parent_id,
        }


class Product(db.Model):
    __tablename__ = "product"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
    )

    id = db.Column(db.String(36), primary_key=True)
    category_id = db.Column(db.String(36), db.ForeignKey("category.id"), nullable=True)

    # Core details
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    sku = db.Column(db.String(50), nullable=True)

    # Pricing
    price = db.Column(db.Numeric(10, 2), nullable=False)          # Base price

    # Inventory
    stock = db.Column(db.Integer, nullable=False, default=0)
    min_quantity = db.Column(db.Integer, nullable=True)
    min_quantity_unit = db.Column(db.String(20), nullable=True)   # unidad, docena, metro

    # Options
    colors = db.Column(db.JSON, nullable=True)                    # ["Dorado", "Plateado"]
    has_variants = db.Column(db.Boolean, default=False)
    variant_type = db.Column(db.String(50), nullable=True)        # e.g. "Tipo de Tela"

    # Visibility
    active = db.Column(db.Boolean, default=True)
    featured = db.Column(db.Boolean, default=False)

    # Media
    image_url = db.Column(db.String(255), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship("Category", backref="products")
    variants = db.relationship(
        "ProductVariant",
        backref="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
        lazy=True,
    )

    def find_variant(self, name):
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def effective_stock(self, variant_name=None):
        """Stock available for the product or one of its variants.

        A variant without its own stock value reports the parent's stock.
        """
        if variant_name:
            variant = self.find_variant(variant_name)
            if variant is not None and variant.stock is not None:
                return variant.stock
        return self.stock or 0

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sku": self.sku,
            "price": float(self.price),
            "stock": self.stock,
            "category_id": self.category_id,
            "min_quantity": self.min_quantity,
            "min_quantity_unit": self.min_quantity_unit,
            "colors": self.colors or [],
            "has_variants": bool(self.has_variants),
            "variant_type": self.variant_type,
            "variants": [v.to_dict(fallback_stock=self.stock) for v in self.variants],
            "active": bool(self.active),
            "featured": bool(self.featured),
            "image_url": self.image_url,
        }


class ProductVariant(db.Model):
    __tablename__ = "product_variant"
    __table_args__ = (
        db.UniqueConstraint("product_id", "name", name="uq_variant_product_name"),
        db.CheckConstraint("stock IS NULL OR stock >= 0", name="ck_variant_stock_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.String(36), db.ForeignKey("product.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=True)                  # NULL = shares parent stock
    sku = db.Column(db.String(50), nullable=True)
    image_url = db.Column(db.String(255), nullable=True)
    active = db.Column(db.Boolean, default=True)

    def to_dict(self, fallback_stock=None):
        return {
            "name": self.name,
            "price": float(self.price),
            "stock": self.stock,
            "effective_stock": self.stock if self.stock is not None else (fallback_stock or 0),
            "sku": self.sku,
            "image_url": self.image_url,
            "active": bool(self.active),
        }
