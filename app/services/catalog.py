"""SQL implementations of the catalog and order collaborators.

Reads always go back to the database (``populate_existing``) so stock seen by
the fulfillment reconciler is the live value, never a copy cached in the
session identity map.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from models import db
from models.catalog import Category, Product
from models.order import QuoteEntry, ContactEntry

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    pass


class ProductNotFound(Exception):
    pass


class SqlCatalog:
    def fetch_product(self, product_id: str) -> Optional[Product]:
        stmt = (
            select(Product)
            .options(selectinload(Product.variants))
            .where(Product.id == str(product_id))
            .execution_options(populate_existing=True)
        )
        try:
            return db.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable("Catalog is unreachable") from e

    def fetch_products(self, category_id: Optional[str] = None, only_active: bool = True) -> List[Product]:
        stmt = (
            select(Product)
            .options(selectinload(Product.variants))
            .order_by(Product.name)
            .execution_options(populate_existing=True)
        )
        if category_id:
            child_ids = select(Category.id).where(Category.parent_id == category_id)
            stmt = stmt.where(
                (Product.category_id == category_id) | Product.category_id.in_(child_ids)
            )
        if only_active:
            stmt = stmt.where(Product.active.is_(True))
        try:
            return list(db.session.execute(stmt).scalars())
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable("Catalog is unreachable") from e

    def fetch_categories(self) -> List[Category]:
        return Category.query.order_by(Category.name).all()

    def update_product(self, product_id: str, fields: Dict) -> Product:
        """Write ``stock`` and/or per-variant ``variants`` stock, committing immediately.

        ``fields`` looks like ``{"stock": 3, "variants": {"L": 2}}``. Only
        variants that already exist are touched.
        """
        product = self.fetch_product(product_id)
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found")
        variant_stock = []
        for name, stock in (fields.get("variants") or {}).items():
            variant = product.find_variant(name)
            if variant is None:
                raise ProductNotFound(f"Variant {name!r} not found on product {product_id}")
            variant_stock.append((variant, int(stock)))
        if "stock" in fields:
            product.stock = int(fields["stock"])
        for variant, stock in variant_stock:
            variant.stock = stock
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable(f"Failed to update product {product_id}") from e
        return product


class SqlOrderStore:
    def create_order(self, order) -> int:
        """Persist a ``ProductOrder`` or ``ServiceOrder`` and return its id."""
        data = order.to_record()
        entry = QuoteEntry(**data)
        db.session.add(entry)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Order insert failed: %s", e, exc_info=True)
            raise StoreUnavailable("Order could not be saved") from e
        return entry.id

    def fetch_order(self, order_id) -> Optional[QuoteEntry]:
        stmt = (
            select(QuoteEntry)
            .where(QuoteEntry.id == order_id)
            .execution_options(populate_existing=True)
        )
        try:
            return db.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable("Order store is unreachable") from e

    def list_orders(self, attended: Optional[bool] = None, limit: int = 100) -> List[QuoteEntry]:
        query = QuoteEntry.query
        if attended is not None:
            query = query.filter_by(attended=attended)
        return query.order_by(QuoteEntry.created_at.desc(), QuoteEntry.id.desc()).limit(limit).all()

    def update_order_attended(self, order_id, attended: bool, expected_version: int) -> bool:
        """Compare-and-set the flag; ``False`` means the version moved underneath us."""
        stmt = (
            update(QuoteEntry)
            .where(QuoteEntry.id == order_id, QuoteEntry.version == expected_version)
            .values(attended=attended, version=QuoteEntry.version + 1)
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable("Order store is unreachable") from e
        return result.rowcount == 1


class SqlContactStore:
    def create_contact(self, data: Dict) -> int:
        entry = ContactEntry(**data)
        db.session.add(entry)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable("Contact could not be saved") from e
        return entry.id

    def toggle_attended(self, contact_id) -> Optional[ContactEntry]:
        contact = db.session.get(ContactEntry, contact_id)
        if contact is None:
            return None
        contact.attended = not contact.attended
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreUnavailable("Contact could not be updated") from e
        return contact

    def list_contacts(self, attended: Optional[bool] = None, limit: int = 100) -> List[ContactEntry]:
        query = ContactEntry.query
        if attended is not None:
            query = query.filter_by(attended=attended)
        return query.order_by(ContactEntry.created_at.desc(), ContactEntry.id.desc()).limit(limit).all()
