"""Demo textile catalog for local development and smoke tests."""
import logging
from decimal import Decimal

from models import db
from models.catalog import Category, Product, ProductVariant

logger = logging.getLogger(__name__)

DEMO_CATEGORIES = [
    {"id": "cat-telas", "name": "Telas", "slug": "telas"},
    {"id": "cat-telas-deportivas", "name": "Telas deportivas", "slug": "telas-deportivas", "parent_id": "cat-telas"},
    {"id": "cat-merceria", "name": "Mercería", "slug": "merceria"},
]

DEMO_PRODUCTS = [
    {
        "id": "prd-hilo-poliester",
        "category_id": "cat-merceria",
        "name": "Hilo de poliéster 5000 yds",
        "sku": "HIL-5000",
        "price": Decimal("3.50"),
        "stock": 120,
        "min_quantity_unit": "unidad",
        "colors": ["Blanco", "Negro", "Azul marino"],
    },
    {
        "id": "prd-cierre-metal",
        "category_id": "cat-merceria",
        "name": "Cierre metálico 20 cm",
        "sku": "CIE-20",
        "price": Decimal("0.80"),
        "stock": 300,
        "min_quantity": 12,
        "min_quantity_unit": "docena",
        "colors": ["Dorado", "Plateado"],
    },
    {
        "id": "prd-dryfit",
        "category_id": "cat-telas-deportivas",
        "name": "Tela Dry Fit",
        "sku": "TEL-DRY",
        "price": Decimal("4.20"),
        "stock": 40,
        "min_quantity_unit": "metro",
        "has_variants": True,
        "variant_type": "Ancho",
        "variants": [
            {"name": "1.50 m", "price": Decimal("4.20"), "stock": 25, "sku": "TEL-DRY-150"},
            {"name": "1.80 m", "price": Decimal("5.10"), "stock": None, "sku": "TEL-DRY-180"},
        ],
    },
    {
        "id": "prd-gabardina",
        "category_id": "cat-telas",
        "name": "Gabardina stretch",
        "sku": "TEL-GAB",
        "price": Decimal("6.75"),
        "stock": 60,
        "min_quantity_unit": "metro",
        "colors": ["Beige", "Negro"],
        "featured": True,
    },
]


def seed_demo_catalog() -> dict:
    """Insert the demo categories and products that are not there yet."""
    created = {"categories": 0, "products": 0}
    for data in DEMO_CATEGORIES:
        if db.session.get(Category, data["id"]) is None:
            db.session.add(Category(**data))
            created["categories"] += 1
    db.session.flush()
    for data in DEMO_PRODUCTS:
        if db.session.get(Product, data["id"]) is not None:
            continue
        data = dict(data)
        variants = data.pop("variants", [])
        product = Product(**data)
        product.variants = [ProductVariant(**v) for v in variants]
        db.session.add(product)
        created["products"] += 1
    db.session.commit()
    logger.info("Seeded %(categories)s categories and %(products)s products", created)
    return created
