from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import BigInteger, Integer

# Use BigInteger in production but fall back to Integer for SQLite
BIGINT = BigInteger().with_variant(Integer, "sqlite")

db = SQLAlchemy()

# Re-export common models for convenience
from .catalog import Category, Product, ProductVariant  # noqa: F401,E402
from .order import QuoteEntry, ContactEntry  # noqa: F401,E402
from .cart import StoredCart  # noqa: F401,E402
