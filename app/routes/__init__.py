from .cart import cart_bp
from .delivery import delivery_bp
from .orders import orders_bp
from .contact import contact_bp
from .catalog import catalog_bp
from .admin import admin_bp


__all__ = [
    'cart_bp',
    'delivery_bp',
    'orders_bp',
    'contact_bp',
    'catalog_bp',
    'admin_bp',
]
