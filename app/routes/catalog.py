from flask import Blueprint, request
from app.version import API_PREFIX
from app.services.catalog import SqlCatalog
from app.utils import ok, error

catalog_bp = Blueprint("catalog", __name__, url_prefix=API_PREFIX)


@catalog_bp.route("/products", methods=["GET"])
def list_products():
    """Active products, optionally filtered by category (children included).
    ---
    tags: [Catalog]
    parameters:
      - in: query
        name: category_id
        type: string
    responses:
      200:
        description: Product list
    """
    products = SqlCatalog().fetch_products(category_id=request.args.get("category_id"))
    return ok([p.to_dict() for p in products])


@catalog_bp.route("/products/<product_id>", methods=["GET"])
def get_product(product_id):
    """
    ---
    tags: [Catalog]
    responses:
      200:
        description: Product with variants and effective stock
      404:
        description: Not found
    """
    product = SqlCatalog().fetch_product(product_id)
    if product is None or not product.active:
        return error("Product not found", status=404)
    return ok(product.to_dict())


@catalog_bp.route("/categories", methods=["GET"])
def list_categories():
    """
    ---
    tags: [Catalog]
    responses:
      200:
        description: Category list
    """
    return ok([c.to_dict() for c in SqlCatalog().fetch_categories()])
