import logging
from flask import Blueprint
from werkzeug.exceptions import HTTPException
from app.services.catalog import StoreUnavailable
from app.utils.responses import error, unavailable_response

errors_bp = Blueprint("errors_bp", __name__)


@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code, code=e.code)


@errors_bp.app_errorhandler(StoreUnavailable)
def handle_store_unavailable(e):
    logging.warning("Store unavailable: %s", e)
    return unavailable_response()


@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception")
    return error(
        "An unexpected error occurred. Please try again later.",
        status=500,
        code=500,
    )
