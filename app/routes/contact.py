import logging
from flask import Blueprint, current_app, request
from flask_limiter.util import get_remote_address
from extensions import limiter
from app.version import API_PREFIX
from app.schemas.contact import ContactRequest
from app.services.catalog import SqlContactStore
from app.tasks.notifications import dispatch_submission
from app.utils import ok, validate_schema

contact_bp = Blueprint("contact", __name__, url_prefix=API_PREFIX)
logger = logging.getLogger(__name__)


@contact_bp.route("/contact", methods=["POST"])
@limiter.limit(lambda: current_app.config["CHECKOUT_LIMIT_PER_IP"], key_func=get_remote_address,
               error_message="Too many requests from this IP")
@validate_schema(ContactRequest)
def submit_contact():
    """Store a contact request from the storefront.
    ---
    tags: [Contact]
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, email, phone, message]
          properties:
            name: {type: string}
            email: {type: string}
            phone: {type: string}
            company: {type: string}
            message: {type: string}
    responses:
      201:
        description: Contact stored
      400:
        description: Missing fields
    """
    data = request.validated_data.model_dump()
    data = {k: (v.strip() if isinstance(v, str) else v) for k, v in data.items()}
    contact_id = SqlContactStore().create_contact(data)
    logger.info("Contact request #%s stored", contact_id)
    try:
        dispatch_submission("contact", {"id": contact_id, **data})
    except Exception as e:
        logger.warning("Could not notify webhook about contact: %s", e, exc_info=True)
    return ok({"contact_id": contact_id}, message="Message received", status=201)
