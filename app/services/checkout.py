"""Turns a cart, a delivery quote and the customer's form into an order.

Two kinds of submission exist: ``ProductOrder`` (a cart checkout, with frozen
line items and delivery fee) and ``ServiceOrder`` (a quote request for a
service or a single catalog product). Both are stored as quote entries and
rendered to the text sent to the sales WhatsApp line.
"""
import random
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Union
from urllib.parse import quote as urlquote

from pydantic import BaseModel, Field

from app.schemas.cart import CartItem
from app.services.delivery import DeliveryQuote

ORDER_CODE_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"
DEFAULT_SERVICE = "Otro / Consulta General"
NO_SKU = "SIN-SKU"

REQUIRED_CUSTOMER_FIELDS = ("customer_name", "phone")
REQUIRED_SHIPPING_FIELDS = (
    "shipping_address",
    "shipping_city",
    "recipient_name",
    "recipient_id",
    "recipient_phone",
)


class CheckoutValidationError(Exception):
    """All missing or invalid checkout fields, reported together."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("Missing required fields: " + ", ".join(sorted(errors)))


class CheckoutForm(BaseModel):
    customer_name: str = ""
    phone: str = ""
    email: Optional[str] = None
    delivery_method: Literal["pickup", "shipping"] = "pickup"
    zone: Literal["capital", "national"] = "capital"
    shipping_agency: Literal["MRW", "ZOOM"] = "MRW"
    shipping_address: str = ""
    shipping_city: str = ""
    recipient_name: str = ""
    recipient_id: str = ""
    recipient_phone: str = ""
    same_as_customer: bool = False
    distance_km: Optional[float] = None
    notes: str = ""

    def resolved(self) -> "CheckoutForm":
        if not self.same_as_customer:
            return self
        return self.model_copy(update={"recipient_name": self.customer_name,
                                       "recipient_phone": self.phone})

    @property
    def destination(self) -> str:
        return ", ".join(p.strip() for p in (self.shipping_address, self.shipping_city) if p.strip())


class ServiceQuoteForm(BaseModel):
    customer_name: str = ""
    phone: str = ""
    email: str = ""
    service_name: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    variant: Optional[str] = None
    quantity: int = 1
    notes: str = ""


class ShippingDetails(BaseModel):
    agency: str
    address: str
    city: str
    recipient_name: str
    recipient_id: str
    recipient_phone: str


class ProductOrder(BaseModel):
    kind: Literal["product"] = "product"
    order_code: str
    customer_name: str
    phone: str
    email: Optional[str] = None
    delivery_method: Literal["pickup", "shipping"]
    zone: Optional[str] = None
    shipping: Optional[ShippingDetails] = None
    items: List[CartItem]
    subtotal: Decimal
    delivery_fee: Decimal
    delivery_tier: str
    delivery_note: Optional[str] = None
    total: Decimal
    notes: str = ""

    @property
    def product_name(self) -> str:
        return f"Pedido #{self.order_code}"

    @property
    def quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_record(self) -> Dict:
        return {
            "kind": self.kind,
            "order_code": self.order_code,
            "customer_name": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "product_id": self.items[0].product_id if self.items else None,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "specifications": render_specifications(self),
            "delivery_method": self.delivery_method,
            "shipping": self.shipping.model_dump() if self.shipping else None,
            "items": [item.model_dump(mode="json") for item in self.items],
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "delivery_tier": self.delivery_tier,
            "total": self.total,
        }


class ServiceOrder(BaseModel):
    kind: Literal["service"] = "service"
    order_code: str
    customer_name: str
    phone: str
    email: str
    service_name: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    variant: Optional[str] = None
    quantity: int = 1
    notes: str = ""

    def to_record(self) -> Dict:
        return {
            "kind": self.kind,
            "order_code": self.order_code,
            "customer_name": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "service_name": self.service_name,
            "quantity": self.quantity,
            "specifications": render_specifications(self),
        }


Order = Annotated[Union[ProductOrder, ServiceOrder], Field(discriminator="kind")]


def generate_order_code(rng=random) -> str:
    return rng.choice(ORDER_CODE_LETTERS) + str(rng.randint(1000, 9999))


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def validate_checkout(form: CheckoutForm, items: List[CartItem]) -> Dict[str, str]:
    errors = {}
    if not items:
        errors["items"] = "Cart is empty"
    for field in REQUIRED_CUSTOMER_FIELDS:
        if _blank(getattr(form, field)):
            errors[field] = "This field is required"
    if form.delivery_method == "shipping":
        for field in REQUIRED_SHIPPING_FIELDS:
            if _blank(getattr(form, field)):
                errors[field] = "This field is required for shipping"
    return errors


def assemble_order(form: CheckoutForm, items: List[CartItem], quote: DeliveryQuote,
                   order_code: Optional[str] = None) -> ProductOrder:
    """Validate everything up front and build the frozen order snapshot."""
    form = form.resolved()
    errors = validate_checkout(form, items)
    if errors:
        raise CheckoutValidationError(errors)

    frozen = [item.model_copy(deep=True) for item in items]
    subtotal = sum((item.price * item.quantity for item in frozen), Decimal("0"))
    fee = Decimal("0") if form.delivery_method == "pickup" else quote.fee
    shipping = None
    if form.delivery_method == "shipping":
        shipping = ShippingDetails(
            agency=form.shipping_agency,
            address=form.shipping_address.strip(),
            city=form.shipping_city.strip(),
            recipient_name=form.recipient_name.strip(),
            recipient_id=form.recipient_id.strip(),
            recipient_phone=form.recipient_phone.strip(),
        )
    return ProductOrder(
        order_code=order_code or generate_order_code(),
        customer_name=form.customer_name.strip(),
        phone=form.phone.strip(),
        email=(form.email or "").strip() or None,
        delivery_method=form.delivery_method,
        zone=form.zone if form.delivery_method == "shipping" else None,
        shipping=shipping,
        items=frozen,
        subtotal=subtotal,
        delivery_fee=fee,
        delivery_tier=quote.tier,
        delivery_note=quote.note,
        total=subtotal + fee,
        notes=form.notes.strip(),
    )


def assemble_service_quote(form: ServiceQuoteForm, order_code: Optional[str] = None) -> ServiceOrder:
    errors = {}
    for field in ("customer_name", "phone", "email"):
        if _blank(getattr(form, field)):
            errors[field] = "This field is required"
    if form.quantity < 1:
        errors["quantity"] = "Quantity must be at least 1"
    if errors:
        raise CheckoutValidationError(errors)
    service_name = None if form.product_id else (form.service_name or DEFAULT_SERVICE)
    return ServiceOrder(
        order_code=order_code or generate_order_code(),
        customer_name=form.customer_name.strip(),
        phone=form.phone.strip(),
        email=form.email.strip(),
        service_name=service_name,
        product_id=form.product_id,
        product_name=form.product_name,
        variant=form.variant,
        quantity=form.quantity,
        notes=form.notes.strip(),
    )


def _money(value: Decimal) -> str:
    return f"${Decimal(value):.2f}"


def _item_summary(item: CartItem) -> str:
    sku = item.sku or (item.selected_variant.sku if item.selected_variant else None) or NO_SKU
    extras = ""
    if item.selected_variant:
        extras += f" [{item.selected_variant.name}]"
    if item.selected_color:
        extras += f" [Color: {item.selected_color}]"
    return f"{item.product_name} ({sku}){extras} x{item.quantity}"


def _shipping_lines(order: ProductOrder) -> List[str]:
    if order.shipping is None:
        return ["ENTREGA: Retiro en tienda"]
    s = order.shipping
    return [
        f"ENVIO: {s.agency}",
        f"Direccion Agencia: {s.address}",
        f"Ciudad: {s.city}",
        f"Nombre Destinatario: {s.recipient_name}",
        f"Cedula: {s.recipient_id}",
        f"Telefono: {s.recipient_phone}",
    ]


def render_specifications(order: Order) -> str:
    """Plain-text body stored with the quote entry."""
    if isinstance(order, ProductOrder):
        lines = [
            f"PEDIDO #{order.order_code}",
            "ITEMS: " + ", ".join(_item_summary(i) for i in order.items),
            f"SUBTOTAL: {_money(order.subtotal)}",
            f"DELIVERY ({order.delivery_tier}): {_money(order.delivery_fee)}",
            f"TOTAL: {_money(order.total)}",
        ]
        if order.delivery_note:
            lines.append(f"NOTA DELIVERY: {order.delivery_note}")
        lines.extend(_shipping_lines(order))
    elif isinstance(order, ServiceOrder):
        subject = order.service_name or order.product_name or order.product_id
        lines = [
            f"COTIZACION #{order.order_code}",
            f"{'SERVICIO' if order.service_name else 'PRODUCTO'}: {subject}",
            f"CANTIDAD: {order.quantity}",
        ]
        if order.variant:
            lines.append(f"Color/Variante requerida: {order.variant}")
    else:
        raise TypeError(f"Unsupported order type: {type(order).__name__}")
    if order.notes:
        lines.append(f"NOTAS: {order.notes}")
    return "\n".join(lines)


def render_whatsapp_message(order: Order) -> str:
    if isinstance(order, ServiceOrder):
        return (
            f"Hola! Nueva cotizacion *#{order.order_code}*\n"
            f"Cliente: {order.customer_name}\nTel: {order.phone}\n\n"
            + render_specifications(order)
        )
    message = f"Hola! Nuevo Pedido *#{order.order_code}*\n"
    message += f"Total: *{_money(order.total)}* ({len(order.items)} items)\n\n"
    message += f"Cliente: {order.customer_name}\n"
    message += f"Tel: {order.phone}\n"
    if order.shipping is not None:
        s = order.shipping
        message += "\n--- DATOS DE ENVIO ---\n"
        message += f"Agencia: {s.agency}\n"
        message += f"Direccion: {s.address}\n"
        message += f"Ciudad: {s.city}\n"
        message += f"Destinatario: {s.recipient_name}\n"
        message += f"Cedula: {s.recipient_id}\n"
        message += f"Tel Envio: {s.recipient_phone}\n"
        message += f"Delivery ({order.delivery_tier}): {_money(order.delivery_fee)}\n"
    else:
        message += "\nEntrega: Retiro en tienda\n"
    return message


def whatsapp_url(phone: str, message: str) -> str:
    return f"https://wa.me/{phone}?text={urlquote(message, safe='')}"
