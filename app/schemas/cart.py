from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class SelectedVariant(BaseModel):
    name: str
    price: Decimal = Field(ge=0)
    sku: Optional[str] = None


class CartItem(BaseModel):
    product_id: str = Field(min_length=1)
    product_name: str = ""
    sku: Optional[str] = None
    image: Optional[str] = None
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    min_quantity_unit: Optional[str] = None
    selected_variant: Optional[SelectedVariant] = None
    selected_color: Optional[str] = None


class UpdateQuantityRequest(BaseModel):
    product_id: str
    quantity: int
    variant_name: Optional[str] = None
    color: Optional[str] = None


class RemoveFromCartRequest(BaseModel):
    product_id: str
    variant_name: Optional[str] = None
    color: Optional[str] = None


class AddToCartRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(1, ge=1)
    variant_name: Optional[str] = None
    color: Optional[str] = None
