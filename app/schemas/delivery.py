from typing import Literal, Optional
from pydantic import BaseModel


class DeliveryQuoteRequest(BaseModel):
    method: Literal["pickup", "shipping"] = "shipping"
    zone: Literal["capital", "national"] = "capital"
    destination: Optional[str] = None
    distance_km: Optional[float] = None
    resolve_distance: bool = False
