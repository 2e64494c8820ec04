from typing import Optional
from pydantic import BaseModel, Field


class ContactRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    company: Optional[str] = None
    message: str = Field(min_length=1)
