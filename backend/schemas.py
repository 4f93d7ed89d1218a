from __future__ import annotations
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Literal, Optional

from quote import CalculatorSnapshot, QuoteConfiguration

# Each entity => one collection: Product -> "products", CustomerRequest -> "requests"

RequestStatus = Literal["new", "processing", "completed", "rejected"]


class ProductBase(BaseModel):
    name: str
    description: str = ""
    rating: float = 0.0
    image: Optional[str] = None
    category: str
    features: list[str] = Field(default_factory=list)
    specifications: dict[str, str] = Field(default_factory=dict)
    images: list[str] = Field(default_factory=list)

class ProductCreate(ProductBase):
    pass

class Product(ProductBase):
    """Stored product. Documents written by older admin builds may lack a name or category."""
    id: str
    name: str = ""
    category: str = ""

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[float] = None
    image: Optional[str] = None
    category: Optional[str] = None
    features: Optional[list[str]] = None
    specifications: Optional[dict[str, str]] = None
    images: Optional[list[str]] = None


class ContactFields(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: str = Field(..., min_length=10)
    message: str = ""

class RequestCreate(ContactFields):
    """Payload of the contact form and of the calculator's submit flow.

    ``date`` and ``status`` are assigned by the store; values sent by the
    client are ignored.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    calculator_data: Optional[QuoteConfiguration] = None

class CustomerRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    message: str = ""
    date: str
    status: RequestStatus = "new"
    calculator_data: Optional[CalculatorSnapshot] = None

class RequestUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    status: Optional[RequestStatus] = None

class StatusUpdate(BaseModel):
    status: RequestStatus
