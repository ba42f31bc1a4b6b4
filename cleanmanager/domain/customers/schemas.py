"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Customer


class CustomerBase(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alternatePhone: Optional[str] = None
    address: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    customerType: Optional[str] = None
    status: Optional[str] = None
    companyName: Optional[str] = None
    accessInstructions: Optional[str] = None
    specialInstructions: Optional[str] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    """Schema for creating a customer; required fields are checked by the service"""


class CustomerUpdate(CustomerBase):
    """Full replacement of the editable customer fields"""


class CustomerStatusUpdate(BaseModel):
    status: str


class CustomerResponse(BaseModel):
    id: int
    firstName: str
    lastName: str
    name: str
    email: str
    phone: Optional[str] = None
    alternatePhone: Optional[str] = None
    address: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    customerType: Optional[str] = None
    status: Optional[str] = None
    companyName: Optional[str] = None
    accessInstructions: Optional[str] = None
    specialInstructions: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


def to_customer_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        firstName=customer.first_name,
        lastName=customer.last_name,
        name=customer.name,
        email=customer.email,
        phone=customer.phone,
        alternatePhone=customer.alternate_phone,
        address=customer.address,
        addressLine2=customer.address_line2,
        city=customer.city,
        postcode=customer.postcode,
        country=customer.country,
        customerType=customer.customer_type,
        status=customer.status,
        companyName=customer.company_name,
        accessInstructions=customer.access_instructions,
        specialInstructions=customer.special_instructions,
        notes=customer.notes,
        createdAt=customer.created_at,
        updatedAt=customer.updated_at,
    )
