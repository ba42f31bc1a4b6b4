"""Employee domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Employee


class EmployeeBase(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alternatePhone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    role: Optional[str] = None
    employmentType: Optional[str] = None
    status: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    payType: Optional[str] = None
    hourlyRate: Optional[float] = None
    salary: Optional[float] = None
    paymentFrequency: Optional[str] = None
    notes: Optional[str] = None


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(EmployeeBase):
    pass


class EmployeeResponse(BaseModel):
    """Employee as returned by the API; the password hash is never included"""

    id: int
    companyId: int
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    alternatePhone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None
    employmentType: Optional[str] = None
    status: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    payType: Optional[str] = None
    hourlyRate: Optional[float] = None
    salary: Optional[float] = None
    paymentFrequency: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class EmployeeCreatedResponse(EmployeeResponse):
    plainPassword: str


def employee_fields(employee: Employee) -> dict:
    return {
        "id": employee.id,
        "companyId": employee.company_id,
        "firstName": employee.first_name,
        "lastName": employee.last_name,
        "email": employee.email,
        "phone": employee.phone,
        "alternatePhone": employee.alternate_phone,
        "address": employee.address,
        "city": employee.city,
        "postcode": employee.postcode,
        "country": employee.country,
        "username": employee.username,
        "role": employee.role,
        "employmentType": employee.employment_type,
        "status": employee.status,
        "startDate": employee.start_date,
        "endDate": employee.end_date,
        "payType": employee.pay_type,
        "hourlyRate": employee.hourly_rate,
        "salary": employee.salary,
        "paymentFrequency": employee.payment_frequency,
        "notes": employee.notes,
        "createdAt": employee.created_at,
        "updatedAt": employee.updated_at,
    }


def to_employee_response(employee: Employee) -> EmployeeResponse:
    return EmployeeResponse(**employee_fields(employee))
