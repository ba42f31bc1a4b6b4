"""Employee service - Business logic for employee operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Company, Employee, User
from ...security_utils import generate_password, hash_password_bcrypt
from ...shared.validators import (
    UK_PHONE_ERROR,
    format_uk_phone,
    is_reserved_email,
    is_valid_email,
    is_valid_uk_phone,
    normalize_datetime,
    normalize_email,
    reserved_email_message,
    start_of_today,
)
from .repository import EmployeeRepository
from .schemas import EmployeeBase

logger = logging.getLogger(__name__)

EMPLOYEE_STATUSES = {"active", "inactive", "on_leave"}
ALLOWANCE_MESSAGE = (
    "You have reached your employee allowance. "
    "Please contact the CleanManager admin team to increase your limit."
)


class EmployeeService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = EmployeeRepository()

    def get_employees(self, user: User, status: Optional[str] = None) -> list[Employee]:
        return self.repo.get_employees(self.db, user.company_id, status)

    def get_employee(self, employee_id: int, user: User) -> Employee:
        employee = self.repo.get_employee_by_id(self.db, employee_id, user.company_id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        return employee

    def _validated_fields(
        self, data: EmployeeBase, user: User, exclude_id: Optional[int] = None
    ) -> dict:
        if not data.firstName or not data.lastName or not data.email:
            raise HTTPException(status_code=400, detail="First name, last name, and email are required")
        if not data.phone:
            raise HTTPException(status_code=400, detail="Phone number is required")
        if not data.address or not data.city or not data.postcode or not data.country:
            raise HTTPException(
                status_code=400, detail="Address, city, postcode, and country are required"
            )
        if not data.role:
            raise HTTPException(status_code=400, detail="Role is required")
        if not data.employmentType:
            raise HTTPException(status_code=400, detail="Employment type is required")
        if not data.startDate:
            raise HTTPException(status_code=400, detail="Start date is required")

        pay_type = data.payType or "hourly"
        if pay_type == "hourly" and data.hourlyRate is None:
            raise HTTPException(status_code=400, detail="Hourly rate is required for hourly pay type")
        if pay_type == "salary" and data.salary is None:
            raise HTTPException(status_code=400, detail="Salary is required for salaried employees")

        email = normalize_email(data.email)
        if not is_valid_email(email):
            raise HTTPException(status_code=400, detail="Invalid email format")
        if is_reserved_email(email):
            raise HTTPException(status_code=400, detail=reserved_email_message("Employee email"))

        company = self.db.query(Company).filter(Company.id == user.company_id).first()
        if company and normalize_email(company.email) == email:
            raise HTTPException(
                status_code=409, detail="Employee email cannot be the same as the company email"
            )
        if self.repo.company_user_with_email(self.db, user.company_id, email):
            raise HTTPException(
                status_code=409, detail="Employee email cannot be the same as a company user email"
            )

        if not is_valid_uk_phone(data.phone):
            raise HTTPException(status_code=400, detail=UK_PHONE_ERROR)
        if data.alternatePhone and not is_valid_uk_phone(data.alternatePhone):
            raise HTTPException(status_code=400, detail=f"Invalid alternate phone. {UK_PHONE_ERROR}")
        phone = format_uk_phone(data.phone)

        if self.repo.find_by_email(self.db, user.company_id, email, exclude_id):
            raise HTTPException(
                status_code=409, detail="An employee with this email already exists in your company"
            )
        if self.repo.find_by_phone(self.db, user.company_id, phone, exclude_id):
            raise HTTPException(
                status_code=409,
                detail="An employee with this phone number already exists in your company",
            )

        if data.status and data.status not in EMPLOYEE_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid employee status")

        return {
            "first_name": data.firstName.strip(),
            "last_name": data.lastName.strip(),
            "email": email,
            "username": email,
            "phone": phone,
            "alternate_phone": format_uk_phone(data.alternatePhone) if data.alternatePhone else None,
            "address": data.address,
            "city": data.city,
            "postcode": data.postcode,
            "country": data.country or "UK",
            "role": data.role,
            "employment_type": data.employmentType,
            "start_date": normalize_datetime(data.startDate),
            "end_date": normalize_datetime(data.endDate),
            "pay_type": pay_type,
            "hourly_rate": data.hourlyRate,
            "salary": data.salary,
            "payment_frequency": data.paymentFrequency or None,
            "notes": data.notes or None,
        }

    def create_employee(self, data: EmployeeBase, user: User) -> tuple[Employee, str]:
        """Create an employee with generated credentials; returns (employee, plain password)"""
        fields = self._validated_fields(data, user)

        company = self.db.query(Company).filter(Company.id == user.company_id).first()
        max_employees = company.max_employees if company else None
        if max_employees and self.repo.count_employees(self.db, user.company_id) >= max_employees:
            raise HTTPException(status_code=400, detail=ALLOWANCE_MESSAGE)

        if fields["start_date"] < start_of_today():
            raise HTTPException(status_code=400, detail="Start date cannot be in the past")

        plain_password = generate_password(12)
        fields["password"] = hash_password_bcrypt(plain_password)
        fields["status"] = data.status or "active"

        employee = self.repo.create_employee(self.db, user.company_id, **fields)
        logger.info(f"✅ Employee {employee.id} created for company {user.company_id}")
        return employee, plain_password

    def update_employee(self, employee_id: int, data: EmployeeBase, user: User) -> Employee:
        employee = self.get_employee(employee_id, user)
        fields = self._validated_fields(data, user, exclude_id=employee.id)
        if data.status:
            fields["status"] = data.status
        return self.repo.update_employee(self.db, employee, **fields)

    def delete_employee(self, employee_id: int, user: User) -> dict:
        employee = self.get_employee(employee_id, user)

        pending = self.repo.active_jobs_for(self.db, user.company_id, employee.id)
        if pending:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Cannot delete employee. They have {len(pending)} pending or in-progress job(s). "
                    "Please reassign or complete these jobs first."
                ),
            )

        self.repo.delete_employee(self.db, employee)
        logger.info(f"🗑️ Employee {employee_id} deleted by user {user.id}")
        return {"success": True, "message": "Employee deleted successfully"}
