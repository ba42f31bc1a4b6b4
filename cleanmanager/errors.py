"""
Global exception handlers

Database constraint violations are reported as 409 with a readable message
instead of the raw driver text. Validation errors are flattened to a single
``detail`` string so clients can show it directly.
"""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

# Keys match PostgreSQL constraint names and SQLite "UNIQUE constraint failed" column lists
UNIQUE_VIOLATION_MESSAGES = {
    "employees_company_email_unique": "An employee with this email already exists",
    "employees.company_id, employees.email": "An employee with this email already exists",
    "employees_company_phone_unique": "An employee with this phone number already exists",
    "employees.company_id, employees.phone": "An employee with this phone number already exists",
    "employees_company_username_unique": "An employee with this username already exists",
    "employees.company_id, employees.username": "An employee with this username already exists",
    "customers_company_email_unique": "A customer with this email already exists",
    "customers.company_id, customers.email": "A customer with this email already exists",
    "customers_company_phone_unique": "A customer with this phone number already exists",
    "customers.company_id, customers.phone": "A customer with this phone number already exists",
    "quotes_company_number_unique": "A quote with this number already exists",
    "quotes.company_id, quotes.quote_number": "A quote with this number already exists",
    "invoices_company_number_unique": "An invoice with this number already exists",
    "invoices.company_id, invoices.invoice_number": "An invoice with this number already exists",
    "users_email_key": "An account with this email already exists",
    "users.email": "An account with this email already exists",
    "companies_email_key": "A company with this email already exists",
    "companies.email": "A company with this email already exists",
}

DEFAULT_CONFLICT_MESSAGE = "This record conflicts with existing data"


def clean_integrity_error(exc: IntegrityError) -> str:
    """Map a constraint violation to a message safe to show to users"""
    raw = str(exc.orig) if exc.orig is not None else str(exc)
    for marker, message in UNIQUE_VIOLATION_MESSAGES.items():
        if marker in raw:
            return message
    return DEFAULT_CONFLICT_MESSAGE


def first_validation_message(errors: list[dict]) -> str:
    if not errors:
        return "Invalid request"
    error = errors[0]
    if error.get("type") == "missing":
        field = error.get("loc", ["field"])[-1]
        return f"{field} is required"
    message = str(error.get("msg", "Invalid request"))
    return message.removeprefix("Value error, ")


async def integrity_error_handler(request: Request, exc: IntegrityError):
    message = clean_integrity_error(exc)
    logger.warning(f"⚠️ Integrity error on {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=409, content={"detail": message})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning(f"❌ Validation error on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": first_validation_message(errors),
            "errors": jsonable_encoder(errors),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_exception_handlers(app) -> None:
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
