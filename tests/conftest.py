import os
from datetime import datetime, timedelta

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cleanmanager import email_service
from cleanmanager.database import Base, get_db
from cleanmanager.domain.portal.codes import login_codes
from cleanmanager.main import app
from cleanmanager.models import User
from cleanmanager.rate_limiter import reset_rate_limits

PASSWORD = "CleanPass#2026"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    reset_rate_limits()
    login_codes.clear()
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing email instead of calling Resend"""
    sent = []

    async def fake_send_email(to, subject, mjml_content, from_address=None):
        sent.append({"to": to, "subject": subject, "body": mjml_content})
        return {"id": f"test-{len(sent)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def client():
    return TestClient(app)


def make_client() -> TestClient:
    return TestClient(app)


def tomorrow_at(hour: int = 9) -> str:
    value = (datetime.utcnow() + timedelta(days=1)).replace(hour=hour, minute=0, second=0, microsecond=0)
    return value.isoformat()


def signup_payload(prefix: str = "acme") -> dict:
    return {
        "companyName": f"{prefix.title()} Cleaning",
        "companyEmail": f"office@{prefix}.co.uk",
        "companyPhone": "020 7946 0000",
        "companyAddress": "1 High Street",
        "companyCity": "London",
        "companyPostcode": "SW1A 1AA",
        "businessType": "residential",
        "firstName": "Sam",
        "lastName": "Owner",
        "email": f"owner@{prefix}.co.uk",
        "password": PASSWORD,
    }


def register_company(client: TestClient, prefix: str = "acme") -> dict:
    """Sign up, verify the email and leave the client signed in as the admin"""
    response = client.post("/api/auth/signup", json=signup_payload(prefix))
    assert response.status_code == 201, response.text

    session = TestingSessionLocal()
    try:
        user = session.query(User).filter(User.email == f"owner@{prefix}.co.uk").first()
        token = user.verification_token
    finally:
        session.close()

    verified = client.get("/api/auth/verify-email", params={"token": token})
    assert verified.status_code == 200, verified.text
    return verified.json()


@pytest.fixture
def admin(client):
    register_company(client, "acme")
    return client


def customer_payload(**overrides) -> dict:
    payload = {
        "firstName": "Jane",
        "lastName": "Smith",
        "email": "jane.smith@example.com",
        "phone": "07700 900123",
        "address": "10 Downing Street",
        "city": "London",
        "postcode": "SW1A 2AA",
        "country": "United Kingdom",
    }
    payload.update(overrides)
    return payload


def employee_payload(**overrides) -> dict:
    payload = {
        "firstName": "Alex",
        "lastName": "Cleaner",
        "email": "alex@staff.co.uk",
        "phone": "07700 900456",
        "address": "22 Baker Street",
        "city": "London",
        "postcode": "NW1 6XE",
        "country": "UK",
        "role": "Cleaner",
        "employmentType": "full_time",
        "startDate": tomorrow_at(8),
        "payType": "hourly",
        "hourlyRate": 12.5,
    }
    payload.update(overrides)
    return payload


def create_customer(client: TestClient, **overrides) -> dict:
    response = client.post("/api/customers", json=customer_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


def create_employee(client: TestClient, **overrides) -> dict:
    response = client.post("/api/employees", json=employee_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


def create_job(client: TestClient, customer_id: int, **overrides) -> dict:
    payload = {
        "title": "Deep clean",
        "customerId": customer_id,
        "location": "10 Downing Street",
        "scheduledFor": tomorrow_at(10),
        "estimatedPrice": 120,
    }
    payload.update(overrides)
    response = client.post("/api/jobs", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
