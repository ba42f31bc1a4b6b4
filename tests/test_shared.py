import asyncio
import re

import pytest
from fastapi import HTTPException

from cleanmanager.rate_limiter import check_rate_limit, rate_limit_dependency
from cleanmanager.security_utils import check_password_strength, generate_password, generate_secure_token
from cleanmanager.shared.totals import calculate_totals
from cleanmanager.shared.validators import (
    format_uk_phone,
    is_reserved_email,
    is_valid_uk_phone,
    validate_email,
)


def test_uk_phone_validation_and_formatting():
    assert is_valid_uk_phone("07700 900123")
    assert is_valid_uk_phone("+44 7700 900123")
    assert is_valid_uk_phone("020 7946 0000")
    assert not is_valid_uk_phone("12345")
    assert format_uk_phone("+447700900123") == "07700 900 123"
    assert format_uk_phone("02079460000") == "020 7946 0000"
    assert format_uk_phone("01632960123") == "01632 960 123"


def test_validate_email():
    assert validate_email(" Jane@Example.COM ") == "jane@example.com"
    with pytest.raises(ValueError, match="Invalid email format"):
        validate_email("not-an-email")
    assert is_reserved_email("Contact@BindMe.co.uk")
    assert not is_reserved_email("")


def test_password_strength():
    assert check_password_strength("CleanPass#2026")["is_valid"] is True

    weak = check_password_strength("short")
    assert weak["is_valid"] is False
    assert "Password must be at least 8 characters long" in weak["errors"]

    common = check_password_strength("Password1!")
    assert common["score"] == 0
    assert not common["is_valid"]


def test_generated_passwords_meet_policy():
    for _ in range(20):
        assert check_password_strength(generate_password())["is_valid"]


def test_secure_tokens_are_url_safe_and_unique():
    tokens = {generate_secure_token() for _ in range(20)}

    assert len(tokens) == 20
    assert all(len(token) >= 40 and re.fullmatch(r"[A-Za-z0-9_-]+", token) for token in tokens)


def test_calculate_totals():
    items = [
        {"amount": 100, "taxable": True},
        {"amount": 20, "taxable": False},
    ]

    assert calculate_totals(items, tax_rate=20, discount_amount=10) == {
        "subtotal": 120,
        "tax_amount": 20,
        "total": 130,
    }
    assert calculate_totals([], tax_rate=None, discount_amount=None) == {
        "subtotal": 0,
        "tax_amount": 0,
        "total": 0,
    }


def test_check_rate_limit_counts_within_window():
    results = [check_rate_limit("unit:window", limit=2, window_seconds=60) for _ in range(3)]

    assert [allowed for allowed, _, _ in results] == [True, True, False]
    assert results[-1][1] == 2
    assert 1 <= results[-1][2] <= 60


def test_rate_limit_dependency_raises_429():
    class FakeState:
        pass

    class FakeRequest:
        headers = {"x-forwarded-for": "203.0.113.9, 10.0.0.1"}
        client = None
        state = FakeState()

    request = FakeRequest()

    async def hit():
        await rate_limit_dependency(request, limit=1, window_seconds=60, key_prefix="unit")

    asyncio.run(hit())
    assert request.state.rate_limit_remaining == 0
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(hit())
    assert excinfo.value.status_code == 429
    assert excinfo.value.headers["Retry-After"]


def test_health_and_security_headers(client):
    health = client.get("/health")
    root = client.get("/")

    assert health.json() == {"status": "healthy"}
    assert root.json() == {"message": "CleanManager API is running"}
    assert root.headers["X-Frame-Options"] == "DENY"
    assert root.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Frame-Options" not in health.headers
