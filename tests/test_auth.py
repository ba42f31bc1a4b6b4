from datetime import datetime, timedelta

from conftest import PASSWORD, make_client, register_company, signup_payload

from cleanmanager import config, email_service
from cleanmanager.models import Company, PasswordResetToken, User


def test_signup_creates_unverified_admin_and_sends_verification(client, db, outbox):
    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["requiresVerification"] is True
    assert body["user"]["role"] == "admin"

    user = db.query(User).filter(User.email == "owner@acme.co.uk").one()
    assert user.email_verified is False
    assert user.password != PASSWORD
    company = db.query(Company).one()
    assert company.subscription_plan == "trial"
    assert company.trial_ends_at > datetime.utcnow() + timedelta(days=14)
    assert company.notification_settings["jobUpdates"] is True

    assert outbox[0]["to"] == "owner@acme.co.uk"
    assert user.verification_token in outbox[0]["body"]


def test_signup_rejects_duplicate_email(client, db):
    assert client.post("/api/auth/signup", json=signup_payload()).status_code == 201

    payload = signup_payload()
    payload["companyEmail"] = "other@acme.co.uk"
    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 409
    assert "already exists" in response.json()["detail"]
    assert db.query(User).count() == 1
    assert db.query(Company).count() == 1


def test_signup_rejects_duplicate_company_email_without_writing(client, db):
    assert client.post("/api/auth/signup", json=signup_payload()).status_code == 201
    users_before = db.query(User).count()
    companies_before = db.query(Company).count()

    payload = signup_payload()
    payload["email"] = "second.owner@acme.co.uk"
    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 409
    assert response.json()["detail"] == (
        "A company with this email already exists. Please use a different company email."
    )
    assert db.query(User).count() == users_before
    assert db.query(Company).count() == companies_before


def test_signup_rolls_back_in_production_when_verification_email_fails(client, db, monkeypatch):
    async def failing_send_email(to, subject, mjml_content, from_address=None):
        raise email_service.EmailDeliveryError("provider down")

    monkeypatch.setattr(config, "IS_PRODUCTION", True)
    monkeypatch.setattr(email_service, "send_email", failing_send_email)

    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send verification email. Please try again."
    assert db.query(User).count() == 0
    assert db.query(Company).count() == 0


def test_signup_keeps_account_outside_production_when_verification_email_fails(client, db, monkeypatch):
    async def failing_send_email(to, subject, mjml_content, from_address=None):
        raise email_service.EmailDeliveryError("provider down")

    monkeypatch.setattr(config, "IS_PRODUCTION", False)
    monkeypatch.setattr(email_service, "send_email", failing_send_email)

    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 201
    assert db.query(User).count() == 1


def test_signup_rejects_weak_password(client):
    payload = signup_payload()
    payload["password"] = "short"

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 400
    assert "at least 8 characters" in response.json()["detail"]


def test_signup_rejects_invalid_email(client):
    payload = signup_payload()
    payload["email"] = "not-an-email"

    response = client.post("/api/auth/signup", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid email format"


def test_signin_requires_verified_email(client):
    client.post("/api/auth/signup", json=signup_payload())

    response = client.post("/api/auth/signin", json={"email": "owner@acme.co.uk", "password": PASSWORD})

    assert response.status_code == 403
    assert response.json()["detail"]["requiresVerification"] is True


def test_verify_email_signs_in_and_session_reports_user(client, outbox):
    register_company(client)

    session = client.get("/api/auth/session").json()
    assert session["user"]["email"] == "owner@acme.co.uk"
    assert session["user"]["emailVerified"] is True
    assert session["company"]["name"] == "Acme Cleaning"
    assert any(mail["subject"] == "Welcome to CleanManager" for mail in outbox)


def test_verify_email_rejects_unknown_token(client):
    response = client.get("/api/auth/verify-email", params={"token": "nope"})

    assert response.status_code == 400


def test_signin_with_wrong_password_is_rejected(client):
    register_company(client)
    other = make_client()

    response = other.post("/api/auth/signin", json={"email": "owner@acme.co.uk", "password": "Wrong#Pass2026"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_signout_ends_every_session(client):
    register_company(client)
    second_device = make_client()
    signed_in = second_device.post("/api/auth/signin", json={"email": "owner@acme.co.uk", "password": PASSWORD})
    assert signed_in.status_code == 200

    assert client.post("/api/auth/signout").json() == {"success": True}

    assert second_device.get("/api/auth/session").json() == {"user": None}
    assert second_device.get("/api/customers").status_code == 401


def test_protected_routes_require_session(client):
    assert client.get("/api/jobs").status_code == 401
    assert client.get("/api/company/profile").status_code == 401


def test_forgot_password_is_generic_for_unknown_email(client, outbox):
    response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert response.status_code == 200
    assert "If an account exists" in response.json()["message"]
    assert outbox == []


def test_reset_password_token_is_single_use(client, db):
    register_company(client)
    client.post("/api/auth/forgot-password", json={"email": "owner@acme.co.uk"})
    token = db.query(PasswordResetToken).one().token

    first = client.post("/api/auth/reset-password", json={"token": token, "password": "NewClean#2027"})
    second = client.post("/api/auth/reset-password", json={"token": token, "password": "Other#Clean2028"})

    assert first.status_code == 200
    assert second.status_code == 400
    fresh = make_client()
    assert (
        fresh.post("/api/auth/signin", json={"email": "owner@acme.co.uk", "password": "NewClean#2027"}).status_code
        == 200
    )


def test_reset_password_rejects_expired_token(client, db):
    register_company(client)
    user = db.query(User).one()
    db.add(
        PasswordResetToken(
            user_id=user.id, token="expired-token", expires_at=datetime.utcnow() - timedelta(minutes=1)
        )
    )
    db.commit()

    response = client.post("/api/auth/reset-password", json={"token": "expired-token", "password": "NewClean#2027"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired reset token"


def test_signin_is_rate_limited(client):
    register_company(client)
    attacker = make_client()

    statuses = [
        attacker.post("/api/auth/signin", json={"email": "owner@acme.co.uk", "password": "Wrong#Pass2026"}).status_code
        for _ in range(6)
    ]

    assert statuses[:5] == [401] * 5
    assert statuses[5] == 429
