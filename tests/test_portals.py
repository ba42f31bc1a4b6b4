import pytest
from conftest import create_customer, create_employee, create_job, make_client

from cleanmanager.domain.portal.codes import LoginCodeError, LoginCodeStore
from cleanmanager.security_utils import create_jwt_token


@pytest.fixture
def staff(admin):
    """Signed-in employee client plus the employee record"""
    employee = create_employee(admin)
    client = make_client()
    response = client.post(
        "/api/auth/employee-signin", json={"identifier": employee["email"], "password": employee["plainPassword"]}
    )
    assert response.status_code == 200
    return client, employee


def test_employee_sees_only_assigned_jobs_without_pricing(admin, staff):
    client, employee = staff
    customer = create_customer(admin)
    mine = create_job(admin, customer["id"], assignedTo=employee["id"], title="Mine")
    create_job(admin, customer["id"], title="Unassigned")

    jobs = client.get("/api/employee/jobs").json()

    assert [job["title"] for job in jobs] == ["Mine"]
    assert "estimatedPrice" not in jobs[0]
    assert "internalNotes" not in jobs[0]
    assert jobs[0]["customerName"] == "Jane Smith"
    assert client.get(f"/api/employee/jobs/{mine['id']}").status_code == 200


def test_employee_cannot_open_unassigned_job(admin, staff):
    client, _ = staff
    other = create_job(admin, create_customer(admin)["id"])

    response = client.get(f"/api/employee/jobs/{other['id']}")

    assert response.status_code == 404
    assert response.json()["detail"] == "Job not found or not assigned to you"


def test_employee_accepts_job_once(admin, staff, outbox):
    client, employee = staff
    job = create_job(admin, create_customer(admin)["id"], assignedTo=employee["id"])

    accepted = client.post(f"/api/employee/jobs/{job['id']}/accept")
    again = client.post(f"/api/employee/jobs/{job['id']}/accept")

    assert accepted.status_code == 200
    assert accepted.json()["employeeAccepted"] is True
    assert again.status_code == 400
    assert again.json()["detail"] == "You have already accepted this job"
    assert outbox[-1]["to"] == "office@acme.co.uk"
    assert outbox[-1]["subject"] == "Job accepted: Deep clean"
    timeline = admin.get(f"/api/jobs/{job['id']}/timeline").json()
    assert timeline[-1]["type"] == "job_accepted"


def test_acceptance_notification_respects_settings(admin, staff, outbox):
    client, employee = staff
    admin.put("/api/company/notifications", json={"settings": {"employeeUpdates": False}})
    job = create_job(admin, create_customer(admin)["id"], assignedTo=employee["id"])
    before = len(outbox)

    client.post(f"/api/employee/jobs/{job['id']}/accept")

    assert len(outbox) == before


def test_employee_area_requires_employee_session(admin):
    assert admin.get("/api/employee/jobs").status_code == 401


def test_portal_code_login_and_data(admin, outbox, monkeypatch):
    codes = []

    async def fake_send_code(to, customer_name, code):
        codes.append((to, code))
        return {"id": "code"}

    from cleanmanager import email_service

    monkeypatch.setattr(email_service, "send_portal_login_code", fake_send_code)
    customer = create_customer(admin)
    job = create_job(admin, customer["id"])
    admin.post(f"/api/jobs/{job['id']}/generate-invoice")
    portal = make_client()

    response = portal.get("/api/customer-portal/auth", params={"email": "JANE.SMITH@example.com"})
    assert response.json()["message"] == "If an account exists with this email, a login code has been sent."
    assert codes[0][0] == "jane.smith@example.com"
    assert len(codes[0][1]) == 6

    login = portal.post("/api/customer-portal/auth", json={"email": "jane.smith@example.com", "code": codes[0][1]})
    assert login.status_code == 200
    token = login.json()["token"]
    assert login.json()["customer"]["id"] == customer["id"]

    headers = {"Authorization": f"Bearer {token}"}
    jobs = portal.get("/api/customer-portal/jobs", headers=headers).json()
    invoices = portal.get("/api/customer-portal/invoices", headers=headers).json()
    assert [j["id"] for j in jobs] == [job["id"]]
    assert len(invoices) == 1
    assert invoices[0]["total"] == 120


def test_portal_unknown_email_gets_same_answer(client, monkeypatch):
    codes = []

    async def fake_send_code(to, customer_name, code):
        codes.append(code)
        return {"id": "code"}

    from cleanmanager import email_service

    monkeypatch.setattr(email_service, "send_portal_login_code", fake_send_code)

    response = client.get("/api/customer-portal/auth", params={"email": "nobody@example.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert codes == []


def test_portal_rejects_wrong_code(admin):
    create_customer(admin)
    portal = make_client()
    portal.get("/api/customer-portal/auth", params={"email": "jane.smith@example.com"})

    response = portal.post("/api/customer-portal/auth", json={"email": "jane.smith@example.com", "code": "000000"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid code. Please try again."


def test_portal_rejects_non_customer_tokens(admin):
    portal = make_client()
    staff_token = create_jwt_token({"customerId": 1, "type": "employee"})

    missing = portal.get("/api/customer-portal/jobs")
    wrong_type = portal.get("/api/customer-portal/jobs", headers={"Authorization": f"Bearer {staff_token}"})

    assert missing.status_code == 401
    assert wrong_type.status_code == 401


def test_login_code_store_expiry_and_attempts():
    store = LoginCodeStore(expiry_seconds=60, max_attempts=3)

    code = store.issue("Jane@Example.com", now=1000)
    store.verify("jane@example.com", code, now=1010)
    with pytest.raises(LoginCodeError, match="No login code found"):
        store.verify("jane@example.com", code, now=1011)

    code = store.issue("jane@example.com", now=2000)
    with pytest.raises(LoginCodeError, match="expired"):
        store.verify("jane@example.com", code, now=2061)

    code = store.issue("jane@example.com", now=3000)
    wrong = "1" * 6 if code != "1" * 6 else "2" * 6
    for _ in range(3):
        with pytest.raises(LoginCodeError, match="Invalid code"):
            store.verify("jane@example.com", wrong, now=3001)
    with pytest.raises(LoginCodeError, match="Too many failed attempts"):
        store.verify("jane@example.com", code, now=3002)
