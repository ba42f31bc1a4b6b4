from conftest import (
    PASSWORD,
    create_customer,
    create_employee,
    create_job,
    customer_payload,
    employee_payload,
    make_client,
    register_company,
)

from cleanmanager.models import Company


def test_create_customer_formats_phone_and_email(admin):
    customer = create_customer(admin, email="Jane.Smith@Example.com", phone="+447700900123")

    assert customer["email"] == "jane.smith@example.com"
    assert customer["phone"] == "07700 900 123"
    assert customer["customerType"] == "residential"
    assert customer["status"] == "active"
    assert customer["name"] == "Jane Smith"


def test_create_customer_requires_address_fields(admin):
    response = admin.post("/api/customers", json=customer_payload(postcode=None))

    assert response.status_code == 400
    assert response.json()["detail"] == "Address, city, postcode, and country are required"


def test_duplicate_customer_email_conflicts(admin):
    create_customer(admin)

    response = admin.post("/api/customers", json=customer_payload(phone="07700 900999"))

    assert response.status_code == 409


def test_customer_search_and_deactivate(admin):
    jane = create_customer(admin)
    create_customer(admin, firstName="Bob", lastName="Jones", email="bob@example.com", phone="07700 900777")

    found = admin.get("/api/customers", params={"search": "bob"}).json()
    assert [c["firstName"] for c in found] == ["Bob"]

    assert admin.delete(f"/api/customers/{jane['id']}").json()["success"] is True
    assert admin.get(f"/api/customers/{jane['id']}").json()["status"] == "inactive"
    inactive = admin.get("/api/customers", params={"status": "inactive"}).json()
    assert [c["id"] for c in inactive] == [jane["id"]]


def test_customers_are_isolated_between_companies(admin):
    jane = create_customer(admin)
    rival = make_client()
    register_company(rival, "rival")

    assert rival.get(f"/api/customers/{jane['id']}").status_code == 404
    assert rival.get("/api/customers").json() == []
    assert rival.put(f"/api/customers/{jane['id']}", json=customer_payload()).status_code == 404


def test_create_employee_returns_one_time_password(admin):
    employee = create_employee(admin)

    assert employee["plainPassword"]
    assert employee["username"] == "alex@staff.co.uk"
    listed = admin.get(f"/api/employees/{employee['id']}").json()
    assert "plainPassword" not in listed
    assert "password" not in listed


def test_employee_email_cannot_match_company_email(admin):
    response = admin.post("/api/employees", json=employee_payload(email="office@acme.co.uk"))

    assert response.status_code == 409


def test_employee_start_date_cannot_be_in_past(admin):
    response = admin.post("/api/employees", json=employee_payload(startDate="2020-01-01T09:00:00"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Start date cannot be in the past"


def test_hourly_employee_requires_rate(admin):
    response = admin.post("/api/employees", json=employee_payload(hourlyRate=None))

    assert response.status_code == 400
    assert response.json()["detail"] == "Hourly rate is required for hourly pay type"


def test_employee_allowance_is_enforced(admin, db):
    company = db.query(Company).one()
    company.max_employees = 1
    db.commit()
    create_employee(admin)

    response = admin.post(
        "/api/employees", json=employee_payload(email="second@staff.co.uk", phone="07700 900888")
    )

    assert response.status_code == 400
    assert "employee allowance" in response.json()["detail"]


def test_employee_with_active_jobs_cannot_be_deleted(admin):
    customer = create_customer(admin)
    employee = create_employee(admin)
    create_job(admin, customer["id"], assignedTo=employee["id"])

    response = admin.delete(f"/api/employees/{employee['id']}")

    assert response.status_code == 400
    assert "1 pending or in-progress job(s)" in response.json()["detail"]


def test_employee_can_sign_in_with_generated_password(admin):
    employee = create_employee(admin)
    staff = make_client()

    response = staff.post(
        "/api/auth/employee-signin",
        json={"identifier": "ALEX@staff.co.uk", "password": employee["plainPassword"]},
    )

    assert response.status_code == 200
    assert response.json()["employee"]["id"] == employee["id"]
    assert staff.get("/api/auth/employee-session").json()["employee"]["email"] == "alex@staff.co.uk"
    # an employee session is not a company user session
    assert staff.get("/api/customers").status_code == 401


def test_employee_signin_rejects_wrong_password(admin):
    create_employee(admin)
    staff = make_client()

    response = staff.post("/api/auth/employee-signin", json={"email": "alex@staff.co.uk", "password": PASSWORD})

    assert response.status_code == 401
