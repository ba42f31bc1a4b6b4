from datetime import datetime, timedelta

from conftest import create_customer, create_employee, create_job, make_client, register_company


def shift_times(days: int = 1, hours: int = 8):
    start = (datetime.utcnow() + timedelta(days=days)).replace(hour=8, minute=0, second=0, microsecond=0)
    return start.isoformat(), (start + timedelta(hours=hours)).isoformat()


def test_create_and_list_shifts(admin):
    employee = create_employee(admin)
    start, end = shift_times()

    created = admin.post(
        "/api/shifts", json={"employeeId": employee["id"], "startTime": start, "endTime": end, "title": "Morning"}
    )

    assert created.status_code == 201
    assert created.json()["status"] == "scheduled"
    assert created.json()["employeeName"] == "Alex Cleaner"
    listed = admin.get("/api/shifts", params={"employeeId": employee["id"]}).json()
    assert [shift["title"] for shift in listed] == ["Morning"]


def test_shift_requires_end_after_start(admin):
    employee = create_employee(admin)
    start, end = shift_times()

    response = admin.post("/api/shifts", json={"employeeId": employee["id"], "startTime": end, "endTime": start})

    assert response.status_code == 400
    assert response.json()["detail"] == "End time must be after start time"


def test_shift_for_other_company_employee_is_not_found(admin):
    rival = make_client()
    register_company(rival, "rival")
    their_employee = create_employee(rival)
    start, end = shift_times()

    response = admin.post("/api/shifts", json={"employeeId": their_employee["id"], "startTime": start, "endTime": end})

    assert response.status_code == 404


def test_update_shift_status(admin):
    employee = create_employee(admin)
    start, end = shift_times()
    shift = admin.post("/api/shifts", json={"employeeId": employee["id"], "startTime": start, "endTime": end}).json()

    done = admin.patch(f"/api/shifts/{shift['id']}", json={"status": "completed"})
    invalid = admin.patch(f"/api/shifts/{shift['id']}", json={"status": "skipped"})

    assert done.json()["status"] == "completed"
    assert invalid.status_code == 400
    assert admin.delete(f"/api/shifts/{shift['id']}").status_code == 200
    assert admin.get(f"/api/shifts/{shift['id']}").status_code == 404


def test_internal_message_to_company_inbox(admin):
    job = create_job(admin, create_customer(admin)["id"])

    created = admin.post(
        "/api/messages", json={"subject": "Keys", "body": "Keys are under the mat", "jobId": job["id"]}
    )

    assert created.status_code == 201
    assert created.json()["emailsSent"] == 0
    assert created.json()["jobTitle"] == "Deep clean"
    sent = admin.get("/api/messages", params={"type": "sent"}).json()
    assert [m["subject"] for m in sent] == ["Keys"]


def test_message_body_is_required(admin):
    response = admin.post("/api/messages", json={"subject": "Empty", "body": " "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Message body is required"


def test_email_message_to_all_staff(admin, outbox):
    create_employee(admin)
    create_employee(admin, email="sam@staff.co.uk", phone="07700 900888", firstName="Sam")

    response = admin.post(
        "/api/messages",
        json={"subject": "Rota", "body": "New rota is up", "recipientType": "all", "messageType": "email"},
    )

    assert response.status_code == 201
    assert response.json()["emailsSent"] == 2
    assert {mail["to"] for mail in outbox[-2:]} == {"alex@staff.co.uk", "sam@staff.co.uk"}


def test_email_message_needs_known_recipient(admin):
    response = admin.post(
        "/api/messages",
        json={"body": "Hello", "recipientType": "employee", "recipientIds": [999], "messageType": "email"},
    )

    assert response.status_code == 404


def test_mark_message_read_and_delete(admin):
    message = admin.post("/api/messages", json={"body": "Team meeting at 5"}).json()

    updated = admin.patch(f"/api/messages/{message['id']}", json={"markAsRead": True})

    assert updated.json()["isRead"] is True
    assert admin.delete(f"/api/messages/{message['id']}").status_code == 200
    assert admin.get(f"/api/messages/{message['id']}").status_code == 404
