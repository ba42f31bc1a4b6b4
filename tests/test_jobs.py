from datetime import datetime, timedelta

from conftest import create_customer, create_employee, create_job, make_client, register_company, tomorrow_at

from cleanmanager.models import Job, WorkSession


def test_create_job_defaults_and_records_event(admin):
    customer = create_customer(admin)

    job = create_job(admin, customer["id"])

    assert job["status"] == "scheduled"
    assert job["durationMinutes"] == 60
    assert job["priority"] == "normal"
    assert job["recurrence"] == "none"
    assert job["customer"]["name"] == "Jane Smith"
    start = datetime.fromisoformat(job["scheduledFor"])
    assert datetime.fromisoformat(job["scheduledEnd"]) == start + timedelta(minutes=60)

    timeline = admin.get(f"/api/jobs/{job['id']}/timeline").json()
    assert [event["type"] for event in timeline] == ["job_created"]


def test_create_job_requires_title_customer_location(admin):
    response = admin.post("/api/jobs", json={"title": "Clean"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Title, customer, and location are required"


def test_create_job_rejects_past_schedule_unless_allowed(admin):
    customer = create_customer(admin)
    past = (datetime.utcnow() - timedelta(days=2)).isoformat()
    payload = {"title": "Clean", "customerId": customer["id"], "location": "Home", "scheduledFor": past}

    rejected = admin.post("/api/jobs", json=payload)
    allowed = admin.post("/api/jobs", json={**payload, "allowPast": True})

    assert rejected.status_code == 400
    assert rejected.json()["detail"] == "Scheduled time cannot be in the past"
    assert allowed.status_code == 201


def test_create_job_with_other_company_customer_is_not_found(admin):
    rival = make_client()
    register_company(rival, "rival")
    their_customer = create_customer(rival)

    response = admin.post(
        "/api/jobs", json={"title": "Clean", "customerId": their_customer["id"], "location": "Home"}
    )

    assert response.status_code == 404


def test_assign_emails_employee_and_resets_acceptance(admin, outbox):
    customer = create_customer(admin)
    employee = create_employee(admin)
    job = create_job(admin, customer["id"])

    response = admin.post(f"/api/jobs/{job['id']}/assign", json={"employeeId": employee["id"]})

    assert response.status_code == 200
    assert response.json()["assignedTo"] == employee["id"]
    assert response.json()["employeeAccepted"] is False
    assert outbox[-1]["to"] == "alex@staff.co.uk"
    assert outbox[-1]["subject"] == "New job assigned: Deep clean"


def test_assign_requires_employee_id(admin):
    job = create_job(admin, create_customer(admin)["id"])

    response = admin.post(f"/api/jobs/{job['id']}/assign", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Employee ID is required"


def test_start_and_complete_track_work_session(admin, db, outbox):
    customer = create_customer(admin)
    employee = create_employee(admin)
    job = create_job(admin, customer["id"], assignedTo=employee["id"])

    started = admin.post(f"/api/jobs/{job['id']}/start")
    assert started.json()["status"] == "in_progress"

    completed = admin.post(
        f"/api/jobs/{job['id']}/complete", json={"notes": "Used eco products", "qualityRating": 5}
    )

    body = completed.json()
    assert body["status"] == "completed"
    assert body["completedAt"] is not None
    assert body["actualPrice"] == 120
    assert body["qualityRating"] == 5
    assert "Completion notes: Used eco products" in body["internalNotes"]

    session = db.query(WorkSession).filter(WorkSession.job_id == job["id"]).one()
    assert session.ended_at is not None
    assert session.duration_minutes == 0
    assert db.get(Job, job["id"]).feedback_token

    recipients = [mail["to"] for mail in outbox]
    assert "jane.smith@example.com" in recipients
    assert "office@acme.co.uk" in recipients

    types = [event["type"] for event in admin.get(f"/api/jobs/{job['id']}/timeline").json()]
    assert types == ["job_created", "job_started", "job_completed"]


def test_complete_without_body_uses_estimate(admin):
    job = create_job(admin, create_customer(admin)["id"], estimatedPrice=75)

    response = admin.post(f"/api/jobs/{job['id']}/complete")

    assert response.status_code == 200
    assert response.json()["actualPrice"] == 75


def test_completed_job_cannot_be_started_or_reassigned(admin):
    employee = create_employee(admin)
    job = create_job(admin, create_customer(admin)["id"])
    admin.post(f"/api/jobs/{job['id']}/complete")

    start = admin.post(f"/api/jobs/{job['id']}/start")
    assign = admin.post(f"/api/jobs/{job['id']}/assign", json={"employeeId": employee["id"]})

    assert start.status_code == 400
    assert start.json()["detail"] == "Cannot start a completed job"
    assert assign.json()["detail"] == "Cannot reassign a completed job"


def test_cancel_requires_reason(admin):
    job = create_job(admin, create_customer(admin)["id"])

    response = admin.post(f"/api/jobs/{job['id']}/cancel", json={"reason": "  "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Cancellation reason is required"


def test_cancel_cascades_to_future_occurrences(admin, db, outbox):
    customer = create_customer(admin)
    job = create_job(admin, customer["id"], recurrence="weekly")
    for weeks in (1, 2):
        db.add(
            Job(
                company_id=db.get(Job, job["id"]).company_id,
                title="Deep clean",
                customer_id=customer["id"],
                location="10 Downing Street",
                scheduled_for=datetime.utcnow() + timedelta(weeks=weeks),
                status="scheduled",
                parent_job_id=job["id"],
            )
        )
    db.commit()

    response = admin.post(
        f"/api/jobs/{job['id']}/cancel", json={"reason": "Customer moved", "notifyEmployee": False}
    )

    body = response.json()
    assert body["success"] is True
    assert body["cancelledRecurrences"] == 2
    assert body["job"]["cancellationReason"] == "Customer moved"
    db.expire_all()
    children = db.query(Job).filter(Job.parent_job_id == job["id"]).all()
    assert {child.status for child in children} == {"cancelled"}
    assert outbox[-1]["subject"] == "Job cancelled: Deep clean"

    again = admin.post(f"/api/jobs/{job['id']}/cancel", json={"reason": "Twice"})
    assert again.json()["detail"] == "Job is already cancelled"


def test_update_job_records_changed_fields(admin):
    job = create_job(admin, create_customer(admin)["id"])

    response = admin.patch(f"/api/jobs/{job['id']}", json={"priority": "urgent", "durationMinutes": 90})

    assert response.json()["priority"] == "urgent"
    start = datetime.fromisoformat(response.json()["scheduledFor"])
    assert datetime.fromisoformat(response.json()["scheduledEnd"]) == start + timedelta(minutes=90)
    updated = admin.get(f"/api/jobs/{job['id']}/timeline").json()[-1]
    assert updated["type"] == "job_updated"
    assert set(updated["meta"]["fields"]) == {"priority", "durationMinutes"}


def test_update_job_rejects_unknown_status(admin):
    job = create_job(admin, create_customer(admin)["id"])

    response = admin.patch(f"/api/jobs/{job['id']}", json={"status": "finished"})

    assert response.status_code == 400


def test_list_filters(admin):
    customer = create_customer(admin)
    first = create_job(admin, customer["id"], title="Window wash")
    create_job(admin, customer["id"], title="Oven clean")
    admin.post(f"/api/jobs/{first['id']}/complete")

    searched = admin.get("/api/jobs", params={"search": "oven"}).json()
    completed = admin.get("/api/jobs/completed").json()
    upcoming = admin.get("/api/jobs", params={"filter": "upcoming"}).json()

    assert [job["title"] for job in searched] == ["Oven clean"]
    assert [job["id"] for job in completed] == [first["id"]]
    assert [job["title"] for job in upcoming] == ["Oven clean"]


def test_generate_invoice_from_completed_job(admin):
    job = create_job(admin, create_customer(admin)["id"])
    admin.post(f"/api/jobs/{job['id']}/complete", json={"actualPrice": 150})

    response = admin.post(f"/api/jobs/{job['id']}/generate-invoice", json={"taxRate": 20, "dueInDays": 14})

    assert response.status_code == 201
    invoice = response.json()
    assert invoice["jobId"] == job["id"]
    assert invoice["invoiceNumber"].startswith("INV-0001 - Jane Smith - ")
    assert invoice["subtotal"] == 150
    assert invoice["taxAmount"] == 30
    assert invoice["total"] == 180
    assert invoice["amountDue"] == 180
    assert invoice["notes"] == "Invoice for Deep clean"
    assert invoice["terms"] == "Payment is due within 14 days of the invoice date."
    assert len(invoice["items"]) == 1

    duplicate = admin.post(f"/api/jobs/{job['id']}/generate-invoice")
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Invoice already exists for this job"

    types = [event["type"] for event in admin.get(f"/api/jobs/{job['id']}/timeline").json()]
    assert types[-1] == "invoice_generated"


def test_delete_job_keeps_invoice(admin):
    job = create_job(admin, create_customer(admin)["id"])
    invoice = admin.post(f"/api/jobs/{job['id']}/generate-invoice").json()

    assert admin.delete(f"/api/jobs/{job['id']}").json()["success"] is True

    assert admin.get(f"/api/jobs/{job['id']}").status_code == 404
    kept = admin.get(f"/api/invoices/{invoice['id']}").json()
    assert kept["jobId"] is None


def test_jobs_are_isolated_between_companies(admin):
    job = create_job(admin, create_customer(admin)["id"])
    rival = make_client()
    register_company(rival, "rival")

    assert rival.get(f"/api/jobs/{job['id']}").status_code == 404
    assert rival.post(f"/api/jobs/{job['id']}/cancel", json={"reason": "nope"}).status_code == 404
    assert rival.get(f"/api/jobs/{job['id']}/timeline").status_code == 404
    assert rival.get("/api/jobs").json() == []


def test_event_log_records_and_filters_events(admin):
    job = create_job(admin, create_customer(admin)["id"])

    created = admin.post(
        "/api/event-log", json={"jobId": job["id"], "type": "note", "message": "Gate code 1234", "meta": {"by": "office"}}
    )
    missing = admin.post("/api/event-log", json={"jobId": job["id"]})

    assert created.status_code == 201
    assert created.json()["meta"] == {"by": "office"}
    assert missing.status_code == 400
    notes = admin.get("/api/event-log", params={"jobId": job["id"], "eventType": "note"}).json()
    assert [event["message"] for event in notes] == ["Gate code 1234"]
    assert len(admin.get("/api/event-log", params={"jobId": job["id"]}).json()) == 2


def test_event_log_is_scoped_to_company(admin):
    job = create_job(admin, create_customer(admin)["id"])
    rival = make_client()
    register_company(rival, "rival")

    response = rival.post("/api/event-log", json={"jobId": job["id"], "type": "note"})

    assert response.status_code == 404
    assert rival.get("/api/event-log").json() == []


def test_reschedule_moves_slot_and_notifies_both_parties(admin, outbox):
    employee = create_employee(admin)
    job = create_job(admin, create_customer(admin)["id"], assignedTo=employee["id"], durationMinutes=90)
    admin.post(f"/api/jobs/{job['id']}/start")
    new_date = (datetime.utcnow() + timedelta(days=3)).replace(hour=14, minute=0, second=0, microsecond=0)

    response = admin.post(
        f"/api/jobs/{job['id']}/reschedule",
        json={"newDate": new_date.isoformat(), "reason": "Customer away"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Job rescheduled successfully"
    assert body["originalDate"] == job["scheduledFor"]
    assert datetime.fromisoformat(body["newDate"]) == new_date
    assert body["job"]["status"] == "scheduled"
    assert datetime.fromisoformat(body["job"]["scheduledEnd"]) == new_date + timedelta(minutes=90)
    assert "Rescheduled: Customer away" in body["job"]["internalNotes"]

    rescheduled = [mail["to"] for mail in outbox if mail["subject"] == "Job rescheduled: Deep clean"]
    assert rescheduled == ["jane.smith@example.com", "alex@staff.co.uk"]
    types = [event["type"] for event in admin.get(f"/api/jobs/{job['id']}/timeline").json()]
    assert types[-1] == "job_rescheduled"


def test_reschedule_validation(admin):
    job = create_job(admin, create_customer(admin)["id"])

    missing = admin.post(f"/api/jobs/{job['id']}/reschedule", json={})
    unknown_employee = admin.post(
        f"/api/jobs/{job['id']}/reschedule", json={"newDate": tomorrow_at(15), "assignedTo": 9999}
    )
    admin.post(f"/api/jobs/{job['id']}/complete")
    completed = admin.post(f"/api/jobs/{job['id']}/reschedule", json={"newDate": tomorrow_at(15)})

    assert missing.json()["detail"] == "New date is required"
    assert unknown_employee.status_code == 404
    assert unknown_employee.json()["detail"] == "Assigned employee not found"
    assert completed.status_code == 400
    assert completed.json()["detail"] == "Cannot reschedule a completed job"


def test_reschedule_to_new_employee_resets_acceptance(admin, outbox):
    first = create_employee(admin)
    second = create_employee(admin, firstName="Sam", email="sam@staff.co.uk", phone="07700 900789")
    job = create_job(admin, create_customer(admin)["id"], assignedTo=first["id"])

    response = admin.post(
        f"/api/jobs/{job['id']}/reschedule",
        json={"newDate": tomorrow_at(16), "assignedTo": second["id"], "notifyCustomer": False},
    )

    moved = response.json()["job"]
    assert moved["assignedTo"] == second["id"]
    assert moved["employeeAccepted"] is False
    assert outbox[-1]["to"] == "sam@staff.co.uk"
    assert all(mail["to"] != "jane.smith@example.com" for mail in outbox if "rescheduled" in mail["subject"])


def test_duplicate_job_copies_details_into_new_schedule(admin):
    job = create_job(admin, create_customer(admin)["id"], priority="high", internalNotes="Key under mat")
    admin.post(f"/api/jobs/{job['id']}/complete")

    plain = admin.post(f"/api/jobs/{job['id']}/duplicate", json={"scheduledFor": tomorrow_at(13)})
    with_notes = admin.post(f"/api/jobs/{job['id']}/duplicate", json={"copyNotes": True})

    assert plain.status_code == 201
    copy = plain.json()
    assert copy["id"] != job["id"]
    assert copy["title"] == "Deep clean (Copy)"
    assert copy["status"] == "scheduled"
    assert copy["priority"] == "high"
    assert copy["estimatedPrice"] == 120
    assert copy["internalNotes"] is None
    assert copy["scheduledFor"] == tomorrow_at(13)
    assert with_notes.json()["internalNotes"] == "Key under mat"
    types = [event["type"] for event in admin.get(f"/api/jobs/{copy['id']}/timeline").json()]
    assert types == ["job_duplicated"]


def test_duplicate_job_checks_new_customer(admin):
    job = create_job(admin, create_customer(admin)["id"])

    response = admin.post(f"/api/jobs/{job['id']}/duplicate", json={"customerId": 9999})

    assert response.status_code == 404
    assert response.json()["detail"] == "Customer not found"


def test_request_feedback_needs_completed_job(admin, db, outbox):
    job = create_job(admin, create_customer(admin)["id"])

    early = admin.post(f"/api/jobs/{job['id']}/request-feedback")
    admin.post(f"/api/jobs/{job['id']}/complete")
    token = db.get(Job, job["id"]).feedback_token
    requested = admin.post(f"/api/jobs/{job['id']}/request-feedback")

    assert early.status_code == 400
    assert early.json()["detail"] == "Can only request feedback for completed jobs"
    body = requested.json()
    assert body["emailSent"] is True
    assert body["feedbackUrl"].endswith(f"/feedback/{token}")
    assert outbox[-1]["to"] == "jane.smith@example.com"
    assert outbox[-1]["subject"] == "How did we do? Deep clean"
    assert token in outbox[-1]["body"]
