from datetime import datetime, timedelta

import pytest
from conftest import create_customer, create_job, make_client, register_company

from cleanmanager.domain.invoices.service import build_invoice_number


@pytest.fixture
def customer(admin):
    return create_customer(admin)


def create_invoice(client, customer_id, **overrides):
    payload = {
        "customerId": customer_id,
        "items": [
            {"title": "Regular clean", "quantity": 2, "unitPrice": 45},
            {"title": "Supplies", "quantity": 1, "unitPrice": 10, "taxable": False},
        ],
        "taxRate": 20,
        "sendEmail": False,
    }
    payload.update(overrides)
    response = client.post("/api/invoices", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_build_invoice_number():
    assert build_invoice_number(7, "Jane Smith", datetime(2026, 3, 5)) == "INV-0007 - Jane Smith - 05-03-2026"


def test_create_invoice_totals_skip_untaxed_items(admin, customer, outbox):
    invoice = create_invoice(admin, customer["id"])

    assert invoice["subtotal"] == 100
    assert invoice["taxAmount"] == 18
    assert invoice["total"] == 118
    assert invoice["amountDue"] == 118
    assert invoice["amountPaid"] == 0
    assert invoice["status"] == "draft"
    assert invoice["currency"] == "GBP"
    assert not any(mail["subject"].startswith("Invoice") for mail in outbox)


def test_invoice_numbers_follow_sequence(admin, customer):
    first = create_invoice(admin, customer["id"])
    second = create_invoice(admin, customer["id"])

    assert first["invoiceNumber"].startswith("INV-0001 - Jane Smith")
    assert second["invoiceNumber"].startswith("INV-0002 - Jane Smith")


def test_create_invoice_can_email_customer(admin, customer, outbox):
    invoice = create_invoice(admin, customer["id"], sendEmail=True)

    assert outbox[-1]["to"] == "jane.smith@example.com"
    assert outbox[-1]["subject"] == f"Invoice {invoice['invoiceNumber']}"


def test_create_invoice_validation(admin, customer):
    yesterday = (datetime.utcnow() - timedelta(days=2)).isoformat()

    no_customer = admin.post("/api/invoices", json={"items": []})
    past_due = admin.post("/api/invoices", json={"customerId": customer["id"], "dueAt": yesterday})
    bad_status = admin.post("/api/invoices", json={"customerId": customer["id"], "status": "settled"})

    assert no_customer.status_code == 400
    assert no_customer.json()["detail"] == "Customer is required"
    assert past_due.json()["detail"] == "Due date cannot be in the past"
    assert bad_status.json()["detail"] == "Invalid invoice status"


def test_payments_settle_invoice(admin, customer):
    invoice = create_invoice(admin, customer["id"], status="sent")

    partial = admin.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 50, "method": "cash"})
    assert partial.status_code == 201
    assert partial.json()["amountPaid"] == 50
    assert partial.json()["amountDue"] == 68
    assert partial.json()["status"] == "sent"

    settled = admin.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 68, "method": "card"})
    body = settled.json()
    assert body["status"] == "paid"
    assert body["amountDue"] == 0
    assert body["paidAt"] is not None
    assert len(body["payments"]) == 2


def test_payment_must_be_positive(admin, customer):
    invoice = create_invoice(admin, customer["id"])

    response = admin.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 0})

    assert response.status_code == 400
    assert response.json()["detail"] == "Payment amount must be greater than zero"


def test_raising_total_reopens_paid_invoice(admin, customer):
    invoice = create_invoice(admin, customer["id"], status="sent")
    admin.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 118})

    response = admin.put(
        f"/api/invoices/{invoice['id']}",
        json={"items": [{"title": "Regular clean", "quantity": 3, "unitPrice": 45}]},
    )

    body = response.json()
    assert body["total"] == 162
    assert body["amountDue"] == 44
    assert body["status"] == "sent"
    assert body["paidAt"] is None


def test_explicit_status_update_is_kept(admin, customer):
    unpaid = create_invoice(admin, customer["id"], status="sent")
    paid = create_invoice(admin, customer["id"], status="sent")
    admin.post(f"/api/invoices/{paid['id']}/payments", json={"amount": 118})

    marked_paid = admin.put(f"/api/invoices/{unpaid['id']}", json={"status": "paid"}).json()
    cancelled = admin.put(f"/api/invoices/{paid['id']}", json={"status": "cancelled"}).json()

    assert marked_paid["status"] == "paid"
    assert marked_paid["paidAt"] is not None
    assert marked_paid["amountDue"] == 118
    assert cancelled["status"] == "cancelled"
    assert cancelled["paidAt"] is None


def test_send_reminder_reports_days_overdue(admin, customer, outbox):
    invoice = create_invoice(admin, customer["id"], status="sent")
    due_at = (datetime.utcnow() - timedelta(days=3, hours=1)).isoformat()
    admin.put(f"/api/invoices/{invoice['id']}", json={"dueAt": due_at})

    response = admin.post(f"/api/invoices/{invoice['id']}/send-reminder")

    assert response.status_code == 200
    body = response.json()
    assert body["emailSent"] is True
    assert body["daysOverdue"] == 3
    assert body["customerEmail"] == "jane.smith@example.com"
    assert body["invoiceNumber"] == invoice["invoiceNumber"]
    assert outbox[-1]["to"] == "jane.smith@example.com"
    assert outbox[-1]["subject"] == f"Payment reminder: invoice {invoice['invoiceNumber']}"


def test_send_reminder_rejects_settled_invoices(admin, customer, outbox):
    invoice = create_invoice(admin, customer["id"], status="sent")
    admin.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 118})
    sent_before = len(outbox)

    response = admin.post(f"/api/invoices/{invoice['id']}/send-reminder")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invoice is already paid"
    assert len(outbox) == sent_before


def test_list_filters_by_status_and_search(admin, customer):
    other = create_customer(admin, firstName="Bob", lastName="Jones", email="bob@example.com", phone="07700 900777")
    create_invoice(admin, customer["id"], status="sent")
    create_invoice(admin, other["id"], status="draft")

    sent = admin.get("/api/invoices", params={"status": "sent,paid"}).json()
    bob = admin.get("/api/invoices", params={"search": "bob"}).json()

    assert [i["customerName"] for i in sent] == ["Jane Smith"]
    assert [i["customerName"] for i in bob] == ["Bob Jones"]
    assert sent[0]["items"] == []


def test_invoice_for_job_of_other_company_is_not_found(admin, customer):
    rival = make_client()
    register_company(rival, "rival")
    their_job = create_job(rival, create_customer(rival)["id"])

    response = admin.post("/api/invoices", json={"customerId": customer["id"], "jobId": their_job["id"]})

    assert response.status_code == 404
    assert rival.get("/api/invoices").json() == []


def test_delete_invoice(admin, customer):
    invoice = create_invoice(admin, customer["id"])

    assert admin.delete(f"/api/invoices/{invoice['id']}").json()["success"] is True
    assert admin.get(f"/api/invoices/{invoice['id']}").status_code == 404
