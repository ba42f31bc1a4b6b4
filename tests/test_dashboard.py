from datetime import datetime, timedelta

import pytest
from conftest import create_customer, create_employee, create_job, make_client, register_company, tomorrow_at
from fastapi import HTTPException

from cleanmanager.domain.dashboard.service import percent_change, period_bounds


def test_period_bounds_for_calendar_periods():
    wednesday = datetime(2026, 10, 14)

    assert period_bounds("today", today=wednesday) == (
        wednesday,
        datetime(2026, 10, 15),
        datetime(2026, 10, 13),
        wednesday,
    )
    assert period_bounds("week", today=wednesday) == (
        datetime(2026, 10, 12),
        datetime(2026, 10, 19),
        datetime(2026, 10, 5),
        datetime(2026, 10, 12),
    )
    assert period_bounds("quarter", today=wednesday) == (
        datetime(2026, 10, 1),
        datetime(2027, 1, 1),
        datetime(2026, 7, 1),
        datetime(2026, 10, 1),
    )
    assert period_bounds("year", today=wednesday)[::2] == (datetime(2026, 1, 1), datetime(2025, 1, 1))
    assert period_bounds("month", today=datetime(2026, 1, 20))[2] == datetime(2025, 12, 1)


def test_custom_period_needs_both_dates():
    with pytest.raises(HTTPException) as error:
        period_bounds("custom", start_date=datetime(2026, 3, 1))

    assert error.value.status_code == 400
    start, end, previous_start, previous_end = period_bounds(
        "custom", start_date=datetime(2026, 3, 1), end_date=datetime(2026, 3, 11)
    )
    assert (previous_start, previous_end) == (datetime(2026, 2, 19), start)


def test_percent_change():
    assert percent_change(150, 100) == 50.0
    assert percent_change(10, 0) == 100.0
    assert percent_change(0, 0) == 0.0


def create_invoice(client, customer_id, amount, status="sent"):
    response = client.post(
        "/api/invoices",
        json={
            "customerId": customer_id,
            "items": [{"title": "Regular clean", "quantity": 1, "unitPrice": amount}],
            "status": status,
            "sendEmail": False,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_dashboard_stats_for_custom_period(admin):
    customer = create_customer(admin)
    create_employee(admin)
    completed = create_job(admin, customer["id"])
    create_job(admin, customer["id"], scheduledFor=tomorrow_at(14))
    cancelled = create_job(admin, customer["id"], scheduledFor=tomorrow_at(16))
    yesterday = (datetime.utcnow() - timedelta(days=1)).replace(hour=9, minute=0, second=0, microsecond=0)
    create_job(admin, customer["id"], scheduledFor=yesterday.isoformat(), allowPast=True)

    admin.post(f"/api/jobs/{completed['id']}/complete", json={"qualityRating": 4})
    admin.post(f"/api/jobs/{cancelled['id']}/cancel", json={"reason": "Customer moved"})
    paid = create_invoice(admin, customer["id"], 100)
    admin.post(f"/api/invoices/{paid['id']}/payments", json={"amount": 100})
    create_invoice(admin, customer["id"], 50)

    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    response = admin.get(
        "/api/dashboard/stats",
        params={
            "period": "custom",
            "startDate": today.isoformat(),
            "endDate": (today + timedelta(days=7)).isoformat(),
        },
    )

    assert response.status_code == 200
    stats = response.json()
    assert stats["revenue"] == 100
    assert stats["previousRevenue"] == 0
    assert stats["revenueChange"] == 100.0
    assert stats["outstandingAmount"] == 50
    assert stats["periodJobs"] == 3
    assert stats["completedJobs"] == 1
    assert stats["scheduledJobs"] == 1
    assert stats["activeJobs"] == 1
    assert stats["cancelledJobs"] == 1
    assert stats["overdueJobs"] == 1
    assert stats["completionRate"] == 33.3
    assert stats["completionRateChange"] == 33.3
    assert stats["averageRating"] == 4.0
    assert stats["activeEmployees"] == 1


def test_dashboard_stats_are_scoped_to_company(admin):
    customer = create_customer(admin)
    create_job(admin, customer["id"])
    rival = make_client()
    register_company(rival, "rival")

    stats = rival.get("/api/dashboard/stats", params={"period": "year"}).json()

    assert stats["periodJobs"] == 0
    assert stats["revenue"] == 0
    assert stats["averageRating"] is None


def test_dashboard_rejects_unknown_period(admin):
    assert admin.get("/api/dashboard/stats", params={"period": "decade"}).status_code == 400
