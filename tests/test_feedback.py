import pytest
from conftest import create_customer, create_employee, create_job, make_client

from cleanmanager.models import Job


@pytest.fixture
def feedback_token(admin, db):
    employee = create_employee(admin)
    job = create_job(admin, create_customer(admin)["id"], assignedTo=employee["id"])
    admin.post(f"/api/jobs/{job['id']}/complete", json={"qualityRating": 4})
    return db.get(Job, job["id"]).feedback_token


def test_feedback_form_describes_the_job(feedback_token):
    visitor = make_client()

    response = visitor.get(f"/api/public/feedback/{feedback_token}")

    assert response.status_code == 200
    body = response.json()
    assert body["alreadySubmitted"] is False
    assert body["jobTitle"] == "Deep clean"
    assert body["customerName"] == "Jane Smith"
    assert body["staffName"] == "Alex Cleaner"
    assert body["companyName"] == "Acme Cleaning"
    assert body["completedAt"] is not None


def test_submit_feedback_stores_rating_once(admin, feedback_token, db):
    visitor = make_client()

    first = visitor.post(f"/api/public/feedback/{feedback_token}", json={"rating": 5, "feedback": " Spotless! "})
    second = visitor.post(f"/api/public/feedback/{feedback_token}", json={"rating": 1})

    assert first.json() == {"success": True, "message": "Thank you for your feedback!"}
    assert second.status_code == 400
    assert second.json()["detail"] == "Feedback has already been submitted for this job"

    db.expire_all()
    job = db.query(Job).filter(Job.feedback_token == feedback_token).one()
    assert job.quality_rating == 5
    assert job.customer_feedback == "Spotless!"
    assert job.feedback_submitted_at is not None

    form = visitor.get(f"/api/public/feedback/{feedback_token}").json()
    assert form["alreadySubmitted"] is True
    timeline = admin.get(f"/api/jobs/{job.id}/timeline").json()
    assert timeline[-1]["type"] == "feedback_received"
    assert timeline[-1]["meta"] == {"rating": 5}


@pytest.mark.parametrize("payload", [{}, {"rating": 0}, {"rating": 6}])
def test_submit_feedback_requires_rating_between_one_and_five(feedback_token, payload):
    response = make_client().post(f"/api/public/feedback/{feedback_token}", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Rating must be between 1 and 5"


def test_unknown_feedback_token_is_not_found(client):
    assert client.get("/api/public/feedback/not-a-token").status_code == 404
    response = client.post("/api/public/feedback/not-a-token", json={"rating": 5})

    assert response.status_code == 404
    assert response.json()["detail"] == "Invalid or expired feedback link"
