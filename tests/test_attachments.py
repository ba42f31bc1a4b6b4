import pytest
from conftest import create_customer, create_job, make_client, register_company
from fastapi import HTTPException

from cleanmanager import config
from cleanmanager.domain.attachments.service import classify_file_type, validate_filename


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


def upload(client, name="before.jpg", content=b"\xff\xd8\xffimage-bytes", mime="image/jpeg", **form):
    return client.post("/api/attachments", files={"file": (name, content, mime)}, data=form)


def test_classify_file_type():
    assert classify_file_type("image/png") == "image"
    assert classify_file_type("application/pdf") == "document"
    assert classify_file_type("application/zip") == "other"
    assert classify_file_type(None) == "other"


def test_upload_download_and_delete(admin, upload_dir):
    job = create_job(admin, create_customer(admin)["id"])

    created = upload(admin, jobId=str(job["id"]), category="before")

    assert created.status_code == 201
    body = created.json()
    assert body["fileName"] == "before.jpg"
    assert body["fileType"] == "image"
    assert body["fileSize"] == len(b"\xff\xd8\xffimage-bytes")
    assert body["jobId"] == job["id"]
    stored = list(upload_dir.rglob("*.jpg"))
    assert len(stored) == 1

    listed = admin.get("/api/attachments", params={"jobId": job["id"]}).json()
    assert [a["id"] for a in listed] == [body["id"]]

    download = admin.get(f"/api/attachments/{body['id']}/download")
    assert download.status_code == 200
    assert download.content == b"\xff\xd8\xffimage-bytes"

    assert admin.delete(f"/api/attachments/{body['id']}").json()["success"] is True
    assert list(upload_dir.rglob("*.jpg")) == []
    assert admin.get(f"/api/attachments/{body['id']}").status_code == 404


def test_upload_rejects_dangerous_filename(admin):
    response = upload(admin, name="report<1>.pdf", mime="application/pdf")

    assert response.status_code == 400
    assert "dangerous character" in response.json()["detail"]


@pytest.mark.parametrize("name", ["report\x00.pdf", "notes\x1f.txt", "clean\x7f.jpg"])
def test_validate_filename_rejects_control_characters(name):
    with pytest.raises(HTTPException) as error:
        validate_filename(name)

    assert error.value.status_code == 400
    assert "control characters" in error.value.detail


def test_upload_rejects_empty_and_oversized_files(admin, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)

    empty = upload(admin, content=b"")
    large = upload(admin, content=b"x" * 11)

    assert empty.status_code == 400
    assert large.status_code == 400
    assert "exceeds" in large.json()["detail"]


def test_upload_cannot_link_other_company_records(admin):
    rival = make_client()
    register_company(rival, "rival")
    their_customer = create_customer(rival)

    response = upload(admin, customerId=str(their_customer["id"]))

    assert response.status_code == 404
    assert response.json()["detail"] == "Customer not found"


def test_attachments_are_isolated_between_companies(admin):
    attachment = upload(admin).json()
    rival = make_client()
    register_company(rival, "rival")

    assert rival.get(f"/api/attachments/{attachment['id']}").status_code == 404
    assert rival.get(f"/api/attachments/{attachment['id']}/download").status_code == 404
    assert rival.get("/api/attachments").json() == []
