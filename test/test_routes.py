from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from accesszen.access_forms import router as access_form_router
from accesszen.access_forms.services import get_email_service, get_storage
from accesszen.utils.email_service import EmailService
from accesszen.core.db import get_db
from accesszen.main import accesszen_app


@pytest.fixture()
def client(db_session, storage):
    """
    Test client bound to the test session and in-memory storage.
    """
    def override_get_db():
        yield db_session

    accesszen_app.dependency_overrides[get_db] = override_get_db
    accesszen_app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(accesszen_app)
    accesszen_app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_generate_access_form(client, storage, seeded):
    response = client.post(
        "/access-forms", json={"project_id": "project-1", "employee_ids": ["emp-a", "emp-b", "emp-c"]}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["form_url"].startswith("https://files.test/generated-forms/project-1/combined-access-form_")
    assert len(storage.uploads) == 1


def test_generation_failures_are_reported_in_the_body(client, seeded):
    response = client.post("/access-forms", json={"project_id": "missing", "employee_ids": ["emp-a"]})

    assert response.status_code == 200
    assert response.json() == {
        "success": False, "form_url": None, "error": "Project not found.", "warnings": [],
    }


def test_generate_requires_a_project_id(client):
    response = client.post("/access-forms", json={"employee_ids": ["emp-a"]})
    assert response.status_code == 422


def test_queue_access_form(client, monkeypatch):
    queued = []

    def delay(project_id, employee_ids):
        queued.append((project_id, employee_ids))
        return SimpleNamespace(id="task-123")

    monkeypatch.setattr(access_form_router, "generate_access_form_task", SimpleNamespace(delay=delay))

    response = client.post("/access-forms/async", json={"project_id": "project-1", "employee_ids": ["emp-a"]})

    assert response.status_code == 202
    assert response.json() == {"task_id": "task-123", "status": "queued"}
    assert queued == [("project-1", ["emp-a"])]


def test_document_types(client):
    response = client.get("/estates/document-types")

    assert response.status_code == 200
    assert response.json()[0] == {"id": "photoUrl", "label": "Employee Photo"}
    assert [item["id"] for item in response.json()] == [
        "photoUrl", "idCopyUrl", "medicalCertificateUrl", "helperPhotoUrl", "helperIdCopyUrl",
    ]


def test_mappable_fields(client, seeded, db_session):
    seeded["estate"].form_field_mappings = {"projectName": "Site", "employeeFullName_3": "Name3"}
    db_session.commit()

    response = client.get("/estates/estate-1/mappable-fields")

    assert response.status_code == 200
    body = response.json()
    assert body["form_max_employees"] == 2
    assert body["unresolvable_keys"] == ["employeeFullName_3"]
    assert {"key": "helperIdNumber_2", "label": "ID Number", "category": "Helper 2"} in body["fields"]


def test_mappable_fields_for_unknown_estate(client, db_session):
    response = client.get("/estates/nowhere/mappable-fields")

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Estate not found."


class RecordingSES:
    def __init__(self):
        self.sent = []

    def send_raw_email(self, **kwargs):
        self.sent.append(kwargs)
        return {"MessageId": "message-1"}


def test_email_access_bundle(client, storage, seeded):
    ses = RecordingSES()
    accesszen_app.dependency_overrides[get_email_service] = lambda: EmailService(
        ses_client=ses, sender="forms@zenworks.test"
    )
    form_url = "https://files.test/generated-forms/project-1/form.pdf"
    storage.files[form_url] = b"%PDF"

    response = client.post("/access-forms/email", json={"estate_id": "estate-1", "form_url": form_url})

    assert response.status_code == 200
    assert response.json() == {"success": True, "recipient": "access@oak.test", "error": None}
    assert ses.sent[0]["Destinations"] == ["access@oak.test"]


def test_email_access_bundle_without_estate_email(client, storage, seeded, db_session):
    seeded["estate"].email = None
    db_session.commit()
    accesszen_app.dependency_overrides[get_email_service] = lambda: EmailService(
        ses_client=RecordingSES(), sender="forms@zenworks.test"
    )

    response = client.post("/access-forms/email", json={"estate_id": "estate-1", "form_url": "x.pdf"})

    assert response.status_code == 200
    assert response.json()["error"] == "The selected estate does not have an email address."
