"""Integration tests for the HTTP API.

Requests go through the FastAPI app with the repository swapped for a
fresh in-memory store and identity taken from gateway X-User-* headers.
"""

import pytest
from fastapi.testclient import TestClient

from rahat_service.api.dependencies import get_case_repository
from rahat_service.config import settings
from rahat_service.infrastructure.persistence import InMemoryCaseRepository
from rahat_service.main import app

FILES = settings.file_url_prefix

VICTIM = {
    "name": "Ramesh Kumar",
    "dob": "1980-04-12",
    "dod": "2024-07-01",
    "address": "Village Khurd",
    "contact": "9876543210",
    "description": "Drowned during flood",
    "caseSDM": "sdm-1",
}

OWNERS = {
    2: "sdm",
    3: "rahat-shakha",
    4: "oic",
    5: "additional-collector",
    6: "collector",
    7: "additional-collector",
}


def headers(role: str, department: str = "") -> dict:
    result = {"X-User-ID": f"user-{role}", "X-User-Role": role}
    if department:
        result["X-User-Department"] = department
    return result


@pytest.fixture
def client():
    repository = InMemoryCaseRepository()
    app.dependency_overrides[get_case_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_case(client) -> str:
    response = client.post("/api/v1/cases/create", json=VICTIM, headers=headers("tehsildar"))
    assert response.status_code == 201
    return response.json()["data"]["case_id"]


def upload(client, case_id: str):
    return client.post(
        f"/api/v1/cases/{case_id}/documents/upload",
        json={"patwari": [f"{FILES}p.pdf"], "ti": [f"{FILES}t.pdf"]},
        headers=headers("tehsildar"),
    )


def approve_to_stage_eight(client, case_id: str):
    for stage in range(2, 8):
        response = client.put(
            f"/api/v1/cases/{case_id}/update",
            json={"status": "approved"},
            headers=headers(OWNERS[stage]),
        )
        assert response.status_code == 200, response.json()


@pytest.mark.integration
class TestCaseLifecycle:
    def test_create_returns_envelope(self, client):
        response = client.post("/api/v1/cases/create", json=VICTIM, headers=headers("tehsildar"))

        body = response.json()
        assert response.status_code == 201
        assert body["success"] is True
        assert body["status"] == 201
        assert body["message"] == "Case created successfully"
        assert body["data"]["case_id"].startswith("RAHAT-")
        assert "timestamp" in body

    def test_collector_office_may_create(self, client):
        response = client.post(
            "/api/v1/cases/create", json=VICTIM, headers=headers("clerk", "collector-office")
        )
        assert response.status_code == 201

    def test_full_lifecycle(self, client):
        case_id = create_case(client)

        response = upload(client, case_id)
        assert response.status_code == 201
        assert response.json()["data"] == {
            "case_id": case_id,
            "documents": {"patwari": 1, "ti": 1, "total": 2},
            "new_status": "pendingSDM",
            "new_stage": 2,
        }

        approve_to_stage_eight(client, case_id)

        response = client.put(
            f"/api/v1/cases/{case_id}/close",
            json={"paymentRemark": "Paid via DBT"},
            headers=headers("tehsildar"),
        )
        data = response.json()["data"]
        assert response.status_code == 200
        assert data["status"] == "closed"
        assert data["payment"]["amount"] == 150000
        assert data["final_pdf_url"].endswith(f"/api/v1/cases/{case_id}/final-pdf")

        case = client.get(f"/api/v1/cases/{case_id}", headers=headers("collector")).json()["data"]
        assert case["status"] == "closed"
        assert case["remarks"][-1]["remark"] == "Case closed - Payment processed: Paid via DBT"

    def test_reject_returns_case(self, client):
        case_id = create_case(client)
        upload(client, case_id)

        response = client.put(
            f"/api/v1/cases/{case_id}/update",
            json={"status": "rejected", "remark": "Patwari report unsigned"},
            headers=headers("sdm"),
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "case_id": case_id,
            "new_status": "created",
            "new_stage": 1,
            "remark": "Patwari report unsigned",
        }

    def test_fix_payment_after_approval_closure(self, client):
        case_id = create_case(client)
        upload(client, case_id)
        approve_to_stage_eight(client, case_id)
        client.put(f"/api/v1/cases/{case_id}/update", json={"status": "approved"}, headers=headers("tehsildar"))

        response = client.put(
            f"/api/v1/cases/{case_id}/fix-payment",
            json={"paymentRemark": "Paid late"},
            headers=headers("tehsildar"),
        )

        assert response.status_code == 200
        assert response.json()["data"]["payment"]["remark"] == "Paid late"


@pytest.mark.integration
class TestErrors:
    def test_missing_identity(self, client):
        response = client.get("/api/v1/cases")

        body = response.json()
        assert response.status_code == 401
        assert body["success"] is False
        assert body["title"] == "AUTHORIZATION_ERROR"

    def test_non_tehsildar_cannot_create(self, client):
        response = client.post("/api/v1/cases/create", json=VICTIM, headers=headers("oic"))
        assert response.status_code == 401

    def test_missing_fields(self, client):
        response = client.post(
            "/api/v1/cases/create", json={"caseSDM": "sdm-1"}, headers=headers("tehsildar")
        )

        body = response.json()
        assert response.status_code == 400
        assert body["title"] == "MISSING_REQUIRED_FIELDS"
        assert {"field": "name"} in body["errors"]

    def test_unknown_case(self, client):
        response = client.get("/api/v1/cases/RAHAT-2025-0101-0000", headers=headers("sdm"))

        assert response.status_code == 404
        assert response.json()["title"] == "CASE_NOT_FOUND"

    def test_wrong_stage_owner(self, client):
        case_id = create_case(client)
        upload(client, case_id)

        response = client.put(
            f"/api/v1/cases/{case_id}/update", json={"status": "approved"}, headers=headers("oic")
        )

        body = response.json()
        assert response.status_code == 401
        assert body["title"] == "UNAUTHORIZED_FOR_STAGE"
        assert body["meta"]["required_role"] == "sdm"

    def test_invalid_status(self, client):
        case_id = create_case(client)
        response = client.put(
            f"/api/v1/cases/{case_id}/update", json={"status": "maybe"}, headers=headers("tehsildar")
        )

        assert response.status_code == 400
        assert response.json()["title"] == "INVALID_STATUS"

    def test_close_twice_conflicts(self, client):
        case_id = create_case(client)
        upload(client, case_id)
        approve_to_stage_eight(client, case_id)
        payload = {"paymentRemark": "Paid"}
        client.put(f"/api/v1/cases/{case_id}/close", json=payload, headers=headers("tehsildar"))

        response = client.put(f"/api/v1/cases/{case_id}/close", json=payload, headers=headers("tehsildar"))

        assert response.status_code == 409
        assert response.json()["title"] == "CASE_ALREADY_CLOSED"

    def test_malformed_query_is_a_validation_error(self, client):
        response = client.get("/api/v1/cases?stage=12", headers=headers("sdm"))

        assert response.status_code == 400
        assert response.json()["title"] == "VALIDATION_ERROR"


@pytest.mark.integration
class TestListing:
    def test_list_and_search(self, client):
        first = create_case(client)
        create_case(client)

        response = client.get("/api/v1/cases", params={"limit": 1}, headers=headers("collector"))
        data = response.json()["data"]
        assert data["total_docs"] == 2 and data["total_pages"] == 2 and data["next_page"] is True

        response = client.get("/api/v1/cases", params={"search": first}, headers=headers("collector"))
        assert [c["case_id"] for c in response.json()["data"]["docs"]] == [first]

    def test_invalid_limit(self, client):
        response = client.get("/api/v1/cases", params={"limit": 500}, headers=headers("collector"))

        assert response.status_code == 400
        assert response.json()["title"] == "INVALID_PAGINATION"

    def test_my_pending(self, client):
        case_id = create_case(client)
        upload(client, case_id)

        response = client.get("/api/v1/cases/my-pending", headers=headers("sdm"))

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["user_role"] == "sdm" and data["stage_filter"] == 2
        assert [c["case_id"] for c in data["docs"]] == [case_id]


@pytest.mark.integration
class TestAnalytics:
    def test_collector_dashboard(self, client):
        create_case(client)

        response = client.get("/api/v1/analytics/dashboard", headers=headers("collector"))

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["total_cases"] == 1
        assert data["status_overview"] == [{"status": "created", "count": 1, "percentage": 100}]

    def test_other_roles_are_refused(self, client):
        response = client.get("/api/v1/analytics/dashboard", headers=headers("tehsildar"))
        assert response.status_code == 401
