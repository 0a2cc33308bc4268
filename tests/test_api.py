import csv
import io

from dynaform.rules import REQUIRED_MESSAGE


def create(client, payload):
    response = client.post("/api/submissions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["submission"]


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_form_schema(client):
    response = client.get("/api/form-schema")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Employee Onboarding"
    assert [field["name"] for field in body["fields"]][:2] == ["fullName", "email"]
    department = body["fields"][3]
    assert department["options"][0] == {"label": "Engineering", "value": "engineering"}


class TestCreate:
    def test_created(self, client, valid_payload):
        response = client.post("/api/submissions", json=valid_payload)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["submission"]["data"] == valid_payload
        assert body["submission"]["createdAt"] == "2024-01-01T09:00:00+00:00"
        assert body["submission"]["id"]

    def test_validation_errors(self, client, store):
        response = client.post("/api/submissions", json={"fullName": "Jo"})
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Validation failed",
            "errors": {
                "fullName": "Must be at least 3 characters.",
                "email": REQUIRED_MESSAGE,
                "department": REQUIRED_MESSAGE,
                "joiningDate": REQUIRED_MESSAGE,
            },
        }
        assert store.count() == 0

    def test_non_object_body(self, client):
        response = client.post("/api/submissions", json=["a", "b"])
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Request body must be a JSON object",
        }

    def test_malformed_json(self, client):
        response = client.post(
            "/api/submissions",
            content=b"{oops",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Request body is not valid JSON"

    def test_integer_too_wide_for_parser(self, client):
        response = client.post(
            "/api/submissions",
            content=b'{"age": 123456789012345678901234567890}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Request body is not valid JSON",
        }

    def test_empty_body_is_empty_payload(self, client):
        response = client.post("/api/submissions")
        assert response.status_code == 400
        assert set(response.json()["errors"]) == {"fullName", "email", "department", "joiningDate"}


class TestList:
    def test_empty(self, client):
        body = client.get("/api/submissions").json()
        assert body == {
            "success": True,
            "data": [],
            "pagination": {"page": 1, "limit": 5, "totalItems": 0, "totalPages": 1},
            "sort": {"sortBy": "createdAt", "sortOrder": "desc"},
        }

    def test_clamps_page(self, client, valid_payload):
        ids = [create(client, valid_payload)["id"] for _ in range(7)]
        body = client.get("/api/submissions?page=999&limit=5&sortOrder=asc").json()
        assert body["pagination"] == {"page": 2, "limit": 5, "totalItems": 7, "totalPages": 2}
        assert [item["id"] for item in body["data"]] == ids[5:]

    def test_sort_orders(self, client, valid_payload):
        for _ in range(3):
            create(client, valid_payload)
        asc = client.get("/api/submissions?sortOrder=asc").json()
        desc = client.get("/api/submissions?sortOrder=desc").json()
        assert [i["id"] for i in asc["data"]] == [i["id"] for i in reversed(desc["data"])]
        assert asc["sort"]["sortOrder"] == "asc"

    def test_garbage_params_use_defaults(self, client, valid_payload):
        create(client, valid_payload)
        body = client.get("/api/submissions?page=abc&limit=xyz&sortOrder=up").json()
        assert body["pagination"]["page"] == 1
        assert body["pagination"]["limit"] == 5
        assert body["sort"]["sortOrder"] == "desc"


class TestUpdate:
    def test_update(self, client, valid_payload):
        created = create(client, valid_payload)
        changed = {**valid_payload, "department": "hr"}
        response = client.put(f"/api/submissions/{created['id']}", json=changed)
        assert response.status_code == 200
        submission = response.json()["submission"]
        assert submission["data"]["department"] == "hr"
        assert submission["createdAt"] == created["createdAt"]
        assert submission["id"] == created["id"]

    def test_update_validation_error(self, client, valid_payload):
        created = create(client, valid_payload)
        response = client.put(
            f"/api/submissions/{created['id']}",
            json={**valid_payload, "department": "sales"},
        )
        assert response.status_code == 400
        assert response.json()["errors"] == {"department": "Invalid option selected."}
        current = client.get(f"/api/submissions/{created['id']}").json()["submission"]
        assert current["data"]["department"] == "engineering"

    def test_update_unknown_id(self, client, valid_payload, store):
        create(client, valid_payload)
        before = store.all()
        response = client.put("/api/submissions/does-not-exist", json=valid_payload)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Submission not found"}
        assert store.all() == before


class TestDelete:
    def test_delete_twice(self, client, valid_payload):
        created = create(client, valid_payload)
        first = client.delete(f"/api/submissions/{created['id']}")
        assert first.status_code == 200
        assert first.json()["submission"]["id"] == created["id"]
        second = client.delete(f"/api/submissions/{created['id']}")
        assert second.status_code == 404
        assert client.get(f"/api/submissions/{created['id']}").status_code == 404


class TestFieldChecks:
    def test_single_field(self, client):
        response = client.post("/api/form-schema/fields/age/validate", json={"value": "17"})
        assert response.json() == {"field": "age", "valid": False, "error": "Must be at least 18."}

    def test_single_field_passes(self, client):
        response = client.post(
            "/api/form-schema/fields/joiningDate/validate", json={"value": "2020-01-01"}
        )
        assert response.json()["valid"] is True

    def test_missing_value_is_empty(self, client):
        response = client.post("/api/form-schema/fields/email/validate", json={})
        assert response.json()["error"] == REQUIRED_MESSAGE

    def test_unknown_field(self, client):
        response = client.post("/api/form-schema/fields/nope/validate", json={"value": 1})
        assert response.status_code == 404
        assert response.json()["message"] == "Field not found"

    def test_dry_run_does_not_store(self, client, store, valid_payload):
        response = client.post("/api/form-schema/validate", json=valid_payload)
        assert response.json() == {"isValid": True, "errors": {}}
        assert store.count() == 0


class TestExport:
    def test_csv(self, client, valid_payload):
        created = create(client, valid_payload)
        response = client.get("/api/submissions/export?sortOrder=asc")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][:3] == ["id", "createdAt", "Full Name"]
        assert rows[1][0] == created["id"]
        assert "Python, React" in rows[1]
        assert rows[1][-1] == "true"

    def test_tsv(self, client, valid_payload):
        create(client, valid_payload)
        response = client.get("/api/submissions/export?format=tsv")
        assert response.headers["content-type"].startswith("text/tab-separated-values")
        assert "\t" in response.text.splitlines()[0]

    def test_unknown_format(self, client):
        assert client.get("/api/submissions/export?format=xlsx").status_code == 400


def test_internal_error_is_generic(client, store, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(store, "list_page", broken)
    response = client.get("/api/submissions")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}


def test_app_loads_schema_from_settings(tmp_path, monkeypatch):
    import orjson
    from fastapi.testclient import TestClient

    from dynaform.app import create_app
    from dynaform.config import Settings

    path = tmp_path / "form.json"
    path.write_bytes(
        orjson.dumps(
            {
                "title": "Feedback",
                "fields": [{"name": "rating", "type": "number", "required": True}],
            }
        )
    )
    monkeypatch.setenv("FORM_SCHEMA_PATH", str(path))
    with TestClient(create_app(Settings())) as client:
        assert client.get("/api/form-schema").json()["title"] == "Feedback"
        response = client.post("/api/submissions", json={"rating": "5"})
        assert response.status_code == 201
        assert response.json()["submission"]["data"] == {"rating": "5"}
