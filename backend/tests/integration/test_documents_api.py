"""Integration tests for the documents API

Tests the complete HTTP workflow against the in-memory service:
- Multipart upload with metadata form fields
- Version appends and metadata updates
- Access control via X-User-Id / X-User-Roles
- Search filters and signed download URLs
- Error body shape and request ID propagation
"""

import io
import json

import pytest
from fastapi.testclient import TestClient

from domain.documents.validation import MALICIOUS_SIGNATURES

PDF_CONTENT = b"%PDF-1.4\n%\xE2\xE3\xCF\xD3\ntest deed content\n"

OWNER = {"X-User-Id": "user-owner"}
STRANGER = {"X-User-Id": "user-stranger"}
REVIEWER = {"X-User-Id": "user-reviewer", "X-User-Roles": "agent, reviewer"}


def upload(client: TestClient, headers=OWNER, files=None, **form):
    files = files or [("files", ("deed.pdf", io.BytesIO(PDF_CONTENT), "application/pdf"))]
    return client.post("/api/v1/documents/upload", files=files, data=form, headers=headers)


class TestUploadAPI:
    """POST /api/v1/documents/upload"""

    def test_upload_single_pdf(self, client):
        response = upload(
            client,
            title="Grant Deed",
            type="DEED",
            property_id="prop-1",
            tags="legal, recorded",
            access_level="RESTRICTED",
            allowed_user_ids="auditor",
            allowed_roles="reviewer",
            custom_fields=json.dumps({"parcel": "APN-123"}),
        )

        assert response.status_code == 201
        [document] = response.json()
        assert document["type"] == "DEED"
        assert document["status"] == "ACTIVE"
        assert document["current_version"] == 1
        assert document["metadata"]["title"] == "Grant Deed"
        assert document["metadata"]["uploaded_by"] == "user-owner"
        assert document["metadata"]["tags"] == ["legal", "recorded"]
        assert document["metadata"]["access_level"] == "RESTRICTED"
        assert document["metadata"]["allowed_user_ids"] == ["auditor"]
        assert document["metadata"]["allowed_roles"] == ["reviewer"]
        assert document["metadata"]["custom_fields"] == {"parcel": "APN-123"}
        assert document["versions"][0]["storage_key"] == f"documents/{document['id']}/v1/deed.pdf"
        assert document["versions"][0]["size"] == len(PDF_CONTENT)

    def test_upload_multiple_files(self, client, png_bytes):
        files = [
            ("files", ("deed.pdf", io.BytesIO(PDF_CONTENT), "application/pdf")),
            ("files", ("front.png", io.BytesIO(png_bytes), "image/png")),
        ]
        response = upload(client, files=files)

        assert response.status_code == 201
        documents = response.json()
        assert len(documents) == 2
        assert documents[1]["versions"][0]["thumbnail_key"].endswith("/v1/thumbnail.webp")

    def test_malformed_custom_fields_ignored(self, client):
        response = upload(client, custom_fields="{not json")
        assert response.status_code == 201
        assert response.json()[0]["metadata"]["custom_fields"] == {}

    def test_missing_user_id(self, client):
        response = upload(client, headers={})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_REQUEST"
        assert body["message"] == "User context is required"
        assert body["details"]["field"] == "user_id"

    def test_no_files(self, client):
        response = client.post("/api/v1/documents/upload", data={"title": "x"}, headers=OWNER)
        assert response.status_code == 400
        assert response.json()["message"] == "At least one file is required"

    def test_unsupported_type(self, client):
        files = [("files", ("notes.txt", io.BytesIO(b"hello"), "text/plain"))]
        response = upload(client, files=files)

        assert response.status_code == 400
        assert response.json()["message"] == "Unsupported file type: text/plain"

    def test_eicar_rejected(self, client):
        files = [("files", ("invoice.pdf", io.BytesIO(MALICIOUS_SIGNATURES[0]), "application/pdf"))]
        response = upload(client, files=files)

        assert response.status_code == 400
        assert response.json()["message"] == "File failed virus scan"

    def test_invalid_enum_value(self, client):
        response = upload(client, type="CONTRACT")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "type"


class TestDocumentReadAPI:
    """GET /api/v1/documents/{id}"""

    def test_owner_reads(self, client):
        document_id = upload(client).json()[0]["id"]

        response = client.get(f"/api/v1/documents/{document_id}", headers=OWNER)

        assert response.status_code == 200
        assert response.json()["id"] == document_id

    def test_stranger_forbidden(self, client):
        document_id = upload(client).json()[0]["id"]

        response = client.get(f"/api/v1/documents/{document_id}", headers=STRANGER)

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "FORBIDDEN"
        assert body["details"]["document_id"] == document_id

    def test_role_reads_restricted(self, client):
        document_id = upload(client, access_level="RESTRICTED", allowed_roles="reviewer").json()[0]["id"]
        assert client.get(f"/api/v1/documents/{document_id}", headers=REVIEWER).status_code == 200

    def test_unknown_document(self, client):
        response = client.get("/api/v1/documents/does-not-exist", headers=OWNER)
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestVersionAPI:
    """POST /api/v1/documents/{id}/version"""

    def test_add_version(self, client):
        document_id = upload(client).json()[0]["id"]

        response = client.post(
            f"/api/v1/documents/{document_id}/version",
            files={"file": ("deed-signed.pdf", io.BytesIO(PDF_CONTENT + b"signed"), "application/pdf")},
            headers=OWNER,
        )

        assert response.status_code == 200
        document = response.json()
        assert document["current_version"] == 2
        assert [v["version"] for v in document["versions"]] == [1, 2]
        assert document["versions"][1]["storage_key"] == f"documents/{document_id}/v2/deed-signed.pdf"

    def test_stranger_cannot_add_version(self, client):
        document_id = upload(client, access_level="PUBLIC").json()[0]["id"]

        response = client.post(
            f"/api/v1/documents/{document_id}/version",
            files={"file": ("x.pdf", io.BytesIO(PDF_CONTENT), "application/pdf")},
            headers=STRANGER,
        )
        assert response.status_code == 403


class TestMetadataAPI:
    """PATCH /api/v1/documents/{id}/metadata"""

    def test_partial_update(self, client):
        document_id = upload(client, title="Draft", description="keep me").json()[0]["id"]

        response = client.patch(
            f"/api/v1/documents/{document_id}/metadata",
            json={"title": "Final", "type": "INSPECTION_REPORT", "tags": ["roof"]},
            headers=OWNER,
        )

        assert response.status_code == 200
        document = response.json()
        assert document["type"] == "INSPECTION_REPORT"
        assert document["metadata"]["title"] == "Final"
        assert document["metadata"]["tags"] == ["roof"]
        assert document["metadata"]["description"] == "keep me"
        assert document["current_version"] == 1

    def test_owner_override_not_accepted(self, client):
        document_id = upload(client).json()[0]["id"]

        response = client.patch(
            f"/api/v1/documents/{document_id}/metadata",
            json={"uploaded_by": "someone-else"},
            headers=OWNER,
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_forbidden_for_stranger(self, client):
        document_id = upload(client).json()[0]["id"]
        response = client.patch(
            f"/api/v1/documents/{document_id}/metadata", json={"title": "x"}, headers=STRANGER
        )
        assert response.status_code == 403


class TestDownloadAPI:
    """GET /api/v1/documents/{id}/download"""

    def test_download_url_for_version(self, client):
        document_id = upload(client).json()[0]["id"]
        client.post(
            f"/api/v1/documents/{document_id}/version",
            files={"file": ("v2.pdf", io.BytesIO(PDF_CONTENT + b"v2"), "application/pdf")},
            headers=OWNER,
        )

        response = client.get(f"/api/v1/documents/{document_id}/download?version=1", headers=OWNER)

        assert response.status_code == 200
        body = response.json()
        assert f"documents%2F{document_id}%2Fv1%2Fdeed.pdf" in body["url"]
        assert "expires_at" in body

    def test_non_numeric_version(self, client):
        document_id = upload(client).json()[0]["id"]

        response = client.get(f"/api/v1/documents/{document_id}/download?version=latest", headers=OWNER)

        assert response.status_code == 400
        assert response.json()["message"] == "Version must be a number"

    def test_unknown_version(self, client):
        document_id = upload(client).json()[0]["id"]
        response = client.get(f"/api/v1/documents/{document_id}/download?version=9", headers=OWNER)
        assert response.status_code == 404

    @pytest.mark.parametrize("version", ["0", "-1"])
    def test_non_positive_version_not_found(self, client, version):
        document_id = upload(client).json()[0]["id"]
        response = client.get(f"/api/v1/documents/{document_id}/download?version={version}", headers=OWNER)
        assert response.status_code == 404
        assert response.json()["message"] == "Document version not found"


class TestListAPI:
    """GET /api/v1/documents"""

    @pytest.fixture
    def seeded(self, client):
        upload(client, title="Private deed", property_id="p1", type="DEED")
        upload(client, title="Kitchen photo", property_id="p2", type="PHOTO", access_level="PUBLIC", tags="Interior")

    def test_lists_readable_documents(self, client, seeded):
        assert len(client.get("/api/v1/documents", headers=OWNER).json()) == 2
        [public] = client.get("/api/v1/documents", headers=STRANGER).json()
        assert public["metadata"]["title"] == "Kitchen photo"

    def test_filters(self, client, seeded):
        def titles(**params):
            response = client.get("/api/v1/documents", params=params, headers=OWNER)
            assert response.status_code == 200
            return [d["metadata"]["title"] for d in response.json()]

        assert titles(property_id="p1") == ["Private deed"]
        assert titles(type="photo") == ["Kitchen photo"]
        assert titles(tag="interior") == ["Kitchen photo"]
        assert titles(search="DEED") == ["Private deed"]
        assert titles(access_level="PUBLIC") == ["Kitchen photo"]
        assert titles(uploaded_by="someone-else") == []
        assert titles(created_after="2100-01-01T00:00:00Z") == []


class TestOperationalAPI:

    def test_health(self, client):
        response = client.get("/api/v1/documents/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "storage_provider": "InMemoryStorageAdapter"}

    def test_request_id_echoed(self, client):
        response = client.get("/api/v1/documents/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self, client):
        response = client.get("/api/v1/documents/health")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_metrics_exposed(self, client):
        upload(client, type="PHOTO")
        client.get("/api/v1/documents/does-not-exist", headers=OWNER)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'document_storage_documents_uploaded_total{document_type="PHOTO"}' in response.text
        assert (
            'document_storage_errors_total{operation="get_document",error_code="NOT_FOUND"}'
            in response.text
        )
