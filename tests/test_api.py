"""HTTP-level tests for the purchase-order routes."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDocumentClient, build_order
from po_scanner.api.main import create_app
from po_scanner.core.errors import UpstreamError
from po_scanner.services.ocr_pipeline import PurchaseOrderPipeline
from po_scanner.services.purchase_orders import PurchaseOrderService


@pytest.fixture
def client(settings, service) -> TestClient:
    return TestClient(create_app(settings=settings, service=service))


def _upload(client, content=b"%PDF-1.7 body", mime="application/pdf"):
    return client.post(
        "/api/purchase-orders/upload",
        files={"file": ("po-1001.pdf", content, mime)},
    )


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_returns_created_record(client, completion_client):
    response = _upload(client)

    assert response.status_code == 201
    body = response.json()
    assert body["_id"]
    assert body["sourceFileName"] == "po-1001.pdf"
    assert body["rawText"] == "PURCHASE ORDER PO-1001\n\nWidget x5"
    assert body["items"][0]["quantity"] == 5
    assert "createdAt" in body
    assert "notes" not in body
    assert completion_client.calls == []


def test_upload_rejects_png_without_calling_providers(client, document_client, completion_client):
    response = _upload(client, content=b"\x89PNG", mime="image/png")

    assert response.status_code == 400
    assert response.json() == {"message": "Only PDF uploads are supported."}
    assert document_client.calls == []
    assert completion_client.calls == []


def test_upload_without_file_is_bad_request(client):
    response = client.post("/api/purchase-orders/upload")

    assert response.status_code == 400
    assert response.json() == {"message": "No PDF uploaded"}


def test_upstream_failure_maps_to_bad_gateway(settings, repository, completion_client):
    document_client = FakeDocumentClient(error=UpstreamError("Mistral OCR request failed with status 500: boom"))
    pipeline = PurchaseOrderPipeline(document_client, completion_client, settings=settings)
    service = PurchaseOrderService(repository, pipeline=pipeline, settings=settings)
    client = TestClient(create_app(settings=settings, service=service))

    response = _upload(client)

    assert response.status_code == 502
    assert response.json()["message"].startswith("Mistral OCR request failed")
    assert repository.documents == {}


def test_list_returns_newest_first(client):
    first = _upload(client).json()
    second = _upload(client).json()

    response = client.get("/api/purchase-orders")

    assert response.status_code == 200
    assert [record["_id"] for record in response.json()] == [second["_id"], first["_id"]]


def test_patch_updates_record(client):
    created = _upload(client).json()
    payload = {**created, "notes": "Rush order", "total": "60.00", "purchaser": {**created["purchaser"], "phone": None}}

    response = client.patch(f"/api/purchase-orders/{created['_id']}", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["_id"] == created["_id"]
    assert body["notes"] == "Rush order"
    assert body["total"] == 60.0
    assert body["createdAt"] == created["createdAt"]
    assert "updatedAt" in body


def test_patch_unknown_id_is_not_found(client):
    response = client.patch("/api/purchase-orders/64b7f0c2a1b2c3d4e5f60718", json=build_order())

    assert response.status_code == 404
    assert "was not found" in response.json()["message"]


def test_patch_invalid_payload_is_bad_request(client):
    created = _upload(client).json()

    response = client.patch(f"/api/purchase-orders/{created['_id']}", json=build_order(total="n/a"))

    assert response.status_code == 400
    assert response.json()["message"].startswith("total: Unable to parse numeric value")


@pytest.mark.parametrize("body", [b"[1, 2]", b"null"])
def test_patch_requires_a_json_object(client, body):
    response = client.patch(
        "/api/purchase-orders/abc",
        content=body,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Request body must be a JSON object."}


def test_patch_malformed_json_is_bad_request(client):
    response = client.patch(
        "/api/purchase-orders/abc",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "message" in response.json()
