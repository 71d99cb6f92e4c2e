"""Pytest configuration and shared fixtures for the purchase-order scanner."""

from __future__ import annotations

import copy
from itertools import count
from typing import Any, Dict, List, Optional

import pytest

from po_scanner.core.config import Settings
from po_scanner.core.errors import UpstreamError
from po_scanner.services.ocr_client import DocumentExtraction
from po_scanner.services.ocr_pipeline import PurchaseOrderPipeline
from po_scanner.services.purchase_orders import PurchaseOrderService


def build_order(**overrides: Any) -> Dict[str, Any]:
    """Return a schema-conformant purchase order payload."""

    order: Dict[str, Any] = {
        "purchaseOrderNumber": "PO-1001",
        "issueDate": "2024-03-01",
        "vendor": {"name": "Vendor Co", "address": "1 Supplier Way", "email": "sales@vendorco.com"},
        "purchaser": {"name": "Buyer Inc", "address": "2 Client Road"},
        "items": [
            {"name": "Widget", "sku": "W-1", "quantity": 5, "unitPrice": 9.99, "totalPrice": 49.95},
        ],
        "subtotal": 49.95,
        "tax": 0,
        "total": 49.95,
        "currency": "USD",
    }
    order.update(overrides)
    return order


class FakeRepository:
    """In-memory stand-in for the Mongo-backed repository."""

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.updates: List[Dict[str, Any]] = []
        self._ids = count(1)

    async def insert(self, document: Dict[str, Any]) -> str:
        order_id = f"{next(self._ids):024x}"
        self.documents[order_id] = {**copy.deepcopy(document), "_id": order_id}
        return order_id

    async def list_recent(self, limit: int) -> List[Dict[str, Any]]:
        ordered = sorted(self.documents.values(), key=lambda doc: doc["createdAt"], reverse=True)
        return [copy.deepcopy(doc) for doc in ordered[:limit]]

    async def find_and_update(
        self, order_id: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        self.updates.append(copy.deepcopy(fields))
        document = self.documents.get(order_id)
        if document is None:
            return None
        document.update(copy.deepcopy(fields))
        return copy.deepcopy(document)


class FakeDocumentClient:
    def __init__(self, annotation: Any = None, raw_text: str = "", error: Exception | None = None) -> None:
        self.annotation = annotation
        self.raw_text = raw_text
        self.error = error
        self.calls: List[bytes] = []

    async def extract_purchase_order(self, pdf_bytes: bytes) -> DocumentExtraction:
        self.calls.append(pdf_bytes)
        if self.error is not None:
            raise self.error
        return DocumentExtraction(annotation=self.annotation, raw_text=self.raw_text)

    async def aclose(self) -> None:
        return None


class FakeCompletionClient:
    def __init__(self, result: Any = None) -> None:
        self.result = result
        self.calls: List[str] = []

    async def structure_purchase_order(self, raw_text: str) -> Any:
        self.calls.append(raw_text)
        if self.result is None:
            raise UpstreamError("Mistral chat completions did not return content.")
        return copy.deepcopy(self.result)

    async def aclose(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mistral_api_key="test-key",
        mistral_api_url="https://mistral.test/v1",
        mongodb_uri="mongodb://localhost:27017/po-scanner-test",
    )


@pytest.fixture
def order_payload() -> Dict[str, Any]:
    return build_order()


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def document_client(order_payload) -> FakeDocumentClient:
    return FakeDocumentClient(annotation=order_payload, raw_text="  PURCHASE ORDER PO-1001\n\nWidget x5  ")


@pytest.fixture
def completion_client(order_payload) -> FakeCompletionClient:
    return FakeCompletionClient(result=order_payload)


@pytest.fixture
def pipeline(document_client, completion_client, settings) -> PurchaseOrderPipeline:
    return PurchaseOrderPipeline(
        document_client=document_client,
        completion_client=completion_client,
        settings=settings,
    )


@pytest.fixture
def service(repository, pipeline, settings) -> PurchaseOrderService:
    return PurchaseOrderService(repository, pipeline=pipeline, settings=settings)
