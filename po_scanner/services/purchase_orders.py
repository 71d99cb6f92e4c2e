"""Create, list and edit purchase-order records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from po_scanner.core.config import Settings, get_settings
from po_scanner.core.errors import BadRequest, InvalidPurchaseOrder, NotFound
from po_scanner.db.repository import PurchaseOrderRepository
from po_scanner.schemas.purchase_order import (
    SERVER_OWNED_FIELDS,
    PurchaseOrderRecord,
    validate_purchase_order,
)
from po_scanner.services.ocr_pipeline import PurchaseOrderPipeline
from po_scanner.utils.sanitize import drop_nulls

logger = logging.getLogger(__name__)


@dataclass
class UploadedDocument:
    content: bytes
    file_name: str
    content_type: Optional[str]

    @property
    def size(self) -> int:
        return len(self.content)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PurchaseOrderService:
    """Glue layer between the HTTP routes, the extraction pipeline and storage."""

    def __init__(
        self,
        repository: PurchaseOrderRepository,
        pipeline: PurchaseOrderPipeline | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = repository
        self.pipeline = pipeline or PurchaseOrderPipeline(settings=self.settings)

    def check_upload(self, upload: UploadedDocument) -> None:
        if "pdf" not in (upload.content_type or "").lower():
            raise BadRequest("Only PDF uploads are supported.")
        if upload.size > self.settings.max_upload_bytes:
            raise BadRequest("PDF exceeds the 20 MB size limit allowed by Mistral.")
        if upload.size <= 0:
            raise BadRequest("Uploaded PDF appears to be empty.")

    async def create_from_upload(self, upload: UploadedDocument) -> PurchaseOrderRecord:
        """Extract, validate and persist one uploaded purchase order."""

        self.check_upload(upload)
        extracted = await self.pipeline.run(upload.content)

        record = PurchaseOrderRecord.model_validate(
            {
                **extracted.order.to_document(),
                "createdAt": _utcnow(),
                "sourceFileName": upload.file_name,
                "rawText": (extracted.raw_text or "").strip(),
            }
        )
        document = record.model_dump(by_alias=True, exclude_none=True, exclude={"id"})
        record.id = await self.repository.insert(document)
        logger.info(
            "Stored purchase order %s from %s (fallback=%s)",
            record.id,
            upload.file_name,
            extracted.used_fallback,
        )
        return record

    async def list_recent(self) -> List[PurchaseOrderRecord]:
        documents = await self.repository.list_recent(self.settings.list_limit)
        return [PurchaseOrderRecord.model_validate(document) for document in documents]

    async def update(self, order_id: Any, payload: Any) -> PurchaseOrderRecord:
        """Re-validate an edited purchase order and merge it into storage.

        Null entries are dropped at every depth, server-owned fields are set
        aside before validation, and ``updatedAt`` is always refreshed. Stored
        fields missing from the payload are left untouched.
        """

        if not isinstance(order_id, str) or not order_id.strip():
            raise BadRequest("Purchase order id is invalid.")
        if not isinstance(payload, dict) or not payload:
            raise BadRequest("Request body must be a JSON object.")

        order_fields: Dict[str, Any] = drop_nulls(payload)
        server_fields = {name: order_fields.pop(name, None) for name in SERVER_OWNED_FIELDS}

        try:
            order = validate_purchase_order(order_fields)
        except InvalidPurchaseOrder as exc:
            raise BadRequest(str(exc)) from exc

        merged: Dict[str, Any] = {**order.to_document(), "updatedAt": _utcnow()}
        raw_text = server_fields["rawText"]
        if isinstance(raw_text, str):
            merged["rawText"] = raw_text.strip()
        source_file_name = server_fields["sourceFileName"]
        if isinstance(source_file_name, str) and source_file_name.strip():
            merged["sourceFileName"] = source_file_name.strip()

        document = await self.repository.find_and_update(order_id, drop_nulls(merged))
        if document is None:
            raise NotFound(f"Purchase order {order_id} was not found.")

        logger.info("Updated purchase order %s", document["_id"])
        return PurchaseOrderRecord.model_validate(document)
