"""High-level pipeline that converts PDFs to validated purchase orders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from po_scanner.core.config import Settings, get_settings
from po_scanner.core.errors import BadRequest, InvalidPurchaseOrder
from po_scanner.schemas.purchase_order import PurchaseOrderCore, validate_purchase_order
from po_scanner.services.completion_client import MistralCompletionClient
from po_scanner.services.ocr_client import DocumentExtraction, MistralDocumentClient

logger = logging.getLogger(__name__)


@dataclass
class Validated:
    """The OCR annotation passed validation as-is."""

    order: PurchaseOrderCore


@dataclass
class NeedsFallback:
    """The annotation was unusable; structure the raw text instead."""

    raw_text: str
    reason: str


AnnotationOutcome = Union[Validated, NeedsFallback]


@dataclass
class ExtractedOrder:
    order: PurchaseOrderCore
    raw_text: str
    used_fallback: bool = False


class PurchaseOrderPipeline:
    """Two-tier extraction: OCR annotation first, text completion as fallback."""

    def __init__(
        self,
        document_client: MistralDocumentClient | None = None,
        completion_client: MistralCompletionClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.document_client = document_client or MistralDocumentClient(settings=self.settings)
        self.completion_client = completion_client or MistralCompletionClient(settings=self.settings)

    async def aclose(self) -> None:
        await self.document_client.aclose()
        await self.completion_client.aclose()

    async def run(self, pdf_bytes: bytes) -> ExtractedOrder:
        extraction = await self.document_client.extract_purchase_order(pdf_bytes)
        outcome = self.check_annotation(extraction)

        if isinstance(outcome, Validated):
            return ExtractedOrder(order=outcome.order, raw_text=extraction.raw_text)

        logger.info("Falling back to text completion over %d characters", len(outcome.raw_text))
        candidate = await self.completion_client.structure_purchase_order(outcome.raw_text)
        try:
            order = validate_purchase_order(candidate)
        except InvalidPurchaseOrder as exc:
            raise BadRequest(f"Extracted purchase order failed validation: {exc}") from exc
        return ExtractedOrder(order=order, raw_text=extraction.raw_text, used_fallback=True)

    @staticmethod
    def check_annotation(extraction: DocumentExtraction) -> AnnotationOutcome:
        """Validate the OCR annotation, or say why the raw text must be used."""

        try:
            return Validated(validate_purchase_order(extraction.annotation))
        except InvalidPurchaseOrder as exc:
            logger.warning("Mistral annotation validation failed: %s", exc)
            return NeedsFallback(raw_text=extraction.raw_text or "", reason=str(exc))
