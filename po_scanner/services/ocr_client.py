"""Client wrapper for Mistral Document AI OCR with inline annotations."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import httpx

from po_scanner.core.config import Settings, get_settings
from po_scanner.core.errors import UpstreamError
from po_scanner.schemas.purchase_order import PURCHASE_ORDER_JSON_SCHEMA
from po_scanner.utils.json_payloads import loads_lenient

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Mistral API key is not configured. Set MISTRAL_API_KEY in your environment."


@dataclass
class DocumentExtraction:
    """Annotation candidate and page text returned for one document."""

    annotation: Any
    raw_text: str
    usage: Optional[Dict[str, Any]] = None


class MistralDocumentClient:
    """Async client that asks the OCR endpoint for a schema-guided annotation."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self.settings.request_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def endpoint(self) -> str:
        base_url = self.settings.mistral_api_url.rstrip("/")
        if base_url.endswith("/ocr"):
            return base_url
        return f"{base_url}/ocr"

    async def extract_purchase_order(self, pdf_bytes: bytes) -> DocumentExtraction:
        """Run OCR over the PDF and return the parsed annotation plus raw text."""

        if not self.settings.mistral_api_key:
            raise UpstreamError(MISSING_KEY_MESSAGE)

        logger.info("Requesting OCR annotation for %d-byte document", len(pdf_bytes))
        body = {
            "model": self.settings.mistral_ocr_model,
            "document": {
                "type": "document_url",
                "document_url": self._build_data_url(pdf_bytes),
            },
            "document_annotation_format": self._annotation_format(),
            "include_image_base64": False,
        }

        try:
            response = await self._client.post(
                self.endpoint,
                json=body,
                headers={"Authorization": f"Bearer {self.settings.mistral_api_key}"},
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Mistral OCR request failed: {exc}") from exc

        if response.is_error:
            raise UpstreamError(
                f"Mistral OCR request failed with status {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Mistral OCR returned a non-JSON response.") from exc

        annotation = self._parse_annotation(self._annotation_source(payload))
        if annotation is None:
            raise UpstreamError("Mistral OCR response did not contain a document annotation payload.")

        return DocumentExtraction(
            annotation=annotation,
            raw_text=self._extract_raw_text(payload.get("pages")),
            usage=payload.get("usage"),
        )

    @staticmethod
    def _annotation_format() -> dict:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": "PurchaseOrder",
                "description": "Purchase order schema guiding Mistral Document AI extraction.",
                "schema": PURCHASE_ORDER_JSON_SCHEMA,
            },
        }

    @staticmethod
    def _annotation_source(payload: dict) -> Any:
        annotation = payload.get("document_annotation")
        if annotation is None:
            annotations = payload.get("document_annotations") or []
            annotation = annotations[0] if annotations else None
        return annotation

    @classmethod
    def _parse_annotation(cls, annotation: Any) -> Any:
        if annotation is None:
            return None
        if isinstance(annotation, dict):
            # Some responses wrap the JSON in an envelope object.
            if annotation.get("annotation"):
                return cls._parse_annotation(annotation["annotation"])
            if annotation.get("content"):
                return cls._parse_annotation(annotation["content"])
        if isinstance(annotation, str):
            return loads_lenient(annotation)
        return annotation

    @staticmethod
    def _extract_raw_text(pages: Sequence[dict] | None) -> str:
        if not isinstance(pages, list):
            return ""
        texts = []
        for page in pages:
            if not isinstance(page, dict):
                continue
            text = (page.get("markdown") or "").strip() or (page.get("text") or "").strip()
            if text:
                texts.append(text)
        return "\n\n".join(texts)

    @staticmethod
    def _build_data_url(pdf_bytes: bytes) -> str:
        b64 = base64.b64encode(pdf_bytes).decode("utf-8")
        return f"data:application/pdf;base64,{b64}"
