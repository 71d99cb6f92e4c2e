"""Chat-completion fallback that structures raw OCR text into a purchase order."""

from __future__ import annotations

import logging
from typing import Any, List

import httpx

from po_scanner.core.config import Settings, get_settings
from po_scanner.core.errors import UpstreamError
from po_scanner.schemas.purchase_order import PURCHASE_ORDER_JSON_SCHEMA
from po_scanner.services.ocr_client import MISSING_KEY_MESSAGE
from po_scanner.utils.json_payloads import loads_lenient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a meticulous procurement analyst.\n\n"
    "Return a JSON object that follows the provided schema exactly and captures\n"
    "purchase order data from the supplied document text. Do not invent totals; use the\n"
    "best numeric values you find and set missing numbers to null."
)


class MistralCompletionClient:
    """Async client for the chat completions endpoint with JSON-schema output."""

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
        return f"{self.settings.mistral_api_url.rstrip('/')}/chat/completions"

    async def structure_purchase_order(self, raw_text: str) -> Any:
        """Ask the model for schema-shaped JSON describing ``raw_text``.

        The result is parsed but not validated; callers run it through the
        purchase-order validator.
        """

        if not self.settings.mistral_api_key:
            raise UpstreamError(MISSING_KEY_MESSAGE)

        body = {
            "model": self.settings.mistral_responses_model,
            "messages": self._build_messages(raw_text),
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "PurchaseOrder", "schema": PURCHASE_ORDER_JSON_SCHEMA},
            },
            "temperature": 0.1,
        }

        try:
            response = await self._client.post(
                self.endpoint,
                json=body,
                headers={"Authorization": f"Bearer {self.settings.mistral_api_key}"},
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Mistral chat completions request failed: {exc}") from exc

        if response.is_error:
            raise UpstreamError(
                f"Mistral chat completions failed with status {response.status_code}: {response.text}"
            )

        try:
            completion = response.json()
        except ValueError as exc:
            raise UpstreamError("Mistral chat completions returned a non-JSON response.") from exc

        content = self._message_content(completion)
        if not content:
            raise UpstreamError("Mistral chat completions did not return content.")

        parsed = loads_lenient(content)
        if not isinstance(parsed, dict):
            raise UpstreamError("Mistral chat completions returned content that is not a JSON object.")
        return parsed

    def _build_messages(self, raw_text: str) -> List[dict]:
        snippet = raw_text[: self.settings.fallback_text_limit]
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"Document OCR text:\n\n{snippet}"},
        ]

    @staticmethod
    def _message_content(completion: Any) -> str | None:
        try:
            content = completion["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None
        return content if isinstance(content, str) else None
