"""Streamlit UI for uploading, reviewing and correcting scanned purchase orders."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx
import streamlit as st

DEFAULT_API_BASE = "http://localhost:4000"


def _format_money(value: Any, currency: str | None) -> str:
    if not isinstance(value, (int, float)):
        return "—"
    return f"{value:,.2f} {currency or ''}".strip()


def _api_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text


def _upload(api_base: str, file_name: str, payload: bytes, mime_type: str) -> Dict[str, Any]:
    """Send the PDF to the upload endpoint and return the stored record."""

    files = {"file": (file_name, payload, mime_type)}
    with httpx.Client(base_url=api_base, timeout=180) as client:
        response = client.post("/api/purchase-orders/upload", files=files)
        response.raise_for_status()
        return response.json()


def _fetch_orders(api_base: str) -> List[Dict[str, Any]]:
    with httpx.Client(base_url=api_base, timeout=30) as client:
        response = client.get("/api/purchase-orders")
        response.raise_for_status()
        return response.json()


def _save(api_base: str, order_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    with httpx.Client(base_url=api_base, timeout=30) as client:
        response = client.patch(f"/api/purchase-orders/{order_id}", json=payload)
        response.raise_for_status()
        return response.json()


def _render_order(api_base: str, order: Dict[str, Any]) -> None:
    order_id = order.get("_id", "")
    vendor = (order.get("vendor") or {}).get("name", "Unknown vendor")
    number = order.get("purchaseOrderNumber") or "No PO number"
    total = _format_money(order.get("total"), order.get("currency"))

    with st.expander(f"{number} · {vendor} · {total}"):
        purchaser = (order.get("purchaser") or {}).get("name", "—")
        st.caption(
            f"Purchaser: {purchaser} · File: {order.get('sourceFileName', '—')} · "
            f"Created: {order.get('createdAt', '—')}"
        )
        st.table(
            [
                {
                    "Item": item.get("name"),
                    "SKU": item.get("sku", ""),
                    "Qty": item.get("quantity"),
                    "Unit price": item.get("unitPrice"),
                    "Line total": item.get("totalPrice", ""),
                }
                for item in order.get("items", [])
            ]
        )
        if order.get("rawText"):
            st.text_area("OCR text", order["rawText"], height=200, key=f"raw-{order_id}", disabled=True)

        draft = st.text_area(
            "Edit as JSON",
            json.dumps(order, indent=2, ensure_ascii=False),
            height=320,
            key=f"draft-{order_id}",
        )
        if st.button("Save changes", key=f"save-{order_id}"):
            try:
                payload = json.loads(draft)
            except json.JSONDecodeError as exc:
                st.error(f"Draft is not valid JSON: {exc}")
                return
            try:
                _save(api_base, order_id, payload)
            except httpx.HTTPStatusError as exc:
                st.error(f"Update failed: {_api_message(exc.response)}")
            except httpx.HTTPError as exc:
                st.error(f"Network error: {exc}")
            else:
                st.success("Purchase order updated")
                st.rerun()


def main() -> None:
    st.set_page_config(page_title="Purchase Order Scanner", layout="wide")
    st.title("Purchase Order Scanner")

    api_base = st.sidebar.text_input("API base URL", DEFAULT_API_BASE)

    uploaded_file = st.file_uploader("Upload a scanned purchase order (PDF)", type=["pdf"])
    if uploaded_file and st.button("Extract purchase order"):
        with st.spinner("Extracting with Mistral Document AI ..."):
            try:
                record = _upload(
                    api_base,
                    uploaded_file.name or "upload.pdf",
                    uploaded_file.getvalue(),
                    uploaded_file.type or "application/pdf",
                )
            except httpx.HTTPStatusError as exc:
                st.error(f"Upload failed: {_api_message(exc.response)}")
            except httpx.HTTPError as exc:
                st.error(f"Network error: {exc}")
            else:
                st.success(f"Stored purchase order {record.get('_id')}")

    st.subheader("Recent purchase orders")
    try:
        orders = _fetch_orders(api_base)
    except httpx.HTTPError as exc:
        st.error(f"Could not load purchase orders: {exc}")
        return

    if not orders:
        st.info("No purchase orders yet. Upload a PDF to begin.")
        return

    for order in orders:
        _render_order(api_base, order)


if __name__ == "__main__":
    main()
