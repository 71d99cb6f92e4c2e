"""Pydantic schemas describing extracted purchase orders."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from po_scanner.core.errors import InvalidPurchaseOrder
from po_scanner.utils.numbers import coerce_number


def _required_text(message: str):
    def check(value: str) -> str:
        if not value:
            raise PydanticCustomError("required_text", message)
        return value

    return AfterValidator(check)


def _non_negative(message: str):
    def check(value: float) -> float:
        if value < 0:
            raise PydanticCustomError("non_negative", message)
        return value

    return AfterValidator(check)


NumberLike = Annotated[float, BeforeValidator(coerce_number)]


def _email_address(value: str) -> str:
    # Same checks as EmailStr; the value is returned as given.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise PydanticCustomError(
            "value_error",
            "value is not a valid email address: {reason}",
            {"reason": str(exc)},
        ) from exc
    return value


EmailAddress = Annotated[str, AfterValidator(_email_address)]


class _WireModel(BaseModel):
    """Strict camelCase model shared by every purchase-order shape."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel)


class Party(_WireModel):
    """Vendor or purchaser named on the purchase order."""

    name: Annotated[str, _required_text("Vendor or purchaser name is required.")]
    address: Annotated[str, _required_text("Address is required.")]
    contact: Optional[str] = None
    email: Optional[EmailAddress] = None
    phone: Optional[str] = None


class LineItem(_WireModel):
    """Single ordered line."""

    name: Annotated[str, _required_text("Item name is required.")]
    description: Optional[str] = None
    sku: Optional[str] = None
    quantity: Annotated[NumberLike, _non_negative("Quantity must be non-negative.")]
    unit_price: Annotated[NumberLike, _non_negative("Unit price must be non-negative.")]
    total_price: Optional[NumberLike] = None
    currency: Optional[str] = None


def _at_least_one_item(items: List[LineItem]) -> List[LineItem]:
    if not items:
        raise PydanticCustomError("items_empty", "At least one item is required.")
    return items


class PurchaseOrderCore(_WireModel):
    """Canonical purchase order extracted from a document or edited by a user."""

    purchase_order_number: Optional[str] = None
    issue_date: Optional[str] = None
    vendor: Party
    purchaser: Party
    items: Annotated[List[LineItem], AfterValidator(_at_least_one_item)]
    subtotal: Optional[NumberLike] = None
    tax: Optional[NumberLike] = None
    total: NumberLike
    currency: Optional[str] = None
    notes: Optional[str] = None

    def to_document(self) -> dict[str, Any]:
        """Wire-format dict with absent optional fields omitted."""

        return self.model_dump(by_alias=True, exclude_none=True)


class PurchaseOrderRecord(PurchaseOrderCore):
    """Persisted purchase order plus storage metadata."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
    created_at: datetime
    source_file_name: str
    raw_text: str = ""
    updated_at: Optional[datetime] = None


SERVER_OWNED_FIELDS = ("_id", "createdAt", "updatedAt", "rawText", "sourceFileName")


def validate_purchase_order(candidate: Any) -> PurchaseOrderCore:
    """Validate an untrusted value into a :class:`PurchaseOrderCore`.

    Raises :class:`InvalidPurchaseOrder` describing the first offending field.
    """

    if not isinstance(candidate, dict):
        raise InvalidPurchaseOrder("Purchase order must be a JSON object.")
    try:
        return PurchaseOrderCore.model_validate(candidate)
    except ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        field = ".".join(str(part) for part in first["loc"])
        raise InvalidPurchaseOrder(first["msg"], field=field) from exc


def _numeric_schema(description: str, allow_null: bool = False) -> dict[str, Any]:
    types = ["number", "string", "null"] if allow_null else ["number", "string"]
    return {"description": description, "type": types}


def _optional_string(description: str) -> dict[str, Any]:
    return {"type": ["string", "null"], "description": description}


def _party_schema(role: str) -> dict[str, Any]:
    return {
        "type": "object",
        "required": ["name", "address"],
        "additionalProperties": False,
        "properties": {
            "name": {"type": "string", "description": f"Name of the {role}."},
            "address": {"type": "string", "description": f"Mailing address for the {role}."},
            "contact": _optional_string(f"Point of contact for the {role} (person or department)."),
            "email": _optional_string(f"Email address supplied for the {role}."),
            "phone": _optional_string(f"Phone number listed for the {role}."),
        },
    }


# Descriptor sent to both providers. Numbers may come back as strings; the
# validator normalizes them.
PURCHASE_ORDER_JSON_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "PurchaseOrder",
    "type": "object",
    "description": "Normalized purchase order structure extracted from the PDF document.",
    "required": ["vendor", "purchaser", "items", "total"],
    "additionalProperties": False,
    "properties": {
        "purchaseOrderNumber": _optional_string("Identifier assigned to the purchase order."),
        "issueDate": _optional_string("Original date the purchase order was issued."),
        "vendor": _party_schema("vendor"),
        "purchaser": _party_schema("purchaser"),
        "currency": _optional_string(
            "Currency code (ISO 4217 when available) that totals are denominated in."
        ),
        "notes": _optional_string("Additional instructions or free-form notes."),
        "items": {
            "type": "array",
            "description": "Line items contained within the purchase order.",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name", "quantity", "unitPrice"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "description": "Item name or SKU description."},
                    "description": _optional_string("Detailed description of the item."),
                    "sku": _optional_string("SKU or part number if present."),
                    "quantity": _numeric_schema("Number of units ordered for the line item."),
                    "unitPrice": _numeric_schema("Price per unit of the item."),
                    "totalPrice": _numeric_schema(
                        "Extended line total (quantity x unit price).", allow_null=True
                    ),
                    "currency": _optional_string("Currency applicable to the line item."),
                },
            },
        },
        "subtotal": _numeric_schema("Sum of line items before tax or adjustments.", allow_null=True),
        "tax": _numeric_schema("Total taxes applied to the purchase order.", allow_null=True),
        "total": _numeric_schema("Grand total expected to be paid."),
    },
}
