"""Legacy field reconciliation for order records.

Orders have been written by several generations of clients.  Older ones
only carry a free-text ``orderDetails`` (or ``comentario``) string such as::

    Cliente: Ana Pérez | Total: 50.000 | Tipo: 1 | Comentario: entregar lunes

newer ones carry structured ``cartItems`` / ``items``.  Every list view,
detail view and total in both back-offices goes through
:func:`normalize_order_view`, so this module is pure (no I/O, no clock)
and deterministic.

A raw record is first classified into one of two tagged record types,
``StructuredOrderRecord`` (non-empty line items) or ``LegacyOrderRecord``
(everything else), and the view is built from that record only.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import (
    LEGACY_STATUS_ALIASES,
    PRICE_TIER_ALIASES,
    PRICE_TIER_FIELDS,
    OrderStatus,
)
from modules.orders.dtos import ClientInfo, NormalizedLineItem, NormalizedOrderView

# Historical spellings of each ``orderDetails`` key, matched case-insensitively.
DETAIL_KEY_ALIASES: Dict[str, tuple[str, ...]] = {
    "total": ("total",),
    "client": ("client", "cliente"),
    "type": ("type", "tipo"),
    "comment": ("comment", "comentario"),
    "brand": ("brand", "marca"),
    "color": ("color",),
}

_SEGMENT_KEY = re.compile(r"^\s*([^:|]+?)\s*:\s*(.*)$", re.DOTALL)
_NON_DIGITS = re.compile(r"[^\d]")
# "50.000", "1,250,000": grouped thousands with no decimal part.
_GROUPED_AMOUNT = re.compile(r"^-?\d{1,3}([.,]\d{3})+$")
_THOUSANDS_SEPARATORS = re.compile(r"[.,]")

_ALIAS_TO_FIELD = {
    alias: field_name
    for field_name, aliases in DETAIL_KEY_ALIASES.items()
    for alias in aliases
}


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def normalize_price_tier(value: Optional[str]) -> Optional[str]:
    """``"1"``/``"Precio 1"`` → ``"Precio 1"``, ``"2"``/``"Precio 2"`` →
    ``"Precio 2"``; anything else passes through verbatim."""
    if value is None:
        return None
    stripped = str(value).strip()
    if not stripped:
        return None
    return str(PRICE_TIER_ALIASES.get(stripped, stripped))


def normalize_status(value: Any) -> str:
    """Map a stored status onto ``OrderStatus``; missing or unknown → ``new``."""
    if not isinstance(value, str) or not value.strip():
        return OrderStatus.NEW.value
    lowered = value.strip().lower()
    lowered = LEGACY_STATUS_ALIASES.get(lowered, lowered)
    if lowered in OrderStatus.values:
        return str(lowered)
    return OrderStatus.NEW.value


def to_decimal(value: Any) -> Optional[Decimal]:
    """Best-effort money coercion.

    Strings are parsed as decimals; separators are dropped only from grouped
    thousands such as ``"50.000"``.  Unparseable text is ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip().lstrip("$").strip()
        if _GROUPED_AMOUNT.match(text):
            text = _THOUSANDS_SEPARATORS.sub("", text)
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _to_quantity(value: Any) -> int:
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity > 0 else 1


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


# ---------------------------------------------------------------------------
# orderDetails parsing
# ---------------------------------------------------------------------------


def parse_order_details(text: Optional[str]) -> Dict[str, str]:
    """Split a legacy ``key: value | key: value`` string into known fields.

    Keys are matched case-insensitively against every historical spelling.
    The comment runs to the end of the string, so a ``|`` typed inside a
    comment is kept.  The first occurrence of a key wins.  ``total`` keeps
    its raw text; see :func:`parse_details_total`.
    """
    result: Dict[str, str] = {}
    if not text:
        return result

    segments = text.split("|")
    for index, segment in enumerate(segments):
        match = _SEGMENT_KEY.match(segment)
        if not match:
            continue
        field_name = _ALIAS_TO_FIELD.get(match.group(1).strip().lower())
        if field_name is None or field_name in result:
            continue
        if field_name == "comment":
            value = "|".join([match.group(2), *segments[index + 1 :]])
        else:
            value = match.group(2)
        value = value.strip()
        if field_name == "type":
            value = normalize_price_tier(value) or ""
        if value:
            result[field_name] = value
    return result


def parse_details_total(raw_total: Optional[str]) -> Optional[Decimal]:
    """``"50.000"`` / ``"50,000"`` → ``Decimal(50000)``."""
    if not raw_total:
        return None
    digits = _NON_DIGITS.sub("", raw_total)
    if not digits:
        return None
    return Decimal(int(digits))


# ---------------------------------------------------------------------------
# Tagged record types
# ---------------------------------------------------------------------------


class _OrderRecordBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = ""
    status: Optional[str] = None
    client: Dict[str, Any] = Field(default_factory=dict)
    details_text: str = Field(
        default="", validation_alias=AliasChoices("orderDetails", "comentario")
    )
    stored_total: Optional[Decimal] = Field(
        default=None, validation_alias=AliasChoices("totalAmount", "stored_total")
    )
    price_tier: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("priceTier", "priceType", "price_tier")
    )
    comment: Optional[str] = None
    brand: Optional[str] = None
    color: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("color", "selectedColor")
    )
    labels: List[str] = Field(default_factory=list)
    archived: bool = False
    is_starred: bool = Field(
        default=False, validation_alias=AliasChoices("isStarred", "is_starred")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("status", "comment", "brand", "color", "price_tier", mode="before")
    @classmethod
    def _coerce_optional_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("client", mode="before")
    @classmethod
    def _coerce_client(cls, v: Any) -> Dict[str, Any]:
        return dict(v) if isinstance(v, Mapping) else {}

    @field_validator("details_text", mode="before")
    @classmethod
    def _coerce_details(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("stored_total", mode="before")
    @classmethod
    def _coerce_total(cls, v: Any) -> Optional[Decimal]:
        return to_decimal(v)

    @field_validator("labels", mode="before")
    @classmethod
    def _coerce_labels(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            return [v] if v.strip() else []
        if isinstance(v, (list, tuple)):
            return [str(label) for label in v if str(label).strip()]
        return []

    @field_validator("archived", "is_starred", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> bool:
        return v is True


class StructuredOrderRecord(_OrderRecordBase):
    """An order carrying explicit line items."""

    kind: Literal["structured"] = "structured"
    items: List[Dict[str, Any]] = Field(
        default_factory=list, validation_alias=AliasChoices("cartItems", "items")
    )


class LegacyOrderRecord(_OrderRecordBase):
    """An order whose contents survive only as text and a cached total."""

    kind: Literal["legacy"] = "legacy"


OrderRecord = Union[StructuredOrderRecord, LegacyOrderRecord]


def parse_order_record(raw: Mapping[str, Any], document_id: Optional[str] = None) -> OrderRecord:
    """Classify a raw stored document into its tagged record type."""
    data = dict(raw)
    if document_id is not None and not data.get("id"):
        data["id"] = document_id
    items = data.get("cartItems") or data.get("items")
    if isinstance(items, list) and items:
        data["cartItems"] = [item for item in items if isinstance(item, Mapping)]
        data.pop("items", None)
        if data["cartItems"]:
            return StructuredOrderRecord.model_validate(data)
    data.pop("cartItems", None)
    data.pop("items", None)
    return LegacyOrderRecord.model_validate(data)


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


def _tier_field(item: Mapping[str, Any], order_tier: Optional[str]) -> Optional[str]:
    selected = item.get("selectedPrice")
    if isinstance(selected, str) and selected in PRICE_TIER_FIELDS.values():
        return selected
    if order_tier is None:
        return None
    return PRICE_TIER_FIELDS.get(order_tier)


def resolve_unit_price(item: Mapping[str, Any], order_tier: Optional[str]) -> Decimal:
    """Tier-specific price first, then the generic ``price``, then ``unitPrice``."""
    product = item.get("product") if isinstance(item.get("product"), Mapping) else {}
    candidates: List[str] = []
    tier_field = _tier_field(item, order_tier)
    if tier_field:
        candidates.append(tier_field)
    candidates.extend(["price", "unitPrice"])

    for field_name in candidates:
        for source in (product, item):
            price = to_decimal(source.get(field_name))
            if price is not None:
                return price
    return Decimal("0")


def normalize_line_item(item: Mapping[str, Any], order_tier: Optional[str]) -> NormalizedLineItem:
    product = item.get("product") if isinstance(item.get("product"), Mapping) else {}
    return NormalizedLineItem(
        product_id=str(product.get("id") or item.get("productId") or ""),
        name=_text(product.get("name")) or _text(item.get("name")) or _text(item.get("productName")),
        brand=_text(product.get("brand")) or _text(item.get("brand")),
        quantity=_to_quantity(item.get("quantity")),
        unit_price=resolve_unit_price(item, order_tier),
        selected_color=_text(item.get("selectedColor")) or _text(item.get("color")),
    )


# ---------------------------------------------------------------------------
# The view
# ---------------------------------------------------------------------------


def _client_info(record: OrderRecord, details: Mapping[str, str]) -> ClientInfo:
    fields = {
        name: _text(record.client.get(name))
        for name in ClientInfo.model_fields
    }
    if not fields["name"] and details.get("client"):
        fields["name"] = details["client"]
    return ClientInfo(**fields)


def normalize_order_view(
    raw: Union[Mapping[str, Any], StructuredOrderRecord, LegacyOrderRecord],
    document_id: Optional[str] = None,
) -> NormalizedOrderView:
    """Build the reconciled view of an order.

    Total resolution: line items → ``orderDetails`` total → stored
    ``totalAmount`` → 0.  Explicit structured fields (tier, comment, brand,
    color, client name) always win over values parsed from text.
    """
    if isinstance(raw, (StructuredOrderRecord, LegacyOrderRecord)):
        record = raw
    else:
        record = parse_order_record(raw, document_id)

    details = parse_order_details(record.details_text)
    price_tier = normalize_price_tier(record.price_tier) or details.get("type")

    items: List[NormalizedLineItem] = []
    if isinstance(record, StructuredOrderRecord):
        items = [normalize_line_item(item, price_tier) for item in record.items]
        total = sum((item.subtotal for item in items), Decimal("0"))
        total_source = "items"
    else:
        details_total = parse_details_total(details.get("total"))
        if details_total is not None:
            total, total_source = details_total, "details"
        else:
            total, total_source = record.stored_total or Decimal("0"), "stored"

    return NormalizedOrderView(
        id=record.id,
        record_kind=record.kind,
        status=normalize_status(record.status),
        client=_client_info(record, details),
        items=items,
        total=total,
        total_source=total_source,
        price_tier=price_tier,
        comment=record.comment or details.get("comment"),
        brand=record.brand or details.get("brand"),
        color=record.color or details.get("color"),
        labels=list(record.labels),
        archived=record.archived,
        is_starred=record.is_starred,
    )
