"""Receipt record model: immutable input to one render.

Built from a JSON-compatible dict using the camelCase keys of the wire shape
(``storeName``, ``receiptInfo.receiptNumber``, ...). Numeric fields are kept
as given; malformed numbers only fail when the layout formats them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple, Union

DEFAULT_CURRENCY = "EGP"
DEFAULT_BARCODE_FORMAT = "CODE128"

Number = Union[int, float]


@dataclass(frozen=True)
class StoreInfo:
    address: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class ReceiptInfo:
    date: str | None = None
    receipt_number: str | None = None
    cashier: str | None = None


@dataclass(frozen=True)
class ReceiptItem:
    qty: Number
    price: Number
    name: str | None = None
    name_arabic: str | None = None


@dataclass(frozen=True)
class Payment:
    method: str | None = None
    # None means "not supplied"; 0 is a real change amount.
    change: Number | None = None


@dataclass(frozen=True)
class Barcode:
    value: str
    format: str = DEFAULT_BARCODE_FORMAT


@dataclass(frozen=True)
class ReceiptData:
    items: Tuple[ReceiptItem, ...] = ()
    total: Number = 0
    store_name: str | None = None
    store_name_arabic: str | None = None
    store_info: StoreInfo = field(default_factory=StoreInfo)
    receipt_info: ReceiptInfo = field(default_factory=ReceiptInfo)
    subtotal: Number | None = None
    tax: Number | None = None
    tax_rate: Number | None = None
    currency: str = DEFAULT_CURRENCY
    payment: Payment = field(default_factory=Payment)
    thank_you_message: str | None = None
    thank_you_message_arabic: str | None = None
    barcode: Barcode | None = None
    website: str | None = None
    logo: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ReceiptData":
        """Build a ReceiptData from the JSON-compatible receipt shape."""

        store_info = raw.get("storeInfo") or {}
        receipt_info = raw.get("receiptInfo") or {}
        payment = raw.get("payment") or {}

        return cls(
            items=tuple(_item_from_dict(item) for item in raw.get("items") or ()),
            total=raw.get("total", 0),
            store_name=raw.get("storeName") or None,
            store_name_arabic=raw.get("storeNameArabic") or None,
            store_info=StoreInfo(
                address=store_info.get("address") or None,
                phone=store_info.get("phone") or None,
            ),
            receipt_info=ReceiptInfo(
                date=receipt_info.get("date") or None,
                receipt_number=receipt_info.get("receiptNumber") or None,
                cashier=receipt_info.get("cashier") or None,
            ),
            subtotal=raw.get("subtotal"),
            tax=raw.get("tax"),
            tax_rate=raw.get("taxRate"),
            currency=raw.get("currency") or DEFAULT_CURRENCY,
            payment=Payment(
                method=payment.get("method") or None,
                change=payment.get("change"),
            ),
            thank_you_message=raw.get("thankYouMessage") or None,
            thank_you_message_arabic=raw.get("thankYouMessageArabic") or None,
            barcode=_barcode_from_raw(raw.get("barcode")),
            website=raw.get("website") or None,
            logo=bool(raw.get("logo")),
        )


def _item_from_dict(raw: Mapping[str, Any]) -> ReceiptItem:
    return ReceiptItem(
        qty=raw.get("qty"),
        price=raw.get("price"),
        name=raw.get("name") or None,
        name_arabic=raw.get("nameArabic") or None,
    )


def _barcode_from_raw(raw: Any) -> Barcode | None:
    """Accept either a bare value string or a ``{value, format}`` mapping."""

    if not raw:
        return None
    if isinstance(raw, Mapping):
        value = raw.get("value")
        if not value:
            return None
        return Barcode(
            value=str(value),
            format=raw.get("format") or DEFAULT_BARCODE_FORMAT,
        )
    return Barcode(value=str(raw))
