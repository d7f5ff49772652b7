# Overview: Validation and amount computation for document line items.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..money import ZERO, parse_number, round2
from ..validation import ValidationError


HUNDRED = Decimal("100")


@dataclass(frozen=True)
class NormalizedItem:
    """Invoice/receipt line after validation. amount is always derived."""
    product_code: str
    description: str
    quantity: Decimal
    price: Decimal
    discount: Decimal
    amount: Decimal


@dataclass(frozen=True)
class NormalizedProduct:
    """Credit note/refund line: no discount, no derived amount."""
    product_code: str
    description: str | None
    quantity: Decimal
    price: Decimal


def line_amount(quantity: Decimal, price: Decimal, discount: Decimal) -> Decimal:
    """amount = round2(quantity x price x (1 - discount/100))"""
    return round2(quantity * price * (1 - discount / HUNDRED))


def back_computed_price(amount: Decimal, quantity: Decimal, discount: Decimal) -> Decimal:
    """
    Recover a unit price from a stored post-discount line amount.

    Edit lines keep only the discounted amount; receipts need the unit price.
    A 100% discount (or zero quantity) leaves no price to recover, so 0.
    """
    factor = quantity * (1 - discount / HUNDRED)
    if factor == 0:
        return ZERO
    return round2(amount / factor)


def _item_error(index: int, field: str, message: str, collection: str) -> ValidationError:
    return ValidationError(
        f"Item {index + 1}: {field} {message}",
        field=f"{collection}[{index}].{field}",
    )


def _common_fields(raw: Any, index: int, collection: str):
    if not isinstance(raw, dict):
        raise ValidationError(
            f"Item {index + 1} must be an object",
            field=f"{collection}[{index}]",
        )

    product_code = raw.get("productCode")
    if not isinstance(product_code, str) or not product_code.strip():
        raise _item_error(index, "productCode", "is required", collection)

    description = raw.get("description")
    if description is not None and not isinstance(description, str):
        raise _item_error(index, "description", "must be a string", collection)

    quantity = parse_number(raw.get("quantity"))
    # Stored at two places, so a quantity that rounds to zero is no quantity
    if quantity is None or round2(quantity) <= 0:
        raise _item_error(index, "quantity", "must be > 0", collection)

    price = parse_number(raw.get("price", 0))
    if price is None or price < 0:
        raise _item_error(index, "price", "must be >= 0", collection)

    return product_code.strip(), (description or "").strip(), quantity, price


def normalize_item(raw: Any, index: int, *, collection: str = "items") -> NormalizedItem:
    """
    Validate a raw {productCode, description?, quantity, price, discount}
    line and compute its amount.

    Raises ValidationError naming the item (1-based in the message, 0-based
    in the field path) and the offending field.
    """
    product_code, description, quantity, price = _common_fields(raw, index, collection)

    discount = parse_number(raw.get("discount", 0))
    if discount is None or discount < 0 or discount > HUNDRED:
        raise _item_error(index, "discount", "must be between 0 and 100", collection)

    return NormalizedItem(
        product_code=product_code,
        description=description,
        quantity=round2(quantity),
        price=round2(price),
        discount=round2(discount),
        amount=line_amount(quantity, price, discount),
    )


def normalize_items(raw_items: Any, *, collection: str = "items") -> list[NormalizedItem]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required", field=collection)
    return [normalize_item(raw, idx, collection=collection) for idx, raw in enumerate(raw_items)]


def normalize_product(raw: Any, index: int, *, collection: str = "products") -> NormalizedProduct:
    product_code, description, quantity, price = _common_fields(raw, index, collection)
    return NormalizedProduct(
        product_code=product_code,
        description=description or None,
        quantity=round2(quantity),
        price=round2(price),
    )


def normalize_products(raw_products: Any, *, collection: str = "products") -> list[NormalizedProduct]:
    if not isinstance(raw_products, list) or not raw_products:
        raise ValidationError("At least one product is required", field=collection)
    return [normalize_product(raw, idx, collection=collection) for idx, raw in enumerate(raw_products)]
