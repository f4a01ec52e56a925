"""Domain service: building the confirmed-items snapshot.

A snapshot comes from one of two sources, resolved once at confirmation
time into a list of ``SnapshotItem``:

- ``ExplicitItemsSource``: items the customer typed in; validated strictly.
- ``ReceiptLinesSource``: line items extracted from the receipt; parsed
  leniently, because OCR output varies in shape.

Disputes are only ever checked against the stored snapshot, never
against a re-derived one.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from settlement.domain.exceptions import InvalidDisputedItems, ValidationError
from settlement.domain.model.order_confirmation import (
    DisputedItem,
    DisputeReason,
    SnapshotItem,
)
from settlement.domain.model.value_objects import Money, Quantity

MAX_NOTES_LENGTH = 500
MAX_DETAILS_LENGTH = 1000

_NAME_FIELDS = ("name", "itemName", "description", "title", "item", "productName")
_QUANTITY_FIELDS = ("qty", "quantity", "count")
_PRICE_FIELDS = ("unitPrice", "price", "amount")
_NOTES_FIELDS = ("notes", "note", "details")


def normalize_key(value: str) -> str:
    return " ".join(value.strip().lower().split())


def default_item_key(name: str, index: int) -> str:
    base = re.sub(r"[^a-z0-9 ]", "", normalize_key(name))
    base = re.sub(r"\s+", "-", base.strip())
    return f"{base or 'item'}-{index + 1}"


# ---------------------------------------------------------------------------
# Snapshot sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SnapshotItemSpec:
    """Input: one item as the customer lists it."""

    name: str
    quantity: int
    unit_price: str | None = None
    item_key: str | None = None
    notes: str | None = None


class SnapshotSource(ABC):

    @abstractmethod
    def items(self) -> list[SnapshotItem]:
        """Resolve the source into snapshot items (possibly empty)."""


class ExplicitItemsSource(SnapshotSource):

    def __init__(self, specs: Iterable[SnapshotItemSpec]) -> None:
        self._specs = list(specs)

    def items(self) -> list[SnapshotItem]:
        snapshot: list[SnapshotItem] = []
        seen: set[str] = set()
        for index, spec in enumerate(self._specs):
            name = (spec.name or "").strip()
            if not name:
                raise ValidationError(f"itemsSnapshot[{index}]: name is required")
            if spec.notes is not None and len(spec.notes) > MAX_NOTES_LENGTH:
                raise ValidationError(
                    f"itemsSnapshot[{index}]: notes exceed {MAX_NOTES_LENGTH} characters"
                )
            key = (spec.item_key or "").strip() or default_item_key(name, index)
            if normalize_key(key) in seen:
                raise ValidationError(f"itemsSnapshot[{index}]: duplicate item key '{key}'")
            seen.add(normalize_key(key))
            snapshot.append(
                SnapshotItem(
                    item_key=key,
                    name=name,
                    quantity=Quantity(spec.quantity),
                    unit_price=(
                        Money.of(spec.unit_price).quantized()
                        if spec.unit_price is not None
                        else None
                    ),
                    notes=(spec.notes or "").strip() or None,
                )
            )
        return snapshot


class ReceiptLinesSource(SnapshotSource):
    """Receipt lines as stored on the delivery request.

    Lines without a usable name are skipped; an unusable quantity falls
    back to 1 and an unusable price to "unpriced".
    """

    def __init__(self, lines: Iterable[Any]) -> None:
        self._lines = list(lines or [])

    def items(self) -> list[SnapshotItem]:
        snapshot: list[SnapshotItem] = []
        seen: set[str] = set()
        for index, line in enumerate(self._lines):
            if not isinstance(line, Mapping):
                continue
            name = _pick_text(line, _NAME_FIELDS)
            if not name:
                continue

            raw_key = line.get("itemKey", line.get("id"))
            key = raw_key.strip() if isinstance(raw_key, str) else ""
            if not key or normalize_key(key) in seen:
                key = default_item_key(name, index)
            seen.add(normalize_key(key))

            snapshot.append(
                SnapshotItem(
                    item_key=key,
                    name=name,
                    quantity=Quantity(_pick_quantity(line)),
                    unit_price=_pick_price(line),
                    notes=_pick_text(line, _NOTES_FIELDS) or None,
                )
            )
        return snapshot


def _first_present(line: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    for name in fields:
        if line.get(name) is not None:
            return line[name]
    return None


def _pick_text(line: Mapping[str, Any], fields: tuple[str, ...]) -> str:
    raw = _first_present(line, fields)
    return raw.strip() if isinstance(raw, str) else ""


def _to_decimal(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def _pick_quantity(line: Mapping[str, Any]) -> int:
    value = _to_decimal(_first_present(line, _QUANTITY_FIELDS))
    if value is None or value <= 0:
        return 1
    return max(1, int(value.to_integral_value()))


def _pick_price(line: Mapping[str, Any]) -> Money | None:
    value = _to_decimal(_first_present(line, _PRICE_FIELDS))
    if value is None or value < 0:
        return None
    return Money(value).quantized()


# ---------------------------------------------------------------------------
# Disputed items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisputedItemSpec:
    """Input: a snapshot item (by key or name), how many, and why."""

    item: str
    quantity: int
    reason: str
    details: str | None = None


def validate_disputed_items(
    snapshot: list[SnapshotItem],
    specs: list[DisputedItemSpec],
) -> list[DisputedItem]:
    """Match every disputed entry against the snapshot.

    Entries are matched by item key first, then by name (both compared
    case- and whitespace-insensitively).  Every offending entry is
    reported, not just the first.

    Raises:
        InvalidDisputedItems: with one detail line per offending entry.
    """
    if not specs:
        raise InvalidDisputedItems(
            "Invalid disputed items", ["at least one disputed item is required"]
        )

    by_key = {normalize_key(item.item_key): item for item in snapshot}
    by_name: dict[str, SnapshotItem] = {}
    for item in snapshot:
        by_name.setdefault(normalize_key(item.name), item)

    errors: list[str] = []
    normalized: list[DisputedItem] = []
    claimed: dict[str, int] = {}

    for index, spec in enumerate(specs):
        label = f"disputedItems[{index}] ({spec.item!r})"
        lookup = normalize_key(spec.item or "")
        match = by_key.get(lookup) or by_name.get(lookup)
        if match is None:
            errors.append(f"{label} does not match any confirmed item")
            continue
        if (
            not isinstance(spec.quantity, int)
            or isinstance(spec.quantity, bool)
            or spec.quantity <= 0
        ):
            errors.append(f"{label} disputed quantity must be a positive integer")
            continue
        # Several entries for one item share that item's confirmed quantity.
        already = claimed.get(match.item_key, 0)
        if already + spec.quantity > match.quantity.value:
            errors.append(
                f"{label} disputed quantity {already + spec.quantity} exceeds "
                f"confirmed quantity {match.quantity.value}"
            )
            continue
        claimed[match.item_key] = already + spec.quantity
        try:
            reason = DisputeReason(spec.reason)
        except ValueError:
            errors.append(f"{label} has unknown reason {spec.reason!r}")
            continue
        details = (spec.details or "").strip() or None
        if details is not None and len(details) > MAX_DETAILS_LENGTH:
            errors.append(f"{label} details exceed {MAX_DETAILS_LENGTH} characters")
            continue

        normalized.append(
            DisputedItem(
                item_key=match.item_key,
                name=match.name,
                quantity_disputed=Quantity(spec.quantity),
                reason=reason,
                details=details,
            )
        )

    if errors:
        raise InvalidDisputedItems("Invalid disputed items", errors)
    return normalized
