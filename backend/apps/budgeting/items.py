"""
In-memory line item collections and the attribute rules applied to
client-submitted item bags.

A bag is the attribute mapping posted for one line item, e.g.
``{"units": "1.234,5", "cost_type_id": "3", "comments": "", "amount": ""}``.
Quantities arrive as locale-formatted strings; anything that does not parse
becomes zero and the bag is rejected by the positivity checks below.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Mapping, Optional

from shared.numbers import parse_amount, parse_number

MATERIAL = "material"
LABOR = "labor"
ITEM_TYPES = (MATERIAL, LABOR)

QUANTITY_FIELDS = {
    MATERIAL: "units",
    LABOR: "hours",
}

QUANTITY_PLACES = Decimal("0.0001")

LEADING_INT = re.compile(r"\s*([+-]?\d+)")

PERMITTED_ATTRIBUTES = {
    MATERIAL: ("units", "cost_type_id", "comments", "amount"),
    LABOR: ("hours", "user_id", "comments", "amount"),
}


def check_item_type(item_type: str) -> str:
    if item_type not in ITEM_TYPES:
        raise ValueError(f"Unknown budget item type {item_type!r}; expected one of {ITEM_TYPES}")
    return item_type


def to_int(value: Any) -> int:
    """Leading integer of ``value`` ("7.0" and "7abc" give 7), else 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    match = LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def round_quantity(value: Optional[Decimal]) -> Optional[Decimal]:
    """Round to the four fractional digits item columns store."""
    if value is None:
        return None
    try:
        return value.quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Too many digits to quantize; no item column could hold it
        return value


def normalize_attributes(item_type: str, attributes: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of ``attributes`` with the quantity parsed and rounded to 4 places."""
    if attributes is None:
        return None
    normalized = dict(attributes)
    quantity_field = QUANTITY_FIELDS[item_type]
    normalized[quantity_field] = round_quantity(parse_number(normalized.get(quantity_field)))
    return normalized


def valid_material_attributes(attributes: Optional[Mapping[str, Any]]) -> bool:
    return bool(attributes) and attributes["units"] > 0


def valid_labor_attributes(attributes: Optional[Mapping[str, Any]], assignee_ids) -> bool:
    if not attributes:
        return False
    user_id = to_int(attributes.get("user_id"))
    return attributes["hours"] > 0 and user_id > 0 and user_id in assignee_ids


def valid_attributes(item_type: str, attributes, assignee_ids=frozenset()) -> bool:
    if item_type == MATERIAL:
        return valid_material_attributes(attributes)
    return valid_labor_attributes(attributes, assignee_ids)


def permitted_attributes(item_type: str, attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Model field values taken from a normalized bag.

    Unknown keys are dropped. ``amount`` is always present so a bag without
    one clears a previous manual override.
    """
    values: Dict[str, Any] = {}
    for name in PERMITTED_ATTRIBUTES[item_type]:
        if name == "amount" or name not in attributes:
            continue
        values[name] = attributes[name]
    if "cost_type_id" in values:
        values["cost_type_id"] = to_int(values["cost_type_id"]) or None
    if "user_id" in values:
        values["user_id"] = to_int(values["user_id"]) or None
    if "comments" in values:
        values["comments"] = "" if values["comments"] is None else str(values["comments"])
    values["amount"] = round_quantity(parse_amount(attributes.get("amount")))
    return values


@dataclass
class ItemSaveResult:
    item: Any
    saved: bool
    error: Optional[Exception] = None


@dataclass
class ReconcileResult:
    updated: List[Any] = field(default_factory=list)
    removed_ids: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.updated or self.removed_ids)


class BudgetItemCollection:
    """
    Ordered, in-memory view over one of a budget's item relations.

    Persisted items are loaded on first access and held for the lifetime of
    the collection. ``build`` appends unsaved items; ``remove`` drops an item
    and deletes it from storage right away when it was persisted.
    """

    def __init__(self, budget, item_type: str, model):
        self.budget = budget
        self.item_type = check_item_type(item_type)
        self.model = model
        self._items: Optional[List[Any]] = None

    @property
    def is_loaded(self) -> bool:
        return self._items is not None

    def _load(self) -> List[Any]:
        if self._items is None:
            if self.budget.pk is None:
                self._items = []
            else:
                self._items = list(
                    self.model.objects.filter(budget_id=self.budget.pk)
                    .select_related(*self.model.PRELOAD)
                    .order_by("id")
                )
                for item in self._items:
                    item.budget = self.budget
        return self._items

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._load()))

    def __len__(self) -> int:
        return len(self._load())

    def __getitem__(self, index):
        return self._load()[index]

    def build(self, **attributes):
        item = self.model(budget=self.budget, **attributes)
        self._load().append(item)
        return item

    def add(self, item):
        item.budget = self.budget
        self._load().append(item)
        return item

    def remove(self, item) -> None:
        items = self._load()
        self._items = [candidate for candidate in items if candidate is not item]
        if item.pk is not None:
            item.delete()

    def find(self, pk):
        pk = to_int(pk)
        for item in self._load():
            if item.pk is not None and item.pk == pk:
                return item
        return None

    def persisted(self) -> List[Any]:
        return [item for item in self._load() if item.pk is not None]

    def pending(self) -> List[Any]:
        return [item for item in self._load() if item.pk is None]

    def reset(self) -> None:
        self._items = None
