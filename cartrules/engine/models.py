# cartrules/engine/models.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

RULE_ACTIVE = "active"
RULE_INACTIVE = "inactive"


class Decision(str, Enum):
    FIRE = "fire"
    REVERSE = "reverse"
    SKIP = "skip"


class Rule(BaseModel):
    """
    Merchant rule as served by GET /api/cart-rules (camelCase keys).

    productIds may arrive as a list or as the JSON-encoded string the backend
    stores; both become a tuple of string ids.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str = ""
    min_cart_value: Decimal = Decimal("0")
    has_upper_limit: bool = False
    max_cart_value: Optional[Decimal] = None
    product_ids: Tuple[str, ...] = ()
    works_in_reverse: bool = False
    allow_multiple_triggers: bool = False
    execute_once_per_session: bool = False
    prevent_quantity_changes: bool = False
    status: str = RULE_ACTIVE

    @model_validator(mode="before")
    @classmethod
    def _legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "preventQuantityChange" in data and "preventQuantityChanges" not in data:
            data["preventQuantityChanges"] = data.pop("preventQuantityChange")
        if "isActive" in data and "status" not in data:
            data["status"] = RULE_ACTIVE if data.pop("isActive") else RULE_INACTIVE
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        if v is None or v == "":
            raise ValueError("rule id is required")
        return str(v)

    @field_validator("product_ids", mode="before")
    @classmethod
    def _parse_product_ids(cls, v: Any) -> Tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            v = json.loads(v or "[]")
        if not isinstance(v, (list, tuple)):
            raise ValueError("productIds must be a list")
        return tuple(str(pid) for pid in v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> str:
        s = str(v or RULE_ACTIVE).strip().lower()
        if s not in (RULE_ACTIVE, RULE_INACTIVE):
            raise ValueError(f"unknown rule status {v!r}")
        return s

    @model_validator(mode="after")
    def _upper_limit_needs_max(self) -> "Rule":
        if self.has_upper_limit and self.max_cart_value is None:
            raise ValueError("hasUpperLimit set without maxCartValue")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == RULE_ACTIVE


@dataclass(frozen=True)
class CartSnapshot:
    """Point-in-time read of the storefront cart (/cart.js shape)."""
    total_minor: int
    item_count: int
    items: Mapping[str, int] = field(default_factory=dict)
    token: Optional[str] = None

    @property
    def total_major(self) -> Decimal:
        return Decimal(self.total_minor) / 100

    def contains(self, product_id: str) -> bool:
        return self.items.get(product_id, 0) > 0

    def same_state(self, other: Optional["CartSnapshot"]) -> bool:
        if other is None:
            return False
        return (self.total_minor == other.total_minor
                and self.item_count == other.item_count
                and dict(self.items) == dict(other.items))

    @classmethod
    def from_cart_json(cls, data: Dict[str, Any]) -> "CartSnapshot":
        if not isinstance(data, dict):
            raise ValueError("cart payload must be an object")
        items: Dict[str, int] = {}
        for line in data.get("items") or []:
            pid = str(line["id"])
            items[pid] = items.get(pid, 0) + int(line.get("quantity", 0) or 0)
        item_count = int(data.get("item_count", sum(items.values())) or 0)
        if item_count < 0:
            raise ValueError(f"negative item_count {item_count}")
        return cls(
            total_minor=int(data.get("total_price") or 0),
            item_count=item_count,
            items=items,
            token=data.get("token"),
        )
