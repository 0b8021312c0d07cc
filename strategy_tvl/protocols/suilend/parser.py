"""Pure parsing functions for Suilend obligations — no I/O."""
from __future__ import annotations

from typing import Any

from ...models import ObligationData, parse_amount

OBLIGATION_TYPE_MARKER = "::obligation::Obligation<"
LENDING_MARKET_TYPE_MARKER = "::lending_market::LendingMarket<"


def object_type(obj: dict[str, Any]) -> str:
    """Return the Move type of an object response, or "" when absent."""
    data = obj.get("data") or {}
    return data.get("type") or (data.get("content") or {}).get("type") or ""


def is_obligation(obj: dict[str, Any]) -> bool:
    type_str = object_type(obj)
    # Older responses omit the type; accept them if the fields look right.
    if not type_str:
        return True
    return OBLIGATION_TYPE_MARKER in type_str


def parse_obligation(obj: dict[str, Any]) -> ObligationData | None:
    """Parse a ``sui_getObject`` response for an Obligation.

    USD values are Decimal structs scaled by 10^18:
        {"type": "...::decimal::Decimal", "fields": {"value": "1234..."}}

    Returns None when the response carries no object or no obligation fields.
    """
    data = obj.get("data")
    if not data or obj.get("error"):
        return None
    if not is_obligation(obj):
        return None

    fields = (data.get("content") or {}).get("fields")
    if not isinstance(fields, dict) or "deposited_value_usd" not in fields:
        return None

    return ObligationData(
        obligation_id=data.get("objectId", ""),
        deposited_value_usd=parse_amount(fields.get("deposited_value_usd")),
        unweighted_borrowed_value_usd=parse_amount(
            fields.get("unweighted_borrowed_value_usd")
        ),
        weighted_borrowed_value_usd=parse_amount(
            fields.get("weighted_borrowed_value_usd")
        ),
        allowed_borrow_value_usd=parse_amount(fields.get("allowed_borrow_value_usd")),
        unhealthy_borrow_value_usd=parse_amount(
            fields.get("unhealthy_borrow_value_usd")
        ),
        deposit_count=len(fields.get("deposits") or []),
        borrow_count=len(fields.get("borrows") or []),
    )


def matches_lending_market(obj: dict[str, Any], pool_type: str) -> bool:
    """Check a lending market response exists and is parameterized by ``pool_type``."""
    if not obj.get("data") or obj.get("error"):
        return False
    type_str = object_type(obj)
    if not type_str or not pool_type:
        return True
    return LENDING_MARKET_TYPE_MARKER in type_str and pool_type in type_str
