"""Pure parsing functions for strategy wrapper events and caps — no I/O."""
from __future__ import annotations

from typing import Any

from ...models import CapabilityRecord

SKIP_NO_FIELDS = "no content fields"
SKIP_INNER_CAP_BORROWED = "inner cap borrowed"
SKIP_NO_OBLIGATION_ID = "missing obligation id"
SKIP_BAD_STRATEGY_TYPE = "unreadable strategy type"


def normalize_object_id(value: Any) -> str | None:
    """Return the id with a ``0x`` prefix, or None for empty/non-string input.

    Examples:
        "0xabc" → "0xabc"
        "abc" → "0xabc"
    """
    if not isinstance(value, str) or not value:
        return None
    return value if value.startswith("0x") else f"0x{value}"


def extract_cap_id(event: Any) -> str | None:
    """Pull the created cap id out of a CreatedStrategyOwnerCap event."""
    if not isinstance(event, dict):
        return None
    payload = event.get("parsedJson")
    if not isinstance(payload, dict):
        return None
    return normalize_object_id(payload.get("cap_id"))


def _parse_strategy_type(value: Any) -> int | None:
    # Move u8 fields arrive as decimal strings
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def extract_capability(
    obj: dict[str, Any],
) -> tuple[CapabilityRecord | None, str | None]:
    """Parse a StrategyOwnerCap object into a CapabilityRecord.

    Returns ``(record, None)`` on success and ``(None, reason)`` when the
    object has no usable obligation. A cap whose ``inner_cap`` is null has
    lent its ObligationOwnerCap out for a transaction.
    """
    data = obj.get("data") or {}
    content = data.get("content") or {}
    fields = content.get("fields")
    if not isinstance(fields, dict):
        return None, SKIP_NO_FIELDS

    inner_cap = fields.get("inner_cap")
    if not isinstance(inner_cap, dict) or not isinstance(inner_cap.get("fields"), dict):
        return None, SKIP_INNER_CAP_BORROWED

    obligation_id = normalize_object_id(inner_cap["fields"].get("obligation_id"))
    if obligation_id is None:
        return None, SKIP_NO_OBLIGATION_ID

    strategy_type = _parse_strategy_type(fields.get("strategy_type", 0))
    if strategy_type is None:
        return None, SKIP_BAD_STRATEGY_TYPE

    owner = data.get("owner")
    owner_address = "Unknown"
    if isinstance(owner, dict):
        owner_address = owner.get("AddressOwner") or "Unknown"

    return (
        CapabilityRecord(
            object_id=data.get("objectId", ""),
            position_id=obligation_id,
            strategy_type=strategy_type,
            owner=owner_address,
        ),
        None,
    )


def strategy_type_name(strategy_type: int, names: dict[int, str]) -> str:
    """Human-readable strategy label, e.g. 1 → "SUI Looping (sSUI)"."""
    return names.get(strategy_type, f"Strategy Type {strategy_type}")
