"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

USD_DECIMALS = 18

# Normalized on-chain object id, always "0x"-prefixed.
CandidateId = str

# Raw ``sui_getObject`` response.
ResolvedObject = dict[str, Any]


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Raw:
    """Unscaled integer amount."""

    value: int


@dataclass(frozen=True)
class Scaled:
    """Fixed-point integer amount, ``value / 10**exponent`` display units."""

    value: int
    exponent: int = USD_DECIMALS


Amount = Union[Raw, Scaled]


def to_float(amount: Amount) -> float:
    """Normalize an amount into floating display units."""
    if isinstance(amount, Scaled):
        return amount.value / (10**amount.exponent)
    return float(amount.value)


def parse_amount(value: Any, exponent: int = USD_DECIMALS) -> Amount:
    """Parse a wire value into an Amount.

    Accepts the on-chain ``Decimal`` struct (``{"fields": {"value": "..."}}``),
    a bare ``{"value": ...}`` wrapper, an int or a string of digits. Missing
    values parse as zero.
    """
    if isinstance(value, dict):
        inner = value.get("fields", value)
        value = inner.get("value", 0) if isinstance(inner, dict) else 0
    if value is None or value == "":
        value = 0
    if isinstance(value, (bool, float)):
        raise ValueError(f"Cannot parse fixed-point amount from {value!r}")
    integer = int(value)
    if exponent == 0:
        return Raw(integer)
    return Scaled(integer, exponent)


def scale_down(raw: int, exponent: int = USD_DECIMALS) -> float:
    return to_float(Scaled(raw, exponent))


def scale_up(value: float, exponent: int = USD_DECIMALS) -> int:
    return int(round(value * (10**exponent)))


def format_usd(value: float) -> str:
    """Format display units as ``$1,234.56`` (negatives as ``-$1.00``)."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


# ---------------------------------------------------------------------------
# Pipeline records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CapabilityRecord:
    """Strategy owner cap and the obligation it controls."""

    object_id: str
    position_id: str
    strategy_type: int
    owner: str


@dataclass(frozen=True)
class ObligationData:
    """Suilend obligation USD values as stored on chain."""

    obligation_id: str
    deposited_value_usd: Amount
    unweighted_borrowed_value_usd: Amount
    weighted_borrowed_value_usd: Amount = Scaled(0)
    allowed_borrow_value_usd: Amount = Scaled(0)
    unhealthy_borrow_value_usd: Amount = Scaled(0)
    deposit_count: int = 0
    borrow_count: int = 0


@dataclass(frozen=True)
class PositionSummary:
    position_id: str
    deposited_usd: float
    borrowed_usd: float
    net_usd: float
    strategy_type: int
    owner: str
    object_id: str

    @classmethod
    def from_obligation(
        cls, record: CapabilityRecord, obligation: ObligationData
    ) -> PositionSummary:
        deposited = to_float(obligation.deposited_value_usd)
        borrowed = to_float(obligation.unweighted_borrowed_value_usd)
        return cls(
            position_id=record.position_id,
            deposited_usd=deposited,
            borrowed_usd=borrowed,
            net_usd=deposited - borrowed,
            strategy_type=record.strategy_type,
            owner=record.owner,
            object_id=record.object_id,
        )


@dataclass(frozen=True)
class TVLReport:
    """Final aggregate of one pipeline run."""

    total_tvl: float
    total_deposits: float
    total_borrows: float
    position_count: int
    positions: tuple[PositionSummary, ...]
    records_attempted: int = 0
    main_pass_failures: int = 0
    final_failures: int = 0
    generated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def net_value(self) -> float:
        return self.total_deposits - self.total_borrows

    @property
    def recovered_count(self) -> int:
        return self.main_pass_failures - self.final_failures

    @property
    def success_rate(self) -> float:
        """Fraction of attempted records that produced a summary."""
        if self.records_attempted <= 0:
            return 0.0
        return self.position_count / self.records_attempted
