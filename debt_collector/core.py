"""
Core types and helpers for the debt lifecycle engine.

This module provides the foundational data structures and protocols:
1. Constants: tick arithmetic, polling throttles, loan tiers
2. Enums: DebtStatus, Severity, RejectReason
3. Exceptions: DebtError and InvalidTransition
4. Protocols: CurrencyHolder, Notifier, Enforcer (external collaborators)
5. CommandResult: structured outcome of a borrower command

Nothing in this module holds state. The collaborator protocols describe
what the surrounding simulation must provide; the engine never reaches
past them.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Simulated clock: one tick is the smallest time unit the host advances.
TICKS_PER_HOUR = 2500
TICKS_PER_DAY = 60000

# An expedition is not polled until it has had time to arrive.
MIN_RAID_DURATION_TICKS = 5000  # ~2 in-game hours

# Expedition polling cadence once the minimum duration has passed.
RAID_CHECK_INTERVAL_TICKS = TICKS_PER_HOUR

# Floor for the strength of a requested expedition.
MIN_RAID_STRENGTH = Decimal("200")

# Loan sizes the creditor offers over the comms channel.
LOAN_TIERS = (500, 1000, 2000, 5000)

ZERO = Decimal("0")


# ============================================================================
# ENUMS
# ============================================================================

class DebtStatus(str, Enum):
    """Lifecycle state of the borrower's contract."""
    NONE = "none"                 # No active debt, borrowing allowed
    CURRENT = "current"           # Loan active and in good standing
    DELINQUENT = "delinquent"     # A payment deadline lapsed
    COLLECTIONS = "collections"   # Full payoff demanded before a deadline
    LOCKED_OUT = "locked_out"     # Settled by force, tribute required

    @property
    def is_open(self) -> bool:
        """Whether this status carries outstanding debt."""
        return self in OPEN_STATUSES


OPEN_STATUSES = frozenset({
    DebtStatus.CURRENT,
    DebtStatus.DELINQUENT,
    DebtStatus.COLLECTIONS,
})


class Severity(str, Enum):
    """How loudly a notification should be presented."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    THREAT = "threat"


class RejectReason(str, Enum):
    """
    Why a borrower command was refused.

    Rejections are returned to the caller for display; they never
    raise and never mutate the contract.
    """
    ALREADY_BORROWED = "already_borrowed"
    LOCKED_OUT = "locked_out"
    NO_ACTIVE_CONTRACT = "no_active_contract"
    IN_COLLECTIONS = "in_collections"
    EXCEEDS_MAX_LOAN = "exceeds_max_loan"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CREDITOR_UNAVAILABLE = "creditor_unavailable"
    INVALID_AMOUNT = "invalid_amount"
    NO_DELIVERY_TARGET = "no_delivery_target"
    NOTHING_DUE = "nothing_due"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class DebtError(Exception):
    """Base exception for all debt engine errors."""
    pass


class InvalidTransition(DebtError):
    """Raised when a contract transition is applied from a status that does not allow it."""
    pass


# ============================================================================
# COMMAND RESULT
# ============================================================================

@dataclass(frozen=True, slots=True)
class CommandResult:
    """
    Outcome of a borrower command.

    Attributes:
        ok: True if the command was applied
        reason: Why it was refused (None on success)
        amount: Currency involved (disbursed, paid, or required)
        detail: Extra figures for the rejection message (e.g. funds available)
    """
    ok: bool
    reason: Optional[RejectReason] = None
    amount: int = 0
    detail: tuple = ()

    @classmethod
    def applied(cls, amount: int) -> CommandResult:
        return cls(ok=True, amount=amount)

    @classmethod
    def rejected(cls, reason: RejectReason, amount: int = 0, *detail: Any) -> CommandResult:
        return cls(ok=False, reason=reason, amount=amount, detail=tuple(detail))

    def __repr__(self) -> str:
        if self.ok:
            return f"CommandResult(ok, amount={self.amount})"
        return f"CommandResult(rejected={self.reason.value}, amount={self.amount})"


# ============================================================================
# COLLABORATOR PROTOCOLS
# ============================================================================

@runtime_checkable
class CurrencyHolder(Protocol):
    """
    Currency held at a fixed location or in a traveling party's inventory.

    try_remove() is atomic: it removes exactly the amount or nothing.
    """

    def count_available(self) -> int:
        ...

    def try_remove(self, amount: int) -> bool:
        ...

    def add(self, amount: int) -> None:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget notification sink. Failures are not reported back."""

    def send(self, title_key: str, body_key: str, severity: Severity, *args: Any) -> None:
        ...


@runtime_checkable
class Enforcer(Protocol):
    """
    Launches and observes collection expeditions.

    target_location() returns where an expedition would be sent, or None
    when no valid target exists. is_expedition_concluded() is True once no
    hostile presence tied to the creditor remains there, or the location
    is gone.
    """

    def target_location(self) -> Optional[str]:
        ...

    def request_expedition(self, strength: Decimal, target_location: str) -> bool:
        ...

    def is_expedition_concluded(self, location_id: str) -> bool:
        ...


# ============================================================================
# TICK AND ROUNDING HELPERS
# ============================================================================

def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def ticks_from_days(days: Any) -> int:
    """Convert (possibly fractional) days to whole ticks, truncating."""
    return int(to_decimal(days) * TICKS_PER_DAY)


def ticks_from_hours(hours: Any) -> int:
    """Convert (possibly fractional) hours to whole ticks, truncating."""
    return int(to_decimal(hours) * TICKS_PER_HOUR)


def ceil_int(value: Decimal) -> int:
    """Round a Decimal amount up to whole currency units."""
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def floor_int(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def format_ticks_as_time(ticks: int) -> str:
    """
    Format a tick span as readable time, e.g. "2 day(s), 3 hour(s)".

    Non-positive spans read as "now".
    """
    if ticks <= 0:
        return "now"
    days, remainder = divmod(ticks, TICKS_PER_DAY)
    hours = remainder // TICKS_PER_HOUR
    if days > 0 and hours > 0:
        return f"{days} day(s), {hours} hour(s)"
    if days > 0:
        return f"{days} day(s)"
    if hours > 0:
        return f"{hours} hour(s)"
    return "less than an hour"
