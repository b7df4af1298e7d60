"""
contract.py - Debt Contract and Accrual Mathematics

This module provides the borrower's contract as an immutable value, the
pure accrual functions over it, and the transitions that move it through
its lifecycle.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASS (explicit state):
   - Contract: immutable snapshot of the one outstanding contract
   - Each transition returns a NEW instance (value semantics)

2. PURE CALCULATION FUNCTIONS (calculate_*):
   - Take (contract, config, now) explicitly
   - No clock, no settings singleton, no I/O
   - Counters such as missed periods are derived from elapsed time,
     never stored, so they cannot drift from the clock

3. TRANSITIONS (start_loan, pay_interest, settle_by_force, ...):
   - Take the current Contract and return the next one
   - Raise InvalidTransition when called from a status that forbids them
   - Callers (LifecycleEngine, LoanOffice) validate first and record the
     result through DebtBook.apply()

Key Formulas:
    elapsed_days     = (now - loan_received_tick) / TICKS_PER_DAY
    base_interest    = principal * interest_rate_per_day * elapsed_days
    penalty_interest = principal * late_penalty_rate_per_day * days_since_first_miss
    missed_periods   = floor((now - last_payment_tick) / interval_ticks)
    total_owed       = ceil(principal + base + penalty + fees - payments_made), floor 0
    payment_due      = min(total_owed, ceil(base + penalty + fees - payments_made))
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from .config import DebtConfig
from .core import (
    DebtStatus, InvalidTransition,
    TICKS_PER_DAY, ZERO,
    ceil_int, floor_int, ticks_from_days, ticks_from_hours, to_decimal,
)
from .logging import get_logger


logger = get_logger(__name__)


PENALTY_STATUSES = frozenset({DebtStatus.DELINQUENT, DebtStatus.COLLECTIONS})
PAYABLE_STATUSES = frozenset({DebtStatus.CURRENT, DebtStatus.DELINQUENT})


# ============================================================================
# FROZEN DATACLASS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Contract:
    """
    Immutable snapshot of the borrower's single contract.

    A fresh Contract() is the empty NONE contract every session starts with.
    Tick fields use 0 for "unset".
    """
    principal: int = 0                     # Current base owed
    original_principal: int = 0            # Amount first borrowed, fixed for the contract
    payments_made: int = 0                 # Funds applied since the contract opened
    loan_received_tick: int = 0
    loan_term_days: int = 0                # Copied from config at origination
    next_interest_due_tick: int = 0        # Next checkpoint; 0 once in collections
    interest_demand_sent: bool = False
    payment_deadline_tick: int = 0
    last_payment_tick: int = 0             # Baseline for missed periods
    first_missed_payment_tick: int = 0     # Deadline that started penalty accrual
    status: DebtStatus = DebtStatus.NONE
    last_loan_amount: int = 0              # Survives forced settlement for the tribute
    collections_raid_active: bool = False
    collections_raid_start_tick: int = 0
    collections_raid_location_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        """Whether the contract carries outstanding debt."""
        return self.status.is_open

    @property
    def can_borrow(self) -> bool:
        return self.status == DebtStatus.NONE


# ============================================================================
# PURE CALCULATION FUNCTIONS - All Inputs Explicit
# ============================================================================

def _days_between(start_tick: int, now: int) -> Decimal:
    elapsed = now - start_tick
    if elapsed <= 0:
        return ZERO
    return Decimal(elapsed) / Decimal(TICKS_PER_DAY)


def calculate_elapsed_days(contract: Contract, now: int) -> Decimal:
    """
    Days since the loan was received, floor 0.

    Returns Decimal("0") when no loan is open.
    """
    if not contract.is_open:
        return ZERO
    return _days_between(contract.loan_received_tick, now)


def calculate_base_interest(contract: Contract, config: DebtConfig, now: int) -> Decimal:
    """
    Simple interest on the current principal over the whole elapsed term.

    PURE FUNCTION - monotonically non-decreasing in now for a fixed
    principal and rate.
    """
    rate = to_decimal(config.interest_rate_per_day)
    return Decimal(contract.principal) * rate * calculate_elapsed_days(contract, now)


def calculate_penalty_interest(contract: Contract, config: DebtConfig, now: int) -> Decimal:
    """
    Late-penalty interest since the first missed deadline.

    Zero unless the contract is DELINQUENT or in COLLECTIONS and a deadline
    has been missed since the last successful payment. Accrual is continuous
    from the missed deadline tick and does not pause on status changes.
    """
    if contract.status not in PENALTY_STATUSES or contract.first_missed_payment_tick <= 0:
        return ZERO
    rate = to_decimal(config.late_penalty_rate_per_day)
    days = _days_between(contract.first_missed_payment_tick, now)
    return Decimal(contract.principal) * rate * days


def calculate_missed_payment_periods(contract: Contract, config: DebtConfig, now: int) -> int:
    """
    Whole payment intervals elapsed since the last payment.

    Recomputed from the clock on every call. A single long delinquency
    yields a growing count without any explicit "miss" events.
    """
    if not contract.is_open:
        return 0
    interval_ticks = ticks_from_days(config.interest_interval_days)
    if interval_ticks <= 0:
        return 0
    return max(0, (now - contract.last_payment_tick) // interval_ticks)


def calculate_missed_fees(contract: Contract, config: DebtConfig, now: int) -> int:
    return calculate_missed_payment_periods(contract, config, now) * int(config.missed_payment_fee)


def _charges(contract: Contract, config: DebtConfig, now: int) -> Decimal:
    """Interest and fees accrued so far (before payments)."""
    return (
        calculate_base_interest(contract, config, now)
        + calculate_penalty_interest(contract, config, now)
        + Decimal(calculate_missed_fees(contract, config, now))
    )


def calculate_total_owed(contract: Contract, config: DebtConfig, now: int) -> int:
    """
    Everything needed to close the contract now, rounded up, floor 0.
    """
    gross = Decimal(contract.principal) + _charges(contract, config, now)
    return max(0, ceil_int(gross - Decimal(contract.payments_made)))


def calculate_payment_due(contract: Contract, config: DebtConfig, now: int) -> int:
    """
    The amount a periodic payment must cover right now.

    Payments are applied to interest and fees first, so this is the
    unpaid share of charges, capped at the total owed.
    """
    unpaid_charges = _charges(contract, config, now) - Decimal(contract.payments_made)
    if unpaid_charges < 0:
        unpaid_charges = ZERO
    return min(calculate_total_owed(contract, config, now), ceil_int(unpaid_charges))


def calculate_required_tribute(contract: Contract, config: DebtConfig) -> int:
    """Tribute needed to leave LOCKED_OUT: ceil(last_loan_amount * tribute_multiplier)."""
    return ceil_int(Decimal(contract.last_loan_amount) * to_decimal(config.tribute_multiplier))


def calculate_principal_reduction(contract: Contract, config: DebtConfig) -> int:
    """Fixed whole-unit amortization per accepted payment, from the original loan."""
    reduction = Decimal(contract.original_principal) * to_decimal(config.principal_reduction_per_payment)
    return max(0, floor_int(reduction))


def loan_term_end_tick(contract: Contract) -> Optional[int]:
    """Tick at which the term expires, or None when the term is disabled."""
    if contract.loan_term_days <= 0:
        return None
    return contract.loan_received_tick + contract.loan_term_days * TICKS_PER_DAY


def is_loan_term_expired(contract: Contract, now: int) -> bool:
    end_tick = loan_term_end_tick(contract)
    return end_tick is not None and now >= end_tick


# ============================================================================
# STATEMENT - Presentation-Ready Breakdown
# ============================================================================

@dataclass(frozen=True, slots=True)
class DebtStatement:
    """
    Immutable breakdown of a contract at one tick.

    Everything a ledger screen or a status log line needs, computed once.
    Tick spans are None when the corresponding checkpoint is not scheduled.
    """
    status: DebtStatus
    principal: int
    base_interest: Decimal
    penalty_interest: Decimal
    missed_periods: int
    missed_fees: int
    payments_made: int
    total_owed: int
    payment_due: int
    elapsed_days: Decimal
    ticks_until_checkpoint: Optional[int]
    ticks_until_deadline: Optional[int]
    days_until_term_end: Optional[Decimal]
    term_expired: bool
    required_tribute: int


def calculate_statement(contract: Contract, config: DebtConfig, now: int) -> DebtStatement:
    """Compute the full breakdown of a contract at tick now."""
    ticks_until_checkpoint = None
    if contract.is_open and contract.next_interest_due_tick > 0 and not contract.interest_demand_sent:
        ticks_until_checkpoint = contract.next_interest_due_tick - now

    ticks_until_deadline = None
    if contract.is_open and contract.payment_deadline_tick > 0:
        ticks_until_deadline = contract.payment_deadline_tick - now

    days_until_term_end = None
    end_tick = loan_term_end_tick(contract)
    if contract.is_open and end_tick is not None:
        days_until_term_end = max(ZERO, Decimal(end_tick - now) / Decimal(TICKS_PER_DAY))

    required_tribute = 0
    if contract.status == DebtStatus.LOCKED_OUT:
        required_tribute = calculate_required_tribute(contract, config)

    return DebtStatement(
        status=contract.status,
        principal=contract.principal,
        base_interest=calculate_base_interest(contract, config, now),
        penalty_interest=calculate_penalty_interest(contract, config, now),
        missed_periods=calculate_missed_payment_periods(contract, config, now),
        missed_fees=calculate_missed_fees(contract, config, now),
        payments_made=contract.payments_made,
        total_owed=calculate_total_owed(contract, config, now),
        payment_due=calculate_payment_due(contract, config, now),
        elapsed_days=calculate_elapsed_days(contract, now),
        ticks_until_checkpoint=ticks_until_checkpoint,
        ticks_until_deadline=ticks_until_deadline,
        days_until_term_end=days_until_term_end,
        term_expired=contract.is_open and is_loan_term_expired(contract, now),
        required_tribute=required_tribute,
    )


# ============================================================================
# TRANSITIONS - Contract In, Contract Out
# ============================================================================

def _require(contract: Contract, allowed, action: str) -> None:
    if contract.status not in allowed:
        raise InvalidTransition(f"Cannot {action} while contract is {contract.status.value}")


def _cleared(contract: Contract) -> Contract:
    """The empty contract left after a voluntary payoff."""
    return Contract(last_loan_amount=contract.last_loan_amount)


def reset() -> Contract:
    """A fresh contract with no debt and no tribute outstanding."""
    return Contract()


def start_loan(contract: Contract, config: DebtConfig, amount: int, now: int) -> Contract:
    """
    Open a new loan.

    Raises:
        InvalidTransition: if the contract is not NONE
        ValueError: if amount is not positive
    """
    _require(contract, {DebtStatus.NONE}, "start a loan")
    if amount <= 0:
        raise ValueError(f"amount must be positive, got {amount}")

    next_due = now + ticks_from_days(config.interest_interval_days)
    logger.info("Loan started: %d. First interest due at tick %d", amount, next_due)
    return Contract(
        principal=amount,
        original_principal=amount,
        payments_made=0,
        loan_received_tick=now,
        loan_term_days=int(config.loan_term_days),
        next_interest_due_tick=next_due,
        last_payment_tick=now,
        status=DebtStatus.CURRENT,
        last_loan_amount=amount,
    )


def send_demand(contract: Contract, config: DebtConfig, now: int) -> Contract:
    """Mark a payment demand as outstanding and open its grace window."""
    _require(contract, PAYABLE_STATUSES, "send a payment demand")
    return replace(
        contract,
        interest_demand_sent=True,
        payment_deadline_tick=now + ticks_from_hours(config.interest_payment_window_hours),
    )


def apply_payment(contract: Contract, amount: int, now: int) -> Contract:
    """Credit funds to the contract and restart the missed-period clock."""
    if amount < 0:
        raise ValueError(f"amount cannot be negative, got {amount}")
    return replace(
        contract,
        payments_made=contract.payments_made + amount,
        last_payment_tick=now,
    )


def pay_interest(contract: Contract, config: DebtConfig, amount: int, now: int) -> Contract:
    """
    Apply a periodic payment.

    Principal drops by a fixed fraction of the ORIGINAL loan, independent
    of the amount paid. Reaching zero principal settles the contract.
    Otherwise the next checkpoint is scheduled, any demand and penalty
    clock are cleared, and DELINQUENT returns to CURRENT.
    """
    _require(contract, PAYABLE_STATUSES, "pay interest")
    paid = apply_payment(contract, amount, now)
    principal = max(0, paid.principal - calculate_principal_reduction(contract, config))

    if principal == 0:
        logger.info("Interest paid: %d. Principal exhausted, contract settled", amount)
        return _cleared(paid)

    next_due = now + ticks_from_days(config.interest_interval_days)
    logger.info("Interest paid: %d. Principal now %d, next due at tick %d", amount, principal, next_due)
    return replace(
        paid,
        principal=principal,
        next_interest_due_tick=next_due,
        interest_demand_sent=False,
        payment_deadline_tick=0,
        first_missed_payment_tick=0,
        status=DebtStatus.CURRENT,
    )


def pay_in_full(contract: Contract, config: DebtConfig, amount: int, now: int) -> Contract:
    """
    Apply a payoff. Clears the contract to NONE once nothing is owed.

    A payment that falls short is still credited.
    """
    _require(contract, {DebtStatus.CURRENT, DebtStatus.DELINQUENT, DebtStatus.COLLECTIONS}, "pay in full")
    paid = apply_payment(contract, amount, now)
    if calculate_total_owed(paid, config, now) <= 0:
        logger.info("Full balance paid (%d). Debt cleared", amount)
        return _cleared(paid)
    return paid


def record_missed_deadline(contract: Contract, config: DebtConfig, now: int) -> Contract:
    """
    Record that the outstanding demand's deadline lapsed.

    The penalty clock starts at the missed deadline tick, not at now, and
    only the first miss since the last payment sets it. Collections is
    never triggered from here.
    """
    _require(contract, PAYABLE_STATUSES, "record a missed deadline")
    first_missed = contract.first_missed_payment_tick
    if first_missed == 0:
        first_missed = contract.payment_deadline_tick or now
    return replace(
        contract,
        first_missed_payment_tick=first_missed,
        interest_demand_sent=False,
        payment_deadline_tick=0,
        next_interest_due_tick=now + ticks_from_days(config.interest_interval_days),
        status=DebtStatus.DELINQUENT,
    )


def trigger_collections(contract: Contract, config: DebtConfig, now: int) -> Contract:
    """
    Demand full payoff before a deadline.

    Checkpoint cycling stops; accrual continues since it is time-based.
    """
    _require(contract, {DebtStatus.CURRENT, DebtStatus.DELINQUENT, DebtStatus.COLLECTIONS}, "trigger collections")
    deadline = now + ticks_from_hours(config.collections_deadline_hours)
    logger.info("Collections triggered. Full payment due by tick %d", deadline)
    return replace(
        contract,
        status=DebtStatus.COLLECTIONS,
        payment_deadline_tick=deadline,
        next_interest_due_tick=0,
    )


def start_collections_raid(contract: Contract, now: int, location_id: str) -> Contract:
    """Record that an enforcement expedition was accepted."""
    _require(contract, {DebtStatus.COLLECTIONS}, "start a collections raid")
    logger.info("Collections raid started at %s on tick %d", location_id, now)
    return replace(
        contract,
        collections_raid_active=True,
        collections_raid_start_tick=now,
        collections_raid_location_id=location_id,
    )


def settle_by_force(contract: Contract) -> Contract:
    """
    Zero every debt field and lock out borrowing.

    Only last_loan_amount survives, for the tribute. Idempotent.
    """
    logger.info("Debt settled by force. Borrowing locked out")
    return Contract(status=DebtStatus.LOCKED_OUT, last_loan_amount=contract.last_loan_amount)


def pay_tribute(contract: Contract) -> Contract:
    """Restore borrowing eligibility after a forced settlement."""
    _require(contract, {DebtStatus.LOCKED_OUT}, "pay tribute")
    logger.info("Tribute paid. Borrowing privileges restored")
    return Contract()
