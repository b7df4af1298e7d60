"""
dev_actions.py - Debug shortcuts for exercising the lifecycle by hand

Each action edits the book directly (recorded in its history like any
other change) and returns a one-line message for the debug console.
Actions that need an open contract return a message and change nothing
when there is none.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable, List

from .book import DebtBook
from .config import DebtConfig
from .contract import (
    Contract,
    calculate_statement,
    reset,
    settle_by_force,
    start_loan,
    trigger_collections,
)
from .core import DebtStatus, format_ticks_as_time
from .logging import get_logger


logger = get_logger(__name__)


NO_ACTIVE_CONTRACT = "No active debt contract"

# Loan opened by force_collections_raid when there is nothing to collect on.
DEBUG_LOAN_AMOUNT = 1000


def force_interest_due(book: DebtBook, now: int) -> str:
    """Make the next payment checkpoint fire on the next step."""
    contract = book.contract
    if not contract.is_open:
        return NO_ACTIVE_CONTRACT
    book.apply(
        "dev_force_interest_due",
        replace(contract, next_interest_due_tick=now, interest_demand_sent=False),
        now,
    )
    return "Interest due tick set to now"


def force_collections(book: DebtBook, settings: Callable[[], DebtConfig], now: int) -> str:
    contract = book.contract
    if not contract.is_open:
        return NO_ACTIVE_CONTRACT
    book.apply("dev_force_collections", trigger_collections(contract, settings(), now), now)
    return "Forced collections state"


def force_collections_raid(book: DebtBook, settings: Callable[[], DebtConfig], now: int) -> str:
    """
    Put the contract in collections with its deadline at now.

    Opens a debug loan first when no contract is open, so the next step
    always requests an expedition.
    """
    config = settings()
    contract = book.contract
    if contract.status != DebtStatus.COLLECTIONS:
        if not contract.is_open:
            contract = start_loan(reset(), config, DEBUG_LOAN_AMOUNT, now)
        contract = trigger_collections(contract, config, now)
    book.apply("dev_force_collections_raid", replace(contract, payment_deadline_tick=now), now)
    return "Collections raid will trigger on next tick"


def skip_to_deadline(book: DebtBook, now: int) -> str:
    contract = book.contract
    if not contract.is_open:
        return NO_ACTIVE_CONTRACT
    if contract.payment_deadline_tick <= 0:
        return "No active payment deadline"
    book.apply("dev_skip_to_deadline", replace(contract, payment_deadline_tick=now), now)
    return "Payment deadline set to now"


def reset_contract(book: DebtBook, now: int = 0) -> str:
    book.apply("dev_reset", reset(), now)
    return "Debt contract reset"


def set_locked_out(book: DebtBook, last_loan_amount: int = DEBUG_LOAN_AMOUNT, now: int = 0) -> str:
    """Settle by force as if a loan of last_loan_amount had gone unpaid."""
    locked = settle_by_force(Contract(last_loan_amount=last_loan_amount))
    book.apply("dev_set_locked_out", locked, now)
    return "Set to locked out state"


def describe(book: DebtBook, settings: Callable[[], DebtConfig], now: int) -> List[str]:
    """Log and return a line-per-figure dump of the contract."""
    contract = book.contract
    statement = calculate_statement(contract, settings(), now)

    lines = [
        f"Status: {statement.status.value}",
        f"Principal: {statement.principal}",
        f"Accrued Interest: {statement.base_interest + statement.penalty_interest:.2f}",
        f"Missed Fees: {statement.missed_fees}",
        f"Payments Made: {statement.payments_made}",
        f"Total Owed: {statement.total_owed}",
        f"Missed Payments Count: {statement.missed_periods}",
        f"Interest Demand Sent: {contract.interest_demand_sent}",
        f"Next Interest Due: {contract.next_interest_due_tick}",
        f"Payment Deadline: {contract.payment_deadline_tick}",
        f"Current Tick: {now}",
        f"Loan Received Tick: {contract.loan_received_tick}",
        f"Elapsed Days: {statement.elapsed_days:.2f}",
        f"Collections Raid Active: {contract.collections_raid_active}",
        f"Last Raid Check Tick: {book.last_raid_check_tick}",
    ]
    if statement.ticks_until_deadline is not None:
        lines.append(f"Deadline In: {format_ticks_as_time(statement.ticks_until_deadline)}")
    if statement.status == DebtStatus.LOCKED_OUT:
        lines.append(f"Required Tribute: {statement.required_tribute}")

    for line in lines:
        logger.info(line)
    return lines
