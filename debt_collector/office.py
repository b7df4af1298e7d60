"""
office.py - Borrower Transactions

LoanOffice validates and applies the borrower's commands: borrow, pay
interest, pay in full, pay tribute. Every command either succeeds with its
side effects or returns a CommandResult naming why it was refused, with
the contract untouched.

Funds move before the contract does:
    1. Validate preconditions against the current contract and settings
    2. Check the currency holder can cover the amount
    3. Remove (or deliver) the funds
    4. Apply the transition through DebtBook
"""

from __future__ import annotations
from typing import Callable, Optional

from . import notices
from .book import DebtBook
from .config import DebtConfig
from .contract import (
    DebtStatement,
    calculate_payment_due,
    calculate_required_tribute,
    calculate_statement,
    calculate_total_owed,
    pay_in_full,
    pay_interest,
    pay_tribute,
    start_loan,
)
from .core import (
    CommandResult, CurrencyHolder, DebtStatus, Notifier, RejectReason,
    ticks_from_days,
)
from .logging import get_logger


logger = get_logger(__name__)


def _always_present() -> bool:
    return True


def _no_party() -> Optional[CurrencyHolder]:
    return None


class LoanOffice:
    """
    Transaction façade for borrower-initiated commands.

    Payments are drawn from an explicit holder when one is given (a
    traveling party at the creditor's outpost), otherwise from the home
    reserves. Loans are delivered to the explicit holder, else to a party
    present at the outpost, else to the home reserves.
    """

    def __init__(
        self,
        book: DebtBook,
        settings: Callable[[], DebtConfig],
        notifier: Notifier,
        home_reserves: Optional[CurrencyHolder],
        creditor_present: Callable[[], bool] = _always_present,
        party_at_creditor: Callable[[], Optional[CurrencyHolder]] = _no_party,
    ):
        """
        Args:
            book: Holder of the borrower's contract
            settings: Returns the current configuration snapshot
            notifier: Receives borrower-facing notices
            home_reserves: Currency at the borrower's home (None if there is none)
            creditor_present: Whether the creditor can currently be located
            party_at_creditor: A traveling party at the creditor's outpost, if any
        """
        self.book = book
        self.settings = settings
        self.notifier = notifier
        self.home_reserves = home_reserves
        self.creditor_present = creditor_present
        self.party_at_creditor = party_at_creditor

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def request_loan(self, amount: int, now: int, holder: Optional[CurrencyHolder] = None) -> CommandResult:
        """
        Open a loan and deliver the funds.

        The delivery target is resolved before the contract is opened, so a
        loan never exists without its disbursement.
        """
        config = self.settings()
        contract = self.book.contract

        if contract.status == DebtStatus.LOCKED_OUT:
            return self._reject(RejectReason.LOCKED_OUT, amount)
        if contract.is_open:
            return self._reject(RejectReason.ALREADY_BORROWED, amount)
        if amount <= 0:
            return self._reject(RejectReason.INVALID_AMOUNT, amount)
        max_loan = config.max_loan_amount
        if max_loan > 0 and amount > max_loan:
            return self._reject(RejectReason.EXCEEDS_MAX_LOAN, amount, max_loan)
        if not self.creditor_present():
            return self._reject(RejectReason.CREDITOR_UNAVAILABLE, amount)

        target = self._delivery_target(holder)
        if target is None:
            return self._reject(RejectReason.NO_DELIVERY_TARGET, amount)

        opened = start_loan(contract, config, amount, now)
        target.add(amount)
        self.book.apply("start_loan", opened, now)

        first_payment = calculate_payment_due(opened, config, opened.next_interest_due_tick)
        notices.LOAN_GRANTED.send(self.notifier, amount, first_payment, config.interest_interval_days)
        logger.info(
            "Loan granted: %d delivered; first payment ~%d in %d ticks",
            amount, first_payment, ticks_from_days(config.interest_interval_days),
        )
        return CommandResult.applied(amount)

    def pay_interest(self, now: int, holder: Optional[CurrencyHolder] = None) -> CommandResult:
        """Pay the current periodic amount. Refused once in collections."""
        config = self.settings()
        contract = self.book.contract

        if not contract.is_open:
            return self._reject(RejectReason.NO_ACTIVE_CONTRACT)
        if contract.status == DebtStatus.COLLECTIONS:
            return self._reject(RejectReason.IN_COLLECTIONS)

        amount = calculate_payment_due(contract, config, now)
        if amount <= 0:
            return self._reject(RejectReason.NOTHING_DUE)

        refused = self._withdraw(self._payer(holder), amount)
        if refused is not None:
            return refused

        self.book.apply("pay_interest", pay_interest(contract, config, amount, now), now)
        notices.PAYMENT_RECEIVED.send(self.notifier, amount)
        return CommandResult.applied(amount)

    def pay_full(self, now: int, holder: Optional[CurrencyHolder] = None) -> CommandResult:
        """Pay everything owed and close the contract."""
        config = self.settings()
        contract = self.book.contract

        if not contract.is_open:
            return self._reject(RejectReason.NO_ACTIVE_CONTRACT)

        amount = calculate_total_owed(contract, config, now)
        refused = self._withdraw(self._payer(holder), amount)
        if refused is not None:
            return refused

        self.book.apply("pay_in_full", pay_in_full(contract, config, amount, now), now)
        notices.PAYMENT_RECEIVED.send(self.notifier, amount)
        return CommandResult.applied(amount)

    def send_tribute(self, now: int, holder: Optional[CurrencyHolder] = None) -> CommandResult:
        """Pay the tribute that lifts a lockout."""
        config = self.settings()
        contract = self.book.contract

        if contract.status != DebtStatus.LOCKED_OUT:
            return self._reject(RejectReason.NO_ACTIVE_CONTRACT)

        amount = calculate_required_tribute(contract, config)
        refused = self._withdraw(self._payer(holder), amount)
        if refused is not None:
            return refused

        self.book.apply("pay_tribute", pay_tribute(contract), now)
        notices.TRIBUTE_ACCEPTED.send(self.notifier, amount)
        return CommandResult.applied(amount)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def statement(self, now: int) -> DebtStatement:
        """Current breakdown of the contract for display."""
        return calculate_statement(self.book.contract, self.settings(), now)

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _payer(self, holder: Optional[CurrencyHolder]) -> Optional[CurrencyHolder]:
        return holder if holder is not None else self.home_reserves

    def _delivery_target(self, holder: Optional[CurrencyHolder]) -> Optional[CurrencyHolder]:
        """Explicit holder, then a party at the creditor, then home reserves."""
        if holder is not None:
            return holder
        party = self.party_at_creditor()
        if party is not None:
            return party
        return self.home_reserves

    def _withdraw(self, source: Optional[CurrencyHolder], amount: int) -> Optional[CommandResult]:
        """Remove amount from source; return a rejection if it cannot pay."""
        if amount <= 0:
            return None
        available = source.count_available() if source is not None else 0
        if available < amount:
            return self._reject(RejectReason.INSUFFICIENT_FUNDS, amount, available)
        if not source.try_remove(amount):
            return self._reject(RejectReason.INSUFFICIENT_FUNDS, amount, available)
        return None

    def _reject(self, reason: RejectReason, amount: int = 0, *detail) -> CommandResult:
        logger.warning("Command rejected: %s (amount=%d)", reason.value, amount)
        return CommandResult.rejected(reason, amount, *detail)
