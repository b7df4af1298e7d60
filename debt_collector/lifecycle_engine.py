"""
lifecycle_engine.py - Lifecycle Engine

Advances the borrower's contract once per simulated tick.

Execution order each step() (the first guard that acts ends the step):
0. Clear an open contract that no longer owes anything
1. Skip when no loan is open and the borrower is not locked out
2. Poll an active collections expedition (throttled)
3. Loan term expired -> collections
4. Missed periods beyond grace -> collections
5. CURRENT/DELINQUENT: send a due demand, or record a lapsed deadline
6. COLLECTIONS past its deadline -> request an expedition

One transition per step keeps notification order deterministic. The
settings callable is read at the top of every step, so configuration may
change between ticks.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from . import notices
from .book import ContractChange, DebtBook
from .config import DebtConfig
from .contract import (
    calculate_missed_fees,
    calculate_missed_payment_periods,
    calculate_payment_due,
    calculate_total_owed,
    is_loan_term_expired,
    pay_in_full,
    record_missed_deadline,
    send_demand,
    settle_by_force,
    start_collections_raid,
    trigger_collections,
)
from .core import (
    DebtStatus, Enforcer, Notifier,
    MIN_RAID_DURATION_TICKS, MIN_RAID_STRENGTH, RAID_CHECK_INTERVAL_TICKS,
    to_decimal,
)
from .logging import get_logger


logger = get_logger(__name__)


class LifecycleEngine:
    """
    Time-driven orchestrator for the debt contract.

    Features:
    - Demand/deadline checkpoint cycle
    - Escalation to collections on term expiry or grace breach
    - Expedition request with a forced-settlement fallback
    - Rate-limited polling for expedition conclusion
    """

    def __init__(
        self,
        book: DebtBook,
        settings: Callable[[], DebtConfig],
        notifier: Notifier,
        enforcer: Enforcer,
    ):
        """
        Initialize lifecycle engine.

        Args:
            book: Holder of the contract to advance
            settings: Returns the current configuration snapshot
            notifier: Receives borrower-facing notices
            enforcer: Launches and observes collection expeditions
        """
        self.book = book
        self.settings = settings
        self.notifier = notifier
        self.enforcer = enforcer

    def step(self, now: int) -> Optional[ContractChange]:
        """
        Run one tick of lifecycle processing.

        Args:
            now: Current simulated tick

        Returns:
            The change applied this tick, or None if nothing changed.
        """
        config = self.settings()
        contract = self.book.contract
        before = len(self.book.history)

        if contract.is_open and calculate_total_owed(contract, config, now) <= 0:
            self.book.apply("pay_in_full", pay_in_full(contract, config, 0, now), now)
        elif not contract.is_open and contract.status != DebtStatus.LOCKED_OUT:
            pass
        elif contract.collections_raid_active:
            self._poll_expedition(now)
        elif contract.status == DebtStatus.LOCKED_OUT:
            pass
        elif contract.status != DebtStatus.COLLECTIONS and is_loan_term_expired(contract, now):
            self._trigger_term_expired(config, now)
        elif (
            contract.status != DebtStatus.COLLECTIONS
            and calculate_missed_payment_periods(contract, config, now) > config.grace_missed_payments
        ):
            self._trigger_grace_exceeded(config, now)
        elif contract.status in (DebtStatus.CURRENT, DebtStatus.DELINQUENT):
            self._process_interest_cycle(config, now)
        elif contract.status == DebtStatus.COLLECTIONS:
            self._process_collections_deadline(config, now)

        if len(self.book.history) > before:
            return self.book.history[-1]
        return None

    def run(self, ticks: Iterable[int]) -> List[ContractChange]:
        """
        Run the engine through a sequence of ticks.

        Returns:
            All changes applied, in order.
        """
        changes: List[ContractChange] = []
        for tick in ticks:
            change = self.step(tick)
            if change is not None:
                changes.append(change)
        return changes

    # ========================================================================
    # INTEREST CYCLE
    # ========================================================================

    def _process_interest_cycle(self, config: DebtConfig, now: int) -> None:
        contract = self.book.contract

        if not contract.interest_demand_sent and now >= contract.next_interest_due_tick:
            payment_due = calculate_payment_due(contract, config, now)
            self.book.apply("send_demand", send_demand(contract, config, now), now)
            notices.PAYMENT_DUE.send(self.notifier, payment_due)
            logger.info(
                "Interest demand sent: %d due within %s hours",
                payment_due, config.interest_payment_window_hours,
            )
            return

        if contract.interest_demand_sent and now >= contract.payment_deadline_tick:
            missed_count = calculate_missed_payment_periods(contract, config, now) + 1
            late_fees = calculate_missed_fees(contract, config, now)
            penalty_percent = to_decimal(config.late_penalty_rate_per_day) * 100

            self.book.apply("record_missed_deadline", record_missed_deadline(contract, config, now), now)
            notices.PAYMENT_MISSED.send(
                self.notifier, missed_count, late_fees, f"{penalty_percent:.1f}",
            )
            logger.info("Payment deadline missed at tick %d (missed=%d, fees=%d)", now, missed_count, late_fees)

    # ========================================================================
    # ESCALATION
    # ========================================================================

    def _trigger_term_expired(self, config: DebtConfig, now: int) -> None:
        contract = self.book.contract
        updated = self.book.apply("trigger_collections", trigger_collections(contract, config, now), now)
        total_owed = calculate_total_owed(updated, config, now)
        notices.TERM_EXPIRED.send(self.notifier, total_owed, updated.loan_term_days)
        logger.info(
            "Loan term expired. Full payment of %d required within %s hours",
            total_owed, config.collections_deadline_hours,
        )

    def _trigger_grace_exceeded(self, config: DebtConfig, now: int) -> None:
        contract = self.book.contract
        missed_count = calculate_missed_payment_periods(contract, config, now)
        grace_limit = config.grace_missed_payments
        updated = self.book.apply("trigger_collections", trigger_collections(contract, config, now), now)
        total_owed = calculate_total_owed(updated, config, now)
        notices.GRACE_EXCEEDED.send(self.notifier, missed_count, grace_limit, total_owed)
        logger.info(
            "Grace limit exceeded (%d missed > %d allowed). Full payment of %d required",
            missed_count, grace_limit, total_owed,
        )

    # ========================================================================
    # COLLECTIONS AND ENFORCEMENT
    # ========================================================================

    def _process_collections_deadline(self, config: DebtConfig, now: int) -> None:
        contract = self.book.contract
        if now < contract.payment_deadline_tick:
            return

        strength = self.expedition_strength(config, now)
        target = self.enforcer.target_location()
        if target is None:
            logger.warning("No valid target for collections raid; settling by force")
            self._settle(now)
            return

        if self.enforcer.request_expedition(strength, target):
            self.book.apply("start_collections_raid", start_collections_raid(contract, now, target), now)
            self.book.last_raid_check_tick = now
            return

        logger.warning("Collections raid request rejected; settling by force")
        self._settle(now)

    def expedition_strength(self, config: DebtConfig, now: int) -> Decimal:
        """Strength of the expedition sent for the current balance."""
        total_owed = calculate_total_owed(self.book.contract, config, now)
        strength = Decimal(total_owed) * to_decimal(config.raid_strength_multiplier)
        return max(MIN_RAID_STRENGTH, strength)

    def _poll_expedition(self, now: int) -> None:
        contract = self.book.contract
        if now - contract.collections_raid_start_tick < MIN_RAID_DURATION_TICKS:
            return
        if now - self.book.last_raid_check_tick < RAID_CHECK_INTERVAL_TICKS:
            return

        self.book.last_raid_check_tick = now
        location_id = contract.collections_raid_location_id
        if location_id is None or self.enforcer.is_expedition_concluded(location_id):
            logger.info("Collections raid at %s ended", location_id)
            self._settle(now)
        else:
            logger.debug("Collections raid at %s still active at tick %d", location_id, now)

    def _settle(self, now: int) -> None:
        self.book.apply("settle_by_force", settle_by_force(self.book.contract), now)
        notices.DEBT_SETTLED.send(self.notifier)
