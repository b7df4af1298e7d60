"""
test_lifecycle_engine.py - Unit tests for LifecycleEngine.step()

Tests:
- Guard order and short-circuiting
- Demand / deadline cycle and its notices
- Escalation on grace breach and term expiry
- Expedition request, fallback settlement, throttled polling
- Settings re-read every step
"""

import pytest
from dataclasses import replace
from decimal import Decimal

from debt_collector import (
    Contract, DebtConfig, DebtStatus, LifecycleEngine,
    MIN_RAID_DURATION_TICKS, RAID_CHECK_INTERVAL_TICKS,
    settle_by_force, start_loan, trigger_collections,
)
from tests.fakes import FakeEnforcer, days, hours


@pytest.fixture
def collections(borrowed, engine):
    """Grace limit breached on day 9; the deadline is 18 hours later."""
    engine.step(days(9))
    assert borrowed.contract.status == DebtStatus.COLLECTIONS
    return borrowed


@pytest.fixture
def raiding(collections, engine):
    engine.step(days(9) + hours(18))
    assert collections.contract.collections_raid_active
    return collections


RAID_START = days(9) + hours(18)


class TestIdle:

    def test_no_contract_does_nothing(self, engine, notifier):
        assert engine.step(days(5)) is None
        assert notifier.sent == []

    def test_locked_out_without_raid_does_nothing(self, engine, book, notifier):
        book.restore(Contract(status=DebtStatus.LOCKED_OUT, last_loan_amount=1000))
        assert engine.step(days(5)) is None
        assert book.contract.status == DebtStatus.LOCKED_OUT

    def test_nothing_before_checkpoint(self, engine, borrowed):
        assert engine.step(days(3) - 1) is None


class TestSafetyClear:

    def test_open_contract_owing_nothing_is_cleared(self, engine, borrowed):
        borrowed.restore(replace(borrowed.contract, payments_made=1_000_000))
        change = engine.step(days(1))
        assert change.event == "pay_in_full"
        assert borrowed.contract == Contract(last_loan_amount=1000)


class TestInterestCycle:

    def test_demand_at_checkpoint_charges_one_period_fee(self, engine, borrowed, notifier):
        change = engine.step(days(3))

        assert change.event == "send_demand"
        assert borrowed.contract.interest_demand_sent
        assert borrowed.contract.payment_deadline_tick == days(4)
        title, _, _, args = notifier.last()
        assert title == "DC_Letter_InterestDue_Title"
        assert args == (110,)

    def test_demand_sent_once(self, engine, borrowed):
        engine.step(days(3))
        assert engine.step(days(3) + hours(1)) is None

    def test_lapsed_deadline(self, engine, borrowed, notifier):
        engine.step(days(3))
        change = engine.step(days(4))

        assert change.event == "record_missed_deadline"
        assert borrowed.contract.status == DebtStatus.DELINQUENT
        assert borrowed.contract.first_missed_payment_tick == days(4)
        assert borrowed.contract.next_interest_due_tick == days(7)
        title, _, _, args = notifier.last()
        assert title == "DC_Letter_PaymentMissed_Title"
        assert args == (2, 50, "1.0")

    def test_paid_demand_does_not_lapse(self, engine, office, borrowed):
        engine.step(days(3))
        assert office.pay_interest(now=days(3) + hours(2)).ok
        assert engine.step(days(4)) is None
        assert borrowed.contract.status == DebtStatus.CURRENT


class TestEscalation:

    def test_grace_exceeded(self, engine, borrowed, notifier):
        change = engine.step(days(9))

        assert change.event == "trigger_collections"
        assert borrowed.contract.payment_deadline_tick == days(9) + hours(18)
        title, _, _, args = notifier.last()
        assert title == "DC_Letter_GraceLimitExceeded_Title"
        assert args[:2] == (3, 2)
        assert args[2] == borrowed.contract.principal + 180 + 150

    def test_at_grace_limit_is_not_exceeded(self, engine, borrowed):
        engine.step(days(6))
        assert borrowed.contract.status != DebtStatus.COLLECTIONS

    def test_term_expired(self, engine, borrowed, settings, notifier):
        settings.config = DebtConfig(grace_missed_payments=100)
        change = engine.step(days(30))

        assert change.event == "trigger_collections"
        assert borrowed.contract.status == DebtStatus.COLLECTIONS
        title, _, _, args = notifier.last()
        assert title == "DC_Letter_LoanTermExpired_Title"
        assert args[1] == 30

    def test_term_checked_before_grace(self, engine, borrowed, notifier):
        engine.step(days(30))
        assert notifier.last()[0] == "DC_Letter_LoanTermExpired_Title"

    def test_settings_reread_every_step(self, engine, borrowed, settings):
        settings.config = DebtConfig(grace_missed_payments=0)
        assert engine.step(days(3)).event == "trigger_collections"


class TestCollectionsDeadline:

    def test_waits_for_deadline(self, engine, collections, enforcer):
        assert engine.step(RAID_START - 1) is None
        assert enforcer.requests == []

    def test_requests_expedition(self, engine, collections, enforcer):
        change = engine.step(RAID_START)

        assert change.event == "start_collections_raid"
        strength, target = enforcer.requests[0]
        assert target == "home"
        assert strength >= Decimal("200")
        assert collections.contract.collections_raid_location_id == "home"
        assert collections.contract.collections_raid_start_tick == RAID_START
        assert collections.last_raid_check_tick == RAID_START

    def test_no_target_settles_by_force(self, engine, collections, enforcer, notifier):
        enforcer.target = None
        change = engine.step(RAID_START)

        assert change.event == "settle_by_force"
        assert collections.contract == Contract(status=DebtStatus.LOCKED_OUT, last_loan_amount=1000)
        assert enforcer.requests == []
        assert notifier.last()[0] == "DC_Letter_DebtSettled_Title"

    def test_rejected_request_settles_by_force(self, engine, collections, enforcer):
        enforcer.accept = False
        engine.step(RAID_START)
        assert len(enforcer.requests) == 1
        assert collections.contract.status == DebtStatus.LOCKED_OUT

    def test_strength_floor(self, book, settings, notifier, enforcer, config):
        book.restore(trigger_collections(start_loan(Contract(), config, 100, 0), config, 0))
        engine = LifecycleEngine(book, settings, notifier, enforcer)
        assert engine.expedition_strength(config, 0) == Decimal("200")

    def test_strength_scales_with_balance(self, book, settings, notifier, enforcer, config):
        book.restore(trigger_collections(start_loan(Contract(), config, 4000, 0), config, 0))
        engine = LifecycleEngine(book, settings, notifier, enforcer)
        assert engine.expedition_strength(config, 0) == Decimal("6000")


class TestExpeditionPolling:

    def test_not_polled_before_minimum_duration(self, engine, raiding, enforcer):
        assert engine.step(RAID_START + MIN_RAID_DURATION_TICKS - 1) is None
        assert enforcer.polls == []

    def test_polled_then_throttled(self, engine, raiding, enforcer):
        first = RAID_START + MIN_RAID_DURATION_TICKS
        engine.step(first)
        engine.step(first + RAID_CHECK_INTERVAL_TICKS - 1)
        engine.step(first + RAID_CHECK_INTERVAL_TICKS)
        assert enforcer.polls == ["home", "home"]
        assert raiding.contract.collections_raid_active

    def test_concluded_expedition_settles(self, engine, raiding, enforcer, notifier):
        enforcer.conclude("home")
        change = engine.step(RAID_START + MIN_RAID_DURATION_TICKS)

        assert change.event == "settle_by_force"
        assert raiding.contract.status == DebtStatus.LOCKED_OUT
        assert raiding.contract.principal == 0
        assert not raiding.contract.collections_raid_active
        assert notifier.last()[0] == "DC_Letter_DebtSettled_Title"

    def test_no_other_processing_while_raiding(self, engine, raiding, notifier):
        count = len(notifier.sent)
        engine.step(days(40))
        assert raiding.contract.status == DebtStatus.COLLECTIONS
        assert len(notifier.sent) == count

    def test_missing_location_settles(self, engine, raiding):
        raiding.restore(replace(raiding.contract, collections_raid_location_id=None),
                        last_raid_check_tick=RAID_START)
        engine.step(RAID_START + MIN_RAID_DURATION_TICKS)
        assert raiding.contract.status == DebtStatus.LOCKED_OUT

    def test_settled_contract_stays_locked(self, engine, raiding, enforcer):
        enforcer.conclude("home")
        engine.step(RAID_START + MIN_RAID_DURATION_TICKS)
        assert engine.step(RAID_START + days(5)) is None
        assert raiding.contract == settle_by_force(raiding.contract)


class TestRun:

    def test_run_collects_changes(self, engine, borrowed):
        changes = engine.run(range(0, days(4) + 1, hours(1)))
        assert [c.event for c in changes] == ["send_demand", "record_missed_deadline"]

    def test_expedition_sent_to_enforcer_target(self, book, settings, notifier, borrowed):
        engine = LifecycleEngine(book, settings, notifier, FakeEnforcer(target="outpost", accept=True))
        engine.run(range(0, days(11), hours(1)))
        assert book.contract.collections_raid_location_id == "outpost"
