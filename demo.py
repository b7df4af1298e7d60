#!/usr/bin/env python3
"""
demo.py - Walkthrough: One Loan From Origination to Tribute

A step-by-step tour of the debt lifecycle. Each step advances simulated
time and shows what the engine did and why. Press Enter to advance.

WHAT YOU'LL SEE:
  1-2: Origination   - Terms, borrowing, where the funds go
  3-4: Checkpoints   - Payment demands, paying on time, a missed deadline
  5-6: Escalation    - Grace limit breached, expedition, forced settlement
  7:   Recovery      - Tribute and borrowing again
  8:   Persistence   - Saving and restoring the book

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from decimal import Decimal
from typing import List, Optional
import sys

from debt_collector import (
    DebtBook, DebtConfig, LifecycleEngine, LoanOffice, Severity,
    TICKS_PER_DAY, TICKS_PER_HOUR,
    calculate_statement, dumps, loads, setup_logging, format_ticks_as_time,
)


QUICK_MODE = "--quick" in sys.argv


# ============================================================================
# DEMO COLLABORATORS
# ============================================================================

class Vault:
    """Currency stored at the borrower's home."""

    def __init__(self, balance: int):
        self.balance = balance

    def count_available(self) -> int:
        return self.balance

    def try_remove(self, amount: int) -> bool:
        if amount > self.balance:
            return False
        self.balance -= amount
        return True

    def add(self, amount: int) -> None:
        self.balance += amount


class PrintingNotifier:
    def __init__(self):
        self.received: List[str] = []

    def send(self, title_key: str, body_key: str, severity: Severity, *args) -> None:
        self.received.append(title_key)
        shown = ", ".join(str(a) for a in args)
        print(f"    [{severity.value.upper():8}] {title_key}({shown})")


class OutpostGuard:
    """Sends an expedition to the borrower's home; it leaves after one poll."""

    def __init__(self):
        self.polls = 0

    def target_location(self) -> Optional[str]:
        return "home"

    def request_expedition(self, strength: Decimal, target_location: str) -> bool:
        print(f"    Expedition of strength {strength} dispatched to {target_location}")
        return True

    def is_expedition_concluded(self, location_id: str) -> bool:
        self.polls += 1
        return self.polls > 1


# ============================================================================
# HELPERS
# ============================================================================

def wait_for_enter():
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def show_statement(book: DebtBook, config: DebtConfig, now: int):
    s = calculate_statement(book.contract, config, now)
    print(f"    Day {now / TICKS_PER_DAY:5.2f}  status={s.status.value:11} principal={s.principal:5}"
          f"  owed={s.total_owed:5}  due={s.payment_due:4}  missed={s.missed_periods}")
    if s.ticks_until_deadline is not None:
        print(f"    Deadline in {format_ticks_as_time(s.ticks_until_deadline)}")


def advance(engine: LifecycleEngine, start: int, end: int) -> int:
    """Step the engine hourly from start to end and return end."""
    for tick in range(start, end + 1, TICKS_PER_HOUR):
        engine.step(tick)
    return end


# ============================================================================
# WALKTHROUGH
# ============================================================================

def main():
    config = DebtConfig()
    book = DebtBook()
    vault = Vault(3000)
    notifier = PrintingNotifier()
    office = LoanOffice(book, lambda: config, notifier, vault)
    engine = LifecycleEngine(book, lambda: config, notifier, OutpostGuard())

    step_header(1, "Terms", "Every contract runs on one read-only configuration snapshot.")
    for name, value in config.to_dict().items():
        print(f"    {name:34} {value}")
    wait_for_enter()

    step_header(2, "Borrowing", "A loan opens only once its funds have somewhere to go.")
    print(f"    Vault before: {vault.balance}")
    result = office.request_loan(1000, now=0)
    print(f"    request_loan(1000) -> {result}")
    print(f"    Vault after:  {vault.balance}")
    print(f"    request_loan(500)  -> {office.request_loan(500, now=0)}")
    show_statement(book, config, 0)
    wait_for_enter()

    step_header(3, "First Checkpoint", "A demand opens a 24-hour window; paying closes it.")
    now = advance(engine, 0, 3 * TICKS_PER_DAY)
    show_statement(book, config, now)
    print(f"    pay_interest -> {office.pay_interest(now)}")
    show_statement(book, config, now)
    wait_for_enter()

    step_header(4, "A Missed Deadline", "The penalty clock starts at the deadline, not when it is noticed.")
    now = advance(engine, now, 7 * TICKS_PER_DAY)
    show_statement(book, config, now)
    print(f"    Penalty clock started at tick {book.contract.first_missed_payment_tick}")
    wait_for_enter()

    step_header(5, "Collections", "Too many missed periods demand the full balance.")
    now = advance(engine, now, 12 * TICKS_PER_DAY)
    show_statement(book, config, now)
    wait_for_enter()

    step_header(6, "Forced Settlement", "An unanswered demand ends with an expedition and a lockout.")
    now = advance(engine, now, 14 * TICKS_PER_DAY)
    show_statement(book, config, now)
    print(f"    request_loan(500) -> {office.request_loan(500, now)}")
    wait_for_enter()

    step_header(7, "Tribute", "Paying tribute restores the right to borrow.")
    print(f"    send_tribute -> {office.send_tribute(now)}")
    print(f"    Vault after:  {vault.balance}")
    print(f"    request_loan(500) -> {office.request_loan(500, now)}")
    wait_for_enter()

    step_header(8, "Persistence", "The book survives a save and a reload.")
    text = dumps(book)
    print(f"    {text[:66]}...")
    restored = loads(text)
    print(f"    Restored contract equal: {restored.contract == book.contract}")

    print("\n" + "=" * 70)
    print("    Change history:")
    for change in book.history:
        print(f"      {change!r}")
    return book


if __name__ == "__main__":
    if "--log" in sys.argv:
        setup_logging("INFO")
    main()
