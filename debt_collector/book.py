"""
book.py - Stateful Holder of the Borrower's Contract

DebtBook is the only object that holds the current Contract. Transitions
are pure functions in contract.py; the LifecycleEngine and the LoanOffice
hand their results to DebtBook.apply(), which swaps the value in and
appends a ContractChange to the history.

Key responsibilities:
    - Holds exactly one Contract per borrower
    - Records every applied transition (the audit trail), optionally
      bounded to the most recent max_history changes
    - Carries the expedition polling bookmark so it persists with the contract
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Tuple

from .contract import Contract
from .logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ContractChange:
    """
    Record of one contract transition.

    Stores complete before/after snapshots; changed_fields() derives the diff.

    Attributes:
        event: What caused the change (e.g. "start_loan", "settle_by_force")
        tick: Simulated time the change was applied
        old: Contract before the change
        new: Contract after the change
    """
    event: str
    tick: int
    old: Contract
    new: Contract

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Map field name to (old, new) for every field that differs."""
        changes = {}
        for f in fields(Contract):
            old_val = getattr(self.old, f.name)
            new_val = getattr(self.new, f.name)
            if old_val != new_val:
                changes[f.name] = (old_val, new_val)
        return changes

    def __repr__(self) -> str:
        return (
            f"ContractChange({self.event}@{self.tick}: "
            f"{self.old.status.value}->{self.new.status.value})"
        )


class DebtBook:
    """
    Holder of the borrower's single contract and its change history.

    Thread Safety:
        Not thread-safe. The host serializes scheduler ticks and borrower
        commands; a concurrent host must put every apply() behind one lock.

    History:
        Every change holds two full Contract values. The history is unbounded
        unless max_history is given, in which case the oldest changes are
        dropped first.

    Example:
        book = DebtBook()
        book.apply("start_loan", start_loan(book.contract, config, 1000, now), now)
        book.contract.status  # DebtStatus.CURRENT
    """

    def __init__(
        self,
        contract: Optional[Contract] = None,
        last_raid_check_tick: int = 0,
        max_history: Optional[int] = None,
    ):
        """
        Args:
            contract: Starting contract; the empty NONE contract if omitted
            last_raid_check_tick: Expedition polling bookmark
            max_history: Keep only the most recent changes; None keeps all
        """
        if max_history is not None and max_history < 0:
            raise ValueError(f"max_history must be >= 0, got {max_history}")
        self._contract: Contract = contract if contract is not None else Contract()
        self.history: List[ContractChange] = []
        self.max_history = max_history
        self.last_raid_check_tick = last_raid_check_tick

    @property
    def contract(self) -> Contract:
        """The current contract value."""
        return self._contract

    def apply(self, event: str, new_contract: Contract, tick: int) -> Contract:
        """
        Replace the current contract and log the change.

        A transition that produced an identical value is not logged.

        Returns:
            The new current contract.
        """
        old = self._contract
        if new_contract == old:
            return old
        change = ContractChange(event=event, tick=tick, old=old, new=new_contract)
        self._contract = new_contract
        self.history.append(change)
        if self.max_history is not None and len(self.history) > self.max_history:
            del self.history[:len(self.history) - self.max_history]
        logger.debug("%r changed %s", change, sorted(change.changed_fields()))
        return new_contract

    def restore(self, contract: Contract, last_raid_check_tick: int = 0) -> None:
        """Install a loaded contract without recording a change."""
        self._contract = contract
        self.last_raid_check_tick = last_raid_check_tick

    def events(self) -> List[str]:
        """Event names of all recorded changes, in order."""
        return [change.event for change in self.history]

    def __repr__(self) -> str:
        c = self._contract
        return f"DebtBook(status={c.status.value}, principal={c.principal}, changes={len(self.history)})"
