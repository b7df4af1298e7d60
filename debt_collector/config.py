"""
config.py - Configuration snapshot for the debt lifecycle engine

DebtConfig is a frozen value. The engine and the office re-read it from a
settings callable on every invocation, so a settings screen may swap the
snapshot between ticks without touching in-progress contract state.

Clamping to sane ranges is the configuration owner's job: call clamped()
after accepting user input. The engine itself uses values as given.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Tuple
import os

from .core import to_decimal


# field -> (low, high); 0 is always accepted for loan_term_days and
# max_loan_amount, where it disables the term and the cap.
CLAMP_RANGES: Dict[str, Tuple[Decimal, Decimal]] = {
    'interest_rate_per_day': (Decimal("0.001"), Decimal("0.20")),
    'late_penalty_rate_per_day': (Decimal("0"), Decimal("0.20")),
    'interest_interval_days': (Decimal("1"), Decimal("15")),
    'interest_payment_window_hours': (Decimal("6"), Decimal("72")),
    'grace_missed_payments': (Decimal("1"), Decimal("5")),
    'collections_deadline_hours': (Decimal("6"), Decimal("48")),
    'loan_term_days': (Decimal("7"), Decimal("90")),
    'principal_reduction_per_payment': (Decimal("0.01"), Decimal("0.20")),
    'missed_payment_fee': (Decimal("0"), Decimal("1000")),
    'tribute_multiplier': (Decimal("0.5"), Decimal("5")),
    'raid_strength_multiplier': (Decimal("0.5"), Decimal("5")),
    'max_loan_amount': (Decimal("0"), Decimal("100000")),
}

_INT_FIELDS = frozenset({
    'grace_missed_payments', 'loan_term_days', 'missed_payment_fee', 'max_loan_amount',
})

_ZERO_DISABLES = frozenset({'loan_term_days', 'max_loan_amount'})


@dataclass(frozen=True, slots=True)
class DebtConfig:
    """
    Read-only terms the creditor applies to every contract.

    Rates are per simulated day. Intervals are in days, windows and
    deadlines in hours. Money figures are whole currency units.
    """
    interest_rate_per_day: Decimal = Decimal("0.02")
    late_penalty_rate_per_day: Decimal = Decimal("0.01")
    interest_interval_days: Decimal = Decimal("3")
    interest_payment_window_hours: Decimal = Decimal("24")
    grace_missed_payments: int = 2
    collections_deadline_hours: Decimal = Decimal("18")
    loan_term_days: int = 30
    principal_reduction_per_payment: Decimal = Decimal("0.05")
    missed_payment_fee: int = 50
    tribute_multiplier: Decimal = Decimal("1.5")
    raid_strength_multiplier: Decimal = Decimal("1.5")
    max_loan_amount: int = 5000

    def __post_init__(self):
        """Convert float values to Decimal and whole-unit fields to int."""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _INT_FIELDS:
                if not isinstance(value, int) or isinstance(value, bool):
                    object.__setattr__(self, f.name, int(to_decimal(value)))
            elif not isinstance(value, Decimal):
                object.__setattr__(self, f.name, to_decimal(value))

    def clamped(self) -> DebtConfig:
        """Return a copy with every field forced into its allowed range."""
        updates: Dict[str, Any] = {}
        for name, (low, high) in CLAMP_RANGES.items():
            value = to_decimal(getattr(self, name))
            if name in _ZERO_DISABLES and value <= 0:
                clamped = Decimal("0")
            else:
                clamped = min(max(value, low), high)
            updates[name] = int(clamped) if name in _INT_FIELDS else clamped
        return replace(self, **updates)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> DebtConfig:
        """Build a config from a flat mapping; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in raw.items() if k in known and v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_env(cls, prefix: str = "DEBT_COLLECTOR_") -> DebtConfig:
        """Create config from environment variables, e.g. DEBT_COLLECTOR_LOAN_TERM_DAYS."""
        raw = {}
        for f in fields(cls):
            value = os.getenv(prefix + f.name.upper())
            if value is not None:
                raw[f.name] = value
        return cls.from_dict(raw)


DEFAULT_CONFIG = DebtConfig()
