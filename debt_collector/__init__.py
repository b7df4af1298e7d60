"""
debt_collector - Debt Lifecycle Engine

Lends currency to a borrower under time-driven interest and penalty terms,
escalates missed payments to collections, and settles unpaid debt by force.

Usage:
    from debt_collector import (
        DebtBook, DebtConfig, LifecycleEngine, LoanOffice, TICKS_PER_DAY,
    )

    book = DebtBook()
    config = DebtConfig()
    office = LoanOffice(book, lambda: config, notifier, home_reserves)
    engine = LifecycleEngine(book, lambda: config, notifier, enforcer)

    office.request_loan(1000, now=0)
    for tick in range(0, 4 * TICKS_PER_DAY, 250):
        engine.step(tick)

    result = office.pay_interest(now=3 * TICKS_PER_DAY)
    if not result.ok:
        print(result.reason)
"""

# Core types
from .core import (
    DebtStatus,
    Severity,
    RejectReason,
    CommandResult,
    CurrencyHolder,
    Notifier,
    Enforcer,
    DebtError,
    InvalidTransition,
    TICKS_PER_DAY,
    TICKS_PER_HOUR,
    MIN_RAID_DURATION_TICKS,
    RAID_CHECK_INTERVAL_TICKS,
    MIN_RAID_STRENGTH,
    LOAN_TIERS,
    ticks_from_days,
    ticks_from_hours,
    format_ticks_as_time,
)

# Configuration
from .config import DebtConfig, DEFAULT_CONFIG, CLAMP_RANGES

# Contract and accrual
from .contract import (
    Contract,
    DebtStatement,
    calculate_elapsed_days,
    calculate_base_interest,
    calculate_penalty_interest,
    calculate_missed_payment_periods,
    calculate_missed_fees,
    calculate_total_owed,
    calculate_payment_due,
    calculate_required_tribute,
    calculate_principal_reduction,
    calculate_statement,
    is_loan_term_expired,
    loan_term_end_tick,
    reset,
    start_loan,
    send_demand,
    apply_payment,
    pay_interest,
    pay_in_full,
    record_missed_deadline,
    trigger_collections,
    start_collections_raid,
    settle_by_force,
    pay_tribute,
)

# Book, scheduler, façade
from .book import DebtBook, ContractChange
from .lifecycle_engine import LifecycleEngine
from .office import LoanOffice
from .notices import Notice

# Persistence
from .persistence import (
    to_state_dict,
    load_contract,
    save_book,
    load_book,
    dumps,
    loads,
    MIGRATIONS,
    SNAPSHOT_VERSION,
)

from .logging import setup_logging, get_logger

__all__ = [
    # Core
    'DebtStatus', 'Severity', 'RejectReason', 'CommandResult',
    'CurrencyHolder', 'Notifier', 'Enforcer', 'DebtError', 'InvalidTransition',
    'TICKS_PER_DAY', 'TICKS_PER_HOUR', 'MIN_RAID_DURATION_TICKS',
    'RAID_CHECK_INTERVAL_TICKS', 'MIN_RAID_STRENGTH', 'LOAN_TIERS',
    'ticks_from_days', 'ticks_from_hours', 'format_ticks_as_time',
    # Configuration
    'DebtConfig', 'DEFAULT_CONFIG', 'CLAMP_RANGES',
    # Contract
    'Contract', 'DebtStatement',
    'calculate_elapsed_days', 'calculate_base_interest', 'calculate_penalty_interest',
    'calculate_missed_payment_periods', 'calculate_missed_fees', 'calculate_total_owed',
    'calculate_payment_due', 'calculate_required_tribute', 'calculate_principal_reduction',
    'calculate_statement', 'is_loan_term_expired', 'loan_term_end_tick',
    'reset', 'start_loan', 'send_demand', 'apply_payment', 'pay_interest', 'pay_in_full',
    'record_missed_deadline', 'trigger_collections', 'start_collections_raid',
    'settle_by_force', 'pay_tribute',
    # Book, scheduler, façade
    'DebtBook', 'ContractChange', 'LifecycleEngine', 'LoanOffice', 'Notice',
    # Persistence
    'to_state_dict', 'load_contract', 'save_book', 'load_book', 'dumps', 'loads',
    'MIGRATIONS', 'SNAPSHOT_VERSION',
    # Logging
    'setup_logging', 'get_logger',
]

__version__ = '1.0.0'
