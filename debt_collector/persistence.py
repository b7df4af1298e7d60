"""
persistence.py - Contract Snapshots and Migrations

load_contract() is the ONLY function that turns a stored snapshot back
into a Contract; to_state_dict() is its inverse. Loading never raises:
missing or corrupt fields fall back to their defaults, legacy layouts are
migrated in order, and the result is repaired: negative amounts and ticks
are clamped to 0, and status and debt fields agree.

Snapshot layout (version 2):
    {
        "version": 2,
        "contract": {...flat contract fields...},
        "last_raid_check_tick": 0
    }

Version 1 snapshots are the bare flat contract mapping.
"""

from __future__ import annotations
from dataclasses import fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional
import json

from .book import DebtBook
from .contract import Contract
from .core import DebtStatus, to_decimal
from .logging import get_logger


logger = get_logger(__name__)


SNAPSHOT_VERSION = 2

_STATUS_ALIASES = {status.value.replace("_", ""): status for status in DebtStatus}


# ============================================================================
# FIELD READERS - Defaults Instead of Errors
# ============================================================================

def _read_int(raw: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = raw.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(to_decimal(value))
    except (TypeError, ValueError, ArithmeticError):
        logger.warning("Corrupt value for %s: %r; using %d", key, value, default)
        return default


def _read_bool(raw: Mapping[str, Any], key: str) -> bool:
    value = raw.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False


def _read_status(value: Any) -> Optional[DebtStatus]:
    """Parse a stored status; accepts "locked_out", "LockedOut", "LOCKED_OUT"."""
    if isinstance(value, DebtStatus):
        return value
    if not isinstance(value, str):
        return None
    return _STATUS_ALIASES.get(value.strip().replace("_", "").lower())


# ============================================================================
# MIGRATIONS - Applied In Order To The Parsed Fields
# ============================================================================

def _migrate_loan_start_tick(values: Dict[str, Any], raw: Mapping[str, Any]) -> None:
    """Older snapshots stored the receipt tick as loan_start_tick."""
    if 'loan_received_tick' not in raw and 'loan_start_tick' in raw:
        values['loan_received_tick'] = _read_int(raw, 'loan_start_tick')


def _migrate_original_principal(values: Dict[str, Any], raw: Mapping[str, Any]) -> None:
    """Contracts from before amortization tracked no original amount."""
    if values['original_principal'] <= 0 and values['principal'] > 0:
        values['original_principal'] = values['principal']


def _migrate_unknown_status(values: Dict[str, Any], raw: Mapping[str, Any]) -> None:
    if values['status'] is None:
        logger.warning("Unknown contract status %r; resetting to none", raw.get('status'))
        values['status'] = DebtStatus.NONE


MIGRATIONS: List[Callable[[Dict[str, Any], Mapping[str, Any]], None]] = [
    _migrate_loan_start_tick,
    _migrate_original_principal,
    _migrate_unknown_status,
]


_INT_FIELDS = tuple(f.name for f in fields(Contract) if f.type in ('int', int))


def _repair(contract: Contract) -> Contract:
    """Force status and debt fields back into agreement."""
    negative = {name: 0 for name in _INT_FIELDS if getattr(contract, name) < 0}
    if negative:
        logger.warning("Negative contract fields %s; clamping to 0", sorted(negative))
        contract = replace(contract, **negative)

    if not contract.is_open:
        return Contract(status=contract.status, last_loan_amount=contract.last_loan_amount)
    if contract.principal <= 0:
        logger.warning("Open %s contract with no principal; resetting to none", contract.status.value)
        return Contract(last_loan_amount=contract.last_loan_amount)
    if contract.status != DebtStatus.COLLECTIONS and contract.collections_raid_active:
        return replace(
            contract,
            collections_raid_active=False,
            collections_raid_start_tick=0,
            collections_raid_location_id=None,
        )
    return contract


# ============================================================================
# CONTRACT ADAPTERS
# ============================================================================

def to_state_dict(contract: Contract) -> Dict[str, Any]:
    """
    Convert a Contract to a flat, JSON-ready mapping.

    This is the inverse of load_contract().
    """
    state = {f.name: getattr(contract, f.name) for f in fields(Contract)}
    state['status'] = contract.status.value
    return state


def load_contract(raw: Optional[Mapping[str, Any]]) -> Contract:
    """
    Rebuild a Contract from a stored mapping.

    Args:
        raw: Flat contract fields as written by to_state_dict(), possibly
            from an older version, possibly damaged

    Returns:
        A Contract satisfying the status/debt-field invariants. An empty
        or unreadable mapping yields the empty NONE contract.
    """
    if not isinstance(raw, Mapping):
        return Contract()

    values: Dict[str, Any] = {}
    for f in fields(Contract):
        if f.name == 'status':
            values['status'] = _read_status(raw.get('status', DebtStatus.NONE.value))
        elif f.name == 'collections_raid_location_id':
            location = raw.get(f.name)
            values[f.name] = str(location) if location is not None else None
        elif f.type in ('bool', bool):
            values[f.name] = _read_bool(raw, f.name)
        else:
            values[f.name] = _read_int(raw, f.name)

    for migrate in MIGRATIONS:
        migrate(values, raw)

    return _repair(Contract(**values))


# ============================================================================
# BOOK SNAPSHOTS
# ============================================================================

def save_book(book: DebtBook) -> Dict[str, Any]:
    """Snapshot the current contract and the expedition polling bookmark."""
    return {
        'version': SNAPSHOT_VERSION,
        'contract': to_state_dict(book.contract),
        'last_raid_check_tick': book.last_raid_check_tick,
    }


def load_book(raw: Optional[Mapping[str, Any]]) -> DebtBook:
    """Rebuild a DebtBook from save_book() output or a bare version 1 contract."""
    if not isinstance(raw, Mapping):
        return DebtBook()
    if 'contract' in raw:
        contract = load_contract(raw.get('contract'))
        last_check = _read_int(raw, 'last_raid_check_tick')
    else:
        contract = load_contract(raw)
        last_check = 0
    return DebtBook(contract, last_raid_check_tick=last_check)


def dumps(book: DebtBook) -> str:
    return json.dumps(save_book(book), sort_keys=True)


def loads(text: str) -> DebtBook:
    """Parse dumps() output. Unreadable text yields an empty book."""
    try:
        raw = json.loads(text)
    except (TypeError, ValueError):
        logger.warning("Unreadable debt snapshot; starting with no contract")
        return DebtBook()
    return load_book(raw)
