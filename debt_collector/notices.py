"""
notices.py - Notification catalogue

Every notification the engine and the office emit, as (title_key,
body_key, severity). Keys are resolved to localized text by the host;
positional args are documented per notice.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from .core import Notifier, Severity


@dataclass(frozen=True, slots=True)
class Notice:
    title_key: str
    body_key: str
    severity: Severity

    def send(self, notifier: Notifier, *args: Any) -> None:
        notifier.send(self.title_key, self.body_key, self.severity, *args)


# args: amount, first payment estimate, interval days
LOAN_GRANTED = Notice("DC_Letter_LoanGranted_Title", "DC_Letter_LoanGranted_Text", Severity.POSITIVE)

# args: payment due
PAYMENT_DUE = Notice("DC_Letter_InterestDue_Title", "DC_Letter_InterestDue_Text", Severity.NEUTRAL)

# args: missed count, fees, penalty rate percent (one decimal)
PAYMENT_MISSED = Notice("DC_Letter_PaymentMissed_Title", "DC_Letter_PaymentMissed_Text", Severity.NEGATIVE)

# args: total owed, loan term days
TERM_EXPIRED = Notice("DC_Letter_LoanTermExpired_Title", "DC_Letter_LoanTermExpired_Text", Severity.THREAT)

# args: missed count, grace limit, total owed
GRACE_EXCEEDED = Notice("DC_Letter_GraceLimitExceeded_Title", "DC_Letter_GraceLimitExceeded_Text", Severity.THREAT)

# no args
DEBT_SETTLED = Notice("DC_Letter_DebtSettled_Title", "DC_Letter_DebtSettled_Text", Severity.NEUTRAL)

# args: amount paid
PAYMENT_RECEIVED = Notice("DC_Message_PaymentSuccess_Title", "DC_Message_PaymentSuccess", Severity.POSITIVE)

# args: tribute paid
TRIBUTE_ACCEPTED = Notice("DC_Letter_TributeSent_Title", "DC_Letter_TributeSent_Text", Severity.POSITIVE)
