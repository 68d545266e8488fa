"""
Status Lifecycle Engine - derives the sent/paid dates implied by an invoice status.

Both the edit form and the quick status actions ("mark sent", "mark paid",
"void") go through derive_status_dates, so the same day always stores the
same dates regardless of which path set the status.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from portal.config import settings
from portal.errors import ValidationError
from portal.models.invoice import INVOICE_STATUSES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusDates:
    sent_date: Optional[date]
    paid_date: Optional[date]


def derive_status_dates(
    status: str,
    sent_date: Optional[date],
    paid_date: Optional[date],
    today: date,
) -> StatusDates:
    """
    Return the dates an invoice must carry after moving to `status`.

    | status | sent_date             | paid_date             |
    |--------|-----------------------|-----------------------|
    | draft  | cleared               | cleared               |
    | sent   | today if null         | cleared               |
    | paid   | today if null         | today if null         |
    | void   | unchanged             | unchanged             |
    """
    if status == "draft":
        return StatusDates(sent_date=None, paid_date=None)
    if status == "sent":
        return StatusDates(sent_date=sent_date or today, paid_date=None)
    if status == "paid":
        return StatusDates(sent_date=sent_date or today, paid_date=paid_date or today)
    if status == "void":
        return StatusDates(sent_date=sent_date, paid_date=paid_date)
    raise ValidationError(f"Unknown invoice status: {status}", code="InvalidInput")


def check_transition(current: Optional[str], target: str, allow_void_reopen: Optional[bool] = None) -> None:
    """
    Any status may be set directly. Reopening a voided invoice can be
    disabled with ALLOW_VOID_REOPEN=false.
    """
    if target not in INVOICE_STATUSES:
        raise ValidationError(f"Unknown invoice status: {target}", code="InvalidInput")

    if allow_void_reopen is None:
        allow_void_reopen = settings.allow_void_reopen

    if current == "void" and target != "void" and not allow_void_reopen:
        raise ValidationError(
            f"Invoice is void and cannot be moved to {target}",
            code="InvalidTransition",
        )


def apply_status(invoice, target: str, today: date, allow_void_reopen: Optional[bool] = None) -> None:
    """Set `target` on a stored invoice, deriving dates from what it currently holds."""
    check_transition(invoice.status, target, allow_void_reopen)

    dates = derive_status_dates(target, invoice.sent_date, invoice.paid_date, today)
    logger.info(f"Invoice {invoice.id}: status {invoice.status} -> {target}")

    invoice.status = target
    invoice.sent_date = dates.sent_date
    invoice.paid_date = dates.paid_date
