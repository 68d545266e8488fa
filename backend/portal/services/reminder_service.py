"""
Reminder Batch Job - one email per owner listing their stale unpaid invoices.

A stale invoice is `sent`, unpaid, never reminded, and was sent at least
REMINDER_STALE_DAYS ago. An owner's invoices are marked reminded only after
the email provider confirms delivery, so a failed send leaves them eligible
for the next run. The job does not schedule itself; an external cron calls
the trigger endpoint.
"""
import html
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.config import settings
from portal.errors import DependencyError
from portal.models.invoice import Invoice
from portal.models.job_lease import JobLease
from portal.models.sponsor import Sponsor
from portal.schemas.reminder import ReminderRunResponse
from portal.utils.dates import add_days
from portal.utils.money import format_money

logger = logging.getLogger(__name__)

LEASE_NAME = "invoice-reminders"
UNKNOWN_SPONSOR = "Unknown sponsor"


@dataclass
class ReminderMessage:
    to: str
    subject: str
    html: str


def select_stale_invoices(db: Session, today: date, stale_days: int, limit: int) -> List[Invoice]:
    cutoff = add_days(today, -stale_days)
    return db.query(Invoice).filter(
        Invoice.status == "sent",
        Invoice.paid_date.is_(None),
        Invoice.reminder_sent_at.is_(None),
        Invoice.sent_date.isnot(None),
        Invoice.sent_date <= cutoff
    ).order_by(Invoice.sent_date.asc(), Invoice.id.asc()).limit(limit).all()


def group_by_owner(invoices: List[Invoice]) -> Dict[str, List[Invoice]]:
    """Owner id -> invoices, in selection order. Ownerless invoices are dropped."""
    groups: Dict[str, List[Invoice]] = {}
    for invoice in invoices:
        if not invoice.created_by:
            logger.warning(f"Invoice {invoice.id} has no owner - skipping reminder")
            continue
        groups.setdefault(invoice.created_by, []).append(invoice)
    return groups


def compose_reminder(to: str, invoices: List[Invoice], sponsor_names: Dict[int, str], stale_days: int) -> ReminderMessage:
    lines = []
    for invoice in invoices:
        sponsor = sponsor_names.get(invoice.sponsor_id) if invoice.sponsor_id else None
        label = html.escape(sponsor or UNKNOWN_SPONSOR)
        sent = invoice.sent_date.isoformat() if invoice.sent_date else "—"
        lines.append(f"• {label} — {format_money(invoice.amount)} (sent {sent})")

    count = len(invoices)
    subject = f"Invoice reminder: {count} unpaid invoice{'' if count == 1 else 's'} ({stale_days}+ days)"
    body = f"""
      <div style="font-family: ui-sans-serif, system-ui, -apple-system; line-height: 1.5;">
        <p>Hi,</p>
        <p>Quick reminder: these invoices have been <b>unpaid for {stale_days}+ days</b> after being sent:</p>
        <pre style="background:#0b1220;color:#e6edf3;padding:12px;border-radius:10px;overflow:auto;">{chr(10).join(lines)}</pre>
        <p>If you've already been paid, mark them as paid in the portal.</p>
        <p>{html.escape(settings.app_name)}</p>
      </div>
    """
    return ReminderMessage(to=to, subject=subject, html=body)


def acquire_lease(db: Session, name: str, holder: str, now: datetime, seconds: int) -> bool:
    """Claim `name` until now + seconds unless someone else holds an unexpired claim"""
    expires_at = now + timedelta(seconds=seconds)

    claimed = db.query(JobLease).filter(
        JobLease.name == name,
        JobLease.expires_at < now
    ).update({"holder": holder, "expires_at": expires_at}, synchronize_session=False)
    if claimed:
        db.commit()
        return True

    if db.query(JobLease).filter(JobLease.name == name).first():
        db.rollback()
        return False

    db.add(JobLease(name=name, holder=holder, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


def release_lease(db: Session, name: str, holder: str) -> None:
    db.query(JobLease).filter(JobLease.name == name, JobLease.holder == holder).delete(synchronize_session=False)
    db.commit()


class ReminderJob:
    """One sweep of stale invoices. Groups are processed one at a time."""

    def __init__(
        self,
        identity,
        email_sender,
        from_email: Optional[str] = None,
        stale_days: Optional[int] = None,
        batch_limit: Optional[int] = None,
        lease_seconds: Optional[int] = None,
    ):
        self.identity = identity
        self.email_sender = email_sender
        self.from_email = from_email or settings.reminder_from_email
        self.stale_days = settings.reminder_stale_days if stale_days is None else stale_days
        self.batch_limit = settings.reminder_batch_limit if batch_limit is None else batch_limit
        self.lease_seconds = settings.reminder_lease_seconds if lease_seconds is None else lease_seconds

    def run(self, db: Session, today: date, now: datetime) -> ReminderRunResponse:
        if not self.from_email:
            raise DependencyError("REMINDER_FROM_EMAIL not configured")

        if self.lease_seconds <= 0:
            return self._sweep(db, today, now)

        holder = uuid.uuid4().hex
        try:
            acquired = acquire_lease(db, LEASE_NAME, holder, now, self.lease_seconds)
        except SQLAlchemyError as e:
            db.rollback()
            raise DependencyError("Failed to claim reminder lease") from e
        if not acquired:
            logger.info("Reminder run skipped: another run holds the lease")
            return ReminderRunResponse(skipped=True)

        try:
            return self._sweep(db, today, now)
        finally:
            try:
                release_lease(db, LEASE_NAME, holder)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to release reminder lease (expires on its own): {e}")

    def _sweep(self, db: Session, today: date, now: datetime) -> ReminderRunResponse:
        try:
            invoices = select_stale_invoices(db, today, self.stale_days, self.batch_limit)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to select stale invoices: {e}")
            raise DependencyError("Failed to select stale invoices") from e

        if not invoices:
            logger.info("Reminder run: no stale invoices")
            return ReminderRunResponse(processed=0)

        groups = group_by_owner(invoices)
        processed = sum(len(owner_invoices) for owner_invoices in groups.values())
        if not groups:
            logger.info(f"Reminder run: {len(invoices)} stale invoices, none with an owner")
            return ReminderRunResponse(processed=0)

        names = self._sponsor_names(db, invoices)
        emails = self.identity.list_user_emails()

        emails_sent = 0
        invoices_marked = 0
        for owner_id, owner_invoices in groups.items():
            to = emails.get(owner_id)
            if not to:
                logger.warning(f"No email address for owner {owner_id} - skipping {len(owner_invoices)} invoices")
                continue

            message = compose_reminder(to, owner_invoices, names, self.stale_days)
            try:
                self.email_sender.send_email(self.from_email, message.to, message.subject, message.html)
            except Exception as e:
                logger.error(f"Reminder to owner {owner_id} failed, will retry next run: {e}")
                continue

            for invoice in owner_invoices:
                invoice.reminder_sent_at = now
            try:
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Reminder sent to owner {owner_id} but marking failed, invoices stay eligible: {e}")
                continue

            emails_sent += 1
            invoices_marked += len(owner_invoices)

        logger.info(f"Reminder run: {processed} stale invoices, {emails_sent} emails sent, {invoices_marked} invoices marked")
        return ReminderRunResponse(
            processed=processed,
            emails_sent=emails_sent,
            invoices_marked=invoices_marked,
        )

    def _sponsor_names(self, db: Session, invoices: List[Invoice]) -> Dict[int, str]:
        """Best effort: a failed lookup falls back to the placeholder label"""
        sponsor_ids = sorted({i.sponsor_id for i in invoices if i.sponsor_id})
        if not sponsor_ids:
            return {}
        try:
            rows = db.query(Sponsor.id, Sponsor.name).filter(Sponsor.id.in_(sponsor_ids)).all()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Sponsor lookup failed, using placeholder names: {e}")
            return {}
        return {sponsor_id: name for sponsor_id, name in rows}
