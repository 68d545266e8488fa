"""
Trigger for the invoice reminder sweep, called by an external scheduler.
"""
import hmac
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from portal.config import settings
from portal.database import get_db
from portal.deps import get_email_sender, get_identity, get_today
from portal.errors import AuthorizationError
from portal.schemas.reminder import ReminderRunResponse
from portal.services.reminder_service import ReminderJob
from portal.utils.dates import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    expected = settings.cron_secret
    if not expected or not x_cron_secret or not hmac.compare_digest(x_cron_secret, expected):
        logger.warning("Rejected reminder trigger with missing or wrong secret")
        raise AuthorizationError("Unauthorized")


@router.post("/invoice-reminders", response_model=ReminderRunResponse, dependencies=[Depends(verify_cron_secret)])
def run_invoice_reminders(
    today: date = Depends(get_today),
    identity=Depends(get_identity),
    email_sender=Depends(get_email_sender),
    db: Session = Depends(get_db)
):
    """Email each owner about their invoices unpaid 30+ days after sending"""
    job = ReminderJob(identity=identity, email_sender=email_sender)
    return job.run(db, today=today, now=utc_now())
