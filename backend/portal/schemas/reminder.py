from pydantic import BaseModel


class ReminderRunResponse(BaseModel):
    """Outcome of one reminder sweep"""
    ok: bool = True
    skipped: bool = False  # Another run holds the lease
    processed: int = 0  # Stale invoices with an owner, handed to a reminder group
    emails_sent: int = 0  # Distinct owners notified
    invoices_marked: int = 0
