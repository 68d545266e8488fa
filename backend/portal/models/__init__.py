from portal.models.workspace import Workspace, WorkspaceMember
from portal.models.sponsor import Sponsor
from portal.models.contract import Contract
from portal.models.contact import Contact
from portal.models.obligation import Obligation
from portal.models.invoice import Invoice
from portal.models.invoice_item import InvoiceItem
from portal.models.billing_profile import BillingProfile
from portal.models.job_lease import JobLease

__all__ = ["Workspace", "WorkspaceMember", "Sponsor", "Contract", "Contact", "Obligation", "Invoice", "InvoiceItem", "BillingProfile", "JobLease"]
