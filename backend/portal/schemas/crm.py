"""
Schemas for the workspace records that feed invoices and the dashboard:
sponsors, contracts, contacts, obligations, billing profile and memberships.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

OBLIGATION_TYPE_PATTERN = "^(content|race|appearance|invoice|admin)$"
OBLIGATION_STATUS_PATTERN = "^(pending|in_progress|done|skipped)$"


class SponsorCreate(BaseModel):
    name: str
    notes: Optional[str] = None


class SponsorResponse(BaseModel):
    id: int
    name: str
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ContractCreate(BaseModel):
    sponsor_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    base_pay: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class ContractResponse(BaseModel):
    id: int
    sponsor_id: int
    start_date: Optional[date]
    end_date: Optional[date]
    base_pay: Optional[Decimal]
    notes: Optional[str]

    class Config:
        from_attributes = True


class ContactCreate(BaseModel):
    name: str
    sponsor_id: Optional[int] = None
    role: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_billing: bool = False
    last_touch_date: Optional[date] = None
    notes: Optional[str] = None


class ContactResponse(BaseModel):
    id: int
    sponsor_id: Optional[int]
    name: str
    role: Optional[str]
    company: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    is_billing: bool
    last_touch_date: Optional[date]
    notes: Optional[str]

    class Config:
        from_attributes = True


class ObligationCreate(BaseModel):
    title: str
    type: str = Field("content", pattern=OBLIGATION_TYPE_PATTERN)
    status: str = Field("pending", pattern=OBLIGATION_STATUS_PATTERN)
    due_date: Optional[date] = None
    sponsor_id: Optional[int] = None
    contract_id: Optional[int] = None
    notes: Optional[str] = None


class ObligationStatusUpdate(BaseModel):
    status: str = Field(..., pattern=OBLIGATION_STATUS_PATTERN)


class ObligationResponse(BaseModel):
    id: int
    title: str
    type: str
    due_date: Optional[date]
    status: str
    sponsor_id: Optional[int]
    contract_id: Optional[int]
    notes: Optional[str]

    class Config:
        from_attributes = True


class BillingProfileUpdate(BaseModel):
    business_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    payment_method: Optional[str] = None
    bank_name: Optional[str] = None
    account_name: Optional[str] = None
    account_number_last4: Optional[str] = Field(None, max_length=4)
    routing_number: Optional[str] = None
    payment_instructions: Optional[str] = None


class BillingProfileResponse(BillingProfileUpdate):
    id: int
    workspace_id: int

    class Config:
        from_attributes = True


class WorkspaceMembershipResponse(BaseModel):
    workspace_id: int
    workspace_name: Optional[str] = None
    role: Optional[str]
