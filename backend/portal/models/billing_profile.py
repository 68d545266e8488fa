from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from portal.database import Base


class BillingProfile(Base):
    """The "From" block printed on invoice PDFs, one per workspace"""
    __tablename__ = "workspace_billing_profiles"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, unique=True)

    business_name = Column(String, nullable=True)
    contact_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)

    address_line1 = Column(String, nullable=True)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    country = Column(String, nullable=True)

    payment_method = Column(String, nullable=True)  # ACH / Wire / Check
    bank_name = Column(String, nullable=True)
    account_name = Column(String, nullable=True)
    account_number_last4 = Column(String, nullable=True)
    routing_number = Column(String, nullable=True)
    payment_instructions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
