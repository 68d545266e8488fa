from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, DateTime, Date
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from portal.database import Base

INVOICE_STATUSES = ("draft", "sent", "paid", "void")


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number = Column(String, nullable=True, index=True)  # Immutable once set
    sponsor_id = Column(Integer, ForeignKey("sponsors.id", ondelete="SET NULL"), nullable=True)
    contract_id = Column(Integer, ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)  # Sum of line items, never user-entered
    status = Column(String, nullable=False, default="draft", index=True)  # draft, sent, paid, void
    sent_date = Column(Date, nullable=True, index=True)
    paid_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)  # Set only by the reminder job
    created_by = Column(String, nullable=True, index=True)  # Owner (identity provider user id)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    sponsor = relationship("Sponsor")
    contract = relationship("Contract")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.line_no",
    )
