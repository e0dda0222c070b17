import uuid
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Boolean, Numeric, Uuid, text
from sqlalchemy.orm import relationship
from gst_compliance.infrastructure.db.base import Base


class Lut(Base):
    __tablename__ = "luts"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    lut_number = Column(String(50), nullable=False)
    lut_date = Column(Date, nullable=False)
    valid_from = Column(Date, nullable=False)
    valid_till = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    reminder_sent_at = Column(DateTime(timezone=True))
    renewal_reminder_sent_at = Column(DateTime(timezone=True))
    previous_lut_id = Column(Uuid(as_uuid=True), ForeignKey("luts.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    invoices = relationship("Invoice", back_populates="lut")


class Invoice(Base):
    """Outward invoices and RCM self-invoices."""
    __tablename__ = "invoices"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    invoice_number = Column(String(50))
    invoice_type = Column(String(20), nullable=False)   # EXPORT | DOMESTIC_B2B | DOMESTIC_B2C | SELF_INVOICE
    is_rcm = Column(Boolean, nullable=False, default=False)
    rcm_type = Column(String(30))                        # IMPORT_OF_SERVICES | INDIAN_UNREGISTERED
    client_country = Column(String(60))
    client_gstin = Column(String(15))
    lut_id = Column(Uuid(as_uuid=True), ForeignKey("luts.id"))
    invoice_date = Column(Date, nullable=False)
    total_inr = Column(Numeric(14, 2), nullable=False, default=0)
    igst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    sgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    payment_voucher_id = Column(String(50))
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    lut = relationship("Lut", back_populates="invoices")


class PurchaseInvoice(Base):
    """Inward supplies from registered vendors (ordinary ITC)."""
    __tablename__ = "purchase_invoices"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    vendor_gstin = Column(String(15))
    invoice_date = Column(Date, nullable=False)
    taxable_value = Column(Numeric(14, 2), nullable=False, default=0)
    igst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    cgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    sgst_amount = Column(Numeric(14, 2), nullable=False, default=0)
    itc_eligible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
