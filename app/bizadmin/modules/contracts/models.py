from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.bizadmin.models import Base

CONTRACT_STATUSES = ("PENDING", "ACTIVE", "COMPLETED", "CANCELLED")


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        Index("idx_contracts_customer_id", "customer_id"),
        Index("idx_contracts_status", "status"),
        CheckConstraint(
            "status IN ('PENDING','ACTIVE','COMPLETED','CANCELLED')",
            name="ck_contracts_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="PENDING")
    # Sum of line item final values; maintained by the line items service.
    total_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    customer = relationship("Customer", foreign_keys=[customer_id], lazy="selectin")

    @property
    def name(self) -> str:
        who = self.customer.name if self.customer is not None else "?"
        return f"#{self.id} - {who}"
