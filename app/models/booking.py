from decimal import Decimal
from sqlalchemy import String, Date, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime, timezone
from app.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), index=True)
    business_id: Mapped[str] = mapped_column(String(36), ForeignKey("businesses.id"), index=True)
    service_id: Mapped[str] = mapped_column(String(36), ForeignKey("services.id"), index=True)

    scheduled_date: Mapped[date] = mapped_column(Date, index=True)
    scheduled_time: Mapped[str] = mapped_column(String(5))  # HH:MM

    # copied from the service at booking time
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    status: Mapped[str] = mapped_column(String(20), default="PENDING", index=True)  # PENDING, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED
    payment_status: Mapped[str] = mapped_column(String(20), default="PENDING")     # PENDING, PAID, FAILED, REFUNDED

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
