from datetime import date
from pydantic import BaseModel, Field
from typing import Optional
from app.models.enums import BookingStatus, PaymentStatus

class BookingCreate(BaseModel):
    serviceId: str = Field(min_length=1)
    businessId: str = Field(min_length=1)
    scheduledDate: date
    scheduledTime: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")  # HH:MM
    notes: Optional[str] = None

class BookingStatusUpdate(BaseModel):
    status: BookingStatus

class PaymentStatusUpdate(BaseModel):
    paymentStatus: PaymentStatus

class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = ""
