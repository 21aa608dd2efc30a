from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, Literal

class AddressIn(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zipCode: str = Field(min_length=1)
    country: str = Field(min_length=1)

class DayHours(BaseModel):
    open: str
    close: str
    isOpen: bool

class WorkingHours(BaseModel):
    monday: DayHours
    tuesday: DayHours
    wednesday: DayHours
    thursday: DayHours
    friday: DayHours
    saturday: DayHours
    sunday: DayHours

class BusinessCreate(BaseModel):
    businessName: str = Field(min_length=1)
    description: Optional[str] = None
    # provider role vocabulary; mapped to a business type on creation
    businessType: Literal["GARAGE_OWNER", "FREELANCE_MECHANIC", "SPAREPARTS_SHOP"]
    licenseNumber: Optional[str] = None
    address: AddressIn
    workingHours: WorkingHours

class ServiceCreate(BaseModel):
    businessId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    duration: int = Field(default=60, ge=1)
