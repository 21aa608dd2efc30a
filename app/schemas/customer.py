from pydantic import BaseModel, Field
from typing import Optional

class VehicleIn(BaseModel):
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    vin: Optional[str] = None
