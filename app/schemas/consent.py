from pydantic import BaseModel
from typing import Optional

class ConsentPreferences(BaseModel):
    necessary: bool = True  # always stored as true
    analytics: bool = False
    marketing: bool = False
    location: bool = False

class ConsentPatch(BaseModel):
    analytics: Optional[bool] = None
    marketing: Optional[bool] = None
    location: Optional[bool] = None
