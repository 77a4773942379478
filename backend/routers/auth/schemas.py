from pydantic import BaseModel
from typing import Optional


class CallerResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: str
    vendor_id: Optional[str] = None
    supplier_id: Optional[str] = None
