from pydantic import BaseModel, Field
from typing import Optional
from ..config.params import FEE_DENOMINATOR

class ProtocolSettings(BaseModel):
    """Protocol-wide parameters read by the settlement engine."""
    admin: Optional[str] = None
    maintainer: Optional[str] = None
    maintainer_fee: int = Field(default=0, ge=0, le=FEE_DENOMINATOR)   # basis points
    validator_deposit_amount: int = Field(gt=0)
