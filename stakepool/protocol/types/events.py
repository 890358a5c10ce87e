from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

# Event names as published on the event bus and stored in the event log
WALLET_ASSIGNED = "WalletAssigned"
WALLET_UNLOCKED = "WalletUnlocked"
MAINTAINER_WITHDRAWN = "MaintainerWithdrawn"
MAINTAINER_FEE_UPDATED = "MaintainerFeeUpdated"
MAINTAINER_UPDATED = "MaintainerUpdated"
VALIDATOR_REGISTERED = "ValidatorRegistered"
ROLE_GRANTED = "RoleGranted"
ROLE_REVOKED = "RoleRevoked"
TRANSFER = "Transfer"

class EventLog(BaseModel):
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    seq: Optional[int] = None   # Position in the durable log, set on commit
