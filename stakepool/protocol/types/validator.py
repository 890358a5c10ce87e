from pydantic import BaseModel
from typing import Optional

class Validator(BaseModel):
    validator_id: str                      # Hex SHA-256 of the validator public key
    pub_key: str                           # Hex encoded validator public key
    entity_id: str                         # Pool or private group that funded the deposit
    operator: Optional[str] = None         # Address that registered the validator

    # Custodial wallet receiving withdrawal proceeds (assigned once)
    wallet: Optional[str] = None

    # Per-validator override; None means the protocol-wide deposit amount
    deposit_amount: Optional[int] = None

class UnlockRecord(BaseModel):
    """Settlement outcome for one validator. Written once, never deleted."""
    validator_id: str
    unlocked: bool = False
    penalty: int = 0                       # 0 == no penalty applied

    # History of the settlement itself
    settled_balance: int = 0
    maintainer_reward: int = 0
