import json
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from ..crypto.hash import sha256_hex
from .common import TxType
from ..crypto.keys import sign as crypto_sign

class Transaction(BaseModel):
    tx_type: TxType
    from_address: str
    to_address: Optional[str] = None     # Only for TRANSFER
    amount: int = 0                      # in wei
    nonce: int
    signature: str = ""                  # hex ECDSA, default empty
    pub_key: str = ""                    # hex public key of sender
    payload: Dict[str, Any] = Field(default_factory=dict)

    def hash(self) -> str:
        to_addr = self.to_address if self.to_address else ""

        payload_str = (
            self.tx_type.value
            + self.from_address
            + to_addr
            + str(self.amount)
            + str(self.nonce)
            + self.pub_key
            + json.dumps(self.payload, sort_keys=True, separators=(",", ":"))
        )
        return sha256_hex(payload_str.encode("utf-8"))

    def sign(self, priv_key_bytes: bytes):
        """Signs the transaction hash."""
        msg_hash = bytes.fromhex(self.hash())
        self.signature = crypto_sign(msg_hash, priv_key_bytes).hex()
