from pydantic import BaseModel

class Account(BaseModel):
    address: str
    balance: int = 0
    nonce: int = 0

    # False for recipients that reject incoming ether (transfers to them fail)
    payable: bool = True
