import bech32 # type: ignore
from .hash import hash160
from typing import Tuple, Optional

def _encode(h20: bytes, prefix: str) -> str:
    # Convert to 5-bit words
    five_bit_r = bech32.convertbits(h20, 8, 5)
    if five_bit_r is None:
        raise ValueError("Error converting to bech32 words")

    return bech32.bech32_encode(prefix, five_bit_r)

def address_from_pubkey(pub_bytes: bytes, prefix: str = "sp") -> str:
    """Creates Bech32 account address from public key."""
    return _encode(hash160(pub_bytes), prefix)

def wallet_address(validator_id: str, prefix: str = "spwallet") -> str:
    """Deterministic custodial wallet address for a validator."""
    return _encode(hash160(b"wallet:" + bytes.fromhex(validator_id)), prefix)

def decode_address(addr: str) -> Tuple[str, bytes]:
    """Decodes Bech32 address to (prefix, h20_bytes)."""
    hrp, data = bech32.bech32_decode(addr)
    if hrp is None or data is None:
        raise ValueError("Invalid bech32 address")

    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None:
        raise ValueError("Error converting from bech32 words")

    return hrp, bytes(decoded)

def is_valid_address(addr: str, expected_prefix: Optional[str] = None) -> bool:
    try:
        hrp, _ = decode_address(addr)
        if expected_prefix and hrp != expected_prefix:
            return False
        return True
    except ValueError:
        return False
