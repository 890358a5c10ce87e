import hashlib

def sha256(data: bytes) -> bytes:
    """Returns SHA256 hash of bytes."""
    return hashlib.sha256(data).digest()

def sha256_hex(data: bytes) -> str:
    """Returns SHA256 hash of bytes as hex string."""
    return sha256(data).hex()

def hash160(data: bytes) -> bytes:
    """Returns a 20-byte digest used for addresses."""
    return sha256(sha256(data))[:20]
