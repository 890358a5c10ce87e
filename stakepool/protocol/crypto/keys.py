from ecdsa import SigningKey, VerifyingKey, SECP256k1, BadSignatureError # type: ignore
from ecdsa.keys import MalformedPointError # type: ignore
import os

SIGNATURE_SIZE = 64


def _sigencode(r: int, s: int, order: int) -> bytes:
    return r.to_bytes(32, 'big') + s.to_bytes(32, 'big')


def _sigdecode(sig: bytes, order: int):
    if len(sig) != SIGNATURE_SIZE:
        raise BadSignatureError(f"Expected {SIGNATURE_SIZE}-byte signature, got {len(sig)}")
    return int.from_bytes(sig[:32], 'big'), int.from_bytes(sig[32:], 'big')


def generate_private_key() -> bytes:
    """Generates a random secp256k1 private key."""
    # Rejection-sample so the key is always inside the curve order
    while True:
        candidate = os.urandom(32)
        if 0 < int.from_bytes(candidate, 'big') < SECP256k1.order:
            return candidate


def public_key_from_private(priv_bytes: bytes) -> bytes:
    """Returns the compressed 33-byte public key."""
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    return sk.get_verifying_key().to_string("compressed")


def sign(message_hash: bytes, priv_bytes: bytes) -> bytes:
    """Signs a 32-byte digest. Returns the 64-byte r||s signature."""
    sk = SigningKey.from_string(priv_bytes, curve=SECP256k1)
    return sk.sign_digest(message_hash, sigencode=_sigencode)


def verify(message_hash: bytes, signature: bytes, pub_bytes: bytes) -> bool:
    try:
        vk = VerifyingKey.from_string(pub_bytes, curve=SECP256k1)
        return vk.verify_digest(signature, message_hash, sigdecode=_sigdecode)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False
