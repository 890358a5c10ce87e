"""Shared helpers for ledger tests."""
import os
from typing import NamedTuple, Optional, Tuple

from stakepool.blockchain.core.validators import compute_entity_id, compute_validator_id
from stakepool.protocol.crypto.addresses import address_from_pubkey
from stakepool.protocol.crypto.keys import generate_private_key, public_key_from_private
from stakepool.protocol.types.tx import Transaction

DEPOSIT = 32 * 10**18

# Collector contracts that own entities
POOLS_ADDRESS = "sp1poolsxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"
GROUPS_ADDRESS = "sp1groupsxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"


class KeyPair(NamedTuple):
    priv: bytes
    pub: bytes
    address: str


def make_account(prefix: str = "sp") -> KeyPair:
    priv = generate_private_key()
    pub = public_key_from_private(priv)
    return KeyPair(priv, pub, address_from_pubkey(pub, prefix=prefix))


def ether(amount: str) -> int:
    """Converts a decimal ether string to wei without going through floats."""
    whole, _, frac = amount.partition(".")
    return int(whole) * 10**18 + int(frac.ljust(18, "0") or "0")


def pool_entity(index: int) -> str:
    return compute_entity_id(POOLS_ADDRESS, index)


def group_entity(index: int) -> str:
    return compute_entity_id(GROUPS_ADDRESS, index)


def create_validator(ledger, accounts, entity_id: Optional[str] = None, pub_key_hex: Optional[str] = None,
                     deposit_amount: Optional[int] = None) -> Tuple[str, str]:
    """Registers a validator and assigns its wallet. Returns (validator_id, wallet)."""
    pub_key_hex = pub_key_hex or os.urandom(48).hex()
    val = ledger.register_validator(
        pub_key_hex,
        entity_id or pool_entity(1),
        accounts["operator"].address,
        deposit_amount=deposit_amount,
    )
    assert val.validator_id == compute_validator_id(bytes.fromhex(pub_key_hex))
    wallet = ledger.assign_wallet(val.validator_id, accounts["manager"].address)
    return val.validator_id, wallet


def signed_tx(ledger, key: KeyPair, tx_type, nonce: Optional[int] = None, **fields) -> Transaction:
    if nonce is None:
        nonce = ledger.get_account(key.address).nonce
    tx = Transaction(
        tx_type=tx_type,
        from_address=key.address,
        nonce=nonce,
        pub_key=key.pub.hex(),
        **fields
    )
    tx.sign(key.priv)
    return tx
