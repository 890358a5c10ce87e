"""
Validator registry: validator ids, owning entities, and custodial wallets.
"""
from typing import Optional
import logging

from .state import LedgerState
from .roles import RoleGate, RoleRegistry
from ...protocol.crypto.hash import sha256_hex
from ...protocol.crypto.addresses import wallet_address
from ...protocol.types.common import PermissionDenied, ValidationError
from ...protocol.types.events import VALIDATOR_REGISTERED, WALLET_ASSIGNED
from ...protocol.types.validator import Validator

logger = logging.getLogger(__name__)


def compute_validator_id(pub_key_bytes: bytes) -> str:
    return sha256_hex(pub_key_bytes)


def compute_entity_id(collector_address: str, index: int) -> str:
    """Id of the pool or private group number `index` of a collector."""
    return sha256_hex(collector_address.encode("utf-8") + index.to_bytes(32, "big"))


class ValidatorRegistry:
    def __init__(self, state: LedgerState, roles: Optional[RoleRegistry] = None, wallet_prefix: str = "spwallet",
                 manager_gate: Optional[RoleGate] = None):
        self.state = state
        self.roles = roles if roles is not None else RoleRegistry(state)
        self.wallet_prefix = wallet_prefix
        # Manager check for wallet assignment; operators always come from state roles
        self.manager_gate = manager_gate if manager_gate is not None else self.roles

    def register_validator(self, pub_key_hex: str, entity_id: str, caller: str,
                           deposit_amount: Optional[int] = None) -> Validator:
        """Registers a validator funded by `entity_id`. Operators only."""
        if not self.roles.is_operator(caller):
            raise PermissionDenied()

        try:
            pub_bytes = bytes.fromhex(pub_key_hex)
        except ValueError:
            raise ValidationError("Validator public key must be hex encoded")
        if not pub_bytes:
            raise ValidationError("Validator public key must not be empty")
        if not entity_id:
            raise ValidationError("Validator must belong to an entity")
        if deposit_amount is not None:
            if not isinstance(deposit_amount, int) or isinstance(deposit_amount, bool):
                raise ValidationError(f"Deposit amount must be an int, got {deposit_amount!r}")
            if deposit_amount <= 0:
                raise ValidationError(f"Invalid deposit amount: {deposit_amount}")

        validator_id = compute_validator_id(pub_bytes)
        if self.state.get_validator(validator_id):
            raise ValidationError(f"Validator {validator_id} already registered")

        val = Validator(
            validator_id=validator_id,
            pub_key=pub_key_hex,
            entity_id=entity_id,
            operator=caller,
            deposit_amount=deposit_amount,
        )
        self.state.set_validator(val)
        self.state.emit(VALIDATOR_REGISTERED, validator_id=validator_id, entity_id=entity_id)
        logger.info(f"Registered validator {validator_id[:16]}... for entity {entity_id[:16]}...")
        return val

    def assign_wallet(self, validator_id: str, caller: str) -> str:
        """Assigns the custodial wallet for a validator. Managers only, once."""
        if not self.manager_gate.is_manager(caller):
            raise PermissionDenied()

        val = self.state.get_validator(validator_id)
        if not val:
            raise ValidationError(f"Validator {validator_id} not found")
        if val.wallet:
            raise ValidationError(f"Validator {validator_id} already has a wallet assigned")

        val.wallet = wallet_address(validator_id, prefix=self.wallet_prefix)
        self.state.set_validator(val)
        self.state.emit(WALLET_ASSIGNED, validator_id=validator_id, wallet=val.wallet)
        logger.info(f"Assigned wallet {val.wallet} to validator {validator_id[:16]}...")
        return val.wallet

    def get_assigned_wallet(self, validator_id: str) -> Optional[str]:
        val = self.state.get_validator(validator_id)
        return val.wallet if val else None

    def get_entity_id(self, validator_id: str) -> Optional[str]:
        val = self.state.get_validator(validator_id)
        return val.entity_id if val else None

    def get_deposit_amount(self, validator_id: str) -> int:
        val = self.state.get_validator(validator_id)
        if val and val.deposit_amount is not None:
            return val.deposit_amount
        return self.state.get_settings().validator_deposit_amount
