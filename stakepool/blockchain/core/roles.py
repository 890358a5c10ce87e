"""
Role registry.

Answers capability checks ("is this address a manager?") from ledger state.
The settlement engine only depends on the RoleGate protocol, so any object
with an `is_manager` method can be injected in its place.
"""
from typing import Protocol
import logging

from .state import LedgerState
from ...protocol.types.common import Role, PermissionDenied, ValidationError
from ...protocol.types.events import ROLE_GRANTED, ROLE_REVOKED

logger = logging.getLogger(__name__)


class RoleGate(Protocol):
    def is_manager(self, address: str) -> bool:
        ...


class RoleRegistry:
    """Role grants stored in ledger state. Only the admin can change them."""

    def __init__(self, state: LedgerState):
        self.state = state

    def is_admin(self, address: str) -> bool:
        if not address:
            return False
        return self.state.get_settings().admin == address or self.state.has_role(Role.ADMIN, address)

    def is_manager(self, address: str) -> bool:
        return bool(address) and self.state.has_role(Role.MANAGER, address)

    def is_operator(self, address: str) -> bool:
        return bool(address) and self.state.has_role(Role.OPERATOR, address)

    def has_role(self, role: Role, address: str) -> bool:
        if role == Role.ADMIN:
            return self.is_admin(address)
        return bool(address) and self.state.has_role(role, address)

    def grant(self, role: Role, address: str, caller: str):
        if not self.is_admin(caller):
            raise PermissionDenied()
        if not address:
            raise ValidationError("Role holder address must not be empty")

        if self.state.has_role(role, address):
            return
        self.state.set_role(role, address, True)
        self.state.emit(ROLE_GRANTED, role=role.value, account=address)
        logger.info(f"Granted {role.value} to {address}")

    def revoke(self, role: Role, address: str, caller: str):
        if not self.is_admin(caller):
            raise PermissionDenied()

        if not self.state.has_role(role, address):
            return
        self.state.set_role(role, address, False)
        self.state.emit(ROLE_REVOKED, role=role.value, account=address)
        logger.info(f"Revoked {role.value} from {address}")
