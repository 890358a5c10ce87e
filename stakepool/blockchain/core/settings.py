"""
Admin-controlled protocol settings: maintainer address and maintainer fee.
"""
import logging

from .state import LedgerState
from .roles import RoleRegistry
from ...protocol.config.params import FEE_DENOMINATOR
from ...protocol.types.common import PermissionDenied, ValidationError
from ...protocol.types.events import MAINTAINER_FEE_UPDATED, MAINTAINER_UPDATED

logger = logging.getLogger(__name__)


class SettingsManager:
    def __init__(self, state: LedgerState, roles: RoleRegistry = None):
        self.state = state
        self.roles = roles if roles is not None else RoleRegistry(state)

    def set_maintainer_fee(self, fee: int, caller: str):
        if not self.roles.is_admin(caller):
            raise PermissionDenied()
        if not isinstance(fee, int) or isinstance(fee, bool) or not 0 <= fee <= FEE_DENOMINATOR:
            raise ValidationError(f"Maintainer fee must be an int in [0, {FEE_DENOMINATOR}], got {fee!r}")

        settings = self.state.get_settings().model_copy(update={"maintainer_fee": fee})
        self.state.set_settings(settings)
        self.state.emit(MAINTAINER_FEE_UPDATED, fee=fee)
        logger.info(f"Maintainer fee set to {fee} / {FEE_DENOMINATOR}")

    def set_maintainer(self, maintainer: str, caller: str):
        if not self.roles.is_admin(caller):
            raise PermissionDenied()
        if not maintainer:
            raise ValidationError("Maintainer address must not be empty")

        settings = self.state.get_settings().model_copy(update={"maintainer": maintainer})
        self.state.set_settings(settings)
        self.state.emit(MAINTAINER_UPDATED, maintainer=maintainer)
        logger.info(f"Maintainer set to {maintainer}")
