from enum import Enum

class TxType(str, Enum):
    TRANSFER = "TRANSFER"

    # Registry
    REGISTER_VALIDATOR = "REGISTER_VALIDATOR"
    ASSIGN_WALLET = "ASSIGN_WALLET"

    # Settlement
    UNLOCK_WALLET = "UNLOCK_WALLET"

    # Administration
    ADD_MANAGER = "ADD_MANAGER"
    REMOVE_MANAGER = "REMOVE_MANAGER"
    ADD_OPERATOR = "ADD_OPERATOR"
    SET_MAINTAINER_FEE = "SET_MAINTAINER_FEE"
    SET_MAINTAINER = "SET_MAINTAINER"

class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    OPERATOR = "operator"

class ProtocolError(Exception):
    pass

class ValidationError(ProtocolError):
    pass


class SettlementError(ProtocolError):
    """Base for operations rejected by the ledger. Always leaves state untouched."""
    reason = "settlement_error"
    message = "Settlement failed."

    def __init__(self, message: str = None):
        super().__init__(message or self.message)

class PermissionDenied(SettlementError):
    reason = "permission_denied"
    message = "Permission denied."

class NoWalletAssigned(SettlementError):
    reason = "no_wallet_assigned"
    message = "Validator must have a wallet assigned."

class AlreadyUnlocked(SettlementError):
    reason = "already_unlocked"
    message = "Wallet is already unlocked."

class InsufficientBalance(SettlementError):
    reason = "insufficient_balance"
    message = "Wallet has not enough ether in it."

class TransferFailed(SettlementError):
    reason = "transfer_failed"
    message = "Transfer failed."

    def __init__(self, recipient: str = None, role: str = "recipient"):
        super().__init__(f"Transfer to {recipient or 'unset ' + role} failed.")
        self.recipient = recipient
