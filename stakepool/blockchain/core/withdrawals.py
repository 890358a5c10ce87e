# MIT License
# Copyright (c) 2025 Hashborn

"""
Wallet unlock settlement.

Once a validator's withdrawal lands in its custodial wallet, a manager unlocks
the wallet. Unlocking happens exactly once per validator and records the
penalty (if the validator returned less than its deposit) or pays the
maintainer its fee on the profit.

Withdrawals works on a LedgerState. Callers are expected to run it against a
cloned state and only persist the clone if unlock_wallet returns, which is what
Ledger does.
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from .state import LedgerState
from .roles import RoleGate, RoleRegistry
from .settlement import Settlement, compute_settlement
from .validators import ValidatorRegistry
from ...protocol.types.common import (
    PermissionDenied,
    NoWalletAssigned,
    AlreadyUnlocked,
    InsufficientBalance,
    TransferFailed,
)
from ...protocol.types.events import EventLog, WALLET_UNLOCKED, MAINTAINER_WITHDRAWN

logger = logging.getLogger(__name__)


@dataclass
class UnlockResult:
    validator_id: str
    wallet: str
    entity_id: str
    maintainer: Optional[str]
    settlement: Settlement
    logs: List[EventLog] = field(default_factory=list)   # filled in once committed

    @property
    def penalty(self) -> int:
        return self.settlement.penalty

    @property
    def maintainer_reward(self) -> int:
        return self.settlement.maintainer_reward


class Withdrawals:
    def __init__(self, state: LedgerState, roles: Optional[RoleGate] = None,
                 registry: Optional[ValidatorRegistry] = None):
        """
        Args:
            state: Ledger state to read from and mutate
            roles: Capability check for the manager role (defaults to state roles)
            registry: Validator/wallet lookups (defaults to state registry)
        """
        self.state = state
        self.roles = roles if roles is not None else RoleRegistry(state)
        self.registry = registry if registry is not None else ValidatorRegistry(state)

    def unlock_wallet(self, validator_id: str, caller: str) -> UnlockResult:
        """
        Settles the validator's wallet and marks it unlocked.

        Raises:
            PermissionDenied: caller is not a manager
            NoWalletAssigned: unknown validator or no wallet yet
            AlreadyUnlocked: wallet was unlocked before
            InsufficientBalance: wallet holds no ether
            TransferFailed: maintainer rejected its reward
        """
        if not self.roles.is_manager(caller):
            raise PermissionDenied()

        wallet = self.registry.get_assigned_wallet(validator_id)
        if not wallet:
            raise NoWalletAssigned()

        record = self.state.get_unlock_record(validator_id)
        if record.unlocked:
            raise AlreadyUnlocked()

        balance = self.state.get_account(wallet).balance
        if balance == 0:
            raise InsufficientBalance()

        settings = self.state.get_settings()
        settlement = compute_settlement(
            balance,
            self.registry.get_deposit_amount(validator_id),
            settings.maintainer_fee,
        )
        entity_id = self.registry.get_entity_id(validator_id)

        record = record.model_copy(update={
            "unlocked": True,
            "penalty": settlement.penalty,
            "settled_balance": balance,
            "maintainer_reward": settlement.maintainer_reward,
        })
        self.state.set_unlock_record(record)

        if settlement.maintainer_reward > 0:
            if not settings.maintainer:
                raise TransferFailed(role="maintainer")
            self.state.transfer(wallet, settings.maintainer, settlement.maintainer_reward)
            self.state.emit(
                MAINTAINER_WITHDRAWN,
                maintainer=settings.maintainer,
                entity_id=entity_id,
                amount=settlement.maintainer_reward,
            )

        self.state.emit(WALLET_UNLOCKED, wallet=wallet)

        logger.info(
            f"Unlocked wallet {wallet} for validator {validator_id[:16]}... "
            f"(balance={balance}, penalty={settlement.penalty}, reward={settlement.maintainer_reward})"
        )
        return UnlockResult(
            validator_id=validator_id,
            wallet=wallet,
            entity_id=entity_id,
            maintainer=settings.maintainer,
            settlement=settlement,
        )

    def penalty_of(self, validator_id: str) -> int:
        return self.state.get_unlock_record(validator_id).penalty

    def is_unlocked(self, validator_id: str) -> bool:
        return self.state.get_unlock_record(validator_id).unlocked
