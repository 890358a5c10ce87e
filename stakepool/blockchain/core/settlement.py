# MIT License
# Copyright (c) 2025 Hashborn

"""
Withdrawal settlement arithmetic (deterministic, integer-only).

Splits a validator wallet's balance into what depositors keep and what the
maintainer earns. All division truncates, so remainder wei always stays with
the depositors.

Penalty branch (balance < deposit):
    penalty = floor(balance * PENALTY_UNIT / deposit), no maintainer reward
Profit branch (balance >= deposit):
    penalty = 0
    reward  = floor((balance - deposit) * fee / FEE_DENOMINATOR)
"""

from dataclasses import dataclass

from ...protocol.config.params import FEE_DENOMINATOR, PENALTY_UNIT
from ...protocol.types.common import ValidationError


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{name} must be an int")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative: {value}")


@dataclass(frozen=True)
class Settlement:
    """Outcome of settling one wallet."""

    wallet_balance: int
    deposit_amount: int
    penalty: int
    maintainer_reward: int

    @property
    def net_to_wallet(self) -> int:
        return self.wallet_balance - self.maintainer_reward

    @property
    def profit(self) -> int:
        return max(self.wallet_balance - self.deposit_amount, 0)

    @property
    def is_penalized(self) -> bool:
        return self.wallet_balance < self.deposit_amount

    @property
    def outcome(self) -> str:
        if self.is_penalized:
            return "penalty"
        return "profit" if self.profit > 0 else "break_even"


def compute_penalty(wallet_balance: int, deposit_amount: int) -> int:
    """Fraction of the deposit actually returned, scaled by PENALTY_UNIT."""
    return wallet_balance * PENALTY_UNIT // deposit_amount


def compute_maintainer_reward(profit: int, maintainer_fee: int) -> int:
    """Maintainer's cut of the profit, `maintainer_fee` in basis points."""
    return profit * maintainer_fee // FEE_DENOMINATOR


def compute_settlement(wallet_balance: int, deposit_amount: int, maintainer_fee: int) -> Settlement:
    """
    Settle a wallet holding `wallet_balance` for a validator that was funded
    with `deposit_amount`, at the given maintainer fee.
    """
    _require_uint("wallet_balance", wallet_balance)
    _require_uint("deposit_amount", deposit_amount)
    _require_uint("maintainer_fee", maintainer_fee)
    if deposit_amount == 0:
        raise ValidationError("deposit_amount must be positive")
    if maintainer_fee > FEE_DENOMINATOR:
        raise ValidationError(f"maintainer_fee must be in [0, {FEE_DENOMINATOR}]: {maintainer_fee}")

    if wallet_balance < deposit_amount:
        return Settlement(
            wallet_balance=wallet_balance,
            deposit_amount=deposit_amount,
            penalty=compute_penalty(wallet_balance, deposit_amount),
            maintainer_reward=0,
        )

    return Settlement(
        wallet_balance=wallet_balance,
        deposit_amount=deposit_amount,
        penalty=0,
        maintainer_reward=compute_maintainer_reward(wallet_balance - deposit_amount, maintainer_fee),
    )
