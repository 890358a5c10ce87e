"""
Settlement arithmetic tests.

Tests:
- Penalty fixed-point values (truncating division)
- Maintainer reward values and rounding direction
- Break-even and conservation
- Input validation
"""
import pytest

from stakepool.blockchain.core.settlement import (
    Settlement,
    compute_settlement,
    compute_penalty,
    compute_maintainer_reward,
)
from stakepool.protocol.config.params import FEE_DENOMINATOR, PENALTY_UNIT
from stakepool.protocol.types.common import ValidationError

from helpers import DEPOSIT, ether


@pytest.mark.parametrize("balance, expected_penalty", [
    (ether("16"), ether("0.5")),
    (ether("31.999999999999999999"), ether("0.999999999999999999")),
    (ether("31.470154444639959214"), ether("0.983442326394998725")),
    (ether("22.400020050000300803"), ether("0.7000006265625094")),
    (ether("18.345"), ether("0.57328125")),
    (1, 0),     # 1 wei out of 32 ether truncates to zero
    (0, 0),
])
def test_penalty_branch(balance, expected_penalty):
    s = compute_settlement(balance, DEPOSIT, 1000)

    assert s.is_penalized
    assert s.outcome == "penalty"
    assert s.penalty == expected_penalty
    assert s.maintainer_reward == 0
    assert s.net_to_wallet == balance
    assert s.profit == 0


def test_penalty_is_floor_of_returned_fraction():
    # 2/3 of the deposit: 0.666...6 with the last digit truncated, never rounded up
    s = compute_settlement(2, 3, 0)
    assert s.penalty == 666666666666666666
    assert compute_penalty(2, 3) == 2 * PENALTY_UNIT // 3


def test_break_even_has_no_penalty_and_no_reward():
    s = compute_settlement(DEPOSIT, DEPOSIT, FEE_DENOMINATOR)

    assert s.outcome == "break_even"
    assert not s.is_penalized
    assert s.penalty == 0
    assert s.profit == 0
    assert s.maintainer_reward == 0
    assert s.net_to_wallet == DEPOSIT


@pytest.mark.parametrize("profit, fee, expected_reward", [
    (20884866385064848799, 9561, 19968020750760501936),
    (35901110095648257832, 7337, 26340644477177126771),
    (13050766221027247901, 9999, 13049461144405145176),
    (98340000673116247278, 65, 639210004375255607),
    (57667042368295430137, 8, 46133633894636344),
    (31626521340343186340, 9876, 31234352475722930829),
])
def test_profit_branch(profit, fee, expected_reward):
    balance = DEPOSIT + profit
    s = compute_settlement(balance, DEPOSIT, fee)

    assert s.outcome == "profit"
    assert s.penalty == 0
    assert s.profit == profit
    assert s.maintainer_reward == expected_reward
    assert s.net_to_wallet == balance - expected_reward
    assert s.net_to_wallet + s.maintainer_reward == balance


def test_reward_rounds_down_in_favour_of_depositors():
    # 1 wei of profit at 99.99% is still 0 for the maintainer
    assert compute_settlement(DEPOSIT + 1, DEPOSIT, 9999).maintainer_reward == 0
    assert compute_maintainer_reward(19999, 5000) == 9999


def test_zero_and_full_fee():
    assert compute_settlement(DEPOSIT + ether("3"), DEPOSIT, 0).maintainer_reward == 0
    full = compute_settlement(DEPOSIT + ether("3"), DEPOSIT, FEE_DENOMINATOR)
    assert full.maintainer_reward == ether("3")
    assert full.net_to_wallet == DEPOSIT


def test_settlement_is_immutable():
    s = compute_settlement(DEPOSIT, DEPOSIT, 0)
    assert isinstance(s, Settlement)
    with pytest.raises(AttributeError):
        s.penalty = 1


@pytest.mark.parametrize("args, message", [
    ((-1, DEPOSIT, 0), "wallet_balance must be non-negative"),
    ((DEPOSIT, 0, 0), "deposit_amount must be positive"),
    ((DEPOSIT, DEPOSIT, -1), "maintainer_fee must be non-negative"),
    ((DEPOSIT, DEPOSIT, FEE_DENOMINATOR + 1), "maintainer_fee must be in"),
    ((float(DEPOSIT), DEPOSIT, 0), "wallet_balance must be an int"),
    ((True, DEPOSIT, 0), "wallet_balance must be an int"),
    ((DEPOSIT, DEPOSIT, "100"), "maintainer_fee must be an int"),
])
def test_invalid_inputs(args, message):
    with pytest.raises(ValidationError, match=message):
        compute_settlement(*args)
