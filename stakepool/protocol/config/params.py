# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict, Optional

# Global Constants
DECIMALS = 18

# Maintainer fee is expressed in basis points of this denominator
FEE_DENOMINATOR = 10_000

# Fixed-point scale for penalties (1.0 == PENALTY_UNIT == full deposit returned)
PENALTY_UNIT = 10**18


class NetworkConfig:
    def __init__(self,
                 network_id: str,
                 chain_id: str,
                 validator_deposit_amount: int = 32 * 10**DECIMALS,
                 maintainer_fee: int = 1000,
                 maintainer_address: Optional[str] = None,
                 bech32_prefix_acc: str = "sp",
                 bech32_prefix_wallet: str = "spwallet",
                 max_receipts: int = 10000):
        if not 0 <= maintainer_fee <= FEE_DENOMINATOR:
            raise ValueError(f"maintainer_fee must be in [0, {FEE_DENOMINATOR}], got {maintainer_fee}")
        if validator_deposit_amount <= 0:
            raise ValueError("validator_deposit_amount must be positive")

        self.network_id = network_id
        self.chain_id = chain_id
        self.validator_deposit_amount = validator_deposit_amount
        self.maintainer_fee = maintainer_fee
        self.maintainer_address = maintainer_address
        self.bech32_prefix_acc = bech32_prefix_acc
        self.bech32_prefix_wallet = bech32_prefix_wallet
        self.max_receipts = max_receipts

NETWORKS: Dict[str, NetworkConfig] = {
    "devnet": NetworkConfig(
        network_id="devnet",
        chain_id="sp-devnet-1",
        maintainer_fee=1000,   # 10%
        max_receipts=1000,
    ),
    "testnet": NetworkConfig(
        network_id="testnet",
        chain_id="sp-testnet-1",
        maintainer_fee=1000,
    ),
    "mainnet": NetworkConfig(
        network_id="mainnet",
        chain_id="sp-mainnet-1",
        maintainer_fee=1000,
        max_receipts=100_000,
    ),
}


def get_network(name: str) -> NetworkConfig:
    try:
        return NETWORKS[name]
    except KeyError:
        raise ValueError(f"Unknown network '{name}' (expected one of {sorted(NETWORKS)})")


CURRENT_NETWORK = get_network(os.environ.get("STAKEPOOL_NETWORK", "devnet"))
