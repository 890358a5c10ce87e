# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics Exporter

Exports ledger and settlement metrics in Prometheus format.

Metrics:
- Ledger height, operations by type and status
- Wallet unlocks by outcome, unlock failures by reason
- Maintainer rewards paid, last recorded penalty per validator
- Event emissions
"""

from prometheus_client import Counter, Gauge, CollectorRegistry, generate_latest

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# LEDGER METRICS
# ═══════════════════════════════════════════════════════════════════

ledger_height = Gauge(
    'stakepool_ledger_height',
    'Number of committed ledger operations',
    registry=metrics_registry
)

operations_total = Counter(
    'stakepool_operations_total',
    'Ledger operations processed',
    ['operation', 'status'],
    registry=metrics_registry
)

event_emissions_total = Counter(
    'stakepool_event_emissions_total',
    'Events published on the event bus',
    ['event'],
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# SETTLEMENT METRICS
# ═══════════════════════════════════════════════════════════════════

wallets_unlocked_total = Counter(
    'stakepool_wallets_unlocked_total',
    'Wallets unlocked, by settlement outcome',
    ['outcome'],
    registry=metrics_registry
)

unlock_failures_total = Counter(
    'stakepool_unlock_failures_total',
    'Rejected wallet unlocks, by reason',
    ['reason'],
    registry=metrics_registry
)

maintainer_rewards_wei_total = Counter(
    'stakepool_maintainer_rewards_wei_total',
    'Total maintainer rewards transferred (wei)',
    registry=metrics_registry
)

last_penalty = Gauge(
    'stakepool_last_penalty',
    'Penalty recorded at unlock (fixed-point, 1e18 == no loss)',
    ['validator_id'],
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════

def record_unlock(result):
    """
    Update settlement metrics after a committed unlock.

    Args:
        result: UnlockResult returned by Withdrawals.unlock_wallet
    """
    settlement = result.settlement
    wallets_unlocked_total.labels(outcome=settlement.outcome).inc()
    if settlement.maintainer_reward > 0:
        maintainer_rewards_wei_total.inc(settlement.maintainer_reward)
    if settlement.is_penalized:
        last_penalty.labels(validator_id=result.validator_id).set(settlement.penalty)


def export_metrics() -> bytes:
    """Render all metrics in Prometheus text format."""
    return generate_latest(metrics_registry)
