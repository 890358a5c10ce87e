"""
Transaction receipt tracking.

Stores the outcome of applied transactions for querying.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, List
import time
import logging
from threading import RLock

from ...protocol.types.events import EventLog

logger = logging.getLogger(__name__)


@dataclass
class TxReceipt:
    """
    Transaction receipt.

    Attributes:
        tx_hash: Transaction hash
        status: Transaction status ('pending', 'confirmed', 'failed')
        height: Ledger height at which the TX was committed (None if pending/failed)
        timestamp: When receipt was last updated (unix timestamp)
        error: Error message if TX failed (None otherwise)
        logs: Events raised by the TX, in emission order
    """
    tx_hash: str
    status: str  # 'pending', 'confirmed', 'failed'
    height: Optional[int] = None
    timestamp: int = 0
    error: Optional[str] = None
    logs: List[EventLog] = field(default_factory=list)

    def __post_init__(self):
        if self.timestamp == 0:
            self.timestamp = int(time.time())

    def find_logs(self, name: str) -> List[EventLog]:
        return [log for log in self.logs if log.name == name]

    def to_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash,
            "status": self.status,
            "height": self.height,
            "timestamp": self.timestamp,
            "error": self.error,
            "logs": [log.model_dump() for log in self.logs],
        }


class TxReceiptStore:
    """
    In-memory store for transaction receipts.

    Thread-safe storage with automatic cleanup of old receipts.
    """

    def __init__(self, max_receipts: int = 10000):
        self.receipts: Dict[str, TxReceipt] = {}
        self.max_receipts = max_receipts
        self.lock = RLock()

    def add_pending(self, tx_hash: str) -> TxReceipt:
        with self.lock:
            existing = self.receipts.get(tx_hash)
            if existing and existing.status == 'confirmed':
                return existing

            receipt = TxReceipt(tx_hash=tx_hash, status='pending')
            self.receipts[tx_hash] = receipt

            if len(self.receipts) > self.max_receipts:
                self._cleanup_old_receipts()

            logger.debug(f"Added pending receipt: {tx_hash[:16]}...")
            return receipt

    def mark_confirmed(self, tx_hash: str, height: int, logs: List[EventLog] = None) -> TxReceipt:
        """
        Mark transaction as confirmed at the given ledger height.

        Args:
            tx_hash: Transaction hash
            height: Ledger height after the commit
            logs: Events raised by the transaction
        """
        with self.lock:
            receipt = self.receipts.get(tx_hash)
            if not receipt:
                receipt = TxReceipt(tx_hash=tx_hash, status='confirmed')
                self.receipts[tx_hash] = receipt

            receipt.status = 'confirmed'
            receipt.height = height
            receipt.error = None
            receipt.logs = list(logs or [])
            receipt.timestamp = int(time.time())

            logger.debug(f"Marked confirmed: {tx_hash[:16]}... at height {height}")
            return receipt

    def mark_failed(self, tx_hash: str, error: str) -> TxReceipt:
        with self.lock:
            receipt = self.receipts.get(tx_hash)
            if not receipt:
                receipt = TxReceipt(tx_hash=tx_hash, status='failed', error=error)
                self.receipts[tx_hash] = receipt
            else:
                receipt.status = 'failed'
                receipt.error = error
                receipt.timestamp = int(time.time())

            logger.debug(f"Marked failed: {tx_hash[:16]}... - {error}")
            return receipt

    def get(self, tx_hash: str) -> Optional[TxReceipt]:
        with self.lock:
            return self.receipts.get(tx_hash)

    def get_confirmations(self, tx_hash: str, current_height: int) -> Optional[int]:
        """Number of commits since the TX landed (1 == the latest commit)."""
        with self.lock:
            receipt = self.receipts.get(tx_hash)
            if not receipt or receipt.status != 'confirmed' or receipt.height is None:
                return None

            return current_height - receipt.height + 1

    def _cleanup_old_receipts(self) -> None:
        """Removes 10% of oldest receipts when limit is exceeded."""
        num_to_remove = max(len(self.receipts) // 10, 1)

        sorted_receipts = sorted(
            self.receipts.items(),
            key=lambda x: x[1].timestamp
        )

        for tx_hash, _ in sorted_receipts[:num_to_remove]:
            del self.receipts[tx_hash]

        logger.info(f"Cleaned up {num_to_remove} old receipts (total: {len(self.receipts)})")

    def clear(self) -> None:
        with self.lock:
            self.receipts.clear()
            logger.debug("Cleared all receipts")
