# MIT License
# Copyright (c) 2025 Hashborn

from typing import Any, Callable, List, Optional, Tuple
import json
import logging
import os
import threading

from ...protocol.config.params import CURRENT_NETWORK, NetworkConfig
from ...protocol.crypto.addresses import address_from_pubkey
from ...protocol.crypto.keys import verify
from ...protocol.types.common import Role, TxType, SettlementError, ValidationError
from ...protocol.types.events import EventLog, TRANSFER
from ...protocol.types.settings import ProtocolSettings
from ...protocol.types.tx import Transaction
from ...protocol.types.validator import Validator, UnlockRecord
from ..observability import metrics
from ..storage.db import StorageDB
from .accounts import Account
from .events import EventBus, event_bus as default_event_bus
from .roles import RoleGate, RoleRegistry
from .settings import SettingsManager
from .state import LedgerState
from .tx_receipt import TxReceipt, TxReceiptStore
from .validators import ValidatorRegistry
from .withdrawals import UnlockResult, Withdrawals

logger = logging.getLogger(__name__)

class Ledger:
    """
    Serialization point for all state changes.

    Every operation runs against a clone of the current state under the ledger
    lock. The clone is committed (one DB transaction for state and events) only
    if the operation returns; otherwise it is dropped and nothing changes.
    """

    def __init__(self, db_path: str, config: NetworkConfig = CURRENT_NETWORK,
                 role_gate: Optional[RoleGate] = None,
                 event_bus: Optional[EventBus] = None,
                 receipt_store: Optional[TxReceiptStore] = None):
        self.db = StorageDB(db_path)
        self._lock = threading.RLock()
        self.config = config

        # Overrides the state-backed manager check (unlock and wallet assignment) when set
        self.role_gate = role_gate
        self.event_bus = event_bus if event_bus is not None else default_event_bus
        self.receipts = receipt_store if receipt_store is not None else TxReceiptStore(config.max_receipts)

        self.state = LedgerState(self.db, self._default_settings())
        self.state.load_height()

        # Try to load genesis if ledger is empty
        self.genesis_path = os.path.join(os.path.dirname(db_path), "genesis.json")
        self._load_ledger_state()

    def _default_settings(self) -> ProtocolSettings:
        return ProtocolSettings(
            maintainer=self.config.maintainer_address,
            maintainer_fee=self.config.maintainer_fee,
            validator_deposit_amount=self.config.validator_deposit_amount,
        )

    def _load_ledger_state(self):
        if self.state.height > 0:
            logger.info(f"Ledger initialized at height {self.state.height}")
            return

        logger.info("Ledger initialized empty")
        self._apply_genesis()

    def _apply_genesis(self):
        """Loads settings, roles and initial balances from genesis.json if it exists."""
        if not os.path.exists(self.genesis_path):
            logger.warning("No genesis.json found. Starting with network defaults.")
            return

        try:
            with open(self.genesis_path, "r") as f:
                data = json.load(f)

            def apply(state: LedgerState):
                overrides = {}
                for key in ("admin", "maintainer"):
                    if data.get(key):
                        overrides[key] = data[key]
                for key in ("maintainer_fee", "validator_deposit_amount"):
                    if key in data:
                        overrides[key] = int(data[key])
                settings = ProtocolSettings(**{**state.get_settings().model_dump(), **overrides})
                state.set_settings(settings)

                for address in data.get("managers", []):
                    state.set_role(Role.MANAGER, address, True)
                for address in data.get("operators", []):
                    state.set_role(Role.OPERATOR, address, True)

                for address, amount in data.get("alloc", {}).items():
                    acc = state.get_account(address)
                    acc.balance = int(amount)
                    state.set_account(acc)
                return len(data.get("alloc", {}))

            count, _ = self._execute("genesis", apply)
            logger.info(f"Applied genesis: {count} funded accounts.")
        except Exception as e:
            logger.error(f"Failed to apply genesis: {e}")

    @property
    def height(self) -> int:
        return self.state.height

    # --- Atomic execution ---
    def _execute(self, operation: str, fn: Callable[[LedgerState], Any]) -> Tuple[Any, List[EventLog]]:
        """Runs `fn` on a cloned state and commits the clone if it returns."""
        with self._lock:
            tmp_state = self.state.clone()
            try:
                result = fn(tmp_state)
                tmp_state.height += 1
                logs = tmp_state.persist()
            except Exception as e:
                metrics.operations_total.labels(operation=operation, status="failed").inc()
                if operation == "unlock_wallet" and isinstance(e, SettlementError):
                    metrics.unlock_failures_total.labels(reason=e.reason).inc()
                logger.warning(f"{operation} rejected: {e}")
                raise

            self.state = tmp_state
            metrics.operations_total.labels(operation=operation, status="confirmed").inc()
            metrics.ledger_height.set(self.state.height)

            for log in logs:
                self.event_bus.publish(log)
            return result, logs

    def _withdrawals(self, state: LedgerState) -> Withdrawals:
        return Withdrawals(state, roles=self.role_gate)

    def _registry(self, state: LedgerState) -> ValidatorRegistry:
        return ValidatorRegistry(state, wallet_prefix=self.config.bech32_prefix_wallet, manager_gate=self.role_gate)

    # --- Operations ---
    def unlock_wallet(self, validator_id: str, caller: str) -> UnlockResult:
        result, logs = self._execute(
            "unlock_wallet",
            lambda state: self._withdrawals(state).unlock_wallet(validator_id, caller),
        )
        result.logs = logs
        metrics.record_unlock(result)
        return result

    def send(self, sender: str, to: str, amount: int) -> List[EventLog]:
        """Sends ether from `sender` to `to`."""
        def apply(state: LedgerState):
            state.transfer(sender, to, amount)
            state.emit(TRANSFER, sender=sender, to=to, amount=amount)

        _, logs = self._execute("transfer", apply)
        return logs

    def register_validator(self, pub_key_hex: str, entity_id: str, caller: str,
                           deposit_amount: Optional[int] = None) -> Validator:
        val, _ = self._execute(
            "register_validator",
            lambda state: self._registry(state).register_validator(pub_key_hex, entity_id, caller, deposit_amount),
        )
        return val

    def assign_wallet(self, validator_id: str, caller: str) -> str:
        wallet, _ = self._execute(
            "assign_wallet",
            lambda state: self._registry(state).assign_wallet(validator_id, caller),
        )
        return wallet

    def add_manager(self, address: str, caller: str):
        self._execute("add_manager", lambda state: RoleRegistry(state).grant(Role.MANAGER, address, caller))

    def remove_manager(self, address: str, caller: str):
        self._execute("remove_manager", lambda state: RoleRegistry(state).revoke(Role.MANAGER, address, caller))

    def add_operator(self, address: str, caller: str):
        self._execute("add_operator", lambda state: RoleRegistry(state).grant(Role.OPERATOR, address, caller))

    def set_maintainer_fee(self, fee: int, caller: str):
        self._execute("set_maintainer_fee", lambda state: SettingsManager(state).set_maintainer_fee(fee, caller))

    def set_maintainer(self, maintainer: str, caller: str):
        self._execute("set_maintainer", lambda state: SettingsManager(state).set_maintainer(maintainer, caller))

    def set_payable(self, address: str, payable: bool):
        """Marks whether `address` accepts incoming ether."""
        def apply(state: LedgerState):
            acc = state.get_account(address)
            acc.payable = payable
            state.set_account(acc)

        self._execute("set_payable", apply)

    # --- Queries ---
    def penalty_of(self, validator_id: str) -> int:
        with self._lock:
            return self.state.get_unlock_record(validator_id).penalty

    def is_unlocked(self, validator_id: str) -> bool:
        with self._lock:
            return self.state.get_unlock_record(validator_id).unlocked

    def get_unlock_record(self, validator_id: str) -> UnlockRecord:
        with self._lock:
            return self.state.get_unlock_record(validator_id).model_copy()

    def get_account(self, address: str) -> Account:
        with self._lock:
            return self.state.get_account(address).model_copy()

    def get_balance(self, address: str) -> int:
        return self.get_account(address).balance

    def get_validator(self, validator_id: str) -> Optional[Validator]:
        with self._lock:
            val = self.state.get_validator(validator_id)
            return val.model_copy() if val else None

    def get_settings(self) -> ProtocolSettings:
        with self._lock:
            return self.state.get_settings().model_copy()

    def is_manager(self, address: str) -> bool:
        with self._lock:
            gate = self.role_gate if self.role_gate is not None else RoleRegistry(self.state)
            return gate.is_manager(address)

    def get_events(self, name: Optional[str] = None, from_seq: int = 0) -> List[EventLog]:
        """Committed events, oldest first."""
        return [
            EventLog(name=row_name, args=json.loads(data)["args"], seq=seq)
            for seq, row_name, data in self.db.get_events(name, from_seq)
        ]

    # --- Signed transactions ---
    def apply_transaction(self, tx: Transaction) -> TxReceipt:
        """
        Verifies and applies a signed transaction atomically.

        Returns the confirmed receipt. On failure the receipt is marked failed
        and the error is re-raised; the ledger is left unchanged (nonce included).
        """
        tx_hash = tx.hash()
        self.receipts.add_pending(tx_hash)
        operation = tx.tx_type.value.lower()

        try:
            result, logs = self._execute(operation, lambda state: self._apply_tx(state, tx))
        except Exception as e:
            self.receipts.mark_failed(tx_hash, str(e))
            raise

        if isinstance(result, UnlockResult):
            result.logs = logs
            metrics.record_unlock(result)
        return self.receipts.mark_confirmed(tx_hash, self.height, logs)

    def _verify_tx(self, tx: Transaction):
        if not tx.signature or not tx.pub_key:
            raise ValueError("Missing signature or pub_key")

        # Verify pub_key matches from_address
        try:
            prefix = tx.from_address.rsplit("1", 1)[0]
            derived_addr = address_from_pubkey(bytes.fromhex(tx.pub_key), prefix=prefix)
        except Exception as e:
            raise ValueError(f"Invalid address format or key: {e}")
        if derived_addr != tx.from_address:
            raise ValueError(f"pub_key mismatch: derived {derived_addr}, expected {tx.from_address}")

        try:
            msg_hash_bytes = bytes.fromhex(tx.hash())
            sig_bytes = bytes.fromhex(tx.signature)
            pub_bytes = bytes.fromhex(tx.pub_key)
        except ValueError as e:
            raise ValueError(f"Signature verification failed: {e}")
        if not verify(msg_hash_bytes, sig_bytes, pub_bytes):
            raise ValueError("Invalid signature")

    def _require_payload(self, tx: Transaction, key: str) -> Any:
        value = tx.payload.get(key)
        if value is None or value == "":
            raise ValueError(f"{tx.tx_type.value} must provide '{key}' in payload")
        return value

    def _apply_tx(self, state: LedgerState, tx: Transaction) -> Any:
        self._verify_tx(tx)

        sender = state.get_account(tx.from_address)
        if tx.nonce != sender.nonce:
            raise ValueError(f"Invalid nonce: expected {sender.nonce}, got {tx.nonce}")
        sender.nonce += 1
        state.set_account(sender)

        caller = tx.from_address

        if tx.tx_type == TxType.TRANSFER:
            if not tx.to_address:
                raise ValueError("Transfer must have to_address")
            state.transfer(caller, tx.to_address, tx.amount)
            state.emit(TRANSFER, sender=caller, to=tx.to_address, amount=tx.amount)
            return None

        elif tx.tx_type == TxType.REGISTER_VALIDATOR:
            return self._registry(state).register_validator(
                self._require_payload(tx, "pub_key"),
                self._require_payload(tx, "entity_id"),
                caller,
                tx.payload.get("deposit_amount"),
            )

        elif tx.tx_type == TxType.ASSIGN_WALLET:
            return self._registry(state).assign_wallet(self._require_payload(tx, "validator_id"), caller)

        elif tx.tx_type == TxType.UNLOCK_WALLET:
            return self._withdrawals(state).unlock_wallet(self._require_payload(tx, "validator_id"), caller)

        elif tx.tx_type == TxType.ADD_MANAGER:
            return RoleRegistry(state).grant(Role.MANAGER, self._require_payload(tx, "address"), caller)

        elif tx.tx_type == TxType.REMOVE_MANAGER:
            return RoleRegistry(state).revoke(Role.MANAGER, self._require_payload(tx, "address"), caller)

        elif tx.tx_type == TxType.ADD_OPERATOR:
            return RoleRegistry(state).grant(Role.OPERATOR, self._require_payload(tx, "address"), caller)

        elif tx.tx_type == TxType.SET_MAINTAINER_FEE:
            fee = self._require_payload(tx, "fee")
            if not isinstance(fee, int) or isinstance(fee, bool):
                raise ValidationError(f"Maintainer fee must be an int, got {fee!r}")
            return SettingsManager(state).set_maintainer_fee(fee, caller)

        elif tx.tx_type == TxType.SET_MAINTAINER:
            return SettingsManager(state).set_maintainer(self._require_payload(tx, "maintainer"), caller)

        raise ValueError(f"Unsupported transaction type: {tx.tx_type}")

    def close(self):
        self.db.close()
