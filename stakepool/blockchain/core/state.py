# MIT License
# Copyright (c) 2025 Hashborn

from typing import Dict, Optional, List, Any
from .accounts import Account
from ...protocol.types.common import Role, TransferFailed
from ...protocol.types.events import EventLog
from ...protocol.types.settings import ProtocolSettings
from ...protocol.types.validator import Validator, UnlockRecord
from ..storage.db import StorageDB

class LedgerState:
    def __init__(self, db: StorageDB, defaults: ProtocolSettings,
                 accounts: Dict[str, Account] = None,
                 validators: Dict[str, Validator] = None,
                 unlocks: Dict[str, UnlockRecord] = None,
                 roles: Dict[str, bool] = None,
                 settings: Optional[ProtocolSettings] = None):
        self.db = db
        self.defaults = defaults
        # Cache for modified/accessed accounts: address -> Account
        self._accounts: Dict[str, Account] = accounts if accounts is not None else {}
        # Cache for validators: validator_id -> Validator
        self._validators: Dict[str, Validator] = validators if validators is not None else {}
        # Cache for settlement records: validator_id -> UnlockRecord
        self._unlocks: Dict[str, UnlockRecord] = unlocks if unlocks is not None else {}
        # Cache for role grants: "role:address" -> granted
        self._roles: Dict[str, bool] = roles if roles is not None else {}
        self._settings = settings

        # Number of committed operations
        self.height = 0

        # Events raised since the last persist
        self.events: List[EventLog] = []

    def clone(self) -> 'LedgerState':
        """Creates a copy of the state for an isolated operation."""
        cloned = LedgerState(
            self.db,
            self.defaults,
            {k: v.model_copy(deep=True) for k, v in self._accounts.items()},
            {k: v.model_copy(deep=True) for k, v in self._validators.items()},
            {k: v.model_copy(deep=True) for k, v in self._unlocks.items()},
            dict(self._roles),
            self._settings.model_copy() if self._settings else None,
        )
        cloned.height = self.height
        return cloned

    def load_height(self):
        val = self.db.get_state("height")
        if val:
            self.height = int(val)

    # --- Accounts ---
    def get_account(self, address: str) -> Account:
        if address in self._accounts:
            return self._accounts[address]

        raw_json = self.db.get_state(f"acc:{address}")
        if raw_json:
            acc = Account.model_validate_json(raw_json)
            self._accounts[address] = acc
            return acc

        return Account(address=address)

    def set_account(self, account: Account):
        """Updates account in local cache."""
        self._accounts[account.address] = account

    def transfer(self, sender_address: str, recipient_address: str, amount: int):
        """Moves ether between accounts. Raises before mutating anything."""
        if amount < 0:
            raise ValueError(f"Invalid transfer amount: {amount}")

        sender = self.get_account(sender_address)
        if sender.balance < amount:
            raise ValueError(f"Insufficient balance: have {sender.balance}, need {amount}")

        recipient = self.get_account(recipient_address)
        if not recipient.payable:
            raise TransferFailed(recipient_address)

        sender.balance -= amount
        self.set_account(sender)

        # Re-read in case sender and recipient are the same account
        recipient = self.get_account(recipient_address)
        recipient.balance += amount
        self.set_account(recipient)

    # --- Validators ---
    def get_validator(self, validator_id: str) -> Optional[Validator]:
        if validator_id in self._validators:
            return self._validators[validator_id]

        raw_json = self.db.get_state(f"val:{validator_id}")
        if raw_json:
            val = Validator.model_validate_json(raw_json)
            self._validators[validator_id] = val
            return val
        return None

    def set_validator(self, validator: Validator):
        self._validators[validator.validator_id] = validator

    # --- Unlock records ---
    def get_unlock_record(self, validator_id: str) -> UnlockRecord:
        if validator_id in self._unlocks:
            return self._unlocks[validator_id]

        raw_json = self.db.get_state(f"unlock:{validator_id}")
        if raw_json:
            record = UnlockRecord.model_validate_json(raw_json)
            self._unlocks[validator_id] = record
            return record

        return UnlockRecord(validator_id=validator_id)

    def set_unlock_record(self, record: UnlockRecord):
        self._unlocks[record.validator_id] = record

    # --- Roles ---
    def has_role(self, role: Role, address: str) -> bool:
        key = f"{role.value}:{address}"
        if key in self._roles:
            return self._roles[key]

        granted = self.db.get_state(f"role:{key}") == "1"
        self._roles[key] = granted
        return granted

    def set_role(self, role: Role, address: str, granted: bool):
        self._roles[f"{role.value}:{address}"] = granted

    # --- Settings ---
    def get_settings(self) -> ProtocolSettings:
        if self._settings is None:
            raw_json = self.db.get_state("settings")
            if raw_json:
                self._settings = ProtocolSettings.model_validate_json(raw_json)
            else:
                self._settings = self.defaults.model_copy()
        return self._settings

    def set_settings(self, settings: ProtocolSettings):
        self._settings = settings

    # --- Events & persistence ---
    def emit(self, name: str, **args: Any):
        self.events.append(EventLog(name=name, args=args))

    def persist(self) -> List[EventLog]:
        """
        Writes cached state and pending events to DB in one transaction.

        Returns the committed events with their log sequence numbers.
        """
        items: Dict[str, str] = {}
        for addr, acc in self._accounts.items():
            items[f"acc:{addr}"] = acc.model_dump_json()
        for vid, val in self._validators.items():
            items[f"val:{vid}"] = val.model_dump_json()
        for vid, record in self._unlocks.items():
            items[f"unlock:{vid}"] = record.model_dump_json()
        for key, granted in self._roles.items():
            items[f"role:{key}"] = "1" if granted else "0"
        if self._settings is not None:
            items["settings"] = self._settings.model_dump_json()
        items["height"] = str(self.height)

        pending = self.events
        seqs = self.db.write_batch(items, [(e.name, e.model_dump_json(include={"args"})) for e in pending])
        for event, seq in zip(pending, seqs):
            event.seq = seq

        self.events = []
        return pending
