"""
Asynchronous decryption manager.

Tracks, per key, the lifecycle of turning a ciphertext into a plaintext:
IDLE -> PENDING (request issued) -> READY (coprocessor answered). The last
successfully decrypted value is kept forever as a staleness fallback; a stale
plaintext is always better than none.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Dict, Optional

from loguru import logger

from src.fhe.decryption_service import DecryptionService
from src.fhe.types import EncryptedUint
from src.undo_log import UndoLog


class DecryptionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"


@dataclass
class DecryptionRecord:
    state: DecryptionState = DecryptionState.IDLE
    request_id: Optional[int] = None
    requested_at: Optional[float] = None
    ready_value: Optional[int] = None
    last_known: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "request_id": self.request_id,
            "requested_at": self.requested_at,
            "has_last_known": self.last_known is not None,
        }


@dataclass
class DecryptionResult:
    value: int = 0
    is_ready: bool = False
    was_from_cache: bool = False


class DecryptionManager:
    """Request/poll/complete state machine over a DecryptionService"""

    def __init__(self, service: DecryptionService):
        self.service = service
        self.records: Dict[str, DecryptionRecord] = {}
        self.journal: Optional[UndoLog] = None

    def record(self, key: str) -> DecryptionRecord:
        return self.records.get(key) or DecryptionRecord()

    def _writable(self, key: str) -> DecryptionRecord:
        if self.journal is not None:
            self.journal.touch(self.records, key)
        return self.records.setdefault(key, DecryptionRecord())

    def _forget_request(self, request_id: int, rolled_back: bool = False) -> None:
        # the service may only drop a request once the record change that
        # stops referring to it is committed
        action = partial(self.service.forget, request_id)
        if self.journal is None:
            action()
        elif rolled_back:
            self.journal.on_rollback(action)
        else:
            self.journal.on_commit(action)

    def request(self, value: EncryptedUint, key: str, now: float) -> bool:
        """
        Issue a decryption request unless one is already outstanding.

        Returns:
            True if a new request was sent to the service
        """
        current = self.records.get(key)
        if current is not None and current.state != DecryptionState.IDLE:
            logger.debug(f"Decryption {key[:8]} already {current.state.value}; request ignored")
            return False

        record = self._writable(key)
        record.request_id = self.service.request(value)
        record.requested_at = now
        record.ready_value = None
        record.state = DecryptionState.PENDING
        self._forget_request(record.request_id, rolled_back=True)
        logger.debug(f"Decryption {key[:8]} requested (#{record.request_id})")
        return True

    def poll(self, key: str) -> DecryptionResult:
        record = self.records.get(key)
        if record is None or record.state == DecryptionState.IDLE:
            return DecryptionResult()

        if record.state == DecryptionState.READY:
            return DecryptionResult(value=record.ready_value, is_ready=True, was_from_cache=False)

        value, ready = self.service.result(record.request_id)
        if ready:
            record = self._writable(key)
            record.state = DecryptionState.READY
            record.ready_value = int(value)
            logger.debug(f"Decryption {key[:8]} ready")
            return DecryptionResult(value=int(value), is_ready=True, was_from_cache=False)

        if record.last_known is not None:
            return DecryptionResult(value=record.last_known, is_ready=True, was_from_cache=True)
        return DecryptionResult()

    def complete(self, key: str, value: int) -> None:
        """Remember ``value`` as last known and return the key to IDLE."""
        record = self._writable(key)
        if record.request_id is not None:
            self._forget_request(record.request_id)
        record.last_known = int(value)
        record.state = DecryptionState.IDLE
        record.request_id = None
        record.ready_value = None
        logger.debug(f"Decryption {key[:8]} completed")

    def last_known(self, key: str) -> Optional[int]:
        record = self.records.get(key)
        return record.last_known if record else None
