"""
Asynchronous decryption service (the confidential-computation coprocessor).

Decryption is never synchronous: a caller submits a ciphertext, receives a
request id, and polls for the plaintext in a later invocation.
"""

from __future__ import annotations

import itertools
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set, Tuple

from loguru import logger

from .backend import MockFheBackend
from .types import EncryptedUint


class DecryptionService(ABC):
    """Request/poll interface to an external decryption coprocessor"""

    @abstractmethod
    def request(self, value: EncryptedUint) -> int:
        """Submit a ciphertext for decryption and return a request id."""
        pass

    @abstractmethod
    def result(self, request_id: int) -> Tuple[int, bool]:
        """Return ``(plaintext, ready)``; plaintext is 0 while not ready."""
        pass

    def forget(self, request_id: int) -> None:
        """Release bookkeeping for a request whose result is no longer needed."""
        pass


@dataclass
class _MockRequest:
    value: EncryptedUint
    submitted_at: float


class MockDecryptionService(DecryptionService):
    """
    Decrypts through a ``MockFheBackend`` once ``latency_seconds`` have passed
    on the injected clock, or as soon as ``release`` is called for the request.
    """

    def __init__(
        self,
        backend: MockFheBackend,
        latency_seconds: float = 12.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.backend = backend
        self.latency_seconds = float(latency_seconds)
        self.clock = clock or time.time
        self._requests: Dict[int, _MockRequest] = {}
        self._released: Set[int] = set()
        self._ids = itertools.count(1)
        logger.info(f"Mock decryption service initialized (latency {self.latency_seconds}s)")

    @property
    def outstanding(self) -> int:
        return len(self._requests)

    def request(self, value: EncryptedUint) -> int:
        request_id = next(self._ids)
        self._requests[request_id] = _MockRequest(value=value, submitted_at=self.clock())
        logger.debug(f"Decryption request #{request_id} submitted for {value!r}")
        return request_id

    def release(self, request_id: Optional[int] = None) -> None:
        """Mark one request (or every outstanding request) as decrypted."""
        if request_id is None:
            self._released.update(self._requests)
        else:
            self._released.add(request_id)

    def forget(self, request_id: int) -> None:
        self._requests.pop(request_id, None)
        self._released.discard(request_id)

    def result(self, request_id: int) -> Tuple[int, bool]:
        pending = self._requests.get(request_id)
        if pending is None:
            return 0, False
        elapsed = self.clock() - pending.submitted_at
        if request_id not in self._released and elapsed < self.latency_seconds:
            return 0, False
        return int(self.backend.unseal(pending.value)), True
