"""
Encrypted arithmetic backends.

``FheBackend`` is the contract every homomorphic backend satisfies: an opaque
value type plus primitive arithmetic, comparison and ``select``. Nothing in
the contract reveals a plaintext, and the only conditional over encrypted
data is ``select``.

``MockFheBackend`` is the reference implementation used by tests and the
simulator. It keeps plaintexts in a private vault keyed by handle and applies
unsigned modular arithmetic of a fixed bit width, so underflow wraps the same
way FHE integer types do.
"""

from __future__ import annotations

import itertools
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Union

from loguru import logger

from .types import EncryptedBool, EncryptedUint

# Cost units charged per primitive
OPERATION_COSTS: Dict[str, int] = {
    "encrypt": 1,
    "add": 2,
    "sub": 2,
    "mul": 8,
    "div": 20,
    "gt": 4,
    "lt": 4,
    "gte": 4,
    "lte": 4,
    "eq": 4,
    "and": 2,
    "or": 2,
    "not": 2,
    "select": 4,
}


class FheBackend(ABC):
    """Abstract encrypted-arithmetic backend"""

    def __init__(self, bit_width: int = 128):
        self.bit_width = int(bit_width)
        self.max_value = (1 << self.bit_width) - 1
        self.cost_units = 0
        self.operation_counts: Dict[str, int] = {}

    def _charge(self, op: str) -> None:
        self.cost_units += OPERATION_COSTS[op]
        self.operation_counts[op] = self.operation_counts.get(op, 0) + 1

    @abstractmethod
    def encrypt(self, plaintext: int) -> EncryptedUint:
        """Encrypt an unsigned integer (reduced modulo 2**bit_width)."""
        pass

    @abstractmethod
    def encrypt_bool(self, plaintext: bool) -> EncryptedBool:
        pass

    @abstractmethod
    def add(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        pass

    @abstractmethod
    def sub(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        pass

    @abstractmethod
    def mul(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        pass

    @abstractmethod
    def div(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        """
        Integer division. Must not fault on an encrypted zero divisor; the
        result for a zero divisor is ``max_value``. Callers still guard every
        division with ``select`` (see ``FixedPointMath.safe_div``).
        """
        pass

    @abstractmethod
    def gt(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        pass

    @abstractmethod
    def lt(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        pass

    @abstractmethod
    def gte(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        pass

    @abstractmethod
    def lte(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        pass

    @abstractmethod
    def eq(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        pass

    @abstractmethod
    def and_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool:
        pass

    @abstractmethod
    def or_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool:
        pass

    @abstractmethod
    def not_(self, a: EncryptedBool) -> EncryptedBool:
        pass

    @abstractmethod
    def select(self, cond: EncryptedBool, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        """Branchless mux: ``a`` where ``cond`` holds, else ``b``."""
        pass


class MockFheBackend(FheBackend):
    """In-process reference backend with a private plaintext vault"""

    def __init__(self, bit_width: int = 128):
        super().__init__(bit_width)
        self.backend_id = uuid.uuid4().hex[:8]
        self._vault: Dict[int, Union[int, bool]] = {}
        self._handles = itertools.count(1)
        logger.info(f"Mock FHE backend initialized ({self.bit_width}-bit, id={self.backend_id})")

    def _new_uint(self, value: int) -> EncryptedUint:
        handle = next(self._handles)
        self._vault[handle] = int(value) & self.max_value
        return EncryptedUint(handle=handle, backend_id=self.backend_id)

    def _new_bool(self, value: bool) -> EncryptedBool:
        handle = next(self._handles)
        self._vault[handle] = bool(value)
        return EncryptedBool(handle=handle, backend_id=self.backend_id)

    def _load(self, value: Union[EncryptedUint, EncryptedBool]):
        if value.backend_id != self.backend_id:
            raise ValueError(f"Ciphertext {value!r} belongs to another backend")
        try:
            return self._vault[value.handle]
        except KeyError:
            raise ValueError(f"Unknown ciphertext handle {value!r}") from None

    def encrypt(self, plaintext: int) -> EncryptedUint:
        if plaintext < 0:
            raise ValueError("Only unsigned integers can be encrypted")
        self._charge("encrypt")
        return self._new_uint(plaintext)

    def encrypt_bool(self, plaintext: bool) -> EncryptedBool:
        self._charge("encrypt")
        return self._new_bool(plaintext)

    def add(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        self._charge("add")
        return self._new_uint(self._load(a) + self._load(b))

    def sub(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        self._charge("sub")
        return self._new_uint(self._load(a) - self._load(b))

    def mul(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        self._charge("mul")
        return self._new_uint(self._load(a) * self._load(b))

    def div(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        self._charge("div")
        divisor = self._load(b)
        if divisor == 0:
            return self._new_uint(self.max_value)
        return self._new_uint(self._load(a) // divisor)

    def gt(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        self._charge("gt")
        return self._new_bool(self._load(a) > self._load(b))

    def lt(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        self._charge("lt")
        return self._new_bool(self._load(a) < self._load(b))

    def gte(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        self._charge("gte")
        return self._new_bool(self._load(a) >= self._load(b))

    def lte(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        self._charge("lte")
        return self._new_bool(self._load(a) <= self._load(b))

    def eq(self, a: EncryptedUint, b: EncryptedUint) -> EncryptedBool:
        self._charge("eq")
        return self._new_bool(self._load(a) == self._load(b))

    def and_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool:
        self._charge("and")
        return self._new_bool(self._load(a) and self._load(b))

    def or_(self, a: EncryptedBool, b: EncryptedBool) -> EncryptedBool:
        self._charge("or")
        return self._new_bool(self._load(a) or self._load(b))

    def not_(self, a: EncryptedBool) -> EncryptedBool:
        self._charge("not")
        return self._new_bool(not self._load(a))

    def select(self, cond: EncryptedBool, a: EncryptedUint, b: EncryptedUint) -> EncryptedUint:
        self._charge("select")
        chosen = self._load(a) if self._load(cond) else self._load(b)
        return self._new_uint(chosen)

    def unseal(self, value: Union[EncryptedUint, EncryptedBool]):
        """
        Read a plaintext straight out of the vault.

        Only the mock decryption service and tests use this; production code
        goes through ``DecryptionService``.
        """
        return self._load(value)
