"""
Opaque ciphertext handles.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EncryptedUint:
    """Handle to an encrypted unsigned integer. Carries no plaintext."""
    handle: int
    backend_id: str

    def __repr__(self) -> str:
        return f"EncryptedUint(#{self.handle}@{self.backend_id})"

    def __bool__(self) -> bool:
        raise TypeError("Encrypted values cannot drive native control flow; use select()")


@dataclass(frozen=True)
class EncryptedBool:
    """Handle to an encrypted boolean produced by a comparison."""
    handle: int
    backend_id: str

    def __repr__(self) -> str:
        return f"EncryptedBool(#{self.handle}@{self.backend_id})"

    def __bool__(self) -> bool:
        raise TypeError("Encrypted conditions cannot drive native control flow; use select()")
