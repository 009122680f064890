"""
Encrypted arithmetic primitives and the asynchronous decryption interface.
"""

from .backend import OPERATION_COSTS, FheBackend, MockFheBackend
from .decryption_service import DecryptionService, MockDecryptionService
from .types import EncryptedBool, EncryptedUint

__all__ = [
    "OPERATION_COSTS",
    "FheBackend",
    "MockFheBackend",
    "DecryptionService",
    "MockDecryptionService",
    "EncryptedBool",
    "EncryptedUint",
]
