from .manager import DecryptionManager, DecryptionRecord, DecryptionResult, DecryptionState

__all__ = ["DecryptionManager", "DecryptionRecord", "DecryptionResult", "DecryptionState"]
