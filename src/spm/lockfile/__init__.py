"""Lock file management for spm."""

from .builder import build_lock
from .manager import LockFileManager, dumps, loads
from .verifier import find_lock_drift, verify_against_manifest

__all__ = [
    "build_lock",
    "LockFileManager",
    "dumps",
    "loads",
    "find_lock_drift",
    "verify_against_manifest"
]
