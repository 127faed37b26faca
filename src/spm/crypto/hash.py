"""Hashing utilities for downloaded release assets."""

import base64
import hashlib


def compute_sha256(data: bytes) -> str:
    """Compute SHA-256 hex digest of data."""
    return hashlib.sha256(data).hexdigest()


def compute_md5_base64(data: bytes) -> str:
    """Compute MD5 digest of data, base64 encoded like the assetMd5 field."""
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
