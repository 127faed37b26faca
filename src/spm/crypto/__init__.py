"""Cryptographic utilities for spm."""

from .hash import compute_sha256, compute_md5_base64

__all__ = [
    "compute_sha256",
    "compute_md5_base64"
]
