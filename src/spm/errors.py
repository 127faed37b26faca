"""Exceptions raised by spm operations.

Every error is terminal for the command that raised it; nothing in spm
retries. The CLI prints ``str(error)`` and exits with status 1.
"""

from typing import Optional


class SpmError(Exception):
    """Base exception for spm operations."""


class UnresolvableReference(SpmError):
    """Raised when a package reference string cannot be parsed."""

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"Could not resolve package reference '{reference}': {reason}")


class RemoteResolutionFailed(SpmError):
    """Raised when the hosting API call for the latest version fails."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Call to {url} failed: {reason}")


class MalformedRemoteResponse(SpmError):
    """Raised when the hosting API answers with an unexpected body."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Unexpected response from {url}: {reason}")


class ManifestFetchFailed(SpmError):
    """Raised when a package's spm.json cannot be downloaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Could not fetch spm.json file at {url}: {reason}")


class ManifestDecodeFailed(SpmError):
    """Raised when a downloaded spm.json is not a valid release manifest."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Could not decode spm.json fetched from {url}: {reason}")


class NoMatchingPlatform(SpmError):
    """Raised when a release publishes no artifact for the target platform."""

    def __init__(self, os: str, cpu: str, reference: Optional[str] = None):
        self.os = os
        self.cpu = cpu
        self.reference = reference
        message = f"No matching platform found for the current device ({os}-{cpu})"
        if reference:
            message += f" in {reference}"
        super().__init__(message)


class AssetDownloadFailed(SpmError):
    """Raised when a release asset cannot be downloaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Error making request to {url}: {reason}")


class IntegrityMismatch(SpmError):
    """Raised when a downloaded asset's SHA-256 does not match the lockfile."""

    def __init__(self, asset_name: str, expected: str, actual: str):
        self.asset_name = asset_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"SHA-256 mismatch for {asset_name}: "
            f"expected {expected[:16]}..., got {actual[:16]}..."
        )


class UnsupportedArchiveFormat(SpmError):
    """Raised for assets that are neither .tar.gz nor .zip."""

    def __init__(self, asset_name: str):
        self.asset_name = asset_name
        super().__init__(f"Unsupported archive format for asset {asset_name} (expected .tar.gz or .zip)")


class PreloadDirectoryNotFound(SpmError):
    """Raised when a relative preload directory does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Could not find the preload directory: {path}")


class InvalidPathSegment(SpmError):
    """Raised when a library path segment contains the path separator."""

    def __init__(self, segment: str, separator: str):
        self.segment = segment
        self.separator = separator
        super().__init__(
            f"Invalid path, '{segment}' contains the path separator '{separator}'"
        )


class MissingProjectFiles(SpmError):
    """Raised when spm.toml (or spm.lock for ci) is absent."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"No {path.name} found in {path.parent}, run 'spm init' first")


class InvalidProjectFile(SpmError):
    """Raised when spm.toml or spm.lock exists but cannot be decoded."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"{path.name} at {path} is not valid: {reason}")


class StaleLockfile(SpmError):
    """Raised by ci when spm.lock does not match spm.toml."""

    def __init__(self, reason: str):
        super().__init__(f"spm.lock is out of date with spm.toml ({reason}), run 'spm install'")


class CorruptArchive(SpmError):
    """Raised when a verified asset cannot be read as its archive format."""

    def __init__(self, asset_name: str, reason: str):
        self.asset_name = asset_name
        super().__init__(f"Error reading entries in {asset_name}: {reason}")
