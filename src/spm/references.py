"""Parsing of user-supplied package references.

Supports formats:
- gh:owner/repo
- gh:owner/repo@v1.2.3
- https://github.com/owner/repo[@v1.2.3]
- github.com/owner/repo[@v1.2.3]
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from spm.errors import UnresolvableReference

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"
GITHUB_PREFIX = "gh:"


class ResolverKind(str, Enum):
    """Where a package's releases are hosted."""
    GITHUB_RELEASE = "github-release"


@dataclass(frozen=True)
class PackageIdentity:
    """A parsed reference. Never persisted."""
    owner: str
    repo: str
    version: Optional[str] = None
    prerelease: bool = False
    host: str = GITHUB_HOST
    kind: ResolverKind = ResolverKind.GITHUB_RELEASE

    @property
    def url(self) -> str:
        """Release base URL, also the canonical name written to spm.toml."""
        return f"https://{self.host}/{self.owner}/{self.repo}"

    @property
    def lookup_name(self) -> str:
        return self.url

    @property
    def is_pinned(self) -> bool:
        return self.version is not None

    def with_version(self, version: str) -> "PackageIdentity":
        return dataclasses.replace(self, version=version)


def parse_reference(reference: str, prerelease: bool = False) -> PackageIdentity:
    """
    Parse a package reference into a PackageIdentity.

    Args:
        reference: The user-supplied string (or an spm.toml key)
        prerelease: Resolve to the newest pre-release instead of the latest stable release

    Returns:
        The parsed identity

    Raises:
        UnresolvableReference: If the reference matches none of the accepted forms
    """
    text = reference.strip()

    if text.startswith(GITHUB_PREFIX):
        parts = text[len(GITHUB_PREFIX):].split("/")
        return _parse_owner_repo(reference, parts, prerelease)

    parsed = urlparse(text)
    if parsed.scheme and parsed.netloc:
        if parsed.scheme not in ("http", "https"):
            raise UnresolvableReference(reference, f"unsupported URL scheme '{parsed.scheme}'")
        if (parsed.hostname or "").lower() != GITHUB_HOST:
            raise UnresolvableReference(
                reference, f"unsupported host '{parsed.hostname}', only {GITHUB_HOST} is supported"
            )
        parts = parsed.path.strip("/").split("/")
        return _parse_owner_repo(reference, parts, prerelease)

    if text.startswith(f"{GITHUB_HOST}/"):
        parts = text[len(GITHUB_HOST) + 1:].split("/")
        return _parse_owner_repo(reference, parts, prerelease)

    raise UnresolvableReference(
        reference,
        f"expected gh:owner/repo, https://{GITHUB_HOST}/owner/repo or {GITHUB_HOST}/owner/repo",
    )


def _parse_owner_repo(reference: str, parts: List[str], prerelease: bool) -> PackageIdentity:
    owner = parts[0] if parts else ""
    if not owner:
        raise UnresolvableReference(reference, "github owner name required")

    repo = parts[1] if len(parts) > 1 else ""
    version = None
    # versions never contain '@'
    if "@" in repo:
        repo, version = repo.split("@", 1)
        if not version:
            raise UnresolvableReference(reference, "version after '@' is empty")
    if not repo:
        raise UnresolvableReference(reference, "github repo name required")

    if len(parts) > 2:
        logger.debug("Ignoring extra path segments in %s", reference)

    return PackageIdentity(owner=owner, repo=repo, version=version, prerelease=prerelease)
