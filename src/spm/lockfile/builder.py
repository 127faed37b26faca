"""Generation of spm.lock from spm.toml."""

import logging

from spm.errors import UnresolvableReference
from spm.models import LockDocument, PackageManifest
from spm.references import ResolverKind, parse_reference
from spm.sources import GithubReleaseSource

logger = logging.getLogger(__name__)

LOCKFILE_VERSION = 0


def build_lock(manifest: PackageManifest, source: GithubReleaseSource) -> LockDocument:
    """
    Resolve every spm.toml extension into a lock entry.

    Identities are re-derived from the spm.toml keys, so pre-release
    resolution is never re-applied here. Entries are processed in sorted
    order and the first failure aborts the whole build.

    Args:
        manifest: The parsed spm.toml
        source: Source used to fetch release manifests

    Returns:
        The complete lock document
    """
    extensions = {}
    for reference in sorted(manifest.extensions):
        definition = manifest.extensions[reference]
        identity = parse_reference(reference)
        if identity.kind is not ResolverKind.GITHUB_RELEASE:
            raise UnresolvableReference(reference, f"no source available for {identity.kind.value}")

        logger.info("Locking %s", reference)
        extensions[reference] = source.generate_lock(identity, definition)

    return LockDocument(version=LOCKFILE_VERSION, extensions=extensions)
