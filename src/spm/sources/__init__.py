"""Package sources, one per ResolverKind."""

from .github import GithubReleaseSource

__all__ = [
    "GithubReleaseSource"
]
