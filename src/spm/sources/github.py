"""GitHub releases: latest-version lookup and spm.json retrieval."""

import json
import logging
from typing import Any, Dict, Optional, Tuple

import httpx
from pydantic import ValidationError

from spm.config import SpmConfig, config as default_config
from spm.errors import (
    ManifestDecodeFailed,
    ManifestFetchFailed,
    MalformedRemoteResponse,
    RemoteResolutionFailed,
)
from spm.http import HttpClient
from spm.models import ExtensionDefinition, LockEntry, PackageReleaseManifest
from spm.references import PackageIdentity

logger = logging.getLogger(__name__)


class GithubReleaseSource:
    """Resolves packages hosted as GitHub releases."""

    def __init__(self, http: HttpClient, settings: Optional[SpmConfig] = None):
        self.http = http
        self.settings = settings or default_config
        # spm.json is immutable once published for a tag
        self._manifest_cache: Dict[Tuple[str, str, str], PackageReleaseManifest] = {}

    def resolve_version(self, identity: PackageIdentity) -> str:
        """Return the pinned version, or look up the latest one."""
        if identity.version is not None:
            return identity.version
        return self.latest_version(identity.owner, identity.repo, prerelease=identity.prerelease)

    def latest_version(self, owner: str, repo: str, prerelease: bool = False) -> str:
        """
        Query the GitHub API for the newest release tag.

        Args:
            owner: Repository owner
            repo: Repository name
            prerelease: If True, take the newest release even if it is a pre-release

        Returns:
            The release's tag name

        Raises:
            RemoteResolutionFailed: On network failure or a non-2xx status
            MalformedRemoteResponse: If the body lacks a string tag_name
        """
        releases_url = f"{self.settings.github_api_url}/repos/{owner}/{repo}/releases"
        if prerelease:
            url = f"{releases_url}?per_page=1"
        else:
            url = f"{releases_url}/latest"

        logger.info("Resolving latest %srelease of %s/%s", "pre-" if prerelease else "", owner, repo)
        payload = self._get_api_json(url)

        if prerelease:
            if not isinstance(payload, list) or not payload:
                raise MalformedRemoteResponse(url, "expected a non-empty list of releases")
            payload = payload[0]

        if not isinstance(payload, dict) or "tag_name" not in payload:
            raise MalformedRemoteResponse(url, "Expected 'tag_name' in JSON response")
        tag_name = payload["tag_name"]
        if not isinstance(tag_name, str):
            raise MalformedRemoteResponse(url, "Expected 'tag_name' value to be a string")

        logger.info("Resolved %s/%s to %s", owner, repo, tag_name)
        return tag_name

    def release_manifest_url(self, owner: str, repo: str, version: str) -> str:
        return (
            f"https://{self.settings.github_host}/{owner}/{repo}/releases/download/"
            f"{version}/{self.settings.release_manifest_filename}"
        )

    def fetch_release_manifest(self, owner: str, repo: str, version: str) -> PackageReleaseManifest:
        """
        Download and decode a release's spm.json.

        Raises:
            ManifestFetchFailed: On network failure or a non-2xx status
            ManifestDecodeFailed: If the body is not a valid release manifest
        """
        key = (owner, repo, version)
        cached = self._manifest_cache.get(key)
        if cached is not None:
            logger.debug("Using cached spm.json for %s/%s@%s", owner, repo, version)
            return cached

        url = self.release_manifest_url(owner, repo, version)
        logger.info("Fetching %s", url)
        try:
            response = self.http.get(url)
        except httpx.HTTPError as e:
            raise ManifestFetchFailed(url, str(e)) from e
        if not response.ok:
            raise ManifestFetchFailed(url, f"HTTP {response.status}")

        try:
            data = json.loads(response.content)
        except ValueError as e:
            raise ManifestDecodeFailed(url, f"not valid JSON ({e})") from e
        try:
            manifest = PackageReleaseManifest.model_validate(data)
        except ValidationError as e:
            raise ManifestDecodeFailed(url, str(e)) from e

        _warn_duplicate_platforms(manifest, url)
        self._manifest_cache[key] = manifest
        return manifest

    def generate_lock(self, identity: PackageIdentity, definition: ExtensionDefinition) -> LockEntry:
        """Build the lock entry for one spm.toml extension."""
        version = definition.version or identity.version
        if version is None:
            # no pin anywhere, lock against the latest stable release
            version = self.latest_version(identity.owner, identity.repo)

        manifest = self.fetch_release_manifest(identity.owner, identity.repo, version)
        return LockEntry(
            version=version,
            artifacts=definition.artifacts,
            resolved_url=identity.url,
            resolved_spm_json=self.release_manifest_url(identity.owner, identity.repo, version),
            integrity="",
            spm_json=manifest,
        )

    def _get_api_json(self, url: str) -> Any:
        headers = {"Accept": "application/vnd.github+json"}
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"

        try:
            response = self.http.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise RemoteResolutionFailed(url, str(e)) from e
        if not response.ok:
            raise RemoteResolutionFailed(url, f"HTTP {response.status}")

        try:
            return json.loads(response.content)
        except ValueError as e:
            raise MalformedRemoteResponse(url, f"request did not return proper JSON ({e})") from e


def _warn_duplicate_platforms(manifest: PackageReleaseManifest, url: str) -> None:
    seen = set()
    for artifact in manifest.loadable:
        pair = (artifact.os, artifact.cpu)
        if pair in seen:
            logger.warning(
                "%s lists more than one artifact for %s-%s, the first one will be used",
                url, artifact.os, artifact.cpu,
            )
        seen.add(pair)
