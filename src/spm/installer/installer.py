"""Download, verify and extract locked extensions."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from spm.crypto import compute_md5_base64, compute_sha256
from spm.errors import AssetDownloadFailed, IntegrityMismatch, NoMatchingPlatform
from spm.host import Platform, detect_platform
from spm.http import HttpClient
from spm.installer.archive import archive_kind, read_members, select_members
from spm.models import LockDocument, LockEntry, PlatformArtifact

logger = logging.getLogger(__name__)


@dataclass
class InstalledExtension:
    """What a single lock entry put into the extensions directory."""
    reference: str
    version: str
    asset_url: str
    files: List[Path] = field(default_factory=list)


class Installer:
    """
    Installs every entry of a lockfile into the extensions directory.

    Entries are processed one at a time; the first failure aborts the
    install and leaves files from earlier entries in place.
    """

    def __init__(
        self,
        http: HttpClient,
        extensions_dir: Path,
        platform: Optional[Platform] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            http: Client used to download release assets
            extensions_dir: Destination for extracted files
            platform: Target (os, cpu); defaults to the running host
            progress_callback: Optional callable(asset_url), called before each download
        """
        self.http = http
        self.extensions_dir = extensions_dir
        self.platform = platform or detect_platform()
        self.progress_callback = progress_callback

    def install(self, lock: LockDocument) -> List[InstalledExtension]:
        self.extensions_dir.mkdir(parents=True, exist_ok=True)
        installed = []
        for reference in sorted(lock.extensions):
            installed.append(self.install_entry(reference, lock.extensions[reference]))
        return installed

    def install_entry(self, reference: str, entry: LockEntry) -> InstalledExtension:
        artifact = self.select_artifact(reference, entry)
        url = asset_url(entry, artifact)

        if self.progress_callback:
            self.progress_callback(url)
        logger.info("Downloading %s", url)
        data = self._download(url)

        actual = compute_sha256(data)
        expected = artifact.asset_sha256.strip().lower()
        if actual != expected:
            raise IntegrityMismatch(artifact.asset_name, artifact.asset_sha256, actual)
        if artifact.asset_md5 and compute_md5_base64(data) != artifact.asset_md5:
            logger.warning("MD5 of %s does not match spm.json, SHA-256 matched", artifact.asset_name)

        kind = archive_kind(artifact.asset_name)
        members = select_members(
            read_members(data, kind, artifact.asset_name),
            entry.artifacts,
        )
        if not members:
            logger.warning("Nothing extracted from %s for %s", artifact.asset_name, reference)

        files = []
        for member in members:
            destination = self.extensions_dir / member.base_name
            if destination.exists():
                # a previous install may have left it read-only
                logger.debug("Overwriting %s", destination)
                destination.unlink()
            destination.write_bytes(member.data)
            if member.mode:
                os.chmod(destination, member.mode)
            files.append(destination)
            logger.info("Extracted %s to %s", member.path, destination)

        return InstalledExtension(reference=reference, version=entry.version, asset_url=url, files=files)

    def select_artifact(self, reference: str, entry: LockEntry) -> PlatformArtifact:
        artifact = entry.spm_json.find_artifact(self.platform.os, self.platform.cpu)
        if artifact is None:
            raise NoMatchingPlatform(self.platform.os, self.platform.cpu, reference)
        return artifact

    def _download(self, url: str) -> bytes:
        try:
            response = self.http.get(url)
        except httpx.HTTPError as e:
            raise AssetDownloadFailed(url, str(e)) from e
        if not response.ok:
            raise AssetDownloadFailed(url, f"HTTP {response.status}")
        return response.content


def asset_url(entry: LockEntry, artifact: PlatformArtifact) -> str:
    return f"{entry.resolved_url.rstrip('/')}/releases/download/{entry.version}/{artifact.asset_name}"
