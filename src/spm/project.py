"""An spm project directory: spm.toml, spm.lock and sqlite_extensions/."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

import toml
from pydantic import ValidationError

from spm.config import SpmConfig, config as default_config
from spm.errors import InvalidProjectFile, MissingProjectFiles
from spm.host import LibraryPathConfig, Platform, detect_library_path_config
from spm.http import HttpClient
from spm.installer import InstalledExtension, Installer
from spm.library_path import resolve_library_path
from spm.lockfile import LockFileManager, build_lock, verify_against_manifest
from spm.models import ConfiguredExtension, LockDocument, PackageManifest, PinnedVersion
from spm.references import parse_reference
from spm.sources import GithubReleaseSource

logger = logging.getLogger(__name__)

INITIAL_MANIFEST = "[extensions]\n"


class Project:
    """
    A project rooted at ``base_dir``.

    Every spm command operates on one Project; it owns the HTTP client,
    so use it as a context manager or call close().
    """

    def __init__(
        self,
        base_dir: Path,
        settings: Optional[SpmConfig] = None,
        http: Optional[HttpClient] = None,
        path_config: Optional[LibraryPathConfig] = None,
    ):
        self.settings = settings or default_config
        self.base_dir = Path(base_dir).absolute()
        self.manifest_path = self.base_dir / self.settings.manifest_filename
        self.lockfile_path = self.base_dir / self.settings.lockfile_filename
        self.extensions_dir = self.base_dir / self.settings.extensions_dirname
        self.lockfile = LockFileManager(self.lockfile_path)
        self.path_config = path_config or detect_library_path_config()
        self._http = http
        self._source: Optional[GithubReleaseSource] = None

    @property
    def http(self) -> HttpClient:
        if self._http is None:
            self._http = HttpClient(self.settings)
        return self._http

    @property
    def source(self) -> GithubReleaseSource:
        if self._source is None:
            self._source = GithubReleaseSource(self.http, self.settings)
        return self._source

    def close(self) -> None:
        if self._http is not None:
            self._http.close()

    def __enter__(self) -> "Project":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # spm.toml

    def manifest_exists(self) -> bool:
        return self.manifest_path.exists()

    def read_manifest(self) -> PackageManifest:
        if not self.manifest_exists():
            raise MissingProjectFiles(self.manifest_path)
        try:
            data = toml.loads(self.manifest_path.read_text(encoding="utf-8"))
            return PackageManifest.model_validate(data)
        except (UnicodeDecodeError, toml.TomlDecodeError, ValidationError) as e:
            raise InvalidProjectFile(self.manifest_path, str(e)) from e

    def write_manifest(self, manifest: PackageManifest) -> None:
        self.manifest_path.write_text(toml.dumps(manifest.to_dict()), encoding="utf-8")

    # commands

    def init(self) -> None:
        """Create spm.toml and sqlite_extensions/ where missing."""
        if not self.manifest_exists():
            self.manifest_path.write_text(INITIAL_MANIFEST, encoding="utf-8")
            logger.info("Created %s", self.manifest_path)
        if not self.extensions_dir.exists():
            self.extensions_dir.mkdir(parents=True)
            (self.extensions_dir / ".gitignore").write_text("*", encoding="utf-8")
            logger.info("Created %s", self.extensions_dir)

    def add(
        self,
        reference: str,
        artifacts: Optional[Sequence[str]] = None,
        prerelease: bool = False,
        platform: Optional[Platform] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> List[InstalledExtension]:
        """
        Add (or re-pin) an extension, then lock and install.

        The spm.toml key is always the canonical https://github.com/owner/repo
        form, so adding the same package through another reference form
        overwrites the existing entry.
        """
        identity = parse_reference(reference, prerelease=prerelease)
        manifest = self.read_manifest()
        version = self.source.resolve_version(identity)

        if artifacts:
            definition = ConfiguredExtension(version=version, artifacts=list(artifacts))
        else:
            definition = PinnedVersion(version=version)
        manifest.extensions[identity.lookup_name] = definition
        self.write_manifest(manifest)
        logger.info("Added %s %s to %s", identity.lookup_name, version, self.manifest_path.name)

        lock = self.generate_lockfile(manifest)
        return self._install(lock, platform, progress_callback)

    def generate_lockfile(self, manifest: Optional[PackageManifest] = None) -> LockDocument:
        """Regenerate spm.lock from spm.toml."""
        if manifest is None:
            manifest = self.read_manifest()
        lock = build_lock(manifest, self.source)
        self.lockfile.save(lock)
        return lock

    def install(
        self,
        platform: Optional[Platform] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> List[InstalledExtension]:
        """Regenerate spm.lock, then install everything in it."""
        lock = self.generate_lockfile()
        return self._install(lock, platform, progress_callback)

    def clean_install(
        self,
        platform: Optional[Platform] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> List[InstalledExtension]:
        """Install exactly what spm.lock records, refusing a stale lock."""
        manifest = self.read_manifest()
        lock = self.lockfile.load()
        verify_against_manifest(manifest, lock)
        return self._install(lock, platform, progress_callback)

    def library_path(self, environ: Optional[Mapping[str, str]] = None) -> str:
        manifest = self.read_manifest()
        return resolve_library_path(
            self.extensions_dir,
            self.base_dir,
            manifest.preload_directories,
            self.path_config,
            environ,
        )

    def run(self, program: str, arguments: Sequence[str], environ: Optional[Mapping[str, str]] = None) -> int:
        """
        Run a program with the library path set in its environment only.

        Returns:
            The child's exit code, or 1 if it was killed by a signal
        """
        env = dict(os.environ if environ is None else environ)
        env[self.path_config.variable_name] = self.library_path(env)
        logger.info("Running %s", " ".join([program, *arguments]))
        completed = subprocess.run([program, *arguments], env=env)
        return child_exit_code(completed.returncode)

    def _install(
        self,
        lock: LockDocument,
        platform: Optional[Platform],
        progress_callback: Optional[Callable[[str], None]],
    ) -> List[InstalledExtension]:
        installer = Installer(self.http, self.extensions_dir, platform, progress_callback)
        return installer.install(lock)


def child_exit_code(returncode: int) -> int:
    # negative return codes mean the child died from a signal
    return returncode if returncode >= 0 else 1
