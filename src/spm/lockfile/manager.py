"""Lock file manager for spm.lock."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from spm.errors import InvalidProjectFile, MissingProjectFiles
from spm.models import LockDocument

logger = logging.getLogger(__name__)


def dumps(lock: LockDocument) -> str:
    """Serialize a lock document to spm.lock text."""
    return json.dumps(lock.to_dict(), indent=2) + "\n"


def loads(text: str) -> LockDocument:
    """Parse spm.lock text."""
    return LockDocument.from_dict(json.loads(text))


class LockFileManager:
    """Reads and writes a project's spm.lock."""

    def __init__(self, lockfile_path: Path):
        """
        Initialize lock file manager.

        Args:
            lockfile_path: Path to the spm.lock file
        """
        self.lockfile_path = lockfile_path

    def exists(self) -> bool:
        return self.lockfile_path.exists()

    def load(self) -> LockDocument:
        """Load the lock file.

        Raises:
            MissingProjectFiles: If there is no lock file
            InvalidProjectFile: If it is not a valid lock document
        """
        if not self.exists():
            raise MissingProjectFiles(self.lockfile_path)
        try:
            return loads(self.lockfile_path.read_text(encoding="utf-8"))
        except (ValueError, ValidationError) as e:
            raise InvalidProjectFile(self.lockfile_path, str(e)) from e

    def save(self, lock: LockDocument) -> None:
        """Replace the lock file with ``lock``."""
        self.lockfile_path.write_text(dumps(lock), encoding="utf-8")
        logger.info("Wrote %s (%d extensions)", self.lockfile_path, len(lock.extensions))
