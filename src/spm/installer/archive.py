"""Reading release asset archives (.tar.gz and .zip)."""

import io
import os
import tarfile
import zipfile
import zlib
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Sequence

from spm.errors import CorruptArchive, UnsupportedArchiveFormat


class ArchiveKind(str, Enum):
    """Supported asset archive formats."""
    TAR_GZ = "tar.gz"
    ZIP = "zip"


@dataclass
class ArchiveMember:
    """A regular file read from an archive."""
    path: str
    data: bytes
    mode: Optional[int] = None

    @property
    def base_name(self) -> str:
        """File name with every directory stripped."""
        return PurePosixPath(self.path.replace("\\", "/")).name

    @property
    def artifact_name(self) -> str:
        """Base name without its extension, compared against allow-lists."""
        return os.path.splitext(self.base_name)[0]


def archive_kind(asset_name: str) -> ArchiveKind:
    """Determine the archive format from an asset's file name."""
    if asset_name.endswith(".tar.gz"):
        return ArchiveKind.TAR_GZ
    if asset_name.endswith(".zip"):
        return ArchiveKind.ZIP
    raise UnsupportedArchiveFormat(asset_name)


def read_members(data: bytes, kind: ArchiveKind, asset_name: str = "asset") -> List[ArchiveMember]:
    """
    Read every regular file in an archive.

    Directories, links and other special entries are skipped.

    Raises:
        CorruptArchive: If the bytes are not a readable archive of ``kind``
    """
    try:
        if kind is ArchiveKind.TAR_GZ:
            return _read_tar_gz(data)
        return _read_zip(data)
    except (tarfile.TarError, zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
        raise CorruptArchive(asset_name, str(e)) from e


def select_members(
    members: Iterable[ArchiveMember],
    artifacts: Optional[Sequence[str]] = None,
) -> List[ArchiveMember]:
    """Keep members whose artifact name is allow-listed (all of them when no list)."""
    selected = []
    for member in members:
        if member.base_name in ("", ".", ".."):
            continue
        if artifacts is not None and member.artifact_name not in artifacts:
            continue
        selected.append(member)
    return selected


def _read_tar_gz(data: bytes) -> List[ArchiveMember]:
    members = []
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
        for info in archive:
            if not info.isfile():
                continue
            extracted = archive.extractfile(info)
            if extracted is None:
                continue
            members.append(ArchiveMember(
                path=info.name,
                data=extracted.read(),
                mode=(info.mode & 0o777) or None,
            ))
    return members


def _read_zip(data: bytes) -> List[ArchiveMember]:
    members = []
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            members.append(ArchiveMember(
                path=info.filename,
                data=archive.read(info),
                mode=((info.external_attr >> 16) & 0o777) or None,
            ))
    return members
