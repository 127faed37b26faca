"""Installation of locked extensions."""

from .archive import ArchiveKind, ArchiveMember, archive_kind, read_members, select_members
from .installer import Installer, InstalledExtension, asset_url

__all__ = [
    "ArchiveKind",
    "ArchiveMember",
    "archive_kind",
    "read_members",
    "select_members",
    "Installer",
    "InstalledExtension",
    "asset_url"
]
