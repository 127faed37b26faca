"""Lock file verification utilities."""

from typing import List

from spm.errors import StaleLockfile
from spm.models import LockDocument, PackageManifest
from spm.references import parse_reference


def find_lock_drift(manifest: PackageManifest, lock: LockDocument) -> List[str]:
    """
    Compare spm.toml with spm.lock.

    Returns:
        One human readable line per difference, empty when they agree
    """
    problems = []

    for reference in sorted(set(manifest.extensions) - set(lock.extensions)):
        problems.append(f"{reference} is not locked")
    for reference in sorted(set(lock.extensions) - set(manifest.extensions)):
        problems.append(f"{reference} is locked but not in spm.toml")

    for reference in sorted(set(manifest.extensions) & set(lock.extensions)):
        definition = manifest.extensions[reference]
        entry = lock.extensions[reference]

        # without any pin the entry was locked to whatever was latest
        expected_version = definition.version or parse_reference(reference).version
        if expected_version is not None and expected_version != entry.version:
            problems.append(f"{reference} wants {expected_version}, locked {entry.version}")
        if definition.artifacts != entry.artifacts:
            problems.append(f"{reference} artifacts changed")

    return problems


def verify_against_manifest(manifest: PackageManifest, lock: LockDocument) -> None:
    """Raise StaleLockfile if spm.lock no longer matches spm.toml."""
    problems = find_lock_drift(manifest, lock)
    if problems:
        raise StaleLockfile("; ".join(problems))
