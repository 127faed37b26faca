"""Detection of the running platform.

Everything that depends on the host operating system is decided here,
once, and handed to the installer and library path resolver.
"""

import platform
from dataclasses import dataclass
from typing import Optional

# platform.machine() spellings -> names used in spm.json
_CPU_NAMES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "i386": "x86",
    "i686": "x86",
}


@dataclass(frozen=True)
class Platform:
    """An (os, cpu) pair as written in spm.json."""
    os: str
    cpu: str

    def __str__(self) -> str:
        return f"{self.os}-{self.cpu}"


@dataclass(frozen=True)
class LibraryPathConfig:
    """The dynamic-library search path variable of an operating system."""
    variable_name: str
    separator: str


LINUX_LIBRARY_PATH = LibraryPathConfig("LD_LIBRARY_PATH", ":")
MACOS_LIBRARY_PATH = LibraryPathConfig("DYLD_LIBRARY_PATH", ":")
WINDOWS_LIBRARY_PATH = LibraryPathConfig("PATH", ";")


def detect_platform() -> Platform:
    """Return the (os, cpu) pair of the running interpreter."""
    system = platform.system().lower()
    machine = platform.machine().lower()
    return Platform(os=system, cpu=_CPU_NAMES.get(machine, machine))


def detect_library_path_config(system: Optional[str] = None) -> LibraryPathConfig:
    """Pick the library search path variable for ``system`` (default: this host)."""
    system = (system or platform.system()).lower()
    if system == "darwin":
        return MACOS_LIBRARY_PATH
    if system == "windows":
        return WINDOWS_LIBRARY_PATH
    return LINUX_LIBRARY_PATH
