"""Library search path used by ``spm activate`` and ``spm run``."""

import logging
import os
import shlex
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from spm.errors import InvalidPathSegment, PreloadDirectoryNotFound
from spm.host import LibraryPathConfig, detect_library_path_config

logger = logging.getLogger(__name__)


def resolve_library_path(
    extensions_dir: Path,
    base_dir: Path,
    preload_directories: Optional[Sequence[str]] = None,
    path_config: Optional[LibraryPathConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Build the value of the library search path variable.

    Order: the variable's current segments, then preload directories, then
    the extensions directory, which always comes last so it never shadows
    a preloaded directory.

    Args:
        extensions_dir: The project's sqlite_extensions/ directory
        base_dir: Project base directory, relative preload directories resolve against it
        preload_directories: ``preloadDirectories`` from spm.toml
        path_config: Variable name and separator; defaults to this host's
        environ: Environment to read the current value from; defaults to os.environ

    Raises:
        PreloadDirectoryNotFound: If a relative preload directory does not exist
        InvalidPathSegment: If a segment contains the separator
    """
    path_config = path_config or detect_library_path_config()
    environ = os.environ if environ is None else environ

    segments: List[str] = []
    existing = environ.get(path_config.variable_name)
    if existing:
        segments.extend(existing.split(path_config.separator))

    for directory in preload_directories or []:
        segments.append(str(_resolve_preload(base_dir, directory)))

    segments.append(str(extensions_dir))
    value = join_library_path(segments, path_config.separator)
    logger.debug("%s=%s", path_config.variable_name, value)
    return value


def join_library_path(segments: Sequence[str], separator: str) -> str:
    for segment in segments:
        if separator in segment:
            raise InvalidPathSegment(segment, separator)
    return separator.join(segments)


def _resolve_preload(base_dir: Path, directory: str) -> Path:
    path = Path(directory)
    if path.is_absolute():
        return path
    absolute = base_dir / path
    try:
        return absolute.resolve(strict=True)
    except OSError as e:
        raise PreloadDirectoryNotFound(absolute) from e


def activate_statement(path_config: LibraryPathConfig, value: str) -> str:
    return f"export {path_config.variable_name}={shlex.quote(value)}"


def deactivate_statement(path_config: LibraryPathConfig) -> str:
    return f"unset {path_config.variable_name}"
