"""Path and name validation utilities to prevent dangerous file operations.

Provides validation for names and paths used by the switch engine to prevent:
- Entry fields that cannot be used as directory or file names
- Manifest names that would escape the install root
"""

from pathlib import Path
from typing import Optional

from ..logging_config import get_logger

logger = get_logger("path_validator")

# Characters that are not allowed in a Windows file or directory name
INVALID_NAME_CHARS = frozenset('<>:"/\\|?*') | frozenset(chr(i) for i in range(32))


def contains_invalid_characters(word: Optional[str]) -> bool:
    """Check if a name contains characters invalid in a file name.

    Args:
        word: The name to check (None is treated as valid)

    Returns:
        True if any invalid character is present
    """
    if word is None:
        return False
    return any(char in INVALID_NAME_CHARS for char in word)


def is_plain_name(name: str) -> bool:
    """Check that a manifest name refers to a direct child of a directory.

    Args:
        name: A file or directory name read from a manifest

    Returns:
        False for empty names, "." / "..", and names with path separators
    """
    if not name or not name.strip():
        return False
    if name in (".", ".."):
        return False
    return "/" not in name and "\\" not in name and "\0" not in name


def is_path_under_root(path: Path, root: Path) -> bool:
    """Check if a path is under a given root directory.

    Args:
        path: The path to check
        root: The root directory

    Returns:
        True if path is under root, False otherwise
    """
    try:
        path_resolved = path.resolve()
        root_resolved = root.resolve()
        return path_resolved == root_resolved or root_resolved in path_resolved.parents
    except (OSError, ValueError) as e:
        logger.warning("Failed to check path relationship: %s", e)
        return False


def resolve_child(root: Path, name: str) -> Optional[Path]:
    """Join a manifest name onto a root, refusing anything that escapes it.

    Args:
        root: Directory the name should live in
        name: File or directory name

    Returns:
        root / name, or None if the name is unsafe
    """
    if not is_plain_name(name):
        logger.warning("Refusing unsafe name %r below %s", name, root)
        return None
    return root / name


def validate_root_directory(root_path: Path) -> tuple[bool, str]:
    """Validate an install root path.

    Args:
        root_path: The root directory to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not str(root_path).strip():
        return False, "Root directory is empty"

    try:
        resolved = root_path.resolve()
    except (OSError, ValueError) as e:
        return False, f"Invalid path: {e}"

    if not resolved.exists():
        return False, "Root directory does not exist"

    if not resolved.is_dir():
        return False, "Root directory is not a directory"

    return True, ""
