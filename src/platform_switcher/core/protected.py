"""Names in the install root that the switch engine must never touch"""

from typing import Iterable, Optional

from ..config.paths import InstallPaths, StatePaths
from ..config.schema import RequiredFiles
from ..logging_config import get_logger

logger = get_logger("protected")

# Base game archives shipped with every installation
CORE_ARCHIVES = (
    "d2char.mpq",
    "d2data.mpq",
    "d2music.mpq",
    "d2sfx.mpq",
    "d2speech.mpq",
    "d2video.mpq",
)

# Lord of Destruction archives; their presence turns a Classic install into LoD
EXPANSION_ARCHIVES = (
    "d2exp.mpq",
    "d2xmusic.mpq",
    "d2xvideo.mpq",
    "d2xtalk.mpq",
)

LEGACY_SAVE_DIR_NAME = "Save"
LEGACY_LANGUAGE_FILE = "D2.LNG"


class ProtectedSetPolicy:
    """Decides which top-level names are off limits for install and delete.

    Matching is case-insensitive and exact (no wildcards). When ``paths`` is
    given, a backups directory configured directly below the root is
    protected as well; the default ``Backups`` name always is.
    """

    def __init__(self, managed_files: Optional[Iterable[str]] = None,
                 paths: Optional[InstallPaths] = None):
        if managed_files is None:
            managed_files = StatePaths.managed_files()

        names = [
            InstallPaths.PLATFORMS_DIR_NAME,
            InstallPaths.SAVES_DIR_NAME,
            InstallPaths.BACKUPS_DIR_NAME,
            LEGACY_SAVE_DIR_NAME,
            *CORE_ARCHIVES,
            *EXPANSION_ARCHIVES,
            LEGACY_LANGUAGE_FILE,
            *managed_files,
        ]
        self._names = tuple(names)
        self._folded = frozenset(name.casefold() for name in names)
        self._paths = paths

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def _backups_name_in_root(self) -> Optional[str]:
        """Name of the configured backups directory if it lives directly in the root."""
        if self._paths is None or not self._paths.is_root_directory_set():
            return None
        root_directory = self._paths.get_root_directory()
        backups_directory = self._paths.get_backups_directory()
        if str(backups_directory.parent).casefold() == str(root_directory).casefold():
            return backups_directory.name
        return None

    def is_protected(self, name: str) -> bool:
        folded = name.casefold()
        if folded in self._folded:
            return True
        backups_name = self._backups_name_in_root()
        return backups_name is not None and folded == backups_name.casefold()

    def filter_protected(self, required_files: RequiredFiles) -> RequiredFiles:
        """Strip protected names from a manifest.

        Args:
            required_files: Manifest from disk or from LastRequiredFiles.json

        Returns:
            A new manifest without any protected file or directory
        """
        filtered = RequiredFiles()

        for directory in required_files.directories:
            if self.is_protected(directory):
                logger.warning(f'Protected directory "{directory}" detected in list. Skipping it for protection.')
            else:
                filtered.directories.add(directory)

        for file in required_files.files:
            if self.is_protected(file):
                logger.warning(f'Protected file "{file}" detected in list. Skipping it for protection.')
            else:
                filtered.files.add(file)

        return filtered
