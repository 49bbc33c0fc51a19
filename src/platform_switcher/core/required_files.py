"""Compute the installable surface of a platform directory"""

from pathlib import Path

from ..config.paths import InstallPaths
from ..config.schema import Entry, RequiredFiles
from ..logging_config import get_logger
from .protected import ProtectedSetPolicy

logger = get_logger("required_files")


class RequiredFilesGenerator:
    """Lists the top-level files and directories a platform provides.

    Only names are recorded; contents are never compared. Protected names are
    always filtered out.
    """

    def __init__(self, paths: InstallPaths, policy: ProtectedSetPolicy):
        self.paths = paths
        self.policy = policy

    def compute(self, platform_dir: Path) -> RequiredFiles:
        """Scan a platform directory.

        Args:
            platform_dir: Directory under Platforms/

        Returns:
            Manifest of its immediate children, empty if the directory is missing
        """
        if not platform_dir.is_dir():
            logger.debug(f"Platform directory {platform_dir} does not exist, using empty manifest")
            return self.empty()

        required_files = RequiredFiles()
        for child in platform_dir.iterdir():
            if child.is_dir():
                required_files.directories.add(child.name)
            elif child.is_file():
                required_files.files.add(child.name)

        return self.policy.filter_protected(required_files)

    def for_entry(self, entry: Entry) -> RequiredFiles:
        return self.compute(self.paths.get_platform_directory(entry))

    @staticmethod
    def empty() -> RequiredFiles:
        return RequiredFiles()
