"""Mirror the active entry into the system so the game finds its saves"""

import sys
from typing import Protocol

from ..config.paths import InstallPaths
from ..config.schema import Entry
from ..logging_config import get_logger

logger = get_logger("registry")

GAME_REGISTRY_KEY = r"Software\Blizzard Entertainment\Diablo II"


class ActivationSink(Protocol):
    """Receives the entry that just became active."""

    def update(self, entry: Entry) -> None:
        ...


class RegistryActivationSink:
    """Points the game's save and install paths at the active entry.

    Diablo II reads "Save Path" / "NewSavePath" from HKEY_CURRENT_USER; if
    the directory is missing it silently falls back to <root>\\Save.
    """

    def __init__(self, paths: InstallPaths):
        self.paths = paths

    def update(self, entry: Entry) -> None:
        import winreg

        save_directory = str(self.paths.get_save_directory(entry))
        root_directory = str(self.paths.get_root_directory())

        logger.info(f"Updating registry: save path {save_directory}, install path {root_directory}")
        with winreg.CreateKey(winreg.HKEY_CURRENT_USER, GAME_REGISTRY_KEY) as key:
            winreg.SetValueEx(key, "Save Path", 0, winreg.REG_SZ, save_directory)
            winreg.SetValueEx(key, "NewSavePath", 0, winreg.REG_SZ, save_directory)
            winreg.SetValueEx(key, "InstallPath", 0, winreg.REG_SZ, root_directory)


class LoggingActivationSink:
    """Used where there is no registry; records what would have been set."""

    def __init__(self, paths: InstallPaths):
        self.paths = paths

    def update(self, entry: Entry) -> None:
        logger.info(
            f"Active entry is now {entry.describe()} "
            f"(save path {self.paths.get_save_directory(entry)})"
        )


def create_activation_sink(paths: InstallPaths) -> ActivationSink:
    if sys.platform == "win32":
        return RegistryActivationSink(paths)
    return LoggingActivationSink(paths)
