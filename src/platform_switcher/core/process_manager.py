"""Launching the game and knowing whether it is still running"""

import ctypes
import os
import shlex
import subprocess
import sys
import threading
from pathlib import Path
from typing import Iterable, Optional

import psutil

from ..logging_config import get_logger

logger = get_logger("process_manager")

DEFAULT_GAME_PROCESS_NAMES = ("Game.exe", "Diablo II.exe")


def is_user_admin() -> bool:
    """Check whether this process runs elevated (Windows) or as root."""
    if sys.platform == "win32":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class ProcessManager:
    """Starts launchers on worker threads and tracks running games.

    The game counts as running while any process started here is alive, or
    while a process with one of ``game_process_names`` exists (the game may
    have been started outside this application, or by a launcher that has
    already exited).
    """

    def __init__(self, game_process_names: Optional[Iterable[str]] = None):
        if game_process_names is None:
            game_process_names = DEFAULT_GAME_PROCESS_NAMES
        self.game_process_names = {name.casefold() for name in game_process_names}
        self._process_count = 0
        self._lock = threading.Lock()
        self.last_error: Optional[str] = None

    @property
    def are_processes_running(self) -> bool:
        """True while a process started by this manager is alive."""
        with self._lock:
            return self._process_count > 0

    def is_game_running(self) -> bool:
        if self.are_processes_running:
            return True
        return self._is_game_process_alive()

    def _is_game_process_alive(self) -> bool:
        if not self.game_process_names:
            return False
        for proc in psutil.process_iter(["name"]):
            name = proc.info.get("name")
            if name and name.casefold() in self.game_process_names:
                logger.debug(f"Found running game process {name} (pid {proc.pid})")
                return True
        return False

    def launch(self, launcher_path: Path, launcher_flags: str, elevate: bool) -> threading.Thread:
        """Start the launcher on a worker thread.

        The process is counted as running before this returns. The worker
        waits for the process to exit; there is no timeout.

        Args:
            launcher_path: Executable to run (working directory is its parent)
            launcher_flags: Command-line arguments, passed through verbatim
            elevate: Whether the caller runs elevated; children inherit it

        Returns:
            The started worker thread
        """
        with self._lock:
            self._process_count += 1

        thread = threading.Thread(
            target=self._run_process,
            args=(launcher_path, launcher_flags or "", elevate),
            name=f"launch-{launcher_path.name}",
            daemon=True,
        )
        thread.start()
        return thread

    def _run_process(self, launcher_path: Path, launcher_flags: str, elevate: bool) -> None:
        try:
            logger.info(f"Launching {launcher_path} {launcher_flags} (elevated: {elevate})")
            process = subprocess.Popen(
                self._build_command(launcher_path, launcher_flags),
                cwd=str(launcher_path.parent),
            )
            process.wait()
            logger.info(f"{launcher_path.name} exited with code {process.returncode}")
        except (OSError, ValueError) as e:
            self.last_error = (
                f"There was an error launching the application.\n\n{e}\n\nLaunch Path: {launcher_path}"
            )
            logger.error(self.last_error)
        finally:
            with self._lock:
                self._process_count -= 1

    @staticmethod
    def _build_command(launcher_path: Path, launcher_flags: str):
        if sys.platform == "win32":
            # CreateProcess takes the flags exactly as typed
            command = subprocess.list2cmdline([str(launcher_path)])
            if launcher_flags.strip():
                command = f"{command} {launcher_flags}"
            return command
        return [str(launcher_path), *shlex.split(launcher_flags)]
