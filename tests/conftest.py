from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

import pytest

from platform_switcher.config.manager import StateManager
from platform_switcher.config.paths import InstallPaths
from platform_switcher.config.schema import Entry
from platform_switcher.core.entries import EntryManager
from platform_switcher.core.entry_editor import EntryEditor
from platform_switcher.core.protected import CORE_ARCHIVES, ProtectedSetPolicy
from platform_switcher.core.required_files import RequiredFilesGenerator
from platform_switcher.core.switcher import FileSwitcher


class FakeProcessManager:
    """Records launches instead of starting processes."""

    def __init__(self):
        self.running = False
        self.launches: list[tuple[Path, str, bool]] = []
        self.last_error = None

    def is_game_running(self) -> bool:
        return self.running

    def launch(self, launcher_path: Path, launcher_flags: str, elevate: bool) -> threading.Thread:
        self.launches.append((launcher_path, launcher_flags, elevate))
        thread = threading.Thread(target=lambda: None)
        thread.start()
        return thread


class RecordingSink:
    def __init__(self):
        self.updates: list[Entry] = []

    def update(self, entry: Entry) -> None:
        self.updates.append(entry)


@dataclass
class Install:
    root: Path
    state_dir: Path
    state_manager: StateManager
    paths: InstallPaths
    policy: ProtectedSetPolicy
    generator: RequiredFilesGenerator
    entries: EntryManager
    process_manager: FakeProcessManager
    sink: RecordingSink
    switcher: FileSwitcher
    editor: EntryEditor

    def make_platform(self, name: str, files: dict[str, str] | None = None,
                      directories: dict[str, dict[str, str]] | None = None) -> Path:
        """Create Platforms/<name> with top-level files and directories."""
        platform_dir = self.root / "Platforms" / name
        platform_dir.mkdir(parents=True, exist_ok=True)
        for file_name, content in (files or {}).items():
            (platform_dir / file_name).write_text(content)
        for dir_name, children in (directories or {}).items():
            directory = platform_dir / dir_name
            directory.mkdir(parents=True, exist_ok=True)
            for child_name, content in children.items():
                (directory / child_name).write_text(content)
        return platform_dir

    def add_entry(self, platform: str, label: str | None = None,
                  launcher: str = "Game.exe", flags: str = "") -> Entry:
        return self.entries.add(Entry(platform=platform, label=label, launcher=launcher, flags=flags))

    def root_listing(self) -> dict[str, str | None]:
        """Name -> content (None for directories) of everything directly in the root."""
        listing = {}
        for child in self.root.iterdir():
            listing[child.name] = child.read_text() if child.is_file() else None
        return listing


@pytest.fixture
def install(tmp_path: Path) -> Install:
    root = tmp_path / "Diablo II"
    state_dir = tmp_path / "state"
    (root / "Platforms").mkdir(parents=True)
    (root / "Saves").mkdir()
    for archive in CORE_ARCHIVES:
        (root / archive).write_text(f"core {archive}")

    state_manager = StateManager(state_dir)
    state_manager.state.settings.root_directory = str(root)
    state_manager.save_settings()

    paths = InstallPaths(state_manager)
    policy = ProtectedSetPolicy(paths=paths)
    generator = RequiredFilesGenerator(paths, policy)
    entries = EntryManager(state_manager)
    process_manager = FakeProcessManager()
    sink = RecordingSink()
    switcher = FileSwitcher(entries, generator, process_manager, sink, paths, state_manager)
    editor = EntryEditor(entries, paths, process_manager, sink)

    return Install(
        root=root,
        state_dir=state_dir,
        state_manager=state_manager,
        paths=paths,
        policy=policy,
        generator=generator,
        entries=entries,
        process_manager=process_manager,
        sink=sink,
        switcher=switcher,
        editor=editor,
    )
