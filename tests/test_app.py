from __future__ import annotations

import json
from pathlib import Path

import pytest

from platform_switcher import app as app_module
from platform_switcher.app import PlatformSwitcherApp, build_parser, main
from platform_switcher.core.protected import CORE_ARCHIVES

from conftest import FakeProcessManager, RecordingSink


@pytest.fixture
def root(tmp_path: Path) -> Path:
    root = tmp_path / "Diablo II"
    (root / "Platforms" / "LoD").mkdir(parents=True)
    (root / "Platforms" / "LoD" / "Game.exe").write_text("lod")
    (root / "Saves").mkdir()
    for archive in CORE_ARCHIVES:
        (root / archive).write_text("core")
    return root


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / "state"


def _main(state_dir: Path, *argv: str) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(["--state-dir", str(state_dir), *argv])
    return exc_info.value.code


def test_settings_add_and_list(root, state_dir, capsys):
    assert _main(state_dir, "settings", "--root", str(root)) == 0
    assert _main(state_dir, "add", "--platform", "LoD", "--label", "Hardcore", "--launcher", "Game.exe") == 0
    capsys.readouterr()

    assert _main(state_dir, "list") == 0

    out = capsys.readouterr().out
    assert "1. LoD [Hardcore] -> Game.exe" in out
    settings = json.loads((state_dir / "Settings.json").read_text(encoding="utf-8"))
    assert settings["rootDirectory"] == str(root)
    assert (state_dir / "platform_switcher.log").exists()
    assert not (state_dir / "platform_switcher.lock").exists()


def test_add_requires_platform_directory(root, state_dir, capsys):
    _main(state_dir, "settings", "--root", str(root))

    assert _main(state_dir, "add", "--platform", "Classic", "--launcher", "Game.exe") == 2
    assert "doesn't exist in your Platforms folder" in capsys.readouterr().err


def test_flags_starting_with_dashes_are_kept_verbatim(root, state_dir):
    _main(state_dir, "settings", "--root", str(root))

    assert _main(state_dir, "add", "--platform", "LoD", "--launcher", "Game.exe",
                 '--flags=-w -direct -txt -title "D2 -LoD"') == 0
    entries = json.loads((state_dir / "Entries.json").read_text(encoding="utf-8"))
    assert entries[0]["Flags"] == '-w -direct -txt -title "D2 -LoD"'

    assert _main(state_dir, "edit", "1", "--flags=--skiptobnet -ns") == 0
    entries = json.loads((state_dir / "Entries.json").read_text(encoding="utf-8"))
    assert entries[0]["Flags"] == "--skiptobnet -ns"


def test_invalid_root_refused(state_dir, tmp_path, capsys):
    assert _main(state_dir, "settings", "--root", str(tmp_path / "missing")) == 2
    assert "does not exist" in capsys.readouterr().err


def test_unknown_entry_number(root, state_dir, capsys):
    _main(state_dir, "settings", "--root", str(root))

    assert _main(state_dir, "delete", "3") == 2
    assert "There is no entry number 3" in capsys.readouterr().err


def test_reset_with_nothing_installed(root, state_dir, capsys):
    _main(state_dir, "settings", "--root", str(root))

    assert _main(state_dir, "reset") == 2
    assert "Nothing to reset" in capsys.readouterr().err


def test_corrupt_state_exits_with_one(state_dir, capsys):
    state_dir.mkdir()
    (state_dir / "Entries.json").write_text("{broken", encoding="utf-8")

    assert _main(state_dir, "list") == 1

    assert "failed to load" in capsys.readouterr().err
    assert (state_dir / "Entries.json.bak").exists()
    assert not (state_dir / "Entries.json").exists()
    assert not (state_dir / "platform_switcher.lock").exists()


def test_run_edit_and_reset_through_app(root, state_dir, monkeypatch, capsys):
    sink = RecordingSink()
    monkeypatch.setattr(app_module, "create_activation_sink", lambda paths: sink)
    process_manager = FakeProcessManager()
    parser = build_parser()

    def run(*argv: str) -> int:
        app = PlatformSwitcherApp(state_dir, process_manager=process_manager)
        app.start()
        try:
            return app.run(parser.parse_args(list(argv)))
        finally:
            app.stop()

    assert run("settings", "--root", str(root)) == 0
    assert run("add", "--platform", "LoD", "--label", "Hardcore", "--launcher", "Game.exe", "--flags=-w") == 0
    assert run("copy", "1") == 0
    assert run("edit", "2", "--platform", "LoD", "--label", "Softcore") == 0
    assert run("run", "1") == 0

    assert (root / "Game.exe").read_text() == "lod"
    assert process_manager.launches[-1][1] == "-w"
    assert [e.describe() for e in sink.updates] == ["LoD [Hardcore]"]

    assert run("move-up", "2") == 0
    assert run("reset") == 0
    assert not (root / "Game.exe").exists()

    entries = json.loads((state_dir / "Entries.json").read_text(encoding="utf-8"))
    assert [(e["Label"], e["WasLastRan"]) for e in entries] == [("Softcore", False), ("Hardcore", False)]


def test_legacy_entries_migrated_on_start(root, state_dir):
    state_dir.mkdir()
    (state_dir / "Entries.json").write_text(
        json.dumps([{"Platform": "LoD", "Path": str(root / "Game.exe"), "WasLastRan": False}]),
        encoding="utf-8",
    )

    app = PlatformSwitcherApp(state_dir, process_manager=FakeProcessManager())
    app.start()
    app.stop()

    assert app.entries.get_entries()[0].launcher == "Game.exe"
    assert app.state_manager.state.settings.root_directory == str(root)
