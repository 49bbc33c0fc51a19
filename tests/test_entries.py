from __future__ import annotations

import pytest

from platform_switcher.config.manager import StateManager
from platform_switcher.config.schema import Entry
from platform_switcher.core.entries import EntryManager, names_equal
from platform_switcher.errors import DuplicateEntryError, InvalidEntryError


@pytest.fixture
def entries(tmp_path) -> EntryManager:
    return EntryManager(StateManager(tmp_path))


def _fill(entries: EntryManager, *platforms: str) -> list[Entry]:
    return [entries.add(Entry(platform=p, launcher="Game.exe")) for p in platforms]


def _platforms(entries: EntryManager) -> list[str]:
    return [e.platform for e in entries.get_entries()]


def test_names_equal():
    assert names_equal("LoD", "lod")
    assert names_equal(None, "")
    assert not names_equal("Hardcore", None)


@pytest.mark.parametrize("entry", [
    Entry(platform="", launcher="Game.exe"),
    Entry(platform="LoD", launcher="  "),
    Entry(platform="Lo|D", launcher="Game.exe"),
    Entry(platform="LoD", launcher="Game?.exe"),
    Entry(platform="LoD", label="Hard/core", launcher="Game.exe"),
    Entry(platform="..", launcher="Game.exe"),
    Entry(platform=".", launcher="Game.exe"),
    Entry(platform="LoD", label="..", launcher="Game.exe"),
])
def test_add_rejects_invalid_entries(entries, entry):
    with pytest.raises(InvalidEntryError):
        entries.add(entry)
    assert entries.get_entries() == []


def test_add_rejects_duplicates_case_insensitively(entries):
    entries.add(Entry(platform="LoD", label="Hardcore", launcher="Game.exe"))

    with pytest.raises(DuplicateEntryError):
        entries.add(Entry(platform="lod", label="HARDCORE", launcher="Diablo II.exe"))

    # Same platform with another label is fine
    entries.add(Entry(platform="LoD", label="Softcore", launcher="Game.exe"))
    assert len(entries.get_entries()) == 2


def test_add_never_starts_installed(entries):
    entry = entries.add(Entry(platform="LoD", launcher="Game.exe", was_last_ran=True))

    assert not entry.was_last_ran
    assert entries.state_manager.entries_path.exists()


def test_flags_may_contain_anything(entries):
    entry = entries.add(Entry(platform="LoD", launcher="Game.exe", flags='-w -title "a|b"'))

    assert entry.flags == '-w -title "a|b"'


def test_copy_has_no_platform(entries):
    original = entries.add(Entry(platform="LoD", label="Hardcore", launcher="Game.exe", flags="-w"))

    copy = entries.copy(original)

    assert copy is not original
    assert copy.platform == ""
    assert (copy.label, copy.launcher, copy.flags) == ("Hardcore", "Game.exe", "-w")
    assert entries.get_entries()[-1] is copy


def test_delete(entries):
    a, b = _fill(entries, "A", "B")

    entries.delete(a)

    assert entries.get_entries() == [b]
    assert [e.platform for e in StateManager(entries.state_manager.state_dir).load_entries()] == ["B"]


def test_move_up_and_down(entries):
    a, b, c = _fill(entries, "A", "B", "C")

    entries.move_up(a)
    assert _platforms(entries) == ["A", "B", "C"]

    entries.move_up(c)
    assert _platforms(entries) == ["A", "C", "B"]

    entries.move_down(a)
    assert _platforms(entries) == ["C", "A", "B"]

    entries.move_down(b)
    assert _platforms(entries) == ["C", "A", "B"]


@pytest.mark.parametrize("source,target,expected", [
    (0, 0, ["A", "B", "C", "D"]),
    (0, 1, ["A", "B", "C", "D"]),
    (0, 2, ["B", "A", "C", "D"]),
    (0, 4, ["B", "C", "D", "A"]),
    (3, 0, ["D", "A", "B", "C"]),
    (2, 1, ["A", "C", "B", "D"]),
])
def test_move_uses_drop_positions(entries, source, target, expected):
    _fill(entries, "A", "B", "C", "D")

    entries.move(source, target)

    assert _platforms(entries) == expected


def test_move_out_of_range(entries):
    _fill(entries, "A", "B")

    with pytest.raises(IndexError):
        entries.move(5, 0)


def test_only_one_entry_is_last_ran(entries):
    a, b, c = _fill(entries, "A", "B", "C")
    a.was_last_ran = True
    c.was_last_ran = True

    entries.mark_last_ran(b)

    assert entries.get_last_ran() is b
    assert entries.last_ran_count() == 1

    entries.swap_last_ran(b, c)
    assert entries.get_last_ran() is c
    assert entries.last_ran_count() == 1

    entries.clear_last_ran()
    assert entries.get_last_ran() is None


def test_rename_platform_cascades(entries):
    hc = entries.add(Entry(platform="LoD", label="HC", launcher="Game.exe"))
    sc = entries.add(Entry(platform="lod", label="SC", launcher="Game.exe"))
    other = entries.add(Entry(platform="Classic", launcher="Game.exe"))

    entries.rename_platform("LOD", "LoD113")

    assert (hc.platform, sc.platform, other.platform) == ("LoD113", "LoD113", "Classic")


def test_rename_label_only_within_platform(entries):
    lod = entries.add(Entry(platform="LoD", label="HC", launcher="Game.exe"))
    classic = entries.add(Entry(platform="Classic", label="HC", launcher="Game.exe"))

    entries.rename_label("LoD", "hc", "Hardcore")

    assert lod.label == "Hardcore"
    assert classic.label == "HC"


def test_does_platform_match_last_ran(entries):
    a, _ = _fill(entries, "A", "B")
    assert not entries.does_platform_match_last_ran("A")

    entries.mark_last_ran(a)

    assert entries.does_platform_match_last_ran("a")
    assert not entries.does_platform_match_last_ran("B")
