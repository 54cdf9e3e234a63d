from pathlib import Path

import pytest

from domains.file_ingest.errors import AliasError, RelocationError
from domains.file_ingest.processors.relocation import (
    SystemTrash,
    create_recovery_alias,
    move_to_trash_root,
)


def _touch(path, content="data"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def test_move_to_trash_root_mirrors_relative_directory(tmp_path):
    original = _touch(tmp_path / "deposit" / "sub" / "x.pdf")
    trash_root = tmp_path / "trash"

    moved = move_to_trash_root(original, Path("sub"), trash_root)

    assert moved == trash_root / "sub" / "x.pdf"
    assert moved.read_text() == "data"
    assert not original.exists()


def test_move_to_trash_root_never_overwrites(tmp_path):
    trash_root = tmp_path / "trash"
    _touch(trash_root / "x.pdf", "older")
    original = _touch(tmp_path / "deposit" / "x.pdf", "newer")

    moved = move_to_trash_root(original, Path("."), trash_root)

    assert moved == trash_root / "x (1).pdf"
    assert (trash_root / "x.pdf").read_text() == "older"
    assert moved.read_text() == "newer"


def test_move_to_trash_root_reports_missing_source(tmp_path):
    with pytest.raises(RelocationError):
        move_to_trash_root(tmp_path / "gone.pdf", Path("."), tmp_path / "trash")


def test_recovery_alias_points_at_moved_file(tmp_path):
    target = _touch(tmp_path / "trash" / "x.pdf")
    alias = tmp_path / "export" / "x.pdf"
    alias.parent.mkdir()

    create_recovery_alias(alias, target)

    assert alias.is_symlink()
    assert alias.resolve() == target.resolve()


def test_recovery_alias_replaces_stale_link(tmp_path):
    old_target = _touch(tmp_path / "trash" / "x.pdf")
    new_target = _touch(tmp_path / "trash" / "x (1).pdf")
    alias = tmp_path / "x.pdf"
    alias.symlink_to(old_target)

    create_recovery_alias(alias, new_target)

    assert alias.resolve() == new_target.resolve()


def test_recovery_alias_keeps_real_files(tmp_path):
    target = _touch(tmp_path / "trash" / "x.pdf")
    occupant = _touch(tmp_path / "x.pdf", "user file")

    with pytest.raises(AliasError):
        create_recovery_alias(occupant, target)

    assert occupant.read_text() == "user file"


def test_system_trash_uses_freedesktop_layout(tmp_path):
    trash = SystemTrash(tmp_path / "Trash", platform="linux")
    original = _touch(tmp_path / "deposit" / "scan.pdf")

    moved = trash.trash(original)

    assert moved == tmp_path / "Trash" / "files" / "scan.pdf"
    assert moved.exists() and not original.exists()
    info = (tmp_path / "Trash" / "info" / "scan.pdf.trashinfo").read_text()
    assert info.startswith("[Trash Info]\n")
    assert "Path=" in info and "DeletionDate=" in info


def test_system_trash_renames_on_collision(tmp_path):
    trash = SystemTrash(tmp_path / "Trash", platform="linux")
    first = trash.trash(_touch(tmp_path / "a" / "scan.pdf", "one"))
    second = trash.trash(_touch(tmp_path / "b" / "scan.pdf", "two"))

    assert first.name == "scan.pdf"
    assert second.name == "scan (1).pdf"
    assert second.read_text() == "two"
    assert (tmp_path / "Trash" / "info" / "scan (1).pdf.trashinfo").exists()


def test_system_trash_keeps_orphaned_trashed_files(tmp_path):
    trash = SystemTrash(tmp_path / "Trash", platform="linux")
    orphan = _touch(tmp_path / "Trash" / "files" / "report.pdf", "old trashed content")

    moved = trash.trash(_touch(tmp_path / "deposit" / "report.pdf", "new"))

    assert moved == tmp_path / "Trash" / "files" / "report (1).pdf"
    assert moved.read_text() == "new"
    assert orphan.read_text() == "old trashed content"
    assert (tmp_path / "Trash" / "info" / "report (1).pdf.trashinfo").exists()
    assert not (tmp_path / "Trash" / "info" / "report.pdf.trashinfo").exists()


def test_system_trash_on_macos_uses_flat_folder(tmp_path):
    trash = SystemTrash(tmp_path / ".Trash", platform="darwin")
    _touch(tmp_path / ".Trash" / "scan.pdf")

    moved = trash.trash(_touch(tmp_path / "deposit" / "scan.pdf"))

    assert moved == tmp_path / ".Trash" / "scan (1).pdf"


def test_system_trash_failure_leaves_no_info_record(tmp_path):
    trash = SystemTrash(tmp_path / "Trash", platform="linux")

    with pytest.raises(RelocationError):
        trash.trash(tmp_path / "missing.pdf")

    assert list((tmp_path / "Trash" / "info").iterdir()) == []


def test_system_trash_unsupported_on_windows(tmp_path):
    original = _touch(tmp_path / "scan.pdf")

    with pytest.raises(RelocationError):
        SystemTrash(tmp_path / "Trash", platform="win32").trash(original)

    assert original.exists()


def test_system_trash_default_home(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    assert SystemTrash(platform="linux").home() == tmp_path / "data" / "Trash"
    assert SystemTrash(platform="darwin").home() == Path.home() / ".Trash"
