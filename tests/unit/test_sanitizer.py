"""Unit tests for TmpSanitizer (selfupdate/services/update/sanitizer.py)."""

from pathlib import Path
from unittest.mock import patch

from selfupdate.services.update.sanitizer import TmpSanitizer


def _make_tmp(tmp_path: Path) -> Path:
    tmp = tmp_path / "runtime"
    tmp.mkdir()
    return tmp


class TestSanitize:
    def test_removes_files_and_directories(self, tmp_path):
        """Ordinary files and subdirectories go, the directory itself stays."""
        tmp = _make_tmp(tmp_path)
        (tmp / "test.txt").write_text("test content")
        (tmp / "test_dir").mkdir()
        (tmp / "test_dir" / "nested").mkdir()
        (tmp / "test_dir" / "nested" / "cache.bin").write_bytes(b"\x00")

        warnings = TmpSanitizer().sanitize([tmp])

        assert warnings == []
        assert tmp.is_dir()
        assert list(tmp.iterdir()) == []

    def test_keeps_protected_marker(self, tmp_path):
        """A .gitkeep survives while the ordinary file next to it is removed."""
        tmp = _make_tmp(tmp_path)
        (tmp / ".gitkeep").write_text("#test")
        (tmp / "test.txt").write_text("test content")

        TmpSanitizer().sanitize([tmp])

        assert (tmp / ".gitkeep").exists()
        assert not (tmp / "test.txt").exists()

    def test_keeps_directory_shell_around_protected_file(self, tmp_path):
        """A subdirectory holding a protected file keeps only that file."""
        tmp = _make_tmp(tmp_path)
        sub = tmp / "assets" / "cache"
        sub.mkdir(parents=True)
        (sub / ".gitkeep").write_text("")
        (sub / "a.css").write_text("body{}")
        (tmp / "assets" / "b.js").write_text("x")
        (tmp / "logs").mkdir()
        (tmp / "logs" / "app.log").write_text("log")

        TmpSanitizer().sanitize([tmp])

        assert (sub / ".gitkeep").exists()
        assert not (sub / "a.css").exists()
        assert not (tmp / "assets" / "b.js").exists()
        assert not (tmp / "logs").exists()

    def test_custom_protected_patterns(self, tmp_path):
        """Protected names accept glob patterns."""
        tmp = _make_tmp(tmp_path)
        (tmp / ".gitignore").write_text("*")
        (tmp / "keep.lock").write_text("")
        (tmp / "drop.txt").write_text("")

        TmpSanitizer(protected_names=[".gitignore", "*.lock"]).sanitize([tmp])

        assert sorted(p.name for p in tmp.iterdir()) == [".gitignore", "keep.lock"]

    def test_missing_directory_is_clean(self, tmp_path):
        """A missing tmp directory is skipped without warnings."""
        assert TmpSanitizer().sanitize([tmp_path / "nope"]) == []

    def test_symlinked_directory_is_unlinked_not_followed(self, tmp_path):
        """A symlink inside tmp is removed without touching its target."""
        tmp = _make_tmp(tmp_path)
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "data.txt").write_text("keep me")
        (tmp / "link").symlink_to(outside)

        TmpSanitizer().sanitize([tmp])

        assert not (tmp / "link").is_symlink()
        assert (outside / "data.txt").read_text() == "keep me"

    def test_processes_directories_in_order(self, tmp_path):
        """Every configured directory is cleared."""
        first = tmp_path / "one"
        second = tmp_path / "two"
        for d in (first, second):
            d.mkdir()
            (d / "f.txt").write_text("x")

        TmpSanitizer().sanitize([first, tmp_path / "missing", second])

        assert list(first.iterdir()) == []
        assert list(second.iterdir()) == []

    def test_permission_failure_becomes_warning(self, tmp_path):
        """Deletion errors are collected and the rest is still cleaned."""
        tmp = _make_tmp(tmp_path)
        (tmp / "locked.txt").write_text("x")
        (tmp / "free.txt").write_text("x")
        original_unlink = Path.unlink

        def _unlink(self, *args, **kwargs):
            if self.name == "locked.txt":
                raise PermissionError("Operation not permitted")
            return original_unlink(self, *args, **kwargs)

        with patch.object(Path, "unlink", _unlink):
            warnings = TmpSanitizer().sanitize([tmp])

        assert len(warnings) == 1
        assert warnings[0].path.endswith("locked.txt")
        assert "not permitted" in warnings[0].message
        assert (tmp / "locked.txt").exists()
        assert not (tmp / "free.txt").exists()

    def test_failed_entry_keeps_parent_directory(self, tmp_path):
        """A directory whose content could not be removed is left in place."""
        tmp = _make_tmp(tmp_path)
        sub = tmp / "sessions"
        sub.mkdir()
        (sub / "sess_1").write_text("x")
        original_unlink = Path.unlink

        def _unlink(self, *args, **kwargs):
            if self.name == "sess_1":
                raise PermissionError("denied")
            return original_unlink(self, *args, **kwargs)

        with patch.object(Path, "unlink", _unlink):
            warnings = TmpSanitizer().sanitize([tmp])

        assert [w.path for w in warnings] == [str(sub / "sess_1")]
        assert sub.is_dir()

    def test_path_that_is_a_file_warns(self, tmp_path):
        """A configured tmp path that is a file is reported, not deleted."""
        target = tmp_path / "not-a-dir"
        target.write_text("x")

        warnings = TmpSanitizer().sanitize([target])

        assert len(warnings) == 1
        assert target.exists()

    def test_unreadable_entry_becomes_warning(self, tmp_path):
        """An entry that cannot be inspected is reported and its siblings still go."""
        tmp = _make_tmp(tmp_path)
        (tmp / "sessions").mkdir()
        (tmp / "cache.dat").write_text("x")
        original_is_dir = Path.is_dir

        def _is_dir(self, *args, **kwargs):
            if self.name == "sessions":
                raise PermissionError(13, "Permission denied", str(self))
            return original_is_dir(self, *args, **kwargs)

        with patch.object(Path, "is_dir", _is_dir):
            warnings = TmpSanitizer().sanitize([tmp])

        assert [w.path for w in warnings] == [str(tmp / "sessions")]
        assert "Permission denied" in warnings[0].message
        assert not (tmp / "cache.dat").exists()
        assert (tmp / "sessions").exists()

    def test_uninspectable_tmp_directory_warns(self, tmp_path):
        """A configured directory that cannot be stat'ed is skipped with a warning."""
        tmp = _make_tmp(tmp_path)
        other = tmp_path / "other"
        other.mkdir()
        (other / "cache.dat").write_text("x")
        original_exists = Path.exists

        def _exists(self, *args, **kwargs):
            if self == tmp:
                raise PermissionError(13, "Permission denied", str(self))
            return original_exists(self, *args, **kwargs)

        with patch.object(Path, "exists", _exists):
            warnings = TmpSanitizer().sanitize([tmp, other])

        assert [w.path for w in warnings] == [str(tmp)]
        assert list(other.iterdir()) == []
