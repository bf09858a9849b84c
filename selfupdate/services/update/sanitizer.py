"""Best-effort cleanup of temporary directories."""

import fnmatch
from pathlib import Path

import structlog

from selfupdate.schemas.update import CleanupWarning

logger = structlog.get_logger()

DEFAULT_PROTECTED_NAMES = (".gitkeep",)


class TmpSanitizer:
    """Empties tmp directories while keeping protected marker files.

    A subdirectory is removed entirely unless something beneath it has to
    stay (a protected file, or an entry that could not be deleted). The
    configured directories themselves are never removed.
    """

    def __init__(self, protected_names: list[str] | tuple[str, ...] | None = None):
        self._protected = tuple(protected_names if protected_names is not None else DEFAULT_PROTECTED_NAMES)

    def is_protected(self, path: Path) -> bool:
        return any(fnmatch.fnmatchcase(path.name, pattern) for pattern in self._protected)

    def sanitize(self, dirs: list[Path]) -> list[CleanupWarning]:
        """Clear every directory in ``dirs``.

        Returns:
            Warnings for entries that could not be removed.
        """
        warnings: list[CleanupWarning] = []
        for directory in dirs:
            directory = Path(directory)
            try:
                missing = not directory.exists() and not directory.is_symlink()
                is_dir = directory.is_dir()
            except OSError as e:
                warnings.append(CleanupWarning(path=str(directory), message=f"Unable to inspect: {e}"))
                continue
            if missing:
                logger.debug("tmp_directory_missing", path=str(directory))
                continue
            if not is_dir:
                warnings.append(CleanupWarning(path=str(directory), message="Not a directory"))
                continue

            before = len(warnings)
            self._clear_children(directory, warnings)
            logger.info(
                "tmp_directory_cleared",
                path=str(directory),
                warnings=len(warnings) - before,
            )
        return warnings

    def _clear_children(self, directory: Path, warnings: list[CleanupWarning]) -> bool:
        """Remove the contents of ``directory``. Returns True if anything was kept."""
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            warnings.append(CleanupWarning(path=str(directory), message=f"Unable to list: {e}"))
            return True

        kept = False
        for entry in entries:
            try:
                is_real_dir = entry.is_dir() and not entry.is_symlink()
            except OSError as e:
                logger.warning("tmp_entry_not_inspected", path=str(entry), error=str(e))
                warnings.append(CleanupWarning(path=str(entry), message=f"Unable to inspect: {e}"))
                kept = True
                continue
            if is_real_dir:
                if self._clear_children(entry, warnings):
                    kept = True
                    continue
                kept = not self._remove(entry, warnings, is_dir=True) or kept
            elif self.is_protected(entry):
                kept = True
            else:
                kept = not self._remove(entry, warnings, is_dir=False) or kept
        return kept

    @staticmethod
    def _remove(entry: Path, warnings: list[CleanupWarning], is_dir: bool) -> bool:
        try:
            if is_dir:
                entry.rmdir()
            else:
                entry.unlink()
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning("tmp_entry_not_removed", path=str(entry), error=str(e))
            warnings.append(CleanupWarning(path=str(entry), message=str(e)))
            return False
