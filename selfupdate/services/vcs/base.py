"""Common interface for version control backends."""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from selfupdate.core.exceptions import VcsError

logger = structlog.get_logger()


class VersionControlSystem(ABC):
    """A version control backend bound to one working tree.

    Subclasses declare the marker directory that identifies their working
    trees and implement ``update`` and ``has_changes`` with their native
    commands.
    """

    name: str = ""
    marker: str = ""

    def __init__(self, root: Path, bin_path: str):
        self._root = Path(root)
        self._bin_path = bin_path

    @property
    def root(self) -> Path:
        return self._root

    @property
    def bin_path(self) -> str:
        return self._bin_path

    @classmethod
    def matches(cls, root: Path) -> bool:
        """Check whether ``root`` contains this backend's marker directory."""
        return (Path(root) / cls.marker).is_dir()

    @abstractmethod
    def update(self, path: Path) -> str:
        """Bring the working tree at ``path`` up to date with upstream.

        Returns:
            Combined command output, for the run log.

        Raises:
            VcsError if any command fails.
        """

    @abstractmethod
    def has_changes(self, path: Path) -> tuple[bool, str]:
        """Check upstream for revisions not yet in the working tree at ``path``."""

    def _run(self, args: list[str], cwd: Path, ok_codes: tuple[int, ...] = (0,)) -> subprocess.CompletedProcess:
        """Run a backend command in ``cwd`` and return the completed process."""
        command = [self._bin_path, *args]
        logger.debug("vcs_command", vcs=self.name, command=command, cwd=str(cwd))
        try:
            result = subprocess.run(
                command,
                cwd=str(cwd),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            raise VcsError(
                message=f"{self.name} binary not found: {self._bin_path}",
                details={"command": " ".join(command)},
            )
        except OSError as e:
            raise VcsError(
                message=f"Unable to run {self.name}: {e}",
                details={"command": " ".join(command)},
            )

        if result.returncode not in ok_codes:
            stderr = (result.stderr or "").strip()
            logger.warning(
                "vcs_command_failed",
                vcs=self.name,
                command=command,
                returncode=result.returncode,
                stderr=stderr[:500],
            )
            raise VcsError(
                message=f"'{' '.join(command)}' exited with code {result.returncode}: {stderr or 'no output'}",
                details={
                    "command": " ".join(command),
                    "returncode": result.returncode,
                    "stderr": stderr,
                },
            )
        return result

    @staticmethod
    def _output(result: subprocess.CompletedProcess) -> str:
        return "\n".join(
            part.strip() for part in (result.stdout or "", result.stderr or "") if part and part.strip()
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self._root)!r})"
