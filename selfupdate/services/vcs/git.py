"""Git backend."""

from pathlib import Path

import structlog

from selfupdate.schemas.update import GitOptions
from selfupdate.services.vcs.base import VersionControlSystem

logger = structlog.get_logger()


class Git(VersionControlSystem):
    """Updates a Git working tree with ``git pull`` from the configured remote."""

    name = "git"
    marker = ".git"

    def __init__(self, root: Path, options: GitOptions | None = None):
        options = options or GitOptions()
        super().__init__(root, options.bin_path)
        self._remote = options.remote
        self._branch = options.branch

    @property
    def remote(self) -> str:
        return self._remote

    def current_branch(self, path: Path) -> str:
        """Branch to track: the configured one, else the one checked out."""
        if self._branch:
            return self._branch
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path)
        return result.stdout.strip()

    def has_changes(self, path: Path) -> tuple[bool, str]:
        branch = self.current_branch(path)
        fetch = self._run(["fetch", self._remote], cwd=path)
        diff = self._run(["diff", "--numstat", "HEAD", f"{self._remote}/{branch}"], cwd=path)
        changed = bool(diff.stdout.strip())
        logger.info("git_changes_checked", remote=self._remote, branch=branch, changed=changed)
        return changed, "\n".join(p for p in (self._output(fetch), diff.stdout.strip()) if p)

    def update(self, path: Path) -> str:
        branch = self.current_branch(path)
        result = self._run(["pull", self._remote, branch], cwd=path)
        logger.info("git_pulled", remote=self._remote, branch=branch)
        return self._output(result)
