"""Mercurial backend."""

from pathlib import Path

import structlog

from selfupdate.schemas.update import MercurialOptions
from selfupdate.services.vcs.base import VersionControlSystem

logger = structlog.get_logger()


class Mercurial(VersionControlSystem):
    """Updates a Mercurial working tree with ``hg pull`` followed by ``hg update``."""

    name = "mercurial"
    marker = ".hg"

    def __init__(self, root: Path, options: MercurialOptions | None = None):
        options = options or MercurialOptions()
        super().__init__(root, options.bin_path)

    def has_changes(self, path: Path) -> tuple[bool, str]:
        # hg incoming exits 1 when there is nothing to pull
        result = self._run(["incoming"], cwd=path, ok_codes=(0, 1))
        changed = result.returncode == 0
        logger.info("hg_changes_checked", changed=changed)
        return changed, self._output(result)

    def update(self, path: Path) -> str:
        pulled = self._run(["pull"], cwd=path)
        updated = self._run(["update"], cwd=path)
        logger.info("hg_updated")
        return "\n".join(p for p in (self._output(pulled), self._output(updated)) if p)
