"""Version control detection for the application root."""

from pathlib import Path

import structlog

from selfupdate.core.exceptions import UnknownVcsError
from selfupdate.schemas.update import GitOptions, MercurialOptions
from selfupdate.services.vcs.base import VersionControlSystem
from selfupdate.services.vcs.git import Git
from selfupdate.services.vcs.mercurial import Mercurial

logger = structlog.get_logger()

# Detection priority, highest first
VCS_BACKENDS: tuple[type[VersionControlSystem], ...] = (Git, Mercurial)


def detect_vcs(
    root: Path,
    git: GitOptions | None = None,
    hg: MercurialOptions | None = None,
) -> VersionControlSystem:
    """Return the backend managing ``root``, bound to it.

    Marker directories are probed in ``VCS_BACKENDS`` order, so a tree holding
    both ``.git`` and ``.hg`` is always handled by Git.

    Raises:
        UnknownVcsError if ``root`` is not a directory or has no known marker.
    """
    root = Path(root)
    if not root.is_dir():
        raise UnknownVcsError(
            message=f"Project root is not a directory: {root}",
            details={"root": str(root)},
        )

    options = {Git: git, Mercurial: hg}
    for backend in VCS_BACKENDS:
        if backend.matches(root):
            logger.info("vcs_detected", vcs=backend.name, root=str(root))
            return backend(root, options.get(backend))

    markers = [b.marker for b in VCS_BACKENDS]
    raise UnknownVcsError(
        message=f"Unable to detect version control system at {root}: none of {', '.join(markers)} found.",
        details={"root": str(root), "markers": markers},
    )
