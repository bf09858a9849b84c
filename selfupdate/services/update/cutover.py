"""Symlink cutover between the live web root and the maintenance stub."""

import os
import shutil
from pathlib import Path

import structlog

from selfupdate.core.exceptions import InvalidTargetError, SelfUpdateError, SymlinkError
from selfupdate.schemas.update import CutoverState, CutoverTarget, WebPathMapping

logger = structlog.get_logger()


class SymlinkCutover:
    """Repoints web path links at their stub or live directory.

    Every mapping is swapped on its own: a failure on one mapping never
    undoes another. The current state is always read back from the
    filesystem, nothing is remembered between calls.
    """

    def swap_to(self, mapping: WebPathMapping, target: CutoverTarget) -> Path:
        """Point ``mapping.link`` at its stub or live directory.

        Returns:
            The absolute directory the link now points at.

        Raises:
            InvalidTargetError if the target directory is missing.
            SymlinkError if the link cannot be replaced.
        """
        destination = self._target_path(mapping, target)
        link = Path(os.path.abspath(mapping.link))

        if not destination.is_dir():
            raise InvalidTargetError(
                message=f"{target.value.title()} directory for {link} does not exist: {destination}",
                details={"link": str(link), "target": str(destination)},
            )

        if link.is_symlink() and os.readlink(link) == str(destination):
            logger.debug("cutover_unchanged", link=str(link), target=target.value)
            return destination

        try:
            self._replace_link(link, destination)
        except OSError as e:
            raise SymlinkError(
                message=f"Unable to link {link} to {destination}: {e}",
                details={"link": str(link), "target": str(destination)},
            )

        if not link.is_symlink() or os.readlink(link) != str(destination):
            raise SymlinkError(
                message=f"Link {link} does not point to {destination} after swap",
                details={"link": str(link), "target": str(destination)},
            )

        logger.info("cutover_swapped", link=str(link), target=target.value, path=str(destination))
        return destination

    def swap_all(self, mappings: list[WebPathMapping], target: CutoverTarget) -> list[WebPathMapping]:
        """Swap every mapping, attempting all of them even after a failure.

        Returns:
            The mappings that were swapped.

        Raises:
            The first SelfUpdateError encountered, once every mapping was tried.
        """
        swapped = []
        first_error: SelfUpdateError | None = None
        for mapping in mappings:
            try:
                self.swap_to(mapping, target)
                swapped.append(mapping)
            except SelfUpdateError as e:
                logger.error(
                    "cutover_failed",
                    link=str(mapping.link),
                    target=target.value,
                    error=e.message,
                )
                if first_error is None:
                    first_error = e
        if first_error is not None:
            first_error.details.setdefault("swapped", [str(m.link) for m in swapped])
            raise first_error
        return swapped

    def state(self, mapping: WebPathMapping) -> CutoverState:
        """Derive the mapping's current state from where its link points."""
        link = Path(os.path.abspath(mapping.link))
        if not link.is_symlink():
            return CutoverState.UNKNOWN if link.exists() else CutoverState.ABSENT
        current = os.readlink(link)
        if current == str(self._target_path(mapping, CutoverTarget.STUB)):
            return CutoverState.STUB
        if current == str(self._target_path(mapping, CutoverTarget.LIVE)):
            return CutoverState.LIVE
        return CutoverState.UNKNOWN

    @staticmethod
    def _target_path(mapping: WebPathMapping, target: CutoverTarget) -> Path:
        raw = mapping.stub if target == CutoverTarget.STUB else mapping.path
        return Path(os.path.abspath(raw))

    @staticmethod
    def _replace_link(link: Path, destination: Path) -> None:
        """Swap ``link`` for a symlink to ``destination``.

        Symlinks and files are replaced with a rename so the entry never goes
        missing. A real directory has to be removed first.
        """
        link.parent.mkdir(parents=True, exist_ok=True)

        if link.is_dir() and not link.is_symlink():
            logger.warning("cutover_removing_directory", link=str(link))
            shutil.rmtree(link)
            os.symlink(destination, link)
            return

        temp_link = link.with_name(f".{link.name}.selfupdate-{os.getpid()}")
        if temp_link.is_symlink() or temp_link.exists():
            temp_link.unlink()
        os.symlink(destination, temp_link)
        try:
            os.replace(temp_link, link)
        except OSError:
            if temp_link.is_symlink():
                temp_link.unlink()
            raise
