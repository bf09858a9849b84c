"""Test fixtures and helpers for self-update tests."""

from pathlib import Path

from selfupdate.core.exceptions import VcsError
from selfupdate.schemas.update import ReportMessage, WebPathMapping
from selfupdate.services.vcs.base import VersionControlSystem


def make_project_root(tmp_path: Path, markers: tuple[str, ...] = (".git",)) -> Path:
    """Create an application root containing the given VCS marker directories."""
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    for marker in markers:
        (root / marker).mkdir()
    return root


def make_web_mapping(
    tmp_path: Path,
    name: str = "httpdocs",
    link_to_live: bool = False,
    create_stub: bool = True,
) -> WebPathMapping:
    """Create live and stub directories for one web path.

    Args:
        tmp_path: pytest tmp_path fixture.
        name: Name of the public link.
        link_to_live: If True, create the link pointing at the live directory.
        create_stub: If False, leave the stub directory missing.
    """
    base = tmp_path / f"{name}-site"
    live = base / "web"
    stub = base / "webstub"
    live.mkdir(parents=True)
    (live / "index.html").write_text("live")
    if create_stub:
        stub.mkdir()
        (stub / "index.html").write_text("maintenance")
    link = base / name
    if link_to_live:
        link.symlink_to(live)
    return WebPathMapping(link=link, path=live, stub=stub)


class FakeVcs(VersionControlSystem):
    """In-memory backend that records calls instead of running commands."""

    name = "fake"
    marker = ".fake"

    def __init__(self, root: Path, changed: bool = True, fail_update: bool = False, on_update=None):
        super().__init__(root, "fake")
        self.changed = changed
        self.fail_update = fail_update
        self.on_update = on_update
        self.updated_paths: list[Path] = []

    def has_changes(self, path: Path) -> tuple[bool, str]:
        return self.changed, ""

    def update(self, path: Path) -> str:
        if self.on_update:
            self.on_update(path)
        if self.fail_update:
            raise VcsError(message="'fake pull' exited with code 1: merge conflict")
        self.updated_paths.append(path)
        return "Already up to date."


def fake_detector(vcs: VersionControlSystem):
    """Detector callable that always returns ``vcs``."""

    def _detect(root, **kwargs):
        return vcs

    return _detect


class RecordingNotifier:
    """Notifier that keeps every message it was asked to send."""

    def __init__(self):
        self.messages: list[ReportMessage] = []

    def send(self, message: ReportMessage) -> None:
        self.messages.append(message)
