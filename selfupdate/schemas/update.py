"""Pydantic v2 models for the self-update run and its deployment config."""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from selfupdate.config import default_host_name, default_report_from


# ── Deployment Config ────────────────────────────────────────────────────────


class WebPathMapping(BaseModel):
    """A public web entry and the two directories it may point at."""

    link: Path = Field(..., description="Public-facing entry, replaced by a symlink")
    path: Path = Field(..., description="Live web root")
    stub: Path = Field(..., description="Maintenance stub shown during updates")


class GitOptions(BaseModel):
    bin_path: str = "git"
    remote: str = "origin"
    branch: str | None = None  # None = currently checked out branch


class MercurialOptions(BaseModel):
    bin_path: str = "hg"


class UpdateConfig(BaseModel):
    """Everything a self-update run needs, loaded from the deployment config file."""

    project_root: Path
    web_paths: list[WebPathMapping] = Field(default_factory=list)
    tmp_directories: list[Path] = Field(default_factory=list)
    protected_names: list[str] = Field(default_factory=lambda: [".gitkeep"])
    emails: list[str] = Field(default_factory=list)
    host_name: str = Field(default_factory=default_host_name)
    report_from: str | None = None
    git: GitOptions = Field(default_factory=GitOptions)
    hg: MercurialOptions = Field(default_factory=MercurialOptions)

    @model_validator(mode="after")
    def _resolve_report_from(self) -> "UpdateConfig":
        if not self.report_from:
            self.report_from = default_report_from(self.host_name)
        return self


# ── Cutover ──────────────────────────────────────────────────────────────────


class CutoverTarget(str, Enum):
    STUB = "stub"
    LIVE = "live"


class CutoverState(str, Enum):
    STUB = "stub"
    LIVE = "live"
    ABSENT = "absent"
    UNKNOWN = "unknown"


# ── Run Results ──────────────────────────────────────────────────────────────


class CleanupWarning(BaseModel):
    """A tmp entry that could not be removed."""

    path: str
    message: str


class StepResult(BaseModel):
    name: str
    status: str = "pending"  # pending | in_progress | completed | failed | skipped
    message: str = ""


class UpdateStatus(str, Enum):
    SUCCESS = "success"
    UP_TO_DATE = "up_to_date"
    FAILED = "failed"


class UpdateReport(BaseModel):
    """Outcome of one orchestrated run."""

    status: UpdateStatus
    host_name: str
    vcs: str | None = None
    mappings: list[WebPathMapping] = Field(default_factory=list)
    steps: list[StepResult] = Field(default_factory=list)
    warnings: list[CleanupWarning] = Field(default_factory=list)
    failed_step: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    restore_error: str | None = None
    maintenance_links: list[str] = Field(default_factory=list)
    log: list[str] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return self.status != UpdateStatus.FAILED


class ReportMessage(BaseModel):
    """Outbound notification handed to the transport collaborator."""

    sender: str
    recipients: list[str] = Field(default_factory=list)
    subject: str
    body: str
