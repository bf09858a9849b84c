"""Self-update orchestration: stub cutover, source update, live cutover, cleanup."""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import structlog

from selfupdate.core.exceptions import SelfUpdateError
from selfupdate.schemas.update import (
    CleanupWarning,
    CutoverState,
    CutoverTarget,
    StepResult,
    UpdateConfig,
    UpdateReport,
    UpdateStatus,
)
from selfupdate.services.update.cutover import SymlinkCutover
from selfupdate.services.update.report import LogNotifier, Notifier, build_report_message
from selfupdate.services.update.sanitizer import TmpSanitizer
from selfupdate.services.vcs.base import VersionControlSystem
from selfupdate.services.vcs.detector import detect_vcs

logger = structlog.get_logger()

# Ordered list of run steps
APPLY_STEPS = [
    "detect_vcs",
    "check_changes",
    "link_stubs",
    "update_source",
    "link_live",
    "clear_tmp",
]


class UpdateOrchestrator:
    """Runs one self-update of the application described by an UpdateConfig.

    The public web paths are switched to their stubs before the working tree
    is touched and switched back only once the update finished. When the
    update fails the live links are restored before the run aborts.
    """

    def __init__(
        self,
        config: UpdateConfig,
        cutover: SymlinkCutover | None = None,
        sanitizer: TmpSanitizer | None = None,
        notifier: Notifier | None = None,
        detector: Callable[..., VersionControlSystem] = detect_vcs,
    ):
        self._config = config
        self._cutover = cutover or SymlinkCutover()
        self._sanitizer = sanitizer or TmpSanitizer(config.protected_names)
        self._notifier = notifier or LogNotifier()
        self._detector = detector
        self._restore_error: str | None = None

    @property
    def config(self) -> UpdateConfig:
        return self._config

    def run(self, force: bool = False) -> UpdateReport:
        """Run the full update sequence and deliver a report.

        Fatal errors do not propagate: they end the run and are recorded in
        the returned report, which is also handed to the notifier.
        """
        started_at = datetime.now(timezone.utc)
        steps = {s: StepResult(name=s) for s in APPLY_STEPS}
        log_entries: list[str] = []
        vcs: VersionControlSystem | None = None
        warnings: list[CleanupWarning] = []
        error: SelfUpdateError | None = None
        status = UpdateStatus.SUCCESS
        self._restore_error = None

        logger.info("update_started", root=str(self._config.project_root), force=force)

        try:
            # ── Step 1: Detect VCS ───────────────────────────────────────────
            vcs = self._run_step("detect_vcs", steps, log_entries, self._step_detect_vcs)

            # ── Step 2: Check Upstream ───────────────────────────────────────
            changed = self._run_step(
                "check_changes", steps, log_entries, self._step_check_changes, vcs, force,
            )

            if not changed:
                status = UpdateStatus.UP_TO_DATE
                for name in APPLY_STEPS[2:]:
                    steps[name].status = "skipped"
            else:
                # ── Step 3: Link Stubs ───────────────────────────────────────
                self._run_step("link_stubs", steps, log_entries, self._step_link_stubs)

                # ── Step 4: Update Source ────────────────────────────────────
                self._run_step(
                    "update_source", steps, log_entries, self._step_update_source, vcs,
                )

                # ── Step 5: Link Live ────────────────────────────────────────
                self._run_step("link_live", steps, log_entries, self._step_link_live)

                # ── Step 6: Clear Tmp ────────────────────────────────────────
                warnings = self._run_step("clear_tmp", steps, log_entries, self._step_clear_tmp)

            log_entries.append(self._log_entry("Update completed"))
            logger.info("update_completed", status=status.value, warnings=len(warnings))

        except SelfUpdateError as e:
            error = e
            status = UpdateStatus.FAILED
            log_entries.append(self._log_entry(f"Update failed: {e.message}"))
            logger.error("update_failed", code=e.code, error=e.message)

        maintenance_links: list[str] = []
        if error is not None:
            if self._restore_error:
                log_entries.append(self._log_entry(f"Live restore failed: {self._restore_error}"))
            maintenance_links = [
                str(m.link)
                for m in self._config.web_paths
                if self._cutover.state(m) == CutoverState.STUB
            ]
            if maintenance_links:
                log_entries.append(
                    self._log_entry(f"Site left in maintenance mode: {', '.join(maintenance_links)}")
                )
                logger.critical("update_left_in_maintenance", links=maintenance_links)

        failed_step = next((s.name for s in steps.values() if s.status == "failed"), None)
        report = UpdateReport(
            status=status,
            host_name=self._config.host_name,
            vcs=vcs.name if vcs else None,
            mappings=list(self._config.web_paths),
            steps=list(steps.values()),
            warnings=warnings,
            failed_step=failed_step,
            error_code=error.code if error else None,
            error_message=error.message if error else None,
            restore_error=self._restore_error,
            maintenance_links=maintenance_links,
            log=log_entries,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        self._notify(report)
        return report

    # ── Maintenance Actions ──────────────────────────────────────────────────

    def link_stubs(self) -> None:
        """Point every web path at its stub."""
        self._cutover.swap_all(self._config.web_paths, CutoverTarget.STUB)

    def link_live(self) -> None:
        """Point every web path at its live directory."""
        self._cutover.swap_all(self._config.web_paths, CutoverTarget.LIVE)

    def clear_tmp(self) -> list[CleanupWarning]:
        """Clear the configured tmp directories."""
        return self._sanitizer.sanitize(self._config.tmp_directories)

    # ── Individual Steps ─────────────────────────────────────────────────────

    def _step_detect_vcs(self) -> tuple[VersionControlSystem, str]:
        vcs = self._detector(self._config.project_root, git=self._config.git, hg=self._config.hg)
        return vcs, f"Detected {vcs.name} at {self._config.project_root}"

    def _step_check_changes(self, vcs: VersionControlSystem, force: bool) -> tuple[bool, str]:
        changed, _output = vcs.has_changes(Path(self._config.project_root))
        if changed:
            return True, "Upstream changes found"
        if force:
            return True, "No upstream changes, update forced"
        return False, "No upstream changes, project is up to date"

    def _step_link_stubs(self) -> tuple[None, str]:
        try:
            self.link_stubs()
        except SelfUpdateError:
            self._restore_live()
            raise
        return None, f"Linked {len(self._config.web_paths)} web path(s) to stub"

    def _step_update_source(self, vcs: VersionControlSystem) -> tuple[None, str]:
        try:
            output = vcs.update(Path(self._config.project_root))
        except Exception:
            self._restore_live()
            raise
        if output:
            logger.debug("vcs_update_output", output=output)
        return None, f"Updated source via {vcs.name}"

    def _step_link_live(self) -> tuple[None, str]:
        self.link_live()
        return None, f"Linked {len(self._config.web_paths)} web path(s) to live"

    def _step_clear_tmp(self) -> tuple[list[CleanupWarning], str]:
        try:
            warnings = self.clear_tmp()
        except OSError as e:
            logger.warning("tmp_cleanup_aborted", error=str(e))
            warnings = [CleanupWarning(path=str(e.filename or ""), message=str(e))]
        if warnings:
            return warnings, f"Cleared tmp directories with {len(warnings)} warning(s)"
        return warnings, f"Cleared {len(self._config.tmp_directories)} tmp director(ies)"

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _run_step(
        self,
        step_name: str,
        steps: dict[str, StepResult],
        log_entries: list,
        step_fn,
        *args,
    ):
        """Execute a step, record its outcome and return its value."""
        step = steps[step_name]
        step.status = "in_progress"

        try:
            value, result_msg = step_fn(*args)
        except SelfUpdateError as e:
            step.status = "failed"
            step.message = e.message
            raise
        except Exception as e:
            step.status = "failed"
            step.message = str(e)
            logger.exception("update_step_unexpected_error", step=step_name)
            raise SelfUpdateError(
                code=f"{step_name}_error",
                message=f"Step '{step_name}' failed: {e}",
            )

        step.status = "completed"
        step.message = result_msg
        log_entries.append(self._log_entry(result_msg))
        logger.info("update_step_completed", step=step_name, message=result_msg)
        return value

    def _restore_live(self) -> None:
        """Best-effort switch back to live after a failure."""
        try:
            self.link_live()
            logger.info("cutover_restored_live")
        except SelfUpdateError as e:
            self._restore_error = e.message
            logger.critical(
                "cutover_restore_failed",
                error=e.message,
                note="Site may remain in maintenance mode",
            )

    def _notify(self, report: UpdateReport) -> None:
        message = build_report_message(report, self._config.report_from, self._config.emails)
        try:
            self._notifier.send(message)
        except Exception:
            logger.exception("update_report_delivery_failed", subject=message.subject)

    @staticmethod
    def _log_entry(message: str) -> str:
        """Create a timestamped log entry."""
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        return f"[{ts}] {message}"
