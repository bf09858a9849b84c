"""Run report rendering and the notification boundary."""

from typing import Protocol

import structlog

from selfupdate.schemas.update import ReportMessage, UpdateReport, UpdateStatus

logger = structlog.get_logger()

_STATUS_LABELS = {
    UpdateStatus.SUCCESS: "success",
    UpdateStatus.UP_TO_DATE: "up to date",
    UpdateStatus.FAILED: "FAILED",
}


class Notifier(Protocol):
    """Delivers a report message. Transport is up to the implementation."""

    def send(self, message: ReportMessage) -> None: ...


class LogNotifier:
    """Notifier that only records the message in the log."""

    def send(self, message: ReportMessage) -> None:
        logger.info(
            "update_report",
            sender=message.sender,
            recipients=message.recipients,
            subject=message.subject,
        )


def build_report_message(report: UpdateReport, sender: str, recipients: list[str]) -> ReportMessage:
    """Render an UpdateReport as a plain-text message."""
    subject = f"Update at {report.host_name}: {_STATUS_LABELS[report.status]}"

    lines = [
        f"Host: {report.host_name}",
        f"Status: {_STATUS_LABELS[report.status]}",
        f"Version control: {report.vcs or 'not detected'}",
        f"Started: {report.started_at.isoformat()}",
    ]
    if report.finished_at:
        lines.append(f"Finished: {report.finished_at.isoformat()}")

    if report.status == UpdateStatus.FAILED:
        lines += [
            "",
            f"Failed step: {report.failed_step}",
            f"Error ({report.error_code}): {report.error_message}",
        ]

    if report.maintenance_links or report.restore_error:
        lines += ["", "WARNING: site left in maintenance mode"]
        if report.restore_error:
            lines.append(f"Live restore failed: {report.restore_error}")
        lines += [f"  {link}" for link in report.maintenance_links]

    if report.mappings:
        lines += ["", "Web paths:"]
        for m in report.mappings:
            on_stub = " [on stub]" if str(m.link) in report.maintenance_links else ""
            lines.append(f"  {m.link} -> {m.path} (stub: {m.stub}){on_stub}")

    if report.warnings:
        lines += ["", "Cleanup warnings:"]
        lines += [f"  {w.path}: {w.message}" for w in report.warnings]

    if report.log:
        lines += ["", "Log:"]
        lines += [f"  {entry}" for entry in report.log]

    return ReportMessage(
        sender=sender,
        recipients=list(recipients),
        subject=subject,
        body="\n".join(lines) + "\n",
    )
