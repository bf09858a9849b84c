from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from selfupdate.config import settings
from selfupdate.core.exceptions import SelfUpdateError, UnknownVcsError
from selfupdate.core.logging import configure_logging
from selfupdate.schemas.update import UpdateConfig, UpdateStatus

console = Console()
cli_app = typer.Typer(name="selfupdate", help="Self-update a deployed web application from version control")

_config_option = typer.Option(
    None,
    "--config-file",
    "-c",
    help="Deployment config file (defaults to SELFUPDATE_CONFIG_FILE)",
)


@cli_app.callback()
def _setup(
    log_format: str = typer.Option(None, "--log-format", help="Log output: 'json' or 'console'"),
):
    configure_logging(settings.selfupdate_log_level, log_format or settings.selfupdate_log_format)


def _load_config(config_file: Path | None) -> UpdateConfig:
    from selfupdate.services.update.deploy_config import load_deploy_config

    try:
        return load_deploy_config(config_file or Path(settings.selfupdate_config_file))
    except SelfUpdateError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)


def _orchestrator(config: UpdateConfig):
    from selfupdate.services.update.engine import UpdateOrchestrator

    return UpdateOrchestrator(config)


@cli_app.command("update")
def update(
    config_file: Path = _config_option,
    force: bool = typer.Option(False, "--force", help="Update even when upstream has no new revisions"),
):
    """Pull the latest revision behind the maintenance stub."""
    config = _load_config(config_file)
    report = _orchestrator(config).run(force=force)

    if report.status == UpdateStatus.SUCCESS:
        console.print(f"\n[bold green]Update of {report.host_name} completed ({report.vcs}).[/bold green]")
        for warning in report.warnings:
            console.print(f"  [yellow]Cleanup warning:[/yellow] {warning.path}: {warning.message}")
    elif report.status == UpdateStatus.UP_TO_DATE:
        console.print(f"[dim]{report.host_name} is already up to date.[/dim]")
    else:
        console.print(f"\n[bold red]Update failed at step '{report.failed_step}'.[/bold red]")
        console.print(f"  {report.error_message}")
        raise typer.Exit(code=1)


@cli_app.command("config")
def config(
    path: Path = typer.Argument(help="Where to write the deployment config"),
    project_root: Path = typer.Option(None, "--project-root", help="Application root (defaults to cwd)"),
):
    """Generate a deployment config file with resolved defaults."""
    from selfupdate.services.update.deploy_config import default_deploy_config, write_deploy_config

    written = write_deploy_config(path, default_deploy_config(project_root))
    console.print(f"[bold green]Config written to {written}[/bold green]")


@cli_app.command("link-stubs")
def link_stubs(config_file: Path = _config_option):
    """Point every web path at its maintenance stub."""
    config = _load_config(config_file)
    try:
        _orchestrator(config).link_stubs()
    except SelfUpdateError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"Linked {len(config.web_paths)} web path(s) to stub.")


@cli_app.command("link-live")
def link_live(config_file: Path = _config_option):
    """Point every web path at its live directory."""
    config = _load_config(config_file)
    try:
        _orchestrator(config).link_live()
    except SelfUpdateError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"Linked {len(config.web_paths)} web path(s) to live.")


@cli_app.command("clear-tmp")
def clear_tmp(config_file: Path = _config_option):
    """Clear the configured tmp directories."""
    config = _load_config(config_file)
    warnings = _orchestrator(config).clear_tmp()
    for warning in warnings:
        console.print(f"[yellow]{warning.path}: {warning.message}[/yellow]")
    console.print(f"Cleared {len(config.tmp_directories)} tmp director(ies).")


@cli_app.command("status")
def status(config_file: Path = _config_option):
    """Show the detected VCS and where each web path currently points."""
    from selfupdate.services.update.cutover import SymlinkCutover
    from selfupdate.services.vcs.detector import detect_vcs

    config = _load_config(config_file)
    try:
        vcs_name = detect_vcs(config.project_root, git=config.git, hg=config.hg).name
    except UnknownVcsError:
        vcs_name = "unknown"
    console.print(f"Project root: {config.project_root} ({vcs_name})")

    if not config.web_paths:
        console.print("[dim]No web paths configured.[/dim]")
        return

    cutover = SymlinkCutover()
    table = Table(title="Web Paths")
    table.add_column("Link", style="cyan")
    table.add_column("State", style="green")
    table.add_column("Live")
    table.add_column("Stub")
    for mapping in config.web_paths:
        table.add_row(str(mapping.link), cutover.state(mapping).value, str(mapping.path), str(mapping.stub))
    console.print(table)


def main():
    cli_app()


if __name__ == "__main__":
    main()
