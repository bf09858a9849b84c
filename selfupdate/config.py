import socket

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Process settings loaded from environment variables."""

    # Deployment config file read by the `update` and maintenance commands
    selfupdate_config_file: str = "selfupdate.yaml"

    # Logging
    selfupdate_log_level: str = "info"
    selfupdate_log_format: str = "json"  # "json" or "console"

    # Report defaults (None = derive from the machine)
    selfupdate_host_name: str | None = None
    selfupdate_report_from: str | None = None

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def default_host_name() -> str:
    """Host name used in reports when the deployment config does not set one."""
    return settings.selfupdate_host_name or socket.gethostname() or "localhost"


def default_report_from(host_name: str | None = None) -> str:
    """Sender address used in reports when the deployment config does not set one."""
    if settings.selfupdate_report_from:
        return settings.selfupdate_report_from
    return f"noreply@{host_name or default_host_name()}"
