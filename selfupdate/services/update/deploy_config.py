"""Deployment config file generation and loading."""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from selfupdate.core.exceptions import ConfigurationError
from selfupdate.schemas.update import UpdateConfig

logger = structlog.get_logger()

_HEADER = (
    "# Self-update deployment configuration.\n"
    "# web_paths entries take link, path (live web root) and stub (maintenance directory).\n"
)


def default_deploy_config(project_root: Path | None = None) -> UpdateConfig:
    """Config with every default resolved, rooted at ``project_root`` or the cwd."""
    return UpdateConfig(project_root=Path(project_root or Path.cwd()).absolute())


def write_deploy_config(path: Path, config: UpdateConfig | None = None) -> Path:
    """Write ``config`` (or the defaults) as YAML, replacing any existing file."""
    path = Path(path)
    config = config or default_deploy_config()
    data = config.model_dump(mode="json")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(_HEADER)
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)

    logger.info("deploy_config_written", path=str(path))
    return path


def load_deploy_config(path: Path) -> UpdateConfig:
    """Read and validate a deployment config file.

    Raises:
        ConfigurationError if the file is missing, unreadable or invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(
            message=f"Deployment config not found: {path}",
            details={"path": str(path)},
        )

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            message=f"Unable to read deployment config {path}: {e}",
            details={"path": str(path)},
        )

    if not isinstance(data, dict):
        raise ConfigurationError(
            message=f"Deployment config {path} must be a mapping",
            details={"path": str(path)},
        )

    try:
        return UpdateConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            message=f"Invalid deployment config {path}: {e.error_count()} error(s)",
            details={"path": str(path), "errors": e.errors(include_url=False)},
        )
