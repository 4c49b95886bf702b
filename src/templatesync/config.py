"""
Runtime configuration and logging setup.

Configuration lives in ``<home>/config.yaml``:

    jobs_dir: ~/.templatesync/jobs
    log_level: INFO
    audit_enabled: true
    audit_log: ~/.templatesync/audit.jsonl
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

from . import TEMPLATESYNC_HOME

logger = logging.getLogger("templatesync.config")

CONFIG_FILE_NAME = "config.yaml"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class TemplateSyncConfig(BaseModel):
    """Settings for the store, the audit trail, and logging."""

    home: Path = Path(TEMPLATESYNC_HOME)
    jobs_dir: Optional[Path] = None
    log_level: str = "INFO"
    audit_enabled: bool = True
    audit_log: Optional[Path] = None

    @property
    def resolved_jobs_dir(self) -> Path:
        return (self.jobs_dir or self.home / "jobs").expanduser()

    @property
    def resolved_audit_log(self) -> Path:
        return (self.audit_log or self.home / "audit.jsonl").expanduser()


def load_config(home: Optional[Path] = None) -> TemplateSyncConfig:
    """Load configuration from ``<home>/config.yaml``.

    Args:
        home: Override the home directory. Defaults to ``TEMPLATESYNC_HOME``.

    Returns:
        TemplateSyncConfig loaded from disk, or defaults.
    """
    home_path = Path(home or TEMPLATESYNC_HOME).expanduser()
    config_file = home_path / CONFIG_FILE_NAME
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                raise ValueError(f"{config_file} must contain a mapping")
            data["home"] = home_path
            return TemplateSyncConfig(**data)
        except (OSError, yaml.YAMLError, ValueError) as exc:
            logger.warning("Failed to load config: %s -- using defaults", exc)
    return TemplateSyncConfig(home=home_path)


def save_config(config: TemplateSyncConfig) -> Path:
    """Persist configuration to ``<home>/config.yaml``."""
    home_path = config.home.expanduser()
    home_path.mkdir(parents=True, exist_ok=True)
    config_file = home_path / CONFIG_FILE_NAME
    data = config.model_dump(mode="json", exclude={"home"}, exclude_none=True)
    config_file.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    return config_file


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
