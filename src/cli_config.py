"""Runtime settings for an install run.

Settings are resolved from defaults, an optional YAML config file,
environment variables and CLI flags, in increasing order of precedence.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)


def _default_runtime() -> str:
    return shutil.which(Constants.DEFAULT_RUNTIME) or Constants.DEFAULT_RUNTIME


def _parse_timeout(value: Any) -> Optional[float]:
    """Interpret a timeout value; zero or negative means wait forever."""
    if value is None:
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load settings overrides from a YAML (or JSON) file.

    A missing or malformed file is logged and treated as empty.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config: %s", e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be a mapping", config_path)
        return {}
    return data


@dataclass
class InstallSettings:
    """Configuration for one installer run."""

    project_dir: Path = field(default_factory=Path.cwd)
    registry_url: str = Constants.REGISTRY_URL_NPM
    timeout: Optional[float] = Constants.REQUEST_TIMEOUT
    runtime: str = field(default_factory=_default_runtime)
    modules_dir_name: str = Constants.MODULES_DIR

    @property
    def modules_dir(self) -> Path:
        return self.project_dir / self.modules_dir_name

    @property
    def bin_dir(self) -> Path:
        return self.modules_dir / Constants.BIN_DIR

    @property
    def cache_dir(self) -> Path:
        return self.modules_dir / Constants.CACHE_DIR

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / Constants.PACKAGE_JSON_FILE

    @property
    def lockfile_path(self) -> Path:
        return self.project_dir / Constants.PACKAGE_LOCK_FILE

    def apply(self, overrides: Dict[str, Any], source: str) -> None:
        """Apply ``registry``/``timeout``/``runtime`` overrides from a mapping."""
        try:
            if overrides.get("registry"):
                self.registry_url = str(overrides["registry"])
            if "timeout" in overrides and overrides["timeout"] is not None:
                self.timeout = _parse_timeout(overrides["timeout"])
            if overrides.get("runtime"):
                self.runtime = str(overrides["runtime"])
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring invalid settings from %s: %s", source, exc)

    @classmethod
    def from_args(cls, args: Any, environ: Optional[Dict[str, str]] = None) -> "InstallSettings":
        """Create settings from parsed CLI arguments.

        Args:
            args: Parsed CLI arguments namespace.
            environ: Environment mapping; defaults to ``os.environ``.

        Returns:
            InstallSettings instance.
        """
        environ = os.environ if environ is None else environ

        directory = getattr(args, "DIRECTORY", None)
        settings = cls(project_dir=Path(directory).resolve() if directory else Path.cwd())

        config_path = getattr(args, "CONFIG", None)
        if not config_path:
            candidate = settings.project_dir / Constants.CONFIG_FILE
            config_path = str(candidate) if candidate.is_file() else None
        file_overrides = load_config_file(config_path)
        if file_overrides:
            logger.info("Loaded config from: %s", config_path)
            settings.apply(file_overrides, config_path)

        settings.apply(
            {
                "registry": environ.get(Constants.ENV_REGISTRY),
                "timeout": environ.get(Constants.ENV_TIMEOUT),
                "runtime": environ.get(Constants.ENV_RUNTIME),
            },
            "environment",
        )
        settings.apply(
            {
                "registry": getattr(args, "REGISTRY", None),
                "timeout": getattr(args, "TIMEOUT", None),
            },
            "command line",
        )
        return settings
