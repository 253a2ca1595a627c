"""Project-level commands: ``init`` and ``start``."""

from __future__ import annotations

import copy
import logging
import os
import subprocess
from typing import Dict, Mapping, Optional

from cli_config import InstallSettings
from common.jsonc import write_json_file
from constants import Constants, ExitCodes
from errors import ManifestParseError
from installer.manifest import ProjectManifest

logger = logging.getLogger(__name__)


def init_project(settings: InstallSettings, force: bool = False) -> int:
    """Write a default package.json into the project directory.

    Returns:
        Process exit code.
    """
    path = settings.manifest_path
    if path.exists() and not force:
        logger.error("%s already exists; use --force to overwrite it", path)
        return ExitCodes.FILE_ERROR.value

    try:
        write_json_file(path, copy.deepcopy(Constants.DEFAULT_MANIFEST))
    except OSError as exc:
        logger.error("Failed to initialize %s: %s", Constants.PACKAGE_JSON_FILE, exc)
        return ExitCodes.FILE_ERROR.value

    logger.info("Initialized a new %s file", Constants.PACKAGE_JSON_FILE)
    return ExitCodes.SUCCESS.value


def script_environment(settings: InstallSettings, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Environment for project scripts: ``.bin`` first on PATH, NODE_PATH set."""
    env = dict(os.environ if base is None else base)
    path = env.get("PATH", "")
    env["PATH"] = str(settings.bin_dir) + (os.pathsep + path if path else "")
    env["NODE_PATH"] = str(settings.modules_dir)
    return env


def run_start(settings: InstallSettings) -> int:
    """Run ``scripts.start`` through the shell and return its exit code."""
    try:
        manifest = ProjectManifest.load(settings.manifest_path)
        start_script = manifest.scripts.get("start")
    except ManifestParseError as exc:
        logger.error("Failed to read or parse %s: %s", Constants.PACKAGE_JSON_FILE, exc)
        return ExitCodes.FILE_ERROR.value

    if not start_script:
        logger.error("No start script found in %s", Constants.PACKAGE_JSON_FILE)
        return ExitCodes.FILE_ERROR.value

    logger.info("Running: %s", start_script)
    try:
        result = subprocess.run(  # noqa: S602
            start_script,
            shell=True,
            cwd=settings.project_dir,
            env=script_environment(settings),
            check=False,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130  # Standard SIGINT exit code

    logger.info("Child process exited with code %s", result.returncode)
    return result.returncode
