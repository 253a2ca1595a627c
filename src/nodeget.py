"""nodeget - a minimal npm-compatible package installer.

    Returns:
        int: Exit code
"""
import logging
import os
import sys

from args import build_parser, parse_args
from cli_config import InstallSettings
from cli_project import init_project, run_start
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import InstallError, ManifestParseError, ResolutionError
from installer import Installer

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging based on CLI arguments.

    Args:
        args: Parsed CLI arguments.
    """
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        ))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def _exit_code_for(exc: InstallError) -> int:
    if isinstance(exc, ResolutionError):
        return ExitCodes.CONNECTION_ERROR.value
    if isinstance(exc, ManifestParseError):
        return ExitCodes.FILE_ERROR.value
    return ExitCodes.INSTALL_ERROR.value


def run_install(args, settings: InstallSettings) -> int:
    """Handle ``install [package]``."""
    installer = Installer(settings)
    token = getattr(args, "PACKAGE", None)

    if token:
        try:
            key = installer.install(token, is_dev=getattr(args, "DEV", False))
        except InstallError as exc:
            logger.error("Failed to install package: %s", exc.describe())
            return _exit_code_for(exc)
        if key is None:
            return ExitCodes.INSTALL_ERROR.value
        logger.info("%s installed successfully", key.name)
        return ExitCodes.SUCCESS.value

    try:
        report = installer.install_from_manifest()
    except InstallError as exc:
        logger.error("Error installing packages: %s", exc.describe())
        return _exit_code_for(exc)

    logger.info(
        "Installed %d package(s), skipped %d, failed %d",
        len(report.installed),
        len(report.skipped),
        len(report.failed),
    )
    return ExitCodes.SUCCESS.value if report.ok else ExitCodes.INSTALL_ERROR.value


def run_add(args, settings: InstallSettings) -> int:
    """Handle ``add <package>``."""
    installer = Installer(settings)
    try:
        key = installer.add(args.PACKAGE, is_dev=getattr(args, "DEV", False))
    except InstallError as exc:
        logger.error("Failed to add package: %s", exc.describe())
        return _exit_code_for(exc)
    if key is None:
        return ExitCodes.INSTALL_ERROR.value
    logger.info("Added and installed %s", key)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    if not getattr(args, "action", None):
        build_parser().print_help()
        sys.exit(ExitCodes.SUCCESS.value)

    settings = InstallSettings.from_args(args)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action=args.action,
                target=str(settings.project_dir),
            )
        )

    handlers = {
        "install": lambda: run_install(args, settings),
        "add": lambda: run_add(args, settings),
        "start": lambda: run_start(settings),
        "init": lambda: init_project(settings, force=getattr(args, "FORCE", False)),
    }
    sys.exit(handlers[args.action]())


if __name__ == "__main__":
    main()
