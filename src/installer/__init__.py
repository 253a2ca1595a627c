"""Recursive package installation engine."""

from .installer import InstallReport, Installer
from .plan import InstallContext

__all__ = [
    "InstallContext",
    "InstallReport",
    "Installer",
]
