"""Exception types raised by the installation engine.

Every error carries the package name and the version that was being
installed so the CLI can report both alongside the underlying message.
"""

from __future__ import annotations

from typing import Optional


class InstallError(Exception):
    """Base class for failures while installing a package."""

    def __init__(
        self,
        message: str,
        package: Optional[str] = None,
        version: Optional[str] = None,
    ):
        super().__init__(message)
        self.package = package
        self.version = version

    def describe(self) -> str:
        """Return a one-line description including the package coordinates."""
        if self.package is None:
            return str(self)
        target = self.package if not self.version else f"{self.package}@{self.version}"
        return f"{target}: {self}"


class ResolutionError(InstallError):
    """Raised when the registry is unreachable or returns unusable metadata."""


class VersionCoercionError(InstallError):
    """Raised when a version token cannot be coerced to a concrete version."""


class FetchError(InstallError):
    """Raised when downloading or extracting a package archive fails."""


class ManifestParseError(InstallError):
    """Raised when a manifest or lockfile cannot be read or parsed."""


class LockWriteError(InstallError):
    """Raised when the lock structure cannot be persisted."""
