"""Recursive installation engine.

Drives fetch, lockfile, dependency recursion, bin linking and manifest
bookkeeping for one package at a time. Everything runs sequentially: each
package is fully installed before its dependencies are visited, and
siblings are processed one after another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from cli_config import InstallSettings
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from errors import InstallError, ResolutionError, VersionCoercionError
from installer.archive import ArchiveFetcher
from installer.bin_linker import BinLinker
from installer.manifest import ManifestUpdater, PackageManifest, ProjectManifest
from installer.plan import InstallContext, SkippedEdge, plan_dependencies, plan_project
from registry.npm.client import NpmRegistryClient
from registry.npm.lockfile import LockfileRecorder
from versioning.models import PackageKey
from versioning.parser import parse_package_token
from versioning.resolvers.npm import NpmVersionResolver

logger = logging.getLogger(__name__)


@dataclass
class InstallReport:
    """Outcome of a manifest-driven install."""
    installed: List[PackageKey] = field(default_factory=list)
    skipped: List[SkippedEdge] = field(default_factory=list)
    failed: List[Tuple[str, str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Installer:
    """Installs packages and their transitive dependencies into node_modules.

    Each instance owns its own :class:`InstallContext`, so separate
    installers never share memoized state.
    """

    def __init__(
        self,
        settings: InstallSettings,
        client: Optional[NpmRegistryClient] = None,
        context: Optional[InstallContext] = None,
    ):
        self.settings = settings
        self.client = client or NpmRegistryClient(settings.registry_url, settings.timeout)
        self.context = context or InstallContext()
        self.resolver = NpmVersionResolver(self.client)
        self.fetcher = ArchiveFetcher(self.client, settings.modules_dir, settings.cache_dir)
        self.lockfile = LockfileRecorder(settings.lockfile_path, self.client)
        self.linker = BinLinker(settings.modules_dir, settings.bin_dir, settings.runtime)
        self.manifest_updater = ManifestUpdater(settings.manifest_path)

    @property
    def project_manifest(self) -> Optional[ProjectManifest]:
        """In-memory project manifest accumulated during this run, if loaded."""
        return self.manifest_updater.manifest

    def install_package(self, name: str, version: str, is_dev: bool = False) -> bool:
        """Install ``name@version`` and, recursively, its dependencies.

        Returns:
            True if the package was fetched, False if this run already
            installed the same key.

        Raises:
            InstallError: Any fetch, parse or lockfile failure in this
                package or anywhere in its dependency subtree.
        """
        key = PackageKey(name, version)
        if self.context.is_installed(key):
            logger.debug("%s is already installed; skipping", key)
            return False

        logger.info("Installing %s", key)
        self.context.mark_installing(key)
        try:
            result = self.fetcher.fetch(name, version)
            self.lockfile.record(name, result.version)
            self.context.mark_installed(key)
            if result.version != version:
                self.context.mark_installed(PackageKey(name, result.version))

            manifest = PackageManifest.load(result.path / Constants.PACKAGE_JSON_FILE, name)
            with self.context.visiting(key):
                for step in plan_dependencies(manifest, self.context):
                    if isinstance(step, SkippedEdge):
                        logger.warning(step.describe())
                        self.context.skipped.append(step)
                        continue
                    self.install_package(step.name, step.version)

            self._link_bins(manifest)
            self._record_in_manifest(name, result.version, is_dev)
        except InstallError as exc:
            self.context.mark_failed(key)
            if exc.package is None:
                exc.package, exc.version = name, version
            if exc.package == name:
                logger.error("Error installing package %s: %s", key, exc)
            elif is_debug_enabled(logger):
                logger.debug(
                    "Aborting subtree",
                    extra=extra_context(
                        event="install",
                        component="installer",
                        outcome="aborted",
                        package=name,
                        version=version,
                        cause=exc.describe(),
                    )
                )
            raise
        return True

    def _link_bins(self, manifest: PackageManifest) -> None:
        try:
            self.linker.link(manifest)
        except InstallError as exc:
            logger.warning("Could not link executables for %s: %s", manifest.name, exc)

    def _record_in_manifest(self, name: str, version: str, is_dev: bool) -> None:
        # In-memory only: transitive and plain installs never rewrite the
        # project manifest; only add() persists.
        if self.manifest_updater.manifest is None and not self.settings.manifest_path.exists():
            logger.debug("No project manifest at %s; not recording %s", self.settings.manifest_path, name)
            return
        try:
            self.manifest_updater.update(name, version, dev=is_dev, persist=False)
        except InstallError as exc:
            logger.warning("Could not update project manifest for %s@%s: %s", name, version, exc)

    def resolve(self, token: str) -> PackageKey:
        """Resolve a CLI token (``name`` or ``name@range``) to a concrete key.

        Raises:
            ResolutionError: If the registry lookup fails.
            VersionCoercionError: If the requested version cannot be coerced.
        """
        try:
            req = parse_package_token(token)
        except ValueError as exc:
            raise ResolutionError(str(exc), package=token) from exc
        logger.info("Fetching package: %s details from registry...", req.name)
        version = self.resolver.resolve(req)
        logger.info("Version of %s to be installed is %s", req.name, version)
        return PackageKey(req.name, version)

    def install(self, token: str, is_dev: bool = False) -> Optional[PackageKey]:
        """Resolve and install one package named on the command line.

        Returns None when the requested version cannot be coerced; the
        package is skipped with a warning. Other failures propagate.
        """
        try:
            key = self.resolve(token)
        except VersionCoercionError as exc:
            logger.warning("Skipping invalid version for %s: %s", exc.package, exc.version)
            return None
        self.install_package(key.name, key.version, is_dev)
        return key

    def add(self, token: str, is_dev: bool = False) -> Optional[PackageKey]:
        """Resolve a package, save it to the project manifest, then install it."""
        try:
            key = self.resolve(token)
        except VersionCoercionError as exc:
            logger.warning("Skipping invalid version for %s: %s", exc.package, exc.version)
            return None
        self.manifest_updater.update(key.name, key.version, dev=is_dev, persist=True)
        self.install_package(key.name, key.version, is_dev)
        return key

    def install_from_manifest(self) -> InstallReport:
        """Install every dependency listed in the project manifest.

        A failure in one top-level dependency is logged and the remaining
        top-level dependencies are still installed.

        Raises:
            ManifestParseError: If the project manifest is missing or malformed.
        """
        manifest = self.manifest_updater.load()
        report = InstallReport()

        if not manifest.dependencies and not manifest.dev_dependencies:
            logger.info("No dependencies found in %s", Constants.PACKAGE_JSON_FILE)
            return report

        logger.info("Installing all dependencies from %s...", Constants.PACKAGE_JSON_FILE)
        for step in plan_project(manifest):
            if isinstance(step, SkippedEdge):
                logger.warning(step.describe())
                self.context.skipped.append(step)
                continue
            try:
                self.install_package(step.name, step.version, step.is_dev)
            except InstallError as exc:
                logger.error("Failed to install %s@%s: %s", step.name, step.version, exc.describe())
                report.failed.append((step.name, step.version, str(exc)))

        report.installed = list(self.context.order)
        report.skipped = list(self.context.skipped)
        return report
