"""Package and project manifests (package.json)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from common.jsonc import read_json_file, write_json_file
from errors import InstallError, ManifestParseError

logger = logging.getLogger(__name__)


def _string_map(data: Dict[str, Any], key: str, source: str) -> Dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestParseError(f"'{key}' in {source} must be an object")
    return {str(name): str(spec) for name, spec in value.items() if spec is not None}


def _bin_entries(value: Any, package_name: str) -> Dict[str, str]:
    if isinstance(value, str):
        # Scoped packages get a shim named after the unscoped part.
        return {package_name.rsplit("/", 1)[-1]: value}
    if isinstance(value, dict):
        return {str(k): v for k, v in value.items() if isinstance(v, str)}
    return {}


@dataclass
class PackageManifest:
    """Read-only view of a downloaded package's manifest."""

    name: str
    version: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    bin: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], package_name: str, source: str = "package.json") -> "PackageManifest":
        """Build a manifest from parsed JSON.

        ``package_name`` is the name the package was installed under; it
        names the shim when ``bin`` is a plain string.
        """
        return cls(
            name=package_name,
            version=data.get("version"),
            dependencies=_string_map(data, "dependencies", source),
            dev_dependencies=_string_map(data, "devDependencies", source),
            bin=_bin_entries(data.get("bin"), package_name),
        )

    @classmethod
    def load(cls, path: Union[str, Path], package_name: str) -> "PackageManifest":
        """Read ``path`` leniently.

        Raises:
            ManifestParseError: If the manifest is missing or malformed.
        """
        try:
            data = read_json_file(path)
            return cls.from_dict(data, package_name, source=str(path))
        except ManifestParseError as exc:
            exc.package = package_name
            raise

    def all_dependencies(self) -> Dict[str, str]:
        """Merge ``dependencies`` and ``devDependencies``; dev entries win on clashes."""
        merged = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged


class ProjectManifest:
    """The invoking project's own manifest.

    Mutations happen in memory; only :meth:`save` touches the file.
    """

    def __init__(self, path: Union[str, Path], data: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        self.data: Dict[str, Any] = data if data is not None else {}

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ProjectManifest":
        """Read the project manifest leniently.

        Raises:
            ManifestParseError: If the manifest is missing or malformed.
        """
        return cls(path, read_json_file(path))

    @property
    def dependencies(self) -> Dict[str, str]:
        return _string_map(self.data, "dependencies", str(self.path))

    @property
    def dev_dependencies(self) -> Dict[str, str]:
        return _string_map(self.data, "devDependencies", str(self.path))

    @property
    def scripts(self) -> Dict[str, str]:
        return _string_map(self.data, "scripts", str(self.path))

    def set_dependency(self, name: str, version: str, dev: bool = False) -> str:
        """Record ``name`` as a caret range under the proper section."""
        key = "devDependencies" if dev else "dependencies"
        section = self.data.get(key)
        if not isinstance(section, dict):
            section = {}
            self.data[key] = section
        section[name] = f"^{version}"
        return section[name]

    def save(self) -> None:
        """Write the manifest back to disk.

        Raises:
            InstallError: If the file cannot be written.
        """
        try:
            write_json_file(self.path, self.data)
        except OSError as exc:
            raise InstallError(f"cannot write {self.path}: {exc}") from exc


class ManifestUpdater:
    """Records installed packages in the project manifest.

    The manifest is read once per run and every update lands on that same
    in-memory copy, so transitive installs accumulate alongside top-level
    ones. The file is rewritten solely when ``persist`` is requested, which
    only top-level ``add`` does.
    """

    def __init__(self, path: Union[str, Path], manifest: Optional[ProjectManifest] = None):
        self.path = Path(path)
        self.manifest = manifest

    def load(self) -> ProjectManifest:
        """Return the run's manifest, reading it from disk on first use.

        Raises:
            ManifestParseError: If the manifest is missing or malformed.
        """
        if self.manifest is None:
            self.manifest = ProjectManifest.load(self.path)
        return self.manifest

    def update(self, name: str, version: str, dev: bool = False, persist: bool = False) -> ProjectManifest:
        """Add or overwrite the caret-range entry for ``name``."""
        manifest = self.load()
        manifest.set_dependency(name, version, dev)
        if persist:
            # Only this entry reaches disk; other in-memory changes stay unsaved.
            on_disk = ProjectManifest.load(self.path)
            on_disk.set_dependency(name, version, dev)
            on_disk.save()
            logger.info(
                "Saved %s@^%s to %s",
                name,
                version,
                "devDependencies" if dev else "dependencies",
            )
        return manifest
