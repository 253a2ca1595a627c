"""Lockfile recorder for package-lock.json style lock structures.

The lock structure maps each installed package name to the concrete version
fetched, a synthesized archive URL and an integrity placeholder::

    {"dependencies": {"lodash": {"version": "4.17.21",
                                 "resolved": "https://.../lodash-4.17.21.tgz",
                                 "integrity": ""}}}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

from common.jsonc import read_json_file, write_json_file
from errors import LockWriteError, ManifestParseError
from registry.npm.client import NpmRegistryClient

logger = logging.getLogger(__name__)


class LockfileRecorder:
    """Upserts one entry per package name; entries are never removed."""

    def __init__(self, path: Union[str, Path], client: NpmRegistryClient):
        self.path = Path(path)
        self.client = client

    def load(self) -> Dict[str, Any]:
        """Read the lock structure; a missing file reads as empty.

        Raises:
            ManifestParseError: For any other read or parse failure.
        """
        return read_json_file(self.path, missing_ok=True)

    def record(self, name: str, version: str) -> Dict[str, str]:
        """Create or overwrite the entry for ``name`` and rewrite the file.

        Raises:
            ManifestParseError: If the existing lock structure is unreadable.
            LockWriteError: If the updated structure cannot be written.
        """
        try:
            lock = self.load()
        except ManifestParseError as exc:
            exc.package, exc.version = name, version
            raise

        deps = lock.get("dependencies")
        if not isinstance(deps, dict):
            deps = {}
            lock["dependencies"] = deps

        entry = {
            "version": version,
            "resolved": self.client.resolved_url(name, version),
            "integrity": "",
        }
        deps[name] = entry

        try:
            write_json_file(self.path, lock)
        except OSError as exc:
            raise LockWriteError(
                f"cannot write {self.path}: {exc}", package=name, version=version
            ) from exc

        logger.debug("Recorded %s@%s in %s", name, version, self.path)
        return entry
