"""Executable shims for packages that declare ``bin`` entries."""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path
from typing import List, Union

from constants import Constants
from errors import InstallError
from installer.manifest import PackageManifest

logger = logging.getLogger(__name__)

SHIM_TEMPLATE = """#!/bin/sh
{runtime} {target} "$@"
"""


def render_shim(runtime: str, target: Union[str, Path]) -> str:
    """Return the shell script forwarding all arguments to ``target``."""
    return SHIM_TEMPLATE.format(runtime=shlex.quote(runtime), target=shlex.quote(str(target)))


class BinLinker:
    """Writes one shim per ``bin`` entry into the shared ``.bin`` directory.

    Existing shims with the same name are overwritten.
    """

    def __init__(self, modules_dir: Union[str, Path], bin_dir: Union[str, Path], runtime: str):
        self.modules_dir = Path(modules_dir)
        self.bin_dir = Path(bin_dir)
        self.runtime = runtime

    def link(self, manifest: PackageManifest) -> List[Path]:
        """Create shims for every entry in ``manifest.bin``.

        Raises:
            InstallError: If a shim name is not a plain file name, a target
                resolves outside the package directory, or a shim cannot be
                written.
        """
        if not manifest.bin:
            return []

        package_dir = (self.modules_dir / manifest.name).resolve()
        created: List[Path] = []
        try:
            self.bin_dir.mkdir(parents=True, exist_ok=True)
            for shim_name, rel_path in manifest.bin.items():
                if not shim_name or "/" in shim_name or "\\" in shim_name or shim_name in (".", ".."):
                    raise InstallError(
                        f"invalid bin name {shim_name!r}", package=manifest.name, version=manifest.version
                    )
                target = (package_dir / rel_path).resolve()
                if not target.is_relative_to(package_dir) or target == package_dir:
                    raise InstallError(
                        f"bin target {rel_path!r} for {shim_name!r} is outside the package",
                        package=manifest.name,
                        version=manifest.version,
                    )
                shim = self.bin_dir / shim_name
                if shim.is_symlink():
                    shim.unlink()
                shim.write_text(render_shim(self.runtime, target), encoding="utf-8")
                os.chmod(shim, Constants.SHIM_MODE)
                logger.debug("Linked %s -> %s", shim, target)
                created.append(shim)
        except OSError as exc:
            raise InstallError(
                f"cannot write shim: {exc}", package=manifest.name, version=manifest.version
            ) from exc
        return created
