"""Archive fetcher: download a package tarball and unpack it into node_modules."""

from __future__ import annotations

import copy
import logging
import os
import shutil
import tarfile
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from common.logging_utils import extra_context, Timer
from errors import FetchError
from registry.npm.client import NpmRegistryClient

logger = logging.getLogger(__name__)


def _strip_components(tar: tarfile.TarFile, count: int = 1) -> Iterator[tarfile.TarInfo]:
    """Yield members with the leading ``count`` path components removed.

    Members that live entirely inside the stripped prefix (such as the
    wrapping ``package/`` directory itself) are dropped.
    """
    for member in tar.getmembers():
        name = member.name
        while name.startswith("./"):
            name = name[2:]
        parts = [p for p in name.split("/") if p]
        if len(parts) <= count:
            continue
        stripped = copy.copy(member)
        stripped.name = "/".join(parts[count:])
        yield stripped


def extract_archive(archive: Union[str, Path], target: Union[str, Path], strip: int = 1) -> None:
    """Extract ``archive`` into ``target``, dropping ``strip`` leading components.

    Entries escaping ``target`` (absolute paths, ``..``, outside links) are
    rejected by tarfile's ``data`` filter.
    """
    with tarfile.open(archive, "r:*") as tar:
        tar.extractall(target, members=_strip_components(tar, strip), filter="data")


@dataclass(frozen=True)
class FetchResult:
    """Where a package landed and which version was actually fetched."""
    name: str
    version: str
    path: Path
    tarball_url: str


class ArchiveFetcher:
    """Ensures ``<modules_dir>/<name>/`` holds the contents of one package version."""

    def __init__(
        self,
        client: NpmRegistryClient,
        modules_dir: Union[str, Path],
        cache_dir: Union[str, Path],
    ):
        self.client = client
        self.modules_dir = Path(modules_dir)
        self.cache_dir = Path(cache_dir)

    def install_path(self, name: str) -> Path:
        """Deterministic install directory for ``name``."""
        return self.modules_dir / name

    def fetch(self, name: str, version: str) -> FetchResult:
        """Download and extract ``name@version``, replacing prior contents.

        Registry metadata is fetched again on every call. When ``version``
        is not listed by the registry the ``latest`` archive is used and the
        result reports the version actually fetched.

        Raises:
            ResolutionError: If the registry lookup fails.
            FetchError: On download, disk or extraction errors.
        """
        packument = self.client.fetch_packument(name)
        fetched_version, url = self.client.select_tarball(name, packument, version)
        target = self.install_path(name)

        with Timer() as timer:
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
                workdir = Path(tempfile.mkdtemp(
                    prefix=f"{name.replace('/', '-')}-{fetched_version}-", dir=self.cache_dir
                ))
            except OSError as exc:
                raise FetchError(f"cannot create cache directory: {exc}", package=name, version=version) from exc

            try:
                archive = self.client.download(url, workdir / "package.tgz", name, fetched_version)
                staging = workdir / "staging"
                try:
                    staging.mkdir()
                    extract_archive(archive, staging)
                    archive.unlink()
                except (tarfile.TarError, OSError) as exc:
                    raise FetchError(f"cannot extract archive: {exc}", package=name, version=version) from exc
                self._move_into_place(staging, target, name, version)
            finally:
                shutil.rmtree(workdir, ignore_errors=True)

        logger.info(
            "Successfully installed %s@%s",
            name,
            fetched_version,
            extra=extra_context(
                event="fetch",
                component="archive",
                package=name,
                version=fetched_version,
                duration_ms=timer.duration_ms(),
            )
        )
        return FetchResult(name=name, version=fetched_version, path=target, tarball_url=url)

    @staticmethod
    def _move_into_place(staging: Path, target: Path, name: str, version: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.is_symlink() or target.is_file():
                target.unlink()
            elif target.exists():
                shutil.rmtree(target)
            os.replace(staging, target)
        except OSError as exc:
            raise FetchError(f"cannot install into {target}: {exc}", package=name, version=version) from exc
