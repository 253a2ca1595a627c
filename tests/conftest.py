"""Shared fixtures: an in-memory npm registry serving real tarballs."""

import copy
import io
import json
import tarfile
from collections import Counter
from pathlib import Path
from typing import Dict, Optional, Union

import pytest

from cli_config import InstallSettings
from errors import FetchError, ResolutionError
from installer import Installer
from registry.npm.client import NpmRegistryClient

REGISTRY = "https://registry.test/"


def make_tarball(files: Dict[str, Union[str, bytes]], wrapper: str = "package") -> bytes:
    """Build a gzipped tarball with every file nested under ``wrapper/``."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(f"{wrapper}/{rel}" if wrapper else rel)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class FakeRegistryClient(NpmRegistryClient):
    """Registry client backed by dictionaries instead of HTTP."""

    def __init__(self):
        super().__init__(REGISTRY, timeout=5)
        self.packuments: Dict[str, dict] = {}
        self.archives: Dict[str, bytes] = {}
        self.packument_calls: Counter = Counter()
        self.downloads = []

    def publish(
        self,
        name: str,
        version: str,
        dependencies: Optional[Dict[str, str]] = None,
        dev_dependencies: Optional[Dict[str, str]] = None,
        bin=None,
        files: Optional[Dict[str, str]] = None,
        latest: bool = True,
        manifest_text: Optional[str] = None,
    ) -> str:
        """Publish ``name@version`` and return its tarball URL."""
        manifest = {"name": name, "version": version}
        if dependencies is not None:
            manifest["dependencies"] = dependencies
        if dev_dependencies is not None:
            manifest["devDependencies"] = dev_dependencies
        if bin is not None:
            manifest["bin"] = bin
        contents = {"package.json": manifest_text if manifest_text is not None else json.dumps(manifest)}
        contents.update(files or {})

        basename = name.rsplit("/", 1)[-1]
        url = f"{REGISTRY}{name}/-/{basename}-{version}.tgz"
        self.archives[url] = make_tarball(contents)

        doc = self.packuments.setdefault(name, {"name": name, "dist-tags": {}, "versions": {}})
        doc["versions"][version] = {"name": name, "version": version, "dist": {"tarball": url}}
        if latest or "latest" not in doc["dist-tags"]:
            doc["dist-tags"]["latest"] = version
        return url

    def fetch_packument(self, name: str) -> dict:
        self.packument_calls[name] += 1
        if name not in self.packuments:
            raise ResolutionError(f"registry returned HTTP 404 for {REGISTRY}{name}", package=name)
        return copy.deepcopy(self.packuments[name])

    def download(self, url: str, dest: Path, name: str, version: str) -> Path:
        self.downloads.append((name, version, url))
        if url not in self.archives:
            raise FetchError("archive download returned HTTP 404", package=name, version=version)
        dest.write_bytes(self.archives[url])
        return dest

    def fetched(self, name: str):
        """Versions of ``name`` downloaded so far, by tarball URL order."""
        return [url for (pkg, _, url) in self.downloads if pkg == name]


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def settings(project_dir):
    return InstallSettings(project_dir=project_dir, registry_url=REGISTRY, timeout=5, runtime="/usr/bin/node")


@pytest.fixture
def registry():
    return FakeRegistryClient()


@pytest.fixture
def installer(settings, registry):
    return Installer(settings, client=registry)


def write_manifest(project_dir: Path, data: dict) -> Path:
    path = project_dir / "package.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
