"""NPM registry client: package metadata (packuments) and tarball downloads."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from constants import Constants
from common.http_client import download_file, get_json
from common.logging_utils import extra_context, is_debug_enabled, Timer, safe_url
from errors import ResolutionError

logger = logging.getLogger(__name__)


class NpmRegistryClient:
    """Thin client over the npm registry's ``GET /<package-name>`` document.

    Each call queries the registry again; nothing is cached between calls.
    """

    def __init__(
        self,
        registry_url: str = Constants.REGISTRY_URL_NPM,
        timeout: Optional[float] = Constants.REQUEST_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            registry_url: Registry base URL.
            timeout: Per-request timeout in seconds; None disables it.
        """
        self.registry_url = registry_url.rstrip("/") + "/"
        self.timeout = timeout

    def packument_url(self, name: str) -> str:
        """Return the metadata URL for ``name`` (scoped names keep their ``@``)."""
        return self.registry_url + quote(name, safe="@")

    def fetch_packument(self, name: str) -> Dict[str, Any]:
        """Fetch and validate the registry document for ``name``.

        Raises:
            ResolutionError: If the registry is unreachable, answers non-2xx,
                or the document lacks ``dist-tags``/``versions`` objects.
        """
        url = self.packument_url(name)
        headers = {
            "Accept": "application/json"
        }
        with Timer() as timer:
            data = get_json(url, package=name, timeout=self.timeout, headers=headers)

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched packument",
                extra=extra_context(
                    event="packument",
                    component="client",
                    package=name,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(url),
                )
            )

        if not isinstance(data, dict):
            raise ResolutionError("registry document is not an object", package=name)
        if not isinstance(data.get("versions"), dict):
            raise ResolutionError("registry document has no 'versions' map", package=name)
        if not isinstance(data.get("dist-tags"), dict):
            raise ResolutionError("registry document has no 'dist-tags' map", package=name)
        return data

    @staticmethod
    def latest_version(name: str, packument: Dict[str, Any]) -> str:
        """Return the version published under ``dist-tags.latest``."""
        latest = packument.get("dist-tags", {}).get(Constants.LATEST_TAG)
        if not isinstance(latest, str) or not latest:
            raise ResolutionError("registry publishes no 'latest' tag", package=name)
        return latest

    def select_tarball(self, name: str, packument: Dict[str, Any], version: str) -> Tuple[str, str]:
        """Select the archive for ``version``.

        Falls back to the ``latest`` tag's archive when the registry does not
        list ``version`` at all.

        Returns:
            Tuple of (version actually selected, tarball URL).
        """
        versions = packument.get("versions", {})
        selected = version
        entry = versions.get(version)
        if entry is None:
            latest = self.latest_version(name, packument)
            logger.warning(
                "%s@%s is not published; falling back to latest (%s)",
                name,
                version,
                latest,
            )
            selected = latest
            entry = versions.get(latest)
            if entry is None:
                raise ResolutionError(
                    f"latest version {latest} missing from 'versions' map",
                    package=name,
                    version=version,
                )

        tarball = (entry.get("dist") or {}).get("tarball") if isinstance(entry, dict) else None
        if not isinstance(tarball, str) or not tarball:
            raise ResolutionError("version entry has no dist.tarball", package=name, version=selected)
        return selected, tarball

    def resolved_url(self, name: str, version: str) -> str:
        """Synthesize the conventional archive URL recorded in the lockfile."""
        basename = name.rsplit("/", 1)[-1]
        return f"{self.registry_url}{name}/-/{basename}-{version}.tgz"

    def download(self, url: str, dest: Path, name: str, version: str) -> Path:
        """Download an archive to ``dest``."""
        logger.debug("Downloading %s@%s from %s", name, version, safe_url(url))
        return download_file(url, dest, package=name, version=version, timeout=self.timeout)
