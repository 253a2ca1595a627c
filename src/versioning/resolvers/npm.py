"""NPM version resolver: one concrete version per request."""

import logging

from common.logging_utils import extra_context, is_debug_enabled
from registry.npm.client import NpmRegistryClient
from ..coerce import coerce_or_raise, is_concrete
from ..models import PackageRequest, ResolutionMode

logger = logging.getLogger(__name__)


class NpmVersionResolver:
    """Resolver for npm packages.

    ``latest`` (or no token) maps to the registry's ``dist-tags.latest``;
    any other token is coerced to a single version without checking it
    against the published versions.
    """

    def __init__(self, client: NpmRegistryClient):
        self.client = client

    def resolve(self, req: PackageRequest) -> str:
        """Return the concrete version to install for ``req``.

        Raises:
            ResolutionError: If the registry lookup fails.
            VersionCoercionError: If the token cannot be coerced; callers
                skip the package with a warning.
        """
        packument = self.client.fetch_packument(req.name)
        mode = req.mode

        if mode == ResolutionMode.LATEST:
            version = self.client.latest_version(req.name, packument)
        elif mode == ResolutionMode.EXACT and is_concrete(req.requested_version):
            version = req.requested_version
        else:
            version = coerce_or_raise(req.name, req.requested_version)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved version",
                extra=extra_context(
                    event="resolve",
                    component="resolver",
                    package=req.name,
                    requested=req.requested_version,
                    resolution_mode=mode.value,
                    version=version,
                )
            )
        return version
