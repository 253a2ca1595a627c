"""Shared HTTP helpers used by the registry client.

Encapsulates common request/timeout error handling so callers avoid
duplicating try/except blocks. Failures are raised as installer errors so
they propagate to the package whose install triggered the request.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import FetchError, ResolutionError

logger = logging.getLogger(__name__)


def safe_get(
    url: str,
    *,
    context: str,
    timeout: Optional[float] = Constants.REQUEST_TIMEOUT,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., a package name).
        timeout: Seconds before giving up; None waits indefinitely.
        **kwargs: Passed through to requests.get.

    Raises:
        requests.RequestException: Connection failures and timeouts are
            re-raised to the caller after logging.
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = requests.get(url, timeout=timeout, **kwargs)
        except requests.Timeout:
            logger.error("%s request timed out after %s seconds", context, timeout)
            raise
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            raise
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return res


def get_json(
    url: str,
    *,
    package: str,
    timeout: Optional[float] = Constants.REQUEST_TIMEOUT,
    headers: Optional[dict] = None,
) -> Any:
    """GET a JSON document, treating any non-2xx or malformed body as fatal.

    Raises:
        ResolutionError: On connection errors, non-2xx status or invalid JSON.
    """
    try:
        res = safe_get(url, context=package, timeout=timeout, headers=headers)
    except requests.RequestException as exc:
        raise ResolutionError(f"registry request failed: {exc}", package=package) from exc

    if not 200 <= res.status_code < 300:
        raise ResolutionError(
            f"registry returned HTTP {res.status_code} for {safe_url(url)}",
            package=package,
        )

    try:
        return json.loads(res.text)
    except json.JSONDecodeError as exc:
        raise ResolutionError(f"registry returned malformed JSON: {exc}", package=package) from exc


def download_file(
    url: str,
    dest: Path,
    *,
    package: str,
    version: Optional[str] = None,
    timeout: Optional[float] = Constants.REQUEST_TIMEOUT,
) -> Path:
    """Stream ``url`` into ``dest`` and return the written path.

    Raises:
        FetchError: On connection errors, non-2xx status or disk errors.
    """
    try:
        res = safe_get(url, context=package, timeout=timeout, stream=True)
    except requests.RequestException as exc:
        raise FetchError(f"download failed: {exc}", package=package, version=version) from exc

    try:
        if not 200 <= res.status_code < 300:
            raise FetchError(
                f"archive download returned HTTP {res.status_code} for {safe_url(url)}",
                package=package,
                version=version,
            )
        with open(dest, "wb") as fh:
            for chunk in res.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    fh.write(chunk)
    except requests.RequestException as exc:
        raise FetchError(f"download interrupted: {exc}", package=package, version=version) from exc
    except OSError as exc:
        raise FetchError(f"could not write {dest}: {exc}", package=package, version=version) from exc
    finally:
        res.close()

    return dest
