"""Token parsing utilities for package requests."""

from typing import Optional, Tuple

from constants import Constants
from .models import PackageRequest


def tokenize_rightmost_at(s: str) -> Tuple[str, Optional[str]]:
    """Return (name, spec or None) using the rightmost-@ rule.

    A leading ``@`` belongs to a scoped name (``@scope/pkg``) and is never
    treated as the version separator.
    """
    s = s.strip()
    idx = s.rfind('@')
    if idx <= 0:
        return s, None
    name = s[:idx].strip()
    spec = s[idx + 1:].strip()
    return name, (spec or None)


def parse_package_token(token: str) -> PackageRequest:
    """Parse a CLI token such as ``lodash``, ``lodash@4`` or ``@types/node@18.0.0``.

    Raises:
        ValueError: If no package name can be extracted.
    """
    name, spec = tokenize_rightmost_at(token)
    if not name or name == '@':
        raise ValueError(f"Invalid package token: {token!r}")
    return PackageRequest(
        name=name,
        requested_version=spec or Constants.LATEST_TAG,
        raw_token=token,
    )
