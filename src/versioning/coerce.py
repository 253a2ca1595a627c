"""Loose version coercion.

Turns arbitrary version or range tokens (``^1.2.3``, ``~2``, ``>=3.1 <4``,
``v1.0``) into a single concrete version by picking the first numeric
``major[.minor[.patch]]`` run and zero-filling what is missing. The result is
never intersected with what a registry actually publishes.
"""

import re
from typing import Optional

import semantic_version

from errors import VersionCoercionError

# Components longer than 16 digits are not valid semver numbers.
_COERCE_RE = re.compile(
    r'(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])'
)


def coerce(token: Optional[str]) -> Optional[str]:
    """Return the concrete version coerced from ``token``, or None.

    Never raises: callers check for None and skip the package.
    """
    if not isinstance(token, str):
        return None
    m = _COERCE_RE.search(token)
    if not m:
        return None
    major, minor, patch = (int(part or 0) for part in m.groups())
    try:
        return str(semantic_version.Version(major=major, minor=minor, patch=patch))
    except ValueError:
        return None


def coerce_or_raise(name: str, token: Optional[str]) -> str:
    """Coerce ``token`` or raise VersionCoercionError naming the package."""
    version = coerce(token)
    if version is None:
        raise VersionCoercionError(
            f"cannot coerce {token!r} to a concrete version",
            package=name,
            version=token,
        )
    return version


def is_concrete(version: str) -> bool:
    """Return True when ``version`` is a strict semantic version."""
    try:
        semantic_version.Version(version)
    except ValueError:
        return False
    return True
