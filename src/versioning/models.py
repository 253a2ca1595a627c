"""Data models for versioning and package resolution."""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from constants import Constants


class ResolutionMode(Enum):
    """Resolution strategy derived from the requested token."""
    EXACT = "exact"
    RANGE = "range"
    LATEST = "latest"


@dataclass
class PackageRequest:
    """Resolution input: a package name and the version token asked for."""
    name: str
    requested_version: str = Constants.LATEST_TAG
    raw_token: Optional[str] = None

    @property
    def mode(self) -> ResolutionMode:
        """Classify the requested token."""
        token = (self.requested_version or "").strip()
        if not token or token.lower() == Constants.LATEST_TAG:
            return ResolutionMode.LATEST
        range_ops = ['^', '~', '*', 'x', 'X', ' - ', '<', '>', '=', '|', ' ']
        if any(op in token for op in range_ops):
            return ResolutionMode.RANGE
        return ResolutionMode.EXACT


class PackageKey(NamedTuple):
    """Memoization identity of one physical install."""
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"
