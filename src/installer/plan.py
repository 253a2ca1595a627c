"""Traversal policy for the dependency tree, kept free of I/O.

The planner decides which dependency edges still need installing; the
installer consumes the lazily produced work items and performs the fetches.
Because items are produced lazily, each decision sees every install that
finished before it was requested.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Union

from installer.manifest import PackageManifest, ProjectManifest
from versioning.coerce import coerce
from versioning.models import PackageKey

logger = logging.getLogger(__name__)


class NodeState(Enum):
    """Lifecycle of one (name, version) node."""
    INSTALLING = "installing"
    INSTALLED = "installed"
    FAILED = "failed"


class SkipReason(Enum):
    INVALID_VERSION = "invalid-version"
    CYCLE = "cycle"


@dataclass(frozen=True)
class WorkItem:
    """One package that should be installed."""
    name: str
    version: str
    is_dev: bool = False
    raw_range: Optional[str] = None
    parent: Optional[str] = None


@dataclass(frozen=True)
class SkippedEdge:
    """A dependency edge that will not be followed."""
    name: str
    raw_range: str
    reason: SkipReason
    parent: Optional[str] = None
    detail: str = ""

    def describe(self) -> str:
        origin = f" (required by {self.parent})" if self.parent else ""
        if self.reason == SkipReason.CYCLE:
            return f"Skipping {self.name}@{self.raw_range}{origin}: {self.detail}"
        return f"Skipping invalid version for {self.name}: {self.raw_range}{origin}"


PlanStep = Union[WorkItem, SkippedEdge]


@dataclass
class InstallContext:
    """Run-scoped installer state.

    Holds the set of (name, version) keys physically installed during this
    run and the chain of packages whose dependencies are being walked. A new
    context starts empty; nothing is shared between contexts.
    """

    installed: Set[PackageKey] = field(default_factory=set)
    order: List[PackageKey] = field(default_factory=list)
    states: Dict[PackageKey, NodeState] = field(default_factory=dict)
    ancestors: List[PackageKey] = field(default_factory=list)
    skipped: List[SkippedEdge] = field(default_factory=list)

    def is_installed(self, key: PackageKey) -> bool:
        return key in self.installed

    def mark_installing(self, key: PackageKey) -> None:
        self.states[key] = NodeState.INSTALLING

    def mark_installed(self, key: PackageKey) -> None:
        if key not in self.installed:
            self.installed.add(key)
            self.order.append(key)
        self.states[key] = NodeState.INSTALLED

    def mark_failed(self, key: PackageKey) -> None:
        # A node whose own fetch succeeded stays memoized as installed.
        if key not in self.installed:
            self.states[key] = NodeState.FAILED

    def state(self, key: PackageKey) -> Optional[NodeState]:
        return self.states.get(key)

    def ancestor_version(self, name: str) -> Optional[str]:
        """Version of ``name`` currently being walked higher up the chain."""
        for key in reversed(self.ancestors):
            if key.name == name:
                return key.version
        return None

    @contextlib.contextmanager
    def visiting(self, key: PackageKey) -> Iterator[None]:
        """Push ``key`` onto the ancestor chain while its dependencies are walked."""
        self.ancestors.append(key)
        try:
            yield
        finally:
            self.ancestors.pop()


def plan_dependencies(manifest: PackageManifest, context: InstallContext) -> Iterator[PlanStep]:
    """Yield the dependency edges of ``manifest`` that still need work.

    ``dependencies`` and ``devDependencies`` are walked together and every
    resulting item is a non-dev install. Edges are dropped when the coerced
    key is already installed, reported as skipped when the range cannot be
    coerced, and reported as a cycle when the same package name is already
    being walked at a different version.
    """
    for dep_name, raw_range in manifest.all_dependencies().items():
        version = coerce(raw_range)
        if version is None:
            yield SkippedEdge(dep_name, raw_range, SkipReason.INVALID_VERSION, parent=manifest.name)
            continue

        key = PackageKey(dep_name, version)
        if context.is_installed(key):
            logger.debug("%s already installed; skipping", key)
            continue

        in_progress = context.ancestor_version(dep_name)
        if in_progress is not None and in_progress != version:
            yield SkippedEdge(
                dep_name,
                raw_range,
                SkipReason.CYCLE,
                parent=manifest.name,
                detail=f"circular dependency on {dep_name}@{in_progress}",
            )
            continue

        yield WorkItem(dep_name, version, is_dev=False, raw_range=raw_range, parent=manifest.name)


def plan_project(manifest: ProjectManifest) -> Iterator[PlanStep]:
    """Yield top-level work items from the project manifest.

    An entry is a dev install when it appears in ``devDependencies``.
    """
    dev = manifest.dev_dependencies
    merged = dict(manifest.dependencies)
    merged.update(dev)
    for dep_name, raw_range in merged.items():
        version = coerce(raw_range)
        if version is None:
            yield SkippedEdge(dep_name, raw_range, SkipReason.INVALID_VERSION)
            continue
        yield WorkItem(dep_name, version, is_dev=dep_name in dev, raw_range=raw_range)
