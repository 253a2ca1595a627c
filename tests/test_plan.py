"""Tests for the dependency traversal planner."""

import pytest

from installer.manifest import PackageManifest, ProjectManifest
from installer.plan import (
    InstallContext,
    NodeState,
    SkipReason,
    SkippedEdge,
    WorkItem,
    plan_dependencies,
    plan_project,
)
from versioning.models import PackageKey


class TestPlanDependencies:
    """Edge decisions for one package's dependencies."""

    def test_yields_coerced_non_dev_items(self):
        manifest = PackageManifest("app", dependencies={"a": "^1.2.0"}, dev_dependencies={"b": "~2"})
        steps = list(plan_dependencies(manifest, InstallContext()))
        assert steps == [
            WorkItem("a", "1.2.0", is_dev=False, raw_range="^1.2.0", parent="app"),
            WorkItem("b", "2.0.0", is_dev=False, raw_range="~2", parent="app"),
        ]

    def test_skips_installed_keys(self):
        context = InstallContext()
        context.mark_installed(PackageKey("a", "1.0.0"))
        manifest = PackageManifest("app", dependencies={"a": "1.0.0", "c": "1.0.0"})
        assert [s.name for s in plan_dependencies(manifest, context)] == ["c"]

    def test_reports_invalid_ranges(self):
        manifest = PackageManifest("app", dependencies={"a": "latest"})
        (step,) = plan_dependencies(manifest, InstallContext())
        assert isinstance(step, SkippedEdge)
        assert step.reason == SkipReason.INVALID_VERSION
        assert step.describe() == "Skipping invalid version for a: latest (required by app)"

    def test_reports_cycle_at_different_version(self):
        context = InstallContext()
        manifest = PackageManifest("b", dependencies={"a": "^2.0.0"})
        with context.visiting(PackageKey("a", "1.0.0")):
            (step,) = plan_dependencies(manifest, context)
        assert step.reason == SkipReason.CYCLE
        assert "a@1.0.0" in step.describe()

    def test_same_version_ancestor_is_not_a_cycle(self):
        context = InstallContext()
        manifest = PackageManifest("b", dependencies={"a": "1.0.0"})
        with context.visiting(PackageKey("a", "1.0.0")):
            (step,) = plan_dependencies(manifest, context)
        assert isinstance(step, WorkItem)

    def test_lazy_plan_sees_installs_made_while_iterating(self):
        context = InstallContext()
        manifest = PackageManifest("app", dependencies={"a": "1.0.0", "b": "1.0.0"})
        seen = []
        for step in plan_dependencies(manifest, context):
            seen.append(step.name)
            context.mark_installed(PackageKey("b", "1.0.0"))
        assert seen == ["a"]


class TestPlanProject:
    """Top-level items from the project manifest."""

    def test_marks_dev_entries(self, tmp_path):
        manifest = ProjectManifest(
            tmp_path / "package.json",
            {"dependencies": {"a": "1.0.0", "b": "1.0.0"}, "devDependencies": {"b": "2.0.0", "c": "*"}},
        )
        steps = list(plan_project(manifest))
        items = {s.name: s for s in steps if isinstance(s, WorkItem)}
        assert items["a"].is_dev is False
        assert (items["b"].version, items["b"].is_dev) == ("2.0.0", True)
        skipped = [s for s in steps if isinstance(s, SkippedEdge)]
        assert [(s.name, s.raw_range) for s in skipped] == [("c", "*")]


class TestInstallContext:
    """Run-scoped state bookkeeping."""

    def test_contexts_are_independent(self):
        first, second = InstallContext(), InstallContext()
        first.mark_installed(PackageKey("a", "1.0.0"))
        assert not second.is_installed(PackageKey("a", "1.0.0"))

    def test_states(self):
        context = InstallContext()
        ok, bad = PackageKey("a", "1.0.0"), PackageKey("b", "1.0.0")
        context.mark_installing(ok)
        assert context.state(ok) == NodeState.INSTALLING
        context.mark_installed(ok)
        context.mark_failed(ok)
        assert context.state(ok) == NodeState.INSTALLED
        context.mark_installing(bad)
        context.mark_failed(bad)
        assert context.state(bad) == NodeState.FAILED
        assert context.order == [ok]

    def test_visiting_pops_on_error(self):
        context = InstallContext()
        with pytest.raises(RuntimeError):
            with context.visiting(PackageKey("a", "1.0.0")):
                raise RuntimeError("boom")
        assert context.ancestors == []
        assert context.ancestor_version("a") is None
