"""
Tests for the compose project inventory.

The compose tool is replaced by a fake ``run_compose`` that dispatches on
the arguments it is given; declaration files live under tmp_path.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from dockview.adapters.shell.command import CommandOutcome
from dockview.core.context import DiscoveryContext
from dockview.core.models.compose import ComposeProject
from dockview.core.services.compose_projects import (
    list_projects,
    merge_projects,
    scan_declarations,
)

_RUN_COMPOSE = "dockview.core.services.compose_projects.run_compose"


def _missing(*args, ctx, settings, cwd=None):
    return CommandOutcome.invocation_failure(["docker", "compose", *args], "docker: command not found")


def _fake_compose(ls_json=None, config=None, ls_text=None):
    """Build a run_compose stand-in; None for a step means it fails."""
    calls: list[tuple[str, ...]] = []

    def run(*args, ctx, settings, cwd=None):
        calls.append(args)
        cmd = ["docker", "compose", *args]
        if "config" in args:
            payload = config
        elif args == ("ls", "-a"):
            payload = ls_text
        else:
            payload = ls_json
        if payload is None:
            return CommandOutcome.tool_failure(cmd, 1, stderr=b"unsupported\n")
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        return CommandOutcome.success(cmd, payload.encode())

    run.calls = calls  # type: ignore[attr-defined]
    return run


def _declare(directory: Path, text: str = "services:\n  web:\n    image: nginx\n") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "docker-compose.yml"
    path.write_text(text)
    return path


# ═══════════════════════════════════════════════════════════════════
#  Inventory
# ═══════════════════════════════════════════════════════════════════


class TestListProjects:
    def test_nothing_anywhere_is_not_an_error(self, ctx, settings):
        with patch(_RUN_COMPOSE, side_effect=_missing):
            result = list_projects(ctx, settings)
        assert result.items == []
        assert result.error is None
        assert result.hints
        assert any("command not found" in d for d in result.diagnostics)

    def test_path_from_config_files(self, ctx, settings):
        fake = _fake_compose(ls_json=[
            {"Name": "shop", "Status": "running(2)", "ConfigFiles": "/srv/shop/docker-compose.yml"},
        ])
        with patch(_RUN_COMPOSE, side_effect=fake):
            result = list_projects(ctx, settings)
        assert result.source == "tool"
        [project] = result.items
        assert project.path == "/srv/shop"
        assert project.path_source == "config_files"
        assert project.path_verified

    def test_filesystem_only(self, ctx, settings, tmp_path: Path, web_db_project: Path):
        _declare(tmp_path / "web2", "name: storefront\nservices:\n  web:\n    image: nginx\n")
        with patch(_RUN_COMPOSE, side_effect=_missing):
            result = list_projects(ctx, settings)
        assert result.source == "filesystem"
        by_name = {p.name: p for p in result.items}
        assert set(by_name) == {"myapp", "storefront"}
        assert Path(by_name["myapp"].path) == web_db_project.resolve()
        assert by_name["storefront"].path_source == "filesystem"
        assert by_name["storefront"].status == "unknown"

    def test_tool_and_filesystem_merge(self, ctx, settings, web_db_project: Path):
        fake = _fake_compose(ls_json=[
            {"Name": "myapp", "Status": "running(2)",
             "ConfigFiles": str(web_db_project.resolve() / "docker-compose.yml")},
        ])
        with patch(_RUN_COMPOSE, side_effect=fake):
            result = list_projects(ctx, settings)
        assert result.source == "tool+filesystem"
        [project] = result.items
        assert project.status == "running(2)"
        assert Path(project.path) == web_db_project.resolve()

    def test_path_from_tool_config(self, ctx, settings):
        fake = _fake_compose(ls_json=[{"Name": "api"}], config={"name": "api", "working_dir": "/srv/api"})
        with patch(_RUN_COMPOSE, side_effect=fake):
            result = list_projects(ctx, settings)
        [project] = result.items
        assert project.path == "/srv/api"
        assert project.path_source == "tool_config"
        assert ("--project-name", "api", "config", "--format", "json") in fake.calls

    def test_path_from_tool_listing(self, ctx, settings):
        listing = "NAME   STATUS       CONFIG FILES\napi    running(1)   /srv/api/compose.yaml\n"
        fake = _fake_compose(ls_json=[{"Name": "api"}], ls_text=listing)
        with patch(_RUN_COMPOSE, side_effect=fake):
            result = list_projects(ctx, settings)
        [project] = result.items
        assert project.path == "/srv/api"
        assert project.path_source == "tool_listing"

    def test_working_directory_fallback_is_unverified(self, ctx, settings, tmp_path: Path):
        fake = _fake_compose(ls_json=[{"Name": "ghost", "Status": "exited(1)"}])
        with patch(_RUN_COMPOSE, side_effect=fake):
            result = list_projects(ctx, settings)
        [project] = result.items
        assert Path(project.path) == tmp_path.resolve()
        assert project.path_source == "fallback"
        assert not project.path_verified
        assert any("path unverified" in d for d in result.diagnostics)

    def test_unstartable_tool_stops_path_lookups(self, ctx, settings):
        calls: list[tuple[str, ...]] = []

        def run(*args, ctx, settings, cwd=None):
            calls.append(args)
            cmd = ["docker", "compose", *args]
            if args[:1] == ("ls",) and "json" in args:
                payload = json.dumps([{"Name": "one"}, {"Name": "two"}])
                return CommandOutcome.success(cmd, payload.encode())
            return CommandOutcome.invocation_failure(cmd, "docker: permission denied")

        with patch(_RUN_COMPOSE, side_effect=run):
            result = list_projects(ctx, settings)

        assert [p.path_source for p in result.items] == ["fallback", "fallback"]
        lookups = [c for c in calls if "config" in c or c == ("ls", "-a")]
        assert lookups == [("--project-name", "one", "config", "--format", "json")]

    def test_names_are_unique(self, ctx, settings, tmp_path: Path):
        _declare(tmp_path / "a", "name: dup\nservices: {}\n")
        _declare(tmp_path / "b", "name: dup\nservices: {}\n")
        with patch(_RUN_COMPOSE, side_effect=_missing):
            result = list_projects(ctx, settings)
        assert [p.name for p in result.items] == ["dup"]
        assert Path(result.items[0].path) == (tmp_path / "a").resolve()

    def test_expired_context_spawns_nothing(self, settings, web_db_project: Path, tmp_path: Path):
        ctx = DiscoveryContext.expired_now(cwd=tmp_path)
        with patch("dockview.adapters.shell.command.subprocess.Popen") as popen:
            result = list_projects(ctx, settings)
        popen.assert_not_called()
        assert result.items == []
        assert not result.complete
        assert result.error is None


# ═══════════════════════════════════════════════════════════════════
#  Filesystem scan
# ═══════════════════════════════════════════════════════════════════


class TestScanDeclarations:
    def test_depth_limit(self, ctx, tmp_path: Path):
        _declare(tmp_path / "one" / "two")
        assert scan_declarations(tmp_path, ctx, max_depth=1) == []
        assert [p.name for p in scan_declarations(tmp_path, ctx, max_depth=2)] == ["two"]

    def test_excluded_directories(self, ctx, tmp_path: Path):
        _declare(tmp_path / "node_modules" / "pkg")
        _declare(tmp_path / "svc")
        found = scan_declarations(tmp_path, ctx, exclude=["node_modules"])
        assert [p.name for p in found] == ["svc"]

    def test_root_itself(self, ctx, tmp_path: Path):
        _declare(tmp_path)
        [project] = scan_declarations(tmp_path, ctx, max_depth=0)
        assert Path(project.path) == tmp_path.resolve()

    def test_unreadable_declaration_uses_directory_name(self, ctx, tmp_path: Path):
        (tmp_path / "blank").mkdir()
        (tmp_path / "blank" / "compose.yml").write_text("")
        [project] = scan_declarations(tmp_path, ctx)
        assert project.name == "blank"

    def test_missing_root(self, ctx, tmp_path: Path):
        assert scan_declarations(tmp_path / "nope", ctx) == []


# ═══════════════════════════════════════════════════════════════════
#  Merge
# ═══════════════════════════════════════════════════════════════════


class TestMergeProjects:
    def test_known_status_wins(self):
        merged = merge_projects([
            ComposeProject(name="a", path="/a", status="unknown", source="filesystem"),
            ComposeProject(name="a", path="/a", status="running(1)"),
        ])
        assert [(p.name, p.status) for p in merged] == [("a", "running(1)")]

    def test_first_path_applied_to_all_records(self):
        merged = merge_projects([
            ComposeProject(name="a", path=""),
            ComposeProject(name="a", path="/first", path_source="filesystem"),
            ComposeProject(name="a", path="/second", path_source="filesystem"),
        ])
        assert len(merged) == 1
        assert merged[0].path == "/first"

    def test_config_files_filled_in(self):
        merged = merge_projects([
            ComposeProject(name="a", path="/a"),
            ComposeProject(name="a", path="/a", config_files="/a/compose.yml"),
        ])
        assert merged[0].config_files == "/a/compose.yml"

    def test_idempotent(self):
        projects = [
            ComposeProject(name="a", path="/a", status="running(1)"),
            ComposeProject(name="a", path="", status="unknown"),
            ComposeProject(name="b", path="/b"),
        ]
        once = merge_projects(projects)
        assert merge_projects(once) == once

    def test_distinct_names_kept(self):
        merged = merge_projects([ComposeProject(name="a"), ComposeProject(name="b")])
        assert [p.name for p in merged] == ["a", "b"]
