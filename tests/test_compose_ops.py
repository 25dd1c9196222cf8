"""
Tests for compose_ops — the operations the CLI and web API call.

Declaration files are real (tmp_path); the runtime is a MagicMock with
the DockerRuntime spec and the compose tool is patched.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from dockview.adapters.containers.docker import DockerRuntime, RuntimeUnavailable
from dockview.adapters.shell.command import CommandOutcome
from dockview.core.context import DiscoveryContext
from dockview.core.models.container import SERVICE_LABEL, ContainerInfo, ContainerStats
from dockview.core.services import compose_ops
from dockview.core.services.compose_containers import MatchKey

_RUN_COMPOSE = "dockview.core.services.compose_ops.run_compose"


def _ok(text: str):
    def run(*args, ctx, settings, cwd=None):
        return CommandOutcome.success(["docker", "compose", *args], text.encode())
    return run


def _fail(*args, ctx, settings, cwd=None):
    return CommandOutcome.tool_failure(["docker", "compose", *args], 1, stderr=b"bad file\n")


def _runtime(containers=(), stats=()):
    runtime = MagicMock(spec=DockerRuntime)
    runtime.list_containers.return_value = list(containers)
    runtime.container_labels.side_effect = lambda c, ctx: c.labels
    runtime.container_stats.return_value = list(stats)
    return runtime


def _web_db_containers() -> list[ContainerInfo]:
    return [
        ContainerInfo(
            id="aaaaaaaaaaaa",
            name="myapp-web-1",
            service="web",
            labels={"com.docker.compose.project": "myapp", SERVICE_LABEL: "web"},
        ),
        ContainerInfo(id="bbbbbbbbbbbb", name="myapp_db_1"),
    ]


# ═══════════════════════════════════════════════════════════════════
#  list_services
# ═══════════════════════════════════════════════════════════════════


class TestListServices:
    def test_declaration(self, ctx, settings, web_db_project: Path):
        result = compose_ops.list_services(web_db_project, ctx, settings=settings)
        assert result.ok
        assert result.source == "declaration"
        assert [s.name for s in result.items] == ["web", "db"]

    def test_relative_path_resolved_against_context(self, ctx, settings, web_db_project: Path):
        result = compose_ops.list_services("myapp", ctx, settings=settings)
        assert [s.name for s in result.items] == ["web", "db"]

    def test_compose_file_path(self, ctx, settings, web_db_project: Path):
        result = compose_ops.list_services(
            web_db_project / "docker-compose.yml", ctx, settings=settings,
        )
        assert len(result.items) == 2

    def test_missing_declaration_is_an_error_result(self, ctx, settings, tmp_path: Path):
        result = compose_ops.list_services(tmp_path, ctx, settings=settings)
        assert result.error
        assert any("docker-compose.yml" in h for h in result.hints)

    def test_empty_file(self, ctx, settings, tmp_path: Path):
        (tmp_path / "compose.yml").write_text("")
        result = compose_ops.list_services(tmp_path, ctx, settings=settings)
        assert result.error
        assert result.items == []

    def test_tool_fallback_when_scanner_finds_nothing(self, ctx, settings, tmp_path: Path):
        (tmp_path / "compose.yml").write_text("services:\n    web:\n        image: nginx\n")
        with patch(_RUN_COMPOSE, side_effect=_ok("web\n\nworker\n")) as run:
            result = compose_ops.list_services(tmp_path, ctx, settings=settings)
        assert result.source == "tool"
        assert [s.name for s in result.items] == ["web", "worker"]
        args = run.call_args.args
        assert args[0] == "--file"
        assert args[2:] == ("config", "--services")
        assert Path(run.call_args.kwargs["cwd"]).resolve() == tmp_path.resolve()

    def test_invalid_declaration_and_tool_failure(self, ctx, settings, tmp_path: Path):
        (tmp_path / "compose.yml").write_text("version: '3'\n")
        with patch(_RUN_COMPOSE, side_effect=_fail):
            result = compose_ops.list_services(tmp_path, ctx, settings=settings)
        assert result.error.startswith("Could not read services from")
        assert result.diagnostics

    def test_no_services_is_empty_not_error(self, ctx, settings, tmp_path: Path):
        (tmp_path / "compose.yml").write_text("services: {}\n")
        with patch(_RUN_COMPOSE, side_effect=_fail):
            result = compose_ops.list_services(tmp_path, ctx, settings=settings)
        assert result.error is None
        assert result.items == []
        assert result.hints[0].startswith("No services declared in")

    def test_tool_timeout_marks_incomplete(self, ctx, settings, tmp_path: Path):
        (tmp_path / "compose.yml").write_text("services: {}\n")

        def slow(*args, ctx, settings, cwd=None):
            return CommandOutcome.invocation_failure(list(args), "timed out after 10.0s", timed_out=True)

        with patch(_RUN_COMPOSE, side_effect=slow):
            result = compose_ops.list_services(tmp_path, ctx, settings=settings)
        assert not result.complete
        assert result.error is None


# ═══════════════════════════════════════════════════════════════════
#  list_projects / list_containers
# ═══════════════════════════════════════════════════════════════════


class TestListings:
    def test_list_projects_builds_a_context(self, settings):
        with patch("dockview.core.services.compose_projects.list_projects") as lister:
            compose_ops.list_projects(settings=settings)
        ctx, passed = lister.call_args.args
        assert isinstance(ctx, DiscoveryContext)
        assert passed is settings
        assert 0 < ctx.remaining() <= settings.discovery_timeout

    def test_list_containers(self, ctx, settings):
        runtime = _runtime(_web_db_containers())
        result = compose_ops.list_containers("myapp", ctx, settings=settings, runtime=runtime)
        assert result.source == "label"
        assert len(result.items) == 2


# ═══════════════════════════════════════════════════════════════════
#  describe_project
# ═══════════════════════════════════════════════════════════════════


class TestDescribeProject:
    def test_containers_assigned_to_services(self, ctx, settings, web_db_project: Path):
        runtime = _runtime(_web_db_containers())
        detail = compose_ops.describe_project(
            "myapp", web_db_project, ctx, settings=settings, runtime=runtime,
        )
        services = {s.name: s for s in detail.services}
        assert services["web"].containers == ["myapp-web-1"]
        assert services["db"].containers == ["myapp_db_1"]
        assert detail.errors == []
        assert services["web"].cpu is None
        runtime.container_stats.assert_not_called()

    def test_stats_summed_per_service(self, ctx, settings, web_db_project: Path):
        stats = [
            ContainerStats(container="myapp-web-1", cpu_percent=1.5, memory_usage=100, memory_limit=1000),
        ]
        runtime = _runtime(_web_db_containers(), stats)
        detail = compose_ops.describe_project(
            "myapp", web_db_project, ctx, with_stats=True, settings=settings, runtime=runtime,
        )
        services = {s.name: s for s in detail.services}
        assert (services["web"].cpu, services["web"].memory, services["web"].memory_limit) == (1.5, 100, 1000)
        assert services["db"].cpu is None
        assert services["db"].memory is None

    def test_stats_failure_is_recorded(self, ctx, settings, web_db_project: Path):
        runtime = _runtime(_web_db_containers())
        runtime.container_stats.side_effect = RuntimeUnavailable("docker stats: exit 1")
        detail = compose_ops.describe_project(
            "myapp", web_db_project, ctx, with_stats=True, settings=settings, runtime=runtime,
        )
        assert any(e.startswith("Stats unavailable") for e in detail.errors)
        assert len(detail.containers) == 2

    def test_missing_declaration_keeps_containers(self, ctx, settings, tmp_path: Path):
        runtime = _runtime(_web_db_containers())
        detail = compose_ops.describe_project(
            "myapp", tmp_path / "gone", ctx, settings=settings, runtime=runtime,
        )
        assert detail.services == []
        assert len(detail.containers) == 2
        assert detail.errors

    @pytest.mark.parametrize("name, expected", [
        ("myapp-web-1", True),
        ("myapp_web_2", True),
        ("MYAPP-web", True),
        ("myapp-webhook-1", False),
        ("other-web-1", False),
    ])
    def test_container_serves_by_name(self, name, expected):
        container = ContainerInfo(id="aaaaaaaaaaaa", name=name)
        assert compose_ops.container_serves(container, MatchKey("myapp"), "web") is expected

    def test_container_serves_by_label(self):
        container = ContainerInfo(id="aaaaaaaaaaaa", name="myapp-web-1", service="api")
        assert not compose_ops.container_serves(container, MatchKey("myapp"), "web")
        assert compose_ops.container_serves(container, MatchKey("myapp"), "api")


# ═══════════════════════════════════════════════════════════════════
#  inspect_project_text
# ═══════════════════════════════════════════════════════════════════


class TestInspectProjectText:
    def test_report(self, ctx, settings, web_db_project: Path):
        ps = json.dumps([
            {"ID": "abcdef123456", "Name": "myapp-web-1", "Service": "web",
             "State": "running", "Status": "Up 2 hours"},
        ])

        def run(*args, ctx, settings, cwd=None):
            text = "name: myapp\nservices:\n  web:\n    image: nginx:latest\n"
            if "ps" in args:
                text = ps
            return CommandOutcome.success(["docker", "compose", *args], text.encode())

        with patch(_RUN_COMPOSE, side_effect=run) as runner:
            report = compose_ops.inspect_project_text("myapp", web_db_project, ctx, settings=settings)

        assert report.startswith("=== Docker Compose Project: myapp ===")
        assert "=== Config ===" in report
        assert "image: nginx:latest" in report
        assert "abcdef123456" in report
        assert "myapp-web-1 (web)" in report
        assert "running" in report
        first = runner.call_args_list[0].args
        assert first[:4] == ("--project-name", "myapp", "--project-directory", str(web_db_project))

    def test_failures_shown_inline(self, ctx, settings):
        with patch(_RUN_COMPOSE, side_effect=_fail):
            report = compose_ops.inspect_project_text("myapp", "", ctx, settings=settings)
        assert report.count("(unavailable:") == 2

    def test_nothing_to_inspect(self, ctx, settings):
        with patch(_RUN_COMPOSE) as runner:
            report = compose_ops.inspect_project_text("", "", ctx, settings=settings)
        assert report == "No project name or path given\n"
        runner.assert_not_called()
