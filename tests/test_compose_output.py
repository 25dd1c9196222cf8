"""
Tests for compose_output — the JSON / NDJSON / text decode ladder.

Pure unit tests: tool output bytes → records.
"""

from __future__ import annotations

import json
import textwrap
from datetime import timedelta

from dockview.core.models.container import ContainerState
from dockview.core.services.compose_output import (
    PROJECT_COLUMNS,
    container_from_record,
    first_config_file,
    interpret,
    interpret_containers,
    interpret_projects,
    parse_created,
    parse_labels,
    parse_ports,
    scrape_project_names,
)


def _bytes(text: str) -> bytes:
    return textwrap.dedent(text).encode()


# ═══════════════════════════════════════════════════════════════════
#  Ladder
# ═══════════════════════════════════════════════════════════════════


class TestInterpret:
    def test_json_array(self):
        result = interpret(b'[{"Name": "a"}, {"Name": "b"}]', PROJECT_COLUMNS)
        assert result.strategy == "json_array"
        assert [r["name"] for r in result.records] == ["a", "b"]

    def test_single_object_wrapped(self):
        result = interpret(b'{"Name": "solo", "Status": "running(1)"}', PROJECT_COLUMNS)
        assert result.strategy == "json_object"
        assert result.records == [{"name": "solo", "status": "running(1)"}]

    def test_line_delimited(self):
        data = b'{"Name": "a"}\n{"Name": "b"}\n'
        result = interpret(data, PROJECT_COLUMNS)
        assert result.strategy == "json_lines"
        assert len(result.records) == 2

    def test_keys_normalised_case_insensitively(self):
        result = interpret(b'[{"ID": "x", "Id": "y", "namE": "n"}]', PROJECT_COLUMNS)
        assert "name" in result.records[0]
        assert "id" in result.records[0]

    def test_text_with_header(self):
        data = _bytes("""\
            NAME      STATUS       CONFIG FILES
            shop      running(2)   /srv/shop/compose.yml
        """)
        result = interpret(data, PROJECT_COLUMNS, header_markers=("name", "status"))
        assert result.strategy == "text"
        assert result.records == [
            {"name": "shop", "status": "running(2)", "path": "/srv/shop/compose.yml"},
        ]

    def test_text_without_header(self):
        result = interpret(b"shop running /srv/shop\n", PROJECT_COLUMNS, header_markers=("name",))
        assert result.records[0]["name"] == "shop"

    def test_last_column_absorbs_remainder(self):
        result = interpret(b"a b c d e\n", ("x", "y", "z"))
        assert result.records[0]["z"] == "c d e"

    def test_empty_array_falls_through(self):
        result = interpret(b"[]", PROJECT_COLUMNS)
        assert result.records[0]["name"] == "[]"
        assert any(f.startswith("json_array") for f in result.failures)

    def test_nothing_understood_reports_each_strategy(self):
        result = interpret(b"x\n", ("a", "b"), min_fields=2)
        assert result.empty
        assert len(result.failures) == 4

    def test_no_output(self):
        result = interpret(b"   \n", PROJECT_COLUMNS)
        assert result.empty
        assert result.failures == ["no output"]


# ═══════════════════════════════════════════════════════════════════
#  Projects
# ═══════════════════════════════════════════════════════════════════


class TestInterpretProjects:
    def test_compose_ls_json(self):
        data = json.dumps([
            {"Name": "myapp", "Status": "running(2)", "ConfigFiles": "/srv/myapp/docker-compose.yml"},
        ]).encode()
        projects, failures = interpret_projects(data)
        assert failures == []
        assert projects[0].name == "myapp"
        assert projects[0].status == "running(2)"
        assert projects[0].config_files == "/srv/myapp/docker-compose.yml"
        assert projects[0].path == ""

    def test_reported_path_kept(self):
        projects, _ = interpret_projects(b'{"name": "x", "path": "/srv/x"}')
        assert projects[0].path == "/srv/x"
        assert projects[0].path_source == "reported"

    def test_text_config_file_column(self):
        data = _bytes("""\
            NAME     STATUS       CONFIG FILES
            myapp    running(1)   /srv/myapp/docker-compose.yml
        """)
        projects, _ = interpret_projects(data)
        assert projects[0].config_files == "/srv/myapp/docker-compose.yml"
        assert projects[0].path == ""

    def test_text_directory_column(self):
        projects, _ = interpret_projects(b"myapp running /srv/myapp\n")
        assert projects[0].path == "/srv/myapp"

    def test_status_defaults_to_unknown(self):
        projects, _ = interpret_projects(b'[{"Name": "x"}]')
        assert projects[0].status == "unknown"

    def test_broken_json_is_scraped(self):
        data = b'{"name": "alpha", "status": "running"\n{"name": "beta"\n'
        projects, _ = interpret_projects(data)
        assert [p.name for p in projects] == ["alpha", "beta"]

    def test_garbage_gives_reasons(self):
        projects, failures = interpret_projects(b"")
        assert projects == []
        assert failures

    def test_scrape_dedups(self):
        assert scrape_project_names(b'"name": "a", "name": "a"\n"Name": "b"') == ["a", "b"]

    def test_first_config_file(self):
        assert str(first_config_file("/a/compose.yml,/a/override.yml")) == "/a/compose.yml"
        assert first_config_file("") is None


# ═══════════════════════════════════════════════════════════════════
#  Containers
# ═══════════════════════════════════════════════════════════════════


class TestInterpretContainers:
    def test_compose_ps_array(self):
        data = b'[{"ID":"abcdef123456","Name":"myapp_web_1","Service":"web"}]'
        containers, failures = interpret_containers(data)
        assert failures == []
        assert len(containers) == 1
        assert containers[0].id == "abcdef123456"
        assert containers[0].display_name == "myapp_web_1 (web)"

    def test_long_id_truncated(self):
        data = b'{"ID": "abcdef1234567890abcdef", "Name": "x"}'
        containers, _ = interpret_containers(data)
        assert containers[0].id == "abcdef123456"

    def test_ndjson_from_current_compose(self):
        data = (
            b'{"ID":"111111111111","Name":"shop-web-1","Service":"web","State":"running","Status":"Up 2 hours"}\n'
            b'{"ID":"222222222222","Name":"shop-db-1","Service":"db","State":"exited","Status":"Exited (0) 1 hour ago"}\n'
        )
        containers, _ = interpret_containers(data)
        assert [c.state for c in containers] == [ContainerState.RUNNING, ContainerState.EXITED]

    def test_records_without_id_dropped(self):
        containers, _ = interpret_containers(b'[{"Name": "ghost"}]')
        assert containers == []

    def test_text_table(self):
        data = _bytes("""\
            CONTAINER ID   NAME          STATUS
            abc123def456   myapp_web_1   Up 2 hours
        """)
        containers, _ = interpret_containers(data)
        assert containers[0].name == "myapp_web_1"
        assert containers[0].service == "web"
        assert containers[0].status == "Up 2 hours"
        assert containers[0].state == ContainerState.RUNNING

    def test_text_single_status_token_is_unknown(self):
        containers, _ = interpret_containers(b"abc123def456 myapp_db_1 exited\n")
        assert containers[0].status == "unknown"
        assert containers[0].state == ContainerState.UNKNOWN

    def test_text_short_lines_skipped(self):
        containers, failures = interpret_containers(b"abc123 lonely\n")
        assert containers == []
        assert failures


class TestContainerFromRecord:
    def test_service_and_project_from_labels(self):
        record = {
            "id": "abcdef123456",
            "name": "myapp-web-1",
            "labels": "com.docker.compose.project=myapp,com.docker.compose.service=web",
        }
        container = container_from_record(record)
        assert container.service == "web"
        assert container.project == "myapp"

    def test_docker_ps_names_and_command(self):
        container = container_from_record({
            "id": "abcdef123456",
            "names": "web,alias",
            "command": '"nginx -g"',
            "status": "Up 5 minutes (Paused)",
        })
        assert container.name == "web"
        assert container.command == "nginx -g"
        assert container.state == ContainerState.PAUSED

    def test_missing_timestamp_is_none(self):
        container = container_from_record({"id": "abcdef123456"})
        assert container.created is None


# ═══════════════════════════════════════════════════════════════════
#  Field decoding
# ═══════════════════════════════════════════════════════════════════


class TestFieldDecoding:
    def test_labels_from_text(self):
        assert parse_labels("a=1,b=two, c = 3") == {"a": "1", "b": "two", "c": "3"}

    def test_labels_from_mapping(self):
        assert parse_labels({"a": 1}) == {"a": "1"}

    def test_labels_empty(self):
        assert parse_labels(None) == {}
        assert parse_labels("") == {}

    def test_ports_from_text(self):
        assert parse_ports("0.0.0.0:8080->80/tcp, :::8080->80/tcp") == [
            "0.0.0.0:8080->80/tcp",
            ":::8080->80/tcp",
        ]

    def test_ports_from_publishers(self):
        publishers = [
            {"URL": "0.0.0.0", "TargetPort": 80, "PublishedPort": 8080, "Protocol": "tcp"},
            {"URL": "", "TargetPort": 5432, "PublishedPort": 0, "Protocol": "tcp"},
        ]
        assert parse_ports(publishers) == ["0.0.0.0:8080->80/tcp", "5432/tcp"]

    def test_created_from_docker_text(self):
        created = parse_created("2024-01-02 15:04:05 +0100 CET")
        assert created.year == 2024
        assert created.utcoffset() == timedelta(hours=1)

    def test_created_from_timestamp(self):
        created = parse_created(1700000000)
        assert created.utcoffset() == timedelta(0)

    def test_created_unparseable(self):
        assert parse_created("") is None
        assert parse_created("sometime") is None
        assert parse_created(None) is None
