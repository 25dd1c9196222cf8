"""
Smoke tests — verify the bootstrap is healthy.

These tests ensure the basic scaffolding works:
- Package imports successfully
- CLI entrypoint responds
- Version is set
"""

from click.testing import CliRunner

from dockview import __version__
from dockview.main import cli


class TestBootstrap:
    """Verify the project bootstrap is healthy."""

    def test_version_is_set(self):
        assert __version__
        assert isinstance(__version__, str)

    def test_cli_help(self):
        """CLI --help should exit cleanly with usage info."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "inspect containers and compose projects" in result.output

    def test_command_groups_registered(self):
        runner = CliRunner()
        for group in ("compose", "docker"):
            result = runner.invoke(cli, [group, "--help"])
            assert result.exit_code == 0

    def test_core_package_imports(self):
        """Every layer imports without side effects."""
        from dockview.adapters import DockerRuntime, run_command  # noqa: F401
        from dockview.core.models import ComposeProject, DiscoveryResult  # noqa: F401
        from dockview.core.services import compose_ops, docker_resources  # noqa: F401
        from dockview.ui.web.server import create_app  # noqa: F401
