"""Tests for ``hostmcp tools`` CLI command."""

from __future__ import annotations

from pathlib import Path

from click.testing import CliRunner

from hostmcp.cli import main


class TestToolsList:
    def test_table(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list"])

        assert result.exit_code == 0
        assert "host_get_info" in result.output
        assert "host_get_logs" in result.output

    def test_json(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list", "--json"])

        assert result.exit_code == 0
        assert '"tools"' in result.output
        assert '"inputSchema"' in result.output
        assert '"host_clear_logs"' in result.output

    def test_tools_option_replaces_defaults(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list", "--tools", "hostmcp.protocol.errors"])

        assert result.exit_code == 0
        assert "No tools registered" in result.output

    def test_bad_module(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list", "--tools", "no_such_module_xyz"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "hostmcp.yaml"
        config.write_text("tool_modules: []\n", encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(main, ["tools", "list", "--config", str(config)])

        assert result.exit_code == 0
        assert "No tools registered" in result.output
