"""Tests for ``hostmcp bridge`` CLI command."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from hostmcp.cli import main


class TestBridge:
    def test_defaults(self) -> None:
        with patch("hostmcp.bridge.StdioBridge") as mock_bridge_cls:
            mock_bridge_cls.return_value.run = AsyncMock()
            runner = CliRunner()
            result = runner.invoke(main, ["bridge"], env={"HOSTMCP_HOST": None, "HOSTMCP_PORT": None})

        assert result.exit_code == 0
        mock_bridge_cls.assert_called_once_with("http://localhost:3000")
        mock_bridge_cls.return_value.run.assert_awaited_once()

    def test_env_vars(self) -> None:
        with patch("hostmcp.bridge.StdioBridge") as mock_bridge_cls:
            mock_bridge_cls.return_value.run = AsyncMock()
            runner = CliRunner()
            result = runner.invoke(main, ["bridge"], env={"HOSTMCP_HOST": "editor", "HOSTMCP_PORT": "4100"})

        assert result.exit_code == 0
        mock_bridge_cls.assert_called_once_with("http://editor:4100")
