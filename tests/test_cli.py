from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from marketpredict.cli import _run_audited, main
from marketpredict.registry.queries import Registry


class TestCLIParsing:
    def test_no_command_fails(self) -> None:
        with pytest.raises(SystemExit):
            main([])

    def test_help_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_generate_requires_company(self) -> None:
        with pytest.raises(SystemExit):
            main(["generate"])

    def test_generate_with_companies(self) -> None:
        with patch("marketpredict.cli.cmd_generate") as mock_cmd:
            main(["generate", "ACME", "INIT"])
            args = mock_cmd.call_args[0][0]
            assert args.company_ids == ["ACME", "INIT"]

    def test_validate_command(self) -> None:
        with patch("marketpredict.cli.cmd_validate") as mock_cmd:
            main(["validate"])
            mock_cmd.assert_called_once()

    def test_status_command(self) -> None:
        with patch("marketpredict.cli.cmd_status") as mock_cmd:
            main(["status"])
            mock_cmd.assert_called_once()

    def test_migrate_command(self) -> None:
        with patch("marketpredict.cli.cmd_migrate") as mock_cmd:
            main(["migrate"])
            mock_cmd.assert_called_once()

    def test_verbose_flag(self) -> None:
        with patch("marketpredict.cli.cmd_status") as mock_cmd:
            main(["-v", "status"])
            args = mock_cmd.call_args[0][0]
            assert args.verbose is True


class TestRunAudited:
    def test_success_recorded(self, capsys: pytest.CaptureFixture[str]) -> None:
        registry = MagicMock(spec=Registry)
        registry.log_cron_start.return_value = 3

        _run_audited(registry, "validate", lambda: "Validated 1, pending 0, missing data requests 0")

        registry.log_cron_finish.assert_called_once_with(3, "success")
        assert "Validated 1" in capsys.readouterr().out

    def test_failure_recorded_and_raised(self) -> None:
        registry = MagicMock(spec=Registry)
        registry.log_cron_start.return_value = 3

        def _boom() -> str:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            _run_audited(registry, "generate", _boom)
        registry.log_cron_finish.assert_called_once_with(3, "error", "boom")
