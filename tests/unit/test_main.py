"""
Tests for the command line entry point.
"""

import json
import pytest
from unittest.mock import patch

from crr_deployer import main
from crr_deployer.core.exceptions import ResourceCreationError


class TestParser:

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args([])

    def test_project_and_debug_flags(self, tmp_path):
        args = main.build_parser().parse_args(["--debug", "destroy", "--project", str(tmp_path)])

        assert args.command == "destroy"
        assert args.debug is True
        assert args.project == tmp_path

    def test_unknown_command_rejected(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["upgrade"])


class TestRun:

    def test_missing_config_returns_error(self, tmp_path):
        assert main.main(["check", "--project", str(tmp_path)]) == 1

    @pytest.mark.parametrize("command, target", [
        ("deploy", "deploy"),
        ("destroy", "destroy"),
        ("check", "info"),
    ])
    def test_dispatches_command(self, project_dir, command, target):
        with patch(f"crr_deployer.deployer.{target}") as handler:
            assert main.main([command, "--project", str(project_dir)]) == 0

        handler.assert_called_once()
        context = handler.call_args.args[0]
        assert context.project_path == project_dir

    def test_deployment_error_returns_error(self, project_dir):
        error = ResourceCreationError("pool", "pool-q", created=())
        with patch("crr_deployer.deployer.deploy", side_effect=error):
            assert main.main(["deploy", "--project", str(project_dir)]) == 1

    def test_debug_mode_from_config(self, project_dir, raw_config):
        raw_config["mode"] = "DEBUG"
        (project_dir / "config.json").write_text(json.dumps(raw_config), encoding="utf-8")

        with patch("crr_deployer.deployer.info"), \
                patch("crr_deployer.logger.configure_logger") as configure:
            main.main(["check", "--project", str(project_dir)])

        assert configure.call_args_list[-1].kwargs == {"debug_mode": True}
