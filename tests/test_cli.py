"""Tests for the click entry points."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from unifi_stack import config as config_module
from unifi_stack.cli import cli, setup_command, teardown_command


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def use_cfg(monkeypatch):
    def install(cfg):
        monkeypatch.setattr(config_module, "_config", cfg)
        return cfg

    return install


class TestGlobal:
    def test_help_lists_aliases(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "setup (up)" in result.output
        assert "teardown (down)" in result.output

    def test_unknown_flag_exits_two(self, runner):
        result = runner.invoke(teardown_command, ["--nuke-everything"])
        assert result.exit_code == 2

    def test_short_flags_not_accepted(self, runner):
        result = runner.invoke(teardown_command, ["-y"])
        assert result.exit_code == 2


class TestSetupCommand:
    def test_alias_writes_stack(self, runner, cfg, host, use_cfg):
        use_cfg(cfg)
        result = runner.invoke(cli, ["up"])
        assert result.exit_code == 0, result.output
        assert (cfg.stack_dir / "docker-compose.yml").exists()
        assert "All set." in result.output

    def test_standalone_entry_point(self, runner, cfg, host, use_cfg):
        use_cfg(cfg)
        result = runner.invoke(setup_command, [])
        assert result.exit_code == 0, result.output
        assert "MONGO_HOST=unifi-mongodb" in (cfg.stack_dir / "container-vars.env").read_text()

    def test_missing_tool_exits_one(self, runner, cfg, host, use_cfg):
        use_cfg(cfg)
        host.missing.add("apt-get")
        result = runner.invoke(cli, ["setup"])
        assert result.exit_code == 1
        assert "'apt-get' is required" in result.output

    def test_invalid_pgid_exits_one(self, runner, cfg, host, use_cfg):
        cfg._environ["PGID"] = "staff"
        use_cfg(cfg)
        result = runner.invoke(cli, ["setup"])
        assert result.exit_code == 1
        assert "PGID must be a numeric ID" in result.output

    def test_setup_rejects_flags(self, runner, cfg, host, use_cfg):
        use_cfg(cfg)
        result = runner.invoke(setup_command, ["--domain", "example.com"])
        assert result.exit_code == 2


class TestTeardownCommand:
    def test_delete_data_yes(self, runner, installed_cfg, use_cfg):
        cfg = use_cfg(installed_cfg)
        result = runner.invoke(teardown_command, ["--delete-data", "--yes"])
        assert result.exit_code == 0, result.output
        assert not cfg.stack_dir.exists()
        assert "Teardown complete." in result.output

    def test_delete_data_other_dir_exits_three(self, runner, installed_cfg, use_cfg, tmp_path):
        use_cfg(installed_cfg)
        other = tmp_path / "other"
        other.mkdir()
        (other / "keep.txt").write_text("keep")

        result = runner.invoke(teardown_command, ["--delete-data", "--stack-dir", str(other), "--yes"])

        assert result.exit_code == 3
        assert "refusing to delete unexpected path" in result.output
        assert (other / "keep.txt").exists()

    def test_prompt_declined(self, runner, installed_cfg, host, use_cfg):
        cfg = use_cfg(installed_cfg)
        result = runner.invoke(cli, ["down", "--delete-data"], input="n\n")
        assert result.exit_code == 0
        assert "Aborted." in result.output
        assert cfg.stack_dir.exists()
        assert not host.ran("docker", "compose", "down")

    @pytest.mark.parametrize("answer", ["yes\n", "\n", "Y please\n"])
    def test_only_single_y_confirms(self, runner, installed_cfg, use_cfg, answer):
        cfg = use_cfg(installed_cfg)
        result = runner.invoke(teardown_command, ["--delete-data"], input=answer)
        assert result.exit_code == 0
        assert "Aborted." in result.output
        assert cfg.stack_dir.exists()

    def test_eof_aborts(self, runner, installed_cfg, use_cfg):
        use_cfg(installed_cfg)
        result = runner.invoke(teardown_command, ["--delete-data"], input="")
        assert result.exit_code == 0
        assert "Aborted." in result.output

    def test_prompt_accepted(self, runner, installed_cfg, use_cfg):
        cfg = use_cfg(installed_cfg)
        result = runner.invoke(teardown_command, ["--delete-data"], input="y\n")
        assert result.exit_code == 0, result.output
        assert "Teardown plan:" in result.output
        assert not cfg.stack_dir.exists()

    def test_no_flags_keeps_files(self, runner, installed_cfg, host, use_cfg):
        cfg = use_cfg(installed_cfg)
        result = runner.invoke(teardown_command, ["--yes"])
        assert result.exit_code == 0
        assert host.ran("docker", "compose", "down", "--remove-orphans")
        assert (cfg.stack_dir / "Caddyfile").exists()
        assert (cfg.stack_dir / "data").is_dir()

    def test_missing_systemctl_exits_one(self, runner, installed_cfg, host, use_cfg):
        use_cfg(installed_cfg)
        host.missing.add("systemctl")
        result = runner.invoke(teardown_command, ["--yes"])
        assert result.exit_code == 1
        assert "'systemctl' is required" in result.output

    def test_docker_root_is_informational(self, runner, installed_cfg, use_cfg):
        use_cfg(installed_cfg)
        result = runner.invoke(teardown_command, ["--docker-root", "/mnt/docker", "--yes"])
        assert result.exit_code == 0
        assert "Docker data-root:    /mnt/docker (info)" in result.output
        assert "Docker root remains at: /mnt/docker" in result.output

    def test_unifi_dir_override_cannot_unlock_deletion(self, runner, installed_cfg, use_cfg, tmp_path):
        cfg = use_cfg(installed_cfg)
        victim = tmp_path / "x"
        victim.mkdir()
        (victim / "precious.txt").write_text("keep")
        cfg._environ["UNIFI_DIR"] = str(victim)

        result = runner.invoke(teardown_command, ["--delete-data", "--stack-dir", str(victim), "--yes"])

        assert result.exit_code == 3
        assert (victim / "precious.txt").exists()

    def test_unlink_failure_reports_error(self, runner, installed_cfg, use_cfg, monkeypatch):
        use_cfg(installed_cfg)

        def deny(self, missing_ok=False):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "unlink", deny)
        result = runner.invoke(teardown_command, ["--remove-caddyfile", "--yes"])

        assert result.exit_code == 1
        assert "❌ Error: Failed to remove" in result.output
        assert not isinstance(result.exception, PermissionError)
