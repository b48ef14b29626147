"""Shared fixtures: a sandboxed Config and a fake host that records commands."""

import subprocess

import pytest

from unifi_stack import config as config_module
from unifi_stack import docker, env, stack, utils
from unifi_stack.config import Config
from unifi_stack.utils import CommandError


class FakeResponse:
    def __init__(self, content=b"-----BEGIN PGP PUBLIC KEY BLOCK-----\n", status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests

            raise requests.exceptions.HTTPError(f"{self.status_code} error")


class FakeHost:
    """Stands in for subprocess and PATH lookups."""

    def __init__(self):
        self.calls = []
        self.missing = set()
        self.failing = {}
        self.downloads = []

    def fail(self, *prefix, returncode=1):
        self.failing[tuple(prefix)] = returncode

    def run_command(self, command, cwd=None, check=True, sudo=False, capture_output=True):
        command = list(command)
        self.calls.append(command)

        returncode = 0
        for prefix, code in self.failing.items():
            if tuple(command[: len(prefix)]) == prefix:
                returncode = code

        stdout = "amd64\n" if command[:2] == ["dpkg", "--print-architecture"] else ""
        stderr = "boom" if returncode else ""
        if returncode and check:
            raise CommandError(f"Command failed ({returncode}): {' '.join(command)}")
        return subprocess.CompletedProcess(command, returncode, stdout, stderr)

    def command_exists(self, name):
        return name not in self.missing

    def get(self, url, timeout=None):
        self.downloads.append(url)
        return FakeResponse()

    def ran(self, *prefix):
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)


@pytest.fixture(autouse=True)
def _reset_config():
    config_module.reset_config()
    yield
    config_module.reset_config()


@pytest.fixture
def host(monkeypatch):
    fake = FakeHost()
    for module in (utils, docker, stack):
        monkeypatch.setattr(module, "run_command", fake.run_command)
    for module in (utils, docker, env):
        monkeypatch.setattr(module, "command_exists", fake.command_exists)
    monkeypatch.setattr(docker.requests, "get", fake.get)
    return fake


@pytest.fixture
def cfg(tmp_path):
    """Config whose host paths all live under tmp_path."""
    data_root = tmp_path / "srv" / "docker"
    cfg = Config(
        environ={
            "DOCKER_DATA_ROOT": str(data_root),
            "DOMAIN": "example.com",
            "EMAIL": "ops@example.com",
            "PUID": "1000",
            "PGID": "1000",
        }
    )
    etc = tmp_path / "etc"
    cfg.daemon_json = etc / "docker" / "daemon.json"
    cfg.apt_keyrings_dir = etc / "apt" / "keyrings"
    cfg.docker_keyring = cfg.apt_keyrings_dir / "docker.asc"
    cfg.docker_apt_source = etc / "apt" / "sources.list.d" / "docker.list"
    cfg.os_release = etc / "os-release"
    cfg.os_release.parent.mkdir(parents=True)
    cfg.os_release.write_text('NAME="Ubuntu"\nVERSION_ID="24.04"\nVERSION_CODENAME=noble\n')
    return cfg


@pytest.fixture
def default_stack_dir(monkeypatch, cfg):
    """Point the fixed deletable stack path at the sandboxed stack directory."""
    monkeypatch.setattr(env, "DEFAULT_STACK_DIR", str(cfg.stack_dir))
    return cfg.stack_dir


@pytest.fixture
def installed_cfg(cfg, host, default_stack_dir):
    """Config for a host on which setup has already run."""
    env.setup(cfg)
    host.calls.clear()
    return cfg
