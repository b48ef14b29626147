"""Docker Engine operations: apt repository, packages, service, containers and images."""

from pathlib import Path
from typing import Optional

import requests
from dotenv import dotenv_values

from .config import Config
from .utils import (
    command_exists,
    file_operation,
    run_best_effort,
    run_command,
    StepResult,
    UnifiStackError,
)

PREREQUISITE_PACKAGES = ["ca-certificates", "curl", "gnupg", "lsb-release"]
DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]
CONTAINERS = ["unifi", "unifi-mongodb"]
IMAGES = ["lscr.io/linuxserver/unifi-network-application:latest", "mongo:4.4"]


def install_prerequisites(config: Config) -> None:
    """
    Install apt prerequisites and the Docker signing key.

    The key is only downloaded when the keyring file is missing.

    Raises:
        CommandError: If apt-get fails
        UnifiStackError: If the key cannot be downloaded
    """
    run_command(["apt-get", "update", "-y"], sudo=True, capture_output=False)
    run_command(["apt-get", "install", "-y", *PREREQUISITE_PACKAGES], sudo=True, capture_output=False)

    with file_operation(f"create {config.apt_keyrings_dir}"):
        config.apt_keyrings_dir.mkdir(parents=True, exist_ok=True)
        config.apt_keyrings_dir.chmod(0o755)

    keyring = config.docker_keyring
    if keyring.exists():
        print(f"{keyring} already present; skipping download.")
        return

    print(f"Downloading Docker signing key to {keyring} ...")
    try:
        response = requests.get(config.docker_gpg_url, timeout=30)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise UnifiStackError(f"Failed to download Docker signing key: {e}") from e

    with file_operation(f"write {keyring}"):
        keyring.write_bytes(response.content)
        keyring.chmod(0o644)


def os_codename(os_release: Path) -> str:
    """
    Read the release codename from an os-release file.

    Raises:
        UnifiStackError: If the file or VERSION_CODENAME is missing
    """
    if not os_release.exists():
        raise UnifiStackError(f"{os_release} not found; cannot determine release codename")

    codename = dotenv_values(os_release).get("VERSION_CODENAME")
    if not codename:
        raise UnifiStackError(f"VERSION_CODENAME not set in {os_release}")
    return codename


def dpkg_architecture() -> str:
    """Return the host architecture as reported by dpkg."""
    result = run_command(["dpkg", "--print-architecture"])
    return result.stdout.strip()


def apt_source_line(config: Config, arch: str, codename: str) -> str:
    """Build the Docker apt source entry."""
    return (
        f"deb [arch={arch} signed-by={config.docker_keyring}] "
        f"{config.docker_apt_url} {codename} stable\n"
    )


def add_apt_repository(config: Config) -> None:
    """Write the Docker apt source for the running release."""
    codename = os_codename(config.os_release)
    line = apt_source_line(config, dpkg_architecture(), codename)
    with file_operation(f"write {config.docker_apt_source}"):
        config.docker_apt_source.parent.mkdir(parents=True, exist_ok=True)
        config.docker_apt_source.write_text(line, encoding="utf-8")
    print(f"Wrote {config.docker_apt_source} ({codename})")


def install_engine() -> None:
    """Install Docker Engine and its plugins."""
    run_command(["apt-get", "update", "-y"], sudo=True, capture_output=False)
    run_command(["apt-get", "install", "-y", *DOCKER_PACKAGES], sudo=True, capture_output=False)


def prepare_data_root(data_root: Path) -> None:
    """Create the data-root directory owned by root with mode 0711."""
    with file_operation(f"create {data_root}"):
        data_root.mkdir(parents=True, exist_ok=True)
    run_command(["chown", "root:root", str(data_root)], sudo=True)
    run_command(["chmod", "711", str(data_root)], sudo=True)


def enable_service() -> None:
    """Reload systemd units and enable/start Docker."""
    run_command(["systemctl", "daemon-reload"], sudo=True)
    run_command(["systemctl", "enable", "--now", "docker"], sudo=True)


def restart_service() -> StepResult:
    """Reload systemd and restart Docker; a failed restart is tolerated."""
    run_command(["systemctl", "daemon-reload"], sudo=True)
    return run_best_effort("docker restart", ["systemctl", "restart", "docker"], sudo=True)


def resolve_compose() -> Optional[list[str]]:
    """
    Determine how Compose can be invoked on this host.

    Returns:
        ["docker", "compose"], ["docker-compose"], or None if neither works
    """
    if command_exists("docker"):
        result = run_command(["docker", "compose", "version"], check=False)
        if result.returncode == 0:
            return ["docker", "compose"]
    if command_exists("docker-compose"):
        return ["docker-compose"]
    return None


def compose_down(compose: list[str], stack_dir: Path) -> StepResult:
    """Bring the stack down, keeping volumes."""
    return run_best_effort("compose down", [*compose, "down", "--remove-orphans"], cwd=str(stack_dir))


def remove_containers() -> StepResult:
    """Force-remove the stack containers by name."""
    return run_best_effort("container removal", ["docker", "rm", "-f", *CONTAINERS])


def remove_images() -> list[StepResult]:
    """Force-remove the stack images."""
    return [run_best_effort(f"image removal ({image})", ["docker", "image", "rm", "-f", image]) for image in IMAGES]


def purge_engine() -> list[StepResult]:
    """Purge Docker Engine packages and autoremove leftovers."""
    return [
        run_best_effort("docker package purge", ["apt-get", "-y", "purge", *DOCKER_PACKAGES], sudo=True),
        run_best_effort("apt autoremove", ["apt-get", "-y", "autoremove", "--purge"], sudo=True),
    ]


def remove_apt_repository(config: Config) -> StepResult:
    """Delete the Docker apt source and keyring, then refresh package indices."""
    for path in (config.docker_apt_source, config.docker_keyring):
        with file_operation(f"remove {path}"):
            path.unlink(missing_ok=True)
    return run_best_effort("apt-get update", ["apt-get", "update", "-y"], sudo=True)
