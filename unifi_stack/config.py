"""Configuration management for unifi-stack."""

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .utils import ConfigError

DEFAULT_DOCKER_DATA_ROOT = "/srv/docker"
DEFAULT_STACK_DIR = f"{DEFAULT_DOCKER_DATA_ROOT}/unifi"
DEFAULT_DOMAIN = "unifi.yourdomain.com"


class Config:
    """Configuration class for host paths and stack parameters."""

    daemon_json = Path("/etc/docker/daemon.json")
    apt_keyrings_dir = Path("/etc/apt/keyrings")
    docker_keyring = Path("/etc/apt/keyrings/docker.asc")
    docker_apt_source = Path("/etc/apt/sources.list.d/docker.list")
    os_release = Path("/etc/os-release")

    docker_gpg_url = "https://download.docker.com/linux/ubuntu/gpg"
    docker_apt_url = "https://download.docker.com/linux/ubuntu"

    def __init__(self, env_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration.

        Args:
            env_file: Optional path to .env file loaded before reading values.
            environ: Explicit variable mapping, used instead of os.environ.
        """
        self.template_dir = Path(__file__).parent / "templates"

        if env_file:
            load_dotenv(env_file)

        # Snapshot so every step sees the same values for the whole run
        self._environ = dict(os.environ if environ is None else environ)

    def _get(self, name: str, default: str) -> str:
        value = self._environ.get(name)
        return value if value else default

    @property
    def docker_data_root(self) -> Path:
        """Docker Engine data-root."""
        return Path(self._get("DOCKER_DATA_ROOT", DEFAULT_DOCKER_DATA_ROOT))

    @property
    def stack_dir(self) -> Path:
        """UniFi stack directory."""
        return Path(self._get("UNIFI_DIR", str(self.docker_data_root / "unifi")))

    @property
    def domain(self) -> str:
        """Public hostname served by Caddy."""
        return self._get("DOMAIN", DEFAULT_DOMAIN)

    @property
    def email(self) -> str:
        """ACME contact email."""
        return self._get("EMAIL", "admin@example.com")

    @property
    def puid(self) -> int:
        """User ID owning the UniFi data directory."""
        return self._numeric_id("PUID")

    @property
    def pgid(self) -> int:
        """Group ID owning the UniFi data directory."""
        return self._numeric_id("PGID")

    @property
    def aws_access_key(self) -> str:
        """Route53 access key for Caddy DNS-01."""
        return self._environ.get("AWS_ACCESS_KEY", "")

    @property
    def aws_secret(self) -> str:
        """Route53 secret key for Caddy DNS-01."""
        return self._environ.get("AWS_SECRET", "")

    @property
    def aws_region(self) -> str:
        """Route53 region for Caddy DNS-01."""
        return self._environ.get("AWS_REGION", "")

    def _numeric_id(self, name: str) -> int:
        value = self._get(name, "1000")
        if not value.isdigit():
            raise ConfigError(f"{name} must be a numeric ID, got '{value}'")
        return int(value)

    def get_template_path(self, template_name: str) -> Path:
        """
        Get path to a template file.

        Args:
            template_name: Template file name (e.g., "Caddyfile")

        Returns:
            Path to template file

        Raises:
            FileNotFoundError: If template doesn't exist
        """
        template_path = self.template_dir / template_name
        if not template_path.exists():
            raise FileNotFoundError(f"Template not found: {template_path}")
        return template_path


# Global config instance
_config: Optional[Config] = None


def get_config(env_file: Optional[str] = None) -> Config:
    """
    Get or create the global configuration instance.

    Args:
        env_file: Optional path to .env file

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config(env_file)
    return _config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
