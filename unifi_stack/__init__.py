"""unifi-stack - install and tear down a UniFi Network Application stack behind Caddy."""

__version__ = "0.1.0"

from . import config, daemon, docker, env, stack, utils

__all__ = ["config", "daemon", "docker", "env", "stack", "utils"]
