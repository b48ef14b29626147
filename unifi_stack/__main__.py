"""
Entry point for running unifi-stack as a module.

Usage:
    sudo python -m unifi_stack setup
    sudo python -m unifi_stack teardown --delete-data --yes
"""

from .cli import cli

if __name__ == "__main__":
    cli()
