"""Utility functions for running host commands, error types, and common helpers."""

import os
import secrets
import shutil
import string
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

PASSWORD_ALPHABET = string.ascii_letters + string.digits


class UnifiStackError(Exception):
    """Base exception for unifi-stack errors."""

    exit_code = 1


class MissingToolError(UnifiStackError):
    """Exception raised when a required host tool is not installed."""
    pass


class CommandError(UnifiStackError):
    """Exception raised when a mandatory host command fails."""
    pass


class ConfigError(UnifiStackError):
    """Exception raised for invalid configuration values."""
    pass


class UnsafePathError(UnifiStackError):
    """Exception raised when a destructive operation targets an unexpected path."""

    exit_code = 3


@dataclass
class StepResult:
    """Outcome of a single host step."""

    name: str
    ok: bool
    fatal: bool = False
    detail: str = ""


def is_root() -> bool:
    """Return True when running with an effective UID of 0."""
    return os.geteuid() == 0


def command_exists(name: str) -> bool:
    """Check whether an executable is available on PATH."""
    return shutil.which(name) is not None


def need(*names: str) -> None:
    """
    Ensure required executables are available.

    Args:
        names: Executable names to look up on PATH

    Raises:
        MissingToolError: If any executable is missing
    """
    for name in names:
        if not command_exists(name):
            raise MissingToolError(f"'{name}' is required.")


def need_privileges() -> None:
    """Ensure privileged commands can run, either as root or through sudo."""
    if not is_root():
        need("sudo")


def run_command(
    command: list[str],
    cwd: Optional[str] = None,
    check: bool = True,
    sudo: bool = False,
    capture_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a host command.

    Args:
        command: Command and arguments as list
        cwd: Working directory
        check: Whether to raise exception on non-zero exit
        sudo: Prefix the command with sudo when not already root
        capture_output: Whether to capture stdout/stderr

    Returns:
        CompletedProcess instance

    Raises:
        CommandError: If check=True and the command fails or cannot be started
    """
    if sudo and not is_root():
        command = ["sudo", *command]

    try:
        return subprocess.run(command, cwd=cwd, capture_output=capture_output, text=True, check=check)
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise CommandError(f"Command failed ({e.returncode}): {' '.join(command)}\n{stderr}".rstrip()) from e
    except OSError as e:
        if not check:
            return subprocess.CompletedProcess(command, 127, "", str(e))
        raise CommandError(f"Could not run {' '.join(command)}: {e}") from e


@contextmanager
def file_operation(description: str):
    """
    Turn filesystem errors raised inside the block into CommandError.

    Args:
        description: What the block does, e.g. "remove /srv/docker/unifi/Caddyfile"

    Raises:
        CommandError: If the block raises OSError
    """
    try:
        yield
    except OSError as e:
        raise CommandError(f"Failed to {description}: {e}") from e


def run_best_effort(name: str, command: list[str], cwd: Optional[str] = None, sudo: bool = False) -> StepResult:
    """
    Run a command whose failure is tolerated.

    Failures are reported as a warning and returned instead of raised.

    Args:
        name: Short description of the step
        command: Command and arguments as list
        cwd: Working directory
        sudo: Prefix the command with sudo when not already root

    Returns:
        StepResult describing the outcome
    """
    result = run_command(command, cwd=cwd, check=False, sudo=sudo)
    if result.returncode == 0:
        return StepResult(name, ok=True)

    detail = (result.stderr or "").strip() or f"exit code {result.returncode}"
    print(f"Warning: {name} failed: {detail}")
    return StepResult(name, ok=False, detail=detail)


def generate_password(length: int) -> str:
    """
    Generate a random alphanumeric password.

    Args:
        length: Desired password length

    Returns:
        String of `length` characters drawn from A-Za-z0-9
    """
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
