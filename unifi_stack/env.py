"""Stack lifecycle management: host setup and teardown."""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import daemon, docker, stack
from .config import Config, DEFAULT_DOMAIN, DEFAULT_STACK_DIR
from .utils import (
    command_exists,
    file_operation,
    need,
    need_privileges,
    StepResult,
    UnsafePathError,
)


def setup(config: Config) -> stack.Credentials:
    """
    Bring a bare Ubuntu host to a ready-to-start UniFi stack.

    This function:
    1. Installs Docker Engine with the data-root set to the configured path
    2. Generates MongoDB credentials and the stack directories
    3. Writes Mongo init scripts, env file, Compose manifest and Caddyfile
    4. Prints the credentials and next steps

    Any failed command aborts the run; files already written are left in place.

    Returns:
        The generated credentials

    Raises:
        UnifiStackError: If a required tool is missing or a step fails
    """
    data_root = config.docker_data_root
    # Validate IDs before touching the host
    puid, pgid = config.puid, config.pgid

    if config.domain == DEFAULT_DOMAIN:
        print(f"Warning: DOMAIN not set; using placeholder '{DEFAULT_DOMAIN}'.")

    print(f"[1/4] Installing Docker Engine and Compose plugin, and setting data-root to {data_root}...")
    need_privileges()
    need("apt-get", "dpkg", "systemctl")

    docker.install_prerequisites(config)
    docker.add_apt_repository(config)
    docker.install_engine()
    docker.prepare_data_root(data_root)
    with file_operation(f"update {config.daemon_json}"):
        daemon.set_data_root(config.daemon_json, str(data_root))
    docker.enable_service()

    print("[2/4] Creating directories and generating credentials for UniFi + MongoDB...")
    credentials = stack.generate_credentials()
    stack.create_directories(config)
    print(f"{config.stack_dir / 'data'} owned by {puid}:{pgid}")

    print("[3/4] Writing Mongo init scripts, UniFi env file, docker-compose.yml, and Caddyfile...")
    stack.write_init_scripts(config, credentials)
    stack.write_env_file(config, credentials)
    stack.write_compose_file(config, credentials)
    stack.write_caddyfile(config)

    print(f"[4/4] Done. Files written under {config.stack_dir}.")
    print()
    print(stack.summary(config, credentials))
    print()
    print("✅ All set.")
    return credentials


@dataclass
class TeardownPlan:
    """Which teardown steps to run. The defaults only remove the stack's containers."""

    stack_dir: str
    docker_root: str
    delete_data: bool = False
    purge_images: bool = False
    revert_daemon_json: bool = False
    remove_docker: bool = False
    remove_docker_repo: bool = False
    remove_caddyfile: bool = False
    force: bool = False
    results: list[StepResult] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: Config, **options) -> "TeardownPlan":
        """Build a plan, falling back to configured paths for unset directories."""
        stack_dir = options.pop("stack_dir", None) or str(config.stack_dir)
        docker_root = options.pop("docker_root", None) or str(config.docker_data_root)
        return cls(stack_dir=stack_dir, docker_root=docker_root, **options)


def describe_plan(plan: TeardownPlan) -> str:
    """Render the teardown plan for the confirmation prompt."""

    def yn(flag: bool) -> str:
        return "yes" if flag else "no"

    return "\n".join(
        [
            "Teardown plan:",
            f"  Stack directory:     {plan.stack_dir}",
            f"  Docker data-root:    {plan.docker_root} (info)",
            "  Stop/remove stack:   yes",
            f"  Delete data dir:     {yn(plan.delete_data)}",
            f"  Purge images:        {yn(plan.purge_images)}",
            f"  Revert daemon.json:  {yn(plan.revert_daemon_json)}",
            f"  Remove Docker pkgs:  {yn(plan.remove_docker)}",
            f"  Remove Docker repo:  {yn(plan.remove_docker_repo)}",
            f"  Remove Caddyfile:    {yn(plan.remove_caddyfile)}",
        ]
    )


def check_teardown_preconditions() -> bool:
    """
    Verify the tools teardown relies on.

    Returns:
        True if docker is available, False if only file cleanup is possible

    Raises:
        MissingToolError: If systemctl or sudo (when not root) is missing
    """
    need_privileges()
    need("systemctl")
    if command_exists("docker"):
        return True
    print("Warning: docker not found. Will proceed with file cleanup only.")
    return False


def ensure_safe_stack_dir(stack_dir: str, expected: Optional[str] = None) -> None:
    """
    Refuse to delete anything other than the default stack directory.

    The expected path is fixed; UNIFI_DIR and --stack-dir cannot widen it.

    Raises:
        UnsafePathError: If stack_dir is not exactly the expected path
    """
    if expected is None:
        expected = DEFAULT_STACK_DIR
    if stack_dir not in (str(expected), f"{expected}/"):
        raise UnsafePathError(f"Safety check: refusing to delete unexpected path: {stack_dir}")


def teardown(config: Config, plan: TeardownPlan, docker_available: Optional[bool] = None) -> TeardownPlan:
    """
    Undo the setup according to the plan.

    Steps run in a fixed order; best-effort steps record their outcome in
    plan.results and never abort the run.

    Args:
        config: Config instance
        plan: Which steps to run
        docker_available: Whether the docker CLI exists; detected if None

    Returns:
        The plan with its results filled in

    Raises:
        UnsafePathError: If --delete-data targets an unexpected path
    """
    if docker_available is None:
        docker_available = command_exists("docker")

    stack_dir = Path(plan.stack_dir)
    compose_file = stack_dir / stack.COMPOSE_FILE

    compose = docker.resolve_compose() if docker_available else None
    if compose and compose_file.is_file():
        print("[1/6] Bringing stack down via Compose (no volume removal)...")
        plan.results.append(docker.compose_down(compose, stack_dir))
    elif plan.force and docker_available:
        print("[1/6] Compose file missing. Forcing container removal by name...")
        plan.results.append(docker.remove_containers())
    else:
        print("[1/6] Compose not available or compose file missing. Skipping container removal.")

    if plan.purge_images and docker_available:
        print("[2/6] Purging images...")
        plan.results.extend(docker.remove_images())

    if plan.remove_caddyfile:
        print("[3/6] Removing Caddyfile...")
        with file_operation(f"remove {stack_dir / stack.CADDYFILE}"):
            (stack_dir / stack.CADDYFILE).unlink(missing_ok=True)

    if plan.delete_data:
        print(f"[4/6] Deleting stack directory {plan.stack_dir} ...")
        ensure_safe_stack_dir(plan.stack_dir)
        if stack_dir.exists():
            with file_operation(f"delete {stack_dir}"):
                shutil.rmtree(stack_dir)

    if plan.revert_daemon_json:
        if config.daemon_json.is_file():
            print(f"[5/6] Reverting {config.daemon_json} 'data-root' and restarting Docker...")
            with file_operation(f"revert {config.daemon_json}"):
                daemon.revert_data_root(config.daemon_json)
            plan.results.append(docker.restart_service())
        else:
            print(f"[5/6] {config.daemon_json} not present. Skipping revert.")

    if plan.remove_docker:
        print("[6/6] Removing Docker Engine and plugins...")
        plan.results.extend(docker.purge_engine())

    if plan.remove_docker_repo:
        print("[6/6b] Removing Docker APT repo and keyring...")
        plan.results.append(docker.remove_apt_repository(config))

    print()
    print("✅ Teardown complete.")
    print(f"If you kept data, it remains under: {plan.stack_dir}")
    print(f"Docker root remains at: {plan.docker_root}  (unless you changed it with --revert-daemon-json)")
    return plan
