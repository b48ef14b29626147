"""UniFi stack files: credentials, Mongo init scripts, env file, Compose manifest and Caddyfile."""

from dataclasses import dataclass
from pathlib import Path
from string import Template

from .config import Config
from .utils import file_operation, generate_password, run_command

APP_USER = "unifi"
ROOT_USER = "root"
APP_PASSWORD_LENGTH = 24
ROOT_PASSWORD_LENGTH = 28

MONGO_HOST = "unifi-mongodb"
MONGO_PORT = 27017
MONGO_DBNAME = "unifi"

INIT_SCRIPTS = ["01-init-rs.js", "02-fcv.js", "03-create-users.js"]
COMPOSE_FILE = "docker-compose.yml"
CADDYFILE = "Caddyfile"
ENV_FILE = "container-vars.env"


@dataclass(frozen=True)
class Credentials:
    """MongoDB credentials generated for one setup run."""

    app_user: str
    app_password: str
    root_user: str
    root_password: str


def generate_credentials() -> Credentials:
    """Generate fresh application and root credentials."""
    return Credentials(
        app_user=APP_USER,
        app_password=generate_password(APP_PASSWORD_LENGTH),
        root_user=ROOT_USER,
        root_password=generate_password(ROOT_PASSWORD_LENGTH),
    )


def render(config: Config, template_name: str, **values) -> str:
    """Render a packaged template with the given substitutions."""
    with open(config.get_template_path(template_name), encoding="utf-8") as f:
        template = Template(f.read())
    return template.substitute(**values)


def create_directories(config: Config) -> None:
    """Create data, db and db-init under the stack directory and hand data to PUID:PGID."""
    stack_dir = config.stack_dir
    for name in ("db", "data", "db-init"):
        with file_operation(f"create {stack_dir / name}"):
            (stack_dir / name).mkdir(parents=True, exist_ok=True)

    run_command(["chown", "-R", f"{config.puid}:{config.pgid}", str(stack_dir / "data")], sudo=True)


def _write(path: Path, content: str, mode: int = 0o644) -> None:
    with file_operation(f"write {path}"):
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        path.chmod(mode)
    print(f"Wrote {path}")


def write_init_scripts(config: Config, credentials: Credentials) -> None:
    """Write the replica-set, FCV and user-creation scripts run by the Mongo entrypoint."""
    init_dir = config.stack_dir / "db-init"
    for name in INIT_SCRIPTS:
        content = render(
            config,
            name,
            app_user=credentials.app_user,
            app_password=credentials.app_password,
        )
        _write(init_dir / name, content)


def write_env_file(config: Config, credentials: Credentials) -> None:
    """Write the UniFi container environment file."""
    content = render(
        config,
        ENV_FILE,
        puid=config.puid,
        pgid=config.pgid,
        app_user=credentials.app_user,
        app_password=credentials.app_password,
        mongo_host=MONGO_HOST,
        mongo_port=MONGO_PORT,
        mongo_dbname=MONGO_DBNAME,
    )
    _write(config.stack_dir / ENV_FILE, content, mode=0o600)


def write_compose_file(config: Config, credentials: Credentials) -> None:
    """Write the Compose manifest for the UniFi and MongoDB services."""
    content = render(
        config,
        COMPOSE_FILE,
        root_user=credentials.root_user,
        root_password=credentials.root_password,
    )
    _write(config.stack_dir / COMPOSE_FILE, content)


def write_caddyfile(config: Config) -> None:
    """
    Write the hardened Caddyfile.

    AWS credentials are left as Caddy environment placeholders and are
    resolved by Caddy at runtime.
    """
    content = render(config, CADDYFILE, domain=config.domain, email=config.email)
    _write(config.stack_dir / CADDYFILE, content)


def summary(config: Config, credentials: Credentials) -> str:
    """Build the closing report shown after setup."""
    stack_dir = config.stack_dir
    lines = [
        f"Controller URL (once Caddy is in front):  https://{config.domain}",
        "UniFi ports: 8443/TCP (GUI), 8080/TCP (inform), 3478/UDP (STUN), 10001/UDP (L2 discovery)",
        "",
        "MongoDB credentials:",
        f"  Root user: {credentials.root_user}",
        f"  Root pass: {credentials.root_password}",
        f"  App  user: {credentials.app_user}",
        f"  App  pass: {credentials.app_password}",
        "",
        "Next steps:",
        "  1) Ensure your Caddy build includes: route53 DNS plugin, and any optional plugins you referenced.",
        "  2) Export AWS credentials for Caddy (same shell or service unit):",
        f"       export AWS_ACCESS_KEY='{config.aws_access_key}'",
        f"       export AWS_SECRET='{config.aws_secret}'",
        f"       export AWS_REGION='{config.aws_region}'",
        f"  3) Point your Caddy at {stack_dir / CADDYFILE} and reload it.",
        "  4) Start UniFi stack:",
        f"       docker compose -f {stack_dir / COMPOSE_FILE} up -d",
    ]
    return "\n".join(lines)
