"""Command-line interface for unifi-stack."""

import re
import sys

import click

from . import config, env
from .utils import UnifiStackError


class AliasedGroup(click.Group):
    """A Click Group that supports command aliases."""

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        # Check if cmd_name is an alias for any command
        for cmd in self.commands.values():
            if cmd_name in getattr(cmd, "aliases", ()):
                return cmd
        return None

    def format_commands(self, ctx, formatter):
        """List commands together with their aliases."""
        rows = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue

            cmd_name = subcommand
            if getattr(cmd, "aliases", None):
                cmd_name = f"{subcommand} ({', '.join(cmd.aliases)})"
            rows.append((cmd_name, cmd))

        if rows:
            limit = formatter.width - 6 - max(len(name) for name, _ in rows)
            with formatter.section("Commands"):
                formatter.write_dl([(name, cmd.get_short_help_str(limit)) for name, cmd in rows])


class AliasedCommand(click.Command):
    """A Click Command carrying alternative names."""

    def __init__(self, *args, **kwargs):
        self.aliases = kwargs.pop("aliases", [])
        super().__init__(*args, **kwargs)


def _fail(error: UnifiStackError) -> None:
    click.echo(f"❌ Error: {error}", err=True)
    sys.exit(error.exit_code)


def _confirmed() -> bool:
    try:
        answer = click.prompt("Proceed with teardown? [y/N]", default="N", show_default=False, prompt_suffix=" ")
    except click.Abort:
        return False
    return re.fullmatch(r"[Yy]", answer.strip()) is not None


@click.command("setup", cls=AliasedCommand, aliases=["up"])
def setup_command():
    """Install Docker and write the UniFi + MongoDB + Caddy stack.

    Parameters come from the environment: DOMAIN, EMAIL, PUID, PGID,
    AWS_ACCESS_KEY, AWS_SECRET, AWS_REGION.
    """
    try:
        env.setup(config.get_config())
    except UnifiStackError as e:
        _fail(e)


@click.command("teardown", cls=AliasedCommand, aliases=["down"])
@click.option("--delete-data", is_flag=True, help="Delete the stack directory (data, db, configs).")
@click.option("--purge-images", is_flag=True, help="Remove the UniFi and MongoDB images.")
@click.option("--revert-daemon-json", is_flag=True, help="Remove data-root from daemon.json and restart Docker.")
@click.option("--remove-docker", is_flag=True, help="Apt purge Docker Engine and plugins.")
@click.option("--remove-docker-repo", is_flag=True, help="Remove the Docker APT repo and keyring.")
@click.option("--remove-caddyfile", is_flag=True, help="Delete the stack Caddyfile only.")
@click.option("--yes", is_flag=True, help="Non-interactive, no confirmation.")
@click.option("--force", is_flag=True, help="Remove containers by name if the compose file is missing.")
@click.option("--stack-dir", metavar="DIR", help="Override the stack root.")
@click.option("--docker-root", metavar="DIR", help="Docker data-root, for information only.")
def teardown_command(yes, **options):
    """Undo the UniFi stack setup.

    By default only the stack's containers and networks are removed;
    data, Docker and daemon.json are kept.
    """
    cfg = config.get_config()
    try:
        docker_available = env.check_teardown_preconditions()
        plan = env.TeardownPlan.from_config(cfg, **options)

        click.echo(env.describe_plan(plan))
        click.echo()
        if not yes and not _confirmed():
            click.echo("Aborted.")
            return

        env.teardown(cfg, plan, docker_available=docker_available)
    except UnifiStackError as e:
        _fail(e)


@click.group(cls=AliasedGroup)
@click.option("--env-file", type=click.Path(exists=True), help="Path to .env file")
def cli(env_file):
    """unifi-stack - Install and tear down a UniFi Network Application stack."""
    config.get_config(env_file)


cli.add_command(setup_command)
cli.add_command(teardown_command)


if __name__ == "__main__":
    cli()
