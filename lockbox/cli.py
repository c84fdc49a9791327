"""
Lockbox command line.

    lb init
    lb set KEY VALUE
    lb get KEY
    lb delete KEY
    lb list [--long]
    lb env [--remote HOST:PORT]
    lb run [--remote HOST:PORT] -- COMMAND [ARGS...]
    lb serve [--host HOST] [--port PORT]

Every failure prints ``Error: <message>`` on stderr and exits with 1.
"""
import sys
import logging
import functools
from typing import Optional

import click

from .exceptions import LockboxError
from .remote.client import fetch_remote_env, fetch_remote_secrets
from .remote.server import ServerContext, serve as serve_forever
from .runner import run_command
from .vault.config import LockboxConfig, ensure_db_dir
from .vault.keys import KeyStatus, initialize
from .vault.secret_vault import SecretVault
from .vault.store import SecretStore
from .version import __version__

logger = logging.getLogger("lockbox.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def handle_errors(func):
    """Report Lockbox failures as a one-line click error."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LockboxError as err:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(str(err)) from err
    return wrapper


def _open_vault(config: LockboxConfig) -> SecretVault:
    ensure_db_dir(config.db_path)
    return SecretVault.open(config.db_path)


@click.group()
@click.version_option(__version__, prog_name="lb")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
@handle_errors
def cli(ctx: click.Context, verbose: bool) -> None:
    """Lockbox - A secure secret management CLI."""
    config = LockboxConfig.from_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    ctx.obj = config


@cli.command()
@click.pass_obj
@handle_errors
def init(config: LockboxConfig) -> None:
    """Create the store and generate the encryption key."""
    ensure_db_dir(config.db_path)
    with SecretStore(config.db_path) as store:
        status = initialize(store)
    if status is KeyStatus.ALREADY_INITIALIZED:
        click.echo("Lockbox is already initialized. Encryption key already exists.")
        return
    click.echo("✓ Lockbox initialized successfully")


@cli.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
@handle_errors
def set_secret(config: LockboxConfig, key: str, value: str) -> None:
    """Store a secret with the given key and value."""
    with _open_vault(config) as vault:
        vault.set(key, value)
    click.echo(f"✓ Secret '{key}' set successfully")


@cli.command("get")
@click.argument("key")
@click.pass_obj
@handle_errors
def get_secret(config: LockboxConfig, key: str) -> None:
    """Print a decrypted secret with no trailing newline."""
    with _open_vault(config) as vault:
        value = vault.get(key)
    click.echo(value, nl=False)


@cli.command("delete")
@click.argument("key")
@click.pass_obj
@handle_errors
def delete_secret(config: LockboxConfig, key: str) -> None:
    """Remove a secret by its key."""
    with _open_vault(config) as vault:
        vault.delete(key)
    click.echo(f"✓ Secret '{key}' deleted successfully")


@cli.command("list")
@click.option("--long", "long_format", is_flag=True, help="Show created/updated timestamps.")
@click.pass_obj
@handle_errors
def list_secrets(config: LockboxConfig, long_format: bool) -> None:
    """Display all stored secret keys."""
    with _open_vault(config) as vault:
        if long_format:
            records = vault.store.records()
            for record in records:
                click.echo(
                    f"{record.key}\t{record.created_at:%Y-%m-%d %H:%M:%S}"
                    f"\t{record.updated_at:%Y-%m-%d %H:%M:%S}"
                )
            keys = [record.key for record in records]
        else:
            keys = vault.keys()
            for key in keys:
                click.echo(key)
    if not keys:
        click.echo("No secrets found")


@cli.command()
@click.option("-r", "--remote", default=None, help="Remote server to fetch from (e.g., localhost:8100).")
@click.pass_obj
@handle_errors
def env(config: LockboxConfig, remote: Optional[str]) -> None:
    """Export secrets as shell environment variables.

    \b
    Use with eval or source:
      eval "$(lb env)"
      source <(lb env)
    """
    if remote:
        click.echo(fetch_remote_env(remote, config.remote_timeout), nl=False)
        return
    with _open_vault(config) as vault:
        # lines already printed stay printed if a later key fails
        for line in vault.export_lines():
            click.echo(line, nl=False)


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("-r", "--remote", default=None, help="Remote server to fetch secrets from (e.g., localhost:8100).")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
@handle_errors
def run(ctx: click.Context, remote: Optional[str], command: tuple) -> None:
    """Run a command with secrets in its environment.

    \b
      lb run -- sh -c 'echo $SECRET_VAR'
      lb run -- ./my-app
    """
    config = ctx.obj
    if remote:
        secrets = fetch_remote_secrets(remote, config.remote_timeout)
    else:
        with _open_vault(config) as vault:
            secrets = vault.secrets()
    ctx.exit(run_command(command, secrets))


@cli.command()
@click.option("-H", "--host", default=None, help="Loopback address to bind (default 127.0.0.1).")
@click.option("-p", "--port", type=int, default=None, help="Port to listen on (default 8100).")
@click.pass_obj
@handle_errors
def serve(config: LockboxConfig, host: Optional[str], port: Optional[int]) -> None:
    """Start the read-only HTTP server for remote access.

    \b
    Endpoints:
      GET /health        - {"status":"ok"}
      GET /secrets       - JSON array of secret keys
      GET /secrets/KEY   - decrypted value as plain text
      GET /env           - export KEY="value" lines
    """
    settings = LockboxConfig.build(**{
        **config.model_dump(),
        "host": host or config.host,
        "port": port or config.port,
    })
    with _open_vault(settings) as vault:
        click.echo(f"✓ Server listening on http://{settings.host}:{settings.port}")
        serve_forever(ServerContext(vault), settings.host, settings.port)


def main(argv: Optional[list[str]] = None) -> None:
    cli.main(args=argv, prog_name="lb")
