import contextlib
import click
from .client import Client
from .config import Config, ClientConfig
from .identity import DEFAULT_IDENTITY_LENGTH, MAX_IDENTITY_LENGTH
from .logging import LOG_LEVELS, configure_logging
from .server import Server

PORT = click.IntRange(0, 65535)

log_level_option = click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="info",
    envvar="RELAYCHAT_LOG_LEVEL",
    show_default=True,
    help="Log level.",
)


@click.command("server", context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("port", type=PORT)
@click.argument(
    "identity_length",
    type=click.IntRange(1, MAX_IDENTITY_LENGTH),
    default=DEFAULT_IDENTITY_LENGTH,
    required=False,
)
@log_level_option
def server_command(port: int, identity_length: int, log_level: str) -> None:
    """Run the broadcast server on 127.0.0.1:PORT.

    Peers are named after the first IDENTITY_LENGTH hex characters of the
    SHA-256 of their remote port (default 10).

    Example: relaychat-server 8080 32
    """
    configure_logging(log_level)
    server = Server(Config(port=port, identity_length=identity_length))
    with contextlib.suppress(KeyboardInterrupt):
        server.run()


@click.command("client", context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("port", type=PORT)
@log_level_option
def client_command(port: int, log_level: str) -> None:
    """Connect to the server on 127.0.0.1:PORT. Type exit to leave.

    Lines longer than 256 UTF-8 bytes are refused. The server relays
    "<name>: '<line>'" in one 256-byte frame and drops what does not fit,
    so with the default 10 character names a line can carry 242 bytes.

    Example: relaychat-client 8080
    """
    configure_logging(log_level)
    client = Client(ClientConfig(port=port))
    with contextlib.suppress(KeyboardInterrupt):
        client.run()


@click.group()
def cli() -> None:
    """Minimal broadcast chat over fixed size frames."""


cli.add_command(server_command)
cli.add_command(client_command)
