"""
Main Typer application for the telebridge CLI.

Loads the configuration, connects to Telegram and IRC and relays between
them until a connection fails or the process is interrupted.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

from telebridge import __version__
from telebridge.cli.output import print_info, setup_logging
from telebridge.config import DEFAULT_CONFIG_PATH, Config, ConfigurationError, load_config
from telebridge.formatting import IRCFormatting, TelegramFormatting
from telebridge.platforms.adapters import IRCAdapter, TelegramAdapter
from telebridge.platforms.bridge import Bridge

logger = logging.getLogger(__name__)

# Create the main Typer app
app = typer.Typer(
    name="telebridge",
    help="Relay messages between a Telegram group and an IRC channel.",
    add_completion=False,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"telebridge version [green]{__version__}[/green]")
        raise typer.Exit()


def create_bridge(config: Config) -> Bridge:
    """Create both adapters and wire them into a bridge.

    Args:
        config: Validated telebridge configuration

    Returns:
        A bridge ready to run
    """
    telegram = TelegramAdapter(
        bot_token=config.telegram.token,
        chat_id=config.telegram.chat_id,
        polling_interval=config.telegram.polling_interval,
    )
    irc = IRCAdapter(
        server=config.irc.server,
        port=config.irc.port,
        channel=config.irc.channel,
        nick=config.irc.bot_name,
        ident=config.irc.bot_ident,
        realname=config.irc.bot_realname,
        tls=config.irc.tls,
        cert_check=config.irc.cert_check,
        server_password=config.irc.server_password,
        channel_key=config.irc.channel_key,
        nickserv_service=config.irc.nickserv_service,
        nickserv_password=config.irc.nickserv_password,
        quit_message=config.irc.quit_message,
        connect_timeout=config.irc.connect_timeout,
    )
    return Bridge(
        telegram,
        irc,
        TelegramFormatting.from_config(config),
        IRCFormatting.from_config(config),
    )


# noinspection PyUnusedLocal
@app.command()
def main(
    conf: Annotated[
        Path,
        typer.Option(
            "--conf",
            "-c",
            help="Path to the YAML configuration file.",
        ),
    ] = DEFAULT_CONFIG_PATH,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug logging.",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold blue]telebridge[/bold blue] - Telegram <-> IRC bridge

    Runs until either connection fails (exit status 1) or SIGINT/SIGTERM
    is received (exit status 0).
    """
    setup_logging(debug)
    logger.info("telebridge version %s", __version__)

    try:
        config = load_config(conf)
    except ConfigurationError as e:
        logger.error("Failed to load configuration: %s", e)
        raise typer.Exit(1)

    bridge = create_bridge(config)
    exit_code = asyncio.run(bridge.run())
    raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
