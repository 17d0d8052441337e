"""
padlink runtime wiring.

Builds the token store, authenticator and pointer actuator from a
configuration provider, and exposes them as the `padlink` command line.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import click
from dotenv import load_dotenv

from padlink.config.provider import ConfigProvider, EnvConfigProvider, TokenStoreConfig, YamlConfigProvider
from padlink.logging_config import configure_logging
from padlink.modules.actuator import (
    ActuatorCapabilities,
    PointerActuator,
    create_actuator,
    disabled_capabilities,
    probe_capabilities,
)
from padlink.modules.auth import ConnectionAuthenticator, TokenStore
from padlink.modules.storage import create_snapshot_storage

logger = logging.getLogger("padlink.main")


@dataclass
class Runtime:
    """Everything a transport layer needs, built once at startup."""

    token_store: TokenStore
    authenticator: ConnectionAuthenticator
    capabilities: ActuatorCapabilities
    actuator: PointerActuator

    def close(self) -> None:
        self.token_store.close()


def build_token_store(config: TokenStoreConfig) -> TokenStore:
    """Create an unopened token store from configuration."""
    return TokenStore(
        create_snapshot_storage(config),
        expiry_window_ms=config.expiry_window_ms,
        flush_interval_ms=config.flush_interval_ms,
        background_flush=config.background_flush,
    )


def build_runtime(provider: Optional[ConfigProvider] = None) -> Runtime:
    """
    Wire up the runtime.

    The token store is opened and the actuator capability probe runs here,
    exactly once.
    """
    provider = provider or EnvConfigProvider()

    token_store = build_token_store(provider.get_token_store_config()).open()

    actuator_config = provider.get_actuator_config()
    if actuator_config.enabled:
        capabilities = probe_capabilities(command=actuator_config.command)
    else:
        capabilities = disabled_capabilities()

    runtime = Runtime(
        token_store=token_store,
        authenticator=ConnectionAuthenticator(token_store),
        capabilities=capabilities,
        actuator=create_actuator(capabilities, actuator_config),
    )

    if runtime.authenticator.pairing_required():
        logger.info("No paired clients yet, pairing is required")

    return runtime


def _provider(config_path: Optional[str]) -> ConfigProvider:
    if config_path:
        return YamlConfigProvider(config_path)
    return EnvConfigProvider()


@click.group()
@click.option("--config", "config_path", default=None, help="YAML configuration file")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str]):
    """padlink host tools."""
    load_dotenv()
    provider = _provider(config_path)
    configure_logging(provider.get_logging_settings().level)
    ctx.obj = provider


@cli.command()
@click.pass_obj
def status(provider: ConfigProvider):
    """Show token store and actuator status."""
    runtime = build_runtime(provider)
    try:
        summary = {
            "token_store": runtime.token_store.describe(),
            "pairing_required": runtime.authenticator.pairing_required(),
            "actuator": runtime.capabilities.to_dict(),
        }
        click.echo(json.dumps(summary, indent=2))
    finally:
        runtime.close()


@cli.command()
@click.pass_obj
def pair(provider: ConfigProvider):
    """Issue a token for a new client and print it."""
    token_store = build_token_store(provider.get_token_store_config())
    with token_store:
        token = ConnectionAuthenticator(token_store).pair()
    click.echo(token)


@cli.command()
@click.argument("token")
@click.pass_obj
def revoke(provider: ConfigProvider, token: str):
    """Remove a token."""
    token_store = build_token_store(provider.get_token_store_config())
    with token_store:
        removed = token_store.revoke(token)
    if not removed:
        raise click.ClickException("Token not found")
    click.echo("Token revoked")


@cli.command()
@click.pass_obj
def probe(provider: ConfigProvider):
    """Show which pointer backend this host would use."""
    actuator_config = provider.get_actuator_config()
    if actuator_config.enabled:
        capabilities = probe_capabilities(command=actuator_config.command)
    else:
        capabilities = disabled_capabilities()
    click.echo(json.dumps(capabilities.to_dict(), indent=2))


def main():
    cli()


if __name__ == "__main__":
    main()
