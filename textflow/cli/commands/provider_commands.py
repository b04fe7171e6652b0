"""Provider command implementations"""

import asyncio

import click

from textflow.llm.exceptions import ProviderConfigurationError
from textflow.llm.factory import create_provider
from textflow.llm.provider import ProviderHealthStatus

from ..utils import get_config


async def _check(config) -> ProviderHealthStatus:
    async with create_provider(config) as provider:
        return await provider.check_health()


@click.command()
@click.pass_context
def health(ctx):
    """Check that the configured provider is reachable"""
    config = get_config(ctx)

    try:
        status = asyncio.run(_check(config))
    except ProviderConfigurationError as e:
        click.echo(f"{config.provider}: down ({e.message})")
        ctx.exit(1)

    response_ms = int(round((status.response_time or 0) * 1000))
    if status.is_healthy:
        click.echo(f"{status.provider}: healthy ({response_ms}ms)")
        return

    click.echo(f"{status.provider}: down ({status.error_message})")
    ctx.exit(1)
