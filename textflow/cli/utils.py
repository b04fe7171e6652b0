"""Shared helpers for CLI commands"""

import click

from textflow.config import EnvironmentConfigError, PipelineConfig, load_config


def get_config(ctx: click.Context) -> PipelineConfig:
    """Load the configuration selected by the global --config option."""
    try:
        config = load_config(ctx.obj.get("config_path"))
    except EnvironmentConfigError as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config")

    for issue in config.validate():
        click.echo(f"Warning: {issue}", err=True)

    return config
