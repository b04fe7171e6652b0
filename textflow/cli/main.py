#!/usr/bin/env python3
"""
TextFlow CLI
Main entry point for running step chains.
"""

import click
from dotenv import load_dotenv

from textflow import __version__
from textflow.utils.logging import set_log_level

from .commands import pipeline_commands, provider_commands

load_dotenv()


@click.group()
@click.version_option(version=__version__, prog_name="textflow")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="YAML configuration file layered over the environment",
)
@click.pass_context
def cli(ctx, verbose, config_path):
    """
    TextFlow CLI

    Run short chains of text-transformation steps with provider fallback.
    """
    ctx.ensure_object(dict)

    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path

    if verbose:
        set_log_level("DEBUG")


cli.add_command(pipeline_commands.run)
cli.add_command(pipeline_commands.steps)
cli.add_command(provider_commands.health)


if __name__ == "__main__":
    cli()
