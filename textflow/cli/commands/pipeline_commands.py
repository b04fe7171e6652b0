"""Pipeline command implementations"""

import asyncio
import json
from typing import Optional, Tuple

import click
from pydantic import ValidationError

from textflow.config import PipelineConfig
from textflow.llm.exceptions import ProviderConfigurationError
from textflow.llm.factory import create_provider
from textflow.pipeline.errors import PipelineError
from textflow.pipeline.executor import PipelineExecutor
from textflow.pipeline.models import PipelineResult
from textflow.pipeline.steps import STEP_NAMES, StepType
from textflow.pipeline.validation import (
    RunRequest,
    format_validation_error,
    validate_run_request,
)

from ..utils import get_config


async def _execute(request: RunRequest, config: PipelineConfig) -> PipelineResult:
    async with create_provider(config) as provider:
        executor = PipelineExecutor(provider, config)
        return await executor.execute(request.steps, request.input_text)


@click.command()
@click.argument("step_names", metavar="STEP...", nargs=-1, required=True)
@click.option("--text", "-t", help="Input text (reads stdin when neither --text nor --file is given)")
@click.option("--file", "-f", "input_file", type=click.File("r"), help="Read input text from a file")
@click.option("--model", help="Override the primary model")
@click.option("--fallback-model", "fallback_models", multiple=True, help="Additional candidate model (repeatable)")
@click.option(
    "--allow-local-fallback/--no-local-fallback",
    default=None,
    help="Degrade to local heuristics when providers are unavailable",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def run(
    ctx,
    step_names: Tuple[str, ...],
    text: Optional[str],
    input_file,
    model: Optional[str],
    fallback_models: Tuple[str, ...],
    allow_local_fallback: Optional[bool],
    as_json: bool,
):
    """Run a chain of 2-4 steps over the input text"""
    if text is not None and input_file is not None:
        raise click.UsageError("Use either --text or --file, not both")

    if text is None:
        stream = input_file or click.get_text_stream("stdin")
        text = stream.read()

    try:
        request = validate_run_request(step_names, text)
    except ValidationError as e:
        raise click.UsageError(format_validation_error(e))

    config = get_config(ctx).with_overrides(
        primary_model=model,
        fallback_models=list(fallback_models) or None,
        allow_local_fallback=allow_local_fallback,
    )

    try:
        result = asyncio.run(_execute(request, config))
    except ProviderConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        ctx.exit(1)
    except PipelineError as e:
        if as_json:
            click.echo(json.dumps(e.to_dict(), indent=2))
        else:
            click.echo(f"Error at step {e.step_index + 1} ({e.step_name}): {e.message}", err=True)
            if e.retry_after_seconds is not None:
                click.echo(f"Retry after about {e.retry_after_seconds} seconds.", err=True)
        ctx.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    for index, step_output in enumerate(result.step_outputs, start=1):
        click.echo(f"[{index}] {STEP_NAMES[step_output.step_name]}")
        click.echo(step_output.output)
        click.echo()
    click.echo(f"Completed in {result.execution_time_ms}ms")


@click.command()
def steps():
    """List the available step types"""
    for step in StepType:
        suffix = " (local)" if step.is_local else ""
        click.echo(f"{step.value:<22} {step.display_name}{suffix}")
