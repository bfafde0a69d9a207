"""Command line front-end: stream one prompt through the Chutes adapter."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
import httpx
from rich.console import Console
from rich.table import Table

from chutes_stream.config import ProviderSpec, load_config
from chutes_stream.errors import CompletionError
from chutes_stream.llm.handler import ChutesHandler
from chutes_stream.types import (
    ReasoningEvent,
    TextEvent,
    ToolCallEnd,
    ToolCallPartial,
    UsageEvent,
)

console = Console()


def _tool_table(calls: dict[str, dict[str, str]]) -> Table:
    table = Table(title="Tool calls", show_lines=False)
    table.add_column("id", style="cyan")
    table.add_column("name", style="bold")
    table.add_column("arguments")
    for call_id, call in calls.items():
        table.add_row(call_id, call["name"], call["arguments"])
    return table


async def _stream(handler: ChutesHandler, system: str, prompt: str) -> None:
    calls: dict[str, dict[str, str]] = {}
    usage: UsageEvent | None = None
    in_reasoning = False

    events = handler.create_message(system, [{"role": "user", "content": prompt}])
    async for event in events:
        if isinstance(event, ReasoningEvent):
            if not in_reasoning:
                console.print("[dim]thinking...[/dim]")
                in_reasoning = True
            console.print(event.text, style="dim", end="", markup=False, highlight=False)
        elif isinstance(event, TextEvent):
            if in_reasoning:
                console.print()
                in_reasoning = False
            console.print(event.text, end="", markup=False, highlight=False)
        elif isinstance(event, ToolCallPartial):
            entry = calls.setdefault(event.id, {"name": "", "arguments": ""})
            if event.name:
                entry["name"] = event.name
            if event.arguments:
                entry["arguments"] += event.arguments
        elif isinstance(event, ToolCallEnd):
            pass
        elif isinstance(event, UsageEvent):
            usage = event

    console.print()
    if calls:
        console.print(_tool_table(calls))
    if usage is not None:
        console.print(
            f"[dim]tokens: {usage.input_tokens} in / {usage.output_tokens} out[/dim]"
        )


async def _run(settings: ProviderSpec, system: str, prompt: str, once: bool) -> None:
    handler = ChutesHandler(settings)
    try:
        if once:
            console.print(await handler.complete_prompt(prompt), markup=False)
        else:
            await _stream(handler, system, prompt)
    finally:
        await handler.close()


@click.command()
@click.argument("prompt")
@click.option("--system", "-s", default="You are a helpful assistant.",
              help="System prompt")
@click.option("--model", "-m", "model_id", default=None, help="Chutes model id")
@click.option("--config", "-c", "config_path", default=None,
              help="Path to chutes_stream.yaml")
@click.option("--once", is_flag=True, help="Use a single non-streaming completion")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def main(prompt: str, system: str, model_id: str | None,
         config_path: str | None, once: bool, verbose: bool):
    """Stream a chat completion from Chutes as normalized events."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = load_config(config_path)
    if model_id:
        settings.model_id = model_id

    try:
        asyncio.run(_run(settings, system, prompt, once))
    except (CompletionError, httpx.HTTPError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
