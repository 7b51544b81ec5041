"""CLI interface for the review sentiment demo."""

import os
import sys
import random
import asyncio

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from review_pulse.config import load_config, Config
from review_pulse.credentials import TokenStore, mask_token
from review_pulse.logging_utils import setup_logging
from review_pulse.monitoring import setup_langsmith
from review_pulse.rendering import ConsoleRenderer
from review_pulse.session import create_session

console = Console()


def _load(config: str) -> Config:
    try:
        cfg = load_config(config)
    except Exception as e:
        console.print(f"[red]✗[/red] Failed to load configuration: {e}")
        sys.exit(1)
    setup_logging(cfg.logging.level)
    return cfg


@click.group()
def cli():
    """Random review sentiment demo with business actions."""
    load_dotenv()


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Path to configuration file")
@click.option("--runs", "-n", default=1, type=click.IntRange(min=1), help="Number of reviews to analyze")
@click.option("--seed", type=int, help="Random seed for review selection")
@click.option("--open-links", is_flag=True, help="Open feedback/referral links in the browser")
def analyze(config: str, runs: int, seed, open_links: bool):
    """Analyze random reviews in the terminal."""
    cfg = _load(config)
    setup_langsmith()

    renderer = ConsoleRenderer(console=console, business=cfg.business, open_links=open_links)
    store = TokenStore(cfg.analytics.credentials_path)
    session = create_session(
        cfg,
        renderer=renderer,
        token=store.get(),
        rng=random.Random(seed) if seed is not None else None,
    )

    async def run() -> int:
        if not await session.initialize():
            await session.close()
            return 1
        failures = 0
        for _ in range(runs):
            if await session.analyze() is None:
                failures += 1
        await session.close()
        return 1 if failures == runs else 0

    sys.exit(asyncio.run(run()))


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Path to configuration file")
@click.option("--host", help="Bind host (overrides config)")
@click.option("--port", type=int, help="Bind port (overrides config)")
def serve(config: str, host, port):
    """Serve the demo page."""
    import uvicorn

    cfg = _load(config)
    os.environ["REVIEW_PULSE_CONFIG"] = config
    console.print(f"[blue]Serving on http://{host or cfg.server.host}:{port or cfg.server.port}/[/blue]")
    uvicorn.run(
        "review_pulse.api:app",
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        log_level=cfg.logging.level.lower(),
    )


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Path to configuration file")
def validate(config: str):
    """Validate configuration file."""
    console.print("[blue]Validating configuration...[/blue]")

    try:
        cfg = load_config(config)
    except Exception as e:
        console.print(f"[red]✗[/red] Configuration validation failed: {e}")
        sys.exit(1)

    console.print("[green]✓[/green] Configuration is valid")

    table = Table(title="Configuration Summary")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Dataset", cfg.dataset.source)
    table.add_row("Classifier", f"{cfg.classifier.provider} / {cfg.classifier.model}")
    table.add_row("Analytics Endpoint", cfg.analytics.endpoint or "not configured")
    table.add_row("Variant", cfg.analytics.variant)
    table.add_row("Server", f"{cfg.server.host}:{cfg.server.port}")

    console.print(table)


@cli.group()
def token():
    """Manage the analytics token."""
    pass


def _store(config: str) -> TokenStore:
    try:
        return TokenStore(load_config(config).analytics.credentials_path)
    except FileNotFoundError:
        return TokenStore()


@token.command("set")
@click.argument("value")
@click.option("--config", "-c", default="config.yaml", help="Path to configuration file")
def token_set(value: str, config: str):
    """Save the analytics token."""
    store = _store(config)
    try:
        store.set(value)
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)
    console.print(f"[green]✓[/green] Token saved to {store.path}")


@token.command("show")
@click.option("--config", "-c", default="config.yaml", help="Path to configuration file")
def token_show(config: str):
    """Show whether a token is stored."""
    console.print(f"Analytics token: {mask_token(_store(config).get())}")


@token.command("clear")
@click.option("--config", "-c", default="config.yaml", help="Path to configuration file")
def token_clear(config: str):
    """Forget the analytics token."""
    _store(config).clear()
    console.print("[green]✓[/green] Token cleared")
