from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_estimate, render_temperatures


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for querying the heat recovery estimator service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Estimator API base URL (defaults to API_BASE_URL env or http://localhost:3089).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("realtime")
def realtime_command(ctx: typer.Context) -> None:
    """Show the latest temperatures reported by the device."""
    state = _get_state(ctx)
    payload = state.client.get_realtime()
    render_temperatures(payload)


@app.command("calculate")
def calculate_command(
    ctx: typer.Context,
    flow: float = typer.Option(..., "--flow", help="Volumetric flow rate."),
    cost_type: str = typer.Option(
        "electricity",
        "--cost-type",
        "-t",
        help="electricity, propane, kerosene, heavy_fuel_oil or city_gas_13a.",
    ),
    cost_unit: float = typer.Option(
        ..., "--cost-unit", "-u", help="Price per kWh or per fuel unit."
    ),
    operating_hours: float = typer.Option(
        ..., "--hours", help="Operating hours per day."
    ),
    operating_days: float = typer.Option(
        ..., "--days", help="Operating days per year."
    ),
) -> None:
    """Estimate current cost and heat recovery benefit."""
    state = _get_state(ctx)
    typer.echo(f"Requesting estimate from {state.config.base_url} ...")
    payload = state.client.calculate(
        flow=flow,
        cost_type=cost_type,
        cost_unit=cost_unit,
        operating_hours=operating_hours,
        operating_days=operating_days,
    )
    typer.echo()
    render_estimate(payload)
