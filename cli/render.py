from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_temperatures(payload: Dict[str, Any]) -> None:
    echo_heading("Latest Temperatures (°C)")
    temperature = payload.get("temperature") or {}
    if not temperature:
        typer.echo("No temperatures available.")
        return
    echo_key_values(
        (name, temperature.get(name)) for name in ("tempC1", "tempC2", "tempC3", "tempC4")
    )


def render_estimate(payload: Dict[str, Any]) -> None:
    echo_heading("Current Cost")
    echo_key_values(
        [
            ("currentCost", payload.get("currentCost")),
            ("yearlyCost", payload.get("yearlyCost")),
        ]
    )
    typer.echo()
    echo_heading("Recovery Benefit")
    echo_key_values(
        [
            ("recoveryBenefit", payload.get("recoveryBenefit")),
            ("yearlyRecoveryBenefit", payload.get("yearlyRecoveryBenefit")),
        ]
    )
