"""CLI package for querying the heat recovery estimator service.

The Typer application lives in ``cli.app`` and is installed as the
``heat-recovery`` console script.
"""
