"""Turbine CLI: Typer-based command-line interface.

Provides the ``turbine`` command with subcommands for listing route kinds
and running a demo topology.

All output uses Rich for formatted terminal display.
"""
