"""agency-spine command line (typer + rich)."""

from agency_spine.cli.app import app

__all__ = ["app"]
