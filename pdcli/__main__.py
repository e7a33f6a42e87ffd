"""Entry point for the PagerDuty CLI application."""

from __future__ import annotations

# Use absolute import to remain robust when executed as a standalone script
from pdcli.main import cli  # noqa: I100,I202

if __name__ == "__main__":
    cli()
