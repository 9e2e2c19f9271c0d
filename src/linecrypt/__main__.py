"""Allow running as ``python -m linecrypt``."""

from linecrypt.cli import app

app()
