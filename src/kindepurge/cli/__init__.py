"""CLI module for kindepurge."""

from .commands import OperationHandler
from .main import cli, main

__all__ = ["cli", "main", "OperationHandler"]
