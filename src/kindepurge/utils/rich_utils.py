"""Rich console output: run summaries and tracebacks."""

from collections.abc import Mapping
from functools import lru_cache

from rich.console import Console
from rich.table import Table
from rich.theme import Theme
from rich.traceback import install

SUMMARY_THEME = Theme(
    {
        "metric": "cyan",
        "failed": "bold red",
        "muted": "grey62",
    }
)


@lru_cache(maxsize=1)
def get_console() -> Console:
    """Console shared by every summary printed in this process."""
    return Console(theme=SUMMARY_THEME, highlight=False)


def install_rich_tracebacks() -> None:
    """Render uncaught exceptions with rich, hiding click's frames."""
    install(show_locals=False, word_wrap=True, suppress=["click"])


def build_summary_table(title: str, counts: Mapping[str, int]) -> Table:
    """Two-column table of counter names and values.

    Args:
        title: Table title
        counts: Ordered counter values, e.g. ``BulkResult.to_dict()``

    Returns:
        Table: Renderable summary; non-zero ``*failed`` rows are highlighted
    """
    table = Table(title=title, header_style="bold")
    table.add_column("Metric", style="metric")
    table.add_column("Count", justify="right")
    for name, value in counts.items():
        highlight = "failed" if name.endswith("failed") and value else None
        table.add_row(name.replace("_", " "), str(value), style=highlight)
    return table


def print_summary(title: str, counts: Mapping[str, int]) -> None:
    get_console().print(build_summary_table(title, counts))
