"""Persist the report and render the console summary."""

from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from miner_stats.analysis.models import MinerStatsReport
from miner_stats.helpers.errors import StorageError
from miner_stats.helpers.logging import get_logger


logger = get_logger(__name__)


def write_report(report: MinerStatsReport, path: Path | str) -> None:
    """Write the report as pretty-printed JSON, replacing any previous file.

    Raises:
        StorageError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    except OSError as e:
        msg = f"writing report {path}: {e}"
        raise StorageError(msg, path) from e
    logger.info("Report written to %s", path)


def summary_line(report: MinerStatsReport) -> str:
    """One-line outcome printed before the table."""
    return (
        f"Processed heights {report.start_height}-{report.end_height}; "
        f"matched {report.total_mined_blocks} blocks across "
        f"{len(report.miners)} miners."
    )


def build_table(report: MinerStatsReport, coin_symbol: str) -> Table:
    """Miner table with a trailing Others row for unattributed heights."""
    table = Table(
        title=(
            f"Miner stats for heights {report.start_height}-{report.end_height} "
            f"(total {report.total_value_display:.2f} {coin_symbol})"
        ),
    )
    table.add_column("Label", style="cyan", width=20, no_wrap=True)
    table.add_column("Blocks", justify="right", style="yellow", width=10)
    table.add_column(coin_symbol, justify="right", style="green", width=10)
    table.add_column("% Share", justify="right", style="magenta", width=10)

    last = len(report.miners) - 1
    for idx, miner in enumerate(report.miners):
        table.add_row(
            Text(miner.label),
            str(miner.matched_blocks),
            f"{miner.total_value_display:.2f}",
            f"{miner.share_percent:.2f}%",
            end_section=idx == last,
        )

    unmatched = report.unmatched
    table.add_row(
        "Others",
        str(unmatched.blocks),
        f"{unmatched.total_value_display:.2f}",
        f"{unmatched.share_percent:.2f}%",
    )
    return table


def print_report(
    report: MinerStatsReport, coin_symbol: str, console: Console | None = None
) -> None:
    """Print the summary line and the miner table."""
    console = console or Console()
    console.print(summary_line(report), markup=False, highlight=False)
    console.print(build_table(report, coin_symbol))


__all__ = ["build_table", "print_report", "summary_line", "write_report"]
