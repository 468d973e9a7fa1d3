"""Shared progress bar utilities for Rich console displays."""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


def create_fetch_progress(
    console: Console | None = None, *, transient: bool = True
) -> Progress:
    """Create the progress bar shown while blocks are fetched.

    Args:
        console: Rich console instance (optional)
        transient: Remove the bar once the batch completes

    Returns:
        Configured Progress instance with:
        - Spinner
        - Task description
        - Progress bar
        - M of N counter
        - Time elapsed
        - Time remaining

    Example:
        ```python
        from rich.console import Console
        from miner_stats.helpers.progress import create_fetch_progress

        progress = create_fetch_progress(Console(stderr=True))
        with progress:
            task_id = progress.add_task("Fetching blocks", total=len(missing))
            # ... fetch ...
            progress.advance(task_id)
        ```
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("•"),
        TimeRemainingColumn(),
        console=console,
        transient=transient,
    )


__all__ = ["create_fetch_progress"]
