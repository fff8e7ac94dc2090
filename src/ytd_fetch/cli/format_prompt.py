"""Format listing and interactive format selection for the CLI layer.

This module is responsible for:

* Rendering a Rich table of the formats offered for a video.
* Prompting the user to pick one via questionary arrow keys.
* Returning the selected itag as a string.

All display-related logic lives here — no parsing, no downloading.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ytd_fetch.cli.console import console
from ytd_fetch.core.models import FormatSummary, extension_for_mime
from ytd_fetch.exceptions import EnvironmentError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for format rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms: no I/O themselves)
# ---------------------------------------------------------------------------

def _container(summary: FormatSummary) -> str:
    """Render the container extension, or ``"—"`` when unknown."""
    return extension_for_mime(summary.mime_type) or "—"


def _build_choice_label(index: int, summary: FormatSummary) -> str:
    """Build the single-line label shown in the questionary selector.

    Format: ``"  1.  itag 22    hd720      mp4"``
    """
    quality = summary.quality or "?"
    return f"  {index + 1}.  itag {summary.itag:<5} {quality:<10} {_container(summary)}"


# ---------------------------------------------------------------------------
# Rich table display
# ---------------------------------------------------------------------------

def display_format_table(title: str | None, formats: Sequence[FormatSummary]) -> None:
    """Print a Rich table summarising the available formats."""
    table_class = _import_rich_table()

    console.print()
    if title:
        console.print(f"[bold cyan]Title:[/bold cyan]  {title}")
        console.print()

    table = table_class(
        title="Available Formats",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("itag", justify="right", min_width=5)
    table.add_column("Quality", justify="left", min_width=8)
    table.add_column("Container", justify="left", min_width=8)
    table.add_column("Mime type", justify="left")

    for summary in formats:
        table.add_row(
            summary.itag,
            summary.quality or "—",
            _container(summary),
            summary.mime_type or "—",
        )

    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Public prompt function
# ---------------------------------------------------------------------------

def prompt_format_selection(title: str | None, formats: Sequence[FormatSummary]) -> str:
    """Display formats and prompt the user for an interactive selection.

    Returns
    -------
    str
        The itag of the chosen format.

    Raises
    ------
    NoMatchingFormatError
        If there is nothing to choose from, or the user cancels the prompt.
    """
    from ytd_fetch.exceptions import NoMatchingFormatError

    if not formats:
        raise NoMatchingFormatError("No selectable formats for this video.")

    questionary = _import_questionary()

    display_format_table(title, formats)

    choices = [
        questionary.Choice(title=_build_choice_label(i, summary), value=summary.itag)
        for i, summary in enumerate(formats)
    ]

    selected: str | None = questionary.select(
        "Select format to download:",
        choices=choices,
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()  # Returns None on Ctrl+C / Esc

    if selected is None:
        raise NoMatchingFormatError(
            "No format selected.",
            hint="Use arrow keys to pick a format, then press Enter.",
        )

    return selected
