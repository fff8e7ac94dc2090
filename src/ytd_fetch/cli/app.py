"""CLI application entry point and command routing for ytd-fetch.

This module is the **sole error boundary** for the entire application.
It catches :class:`~ytd_fetch.exceptions.YtdFetchError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core/service
  and infrastructure layers.
* ``print()`` is forbidden outside the CLI layer; Rich console is used
  exclusively.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ytd_fetch.cli import exit_codes
from ytd_fetch.cli.console import configure_logging, console
from ytd_fetch.config import BACKENDS, Settings
from ytd_fetch.exceptions import YtdFetchError
from ytd_fetch.version import __version__

if TYPE_CHECKING:
    from ytd_fetch.core.download_service import DownloadOrchestrator


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    The CLI supports:
    * ``ytd-fetch <url>``       — download the best format
    * ``ytd-fetch -l <url>``    — list available formats
    * ``ytd-fetch -c [url]``    — print the current cipher program
    * ``ytd-fetch --version``
    """
    parser = argparse.ArgumentParser(
        prog="ytd-fetch",
        description="Download a single YouTube video over plain HTTP.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-l",
        "--list-formats",
        action="store_true",
        help="List the formats offered for the video and exit.",
    )
    parser.add_argument(
        "-t",
        "--title",
        default=None,
        help="Base file name for the download (extension is added).",
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="itag",
        default=None,
        help="itag of the format to download (falls back to the best one).",
    )
    parser.add_argument(
        "-c",
        "--print-cipher",
        action="store_true",
        help="Print the signature cipher program; the URL is optional.",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Choose the format from an interactive list.",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="HTTP transport backend (default: $YTD_FETCH_BACKEND or requests).",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory to save the file in (default: current directory).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="YouTube watch URL (youtube.com/watch?v=… or youtu.be/…).",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.backend is not None:
        settings = dataclasses.replace(settings, backend=args.backend)
    return settings


def _new_orchestrator(settings: Settings) -> DownloadOrchestrator:
    from ytd_fetch.core.download_service import DownloadOrchestrator
    from ytd_fetch.infra.http_transport import create_transport

    return DownloadOrchestrator(
        create_transport(settings),
        player_url_template=settings.player_url_template,
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_list_formats(url: str, settings: Settings) -> int:
    """Print the format table for *url*."""
    from ytd_fetch.cli.format_prompt import display_format_table

    orchestrator = _new_orchestrator(settings)
    console.print(f"\n[bold]Fetching formats…[/bold]  {url}")
    summaries = orchestrator.list_formats(url)
    display_format_table(orchestrator.title, summaries)
    return exit_codes.SUCCESS


def _handle_print_cipher(url: str | None, settings: Settings) -> int:
    """Resolve and print the cipher program."""
    orchestrator = _new_orchestrator(settings)
    program = orchestrator.print_cipher(url)
    console.print(f"[bold cyan]Cipher:[/bold cyan] {program}")
    return exit_codes.SUCCESS


def _handle_download(
    url: str,
    settings: Settings,
    *,
    itag: str | None,
    title: str | None,
    output_dir: Path,
    interactive: bool,
) -> int:
    """Dispatch a single-video download.

    Flow:
    1. Optionally list formats and prompt for one (fresh run afterwards).
    2. Resolve the format URL, deciphering the signature when needed.
    3. Stream the media to disk with Rich progress.
    """
    from ytd_fetch.cli.progress import RichProgressHook

    if interactive:
        from ytd_fetch.cli.format_prompt import prompt_format_selection

        browser = _new_orchestrator(settings)
        summaries = browser.list_formats(url)
        itag = prompt_format_selection(browser.title, summaries)

    orchestrator = _new_orchestrator(settings)
    console.print(f"\n[bold green]Starting download…[/bold green]  {url}\n")

    with RichProgressHook(title or "Downloading") as hook:
        path = orchestrator.download(
            url,
            itag=itag,
            file_name=title,
            directory=output_dir,
            progress_callback=hook,
        )

    console.print(f"\n[bold green]Download complete.[/bold green]  {path}")
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the ytd-fetch CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.url is None and not args.print_cipher:
        parser.print_help()
        return exit_codes.SUCCESS

    configure_logging(verbose=args.verbose)
    settings = _settings_from_args(args)

    if args.print_cipher:
        return _handle_print_cipher(args.url, settings)

    if args.list_formats:
        return _handle_list_formats(args.url, settings)

    return _handle_download(
        args.url,
        settings,
        itag=args.itag,
        title=args.title,
        output_dir=args.output_dir,
        interactive=args.interactive,
    )


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except YtdFetchError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.for_error(exc))
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
