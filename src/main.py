"""Main application entry point for the infringement finder CLI."""

import argparse
import asyncio
import contextlib
import json
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from models.analysis import ProgressEvent, SearchAnalysis, SubjectAnalysis
from services.analysis_service import create_analysis_service
from services.errors import AcquisitionError, InvalidRequestError
from services.progress_broadcaster import ProgressBroadcaster, Subscription
from utils.config import load_config, setup_logging, validate_config

logger = logging.getLogger(__name__)


class ProgressBarCallback:
    """Progress bar driven by pipeline progress events."""

    def __init__(self):
        """Initialize progress bar."""
        self.bar: Optional[tqdm] = None

    def __call__(self, event: ProgressEvent):
        """Update the progress bar from a progress event.

        Args:
            event: ProgressEvent published by the pipeline
        """
        if self.bar is None:
            self.bar = tqdm(
                total=100,
                desc="Analysis",
                unit="%",
                leave=True,
                bar_format="{l_bar}{bar}| {n}/{total}% [{elapsed}]",
            )

        self.bar.n = event.progress
        self.bar.set_description(event.message[:60])
        self.bar.refresh()

    def close(self):
        """Close the progress bar."""
        if self.bar:
            self.bar.close()


async def _pump_progress(subscription: Subscription, callback: ProgressBarCallback) -> None:
    async for event in subscription:
        callback(event)


async def _stop_pump(pump_task: asyncio.Task, subscription: Subscription, callback: ProgressBarCallback) -> None:
    """Cancel the pump, then hand any still-queued events to the bar."""
    pump_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await pump_task
    while subscription.pending():
        callback(await subscription.get())


def render_search_analysis(console: Console, result: SearchAnalysis) -> None:
    """Print the summary report and the likely-infringing videos."""
    report = result.report
    console.print(f"\n[bold]{result.message}[/bold] ({result.videos} videos acquired)")
    if report is None or report.total_analyzed == 0:
        return

    console.print(
        f"Analyzed [cyan]{report.total_analyzed}[/cyan], "
        f"likely infringing [red]{report.likely_infringing}[/red] "
        f"({report.percentage_infringing}%), high confidence [red]{report.high_confidence}[/red]"
    )

    if not report.top_infringing:
        return

    table = Table(title="Top likely-infringing videos")
    table.add_column("Confidence", justify="right", style="red")
    table.add_column("Type", style="magenta")
    table.add_column("Title", style="white")
    table.add_column("Channel", style="cyan")
    table.add_column("Reasons", style="dim")
    for analysis in report.top_infringing:
        table.add_row(
            str(analysis.confidence_score),
            analysis.copyright_type.value,
            analysis.video_title,
            analysis.channel_name,
            "; ".join(analysis.reasons),
        )
    console.print(table)


def render_subject_analysis(console: Console, result: SubjectAnalysis) -> None:
    """Print the keywords used and the strikable videos."""
    console.print(f"\n[bold]{result.message}[/bold] for [cyan]{result.subject_name}[/cyan]")
    keywords = [result.keywords.main_keyword] + [entry.keyword for entry in result.keywords.top_keywords]
    console.print(f"Keywords: {', '.join(keywords)}")
    console.print(
        f"Videos analyzed: {result.total_videos_analyzed}, "
        f"strikable: [red]{result.strikable_videos_count}[/red]"
    )

    if not result.strikable_videos:
        return

    table = Table(title="Strikable videos")
    table.add_column("Confidence", justify="right", style="red")
    table.add_column("Title", style="white")
    table.add_column("Channel", style="cyan")
    table.add_column("Keyword", style="magenta")
    table.add_column("URL", style="blue")
    for video in result.strikable_videos:
        table.add_row(str(video.confidence_score), video.title, video.channel, video.keyword, video.url)
    console.print(table)


class InfringementFinderApp:
    """Main application class for the CLI."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.console = Console()

    async def run(self) -> int:
        """Run the selected command and return the process exit code."""
        config = load_config()
        setup_logging(config.get("log_level", "INFO") if not self.args.verbose else "DEBUG")

        errors = validate_config(config)
        if errors:
            for error in errors:
                logger.error(f"Config: {error}")
            return 2

        broadcaster = ProgressBroadcaster()
        service = create_analysis_service(config, broadcaster=broadcaster)

        progress_callback = ProgressBarCallback()
        subscription = broadcaster.subscribe()
        pump_task = None if self.args.json else asyncio.create_task(_pump_progress(subscription, progress_callback))

        try:
            if self.args.command == "subject":
                result = await service.analyze_subject(self.args.subject, self.args.whitelist)
            elif self.args.command == "trending":
                result = await service.analyze_search(
                    category=self.args.category,
                    max_results=self.args.max_results,
                    channel_whitelist=self.args.whitelist,
                )
            else:
                result = await service.analyze_search(
                    keywords=self.args.keywords,
                    max_results=self.args.max_results,
                    channel_whitelist=self.args.whitelist,
                )
        except InvalidRequestError as e:
            logger.error(f"Invalid request: {e}")
            return 2
        except AcquisitionError as e:
            logger.error(f"Could not fetch videos: {e}")
            return 1
        finally:
            if pump_task is not None:
                await _stop_pump(pump_task, subscription, progress_callback)
            subscription.close()
            progress_callback.close()
            await service.close()

        if self.args.json:
            print(json.dumps(result.to_dict(), indent=2))
        elif isinstance(result, SubjectAnalysis):
            render_subject_analysis(self.console, result)
        else:
            render_search_analysis(self.console, result)
        return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Find videos that likely promote copyright infringement",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  infringement-finder search "valorant aimbot"     # Analyze a keyword search
  infringement-finder trending gaming              # Analyze a trending category
  infringement-finder subject "Valorant"           # Keyword research + takedown list
        """,
    )
    parser.add_argument("--json", action="store_true", help="Print the raw JSON response")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-w", "--whitelist",
        action="append",
        default=[],
        metavar="CHANNEL",
        help="Channel name to exclude (repeatable)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Analyze the results of a keyword search")
    search.add_argument("keywords", help="Search query")
    search.add_argument("-n", "--max-results", type=int, default=50, help="Maximum videos to fetch")

    trending = subparsers.add_parser("trending", help="Analyze a trending feed")
    trending.add_argument("category", nargs="?", default="default", help="Trending category")
    trending.add_argument("-n", "--max-results", type=int, default=50, help="Maximum videos to fetch")

    subject = subparsers.add_parser("subject", help="Research keywords for a subject and list strikable videos")
    subject.add_argument("subject", help="Subject name (e.g. a game title)")

    return parser


def main():
    """Main entry point."""
    args = build_parser().parse_args()
    app = InfringementFinderApp(args)

    try:
        sys.exit(asyncio.run(app.run()))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
