#!/usr/bin/env python3
"""
Search Events from the Command Line

Runs one search against a running backend and prints the results.

Usage:
    python search_cli.py "Austin, TX" --radius 25 --category music --date "this weekend"
    python search_cli.py 10001 --provider gemini --sort future --html > results.html
"""

import argparse
import asyncio
import html
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from dotenv import load_dotenv

from finder.client import EventsApiClient, SearchController
from finder.models import DateWindow, EventCategory, Provider, SortOrder
from finder.render import format_event_date, render_display

load_dotenv()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find events near a location")
    parser.add_argument("location", help="City or zip code")
    parser.add_argument("--radius", default="25", help="Search radius in miles (default: 25)")
    parser.add_argument(
        "--category",
        default=EventCategory.ALL.value,
        choices=[category.value for category in EventCategory],
    )
    parser.add_argument(
        "--date",
        default=DateWindow.ALL.value,
        choices=[window.value for window in DateWindow],
        help="Date window (default: all)",
    )
    parser.add_argument(
        "--provider",
        default=Provider.PERPLEXITY.value,
        choices=[provider.value for provider in Provider],
    )
    parser.add_argument(
        "--sort",
        default=SortOrder.RECENT.value,
        choices=[order.value for order in SortOrder],
        help="recent = soonest first, future = latest first",
    )
    parser.add_argument(
        "--base-url",
        default=os.getenv("EVENTS_API_URL", f"http://localhost:{os.getenv('PORT', '3000')}"),
        help="Backend base URL",
    )
    parser.add_argument("--html", action="store_true", help="Print rendered HTML cards")
    return parser


def _print_text(controller: SearchController) -> None:
    display = controller.display
    results = controller.current_results
    if results and results.notice:
        print(f"[search] {results.notice}")
    if not display.events:
        print("[search] No events match your filters.")
        return
    for index, event in enumerate(display.events, 1):
        print(f"\n[{index}] {html.unescape(event.title)}")
        print(f"    When:  {html.unescape(format_event_date(event))}")
        print(f"    Where: {html.unescape(event.location)}")
        if event.address:
            print(f"           {html.unescape(event.address)}")
        print(f"    Type:  {html.unescape(event.category)}")
        if event.url:
            print(f"    Link:  {html.unescape(event.url)}")
    if display.truncated:
        print(f"\n[search] {display.notice}")


def main() -> int:
    args = _build_parser().parse_args()
    controller = SearchController(EventsApiClient(base_url=args.base_url))

    applied = asyncio.run(
        controller.search_from_inputs(
            location=args.location,
            radius=args.radius,
            category=args.category,
            event_date=args.date,
            provider=args.provider,
            sort_order=args.sort,
        )
    )
    if controller.error_message:
        print(f"[ERROR] {controller.error_message}", file=sys.stderr)
        return 1
    if not applied:
        return 1

    if args.html:
        notice = controller.current_results.notice if controller.current_results else None
        print(render_display(controller.display, notice=notice))
    else:
        _print_text(controller)
    return 0


if __name__ == "__main__":
    sys.exit(main())
