#!/usr/bin/env python3
"""
Classify deep links from the command line.

Usage:
    # Classify one or more URLs
    link-dispatcher classify "mega://#!abcDEF12!key" https://mega.nz/chat/xyz#key

    # Classify as if the URL arrived from a push notification on cold start
    link-dispatcher classify https://mega.nz/fm/ipc --source push_notification --cold-start

    # Find every link in a text file (or stdin)
    link-dispatcher scan message.txt

    # Follow HTTP redirects of short links before classifying
    link-dispatcher resolve https://short.example/abc
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from . import LinkDispatcher
from .config import Config
from .models import ClassifiedLink, DispatchContext, LaunchState, LinkSource

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="link-dispatcher",
        description="Classify deep links into app link categories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  link-dispatcher classify "mega://#!abcDEF12!key" --json
  link-dispatcher classify mega.ios.upload --source quick_action
  echo "see https://mega.nz/folder/abc#key" | link-dispatcher scan
        """,
    )
    parser.add_argument(
        "--env-file",
        help="Path to .env file (default: .env in the project root)",
        default=None,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser("classify", help="Classify URLs")
    classify_parser.add_argument("urls", nargs="+", help="URLs to classify")
    classify_parser.add_argument(
        "--source",
        choices=[s.value for s in LinkSource],
        default=LinkSource.UNKNOWN.value,
        help="How the URLs arrived",
    )
    classify_parser.add_argument(
        "--cold-start",
        action="store_true",
        help="The URL launched the app",
    )
    classify_parser.add_argument(
        "--logged-out",
        action="store_true",
        help="No session is available (reports links that would be deferred)",
    )
    classify_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any URL is unrecognized",
    )
    classify_parser.add_argument("--json", action="store_true", help="Output JSON lines")

    scan_parser = subparsers.add_parser("scan", help="Find and classify links in text")
    scan_parser.add_argument(
        "path",
        nargs="?",
        help="Text file to scan (default: stdin)",
    )
    scan_parser.add_argument("--json", action="store_true", help="Output JSON lines")

    resolve_parser = subparsers.add_parser(
        "resolve", help="Follow HTTP redirects, then classify"
    )
    resolve_parser.add_argument("urls", nargs="+", help="URLs to resolve")
    resolve_parser.add_argument("--json", action="store_true", help="Output JSON lines")

    return parser


def _print_link(link: ClassifiedLink, as_json: bool, deferred: bool = False) -> None:
    if as_json:
        data = link.to_dict()
        if deferred:
            data["deferred"] = True
        print(json.dumps(data, ensure_ascii=False))
        return

    params = " ".join(f"{k}={v}" for k, v in link.parameters.items())
    line = f"{link.category.value:<32} {link.raw_url}"
    if params:
        line += f"  [{params}]"
    if deferred:
        line += "  (deferred until login)"
    print(line)


def _cmd_classify(dispatcher: LinkDispatcher, args) -> int:
    context = DispatchContext(
        source=LinkSource(args.source),
        launch=LaunchState.COLD_START if args.cold_start else LaunchState.RUNNING,
        logged_in=not args.logged_out,
    )
    unrecognized = 0
    for url in args.urls:
        link = dispatcher.classify(url, context)
        deferred = link.category.requires_login and not context.logged_in
        _print_link(link, args.json, deferred=deferred)
        if link.is_default:
            unrecognized += 1

    if args.strict and unrecognized:
        return 1
    return 0


def _cmd_scan(dispatcher: LinkDispatcher, args) -> int:
    if args.path:
        try:
            with open(args.path, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            print(f"Cannot read {args.path}: {e}", file=sys.stderr)
            return 2
    else:
        text = sys.stdin.read()

    links = dispatcher.classifier.detect_links(text)
    logger.info(f"Found {len(links)} link(s)")
    for link in links:
        _print_link(link, args.json)
    return 0


async def _resolve_all(dispatcher: LinkDispatcher, urls: list[str]) -> list[ClassifiedLink]:
    return list(
        await asyncio.gather(*(dispatcher.classify_resolved(url) for url in urls))
    )


def _cmd_resolve(dispatcher: LinkDispatcher, args) -> int:
    for link in asyncio.run(_resolve_all(dispatcher, args.urls)):
        _print_link(link, args.json)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.env_file)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    level = "DEBUG" if args.verbose else config.log_level
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, level, logging.INFO),
    )
    for warning in config.validate():
        logger.warning(warning)

    dispatcher = LinkDispatcher.from_config(config)

    if args.command == "classify":
        return _cmd_classify(dispatcher, args)
    if args.command == "scan":
        return _cmd_scan(dispatcher, args)
    return _cmd_resolve(dispatcher, args)


if __name__ == "__main__":
    sys.exit(main())
