from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from gallerytrap import __version__
from gallerytrap.config import CrawlerConfig
from gallerytrap.errors import GalleryTrapError
from gallerytrap.log import setup_logging
from gallerytrap.orchestrator import CrawlOrchestrator
from gallerytrap.transport import Transport


DEFAULT_OUTPUT_DIR = "dl"


def _split_artists(values: Optional[List[str]]) -> List[str]:
    artists: List[str] = []
    for value in values or []:
        for name in value.split(","):
            name = name.strip()
            if name:
                artists.append(name)
    return artists


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gallerytrap",
        description="Download every submission from a watchlist or a set of artists.",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-r", "--recrawl", action="store_true", help="Re-crawl galleries looking for missed submissions")
    parser.add_argument("-s", "--skip-scraps", action="store_true", help="Don't download scraps")
    parser.add_argument("-n", "--no-throttle", action="store_true", help="Disable load-based wait time between requests")
    parser.add_argument("-u", "--username", default="", help="Download all artists in this user's watchlist")
    parser.add_argument(
        "-a", "--artists", action="append", help="Download all submissions from comma-separated list of artists"
    )
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory for downloads")
    parser.add_argument("-c", "--cookies", default="", help="Path to cookies.txt file")
    parser.add_argument("--impersonate", default=None, help="Browser TLS fingerprint to impersonate (e.g. chrome120)")
    parser.add_argument("--log-file", default=None, help="Also write JSON logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.artists = _split_artists(args.artists)
    if not args.username and not args.artists:
        parser.error("either --username or --artists must be specified")
    return args


def run(args: argparse.Namespace) -> int:
    logger = setup_logging(debug=args.debug, log_file=args.log_file)
    config = CrawlerConfig(throttle=not args.no_throttle, impersonate=args.impersonate)
    transport = Transport(config)

    if args.cookies:
        try:
            transport.load_cookies(args.cookies)
        except GalleryTrapError as exc:
            logger.error("failed to load cookies", extra={"context": {"file": args.cookies, "error": str(exc)}})
            return 1

    logger.info("starting gallerytrap", extra={"context": {"version": __version__}})
    logger.debug("configuration", extra={"context": {"config": repr(config), "args": vars(args)}})

    orchestrator = CrawlOrchestrator(transport, args.output, config=config)
    try:
        orchestrator.run(
            watcher_id=args.username or None,
            creator_ids=args.artists,
            re_crawl=args.recrawl,
            skip_scraps=args.skip_scraps,
        )
    except GalleryTrapError as exc:
        logger.error("application error", extra={"context": {"error": str(exc)}})
        return 1

    logger.info("done")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(run(parse_args(argv)))


if __name__ == "__main__":
    main()
