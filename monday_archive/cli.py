"""``monday-archive``: fetch configured boards and sync their assets."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

import aiohttp
from dotenv import load_dotenv

from monday_archive.client import MondayClient
from monday_archive.config import BoardTarget, Config, load_config, resolve_targets
from monday_archive.errors import ConfigError
from monday_archive.pipeline import Archiver, print_summary

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def print_config(args: argparse.Namespace) -> None:
    line = "─" * 60
    print(line)
    print("Environment".ljust(30), "development" if args.dev else "production")
    print("Fetch data".ljust(30), "skipped" if args.no_fetch else "enabled")
    print("Download assets".ljust(30), "skipped" if args.no_download else "enabled")
    print(line)


async def run(config: Config, targets: list[BoardTarget], args: argparse.Namespace) -> int:
    """Execute setup and both phases. Return process exit code."""
    connector = aiohttp.TCPConnector(limit=max(8, config.fetch_concurrency + config.download_concurrency))
    async with aiohttp.ClientSession(connector=connector) as session:
        client = MondayClient(session, config)
        archiver = Archiver(config, client, targets)
        results = await archiver.run(fetch=not args.no_fetch, download=not args.no_download, clean=args.clean)

    print_summary(results)
    if args.strict and any(result.failed for result in results):
        return 1
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI options."""
    parser = argparse.ArgumentParser(description="Archive monday.com boards to local JSON and asset files")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML file")
    parser.add_argument("--dev", action="store_true", help="Archive the smaller dev board set")
    parser.add_argument("--clean", action="store_true", help="Delete board JSON for boards no longer configured")
    parser.add_argument("--no-fetch", action="store_true", help="Skip fetching; use board JSON already on disk")
    parser.add_argument("--no-download", action="store_true", help="Skip asset download")
    parser.add_argument("--strict", action="store_true", help="Exit 1 when any board failed")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    load_dotenv()

    if args.no_fetch and args.no_download:
        raise SystemExit("error: --no-fetch and --no-download together leave nothing to do")
    try:
        config = load_config(Path(args.config))
        targets = resolve_targets(config, "dev" if args.dev else "prod")
    except ConfigError as exc:
        raise SystemExit(f"error: {exc}") from exc
    if not targets:
        raise SystemExit(f"error: no boards configured for {'dev' if args.dev else 'prod'}")

    print_config(args)
    raise SystemExit(asyncio.run(run(config, targets, args)))


if __name__ == "__main__":
    main()
