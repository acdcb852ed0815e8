"""``monday-archive-analyze``: asset counts and sizes per archived board."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from monday_archive.assets import collect_assets
from monday_archive.config import load_config
from monday_archive.errors import ConfigError
from monday_archive.writer import board_dir

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


@dataclass(slots=True)
class BoardAssetStats:
    board_id: str
    name: str
    count: int = 0
    size: int = 0
    by_extension: Counter = field(default_factory=Counter)
    size_by_extension: Counter = field(default_factory=Counter)


def format_bytes(num: int, decimals: int = 2) -> str:
    """Human-readable size, 1024-based."""
    if not num:
        return "0 Bytes"
    value = float(num)
    i = 0
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{round(value, max(0, decimals)):g} {SIZE_UNITS[i]}"


def analyze_board(path: Path) -> BoardAssetStats:
    with path.open("r", encoding="utf-8") as f:
        board = json.load(f)

    stats = BoardAssetStats(board_id=str(board.get("boardId") or path.stem), name=board.get("name") or "")
    for asset in collect_assets(board):
        size = int(asset.get("size") or 0)
        stats.count += 1
        stats.size += size
        stats.by_extension[asset.get("extension") or ""] += 1
        stats.size_by_extension[asset.get("extension") or ""] += size
    return stats


def analyze(data_dir: Path) -> list[BoardAssetStats]:
    """Stats for every board JSON under ``data_dir``; unreadable files are skipped."""
    results = []
    for path in sorted(board_dir(data_dir).glob("*.json")):
        try:
            results.append(analyze_board(path))
        except (OSError, ValueError) as exc:
            logging.error("Cannot analyze %s: %s", path, exc)
    return results


def print_summary(results: list[BoardAssetStats]) -> None:
    print("\nSummary")
    print("=" * 80)
    print("Board ID".ljust(15) + "Board Name".ljust(30) + "Count".ljust(10) + "Total Size")
    print("─" * 80)
    for stats in results:
        print(stats.board_id.ljust(15) + stats.name[:29].ljust(30) + str(stats.count).ljust(10) + format_bytes(stats.size))
    print("─" * 80)
    total_count = sum(s.count for s in results)
    total_size = sum(s.size for s in results)
    print("TOTAL".ljust(45) + str(total_count).ljust(10) + format_bytes(total_size))
    print("=" * 80)


def print_extensions(stats: BoardAssetStats) -> None:
    print(f"\nBoard: {stats.name} ({stats.board_id})")
    print(f"{'Extension'.ljust(10)} | {'Count'.ljust(8)} | Total Size")
    print("-" * 40)
    for ext, count in stats.by_extension.most_common():
        print(f"{ext.ljust(10)} | {str(count).ljust(8)} | {format_bytes(stats.size_by_extension[ext])}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Summarize archived assets")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML file")
    parser.add_argument("--by-extension", action="store_true", help="Break each board down by file extension")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        config = load_config(Path(args.config))
    except ConfigError as e:
        print(f"[NG] {e}")
        return 1

    results = analyze(config.data_path)
    if not results:
        print(f"No board JSON files found in {board_dir(config.data_path)}")
        return 0

    print("Analyzing assets...")
    if args.by_extension:
        for stats in results:
            print_extensions(stats)
    print_summary(results)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
