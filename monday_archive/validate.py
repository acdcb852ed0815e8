"""``monday-archive-validate``: check archived asset files against board JSON.

Every configured board must have a JSON document, and every asset that
document references must exist on disk with the recorded byte size.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from monday_archive.assets import iter_assets
from monday_archive.config import Config, load_config
from monday_archive.errors import ConfigError
from monday_archive.transform import asset_file_name
from monday_archive.writer import asset_dir, board_path

MISSING_JSON = "missing_json"
MISSING_FILE = "missing_file"
SIZE_MISMATCH = "size_mismatch"

ERROR_LABELS = {
    MISSING_JSON: "No board JSON found",
    MISSING_FILE: "Missing file",
    SIZE_MISMATCH: "Size mismatch",
}


@dataclass(slots=True)
class AssetProblem:
    kind: str
    board_id: str
    board_name: str = ""
    item_id: str = ""
    item_name: str = ""
    asset_id: str = ""
    expected_size: int = 0
    actual_size: int = 0


@dataclass(slots=True)
class BoardCheck:
    board_id: str
    name: str = ""
    found: bool = True
    total: int = 0
    problems: list[AssetProblem] = field(default_factory=list)

    @property
    def rate(self) -> int:
        if not self.total:
            return 100 if self.problems else 0
        return round(len(self.problems) / self.total * 100)


def check_board(data_dir: Path, board_id: str) -> BoardCheck:
    """Validate one board's asset directory against its JSON document."""
    path = board_path(data_dir, board_id)
    if not path.exists():
        return BoardCheck(board_id, found=False, problems=[AssetProblem(MISSING_JSON, board_id)])

    with path.open("r", encoding="utf-8") as f:
        board = json.load(f)

    check = BoardCheck(board_id, name=board.get("name") or "")
    directory = asset_dir(data_dir, board_id)
    for item, asset in iter_assets(board):
        check.total += 1
        expected = int(asset.get("size") or 0)
        file_path = directory / asset_file_name(asset)
        problem = AssetProblem(
            MISSING_FILE,
            board_id,
            board_name=check.name,
            item_id=str(item.get("itemId")),
            item_name=item.get("title") or "",
            asset_id=str(asset["assetId"]),
            expected_size=expected,
        )
        if not file_path.exists():
            check.problems.append(problem)
            continue
        actual = file_path.stat().st_size
        if actual != expected:
            problem.kind = SIZE_MISMATCH
            problem.actual_size = actual
            check.problems.append(problem)
    return check


def print_summary(checks: Iterable[BoardCheck]) -> None:
    print("\nSummary")
    print("=" * 100)
    print("Board ID".ljust(15) + "Board Name".ljust(30) + "Total".ljust(10) + "Errors".ljust(10) + "Rate")
    print("─" * 100)

    total_assets = total_errors = 0
    for check in checks:
        if not check.found:
            print(check.board_id.ljust(15) + "** Missing JSON **".ljust(30) + "-".ljust(10) + "-".ljust(10) + "-")
            continue
        total_assets += check.total
        total_errors += len(check.problems)
        print(
            check.board_id.ljust(15)
            + check.name[:25].ljust(30)
            + str(check.total).ljust(10)
            + str(len(check.problems)).ljust(10)
            + f"{check.rate}%"
        )

    if total_assets:
        total_rate = round(total_errors / total_assets * 100)
    else:
        total_rate = 100 if total_errors else 0
    print("─" * 100)
    print("TOTAL".ljust(45) + str(total_assets).ljust(10) + str(total_errors).ljust(10) + f"{total_rate}%")
    print("=" * 100)


def print_problems(checks: Iterable[BoardCheck]) -> None:
    problems = [p for check in checks for p in check.problems]
    print("\nAsset Errors Details:")
    print("=" * 150)
    print(
        "Type".ljust(20)
        + "Board ID".ljust(15)
        + "Board Name".ljust(30)
        + "Item ID".ljust(15)
        + "Item Name".ljust(30)
        + "Asset ID".ljust(15)
        + "Expected Size".ljust(15)
        + "Actual Size"
    )
    print("─" * 150)
    for p in problems:
        if p.kind == MISSING_JSON:
            print(ERROR_LABELS[p.kind].ljust(20) + p.board_id)
            continue
        print(
            ERROR_LABELS[p.kind].ljust(20)
            + p.board_id.ljust(15)
            + p.board_name[:25].ljust(30)
            + p.item_id.ljust(15)
            + p.item_name[:25].ljust(30)
            + p.asset_id.ljust(15)
            + str(p.expected_size).ljust(15)
            + str(p.actual_size)
        )
    if not problems:
        print("No errors found")
    print("=" * 150)


def validate(config: Config, environment: str) -> list[BoardCheck]:
    board_ids = [b for workspace in config.workspaces for b in workspace.board_ids(environment)]
    return [check_board(config.data_path, board_id) for board_id in board_ids]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate archived asset files")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML file")
    parser.add_argument("--dev", action="store_true", help="Validate the dev board set")
    parser.add_argument("--detail", action="store_true", help="List every problem")
    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config))
    except ConfigError as e:
        print(f"[NG] {e}")
        return 1

    print("Starting validation...")
    checks = validate(config, "dev" if args.dev else "prod")
    print_summary(checks)
    if args.detail:
        print_problems(checks)

    return 1 if any(check.problems for check in checks) else 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
