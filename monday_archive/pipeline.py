"""End-to-end archive run.

Phases:
Setup) Create the data layout, optionally drop JSON for unconfigured boards.
1) Fetch every board, transform it and write its JSON document.
2) Read each document back and sync its asset directory.
Report) Print one row per board plus totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from monday_archive.assets import AssetStats, sync_assets
from monday_archive.client import COMMENTS_PAGE_LIMIT
from monday_archive.config import BoardTarget, Config
from monday_archive.pool import run_pool
from monday_archive.transform import new_board, new_group, transform_comments, transform_item
from monday_archive.writer import ASSET_DIR, asset_dir, board_dir, board_path, read_board, write_board

STATUS_SUCCESS = "success"
STATUS_FAIL = "fail"
STATUS_EXIST = "exist"

STATUS_LABELS = {
    STATUS_SUCCESS: "Success",
    STATUS_EXIST: "Exist",
    STATUS_FAIL: "Failed",
}


class UpstreamClient(Protocol):
    async def fetch_groups(self, board_id: str, token: str) -> dict[str, Any]: ...

    async def fetch_group_items(
        self, board_id: str, group_id: str, cursor: str | None, token: str
    ) -> dict[str, Any]: ...

    async def fetch_item_comments(self, item_id: str, page: int, token: str) -> list[dict[str, Any]]: ...

    async def download_file(self, url: str, dest: Path) -> int: ...


@dataclass(slots=True)
class BoardResult:
    """Outcome of one board across both phases."""

    board_id: str
    status: str = STATUS_SUCCESS
    board_name: str | None = None
    error: str | None = None
    assets: AssetStats = field(default_factory=AssetStats)

    def fail(self, error: BaseException | str) -> None:
        self.status = STATUS_FAIL
        self.error = str(error)

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAIL


async def fetch_all_group_items(
    client: UpstreamClient, board_id: str, group_id: str, token: str
) -> list[dict[str, Any]]:
    """Follow item-page cursors until the upstream returns no cursor."""
    items: list[dict[str, Any]] = []
    cursor: str | None = None
    while True:
        group = await client.fetch_group_items(board_id, group_id, cursor, token)
        page = group.get("items_page") or {}
        items.extend(page.get("items") or [])
        cursor = page.get("cursor")
        if not cursor:
            return items


async def fetch_all_comments(
    client: UpstreamClient, item_id: str, token: str, limit: int = COMMENTS_PAGE_LIMIT
) -> list[dict[str, Any]]:
    """Request comment pages from 1 until a page shorter than ``limit``."""
    comments: list[dict[str, Any]] = []
    page = 1
    while True:
        page_comments = await client.fetch_item_comments(item_id, page, token)
        comments.extend(page_comments)
        if len(page_comments) < limit:
            return comments
        page += 1


class Archiver:
    """Drive one archive run over a fixed list of boards."""

    def __init__(self, config: Config, client: UpstreamClient, targets: list[BoardTarget]) -> None:
        self.config = config
        self.client = client
        self.targets = targets
        self.data_dir = config.data_path

    def setup_data_dir(self, clean: bool = False) -> None:
        """Create the data layout. Errors here abort the run."""
        logging.info("Setting up data directory %s...", self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        board_dir(self.data_dir).mkdir(exist_ok=True)
        (self.data_dir / ASSET_DIR).mkdir(exist_ok=True)

        if not clean:
            logging.info("Skipping clean...")
            return

        logging.info("Cleaning board directory...")
        valid_ids = {target.board_id for target in self.targets}
        for path in sorted(board_dir(self.data_dir).iterdir()):
            board_id = path.name.split(".")[0]
            if board_id and board_id in valid_ids:
                continue
            try:
                path.unlink()
                logging.info("─ Deleted: %s", path.name)
            except OSError as exc:
                logging.warning("Could not delete %s: %s", path, exc)

    async def _fill_comments(self, item: dict[str, Any], target: BoardTarget, result: BoardResult) -> None:
        try:
            updates = await fetch_all_comments(self.client, item["itemId"], target.token)
        except Exception as exc:  # noqa: BLE001
            logging.error("Error fetching comments for item %s on board %s: %s", item["itemId"], target.board_id, exc)
            result.fail(exc)
            return
        item["comments"] = transform_comments(target.board_id, updates)

    async def build_board(self, target: BoardTarget, result: BoardResult) -> dict[str, Any]:
        """Fetch and transform one board. Comment failures are recorded on ``result``."""
        board_info = await self.client.fetch_groups(target.board_id, target.token)
        result.board_name = board_info.get("name")
        board = new_board(board_info)

        for group in board_info.get("groups") or []:
            logging.info("─ Processing group: %s (%s)", group.get("title"), group["id"])
            raw_items = await fetch_all_group_items(self.client, target.board_id, group["id"], target.token)
            items = [
                transform_item(target.board_id, raw, self.config.timezone, self.config.date_columns)
                for raw in raw_items
            ]

            # items and subitems share one pool; each drains its own pages in order
            commentable = [entry for item in items for entry in (item, *item["subItems"])]
            await run_pool(
                commentable,
                self.config.fetch_concurrency,
                lambda entry: self._fill_comments(entry, target, result),
            )
            board["groups"].append(new_group(group, items))

        return board

    async def archive_board(self, target: BoardTarget) -> BoardResult:
        """Phase 1 for one board; never raises."""
        logging.info("Processing board: %s", target.board_id)
        result = BoardResult(board_id=target.board_id)
        try:
            board = await self.build_board(target, result)
            write_board(self.data_dir, board)
        except Exception as exc:  # noqa: BLE001
            logging.error("Error processing board %s: %s", target.board_id, exc)
            result.fail(exc)
        return result

    async def fetch_and_save_boards(self) -> list[BoardResult]:
        """Phase 1: boards one after another, each failure isolated."""
        results = []
        for target in self.targets:
            results.append(await self.archive_board(target))
        return results

    def existing_results(self) -> list[BoardResult]:
        """Phase 1 skipped: status comes from whether the JSON is already there."""
        results = []
        for target in self.targets:
            if board_path(self.data_dir, target.board_id).exists():
                results.append(BoardResult(board_id=target.board_id, status=STATUS_EXIST))
            else:
                results.append(
                    BoardResult(board_id=target.board_id, status=STATUS_FAIL, error="JSON file not found")
                )
        return results

    async def sync_board_assets(self, results: list[BoardResult]) -> list[BoardResult]:
        """Phase 2: sync assets for every board that did not fail."""
        for result in results:
            if result.failed:
                continue
            try:
                board = read_board(self.data_dir, result.board_id)
                result.board_name = result.board_name or board.get("name")
                result.assets = await sync_assets(
                    board,
                    asset_dir(self.data_dir, result.board_id),
                    self.client.download_file,
                    self.config.download_concurrency,
                )
            except Exception as exc:  # noqa: BLE001
                logging.error("Error downloading assets for board %s: %s", result.board_id, exc)
                result.error = f"Asset download failed: {exc}"
        return results

    async def run(self, fetch: bool = True, download: bool = True, clean: bool = False) -> list[BoardResult]:
        """Setup, phase 1 (or its stand-in), then phase 2 when enabled."""
        self.setup_data_dir(clean)

        if fetch:
            logging.info("Phase 1: Fetching and saving board data...")
            results = await self.fetch_and_save_boards()
        else:
            logging.info("Phase 1: Data fetching skipped.")
            results = self.existing_results()

        if download:
            logging.info("Phase 2: Downloading assets...")
            results = await self.sync_board_assets(results)
        else:
            logging.info("Phase 2: Asset download skipped.")

        return results


def format_summary(results: list[BoardResult]) -> list[str]:
    """Rows of the end-of-run table, totals last."""
    lines = [
        "Summary:",
        "=" * 100,
        "Board ID".ljust(15) + "Status".ljust(12) + "Assets (Total / Success / Fail)".ljust(40) + "Note",
        "─" * 100,
    ]
    totals = AssetStats()
    failed_boards = 0
    for res in results:
        assets = f"{res.assets.total} / {res.assets.succeeded} / {res.assets.failed}"
        note = res.error or res.board_name or ""
        lines.append(res.board_id.ljust(15) + STATUS_LABELS[res.status].ljust(12) + assets.ljust(40) + note)
        totals.total += res.assets.total
        totals.skipped += res.assets.skipped
        totals.downloaded += res.assets.downloaded
        totals.failed += res.assets.failed
        failed_boards += int(res.failed)

    lines.append("─" * 100)
    boards = f"{len(results) - failed_boards} ok / {failed_boards} failed"
    assets = f"{totals.total} / {totals.succeeded} / {totals.failed}"
    lines.append("TOTAL".ljust(15) + "".ljust(12) + assets.ljust(40) + boards)
    lines.append("=" * 100)
    return lines


def print_summary(results: list[BoardResult]) -> None:
    print()
    for line in format_summary(results):
        print(line)
