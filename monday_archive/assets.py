"""Reconcile a board's asset directory with the assets its document references."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterator, TextIO

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskProgressColumn, TextColumn

from monday_archive.pool import run_pool
from monday_archive.transform import asset_file_name

Download = Callable[[str, Path], Awaitable[object]]


@dataclass(slots=True)
class AssetStats:
    """Counts returned by one asset sync."""

    total: int = 0
    skipped: int = 0
    downloaded: int = 0
    failed: int = 0

    @property
    def succeeded(self) -> int:
        return self.skipped + self.downloaded

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def _item_assets(item: dict[str, Any]) -> Iterator[dict[str, Any]]:
    yield from item.get("assets") or []
    for comment in item.get("comments") or []:
        yield from comment.get("assets") or []
        for reply in comment.get("replies") or []:
            yield from reply.get("assets") or []


def iter_assets(board: dict[str, Any]) -> Iterator[tuple[dict[str, Any], dict[str, Any]]]:
    """Yield ``(item, asset)`` for every asset occurrence, duplicates included."""
    for group in board.get("groups") or []:
        for item in group.get("items") or []:
            for asset in _item_assets(item):
                yield item, asset
            for subitem in item.get("subItems") or []:
                for asset in _item_assets(subitem):
                    yield subitem, asset


def collect_assets(board: dict[str, Any]) -> list[dict[str, Any]]:
    """Every asset the board references, deduplicated by id (first wins)."""
    unique: dict[str, dict[str, Any]] = {}
    for _, asset in iter_assets(board):
        unique.setdefault(str(asset["assetId"]), asset)
    return list(unique.values())


def remove_stale_files(asset_dir: Path, valid_names: set[str]) -> int:
    """Delete files in ``asset_dir`` that are not in ``valid_names``. Best effort."""
    removed = 0
    for path in sorted(asset_dir.iterdir()):
        if path.name in valid_names:
            continue
        try:
            if path.is_dir():
                logging.warning("Skipping unexpected directory in asset dir: %s", path)
                continue
            path.unlink()
            removed += 1
            logging.info("─── Deleted obsolete asset: %s", path.name)
        except OSError as exc:
            logging.warning("Could not delete obsolete asset %s: %s", path, exc)
    return removed


async def sync_assets(
    board: dict[str, Any],
    asset_dir: Path,
    download: Download,
    limit: int = 20,
    progress_stream: TextIO | None = None,
) -> AssetStats:
    """Make ``asset_dir`` hold exactly the board's assets.

    Files not referenced by the board are removed and existing files are kept.
    Missing files are fetched with ``download`` under a pool of ``limit``.
    Download failures are counted; only directory-level I/O errors propagate.
    Progress goes to ``progress_stream``, stderr by default.
    """
    board_id = board.get("boardId")
    logging.info("─ Syncing assets for board %s...", board_id)
    asset_dir.mkdir(parents=True, exist_ok=True)

    assets = collect_assets(board)
    stats = AssetStats(total=len(assets))
    remove_stale_files(asset_dir, {asset_file_name(asset) for asset in assets})
    logging.info("─── Found %s assets.", stats.total)

    if not assets:
        return stats

    console = Console(file=progress_stream, stderr=progress_stream is None, width=120)
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Assets {board_id}", total=stats.total)

        async def fetch(asset: dict[str, Any]) -> None:
            dest = asset_dir / asset_file_name(asset)
            try:
                if dest.exists():
                    stats.skipped += 1
                    return
                await download(asset["publicUrl"], dest)
                stats.downloaded += 1
            except Exception as exc:  # noqa: BLE001
                stats.failed += 1
                logging.error("Failed to download asset %s (%s): %s", asset["assetId"], asset.get("fileName"), exc)
            finally:
                progress.update(task, advance=1)

        await run_pool(assets, limit, fetch)

    logging.info(
        "─ Assets in %s: downloaded=%s skipped=%s failed=%s",
        asset_dir,
        stats.downloaded,
        stats.skipped,
        stats.failed,
    )
    return stats
