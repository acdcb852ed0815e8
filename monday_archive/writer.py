"""Board documents on disk: ``{data_dir}/board/{board_id}.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

BOARD_DIR = "board"
ASSET_DIR = "asset"


def board_dir(data_dir: Path) -> Path:
    return data_dir / BOARD_DIR


def board_path(data_dir: Path, board_id: str) -> Path:
    return board_dir(data_dir) / f"{board_id}.json"


def asset_dir(data_dir: Path, board_id: str) -> Path:
    return data_dir / ASSET_DIR / board_id


def dump_board(board: dict[str, Any]) -> str:
    return json.dumps(board, ensure_ascii=False, indent=4)


def write_board(data_dir: Path, board: dict[str, Any]) -> Path:
    """Overwrite the board's JSON document. The board directory must exist."""
    path = board_path(data_dir, board["boardId"])
    path.write_text(dump_board(board), encoding="utf-8")
    logging.info("Saved to %s", path)
    return path


def read_board(data_dir: Path, board_id: str) -> dict[str, Any]:
    """Load a previously written board document."""
    with board_path(data_dir, board_id).open("r", encoding="utf-8") as fh:
        return json.load(fh)
