"""Read-only HTTP access to the archive.

Routes:
GET /api/boards                       boards grouped into workspaces
GET /api/boards/{board_id}            one board document
GET /asset/{board_id}/{file_name}     one archived asset file
"""

from __future__ import annotations

import argparse
import json
import logging
import re
from pathlib import Path
from typing import Any

from aiohttp import web

from monday_archive.cli import setup_logging
from monday_archive.config import Config, load_config
from monday_archive.errors import ConfigError
from monday_archive.writer import asset_dir, board_dir, board_path

OTHER_WORKSPACE = "other"
SUMMARY_KEYS = ("boardId", "name", "createdAt")
CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
    ".mp4": "video/mp4",
    ".svg": "image/svg+xml",
}

BOARD_ID_RE = re.compile(r"^[\w-]+$")
ASSET_NAME_RE = re.compile(r"^[\w-][\w.-]*$")
# top-level keys sit at four-space indent in the written documents
TOP_LEVEL_RE = re.compile(r'^ {4}"(\w+)": (.*?),?$')

CONFIG_KEY = web.AppKey("config", Config)

routes = web.RouteTableDef()


def read_board_summary(path: Path) -> dict[str, Any] | None:
    """Read boardId, name and createdAt from the head of a board document.

    Scans lines until the ``groups`` key instead of parsing the whole file.
    """
    summary: dict[str, Any] = {}
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            match = TOP_LEVEL_RE.match(line.rstrip("\n"))
            if not match:
                continue
            key, raw = match.groups()
            if key == "groups":
                break
            if key in SUMMARY_KEYS:
                try:
                    summary[key] = json.loads(raw)
                except json.JSONDecodeError:
                    logging.warning("Unreadable %s in %s", key, path)
            if len(summary) == len(SUMMARY_KEYS):
                break
    if "boardId" not in summary:
        return None
    return {key: summary.get(key) for key in SUMMARY_KEYS}


def group_workspaces(boards: list[dict[str, Any]], workspace_of: dict[str, str], order: list[str]) -> list[dict[str, Any]]:
    """Bucket board summaries by workspace, newest first within each bucket."""
    buckets: dict[str, list[dict[str, Any]]] = {name: [] for name in [*order, OTHER_WORKSPACE]}
    for board in boards:
        name = workspace_of.get(str(board["boardId"]), OTHER_WORKSPACE)
        buckets.setdefault(name, []).append(board)

    workspaces = []
    for name, members in buckets.items():
        if not members:
            continue
        members.sort(key=lambda b: b.get("createdAt") or "", reverse=True)
        workspaces.append({"name": name, "boards": members})
    return workspaces


@routes.get("/api/boards")
async def list_boards(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    directory = board_dir(config.data_path)
    summaries = []
    if directory.is_dir():
        for path in sorted(directory.glob("*.json")):
            try:
                summary = read_board_summary(path)
            except (OSError, UnicodeDecodeError) as exc:
                logging.error("Error reading board json %s: %s", path, exc)
                continue
            if summary is not None:
                summaries.append(summary)

    order = [workspace.name for workspace in config.workspaces]
    return web.json_response(group_workspaces(summaries, config.workspace_of(), order))


@routes.get("/api/boards/{board_id}")
async def get_board(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    board_id = request.match_info["board_id"]
    path = board_path(config.data_path, board_id)
    if not BOARD_ID_RE.match(board_id) or not path.is_file():
        raise web.HTTPNotFound(reason="Board not found")
    try:
        board = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logging.error("[%s] Error reading board json: %s", request.path, exc)
        raise web.HTTPNotFound(reason="Board not found") from exc
    return web.json_response(board)


@routes.get("/asset/{board_id}/{file_name}")
async def get_asset(request: web.Request) -> web.StreamResponse:
    config = request.app[CONFIG_KEY]
    board_id = request.match_info["board_id"]
    file_name = request.match_info["file_name"]
    if not BOARD_ID_RE.match(board_id) or not ASSET_NAME_RE.match(file_name):
        raise web.HTTPNotFound(reason="Asset not found")

    path = asset_dir(config.data_path, board_id) / file_name
    if not path.is_file():
        raise web.HTTPNotFound(reason="Asset not found")

    headers = {}
    content_type = CONTENT_TYPES.get(path.suffix.lower())
    if content_type:
        headers["Content-Type"] = content_type
    return web.FileResponse(path, headers=headers)


def create_app(config: Config) -> web.Application:
    app = web.Application()
    app[CONFIG_KEY] = config
    app.add_routes(routes)
    return app


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve archived monday.com boards")
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML file")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging()
    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        raise SystemExit(f"error: {exc}") from exc
    web.run_app(create_app(config), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
