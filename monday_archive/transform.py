"""Convert monday API payloads into the archived board document shape.

Pure functions with no I/O. Key order of the produced dicts is fixed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from monday_archive.config import DATE_COLUMNS, DEFAULT_TIMEZONE
from monday_archive.markup import AssetLink, rewrite_body

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
UNKNOWN_CREATOR = "Unknown"
SUBITEMS_COLUMN = "Subitems"

Raw = dict[str, Any]


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def asset_file_name(asset: Raw) -> str:
    """Local file name of an asset, from either the raw or the archived shape."""
    if "assetId" in asset:
        return f"{asset['assetId']}{asset.get('extension') or ''}"
    return f"{asset['id']}{asset.get('file_extension') or ''}"


def local_asset_url(board_id: str, asset: Raw) -> str:
    return f"/asset/{board_id}/{asset_file_name(asset)}"


def creator_name(raw: Raw) -> str:
    creator = raw.get("creator")
    if not isinstance(creator, dict) or not creator.get("name"):
        return UNKNOWN_CREATOR
    return creator["name"]


def format_timestamp(value: str, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Render an upstream timestamp as ``YYYY-MM-DD HH:mm:ss`` in ``tz_name``.

    Naive timestamps are taken as UTC. Text that does not parse is returned
    unchanged.
    """
    text = value.strip()
    if text.endswith(" UTC"):
        text = text[:-4]
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(_zone(tz_name)).strftime(DATE_FORMAT)


def transform_columns(
    column_values: Iterable[Raw],
    tz_name: str = DEFAULT_TIMEZONE,
    date_columns: Iterable[str] = DATE_COLUMNS,
) -> list[Raw]:
    """Map column values to ``{name, value}`` pairs, dropping Subitems."""
    date_columns = set(date_columns)
    columns: list[Raw] = []
    for column_value in column_values or []:
        name = (column_value.get("column") or {}).get("title")
        value = column_value.get("text")
        if name == SUBITEMS_COLUMN:
            continue
        if name in date_columns and value:
            value = format_timestamp(value, tz_name)
        columns.append({"name": name, "value": value})
    return columns


def transform_asset(board_id: str, asset: Raw) -> Raw:
    return {
        "assetId": asset["id"],
        "fileName": asset.get("name"),
        "extension": asset.get("file_extension") or "",
        "size": asset.get("file_size"),
        "publicUrl": asset.get("public_url"),
        "url": asset.get("url"),
        "localUrl": local_asset_url(board_id, asset),
        "createdAt": asset.get("created_at"),
    }


def transform_body(board_id: str, comment_or_reply: Raw) -> str | None:
    """Body markup with mentions neutralized and asset links made local."""
    links = []
    for asset in comment_or_reply.get("assets") or []:
        extension = asset.get("file_extension") or ""
        links.append(
            AssetLink(
                asset_id=str(asset["id"]),
                url=asset.get("url") or "",
                local_url=local_asset_url(board_id, asset),
                download_name=f"{asset.get('name') or ''}{extension}",
            )
        )
    return rewrite_body(comment_or_reply.get("body"), links)


def transform_reply(board_id: str, reply: Raw) -> Raw:
    return {
        "replyId": reply["id"],
        "body": reply.get("body"),
        "formattedBody": transform_body(board_id, reply),
        "createdBy": creator_name(reply),
        "createdAt": reply.get("created_at"),
        "updatedAt": reply.get("updated_at"),
        "assets": [transform_asset(board_id, a) for a in reply.get("assets") or []],
    }


def transform_comment(board_id: str, update: Raw) -> Raw:
    return {
        "commentId": update["id"],
        "body": update.get("body"),
        "formattedBody": transform_body(board_id, update),
        "edited_at": update.get("edited_at"),
        "created_at": update.get("created_at"),
        "updated_at": update.get("updated_at"),
        "createdBy": creator_name(update),
        "assets": [transform_asset(board_id, a) for a in update.get("assets") or []],
        "replies": [transform_reply(board_id, r) for r in update.get("replies") or []],
    }


def transform_comments(board_id: str, updates: Iterable[Raw]) -> list[Raw]:
    return [transform_comment(board_id, update) for update in updates or []]


def transform_base_item(
    board_id: str,
    item: Raw,
    tz_name: str = DEFAULT_TIMEZONE,
    date_columns: Iterable[str] = DATE_COLUMNS,
) -> Raw:
    """Archived shape shared by items and subitems.

    Comments are filled from ``updates`` when the payload carries them;
    otherwise the list starts empty and is populated by a separate fetch.
    """
    return {
        "itemId": item["id"],
        "title": item.get("name"),
        "createdBy": creator_name(item),
        "createdAt": item.get("created_at"),
        "updatedAt": item.get("updated_at"),
        "column": transform_columns(item.get("column_values") or [], tz_name, date_columns),
        "assets": [transform_asset(board_id, a) for a in item.get("assets") or []],
        "comments": transform_comments(board_id, item.get("updates") or []),
    }


def transform_item(
    board_id: str,
    item: Raw,
    tz_name: str = DEFAULT_TIMEZONE,
    date_columns: Iterable[str] = DATE_COLUMNS,
) -> Raw:
    """Top-level item: the base shape plus its subitems."""
    shaped = transform_base_item(board_id, item, tz_name, date_columns)
    shaped["subItems"] = [
        transform_base_item(board_id, subitem, tz_name, date_columns) for subitem in item.get("subitems") or []
    ]
    return shaped


def new_board(board_info: Raw) -> Raw:
    """Empty board document from a fetch_groups result."""
    return {
        "boardId": board_info["id"],
        "name": board_info.get("name"),
        "createdAt": board_info.get("created_at"),
        "groups": [],
    }


def new_group(group: Raw, items: list[Raw]) -> Raw:
    return {"groupId": group["id"], "name": group.get("title"), "items": items}
