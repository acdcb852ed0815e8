"""monday.com GraphQL client with timeout, retry/backoff and request spacing."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import aiohttp

from monday_archive.config import Config
from monday_archive.errors import (
    BoardNotFoundError,
    ForbiddenError,
    GraphQLError,
    GroupNotFoundError,
    TransportError,
    UpstreamError,
)

T = TypeVar("T")

ITEMS_PAGE_LIMIT = 100
COMMENTS_PAGE_LIMIT = 25
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Upstream error codes that mean "slow down", not "this request is wrong".
RETRYABLE_ERROR_CODES = {
    "ComplexityException",
    "COMPLEXITY_BUDGET_EXHAUSTED",
    "RATE_LIMIT_EXCEEDED",
    "Rate Limit Exceeded",
    "maxConcurrencyExceeded",
    "INTERNAL_SERVER_ERROR",
}
FORBIDDEN_ERROR_CODES = {"UserUnauthorizedException", "USER_UNAUTHORIZED", "Unauthorized"}

ASSET_FIELDS = """
    id
    created_at
    file_extension
    file_size
    name
    public_url
    url
"""

ITEM_FIELDS = f"""
    id
    name
    created_at
    updated_at
    creator {{
        id
        name
    }}
    column_values {{
        text
        type
        column {{
            id
            title
        }}
    }}
    assets {{{ASSET_FIELDS}}}
"""

BOARD_GROUPS_QUERY = """
query ($boardIds: [ID!]) {
    boards(ids: $boardIds) {
        id
        name
        created_at
        groups {
            id
            title
        }
    }
}
"""

GROUP_ITEMS_QUERY = f"""
query ($boardIds: [ID!], $groupIds: [String!], $cursor: String) {{
    boards(ids: $boardIds) {{
        groups(ids: $groupIds) {{
            id
            title
            items_page(limit: {ITEMS_PAGE_LIMIT}, cursor: $cursor) {{
                cursor
                items {{
                    {ITEM_FIELDS}
                    subitems {{
                        {ITEM_FIELDS}
                    }}
                }}
            }}
        }}
    }}
}}
"""

ITEM_COMMENTS_QUERY = f"""
query ($itemIds: [ID!], $page: Int) {{
    items(ids: $itemIds) {{
        updates(limit: {COMMENTS_PAGE_LIMIT}, page: $page) {{
            id
            body
            edited_at
            created_at
            updated_at
            item_id
            text_body
            creator {{
                id
                name
            }}
            assets {{{ASSET_FIELDS}}}
            replies {{
                id
                body
                creator_id
                edited_at
                created_at
                updated_at
                text_body
                creator {{
                    id
                    name
                }}
                assets {{{ASSET_FIELDS}}}
            }}
        }}
    }}
}}
"""


class RequestScheduler:
    """Space the start of monday API calls and downloads by ``delay_sec``.

    One scheduler is shared by every request a MondayClient makes, retries
    included. A delay of 0 turns it off.
    """

    def __init__(self, delay_sec: float) -> None:
        self.delay_sec = max(0.0, delay_sec)
        self._lock = asyncio.Lock()
        self._next_start = 0.0

    async def wait_turn(self) -> None:
        if not self.delay_sec:
            return
        async with self._lock:
            wait_for = self._next_start - time.monotonic()
            if wait_for > 0:
                await asyncio.sleep(wait_for)
            self._next_start = time.monotonic() + self.delay_sec


def _error_codes(errors: list[Any]) -> set[str]:
    codes: set[str] = set()
    for error in errors:
        if not isinstance(error, dict):
            continue
        extensions = error.get("extensions")
        if isinstance(extensions, dict) and extensions.get("code"):
            codes.add(str(extensions["code"]))
    return codes


def check_envelope(payload: Any) -> Any:
    """Return ``data`` from a GraphQL response envelope or raise."""
    if not isinstance(payload, dict):
        raise TransportError(f"Unexpected response body: {payload!r:.200}")

    errors = payload.get("errors")
    if not errors and payload.get("error_message"):
        # legacy envelope shape
        errors = [{"message": payload["error_message"], "extensions": {"code": payload.get("error_code")}}]
    if errors:
        codes = _error_codes(errors)
        if codes & FORBIDDEN_ERROR_CODES:
            raise ForbiddenError(f"Forbidden: {errors}")
        raise GraphQLError(errors, retryable=bool(codes & RETRYABLE_ERROR_CODES))
    return payload.get("data") or {}


class MondayClient:
    """Issue GraphQL queries and asset downloads against monday.com."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: Config,
        scheduler: RequestScheduler | None = None,
    ) -> None:
        self.session = session
        self.config = config
        self.scheduler = scheduler or RequestScheduler(config.delay_sec)

    async def _with_retry(self, describe: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run ``call`` up to ``max_attempts`` times, backing off between tries."""
        attempts = self.config.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                await self.scheduler.wait_turn()
                return await call()
            except UpstreamError as exc:
                if not exc.retryable or attempt == attempts:
                    raise
                delay = self.config.backoff_sec * (2 ** (attempt - 1))
                logging.warning(
                    "%s failed (attempt %s/%s): %s; retrying in %.1fs", describe, attempt, attempts, exc, delay
                )
                await asyncio.sleep(delay)
        raise AssertionError("unreachable")

    async def _post_once(self, payload: dict[str, Any], token: str) -> Any:
        headers = {
            "Authorization": token,
            "Content-Type": "application/json",
            "API-Version": self.config.api_version,
        }
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_sec)
        try:
            async with self.session.post(self.config.api_url, json=payload, headers=headers, timeout=timeout) as resp:
                if resp.status in (401, 403):
                    raise ForbiddenError(f"API Error: {resp.status} {resp.reason}")
                if not 200 <= resp.status < 300:
                    raise TransportError(
                        f"API Error: {resp.status} {resp.reason}",
                        status=resp.status,
                        retryable=resp.status == 429 or resp.status >= 500,
                    )
                try:
                    body = await resp.json(content_type=None)
                except ValueError as exc:
                    raise TransportError(f"Invalid JSON from {self.config.api_url}: {exc}", status=resp.status) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"Request failed: {exc!r}", retryable=True) from exc
        return check_envelope(body)

    async def post_graphql(self, query: str, variables: dict[str, Any], token: str) -> Any:
        """POST ``{query, variables}`` and return the ``data`` member."""
        payload = {"query": query, "variables": variables}
        return await self._with_retry("GraphQL request", lambda: self._post_once(payload, token))

    async def fetch_groups(self, board_id: str, token: str) -> dict[str, Any]:
        """Board id, name, created_at and its groups."""
        data = await self.post_graphql(BOARD_GROUPS_QUERY, {"boardIds": [board_id]}, token)
        boards = data.get("boards") or []
        if not boards or not boards[0]:
            raise BoardNotFoundError(board_id)
        return boards[0]

    async def fetch_group_items(
        self, board_id: str, group_id: str, cursor: str | None, token: str
    ) -> dict[str, Any]:
        """One page of a group's items (with subitems) and the next cursor."""
        variables = {"boardIds": [board_id], "groupIds": [group_id], "cursor": cursor}
        data = await self.post_graphql(GROUP_ITEMS_QUERY, variables, token)
        boards = data.get("boards") or []
        if not boards or not boards[0]:
            raise BoardNotFoundError(board_id)
        groups = boards[0].get("groups") or []
        if not groups or not groups[0]:
            raise GroupNotFoundError(board_id, group_id)
        return groups[0]

    async def fetch_item_comments(self, item_id: str, page: int, token: str) -> list[dict[str, Any]]:
        """One page of an item's updates, newest first as returned upstream."""
        data = await self.post_graphql(ITEM_COMMENTS_QUERY, {"itemIds": [item_id], "page": page}, token)
        items = data.get("items") or []
        if not items or not items[0]:
            return []
        return items[0].get("updates") or []

    async def _download_once(self, url: str, dest: Path) -> int:
        partial = dest.with_name(dest.name + ".part")
        timeout = aiohttp.ClientTimeout(total=self.config.download_timeout_sec)
        written = 0
        try:
            async with self.session.get(url, timeout=timeout) as resp:
                if resp.status in (401, 403):
                    raise ForbiddenError(f"Failed to fetch {url}: {resp.status} {resp.reason}")
                if not 200 <= resp.status < 300:
                    raise TransportError(
                        f"Failed to fetch {url}: {resp.status} {resp.reason}",
                        status=resp.status,
                        retryable=resp.status == 429 or resp.status >= 500,
                    )
                with partial.open("wb") as fh:
                    async for chunk in resp.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
                        written += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            partial.unlink(missing_ok=True)
            raise TransportError(f"Download failed: {url} ({exc!r})", retryable=True) from exc
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        partial.replace(dest)
        return written

    async def download_file(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest``. Return the number of bytes written."""
        return await self._with_retry(f"Download of {dest.name}", lambda: self._download_once(url, dest))
