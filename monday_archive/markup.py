"""Rewrite monday rich-text bodies to reference archived assets.

Bodies use a small, known set of HTML tags; the rewrite is regex
substitution over the markup string.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Iterable

MENTION_RE = re.compile(r'<a[^>]*data-mention-id="[^"]*"[^>]*>(.*?)</a>', re.S)


@dataclass(slots=True, frozen=True)
class AssetLink:
    """What the rewrite needs to know about one attached asset."""

    asset_id: str
    url: str
    local_url: str
    download_name: str


def rewrite_mentions(body: str) -> str:
    """Replace user-mention anchors with a neutral inline span."""
    return MENTION_RE.sub(r'<span data-body-type="user-mention">\1</span>', body)


def rewrite_asset(body: str, link: AssetLink) -> str:
    """Point anchors and images for one asset at its local copy."""
    local = html.escape(link.local_url, quote=True)
    download = html.escape(link.download_name, quote=True)

    if link.url:
        # hrefs may carry the URL with "&" escaped as "&amp;"
        hrefs = "|".join(re.escape(u) for u in sorted({link.url, html.escape(link.url, quote=False)}))
        anchor_re = re.compile(rf'<a[^>]*href="(?:{hrefs})"[^>]*>(.*?)</a>', re.S)
        body = anchor_re.sub(
            lambda m: f'<a href="{local}" download="{download}" data-body-type="asset">{m.group(1)}</a>',
            body,
        )

    image_re = re.compile(rf'<img[^>]*data-asset_id="{re.escape(link.asset_id)}"[^>]*>')
    return image_re.sub(lambda m: f'<img src="{local}">', body)


def rewrite_body(body: str | None, links: Iterable[AssetLink]) -> str | None:
    """Neutralize mentions, then rewrite each asset in the given order.

    Local URLs never match an upstream URL or an asset-id attribute, so a
    later replacement cannot touch text produced by an earlier one.
    """
    if not body:
        return body
    body = rewrite_mentions(body)
    for link in links:
        body = rewrite_asset(body, link)
    return body
