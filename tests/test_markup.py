"""Tests for rich-text body rewriting."""

from monday_archive.markup import AssetLink, rewrite_body, rewrite_mentions


def _link(asset_id="A1", url="https://x/view?id=5", local="/asset/B1/A1.pdf", name="report.pdf"):
    return AssetLink(asset_id=asset_id, url=url, local_url=local, download_name=name)


def test_anchor_to_asset_points_at_local_copy():
    """An anchor to the upstream URL becomes a local download link."""
    body = '<a href="https://x/view?id=5" >file</a>'
    assert rewrite_body(body, [_link()]) == (
        '<a href="/asset/B1/A1.pdf" download="report.pdf" data-body-type="asset">file</a>'
    )


def test_url_is_matched_literally():
    """Regex metacharacters in the URL do not act as wildcards."""
    body = '<a href="https://x/viewXid=5">file</a>'
    assert rewrite_body(body, [_link()]) == body


def test_html_escaped_href_is_matched():
    body = '<a href="https://x/view?id=5&amp;v=2">doc</a>'
    link = _link(url="https://x/view?id=5&v=2")
    assert 'href="/asset/B1/A1.pdf"' in rewrite_body(body, [link])


def test_image_keyed_by_asset_id():
    body = '<p><img src="https://x/resources/A1" data-asset_id="A1" width="100"></p>'
    assert rewrite_body(body, [_link()]) == '<p><img src="/asset/B1/A1.pdf"></p>'


def test_image_of_other_asset_untouched():
    body = '<img src="https://x/resources/A2" data-asset_id="A2">'
    assert rewrite_body(body, [_link()]) == body


def test_mentions_become_spans():
    body = '<p>Hi <a class="user_mention_editor" href="https://x/users/9" data-mention-id="9">@Ann</a>!</p>'
    assert rewrite_mentions(body) == '<p>Hi <span data-body-type="user-mention">@Ann</span>!</p>'


def test_multiple_assets_rewritten_in_order():
    body = '<a href="https://x/1">one</a> <a href="https://x/2">two</a>'
    links = [
        _link("A1", "https://x/1", "/asset/B1/A1.pdf", "one.pdf"),
        _link("A2", "https://x/2", "/asset/B1/A2.png", "two.png"),
    ]
    assert rewrite_body(body, links) == (
        '<a href="/asset/B1/A1.pdf" download="one.pdf" data-body-type="asset">one</a> '
        '<a href="/asset/B1/A2.png" download="two.png" data-body-type="asset">two</a>'
    )


def test_download_name_is_attribute_escaped():
    body = '<a href="https://x/1">q</a>'
    result = rewrite_body(body, [_link("A1", "https://x/1", "/asset/B1/A1.txt", 'say "hi".txt')])
    assert 'download="say &quot;hi&quot;.txt"' in result


def test_empty_body_passes_through():
    assert rewrite_body("", [_link()]) == ""
    assert rewrite_body(None, [_link()]) is None
