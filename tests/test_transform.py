"""Tests for upstream payload -> archive document transforms."""

from monday_archive.config import Config
from monday_archive.transform import (
    UNKNOWN_CREATOR,
    asset_file_name,
    format_timestamp,
    local_asset_url,
    new_board,
    transform_asset,
    transform_body,
    transform_columns,
    transform_comments,
    transform_item,
)
from tests.factories import raw_asset, raw_column, raw_item, raw_reply, raw_update


def test_transform_asset_local_url():
    asset = transform_asset("B1", raw_asset("A1", name="report", ext=".pdf", size=99))
    assert asset == {
        "assetId": "A1",
        "fileName": "report",
        "extension": ".pdf",
        "size": 99,
        "publicUrl": "https://files.example/A1",
        "url": "https://acme.monday.com/protected_static/A1/report.pdf",
        "localUrl": "/asset/B1/A1.pdf",
        "createdAt": "2024-01-02T03:04:05Z",
    }


def test_asset_file_name_accepts_both_shapes():
    raw = raw_asset("A7", ext=".png")
    assert asset_file_name(raw) == "A7.png"
    assert asset_file_name(transform_asset("B1", raw)) == "A7.png"


def test_subitems_column_dropped():
    columns = transform_columns([raw_column("Status", "Done"), raw_column("Subitems", "a, b")])
    assert columns == [{"name": "Status", "value": "Done"}]


def test_date_columns_reformatted_in_timezone():
    columns = transform_columns(
        [
            raw_column("Last Updated", "2024-03-01 16:30:00 UTC"),
            raw_column("Creation Log", "2024-03-01T23:59:59Z"),
            raw_column("Due", "2024-03-01"),
        ]
    )
    assert columns == [
        {"name": "Last Updated", "value": "2024-03-02 00:30:00"},
        {"name": "Creation Log", "value": "2024-03-02 07:59:59"},
        {"name": "Due", "value": "2024-03-01"},
    ]


def test_date_column_configurable_zone():
    columns = transform_columns([raw_column("When", "2024-03-01T00:00:00+00:00")], "UTC", ["When"])
    assert columns == [{"name": "When", "value": "2024-03-01 00:00:00"}]


def test_unparsable_or_empty_date_passes_through():
    assert format_timestamp("not a date") == "not a date"
    columns = transform_columns([raw_column("Last Updated", None), raw_column("Last Updated", "")])
    assert [c["value"] for c in columns] == [None, ""]


def test_transform_item_with_subitems():
    item = raw_item(
        "i1",
        name="Parent",
        assets=[raw_asset("A1")],
        columns=[raw_column("Status", "Working"), raw_column("Subitems", "Child")],
        subitems=[raw_item("s1", name="Child", creator=None)],
    )
    shaped = transform_item("B1", item)
    assert list(shaped) == [
        "itemId", "title", "createdBy", "createdAt", "updatedAt", "column", "assets", "comments", "subItems",
    ]
    assert shaped["title"] == "Parent"
    assert shaped["column"] == [{"name": "Status", "value": "Working"}]
    assert shaped["assets"][0]["localUrl"] == "/asset/B1/A1.pdf"
    assert shaped["comments"] == []
    sub = shaped["subItems"][0]
    assert sub["itemId"] == "s1"
    assert sub["createdBy"] == UNKNOWN_CREATOR
    assert "subItems" not in sub


def test_inline_updates_become_comments():
    item = raw_item("i1", subitems=[])
    item["updates"] = [raw_update("u1")]
    assert transform_item("B1", item)["comments"][0]["commentId"] == "u1"


def test_transform_comments_with_replies():
    asset = raw_asset("A1", name="report", url="https://x/view?id=5")
    update = raw_update(
        "u1",
        body='<a href="https://x/view?id=5" >file</a>',
        assets=[asset],
        replies=[raw_reply("r1", assets=[raw_asset("A2", ext=".png")], creator=None)],
    )
    [comment] = transform_comments("B1", [update])
    assert comment["commentId"] == "u1"
    assert comment["body"] == '<a href="https://x/view?id=5" >file</a>'
    assert comment["formattedBody"] == (
        '<a href="/asset/B1/A1.pdf" download="report.pdf" data-body-type="asset">file</a>'
    )
    assert comment["createdBy"] == "Alice"
    assert comment["assets"][0]["assetId"] == "A1"
    [reply] = comment["replies"]
    assert reply["replyId"] == "r1"
    assert reply["createdBy"] == UNKNOWN_CREATOR
    assert reply["assets"][0]["localUrl"] == "/asset/B1/A2.png"


def test_transform_body_without_assets_only_rewrites_mentions():
    update = raw_update("u1", body='<a data-mention-id="3" href="#">@Zed</a>')
    assert transform_body("B1", update) == '<span data-body-type="user-mention">@Zed</span>'


def test_new_board_shape():
    board = new_board({"id": "B1", "name": "Roadmap", "created_at": "2023-01-01T00:00:00Z", "groups": []})
    assert board == {"boardId": "B1", "name": "Roadmap", "createdAt": "2023-01-01T00:00:00Z", "groups": []}


def test_local_url_from_raw_asset_without_extension():
    raw = raw_asset("A9", ext=None)
    assert local_asset_url("B1", raw) == "/asset/B1/A9"
    assert transform_asset("B1", raw)["localUrl"] == "/asset/B1/A9"
    assert asset_file_name(transform_asset("B1", raw)) == "A9"


def test_default_timezone_matches_config():
    value = "2024-01-01T00:00:00Z"
    assert format_timestamp(value) == format_timestamp(value, Config().timezone) == "2024-01-01 08:00:00"
