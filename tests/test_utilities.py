"""Tests for the validate and analyze utilities."""

import io
from contextlib import redirect_stdout

from monday_archive.analyze import analyze, format_bytes
from monday_archive.analyze import main as analyze_main
from monday_archive.config import Config, Workspace
from monday_archive.validate import MISSING_FILE, MISSING_JSON, SIZE_MISMATCH, check_board, validate
from monday_archive.validate import main as validate_main
from monday_archive.writer import dump_board
from tests.factories import archived_asset, archived_comment, archived_item, board_document


def _archive(tmp_path):
    data_dir = tmp_path / "data"
    (data_dir / "board").mkdir(parents=True)
    good = archived_asset("A1", size=3)
    wrong = archived_asset("A2", ext=".png", size=10)
    gone = archived_asset("A3", size=5)
    item = archived_item("i1", assets=[good, wrong], comments=[archived_comment("c1", assets=[gone, good])])
    board = board_document("B1", items=[item], name="Roadmap")
    (data_dir / "board" / "B1.json").write_text(dump_board(board), encoding="utf-8")
    assets = data_dir / "asset" / "B1"
    assets.mkdir(parents=True)
    (assets / "A1.pdf").write_bytes(b"abc")
    (assets / "A2.png").write_bytes(b"short")
    return data_dir


def test_check_board_finds_missing_and_mismatched(tmp_path):
    data_dir = _archive(tmp_path)
    check = check_board(data_dir, "B1")
    assert check.name == "Roadmap"
    assert check.total == 4
    assert sorted((p.kind, p.asset_id) for p in check.problems) == [(MISSING_FILE, "A3"), (SIZE_MISMATCH, "A2")]
    mismatch = next(p for p in check.problems if p.kind == SIZE_MISMATCH)
    assert (mismatch.expected_size, mismatch.actual_size) == (10, 5)
    assert check.rate == 50


def test_missing_board_json(tmp_path):
    check = check_board(tmp_path, "B9")
    assert not check.found
    assert [p.kind for p in check.problems] == [MISSING_JSON]


def test_validate_uses_configured_environment(tmp_path):
    data_dir = _archive(tmp_path)
    config = Config(data_dir=str(data_dir), workspaces=[Workspace("w", boards={"prod": ["B1"], "dev": ["B9"]})])
    assert [c.board_id for c in validate(config, "prod")] == ["B1"]
    assert [c.found for c in validate(config, "dev")] == [False]


def test_validate_main_exit_code(tmp_path):
    data_dir = _archive(tmp_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"data_dir: {data_dir}\nworkspaces:\n  w:\n    boards: [B1]\n", encoding="utf-8")
    out = io.StringIO()
    with redirect_stdout(out):
        code = validate_main(["--config", str(config_path), "--detail"])
    assert code == 1
    assert "Size mismatch" in out.getvalue()
    assert "Missing file" in out.getvalue()


def test_format_bytes():
    assert format_bytes(0) == "0 Bytes"
    assert format_bytes(512) == "512 Bytes"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(5 * 1024**3) == "5 GB"


def test_analyze_counts_unique_assets(tmp_path):
    data_dir = _archive(tmp_path)
    [stats] = analyze(data_dir)
    assert (stats.board_id, stats.count, stats.size) == ("B1", 3, 18)
    assert stats.by_extension == {".pdf": 2, ".png": 1}


def test_analyze_main_prints_totals(tmp_path):
    data_dir = _archive(tmp_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"data_dir: {data_dir}\n", encoding="utf-8")
    out = io.StringIO()
    with redirect_stdout(out):
        code = analyze_main(["--config", str(config_path), "--by-extension"])
    assert code == 0
    assert "Roadmap" in out.getvalue()
    assert "TOTAL" in out.getvalue()
