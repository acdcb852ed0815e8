"""Tests for the archive command line."""

import pytest

from monday_archive import cli


def test_parse_args_flags():
    args = cli.parse_args(["--dev", "--clean", "--no-download", "--config", "c.yaml"])
    assert args.dev and args.clean and args.no_download
    assert not args.no_fetch
    assert args.config == "c.yaml"


def test_no_fetch_and_no_download_is_fatal(monkeypatch):
    called = []
    monkeypatch.setattr(cli, "load_config", lambda path: called.append(path))
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--no-fetch", "--no-download"])
    assert excinfo.value.code != 0
    assert called == []


def test_missing_token_is_fatal(tmp_path, monkeypatch):
    monkeypatch.delenv("MONDAY_API_TOKEN", raising=False)
    monkeypatch.delenv("TOKEN_X", raising=False)
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("workspaces:\n  x:\n    token_env: TOKEN_X\n    boards: ['1']\n", encoding="utf-8")
    ran = []
    monkeypatch.setattr(cli, "run", lambda *a: ran.append(a))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path)])

    assert "no API token" in str(excinfo.value.code)
    assert ran == []


def test_missing_config_is_fatal(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "nope.yaml")])
    assert "config file not found" in str(excinfo.value.code)
