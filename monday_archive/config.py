"""Configuration loaded from config.yaml plus tokens from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from monday_archive.errors import ConfigError

MONDAY_API_URL = "https://api.monday.com/v2"
DEFAULT_TOKEN_ENV = "MONDAY_API_TOKEN"
ENVIRONMENTS = ("prod", "dev")
DATE_COLUMNS = ("Last Updated", "Creation Log")
DEFAULT_TIMEZONE = "Asia/Hong_Kong"


@dataclass(slots=True)
class Workspace:
    """A set of boards archived with one upstream token."""

    name: str
    token_env: str = DEFAULT_TOKEN_ENV
    boards: dict[str, list[str]] = field(default_factory=dict)

    def board_ids(self, environment: str | None = None) -> list[str]:
        """Board ids for one environment, or every known id when None."""
        if environment is not None:
            return list(self.boards.get(environment, []))
        seen: dict[str, None] = {}
        for env in ENVIRONMENTS:
            for board_id in self.boards.get(env, []):
                seen.setdefault(board_id, None)
        return list(seen)


@dataclass(slots=True)
class BoardTarget:
    """One board to archive and the token that can read it."""

    board_id: str
    workspace: str
    token: str


@dataclass(slots=True)
class Config:
    """Runtime configuration loaded from config.yaml."""

    api_url: str = MONDAY_API_URL
    api_version: str = "2024-10"
    data_dir: str = "data"
    fetch_concurrency: int = 10
    download_concurrency: int = 20
    max_attempts: int = 3
    timeout_sec: int = 120
    download_timeout_sec: int = 600
    delay_sec: float = 0.0
    backoff_sec: float = 1.0
    timezone: str = DEFAULT_TIMEZONE
    date_columns: tuple[str, ...] = DATE_COLUMNS
    workspaces: list[Workspace] = field(default_factory=list)

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    def workspace_of(self) -> dict[str, str]:
        """Map every configured board id to its workspace name."""
        mapping: dict[str, str] = {}
        for workspace in self.workspaces:
            for board_id in workspace.board_ids():
                mapping.setdefault(board_id, workspace.name)
        return mapping


def _parse_workspaces(raw: Any) -> list[Workspace]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise ConfigError("workspaces must be a mapping of name -> settings")

    workspaces: list[Workspace] = []
    for name, settings in raw.items():
        settings = settings or {}
        if not isinstance(settings, dict):
            raise ConfigError(f"workspace {name!r} must be a mapping")
        boards_raw = settings.get("boards") or {}
        if isinstance(boards_raw, list):
            boards_raw = {"prod": boards_raw}
        if not isinstance(boards_raw, dict):
            raise ConfigError(f"workspace {name!r}: boards must be a list or a mapping")
        boards = {str(env): [str(b) for b in ids or []] for env, ids in boards_raw.items()}
        workspaces.append(
            Workspace(
                name=str(name),
                token_env=str(settings.get("token_env", DEFAULT_TOKEN_ENV)),
                boards=boards,
            )
        )
    return workspaces


def parse_config(data: Any) -> Config:
    """Build a Config from a parsed YAML mapping, applying defaults."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError("config.yaml must be a mapping")

    try:
        return Config(
            api_url=str(data.get("api_url", MONDAY_API_URL)).rstrip("/"),
            api_version=str(data.get("api_version", "2024-10")),
            data_dir=str(data.get("data_dir", "data")),
            fetch_concurrency=max(1, int(data.get("fetch_concurrency", 10))),
            download_concurrency=max(1, int(data.get("download_concurrency", 20))),
            max_attempts=max(1, int(data.get("max_attempts", 3))),
            timeout_sec=int(data.get("timeout_sec", 120)),
            download_timeout_sec=int(data.get("download_timeout_sec", 600)),
            delay_sec=float(data.get("delay_sec", 0.0)),
            backoff_sec=float(data.get("backoff_sec", 1.0)),
            timezone=str(data.get("timezone", DEFAULT_TIMEZONE)),
            date_columns=tuple(str(c) for c in data.get("date_columns", DATE_COLUMNS)),
            workspaces=_parse_workspaces(data.get("workspaces")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid config value: {exc}") from exc


def load_config(config_path: Path) -> Config:
    """Load config.yaml and apply defaults for missing keys."""
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {config_path}: {exc}") from exc
    return parse_config(data)


def resolve_targets(
    config: Config,
    environment: str = "prod",
    environ: Mapping[str, str] | None = None,
) -> list[BoardTarget]:
    """List the boards of one environment with their tokens.

    A workspace token comes from its ``token_env`` variable, falling back to
    ``MONDAY_API_TOKEN``. Raises ConfigError if any selected board has no token.
    """
    if environ is None:
        environ = os.environ

    targets: list[BoardTarget] = []
    for workspace in config.workspaces:
        board_ids = workspace.board_ids(environment)
        if not board_ids:
            continue
        token = environ.get(workspace.token_env) or environ.get(DEFAULT_TOKEN_ENV, "")
        if not token:
            raise ConfigError(
                f"no API token for workspace {workspace.name!r}: "
                f"set {workspace.token_env} or {DEFAULT_TOKEN_ENV}"
            )
        targets.extend(BoardTarget(board_id, workspace.name, token) for board_id in board_ids)
    return targets
