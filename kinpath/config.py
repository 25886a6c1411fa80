"""Configuration loader for kinpath.

Behavior:
- Load defaults.
- If a path is given (or environment variable `KINPATH_CONFIG` is set), load
  that JSON file and merge.
- Environment variables override file values when no explicit path was passed
  (variables: KINPATH_DB_FILE, KINPATH_ROOT_POLICY, KINPATH_OVERRIDES_FILE,
  KINPATH_MAX_DEPTH, KINPATH_MAX_VISITED, KINPATH_COLLAPSE_POLICY,
  KINPATH_WORKERS).

Root overrides come from the ``root_overrides`` mapping (``"site:tree"`` ->
individual id) and from an optional CSV override source with the columns
``site,tree,root_id``; CSV rows win over the mapping.

Any malformed value raises ConfigError here, at startup, never while a tree
is being computed.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import csv
import json
import os

from .errors import ConfigError

ROOT_POLICIES = ("lowest-id", "override-table")
COLLAPSE_POLICIES = ("first", "all", "ambiguous")


@dataclass
class Config:
    db_file: Path = Path("data") / "kinpath.db"
    root_policy: str = "lowest-id"
    root_overrides: Dict[str, int] = field(default_factory=dict)
    overrides_file: Optional[Path] = None
    max_depth: Optional[int] = 64
    max_visited: Optional[int] = None
    collapse_policy: str = "first"
    max_alternatives: int = 100
    workers: int = 1
    codec: str = "verbose"


def _load_json_file(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")
    return data


def _as_bound(name: str, value: Any) -> Optional[int]:
    """Parse an optional positive integer bound; None/"" mean unbounded."""
    if value is None or value == "":
        return None
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if isinstance(value, bool) or n <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return n


def _as_root_id(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"root override {key} must be numeric, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigError(f"root override {key} must be numeric, got {value!r}") from None


def _parse_overrides(data: Any) -> Dict[str, int]:
    if not isinstance(data, dict):
        raise ConfigError("root_overrides must be an object mapping 'site:tree' to an id")
    out: Dict[str, int] = {}
    for key, value in data.items():
        if ":" not in str(key):
            raise ConfigError(f"root override key {key!r} must look like 'site:tree'")
        out[str(key)] = _as_root_id(key, value)
    return out


def load_overrides_file(path: Path) -> Dict[str, int]:
    """Read a CSV override source with the columns site, tree, root_id."""
    out: Dict[str, int] = {}
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            missing = {"site", "tree", "root_id"} - set(reader.fieldnames or [])
            if missing:
                raise ConfigError(f"override file {path} lacks columns: {', '.join(sorted(missing))}")
            for row in reader:
                key = f"{row['site'].strip()}:{row['tree'].strip()}"
                out[key] = _as_root_id(key, row["root_id"])
    except OSError as exc:
        raise ConfigError(f"cannot read override file {path}: {exc}") from exc
    return out


def _apply(cfg: Config, data: Dict[str, Any]) -> None:
    if data.get("db_file"):
        cfg.db_file = Path(data["db_file"])
    if data.get("root_policy"):
        cfg.root_policy = str(data["root_policy"])
    if "root_overrides" in data:
        cfg.root_overrides = _parse_overrides(data["root_overrides"] or {})
    if data.get("overrides_file"):
        cfg.overrides_file = Path(data["overrides_file"])
    if "max_depth" in data:
        cfg.max_depth = _as_bound("max_depth", data["max_depth"])
    if "max_visited" in data:
        cfg.max_visited = _as_bound("max_visited", data["max_visited"])
    if data.get("collapse_policy"):
        cfg.collapse_policy = str(data["collapse_policy"])
    if "max_alternatives" in data:
        cfg.max_alternatives = _as_bound("max_alternatives", data["max_alternatives"]) or cfg.max_alternatives
    if "workers" in data:
        cfg.workers = _as_bound("workers", data["workers"]) or cfg.workers
    if data.get("codec"):
        cfg.codec = str(data["codec"])


def _validate(cfg: Config) -> None:
    if cfg.root_policy not in ROOT_POLICIES:
        raise ConfigError(f"root_policy must be one of {ROOT_POLICIES}, got {cfg.root_policy!r}")
    if cfg.collapse_policy not in COLLAPSE_POLICIES:
        raise ConfigError(f"collapse_policy must be one of {COLLAPSE_POLICIES}, got {cfg.collapse_policy!r}")
    if cfg.codec not in ("verbose", "compact"):
        raise ConfigError(f"codec must be 'verbose' or 'compact', got {cfg.codec!r}")


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from (1) defaults, (2) JSON file, (3) env vars.

    :param config_path: optional path to a JSON config file. If not provided
                        will use environment variable `KINPATH_CONFIG` if set.
    :raises ConfigError: on any malformed value.
    """
    cfg = Config()

    cp = config_path or os.environ.get("KINPATH_CONFIG")
    if cp:
        _apply(cfg, _load_json_file(Path(cp)))

    # an explicit config_path is authoritative: env variables only apply
    # when the caller did not pass one
    if config_path is None:
        env = {
            "db_file": os.environ.get("KINPATH_DB_FILE"),
            "root_policy": os.environ.get("KINPATH_ROOT_POLICY"),
            "overrides_file": os.environ.get("KINPATH_OVERRIDES_FILE"),
            "collapse_policy": os.environ.get("KINPATH_COLLAPSE_POLICY"),
        }
        for name, var in (("max_depth", "KINPATH_MAX_DEPTH"), ("max_visited", "KINPATH_MAX_VISITED"), ("workers", "KINPATH_WORKERS")):
            if os.environ.get(var) is not None:
                env[name] = os.environ[var]
        _apply(cfg, {k: v for k, v in env.items() if v is not None})

    if cfg.overrides_file is not None:
        cfg.root_overrides.update(load_overrides_file(cfg.overrides_file))

    _validate(cfg)
    return cfg
