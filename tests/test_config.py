import json
from pathlib import Path

import pytest

from kinpath.config import load_config, Config, load_overrides_file
from kinpath.errors import ConfigError


def test_defaults(monkeypatch):
    for var in ("KINPATH_CONFIG", "KINPATH_DB_FILE", "KINPATH_ROOT_POLICY", "KINPATH_OVERRIDES_FILE",
                "KINPATH_MAX_DEPTH", "KINPATH_MAX_VISITED", "KINPATH_COLLAPSE_POLICY", "KINPATH_WORKERS"):
        monkeypatch.delenv(var, raising=False)
    cfg = load_config(None)
    assert cfg == Config()


def test_load_config_from_file(tmp_path):
    cfgfile = tmp_path / "cfg.json"
    data = {
        "db_file": "trees.db",
        "root_policy": "override-table",
        "root_overrides": {"1:7": "3"},
        "max_depth": 12,
        "max_visited": 5000,
        "collapse_policy": "all",
        "workers": 4,
        "codec": "compact",
    }
    cfgfile.write_text(json.dumps(data))
    cfg = load_config(str(cfgfile))
    assert cfg.db_file == Path("trees.db")
    assert cfg.root_policy == "override-table"
    assert cfg.root_overrides == {"1:7": 3}
    assert cfg.max_depth == 12
    assert cfg.max_visited == 5000
    assert cfg.collapse_policy == "all"
    assert cfg.workers == 4
    assert cfg.codec == "compact"


def test_explicit_file_ignores_env(tmp_path, monkeypatch):
    cfgfile = tmp_path / "cfg.json"
    cfgfile.write_text(json.dumps({"max_depth": 3}))
    monkeypatch.setenv("KINPATH_MAX_DEPTH", "9")
    assert load_config(str(cfgfile)).max_depth == 3


def test_env_overrides(monkeypatch):
    monkeypatch.delenv("KINPATH_CONFIG", raising=False)
    monkeypatch.setenv("KINPATH_DB_FILE", "envdata/k.db")
    monkeypatch.setenv("KINPATH_MAX_DEPTH", "")
    monkeypatch.setenv("KINPATH_MAX_VISITED", "100")
    monkeypatch.setenv("KINPATH_COLLAPSE_POLICY", "ambiguous")
    cfg = load_config(None)
    assert cfg.db_file == Path("envdata/k.db")
    assert cfg.max_depth is None
    assert cfg.max_visited == 100
    assert cfg.collapse_policy == "ambiguous"


def test_overrides_file(tmp_path):
    csvfile = tmp_path / "roots.csv"
    csvfile.write_text("site,tree,root_id\n1,7,4\n2,9,11\n")
    assert load_overrides_file(csvfile) == {"1:7": 4, "2:9": 11}

    cfgfile = tmp_path / "cfg.json"
    cfgfile.write_text(json.dumps({"root_policy": "override-table", "root_overrides": {"1:7": 2, "3:3": 5}, "overrides_file": str(csvfile)}))
    cfg = load_config(str(cfgfile))
    assert cfg.root_overrides == {"1:7": 4, "2:9": 11, "3:3": 5}


@pytest.mark.parametrize("data", [
    {"root_overrides": {"1:7": "abc"}},
    {"root_overrides": {"nocolon": 3}},
    {"root_overrides": [1, 2]},
    {"root_policy": "random"},
    {"collapse_policy": "newest"},
    {"max_depth": "deep"},
    {"max_visited": 0},
    {"codec": "xml"},
])
def test_malformed_config_is_fatal(tmp_path, data):
    cfgfile = tmp_path / "cfg.json"
    cfgfile.write_text(json.dumps(data))
    with pytest.raises(ConfigError):
        load_config(str(cfgfile))


def test_unreadable_files_are_fatal(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.json"))
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(str(bad))
    csvfile = tmp_path / "roots.csv"
    csvfile.write_text("site,tree,root_id\n1,7,x\n")
    with pytest.raises(ConfigError):
        load_overrides_file(csvfile)
    with pytest.raises(ConfigError):
        load_overrides_file(tmp_path / "nope.csv")
