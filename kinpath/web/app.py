from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pathlib import Path
from typing import Optional
import logging

from ..batch import compute_tree
from ..codec import get_codec
from ..config import load_config, Config
from ..cousins import describe
from ..errors import ConfigError
from ..models import TreeResult
from ..storage import Storage

app = FastAPI(title="kinpath")

# Ensure basic logging is configured so server logs at INFO are visible
logging.basicConfig(level=logging.INFO)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

# Config and Storage are created on first use, not at import time, so that
# importing the module never touches the filesystem.
_cfg: Optional[Config] = None
_storage: Optional[Storage] = None


def get_config() -> Config:
    global _cfg
    if _cfg is None:
        _cfg = load_config()
    return _cfg


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        cfg = get_config()
        _storage = Storage(cfg.db_file)
        logging.info("Storage opened at %s", str(cfg.db_file))
    return _storage


def configure(cfg: Optional[Config] = None, storage: Optional[Storage] = None) -> None:
    """Replace the config and storage used by the app (None resets to lazy loading)."""
    global _cfg, _storage
    _cfg = cfg
    _storage = storage


def _compute(site: str, tree: str) -> TreeResult:
    store = get_storage()
    if not store.has_tree(site, tree):
        raise HTTPException(status_code=404, detail="Tree not found")
    result = compute_tree(store.load_tree(site, tree), get_config())
    if not result.ok:
        raise HTTPException(status_code=422, detail=result.error)
    return result


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    trees = get_storage().trees()
    return templates.TemplateResponse(request, "index.html", {"trees": trees})


@app.get("/trees/{site}/{tree}", response_class=HTMLResponse)
def tree_page(request: Request, site: str, tree: str):
    result = _compute(site, tree)
    logging.info("tree_page requested for %s: %d records", result.key, len(result.records))
    return templates.TemplateResponse(request, "tree.html", {"result": result})


@app.get("/api/trees")
def api_trees():
    return [{"site": s, "tree": t} for s, t in get_storage().trees()]


@app.get("/api/trees/{site}/{tree}/paths")
def api_paths(site: str, tree: str, codec: Optional[str] = None):
    try:
        enc = get_codec(codec or get_config().codec)
    except ConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    result = _compute(site, tree)
    return {
        "site": result.site,
        "tree": result.tree,
        "root_id": result.root_id,
        "codec": enc.name,
        "records": [enc.encode(r) for r in result.records],
        "outcomes": {str(k): v for k, v in sorted(result.outcomes.items())},
        "issues": [i.to_dict() for i in result.issues],
    }


@app.get("/api/trees/{site}/{tree}/paths/{target}")
def api_path(site: str, tree: str, target: int):
    result = _compute(site, tree)
    if target not in result.outcomes:
        raise HTTPException(status_code=404, detail="Individual not found")
    enc = get_codec("verbose")
    return {
        "outcome": result.outcomes[target],
        "records": [enc.encode(r) for r in result.records if r.target_id == target],
    }


@app.get("/api/describe")
def api_describe(up: int, down: int):
    if up < 0 or down < 0:
        raise HTTPException(status_code=400, detail="up and down must be non-negative")
    return {"up": up, "down": down, "description": describe(up, down)}
