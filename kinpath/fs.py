"""Filesystem helpers: JSON tree files and atomic writes.

A tree file is a JSON object:

    {"site": "1", "tree": "42",
     "individuals": [{"id": 1}, {"id": 3, "biological_family_id": 100}],
     "families": [{"id": 100, "husband_id": 1, "wife_id": 2}]}
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Iterable, List
import json
import os
import tempfile

from .models import TreeData


def ensure_dir(path: Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Write text to path through a temp file in the same dir and a rename."""
    path = Path(path)
    ensure_dir(path.parent)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp, str(path))
    finally:
        if Path(tmp).exists():
            Path(tmp).unlink()


def json_load(path: Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def json_save(path: Path, obj: Any) -> None:
    text = json.dumps(obj, ensure_ascii=False, indent=2)
    atomic_write_text(Path(path), text)


def read_tree_file(path: Path) -> TreeData:
    """Load one tree file; a missing site/tree defaults to '0' / the file stem."""
    data = json_load(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: a tree file must contain a JSON object")
    data.setdefault("site", "0")
    data.setdefault("tree", Path(path).stem)
    return TreeData.from_dict(data)


def read_tree_files(paths: Iterable[Path]) -> List[TreeData]:
    return [read_tree_file(Path(p)) for p in paths]


def write_tree_file(path: Path, tree: TreeData) -> None:
    json_save(path, tree.to_dict())
