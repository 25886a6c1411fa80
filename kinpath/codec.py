"""Wire encodings of RelationshipPath records.

Both codecs carry the same logical record:

- ``verbose``: one JSON-friendly dict with a field per attribute.
- ``compact``: one string ``root;target;flags;count;edges`` where ``flags``
  is a hex bit set and every edge is ``<kind><sub-kind><target>@<family>``
  (for example ``PB3@100``). Derived fields are recomputed on decode.
"""
from __future__ import annotations
from typing import Any, Dict, List

from .classify import classify
from .errors import ConfigError
from .models import (
    Edge, RelationshipPath,
    PARENT, CHILD, SPOUSE, BIOLOGICAL, ADOPTED, FOSTER, NONE,
)

FLAG_BLOOD = 1
FLAG_ANCESTOR = 2
FLAG_DESCENDANT = 4
FLAG_AMBIGUOUS = 8

_KIND_CODES = {PARENT: "P", CHILD: "C", SPOUSE: "S"}
_SUB_CODES = {BIOLOGICAL: "B", ADOPTED: "A", FOSTER: "F", NONE: "N"}
_KIND_NAMES = {v: k for k, v in _KIND_CODES.items()}
_SUB_NAMES = {v: k for k, v in _SUB_CODES.items()}


class VerboseCodec:
    name = "verbose"

    def encode(self, rec: RelationshipPath) -> Dict[str, Any]:
        return {
            "root_id": rec.root_id,
            "target_id": rec.target_id,
            "path": [e.to_dict() for e in rec.edges],
            "degree": rec.degree,
            "blood": rec.blood,
            "common_ancestor_id": rec.common_ancestor_id,
            "generations_up": rec.generations_up,
            "generations_down": rec.generations_down,
            "description": rec.description,
            "direct_ancestor": rec.direct_ancestor,
            "direct_descendant": rec.direct_descendant,
            "path_count": rec.path_count,
            "ambiguous": rec.ambiguous,
        }

    def decode(self, d: Dict[str, Any]) -> RelationshipPath:
        return RelationshipPath(
            root_id=int(d["root_id"]),
            target_id=int(d["target_id"]),
            edges=[Edge.from_dict(e) for e in d.get("path", [])],
            degree=int(d.get("degree", 0)),
            blood=bool(d.get("blood", True)),
            common_ancestor_id=d.get("common_ancestor_id"),
            generations_up=int(d.get("generations_up", 0)),
            generations_down=int(d.get("generations_down", 0)),
            description=d.get("description", ""),
            direct_ancestor=bool(d.get("direct_ancestor", False)),
            direct_descendant=bool(d.get("direct_descendant", False)),
            path_count=int(d.get("path_count", 1)),
            ambiguous=bool(d.get("ambiguous", False)),
        )


class CompactCodec:
    name = "compact"

    def encode(self, rec: RelationshipPath) -> str:
        flags = 0
        if rec.blood:
            flags |= FLAG_BLOOD
        if rec.direct_ancestor:
            flags |= FLAG_ANCESTOR
        if rec.direct_descendant:
            flags |= FLAG_DESCENDANT
        if rec.ambiguous:
            flags |= FLAG_AMBIGUOUS
        tokens = []
        for e in rec.edges:
            fam = "" if e.family_id is None else str(e.family_id)
            tokens.append(f"{_KIND_CODES[e.kind]}{_SUB_CODES[e.sub_kind]}{e.target}@{fam}")
        return f"{rec.root_id};{rec.target_id};{flags:x};{rec.path_count};{','.join(tokens)}"

    def decode(self, s: str) -> RelationshipPath:
        try:
            root_s, target_s, flags_s, count_s, edges_s = s.strip().split(";")
            root_id, target_id = int(root_s), int(target_s)
            flags = int(flags_s, 16)
            count = int(count_s)
            edges: List[Edge] = []
            source = root_id
            for tok in filter(None, edges_s.split(",")):
                kind, sub = _KIND_NAMES[tok[0]], _SUB_NAMES[tok[1]]
                target_txt, fam_txt = tok[2:].split("@")
                target = int(target_txt)
                blood = kind in (PARENT, CHILD) and sub == BIOLOGICAL
                edges.append(Edge(source, target, kind, sub, int(fam_txt) if fam_txt else None, blood))
                source = target
        except (ValueError, KeyError, IndexError) as exc:
            raise ValueError(f"malformed compact record: {s!r}") from exc
        rec = classify(root_id, target_id, edges)
        rec.path_count = count
        rec.ambiguous = bool(flags & FLAG_AMBIGUOUS)
        return rec


CODECS = {c.name: c for c in (VerboseCodec, CompactCodec)}


def get_codec(name: str):
    try:
        return CODECS[name]()
    except KeyError:
        raise ConfigError(f"unknown codec: {name!r} (expected one of {sorted(CODECS)})") from None
