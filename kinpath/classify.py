"""Relationship classification of a found path.

classify(root_id, target_id, edges) walks the path once and derives the
blood flag, generations up/down, the common ancestor and the description.

Only biological parent/child edges move the up/down counters: a ``child``
edge climbs to a parent, a ``parent`` edge descends to a child. Spouse,
adopted and foster edges are kept in the path and clear the blood flag.
The description uses every parent/child edge so that, for example, an
adopted child's sibling reads "sibling by adoption".
"""
from __future__ import annotations
from typing import List, Optional, Sequence

from .cousins import describe
from .models import (
    Edge, RelationshipPath,
    PARENT, CHILD, SPOUSE, ADOPTED, FOSTER, NONE,
)

_DIRECT_LABELS = {
    (SPOUSE, NONE): "spouse",
    (CHILD, ADOPTED): "adoptive parent",
    (PARENT, ADOPTED): "adopted child",
    (CHILD, FOSTER): "foster parent",
    (PARENT, FOSTER): "foster child",
}


def _qualifier(edges: Sequence[Edge]) -> str:
    words: List[str] = []
    for e in edges:
        if e.kind == SPOUSE:
            w = "marriage"
        elif e.sub_kind == ADOPTED:
            w = "adoption"
        elif e.sub_kind == FOSTER:
            w = "fostering"
        else:
            continue
        if w not in words:
            words.append(w)
    return " and ".join(words)


def _common_ancestor(root_id: int, edges: Sequence[Edge]) -> Optional[int]:
    """Return the apex of a path that only rises then only falls, else None."""
    apex: Optional[int] = None
    node = root_id
    rising = True
    for e in edges:
        if e.kind == CHILD:
            if not rising:
                return None
        elif e.kind == PARENT:
            if rising:
                apex = node
                rising = False
        else:
            return None
        node = e.target
    return apex if not rising else None


def describe_path(edges: Sequence[Edge]) -> str:
    if not edges:
        return "self"
    if len(edges) == 1:
        e = edges[0]
        direct = _DIRECT_LABELS.get((e.kind, e.sub_kind))
        if direct:
            return direct
    up = sum(1 for e in edges if e.kind == CHILD)
    down = sum(1 for e in edges if e.kind == PARENT)
    qual = _qualifier(edges)
    if not qual:
        return describe(up, down)
    base = "relative" if up == 0 and down == 0 else describe(up, down)
    return f"{base} by {qual}"


def classify(root_id: int, target_id: int, edges: Sequence[Edge]) -> RelationshipPath:
    edges = list(edges)
    if edges and (edges[0].source != root_id or edges[-1].target != target_id):
        raise ValueError(f"path does not connect {root_id} to {target_id}")

    blood = all(e.blood for e in edges)
    up = sum(1 for e in edges if e.blood and e.kind == CHILD)
    down = sum(1 for e in edges if e.blood and e.kind == PARENT)
    ancestor = _common_ancestor(root_id, edges) if blood and up and down else None

    return RelationshipPath(
        root_id=root_id,
        target_id=target_id,
        edges=edges,
        degree=len(edges),
        blood=blood,
        common_ancestor_id=ancestor,
        generations_up=up,
        generations_down=down,
        description=describe_path(edges),
        direct_ancestor=up > 0 and down == 0,
        direct_descendant=up == 0 and down > 0,
    )
