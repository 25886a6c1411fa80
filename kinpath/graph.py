"""Family graph construction.

Builds an adjacency structure over individual ids from flat individual and
family records. Edges reference ids, never objects, so pedigree collapse and
spouse/parent cycles need no special handling.

Edge order is fixed and is the tie-break order used by the path finder:

1. families in ascending id: spouse edge husband -> wife, then wife -> husband;
2. individuals in ascending id, each child-in-family reference in the order
   biological, adopted, foster; for each parent (husband, then wife) the
   parent -> child edge is added, then the child -> parent edge.

API:
    build_graph(individuals, families) -> Graph
    Graph.component(pid) -> connected-component label
"""
from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Optional
import logging

from .models import (
    Individual, Family, Edge, DataIssue,
    PARENT, CHILD, SPOUSE, BIOLOGICAL, NONE,
)


class Graph:
    """Read-only mapping individual id -> outgoing edges (in insertion order)."""

    def __init__(self) -> None:
        self._adj: Dict[int, List[Edge]] = {}
        self._components: Optional[Dict[int, int]] = None
        self.issues: List[DataIssue] = []

    def add_node(self, pid: int) -> None:
        self._adj.setdefault(pid, [])
        self._components = None

    def add_edge(self, edge: Edge) -> None:
        if edge.source not in self._adj or edge.target not in self._adj:
            raise KeyError(f"edge {edge.source}->{edge.target} references an unknown individual")
        self._adj[edge.source].append(edge)
        self._components = None

    def component(self, pid: int) -> Optional[int]:
        """Connected-component label of pid, ignoring edge direction (None for unknown ids).

        Labels are the lowest id of each component, computed once for all
        nodes and cached until the graph changes.
        """
        if self._components is None:
            self._components = _label_components(self)
        return self._components.get(pid)

    def edges_from(self, pid: int) -> List[Edge]:
        return self._adj.get(pid, [])

    def nodes(self) -> List[int]:
        return list(self._adj)

    def edges(self) -> Iterator[Edge]:
        for out in self._adj.values():
            yield from out

    def edge_count(self) -> int:
        return sum(len(out) for out in self._adj.values())

    def __contains__(self, pid: object) -> bool:
        return pid in self._adj

    def __len__(self) -> int:
        return len(self._adj)


def _label_components(graph: Graph) -> Dict[int, int]:
    neighbours: Dict[int, List[int]] = {pid: [] for pid in graph.nodes()}
    for e in graph.edges():
        neighbours[e.source].append(e.target)
        neighbours[e.target].append(e.source)
    labels: Dict[int, int] = {}
    for start in sorted(neighbours):
        if start in labels:
            continue
        labels[start] = start
        stack = [start]
        while stack:
            cur = stack.pop()
            for nb in neighbours[cur]:
                if nb not in labels:
                    labels[nb] = start
                    stack.append(nb)
    return labels


def _warn(graph: Graph, issue: DataIssue) -> None:
    graph.issues.append(issue)
    logging.warning("data quality: %s", issue)


def _add_pair(graph: Graph, parent_id: int, child_id: int, sub_kind: str, family_id: int) -> None:
    blood = sub_kind == BIOLOGICAL
    graph.add_edge(Edge(parent_id, child_id, PARENT, sub_kind, family_id, blood))
    graph.add_edge(Edge(child_id, parent_id, CHILD, sub_kind, family_id, blood))


def _member(graph: Graph, fam: Family, pid: Optional[int]) -> Optional[int]:
    """Return pid when it is a usable family member, recording a warning when it is dangling."""
    if pid is None:
        return None
    if pid not in graph:
        _warn(graph, DataIssue(
            severity="warning",
            category="dangling_member",
            message=f"family {fam.id} names individual {pid} which is not in the tree",
            family_id=fam.id,
        ))
        return None
    return pid


def build_graph(individuals: Iterable[Individual], families: Iterable[Family]) -> Graph:
    """Build the family graph of one tree.

    A child-in-family reference to a family that does not exist is skipped and
    recorded in ``graph.issues``; it never aborts the build.
    """
    graph = Graph()
    people = sorted(individuals, key=lambda i: i.id)
    for ind in people:
        graph.add_node(ind.id)

    fam_index: Dict[int, Family] = {}
    for fam in sorted(families, key=lambda f: f.id):
        fam_index[fam.id] = fam

    # spouse edges, once per family
    spouses: Dict[int, tuple] = {}
    for fid, fam in fam_index.items():
        husband = _member(graph, fam, fam.husband_id)
        wife = _member(graph, fam, fam.wife_id)
        spouses[fid] = (husband, wife)
        if husband is not None and wife is not None:
            graph.add_edge(Edge(husband, wife, SPOUSE, NONE, fid, False))
            graph.add_edge(Edge(wife, husband, SPOUSE, NONE, fid, False))

    for ind in people:
        for ref_kind, fid in ind.child_refs():
            if fid not in fam_index:
                _warn(graph, DataIssue(
                    severity="warning",
                    category="dangling_family",
                    message=f"{ref_kind} child-in-family reference to missing family {fid}",
                    individual_id=ind.id,
                    family_id=fid,
                ))
                continue
            for parent_id in spouses[fid]:
                if parent_id is None:
                    continue
                if parent_id == ind.id:
                    _warn(graph, DataIssue(
                        severity="warning",
                        category="self_parent",
                        message=f"individual is recorded as a parent in its own family {fid}",
                        individual_id=ind.id,
                        family_id=fid,
                    ))
                    continue
                _add_pair(graph, parent_id, ind.id, ref_kind, fid)

    logging.info("graph built: %d individuals, %d edges, %d issues", len(graph), graph.edge_count(), len(graph.issues))
    return graph
