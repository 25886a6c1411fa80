"""Relationship graph traversal.

Shortest relationship paths over a :class:`~kinpath.graph.Graph`. All edges
have weight 1. Parent and child edges both exist explicitly, so a plain
directed BFS explores the family graph in every direction.

API:
    find_path(graph, root, target, max_depth=None, max_visited=None) -> PathResult
    search_from_root(graph, root, max_depth=None, max_visited=None) -> SearchTree
    shortest_path(graph, a_id, b_id, max_depth=None) -> (distance, ids)
    all_shortest_paths(graph, a_id, b_id, max_paths=100, max_depth=None) -> List[ids]

Each individual is enqueued at most once and keeps the first edge that
reached it, so ties between equal-length paths are broken by edge order (see
:mod:`kinpath.graph`). Other edges reaching a node at the same shortest level
are kept as alternatives so pedigree collapse can be reported.

``max_depth`` bounds the path length in edges and ``max_visited`` the number
of individuals discovered. A target the bounded search did not reach is
``limit_exceeded`` when the bound actually cut the search short and the
target shares a connected component with the root, and ``no_path``
otherwise.
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .graph import Graph
from .models import Edge, FOUND, NO_PATH, LIMIT_EXCEEDED


@dataclass
class PathResult:
    kind: str
    edges: List[Edge] = field(default_factory=list)
    path_count: int = 0

    @property
    def found(self) -> bool:
        return self.kind == FOUND


class SearchTree:
    """Result of one BFS from a root: answers path queries for any target."""

    def __init__(self, graph: Graph, root: int, depth: Dict[int, int], preds: Dict[int, List[Edge]], order: List[int], truncated: bool):
        self.graph = graph
        self.root = root
        self.depth = depth
        self.preds = preds
        self.order = order
        self.truncated = truncated
        self._counts: Optional[Dict[int, int]] = None

    def reached(self) -> List[int]:
        """Ids discovered by the search, in discovery order (root first)."""
        return list(self.order)

    def outcome(self, target: int) -> str:
        if target in self.depth:
            return FOUND
        if target not in self.graph or not self.truncated:
            return NO_PATH
        # targets in another component are disconnected whatever the bounds
        if self.graph.component(target) != self.graph.component(self.root):
            return NO_PATH
        return LIMIT_EXCEEDED

    def path_to(self, target: int) -> Optional[List[Edge]]:
        """Return the first shortest path root -> target, or None when not reached."""
        if target not in self.depth:
            return None
        edges: List[Edge] = []
        node = target
        while node != self.root:
            e = self.preds[node][0]
            edges.append(e)
            node = e.source
        edges.reverse()
        return edges

    def all_paths_to(self, target: int, max_paths: int = 100) -> List[List[Edge]]:
        """Return up to max_paths shortest paths, the first one equal to path_to()."""
        if target not in self.depth:
            return []
        paths: List[List[Edge]] = []
        # explicit stack of (node, edges from node to target); pushed in reverse so
        # alternatives pop in discovery order
        stack: List[Tuple[int, List[Edge]]] = [(target, [])]
        while stack and len(paths) < max_paths:
            node, acc = stack.pop()
            if node == self.root:
                paths.append(list(reversed(acc)))
                continue
            for e in reversed(self.preds[node]):
                stack.append((e.source, acc + [e]))
        return paths

    def path_count(self, target: int) -> int:
        """Number of distinct shortest paths root -> target (0 when not reached)."""
        if self._counts is None:
            counts: Dict[int, int] = {self.root: 1}
            # discovery order is level order, so every predecessor is counted first
            for node in self.order[1:]:
                counts[node] = sum(counts.get(e.source, 0) for e in self.preds[node])
            self._counts = counts
        return self._counts.get(target, 0)

    def result(self, target: int) -> PathResult:
        kind = self.outcome(target)
        if kind != FOUND:
            return PathResult(kind)
        return PathResult(FOUND, self.path_to(target) or [], self.path_count(target))


def _bfs(graph: Graph, root: int, max_depth: Optional[int], max_visited: Optional[int], stop_at: Optional[int] = None) -> SearchTree:
    depth: Dict[int, int] = {root: 0}
    preds: Dict[int, List[Edge]] = {root: []}
    order: List[int] = [root]
    truncated = False
    found_level: Optional[int] = None

    q = deque([root])
    while q:
        cur = q.popleft()
        cur_depth = depth[cur]
        if found_level is not None and cur_depth >= found_level:
            # remaining nodes cannot lie on a shortest path to the target
            break
        for e in graph.edges_from(cur):
            nb = e.target
            if nb in depth:
                # another edge reaching nb at its shortest level
                if depth[nb] == cur_depth + 1:
                    preds[nb].append(e)
                continue
            if max_depth is not None and cur_depth >= max_depth:
                truncated = True
                continue
            if max_visited is not None and len(depth) >= max_visited:
                truncated = True
                continue
            depth[nb] = cur_depth + 1
            preds[nb] = [e]
            order.append(nb)
            if nb == stop_at:
                found_level = cur_depth + 1
            else:
                q.append(nb)

    return SearchTree(graph, root, depth, preds, order, truncated)


def search_from_root(graph: Graph, root: int, max_depth: Optional[int] = None, max_visited: Optional[int] = None) -> SearchTree:
    """Single BFS from root that runs until the queue is empty or a bound stops it."""
    if root not in graph:
        raise KeyError(f"root {root} is not in the graph")
    return _bfs(graph, root, max_depth, max_visited)


def find_path(graph: Graph, root: int, target: int, max_depth: Optional[int] = None, max_visited: Optional[int] = None) -> PathResult:
    """Return the shortest path root -> target.

    root == target yields an empty FOUND path without traversal. Unknown ids
    yield NO_PATH.
    """
    if root == target and root in graph:
        return PathResult(FOUND, [], 1)
    if root not in graph or target not in graph:
        return PathResult(NO_PATH)
    tree = _bfs(graph, root, max_depth, max_visited, stop_at=target)
    return tree.result(target)


def shortest_path(graph: Graph, a_id: int, b_id: int, max_depth: Optional[int] = None) -> Tuple[Optional[int], List[int]]:
    """Return (distance, ids) for one shortest path, or (None, []) when there is none."""
    res = find_path(graph, a_id, b_id, max_depth=max_depth)
    if not res.found:
        return None, []
    return len(res.edges), [a_id] + [e.target for e in res.edges]


def all_shortest_paths(graph: Graph, a_id: int, b_id: int, max_paths: int = 100, max_depth: Optional[int] = None) -> List[List[int]]:
    """Return up to max_paths shortest paths a -> b as id lists."""
    if a_id == b_id:
        return [[a_id]] if a_id in graph else []
    if a_id not in graph or b_id not in graph:
        return []
    tree = _bfs(graph, a_id, max_depth, None, stop_at=b_id)
    return [[a_id] + [e.target for e in p] for p in tree.all_paths_to(b_id, max_paths)]
