"""Per-tree computation.

One tree is one self-contained unit of work: build the graph, select the
root, run a single BFS from it and classify every reachable individual. Trees
share no state, so compute_trees() can hand them to worker threads.

Pedigree collapse (several shortest paths of equal length) follows
``config.collapse_policy``:

- ``first``: one record per target, the first path in edge order;
- ``all``: one record per shortest path, up to ``config.max_alternatives``;
- ``ambiguous``: one record per target; targets with several shortest paths
  get the ``ambiguous`` outcome and their record is flagged.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional
import logging

from .classify import classify
from .config import Config
from .errors import EmptyTreeError
from .graph import build_graph
from .models import TreeData, TreeResult, FOUND, AMBIGUOUS
from .relationship import search_from_root
from .roots import root_selector_from_config


def compute_tree(tree: TreeData, config: Optional[Config] = None, selector=None) -> TreeResult:
    config = config or Config()
    selector = selector or root_selector_from_config(config)
    result = TreeResult(site=tree.site, tree=tree.tree)

    graph = build_graph(tree.individuals, tree.families)
    result.issues = list(graph.issues)
    try:
        root = selector.select(tree.site, tree.tree, tree.individuals)
    except EmptyTreeError as exc:
        logging.warning("skipping tree %s: %s", tree.key, exc)
        result.error = str(exc)
        return result
    result.root_id = root

    search = search_from_root(graph, root, max_depth=config.max_depth, max_visited=config.max_visited)
    for target in sorted(graph.nodes()):
        kind = search.outcome(target)
        if kind != FOUND:
            result.outcomes[target] = kind
            continue
        count = search.path_count(target)
        if config.collapse_policy == "all" and count > 1:
            paths = search.all_paths_to(target, config.max_alternatives)
        else:
            paths = [search.path_to(target) or []]
        ambiguous = config.collapse_policy == "ambiguous" and count > 1
        result.outcomes[target] = AMBIGUOUS if ambiguous else FOUND
        for edges in paths:
            rec = classify(root, target, edges)
            rec.path_count = count
            rec.ambiguous = ambiguous
            result.records.append(rec)

    logging.info(
        "tree %s: root=%s records=%d unreachable=%d limited=%d",
        tree.key, root, len(result.records),
        len(result.targets_with("no_path")), len(result.targets_with("limit_exceeded")),
    )
    return result


def compute_trees(trees: Iterable[TreeData], config: Optional[Config] = None) -> List[TreeResult]:
    """Compute many trees, in parallel when config.workers > 1; results keep input order."""
    config = config or Config()
    selector = root_selector_from_config(config)
    trees = list(trees)
    if config.workers <= 1 or len(trees) <= 1:
        return [compute_tree(t, config, selector) for t in trees]
    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        return list(pool.map(lambda t: compute_tree(t, config, selector), trees))
