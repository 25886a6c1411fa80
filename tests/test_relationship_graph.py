from kinpath.graph import build_graph
from kinpath.models import Individual, Family, FOUND, NO_PATH, LIMIT_EXCEEDED
from kinpath.relationship import find_path, search_from_root, shortest_path, all_shortest_paths


def _chain(n=5):
    """1 -> 2 -> ... -> n, each a single-parent family, plus isolated n+1 and a couple n+2, n+3."""
    inds = [Individual(1)] + [Individual(i, biological_family_id=100 + i - 1) for i in range(2, n + 1)]
    fams = [Family(100 + i, husband_id=i) for i in range(1, n)]
    inds += [Individual(n + 1), Individual(n + 2), Individual(n + 3)]
    fams.append(Family(300, husband_id=n + 2, wife_id=n + 3))
    return build_graph(inds, fams)


def _collapse_tree(cousins_tree):
    """First cousins 16 and 17 marry (family 203) and have child 18."""
    inds = cousins_tree.individuals + [Individual(18, biological_family_id=203)]
    fams = cousins_tree.families + [Family(203, husband_id=16, wife_id=17)]
    return build_graph(inds, fams)


def _simple_path_lengths(graph, a, b):
    """Lengths of every simple path a -> b by exhaustive DFS."""
    out = []

    def dfs(node, seen, length):
        if node == b:
            out.append(length)
            return
        for e in graph.edges_from(node):
            if e.target not in seen:
                dfs(e.target, seen | {e.target}, length + 1)

    dfs(a, {a}, 0)
    return out


def test_self_path_is_empty(small_family):
    g = build_graph(small_family.individuals, small_family.families)
    res = find_path(g, 1, 1)
    assert res.kind == FOUND
    assert res.edges == []
    assert shortest_path(g, 3, 3) == (0, [3])


def test_parent_child(small_family):
    g = build_graph(small_family.individuals, small_family.families)
    dist, path = shortest_path(g, 1, 3)
    assert dist == 1
    assert path == [1, 3]


def test_siblings_tie_break_and_alternatives(small_family):
    g = build_graph(small_family.individuals, small_family.families)
    res = find_path(g, 3, 4)
    # father (husband, added first) wins the tie
    assert [(e.source, e.target) for e in res.edges] == [(3, 1), (1, 4)]
    assert res.path_count == 2
    assert all_shortest_paths(g, 3, 4) == [[3, 1, 4], [3, 2, 4]]


def test_tie_break_is_stable(cousins_tree):
    g = build_graph(cousins_tree.individuals, cousins_tree.families)
    first = find_path(g, 16, 17).edges
    for _ in range(5):
        assert find_path(build_graph(cousins_tree.individuals, cousins_tree.families), 16, 17).edges == first


def test_unrelated_is_no_path(small_family):
    g = build_graph(small_family.individuals, small_family.families)
    res = find_path(g, 1, 5)
    assert res.kind == NO_PATH
    assert shortest_path(g, 1, 5) == (None, [])
    assert all_shortest_paths(g, 1, 5) == []


def test_unknown_ids_are_no_path(small_family):
    g = build_graph(small_family.individuals, small_family.families)
    assert find_path(g, 1, 99).kind == NO_PATH
    assert find_path(g, 99, 1).kind == NO_PATH


def test_bfs_is_shortest(cousins_tree):
    g = _collapse_tree(cousins_tree)
    ids = sorted(g.nodes())
    for a in ids:
        tree = search_from_root(g, a)
        for b in ids:
            lengths = _simple_path_lengths(g, a, b)
            path = tree.path_to(b)
            if not lengths:
                assert path is None
                continue
            assert len(path) == min(lengths)
            # the same answer from the single-target search
            assert len(find_path(g, a, b).edges) == min(lengths)


def test_single_pass_matches_single_target(cousins_tree):
    g = _collapse_tree(cousins_tree)
    tree = search_from_root(g, 18)
    for target in g.nodes():
        assert tree.path_to(target) == find_path(g, 18, target).edges


def test_pedigree_collapse_alternatives(cousins_tree):
    g = _collapse_tree(cousins_tree)
    tree = search_from_root(g, 18)
    assert tree.path_count(10) == 2
    paths = tree.all_paths_to(10)
    assert [[e.target for e in p] for p in paths] == [[16, 12, 10], [17, 14, 10]]
    assert paths[0] == tree.path_to(10)
    assert tree.all_paths_to(10, max_paths=1) == [paths[0]]


def test_max_depth_bound():
    g = _chain(5)
    tree = search_from_root(g, 1, max_depth=2)
    assert tree.outcome(3) == FOUND
    assert tree.outcome(4) == LIMIT_EXCEEDED
    assert tree.outcome(5) == LIMIT_EXCEEDED
    # an individual without edges is never a limit problem
    assert tree.outcome(6) == NO_PATH
    # nor is a couple in another component
    assert tree.outcome(7) == NO_PATH
    assert tree.outcome(8) == NO_PATH
    assert find_path(g, 1, 7, max_depth=2).kind == NO_PATH
    assert find_path(g, 1, 5, max_depth=2).kind == LIMIT_EXCEEDED
    assert find_path(g, 1, 5, max_depth=4).kind == FOUND


def test_max_visited_bound():
    g = _chain(5)
    tree = search_from_root(g, 1, max_visited=3)
    assert tree.reached() == [1, 2, 3]
    assert tree.outcome(4) == LIMIT_EXCEEDED
    assert find_path(g, 1, 5, max_visited=3).kind == LIMIT_EXCEEDED
    assert tree.outcome(7) == NO_PATH
    assert find_path(g, 1, 8, max_visited=3).kind == NO_PATH


def test_complete_search_reports_no_path_for_other_components():
    g = _chain(5)
    tree = search_from_root(g, 1, max_depth=10)
    assert not tree.truncated
    assert tree.outcome(7) == NO_PATH
    assert tree.outcome(8) == NO_PATH


def test_reversed_blood_path_is_valid(cousins_tree):
    g = build_graph(cousins_tree.individuals, cousins_tree.families)
    edges = find_path(g, 16, 17).edges
    assert all(e.blood for e in edges)
    back = [e.reversed() for e in reversed(edges)]
    assert back[0].source == 17 and back[-1].target == 16
    for e in back:
        assert e in g.edges_from(e.source)
    assert all(e.blood for e in back)


def test_components_ignore_edge_direction():
    g = _chain(5)
    assert g.component(5) == g.component(1) == 1
    assert g.component(6) == 6
    assert g.component(7) == g.component(8) == 7
    assert g.component(99) is None


def test_all_paths_on_a_very_long_chain():
    inds = [Individual(1)] + [Individual(i, biological_family_id=10000 + i - 1) for i in range(2, 1501)]
    g = build_graph(inds, [Family(10000 + i, husband_id=i) for i in range(1, 1500)])
    tree = search_from_root(g, 1)
    paths = tree.all_paths_to(1500)
    assert len(paths) == 1
    assert len(paths[0]) == 1499
    assert paths[0] == tree.path_to(1500)
