"""Root selection policies.

Every path of a tree starts at one root individual. Selection is a pure
function of the tree's individuals (and, for the override table, of the
configuration), so repeated runs over the same input pick the same root.
"""
from __future__ import annotations
from typing import Dict, Iterable, Optional
import logging

from .errors import EmptyTreeError, ConfigError
from .models import Individual, tree_key


def lowest_id_root(individuals: Iterable[Individual], key: str = "") -> int:
    """Return the smallest individual id; raise EmptyTreeError for an empty tree."""
    ids = [i.id for i in individuals]
    if not ids:
        raise EmptyTreeError(key)
    return min(ids)


class LowestIdRootSelector:
    def select(self, site: str, tree: str, individuals: Iterable[Individual]) -> int:
        return lowest_id_root(individuals, tree_key(site, tree))


class OverrideTableRootSelector:
    """Pick the root from a ``"site:tree" -> id`` table, else the lowest id."""

    def __init__(self, overrides: Optional[Dict[str, int]] = None):
        self.overrides: Dict[str, int] = dict(overrides or {})

    def select(self, site: str, tree: str, individuals: Iterable[Individual]) -> int:
        people = list(individuals)
        key = tree_key(site, tree)
        if not people:
            raise EmptyTreeError(key)
        root = self.overrides.get(key)
        if root is None:
            return lowest_id_root(people, key)
        if not any(i.id == root for i in people):
            logging.warning("root override %s for tree %s is not in the tree; using lowest id", root, key)
            return lowest_id_root(people, key)
        return root


def root_selector_from_config(config) -> "LowestIdRootSelector | OverrideTableRootSelector":
    if config.root_policy == "lowest-id":
        return LowestIdRootSelector()
    if config.root_policy == "override-table":
        return OverrideTableRootSelector(config.root_overrides)
    raise ConfigError(f"unknown root policy: {config.root_policy!r}")
