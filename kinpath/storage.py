"""Storage layer backed by SQLite.

Holds the inputs of many trees (individuals and families keyed by site and
tree) and the relationship paths computed for them. The database lives in a
single file; the connection may be shared by worker threads, so writes are
serialised with a lock.

Reads return records in ascending id order, which is the documented edge
order of the graph builder.
"""
from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import sqlite3
import threading

from .codec import CompactCodec
from .models import Individual, Family, RelationshipPath, TreeData, TreeResult


class Storage:
    def __init__(self, db_file: Path) -> None:
        self.db_file = Path(db_file)
        self.db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(self.db_file), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_tables()

    def _ensure_tables(self) -> None:
        with self._lock:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS individuals(
                    site TEXT NOT NULL,
                    tree TEXT NOT NULL,
                    id INTEGER NOT NULL,
                    biological_family_id INTEGER,
                    adopted_family_id INTEGER,
                    foster_family_id INTEGER,
                    PRIMARY KEY (site, tree, id)
                );
                CREATE TABLE IF NOT EXISTS families(
                    site TEXT NOT NULL,
                    tree TEXT NOT NULL,
                    id INTEGER NOT NULL,
                    husband_id INTEGER,
                    wife_id INTEGER,
                    PRIMARY KEY (site, tree, id)
                );
                CREATE TABLE IF NOT EXISTS relationship_paths(
                    site TEXT NOT NULL,
                    tree TEXT NOT NULL,
                    root_id INTEGER NOT NULL,
                    target_id INTEGER NOT NULL,
                    alternative INTEGER NOT NULL DEFAULT 0,
                    degree INTEGER NOT NULL,
                    description TEXT NOT NULL,
                    record TEXT NOT NULL,
                    PRIMARY KEY (site, tree, root_id, target_id, alternative)
                );
                """
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # inputs

    def add_individual(self, site: str, tree: str, ind: Individual) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO individuals(site, tree, id, biological_family_id, adopted_family_id, foster_family_id) VALUES (?, ?, ?, ?, ?, ?)",
                (site, tree, ind.id, ind.biological_family_id, ind.adopted_family_id, ind.foster_family_id),
            )
            self._conn.commit()

    def add_family(self, site: str, tree: str, fam: Family) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO families(site, tree, id, husband_id, wife_id) VALUES (?, ?, ?, ?, ?)",
                (site, tree, fam.id, fam.husband_id, fam.wife_id),
            )
            self._conn.commit()

    def save_tree(self, tree: TreeData) -> None:
        """Replace the stored inputs of tree.site/tree.tree with tree's records."""
        with self._lock:
            cur = self._conn.cursor()
            cur.execute("DELETE FROM individuals WHERE site = ? AND tree = ?", (tree.site, tree.tree))
            cur.execute("DELETE FROM families WHERE site = ? AND tree = ?", (tree.site, tree.tree))
            cur.executemany(
                "INSERT INTO individuals(site, tree, id, biological_family_id, adopted_family_id, foster_family_id) VALUES (?, ?, ?, ?, ?, ?)",
                [(tree.site, tree.tree, i.id, i.biological_family_id, i.adopted_family_id, i.foster_family_id) for i in tree.individuals],
            )
            cur.executemany(
                "INSERT INTO families(site, tree, id, husband_id, wife_id) VALUES (?, ?, ?, ?, ?)",
                [(tree.site, tree.tree, f.id, f.husband_id, f.wife_id) for f in tree.families],
            )
            self._conn.commit()

    def trees(self) -> List[Tuple[str, str]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT site, tree FROM individuals UNION SELECT site, tree FROM families ORDER BY site, tree"
            ).fetchall()
        return [(r["site"], r["tree"]) for r in rows]

    def has_tree(self, site: str, tree: str) -> bool:
        return (site, tree) in self.trees()

    def load_tree(self, site: str, tree: str) -> TreeData:
        with self._lock:
            irows = self._conn.execute(
                "SELECT id, biological_family_id, adopted_family_id, foster_family_id FROM individuals WHERE site = ? AND tree = ? ORDER BY id",
                (site, tree),
            ).fetchall()
            frows = self._conn.execute(
                "SELECT id, husband_id, wife_id FROM families WHERE site = ? AND tree = ? ORDER BY id",
                (site, tree),
            ).fetchall()
        individuals = [Individual.from_dict(dict(r)) for r in irows]
        families = [Family.from_dict(dict(r)) for r in frows]
        return TreeData(site=site, tree=tree, individuals=individuals, families=families)

    def load_trees(self, keys: Optional[Iterable[Tuple[str, str]]] = None) -> List[TreeData]:
        return [self.load_tree(site, tree) for site, tree in (keys if keys is not None else self.trees())]

    # outputs

    def save_result(self, result: TreeResult) -> int:
        """Replace the stored paths of result's tree; return the number of rows written."""
        codec = CompactCodec()
        rows = []
        seen = {}
        for rec in result.records:
            alt = seen.get(rec.target_id, 0)
            seen[rec.target_id] = alt + 1
            rows.append((result.site, result.tree, rec.root_id, rec.target_id, alt, rec.degree, rec.description, codec.encode(rec)))
        with self._lock:
            cur = self._conn.cursor()
            cur.execute("DELETE FROM relationship_paths WHERE site = ? AND tree = ?", (result.site, result.tree))
            cur.executemany(
                "INSERT INTO relationship_paths(site, tree, root_id, target_id, alternative, degree, description, record) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
            self._conn.commit()
        return len(rows)

    def load_paths(self, site: str, tree: str) -> List[RelationshipPath]:
        codec = CompactCodec()
        with self._lock:
            rows = self._conn.execute(
                "SELECT record FROM relationship_paths WHERE site = ? AND tree = ? ORDER BY target_id, alternative",
                (site, tree),
            ).fetchall()
        return [codec.decode(r["record"]) for r in rows]
