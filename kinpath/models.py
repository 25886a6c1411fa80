from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Iterator, Tuple

# edge kinds: the role of the edge source relative to its target
PARENT = "parent"
CHILD = "child"
SPOUSE = "spouse"

# edge sub-kinds
BIOLOGICAL = "biological"
ADOPTED = "adopted"
FOSTER = "foster"
NONE = "none"

# child-in-family reference kinds, in the order edges are added
CHILD_REF_KINDS = (BIOLOGICAL, ADOPTED, FOSTER)

# search outcome kinds
FOUND = "found"
AMBIGUOUS = "ambiguous"
NO_PATH = "no_path"
LIMIT_EXCEEDED = "limit_exceeded"


def _opt_int(v: Any) -> Optional[int]:
    if v is None or v == "":
        return None
    return int(v)


@dataclass(frozen=True)
class Individual:
    id: int
    biological_family_id: Optional[int] = None
    adopted_family_id: Optional[int] = None
    foster_family_id: Optional[int] = None

    def child_refs(self) -> Iterator[Tuple[str, int]]:
        """Yield (reference kind, family id) in biological, adopted, foster order."""
        for kind, fid in zip(CHILD_REF_KINDS, (self.biological_family_id, self.adopted_family_id, self.foster_family_id)):
            if fid is not None:
                yield kind, fid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "biological_family_id": self.biological_family_id,
            "adopted_family_id": self.adopted_family_id,
            "foster_family_id": self.foster_family_id,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Individual":
        refs = {
            BIOLOGICAL: _opt_int(d.get("biological_family_id")),
            ADOPTED: _opt_int(d.get("adopted_family_id")),
            FOSTER: _opt_int(d.get("foster_family_id")),
        }
        # single reference form: {"child_family_id": 100, "child_ref_kind": "adopted"}
        if d.get("child_family_id") is not None:
            kind = d.get("child_ref_kind") or BIOLOGICAL
            if kind not in CHILD_REF_KINDS:
                raise ValueError(f"unknown child reference kind: {kind!r}")
            refs[kind] = _opt_int(d["child_family_id"])
        return Individual(
            id=int(d["id"]),
            biological_family_id=refs[BIOLOGICAL],
            adopted_family_id=refs[ADOPTED],
            foster_family_id=refs[FOSTER],
        )


@dataclass(frozen=True)
class Family:
    id: int
    husband_id: Optional[int] = None
    wife_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "husband_id": self.husband_id, "wife_id": self.wife_id}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Family":
        return Family(id=int(d["id"]), husband_id=_opt_int(d.get("husband_id")), wife_id=_opt_int(d.get("wife_id")))


@dataclass(frozen=True)
class Edge:
    source: int
    target: int
    kind: str
    sub_kind: str
    family_id: Optional[int]
    blood: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "kind": self.kind,
            "sub_kind": self.sub_kind,
            "family_id": self.family_id,
            "blood": self.blood,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Edge":
        return Edge(
            source=int(d["source"]),
            target=int(d["target"]),
            kind=d["kind"],
            sub_kind=d.get("sub_kind", NONE),
            family_id=_opt_int(d.get("family_id")),
            blood=bool(d.get("blood", False)),
        )

    def reversed(self) -> "Edge":
        kind = {PARENT: CHILD, CHILD: PARENT}.get(self.kind, self.kind)
        return Edge(self.target, self.source, kind, self.sub_kind, self.family_id, self.blood)


@dataclass
class RelationshipPath:
    root_id: int
    target_id: int
    edges: List[Edge] = field(default_factory=list)
    degree: int = 0
    blood: bool = True
    common_ancestor_id: Optional[int] = None
    generations_up: int = 0
    generations_down: int = 0
    description: str = "self"
    direct_ancestor: bool = False
    direct_descendant: bool = False
    path_count: int = 1
    ambiguous: bool = False

    @property
    def individual_ids(self) -> List[int]:
        """Ids along the path, root first and target last."""
        return [self.root_id] + [e.target for e in self.edges]


@dataclass
class DataIssue:
    """A data-quality problem found while reading a tree."""

    severity: str  # "error", "warning", "info"
    category: str  # "dangling_family", "dangling_member", ...
    message: str
    individual_id: Optional[int] = None
    family_id: Optional[int] = None

    def __str__(self) -> str:
        loc = ""
        if self.individual_id is not None:
            loc = f" [Individual {self.individual_id}]"
        elif self.family_id is not None:
            loc = f" [Family {self.family_id}]"
        return f"[{self.severity.upper()}] {self.category}: {self.message}{loc}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "individual_id": self.individual_id,
            "family_id": self.family_id,
        }


@dataclass
class TreeData:
    """Materialised inputs of one tree."""

    site: str
    tree: str
    individuals: List[Individual] = field(default_factory=list)
    families: List[Family] = field(default_factory=list)

    @property
    def key(self) -> str:
        return tree_key(self.site, self.tree)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site,
            "tree": self.tree,
            "individuals": [i.to_dict() for i in self.individuals],
            "families": [f.to_dict() for f in self.families],
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TreeData":
        return TreeData(
            site=str(d.get("site", "")),
            tree=str(d.get("tree", "")),
            individuals=[Individual.from_dict(i) for i in d.get("individuals", [])],
            families=[Family.from_dict(f) for f in d.get("families", [])],
        )


@dataclass
class TreeResult:
    site: str
    tree: str
    root_id: Optional[int] = None
    records: List[RelationshipPath] = field(default_factory=list)
    outcomes: Dict[int, str] = field(default_factory=dict)
    issues: List[DataIssue] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def key(self) -> str:
        return tree_key(self.site, self.tree)

    def targets_with(self, kind: str) -> List[int]:
        return sorted(t for t, k in self.outcomes.items() if k == kind)


def tree_key(site: Any, tree: Any) -> str:
    return f"{site}:{tree}"
