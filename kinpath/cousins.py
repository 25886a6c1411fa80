"""Kinship label table.

APIs:
    describe(up, down) -> str
    cousin_label(up, down) -> (label, degree, removed)

``up`` is the number of generations climbed from the root to the common
ancestor and ``down`` the number descended from it to the target, so the
label names the target relative to the root:
    - (1, 0): parent, (0, 1): child
    - (1, 1): sibling
    - (2, 1): aunt/uncle, (1, 2): niece/nephew
    - (3, 3): 2nd cousin, (4, 4): 3rd cousin, ...; (2, 2) falls to the generic form

``describe`` is total over non-negative pairs; pairs without a named rule get
the generic "up U down D" form.
"""
from typing import Optional, Tuple


def _ordinal(n: int) -> str:
    if 10 <= (n % 100) <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


_NAMED = {
    (0, 0): "self",
    (0, 1): "child",
    (1, 0): "parent",
    (1, 1): "sibling",
    (2, 0): "grandparent",
    (0, 2): "grandchild",
    (2, 1): "aunt/uncle",
    (1, 2): "niece/nephew",
}


def describe(up: int, down: int) -> str:
    """Return the canonical description of a (generations up, generations down) pair."""
    if up < 0 or down < 0:
        raise ValueError("up and down must be non-negative integers")
    named = _NAMED.get((up, down))
    if named:
        return named
    if up == down and up > 2:
        return f"{_ordinal(up - 1)} cousin"
    if down == 0 and up > 2:
        return f"{up - 2}x great-grandparent"
    if up == 0 and down > 2:
        return f"{down - 2}x great-grandchild"
    return f"up {up} down {down}"


def cousin_label(up: int, down: int) -> Tuple[str, Optional[int], Optional[int]]:
    """Return (label, degree, removed) for a pair.

    degree and removed are set for collateral relations (both sides at least
    one generation from the common ancestor): siblings are degree 0, first
    cousins degree 1, and removed is the generation gap.
    """
    label = describe(up, down)
    if up == 0 or down == 0:
        return label, None, None
    return label, min(up, down) - 1, abs(up - down)
