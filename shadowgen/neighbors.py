"""
Neighbor-configuration resolver.

Maps the 8-bit occupancy mask of a cell's neighbors to the atlas slot of the
shadow tile that darkens it.

Mask layout (bit -> neighbor):
    0: north       4: north-west
    1: east        5: north-east
    2: south       6: south-east
    3: west        7: south-west

Slot layout:
    0..14   sides only
    15..29  corners only
    30..33  two adjacent corners + the side opposite them
    34..45  one corner + one or both of its far sides

A corner flag next to a set edge flag is meaningless (the edge shadow already
covers that corner), so such masks are Invalid and never get a tile.
"""

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Dict, List, NamedTuple, Optional, Tuple, Union


NUM_MASKS = 256
NUM_SLOTS = 46


class Neighbor(IntFlag):
    """Bit flags of the neighbor mask."""
    N = 1
    E = 2
    S = 4
    W = 8
    NW = 16
    NE = 32
    SE = 64
    SW = 128


class NeighborSet(NamedTuple):
    """Decoded neighbor mask. Field order matches resolve()."""
    n: bool = False
    e: bool = False
    s: bool = False
    w: bool = False
    nw: bool = False
    ne: bool = False
    se: bool = False
    sw: bool = False

    @classmethod
    def from_mask(cls, mask: int) -> "NeighborSet":
        if not 0 <= mask < NUM_MASKS:
            raise ValueError(f"Neighbor mask out of range: {mask}")
        return cls(*(bool(mask & (1 << bit)) for bit in range(8)))

    def to_mask(self) -> int:
        return sum(1 << bit for bit, flag in enumerate(self) if flag)

    @property
    def edges(self) -> Tuple[bool, bool, bool, bool]:
        return self.n, self.e, self.s, self.w

    @property
    def corners(self) -> Tuple[bool, bool, bool, bool]:
        return self.nw, self.ne, self.se, self.sw


# ============================================================
# Slot result (tagged variant)
# ============================================================

class _Sentinel:
    """Stateless result variant; all instances of a variant compare equal."""
    __slots__ = ()

    def __eq__(self, other):
        return type(other) is type(self)

    def __hash__(self):
        return hash(type(self).__name__)


class Invalid(_Sentinel):
    """Corner flag combined with an adjacent edge, or no neighbors at all."""
    __slots__ = ()

    def to_int(self) -> int:
        return -1

    def __repr__(self):
        return "Invalid"


class Unclassified(_Sentinel):
    """Mask not covered by any rule of the table (fallout)."""
    __slots__ = ()

    def to_int(self) -> int:
        return -2

    def __repr__(self):
        return "Unclassified"


@dataclass(frozen=True)
class Slot:
    """Atlas slot assigned to a valid mask."""
    index: int

    def to_int(self) -> int:
        return self.index


INVALID = Invalid()
UNCLASSIFIED = Unclassified()

SlotResult = Union[Invalid, Unclassified, Slot]


def resolve(n: bool, e: bool, s: bool, w: bool,
            nw: bool, ne: bool, se: bool, sw: bool) -> SlotResult:
    """
    Classify one neighbor configuration. Rules are tried in order and the
    first match wins.

    Returns:
        INVALID, UNCLASSIFIED, or Slot(index) with index in 0..45
    """
    # corner subsumed by an adjacent edge
    if (nw and (n or w)) or (se and (s or e)) or (sw and (s or w)) or (ne and (n or e)):
        return INVALID

    # sides only; the empty mask lands on -1
    if not (nw or ne or se or sw):
        index = (int(n) | int(e) << 1 | int(s) << 2 | int(w) << 3) - 1
        return Slot(index) if index >= 0 else INVALID

    # corners only
    if not (n or e or s or w):
        return Slot(14 + (int(nw) | int(ne) << 1 | int(se) << 2 | int(sw) << 3))

    # two corners and the side opposite them
    if nw and ne and s:
        return Slot(30)
    if ne and se and w:
        return Slot(31)
    if sw and se and n:
        return Slot(32)
    if sw and nw and e:
        return Slot(33)

    # one corner with one or both of its far sides
    if nw and (s or e):
        return Slot(33 + (int(s) | int(e) << 1))   # 34..36
    if ne and (s or w):
        return Slot(36 + (int(s) | int(w) << 1))   # 37..39
    if se and (n or w):
        return Slot(39 + (int(n) | int(w) << 1))   # 40..42
    if sw and (n or e):
        return Slot(42 + (int(n) | int(e) << 1))   # 43..45

    return UNCLASSIFIED


def resolve_mask(mask: int) -> SlotResult:
    """resolve() on a packed 8-bit neighbor mask."""
    return resolve(*NeighborSet.from_mask(mask))


# ============================================================
# Table verification
# ============================================================

@dataclass
class TableReport:
    """
    Outcome of running the resolver over every mask.

    Attributes:
        assignments: slot -> mask that owns it (last writer on conflict)
        conflicts: (slot, earlier_mask, later_mask) for every duplicate slot
        fallout: masks no rule classified
        invalid: masks skipped as invalid combinations
    """
    assignments: Dict[int, int] = field(default_factory=dict)
    conflicts: List[Tuple[int, int, int]] = field(default_factory=list)
    fallout: List[int] = field(default_factory=list)
    invalid: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts and not self.fallout

    def summary(self) -> str:
        return (f"{len(self.assignments)} slots, {len(self.invalid)} invalid, "
                f"{len(self.fallout)} fallout, {len(self.conflicts)} conflicts")

    def record(self, mask: int, result: SlotResult) -> Optional[Tuple[int, int, int]]:
        """
        Add one resolved mask to the report.

        Returns:
            (slot, earlier_mask, mask) if the slot was already taken, else None.
            The later mask becomes the slot's owner.
        """
        if isinstance(result, Unclassified):
            self.fallout.append(mask)
            return None
        if isinstance(result, Invalid):
            self.invalid.append(mask)
            return None

        conflict = None
        if result.index in self.assignments:
            conflict = (result.index, self.assignments[result.index], mask)
            self.conflicts.append(conflict)
        self.assignments[result.index] = mask
        return conflict


def verify_table() -> TableReport:
    """Resolve all 256 masks and collect conflicts and fallout."""
    report = TableReport()
    for mask in range(NUM_MASKS):
        report.record(mask, resolve_mask(mask))
    return report


def mask_to_slot_table() -> List[int]:
    """Raw-integer lookup for all masks (-1 invalid, -2 fallout)."""
    return [resolve_mask(mask).to_int() for mask in range(NUM_MASKS)]
