# errors.py
from typing import Optional


class PuzzleBoxError(RuntimeError):
    """
    Base class for invariant violations raised while building a maze or mesh.
    The `kind` tag identifies the failure without needing isinstance checks.
    """

    kind = "puzzle_box_error"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        return f"[{self.kind}] {super().__str__()}"


class GridTooSmall(PuzzleBoxError):
    """Usable angular or axial resolution is below the minimum viable maze."""

    kind = "grid_too_small"


class UnreachableExpansion(PuzzleBoxError):
    """The weighted direction draw picked a direction that is not available."""

    kind = "unreachable_expansion"


class TopologyLookupFailure(PuzzleBoxError):
    """A boundary point could not be found in the slice history."""

    kind = "topology_lookup_failure"


class PointBudgetExceeded(PuzzleBoxError):
    """A slice collected more points than its capacity."""

    kind = "point_budget_exceeded"
