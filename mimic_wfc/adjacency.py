import logging
from numpy.typing import NDArray
import numpy as np
from typing import List
from .source_patterns import DIRECTIONS, Direction, SourcePatterns

logger = logging.getLogger(__name__)


def overlap_slices(N: int, dx: int, dy: int):
    """
    The part of an NxN pattern that is still covered by a second pattern
    shifted by (dx, dy), as (first, second) pairs of (row, column) slices.
    Empty when the shift is at least N in either axis.
    """
    xmin, xmax = max(dx, 0), min(dx + N, N)
    ymin, ymax = max(dy, 0), min(dy + N, N)
    first = (slice(ymin, ymax), slice(xmin, xmax))
    second = (slice(ymin - dy, ymax - dy), slice(xmin - dx, xmax - dx))
    return first, second


class Propagator:
    """For each direction and each pattern, the patterns that may sit next to
    it on that side: two patterns agree when, after shifting the second by
    the direction's offset, their overlapping cells hold the same items.

    Built once per pattern set; never mutated afterwards.
    """

    def __init__(self, source_patterns: SourcePatterns) -> None:
        self.N = source_patterns.N
        self.total_options = len(source_patterns)
        # agreements[d, t1, t2]: t2 may be placed at offset d from t1
        self.agreements: NDArray[np.bool_] = np.zeros(
            (len(DIRECTIONS), self.total_options, self.total_options), np.bool_
        )
        self.table: List[List[NDArray[np.intp]]] = []
        self._collect_agreements(source_patterns.as_array())
        # the number of patterns supporting t from the side opposite d,
        # which is what every wave cell starts with
        self.initial_compatibility: NDArray[np.int32] = np.array(
            [
                [len(self.table[direction.opposite.index][t]) for direction in DIRECTIONS]
                for t in range(self.total_options)
            ],
            np.int32,
        )
        logger.debug(
            "built propagator for %d patterns with %d compatible pairs",
            self.total_options,
            int(self.agreements.sum()),
        )

    def _collect_agreements(self, patterns: NDArray[np.int64]) -> None:
        for direction in DIRECTIONS:
            first, second = overlap_slices(self.N, direction.dx, direction.dy)
            ours = patterns[(slice(None),) + first].reshape(self.total_options, -1)
            theirs = patterns[(slice(None),) + second].reshape(self.total_options, -1)
            for t in range(self.total_options):
                self.agreements[direction.index, t] = np.all(theirs == ours[t], axis=1)
            self.table.append(
                [np.flatnonzero(row) for row in self.agreements[direction.index]]
            )

    def compatible(self, direction: Direction, t: int) -> NDArray[np.intp]:
        return self.table[direction.index][t]

    def agrees(self, t1: int, t2: int, direction: Direction) -> bool:
        return bool(self.agreements[direction.index, t1, t2])
