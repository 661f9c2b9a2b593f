import itertools
import logging
import math
from enum import Enum
from typing import List, Optional, Protocol, Tuple

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from .adjacency import Propagator
from .source_patterns import DIRECTIONS, SourcePatterns

logger = logging.getLogger(__name__)

# no entropy reaches this, so any undecided cell beats it
ENTROPY_CEILING = 1e3
NOISE = 1e-6


class UniformSource(Protocol):
    """Anything handing out uniform floats in [0, 1). numpy's Generator and
    the stdlib's random.Random both qualify."""

    def random(self) -> float:
        ...


class Observation(Enum):
    COMMITTED = "committed"
    RESOLVED = "resolved"
    CONTRADICTION = "contradiction"


def entropy(
    remaining: int, sum_of_weights: float, sum_of_weight_log_weights: float
) -> float:
    """Shannon entropy of the weight distribution still allowed at a cell,
    from its running sums: log(sum w) - sum(w log w) / sum w.
    """
    if remaining <= 1:
        return 0.0
    return math.log(sum_of_weights) - sum_of_weight_log_weights / sum_of_weights


class Wavefunction:
    """
    The mutable half of a generator: for every output cell, which patterns
    are still possible there, plus the bookkeeping that makes observe and
    propagate cheap.
    1. wave[i, t] is True while pattern t may still be placed at cell i
    2. compatible[i, t, d] counts the patterns still possible at the
    neighbor on the side opposite d that allow t at i. When it drops to
    zero, t is banned at i.
    3. per-cell sums of weights and of w*log(w) give the entropy without
    rescanning the cell.
    Allocated once, then reset by clear() for every run.
    """

    def __init__(
        self,
        dimensions: Tuple[int, int],
        source_patterns: SourcePatterns,
        propagator: Propagator,
        periodic: bool = False,
    ) -> None:
        # height, width
        self.dimensions = dimensions
        self.height, self.width = dimensions
        self.N = source_patterns.N
        self.periodic = periodic
        self.propagator = propagator
        self.surround = source_patterns.surround
        self.total_options = len(source_patterns)

        self.weights = source_patterns.weights
        self.weight_log_weights = self.weights * np.log(self.weights)
        self.sum_of_weights = float(self.weights.sum())
        self.sum_of_weight_log_weights = float(self.weight_log_weights.sum())
        self.starting_entropy = entropy(
            self.total_options, self.sum_of_weights, self.sum_of_weight_log_weights
        )

        cell_count = self.height * self.width
        self.wave: NDArray[np.bool_] = np.ones(
            (cell_count, self.total_options), np.bool_
        )
        self.compatible: NDArray[np.int32] = np.zeros(
            (cell_count, self.total_options, len(DIRECTIONS)), np.int32
        )
        self.sums_of_ones: NDArray[np.int64] = np.zeros(cell_count, np.int64)
        self.sums_of_weights: NDArray[np.float64] = np.zeros(cell_count)
        self.sums_of_weight_log_weights: NDArray[np.float64] = np.zeros(cell_count)
        self.entropies: NDArray[np.float64] = np.zeros(cell_count)
        self.observed: Optional[NDArray[np.intp]] = None
        # pending (cell, pattern) bans, processed last in first out
        self._stack: List[Tuple[int, int]] = []

        self.cells = self._make_cell_graph()
        self._neighbors: List[List[Tuple[int, int]]] = [
            sorted(
                (direction.index, neighbor)
                for _, neighbor, direction in self.cells.out_edges(cell, keys=True)
            )
            for cell in range(cell_count)
        ]
        self.observable: NDArray[np.bool_] = np.array(
            [not self.on_boundary(x, y) for y in range(self.height) for x in range(self.width)],
            np.bool_,
        )
        self._observable_cells = np.flatnonzero(self.observable)
        logger.debug(
            "allocated %dx%d wave over %d patterns (%d observable cells)",
            self.width,
            self.height,
            self.total_options,
            len(self._observable_cells),
        )

    def index(self, x: int, y: int) -> int:
        return x + y * self.width

    def on_boundary(self, x: int, y: int) -> bool:
        """True where a non-periodic output has no room for a whole NxN
        window. Such cells are never picked by observe and never receive
        propagated bans, but they may still send them."""
        return not self.periodic and (
            x + self.N > self.width or y + self.N > self.height or x < 0 or y < 0
        )

    def _make_cell_graph(self) -> nx.MultiDiGraph:
        """
        One node per output cell. An edge keyed by a direction runs from a
        cell to the neighbor that direction reaches, wrapping around the
        edges of a periodic output, whenever a ban at the source has to be
        propagated to that neighbor.
        """
        cells = nx.MultiDiGraph()
        cells.add_nodes_from(range(self.height * self.width))
        for y, x in itertools.product(range(self.height), range(self.width)):
            for direction in DIRECTIONS:
                x2, y2 = x + direction.dx, y + direction.dy
                if self.on_boundary(x2, y2):
                    continue
                cells.add_edge(
                    self.index(x, y),
                    self.index(x2 % self.width, y2 % self.height),
                    key=direction,
                )
        return cells

    def clear(self) -> None:
        """Puts every cell back in full superposition, then pins the border
        to the surround pattern if there is one."""
        self.wave[:] = True
        self.compatible[:] = self.propagator.initial_compatibility
        self.sums_of_ones[:] = self.total_options
        self.sums_of_weights[:] = self.sum_of_weights
        self.sums_of_weight_log_weights[:] = self.sum_of_weight_log_weights
        self.entropies[:] = self.starting_entropy
        self.observed = None
        self._stack.clear()

        if self.surround is not None:
            bottom = (self.height - 1) * self.width
            for x in range(self.width):
                self._restrict(x, self.surround)
                self._restrict(x + bottom, self.surround)
            for y in range(1, self.height - 1):
                self._restrict(y * self.width, self.surround)
                self._restrict(self.width - 1 + y * self.width, self.surround)
            self.propagate()

    def _restrict(self, cell: int, pattern: int) -> None:
        for t in np.flatnonzero(self.wave[cell]).tolist():
            if t != pattern:
                self.ban(cell, t)

    def ban(self, cell: int, t: int) -> None:
        self.wave[cell, t] = False
        # gone, so it no longer supports anything around it
        self.compatible[cell, t] = 0
        self._stack.append((cell, t))

        self.sums_of_ones[cell] -= 1
        self.sums_of_weights[cell] -= self.weights[t]
        self.sums_of_weight_log_weights[cell] -= self.weight_log_weights[t]
        self.entropies[cell] = entropy(
            self.sums_of_ones[cell],
            self.sums_of_weights[cell],
            self.sums_of_weight_log_weights[cell],
        )

    def observe(self, random: UniformSource) -> Observation:
        """
        Find the observable cell with the lowest entropy (plus a little noise
        so ties don't always go to the top left), pick one of its patterns at
        random weighted by frequency, and ban all the others there.
        """
        remaining = self.sums_of_ones[self.observable]
        if not remaining.all():
            return Observation.CONTRADICTION

        candidates = self._observable_cells[remaining > 1]
        if len(candidates) == 0:
            # first possible pattern, also for cells observe never looks at
            self.observed = self.wave.argmax(axis=1)
            return Observation.RESOLVED

        minimum = ENTROPY_CEILING
        argmin = -1
        for cell, cell_entropy in zip(
            candidates.tolist(), self.entropies[candidates].tolist()
        ):
            if cell_entropy <= minimum:
                noisy_entropy = cell_entropy + NOISE * random.random()
                if noisy_entropy < minimum:
                    minimum = noisy_entropy
                    argmin = cell

        self._collapse(argmin, random)
        return Observation.COMMITTED

    def _collapse(self, cell: int, random: UniformSource) -> None:
        possible = self.wave[cell]
        cumulative = np.cumsum(np.where(possible, self.weights, 0.0))
        threshold = cumulative[-1] * random.random()
        chosen = int(np.searchsorted(cumulative, threshold, side="right"))
        for t in np.flatnonzero(possible).tolist():
            if t != chosen:
                self.ban(cell, t)

    def propagate(self) -> None:
        """
        Drain the ban stack. Each banned pattern withdraws its support from
        the patterns it allowed next to it; any of those left without support
        from that side is banned in turn.
        """
        while self._stack:
            cell, banned = self._stack.pop()
            for direction, neighbor in self._neighbors[cell]:
                supported = self.propagator.table[direction][banned]
                counts = self.compatible[neighbor, :, direction]
                counts[supported] -= 1
                for t in supported[counts[supported] == 0].tolist():
                    self.ban(neighbor, t)

    def is_fully_collapsed(self) -> bool:
        return self.observed is not None

    def current_progress(self) -> float:
        return float(np.count_nonzero(self.sums_of_ones == 1)) / len(self.sums_of_ones)
