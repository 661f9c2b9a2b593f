import itertools
import logging
from enum import Enum
from typing import Hashable, Optional, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .adjacency import Propagator
from .source_patterns import SampleError, SourcePatterns
from .wavefunction import Observation, UniformSource, Wavefunction

logger = logging.getLogger(__name__)

SEED_MASK = (1 << 64) - 1


class RunStatus(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    CONTRADICTION = "contradiction"
    LIMIT_REACHED = "limit reached"


class GenerationFailed(Exception):
    def __init__(self, trials: int) -> None:
        super().__init__(f"ran into too many contradictions ({trials} trials)")
        self.trials = trials


def as_uniform_source(seed: Union[int, UniformSource]) -> UniformSource:
    if isinstance(seed, (int, np.integer)):
        return np.random.default_rng(int(seed) & SEED_MASK)
    return seed


class MimicWFC:
    """Imitates a small sample grid: every NxN neighborhood of the output is
    one that occurs in the sample (optionally rotated or reflected).

    Grids are indexed [y, x]. Patterns and their adjacencies are worked out
    once, here; run() can then be called any number of times with different
    seeds. Does no I/O.
    """

    def __init__(
        self,
        item_grid: ArrayLike,
        order: int = 2,
        width: int = 48,
        height: int = 48,
        periodic_input: bool = False,
        periodic_output: bool = False,
        symmetry: int = 1,
        surround: Union[bool, Hashable, None] = None,
    ) -> None:
        source_patterns = SourcePatterns(
            item_grid, order, periodic_input, symmetry, surround
        )
        self._setup(source_patterns, Propagator(source_patterns), width, height, periodic_output)

    @classmethod
    def from_model(
        cls,
        source_patterns: SourcePatterns,
        propagator: Propagator,
        width: int,
        height: int,
        periodic_output: bool = False,
    ) -> "MimicWFC":
        engine = cls.__new__(cls)
        engine._setup(source_patterns, propagator, width, height, periodic_output)
        return engine

    def _setup(
        self,
        source_patterns: SourcePatterns,
        propagator: Propagator,
        width: int,
        height: int,
        periodic_output: bool,
    ) -> None:
        order = source_patterns.N
        if width < 1 or height < 1:
            raise SampleError(f"output must be at least 1x1, got {width}x{height}")
        if not periodic_output and (order > width or order > height):
            raise SampleError(
                f"a {width}x{height} output cannot hold a pattern of order {order} "
                "unless it is periodic"
            )
        self.source_patterns = source_patterns
        self.propagator = propagator
        self.width = width
        self.height = height
        self.periodic_output = periodic_output
        self.wave: Optional[Wavefunction] = None
        self.status = RunStatus.PENDING
        self.iterations = 0

    @property
    def order(self) -> int:
        return self.source_patterns.N

    @property
    def total_options(self) -> int:
        return len(self.source_patterns)

    def spawn(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        periodic_output: Optional[bool] = None,
    ) -> "MimicWFC":
        """A new engine sharing this one's patterns and propagator but owning
        its own wave, so the two can run on different threads."""
        return MimicWFC.from_model(
            self.source_patterns,
            self.propagator,
            self.width if width is None else width,
            self.height if height is None else height,
            self.periodic_output if periodic_output is None else periodic_output,
        )

    def run(self, seed: Union[int, UniformSource], limit: int = 0) -> bool:
        """
        Collapse the whole output. seed is a 64 bit integer or an already
        seeded generator; limit bounds the number of observe/propagate
        rounds, 0 for no bound. Returns False on a contradiction or when the
        limit runs out; status tells the two apart.
        """
        if limit < 0:
            raise ValueError(f"limit must be 0 or more, got {limit}")
        random = as_uniform_source(seed)
        if self.wave is None:
            self.wave = Wavefunction(
                (self.height, self.width),
                self.source_patterns,
                self.propagator,
                self.periodic_output,
            )
        self.wave.clear()
        self.status = RunStatus.LIMIT_REACHED
        self.iterations = 0
        rounds = itertools.count() if limit == 0 else range(limit)
        for _ in rounds:
            observation = self.wave.observe(random)
            if observation is Observation.RESOLVED:
                self.status = RunStatus.SUCCESS
                break
            if observation is Observation.CONTRADICTION:
                self.status = RunStatus.CONTRADICTION
                break
            self.wave.propagate()
            self.iterations += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%.1f%% done", self.wave.current_progress() * 100.0)
        logger.info(
            "run finished: %s after %d rounds", self.status.value, self.iterations
        )
        return self.status is RunStatus.SUCCESS

    def result(self) -> NDArray:
        """The generated grid, shape (height, width), in the sample's own
        values. Zero-filled unless the last run succeeded."""
        dtype = self.source_patterns.source_texture.dtype
        if self.wave is None or self.wave.observed is None:
            return np.zeros((self.height, self.width), dtype)
        N = self.order
        ys, xs = np.mgrid[0 : self.height, 0 : self.width]
        # cells too close to the bottom or right edge to be observed are
        # read from the last pattern that covers them
        dy = np.where(ys < self.height - N + 1, 0, N - 1)
        dx = np.where(xs < self.width - N + 1, 0, N - 1)
        chosen = self.wave.observed[
            (xs - dx) % self.width + (ys - dy) % self.height * self.width
        ]
        items = self.source_patterns.as_array().reshape(self.total_options, N * N)
        return self.source_patterns.alphabet.decode(
            items[chosen, dx + dy * N], dtype
        )


def generate(
    engine: MimicWFC, seed: int = 0, trials: int = 10, limit: int = 0
) -> NDArray:
    """Runs with seeds seed, seed + 1, ... until one succeeds."""
    for attempt in range(trials):
        if engine.run(seed + attempt, limit):
            return engine.result()
        logger.info("attempt %d of %d failed (%s)", attempt + 1, trials, engine.status.value)
    raise GenerationFailed(trials)
