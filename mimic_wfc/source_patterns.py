import logging
from numpy.typing import NDArray, ArrayLike
import numpy as np
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterator, List, Optional, Tuple, Union
from enum import Enum

logger = logging.getLogger(__name__)

MAX_SYMMETRY = 8


class SampleError(ValueError):
    pass


class Direction(Enum):
    LEFT = (-1, 0)
    DOWN = (0, 1)
    RIGHT = (1, 0)
    UP = (0, -1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def index(self) -> int:
        return DIRECTIONS.index(self)

    @property
    def opposite(self) -> "Direction":
        return Direction((-self.dx, -self.dy))


DIRECTIONS: Tuple[Direction, ...] = tuple(Direction)


class ItemAlphabet:
    """Bijection between the values found in a sample and a dense index
    space, filled lazily in the order values are first seen."""

    def __init__(self) -> None:
        self._indices: Dict[Hashable, int] = {}
        self._values: List[Hashable] = []

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: Hashable) -> bool:
        return value in self._indices

    def index_of(self, value: Hashable) -> int:
        index = self._indices.get(value)
        if index is None:
            index = len(self._values)
            self._indices[value] = index
            self._values.append(value)
        return index

    def value_of(self, index: int) -> Hashable:
        return self._values[index]

    def encode(self, grid: NDArray[Any]) -> NDArray[np.int64]:
        """Scans rows top to bottom, left to right."""
        height, width = grid.shape
        encoded = np.zeros((height, width), np.int64)
        for y, row in enumerate(grid.tolist()):
            for x, value in enumerate(row):
                encoded[y, x] = self.index_of(value)
        return encoded

    def decode(self, indices: NDArray[np.int_], dtype=None) -> NDArray[Any]:
        lookup = np.array(self._values, dtype=dtype)
        return lookup[indices]


@dataclass(frozen=True)
class Pattern:
    cells: Tuple[int, ...]
    N: int

    @classmethod
    def from_ndarray(cls, items: NDArray[np.int_]) -> "Pattern":
        assert items.shape[0] == items.shape[1]
        return cls(tuple(items.flatten().tolist()), items.shape[0])

    @classmethod
    def uniform(cls, item: int, N: int) -> "Pattern":
        return cls((item,) * (N * N), N)

    def get_ndarray(self) -> NDArray[np.int64]:
        return np.reshape(np.array(self.cells, np.int64), (self.N, self.N))

    def rotated(self) -> "Pattern":
        # result[x + y * N] = p[(N - 1 - y) + x * N]
        return Pattern.from_ndarray(np.rot90(self.get_ndarray()))

    def reflected(self) -> "Pattern":
        # result[x + y * N] = p[(N - 1 - x) + y * N]
        return Pattern.from_ndarray(np.fliplr(self.get_ndarray()))

    def symmetries(self) -> Iterator["Pattern"]:
        """
        Yields the 8 dihedral variants in the order they are counted:
        identity, reflect, rotate, reflect∘rotate, rotate², reflect∘rotate²,
        rotate³, reflect∘rotate³.
        """
        current = self
        for _ in range(4):
            yield current
            yield current.reflected()
            current = current.rotated()


def _as_sample(item_grid: ArrayLike) -> NDArray[Any]:
    try:
        sample = np.asarray(item_grid)
    except ValueError as error:
        raise SampleError(f"sample is not rectangular: {error}") from error
    if sample.dtype == object or sample.ndim != 2:
        raise SampleError(
            f"sample must be a rectangular 2D grid, got shape {sample.shape}"
        )
    if sample.size == 0:
        raise SampleError("sample is empty")
    return sample


class SourcePatterns:
    """Parses a sample grid. Identifies every NxN pattern in it (optionally
    with rotations and reflections), counts their frequency, and keeps them
    in a stable, indexed order.

    surround may be an item value from the sample, or True to use the item
    in the sample's top-left corner. A uniform block of that item is always
    present in the pattern set, with weight 1.
    """

    def __init__(
        self,
        item_grid: ArrayLike,
        N: int = 2,
        periodic_input: bool = False,
        symmetry: int = 1,
        surround: Union[bool, Hashable, None] = None,
    ) -> None:
        self.source_texture = _as_sample(item_grid)
        self.N = N
        self.periodic_input = periodic_input
        self.symmetry = symmetry
        height, width = self.source_texture.shape
        if N < 1:
            raise SampleError(f"order must be at least 1, got {N}")
        if not periodic_input and (N > width or N > height):
            raise SampleError(
                f"order {N} does not fit in a {width}x{height} sample; "
                "use a smaller order or a periodic input"
            )
        if not 1 <= symmetry <= MAX_SYMMETRY:
            raise SampleError(
                f"symmetry must be between 1 and {MAX_SYMMETRY}, got {symmetry}"
            )

        self.alphabet = ItemAlphabet()
        self.sample = self.alphabet.encode(self.source_texture)
        self.surround_value = self._resolve_surround(surround)

        self.frequencies: Dict[Pattern, int] = {}
        self._collect_patterns()
        self.surround: Optional[int] = None
        if self.surround_value is not None:
            self._inject_surround()

        self.patterns: List[Pattern] = list(self.frequencies)
        self.weights: NDArray[np.float64] = np.array(
            list(self.frequencies.values()), np.float64
        )
        logger.debug(
            "extracted %d patterns of order %d from a %dx%d sample "
            "(%d items, symmetry %d)",
            len(self.patterns),
            N,
            width,
            height,
            len(self.alphabet),
            symmetry,
        )

    def __len__(self) -> int:
        return len(self.patterns)

    def _resolve_surround(
        self, surround: Union[bool, Hashable, None]
    ) -> Optional[Hashable]:
        if surround is None or surround is False:
            return None
        if surround is True:
            return self.alphabet.value_of(int(self.sample[0, 0]))
        if surround not in self.alphabet:
            raise SampleError(f"surround value {surround!r} does not occur in the sample")
        return surround

    def _collect_patterns(self):
        """Runs a NxN convolution across the sample, wrapping around its edges
        when the input is periodic, and counts the first `symmetry` variants
        of each window.
        """
        height, width = self.sample.shape
        y_limit = height if self.periodic_input else height - self.N + 1
        x_limit = width if self.periodic_input else width - self.N + 1
        for y in range(y_limit):
            for x in range(x_limit):
                window = self.sample.take(
                    range(y, y + self.N), mode="wrap", axis=0
                ).take(range(x, x + self.N), mode="wrap", axis=1)
                variants = Pattern.from_ndarray(window).symmetries()
                for _, pattern in zip(range(self.symmetry), variants):
                    self.frequencies[pattern] = self.frequencies.get(pattern, 0) + 1

    def _inject_surround(self):
        item = self.alphabet.index_of(self.surround_value)
        pattern = Pattern.uniform(item, self.N)
        # forced onto the border, so it must not dominate the interior
        self.frequencies[pattern] = 1
        self.surround = list(self.frequencies).index(pattern)

    def as_array(self) -> NDArray[np.int64]:
        """All patterns as a (T, N, N) array of item indices."""
        return np.array(
            [pattern.get_ndarray() for pattern in self.patterns], np.int64
        ).reshape(len(self.patterns), self.N, self.N)
