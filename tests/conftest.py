"""Shared test fixtures for mimic_wfc."""

import numpy as np
import pytest

from mimic_wfc.adjacency import Propagator
from mimic_wfc.source_patterns import SourcePatterns
from mimic_wfc.wavefunction import Wavefunction


class ScriptedRandom:
    """Hands out a fixed sequence of uniform draws."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


@pytest.fixture
def dot_sample() -> np.ndarray:
    """A single 1 surrounded by 0s: ones never touch, even diagonally."""
    return np.array(
        [
            [0, 0, 0],
            [0, 1, 0],
            [0, 0, 0],
        ]
    )


@pytest.fixture
def stripe_sample() -> np.ndarray:
    """Columns alternate, so horizontally A must be followed by B and B by A."""
    return np.array(
        [
            [0, 1, 0, 1],
            [0, 1, 0, 1],
        ]
    )


@pytest.fixture
def make_wave():
    """Build a cleared Wavefunction straight from a sample."""

    def _make(
        sample,
        order=2,
        size=(6, 6),
        periodic=False,
        symmetry=1,
        surround=None,
        periodic_input=False,
    ) -> Wavefunction:
        source_patterns = SourcePatterns(
            sample, order, periodic_input, symmetry, surround
        )
        wave = Wavefunction(size, source_patterns, Propagator(source_patterns), periodic)
        wave.clear()
        return wave

    return _make
