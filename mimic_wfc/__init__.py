"""Overlapping-model wave function collapse over grids of discrete items."""

from .source_patterns import Direction, ItemAlphabet, Pattern, SampleError, SourcePatterns
from .adjacency import Propagator
from .wavefunction import Observation, UniformSource, Wavefunction
from .wvfc import GenerationFailed, MimicWFC, RunStatus, generate

__all__ = [
    "Direction",
    "ItemAlphabet",
    "Pattern",
    "SampleError",
    "SourcePatterns",
    "Propagator",
    "Observation",
    "UniformSource",
    "Wavefunction",
    "GenerationFailed",
    "MimicWFC",
    "RunStatus",
    "generate",
]
