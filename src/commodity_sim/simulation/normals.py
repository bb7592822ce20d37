"""
Standard normal variate sources.

The simulator only needs the capability "draw N standard normal values";
any object with ``draw_standard_normals(count)`` can be supplied (other PRNGs,
quasi-random sequences, or test doubles returning fixed values).

Sources used with more than one worker must also implement ``spawn(n)``,
returning n independent, deterministically seeded child sources, so that
every worker owns its own stream.

See: numpy.random.SeedSequence for the spawning scheme.
"""

from typing import Optional, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class NormalGenerator(Protocol):
    """Protocol for a source of independent standard normal draws."""

    def draw_standard_normals(self, count: int) -> np.ndarray:
        """Draw ``count`` independent N(0, 1) values, shape (count,)."""
        ...


class _BitGeneratorNormals:
    """Normal source backed by a numpy bit generator seeded from a SeedSequence."""

    _bit_generator_type: type = np.random.PCG64

    def __init__(self, seed: Optional[int] = None):
        self._init_from_seed_sequence(np.random.SeedSequence(seed))
        self.seed = seed

    def _init_from_seed_sequence(self, seed_sequence: np.random.SeedSequence) -> None:
        self._seed_sequence = seed_sequence
        self._rng = np.random.Generator(self._bit_generator_type(seed_sequence))

    def draw_standard_normals(self, count: int) -> np.ndarray:
        """Draw ``count`` independent N(0, 1) values."""
        if count < 0:
            raise ValueError(f"CRITICAL: count must be >= 0, got {count}")
        return self._rng.standard_normal(count)

    def spawn(self, n: int) -> list:
        """
        Create n independent child sources.

        Children are derived from this source's SeedSequence, so the same
        seed always yields the same children.
        """
        if n <= 0:
            raise ValueError(f"CRITICAL: n must be > 0, got {n}")
        children = []
        for child_sequence in self._seed_sequence.spawn(n):
            child = object.__new__(type(self))
            child._init_from_seed_sequence(child_sequence)
            child.seed = self.seed
            children.append(child)
        return children

    def __repr__(self) -> str:
        return f"{type(self).__name__}(seed={self.seed})"


class MersenneTwisterGenerator(_BitGeneratorNormals):
    """
    Mersenne Twister (MT19937) normal source.

    Examples
    --------
    >>> gen = MersenneTwisterGenerator(seed=12)
    >>> gen.draw_standard_normals(3).shape
    (3,)
    """

    _bit_generator_type = np.random.MT19937


class PCG64Generator(_BitGeneratorNormals):
    """PCG64 normal source (numpy's default bit generator)."""

    _bit_generator_type = np.random.PCG64


def make_generator(seed: Optional[int] = None, kind: str = "mt19937") -> NormalGenerator:
    """
    Create a seeded normal source by name.

    Parameters
    ----------
    seed : int, optional
        Seed; None draws fresh OS entropy
    kind : str, default "mt19937"
        "mt19937" or "pcg64"

    Raises
    ------
    ValueError
        If kind is unknown
    """
    kinds = {"mt19937": MersenneTwisterGenerator, "pcg64": PCG64Generator}
    key = kind.lower()
    if key not in kinds:
        raise ValueError(f"CRITICAL: unknown generator '{kind}'. Available: {', '.join(sorted(kinds))}")
    return kinds[key](seed)
