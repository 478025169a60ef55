"""Shared contract for feature oracles."""

from __future__ import annotations

import numpy as np

from mc_seedfinder.models import ChunkCoordinate, Dimension, ExpectedValue, FeatureKind, Locator


class FeatureOracle:
    """Pure decision procedure ``(seed, locator) -> value`` for one feature kind.

    Subclasses implement :meth:`test`. :meth:`test_batch` falls back to a
    Python loop over :meth:`test`; oracles with a numpy kernel override it and
    must return exactly what the scalar path would.
    """

    kind: FeatureKind
    bit_width: int = 48
    cost: int = 1
    dimension: Dimension = Dimension.OVERWORLD
    locator_types: tuple[type, ...] = (ChunkCoordinate,)
    value_dtype: type = np.bool_

    def test(self, seed: int, locator: Locator) -> ExpectedValue:
        raise NotImplementedError

    def test_batch(self, seeds: np.ndarray, locator: Locator) -> np.ndarray:
        return np.fromiter(
            (self.test(int(seed), locator) for seed in seeds),
            dtype=self.value_dtype,
            count=seeds.size,
        )

    def pass_probability(self, locator: Locator, value: ExpectedValue) -> float:
        return 0.5

    def check(self, locator: Locator, value: ExpectedValue) -> str | None:
        """Return a reason why ``(locator, value)`` is not a valid observation, or ``None``."""
        if not isinstance(locator, self.locator_types):
            accepted = ", ".join(t.__name__ for t in self.locator_types)
            return f"{self.kind.value} expects a locator of type {accepted}, got {type(locator).__name__}"
        if locator.dimension != self.dimension:
            return f"{self.kind.value} only generates in the {self.dimension.value}, got {locator.dimension.value}"
        return self.check_value(locator, value)

    def check_value(self, locator: Locator, value: ExpectedValue) -> str | None:
        if not isinstance(value, bool):
            return f"{self.kind.value} expects a boolean value, got {value!r}"
        return None

    def _finish_rows(self, result: np.ndarray, rows: np.ndarray, seeds: np.ndarray, locator: Locator) -> np.ndarray:
        # Rows that needed a generator redraw are rare; finish them exactly.
        for index in np.flatnonzero(rows):
            result[index] = self.test(int(seeds[index]), locator)
        return result
