"""Vectorised generator steps over numpy ``uint64`` seed arrays.

Every kernel here mirrors a scalar function of :mod:`.java_random` or
:mod:`.layer_random`. ``uint64`` arithmetic wraps modulo 2^64, and 2^48
divides 2^64, so masking after a wrapped multiply gives the exact 48-bit
result.
"""

from __future__ import annotations

import numpy as np

from .java_random import INCREMENT, MASK48, MASK64, MULTIPLIER
from .layer_random import LAYER_INCREMENT, LAYER_MULTIPLIER

U64 = np.uint64

_M48 = U64(MASK48)
_MULTIPLIER = U64(MULTIPLIER)
_INCREMENT = U64(INCREMENT)
_LAYER_MULTIPLIER = U64(LAYER_MULTIPLIER)
_LAYER_INCREMENT = U64(LAYER_INCREMENT)
_INT31_LIMIT = U64(1 << 31)


def as_u64(value: int) -> np.uint64:
    """Wrap any Python int (negative included) to a numpy ``uint64`` scalar."""
    return U64(value & MASK64)


def seed_range(start: int, stop: int) -> np.ndarray:
    """``np.arange`` over ``[start, stop)`` that stays exact above 2^63."""
    return np.arange(stop - start, dtype=U64) + as_u64(start)


def seed_from(seeds: np.ndarray) -> np.ndarray:
    return (seeds ^ _MULTIPLIER) & _M48


def next_state(states: np.ndarray) -> np.ndarray:
    return (states * _MULTIPLIER + _INCREMENT) & _M48


def next_bits(states: np.ndarray, width: int) -> tuple[np.ndarray, np.ndarray]:
    states = next_state(states)
    return states >> U64(48 - width), states


def bounded(states: np.ndarray, n: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """First ``nextInt(n)`` draw for every state.

    Returns ``(values, new_states, redraw)``. Rows flagged in ``redraw`` hit
    the rejection branch and must be finished with the scalar algorithm; their
    ``values`` are meaningless.
    """
    bits, states = next_bits(states, 31)
    if n & -n == n:
        return (U64(n) * bits) >> U64(31), states, np.zeros(bits.shape, dtype=bool)

    bound = U64(n)
    values = bits % bound
    redraw = bits - values + U64(n - 1) >= _INT31_LIMIT
    return values, states, redraw


def layer_step(seeds: np.ndarray, salt: int) -> np.ndarray:
    return seeds * (seeds * _LAYER_MULTIPLIER + _LAYER_INCREMENT) + as_u64(salt)


def layer_first_int(seeds: np.ndarray, n: int) -> np.ndarray:
    return (seeds.view(np.int64) >> np.int64(24)) % np.int64(n)
