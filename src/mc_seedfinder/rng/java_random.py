"""Model of ``java.util.Random``: a 48-bit linear congruential generator.

The module-level functions work on raw 48-bit states so oracles can run the
generator without allocating objects. :class:`JavaRandom` wraps them with the
familiar stateful API.
"""

from __future__ import annotations

import math

MULTIPLIER = 0x5DEECE66D
INCREMENT = 0xB
INV_MULTIPLIER = 0xDFE05BCB1365

MASK16 = (1 << 16) - 1
MASK32 = (1 << 32) - 1
MASK48 = (1 << 48) - 1
MASK64 = (1 << 64) - 1

_INT31_LIMIT = 1 << 31
_DOUBLE_UNIT = 1.0 / (1 << 53)
_FLOAT_UNIT = 1.0 / (1 << 24)


def to_int32(value: int) -> int:
    value &= MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def to_int64(value: int) -> int:
    value &= MASK64
    return value - (1 << 64) if value & (1 << 63) else value


def seed_from(seed: int) -> int:
    """Scramble a seed into the initial generator state, like ``setSeed``."""
    return (seed ^ MULTIPLIER) & MASK48


def next_state(state: int) -> int:
    return (state * MULTIPLIER + INCREMENT) & MASK48


def previous_state(state: int) -> int:
    return ((state - INCREMENT) * INV_MULTIPLIER) & MASK48


def next_bits(state: int, width: int) -> tuple[int, int]:
    """Advance once and return the top ``width`` bits of the new state (unsigned)."""
    state = next_state(state)
    return state >> (48 - width), state


def bounded(state: int, n: int) -> tuple[int, int]:
    """Draw a uniform integer in ``[0, n)`` exactly as ``Random.nextInt(n)`` does."""
    if n <= 0:
        raise ValueError(f"bound must be positive, got {n}")

    if n & -n == n:
        bits, state = next_bits(state, 31)
        return (n * bits) >> 31, state

    while True:
        bits, state = next_bits(state, 31)
        value = bits % n
        if bits - value + (n - 1) < _INT31_LIMIT:
            return value, state


def java_round(value: float) -> int:
    """``Math.round(double)``: half-up rounding."""
    return math.floor(value + 0.5)


class JavaRandom:
    """Stateful ``java.util.Random`` replica."""

    __slots__ = ("_state",)

    def __init__(self, seed: int = 0) -> None:
        self._state = seed_from(seed)

    @classmethod
    def from_state(cls, state: int) -> JavaRandom:
        rng = cls.__new__(cls)
        rng._state = state & MASK48
        return rng

    @property
    def state(self) -> int:
        return self._state

    def set_seed(self, seed: int) -> None:
        self._state = seed_from(seed)

    def next(self, bits: int) -> int:
        value, self._state = next_bits(self._state, bits)
        return to_int32(value)

    def previous(self) -> None:
        self._state = previous_state(self._state)

    def next_int(self, bound: int | None = None) -> int:
        if bound is None:
            return self.next(32)
        value, self._state = bounded(self._state, bound)
        return value

    def next_long(self) -> int:
        high = self.next(32)
        low = self.next(32)
        return to_int64((high << 32) + low)

    def next_boolean(self) -> bool:
        return self.next(1) != 0

    def next_float(self) -> float:
        return self.next(24) * _FLOAT_UNIT

    def next_double(self) -> float:
        high = self.next(26)
        low = self.next(27)
        return ((high << 27) + low) * _DOUBLE_UNIT


def long_halves(value: int) -> tuple[int, int]:
    """The two ``next(32)`` outputs (unsigned) that ``nextLong()`` adds into ``value``."""
    value &= MASK64
    return ((value >> 32) + ((value >> 31) & 1)) & MASK32, value & MASK32


def low_16_for_next_int(first: int, second: int) -> int | None:
    """Low 16 state bits that make ``next(32) == second`` follow ``first``.

    ``second - first * MULTIPLIER`` divided by ``MULTIPLIER >> 16`` gives 13 of
    the 16 bits; the quotient is off by at most five.
    """
    target = (second - first * MULTIPLIER) & MASK32
    for carry in range(6):
        low16 = ((target | (carry << 32)) // (MULTIPLIER >> 16)) & MASK16
        if next_state(low16) >> 16 == target:
            return low16
    return None


def state_for_next_long(value: int) -> int | None:
    """Generator state whose ``nextLong()`` returns ``value``, or ``None`` if unreachable."""
    first, second = long_halves(value)
    low16 = low_16_for_next_int(first, second)
    if low16 is None:
        return None
    return previous_state((first << 16) | low16)


def _previous_matches_16(state: int, target16: int) -> bool:
    # Bits 16..31 of the previous state are the low 16 bits of the first int.
    return (previous_state(state) >> 16) & MASK16 == target16


def extend_long_48(low48: int) -> list[int]:
    """Return every ``nextLong()`` output (as unsigned 64-bit) whose low 48 bits are ``low48``.

    World seeds created by ``new Random().nextLong()`` can only take these
    values, so a recovered 48-bit seed usually has at most two real extensions.
    """
    low48 &= MASK48
    low_int = to_int32(low48)
    high_int = to_int32((low48 >> 32) + ((low48 >> 31) & 1))
    target16 = high_int & MASK16
    base = ((low_int & MASK32) << 16) & MASK48

    seeds: list[int] = []
    for k in range(1 << 16):
        state = base | k
        if not _previous_matches_16(state, target16):
            continue
        rng = JavaRandom.from_state(state)
        rng.previous()
        rng.previous()
        seeds.append(rng.next_long() & MASK64)
    return seeds
