"""Pseudorandom generator models reproduced bit-for-bit from the game runtime."""

from .java_random import (
    INCREMENT,
    MULTIPLIER,
    JavaRandom,
    bounded,
    extend_long_48,
    next_bits,
    next_state,
    previous_state,
    seed_from,
    state_for_next_long,
)

__all__ = [
    "INCREMENT",
    "MULTIPLIER",
    "JavaRandom",
    "bounded",
    "extend_long_48",
    "next_bits",
    "next_state",
    "previous_state",
    "seed_from",
    "state_for_next_long",
]
