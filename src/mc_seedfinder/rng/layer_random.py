"""64-bit seed mixer used by the legacy biome layer stack."""

from __future__ import annotations

from .java_random import MASK64, to_int64

LAYER_MULTIPLIER = 6364136223846793005
LAYER_INCREMENT = 1442695040888963407


def step(seed: int, salt: int) -> int:
    return (seed * ((seed * LAYER_MULTIPLIER + LAYER_INCREMENT) & MASK64) + salt) & MASK64


def base_seed(salt: int) -> int:
    """Per-layer constant derived from the layer's hard-coded salt."""
    seed = salt & MASK64
    for _ in range(3):
        seed = step(seed, salt)
    return seed


def world_seed(seed: int, layer_base: int) -> int:
    """Mix the full 64-bit world seed into a layer's base seed."""
    mixed = seed & MASK64
    for _ in range(3):
        mixed = step(mixed, layer_base)
    return mixed


def chunk_seed(layer_world_seed: int, x: int, z: int) -> int:
    seed = step(layer_world_seed, x)
    seed = step(seed, z)
    seed = step(seed, x)
    return step(seed, z)


def first_int(seed: int, n: int) -> int:
    """First ``nextInt(n)`` of a layer cell: floor modulus of the signed top bits."""
    return (to_int64(seed) >> 24) % n
