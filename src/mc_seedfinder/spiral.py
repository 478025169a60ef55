"""Square spiral ordering of grid cells around an origin.

Ring ``r`` holds the ``8 * r`` cells at Chebyshev distance ``r``; each ring is
walked counter-clockwise starting just above its ``(+r, -r)`` corner.
"""

from __future__ import annotations

from collections.abc import Iterator


def spiral_index(dx: int, dz: int) -> int:
    """Position of the offset ``(dx, dz)`` in the spiral walk."""
    ring = max(abs(dx), abs(dz))
    if ring == 0:
        return 0

    start = (2 * ring - 1) ** 2
    if dx == ring and dz > -ring:
        return start + dz + ring - 1
    if dz == ring:
        return start + 2 * ring + (ring - 1 - dx)
    if dx == -ring:
        return start + 4 * ring + (ring - 1 - dz)
    return start + 6 * ring + (dx + ring - 1)


def spiral(radius: int) -> Iterator[tuple[int, int]]:
    """Yield offsets of every cell with Chebyshev distance ``<= radius`` in spiral order."""
    yield 0, 0
    for ring in range(1, radius + 1):
        for dz in range(-ring + 1, ring + 1):
            yield ring, dz
        for dx in range(ring - 1, -ring - 1, -1):
            yield dx, ring
        for dz in range(ring - 1, -ring - 1, -1):
            yield -ring, dz
        for dx in range(-ring + 1, ring + 1):
            yield dx, -ring
