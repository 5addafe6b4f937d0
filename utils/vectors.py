"""vectors.py - pygame Vector3 helpers shared by every engine system.

Collaborators hand us positions as Vector3s, tuples or lists.  Anything
missing, the wrong length or non-finite is rejected here (returns None)
so per-tick updates can skip that entity instead of raising.
"""

from __future__ import annotations

import math
from typing import Iterable

from pygame.math import Vector3


def to_vector3(value) -> Vector3 | None:
    """Coerce *value* into a fresh Vector3, or None if it is malformed."""
    if value is None:
        return None
    try:
        x, y, z = (float(c) for c in value)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        return None
    return Vector3(x, y, z)


def safe_normalize(vec: Vector3) -> Vector3:
    """Unit vector in the direction of *vec*; the zero vector stays zero."""
    if vec.length_squared() == 0.0:
        return Vector3()
    return vec.normalize()


def flat_direction(origin: Vector3, target: Vector3) -> Vector3:
    """Normalised direction from origin to target in the ground (x/z) plane."""
    d = target - origin
    d.y = 0.0
    return safe_normalize(d)


def nearest(origin: Vector3, points: Iterable[Vector3]) -> tuple[int, float]:
    """Index and distance of the point closest to *origin* (-1, inf if none)."""
    best_idx = -1
    best_dist = math.inf
    for i, p in enumerate(points):
        d = origin.distance_to(p)
        if d < best_dist:
            best_idx, best_dist = i, d
    return best_idx, best_dist


def centroid(points: Iterable[Vector3]) -> Vector3:
    """Average of *points* (origin when empty)."""
    total = Vector3()
    n = 0
    for p in points:
        total += p
        n += 1
    if n:
        total /= n
    return total
