"""
Geometric predicates over ASV configurations.

Every function in this module is pure: it reads one or two
configurations (and, for collisions, an obstacle) and returns a number or
a boolean.  Comparisons against a limit are made lenient by the epsilon
carried in ``ValidationSettings`` so that values within epsilon of the
boundary are accepted.

Conventions:

* Booms form an open chain: ``positions[i - 1] -> positions[i]`` for
  ``i = 1 .. n - 1``.  Boom lengths and collisions use this chain.
* Convexity and area treat the positions as a closed polygon.  Both walk
  ``ASVConfig.ring()``, which repeats the first two positions at the end
  without touching the stored tuple.
"""

from __future__ import annotations

import math
from typing import List, Optional

from .asv_model import ASVConfig, Obstacle, Point, Rect
from .settings import DEFAULT_MAX_ERROR, ValidationSettings

_DEFAULT_SETTINGS = ValidationSettings()


def _settings(settings: Optional[ValidationSettings]) -> ValidationSettings:
    return _DEFAULT_SETTINGS if settings is None else settings


def max_joint_displacement(a: ASVConfig, b: ASVConfig) -> float:
    """Return the largest Euclidean distance moved by any single ASV."""
    return a.max_distance(b)


def is_valid_step(
    a: ASVConfig, b: ASVConfig, settings: Optional[ValidationSettings] = None
) -> bool:
    """Return True if moving from ``a`` to ``b`` is a valid primitive step."""
    s = _settings(settings)
    return max_joint_displacement(a, b) <= s.max_step + s.epsilon


def boom_lengths(cfg: ASVConfig) -> List[float]:
    """Return the length of every boom in the open chain."""
    return [math.hypot(x1 - x0, y1 - y0) for (x0, y0), (x1, y1) in cfg.booms()]


def has_valid_boom_lengths(
    cfg: ASVConfig, settings: Optional[ValidationSettings] = None
) -> bool:
    s = _settings(settings)
    lower = s.min_boom_length - s.epsilon
    upper = s.max_boom_length + s.epsilon
    return all(lower <= length <= upper for length in boom_lengths(cfg))


def _sign(value: float, epsilon: float) -> int:
    if value < -epsilon:
        return -1
    if value > epsilon:
        return 1
    return 0


def is_convex(cfg: ASVConfig, epsilon: float = DEFAULT_MAX_ERROR) -> bool:
    """Return True if the ASVs form a convex polygon.

    For each corner of the closed ring the z component of the cross product
    of the incoming and outgoing edges is classified as negative, zero or
    positive, where anything within ``epsilon`` of zero counts as zero.
    The first non-zero sign fixes the orientation of the polygon and any
    later corner turning the other way fails the test.  A zero cross
    product with a negative dot product means the chain doubles back on
    itself (a 180 degree spike) and also fails.  A polygon whose corners
    are all zero passes only if no such reversal occurs.
    """
    ring = cfg.ring()
    required_sign = 0
    for i in range(2, len(ring)):
        (x0, y0), (x1, y1), (x2, y2) = ring[i - 2], ring[i - 1], ring[i]
        dx0 = x1 - x0
        dy0 = y1 - y0
        dx1 = x2 - x1
        dy1 = y2 - y1
        zcp = dx0 * dy1 - dy0 * dx1
        sgn = _sign(zcp, epsilon)
        if sgn == 0:
            if dx0 * dx1 + dy0 * dy1 < 0.0:
                return False
            continue
        if sgn * required_sign < 0:
            return False
        required_sign = sgn
    return True


def polygon_area(cfg: ASVConfig) -> float:
    """Return the unsigned area enclosed by the ASVs (shoelace formula)."""
    ring = cfg.ring()
    total = 0.0
    for i in range(1, len(ring) - 1):
        total += ring[i][0] * (ring[i + 1][1] - ring[i - 1][1])
    return abs(total) / 2.0


def minimum_required_area(
    asv_count: int, settings: Optional[ValidationSettings] = None
) -> float:
    """Minimum area for ``asv_count`` ASVs: a circle of radius 0.007 per boom."""
    radius = _settings(settings).area_radius_factor * (asv_count - 1)
    return math.pi * radius * radius


def has_enough_area(cfg: ASVConfig, settings: Optional[ValidationSettings] = None) -> bool:
    s = _settings(settings)
    return polygon_area(cfg) >= minimum_required_area(cfg.asv_count, s) - s.epsilon


def fits_bounds(cfg: ASVConfig, bounds: Rect) -> bool:
    """Return True if every ASV lies inside ``bounds`` (boundary included)."""
    return all(bounds.contains(p) for p in cfg.positions)


def segment_intersects_rect(p0: Point, p1: Point, rect: Rect) -> bool:
    """Return True if the closed segment ``p0``-``p1`` touches ``rect``.

    The segment is clipped against each slab of the rectangle in turn
    (Liang-Barsky); the segment intersects if a non-empty parameter range
    survives all four clips.  Empty rectangles never intersect.
    """
    if rect.is_empty:
        return False
    x0, y0 = p0
    dx = p1[0] - x0
    dy = p1[1] - y0
    t_enter = 0.0
    t_exit = 1.0
    for p, q in (
        (-dx, x0 - rect.min_x),
        (dx, rect.max_x - x0),
        (-dy, y0 - rect.min_y),
        (dy, rect.max_y - y0),
    ):
        if p == 0.0:
            # Parallel to this edge: reject if outside the slab.
            if q < 0.0:
                return False
            continue
        t = q / p
        if p < 0.0:
            t_enter = max(t_enter, t)
        else:
            t_exit = min(t_exit, t)
        if t_enter > t_exit:
            return False
    return True


def collides(cfg: ASVConfig, obstacle: Obstacle, epsilon: float = DEFAULT_MAX_ERROR) -> bool:
    """Return True if any boom intersects the obstacle shrunk by epsilon."""
    lenient_rect = obstacle.rect.grow(-epsilon)
    return any(segment_intersects_rect(p0, p1, lenient_rect) for p0, p1 in cfg.booms())
