"""
Numeric primitives shared by every detector.

All coordinates are normalized image coordinates (0-1, y grows downward).
"""

import math
from typing import NamedTuple, Protocol


class Point(Protocol):
    x: float
    y: float


class Vec2(NamedTuple):
    x: float
    y: float


# Quality bands for joint-angle feedback
QUALITY_GOOD = "good"
QUALITY_WARNING = "warning"
QUALITY_BAD = "bad"

DEFAULT_BAND_TOLERANCE = 15.0  # degrees


def angle_at_vertex(a: Point, b: Point, c: Point) -> float:
    """Return angle ABC in degrees with B as vertex, always in [0, 180]."""
    radians = math.atan2(c.y - b.y, c.x - b.x) - math.atan2(a.y - b.y, a.x - b.x)
    angle = abs(math.degrees(radians))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def distance(a: Point, b: Point) -> float:
    """Euclidean distance in normalized units."""
    return math.hypot(b.x - a.x, b.y - a.y)


def midpoint(a: Point, b: Point) -> Vec2:
    """Component-wise average."""
    return Vec2((a.x + b.x) / 2, (a.y + b.y) / 2)


def quality_band(
    value: float,
    minimum: float,
    maximum: float,
    tolerance: float = DEFAULT_BAND_TOLERANCE
) -> str:
    """Classify a value against a target range: good, warning (within tolerance) or bad."""
    if minimum <= value <= maximum:
        return QUALITY_GOOD
    if minimum - tolerance <= value <= maximum + tolerance:
        return QUALITY_WARNING
    return QUALITY_BAD

