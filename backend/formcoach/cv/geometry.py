"""Planar geometry helpers shared by the analyzers."""

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

# Synthetic "straight up" reference point distance, in pixels
VERTICAL_REFERENCE_OFFSET = 100.0


@dataclass(frozen=True)
class Point:
    """Plain 2D point (synthesized references and midpoints)."""
    x: float
    y: float


def calculate_angle(point_a, point_b, point_c) -> float:
    """
    Angle at vertex B formed by rays B->A and B->C, in degrees.

    Any object with ``x`` and ``y`` attributes is accepted. The result is
    always in [0, 180]; coincident points give a finite value.
    """
    radians = (
        np.arctan2(point_c.y - point_b.y, point_c.x - point_b.x)
        - np.arctan2(point_a.y - point_b.y, point_a.x - point_b.x)
    )
    angle = abs(np.degrees(radians))

    if angle > 180.0:
        angle = 360.0 - angle

    return float(angle)


def midpoint(point_a, point_b) -> Point:
    return Point(x=(point_a.x + point_b.x) / 2, y=(point_a.y + point_b.y) / 2)


def vertical_reference(point, offset: float = VERTICAL_REFERENCE_OFFSET) -> Point:
    """Point directly above ``point`` (image y grows downward)."""
    return Point(x=point.x, y=point.y - offset)


def round_half_up(value: float, decimals: int = 0) -> Union[int, float]:
    """
    Round halves toward +infinity.

    Returns an int when ``decimals`` is 0.
    """
    factor = 10 ** decimals
    rounded = math.floor(value * factor + 0.5)
    if decimals == 0:
        return int(rounded)
    return rounded / factor
