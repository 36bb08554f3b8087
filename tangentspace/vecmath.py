"""Single-precision three-component vector arithmetic.

Every result is rounded to IEEE-754 binary32, so tangent spaces come out the
same as they would from a single-precision implementation.
"""

from __future__ import annotations

import math
import struct
from collections.abc import Iterator
from dataclasses import dataclass

FLT_MIN = 1.1754943508222875e-38
"""Smallest positive normal single-precision value."""

_F32 = struct.Struct("<f")


def to_f32(value: float) -> float:
    """Round ``value`` to the nearest single-precision float."""
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def not_zero(value: float) -> bool:
    """Return True when ``value`` is larger in magnitude than FLT_MIN."""
    return abs(value) > FLT_MIN


@dataclass(frozen=True, eq=False)
class Vec3:
    """An immutable vector whose components are single-precision floats."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", to_f32(self.x))
        object.__setattr__(self, "y", to_f32(self.y))
        object.__setattr__(self, "z", to_f32(self.z))

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __hash__(self) -> int:
        return hash((self.x, self.y, self.z))

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, factor: float) -> Vec3:
        """Return the vector multiplied by ``factor``."""
        f = to_f32(factor)
        return Vec3(f * self.x, f * self.y, f * self.z)

    def dot(self, other: Vec3) -> float:
        """Return the dot product with ``other``."""
        xy = to_f32(to_f32(self.x * other.x) + to_f32(self.y * other.y))
        return to_f32(xy + to_f32(self.z * other.z))

    def length_squared(self) -> float:
        """Return the squared Euclidean length."""
        return self.dot(self)

    def length(self) -> float:
        """Return the Euclidean length."""
        return to_f32(math.sqrt(self.length_squared()))

    def normalized(self) -> Vec3:
        """Return the vector scaled to unit length.

        A vector whose length rounds to zero yields non-finite components,
        just as a division by zero would in single precision.
        """
        length = self.length()
        factor = math.inf if length == 0.0 else to_f32(1.0 / length)
        return self.scale(factor)

    def is_nonzero(self) -> bool:
        """Return True when any component is larger in magnitude than FLT_MIN."""
        return not_zero(self.x) or not_zero(self.y) or not_zero(self.z)