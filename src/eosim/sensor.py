"""
eosim.sensor — Topocentric Geometry & Field of Regard
======================================================

Conversions from a local Cartesian vector to azimuth / elevation / range,
and the field-of-regard test used to decide whether a sensor may point at
a target.

Local frames
------------
Ground sites use South-East-Zenith (SEZ): +x South, +y East, +z Zenith.
Azimuth is measured from North through East::

    az = atan2(E, −S)  ∈ [0°, 360°)
    el = asin(Z / r)   ∈ [−90°, 90°]

Space-based sites measure "elevation" as the angle away from the −z axis
(the boresight of a nadir-pointing body frame)::

    el = atan2(√(x² + y²), −z)

Field of regard
---------------
A list of sky rectangles ``{clock: [az_min, az_max], elevation: [el_min,
el_max]}`` in degrees.  A direction is inside when some rectangle contains
it *strictly*; points on a rectangle's edge are outside.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError

DEGREES_PER_RADIAN = 180.0 / math.pi
TWO_PI = 2.0 * math.pi


# ════════════════════════════════════════════════════════════════════════════
#  Az / El
# ════════════════════════════════════════════════════════════════════════════

def _azimuth(x: float, y: float) -> float:
    if x == 0.0 and y == 0.0:
        return 0.0
    az = math.atan2(y, -x)
    if az < 0.0:
        az += TWO_PI
    # a tiny negative angle rounds up to exactly 2π
    if az >= TWO_PI:
        az -= TWO_PI
    return az


def south_east_zenith_to_az_el(v: NDArray) -> tuple[float, float, float]:
    """SEZ vector → (azimuth [deg], elevation [deg], range).

    A zero vector yields ``(0, 0, 0)``.
    """
    x, y, z = float(v[0]), float(v[1]), float(v[2])
    az = _azimuth(x, y)
    mag = math.sqrt(x * x + y * y + z * z)
    el = 0.0 if mag < 1e-9 else math.asin(z / mag)
    return az * DEGREES_PER_RADIAN, el * DEGREES_PER_RADIAN, mag


def space_based_to_az_el(v: NDArray) -> tuple[float, float, float]:
    """Body-frame vector → (azimuth [deg], off-(−z) angle [deg], range)."""
    x, y, z = float(v[0]), float(v[1]), float(v[2])
    az = _azimuth(x, y)
    mag = math.sqrt(x * x + y * y + z * z)
    rho = math.sqrt(x * x + y * y)
    if abs(rho) < 1e-9 and abs(z) < 1e-9:
        el = 0.0
    else:
        el = math.atan2(rho, -z)
    return az * DEGREES_PER_RADIAN, el * DEGREES_PER_RADIAN, mag


def az_el_to_south_east_zenith(az: float, el: float, r: float = 1.0) -> NDArray:
    """Inverse of :func:`south_east_zenith_to_az_el` (angles in degrees)."""
    az_r, el_r = math.radians(az), math.radians(el)
    return r * np.array([-math.cos(el_r) * math.cos(az_r),
                         math.cos(el_r) * math.sin(az_r),
                         math.sin(el_r)])


# ════════════════════════════════════════════════════════════════════════════
#  Field of Regard
# ════════════════════════════════════════════════════════════════════════════

@dataclass
class FieldOfRegard:
    """One sky rectangle a sensor may point into.

    Parameters
    ----------
    clock : (az_min, az_max) — azimuth bounds [deg], within [0, 360]
    elevation : (el_min, el_max) — elevation bounds [deg], within [−90, 90]
    """
    clock: tuple = (0.0, 360.0)
    elevation: tuple = (0.0, 90.0)

    def __post_init__(self):
        if len(self.clock) != 2 or len(self.elevation) != 2:
            raise InvalidInputError("clock and elevation must be (min, max) pairs")
        self.clock = (float(self.clock[0]), float(self.clock[1]))
        self.elevation = (float(self.elevation[0]), float(self.elevation[1]))
        if not (0.0 <= self.clock[0] <= 360.0 and 0.0 <= self.clock[1] <= 360.0):
            raise InvalidInputError(f"clock bounds must lie in [0, 360], got {self.clock}")
        if not (-90.0 <= self.elevation[0] <= 90.0 and -90.0 <= self.elevation[1] <= 90.0):
            raise InvalidInputError(
                f"elevation bounds must lie in [-90, 90], got {self.elevation}")

    @classmethod
    def coerce(cls, region) -> "FieldOfRegard":
        """Accept a FieldOfRegard or a mapping with ``clock`` / ``elevation``."""
        if isinstance(region, FieldOfRegard):
            return region
        if isinstance(region, Mapping):
            try:
                return cls(tuple(region["clock"]), tuple(region["elevation"]))
            except KeyError as exc:
                raise InvalidInputError(f"field of regard is missing {exc}") from exc
        raise InvalidInputError(f"not a field of regard: {region!r}")

    def contains(self, az: float, el: float) -> bool:
        return (self.clock[0] < az < self.clock[1]
                and self.elevation[0] < el < self.elevation[1])


def coerce_field_of_regard(regions: Optional[Iterable]) -> list[FieldOfRegard]:
    if regions is None:
        return []
    return [FieldOfRegard.coerce(r) for r in regions]


def in_field_of_regard(az: float, el: float,
                       regions: Optional[Sequence]) -> bool:
    """True iff some region strictly contains ``(az, el)`` [deg]."""
    if not regions:
        return False
    for region in regions:
        if FieldOfRegard.coerce(region).contains(az, el):
            return True
    return False
