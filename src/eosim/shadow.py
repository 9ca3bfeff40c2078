"""
eosim.shadow — Earth Shadow Classification
===========================================

Conical shadow model (Vallado §5.3): the Earth casts a converging umbra
cone and a diverging penumbra cone along the anti-Sun axis.

    L_u = R⊕·|S| / (R☉ − R⊕)      umbra length (apex behind Earth)
    L_p = R⊕·|S| / (R☉ + R⊕)      penumbra apex distance (toward Sun)

For an object at Earth-centred position ``p`` with ``proj = p·ŝ``:

    proj ≥ 0                                   → SUNLIT
    d_axial ≤ L_u and d_radial ≤ r_umbra       → UMBRA
    d_radial ≤ r_penumbra                      → PENUMBRA
    otherwise                                  → SUNLIT

where ``d_axial = −proj`` and ``d_radial = |p − proj·ŝ|``.  The Sun and
object positions must be in the same Earth-centred frame; the world
(Earth-fixed) frame is used here.
"""

from enum import Enum

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError
from .julian import JulianDate
from .utils import R_EARTH

SUN_RADIUS = 695_700_000.0      # Nominal solar radius (IAU 2015) [m]


class ShadowState(str, Enum):
    SUNLIT = "sunlit"
    PENUMBRA = "penumbra"
    UMBRA = "umbra"


def shadow_lengths(sun_distance: float) -> tuple[float, float]:
    """Umbra length and penumbra apex distance [m] for a Sun at ``sun_distance``."""
    umbra = R_EARTH * sun_distance / (SUN_RADIUS - R_EARTH)
    penumbra = R_EARTH * sun_distance / (SUN_RADIUS + R_EARTH)
    return umbra, penumbra


def classify_shadow_state(position: NDArray, sun_direction: NDArray,
                          umbra_length: float, penumbra_length: float,
                          scratch: NDArray = None) -> ShadowState:
    """Classify one Earth-centred position against the shadow cones.

    Parameters
    ----------
    position : (3,) — object position [m]
    sun_direction : (3,) — unit vector toward the Sun
    umbra_length, penumbra_length : float — from :func:`shadow_lengths`
    scratch : (3,) ndarray, optional — work vector, avoids an allocation
    """
    projection = float(np.dot(position, sun_direction))
    if projection >= 0.0:
        return ShadowState.SUNLIT

    axial = -projection
    if scratch is None:
        scratch = np.empty(3)
    np.multiply(sun_direction, projection, out=scratch)
    np.subtract(position, scratch, out=scratch)
    radial = float(np.linalg.norm(scratch))

    umbra_radius = max(0.0, R_EARTH * (umbra_length - axial) / umbra_length)
    if axial <= umbra_length and radial <= umbra_radius:
        return ShadowState.UMBRA

    penumbra_radius = R_EARTH * (penumbra_length + axial) / penumbra_length
    if radial <= penumbra_radius:
        return ShadowState.PENUMBRA

    return ShadowState.SUNLIT


def get_shadow_status(sun, objects, time: JulianDate,
                      universe=None) -> list[ShadowState]:
    """Shadow state of each object at ``time``.

    ``sun`` and every object are updated to ``time`` first.  ``None``
    entries, and objects without a world position, count as SUNLIT; so
    does everything when the Sun sits at the origin.
    """
    if sun is None:
        raise InvalidInputError("a Sun object is required")
    if not isinstance(time, JulianDate):
        raise InvalidInputError("time must be a JulianDate")
    if not isinstance(objects, (list, tuple)):
        raise InvalidInputError("objects must be a list or tuple")

    sun.update(time, universe)
    sun_position = sun.world_position
    if sun_position is None:
        raise InvalidInputError("the Sun object must expose a world position")

    sun_distance = float(np.linalg.norm(sun_position))
    if sun_distance == 0.0:
        return [ShadowState.SUNLIT for _ in objects]

    sun_direction = sun_position / sun_distance
    umbra, penumbra = shadow_lengths(sun_distance)
    scratch = np.empty(3)

    states = []
    for obj in objects:
        if obj is None:
            states.append(ShadowState.SUNLIT)
            continue
        obj.update(time, universe)
        position = obj.world_position
        if position is None:
            states.append(ShadowState.SUNLIT)
        else:
            states.append(classify_shadow_state(position, sun_direction,
                                                umbra, penumbra, scratch))
    return states
