"""
eosim.frames — Inertial ↔ Earth-Fixed Rotations
================================================

Rotations from the two inertial frames used in the simulator to the
Earth-fixed frame (ITRF / ECEF):

    ICRF → ITRF   IAU 2006/2000A CIO-based transformation driven by the
                  interpolated XYS table (``eosim.xys``).
    TEME → PEF    Z-rotation by Greenwich mean sidereal time (IAU 1982).

When the XYS table has no data for the requested instant, the ICRF
rotation falls back to the TEME pseudo-fixed rotation.  The error of the
fallback is dominated by precession (≈ 0.35° in 2024), which is more than
adequate for coarse visibility work and is replaced transparently once the
chunk arrives.

Simplifications
---------------
UT1 is taken equal to UTC and polar motion is neglected (W = I).

Reference
---------
IERS Conventions (2010), Ch. 5.
Vallado, D. A. (2013). *Fundamentals of Astrodynamics and Applications*,
    §3.7.
"""

import logging
import math
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from .julian import J2000_JD, JulianDate, TimeStandard
from .utils import DAILY_SECONDS, gmst, rotation_z
from .xys import Iau2006XysData

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


class ReferenceFrame(str, Enum):
    INERTIAL = "inertial"
    FIXED = "fixed"


class InertialFrame(str, Enum):
    ICRF = "icrf"
    TEME = "teme"


# ════════════════════════════════════════════════════════════════════════════
#  Matrix Builders
# ════════════════════════════════════════════════════════════════════════════

def earth_rotation_angle(date: JulianDate) -> float:
    """Earth rotation angle [rad] with UT1 ≈ UTC."""
    utc = date.to_standard(TimeStandard.UTC)
    fraction = utc.seconds_of_day / DAILY_SECONDS
    days = utc.day_number - J2000_JD
    era = 0.7790572732640 + fraction + 0.00273781191135448 * (days + fraction)
    return (era % 1.0) * TWO_PI


def icrf_to_fixed_matrix(xys: NDArray, date: JulianDate,
                         out: NDArray = None) -> NDArray:
    """ICRF → ITRF rotation from pole coordinates ``xys = [X, Y, s]``.

    ``R = R3(ERA) · R3(−s) · Mᵀ`` where ``M`` is the celestial-to-intermediate
    matrix of the CIP.
    """
    x, y, s = xys
    a = 1.0 / (1.0 + math.sqrt(1.0 - x * x - y * y))
    m = np.array([
        [1.0 - a * x * x, -a * x * y, x],
        [-a * x * y, 1.0 - a * y * y, y],
        [-x, -y, 1.0 - a * (x * x + y * y)],
    ])
    # pseudo-fixed → ICRF, then transpose
    pf_to_icrf = m @ rotation_z(-s) @ rotation_z(earth_rotation_angle(date))
    if out is None:
        out = np.empty((3, 3))
    out[:] = pf_to_icrf.T
    return out


def teme_to_pseudo_fixed_matrix(date: JulianDate, out: NDArray = None) -> NDArray:
    """TEME → pseudo-Earth-fixed rotation ``R3(GMST)``."""
    utc = date.to_standard(TimeStandard.UTC)
    theta = gmst(utc.jd)
    c, s = math.cos(theta), math.sin(theta)
    if out is None:
        out = np.empty((3, 3))
    out[:] = ((c, s, 0.0),
              (-s, c, 0.0),
              (0.0, 0.0, 1.0))
    return out


# ════════════════════════════════════════════════════════════════════════════
#  Frame Service
# ════════════════════════════════════════════════════════════════════════════

class FrameRotation:
    """Inertial → fixed rotations at arbitrary instants.

    Parameters
    ----------
    xys_data : Iau2006XysData, optional — pole-coordinate table; without one
               every ICRF request uses the pseudo-fixed fallback
    """

    def __init__(self, xys_data: Iau2006XysData = None):
        self.xys_data = xys_data
        self._xys = np.empty(3)
        self._warned_fallback = False

    def compute_xys(self, date: JulianDate):
        """Interpolated ``[X, Y, s]`` or ``None`` (not available)."""
        if self.xys_data is None:
            return None
        return self.xys_data.compute_xys_at(date, out=self._xys)

    def icrf_to_fixed(self, date: JulianDate, out: NDArray = None) -> NDArray:
        """ICRF → ITRF, falling back to TEME → PEF without XYS data."""
        xys = self.compute_xys(date)
        if xys is None:
            if not self._warned_fallback:
                logger.debug("No XYS data at JD %.5f; using pseudo-fixed rotation",
                             date.jd)
                self._warned_fallback = True
            return teme_to_pseudo_fixed_matrix(date, out)
        return icrf_to_fixed_matrix(xys, date, out)

    def teme_to_fixed(self, date: JulianDate, out: NDArray = None) -> NDArray:
        return teme_to_pseudo_fixed_matrix(date, out)

    def to_fixed(self, frame: InertialFrame, date: JulianDate,
                 out: NDArray = None) -> NDArray:
        """Rotation from the given inertial frame to Earth-fixed."""
        if InertialFrame(frame) is InertialFrame.TEME:
            return self.teme_to_fixed(date, out)
        return self.icrf_to_fixed(date, out)


_default = None


def default_frame_rotation() -> FrameRotation:
    """Process-wide frame service used by objects outside a universe."""
    global _default
    if _default is None:
        _default = FrameRotation()
    return _default


def set_default_frame_rotation(service: FrameRotation) -> None:
    global _default
    _default = service
