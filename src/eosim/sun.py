"""
eosim.sun — Solar Ephemeris (Simon et al. 1994)
================================================

Geocentric Sun position in the Earth inertial (J2000 equatorial) frame.

The Earth–Moon barycentre (EMB) is placed on its heliocentric orbit from
the mean elements of Simon et al. (1994) §5.8, with the Table 6
perturbations in semi-major axis and mean longitude.  The Earth is then
offset from the EMB using the lunar theory in ``eosim.moon``::

    r☉ = −r_EMB − r⊕/EMB

and the vector is rotated from the J2000 ecliptic to the J2000 equator.

A low-precision Astronomical Almanac formula is kept alongside as an
independent check (≈0.01° in longitude).

Reference
---------
Simon, J.L., et al. (1994). *A&A* 282, 663–683.
Meeus, J. (1998). *Astronomical Algorithms*, 2nd ed., Ch. 25.
"""

import numpy as np
from numpy.typing import NDArray

from .julian import JulianDate
from .moon import ECLIPTIC_TO_EQUATORIAL, earth_offset_from_barycenter
from .orbits import longitude_elements_to_position
from .utils import RADIANS_PER_ARCSEC

# ── Constants ───────────────────────────────────────────────────────────────
AU = 149_597_870_700.0          # Astronomical Unit [m]
AU_IAU1976 = 1.4959787e11       # AU used by the Simon 1994 tables [m]
DAYS_PER_JULIAN_MILLENNIUM = 365250.0

DEG = np.pi / 180.0
ARCSEC = RADIANS_PER_ARCSEC

# Table 6: (multiplier, cos coeff, sin coeff) for the EMB semi-major axis
# [1e-7 AU] and mean longitude [1e-7 rad], argument k·u, u = 0.3595362 t
_A_TERMS = (
    (16002, 64, -150), (21863, -152, -46), (32004, 62, 68), (10931, -8, 54),
    (14529, 32, 14), (16368, -41, 24), (15318, 19, -28), (32794, -11, 22),
)
_L_TERMS = (
    (10, -325, -105), (16002, -322, -137), (21863, -79, 258), (10931, 232, 35),
    (1473, -52, -116), (32004, 97, -88), (4387, 55, -112), (73, -41, -80),
)


def emb_position_heliocentric(date: JulianDate) -> NDArray:
    """Heliocentric Earth–Moon barycentre, J2000 mean ecliptic [m]."""
    t = date.tdb_days_since_j2000() / DAYS_PER_JULIAN_MILLENNIUM
    u = 0.3595362 * t

    a = 1.0000010178
    mean_lon = 100.46645683 * DEG + 1295977422.83429 * ARCSEC * t
    for k, c, s in _A_TERMS:
        a += 1e-7 * (c * np.cos(k * u) + s * np.sin(k * u))
    for k, c, s in _L_TERMS:
        mean_lon += 1e-7 * (c * np.cos(k * u) + s * np.sin(k * u))

    e = 0.0167086342 - 0.0004203654 * t
    lon_perigee = 102.93734808 * DEG + 11612.3529 * ARCSEC * t
    inc = 469.97289 * ARCSEC * t
    lon_node = 174.87317577 * DEG - 8679.27034 * ARCSEC * t

    return longitude_elements_to_position(a * AU_IAU1976, e, inc,
                                          lon_perigee, lon_node, mean_lon)


def sun_position_inertial(date: JulianDate, out: NDArray = None) -> NDArray:
    """Geocentric Sun position, Earth inertial (J2000 equatorial) [m]."""
    ecliptic = -emb_position_heliocentric(date) - earth_offset_from_barycenter(date)
    if out is None:
        out = np.empty(3)
    np.matmul(ECLIPTIC_TO_EQUATORIAL, ecliptic, out=out)
    return out


def sun_position_low_precision(jd: float) -> NDArray:
    """Geocentric Sun position from the Astronomical Almanac formula [m].

    Parameters
    ----------
    jd : float — Julian Date (TDB ≈ UTC for this precision)

    Returns
    -------
    r_sun : (3,) ndarray — mean-of-date equatorial position [m]
    """
    # Julian centuries from J2000.0
    T = (jd - 2_451_545.0) / 36_525.0

    # Mean anomaly of the Sun [deg]
    M = 357.5291092 + 35999.0502909 * T
    M = np.deg2rad(M % 360.0)

    # Mean longitude of the Sun [deg]
    L0 = 280.46646 + 36000.76983 * T + 0.0003032 * T**2
    L0 = L0 % 360.0

    # Equation of center [deg]
    C = (1.9146 - 0.004817 * T - 0.000014 * T**2) * np.sin(M) \
      + (0.019993 - 0.000101 * T) * np.sin(2 * M) \
      + 0.00029 * np.sin(3 * M)

    # Sun's true longitude [deg]
    sun_lon = np.deg2rad((L0 + C) % 360.0)

    # Sun's distance [AU]
    e_sun = 0.016708634 - 0.000042037 * T - 0.0000001267 * T**2
    nu = M + np.deg2rad(C)
    R_au = 1.000001018 * (1.0 - e_sun**2) / (1.0 + e_sun * np.cos(nu))

    # Mean obliquity of ecliptic [deg]
    eps = 23.439291 - 0.0130042 * T - 1.64e-7 * T**2 + 5.04e-7 * T**3
    eps = np.deg2rad(eps)

    # Ecliptic → equatorial
    r_m = R_au * AU
    x = r_m * np.cos(sun_lon)
    y = r_m * np.cos(eps) * np.sin(sun_lon)
    z = r_m * np.sin(eps) * np.sin(sun_lon)

    return np.array([x, y, z])
