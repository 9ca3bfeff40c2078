"""
eosim.moon — Lunar Ephemeris (Simon et al. 1994)
=================================================

Geocentric position of the Moon from the mean lunar elements of Simon et
al. (1994), §3.4, with the periodic terms of Tables 4 and 5 in the
semi-major axis, eccentricity, inclination, perigee, node and mean
longitude.  Accuracy is a few arc-minutes, plenty for the Earth
Moon-barycentre offset needed by the solar ephemeris.

The elements are referred to the mean ecliptic and equinox of J2000; the
result is rotated to the J2000 equator.

Reference
---------
Simon, J.L., Bretagnon, P., Chapront, J., et al. (1994). Numerical
    expressions for precession formulae and mean elements for the Moon
    and the planets. *A&A* 282, 663–683.
"""

import numpy as np
from numpy.typing import NDArray

from .julian import JulianDate
from .orbits import longitude_elements_to_position
from .utils import RADIANS_PER_ARCSEC, rotation_x

# ── Constants ───────────────────────────────────────────────────────────────
MOON_EARTH_MASS_RATIO = 0.012300034    # μ☾ / μ⊕
OBLIQUITY_J2000 = 84381.406 * RADIANS_PER_ARCSEC   # ε₀ [rad]
DAYS_PER_JULIAN_CENTURY = 36525.0

DEG = np.pi / 180.0
ARCSEC = RADIANS_PER_ARCSEC

# J2000 ecliptic → J2000 equator
ECLIPTIC_TO_EQUATORIAL = rotation_x(OBLIQUITY_J2000)


def moon_position_ecliptic(date: JulianDate) -> NDArray:
    """Geocentric Moon position, J2000 mean ecliptic [m]."""
    t = date.tdb_days_since_j2000() / DAYS_PER_JULIAN_CENTURY
    t2 = t * t
    t3 = t2 * t
    t4 = t3 * t

    # Mean elements, §3.4 (b.1); angular parts in arc-seconds
    a = 383397.7725 + 0.004 * t
    e = 0.055545526 - 0.000000016 * t
    inc = -0.00008 * t + 0.02966 * t2 - 0.000042 * t3 - 0.00000013 * t4
    perigee = 14643420.2669 * t - 38.2702 * t2 - 0.045047 * t3 + 0.00021301 * t4
    node = -6967919.3631 * t + 6.3602 * t2 + 0.007625 * t3 - 0.00003586 * t4
    mean_lon = 1732559343.4847 * t - 6.391 * t2 + 0.006588 * t3 - 0.00003169 * t4

    # Delaunay arguments, §3.5 (b)
    D = 297.85019547 * DEG + ARCSEC * (
        1602961601.209 * t - 6.3706 * t2 + 0.006593 * t3 - 0.00003169 * t4)
    F = 93.27209062 * DEG + ARCSEC * (
        1739527262.8478 * t - 12.7512 * t2 - 0.001037 * t3 + 0.00000417 * t4)
    l = 134.96340251 * DEG + ARCSEC * (
        1717915923.2178 * t + 31.8792 * t2 + 0.051635 * t3 - 0.0002447 * t4)
    lp = 357.52910918 * DEG + ARCSEC * (
        129596581.0481 * t - 0.5532 * t2 + 0.000136 * t3 - 0.00001149 * t4)
    psi = 310.17137918 * DEG - ARCSEC * (
        6967051.436 * t + 6.2068 * t2 + 0.007618 * t3 - 0.00003219 * t4)

    # Table 4
    d2, d4, d6 = 2.0 * D, 4.0 * D, 6.0 * D
    l2, l3, l4 = 2.0 * l, 3.0 * l, 4.0 * l
    f2 = 2.0 * F
    cos, sin = np.cos, np.sin

    a += (3400.4 * cos(d2) - 635.6 * cos(d2 - l) - 235.6 * cos(l)
          + 218.1 * cos(d2 - lp) + 181.0 * cos(d2 + l))
    e += (0.014216 * cos(d2 - l) + 0.008551 * cos(d2 - l2)
          - 0.001383 * cos(l) + 0.001356 * cos(d2 + l)
          - 0.001147 * cos(d4 - l3) - 0.000914 * cos(d4 - l2)
          + 0.000869 * cos(d2 - lp - l) - 0.000627 * cos(d2)
          - 0.000394 * cos(d4 - l4) + 0.000282 * cos(d2 - lp - l2)
          - 0.000279 * cos(D - l) - 0.000236 * cos(l2)
          + 0.000231 * cos(d4) + 0.000229 * cos(d6 - l4)
          - 0.000201 * cos(l2 - f2))
    inc += (486.26 * cos(d2 - f2) - 40.13 * cos(d2) + 37.51 * cos(f2)
            + 25.73 * cos(l2 - f2) + 19.97 * cos(d2 - lp - f2))
    perigee += (-55609 * sin(d2 - l) - 34711 * sin(d2 - l2) - 9792 * sin(l)
                + 9385 * sin(d4 - l3) + 7505 * sin(d2) + 5318 * sin(d2 + l)
                + 3484 * sin(d4 - l4) - 3417 * sin(d2 - lp - l)
                - 2530 * sin(d6 - l4) - 2376 * sin(d2 - l3)
                - 2075 * sin(d4 - l2) - 1883 * sin(l2)
                - 1736 * sin(d6 - 5.0 * l) + 1626 * sin(lp)
                - 1370 * sin(d6 - l3))
    node += (-5392 * sin(d2 - f2) - 540 * sin(lp) - 441 * sin(d2)
             + 423 * sin(f2) - 288 * sin(l2 - f2))
    mean_lon += (-3332.9 * sin(d2) + 1197.4 * sin(d2 - l) - 662.5 * sin(lp)
                 + 396.3 * sin(l) - 218.0 * sin(d2 - lp))

    # Table 5 (terms in ψ, the node of the Moon on the ecliptic)
    p2, p3 = 2.0 * psi, 3.0 * psi
    inc += (46.997 * cos(psi) * t - 0.614 * cos(d2 - f2 + psi) * t
            + 0.614 * cos(d2 - f2 - psi) * t - 0.0297 * cos(p2) * t2
            - 0.0335 * cos(psi) * t2 + 0.0012 * cos(d2 - f2 + p2) * t2
            - 0.00016 * cos(psi) * t3 + 0.00004 * cos(p3) * t3
            + 0.00004 * cos(p2) * t3)
    perigee_and_mean = (2.116 * sin(psi) * t - 0.111 * sin(d2 - f2 - psi) * t
                        - 0.0015 * sin(psi) * t2)
    perigee += perigee_and_mean
    mean_lon += perigee_and_mean
    node += (-520.77 * sin(psi) * t + 13.66 * sin(d2 - f2 + psi) * t
             + 1.12 * sin(d2 - psi) * t - 1.06 * sin(f2 - psi) * t
             + 0.66 * sin(p2) * t2 + 0.371 * sin(psi) * t2
             - 0.035 * sin(d2 - f2 + p2) * t2 - 0.015 * sin(d2 - f2 + psi) * t2
             + 0.0014 * sin(psi) * t3 - 0.0011 * sin(p3) * t3
             - 0.0009 * sin(p2) * t3)

    return longitude_elements_to_position(
        a * 1000.0, e,
        5.15668983 * DEG + inc * ARCSEC,
        83.35324312 * DEG + perigee * ARCSEC,
        125.04455501 * DEG + node * ARCSEC,
        218.31664563 * DEG + mean_lon * ARCSEC,
    )


def moon_position_inertial(date: JulianDate) -> NDArray:
    """Geocentric Moon position in the Earth inertial (J2000 equatorial)
    frame [m]."""
    return ECLIPTIC_TO_EQUATORIAL @ moon_position_ecliptic(date)


def earth_offset_from_barycenter(date: JulianDate) -> NDArray:
    """Earth relative to the Earth–Moon barycentre, J2000 ecliptic [m]."""
    factor = -MOON_EARTH_MASS_RATIO / (MOON_EARTH_MASS_RATIO + 1.0)
    return moon_position_ecliptic(date) * factor
