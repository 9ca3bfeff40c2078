"""
eosim.utils — Foundational Utilities
=====================================

Physical constants, vector helpers, principal-axis rotations, rigid 4×4
transforms, and the calendar / sidereal-time helpers shared by the rest of
the package.  All functions are pure NumPy.

Matrix conventions
------------------
Rotations are *active* (they rotate a vector, right-hand rule) and 3×3.
A rigid transform is a 4×4 ``ndarray`` whose upper-left 3×3 block is the
rotation and whose last column holds the translation, so flattening it in
column-major order (``m.ravel(order="F")``) puts the translation at
elements 12, 13 and 14.
"""

import numpy as np
from numpy.typing import NDArray

# ── Physical Constants ──────────────────────────────────────────────────────
MU_EARTH = 3.986004418e14       # Earth gravitational parameter  [m³/s²]
R_EARTH = 6_378_137.0           # WGS-84 semi-major axis          [m]
F_EARTH = 1.0 / 298.257223563  # WGS-84 flattening
E2_EARTH = 2 * F_EARTH - F_EARTH ** 2  # First eccentricity squared
OMEGA_EARTH = 7.292115146706979e-5  # Earth rotation rate          [rad/s]

DAILY_SECONDS = 86400.0
ARCSEC_PER_RADIAN = 206264.806
RADIANS_PER_ARCSEC = np.pi / (180.0 * 3600.0)

ZERO3 = np.zeros(3)
ZERO3.flags.writeable = False
IDENTITY4 = np.eye(4)
IDENTITY4.flags.writeable = False


# ── Vector Helpers ──────────────────────────────────────────────────────────

def normalize(v: NDArray) -> NDArray:
    """Return unit vector.  Works on single vectors or (N,3) arrays."""
    v = np.asarray(v, dtype=np.float64)
    if v.ndim == 1:
        mag = np.linalg.norm(v)
        if mag < 1e-15:
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    elif v.ndim == 2:
        mag = np.linalg.norm(v, axis=1, keepdims=True)
        if np.any(mag < 1e-15):
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    else:
        raise ValueError(f"Expected 1-D or 2-D array, got {v.ndim}-D.")


def as_vector3(v, name: str = "vector") -> NDArray:
    """Coerce ``v`` to a float (3,) array, rejecting any other shape."""
    arr = np.asarray(v, dtype=np.float64)
    if arr.shape != (3,):
        # local import keeps utils free of package-level dependencies
        from .errors import InvalidInputError
        raise InvalidInputError(f"{name} must have shape (3,), got {arr.shape}")
    return arr


def angle_between(a: NDArray, b: NDArray) -> float:
    """Angle between two vectors [rad], robust near 0 and π."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return float(np.arctan2(np.linalg.norm(np.cross(a, b)), np.dot(a, b)))


# ── Rotations ───────────────────────────────────────────────────────────────

def rotation_x(angle: float) -> NDArray:
    """Active rotation about +X by ``angle`` [rad]."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


def rotation_y(angle: float) -> NDArray:
    """Active rotation about +Y by ``angle`` [rad]."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, 0.0, s],
        [0.0, 1.0, 0.0],
        [-s, 0.0, c],
    ])


def rotation_z(angle: float) -> NDArray:
    """Active rotation about +Z by ``angle`` [rad]."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


# ── Rigid 4×4 Transforms ────────────────────────────────────────────────────

def rigid_transform(rotation: NDArray = None,
                    translation: NDArray = None) -> NDArray:
    """Build a 4×4 rigid transform from a 3×3 rotation and a translation."""
    m = np.eye(4)
    if rotation is not None:
        m[:3, :3] = rotation
    if translation is not None:
        m[:3, 3] = translation
    return m


def inverse_transformation(m: NDArray, out: NDArray = None) -> NDArray:
    """Inverse of a rigid transform.

    Exploits rigidity instead of a general inverse::

        [R t]⁻¹ = [Rᵀ  −Rᵀt]
        [0 1]     [0     1 ]
    """
    if out is None:
        out = np.empty((4, 4))
    rot_t = m[:3, :3].T
    out[:3, 3] = -(rot_t @ m[:3, 3])
    out[:3, :3] = rot_t
    out[3, :3] = 0.0
    out[3, 3] = 1.0
    return out


def multiply_by_point(m: NDArray, point: NDArray, out: NDArray = None) -> NDArray:
    """Apply a rigid transform to a point (rotation plus translation)."""
    if out is None:
        out = np.empty(3)
    np.matmul(m[:3, :3], point, out=out)
    out += m[:3, 3]
    return out


def multiply_by_point_as_vector(m: NDArray, vector: NDArray,
                                out: NDArray = None) -> NDArray:
    """Apply only the rotation block of a rigid transform to a vector."""
    if out is None:
        out = np.empty(3)
    np.matmul(m[:3, :3], vector, out=out)
    return out


# ── Time Utilities ──────────────────────────────────────────────────────────

def julian_date(year: int, month: int, day: int,
                hour: float = 0.0, minute: float = 0.0,
                second: float = 0.0) -> float:
    """Compute Julian Date from a Gregorian calendar date."""
    if month <= 2:
        year -= 1
        month += 12
    A = int(year / 100)
    B = 2 - A + int(A / 4)
    JD = (int(365.25 * (year + 4716))
          + int(30.6001 * (month + 1))
          + day + B - 1524.5)
    JD += (hour + minute / 60.0 + second / 3600.0) / 24.0
    return JD


def gmst(jd: float) -> float:
    """Greenwich Mean Sidereal Time [rad] from Julian Date (UT1 ≈ UTC).

    Uses the IAU 1982 model (accurate to ~0.1 arcsec for dates near J2000).
    """
    T = (jd - 2_451_545.0) / 36_525.0
    # GMST in seconds of time
    theta_sec = 67310.54841 + (876600.0 * 3600.0 + 8640184.812866) * T \
                + 0.093104 * T**2 - 6.2e-6 * T**3
    theta_deg = (theta_sec / 240.0) % 360.0  # convert seconds→degrees
    return np.deg2rad(theta_deg)


# ── Coordinate Conversions ──────────────────────────────────────────────────

def lla_to_ecef(lat: float, lon: float, alt: float = 0.0) -> NDArray:
    """Geodetic LLA → ECEF [m].

    Parameters
    ----------
    lat, lon : float — geodetic latitude / longitude [rad]
    alt : float — altitude above WGS-84 ellipsoid [m]
    """
    sin_lat, cos_lat = np.sin(lat), np.cos(lat)
    sin_lon, cos_lon = np.sin(lon), np.cos(lon)
    N = R_EARTH / np.sqrt(1.0 - E2_EARTH * sin_lat**2)
    x = (N + alt) * cos_lat * cos_lon
    y = (N + alt) * cos_lat * sin_lon
    z = (N * (1.0 - E2_EARTH) + alt) * sin_lat
    return np.array([x, y, z])
