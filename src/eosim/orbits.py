"""
eosim.orbits — Two-Body Orbital Mechanics
==========================================

Kepler equation solver, Keplerian element → state conversion, and a
universal-variable two-body propagator that handles elliptic, parabolic
and hyperbolic arcs alike.  All pure NumPy.

Reference
---------
Vallado, D. A. (2013). *Fundamentals of Astrodynamics and Applications*,
    4th ed., Algorithms 1 (findc2c3), 8 (KEPLER) and 9 (RV2COE).
"""

import logging
import math

import numpy as np
from numpy.typing import NDArray

from .errors import PropagatorError
from .utils import MU_EARTH

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi
_SMALL = 1e-10


# ════════════════════════════════════════════════════════════════════════════
#  Kepler Equation
# ════════════════════════════════════════════════════════════════════════════

def _solve_kepler(M: float, e: float, tol: float = 1e-12,
                  max_iter: int = 50) -> float:
    """Solve Kepler's equation  M = E − e sin(E)  via Newton–Raphson.

    Parameters
    ----------
    M : float — mean anomaly [rad]
    e : float — eccentricity
    tol : float — convergence tolerance [rad]

    Returns
    -------
    E : float — eccentric anomaly [rad]
    """
    # Smart initial guess (Markley-style)
    E = M + 0.85 * e * np.sign(np.sin(M)) if e < 0.8 else np.pi
    for _ in range(max_iter):
        f = E - e * np.sin(E) - M
        fp = 1.0 - e * np.cos(E)
        dE = -f / fp
        E += dE
        if abs(dE) < tol:
            break
    return E


# ════════════════════════════════════════════════════════════════════════════
#  Keplerian → Cartesian
# ════════════════════════════════════════════════════════════════════════════

def keplerian_to_eci(
    a: float, e: float, i: float,
    raan: float, argp: float, nu: float,
    mu: float = MU_EARTH,
) -> tuple[NDArray, NDArray]:
    """Convert classical Keplerian elements to an inertial state vector.

    Parameters
    ----------
    a : float — semi-major axis [m]
    e : float — eccentricity
    i : float — inclination [rad]
    raan : float — right ascension of ascending node [rad]
    argp : float — argument of periapsis [rad]
    nu : float — true anomaly [rad]
    mu : float — gravitational parameter [m³/s²]

    Returns
    -------
    r : (3,) ndarray — position [m]
    v : (3,) ndarray — velocity [m/s]
    """
    p = a * (1.0 - e**2)               # semi-latus rectum
    r_mag = p / (1.0 + e * np.cos(nu))

    # Position & velocity in perifocal (PQW) frame
    r_pqw = r_mag * np.array([np.cos(nu), np.sin(nu), 0.0])
    v_pqw = np.sqrt(mu / p) * np.array([-np.sin(nu), e + np.cos(nu), 0.0])

    # Rotation matrix PQW → inertial
    cos_raan, sin_raan = np.cos(raan), np.sin(raan)
    cos_argp, sin_argp = np.cos(argp), np.sin(argp)
    cos_i, sin_i = np.cos(i), np.sin(i)

    R = np.array([
        [cos_raan * cos_argp - sin_raan * sin_argp * cos_i,
         -cos_raan * sin_argp - sin_raan * cos_argp * cos_i,
         sin_raan * sin_i],
        [sin_raan * cos_argp + cos_raan * sin_argp * cos_i,
         -sin_raan * sin_argp + cos_raan * cos_argp * cos_i,
         -cos_raan * sin_i],
        [sin_argp * sin_i,
         cos_argp * sin_i,
         cos_i],
    ])

    return R @ r_pqw, R @ v_pqw


def longitude_elements_to_position(
    a: float, e: float, i: float,
    lon_perigee: float, lon_node: float, mean_lon: float,
) -> NDArray:
    """Position from elements given as longitudes (planetary-theory style).

    Parameters
    ----------
    a : float — semi-major axis [m]
    e : float — eccentricity
    i : float — inclination [rad]; negative values flip the node
    lon_perigee : float — longitude of perigee ϖ = Ω + ω [rad]
    lon_node : float — longitude of ascending node Ω [rad]
    mean_lon : float — mean longitude L = ϖ + M [rad]
    """
    if i < 0.0:
        i = -i
        lon_node += np.pi
    M = (mean_lon - lon_perigee) % TWO_PI
    E = _solve_kepler(M, e)
    nu = 2.0 * np.arctan2(
        np.sqrt(1.0 + e) * np.sin(E / 2.0),
        np.sqrt(1.0 - e) * np.cos(E / 2.0),
    )
    r, _ = keplerian_to_eci(a, e, i, lon_node, lon_perigee - lon_node, nu)
    return r


def compute_orbital_period(a: float, mu: float = MU_EARTH) -> float:
    """Orbital period [s] for semi-major axis a [m]."""
    return 2.0 * np.pi * np.sqrt(a**3 / mu)


def compute_mean_motion(a: float, mu: float = MU_EARTH) -> float:
    """Mean motion [rad/s] for semi-major axis a [m]."""
    return np.sqrt(mu / a**3)


# ════════════════════════════════════════════════════════════════════════════
#  State-Vector Diagnostics
# ════════════════════════════════════════════════════════════════════════════

def _eccentricity_vector(r: NDArray, v: NDArray, mu: float) -> NDArray:
    return (r * (np.dot(v, v) - mu / np.linalg.norm(r)) - v * np.dot(r, v)) / mu


def rv_to_eccentricity(r: NDArray, v: NDArray, mu: float = MU_EARTH) -> float:
    """Orbital eccentricity from a state vector."""
    r = np.asarray(r, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    return float(np.linalg.norm(_eccentricity_vector(r, v, mu)))


def rv_to_period(r: NDArray, v: NDArray, mu: float = MU_EARTH) -> float:
    """Orbital period [s] from a state vector; ``inf`` for open orbits."""
    r = np.asarray(r, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    h = np.cross(r, v)
    p = np.dot(h, h) / mu
    ecc = rv_to_eccentricity(r, v, mu)
    if ecc >= 1.0:
        return math.inf
    a = p / (1.0 - ecc * ecc)
    return TWO_PI / math.sqrt(mu / abs(a ** 3))


def _E_to_nu(E: float, ecc: float) -> float:
    return 2.0 * math.atan(math.sqrt((1.0 + ecc) / (1.0 - ecc)) * math.tan(E / 2.0))


def _F_to_nu(F: float, ecc: float) -> float:
    return 2.0 * math.atan(math.sqrt((ecc + 1.0) / (ecc - 1.0)) * math.tanh(F / 2.0))


def rv_to_coe(r: NDArray, v: NDArray, mu: float = MU_EARTH,
              tol: float = 1e-12) -> dict:
    """Classical orbital elements from a state vector.

    Circular and/or equatorial orbits substitute the usual alternates:
    longitude of periapsis (equatorial), argument of latitude (circular),
    true longitude (both).

    Returns
    -------
    dict with keys: p [m], e, i, raan, argp, nu — angles in [rad],
    ``nu`` wrapped to [−π, π).
    """
    r = np.asarray(r, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    h = np.cross(r, v)
    h_mag = np.linalg.norm(h)
    n = np.cross([0.0, 0.0, 1.0], h)
    e_vec = _eccentricity_vector(r, v, mu)
    ecc = float(np.linalg.norm(e_vec))
    p = float(np.dot(h, h) / mu)
    inc = math.acos(h[2] / h_mag)

    circular = ecc < tol
    equatorial = abs(inc) < tol

    if equatorial and not circular:
        raan = 0.0
        argp = math.atan2(e_vec[1], e_vec[0]) % TWO_PI
        nu = math.atan2(np.dot(h, np.cross(e_vec, r)) / h_mag, np.dot(r, e_vec))
    elif circular and not equatorial:
        raan = math.atan2(n[1], n[0]) % TWO_PI
        argp = 0.0
        nu = math.atan2(np.dot(r, np.cross(h, n)) / h_mag, np.dot(r, n))
    elif circular and equatorial:
        raan = 0.0
        argp = 0.0
        nu = math.atan2(r[1], r[0]) % TWO_PI
    else:
        a = p / (1.0 - ecc ** 2)
        ka = mu * a
        r_mag = np.linalg.norm(r)
        if a > 0:
            e_se = np.dot(r, v) / math.sqrt(ka)
            e_ce = r_mag * np.dot(v, v) / mu - 1.0
            nu = _E_to_nu(math.atan2(e_se, e_ce), ecc)
        else:
            e_sh = np.dot(r, v) / math.sqrt(-ka)
            e_ch = r_mag * np.dot(v, v) / mu - 1.0
            nu = _F_to_nu(math.log((e_ch + e_sh) / (e_ch - e_sh)) / 2.0, ecc)
        raan = math.atan2(n[1], n[0]) % TWO_PI
        px = np.dot(r, n)
        py = np.dot(r, np.cross(h, n)) / h_mag
        argp = (math.atan2(py, px) - nu) % TWO_PI

    nu = (nu + math.pi) % TWO_PI - math.pi
    return {"p": p, "e": ecc, "i": inc, "raan": raan, "argp": argp, "nu": nu}


# ════════════════════════════════════════════════════════════════════════════
#  Universal-Variable Propagation
# ════════════════════════════════════════════════════════════════════════════

def find_c2c3(psi: float) -> tuple[float, float]:
    """Stumpff functions c₂(ψ), c₃(ψ) for the universal-variable solve."""
    small = 1e-6
    if psi > small:
        sqrt_psi = math.sqrt(psi)
        c2 = (1.0 - math.cos(sqrt_psi)) / psi
        c3 = (sqrt_psi - math.sin(sqrt_psi)) / sqrt_psi ** 3
    elif psi < -small:
        sqrt_psi = math.sqrt(-psi)
        c2 = (1.0 - math.cosh(sqrt_psi)) / psi
        c3 = (math.sinh(sqrt_psi) - sqrt_psi) / sqrt_psi ** 3
    else:
        c2 = 0.5
        c3 = 1.0 / 6.0
    return c2, c3


def propagate_universal(
    r0: NDArray, v0: NDArray, dt: float,
    mu: float = MU_EARTH, max_iter: int = 350,
) -> tuple[NDArray, NDArray]:
    """Propagate a two-body state by ``dt`` seconds (Vallado's KEPLER).

    Parameters
    ----------
    r0, v0 : (3,) — initial position [m] and velocity [m/s]
    dt : float — time of flight [s], may be negative
    mu : float — gravitational parameter [m³/s²]
    max_iter : int — Newton iteration cap on the universal variable

    Returns
    -------
    r, v : (3,) ndarrays — propagated state

    Raises
    ------
    PropagatorError — when the universal variable does not converge
    """
    r0 = np.asarray(r0, dtype=np.float64)
    v0 = np.asarray(v0, dtype=np.float64)
    if abs(dt) <= _SMALL:
        return r0.copy(), v0.copy()

    sqrt_mu = math.sqrt(mu)
    mag_r0 = float(np.linalg.norm(r0))
    mag_v0 = float(np.linalg.norm(v0))
    r_dot_v = float(np.dot(r0, v0))
    sme = mag_v0 ** 2 * 0.5 - mu / mag_r0
    alpha = -sme * 2.0 / mu
    a = -mu / (2.0 * sme) if abs(sme) > _SMALL else math.inf
    if abs(alpha) < _SMALL:
        alpha = 0.0

    dtsec = dt
    if alpha >= _SMALL:
        # Ellipse: reduce whole revolutions
        period = TWO_PI * math.sqrt(abs(a) ** 3 / mu)
        if abs(dt) > period:
            dtsec = math.fmod(dt, period)
        x_old = sqrt_mu * dtsec * alpha
    elif alpha == 0.0:
        # Parabola
        h = np.cross(r0, v0)
        p = float(np.dot(h, h)) / mu
        s = 0.5 * (math.pi / 2.0 - math.atan(3.0 * math.sqrt(mu / p ** 3) * dtsec))
        w = math.atan(math.tan(s) ** (1.0 / 3.0))
        x_old = math.sqrt(p) * 2.0 / math.tan(2.0 * w)
    else:
        # Hyperbola
        sign = math.copysign(1.0, dtsec)
        temp = (-2.0 * mu * dtsec
                / (a * (r_dot_v + sign * math.sqrt(-mu * a) * (1.0 - mag_r0 * alpha))))
        x_old = sign * math.sqrt(-a) * math.log(temp)

    dt_new = -10.0
    psi = c2 = c3 = 0.0
    x_new = x_old
    k = 0
    while abs(dt_new / sqrt_mu - dtsec) >= _SMALL and k < max_iter:
        x_sq = x_old * x_old
        psi = x_sq * alpha
        c2, c3 = find_c2c3(psi)
        r_val = (x_sq * c2 + r_dot_v / sqrt_mu * x_old * (1.0 - psi * c3)
                 + mag_r0 * (1.0 - psi * c2))
        dt_new = (x_sq * x_old * c3 + r_dot_v / sqrt_mu * x_sq * c2
                  + mag_r0 * x_old * (1.0 - psi * c3))
        x_new = x_old + (dtsec * sqrt_mu - dt_new) / r_val
        if x_new < 0.0 and dtsec > 0.0:
            x_new = x_old * 0.5
        k += 1
        x_old = x_new

    if k >= max_iter:
        raise PropagatorError(
            f"universal-variable Kepler solve did not converge in {max_iter} iterations")

    x_sq = x_new * x_new
    f = 1.0 - x_sq * c2 / mag_r0
    g = dtsec - x_sq * x_new * c3 / sqrt_mu
    r = f * r0 + g * v0
    mag_r = float(np.linalg.norm(r))
    g_dot = 1.0 - x_sq * c2 / mag_r
    f_dot = sqrt_mu * x_new / (mag_r0 * mag_r) * (psi * c3 - 1.0)
    v = f_dot * r0 + g_dot * v0
    return r, v
