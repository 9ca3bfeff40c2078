"""
eosim.propagators — State Propagators
======================================

Every propagator answers one question: where is the object, and how fast
is it moving, at a given instant?

    step(time) → PropagatedState(position, velocity, frame, inertial_frame)

Variants
--------
TwoBodyPropagator    universal-variable Kepler from an osculating state (ICRF)
SGP4Propagator       SGP4/SDP4 from a TLE via the ``sgp4`` package (TEME)
StaticPropagator     constant state in any frame
EphemerisPropagator  Lagrange interpolation through tabulated states

Units are metres and metres per second throughout.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from sgp4.api import SGP4_ERRORS, Satrec

from .errors import InvalidInputError, PropagatorError
from .frames import InertialFrame, ReferenceFrame
from .julian import JulianDate, TimeStandard
from .lagrange import lagrange_derivative, lagrange_interpolate, nearest_window
from .orbits import propagate_universal, rv_to_eccentricity, rv_to_period
from .tle import parse_tle
from .utils import MU_EARTH, as_vector3

TWO_PI = 2.0 * math.pi


@dataclass
class PropagatedState:
    position: NDArray
    velocity: Optional[NDArray]
    frame: ReferenceFrame
    inertial_frame: Optional[InertialFrame] = None


class Propagator:
    """Base class; subclasses implement :meth:`step`."""
    frame = ReferenceFrame.INERTIAL
    inertial_frame = InertialFrame.ICRF

    @property
    def period(self) -> float:
        return math.inf

    @property
    def eccentricity(self) -> Optional[float]:
        return None

    def step(self, time: JulianDate) -> PropagatedState:
        raise NotImplementedError

    def _state(self, r, v) -> PropagatedState:
        return PropagatedState(r, v, self.frame,
                               self.inertial_frame if self.frame is ReferenceFrame.INERTIAL else None)


# ════════════════════════════════════════════════════════════════════════════
#  Two-Body
# ════════════════════════════════════════════════════════════════════════════

class TwoBodyPropagator(Propagator):
    """Keplerian motion from an osculating ICRF state at ``epoch``.

    ``period`` is ``inf`` for parabolic and hyperbolic orbits.
    """

    def __init__(self, position: NDArray, velocity: NDArray, epoch: JulianDate,
                 mu: float = MU_EARTH, max_iter: int = 350):
        if not isinstance(epoch, JulianDate):
            raise InvalidInputError("epoch must be a JulianDate")
        self.position0 = as_vector3(position, "position").copy()
        self.velocity0 = as_vector3(velocity, "velocity").copy()
        self.epoch = epoch
        self.mu = mu
        self.max_iter = max_iter
        self._period = rv_to_period(self.position0, self.velocity0, mu)
        self._eccentricity = rv_to_eccentricity(self.position0, self.velocity0, mu)

    @property
    def period(self) -> float:
        return self._period

    @property
    def eccentricity(self) -> float:
        return self._eccentricity

    def step(self, time: JulianDate) -> PropagatedState:
        dt = time.seconds_difference(self.epoch)
        r, v = propagate_universal(self.position0, self.velocity0, dt,
                                   self.mu, self.max_iter)
        return self._state(r, v)


# ════════════════════════════════════════════════════════════════════════════
#  SGP4 / SDP4
# ════════════════════════════════════════════════════════════════════════════

class SGP4Propagator(Propagator):
    """SGP4/SDP4 propagation of a TLE; output in TEME.

    Parameters
    ----------
    line1, line2 : str — TLE element lines
    verify_checksums : bool — reject lines whose checksum digit is wrong
    """
    inertial_frame = InertialFrame.TEME

    def __init__(self, line1: str, line2: str, verify_checksums: bool = False):
        self.tle = parse_tle(line1, line2, verify_checksums=verify_checksums)
        self.line1 = line1
        self.line2 = line2
        try:
            self._satrec = Satrec.twoline2rv(line1, line2)
        except ValueError as exc:
            raise PropagatorError(f"SGP4 could not read TLE: {exc}") from exc
        if self._satrec.error != 0:
            raise PropagatorError(
                f"SGP4 initialisation failed: {SGP4_ERRORS.get(self._satrec.error, self._satrec.error)}")
        self.epoch = JulianDate.from_jd(
            self._satrec.jdsatepoch + self._satrec.jdsatepochF, TimeStandard.UTC)
        self._stepped = False

    @property
    def satrec(self) -> Satrec:
        return self._satrec

    @property
    def period(self) -> float:
        """Period from the TLE mean motion [s]."""
        return TWO_PI / self._satrec.no_kozai * 60.0

    @property
    def eccentricity(self) -> float:
        return self._satrec.ecco

    @property
    def mean_anomaly(self) -> float:
        """Mean anomaly [rad]: the TLE value until the first step, then the
        value at the last propagated instant, both in [0, 2π)."""
        return self._satrec.mm % TWO_PI if self._stepped else self._satrec.mo

    def step(self, time: JulianDate) -> PropagatedState:
        dt_days = time.seconds_difference(self.epoch) / 86400.0
        err, r_km, v_km_s = self._satrec.sgp4(self._satrec.jdsatepoch,
                                              self._satrec.jdsatepochF + dt_days)
        if err != 0:
            raise PropagatorError(
                f"SGP4 failed for {self.tle.norad_id:05d}: {SGP4_ERRORS.get(err, err)}")
        self._stepped = True
        return self._state(np.array(r_km) * 1000.0, np.array(v_km_s) * 1000.0)


# ════════════════════════════════════════════════════════════════════════════
#  Static & Tabulated
# ════════════════════════════════════════════════════════════════════════════

class StaticPropagator(Propagator):
    """A constant state."""

    def __init__(self, position: NDArray, velocity: NDArray = None,
                 frame: ReferenceFrame = ReferenceFrame.FIXED,
                 inertial_frame: InertialFrame = InertialFrame.ICRF):
        self.position = as_vector3(position, "position").copy()
        self.velocity = (np.zeros(3) if velocity is None
                         else as_vector3(velocity, "velocity").copy())
        self.frame = ReferenceFrame(frame)
        self.inertial_frame = InertialFrame(inertial_frame)

    def step(self, time: JulianDate) -> PropagatedState:
        return self._state(self.position.copy(), self.velocity.copy())


class EphemerisPropagator(Propagator):
    """Lagrange interpolation through time-tagged states.

    Parameters
    ----------
    times : sequence of JulianDate — sample instants, any order
    positions : (N, 3) — positions [m]
    velocities : (N, 3), optional — velocities [m/s]; when absent the
                 velocity is the derivative of the position polynomial
    frame, inertial_frame — frame the samples are expressed in
    degree : int — polynomial degree of the local interpolant
    """

    def __init__(self, times: Sequence[JulianDate], positions: NDArray,
                 velocities: NDArray = None,
                 frame: ReferenceFrame = ReferenceFrame.INERTIAL,
                 inertial_frame: InertialFrame = InertialFrame.ICRF,
                 degree: int = 6, mu: float = MU_EARTH):
        positions = np.asarray(positions, dtype=np.float64)
        if len(times) < 2 or positions.shape != (len(times), 3):
            raise InvalidInputError("need at least two samples with (N, 3) positions")
        if velocities is not None:
            velocities = np.asarray(velocities, dtype=np.float64)
            if velocities.shape != positions.shape:
                raise InvalidInputError("velocities must match positions in shape")

        self.epoch = min(times, key=lambda t: t.seconds_difference(times[0]))
        offsets = np.array([t.seconds_difference(self.epoch) for t in times])
        order = np.argsort(offsets, kind="stable")
        self._times = offsets[order]
        if np.any(np.diff(self._times) <= 0.0):
            raise InvalidInputError("sample times must be distinct")
        self._positions = positions[order]
        self._velocities = velocities[order] if velocities is not None else None
        self.frame = ReferenceFrame(frame)
        self.inertial_frame = InertialFrame(inertial_frame)
        self.degree = degree
        self.mu = mu

        v0 = (self._velocities[0] if self._velocities is not None
              else self._derivative(slice(0, min(len(self._times), degree + 1)), 0.0))
        self._period = rv_to_period(self._positions[0], v0, mu)
        self._eccentricity = rv_to_eccentricity(self._positions[0], v0, mu)

    @property
    def period(self) -> float:
        return self._period

    @property
    def eccentricity(self) -> float:
        return self._eccentricity

    def _derivative(self, window: slice, dt: float) -> NDArray:
        return lagrange_derivative(self._times[window], self._positions[window], dt)

    def step(self, time: JulianDate) -> PropagatedState:
        dt = time.seconds_difference(self.epoch)
        window = nearest_window(self._times, dt, self.degree + 1)
        r = lagrange_interpolate(self._times[window], self._positions[window], dt)
        if self._velocities is not None:
            v = lagrange_interpolate(self._times[window], self._velocities[window], dt)
        else:
            v = self._derivative(window, dt)
        return self._state(r, v)
