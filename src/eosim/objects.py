"""
eosim.objects — Simulation Objects
===================================

Scene-graph nodes that know how to move themselves in time.

    SimObject                   base: name, frame, state, update protocol
    ├── Earth                   world root (ITRF); owns the inertial frame nodes
    ├── Sun                     Simon 1994 ephemeris, inertial
    ├── Satellite               any ``Propagator``
    ├── LagrangeInterpolatedObject
    ├── EarthGroundStation      fixed site, South-East-Zenith local frame
    ├── Gimbal / AzElGimbal     pointing mount on a site
    └── ElectroOpticalSensor    focal plane carried by a gimbal

World frame
-----------
The world frame is Earth-fixed.  The Earth has an identity transform and
two children, ``earth.icrf`` and ``earth.teme``, whose rotations are the
current inertial → fixed matrices.  An inertial object attached under the
matching frame node gets its world (ITRF) coordinates straight from the
graph.  A detached inertial object falls back to the process-wide frame
service at its ``last_update``.

Update protocol
---------------
``update(time, universe)`` is a no-op when ``time`` equals ``last_update``
and the object has not been marked stale.  Otherwise the parent is updated
first, ``_update`` refreshes the state, the translation is set to
``position`` and every update listener is notified.
"""

import logging
import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError
from .frames import FrameRotation, InertialFrame, ReferenceFrame, default_frame_rotation
from .graph import TransformGroup
from .julian import JulianDate
from .lagrange import lagrange_derivative, lagrange_interpolate
from .photometry import PhotometricModel
from .propagators import Propagator
from .sensor import coerce_field_of_regard, south_east_zenith_to_az_el
from .sun import sun_position_inertial
from .utils import DAILY_SECONDS, OMEGA_EARTH, ZERO3, lla_to_ecef

logger = logging.getLogger(__name__)

EARTH_ANGULAR_VELOCITY = np.array([0.0, 0.0, OMEGA_EARTH])
EARTH_ANGULAR_VELOCITY.flags.writeable = False

DEFAULT_GIMBAL_RANGE = 45_000_000.0     # Range reported when not tracking [m]
LAGRANGE_POINTS = 7
LAGRANGE_DEFAULT_INTERVAL = 100.0       # [s]


def _frame_service(universe) -> FrameRotation:
    service = getattr(universe, "frame_rotation", None)
    return service if service is not None else default_frame_rotation()


# ════════════════════════════════════════════════════════════════════════════
#  Base
# ════════════════════════════════════════════════════════════════════════════

class SimObject(TransformGroup):
    """A named scene-graph node with a time-dependent state.

    Parameters
    ----------
    name : str
    frame : ReferenceFrame or None — frame of ``position``/``velocity``;
            ``None`` inherits the parent's frame and state
    """

    def __init__(self, name: str = "undefined",
                 frame: Optional[ReferenceFrame] = None):
        super().__init__()
        self._name = name
        self._frame = ReferenceFrame(frame) if frame is not None else None
        self._inertial_frame = InertialFrame.ICRF
        self._position = np.zeros(3)
        self._velocity = np.zeros(3)
        self._last_update: Optional[JulianDate] = None
        self._stale = True
        self._update_listeners: list = []
        self.model: Optional[PhotometricModel] = None

    def __repr__(self):
        return f"{type(self).__name__}({self._name!r})"

    # ── State ────────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self._name

    @property
    def reference_frame(self) -> Optional[ReferenceFrame]:
        if self._frame is not None:
            return self._frame
        parent = self.parent
        return getattr(parent, "reference_frame", None)

    @property
    def inertial_frame(self) -> InertialFrame:
        return self._inertial_frame

    @property
    def position(self) -> Optional[NDArray]:
        if self._frame is not None:
            return self._position
        return getattr(self.parent, "position", None)

    @property
    def velocity(self) -> Optional[NDArray]:
        if self._frame is not None:
            return self._velocity
        return getattr(self.parent, "velocity", None)

    @property
    def last_update(self) -> Optional[JulianDate]:
        return self._last_update

    time = last_update

    @property
    def period(self) -> Optional[float]:
        return None

    @property
    def eccentricity(self) -> Optional[float]:
        return None

    @property
    def stale(self) -> bool:
        return self._stale

    # ── World state ──────────────────────────────────────────────────────

    def _attached_to_frame_node(self) -> bool:
        return isinstance(self.parent, InertialFrameNode)

    def _detached_rotation(self) -> Optional[NDArray]:
        if self._last_update is None:
            return None
        return default_frame_rotation().to_fixed(self._inertial_frame, self._last_update)

    @property
    def world_position(self) -> NDArray:
        """Position in the world (Earth-fixed) frame [m]."""
        if self._frame is ReferenceFrame.INERTIAL and not self._attached_to_frame_node():
            rotation = self._detached_rotation()
            if rotation is None:
                return self._position.copy()
            return rotation @ self._position
        return self.transform_point_to_world(ZERO3)

    @property
    def world_velocity(self) -> Optional[NDArray]:
        """Inertial velocity on world axes [m/s]; ``None`` if unknown."""
        if self._frame is None:
            return getattr(self.parent, "world_velocity", None)
        velocity = self._velocity
        if velocity is None:
            return None
        parent = self.parent
        if self._frame is ReferenceFrame.INERTIAL:
            if self._attached_to_frame_node():
                return parent.transform_vector_to_world(velocity)
            rotation = self._detached_rotation()
            return velocity.copy() if rotation is None else rotation @ velocity
        # Earth-relative velocity plus the transport term ω⊕ × r
        relative = parent.transform_vector_to_world(velocity) if parent is not None else velocity.copy()
        return relative + np.cross(EARTH_ANGULAR_VELOCITY, self.world_position)

    # ── Update ───────────────────────────────────────────────────────────

    def add_update_listener(self, listener) -> None:
        """Register a SimObject (or any ``f(time, universe)``) to follow this one."""
        self._update_listeners.append(listener)

    def remove_update_listener(self, listener) -> None:
        if listener in self._update_listeners:
            self._update_listeners.remove(listener)

    @property
    def update_listeners(self) -> tuple:
        return tuple(self._update_listeners)

    def mark_stale(self) -> None:
        """Force the next :meth:`update` to recompute."""
        self._stale = True

    def update(self, time: JulianDate, universe=None, force_update: bool = False) -> None:
        if (not force_update and not self._stale
                and self._last_update is not None and time == self._last_update):
            return

        parent = self.parent
        if parent is not None and hasattr(parent, "update"):
            parent.update(time, universe)

        self._update(time, universe)
        self.set_translation(self._position)
        self._last_update = time
        self._stale = False

        for listener in self._update_listeners:
            if isinstance(listener, SimObject):
                listener.update(time, universe)
            else:
                listener(time, universe)

    def _update(self, time: JulianDate, universe) -> None:
        raise NotImplementedError(f"{type(self).__name__}._update")


# ════════════════════════════════════════════════════════════════════════════
#  Earth & Sun
# ════════════════════════════════════════════════════════════════════════════

class InertialFrameNode(TransformGroup):
    """Child of the Earth whose rotation maps one inertial frame to ITRF."""

    def __init__(self, frame: InertialFrame):
        super().__init__()
        self.frame = InertialFrame(frame)

    @property
    def name(self) -> str:
        return self.frame.value

    @property
    def reference_frame(self) -> ReferenceFrame:
        return ReferenceFrame.INERTIAL

    def update(self, time: JulianDate, universe=None, force_update: bool = False) -> None:
        parent = self.parent
        if parent is not None and hasattr(parent, "update"):
            parent.update(time, universe, force_update)


class Earth(SimObject):
    """The world root.  World position and velocity are always zero.

    ``update`` caches the ICRF → ITRF rotation (and its transpose) for
    ``last_update`` and pushes it, with the TEME → pseudo-fixed rotation,
    onto the ``icrf`` and ``teme`` frame nodes.
    """

    def __init__(self, name: str = "Earth"):
        super().__init__(name, ReferenceFrame.FIXED)
        self._icrf_to_fixed = np.eye(3)
        self._fixed_to_icrf = np.eye(3)
        self._teme_to_fixed = np.eye(3)
        self.icrf = InertialFrameNode(InertialFrame.ICRF)
        self.teme = InertialFrameNode(InertialFrame.TEME)
        self.add_child(self.icrf)
        self.add_child(self.teme)
        self._velocity = ZERO3.copy()

    @property
    def period(self) -> float:
        return DAILY_SECONDS

    @property
    def icrf_to_fixed(self) -> NDArray:
        return self._icrf_to_fixed

    @property
    def fixed_to_icrf(self) -> NDArray:
        return self._fixed_to_icrf

    @property
    def teme_to_fixed(self) -> NDArray:
        return self._teme_to_fixed

    def frame_node(self, frame: InertialFrame) -> InertialFrameNode:
        return self.teme if InertialFrame(frame) is InertialFrame.TEME else self.icrf

    @property
    def world_position(self) -> NDArray:
        return np.zeros(3)

    @property
    def world_velocity(self) -> NDArray:
        return np.zeros(3)

    def _update(self, time: JulianDate, universe) -> None:
        service = _frame_service(universe)
        service.icrf_to_fixed(time, out=self._icrf_to_fixed)
        self._fixed_to_icrf[:] = self._icrf_to_fixed.T
        service.teme_to_fixed(time, out=self._teme_to_fixed)
        self.icrf.set_rotation(self._icrf_to_fixed)
        self.teme.set_rotation(self._teme_to_fixed)


class Sun(SimObject):
    """Geocentric Sun, Earth inertial (ICRF) frame; velocity is not computed."""

    def __init__(self, name: str = "Sun"):
        super().__init__(name, ReferenceFrame.INERTIAL)
        self._velocity = None

    @property
    def world_velocity(self) -> None:
        return None

    def _update(self, time: JulianDate, universe) -> None:
        sun_position_inertial(time, out=self._position)


# ════════════════════════════════════════════════════════════════════════════
#  Space Objects
# ════════════════════════════════════════════════════════════════════════════

class Satellite(SimObject):
    """A SimObject driven by a :class:`~eosim.propagators.Propagator`.

    If the propagator fails the previous state is kept and the
    ``PropagatorError`` propagates to the caller.
    """

    def __init__(self, name: str, propagator: Propagator,
                 model: Optional[PhotometricModel] = None):
        if not isinstance(propagator, Propagator):
            raise InvalidInputError("propagator must be a Propagator")
        super().__init__(name, propagator.frame)
        self.propagator = propagator
        self._inertial_frame = InertialFrame(propagator.inertial_frame)
        self.model = model

    @property
    def period(self) -> float:
        return self.propagator.period

    @property
    def eccentricity(self) -> Optional[float]:
        return self.propagator.eccentricity

    def _update(self, time: JulianDate, universe) -> None:
        state = self.propagator.step(time)
        self._position[:] = state.position
        if state.velocity is None:
            self._velocity = None
        else:
            if self._velocity is None:
                self._velocity = np.zeros(3)
            self._velocity[:] = state.velocity


class LagrangeInterpolatedObject(SimObject):
    """Stand-in for an expensive object: interpolates a 7-point window.

    The wrapped object is sampled at ``interval`` second spacing centred on
    the requested instant; the window is re-seeded only when a request
    falls outside it.  ``interval`` defaults to one sixtieth of the orbital
    period, or 100 s when the period is unknown or infinite.
    """

    def __init__(self, obj: SimObject, interval: float = None):
        super().__init__(obj.name, obj.reference_frame)
        self._object = obj
        self._inertial_frame = obj.inertial_frame
        self.model = obj.model
        if interval is None:
            period = obj.period
            if period is None or not math.isfinite(period) or period <= 0.0:
                interval = LAGRANGE_DEFAULT_INTERVAL
            else:
                interval = period / 60.0
        self._interval = float(interval)
        self._epoch: Optional[JulianDate] = None
        self._times = np.empty(0)
        self._samples = np.empty((0, 3))

    @property
    def wrapped(self) -> SimObject:
        return self._object

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def period(self):
        return self._object.period

    @property
    def eccentricity(self):
        return self._object.eccentricity

    def _seed(self, time: JulianDate, universe) -> None:
        half = (LAGRANGE_POINTS - 1) // 2
        self._epoch = time.add_seconds(-half * self._interval)
        self._times = np.arange(LAGRANGE_POINTS) * self._interval
        self._samples = np.empty((LAGRANGE_POINTS, 3))
        for i, offset in enumerate(self._times):
            self._object.update(self._epoch.add_seconds(float(offset)), universe)
            self._samples[i] = self._object.position
        logger.debug("Re-seeded interpolation window of %s at JD %.6f",
                     self.name, time.jd)

    def _update(self, time: JulianDate, universe) -> None:
        delta = None if self._epoch is None else time.seconds_difference(self._epoch)
        if (delta is None or len(self._times) < LAGRANGE_POINTS
                or delta < self._times[0] or delta > self._times[-1]):
            self._seed(time, universe)
            delta = time.seconds_difference(self._epoch)
        lagrange_interpolate(self._times, self._samples, delta, out=self._position)
        self._velocity = lagrange_derivative(self._times, self._samples, delta)


# ════════════════════════════════════════════════════════════════════════════
#  Ground Segment
# ════════════════════════════════════════════════════════════════════════════

class EarthGroundStation(SimObject):
    """A site fixed to the WGS-84 ellipsoid.

    The local frame is South-East-Zenith at the geodetic site; changing
    latitude, longitude or altitude rebuilds it.

    Parameters
    ----------
    latitude, longitude : float — geodetic [deg]
    altitude : float — height above the ellipsoid [m]
    """

    def __init__(self, latitude: float, longitude: float, altitude: float = 0.0,
                 name: str = "EarthGroundStation"):
        super().__init__(name, ReferenceFrame.FIXED)
        self._latitude = float(latitude)
        self._longitude = float(longitude)
        self._altitude = float(altitude)
        self._initialize()

    def _initialize(self) -> None:
        if not -90.0 <= self._latitude <= 90.0:
            raise InvalidInputError(f"latitude must lie in [-90, 90], got {self._latitude}")
        lat = math.radians(self._latitude)
        lon = math.radians(self._longitude)
        ecef = lla_to_ecef(lat, lon, self._altitude)
        self.reset()
        self.rotate_z(lon)
        self.rotate_y(math.pi / 2.0 - lat)
        self.set_translation(ecef)
        self._position[:] = ecef

    @property
    def latitude(self) -> float:
        return self._latitude

    @latitude.setter
    def latitude(self, value: float):
        self._latitude = float(value)
        self._initialize()

    @property
    def longitude(self) -> float:
        return self._longitude

    @longitude.setter
    def longitude(self, value: float):
        self._longitude = float(value)
        self._initialize()

    @property
    def altitude(self) -> float:
        return self._altitude

    @altitude.setter
    def altitude(self, value: float):
        self._altitude = float(value)
        self._initialize()

    @property
    def period(self) -> float:
        return DAILY_SECONDS

    def _update(self, time: JulianDate, universe) -> None:
        pass


class Gimbal(SimObject):
    """Pointing mount.  Subclasses turn a site-frame vector into a pose.

    track_mode
        ``fixed``     hold the current pose
        ``rate``      follow ``track_object``
        ``sidereal``  not supported; logged and the pose is held
    """

    TRACK_MODES = ("fixed", "rate", "sidereal")

    def __init__(self, name: str = "Gimbal"):
        super().__init__(name)
        self._track_object: Optional[SimObject] = None
        self._track_mode = "fixed"
        self._range = 0.0

    @property
    def range(self) -> float:
        """Range to the tracked object [m]; a nominal 45 000 km otherwise."""
        if self._track_mode == "rate":
            return self._range
        return DEFAULT_GIMBAL_RANGE

    @property
    def track_mode(self) -> str:
        return self._track_mode

    @track_mode.setter
    def track_mode(self, value: str):
        if value not in self.TRACK_MODES:
            raise InvalidInputError(f"track mode must be one of {self.TRACK_MODES}, got {value!r}")
        self._track_mode = value

    @property
    def track_object(self) -> Optional[SimObject]:
        return self._track_object

    @track_object.setter
    def track_object(self, value: Optional[SimObject]):
        if value is not None and (value is self or self in value.ancestors()):
            raise InvalidInputError("a gimbal cannot track itself or its own children")
        self._track_object = value

    def update(self, time: JulianDate, universe=None, force_update: bool = False) -> None:
        # pose may change while time stands still
        super().update(time, universe, True)

    def _track_to_local_vector(self, time: JulianDate, universe) -> Optional[NDArray]:
        """Tracked object's position in the mount (site) frame, or ``None``."""
        if self._track_mode == "rate" and self._track_object is not None:
            self._track_object.update(time, universe)
            target = self._track_object.world_position
            mount = self.parent
            return target if mount is None else mount.transform_point_from_world(target)
        if self._track_mode == "sidereal":
            logger.warning("%s: sidereal tracking is not supported", self.name)
        return None


class AzElGimbal(Gimbal):
    """Azimuth-over-elevation mount on a South-East-Zenith site.

    The boresight is the gimbal's −z axis; at ``az = el = 0`` it points
    North along the horizon.
    """

    def __init__(self, name: str = "AzElGimbal"):
        super().__init__(name)
        self.az = 0.0       # [deg]
        self.el = 90.0      # [deg]

    def _update(self, time: JulianDate, universe) -> None:
        local = self._track_to_local_vector(time, universe)
        if local is not None:
            self.az, self.el, self._range = south_east_zenith_to_az_el(local)

        self.reset()
        self.rotate_y(math.pi / 2.0)
        self.rotate_z(math.pi / 2.0)
        self.rotate_y(-math.radians(self.az))
        self.rotate_x(math.radians(self.el))


class ElectroOpticalSensor(SimObject):
    """Focal plane of ``height`` × ``width`` pixels.

    Parameters
    ----------
    height, width : int — pixels
    y_fov, x_fov : float — field of view [deg]
    field_of_regard : list of FieldOfRegard or dict — pointable sky regions
    """

    def __init__(self, height: int, width: int, y_fov: float, x_fov: float,
                 field_of_regard=None, name: str = "ElectroOpticalSensor"):
        super().__init__(name)
        if height <= 0 or width <= 0:
            raise InvalidInputError("sensor height and width must be positive")
        self.height = height
        self.width = width
        self.y_fov = y_fov
        self.x_fov = x_fov
        self.y_ifov = y_fov / height
        self.x_ifov = x_fov / width
        self.field_of_regard = coerce_field_of_regard(field_of_regard)

    def _update(self, time: JulianDate, universe) -> None:
        pass
