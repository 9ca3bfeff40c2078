"""
eosim.universe — Simulation Registry & Tick
============================================

The universe owns the Earth, the Sun, every named object and the event
queue, and advances them together.

Tick
----
``update(t)``:

1. fire due events,
2. mark every registered object stale,
3. update the Earth, the Sun and every observatory (site → gimbal → sensor),
4. with ``eager=True``, update every registered object as well.

Other objects are brought to ``t`` lazily, the first time something asks
for them (visibility, shadow, a tracking gimbal).

Scene graph
-----------
Fixed objects hang under the Earth; inertial objects hang under the Earth
frame node that matches their propagator (``earth.icrf`` or
``earth.teme``), so every world position comes out Earth-fixed.
"""

import logging
from typing import Optional

from numpy.typing import NDArray

from .errors import InvalidInputError, PropagatorError
from .events import Event, EventQueue
from .frames import FrameRotation, ReferenceFrame
from .julian import JulianDate
from .objects import (
    AzElGimbal, Earth, EarthGroundStation, ElectroOpticalSensor, Gimbal,
    LagrangeInterpolatedObject, Satellite, SimObject, Sun,
)
from .observatory import Observatory
from .propagators import SGP4Propagator, TwoBodyPropagator
from .xys import Iau2006XysData

logger = logging.getLogger(__name__)

TRACK_OBJECT = "trackObject"


def _track_object_handler(universe: "Universe", event: Event) -> None:
    """``{"observer": site_name, "target": object_name}`` → rate-track."""
    payload = event.payload if isinstance(event.payload, dict) else {}
    observer = payload.get("observer")
    target_name = payload.get("target")
    if not observer or not target_name:
        logger.warning("%s event %s lacks observer or target", TRACK_OBJECT, event.id)
        return
    target = universe.get_object(target_name)
    if target is None:
        logger.warning("%s event %s: unknown target %r", TRACK_OBJECT, event.id, target_name)
        return
    for observatory in universe.observatories:
        if observatory.site.name == observer and observatory.gimbal is not None:
            observatory.gimbal.track_mode = "rate"
            observatory.gimbal.track_object = target
            return
    logger.warning("%s event %s: unknown observer %r", TRACK_OBJECT, event.id, observer)


class Universe:
    """Earth, Sun, named objects, observatories and scheduled events.

    Parameters
    ----------
    xys_data : Iau2006XysData, optional — pole coordinates for the full
               ICRF → ITRF rotation; without it the pseudo-fixed
               approximation is used
    """

    def __init__(self, xys_data: Optional[Iau2006XysData] = None):
        self.frame_rotation = FrameRotation(xys_data)
        self._earth = Earth()
        self._sun = Sun()
        self._sun.attach(self._earth.icrf)
        self._objects: dict[str, SimObject] = {}
        self._trackables: list[SimObject] = []
        self._gimbals: list[Gimbal] = []
        self._sensors: list[ElectroOpticalSensor] = []
        self._observatories: list[Observatory] = []
        self._events = EventQueue()
        self._events.register_handler(TRACK_OBJECT, _track_object_handler)
        self._time: Optional[JulianDate] = None

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def earth(self) -> Earth:
        return self._earth

    @property
    def sun(self) -> Sun:
        return self._sun

    @property
    def objects(self) -> dict:
        return dict(self._objects)

    @property
    def trackables(self) -> list:
        return list(self._trackables)

    @property
    def observatories(self) -> list:
        return list(self._observatories)

    @property
    def gimbals(self) -> list:
        return list(self._gimbals)

    @property
    def sensors(self) -> list:
        return list(self._sensors)

    @property
    def events(self) -> EventQueue:
        return self._events

    @property
    def time(self) -> Optional[JulianDate]:
        """Instant of the last :meth:`update`."""
        return self._time

    # ── Registry ─────────────────────────────────────────────────────────

    def has_object(self, name: str) -> bool:
        return name in self._objects

    def get_object(self, name: str) -> Optional[SimObject]:
        return self._objects.get(name)

    def _place(self, obj: SimObject) -> None:
        if obj.parent is not None:
            return
        if obj.reference_frame is ReferenceFrame.INERTIAL:
            obj.attach(self._earth.frame_node(obj.inertial_frame))
        else:
            obj.attach(self._earth)

    def add_object(self, obj: SimObject, trackable: bool = True) -> SimObject:
        """Register ``obj`` under its name and hang it in the scene graph.

        Objects that already have a parent stay where they are.
        """
        if not isinstance(obj, SimObject):
            raise InvalidInputError(f"cannot add {type(obj).__name__} to the universe")
        if obj.name in self._objects:
            raise InvalidInputError(f"an object named {obj.name!r} already exists")
        self._place(obj)
        self._objects[obj.name] = obj
        if trackable:
            self._trackables.append(obj)
        return obj

    def remove_object(self, obj: SimObject) -> None:
        if self._objects.get(obj.name) is obj:
            del self._objects[obj.name]
        if obj in self._trackables:
            self._trackables.remove(obj)
        obj.detach()

    def add_ground_site(self, name: str, latitude: float, longitude: float,
                        altitude: float = 0.0, trackable: bool = False) -> EarthGroundStation:
        site = EarthGroundStation(latitude, longitude, altitude, name)
        return self.add_object(site, trackable)

    def _add_satellite(self, satellite: Satellite, lagrange_interpolated: bool,
                       trackable: bool) -> SimObject:
        if self.has_object(satellite.name):
            raise InvalidInputError(f"an object named {satellite.name!r} already exists")
        obj = LagrangeInterpolatedObject(satellite) if lagrange_interpolated else satellite
        return self.add_object(obj, trackable)

    def add_two_body_satellite(self, name: str, position: NDArray, velocity: NDArray,
                               epoch: JulianDate, lagrange_interpolated: bool = False,
                               trackable: bool = True, model=None) -> SimObject:
        """Satellite on a Keplerian orbit from an ICRF state at ``epoch``."""
        propagator = TwoBodyPropagator(position, velocity, epoch)
        return self._add_satellite(Satellite(name, propagator, model),
                                   lagrange_interpolated, trackable)

    def add_sgp4_satellite(self, name: str, line1: str, line2: str,
                           lagrange_interpolated: bool = False,
                           trackable: bool = True, model=None) -> SimObject:
        """Satellite propagated by SGP4/SDP4 from a TLE."""
        propagator = SGP4Propagator(line1, line2)
        return self._add_satellite(Satellite(name, propagator, model),
                                   lagrange_interpolated, trackable)

    def add_observatory(self, site: SimObject, gimbal: Gimbal,
                        sensor: ElectroOpticalSensor) -> Observatory:
        """Register an already-assembled site / gimbal / sensor chain."""
        for component in (site, gimbal, sensor):
            if not isinstance(component, SimObject):
                raise InvalidInputError(
                    f"cannot add {type(component).__name__} to the universe")
        # every name is checked before anything is registered
        new = [c for c in (site, gimbal, sensor) if self._objects.get(c.name) is not c]
        names = [c.name for c in new]
        for component in new:
            if component.name in self._objects or names.count(component.name) > 1:
                raise InvalidInputError(
                    f"an object named {component.name!r} already exists")
        for component in new:
            self.add_object(component, trackable=False)
        observatory = Observatory(site, gimbal, sensor)
        self._gimbals.append(gimbal)
        self._sensors.append(sensor)
        self._observatories.append(observatory)
        return observatory

    def add_ground_electro_optical_observatory(
            self, name: str, latitude: float, longitude: float, altitude: float,
            height: int, width: int, y_fov: float, x_fov: float,
            field_of_regard=None) -> Observatory:
        """Site, az/el gimbal and sensor named ``name``, ``name Gimbal``,
        ``name Sensor``."""
        for label in (name, f"{name} Gimbal", f"{name} Sensor"):
            if self.has_object(label):
                raise InvalidInputError(f"an object named {label!r} already exists")
        site = EarthGroundStation(latitude, longitude, altitude, name)
        self._place(site)
        gimbal = AzElGimbal(f"{name} Gimbal")
        gimbal.attach(site)
        sensor = ElectroOpticalSensor(height, width, y_fov, x_fov,
                                      field_of_regard, f"{name} Sensor")
        sensor.attach(gimbal)
        return self.add_observatory(site, gimbal, sensor)

    # ── Events & time ────────────────────────────────────────────────────

    def schedule_event(self, event) -> str:
        """Queue an :class:`~eosim.events.Event` or a mapping of its fields."""
        return self._events.add(event)

    def update(self, time: JulianDate, force_update: bool = False,
               eager: bool = False) -> None:
        if not isinstance(time, JulianDate):
            raise InvalidInputError("time must be a JulianDate")
        self._events.process(time, self)

        for obj in self._objects.values():
            obj.mark_stale()
        self._earth.mark_stale()
        self._sun.mark_stale()

        self._earth.update(time, self, force_update)
        self._sun.update(time, self, force_update)
        for observatory in self._observatories:
            observatory.update(time, self, force_update)

        if eager:
            for obj in list(self._objects.values()):
                try:
                    obj.update(time, self, force_update)
                except PropagatorError as exc:
                    logger.warning("Could not update %r: %s", obj.name, exc)

        self._time = time
