"""
test_simulation.py — Objects, Events, Universe and Visibility
=============================================================

  1. objects     — update protocol, world state, ground sites, gimbals
  2. lagrange    — interpolated stand-in objects
  3. events      — ordering, dispatch, failures
  4. universe    — registry, tick, scheduled tracking
  5. visibility  — per-observatory az/el, field of regard, sky rate
"""

import logging
import math

import numpy as np
import numpy.testing as npt
import pytest

from eosim.errors import InvalidInputError, MissingHandlerError, PropagatorError
from eosim.events import Event, EventQueue
from eosim.frames import InertialFrame, ReferenceFrame, default_frame_rotation
from eosim.julian import JulianDate
from eosim.objects import (
    DEFAULT_GIMBAL_RANGE, AzElGimbal, EarthGroundStation, ElectroOpticalSensor,
    LagrangeInterpolatedObject, Satellite,
)
from eosim.orbits import keplerian_to_eci
from eosim.photometry import PhotometricModel
from eosim.propagators import StaticPropagator, TwoBodyPropagator
from eosim.sensor import FieldOfRegard, az_el_to_south_east_zenith
from eosim.universe import TRACK_OBJECT, Universe
from eosim.utils import OMEGA_EARTH, R_EARTH, lla_to_ecef
from eosim.visibility import angular_rate, get_visibility

# ═══════════════════════════════════════════════════════════════════════════
#  Shared Fixtures
# ═══════════════════════════════════════════════════════════════════════════

T0 = JulianDate.from_calendar(2024, 5, 6, 20)

R_LEO, V_LEO = keplerian_to_eci(7_000_000.0, 0.001, np.radians(51.6), 0.3, 0.2, 1.0)

ISS_L1 = "1 25544U 98067A   24127.82853009  .00015698  00000+0  27310-3 0  9995"
ISS_L2 = "2 25544  51.6393 160.4574 0003580 140.6673 205.7250 15.50957674452123"

MAUI = (20.7083, -156.2571, 3058.0)


class CountingPropagator(StaticPropagator):
    def __init__(self, position):
        super().__init__(position)
        self.steps = 0

    def step(self, time):
        self.steps += 1
        return super().step(time)


class FailingPropagator(StaticPropagator):
    """Succeeds once, then fails."""

    def __init__(self, position):
        super().__init__(position)
        self.steps = 0

    def step(self, time):
        self.steps += 1
        if self.steps > 1:
            raise PropagatorError("decayed")
        return super().step(time)


def _site_with_gimbal():
    site = EarthGroundStation(*MAUI, name="Maui")
    gimbal = AzElGimbal("Maui Gimbal")
    gimbal.attach(site)
    return site, gimbal


def _fixed_at(name, position):
    return Satellite(name, StaticPropagator(position))


# ═══════════════════════════════════════════════════════════════════════════
#  1. OBJECTS
# ═══════════════════════════════════════════════════════════════════════════

def test_update_is_a_no_op_for_the_same_instant():
    prop = CountingPropagator([R_EARTH, 0.0, 0.0])
    sat = Satellite("s", prop)
    assert sat.stale and sat.last_update is None
    sat.update(T0)
    sat.update(T0)
    assert prop.steps == 1
    assert not sat.stale and sat.last_update == T0 and sat.time == T0

    sat.mark_stale()
    sat.update(T0)
    assert prop.steps == 2
    sat.update(T0, force_update=True)
    assert prop.steps == 3
    sat.update(T0.add_seconds(1.0))
    assert prop.steps == 4


def test_update_listeners():
    sat = _fixed_at("s", [R_EARTH, 0.0, 0.0])
    follower = _fixed_at("f", [0.0, R_EARTH, 0.0])
    calls = []

    def listener(time, universe):
        calls.append((time, universe))

    sat.add_update_listener(listener)
    sat.add_update_listener(follower)
    sat.update(T0, "u")
    assert calls == [(T0, "u")]
    assert follower.last_update == T0
    assert sat.update_listeners == (listener, follower)

    sat.remove_update_listener(listener)
    sat.update(T0.add_seconds(1.0))
    assert len(calls) == 1


def test_failed_propagation_keeps_previous_state():
    sat = Satellite("s", FailingPropagator([R_EARTH, 1.0, 2.0]))
    sat.update(T0)
    with pytest.raises(PropagatorError):
        sat.update(T0.add_seconds(60.0))
    npt.assert_array_equal(sat.position, [R_EARTH, 1.0, 2.0])
    assert sat.last_update == T0


def test_satellite_requires_a_propagator():
    with pytest.raises(InvalidInputError):
        Satellite("s", object())


def test_fixed_object_world_velocity_includes_earth_rotation():
    sat = _fixed_at("s", [R_EARTH, 0.0, 0.0])
    sat.update(T0)
    assert sat.reference_frame is ReferenceFrame.FIXED
    npt.assert_allclose(sat.world_position, [R_EARTH, 0.0, 0.0])
    npt.assert_allclose(sat.world_velocity, [0.0, OMEGA_EARTH * R_EARTH, 0.0])


def test_detached_inertial_object_uses_default_rotation():
    sat = Satellite("leo", TwoBodyPropagator(R_LEO, V_LEO, T0))
    sat.update(T0)
    rotation = default_frame_rotation().icrf_to_fixed(T0)
    npt.assert_allclose(sat.world_position, rotation @ sat.position, atol=1e-6)
    npt.assert_allclose(sat.world_velocity, rotation @ sat.velocity, atol=1e-9)
    assert sat.period == pytest.approx(sat.propagator.period)
    assert sat.eccentricity == pytest.approx(0.001)


def test_earth_and_sun():
    universe = Universe()
    universe.update(T0)
    npt.assert_array_equal(universe.earth.world_position, np.zeros(3))
    npt.assert_array_equal(universe.earth.world_velocity, np.zeros(3))
    assert universe.earth.period == 86400.0
    rotation = universe.earth.icrf_to_fixed
    npt.assert_allclose(rotation @ universe.earth.fixed_to_icrf, np.eye(3), atol=1e-14)

    sun = universe.sun
    assert sun.parent is universe.earth.icrf
    assert sun.world_velocity is None
    npt.assert_allclose(sun.world_position, rotation @ sun.position, rtol=1e-12, atol=1.0)


def test_ground_station_local_axes():
    lat, lon = 30.0, 45.0
    site = EarthGroundStation(lat, lon, 100.0, name="site")
    phi, lam = math.radians(lat), math.radians(lon)
    south = [math.sin(phi) * math.cos(lam), math.sin(phi) * math.sin(lam), -math.cos(phi)]
    east = [-math.sin(lam), math.cos(lam), 0.0]
    zenith = [math.cos(phi) * math.cos(lam), math.cos(phi) * math.sin(lam), math.sin(phi)]

    npt.assert_allclose(site.transform_vector_to_world([1.0, 0.0, 0.0]), south, atol=1e-14)
    npt.assert_allclose(site.transform_vector_to_world([0.0, 1.0, 0.0]), east, atol=1e-14)
    npt.assert_allclose(site.transform_vector_to_world([0.0, 0.0, 1.0]), zenith, atol=1e-14)
    npt.assert_allclose(site.world_position, lla_to_ecef(phi, lam, 100.0))
    assert site.period == 86400.0


def test_ground_station_setters_rebuild_frame():
    site = EarthGroundStation(0.0, 0.0, name="site")
    npt.assert_allclose(site.world_position, [R_EARTH, 0.0, 0.0])
    site.latitude = 90.0
    npt.assert_allclose(site.transform_vector_to_world([0.0, 0.0, 1.0]), [0.0, 0.0, 1.0], atol=1e-14)
    with pytest.raises(InvalidInputError):
        EarthGroundStation(91.0, 0.0)


def test_gimbal_pointing_follows_az_el():
    site, gimbal = _site_with_gimbal()
    gimbal.az, gimbal.el = 30.0, 40.0
    gimbal.update(T0)
    boresight = gimbal.transform_vector_to(site, [0.0, 0.0, -1.0])
    npt.assert_allclose(boresight, az_el_to_south_east_zenith(30.0, 40.0), atol=1e-12)
    assert gimbal.range == DEFAULT_GIMBAL_RANGE


def test_gimbal_rate_tracks_target():
    site, gimbal = _site_with_gimbal()
    target = _fixed_at("target", site.transform_point_to_world(
        az_el_to_south_east_zenith(60.0, 20.0, 5.0e5)))
    gimbal.track_mode = "rate"
    gimbal.track_object = target
    gimbal.update(T0)
    npt.assert_allclose([gimbal.az, gimbal.el, gimbal.range], [60.0, 20.0, 5.0e5], rtol=1e-9)
    assert target.last_update == T0

    to_target = target.world_position - gimbal.world_origin
    boresight = gimbal.transform_vector_to_world([0.0, 0.0, -1.0])
    npt.assert_allclose(boresight, to_target / np.linalg.norm(to_target), atol=1e-9)


def test_gimbal_rejects_self_tracking():
    site, gimbal = _site_with_gimbal()
    sensor = ElectroOpticalSensor(512, 512, 1.0, 1.0)
    sensor.attach(gimbal)
    with pytest.raises(InvalidInputError):
        gimbal.track_object = gimbal
    with pytest.raises(InvalidInputError):
        gimbal.track_object = sensor
    with pytest.raises(InvalidInputError):
        gimbal.track_mode = "inertial"
    gimbal.track_object = site
    assert gimbal.track_object is site


def test_gimbal_sidereal_mode_holds_pose(caplog):
    _, gimbal = _site_with_gimbal()
    gimbal.track_mode = "sidereal"
    with caplog.at_level(logging.WARNING, logger="eosim.objects"):
        gimbal.update(T0)
    assert "sidereal" in caplog.text
    assert (gimbal.az, gimbal.el) == (0.0, 90.0)


def test_sensor_geometry():
    sensor = ElectroOpticalSensor(1024, 2048, 2.0, 4.0,
                                  [{"clock": [0, 360], "elevation": [15, 90]}])
    npt.assert_allclose([sensor.y_ifov, sensor.x_ifov], [2.0 / 1024, 4.0 / 2048])
    assert sensor.field_of_regard == [FieldOfRegard((0, 360), (15, 90))]
    assert sensor.reference_frame is None
    with pytest.raises(InvalidInputError):
        ElectroOpticalSensor(0, 10, 1.0, 1.0)


# ═══════════════════════════════════════════════════════════════════════════
#  2. LAGRANGE-INTERPOLATED OBJECTS
# ═══════════════════════════════════════════════════════════════════════════

def test_lagrange_object_matches_wrapped_orbit():
    truth = TwoBodyPropagator(R_LEO, V_LEO, T0)
    wrapped = Satellite("leo", TwoBodyPropagator(R_LEO, V_LEO, T0),
                        PhotometricModel(diameter=3.0))
    obj = LagrangeInterpolatedObject(wrapped)
    npt.assert_allclose(obj.interval, truth.period / 60.0)
    assert obj.name == "leo" and obj.model is wrapped.model and obj.wrapped is wrapped
    assert obj.reference_frame is ReferenceFrame.INERTIAL
    assert obj.inertial_frame is InertialFrame.ICRF

    t = T0.add_seconds(0.37 * obj.interval)
    obj.update(t)
    expected = truth.step(t)
    npt.assert_allclose(obj.position, expected.position, atol=0.1)
    npt.assert_allclose(obj.velocity, expected.velocity, atol=1e-3)


def test_lagrange_object_reseeds_only_outside_window():
    wrapped = Satellite("leo", TwoBodyPropagator(R_LEO, V_LEO, T0))
    obj = LagrangeInterpolatedObject(wrapped, interval=60.0)
    obj.update(T0)
    last_sample = wrapped.last_update
    npt.assert_allclose(last_sample.seconds_difference(T0), 180.0, atol=1e-6)

    obj.update(T0.add_seconds(150.0))
    assert wrapped.last_update == last_sample

    obj.update(T0.add_seconds(600.0))
    npt.assert_allclose(wrapped.last_update.seconds_difference(T0), 780.0, atol=1e-6)


def test_lagrange_object_default_interval():
    obj = LagrangeInterpolatedObject(_fixed_at("rock", [R_EARTH, 0.0, 0.0]))
    assert obj.interval == 100.0
    obj.update(T0)
    npt.assert_allclose(obj.position, [R_EARTH, 0.0, 0.0], atol=1e-6)
    npt.assert_allclose(obj.velocity, np.zeros(3), atol=1e-9)


# ═══════════════════════════════════════════════════════════════════════════
#  3. EVENTS
# ═══════════════════════════════════════════════════════════════════════════

def test_events_at_the_same_time_fire_in_insertion_order():
    queue = EventQueue()
    fired = []
    for k in (1, 2, 3):
        queue.add(Event(T0, "note", payload=k, handler=lambda u, e: fired.append(e.payload)))
    assert queue.process(T0) == 3
    assert fired == [1, 2, 3]
    assert queue.size() == 0


def test_event_handler_overrides_registry():
    queue = EventQueue()
    ran = []
    queue.register_handler("beta", lambda u, e: ran.append("alpha"))
    queue.add(Event(T0, "BETA", handler=lambda u, e: ran.append("beta")))
    queue.add(Event(T0, "Beta"))
    queue.process(T0)
    assert ran == ["beta", "alpha"]


def test_events_fire_in_time_order_up_to_now():
    queue = EventQueue()
    fired = []
    queue.register_handler("note", lambda u, e: fired.append(e.payload))
    for offset in (20.0, 10.0, 30.0):
        queue.add(Event(T0.add_seconds(offset), "note", payload=offset))
    assert queue.process(T0.add_seconds(20.0), universe="u") == 2
    assert fired == [10.0, 20.0]
    assert len(queue) == 1
    assert queue.peek().payload == 30.0


def test_missing_handler_leaves_event_at_head():
    queue = EventQueue()
    queue.register_handler("note", lambda u, e: None)
    first = Event(T0, "note")
    orphan = Event(T0.add_seconds(1.0), "unknown")
    queue.add(first)
    queue.add(orphan)
    with pytest.raises(MissingHandlerError):
        queue.process(T0.add_seconds(5.0))
    assert first.fired
    assert queue.peek() is orphan and not orphan.fired
    assert queue.size() == 1


def test_process_requires_a_julian_date():
    with pytest.raises(InvalidInputError):
        EventQueue().process(2451545.0)


def test_handler_registry():
    queue = EventQueue()
    handler = lambda u, e: None
    queue.register_handler("TrackObject", handler)
    assert queue.get_handler("trackobject") is handler
    assert queue.unregister_handler("TRACKOBJECT")
    assert not queue.unregister_handler("trackObject")
    with pytest.raises(InvalidInputError):
        queue.register_handler("", handler)
    with pytest.raises(InvalidInputError):
        queue.register_handler("x", "not callable")


def test_remove_clear_and_mappings():
    queue = EventQueue()
    event_id = queue.add({"time": "2024-05-06T20:00:00Z", "type": "note", "payload": 1})
    assert event_id.startswith("evt_")
    assert queue.peek().time == T0
    other = queue.add(Event(T0, "note", id="custom"))
    assert other == "custom"
    assert queue.remove(event_id)
    assert not queue.remove(event_id)
    assert [e.id for e in queue] == ["custom"]
    queue.clear()
    assert queue.size() == 0
    with pytest.raises(InvalidInputError):
        queue.add(42)


def test_event_validation():
    with pytest.raises(InvalidInputError):
        Event(None, "note")
    with pytest.raises(InvalidInputError):
        Event(2451545.0, "note")
    with pytest.raises(InvalidInputError):
        Event(T0, "note", handler="not callable")
    a, b = Event(T0), Event(T0)
    assert b.sequence > a.sequence


def test_handlers_may_mutate_the_queue():
    queue = EventQueue()
    fired = []
    doomed = Event(T0.add_seconds(2.0), "note", handler=lambda u, e: fired.append("doomed"))

    def cancel(universe, event):
        fired.append("cancel")
        queue.remove(doomed.id)

    queue.add(Event(T0, "note", handler=cancel))
    queue.add(doomed)
    queue.process(T0.add_seconds(5.0))
    assert fired == ["cancel"]
    assert queue.size() == 0


def test_processed_keys_ascend_and_none_are_early():
    rng = np.random.default_rng(17)
    queue = EventQueue()
    fired = []
    queue.register_handler("note", lambda u, e: fired.append(e))
    for offset in rng.integers(0, 50, size=60):
        queue.add(Event(T0.add_seconds(float(offset)), "note"))
    cutoff = T0.add_seconds(25.0)
    queue.process(cutoff)

    keys = [e.key for e in fired]
    assert all(a < b for a, b in zip(keys, keys[1:]))
    assert all(e.time <= cutoff and e.fired for e in fired)
    assert all(e.time > cutoff for e in queue)
    assert len(fired) + queue.size() == 60


# ═══════════════════════════════════════════════════════════════════════════
#  4. UNIVERSE
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def universe():
    u = Universe()
    u.add_ground_electro_optical_observatory(
        "Maui", *MAUI, 4096, 4096, 1.5, 1.5,
        field_of_regard=[{"clock": [0, 360], "elevation": [10, 90]}])
    return u


def test_satellites_hang_under_matching_frame_nodes(universe):
    leo = universe.add_two_body_satellite("leo", R_LEO, V_LEO, T0)
    iss = universe.add_sgp4_satellite("ISS", ISS_L1, ISS_L2)
    assert leo.parent is universe.earth.icrf
    assert iss.parent is universe.earth.teme
    assert iss.inertial_frame is InertialFrame.TEME
    assert universe.trackables == [leo, iss]

    universe.update(T0)
    iss.update(T0, universe)
    npt.assert_allclose(iss.world_position, universe.earth.teme_to_fixed @ iss.position,
                        rtol=1e-12, atol=1e-6)
    leo.update(T0, universe)
    npt.assert_allclose(leo.world_velocity, universe.earth.icrf_to_fixed @ leo.velocity,
                        rtol=1e-12, atol=1e-9)


def test_duplicate_names_are_rejected(universe):
    universe.add_two_body_satellite("leo", R_LEO, V_LEO, T0)
    with pytest.raises(InvalidInputError):
        universe.add_two_body_satellite("leo", R_LEO, V_LEO, T0)
    with pytest.raises(InvalidInputError):
        universe.add_sgp4_satellite("Maui Gimbal", ISS_L1, ISS_L2)
    with pytest.raises(InvalidInputError):
        universe.add_ground_electro_optical_observatory("Maui", 0, 0, 0, 10, 10, 1, 1)
    with pytest.raises(InvalidInputError):
        universe.add_object("not an object")


def test_observatory_components_are_registered(universe):
    (obs,) = universe.observatories
    assert obs.name == "Maui"
    assert obs.gimbal.parent is obs.site and obs.sensor.parent is obs.gimbal
    assert obs.site.parent is universe.earth
    for name in ("Maui", "Maui Gimbal", "Maui Sensor"):
        assert universe.has_object(name)
    assert universe.trackables == []
    assert universe.gimbals == [obs.gimbal] and universe.sensors == [obs.sensor]


def test_add_observatory_name_clash_changes_nothing(universe):
    universe.add_ground_site("taken", 0.0, 0.0)
    site = EarthGroundStation(10.0, 20.0, 0.0, name="new site")
    gimbal = AzElGimbal("taken")
    gimbal.attach(site)
    sensor = ElectroOpticalSensor(512, 512, 1.0, 1.0, name="new sensor")
    sensor.attach(gimbal)

    with pytest.raises(InvalidInputError):
        universe.add_observatory(site, gimbal, sensor)
    assert not universe.has_object("new site")
    assert not universe.has_object("new sensor")
    assert site.parent is None
    assert len(universe.observatories) == 1
    assert len(universe.gimbals) == 1

    gimbal.detach()
    gimbal = AzElGimbal("new gimbal")
    gimbal.attach(site)
    sensor.attach(gimbal)
    universe.add_observatory(site, gimbal, sensor)
    assert universe.has_object("new site") and universe.has_object("new gimbal")
    assert site.parent is universe.earth


def test_lagrange_interpolated_satellite(universe):
    obj = universe.add_two_body_satellite("leo", R_LEO, V_LEO, T0, lagrange_interpolated=True)
    assert isinstance(obj, LagrangeInterpolatedObject)
    assert universe.get_object("leo") is obj
    assert obj.parent is universe.earth.icrf


def test_remove_object(universe):
    sat = universe.add_two_body_satellite("leo", R_LEO, V_LEO, T0)
    universe.remove_object(sat)
    assert not universe.has_object("leo")
    assert sat.parent is None
    assert universe.trackables == []


def test_update_is_lazy_unless_eager(universe):
    sat = universe.add_two_body_satellite("leo", R_LEO, V_LEO, T0)
    universe.update(T0)
    assert universe.time == T0
    assert sat.last_update is None
    assert universe.earth.last_update == T0
    (obs,) = universe.observatories
    assert obs.sensor.last_update == T0

    later = T0.add_seconds(60.0)
    universe.update(later, eager=True)
    assert sat.last_update == later
    with pytest.raises(InvalidInputError):
        universe.update(T0.jd)


def test_eager_update_logs_propagator_failures(universe, caplog):
    sat = Satellite("decaying", FailingPropagator([R_EARTH, 0.0, 0.0]))
    universe.add_object(sat)
    universe.update(T0, eager=True)
    with caplog.at_level(logging.WARNING, logger="eosim.universe"):
        universe.update(T0.add_seconds(1.0), eager=True)
    assert "decaying" in caplog.text
    assert sat.last_update == T0


def test_track_object_event_points_the_gimbal(universe):
    iss = universe.add_sgp4_satellite("ISS", ISS_L1, ISS_L2)
    universe.schedule_event({"time": T0, "type": TRACK_OBJECT,
                             "payload": {"observer": "Maui", "target": "ISS"}})
    universe.update(T0)
    (obs,) = universe.observatories
    assert obs.gimbal.track_mode == "rate"
    assert obs.gimbal.track_object is iss
    assert universe.events.size() == 0

    local = obs.site.transform_point_from_world(iss.world_position)
    npt.assert_allclose(obs.gimbal.range, np.linalg.norm(local), rtol=1e-9)
    boresight = obs.gimbal.transform_vector_to(obs.site, [0.0, 0.0, -1.0])
    npt.assert_allclose(boresight, local / np.linalg.norm(local), atol=1e-9)


def test_track_object_event_with_unknown_target(universe, caplog):
    universe.schedule_event(Event(T0, TRACK_OBJECT, {"observer": "Maui", "target": "nobody"}))
    with caplog.at_level(logging.WARNING, logger="eosim.universe"):
        universe.update(T0)
    assert "nobody" in caplog.text
    assert universe.observatories[0].gimbal.track_mode == "fixed"


# ═══════════════════════════════════════════════════════════════════════════
#  5. VISIBILITY
# ═══════════════════════════════════════════════════════════════════════════

def test_angular_rate():
    npt.assert_allclose(angular_rate(np.array([1e6, 0.0, 0.0]), np.array([0.0, 1e3, 0.0])),
                        206.264806)
    assert angular_rate(np.zeros(3), np.ones(3)) == 0.0


def test_visibility_of_a_target_over_the_site(universe):
    (obs,) = universe.observatories
    position = obs.site.transform_point_to_world(az_el_to_south_east_zenith(45.0, 60.0, 1.0e6))
    target = universe.add_object(_fixed_at("beacon", position))
    target.model = PhotometricModel(diameter=2.0)
    universe.update(T0)

    (result,) = get_visibility(universe, T0, universe.observatories, target)
    assert set(result) == {"sensor", "az", "el", "r", "visible", "ang_rate",
                           "phase_angle", "range", "mv"}
    assert result["sensor"] == "Maui Sensor"
    npt.assert_allclose([result["az"], result["el"], result["r"]], [45.0, 60.0, 1.0e6],
                        rtol=1e-9)
    assert result["visible"]
    npt.assert_allclose(result["range"], 1.0e6, rtol=1e-9)
    assert np.isfinite(result["mv"])

    r_rel = target.world_position - obs.site.world_position
    v_rel = target.world_velocity - obs.site.world_velocity
    npt.assert_allclose(result["ang_rate"], angular_rate(r_rel, v_rel))


def test_visibility_below_field_of_regard(universe):
    (obs,) = universe.observatories
    position = obs.site.transform_point_to_world(az_el_to_south_east_zenith(200.0, 5.0, 2.0e6))
    target = universe.add_object(_fixed_at("low", position))
    universe.update(T0)
    (result,) = get_visibility(universe, T0, universe.observatories, target)
    assert not result["visible"]
    assert result["mv"] is None


def test_visibility_without_field_of_regard_or_velocity():
    universe = Universe()
    obs = universe.add_ground_electro_optical_observatory("Site", 0.0, 0.0, 0.0,
                                                          10, 10, 1.0, 1.0)
    universe.update(T0)
    (result,) = get_visibility(universe, T0, [obs], universe.sun)
    assert not result["visible"]
    assert result["ang_rate"] is None


def test_visibility_of_orbiting_satellite(universe):
    iss = universe.add_sgp4_satellite("ISS", ISS_L1, ISS_L2)
    universe.update(T0)
    (result,) = get_visibility(universe, T0, universe.observatories, iss)
    assert iss.last_update == T0
    assert result["r"] > 3.0e5
    assert 0.0 <= result["az"] < 360.0
    assert result["ang_rate"] > 0.0
    assert result["visible"] == (10.0 < result["el"] < 90.0)
