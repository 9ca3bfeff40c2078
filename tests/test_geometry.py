"""
test_geometry.py — Ephemerides, Shadow, Photometry and Sensor Geometry
======================================================================

  1. sun / moon   — analytic ephemerides
  2. shadow       — conical Earth shadow
  3. photometry   — magnitude conversions, Lambertian sphere
  4. sensor       — South-East-Zenith az/el, field of regard
"""

from types import SimpleNamespace

import numpy as np
import numpy.testing as npt
import pytest

from eosim.errors import InvalidInputError
from eosim.julian import JulianDate
from eosim.moon import moon_position_inertial
from eosim.objects import Satellite
from eosim.photometry import (
    LAMBERTIAN_SPHERE, PhotometricModel, calculate_target_brightness,
    lambertian_sphere_to_mv, mv_to_pe, pe_to_mv,
)
from eosim.propagators import StaticPropagator
from eosim.sensor import (
    FieldOfRegard, az_el_to_south_east_zenith, coerce_field_of_regard,
    in_field_of_regard, south_east_zenith_to_az_el, space_based_to_az_el,
)
from eosim.shadow import (
    ShadowState, classify_shadow_state, get_shadow_status, shadow_lengths,
)
from eosim.sun import AU, sun_position_inertial, sun_position_low_precision
from eosim.utils import R_EARTH, angle_between

# ═══════════════════════════════════════════════════════════════════════════
#  Shared Fixtures
# ═══════════════════════════════════════════════════════════════════════════

T0 = JulianDate.from_calendar(2000, 6, 1)
SUN_POSITION = np.array([1.496e11, 0.0, 0.0])


def _fixed(name, position):
    return Satellite(name, StaticPropagator(position))


@pytest.fixture
def sun():
    return _fixed("Sun", SUN_POSITION)


# ═══════════════════════════════════════════════════════════════════════════
#  1. SUN & MOON
# ═══════════════════════════════════════════════════════════════════════════

def test_sun_distance_is_about_one_au():
    for month in (1, 4, 7, 10):
        r = sun_position_inertial(JulianDate.from_calendar(2024, month, 1))
        assert 0.98 * AU < np.linalg.norm(r) < 1.02 * AU


def test_sun_agrees_with_low_precision_formula():
    precise = sun_position_inertial(T0)
    rough = sun_position_low_precision(T0.jd)
    assert np.degrees(angle_between(precise, rough)) < 0.1
    npt.assert_allclose(np.linalg.norm(precise), np.linalg.norm(rough), rtol=1e-3)


def test_sun_position_writes_into_out():
    out = np.zeros(3)
    result = sun_position_inertial(T0, out=out)
    assert result is out
    assert np.linalg.norm(out) > 0.0


def test_moon_distance():
    for day in range(1, 29, 3):
        r = moon_position_inertial(JulianDate.from_calendar(2024, 2, day))
        assert 3.50e8 < np.linalg.norm(r) < 4.10e8


# ═══════════════════════════════════════════════════════════════════════════
#  2. SHADOW
# ═══════════════════════════════════════════════════════════════════════════

def test_shadow_boundary_cases(sun):
    objects = [
        _fixed("umbra", [-2.0 * R_EARTH, 0.0, 0.0]),
        _fixed("penumbra", [-4.2164e7, R_EARTH, 0.0]),
        _fixed("sunlit", [7.0e6, 0.0, 0.0]),
    ]
    states = get_shadow_status(sun, objects, T0)
    assert states == [ShadowState.UMBRA, ShadowState.PENUMBRA, ShadowState.SUNLIT]
    assert all(obj.last_update == T0 for obj in objects)


def test_far_behind_the_umbra_apex_is_penumbra():
    umbra, penumbra = shadow_lengths(np.linalg.norm(SUN_POSITION))
    assert umbra > penumbra
    direction = SUN_POSITION / np.linalg.norm(SUN_POSITION)
    state = classify_shadow_state(-2.0 * umbra * direction, direction, umbra, penumbra)
    assert state is ShadowState.PENUMBRA


def test_sun_side_is_always_sunlit():
    rng = np.random.default_rng(11)
    direction = np.array([0.0, 0.6, 0.8])
    umbra, penumbra = shadow_lengths(1.5e11)
    for _ in range(200):
        p = rng.normal(size=3) * rng.uniform(1.0, 1e9)
        if np.dot(p, direction) < 0.0:
            p = -p
        assert classify_shadow_state(p, direction, umbra, penumbra) is ShadowState.SUNLIT


def test_shadow_with_sun_at_origin_is_sunlit():
    states = get_shadow_status(_fixed("Sun", np.zeros(3)),
                               [_fixed("a", [-2.0 * R_EARTH, 0.0, 0.0])], T0)
    assert states == [ShadowState.SUNLIT]


def test_shadow_missing_objects_count_as_sunlit(sun):
    assert get_shadow_status(sun, [None], T0) == [ShadowState.SUNLIT]


def test_shadow_input_errors(sun):
    with pytest.raises(InvalidInputError):
        get_shadow_status(None, [], T0)
    with pytest.raises(InvalidInputError):
        get_shadow_status(sun, [], T0.jd)
    with pytest.raises(InvalidInputError):
        get_shadow_status(sun, _fixed("a", np.ones(3)), T0)


# ═══════════════════════════════════════════════════════════════════════════
#  3. PHOTOMETRY
# ═══════════════════════════════════════════════════════════════════════════

def test_magnitude_photo_electron_conversion():
    pe = mv_to_pe(12.3, 25.0)
    npt.assert_allclose(pe, 10.0 ** 5.08)
    npt.assert_allclose(pe_to_mv(pe, 25.0), 12.3, atol=1e-10)


def test_magnitude_round_trip():
    rng = np.random.default_rng(5)
    for mv, zp in zip(rng.uniform(-5.0, 25.0, 100), rng.uniform(15.0, 30.0, 100)):
        assert abs(pe_to_mv(mv_to_pe(mv, zp), zp) - mv) < 1e-10


def test_lambertian_sphere_moon_like():
    mv = lambertian_sphere_to_mv(90.0, 3.844e8, 1.7374e6, 0.12)
    assert np.isfinite(mv)
    assert mv < 5.0
    npt.assert_allclose(mv, -11.03, atol=0.01)


def test_lambertian_sphere_dims_with_phase_and_range():
    assert lambertian_sphere_to_mv(0.0, 1e7) < lambertian_sphere_to_mv(90.0, 1e7)
    npt.assert_allclose(lambertian_sphere_to_mv(30.0, 2e7) - lambertian_sphere_to_mv(30.0, 1e7),
                        5.0 * np.log10(2.0))
    assert lambertian_sphere_to_mv(180.0, 1e7) == float("inf")


def test_target_brightness():
    sun = SimpleNamespace(world_position=np.array([1.5e11, 0.0, 0.0]))
    observer = SimpleNamespace(world_position=np.array([0.0, 1.0e7, 0.0]))
    target = SimpleNamespace(world_position=np.zeros(3),
                             model={"mode": LAMBERTIAN_SPHERE, "diameter": 2.0, "albedo": 0.25})

    result = calculate_target_brightness(observer, target, sun)
    npt.assert_allclose(result["phase_angle"], 90.0)
    npt.assert_allclose(result["range"], 1.0e7)
    npt.assert_allclose(result["mv"], lambertian_sphere_to_mv(90.0, 1.0e7, 1.0, 0.25))

    target.model = PhotometricModel(mode="specular")
    assert calculate_target_brightness(observer, target, sun)["mv"] is None
    target.model = None
    assert calculate_target_brightness(observer, target, sun)["mv"] is None


# ═══════════════════════════════════════════════════════════════════════════
#  4. SENSOR GEOMETRY
# ═══════════════════════════════════════════════════════════════════════════

def test_south_east_zenith_to_az_el():
    az, el, r = south_east_zenith_to_az_el([-1.0, 0.0, 1.0])
    npt.assert_allclose([az, el, r], [0.0, 45.0, np.sqrt(2.0)], atol=1e-12)
    az, el, r = south_east_zenith_to_az_el([0.0, 1.0, 0.0])
    npt.assert_allclose([az, el, r], [90.0, 0.0, 1.0], atol=1e-12)
    az, el, r = south_east_zenith_to_az_el([0.0, -1.0, 0.0])
    npt.assert_allclose(az, 270.0)
    assert south_east_zenith_to_az_el(np.zeros(3)) == (0.0, 0.0, 0.0)


def test_azimuth_stays_below_360():
    # atan2 gives -1e-300 here; adding 2π rounds to exactly 2π
    az, el, _ = south_east_zenith_to_az_el([-1.0, -1e-300, 0.0])
    assert az == 0.0 and el == 0.0
    az, _, _ = space_based_to_az_el([-1.0, -1e-300, 0.0])
    assert 0.0 <= az < 360.0


def test_az_el_to_south_east_zenith_inverts():
    v = az_el_to_south_east_zenith(123.0, -20.0, 5.0)
    npt.assert_allclose(south_east_zenith_to_az_el(v), (123.0, -20.0, 5.0))


def test_space_based_az_el():
    _, el, r = space_based_to_az_el([0.0, 0.0, -2.0])
    assert el == 0.0 and r == 2.0
    az, el, _ = space_based_to_az_el([1.0, 0.0, 0.0])
    npt.assert_allclose([az, el], [180.0, 90.0])
    _, el, _ = space_based_to_az_el([0.0, 0.0, 3.0])
    npt.assert_allclose(el, 180.0)


def test_field_of_regard_is_strict():
    regions = [{"clock": [0, 90], "elevation": [10, 80]}]
    assert in_field_of_regard(45.0, 30.0, regions)
    assert not in_field_of_regard(0.0, 11.0, regions)
    assert not in_field_of_regard(45.0, 5.0, regions)
    assert not in_field_of_regard(45.0, 80.0, regions)


def test_field_of_regard_any_region():
    regions = [FieldOfRegard((0, 90), (10, 80)), FieldOfRegard((180, 270), (0, 45))]
    assert in_field_of_regard(200.0, 20.0, regions)
    assert not in_field_of_regard(120.0, 20.0, regions)
    assert not in_field_of_regard(45.0, 30.0, None)
    assert not in_field_of_regard(45.0, 30.0, [])


def test_field_of_regard_validation():
    with pytest.raises(InvalidInputError):
        FieldOfRegard((0, 400), (0, 90))
    with pytest.raises(InvalidInputError):
        FieldOfRegard((0, 90), (-100, 0))
    with pytest.raises(InvalidInputError):
        FieldOfRegard((0, 90, 180), (0, 90))
    with pytest.raises(InvalidInputError):
        FieldOfRegard.coerce({"clock": [0, 90]})
    with pytest.raises(InvalidInputError):
        FieldOfRegard.coerce(42)


def test_coerce_field_of_regard():
    regions = coerce_field_of_regard([{"clock": [0, 90], "elevation": [10, 80]}])
    assert regions == [FieldOfRegard((0.0, 90.0), (10.0, 80.0))]
    assert coerce_field_of_regard(None) == []
