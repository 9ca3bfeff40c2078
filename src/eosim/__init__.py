"""
eosim — Electro-Optical Observation Simulator Core
===================================================

A NumPy library that answers, at each simulated instant, which space
objects a set of gimbaled electro-optical sensors can see, how bright the
objects are and how fast they cross the sky.

All world coordinates are Earth-fixed (ITRF)::

    Earth (ITRF) ─┬─ icrf ── two-body satellites, Sun
                  ├─ teme ── SGP4 satellites
                  └─ ground sites ── gimbals ── sensors

Building blocks
---------------

**Time & frames**
  - ``JulianDate`` in UTC / TAI / TT with leap seconds
  - ICRF → ITRF from interpolated IAU 2006 XYS tables, TEME → PEF by GMST

**Dynamics**
  - Two-body (universal variables), SGP4/SDP4 (``sgp4``), static and
    tabulated-ephemeris propagators; Lagrange-interpolated stand-ins

**Geometry**
  - Conical Earth shadow, Lambertian-sphere photometry, South-East-Zenith
    az/el, field-of-regard tests, per-observatory visibility

**Scheduling**
  - ``Universe`` tick driven by a time-ordered ``EventQueue``
"""

from .errors import (
    EosimError, InvalidInputError, MissingHandlerError, PropagatorError,
    XysLoadError,
)

from .julian import JulianDate, TimeStandard

from .utils import (
    MU_EARTH, R_EARTH, OMEGA_EARTH, F_EARTH, E2_EARTH,
    normalize, lla_to_ecef, julian_date, gmst,
)

from .xys import Iau2006XysData, XysConfig, ChunkState

from .frames import (
    ReferenceFrame, InertialFrame, FrameRotation,
    icrf_to_fixed_matrix, teme_to_pseudo_fixed_matrix,
    default_frame_rotation, set_default_frame_rotation,
)

from .graph import Node, Group, TransformGroup

from .orbits import (
    keplerian_to_eci, propagate_universal,
    rv_to_period, rv_to_eccentricity, rv_to_coe,
    compute_orbital_period, compute_mean_motion,
)

from .tle import TLE, parse_tle, read_tle_lines, verify_tle

from .propagators import (
    PropagatedState, Propagator,
    TwoBodyPropagator, SGP4Propagator, StaticPropagator, EphemerisPropagator,
)

from .sun import sun_position_inertial
from .moon import moon_position_inertial

from .shadow import ShadowState, get_shadow_status

from .photometry import (
    PhotometricModel, mv_to_pe, pe_to_mv, lambertian_sphere_to_mv,
    calculate_target_brightness,
)

from .sensor import (
    FieldOfRegard, in_field_of_regard,
    south_east_zenith_to_az_el, space_based_to_az_el,
)

from .objects import (
    SimObject, Earth, Sun, InertialFrameNode, Satellite,
    LagrangeInterpolatedObject, EarthGroundStation,
    Gimbal, AzElGimbal, ElectroOpticalSensor,
)

from .observatory import Observatory
from .visibility import get_visibility
from .events import Event, EventQueue
from .universe import Universe

__version__ = "0.1.0"
__all__ = [
    # ── Errors ──
    "EosimError", "InvalidInputError", "MissingHandlerError",
    "PropagatorError", "XysLoadError",
    # ── Time ──
    "JulianDate", "TimeStandard",
    # ── Constants & helpers ──
    "MU_EARTH", "R_EARTH", "OMEGA_EARTH", "F_EARTH", "E2_EARTH",
    "normalize", "lla_to_ecef", "julian_date", "gmst",
    # ── Frames ──
    "Iau2006XysData", "XysConfig", "ChunkState",
    "ReferenceFrame", "InertialFrame", "FrameRotation",
    "icrf_to_fixed_matrix", "teme_to_pseudo_fixed_matrix",
    "default_frame_rotation", "set_default_frame_rotation",
    # ── Scene graph ──
    "Node", "Group", "TransformGroup",
    # ── Orbital mechanics ──
    "keplerian_to_eci", "propagate_universal",
    "rv_to_period", "rv_to_eccentricity", "rv_to_coe",
    "compute_orbital_period", "compute_mean_motion",
    "TLE", "parse_tle", "read_tle_lines", "verify_tle",
    "PropagatedState", "Propagator", "TwoBodyPropagator", "SGP4Propagator",
    "StaticPropagator", "EphemerisPropagator",
    # ── Ephemerides ──
    "sun_position_inertial", "moon_position_inertial",
    # ── Shadow & photometry ──
    "ShadowState", "get_shadow_status",
    "PhotometricModel", "mv_to_pe", "pe_to_mv", "lambertian_sphere_to_mv",
    "calculate_target_brightness",
    # ── Sensors ──
    "FieldOfRegard", "in_field_of_regard",
    "south_east_zenith_to_az_el", "space_based_to_az_el",
    # ── Simulation objects ──
    "SimObject", "Earth", "Sun", "InertialFrameNode", "Satellite",
    "LagrangeInterpolatedObject", "EarthGroundStation",
    "Gimbal", "AzElGimbal", "ElectroOpticalSensor", "Observatory",
    # ── Simulation ──
    "get_visibility", "Event", "EventQueue", "Universe",
]
