"""
eosim.visibility — Per-Observatory Visibility
==============================================

For each observatory, where does a target appear in the site's
South-East-Zenith frame, may the sensor point there, how fast is it moving
across the sky and how bright is it?

Sky rate
--------
With ``r_rel = r_target − r_site`` and ``v_rel = v_target − v_site``
(world positions, inertial velocities on world axes)::

    ω = |r_rel × v_rel| / |r_rel|²              [rad/s]
    ang_rate = ω · 206264.806                   [arcsec/s]

The rate is ``None`` when either velocity is unavailable.
"""

from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .julian import JulianDate
from .photometry import calculate_target_brightness
from .sensor import in_field_of_regard, south_east_zenith_to_az_el
from .utils import ARCSEC_PER_RADIAN


def angular_rate(relative_position: NDArray,
                 relative_velocity: NDArray) -> float:
    """Apparent angular rate of a target [arcsec/s]."""
    r2 = float(np.dot(relative_position, relative_position))
    if r2 == 0.0:
        return 0.0
    w = np.linalg.norm(np.cross(relative_position, relative_velocity)) / r2
    return float(w * ARCSEC_PER_RADIAN)


def _sky_rate(site, target) -> Optional[float]:
    site_velocity = site.world_velocity
    target_velocity = target.world_velocity
    if site_velocity is None or target_velocity is None:
        return None
    return angular_rate(target.world_position - site.world_position,
                        target_velocity - site_velocity)


def get_visibility(universe, time: JulianDate, observatories: Sequence,
                   target) -> list[dict]:
    """Visibility of ``target`` from every observatory at ``time``.

    The target (and the universe's Sun) are brought to ``time``; the
    observatories are assumed to be current.

    Returns
    -------
    list of dict, one per observatory, with:
        'sensor' : str — sensor name
        'az', 'el' : float — [deg] in the site's South-East-Zenith frame
        'r' : float — site–target range [m]
        'visible' : bool — inside the sensor's field of regard
        'ang_rate' : float or None — apparent sky rate [arcsec/s]
        'phase_angle', 'range', 'mv' — see ``calculate_target_brightness``
    """
    sun = universe.sun
    sun.update(time, universe)

    results = []
    for observatory in observatories:
        site = observatory.site
        target.update(time, universe)
        local = site.transform_point_from_world(target.world_position)
        az, el, r = south_east_zenith_to_az_el(local)

        result = {
            "sensor": observatory.sensor.name,
            "az": az,
            "el": el,
            "r": r,
            "visible": in_field_of_regard(az, el, observatory.sensor.field_of_regard),
            "ang_rate": _sky_rate(site, target),
        }
        result.update(calculate_target_brightness(site, target, sun))
        results.append(result)
    return results
