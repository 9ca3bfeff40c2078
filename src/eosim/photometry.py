"""
eosim.photometry — Apparent Brightness
=======================================

Magnitude ↔ photo-electron conversions and the diffuse (Lambertian)
sphere brightness model.

Lambertian sphere
-----------------
For phase angle φ (Sun–target–observer, 0 = full illumination), observer
range ρ, radius R and geometric albedo a::

    Φ(φ) = sin φ + (π − φ) cos φ
    I    = Φ(φ) · 2aR² / (3π ρ²)
    m_v  = m☉ − 2.5 log₁₀ I,         m☉ = −26.74

Reference
---------
Hejduk, M.D. (2011). Specular and diffuse components in spherical
    satellite photometric modelling. AMOS Conference.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .utils import angle_between

MV_SUN = -26.74                 # Apparent visual magnitude of the Sun
LAMBERTIAN_SPHERE = "lambertianSphere"


@dataclass
class PhotometricModel:
    """Reflectance model of a target."""
    mode: str = LAMBERTIAN_SPHERE
    diameter: float = 1.0       # [m]
    albedo: float = 0.25


def mv_to_pe(mv: float, zeropoint: float) -> float:
    """Visual magnitude → photo-electrons for a sensor zero point."""
    return 10.0 ** ((zeropoint - mv) / 2.5)


def pe_to_mv(pe: float, zeropoint: float) -> float:
    """Photo-electrons → visual magnitude for a sensor zero point."""
    return zeropoint - 2.5 * np.log10(pe)


def lambertian_sphere_to_mv(phase_angle: float, range_m: float,
                            radius: float = 1.0, albedo: float = 0.25) -> float:
    """Visual magnitude of a diffuse sphere.

    Parameters
    ----------
    phase_angle : float — Sun–target–observer angle [deg]
    range_m : float — observer–target range [m]
    radius : float — sphere radius [m]
    albedo : float — geometric albedo

    Returns
    -------
    mv : float — ``inf`` when no illuminated area is visible (φ = 180°)
    """
    phi = np.deg2rad(phase_angle)
    phase_factor = np.sin(phi) + (np.pi - phi) * np.cos(phi)
    intensity = phase_factor * (2.0 * albedo * radius * radius) / (3.0 * np.pi * range_m * range_m)
    if phase_angle >= 180.0 or intensity <= 0.0:
        return float("inf")
    return float(MV_SUN - 2.5 * np.log10(intensity))


def _model_fields(model) -> Optional[tuple]:
    if model is None:
        return None
    if isinstance(model, Mapping):
        return model.get("mode"), model.get("diameter", 1.0), model.get("albedo", 0.25)
    return model.mode, model.diameter, model.albedo


def calculate_target_brightness(observer, target, sun) -> dict:
    """Phase angle, range and (when the target has a model) magnitude.

    ``observer``, ``target`` and ``sun`` are objects exposing
    ``world_position``; they are not updated here.

    Returns
    -------
    dict with:
        'phase_angle' : float — [deg]
        'range' : float — observer–target distance [m]
        'mv' : float or None — only for ``lambertianSphere`` models
    """
    target_position = target.world_position
    to_sun = sun.world_position - target_position
    to_observer = observer.world_position - target_position
    phase_angle = float(np.rad2deg(angle_between(to_sun, to_observer)))
    range_m = float(np.linalg.norm(to_observer))

    mv = None
    fields = _model_fields(getattr(target, "model", None))
    if fields is not None and fields[0] == LAMBERTIAN_SPHERE:
        _, diameter, albedo = fields
        mv = lambertian_sphere_to_mv(phase_angle, range_m, diameter / 2.0, albedo)

    return {"phase_angle": phase_angle, "range": range_m, "mv": mv}
