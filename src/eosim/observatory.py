"""
eosim.observatory — Site, Gimbal and Sensor
============================================

An observatory bundles the three scene-graph objects that together make
one observing instrument::

    EarthGroundStation ── AzElGimbal ── ElectroOpticalSensor

The observatory holds references only; moving, re-pointing or swapping a
component is done by the owner.
"""

from dataclasses import dataclass

from .julian import JulianDate
from .objects import ElectroOpticalSensor, Gimbal, SimObject


@dataclass(eq=False)
class Observatory:
    site: SimObject
    gimbal: Gimbal
    sensor: ElectroOpticalSensor

    @property
    def name(self) -> str:
        return self.site.name

    @property
    def field_of_regard(self) -> list:
        return self.sensor.field_of_regard

    def update(self, time: JulianDate, universe=None, force_update: bool = False) -> None:
        """Bring site, gimbal and sensor to ``time``, in that order."""
        self.site.update(time, universe, force_update)
        self.gimbal.update(time, universe, force_update)
        self.sensor.update(time, universe, force_update)

    def mark_stale(self) -> None:
        self.site.mark_stale()
        self.gimbal.mark_stale()
        self.sensor.mark_stale()
