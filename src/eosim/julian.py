"""
eosim.julian — Julian Dates in UTC, TAI and TT
===============================================

A ``JulianDate`` is an integer day number plus seconds of day, tagged with
the time standard it is expressed in.  Splitting the date this way keeps
sub-millisecond resolution over centuries, which a single float Julian date
cannot do.

Days start at noon (astronomical convention), so the Julian date as a float
is simply ``day_number + seconds_of_day / 86400``.

Conversions
-----------
    TAI = UTC + ΔAT        (leap-second table below)
    TT  = TAI + 32.184 s

Arithmetic keeps the tag of the left operand; ordering comparisons between
dates of different standards raise ``InvalidInputError``.  Differences
(``seconds_difference`` / ``days_difference``) convert both operands to TAI
first and so work across standards.
"""

import math
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from .errors import InvalidInputError
from .utils import DAILY_SECONDS, julian_date

TT_MINUS_TAI = 32.184            # [s]
J2000_JD = 2_451_545.0           # 2000-01-01 12:00 TT
_UNIX_EPOCH_JD = 2_440_587.5     # 1970-01-01 00:00 UTC


class TimeStandard(str, Enum):
    UTC = "UTC"
    TAI = "TAI"
    TT = "TT"


# ── Leap Seconds ────────────────────────────────────────────────────────────
# (year, month, day) at 00:00 UTC from which TAI − UTC takes the given value.
LEAP_SECONDS = (
    (1972, 1, 1, 10), (1972, 7, 1, 11), (1973, 1, 1, 12),
    (1974, 1, 1, 13), (1975, 1, 1, 14), (1976, 1, 1, 15),
    (1977, 1, 1, 16), (1978, 1, 1, 17), (1979, 1, 1, 18),
    (1980, 1, 1, 19), (1981, 7, 1, 20), (1982, 7, 1, 21),
    (1983, 7, 1, 22), (1985, 7, 1, 23), (1988, 1, 1, 24),
    (1990, 1, 1, 25), (1991, 1, 1, 26), (1992, 7, 1, 27),
    (1993, 7, 1, 28), (1994, 7, 1, 29), (1996, 1, 1, 30),
    (1997, 7, 1, 31), (1999, 1, 1, 32), (2006, 1, 1, 33),
    (2009, 1, 1, 34), (2012, 7, 1, 35), (2015, 7, 1, 36),
    (2017, 1, 1, 37),
)

_LEAP_UTC_JD = [julian_date(y, m, d) for y, m, d, _ in LEAP_SECONDS]
_LEAP_TAI_JD = [jd + off / DAILY_SECONDS
                for jd, (_, _, _, off) in zip(_LEAP_UTC_JD, LEAP_SECONDS)]
_LEAP_OFFSETS = [float(off) for *_, off in LEAP_SECONDS]


def _offset_at(table: list, jd: float) -> float:
    i = bisect_right(table, jd) - 1
    # dates before 1972 use the first tabulated offset
    return _LEAP_OFFSETS[max(i, 0)]


def tai_minus_utc(jd_utc: float) -> float:
    """TAI − UTC [s] in effect at the given UTC Julian date."""
    return _offset_at(_LEAP_UTC_JD, jd_utc)


def tdb_minus_tt(days_since_j2000_tt: float) -> float:
    """TDB − TT [s], the two-term periodic approximation."""
    g = 6.239996 + 0.0172019696544 * days_since_j2000_tt
    return 1.657e-3 * math.sin(g + 1.671e-2 * math.sin(g))


# ── JulianDate ──────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class JulianDate:
    """Day number + seconds of day in a tagged time standard.

    ``seconds_of_day`` is normalised into ``[0, 86400)`` on construction.
    """
    day_number: int
    seconds_of_day: float = 0.0
    standard: TimeStandard = TimeStandard.UTC

    def __post_init__(self):
        if not math.isfinite(self.seconds_of_day):
            raise InvalidInputError("seconds_of_day must be finite")
        standard = TimeStandard(self.standard)
        days, secs = divmod(float(self.seconds_of_day), DAILY_SECONDS)
        # divmod can round a tiny negative remainder up to exactly 86400
        if secs >= DAILY_SECONDS:
            days += 1.0
            secs = 0.0
        object.__setattr__(self, "day_number", int(self.day_number) + int(days))
        object.__setattr__(self, "seconds_of_day", secs)
        object.__setattr__(self, "standard", standard)

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def from_jd(cls, jd: float,
                standard: TimeStandard = TimeStandard.UTC) -> "JulianDate":
        """From a floating-point Julian date."""
        day = math.floor(jd)
        return cls(day, (jd - day) * DAILY_SECONDS, standard)

    @classmethod
    def from_calendar(cls, year: int, month: int, day: int,
                      hour: int = 0, minute: int = 0, second: float = 0.0,
                      standard: TimeStandard = TimeStandard.UTC) -> "JulianDate":
        """From a Gregorian calendar date (UTC unless told otherwise)."""
        # julian_date() at 0h ends in .5; the day number is the following noon
        day_number = int(julian_date(year, month, day) + 0.5)
        seconds = (hour - 12) * 3600.0 + minute * 60.0 + second
        return cls(day_number, seconds, standard)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "JulianDate":
        """From a ``datetime``; naive values are taken as UTC."""
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc)
        second = dt.second + dt.microsecond * 1e-6
        return cls.from_calendar(dt.year, dt.month, dt.day,
                                 dt.hour, dt.minute, second)

    @classmethod
    def from_iso8601(cls, text: str) -> "JulianDate":
        """From an ISO-8601 string such as ``"2024-05-06T12:00:00Z"``."""
        if not isinstance(text, str):
            raise InvalidInputError(f"expected ISO-8601 string, got {type(text).__name__}")
        s = text.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError as exc:
            raise InvalidInputError(f"not an ISO-8601 date: {text!r}") from exc
        return cls.from_datetime(dt)

    @classmethod
    def coerce(cls, value) -> "JulianDate":
        """Accept a JulianDate, a ``datetime`` or an ISO-8601 string."""
        if isinstance(value, JulianDate):
            return value
        if isinstance(value, datetime):
            return cls.from_datetime(value)
        if isinstance(value, str):
            return cls.from_iso8601(value)
        raise InvalidInputError(
            f"expected JulianDate, datetime or ISO-8601 string, got {type(value).__name__}")

    # ── Views ────────────────────────────────────────────────────────────

    @property
    def jd(self) -> float:
        """Julian date as a single float (loses sub-ms precision)."""
        return self.day_number + self.seconds_of_day / DAILY_SECONDS

    def to_standard(self, standard: TimeStandard) -> "JulianDate":
        """The same instant expressed in another time standard."""
        standard = TimeStandard(standard)
        if standard is self.standard:
            return self
        tai = self._to_tai()
        if standard is TimeStandard.TAI:
            return tai
        if standard is TimeStandard.TT:
            return JulianDate(tai.day_number, tai.seconds_of_day + TT_MINUS_TAI,
                              TimeStandard.TT)
        offset = _offset_at(_LEAP_TAI_JD, tai.jd)
        return JulianDate(tai.day_number, tai.seconds_of_day - offset,
                          TimeStandard.UTC)

    def _to_tai(self) -> "JulianDate":
        if self.standard is TimeStandard.TAI:
            return self
        if self.standard is TimeStandard.TT:
            return JulianDate(self.day_number, self.seconds_of_day - TT_MINUS_TAI,
                              TimeStandard.TAI)
        return JulianDate(self.day_number,
                          self.seconds_of_day + tai_minus_utc(self.jd),
                          TimeStandard.TAI)

    def tdb_days_since_j2000(self) -> float:
        """Days of TDB elapsed since J2000.0, for analytic ephemerides."""
        tt = self.to_standard(TimeStandard.TT)
        days = (tt.day_number - J2000_JD) + tt.seconds_of_day / DAILY_SECONDS
        return days + tdb_minus_tt(days) / DAILY_SECONDS

    def to_datetime(self) -> datetime:
        """Timezone-aware UTC ``datetime`` (microsecond resolution)."""
        utc = self.to_standard(TimeStandard.UTC)
        unix_seconds = ((utc.day_number - _UNIX_EPOCH_JD) * DAILY_SECONDS
                        + utc.seconds_of_day)
        return datetime.fromtimestamp(unix_seconds, tz=timezone.utc)

    def unix_millis(self) -> int:
        """Milliseconds since 1970-01-01 UTC, ignoring leap seconds."""
        utc = self.to_standard(TimeStandard.UTC)
        return int(round(((utc.day_number - _UNIX_EPOCH_JD) * DAILY_SECONDS
                          + utc.seconds_of_day) * 1000.0))

    # ── Arithmetic ───────────────────────────────────────────────────────

    def add_seconds(self, seconds: float) -> "JulianDate":
        return JulianDate(self.day_number, self.seconds_of_day + seconds,
                          self.standard)

    def add_days(self, days: float) -> "JulianDate":
        whole = math.floor(days)
        return JulianDate(self.day_number + whole,
                          self.seconds_of_day + (days - whole) * DAILY_SECONDS,
                          self.standard)

    def seconds_difference(self, other: "JulianDate") -> float:
        """``self − other`` in seconds, measured on the TAI scale."""
        a = self._to_tai()
        b = other._to_tai()
        return ((a.day_number - b.day_number) * DAILY_SECONDS
                + (a.seconds_of_day - b.seconds_of_day))

    def days_difference(self, other: "JulianDate") -> float:
        """``self − other`` in days, measured on the TAI scale."""
        a = self._to_tai()
        b = other._to_tai()
        return ((a.day_number - b.day_number)
                + (a.seconds_of_day - b.seconds_of_day) / DAILY_SECONDS)

    # ── Comparison ───────────────────────────────────────────────────────

    def _key(self, other) -> tuple:
        if not isinstance(other, JulianDate):
            raise InvalidInputError(
                f"cannot compare JulianDate with {type(other).__name__}")
        if other.standard is not self.standard:
            raise InvalidInputError(
                f"cannot order {self.standard.value} and {other.standard.value} dates")
        return other.day_number, other.seconds_of_day

    def __eq__(self, other):
        if not isinstance(other, JulianDate):
            return NotImplemented
        return (self.standard is other.standard
                and self.day_number == other.day_number
                and self.seconds_of_day == other.seconds_of_day)

    def __hash__(self):
        return hash((self.day_number, self.seconds_of_day, self.standard))

    def __lt__(self, other):
        return (self.day_number, self.seconds_of_day) < self._key(other)

    def __le__(self, other):
        return (self.day_number, self.seconds_of_day) <= self._key(other)

    def __gt__(self, other):
        return (self.day_number, self.seconds_of_day) > self._key(other)

    def __ge__(self, other):
        return (self.day_number, self.seconds_of_day) >= self._key(other)

    def __repr__(self):
        return (f"JulianDate({self.day_number}, {self.seconds_of_day!r}, "
                f"{self.standard.value})")
