"""
eosim.tle — Two-Line Element Text
==================================

Splitting TLE catalogue text into per-satellite records, structural and
checksum validation, and a light field-level parse used for metadata
(epoch, mean motion, eccentricity).  Propagation itself is done by the
``sgp4`` package through ``eosim.propagators.SGP4Propagator``.

Record layout
-------------
Each satellite is either two 69-character element lines, or a name line
(up to 24 characters) followed by the two element lines::

    ISS (ZARYA)
    1 25544U 98067A   24127.82853009  .00015698  00000+0  27310-3 0  9995
    2 25544  51.6393 160.4574 0003580 140.6673 205.7250 15.50957674452123

Reference
---------
Hoots, F.R. & Roehrich, R.L. (1980). SPACETRACK Report No. 3.
CelesTrak, "NORAD Two-Line Element Set Format".
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .errors import InvalidInputError, PropagatorError
from .julian import JulianDate, TimeStandard
from .utils import MU_EARTH

TLE_LINE_LENGTH = 69


# ════════════════════════════════════════════════════════════════════════════
#  Catalogue Text
# ════════════════════════════════════════════════════════════════════════════

def read_tle_lines(text: str, lines_per_satellite: int,
                   callback: Callable[[str, Optional[str], Optional[str]], None]) -> int:
    """Split TLE text into records and hand each to ``callback``.

    Parameters
    ----------
    text : str — catalogue text; lines split on LF, a trailing CR is dropped
    lines_per_satellite : int — 2 (element lines only) or 3 (name first)
    callback : callable — ``callback(identifier, line1, line2)``

    In 2-line mode the identifier is characters [2:8] of line 1 (catalogue
    number plus classification); in 3-line mode it is the stripped name.
    A short final record passes ``None`` for the lines that are missing.
    The last physical line only starts a record when the text ends with a
    newline.

    Returns
    -------
    count : int — number of callbacks made
    """
    if lines_per_satellite not in (2, 3):
        raise InvalidInputError(
            f"lines_per_satellite must be 2 or 3, got {lines_per_satellite!r}")

    lines = [line.rstrip("\r") for line in text.split("\n")]
    count = len(lines) - 1

    def at(k):
        return lines[k] if k < len(lines) else None

    calls = 0
    for i in range(0, count, lines_per_satellite):
        if lines_per_satellite == 2:
            callback(lines[i][2:8], at(i), at(i + 1))
        else:
            callback(lines[i].strip(), at(i + 1), at(i + 2))
        calls += 1
    return calls


# ════════════════════════════════════════════════════════════════════════════
#  TLE Checksum
# ════════════════════════════════════════════════════════════════════════════

def tle_checksum(line: str) -> int:
    """Compute the modulo-10 checksum for a TLE line.

    Each digit contributes its face value, '-' counts as 1,
    all other characters count as 0.  The result is sum mod 10.

    Parameters
    ----------
    line : str — a TLE line (characters 0..67; column 69 is the checksum)

    Returns
    -------
    checksum : int — single digit 0-9
    """
    s = 0
    for ch in line[:68]:
        if ch.isdigit():
            s += int(ch)
        elif ch == '-':
            s += 1
    return s % 10


def verify_checksum(line: str) -> bool:
    """True if column 69 of ``line`` holds the correct checksum digit."""
    if len(line) < TLE_LINE_LENGTH or not line[68].isdigit():
        return False
    return tle_checksum(line) == int(line[68])


def verify_tle(line1: str, line2: str) -> dict:
    """Verify checksums and basic structural validity of a TLE pair.

    Parameters
    ----------
    line1, line2 : str — TLE lines 1 and 2

    Returns
    -------
    dict with:
        'valid' : bool — both lines pass all checks
        'line1_checksum' : bool — line 1 checksum valid
        'line2_checksum' : bool — line 2 checksum valid
        'line1_prefix' : bool — line 1 starts with '1 '
        'line2_prefix' : bool — line 2 starts with '2 '
        'length' : bool — both lines are 69 characters
        'norad_match' : bool — catalogue numbers match between lines
        'errors' : list[str]
    """
    errors = []

    l1_pfx = line1.startswith("1 ")
    l2_pfx = line2.startswith("2 ")
    if not l1_pfx:
        errors.append("line1 does not start with '1 '")
    if not l2_pfx:
        errors.append("line2 does not start with '2 '")

    length_ok = len(line1) == TLE_LINE_LENGTH and len(line2) == TLE_LINE_LENGTH
    if not length_ok:
        errors.append(f"lines must be {TLE_LINE_LENGTH} characters, "
                      f"got {len(line1)} and {len(line2)}")

    l1_ck = verify_checksum(line1)
    l2_ck = verify_checksum(line2)
    if not l1_ck:
        errors.append(f"line1 checksum: expected {tle_checksum(line1)}, "
                      f"got {line1[68] if len(line1) >= 69 else '?'}")
    if not l2_ck:
        errors.append(f"line2 checksum: expected {tle_checksum(line2)}, "
                      f"got {line2[68] if len(line2) >= 69 else '?'}")

    try:
        id1 = int(line1[2:7].strip())
        id2 = int(line2[2:7].strip())
        norad_ok = id1 == id2
        if not norad_ok:
            errors.append(f"NORAD ID mismatch: line1={id1}, line2={id2}")
    except (ValueError, IndexError):
        norad_ok = False
        errors.append("could not parse NORAD IDs")

    return {
        "valid": l1_pfx and l2_pfx and length_ok and l1_ck and l2_ck and norad_ok,
        "line1_checksum": l1_ck,
        "line2_checksum": l2_ck,
        "line1_prefix": l1_pfx,
        "line2_prefix": l2_pfx,
        "length": length_ok,
        "norad_match": norad_ok,
        "errors": errors,
    }


# ════════════════════════════════════════════════════════════════════════════
#  Field Parse
# ════════════════════════════════════════════════════════════════════════════

@dataclass
class TLE:
    """Fields of a Two-Line Element set."""
    name: str = ""
    norad_id: int = 0
    classification: str = "U"
    intl_designator: str = ""
    epoch_year: int = 2000
    epoch_day: float = 1.0
    ndot: float = 0.0           # 1st derivative of mean motion [rev/day²]
    bstar: float = 0.0          # B* drag term [1/R_earth]
    inclination: float = 0.0    # [rad]
    raan: float = 0.0           # [rad]
    eccentricity: float = 0.0
    argp: float = 0.0           # [rad]
    mean_anomaly: float = 0.0   # [rad]
    mean_motion: float = 0.0    # [rad/s]
    rev_number: int = 0
    epoch_jd: float = 0.0       # Julian Date of TLE epoch (UTC)

    @property
    def period(self) -> float:
        """Period from the mean motion [s]."""
        return 2.0 * np.pi / self.mean_motion

    @property
    def semi_major_axis(self) -> float:
        """Two-body semi-major axis from the mean motion [m]."""
        return (MU_EARTH / self.mean_motion**2) ** (1.0 / 3.0)

    @property
    def epoch(self) -> JulianDate:
        return JulianDate.from_jd(self.epoch_jd, TimeStandard.UTC)


def _epoch_to_jd(year: int, day_of_year: float) -> float:
    """Convert TLE epoch (year, fractional day) to Julian Date."""
    # Jan 1 of the epoch year
    a = (14 - 1) // 12
    y = year + 4800 - a
    m = 1 + 12 * a - 3
    jd_jan1 = 1 + ((153 * m + 2) // 5) + 365 * y + (y // 4) - (y // 100) + (y // 400) - 32045
    jd_jan1 -= 0.5  # Julian Date convention (noon)
    return jd_jan1 + day_of_year - 1.0


def _exp_field(field: str) -> float:
    """Decode TLE's assumed-decimal exponent notation, e.g. ``-11606-4``."""
    field = field.strip()
    if not field:
        return 0.0
    sign = -1.0 if field[0] == '-' else 1.0
    body = field.lstrip('+-')
    mantissa, exponent = body[:-2], body[-2:]
    return sign * float("0." + mantissa.replace(' ', '0')) * 10.0 ** int(exponent)


def parse_tle(line1: str, line2: str, name: str = "",
              verify_checksums: bool = False) -> TLE:
    """Parse the element lines of a TLE.

    Raises ``PropagatorError`` when the lines are structurally invalid
    (wrong prefix or length, unparseable numbers, or with
    ``verify_checksums`` a bad checksum).
    """
    report = verify_tle(line1, line2)
    structural = report["line1_prefix"] and report["line2_prefix"] and report["length"]
    if not structural or (verify_checksums and not report["valid"]):
        raise PropagatorError("invalid TLE: " + "; ".join(report["errors"]))

    t = TLE(name=name.strip())
    try:
        t.norad_id = int(line1[2:7].strip())
        t.classification = line1[7]
        t.intl_designator = line1[9:17].strip()

        yr = int(line1[18:20].strip())
        t.epoch_year = yr + (1900 if yr >= 57 else 2000)
        t.epoch_day = float(line1[20:32].strip())
        t.ndot = float(line1[33:43].strip())
        t.bstar = _exp_field(line1[53:61])

        t.inclination = np.deg2rad(float(line2[8:16].strip()))
        t.raan = np.deg2rad(float(line2[17:25].strip()))
        t.eccentricity = float("0." + line2[26:33].strip())
        t.argp = np.deg2rad(float(line2[34:42].strip()))
        t.mean_anomaly = np.deg2rad(float(line2[43:51].strip()))
        # Mean motion [rev/day] → [rad/s]
        t.mean_motion = float(line2[52:63].strip()) * 2.0 * np.pi / 86400.0
        t.rev_number = int(line2[63:68].strip()) if line2[63:68].strip() else 0
    except ValueError as exc:
        raise PropagatorError(f"invalid TLE field: {exc}") from exc

    t.epoch_jd = _epoch_to_jd(t.epoch_year, t.epoch_day)
    return t

