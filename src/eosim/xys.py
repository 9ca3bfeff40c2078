"""
eosim.xys — IAU 2006 XYS Celestial-Pole Interpolator
=====================================================

Supplies the celestial-pole coordinates ``(X, Y)`` and the CIO locator
``s`` (all radians) needed to build the ICRF → ITRF rotation.  The values
are tabulated on a uniform TT grid and shipped as JSON chunk files::

    IAU2006_XYS_{i}.json   →   {"samples": [x0, y0, s0, x1, y1, s1, ...]}

Each chunk holds ``samples_per_file`` triples.  Chunks are loaded lazily on
a small thread pool; ``compute_xys_radians`` never blocks: when a required
chunk is absent it schedules the load and returns ``None``.

Chunk life cycle::

    ABSENT ──request──▶ REQUESTED ──ok──▶ LOADED
       ▲                    │
       └──────failed────────┘

Interpolation
-------------
Lagrange polynomial of degree ``interpolation_order`` through the samples
``first … first + order`` around the requested instant::

    c_i = ∏_{j≠i} (x − x_j) / D_i,     D_i = Δ^order · ∏_{j≠i} (i − j)
    XYS = Σ c_i · XYS_i

with ``x_i = i·Δ`` and ``x = d − first·Δ``.  Denominators are precomputed
and the scratch arrays are reused, so an evaluation allocates nothing when
``out`` is supplied.
"""

import json
import logging
import math
import threading
import urllib.request
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError, XysLoadError
from .julian import JulianDate, TimeStandard

logger = logging.getLogger(__name__)


@dataclass
class XysConfig:
    """Layout of the XYS table and where to read its chunks from."""
    sample_zero_jed: float = 2442396.5     # TT Julian date of sample 0
    step_size_days: float = 1.0
    samples_per_file: int = 1000
    total_samples: int = 27426
    interpolation_order: int = 9
    file_template: str = "IAU2006_XYS_{0}.json"
    base_dir: Optional[str] = None          # directory or http(s) URL prefix
    max_workers: int = 2
    timeout: float = 30.0                   # seconds, per HTTP request

    @property
    def chunk_count(self) -> int:
        return math.ceil(self.total_samples / self.samples_per_file)


class ChunkState(str, Enum):
    ABSENT = "absent"
    REQUESTED = "requested"
    LOADED = "loaded"


def file_chunk_loader(config: XysConfig) -> Callable[[int], dict]:
    """Build a loader reading ``config.file_template`` under ``config.base_dir``.

    ``base_dir`` may be a local directory or an ``http://`` / ``https://``
    prefix.
    """
    base = config.base_dir
    if base is None:
        raise InvalidInputError("XysConfig.base_dir is required for file loading")

    def load(index: int) -> dict:
        name = config.file_template.format(index)
        if base.startswith(("http://", "https://")):
            url = base.rstrip("/") + "/" + name
            with urllib.request.urlopen(url, timeout=config.timeout) as response:
                return json.loads(response.read().decode("utf-8"))
        with open(Path(base) / name, encoding="utf-8") as fh:
            return json.load(fh)

    return load


class Iau2006XysData:
    """Chunked IAU 2006 XYS table with Lagrange interpolation.

    Parameters
    ----------
    config : XysConfig — table layout and file location
    loader : callable, optional — ``loader(chunk_index) -> {"samples": [...]}``;
             defaults to :func:`file_chunk_loader` on ``config``
    """

    def __init__(self, config: XysConfig = None,
                 loader: Callable[[int], dict] = None):
        self.config = config = config if config is not None else XysConfig()
        self._loader = loader if loader is not None else file_chunk_loader(config)

        order = config.interpolation_order
        step = config.step_size_days
        self._epoch = JulianDate.from_jd(config.sample_zero_jed, TimeStandard.TT)

        self._samples = np.full((config.total_samples, 3), np.nan)
        self._states = [ChunkState.ABSENT] * config.chunk_count
        self._pending = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=config.max_workers,
                                            thread_name_prefix="xys")
        self.on_load_error = []

        # Denominators and abscissae of the Lagrange basis
        step_n = step ** order
        self._denominators = np.empty(order + 1)
        self._x_table = np.empty(order + 1)
        for i in range(order + 1):
            d = step_n
            for j in range(order + 1):
                if j != i:
                    d *= i - j
            self._denominators[i] = 1.0 / d
            self._x_table[i] = i * step

        # Scratch
        self._work = np.empty(order + 1)
        self._coef = np.empty(order + 1)

    # ── Chunk Management ─────────────────────────────────────────────────

    def chunk_state(self, index: int) -> ChunkState:
        with self._lock:
            return self._states[index]

    def _days_since_epoch(self, day_tt: int, second_tt: float) -> float:
        return JulianDate(day_tt, second_tt, TimeStandard.TT).days_difference(self._epoch)

    def _request_chunk(self, index: int):
        """Return the future of chunk ``index``, submitting it if needed.

        Loaded chunks return ``None``.
        """
        with self._lock:
            state = self._states[index]
            if state is ChunkState.LOADED:
                return None
            if state is ChunkState.REQUESTED:
                return self._pending[index]
            self._states[index] = ChunkState.REQUESTED
            logger.debug("Requesting XYS chunk %d", index)
            future = self._executor.submit(self._run_load, index)
            self._pending[index] = future
            return future

    def _run_load(self, index: int):
        try:
            self._load_chunk(index)
        except XysLoadError as exc:
            with self._lock:
                self._states[index] = ChunkState.ABSENT
                self._pending.pop(index, None)
            logger.error("Failed to load XYS chunk %d: %s", index, exc)
            for callback in list(self.on_load_error):
                callback(exc)
            raise

    def _load_chunk(self, index: int):
        cfg = self.config
        try:
            payload = self._loader(index)
            samples = np.asarray(payload["samples"], dtype=np.float64)
        except XysLoadError:
            raise
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise XysLoadError(index, str(exc)) from exc

        if samples.ndim != 1 or samples.size % 3 != 0:
            raise XysLoadError(index, "samples must be a flat list of (x, y, s) triples")
        if samples.size > 3 * cfg.samples_per_file:
            raise XysLoadError(index, f"expected at most {3 * cfg.samples_per_file} "
                                      f"values, got {samples.size}")

        start = index * cfg.samples_per_file
        stop = min(start + samples.size // 3, cfg.total_samples)
        with self._lock:
            self._samples[start:stop] = samples[:3 * (stop - start)].reshape(-1, 3)
            self._states[index] = ChunkState.LOADED
            self._pending.pop(index, None)
        logger.debug("Loaded XYS chunk %d (%d samples)", index, stop - start)

    def preload(self, start_day_tt: int, start_second_tt: float,
                stop_day_tt: int, stop_second_tt: float) -> None:
        """Block until every chunk covering the TT interval is loaded.

        Raises ``XysLoadError`` if any chunk fails; that chunk returns to
        ABSENT so a later call can retry it.
        """
        cfg = self.config
        order = cfg.interpolation_order
        start_days = self._days_since_epoch(start_day_tt, start_second_tt)
        stop_days = self._days_since_epoch(stop_day_tt, stop_second_tt)

        start_index = max(0, math.floor(start_days / cfg.step_size_days - order / 2))
        stop_index = math.floor(stop_days / cfg.step_size_days - order / 2) + order
        stop_index = min(stop_index, cfg.total_samples - 1)
        if stop_index < start_index:
            return

        futures = []
        for chunk in range(start_index // cfg.samples_per_file,
                           stop_index // cfg.samples_per_file + 1):
            future = self._request_chunk(chunk)
            if future is not None:
                futures.append(future)
        for future in futures:
            future.result()

    def preload_dates(self, start: JulianDate, stop: JulianDate) -> None:
        """``preload`` for a pair of JulianDates of any time standard."""
        a = start.to_standard(TimeStandard.TT)
        b = stop.to_standard(TimeStandard.TT)
        self.preload(a.day_number, a.seconds_of_day, b.day_number, b.seconds_of_day)

    def wait_for_pending(self, timeout: float = None) -> None:
        """Wait for every outstanding chunk load to finish (either way)."""
        with self._lock:
            futures = list(self._pending.values())
        if futures:
            wait(futures, timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ── Interpolation ────────────────────────────────────────────────────

    def compute_xys_radians(self, day_tt: int, second_tt: float,
                            out: NDArray = None) -> Optional[NDArray]:
        """Interpolated ``[x, y, s]`` [rad] at a TT instant.

        Returns ``None`` when the instant is outside the table (nothing is
        scheduled) or when a required chunk is not loaded yet (its load is
        scheduled).
        """
        cfg = self.config
        days = self._days_since_epoch(day_tt, second_tt)
        if days < 0.0:
            return None
        center = int(days / cfg.step_size_days)
        if center >= cfg.total_samples:
            return None

        degree = cfg.interpolation_order
        first = max(0, center - degree // 2)
        last = first + degree
        if last >= cfg.total_samples:
            last = cfg.total_samples - 1
            first = max(0, last - degree)

        # The whole window is present if both ends are
        samples = self._samples
        missing = False
        if math.isnan(samples[first, 0]):
            self._request_chunk(first // cfg.samples_per_file)
            missing = True
        if math.isnan(samples[last, 0]):
            self._request_chunk(last // cfg.samples_per_file)
            missing = True
        if missing:
            return None

        x = days - first * cfg.step_size_days
        work = self._work
        coef = self._coef
        n = last - first + 1
        np.subtract(x, self._x_table, out=work)
        for i in range(n):
            c = 1.0
            for j in range(n):
                if j != i:
                    c *= work[j]
            coef[i] = c * self._denominators[i]

        if out is None:
            out = np.empty(3)
        np.dot(coef[:n], samples[first:last + 1], out=out)
        return out

    def compute_xys_at(self, date: JulianDate, out: NDArray = None) -> Optional[NDArray]:
        """``compute_xys_radians`` for a JulianDate of any time standard."""
        tt = date.to_standard(TimeStandard.TT)
        return self.compute_xys_radians(tt.day_number, tt.seconds_of_day, out)
