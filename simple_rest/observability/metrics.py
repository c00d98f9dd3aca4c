from __future__ import annotations

import random
import re
import time
from collections.abc import Callable

from simple_rest.observability.rwlock import ReadWriteLock


DURATION_BUCKETS: tuple[float, ...] = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10)

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9/]")


def normalize_path(raw_path: str) -> str:
    """Turn a request path into a metrics label key.

    Anything outside ASCII letters, digits and ``/`` becomes ``_``. Keys that
    end up empty or starting with ``_`` get a ``root`` prefix.
    """

    key = _UNSAFE_PATH_CHARS.sub("_", raw_path)
    if not key or key.startswith("_"):
        key = "root" + key
    return key


def _format_value(value: float) -> str:
    # Shortest round-trip form; whole numbers without a trailing ".0".
    if float(value).is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class MetricsAggregator:
    """Process-local request counters and latency histograms keyed by path.

    ``record`` holds the exclusive side of one read/write lock and ``render``
    the shared side, so a scrape never sees a request counted without its
    status code and duration.

    By default every duration is kept for the lifetime of the process. Pass
    ``max_samples`` to bound memory per path with reservoir sampling instead;
    ``_sum`` and ``_count`` stay exact and buckets are estimated from the
    sample.
    """

    def __init__(
        self,
        version: str,
        *,
        max_samples: int | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        if max_samples is not None and max_samples <= 0:
            raise ValueError("max_samples must be positive")

        self.version = version
        self.max_samples = max_samples
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = ReadWriteLock()

        self.start_timestamp = int(clock())
        self.total_requests: dict[str, int] = {}
        self.status_codes: dict[str, dict[int, int]] = {}
        self.request_durations: dict[str, list[float]] = {}
        self._duration_sums: dict[str, float] = {}

    def record(self, raw_path: str, status_code: int, duration: float) -> None:
        key = normalize_path(raw_path)
        seconds = float(duration)

        with self._lock.write():
            seen = self.total_requests.get(key, 0) + 1
            self.total_requests[key] = seen

            codes = self.status_codes.setdefault(key, {})
            codes[status_code] = codes.get(status_code, 0) + 1

            self._duration_sums[key] = self._duration_sums.get(key, 0.0) + seconds
            samples = self.request_durations.setdefault(key, [])
            if self.max_samples is None or len(samples) < self.max_samples:
                samples.append(seconds)
            else:
                slot = self._rng.randrange(seen)
                if slot < self.max_samples:
                    samples[slot] = seconds

    def render(self) -> str:
        with self._lock.read():
            lines: list[str] = [
                "# HELP app_info Information about the application",
                "# TYPE app_info gauge",
                f'app_info{{version="{_escape_label(self.version)}"}} 1',
                "",
                "# HELP app_uptime_seconds How long the application has been running",
                "# TYPE app_uptime_seconds counter",
                f"app_uptime_seconds {int(self._clock()) - self.start_timestamp}",
                "",
                "# HELP http_requests_total Total number of HTTP requests",
                "# TYPE http_requests_total counter",
            ]
            for path in sorted(self.total_requests):
                lines.append(f'http_requests_total{{path="{path}"}} {self.total_requests[path]}')
            lines.append("")

            lines.append("# HELP http_response_status_total HTTP response status codes")
            lines.append("# TYPE http_response_status_total counter")
            for path in sorted(self.status_codes):
                codes = self.status_codes[path]
                for code in sorted(codes):
                    lines.append(f'http_response_status_total{{path="{path}",code="{code}"}} {codes[code]}')
            lines.append("")

            lines.append("# HELP http_request_duration_seconds HTTP request duration in seconds")
            lines.append("# TYPE http_request_duration_seconds histogram")
            for path in sorted(self.request_durations):
                lines.extend(self._render_histogram(path))

        return "\n".join(lines) + "\n"

    def _render_histogram(self, path: str) -> list[str]:
        samples = self.request_durations[path]
        total = self.total_requests[path]

        counts = [0] * len(DURATION_BUCKETS)
        for seconds in samples:
            # Cumulative: an observation lands in every bucket at or above it.
            for i, bound in enumerate(DURATION_BUCKETS):
                if seconds <= bound:
                    counts[i] += 1

        if samples and len(samples) < total:
            scale = total / len(samples)
            counts = [round(c * scale) for c in counts]

        out = [
            f'http_request_duration_seconds_bucket{{path="{path}",le="{_format_value(bound)}"}} {count}'
            for bound, count in zip(DURATION_BUCKETS, counts)
        ]
        out.append(f'http_request_duration_seconds_bucket{{path="{path}",le="+Inf"}} {total}')
        out.append(f'http_request_duration_seconds_sum{{path="{path}"}} {_format_value(self._duration_sums[path])}')
        out.append(f'http_request_duration_seconds_count{{path="{path}"}} {total}')
        return out

    def reset(self) -> None:
        """Drop every recorded observation (used by tests)."""

        with self._lock.write():
            self.total_requests = {}
            self.status_codes = {}
            self.request_durations = {}
            self._duration_sums = {}
