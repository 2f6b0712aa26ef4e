"""Run-scoped deadline shared by every network call of one watch run."""

from __future__ import annotations

import time
from collections.abc import Callable


class Deadline:
    """A fixed point in (monotonic) time after which a run stops doing network work.

    Pagination checks :attr:`expired` before each page and stops quietly; the
    notifier refuses to send once it is expired. Outbound HTTP calls use
    :meth:`timeout` so no single request can outlive the run.
    """

    def __init__(self, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if seconds <= 0:
            raise ValueError("deadline seconds must be positive")
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def timeout(self, cap: float | None = None) -> float:
        """Timeout for the next outbound request.

        Never returns zero: requests treats ``0`` as "no timeout" in some adapters,
        so an expired deadline yields a tiny positive value and the call fails fast.
        """

        remaining = self.remaining()
        if cap is not None:
            remaining = min(remaining, cap)
        return max(remaining, 0.001)
