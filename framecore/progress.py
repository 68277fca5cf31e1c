# framecore/progress.py
"""Progress notification and cooperative cancellation."""

import logging
import threading
from typing import Callable, Optional

from .errors import FrameCoreError

logger = logging.getLogger(__name__)

# progress(percent 0..100, message)
ProgressCallback = Callable[[float, str], None]


class AnalysisCancelled(FrameCoreError):
    """Internal signal used to unwind a cancelled run; perform_analysis turns it into a result."""
    pass


class CancellationToken:
    """
    Cooperative cancellation flag.

    The caller keeps a reference and calls cancel() from any thread; the
    engine polls `cancelled` between phases, per element during assembly
    and per CG iteration.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = "") -> None:
        if self._event.is_set():
            raise AnalysisCancelled(f"Analysis cancelled{' during ' + where if where else ''}")


class ProgressReporter:
    """Wraps an optional callback and an optional token so engine code can call both unconditionally."""

    def __init__(
        self,
        callback: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None,
    ):
        self.callback = callback
        self.token = token

    def report(self, percent: float, message: str) -> None:
        logger.debug("%5.1f%% %s", percent, message)
        if self.callback is None:
            return
        try:
            self.callback(float(min(max(percent, 0.0), 100.0)), message)
        except Exception:
            # notification only; cancellation goes through the token
            logger.warning("Progress callback failed at %.1f%% (%s)", percent, message, exc_info=True)

    @property
    def cancelled(self) -> bool:
        return self.token is not None and self.token.cancelled

    def check(self, where: str = "") -> None:
        if self.token is not None:
            self.token.raise_if_cancelled(where)


NULL_REPORTER = ProgressReporter()
