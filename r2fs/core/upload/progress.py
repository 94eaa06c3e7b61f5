"""Progress delivery for upload sessions."""
from typing import Optional

from ..logging import get_logger
from .protocols import ProgressCallback

logger = get_logger('r2fs.upload.progress')


class ProgressReporter:
    """
    Delivers percentages to a user callback.

    Values are clamped to [0, 100] and never decrease. Nothing is
    delivered once the reporter is closed. Callback errors are logged.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._last: Optional[float] = None
        self._closed = False

    @property
    def last(self) -> Optional[float]:
        """Last delivered percentage."""
        return self._last

    @property
    def closed(self) -> bool:
        return self._closed

    def report(self, percentage: float) -> None:
        if self._closed:
            return
        value = min(max(float(percentage), 0.0), 100.0)
        if self._last is not None and value <= self._last:
            return
        self._last = value
        if self._callback is None:
            return
        try:
            self._callback(value)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def complete(self) -> None:
        """Deliver 100 (if not already delivered) and close."""
        self.report(100.0)
        self.close()

    def close(self) -> None:
        self._closed = True
