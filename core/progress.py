# core/progress.py
import threading
from util.constants import MAX_PRE_MUX_PERCENT
from util.types import ProgressSink


class ProgressTracker:
    """
    Byte counter shared by the video and audio sub-fetches of one job.
    Publishes min(99.9, 100 * bytes / expected_total) on every add; stays
    silent while the expected total is unknown (<= 0).
    """

    def __init__(self, expected_total: int, publish: ProgressSink) -> None:
        self._expected = max(0, int(expected_total or 0))
        self._publish = publish
        self._bytes = 0
        self._lock = threading.Lock()

    @property
    def bytes_read(self) -> int:
        with self._lock:
            return self._bytes

    def add(self, n: int) -> None:
        if n <= 0:
            return
        with self._lock:
            self._bytes += n
            if self._expected <= 0:
                return
            pct = min(MAX_PRE_MUX_PERCENT, self._bytes * 100.0 / self._expected)
            # publish under the lock so the two writers cannot reorder updates
            self._publish(pct)
