"""
Shared quota and rate-limit gate.

Every request issued by the API client passes through a single QuotaGate,
whatever the number of workers. The gate serializes the request rate seen by
the API, keeps the quota usage tally, and is where cancellation takes effect.
"""

import logging
import threading
import time
from collections import Counter

from .config import CONFIG, QUOTA_COSTS
from .errors import RunCancelled

logger = logging.getLogger(__name__)


class QuotaGate:
    """
    Lock-protected gate shared by all workers of a run.

    The gate does not refuse requests based on its own tally; the daily
    limit is only used for reporting. The provider's quotaExceeded answer is
    what ends a run.
    """

    def __init__(self, daily_limit=None, min_interval=None, clock=time.monotonic, sleep=time.sleep):
        self._daily_limit = CONFIG['daily_quota_limit'] if daily_limit is None else daily_limit
        self._min_interval = CONFIG['min_request_interval'] if min_interval is None else min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._next_slot = 0.0
        self._used = 0
        self._calls = Counter()

    def acquire(self, operation):
        """
        Wait for the next request slot and record its quota cost.

        Parameters:
            operation (str): The API operation about to be issued (e.g., 'commentThreads.list')

        Raises:
            RunCancelled: If the run has been cancelled
        """
        with self._lock:
            if self._cancelled.is_set():
                raise RunCancelled(f"Run cancelled before {operation}")

            wait_time = self._next_slot - self._clock()
            if wait_time > 0:
                self._sleep(wait_time)
            self._next_slot = self._clock() + self._min_interval

            self._used += QUOTA_COSTS.get(operation, 0)
            self._calls[operation] += 1

    def cancel(self):
        """Stop handing out request slots. Requests already in flight are unaffected."""
        if not self._cancelled.is_set():
            logger.info("Cancelling run: no new API requests will be issued")
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    @property
    def used(self):
        with self._lock:
            return self._used

    @property
    def daily_limit(self):
        return self._daily_limit

    @property
    def remaining(self):
        return self._daily_limit - self.used

    def calls_by_operation(self):
        with self._lock:
            return dict(self._calls)
