"""Advisory bookkeeping of YouTube Data API quota units.

The counter resets on the first access of a new day. It never gates a call:
the real ceiling is enforced by YouTube, this only shows the user roughly
how much of the daily budget their actions have consumed.
"""

import logging
import threading
from collections.abc import Callable
from datetime import date

import config
from settings_store import QUOTA_LAST_RESET, QUOTA_USED, SettingsStore

logger = logging.getLogger(__name__)

# Data API v3 prices: list calls cost 1 unit, search.list costs 100.
VIDEO_LOOKUP_COST = 1
SEARCH_COST = 100
KEYWORD_BENCHMARK_COST = SEARCH_COST + VIDEO_LOOKUP_COST
# channel search + channels.list + recent-videos search
CHANNEL_ANALYSIS_COST = SEARCH_COST + VIDEO_LOOKUP_COST + SEARCH_COST


class QuotaTracker:
    def __init__(
        self,
        store: SettingsStore,
        daily_limit: int = config.DAILY_QUOTA_LIMIT,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.daily_limit = daily_limit
        self._today = today
        self._lock = threading.RLock()
        self._roll_over()

    def _roll_over(self):
        day_key = self._today().isoformat()
        with self._lock:
            if self.store.get(QUOTA_LAST_RESET) != day_key:
                logger.info("New quota day %s, resetting usage counter", day_key)
                self.store.update({QUOTA_USED: 0, QUOTA_LAST_RESET: day_key})

    @property
    def units_used(self) -> int:
        with self._lock:
            self._roll_over()
            return int(self.store.get(QUOTA_USED, 0))

    @property
    def remaining(self) -> int:
        return max(self.daily_limit - self.units_used, 0)

    def increment_by(self, cost: int) -> int:
        if cost <= 0:
            raise ValueError(f"Quota cost must be positive, got {cost}")
        with self._lock:
            used = self.units_used + cost
            self.store.set(QUOTA_USED, used)
        logger.debug("Charged %d quota units (%d/%d)", cost, used, self.daily_limit)
        return used

    def snapshot(self) -> dict:
        with self._lock:
            used = self.units_used
            day = self.store.get(QUOTA_LAST_RESET)
        return {
            "used": used,
            "limit": self.daily_limit,
            "remaining": max(self.daily_limit - used, 0),
            "day": day,
        }
