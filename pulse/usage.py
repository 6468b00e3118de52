import logging
from datetime import date, datetime

from pulse.config import MAX_CALLS_PER_DAY

logger = logging.getLogger(__name__)

LAST_CALL_DATE_KEY = "last_call_date"
CALL_COUNT_KEY = "call_count"


def _day(today=None) -> str:
    if today is None:
        return date.today().isoformat()
    if isinstance(today, datetime):
        return today.date().isoformat()
    if isinstance(today, date):
        return today.isoformat()
    return str(today)


class QuotaTracker:
    """
    Day-scoped counter of remote news calls, persisted in a key/value store.

    The count belongs to the date stored next to it; whenever that date is not
    today the count is treated as 0.
    """

    def __init__(self, store, limit: int = MAX_CALLS_PER_DAY):
        self.store = store
        self.limit = limit

    def _count(self) -> int:
        try:
            return int(self.store.get(CALL_COUNT_KEY) or 0)
        except ValueError:
            return 0

    def can_make_call(self, today=None) -> bool:
        day = _day(today)
        if self.store.get(LAST_CALL_DATE_KEY) != day:
            self.store.set(LAST_CALL_DATE_KEY, day)
            self.store.set(CALL_COUNT_KEY, 0)
            logger.info("quota reset for %s", day)
            return True
        return self._count() < self.limit

    def record_call(self, today=None) -> int:
        day = _day(today)
        if self.store.get(LAST_CALL_DATE_KEY) != day:
            self.store.set(LAST_CALL_DATE_KEY, day)
            count = 1
        else:
            count = self._count() + 1
        self.store.set(CALL_COUNT_KEY, count)
        logger.debug("recorded call %d/%d for %s", count, self.limit, day)
        return count

    def used_today(self, today=None) -> int:
        if self.store.get(LAST_CALL_DATE_KEY) != _day(today):
            return 0
        return self._count()

    def left_today(self, today=None) -> int:
        return max(0, self.limit - self.used_today(today))
