"""
New-release policy.

An album is a new release when its release date is no older than the
configured window, measured back from the sync time. The lower bound is
inclusive. Dates after the sync time (pre-releases) count as new, and an
unknown release date never does.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable

from playlist_sync.core.config import DEFAULT_RELEASE_WINDOW_DAYS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_new_release(release_date: date | None, now: datetime | date, window: timedelta) -> bool:
    """
    Decide whether release_date falls within window of now.

    Example:
        >>> is_new_release(date(2024, 5, 20), date(2024, 6, 1), timedelta(days=30))
        True
        >>> is_new_release(date(2023, 1, 1), date(2024, 6, 1), timedelta(days=30))
        False
    """
    if release_date is None:
        return False

    today = now.date() if isinstance(now, datetime) else now
    return release_date >= today - window


class ReleaseClassifier:
    """
    is_new_release() bound to a window and a clock.

    Args:
        window_days: Size of the recency window, in days (releases.window_days).
        clock: Returns the current time. Injected so runs are reproducible.
    """

    def __init__(
        self,
        window_days: int = DEFAULT_RELEASE_WINDOW_DAYS,
        clock: Callable[[], datetime] = utc_now
    ) -> None:
        if window_days < 1:
            raise ValueError(f"window_days must be positive, got {window_days}")
        self.window = timedelta(days=window_days)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def is_new_release(self, release_date: date | None, now: datetime | None = None) -> bool:
        return is_new_release(release_date, now or self._clock(), self.window)
