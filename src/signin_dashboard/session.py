from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional

from .config import LogVariant, load_settings
from .date_range import DateRange, coerce_timezone
from .models import EventRecord
from .repository import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


class DashboardSession:
    """
    Range selection and committed snapshot for one sign-in log.

    Each ``load`` takes a fresh request token. When the query resolves, its
    result is committed only if no newer ``load`` (or ``close``) happened in
    the meantime, so a slow response for an old range can never replace the
    data of the current one. The underlying query itself is not cancelled.
    """

    def __init__(
        self,
        store: RecordStore,
        variant: LogVariant,
        date_range: Optional[DateRange] = None,
        tz_name: Optional[str] = None,
    ):
        self.store = store
        self.variant = variant
        if date_range is None:
            settings = load_settings()
            tz = coerce_timezone(tz_name or settings.timezone)
            date_range = DateRange.default(days=settings.default_window_days, tz=tz)
        self.date_range = date_range
        self.records: List[EventRecord] = []
        self.loading = False
        self.error: Optional[str] = None
        self._latest_token = 0

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def _issue_token(self) -> int:
        self._latest_token += 1
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    async def load(self, date_range: Optional[DateRange] = None) -> bool:
        """
        Fetch records for ``date_range`` (or the current range).

        Returns ``True`` when the result was committed and ``False`` when it
        was superseded before it resolved.
        """
        if date_range is not None:
            self.date_range = date_range
        requested = self.date_range
        token = self._issue_token()
        self.loading = True

        error: Optional[str] = None
        try:
            records = await asyncio.to_thread(self.store.query, self.variant, requested)
        except RecordStoreError as exc:
            error = str(exc)
            records = []

        if not self.is_current(token):
            logger.debug(
                "Dropping stale %s result for %s..%s (token %d, latest %d)",
                self.variant.key,
                requested.start_key(),
                requested.end_key(),
                token,
                self._latest_token,
            )
            return False

        if error is not None:
            logger.warning("Failed to load %s records: %s", self.variant.key, error)
        self.records = list(records)
        self.error = error
        self.loading = False
        return True

    async def set_range(self, start: Optional[date] = None, end: Optional[date] = None) -> bool:
        current = self.date_range
        return await self.load(DateRange(start=start or current.start, end=end or current.end))

    def close(self) -> None:
        """Invalidate any in-flight request."""
        self._issue_token()
