"""
Periodic catalog refresh.

Runs the library scan, swaps the result into the schedule engine and lets
the duration cache forget files that disappeared.
"""

import inspect
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Set

from reruntv.media.models import Show, catalog_paths, playable_shows
from reruntv.playout.engine import ScheduleEngine

logger = logging.getLogger(__name__)

CatalogRefresher = Callable[[], Awaitable[List[Show]]]
CacheCleanup = Callable[[Set[str]], Any]


class RescanMonitor:
    """
    Applies fresh catalogs to the engine.

    A failed scan leaves the previous catalog in effect. An empty result is
    a valid catalog and is applied.
    """

    def __init__(
        self,
        engine: ScheduleEngine,
        refresh: CatalogRefresher,
        cleanup: Optional[CacheCleanup] = None,
    ):
        self.engine = engine
        self.refresh = refresh
        self.cleanup = cleanup
        self.last_rescan: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.rescan_count = 0

    async def rescan(self) -> bool:
        """
        Run one refresh.

        Returns:
            True if a new catalog was applied.
        """
        try:
            shows = await self.refresh()
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Catalog rescan failed, keeping previous catalog: {e}")
            return False

        shows = playable_shows(shows)
        self.engine.reload_catalog(shows)
        self.rescan_count += 1
        self.last_rescan = datetime.now()
        self.last_error = None
        logger.info(f"Catalog rescan applied: {len(shows)} shows")

        if self.cleanup is not None:
            try:
                result = self.cleanup(catalog_paths(shows))
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Metadata cache cleanup failed: {e}")

        return True
