"""Generic page-walking over the API's page/pages pagination scheme."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator

from helpscout_exporter.core.models import Page

logger = logging.getLogger(__name__)


class PageWalk:
    """Iterate pages 1, 2, ... of a listing until the API reports the last one.

    The walk ends early, keeping every page already yielded, when
    ``fetch_page`` returns None (``failed`` is set) or when ``should_stop``
    returns True before a fetch (``stopped`` is set). A fetch that returns
    None while a stop is pending counts as stopped, not failed.
    """

    def __init__(
        self,
        fetch_page: Callable[[int], Page | None],
        should_stop: Callable[[], bool] | None = None,
        description: str = "pages",
    ) -> None:
        self._fetch_page = fetch_page
        self._should_stop = should_stop
        self._description = description
        self.failed = False
        self.stopped = False
        self.pages_fetched = 0

    def __iter__(self) -> Generator[Page, None, None]:
        page_number: int | None = 1

        while page_number is not None:
            if self._should_stop is not None and self._should_stop():
                self.stopped = True
                logger.info(
                    "Stopping %s walk before page %d", self._description, page_number
                )
                return

            page = self._fetch_page(page_number)
            if page is None:
                if self._should_stop is not None and self._should_stop():
                    self.stopped = True
                    logger.info(
                        "Stopping %s walk at page %d", self._description, page_number
                    )
                    return
                self.failed = True
                logger.error(
                    "Fetching %s page %d failed, keeping %d page(s) already fetched",
                    self._description, page_number, self.pages_fetched,
                )
                return

            self.pages_fetched += 1
            logger.debug(
                "Fetched %s page %d/%d (%d items)",
                self._description, page.page, page.pages, len(page.items),
            )
            yield page

            page_number = page.next_page


def walk_pages(
    fetch_page: Callable[[int], Page | None],
    should_stop: Callable[[], bool] | None = None,
    description: str = "pages",
) -> PageWalk:
    """Create a PageWalk; iterate it to drive the fetches."""
    return PageWalk(fetch_page, should_stop, description)
