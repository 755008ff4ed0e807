"""Help Scout API client for mailboxes, conversations and conversation threads."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from helpscout_exporter.core.exceptions import PageDecodeError
from helpscout_exporter.core.models import Mailbox, Page
from helpscout_exporter.core.pagination import PageWalk, walk_pages
from helpscout_exporter.core.request_executor import RequestExecutor

logger = logging.getLogger(__name__)


class HelpScoutClient:
    """Thin wrapper around the Help Scout API's three export endpoints.

    Every fetch returns None instead of raising when the request or decoding
    fails, so a caller's pagination loop can stop and keep what it has.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        self._executor = executor
        self._should_stop = should_stop
        self.thread_fetch_failures = 0

    def _get_json(self, route: str) -> Any | None:
        response = self._executor.execute(route)
        if response is None or response.status_code != 200:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("Invalid JSON from %s: %s", route, e)
            return None

    def fetch_mailboxes_page(self, page: int) -> Page | None:
        """Fetch one page of mailboxes, decoded into Mailbox records."""
        route = f"mailboxes.json?page={page}"
        body = self._get_json(route)
        if body is None:
            return None
        try:
            return Page.from_api(body, Mailbox.from_api)
        except PageDecodeError as e:
            logger.error("Could not decode %s: %s", route, e)
            return None

    def fetch_conversations_page(self, mailbox_id: int, page: int) -> Page | None:
        """Fetch one page of a mailbox's conversations, each with its threads attached.

        Threads are fetched one conversation at a time. A conversation whose
        threads could not be fetched is still returned, with ``threads`` set to
        an empty list. If a thread fetch fails while a stop is pending, the
        whole page is abandoned instead.
        """
        route = f"mailboxes/{mailbox_id}/conversations.json?page={page}"
        body = self._get_json(route)
        if body is None:
            return None
        try:
            result = Page.from_api(body)
        except PageDecodeError as e:
            logger.error("Could not decode %s: %s", route, e)
            return None

        for conversation in result.items:
            if not isinstance(conversation, dict):
                logger.error("Could not decode %s: conversation is not an object", route)
                return None

            conversation_id = conversation.get("id")
            threads = self.fetch_threads(conversation_id)
            if threads is None:
                if self._should_stop is not None and self._should_stop():
                    logger.info("Shutdown requested, abandoning %s", route)
                    return None
                logger.warning(
                    "Exporting conversation %s of mailbox %s without threads",
                    conversation_id, mailbox_id,
                )
                self.thread_fetch_failures += 1
                threads = []
            conversation["threads"] = threads

        return result

    def fetch_threads(self, conversation_id: Any) -> list[dict[str, Any]] | None:
        """Fetch the thread list of a single conversation (unpaginated)."""
        route = f"conversations/{conversation_id}.json"
        body = self._get_json(route)
        if body is None:
            return None

        item = body.get("item") if isinstance(body, dict) else None
        threads = item.get("threads") if isinstance(item, dict) else None
        if not isinstance(threads, list):
            logger.error("Could not decode %s: no thread list in item", route)
            return None
        return threads

    def iter_mailboxes(self, should_stop: Callable[[], bool] | None = None) -> PageWalk:
        """Walk every page of mailboxes."""
        return walk_pages(self.fetch_mailboxes_page, should_stop, "mailboxes")

    def iter_conversation_pages(
        self,
        mailbox_id: int,
        should_stop: Callable[[], bool] | None = None,
    ) -> PageWalk:
        """Walk every page of one mailbox's conversations."""
        return walk_pages(
            lambda page: self.fetch_conversations_page(mailbox_id, page),
            should_stop,
            f"mailbox {mailbox_id} conversations",
        )
