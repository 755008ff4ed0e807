"""Dataclasses for the Help Scout Exporter domain model."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from helpscout_exporter.core.exceptions import PageDecodeError


@dataclass(frozen=True)
class Mailbox:
    """A named inbox within the Help Scout account."""

    id: int
    slug: str
    email: str
    name: str

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Mailbox:
        """Build a Mailbox from one item of a mailboxes page."""
        try:
            return cls(
                id=int(item["id"]),
                slug=item.get("slug", ""),
                email=item.get("email", ""),
                name=item.get("name", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PageDecodeError(f"Malformed mailbox item: {item!r}") from e

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "slug": self.slug, "email": self.email, "name": self.name}


@dataclass(frozen=True)
class Page:
    """One slice of a paginated listing.

    ``page`` is 1-based; ``pages`` is the total page count reported by the API.
    """

    items: tuple[Any, ...] = field(default_factory=tuple)
    page: int = 1
    pages: int = 1
    count: int = 0

    @property
    def next_page(self) -> int | None:
        """The page to request next, or None once the last page is reached."""
        return self.page + 1 if self.page < self.pages else None

    @classmethod
    def from_api(
        cls,
        payload: Any,
        decode: Callable[[dict[str, Any]], Any] | None = None,
    ) -> Page:
        """Build a Page from a decoded response body.

        Args:
            payload: Parsed JSON body with ``items``, ``page``, ``pages`` and ``count``.
            decode: Optional per-item decoder (e.g. ``Mailbox.from_api``).

        Raises:
            PageDecodeError: If the body is not a page object.
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise PageDecodeError("Response body has no 'items' list")

        raw_items = payload["items"]
        items = tuple(decode(item) for item in raw_items) if decode else tuple(raw_items)
        try:
            page = int(payload.get("page", 1))
            pages = int(payload.get("pages", 1))
            count = int(payload.get("count", len(items)))
        except (TypeError, ValueError) as e:
            raise PageDecodeError(f"Malformed pagination fields: {e}") from e

        return cls(items=items, page=page, pages=pages, count=count)


@dataclass
class ExportProgress:
    """Mutable progress tracker for pipeline status reporting."""

    mailboxes_fetched: int = 0
    pages_fetched: int = 0
    conversations_fetched: int = 0
    threads_fetched: int = 0
    thread_fetches_failed: int = 0
    current_stage: str = "idle"
    current_mailbox: int | None = None
    interrupted: bool = False
