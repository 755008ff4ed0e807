"""HTML thread body to plain text converter using trafilatura with a tag-strip fallback."""

from __future__ import annotations

import html
import logging
import re
from typing import Any

import trafilatura

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_BREAK_RE = re.compile(r"<\s*(br|/p|/div|/li|/tr)\s*/?>", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")


class PlainTextConverter:
    """Render exported thread bodies as plain text for reading in a terminal."""

    def convert_body(self, body: str | None) -> str:
        """Convert one HTML thread body to plain text.

        Strategy:
        1. Extract via trafilatura (favor_recall=True, short support replies
           are mostly boilerplate-free).
        2. If trafilatura returns nothing, strip tags and unescape entities.
        """
        if not body:
            return ""

        result: str | None = None
        try:
            result = trafilatura.extract(
                body,
                output_format="txt",
                favor_recall=True,
                include_links=True,
                include_tables=True,
            )
        except Exception as e:
            logger.warning("Trafilatura extraction failed: %s", e)
            result = None

        if not result:
            result = self._strip_tags(body)

        return result.strip()

    def render_conversation(self, conversation: dict[str, Any]) -> str:
        """Render a conversation and its threads as a readable text block."""
        number = conversation.get("number", conversation.get("id", "?"))
        subject = conversation.get("subject") or "(no subject)"
        lines = [f"#{number} {subject}", "=" * 60]

        threads = conversation.get("threads") or []
        if not threads:
            lines.append("(no threads exported)")

        for thread in threads:
            lines.append(f"--- {self._author(thread)} at {thread.get('createdAt', '')}")
            lines.append(self.convert_body(thread.get("body")))
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def _author(thread: dict[str, Any]) -> str:
        created_by = thread.get("createdBy") or {}
        name = " ".join(
            part for part in (created_by.get("firstName"), created_by.get("lastName")) if part
        )
        return name or created_by.get("email") or "unknown"

    @staticmethod
    def _strip_tags(body: str) -> str:
        text = _BREAK_RE.sub("\n", body)
        text = _TAG_RE.sub("", text)
        text = html.unescape(text)
        return _BLANK_LINES_RE.sub("\n\n", text)
