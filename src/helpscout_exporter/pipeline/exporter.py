"""Pipeline orchestrator: mailboxes → conversations (with threads) → JSON files."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from helpscout_exporter.config.settings import HelpScoutExporterSettings
from helpscout_exporter.core.helpscout_client import HelpScoutClient
from helpscout_exporter.core.models import ExportProgress, Mailbox
from helpscout_exporter.core.request_executor import RequestExecutor
from helpscout_exporter.pipeline.interrupt import InterruptHandler
from helpscout_exporter.storage.writer import IncrementalJsonWriter, write_json_array

logger = logging.getLogger(__name__)

MAILBOXES_FILENAME = "mailboxes.json"


class HelpScoutExporter:
    """Orchestrates the two-phase export.

    Phase 1 - Mailboxes:     Walk every mailboxes page → write mailboxes.json once
    Phase 2 - Conversations: Per mailbox, walk conversation pages → buffer → flush
                             after each page → finalize when pagination ends

    A termination signal is acted on before the next page fetch, or after the
    current rate-limit sleep: every open output file is finalized and the run
    returns with ``interrupted`` set.
    """

    def __init__(
        self,
        settings: HelpScoutExporterSettings | None = None,
        on_progress: Callable[[ExportProgress], None] | None = None,
        *,
        interrupt: InterruptHandler | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or HelpScoutExporterSettings()
        self._on_progress = on_progress
        self._progress = ExportProgress()
        self._interrupt = interrupt or InterruptHandler()
        self._transport = transport

        # Unflushed conversations per mailbox ID.
        self._buffers: dict[int, list[dict[str, Any]]] = {}

        # Components initialized lazily
        self._executor: RequestExecutor | None = None
        self._client: HelpScoutClient | None = None
        self._writer: IncrementalJsonWriter | None = None

    @property
    def on_progress(self) -> Callable[[ExportProgress], None] | None:
        return self._on_progress

    @on_progress.setter
    def on_progress(self, callback: Callable[[ExportProgress], None] | None) -> None:
        self._on_progress = callback

    @property
    def buffers(self) -> dict[int, list[dict[str, Any]]]:
        return self._buffers

    @property
    def progress(self) -> ExportProgress:
        return self._progress

    def _ensure_client(self) -> HelpScoutClient:
        if self._client is None:
            self._executor = RequestExecutor.from_settings(
                self._settings, self._transport, should_stop=self._interrupt.check
            )
            self._client = HelpScoutClient(self._executor, should_stop=self._interrupt.check)
        return self._client

    def _ensure_writer(self) -> IncrementalJsonWriter:
        if self._writer is None:
            self._settings.ensure_directories()
            self._writer = IncrementalJsonWriter(self._settings.output_dir)
        return self._writer

    def run(self) -> ExportProgress:
        """Run the full export, installing signal handlers for its duration.

        Returns:
            ExportProgress with final counts; ``interrupted`` is True when a
            termination signal cut the run short.
        """
        client = self._ensure_client()
        self._ensure_writer()
        self._progress = ExportProgress()

        self._interrupt.install()
        try:
            mailboxes = self.run_mailboxes()
            self.write_mailboxes(mailboxes)

            for mailbox in mailboxes:
                if self._interrupt.check():
                    break
                self.run_conversations(mailbox)

            if self._interrupt.check():
                self.handle_interrupt()
            else:
                self._progress.current_stage = "complete"
                self._progress.thread_fetches_failed = client.thread_fetch_failures
                logger.info(
                    "Export complete: %d mailbox(es), %d conversation(s)",
                    self._progress.mailboxes_fetched, self._progress.conversations_fetched,
                )
                self._notify()
        except Exception:
            logger.error("Export aborted, finalizing open exports")
            try:
                self._ensure_writer().finalize_all(self._buffers)
            except Exception:
                logger.exception("Could not finalize open exports")
            raise
        finally:
            self._interrupt.restore()

        return self._progress

    def run_mailboxes(self) -> list[Mailbox]:
        """Phase 1: collect every mailbox, stopping early on a failed page."""
        client = self._ensure_client()

        self._progress.current_stage = "mailboxes"
        self._notify()
        logger.info("Fetching mailboxes")

        mailboxes: list[Mailbox] = []
        walk = client.iter_mailboxes(should_stop=self._interrupt.check)
        for page in walk:
            mailboxes.extend(page.items)
            self._progress.pages_fetched += 1
            self._progress.mailboxes_fetched = len(mailboxes)
            self._notify()

        if walk.failed:
            logger.error("Mailbox listing incomplete, continuing with %d mailbox(es)", len(mailboxes))
        else:
            logger.info("Found %d mailbox(es)", len(mailboxes))
        return mailboxes

    def write_mailboxes(self, mailboxes: list[Mailbox]) -> None:
        """Write the mailbox list to mailboxes.json in a single write."""
        self._ensure_writer()
        path = self._settings.output_dir / MAILBOXES_FILENAME
        write_json_array(path, [mailbox.to_dict() for mailbox in mailboxes])
        logger.info("Wrote %d mailbox(es) to %s", len(mailboxes), path)

    def run_conversations(self, mailbox: Mailbox) -> int:
        """Phase 2 for one mailbox: fetch, buffer and flush every conversation page.

        The mailbox's file is finalized once pagination ends or a page fetch
        fails. When an interrupt stops the walk the file is left open for
        ``handle_interrupt`` to finalize.

        Returns:
            Number of conversations exported for the mailbox.
        """
        client = self._ensure_client()
        writer = self._ensure_writer()

        self._progress.current_stage = "conversations"
        self._progress.current_mailbox = mailbox.id
        self._notify()
        logger.info("Exporting conversations of mailbox %d (%s)", mailbox.id, mailbox.name)

        exported = 0
        walk = client.iter_conversation_pages(mailbox.id, should_stop=self._interrupt.check)
        for page in walk:
            self._buffers.setdefault(mailbox.id, []).extend(page.items)
            exported += len(page.items)
            self._progress.pages_fetched += 1
            self._progress.conversations_fetched += len(page.items)
            self._progress.threads_fetched += sum(len(c.get("threads", [])) for c in page.items)
            self._progress.thread_fetches_failed = client.thread_fetch_failures
            writer.flush(mailbox.id, self._buffers)
            self._notify()

        if walk.stopped:
            return exported

        if walk.failed:
            logger.error(
                "Conversation listing of mailbox %d incomplete, finalizing %d conversation(s)",
                mailbox.id, exported,
            )
        writer.flush(mailbox.id, self._buffers, finalize=True)
        return exported

    def handle_interrupt(self) -> list[int]:
        """Finalize every open output file after a termination signal.

        Returns:
            IDs of the mailboxes finalized.
        """
        writer = self._ensure_writer()
        logger.warning(
            "Received %s, finalizing open exports", self._interrupt.signal_name or "interrupt"
        )

        finalized = writer.finalize_all(self._buffers)

        self._progress.current_stage = "interrupted"
        self._progress.interrupted = True
        if self._client is not None:
            self._progress.thread_fetches_failed = self._client.thread_fetch_failures
        self._notify()
        logger.warning("Shut down after finalizing %d mailbox export(s)", len(finalized))
        return finalized

    def list_mailboxes(self) -> list[Mailbox]:
        """List mailboxes without writing anything."""
        return self.run_mailboxes()

    def close(self) -> None:
        """Clean up resources."""
        if self._executor:
            self._executor.close()

    def _notify(self) -> None:
        """Send progress update to callback if registered."""
        if self._on_progress:
            self._on_progress(self._progress)
