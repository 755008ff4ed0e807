"""Incremental JSON-array writer for per-mailbox conversation exports."""

from __future__ import annotations

import enum
import json
import logging
import os
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from helpscout_exporter.core.exceptions import WriterStateError

logger = logging.getLogger(__name__)

SEPARATOR = ",\n"
_SEPARATOR_BYTES = SEPARATOR.encode("utf-8")


class FileState(enum.Enum):
    """Lifecycle of one mailbox's output file."""

    ABSENT = "absent"
    OPEN = "open"
    FINALIZED = "finalized"


class IncrementalJsonWriter:
    """Append buffered conversations to ``conversations_{mailbox_id}.json``.

    While a mailbox is OPEN its file holds ``[`` followed by one JSON object
    and a trailing ``,\\n`` per record, i.e. it is not yet valid JSON.
    Finalizing drops the last separator and closes the array. The first flush
    for a mailbox truncates any file left behind by an earlier run.
    """

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._states: dict[int, FileState] = {}
        self._written: dict[int, int] = {}

    def path_for(self, mailbox_id: int) -> Path:
        return self._output_dir / f"conversations_{mailbox_id}.json"

    def state(self, mailbox_id: int) -> FileState:
        return self._states.get(mailbox_id, FileState.ABSENT)

    def items_written(self, mailbox_id: int) -> int:
        return self._written.get(mailbox_id, 0)

    def flush(
        self,
        mailbox_id: int,
        buffers: MutableMapping[int, list[dict[str, Any]]],
        *,
        finalize: bool = False,
    ) -> int:
        """Append a mailbox's buffered conversations to its file and clear the buffer.

        Args:
            mailbox_id: Mailbox whose buffer is written.
            buffers: Per-mailbox buffers owned by the caller.
            finalize: Also close the JSON array and drop the buffer entry.

        Returns:
            Number of records written by this call.

        Raises:
            WriterStateError: If the mailbox's file was already finalized.
        """
        state = self.state(mailbox_id)
        if state is FileState.FINALIZED:
            raise WriterStateError(f"Output for mailbox {mailbox_id} is already finalized")

        records = buffers.setdefault(mailbox_id, [])
        path = self.path_for(mailbox_id)
        mode = "w" if state is FileState.ABSENT else "a"

        with path.open(mode, encoding="utf-8", newline="\n") as f:
            if state is FileState.ABSENT:
                f.write("[\n")
                self._states[mailbox_id] = FileState.OPEN
                self._written[mailbox_id] = 0
            for record in records:
                f.write(json.dumps(record, ensure_ascii=False))
                f.write(SEPARATOR)

        written = len(records)
        self._written[mailbox_id] += written
        records.clear()
        logger.debug("Flushed %d conversation(s) to %s", written, path)

        if finalize:
            buffers.pop(mailbox_id, None)
            self._close_array(mailbox_id)

        return written

    def finalize_all(self, buffers: MutableMapping[int, list[dict[str, Any]]]) -> list[int]:
        """Finalize every mailbox that has an open file or unflushed records.

        Returns:
            IDs of the mailboxes finalized by this call.
        """
        pending = [mid for mid, state in self._states.items() if state is FileState.OPEN]
        pending += [mid for mid, records in buffers.items() if records and mid not in pending]

        finalized: list[int] = []
        for mailbox_id in pending:
            if self.state(mailbox_id) is FileState.FINALIZED:
                logger.warning(
                    "Dropping %d record(s) buffered for finalized mailbox %s",
                    len(buffers.pop(mailbox_id, [])), mailbox_id,
                )
                continue
            self.flush(mailbox_id, buffers, finalize=True)
            finalized.append(mailbox_id)
        return finalized

    def _close_array(self, mailbox_id: int) -> None:
        path = self.path_for(mailbox_id)
        with path.open("r+b") as f:
            if self._written[mailbox_id] > 0:
                f.seek(-len(_SEPARATOR_BYTES), os.SEEK_END)
                f.truncate()
            f.seek(0, os.SEEK_END)
            f.write(b"\n]\n" if self._written[mailbox_id] > 0 else b"]\n")

        self._states[mailbox_id] = FileState.FINALIZED
        logger.info(
            "Finalized %s with %d conversation(s)", path, self._written[mailbox_id]
        )


def write_json_array(path: Path, records: list[dict[str, Any]]) -> Path:
    """Write ``records`` to ``path`` as one JSON array, replacing the file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug("Wrote %d record(s) to %s", len(records), path)
    return path


def repair_unterminated(path: Path) -> list[Any]:
    """Close the JSON array of a file left open by an interrupted writer.

    A trailing separator is removed and ``]`` appended if missing. The file is
    rewritten only when it needed repair.

    Returns:
        The items parsed from the repaired file.
    """
    text = path.read_text(encoding="utf-8")
    stripped = text.rstrip()

    if stripped.endswith("]"):
        return json.loads(stripped)

    if stripped.endswith(","):
        stripped = stripped[:-1]
    repaired = stripped + "\n]\n"
    items = json.loads(repaired)
    path.write_text(repaired, encoding="utf-8")
    logger.info("Repaired unterminated export %s (%d items)", path, len(items))
    return items
