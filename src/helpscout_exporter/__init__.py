"""Help Scout Exporter - Export mailboxes, conversations and threads to JSON files."""

from helpscout_exporter.core.models import ExportProgress, Mailbox, Page
from helpscout_exporter.pipeline.exporter import HelpScoutExporter

__all__ = [
    "ExportProgress",
    "HelpScoutExporter",
    "Mailbox",
    "Page",
]
