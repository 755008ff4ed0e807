"""Custom exceptions for the Help Scout Exporter."""


class HelpScoutExporterError(Exception):
    """Base exception for all Help Scout Exporter errors."""


class AuthenticationError(HelpScoutExporterError):
    """No usable API key was configured."""


class PageDecodeError(HelpScoutExporterError):
    """An API response body could not be decoded into a page."""


class WriterStateError(HelpScoutExporterError):
    """An output file was written to after it was finalized."""
