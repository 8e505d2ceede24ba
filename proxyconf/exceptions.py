"""Custom exception hierarchy for proxyconf."""

from __future__ import annotations

from decimal import Decimal


class ProxyConfError(Exception):
    """Base for all proxyconf errors."""


class DocumentError(ProxyConfError):
    """The configuration document store rejected an operation."""


class DocumentLoadError(DocumentError):
    """The configuration file could not be parsed."""


class DocumentWriteError(DocumentError):
    """A value or comment could not be written to the document."""


class VersionReadError(ProxyConfError):
    """The config-version marker is present but malformed."""


class MigrationError(ProxyConfError):
    """A migration step failed; the run was aborted."""

    def __init__(self, message: str, target_version: Decimal | None = None) -> None:
        super().__init__(message)
        self.target_version = target_version


class PersistError(ProxyConfError):
    """Writing the migrated document back to disk failed."""
