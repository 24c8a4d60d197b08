"""Exceptions raised by the replicator."""

from __future__ import annotations

from pathlib import Path


class ReplicatorError(Exception):
    """Base exception for replication errors."""


class SourceDirectoryError(ReplicatorError):
    """Source directory is missing, not a directory, or could not be walked."""


class MessageReadError(ReplicatorError):
    """A discovered message file could not be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"could not read {path}: {reason}")
        self.path = path


class MessageIdError(ReplicatorError):
    """No Message-ID header line was found in the message."""


class MalformedMessageIdError(MessageIdError):
    """The Message-ID header line is not valid text or is not terminated."""


class ImapConnectError(ReplicatorError):
    """Connecting or logging in to the IMAP server failed."""


class ImapAppendError(ReplicatorError):
    """A single APPEND attempt failed."""


class TransferError(ReplicatorError):
    """A message could not be appended: the retry failed or the reconnect did."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"could not copy {path}: {reason}")
        self.path = path
