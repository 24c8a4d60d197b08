"""eml-replicator: copy EML files from disk into an IMAP folder."""

from .config import ImapConfig, ReplicatorConfig, SourceConfig
from .discovery import discover_message_files
from .errors import (
    ImapAppendError,
    ImapConnectError,
    MalformedMessageIdError,
    MessageIdError,
    MessageReadError,
    ReplicatorError,
    SourceDirectoryError,
    TransferError,
)
from .imap_session import AppendOutcome, ImapSession, append_with_reconnect, connect
from .logging import setup_logging
from .message_id import randomize_message_id
from .pipeline import ReplicationPipeline, ReplicationSummary

__version__ = "1.1.0"

__all__ = [
    "AppendOutcome",
    "ImapAppendError",
    "ImapConfig",
    "ImapConnectError",
    "ImapSession",
    "MalformedMessageIdError",
    "MessageIdError",
    "MessageReadError",
    "ReplicationPipeline",
    "ReplicationSummary",
    "ReplicatorConfig",
    "ReplicatorError",
    "SourceConfig",
    "SourceDirectoryError",
    "TransferError",
    "append_with_reconnect",
    "connect",
    "discover_message_files",
    "randomize_message_id",
    "setup_logging",
]
