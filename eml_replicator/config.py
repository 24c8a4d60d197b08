"""Replicator configuration loaded from CLI flags and environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
All models are frozen: a configuration is built once at startup and then
only read.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class ImapConfig(BaseSettings):
    """IMAP server connection settings."""

    model_config = {"env_prefix": "IMAP_", "frozen": True}

    host: str = Field(description="IMAP server hostname")
    port: int = Field(default=993, description="IMAP server port (implicit TLS)")
    username: str = Field(default="", description="IMAP login username")
    password: SecretStr = Field(default=SecretStr(""), description="IMAP login password")
    folder: str = Field(default="INBOX", description="IMAP folder receiving the messages")
    skip_verify_cert: bool = Field(
        default=False,
        description="Accept any server certificate (opt-in, insecure)",
    )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class SourceConfig(BaseSettings):
    """Where to look for message files on disk."""

    model_config = {"env_prefix": "SOURCE_", "frozen": True}

    directory: str = Field(default=".", description="Directory holding the message files")
    recursive: bool = Field(default=False, description="Walk subdirectories as well")
    follow_symlinks: bool = Field(
        default=False,
        description="Descend into symlinked directories when walking recursively",
    )
    extension: str = Field(
        default="eml",
        description="File extension to select (case-sensitive, no leading dot)",
    )


class ReplicatorConfig(BaseSettings):
    """Root configuration for one replication run."""

    model_config = {"env_prefix": "REPLICATOR_", "frozen": True}

    imap: ImapConfig = Field(default_factory=ImapConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    random_message_id: bool = Field(
        default=False,
        description="Replace each Message-ID with a random token before upload",
    )
    log_level: str = Field(default="INFO", description="Root log level name")
    log_json: bool = Field(default=False, description="Emit JSON log lines")
