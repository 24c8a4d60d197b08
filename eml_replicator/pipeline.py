"""Discover message files and copy each one to IMAP.

Processing is strictly sequential: files are appended in discovery
order over a single live session, and any fatal error stops the run
before the next file is touched.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import BaseModel, Field

from . import imap_session
from .config import ReplicatorConfig
from .discovery import discover_message_files
from .errors import (
    ImapAppendError,
    ImapConnectError,
    MessageIdError,
    MessageReadError,
    TransferError,
)
from .imap_session import ImapSession
from .message_id import randomize_message_id

logger = structlog.get_logger()


class ProgressReporter(Protocol):
    """Anything with a tqdm-style ``update``."""

    def update(self, n: int = 1) -> object: ...


class ReplicationSummary(BaseModel):
    """Counters for a finished run."""

    found: int = Field(default=0, description="Candidate files handed to the run")
    appended: int = Field(default=0, description="Messages stored on the server")
    rewritten: int = Field(default=0, description="Messages whose Message-ID was replaced")
    reconnects: int = Field(default=0, description="Appends that needed a fresh session")
    warnings: list[str] = Field(
        default_factory=list,
        description="Files sent unchanged because their Message-ID could not be rewritten",
    )


class ReplicationPipeline:
    """Drive discovery, Message-ID rewriting and APPEND for one run."""

    def __init__(self, config: ReplicatorConfig) -> None:
        self.config = config
        self._session: ImapSession | None = None

    def discover(self) -> list[Path]:
        """List the candidate files selected by ``config.source``."""
        source = self.config.source
        paths = discover_message_files(
            source.directory,
            recursive=source.recursive,
            follow_symlinks=source.follow_symlinks,
            extension=source.extension,
        )
        for path in paths:
            logger.info("eml_found", path=str(path))
        return paths

    def run(
        self,
        paths: Sequence[Path],
        progress: ProgressReporter | None = None,
    ) -> ReplicationSummary:
        """Append every file in *paths* to the configured folder.

        Connects once up front (nothing is opened for an empty list) and
        always logs out of the live session before returning or raising.
        """
        summary = ReplicationSummary(found=len(paths))
        if not paths:
            logger.info("replication_complete", **summary.model_dump())
            return summary

        if self.config.random_message_id:
            logger.info("message_id_randomization_enabled")

        self._session = imap_session.connect(self.config.imap)
        try:
            for path in paths:
                self._process(path, summary)
                if progress is not None:
                    progress.update(1)
        finally:
            if self._session is not None:
                imap_session.close(self._session)
                self._session = None

        logger.info(
            "replication_complete",
            found=summary.found,
            appended=summary.appended,
            rewritten=summary.rewritten,
            reconnects=summary.reconnects,
            warnings=len(summary.warnings),
        )
        return summary

    # ------------------------------------------------------------------
    # Per-file steps
    # ------------------------------------------------------------------

    def _process(self, path: Path, summary: ReplicationSummary) -> None:
        assert self._session is not None, "Not connected"
        payload = _read(path)

        if self.config.random_message_id:
            try:
                payload = randomize_message_id(payload)
            except MessageIdError as exc:
                logger.warning("message_id_not_rewritten", path=str(path), error=str(exc))
                summary.warnings.append(str(path))
            else:
                summary.rewritten += 1

        # The append owns the session until it hands back the live one
        session, self._session = self._session, None
        try:
            outcome = imap_session.append_with_reconnect(session, self.config.imap, payload)
        except (ImapAppendError, ImapConnectError) as exc:
            raise TransferError(path, str(exc)) from exc

        self._session = outcome.session
        if outcome.reconnected:
            summary.reconnects += 1
        summary.appended += 1
        logger.debug("eml_copied", path=str(path), size=len(payload))


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise MessageReadError(path, str(exc)) from exc
