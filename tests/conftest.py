"""Shared test fixtures for the replicator test suite."""

from __future__ import annotations

import os
from email.mime.text import MIMEText
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from eml_replicator.config import ImapConfig, ReplicatorConfig, SourceConfig

SETTINGS_ENV_PREFIXES = ("IMAP_", "SOURCE_", "REPLICATOR_")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep settings in the developer's shell out of every test."""
    for name in list(os.environ):
        if name.upper().startswith(SETTINGS_ENV_PREFIXES):
            monkeypatch.delenv(name)


@pytest.fixture
def imap_config() -> ImapConfig:
    return ImapConfig(
        host="imap.test.com",
        port=993,
        username="testuser",
        password="testpass",
        folder="INBOX",
    )


@pytest.fixture
def mail_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "mail"
    directory.mkdir()
    return directory


@pytest.fixture
def make_config(imap_config: ImapConfig, mail_dir: Path):
    """Factory to create ReplicatorConfig instances with overrides."""

    def _make(**overrides) -> ReplicatorConfig:
        defaults = dict(
            imap=imap_config,
            source=SourceConfig(directory=str(mail_dir)),
        )
        defaults.update(overrides)
        return ReplicatorConfig(**defaults)

    return _make


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    subject: str = "Test Subject",
    from_addr: str = "sender@example.com",
    to_addr: str = "recipient@example.com",
    body: str = "Hello, World!",
    message_id: str | None = "<test-001@example.com>",
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain")
    msg["Subject"] = subject
    msg["From"] = from_addr
    msg["To"] = to_addr
    if message_id is not None:
        msg["Message-ID"] = message_id
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    return msg.as_bytes()


def _make_mock_imap(*, append_side_effect=None) -> MagicMock:
    """Create a mock imaplib.IMAP4_SSL with programmed responses."""
    mock = MagicMock()
    mock.login.return_value = ("OK", [b"Logged in"])
    mock.logout.return_value = ("BYE", [b"Logging out"])
    mock.append.return_value = ("OK", [b"[APPENDUID 1 1] APPEND completed"])
    if append_side_effect is not None:
        mock.append.side_effect = append_side_effect
    return mock


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email()
