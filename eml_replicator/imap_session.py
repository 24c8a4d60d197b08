"""IMAP session lifecycle on top of stdlib ``imaplib``.

A session is an immutable value.  Operations that may replace the
underlying connection return the session that is live afterwards, so a
reconnect is visible to the caller instead of hidden inside a shared
handle.
"""

from __future__ import annotations

import base64
import imaplib
import re
import ssl
from dataclasses import dataclass

import structlog
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from .config import ImapConfig
from .errors import ImapAppendError, ImapConnectError

logger = structlog.get_logger()

# First try plus exactly one retry on a fresh connection
APPEND_ATTEMPTS = 2

# Characters that force a mailbox name into an IMAP quoted string (RFC 3501 atom-specials)
_ATOM_SPECIALS = re.compile(r'[\x00-\x20\x7f(){%*"\\\]]')


@dataclass(frozen=True)
class ImapSession:
    """One authenticated IMAP connection."""

    conn: imaplib.IMAP4_SSL
    address: str


@dataclass(frozen=True)
class AppendOutcome:
    """Result of :func:`append_with_reconnect`."""

    session: ImapSession
    reconnected: bool = False


# ------------------------------------------------------------------
# Lifecycle
# ------------------------------------------------------------------


def connect(config: ImapConfig) -> ImapSession:
    """Open a TLS connection and log in.  Connect and login are all-or-nothing."""
    context = _ssl_context(skip_verify=config.skip_verify_cert)
    try:
        conn = imaplib.IMAP4_SSL(config.host, config.port, ssl_context=context)
    except (imaplib.IMAP4.error, OSError, UnicodeError) as exc:
        raise ImapConnectError(f"failed to connect to {config.address}: {exc}") from exc

    try:
        conn.login(config.username, config.password.get_secret_value())
    except (imaplib.IMAP4.error, OSError, UnicodeEncodeError) as exc:
        _logout(conn)
        raise ImapConnectError(
            f"failed to log in to {config.address} as {config.username!r}: {exc}"
        ) from exc

    logger.info(
        "imap_connected",
        address=config.address,
        username=config.username,
        verify_cert=not config.skip_verify_cert,
    )
    return ImapSession(conn=conn, address=config.address)


def close(session: ImapSession) -> None:
    """Log out, ignoring any error from a connection that is already gone."""
    _logout(session.conn)
    logger.debug("imap_disconnected", address=session.address)


def _logout(conn: imaplib.IMAP4_SSL) -> None:
    try:
        conn.logout()
    except (imaplib.IMAP4.error, OSError) as exc:
        logger.debug("imap_logout_failed", error=str(exc))


def _ssl_context(*, skip_verify: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


# ------------------------------------------------------------------
# Append
# ------------------------------------------------------------------


def encode_mailbox(name: str) -> str:
    """Encode *name* in IMAP modified UTF-7 (RFC 3501 section 5.1.3).

    Printable ASCII passes through except ``&``, which becomes ``&-``.  Runs
    of other characters become ``&<base64 of UTF-16BE>-`` with ``,`` in
    place of ``/`` and no padding.
    """
    encoded: list[str] = []
    pending: list[str] = []

    def flush() -> None:
        if pending:
            raw = "".join(pending).encode("utf-16-be")
            chunk = base64.b64encode(raw).decode("ascii").rstrip("=").replace("/", ",")
            encoded.append(f"&{chunk}-")
            pending.clear()

    for char in name:
        if "\x20" <= char <= "\x7e":
            flush()
            encoded.append("&-" if char == "&" else char)
        else:
            pending.append(char)
    flush()
    return "".join(encoded)


def quote_mailbox(name: str) -> str:
    """Render *name* as an IMAP astring, quoting it when it is not a plain atom.

    Non-ASCII names are first encoded with :func:`encode_mailbox`.
    """
    name = encode_mailbox(name)
    if name and not _ATOM_SPECIALS.search(name):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def append(session: ImapSession, folder: str, payload: bytes) -> None:
    """Store *payload* as a new message in *folder*.

    Raises :class:`ImapAppendError` on a socket or protocol error and on
    any response other than ``OK``.
    """
    try:
        status, data = session.conn.append(quote_mailbox(folder), None, None, payload)
    except (imaplib.IMAP4.error, OSError) as exc:
        raise ImapAppendError(
            f"APPEND to {folder!r} on {session.address} failed: {exc}"
        ) from exc

    if status != "OK":
        raise ImapAppendError(
            f"APPEND to {folder!r} on {session.address} returned {status}: {_describe(data)}"
        )


def append_with_reconnect(
    session: ImapSession,
    config: ImapConfig,
    payload: bytes,
) -> AppendOutcome:
    """Append to ``config.folder``, reconnecting once if the first attempt fails.

    Ownership of *session* passes to this call.  On failure the old session
    is closed best-effort and replaced by a new one from :func:`connect`
    before the single retry.  A failing reconnect raises
    :class:`ImapConnectError`; a failing retry re-raises its
    :class:`ImapAppendError`.  Either way every session still open is
    logged out exactly once before the error propagates.
    """
    reconnected = False
    live: ImapSession | None = session
    retrying = Retrying(
        stop=stop_after_attempt(APPEND_ATTEMPTS),
        retry=retry_if_exception_type(ImapAppendError),
        before_sleep=_log_reconnect,
        reraise=True,
    )
    try:
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    close(session)
                    live = None
                    session = live = connect(config)
                    reconnected = True
                append(session, config.folder, payload)
    except (ImapAppendError, ImapConnectError):
        if live is not None:
            close(live)
        raise
    return AppendOutcome(session=session, reconnected=reconnected)


def _log_reconnect(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "imap_append_failed_reconnecting",
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


def _describe(data: list) -> str:
    parts = [
        item.decode(errors="replace") if isinstance(item, bytes) else str(item)
        for item in data or []
    ]
    return " ".join(parts)
