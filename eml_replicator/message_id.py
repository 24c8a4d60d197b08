"""Message-ID randomization on raw RFC 822 bytes.

Only the header line is located and replaced; the rest of the message
is copied through byte for byte, so non-UTF-8 bodies are untouched.
Folded (multi-line) Message-ID headers are not supported: only the
first physical line is replaced.
"""

from __future__ import annotations

import random
import re
import string
from collections.abc import Callable

from .errors import MalformedMessageIdError, MessageIdError

MESSAGE_ID_RE = re.compile(rb"^message-id:.+$", re.IGNORECASE | re.MULTILINE)

TOKEN_LENGTH = 30
TOKEN_ALPHABET = string.ascii_letters + string.digits


def random_token(length: int = TOKEN_LENGTH) -> str:
    """Return *length* characters drawn uniformly from ``[A-Za-z0-9]``."""
    return "".join(random.choices(TOKEN_ALPHABET, k=length))


def randomize_message_id(
    raw_bytes: bytes,
    *,
    token_factory: Callable[[], str] = random_token,
) -> bytes:
    """Replace the first Message-ID header line with a freshly generated one.

    The new line reads ``Message-ID: <token>``.  Everything before the
    header and everything from its line terminator onward (``\\n`` or
    ``\\r\\n``) is preserved verbatim.

    Raises :class:`MessageIdError` when no header line is present and
    :class:`MalformedMessageIdError` when the header line is not valid
    UTF-8 or is not followed by a newline.
    """
    match = MESSAGE_ID_RE.search(raw_bytes)
    if match is None:
        raise MessageIdError("Could not find Message-ID in the EML")

    start, end = match.span()
    if raw_bytes[end - 1 : end] == b"\r":
        end -= 1

    try:
        raw_bytes[start:end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedMessageIdError(f"Message-ID header is not valid UTF-8: {exc}") from exc

    if raw_bytes.find(b"\n", end) == -1:
        raise MalformedMessageIdError("Message-ID header is not terminated by a newline")

    header = f"Message-ID: {token_factory()}".encode("utf-8")
    return raw_bytes[:start] + header + raw_bytes[end:]
