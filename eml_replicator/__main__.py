"""Entry point for the replicator.

Usage::

    python -m eml_replicator imap.example.com ./mails -l user -p secret -r

Any option left off the command line falls back to its environment
variable (``IMAP_*``, ``SOURCE_*``, ``REPLICATOR_*``), then to its default.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

import structlog
from pydantic import ValidationError
from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from . import __version__
from .config import ImapConfig, ReplicatorConfig, SourceConfig
from .errors import ReplicatorError
from .logging import setup_logging
from .pipeline import ReplicationPipeline

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eml-replicator",
        description="A tool that reads EML files and copies them to an IMAP mailbox.",
    )
    parser.add_argument("server", nargs="?", metavar="IMAP_SERVER", help="IMAP server to connect to.")
    parser.add_argument(
        "directory",
        nargs="?",
        metavar="DIR",
        help="Directory in which to get the EML files (default: current directory).",
    )
    parser.add_argument("--port", type=int, help="Port of the IMAP server (default: 993).")
    parser.add_argument("-l", "--login", help="Login of the mailbox.")
    parser.add_argument("-p", "--password", help="Password of the mailbox.")
    parser.add_argument("-f", "--folder", help="IMAP folder in which to put the EMLs (default: INBOX).")
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        default=None,
        help="Go through the directory recursively to find EML files.",
    )
    parser.add_argument(
        "-s",
        "--follow-symlink",
        dest="follow_symlinks",
        action="store_true",
        default=None,
        help="Follow symlinks when crawling the directory recursively.",
    )
    parser.add_argument(
        "--random-message-id",
        action="store_true",
        default=None,
        help="Randomize the Message-ID in the EMLs before sending them.",
    )
    parser.add_argument(
        "--skip-verify-cert",
        action="store_true",
        default=None,
        help="Skip checking the server certificate when connecting over TLS.",
    )
    parser.add_argument("--extension", help="Extension of the files to copy (default: eml).")
    parser.add_argument("--log-level", help="Log level (default: INFO).")
    parser.add_argument("--log-json", action="store_true", default=None, help="Emit JSON log lines.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ReplicatorConfig:
    """Build the run configuration, leaving unset flags to env vars and defaults."""
    imap = _given(
        host=args.server,
        port=args.port,
        username=args.login,
        password=args.password,
        folder=args.folder,
        skip_verify_cert=args.skip_verify_cert,
    )
    source = _given(
        directory=args.directory,
        recursive=args.recursive,
        follow_symlinks=args.follow_symlinks,
        extension=args.extension,
    )
    top = _given(
        random_message_id=args.random_message_id,
        log_level=args.log_level,
        log_json=args.log_json,
    )
    return ReplicatorConfig(imap=ImapConfig(**imap), source=SourceConfig(**source), **top)


def _given(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        sys.exit(2)

    setup_logging(json=config.log_json, level=config.log_level)
    pipeline = ReplicationPipeline(config)

    try:
        paths = pipeline.discover()
        # Log lines are written above the bar instead of through it
        with logging_redirect_tqdm():
            with tqdm(total=len(paths), desc="EML Copied", unit="eml") as bar:
                pipeline.run(paths, progress=bar)
    except ReplicatorError as exc:
        logger.error("replication_failed", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
