"""Command-line interface for kaboom."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from . import APP_NAME, __version__
from .config import AppConfig, parse_app_config
from .feeds import FeedParseError, parse_datetime
from .links import StringableLink
from .pruning import PruneStrategy
from .runner import (
    AddOptions,
    MetaOptions,
    PruneOptions,
    run_add,
    run_meta,
    run_prune,
)

logger = logging.getLogger(__name__)


def _timestamp(value: str) -> datetime:
    try:
        return parse_datetime(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"not an RFC 3339 timestamp: {value}"
        ) from exc


def _since_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return _timestamp(value)


def _strategy(value: str) -> PruneStrategy:
    try:
        return PruneStrategy.from_name(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _count(value: str) -> int:
    count = int(value)
    if count < 0:
        raise argparse.ArgumentTypeError("count must not be negative")
    return count


def _add_add_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "add",
        help="Add an entry to the feed.",
        description=(
            "Add entries to the feed. If CONTENT is supplied, its source is "
            "assumed to be the same URI as ID."
        ),
    )
    parser.add_argument("id", help="the URI of the entry")
    parser.add_argument("title", help="the title of the entry")
    parser.add_argument("-s", "--summary", help="a short summary of the entry")
    parser.add_argument("-c", "--content", help="the full content of the entry")
    parser.add_argument(
        "-T",
        "--content-type",
        help=(
            'the content type of CONTENT; must be "text", "html", "xhtml", or a '
            "MIME type. ignored if CONTENT is not provided."
        ),
    )
    parser.add_argument(
        "-L",
        "--content-language",
        help="the language of CONTENT, often a code like en-us.",
    )
    parser.add_argument(
        "-a",
        "--author-name",
        dest="author_names",
        action="append",
        default=[],
        help="name of an author of this entry; may be repeated.",
    )
    parser.add_argument(
        "-A",
        "--author-email",
        dest="author_emails",
        action="append",
        default=[],
        help="email of an author; if given, must be repeated as often as --author-name.",
    )
    parser.add_argument(
        "-d",
        "--published-at",
        type=_timestamp,
        help="RFC 3339 date and time the entry was published",
    )
    parser.add_argument(
        "-D",
        "--updated-at",
        type=_timestamp,
        help="RFC 3339 date and time the entry was last updated (default: now)",
    )


def _add_meta_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "meta",
        help="Show or modify the feed's metadata.",
        description=(
            "Manage the metadata of the Atom feed, for example the title or links. "
            "After any modifications, the feed's metadata is printed."
        ),
    )
    parser.add_argument(
        "-t",
        "--title",
        help="a human-readable title for the feed (required for a new file)",
    )
    parser.add_argument(
        "-u",
        "--uri",
        help="a unique and permanent URI for this feed (required for a new file)",
    )
    parser.add_argument(
        "-r",
        "--rel-link",
        dest="rel_links",
        action="append",
        default=[],
        type=StringableLink.from_string,
        metavar="LINK",
        help=(
            "a URL related to the feed, may be repeated. suffixes [rel=X], "
            "[type=X], [title=X] and [lang=X] are supported, for example "
            "https://example.com/feed.xml[rel=alternate][lang=fr-ca]"
        ),
    )
    parser.add_argument(
        "-R",
        "--remove-links",
        action="store_true",
        help=(
            "remove all links except rel=self. with --rel-link, clear all "
            "existing links and keep only the given ones."
        ),
    )
    parser.add_argument("-i", "--icon", help="URL of a small identifying image")
    parser.add_argument(
        "-I", "--remove-icon", action="store_true", help="unset the icon"
    )
    parser.add_argument("-l", "--logo", help="URL of a larger identifying image")
    parser.add_argument(
        "-L", "--remove-logo", action="store_true", help="unset the logo"
    )
    parser.add_argument("-s", "--subtitle", help="a description of the feed")
    parser.add_argument(
        "-S", "--remove-subtitle", action="store_true", help="unset the subtitle"
    )
    parser.add_argument(
        "-G",
        "--no-generator",
        action="store_true",
        help="do not record kaboom as the feed's generator",
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="print the metadata as JSON",
    )


def _add_prune_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        "prune",
        help="Remove old entries from the feed.",
        description=(
            "Remove entries from the Atom feed, and by default send the removed "
            "entries to a reject file for archival."
        ),
    )
    parser.add_argument(
        "count", type=_count, help="number of entries to keep in the feed"
    )
    parser.add_argument(
        "-R",
        "--no-reject",
        action="store_true",
        help="do not send pruned entries to the reject file",
    )
    parser.add_argument(
        "-r",
        "--reject-file",
        help=(
            "Atom file receiving pruned entries (default: the feed file with "
            ".xml removed and .rej.xml added)"
        ),
    )
    parser.add_argument(
        "-s",
        "--strategy",
        type=_strategy,
        default=PruneStrategy.RECENTLY_PUBLISHED,
        metavar="{published,updated,since-date}",
        help="how entries are ranked (default: published)",
    )
    parser.add_argument(
        "-d",
        "--since-date",
        type=_since_date,
        help="YYYY-MM-DD date, used only with the since-date strategy",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME, description="Manage an on-disk Atom feed's entries."
    )
    parser.add_argument(
        "-f",
        "--file",
        default=None,
        help="Path to the Atom feed (default: feed.xml, or the config value).",
    )
    parser.add_argument(
        "-n",
        "--no-op",
        action="store_true",
        help="Do not write anything to disk, but still show what would change.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an optional kaboom configuration XML file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("version", help="Display version info and exit.")
    _add_add_parser(subparsers)
    _add_meta_parser(subparsers)
    _add_prune_parser(subparsers)
    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def _dispatch(args: argparse.Namespace, app_config: AppConfig) -> str:
    feed_file = Path(args.file or app_config.feed_file)

    if args.command == "add":
        options = AddOptions(
            id=args.id,
            title=args.title,
            summary=args.summary,
            content=args.content,
            content_type=args.content_type,
            content_language=args.content_language,
            author_names=args.author_names,
            author_emails=args.author_emails,
            published_at=args.published_at,
            updated_at=args.updated_at,
        )
        result = run_add(feed_file, options, no_op=args.no_op)
    elif args.command == "meta":
        options = MetaOptions(
            title=args.title,
            uri=args.uri,
            rel_links=args.rel_links,
            remove_links=args.remove_links,
            icon=args.icon,
            remove_icon=args.remove_icon,
            logo=args.logo,
            remove_logo=args.remove_logo,
            subtitle=args.subtitle,
            remove_subtitle=args.remove_subtitle,
            no_generator=args.no_generator,
            as_json=args.as_json,
        )
        result = run_meta(
            feed_file, options, no_op=args.no_op, generator=app_config.generator
        )
    else:
        options = PruneOptions(
            count=args.count,
            strategy=args.strategy,
            since_date=args.since_date,
            no_reject=args.no_reject,
            reject_file=args.reject_file,
            reject_suffix=app_config.reject_suffix,
        )
        result = run_prune(feed_file, options, no_op=args.no_op)

    return result.output_text


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print(f"{APP_NAME} {__version__}")
        return 0

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # CLI overrides config
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        output_text = _dispatch(args, app_config)
    except ValueError as exc:
        parser.error(str(exc))
    except (FeedParseError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    print(output_text)
    return 0
