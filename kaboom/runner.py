"""Feed editing commands: add, meta and prune."""

from __future__ import annotations

import copy
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from . import APP_HOMEPAGE, APP_NAME, __version__
from .config import DEFAULT_REJECT_SUFFIX
from .feeds import read_feed, write_feed
from .links import StringableLink
from .models import Content, Entry, Feed, Generator, Person, Text
from .pruning import PruneStrategy, prune
from .renderers import build_meta_json, build_meta_text, build_prune_text

logger = logging.getLogger(__name__)


@dataclass
class AddOptions:
    id: str
    title: str
    summary: Optional[str] = None
    content: Optional[str] = None
    content_type: Optional[str] = None
    content_language: Optional[str] = None
    author_names: List[str] = field(default_factory=list)
    author_emails: List[str] = field(default_factory=list)
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class MetaOptions:
    title: Optional[str] = None
    uri: Optional[str] = None
    rel_links: List[StringableLink] = field(default_factory=list)
    remove_links: bool = False
    icon: Optional[str] = None
    remove_icon: bool = False
    logo: Optional[str] = None
    remove_logo: bool = False
    subtitle: Optional[str] = None
    remove_subtitle: bool = False
    no_generator: bool = False
    as_json: bool = False


@dataclass
class PruneOptions:
    count: int
    strategy: PruneStrategy = PruneStrategy.RECENTLY_PUBLISHED
    since_date: Optional[datetime] = None
    no_reject: bool = False
    reject_file: Optional[str] = None
    reject_suffix: str = DEFAULT_REJECT_SUFFIX


@dataclass
class RunResult:
    """Returned data after executing a command."""

    output_text: str
    changed: bool


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _save(feed: Feed, path: Path, no_op: bool) -> None:
    if no_op:
        logger.warning("not writing %s because no-op was requested", path)
        return
    write_feed(feed, path)


def _build_authors(names: List[str], emails: List[str]) -> List[Person]:
    if emails and len(names) != len(emails):
        raise ValueError(
            "author names and author emails must be provided the same number of "
            f"times each if emails are provided at all, got {len(names)} and {len(emails)}"
        )
    if not emails:
        return [Person(name=name) for name in names]
    return [Person(name=name, email=email) for name, email in zip(names, emails)]


def run_add(feed_file: Path, options: AddOptions, no_op: bool = False) -> RunResult:
    """Insert a new entry at the top of the feed."""
    authors = _build_authors(options.author_names, options.author_emails)
    feed = read_feed(feed_file)

    if any(entry.id == options.id for entry in feed.entries):
        logger.warning("feed already contains an entry with id %s", options.id)

    content = None
    if options.content is not None:
        content = Content(
            value=options.content,
            content_type=options.content_type,
            lang=options.content_language,
            src=options.id,
        )
    elif options.content_type or options.content_language:
        logger.info("ignoring content type and language since no content was given")

    entry = Entry(
        id=options.id,
        title=Text(options.title),
        updated=options.updated_at or _now(),
        published=options.published_at,
        summary=Text(options.summary) if options.summary is not None else None,
        content=content,
        authors=authors,
    )
    feed.entries.insert(0, entry)
    feed.updated = entry.updated
    logger.info("Added entry %s to %s", entry.id, feed_file)

    _save(feed, feed_file, no_op)
    return RunResult(output_text=f"added={entry.id}", changed=True)


def _update_link(feed: Feed, rel_link: StringableLink) -> bool:
    wanted = rel_link.link
    existing = feed.find_link(wanted.href)
    if existing is None:
        feed.links.append(dataclasses.replace(wanted))
        return True

    same = (
        existing.rel == wanted.rel
        and existing.hreflang == wanted.hreflang
        and existing.mime_type == wanted.mime_type
        and existing.title == wanted.title
    )
    logger.debug(
        "link %s already exists, %s",
        rel_link.text,
        "seems to be equivalent, skipping" if same else "modifying in place",
    )
    if same:
        return False

    existing.rel = wanted.rel
    existing.hreflang = wanted.hreflang
    existing.mime_type = wanted.mime_type
    existing.title = wanted.title
    return True


def _load_or_start_feed(feed_file: Path, options: MetaOptions) -> tuple[Feed, bool]:
    if feed_file.exists():
        return read_feed(feed_file), False

    if not options.title or not options.uri:
        raise ValueError(
            f"{feed_file} does not exist yet; a title and uri are required to start a new feed"
        )
    logger.info("Starting a new feed at %s", feed_file)
    return Feed(id=options.uri, title=Text(options.title)), True


def run_meta(
    feed_file: Path,
    options: MetaOptions,
    no_op: bool = False,
    generator: bool = True,
) -> RunResult:
    """Update feed-level metadata and report the resulting state."""
    feed, changed = _load_or_start_feed(feed_file, options)

    if options.title is not None and options.title != feed.title.value:
        feed.title = Text(options.title)
        changed = True

    if options.uri is not None and options.uri != feed.id:
        feed.id = options.uri
        changed = True

    if options.subtitle is not None:
        if feed.subtitle is None or feed.subtitle != Text(options.subtitle):
            feed.subtitle = Text(options.subtitle)
            changed = True
    elif options.remove_subtitle and feed.subtitle is not None:
        feed.subtitle = None
        changed = True

    if options.icon is not None:
        if options.icon != feed.icon:
            feed.icon = options.icon
            changed = True
    elif options.remove_icon and feed.icon is not None:
        feed.icon = None
        changed = True

    if options.logo is not None:
        if options.logo != feed.logo:
            feed.logo = options.logo
            changed = True
    elif options.remove_logo and feed.logo is not None:
        feed.logo = None
        changed = True

    if options.remove_links:
        if options.rel_links:
            remaining = []
        else:
            remaining = [link for link in feed.links if link.rel == "self"]
        if remaining != feed.links:
            feed.links = remaining
            changed = True

    for rel_link in options.rel_links:
        if _update_link(feed, rel_link):
            changed = True

    if changed:
        feed.updated = _now()
        if generator and not options.no_generator:
            feed.generator = Generator(
                value=APP_NAME, uri=APP_HOMEPAGE, version=__version__
            )
        _save(feed, feed_file, no_op)
    else:
        logger.info("no metadata changes to write")

    output = build_meta_json(feed) if options.as_json else build_meta_text(feed)
    return RunResult(output_text=output, changed=changed)


def default_reject_path(feed_file: Path, suffix: str = DEFAULT_REJECT_SUFFIX) -> Path:
    """Return <feed file> with any .xml extension removed and *suffix* added."""
    name = feed_file.name
    if name.endswith(".xml"):
        name = name[: -len(".xml")]
    return feed_file.with_name(name + suffix)


def _reject_feed_for(feed: Feed, rejected: List[Entry], reject_path: Path) -> Feed:
    if reject_path.exists():
        reject_feed = read_feed(reject_path)
        reject_feed.entries[:0] = rejected
    else:
        logger.info("Creating reject file %s", reject_path)
        reject_feed = copy.deepcopy(feed)
        reject_feed.entries = rejected
    reject_feed.updated = _now()
    return reject_feed


def run_prune(feed_file: Path, options: PruneOptions, no_op: bool = False) -> RunResult:
    """Prune the feed down to the entries selected by the strategy."""
    if options.strategy is PruneStrategy.SINCE_DATE and options.since_date is None:
        raise ValueError("the since-date strategy requires --since-date")

    feed = read_feed(feed_file)

    if len(feed.entries) <= options.count:
        logger.info(
            "not pruning anything because feed already includes <= %d entries",
            options.count,
        )
        return RunResult(
            output_text=build_prune_text(feed.entries, []), changed=False
        )

    rejected = prune(feed.entries, options.count, options.strategy, options.since_date)
    feed.updated = _now()

    reject_path = None
    if not options.no_reject and rejected:
        if options.reject_file:
            reject_path = Path(options.reject_file)
        else:
            reject_path = default_reject_path(feed_file, options.reject_suffix)
        reject_feed = _reject_feed_for(feed, rejected, reject_path)
        _save(reject_feed, reject_path, no_op)

    _save(feed, feed_file, no_op)
    return RunResult(
        output_text=build_prune_text(feed.entries, rejected, reject_path),
        changed=bool(rejected),
    )
