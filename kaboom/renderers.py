"""Rendering helpers for command output."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from .feeds import format_datetime
from .links import encode_link
from .models import Entry, Feed
from .templating import get_environment


def build_meta_text(feed: Feed) -> str:
    """Render the feed metadata as key=value lines."""
    env = get_environment()
    template = env.get_template("meta.txt.j2")
    return template.render(feed=feed).rstrip("\n")


def build_meta_json(feed: Feed) -> str:
    """Render the feed metadata as a JSON object."""
    payload = {
        "title": feed.title.value,
        "subtitle": feed.subtitle.value if feed.subtitle is not None else None,
        "uri": feed.id,
        "updated_at": format_datetime(feed.updated) if feed.updated else None,
        "icon": feed.icon,
        "logo": feed.logo,
        "links": [
            {
                "href": link.href,
                "rel": link.rel,
                "type": link.mime_type,
                "lang": link.hreflang,
                "title": link.title,
                "annotated": encode_link(link),
            }
            for link in feed.links
        ],
        "generator": feed.generator.value if feed.generator else None,
        "entries": len(feed.entries),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def build_prune_text(
    kept: List[Entry], rejected: List[Entry], reject_file: Optional[Path] = None
) -> str:
    """Render a summary of a prune run."""
    env = get_environment()
    template = env.get_template("prune.txt.j2")
    return template.render(
        kept=kept, rejected=rejected, reject_file=reject_file
    ).rstrip("\n")
