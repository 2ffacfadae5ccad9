"""Shared data models for kaboom."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from xml.etree import ElementTree as ET


@dataclass
class Link:
    """A single Atom <link> relation."""

    href: str
    rel: str = "alternate"
    mime_type: Optional[str] = None
    hreflang: Optional[str] = None
    title: Optional[str] = None
    length: Optional[int] = None


@dataclass
class Person:
    name: str
    email: Optional[str] = None
    uri: Optional[str] = None


@dataclass
class Text:
    """An Atom text construct (title, subtitle, summary)."""

    value: str = ""
    type: str = "text"

    def __str__(self) -> str:
        return self.value


@dataclass
class Content:
    value: Optional[str] = None
    content_type: Optional[str] = None
    lang: Optional[str] = None
    src: Optional[str] = None
    base: Optional[str] = None


@dataclass
class Generator:
    value: str
    uri: Optional[str] = None
    version: Optional[str] = None


@dataclass
class Entry:
    """One entry of an Atom feed."""

    id: str
    title: Text = field(default_factory=Text)
    updated: Optional[datetime] = None
    published: Optional[datetime] = None
    summary: Optional[Text] = None
    content: Optional[Content] = None
    authors: List[Person] = field(default_factory=list)
    contributors: List[Person] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    lang: Optional[str] = None
    base: Optional[str] = None
    # Child elements kaboom does not model, written back verbatim.
    extensions: List[ET.Element] = field(default_factory=list)


@dataclass
class Feed:
    """An Atom feed document."""

    id: str
    title: Text = field(default_factory=Text)
    updated: Optional[datetime] = None
    subtitle: Optional[Text] = None
    icon: Optional[str] = None
    logo: Optional[str] = None
    links: List[Link] = field(default_factory=list)
    authors: List[Person] = field(default_factory=list)
    contributors: List[Person] = field(default_factory=list)
    generator: Optional[Generator] = None
    entries: List[Entry] = field(default_factory=list)
    lang: Optional[str] = None
    base: Optional[str] = None
    extensions: List[ET.Element] = field(default_factory=list)

    def find_link(self, href: str) -> Optional[Link]:
        """Return the first feed-level link pointing at *href*, if any."""
        for link in self.links:
            if link.href == href:
                return link
        return None
