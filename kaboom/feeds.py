"""Reading and writing Atom feed documents."""

from __future__ import annotations

import copy
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET

from .models import Content, Entry, Feed, Generator, Link, Person, Text

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
XML_NS = "http://www.w3.org/XML/1998/namespace"

ET.register_namespace("", ATOM_NS)


class FeedParseError(RuntimeError):
    """Raised when a file cannot be read as an Atom feed."""


def _tag(name: str) -> str:
    return f"{{{ATOM_NS}}}{name}"


def parse_datetime(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, assuming UTC when no offset is given.

    Fractions of a second are kept to microsecond precision.
    """
    # RFC 3339 allows a lowercase "t" and "z", fromisoformat does not.
    parsed = datetime.fromisoformat(value.strip().upper())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# Reading


def _text_of(element: Optional[ET.Element]) -> Optional[str]:
    if element is None:
        return None
    return (element.text or "").strip()


def _read_text(element: ET.Element) -> Text:
    text_type = element.attrib.get("type", "text")
    if text_type == "xhtml":
        div = element.find("{http://www.w3.org/1999/xhtml}div")
        if div is None:
            value = (element.text or "").strip()
        else:
            value = (div.text or "") + "".join(
                ET.tostring(child, encoding="unicode") for child in div
            )
        return Text(value=value, type=text_type)
    return Text(value=element.text or "", type=text_type)


def _read_datetime(element: Optional[ET.Element]) -> Optional[datetime]:
    value = _text_of(element)
    if not value:
        return None
    try:
        return parse_datetime(value)
    except ValueError as exc:
        raise FeedParseError(f"Invalid timestamp in <{element.tag}>: {value}") from exc


def _read_link(element: ET.Element) -> Link:
    length = element.attrib.get("length")
    return Link(
        href=element.attrib.get("href", ""),
        rel=element.attrib.get("rel", "alternate"),
        mime_type=element.attrib.get("type"),
        hreflang=element.attrib.get("hreflang"),
        title=element.attrib.get("title"),
        length=int(length) if length and length.isdigit() else None,
    )


def _read_person(element: ET.Element) -> Person:
    return Person(
        name=_text_of(element.find(_tag("name"))) or "",
        email=_text_of(element.find(_tag("email"))),
        uri=_text_of(element.find(_tag("uri"))),
    )


def _read_content(element: ET.Element) -> Content:
    content_type = element.attrib.get("type")
    if content_type == "xhtml":
        value = _read_text(element).value
    else:
        value = element.text
    return Content(
        value=value,
        content_type=content_type,
        lang=element.attrib.get(f"{{{XML_NS}}}lang"),
        src=element.attrib.get("src"),
        base=element.attrib.get(f"{{{XML_NS}}}base"),
    )


def _read_entry(element: ET.Element) -> Entry:
    entry = Entry(
        id="",
        lang=element.attrib.get(f"{{{XML_NS}}}lang"),
        base=element.attrib.get(f"{{{XML_NS}}}base"),
    )
    for child in element:
        if child.tag == _tag("id"):
            entry.id = _text_of(child) or ""
        elif child.tag == _tag("title"):
            entry.title = _read_text(child)
        elif child.tag == _tag("updated"):
            entry.updated = _read_datetime(child)
        elif child.tag == _tag("published"):
            entry.published = _read_datetime(child)
        elif child.tag == _tag("summary"):
            entry.summary = _read_text(child)
        elif child.tag == _tag("content"):
            entry.content = _read_content(child)
        elif child.tag == _tag("author"):
            entry.authors.append(_read_person(child))
        elif child.tag == _tag("contributor"):
            entry.contributors.append(_read_person(child))
        elif child.tag == _tag("link"):
            entry.links.append(_read_link(child))
        else:
            entry.extensions.append(child)
    return entry


def parse_feed(root: ET.Element) -> Feed:
    """Build a Feed from a parsed <feed> element."""
    if root.tag != _tag("feed"):
        raise FeedParseError(f"Not an Atom feed, root element is <{root.tag}>")

    feed = Feed(
        id="",
        lang=root.attrib.get(f"{{{XML_NS}}}lang"),
        base=root.attrib.get(f"{{{XML_NS}}}base"),
    )
    for child in root:
        if child.tag == _tag("id"):
            feed.id = _text_of(child) or ""
        elif child.tag == _tag("title"):
            feed.title = _read_text(child)
        elif child.tag == _tag("updated"):
            feed.updated = _read_datetime(child)
        elif child.tag == _tag("subtitle"):
            feed.subtitle = _read_text(child)
        elif child.tag == _tag("icon"):
            feed.icon = _text_of(child)
        elif child.tag == _tag("logo"):
            feed.logo = _text_of(child)
        elif child.tag == _tag("link"):
            feed.links.append(_read_link(child))
        elif child.tag == _tag("author"):
            feed.authors.append(_read_person(child))
        elif child.tag == _tag("contributor"):
            feed.contributors.append(_read_person(child))
        elif child.tag == _tag("generator"):
            feed.generator = Generator(
                value=_text_of(child) or "",
                uri=child.attrib.get("uri"),
                version=child.attrib.get("version"),
            )
        elif child.tag == _tag("entry"):
            feed.entries.append(_read_entry(child))
        else:
            feed.extensions.append(child)

    logger.debug("Parsed feed '%s' with %d entries", feed.id, len(feed.entries))
    return feed


def read_feed(path: str | Path) -> Feed:
    """Load the Atom feed stored at *path*."""
    location = Path(path)
    logger.info("Reading feed from %s", location)
    try:
        tree = ET.parse(location)
    except ET.ParseError as exc:
        raise FeedParseError(f"Feed file is not valid XML: {location}: {exc}") from exc
    return parse_feed(tree.getroot())


# Writing


def _sub(parent: ET.Element, name: str, text: Optional[str] = None) -> ET.Element:
    element = ET.SubElement(parent, _tag(name))
    if text is not None:
        element.text = text
    return element


def _write_text(parent: ET.Element, name: str, text: Text) -> None:
    element = _sub(parent, name)
    if text.type != "text":
        element.set("type", text.type)
    _fill_markup(element, text.type, text.value)


def _fill_markup(element: ET.Element, markup_type: Optional[str], value: str) -> None:
    if markup_type == "xhtml":
        try:
            div = ET.fromstring(
                f'<div xmlns="http://www.w3.org/1999/xhtml">{value}</div>'
            )
        except ET.ParseError as exc:
            raise ValueError(f"xhtml content is not well-formed: {exc}") from exc
        element.append(div)
    else:
        element.text = value


def _set_xml_attributes(element: ET.Element, lang: Optional[str], base: Optional[str]) -> None:
    if lang is not None:
        element.set(f"{{{XML_NS}}}lang", lang)
    if base is not None:
        element.set(f"{{{XML_NS}}}base", base)


def _write_link(parent: ET.Element, link: Link) -> None:
    element = _sub(parent, "link")
    element.set("href", link.href)
    if link.rel:
        element.set("rel", link.rel)
    if link.mime_type is not None:
        element.set("type", link.mime_type)
    if link.hreflang is not None:
        element.set("hreflang", link.hreflang)
    if link.title is not None:
        element.set("title", link.title)
    if link.length is not None:
        element.set("length", str(link.length))


def _write_people(parent: ET.Element, name: str, people: List[Person]) -> None:
    for person in people:
        element = _sub(parent, name)
        _sub(element, "name", person.name)
        if person.uri is not None:
            _sub(element, "uri", person.uri)
        if person.email is not None:
            _sub(element, "email", person.email)


def _write_content(parent: ET.Element, content: Content) -> None:
    element = _sub(parent, "content")
    if content.content_type is not None:
        element.set("type", content.content_type)
    _set_xml_attributes(element, content.lang, content.base)
    if content.src is not None:
        element.set("src", content.src)
    if content.value is not None:
        _fill_markup(element, content.content_type, content.value)


def _write_entry(parent: ET.Element, entry: Entry) -> None:
    element = _sub(parent, "entry")
    _set_xml_attributes(element, entry.lang, entry.base)
    _sub(element, "id", entry.id)
    _write_text(element, "title", entry.title)
    if entry.updated is not None:
        _sub(element, "updated", format_datetime(entry.updated))
    if entry.published is not None:
        _sub(element, "published", format_datetime(entry.published))
    _write_people(element, "author", entry.authors)
    _write_people(element, "contributor", entry.contributors)
    for link in entry.links:
        _write_link(element, link)
    if entry.summary is not None:
        _write_text(element, "summary", entry.summary)
    if entry.content is not None:
        _write_content(element, entry.content)
    for extension in entry.extensions:
        element.append(copy.deepcopy(extension))


def build_feed_element(feed: Feed) -> ET.Element:
    """Serialise *feed* to a <feed> element."""
    root = ET.Element(_tag("feed"))
    _set_xml_attributes(root, feed.lang, feed.base)
    _write_text(root, "title", feed.title)
    _sub(root, "id", feed.id)
    if feed.updated is not None:
        _sub(root, "updated", format_datetime(feed.updated))
    _write_people(root, "author", feed.authors)
    _write_people(root, "contributor", feed.contributors)
    if feed.generator is not None:
        generator = _sub(root, "generator", feed.generator.value)
        if feed.generator.uri is not None:
            generator.set("uri", feed.generator.uri)
        if feed.generator.version is not None:
            generator.set("version", feed.generator.version)
    if feed.icon is not None:
        _sub(root, "icon", feed.icon)
    if feed.logo is not None:
        _sub(root, "logo", feed.logo)
    for link in feed.links:
        _write_link(root, link)
    if feed.subtitle is not None:
        _write_text(root, "subtitle", feed.subtitle)
    for extension in feed.extensions:
        root.append(copy.deepcopy(extension))
    for entry in feed.entries:
        _write_entry(root, entry)
    return root


def temp_path_for(path: Path) -> Path:
    """Return the sibling path a feed is staged at before replacing *path*."""
    if path.suffix:
        return path.with_name(path.name + ".kaboom")
    return path.with_name(path.name + ".xml.kaboom")


def write_feed(feed: Feed, path: str | Path) -> None:
    """Write *feed* to *path* via a temporary file and an atomic rename."""
    location = Path(path)
    temp_path = temp_path_for(location)
    root = build_feed_element(feed)
    ET.indent(root)
    tree = ET.ElementTree(root)

    logger.debug("Writing feed to temporary file %s", temp_path)
    try:
        with temp_path.open("wb") as handle:
            tree.write(handle, encoding="utf-8", xml_declaration=True)
            handle.write(b"\n")
        os.replace(temp_path, location)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    logger.info("Wrote feed with %d entries to %s", len(feed.entries), location)
